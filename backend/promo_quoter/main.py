"""
Promo Quoter - Backend API
Cart quoting with promotions and atomic order confirmation
"""
import logging
import time
from http import HTTPStatus
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before settings are read
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from promo_quoter.api import cart, products, promotions
from promo_quoter.core import database
from promo_quoter.core.config import settings
from promo_quoter.core.exceptions import InsufficientStockError, PersistenceError, QuoterError

logger = logging.getLogger(__name__)


def _error_body(status_code: int, message: str) -> dict:
    return {"error": HTTPStatus(status_code).phrase, "message": message}


async def quoter_error_handler(request: Request, exc: QuoterError) -> JSONResponse:
    """Map domain errors to their HTTP status with a client-safe message"""
    if isinstance(exc, PersistenceError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.original_error})")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    body = _error_body(exc.status_code, exc.message)
    if isinstance(exc, InsufficientStockError):
        body["items"] = [shortage.to_dict() for shortage in exc.shortages]

    return JSONResponse(status_code=exc.status_code, content=body)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body/header validation failures are 400 with one message per field"""
    details = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details[field or "body"] = error.get("msg", "Invalid value")

    body = _error_body(status.HTTP_400_BAD_REQUEST, "Validation failed")
    body["details"] = details
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred"),
    )


def create_app() -> FastAPI:
    """Build the FastAPI application"""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description=settings.API_DESCRIPTION
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(QuoterError, quoter_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.include_router(cart.router, prefix="/cart", tags=["Cart"])
    app.include_router(products.router, prefix="/products", tags=["Products"])
    app.include_router(promotions.router, prefix="/promotions", tags=["Promotions"])

    @app.get("/")
    def root():
        """Root endpoint - API status banner"""
        return {
            "message": "Promo Quoter API",
            "status": "online",
            "version": settings.API_VERSION,
            "description": settings.API_DESCRIPTION
        }

    @app.get("/health")
    def health():
        """Health check endpoint - tests storage connectivity"""
        start_time = time.time()

        storage_status = "unknown"
        storage_latency_ms = None
        storage_error = None

        if settings.STORAGE_BACKEND.lower() == "postgres":
            try:
                storage_latency_ms = database.ping()
                storage_status = "connected"
            except Exception as e:
                logger.warning(f"Health check could not reach the database: {e}")
                storage_status = "disconnected"
                storage_error = "Database unreachable"
        else:
            storage_status = "connected"

        total_latency_ms = round((time.time() - start_time) * 1000, 2)

        return {
            "status": "healthy" if storage_status == "connected" else "degraded",
            "service": "promo-quoter-api",
            "version": settings.API_VERSION,
            "storage": {
                "backend": settings.STORAGE_BACKEND,
                "status": storage_status,
                "latency_ms": storage_latency_ms,
                "error": storage_error
            },
            "total_latency_ms": total_latency_ms
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("promo_quoter.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.API_DEBUG)

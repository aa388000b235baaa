"""
Cart API Endpoints
Quote and confirm shopping carts.

Handlers are plain `def`: storage calls block, so FastAPI runs them in its
threadpool. Domain errors propagate to the handlers registered in main.py.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, status

from promo_quoter.api.dependencies import get_cart_service
from promo_quoter.domain.cart import CartRequest
from promo_quoter.services.cart_service import CartService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/quote", status_code=status.HTTP_200_OK)
def quote_cart(request: CartRequest, service: CartService = Depends(get_cart_service)):
    """
    Price a cart without reserving anything

    Returns line items, applied promotions and totals
    """
    return service.quote(request).to_dict()


@router.post("/confirm", status_code=status.HTTP_201_CREATED)
def confirm_cart(
    request: CartRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    service: CartService = Depends(get_cart_service),
):
    """
    Reserve stock and create an order

    Repeating a request with the same Idempotency-Key returns the original
    order instead of creating a new one.
    """
    logger.info(f"Confirm requested ({len(request.items)} items, key={idempotency_key or '-'})")
    return service.confirm(request, idempotency_key).to_dict()

"""
FastAPI dependencies
Builds the unit-of-work factory for the configured storage backend and the
services that use it. Tests override get_uow_factory.
"""
import logging
from functools import lru_cache

from fastapi import Depends

from promo_quoter.core.config import settings
from promo_quoter.repositories.memory import InMemoryStore
from promo_quoter.repositories.unit_of_work import PostgresUnitOfWorkFactory
from promo_quoter.services.cart_service import CartService
from promo_quoter.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)


@lru_cache()
def get_memory_store() -> InMemoryStore:
    """Process-wide store for STORAGE_BACKEND=memory"""
    return InMemoryStore()


@lru_cache()
def get_uow_factory():
    backend = settings.STORAGE_BACKEND.lower()

    if backend == "postgres":
        logger.info("Using PostgreSQL storage backend")
        return PostgresUnitOfWorkFactory(settings.DATABASE_URL)

    if backend == "memory":
        logger.info("Using in-memory storage backend")
        return get_memory_store().unit_of_work

    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")


def get_cart_service(uow_factory=Depends(get_uow_factory)) -> CartService:
    return CartService(uow_factory, confirm_timeout_seconds=settings.CONFIRM_TIMEOUT_SECONDS)


def get_catalog_service(uow_factory=Depends(get_uow_factory)) -> CatalogService:
    return CatalogService(uow_factory)

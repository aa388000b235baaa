"""
Pytest fixtures and configuration for Promo Quoter backend tests

This file provides shared fixtures that can be used across all test modules.
Service and API tests run against the in-memory store; repository SQL tests
use MagicMock connections and never need a database.
"""
import os
from decimal import Decimal
from uuid import uuid4

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient

from promo_quoter.domain.cart import CartItem
from promo_quoter.domain.product import ProductCategory
from promo_quoter.domain.promotion import BuyXGetYPromotion, PercentOffCategoryPromotion
from promo_quoter.repositories.memory import InMemoryStore

# Load environment variables for tests
load_dotenv()


@pytest.fixture(scope="session")
def database_url():
    """
    Provides the database URL for tests that need a real PostgreSQL

    Scope: session (created once per test session)
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        pytest.skip("DATABASE_URL not configured")
    return url


@pytest.fixture
def store():
    """Fresh in-memory store per test"""
    return InMemoryStore()


@pytest.fixture
def uow_factory(store):
    return store.unit_of_work


@pytest.fixture
def laptop(store):
    return store.add_product("Laptop", ProductCategory.ELECTRONICS, Decimal("1000.00"), 10)


@pytest.fixture
def headphones(store):
    return store.add_product("Headphones", ProductCategory.ELECTRONICS, Decimal("100.00"), 50)


@pytest.fixture
def book(store):
    return store.add_product("Python Book", ProductCategory.BOOKS, Decimal("10.00"), 100)


def make_item(product, qty: int) -> CartItem:
    """Cart entry for a product"""
    return CartItem(product_id=str(product.id), quantity=qty)


def percent_off(category: ProductCategory, percent: str, description: str = "Category sale") -> PercentOffCategoryPromotion:
    return PercentOffCategoryPromotion(
        id=uuid4(),
        description=description,
        category=category,
        percent_off=Decimal(percent),
    )


def buy_x_get_y(product, buy_x: int, get_y: int, description: str = "Bundle deal") -> BuyXGetYPromotion:
    return BuyXGetYPromotion(
        id=uuid4(),
        description=description,
        product_id=product.id,
        buy_x=buy_x,
        get_y=get_y,
    )


@pytest.fixture
def app(store):
    """
    FastAPI app wired to the per-test in-memory store
    """
    from promo_quoter.api.dependencies import get_uow_factory
    from promo_quoter.main import create_app

    application = create_app()
    application.dependency_overrides[get_uow_factory] = lambda: store.unit_of_work
    return application


@pytest.fixture
def client(app):
    return TestClient(app)

"""
Tests for CatalogService (products and promotions)
"""
from decimal import Decimal
from uuid import uuid4

import pytest

from promo_quoter.core.exceptions import (
    CatalogConflictError,
    CatalogValidationError,
    ProductNotFoundError,
)
from promo_quoter.domain.product import ProductCategory, ProductCreate
from promo_quoter.domain.promotion import (
    BuyXGetYPromotion,
    PercentOffCategoryPromotion,
    PromotionCreate,
    PromotionType,
)
from promo_quoter.services.catalog_service import CatalogService


@pytest.fixture
def service(uow_factory):
    return CatalogService(uow_factory)


class TestProducts:

    def test_create_product_is_listed(self, service):
        # Arrange
        data = ProductCreate(name="  Desk Lamp ", category=ProductCategory.HOME, price=Decimal("35.90"), stock=4)

        # Act
        created = service.create_product(data)
        listed = service.list_products()

        # Assert
        assert created.name == "Desk Lamp"
        assert created.stock == 4
        assert [product.id for product in listed] == [created.id]

    def test_blank_name_is_rejected(self, service):
        with pytest.raises(CatalogValidationError):
            service.create_product(ProductCreate(name="   ", category=ProductCategory.HOME, price=Decimal("1.00")))

    def test_list_keeps_creation_order(self, service, laptop, book):
        assert [product.name for product in service.list_products()] == ["Laptop", "Python Book"]


class TestPromotions:

    def test_create_percent_off_category(self, service):
        data = PromotionCreate(
            promotion_type=PromotionType.PERCENT_OFF_CATEGORY,
            description="Books week",
            category=ProductCategory.BOOKS,
            percent_off=Decimal("15"),
        )

        promotion = service.create_promotion(data)

        assert isinstance(promotion, PercentOffCategoryPromotion)
        assert promotion.percent_off == Decimal("15")
        assert service.list_promotions() == [promotion]

    def test_second_promotion_for_category_conflicts(self, service):
        data = PromotionCreate(
            promotion_type=PromotionType.PERCENT_OFF_CATEGORY,
            description="Books week",
            category=ProductCategory.BOOKS,
            percent_off=Decimal("15"),
        )
        service.create_promotion(data)

        with pytest.raises(CatalogConflictError):
            service.create_promotion(data)

        assert len(service.list_promotions()) == 1

    def test_create_buy_x_get_y(self, service, book):
        data = PromotionCreate(
            promotion_type=PromotionType.BUY_X_GET_Y,
            description="Book bundle",
            product_id=book.id,
            buy_x=2,
            get_y=1,
        )

        promotion = service.create_promotion(data)

        assert isinstance(promotion, BuyXGetYPromotion)
        assert promotion.product_id == book.id

    def test_buy_x_get_y_for_unknown_product(self, service):
        data = PromotionCreate(
            promotion_type=PromotionType.BUY_X_GET_Y,
            description="Ghost bundle",
            product_id=uuid4(),
            buy_x=2,
            get_y=1,
        )

        with pytest.raises(ProductNotFoundError):
            service.create_promotion(data)

    def test_second_buy_x_get_y_for_product_conflicts(self, service, book):
        data = PromotionCreate(
            promotion_type=PromotionType.BUY_X_GET_Y,
            description="Book bundle",
            product_id=book.id,
            buy_x=2,
            get_y=1,
        )
        service.create_promotion(data)

        with pytest.raises(CatalogConflictError):
            service.create_promotion(data)

    def test_missing_variant_fields_are_rejected(self, service):
        data = PromotionCreate(promotion_type=PromotionType.BUY_X_GET_Y, description="Incomplete", buy_x=2)

        with pytest.raises(CatalogValidationError) as exc_info:
            service.create_promotion(data)

        assert "productId" in exc_info.value.message
        assert "getY" in exc_info.value.message

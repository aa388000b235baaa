"""
Catalog Service
Creates and lists products and promotions.

Rules beyond schema validation:
    - product names must not be blank
    - one PERCENT_OFF_CATEGORY promotion per category
    - one BUY_X_GET_Y promotion per product, and the product must exist
"""
import logging
from typing import List

from promo_quoter.core.exceptions import (
    CatalogConflictError,
    CatalogValidationError,
    ProductNotFoundError,
)
from promo_quoter.domain.product import Product, ProductCreate
from promo_quoter.domain.promotion import Promotion, PromotionCreate, PromotionType

logger = logging.getLogger(__name__)


class CatalogService:
    """Service for catalog management"""

    def __init__(self, uow_factory):
        self.uow_factory = uow_factory

    def create_product(self, data: ProductCreate) -> Product:
        if not data.name.strip():
            raise CatalogValidationError("Product name must not be blank")

        with self.uow_factory() as uow:
            product = uow.products.create(data.model_copy(update={"name": data.name.strip()}))

        logger.info(f"Created product {product.id} ({product.name}, stock {product.stock})")
        return product

    def list_products(self) -> List[Product]:
        with self.uow_factory(read_only=True) as uow:
            return uow.products.find_all()

    def create_promotion(self, data: PromotionCreate) -> Promotion:
        """
        Create a promotion after checking its variant fields and conflicts

        Raises:
            CatalogValidationError: A field required by the variant is missing
            ProductNotFoundError: BUY_X_GET_Y targets an unknown product
            CatalogConflictError: The category or product already has one
        """
        self._validate_promotion_fields(data)

        with self.uow_factory() as uow:
            if data.promotion_type == PromotionType.PERCENT_OFF_CATEGORY:
                if uow.promotions.exists_by_category(data.category):
                    raise CatalogConflictError(
                        f"Promotion already exists for category: {data.category.value}"
                    )
            else:
                if uow.products.find_by_id(data.product_id) is None:
                    raise ProductNotFoundError(data.product_id)
                if uow.promotions.exists_by_product_id(data.product_id):
                    raise CatalogConflictError(
                        f"Promotion already exists for product: {data.product_id}"
                    )

            promotion = uow.promotions.create(data)

        logger.info(f"Created {promotion.promotion_type} promotion {promotion.id}")
        return promotion

    def list_promotions(self) -> List[Promotion]:
        with self.uow_factory(read_only=True) as uow:
            return uow.promotions.list_active()

    @staticmethod
    def _validate_promotion_fields(data: PromotionCreate) -> None:
        if data.promotion_type == PromotionType.PERCENT_OFF_CATEGORY:
            required = {"category": data.category, "percentOff": data.percent_off}
        else:
            required = {"productId": data.product_id, "buyX": data.buy_x, "getY": data.get_y}

        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise CatalogValidationError(
                f"{data.promotion_type.value} promotion requires: {', '.join(missing)}"
            )

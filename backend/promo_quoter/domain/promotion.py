"""
Promotion Domain Models

A promotion is one of two variants, told apart by `promotion_type`:

    PERCENT_OFF_CATEGORY  percent off every cart line in a category
    BUY_X_GET_Y           for every X units of a product, Y more are free

The variants form a pydantic discriminated union keyed on `promotion_type`;
the quote calculator dispatches on the concrete class in two fixed passes.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from promo_quoter.domain.product import ProductCategory


class PromotionType(str, Enum):
    PERCENT_OFF_CATEGORY = "PERCENT_OFF_CATEGORY"
    BUY_X_GET_Y = "BUY_X_GET_Y"


class _PromotionBase(BaseModel):
    id: UUID = Field(..., description="Promotion ID")
    description: str = Field(..., description="Customer-facing description")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True, frozen=True)


class PercentOffCategoryPromotion(_PromotionBase):
    """Percent off the running line total of every product in a category"""

    promotion_type: Literal["PERCENT_OFF_CATEGORY"] = "PERCENT_OFF_CATEGORY"
    category: ProductCategory = Field(..., description="Category the discount applies to")
    percent_off: Decimal = Field(..., description="Percent off (0-100)", ge=0, le=100)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "promotionType": self.promotion_type,
            "description": self.description,
            "category": self.category.value,
            "percentOff": float(self.percent_off),
        }


class BuyXGetYPromotion(_PromotionBase):
    """Every buy_x units of a product earn get_y units free at full price"""

    promotion_type: Literal["BUY_X_GET_Y"] = "BUY_X_GET_Y"
    product_id: UUID = Field(..., description="Target product")
    buy_x: int = Field(..., description="Units to buy per qualifying set", ge=1)
    get_y: int = Field(..., description="Free units per qualifying set", ge=1)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "promotionType": self.promotion_type,
            "description": self.description,
            "productId": str(self.product_id),
            "buyX": self.buy_x,
            "getY": self.get_y,
        }


Promotion = Annotated[
    Union[PercentOffCategoryPromotion, BuyXGetYPromotion],
    Field(discriminator="promotion_type"),
]


class PromotionCreate(BaseModel):
    """
    Schema for creating a new promotion

    Variant-specific fields are optional here; CatalogService checks that
    the ones required by `promotion_type` are present.
    """
    promotion_type: PromotionType = Field(..., alias="promotionType")
    description: str = Field(..., min_length=1)
    percent_off: Optional[Decimal] = Field(None, alias="percentOff", ge=0, le=100)
    category: Optional[ProductCategory] = None
    product_id: Optional[UUID] = Field(None, alias="productId")
    buy_x: Optional[int] = Field(None, alias="buyX", ge=1)
    get_y: Optional[int] = Field(None, alias="getY", ge=1)

    model_config = ConfigDict(populate_by_name=True)

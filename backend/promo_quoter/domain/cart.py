"""
Cart Domain Models

Request side (CartItem, CartRequest) and the priced breakdown produced by
the quote calculator (LineItem, AppliedPromotion, QuoteResult).
"""
from decimal import Decimal
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0.00")


class CustomerSegment(str, Enum):
    REGULAR = "REGULAR"
    PREMIUM = "PREMIUM"
    VIP = "VIP"


class CartItem(BaseModel):
    """
    One cart entry as submitted by the client

    product_id stays a raw string here: the calculator validates it so that
    a malformed id is reported as InvalidIdentifierError, not a schema error.
    """
    product_id: str = Field(..., alias="productId", description="Product UUID")
    quantity: int = Field(..., alias="qty", description="Units requested (<= 0 prices as zero)")

    model_config = ConfigDict(populate_by_name=True)


class CartRequest(BaseModel):
    """Body of POST /cart/quote and POST /cart/confirm"""
    items: List[CartItem] = Field(..., min_length=1, description="Cart entries")
    customer_segment: CustomerSegment = Field(..., alias="customerSegment")

    model_config = ConfigDict(populate_by_name=True)


class LineItem(BaseModel):
    """
    Priced representation of one cart entry

    discount_amount accumulates as promotions are applied; final_line_total
    is always line_total - discount_amount and is not clamped at zero.
    """
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    discount_amount: Decimal = ZERO
    final_line_total: Decimal

    def apply_discount(self, amount: Decimal) -> None:
        self.discount_amount = self.discount_amount + amount
        self.final_line_total = self.final_line_total - amount

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "unitPrice": float(self.unit_price),
            "lineTotal": float(self.line_total),
            "discountAmount": float(self.discount_amount),
            "finalLineTotal": float(self.final_line_total),
        }


class AppliedPromotion(BaseModel):
    """Net effect of one promotion on a quote"""
    promotion_id: str
    promotion_type: str
    description: str
    discount_amount: Decimal
    affected_product_ids: List[str] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "promotionId": self.promotion_id,
            "promotionType": self.promotion_type,
            "description": self.description,
            "discountAmount": float(self.discount_amount),
            "affectedProductIds": list(self.affected_product_ids),
        }


class QuoteResult(BaseModel):
    """Itemized price breakdown for a cart"""
    line_items: List[LineItem] = Field(default_factory=list)
    applied_promotions: List[AppliedPromotion] = Field(default_factory=list)
    subtotal: Decimal = ZERO
    total_discount: Decimal = ZERO
    final_total: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "lineItems": [item.to_dict() for item in self.line_items],
            "appliedPromotions": [promo.to_dict() for promo in self.applied_promotions],
            "subtotal": float(self.subtotal),
            "totalDiscount": float(self.total_discount),
            "finalTotal": float(self.final_total),
        }

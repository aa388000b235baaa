"""
Order Domain Models

An Order is the durable outcome of a cart confirmation. Items and
promotions are snapshots of the priced quote taken inside the confirming
transaction, so later catalog changes never alter a stored order.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from promo_quoter.domain.cart import CustomerSegment


class OrderStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    PENDING = "PENDING"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class OrderItem(BaseModel):
    """
    Order Item - snapshot of one reserved cart line

    Fields:
        product_id: Reserved product
        product_name: Product name at confirmation time
        quantity: Units reserved
        unit_price: Price per unit at confirmation time
        line_total: unit_price * quantity
        discount_amount: Discount accumulated on the line
        final_line_total: line_total - discount_amount
        reserved_at: When stock was decremented
    """

    product_id: UUID = Field(..., description="Product ID")
    product_name: str = Field(..., description="Product name at order time")
    quantity: int = Field(..., description="Units reserved", ge=1)
    unit_price: Decimal = Field(..., description="Price per unit", ge=0)
    line_total: Decimal = Field(..., description="Line total before discounts")
    discount_amount: Decimal = Field(Decimal("0.00"), description="Discount on the line")
    final_line_total: Decimal = Field(..., description="Line total after discounts")
    reserved_at: datetime = Field(..., description="Reservation timestamp")

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return {
            "productId": str(self.product_id),
            "productName": self.product_name,
            "quantity": self.quantity,
            "unitPrice": float(self.unit_price),
            "lineTotal": float(self.line_total),
            "discountAmount": float(self.discount_amount),
            "finalLineTotal": float(self.final_line_total),
            "reservedAt": self.reserved_at.isoformat(),
        }


class OrderPromotion(BaseModel):
    """Snapshot of a promotion applied to an order"""

    promotion_id: Optional[UUID] = Field(None, description="Promotion ID (null if since removed)")
    promotion_type: str = Field(..., description="Promotion variant")
    description: str = Field(..., description="Description at order time")
    discount_amount: Decimal = Field(..., description="Discount granted")

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return {
            "promotionId": str(self.promotion_id) if self.promotion_id else None,
            "promotionType": self.promotion_type,
            "description": self.description,
            "discountAmount": float(self.discount_amount),
        }


class Order(BaseModel):
    """
    Order domain model - a confirmed cart

    Fields:
        order_id: Human-readable unique id (ORD-<year>-<suffix>)
        idempotency_key: Client-supplied key, unique when present
        customer_segment: Segment the cart was confirmed for
        subtotal: Sum of line totals
        total_discount: Sum of applied promotion discounts
        final_total: subtotal - total_discount
        status: Order status
        items: Reserved line snapshots
        promotions: Applied promotion snapshots
        created_at / updated_at: Timestamps
    """

    order_id: str = Field(..., description="Order ID")
    idempotency_key: Optional[str] = Field(None, description="Idempotency key")
    customer_segment: CustomerSegment = Field(..., description="Customer segment")

    subtotal: Decimal = Field(..., description="Subtotal before discounts")
    total_discount: Decimal = Field(Decimal("0.00"), description="Total discount")
    final_total: Decimal = Field(..., description="Final order total")

    status: OrderStatus = Field(OrderStatus.CONFIRMED, description="Order status")

    items: List[OrderItem] = Field(default_factory=list, description="Order items")
    promotions: List[OrderPromotion] = Field(default_factory=list, description="Applied promotions")

    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def total_quantity(self) -> int:
        """Total units reserved across all items"""
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        """Confirmation payload returned by POST /cart/confirm"""
        return {
            "orderId": self.order_id,
            "finalTotal": float(self.final_total),
            "status": self.status.value,
            "reservedItems": [
                {
                    "productId": str(item.product_id),
                    "productName": item.product_name,
                    "quantity": item.quantity,
                    "unitPrice": float(item.unit_price),
                    "reservedAt": item.reserved_at.isoformat(),
                }
                for item in self.items
            ],
            "appliedPromotions": [promo.to_dict() for promo in self.promotions],
            "createdAt": self.created_at.isoformat(),
        }

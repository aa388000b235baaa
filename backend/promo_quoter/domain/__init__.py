"""
Domain Layer - Business Entities

Pydantic models for products, promotions, carts, quotes and orders.
These models enforce type safety and validation across the application.
"""
from promo_quoter.domain.product import Product, ProductCategory, ProductCreate
from promo_quoter.domain.promotion import (
    BuyXGetYPromotion,
    PercentOffCategoryPromotion,
    Promotion,
    PromotionCreate,
    PromotionType,
)
from promo_quoter.domain.cart import (
    AppliedPromotion,
    CartItem,
    CartRequest,
    CustomerSegment,
    LineItem,
    QuoteResult,
)
from promo_quoter.domain.order import Order, OrderItem, OrderPromotion, OrderStatus

__all__ = [
    'Product', 'ProductCategory', 'ProductCreate',
    'Promotion', 'PromotionType', 'PromotionCreate',
    'PercentOffCategoryPromotion', 'BuyXGetYPromotion',
    'CartItem', 'CartRequest', 'CustomerSegment',
    'LineItem', 'AppliedPromotion', 'QuoteResult',
    'Order', 'OrderItem', 'OrderPromotion', 'OrderStatus',
]

"""
Quote Calculator
Turns cart items, the active promotion set and product snapshots into an
itemized price breakdown. Pure: no I/O and no mutation of its inputs.

Promotions are applied in two fixed passes, never interleaved:

    1. PERCENT_OFF_CATEGORY, in catalog order, on each line's running
       final_line_total (so stacked category promotions compound)
    2. BUY_X_GET_Y, in catalog order, at full unit price regardless of any
       percent-off already taken on the line

Money is rounded to cents with ROUND_HALF_UP.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Mapping, Optional, Sequence
from uuid import UUID

from promo_quoter.core.exceptions import InvalidIdentifierError, ProductNotFoundError
from promo_quoter.domain.cart import ZERO, AppliedPromotion, CartItem, LineItem, QuoteResult
from promo_quoter.domain.product import Product
from promo_quoter.domain.promotion import (
    BuyXGetYPromotion,
    PercentOffCategoryPromotion,
    Promotion,
    PromotionType,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def parse_product_id(value) -> UUID:
    """
    Parse a client-supplied product id

    Raises:
        InvalidIdentifierError: If value is not a well-formed UUID
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidIdentifierError(str(value))


def calculate_quote(
    items: Sequence[CartItem],
    promotions: Sequence[Promotion],
    products: Mapping[UUID, Product],
) -> QuoteResult:
    """
    Price a cart

    Args:
        items: Cart entries in request order. Entries sharing a product id
            are priced as separate lines.
        promotions: Active promotions in stable catalog order
        products: Product snapshots keyed by id

    Returns:
        QuoteResult whose totals satisfy subtotal = sum(line_total),
        total_discount = sum(applied discounts), final_total = the difference

    Raises:
        InvalidIdentifierError: A product id is malformed
        ProductNotFoundError: A product id has no snapshot in `products`
    """
    _ensure_supported(promotions)

    # Built in full before any promotion runs: a bad entry aborts with no partial result
    line_items = [_build_line_item(item, products) for item in items]

    applied_promotions: List[AppliedPromotion] = []

    for promotion in promotions:
        if isinstance(promotion, PercentOffCategoryPromotion):
            applied = _apply_percent_off_category(promotion, line_items, products)
            if applied is not None:
                applied_promotions.append(applied)

    for promotion in promotions:
        if isinstance(promotion, BuyXGetYPromotion):
            applied = _apply_buy_x_get_y(promotion, line_items)
            if applied is not None:
                applied_promotions.append(applied)

    subtotal = sum((line.line_total for line in line_items), ZERO)
    total_discount = sum((promo.discount_amount for promo in applied_promotions), ZERO)

    logger.debug(
        f"Quote: {len(line_items)} lines, {len(applied_promotions)} promotions applied, "
        f"subtotal={subtotal} discount={total_discount}"
    )

    return QuoteResult(
        line_items=line_items,
        applied_promotions=applied_promotions,
        subtotal=subtotal,
        total_discount=total_discount,
        final_total=subtotal - total_discount,
    )


def _ensure_supported(promotions: Sequence[Promotion]) -> None:
    for promotion in promotions:
        if not isinstance(promotion, (PercentOffCategoryPromotion, BuyXGetYPromotion)):
            raise TypeError(f"Unsupported promotion variant: {type(promotion).__name__}")


def _build_line_item(item: CartItem, products: Mapping[UUID, Product]) -> LineItem:
    product_id = parse_product_id(item.product_id)
    product = products.get(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    if item.quantity > 0:
        line_total = product.price * item.quantity
    else:
        line_total = ZERO

    return LineItem(
        product_id=str(product_id),
        product_name=product.name,
        quantity=item.quantity,
        unit_price=product.price,
        line_total=line_total,
        discount_amount=ZERO,
        final_line_total=line_total,
    )


def _apply_percent_off_category(
    promotion: PercentOffCategoryPromotion,
    line_items: List[LineItem],
    products: Mapping[UUID, Product],
) -> Optional[AppliedPromotion]:
    total_discount = ZERO
    affected_product_ids: List[str] = []

    for line in line_items:
        product = products[UUID(line.product_id)]
        if product.category != promotion.category:
            continue

        discount = (line.final_line_total * promotion.percent_off / HUNDRED).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        if discount == 0:
            continue

        line.apply_discount(discount)
        total_discount += discount
        affected_product_ids.append(line.product_id)

    if total_discount <= 0:
        return None

    return AppliedPromotion(
        promotion_id=str(promotion.id),
        promotion_type=PromotionType.PERCENT_OFF_CATEGORY.value,
        description=promotion.description,
        discount_amount=total_discount,
        affected_product_ids=affected_product_ids,
    )


def _apply_buy_x_get_y(
    promotion: BuyXGetYPromotion,
    line_items: List[LineItem],
) -> Optional[AppliedPromotion]:
    target_id = str(promotion.product_id)
    target = next((line for line in line_items if line.product_id == target_id), None)
    if target is None:
        return None

    qualifying_sets = max(target.quantity, 0) // promotion.buy_x
    free_items = qualifying_sets * promotion.get_y
    if free_items <= 0:
        return None

    discount = target.unit_price * free_items
    target.apply_discount(discount)

    return AppliedPromotion(
        promotion_id=str(promotion.id),
        promotion_type=PromotionType.BUY_X_GET_Y.value,
        description=(
            f"{promotion.description} (Buy {promotion.buy_x} Get {promotion.get_y} Free"
            f" - {free_items} free items)"
        ),
        discount_amount=discount,
        affected_product_ids=[target.product_id],
    )

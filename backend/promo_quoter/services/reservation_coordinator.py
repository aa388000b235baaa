"""
Reservation Coordinator
Confirms a cart: validates stock, prices the cart, reserves inventory and
persists the order, all inside one unit of work.

Steps (any failure rolls back every step before it):

    1. Idempotency claim       key locked for the transaction, then looked up;
                               an existing order is returned as is
    2. Stock pre-check         unlocked read, every shortfall reported at once
    3. Pricing                 quote computed on the same transaction's snapshot
    4. Locked reservation      per cart line: lock, re-read, re-check, decrement
    5. Order creation          insert-or-fetch keyed on the idempotency key
    6. Return                  the stored (or pre-existing) order
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from promo_quoter.core.config import settings
from promo_quoter.core.exceptions import (
    DuplicateIdempotencyKeyError,
    InsufficientStockError,
    ProductNotFoundError,
    StockShortage,
)
from promo_quoter.domain.cart import CartItem, CustomerSegment, QuoteResult
from promo_quoter.domain.order import Order, OrderItem, OrderPromotion, OrderStatus
from promo_quoter.domain.product import Product
from promo_quoter.services.idempotency_guard import IdempotencyGuard
from promo_quoter.services.quote_calculator import calculate_quote, parse_product_id

logger = logging.getLogger(__name__)


def generate_order_id(prefix: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Build ORD-<year>-<12 hex chars> from a random UUID"""
    prefix = prefix or settings.ORDER_ID_PREFIX
    year = (now or datetime.now(timezone.utc)).year
    return f"{prefix}-{year}-{uuid4().hex[:12].upper()}"


class ReservationCoordinator:
    """
    Orchestrates cart confirmation

    Args:
        uow_factory: Callable(timeout_seconds=..., read_only=...) returning a
            unit of work context manager
        timeout_seconds: Budget for the whole confirmation
        order_id_prefix: Prefix for generated order ids
        guard: Idempotency guard, defaults to IdempotencyGuard()
    """

    def __init__(
        self,
        uow_factory,
        timeout_seconds: Optional[float] = None,
        order_id_prefix: Optional[str] = None,
        guard: Optional[IdempotencyGuard] = None,
    ):
        self.uow_factory = uow_factory
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.CONFIRM_TIMEOUT_SECONDS
        self.order_id_prefix = order_id_prefix or settings.ORDER_ID_PREFIX
        self.guard = guard or IdempotencyGuard()

    def confirm(
        self,
        items: Sequence[CartItem],
        customer_segment: CustomerSegment,
        idempotency_key: Optional[str] = None,
    ) -> Order:
        """
        Confirm a cart and return its order

        Raises:
            InvalidIdentifierError: A product id is malformed
            ProductNotFoundError: A product does not exist
            InsufficientStockError: Stock cannot cover the cart
            PersistenceError: Storage failed or the budget ran out
        """
        try:
            with self.uow_factory(timeout_seconds=self.timeout_seconds) as uow:
                existing = self.guard.lookup(uow, idempotency_key)
                if existing is not None:
                    return existing

                products = self._load_products(uow, items)
                self._precheck_stock(items, products)
                uow.check_deadline()

                promotions = uow.promotions.list_active()
                quote = calculate_quote(items, promotions, products)
                uow.check_deadline()

                reserved_at = self._reserve(uow, items)
                uow.check_deadline()

                order = self._build_order(quote, customer_segment, idempotency_key, reserved_at)
                stored = self.guard.persist_once(uow, order)

            logger.info(
                f"Order {stored.order_id} confirmed: {stored.total_quantity} units, "
                f"final total {stored.final_total}"
            )
            return stored

        except DuplicateIdempotencyKeyError as duplicate:
            logger.info(f"Returning order {duplicate.existing_order.order_id} for replayed key")
            return duplicate.existing_order

    def _load_products(self, uow, items: Sequence[CartItem]) -> Dict[UUID, Product]:
        products: Dict[UUID, Product] = {}
        for item in items:
            product_id = parse_product_id(item.product_id)
            if product_id in products:
                continue
            product = uow.products.find_by_id(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            products[product_id] = product
        return products

    def _precheck_stock(self, items: Sequence[CartItem], products: Dict[UUID, Product]) -> None:
        """Check cumulative demand per product against unlocked stock"""
        demand: Dict[UUID, int] = {}
        shortages: List[StockShortage] = []

        for item in items:
            if item.quantity <= 0:
                continue
            product = products[parse_product_id(item.product_id)]
            prior = demand.get(product.id, 0)
            available = max(product.stock - prior, 0)
            if item.quantity > available:
                shortages.append(StockShortage(
                    product_id=str(product.id),
                    product_name=product.name,
                    requested=item.quantity,
                    available=available,
                ))
            demand[product.id] = prior + item.quantity

        if shortages:
            logger.warning(f"Stock pre-check failed for {len(shortages)} item(s)")
            raise InsufficientStockError(shortages)

    def _reserve(self, uow, items: Sequence[CartItem]) -> Dict[int, datetime]:
        """
        Lock, re-check and decrement stock line by line, in cart order

        Returns:
            Reservation time keyed by cart position
        """
        reserved_at: Dict[int, datetime] = {}

        for position, item in enumerate(items):
            if item.quantity <= 0:
                continue
            product_id = parse_product_id(item.product_id)
            locked = uow.products.find_by_id_for_update(product_id)
            if locked is None:
                raise ProductNotFoundError(product_id)

            if locked.stock < item.quantity:
                logger.warning(
                    f"Stock changed under lock for {locked.name}: "
                    f"requested {item.quantity}, available {locked.stock}"
                )
                raise InsufficientStockError([StockShortage(
                    product_id=str(locked.id),
                    product_name=locked.name,
                    requested=item.quantity,
                    available=locked.stock,
                )])

            uow.products.save(locked.model_copy(update={"stock": locked.stock - item.quantity}))
            reserved_at[position] = datetime.now(timezone.utc)
            logger.info(f"Reserved {item.quantity} x {locked.name} ({locked.stock - item.quantity} left)")

        return reserved_at

    def _build_order(
        self,
        quote: QuoteResult,
        customer_segment: CustomerSegment,
        idempotency_key: Optional[str],
        reserved_at: Dict[int, datetime],
    ) -> Order:
        now = datetime.now(timezone.utc)

        order_items = [
            OrderItem(
                product_id=UUID(line.product_id),
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.line_total,
                discount_amount=line.discount_amount,
                final_line_total=line.final_line_total,
                reserved_at=reserved_at[position],
            )
            for position, line in enumerate(quote.line_items)
            if position in reserved_at
        ]

        order_promotions = [
            OrderPromotion(
                promotion_id=UUID(applied.promotion_id),
                promotion_type=applied.promotion_type,
                description=applied.description,
                discount_amount=applied.discount_amount,
            )
            for applied in quote.applied_promotions
        ]

        return Order(
            order_id=generate_order_id(self.order_id_prefix, now),
            idempotency_key=idempotency_key or None,
            customer_segment=customer_segment,
            subtotal=quote.subtotal,
            total_discount=quote.total_discount,
            final_total=quote.final_total,
            status=OrderStatus.CONFIRMED,
            items=order_items,
            promotions=order_promotions,
            created_at=now,
            updated_at=now,
        )

"""
Cart Service
Entry point for the two cart operations exposed over HTTP.

    quote    read-only pricing, never locks and never touches stock
    confirm  delegated to ReservationCoordinator
"""
import logging
from typing import Optional

from promo_quoter.core.exceptions import ProductNotFoundError
from promo_quoter.domain.cart import CartRequest, QuoteResult
from promo_quoter.domain.order import Order
from promo_quoter.services.quote_calculator import calculate_quote, parse_product_id
from promo_quoter.services.reservation_coordinator import ReservationCoordinator

logger = logging.getLogger(__name__)


class CartService:
    """
    Service for cart quoting and confirmation

    Args:
        uow_factory: Callable(timeout_seconds=..., read_only=...) returning a
            unit of work
        confirm_timeout_seconds: Budget for a confirmation (settings default)
    """

    def __init__(self, uow_factory, confirm_timeout_seconds: Optional[float] = None):
        self.uow_factory = uow_factory
        self.coordinator = ReservationCoordinator(uow_factory, timeout_seconds=confirm_timeout_seconds)

    def quote(self, request: CartRequest) -> QuoteResult:
        """Price a cart against the current catalog"""
        with self.uow_factory(read_only=True) as uow:
            products = {}
            for item in request.items:
                product_id = parse_product_id(item.product_id)
                if product_id in products:
                    continue
                product = uow.products.find_by_id(product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                products[product_id] = product

            promotions = uow.promotions.list_active()

        result = calculate_quote(request.items, promotions, products)
        logger.info(
            f"Quoted cart for {request.customer_segment.value}: {len(result.line_items)} lines, "
            f"final total {result.final_total}"
        )
        return result

    def confirm(self, request: CartRequest, idempotency_key: Optional[str] = None) -> Order:
        """Reserve stock and create the order for a cart"""
        return self.coordinator.confirm(request.items, request.customer_segment, idempotency_key)

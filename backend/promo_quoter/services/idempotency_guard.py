"""
Idempotency Guard
Maps a client-supplied Idempotency-Key to the order it already produced.

A keyed request claims its key before anything else happens in the unit of
work, so requests sharing a key run one after another: the later one finds
the earlier one's committed order and replays it. The order store's unique
index on the key still backs this up. A loser at insert time gets
DuplicateIdempotencyKeyError carrying the winner's order.
"""
import logging
from typing import Optional

from promo_quoter.core.exceptions import DuplicateIdempotencyKeyError
from promo_quoter.domain.order import Order

logger = logging.getLogger(__name__)


class IdempotencyGuard:
    """Idempotency checks scoped to a unit of work"""

    def lookup(self, uow, idempotency_key: Optional[str]) -> Optional[Order]:
        """
        Claim a key and find the order already created for it

        The claim is held until the unit of work ends. It waits for any
        in-flight request holding the same key, within the unit of work's
        budget.

        Args:
            uow: Open unit of work
            idempotency_key: Client key, or None for non-idempotent requests

        Returns:
            Existing order or None
        """
        if not idempotency_key:
            return None

        uow.orders.claim_idempotency_key(idempotency_key)
        existing = uow.orders.find_by_idempotency_key(idempotency_key)
        if existing is not None:
            logger.info(f"Idempotent replay: key {idempotency_key} -> order {existing.order_id}")
        return existing

    def persist_once(self, uow, order: Order) -> Order:
        """
        Store an order exactly once per idempotency key

        Raises:
            DuplicateIdempotencyKeyError: Another request stored an order for
                the same key first. The caller must roll back its own writes.
        """
        stored, created = uow.orders.insert_or_get_existing(order)
        if not created:
            logger.info(
                f"Idempotency key {order.idempotency_key} claimed concurrently by order {stored.order_id}"
            )
            raise DuplicateIdempotencyKeyError(order.idempotency_key, existing_order=stored)
        return stored

"""
In-memory storage backend

Keeps products, promotions and orders in process memory behind the same
repository interface as the Postgres backend. Used when
STORAGE_BACKEND=memory and by the test suite.

Transactions are emulated:
    - writes are staged on the unit of work and applied on commit
    - find_by_id_for_update takes a per-product lock held until the unit
      of work ends, like SELECT ... FOR UPDATE
    - an order insert takes a per-idempotency-key lock held until the unit
      of work ends, like a unique index blocking a concurrent insert
Lock waits are bounded by the unit of work's remaining budget.
"""
import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from promo_quoter.core.exceptions import ConfirmTimeoutError, PersistenceError
from promo_quoter.domain.order import Order
from promo_quoter.domain.product import Product, ProductCategory, ProductCreate
from promo_quoter.domain.promotion import (
    BuyXGetYPromotion,
    PercentOffCategoryPromotion,
    Promotion,
    PromotionCreate,
    PromotionType,
)
from promo_quoter.repositories.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStore:
    """
    Committed state shared by every InMemoryUnitOfWork created from it

    Dicts preserve insertion order, which doubles as catalog order.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.products: Dict[UUID, Product] = {}
        self.promotions: Dict[UUID, Promotion] = {}
        self.orders: Dict[str, Order] = {}
        self.order_ids_by_key: Dict[str, str] = {}

        self._row_locks: Dict[UUID, threading.Lock] = {}
        self._key_locks: Dict[str, threading.Lock] = {}

    def unit_of_work(self, timeout_seconds: Optional[float] = None, read_only: bool = False) -> "InMemoryUnitOfWork":
        return InMemoryUnitOfWork(self, timeout_seconds=timeout_seconds, read_only=read_only)

    # Seed helpers (tests and local runs)
    def add_product(
        self,
        name: str,
        category: ProductCategory,
        price: Decimal,
        stock: int,
        product_id: Optional[UUID] = None,
    ) -> Product:
        now = _now()
        product = Product(
            id=product_id or uuid4(),
            name=name,
            category=category,
            price=price,
            stock=stock,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self.products[product.id] = product
        return product

    def add_promotion(self, promotion: Promotion) -> Promotion:
        with self._lock:
            self.promotions[promotion.id] = promotion
        return promotion

    def get_product(self, product_id: UUID) -> Optional[Product]:
        with self._lock:
            return self.products.get(product_id)

    def order_count(self) -> int:
        with self._lock:
            return len(self.orders)

    def row_lock(self, product_id: UUID) -> threading.Lock:
        with self._lock:
            return self._row_locks.setdefault(product_id, threading.Lock())

    def key_lock(self, idempotency_key: str) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(idempotency_key, threading.Lock())


class InMemoryUnitOfWork(UnitOfWork):
    """Unit of work over an InMemoryStore"""

    def __init__(self, store: InMemoryStore, timeout_seconds: Optional[float] = None, read_only: bool = False):
        super().__init__(timeout_seconds=timeout_seconds, read_only=read_only)
        self.store = store

    def _begin(self) -> None:
        self._staged_products: Dict[UUID, Product] = {}
        self._staged_promotions: Dict[UUID, Promotion] = {}
        self._staged_orders: Dict[str, Order] = {}
        self._held_rows: Dict[UUID, threading.Lock] = {}
        self._held_keys: Dict[str, threading.Lock] = {}

        self.products = InMemoryProductRepository(self)
        self.promotions = InMemoryPromotionRepository(self)
        self.orders = InMemoryOrderRepository(self)

    def _commit(self) -> None:
        try:
            with self.store._lock:
                self.store.products.update(self._staged_products)
                self.store.promotions.update(self._staged_promotions)
                for order in self._staged_orders.values():
                    self.store.orders[order.order_id] = order
                    if order.idempotency_key:
                        self.store.order_ids_by_key[order.idempotency_key] = order.order_id
        finally:
            self._release_locks()

    def _rollback(self) -> None:
        self._staged_products = {}
        self._staged_promotions = {}
        self._staged_orders = {}
        self._release_locks()

    def ensure_writable(self) -> None:
        if self.read_only:
            raise PersistenceError("Cannot write in a read-only transaction")

    def lock_row(self, product_id: UUID) -> None:
        if product_id in self._held_rows:
            return
        lock = self.store.row_lock(product_id)
        self._acquire(lock, f"product {product_id}")
        self._held_rows[product_id] = lock

    def lock_key(self, idempotency_key: str) -> None:
        if idempotency_key in self._held_keys:
            return
        lock = self.store.key_lock(idempotency_key)
        self._acquire(lock, f"idempotency key {idempotency_key}")
        self._held_keys[idempotency_key] = lock

    def _acquire(self, lock: threading.Lock, what: str) -> None:
        remaining = self.remaining_seconds()
        acquired = lock.acquire() if remaining is None else lock.acquire(timeout=remaining)
        if not acquired:
            logger.error(f"Timed out waiting for lock on {what}")
            raise ConfirmTimeoutError(self.timeout_seconds)

    def _release_locks(self) -> None:
        for lock in list(self._held_keys.values()) + list(self._held_rows.values()):
            lock.release()
        self._held_keys = {}
        self._held_rows = {}


class InMemoryProductRepository:
    """Product access with staged writes visible to their own unit of work"""

    def __init__(self, uow: InMemoryUnitOfWork):
        self.uow = uow
        self.store = uow.store

    def find_by_id(self, product_id: UUID) -> Optional[Product]:
        staged = self.uow._staged_products.get(product_id)
        if staged is not None:
            return staged.model_copy()
        product = self.store.get_product(product_id)
        return product.model_copy() if product else None

    def find_by_id_for_update(self, product_id: UUID) -> Optional[Product]:
        self.uow.lock_row(product_id)
        return self.find_by_id(product_id)

    def find_all(self) -> List[Product]:
        with self.store._lock:
            merged = dict(self.store.products)
        merged.update(self.uow._staged_products)
        return [product.model_copy() for product in merged.values()]

    def save(self, product: Product) -> Product:
        self.uow.ensure_writable()
        if product.id not in self.uow._staged_products and self.store.get_product(product.id) is None:
            raise PersistenceError(f"Product {product.id} does not exist")
        stored = product.model_copy(update={"updated_at": _now()})
        self.uow._staged_products[stored.id] = stored
        return stored.model_copy()

    def create(self, data: ProductCreate) -> Product:
        self.uow.ensure_writable()
        now = _now()
        product = Product(
            id=uuid4(),
            name=data.name,
            category=data.category,
            price=data.price,
            stock=data.stock,
            created_at=now,
            updated_at=now,
        )
        self.uow._staged_products[product.id] = product
        return product.model_copy()


class InMemoryPromotionRepository:
    def __init__(self, uow: InMemoryUnitOfWork):
        self.uow = uow
        self.store = uow.store

    def list_active(self) -> List[Promotion]:
        with self.store._lock:
            promotions = list(self.store.promotions.values())
        return promotions + list(self.uow._staged_promotions.values())

    def find_by_id(self, promotion_id: UUID) -> Optional[Promotion]:
        for promotion in self.list_active():
            if promotion.id == promotion_id:
                return promotion
        return None

    def exists_by_category(self, category: ProductCategory) -> bool:
        return any(
            isinstance(promotion, PercentOffCategoryPromotion) and promotion.category == category
            for promotion in self.list_active()
        )

    def exists_by_product_id(self, product_id: UUID) -> bool:
        return any(
            isinstance(promotion, BuyXGetYPromotion) and promotion.product_id == product_id
            for promotion in self.list_active()
        )

    def create(self, data: PromotionCreate) -> Promotion:
        self.uow.ensure_writable()
        if data.promotion_type == PromotionType.PERCENT_OFF_CATEGORY:
            promotion = PercentOffCategoryPromotion(
                id=uuid4(),
                description=data.description,
                category=data.category,
                percent_off=data.percent_off,
                created_at=_now(),
            )
        else:
            promotion = BuyXGetYPromotion(
                id=uuid4(),
                description=data.description,
                product_id=data.product_id,
                buy_x=data.buy_x,
                get_y=data.get_y,
                created_at=_now(),
            )
        self.uow._staged_promotions[promotion.id] = promotion
        return promotion


class InMemoryOrderRepository:
    def __init__(self, uow: InMemoryUnitOfWork):
        self.uow = uow
        self.store = uow.store

    def claim_idempotency_key(self, idempotency_key: str) -> None:
        self.uow.lock_key(idempotency_key)

    def find_by_idempotency_key(self, idempotency_key: str) -> Optional[Order]:
        for order in self.uow._staged_orders.values():
            if order.idempotency_key == idempotency_key:
                return order
        with self.store._lock:
            order_id = self.store.order_ids_by_key.get(idempotency_key)
            return self.store.orders.get(order_id) if order_id else None

    def find_by_order_id(self, order_id: str) -> Optional[Order]:
        staged = self.uow._staged_orders.get(order_id)
        if staged is not None:
            return staged
        with self.store._lock:
            return self.store.orders.get(order_id)

    def insert_or_get_existing(self, order: Order) -> Tuple[Order, bool]:
        self.uow.ensure_writable()

        if order.idempotency_key:
            # Held until commit/rollback so a concurrent insert for the key waits
            self.uow.lock_key(order.idempotency_key)
            existing = self.find_by_idempotency_key(order.idempotency_key)
            if existing is not None:
                return existing, False

        if self.find_by_order_id(order.order_id) is not None:
            raise PersistenceError(f"Order id collision: {order.order_id}")

        self.uow._staged_orders[order.order_id] = order
        return order, True

"""
Order Repository - Data Access Layer for Orders

Handles all database queries for orders and returns Order domain models
with their items and applied promotions loaded eagerly.
"""
from typing import List, Optional, Tuple

from promo_quoter.domain.order import Order, OrderItem, OrderPromotion

_ORDER_COLUMNS = """
    id, order_id, idempotency_key, customer_segment,
    subtotal, total_discount, final_total, status,
    created_at, updated_at
"""


class OrderRepository:
    """
    Repository for Order data access

    All SQL queries for orders are centralized here.
    """

    def __init__(self, conn):
        self.conn = conn

    def claim_idempotency_key(self, idempotency_key: str) -> None:
        """
        Serialize requests sharing an idempotency key

        Takes a transaction-scoped advisory lock, released on commit or
        rollback. A second request with the same key blocks here (bounded by
        lock_timeout) until the first one finishes.
        """
        cursor = self.conn.cursor()
        try:
            cursor.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (idempotency_key,))
        finally:
            cursor.close()

    def find_by_idempotency_key(self, idempotency_key: str) -> Optional[Order]:
        """
        Find the order created under an idempotency key

        Args:
            idempotency_key: Client-supplied key

        Returns:
            Order with items and promotions, or None if the key is unused
        """
        return self._find_one("idempotency_key = %s", (idempotency_key,))

    def find_by_order_id(self, order_id: str) -> Optional[Order]:
        """Find order by its public order id (ORD-...)"""
        return self._find_one("order_id = %s", (order_id,))

    def insert_or_get_existing(self, order: Order) -> Tuple[Order, bool]:
        """
        Insert an order unless its idempotency key is already taken

        The orders table carries a unique index on idempotency_key, so two
        concurrent inserts for one key cannot both succeed. The loser sees
        no RETURNING row and reads the winner's order instead.

        Args:
            order: Fully built order (items and promotions included)

        Returns:
            (stored order, True) when inserted,
            (existing order, False) when the key was already used
        """
        cursor = self.conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO orders (
                    order_id, idempotency_key, customer_segment,
                    subtotal, total_discount, final_total, status,
                    created_at, updated_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (idempotency_key) DO NOTHING
                RETURNING id
            """, (
                order.order_id,
                order.idempotency_key,
                order.customer_segment.value,
                order.subtotal,
                order.total_discount,
                order.final_total,
                order.status.value,
                order.created_at,
                order.updated_at or order.created_at
            ))

            row = cursor.fetchone()

            if not row:
                existing = self.find_by_idempotency_key(order.idempotency_key)
                if existing is None:
                    raise LookupError(
                        f"Order insert for key {order.idempotency_key} conflicted but no order was found"
                    )
                return existing, False

            db_id = row['id']

            for position, item in enumerate(order.items):
                cursor.execute("""
                    INSERT INTO order_items (
                        order_id, position, product_id, product_name, quantity,
                        unit_price, line_total, discount_amount, final_line_total, reserved_at
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """, (
                    db_id,
                    position,
                    str(item.product_id),
                    item.product_name,
                    item.quantity,
                    item.unit_price,
                    item.line_total,
                    item.discount_amount,
                    item.final_line_total,
                    item.reserved_at
                ))

            for position, promo in enumerate(order.promotions):
                cursor.execute("""
                    INSERT INTO order_promotions (
                        order_id, position, promotion_id, promotion_type, description, discount_amount
                    )
                    VALUES (%s, %s, %s, %s, %s, %s)
                """, (
                    db_id,
                    position,
                    str(promo.promotion_id) if promo.promotion_id else None,
                    promo.promotion_type,
                    promo.description,
                    promo.discount_amount
                ))

            return order, True

        finally:
            cursor.close()

    def _find_one(self, where_clause: str, params: tuple) -> Optional[Order]:
        cursor = self.conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_ORDER_COLUMNS}
                FROM orders
                WHERE {where_clause}
            """, params)

            row = cursor.fetchone()
            if not row:
                return None

            cursor.execute("""
                SELECT
                    product_id, product_name, quantity, unit_price,
                    line_total, discount_amount, final_line_total, reserved_at
                FROM order_items
                WHERE order_id = %s
                ORDER BY position
            """, (row['id'],))
            item_rows = cursor.fetchall()

            cursor.execute("""
                SELECT promotion_id, promotion_type, description, discount_amount
                FROM order_promotions
                WHERE order_id = %s
                ORDER BY position
            """, (row['id'],))
            promotion_rows = cursor.fetchall()

            return self._map_row_to_order(row, item_rows, promotion_rows)

        finally:
            cursor.close()

    @staticmethod
    def _map_row_to_order(row: dict, item_rows: List[dict], promotion_rows: List[dict]) -> Order:
        items = [
            OrderItem(
                product_id=item['product_id'],
                product_name=item['product_name'],
                quantity=item['quantity'],
                unit_price=item['unit_price'],
                line_total=item['line_total'],
                discount_amount=item['discount_amount'],
                final_line_total=item['final_line_total'],
                reserved_at=item['reserved_at']
            )
            for item in item_rows
        ]

        promotions = [
            OrderPromotion(
                promotion_id=promo['promotion_id'],
                promotion_type=promo['promotion_type'],
                description=promo['description'],
                discount_amount=promo['discount_amount']
            )
            for promo in promotion_rows
        ]

        return Order(
            order_id=row['order_id'],
            idempotency_key=row['idempotency_key'],
            customer_segment=row['customer_segment'],
            subtotal=row['subtotal'],
            total_discount=row['total_discount'],
            final_total=row['final_total'],
            status=row['status'],
            items=items,
            promotions=promotions,
            created_at=row['created_at'],
            updated_at=row.get('updated_at')
        )

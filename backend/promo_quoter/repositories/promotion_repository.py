"""
Promotion Repository - Data Access Layer for Promotions

Handles all database queries for promotions. Rows from the single
promotions table are mapped to the concrete variant named by their
promotion_type column.
"""
from typing import List, Optional
from uuid import UUID, uuid4

from promo_quoter.domain.promotion import (
    BuyXGetYPromotion,
    PercentOffCategoryPromotion,
    Promotion,
    PromotionCreate,
    PromotionType,
)

_PROMOTION_COLUMNS = """
    id, promotion_type, description, category, percent_off,
    product_id, buy_x, get_y, created_at
"""


class PromotionRepository:
    """
    Repository for Promotion data access

    Catalog order is creation time, then id. The quote calculator relies on
    that order being stable between calls.
    """

    def __init__(self, conn):
        self.conn = conn

    @staticmethod
    def _map_row_to_promotion(row: dict) -> Promotion:
        """Map a promotions row to its promotion variant"""
        promotion_type = row['promotion_type']

        if promotion_type == PromotionType.PERCENT_OFF_CATEGORY.value:
            return PercentOffCategoryPromotion(
                id=row['id'],
                description=row['description'],
                category=row['category'],
                percent_off=row['percent_off'],
                created_at=row.get('created_at')
            )

        if promotion_type == PromotionType.BUY_X_GET_Y.value:
            return BuyXGetYPromotion(
                id=row['id'],
                description=row['description'],
                product_id=row['product_id'],
                buy_x=row['buy_x'],
                get_y=row['get_y'],
                created_at=row.get('created_at')
            )

        raise ValueError(f"Unknown promotion_type in promotions table: {promotion_type}")

    def list_active(self) -> List[Promotion]:
        """
        Get every active promotion in catalog order

        Returns:
            List of promotion variants
        """
        cursor = self.conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_PROMOTION_COLUMNS}
                FROM promotions
                WHERE is_active = TRUE
                ORDER BY created_at, id
            """)

            return [self._map_row_to_promotion(row) for row in cursor.fetchall()]

        finally:
            cursor.close()

    def find_by_id(self, promotion_id: UUID) -> Optional[Promotion]:
        cursor = self.conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_PROMOTION_COLUMNS}
                FROM promotions
                WHERE id = %s
            """, (str(promotion_id),))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_promotion(row)

        finally:
            cursor.close()

    def exists_by_category(self, category) -> bool:
        """Whether an active PERCENT_OFF_CATEGORY promotion targets category"""
        cursor = self.conn.cursor()

        try:
            cursor.execute("""
                SELECT 1
                FROM promotions
                WHERE promotion_type = %s AND category = %s AND is_active = TRUE
                LIMIT 1
            """, (PromotionType.PERCENT_OFF_CATEGORY.value, category.value))

            return cursor.fetchone() is not None

        finally:
            cursor.close()

    def exists_by_product_id(self, product_id: UUID) -> bool:
        """Whether an active BUY_X_GET_Y promotion targets product_id"""
        cursor = self.conn.cursor()

        try:
            cursor.execute("""
                SELECT 1
                FROM promotions
                WHERE promotion_type = %s AND product_id = %s AND is_active = TRUE
                LIMIT 1
            """, (PromotionType.BUY_X_GET_Y.value, str(product_id)))

            return cursor.fetchone() is not None

        finally:
            cursor.close()

    def create(self, data: PromotionCreate) -> Promotion:
        """
        Insert a promotion

        Args:
            data: Validated creation payload; only the fields of its variant
                are written, the others are stored as NULL

        Returns:
            The created promotion variant
        """
        cursor = self.conn.cursor()

        is_percent_off = data.promotion_type == PromotionType.PERCENT_OFF_CATEGORY

        try:
            cursor.execute(f"""
                INSERT INTO promotions (
                    id, promotion_type, description, category, percent_off,
                    product_id, buy_x, get_y, is_active, created_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, TRUE, NOW())
                RETURNING {_PROMOTION_COLUMNS}
            """, (
                str(uuid4()),
                data.promotion_type.value,
                data.description,
                data.category.value if is_percent_off else None,
                data.percent_off if is_percent_off else None,
                None if is_percent_off else str(data.product_id),
                None if is_percent_off else data.buy_x,
                None if is_percent_off else data.get_y
            ))

            return self._map_row_to_promotion(cursor.fetchone())

        finally:
            cursor.close()

"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.
Bound to the connection of the unit of work that created it.
"""
from typing import List, Optional
from uuid import UUID, uuid4

from promo_quoter.domain.product import Product, ProductCreate

_PRODUCT_COLUMNS = """
    id, name, category, price, stock, created_at, updated_at
"""


class ProductRepository:
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    def __init__(self, conn):
        self.conn = conn

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        """Map a products row to the Product domain model"""
        return Product(
            id=row['id'],
            name=row['name'],
            category=row['category'],
            price=row['price'],
            stock=row['stock'],
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at')
        )

    def find_by_id(self, product_id: UUID) -> Optional[Product]:
        """
        Find product by ID (plain read, no lock)

        Args:
            product_id: Product UUID

        Returns:
            Product or None if not found
        """
        cursor = self.conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_PRODUCT_COLUMNS}
                FROM products
                WHERE id = %s
            """, (str(product_id),))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_product(row)

        finally:
            cursor.close()

    def find_by_id_for_update(self, product_id: UUID) -> Optional[Product]:
        """
        Lock a product row and return a fresh snapshot of it

        The exclusive row lock is held until the surrounding transaction
        commits or rolls back.

        Args:
            product_id: Product UUID

        Returns:
            Locked Product or None if not found
        """
        cursor = self.conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_PRODUCT_COLUMNS}
                FROM products
                WHERE id = %s
                FOR UPDATE
            """, (str(product_id),))

            row = cursor.fetchone()
            if not row:
                return None

            return self._map_row_to_product(row)

        finally:
            cursor.close()

    def find_all(self) -> List[Product]:
        """List all products in catalog (creation) order"""
        cursor = self.conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {_PRODUCT_COLUMNS}
                FROM products
                ORDER BY created_at, id
            """)

            return [self._map_row_to_product(row) for row in cursor.fetchall()]

        finally:
            cursor.close()

    def save(self, product: Product) -> Product:
        """
        Persist a product's mutable fields

        Args:
            product: Product carrying the new values

        Returns:
            Product as stored (updated_at refreshed)
        """
        cursor = self.conn.cursor()

        try:
            cursor.execute(f"""
                UPDATE products
                SET name = %s, category = %s, price = %s, stock = %s, updated_at = NOW()
                WHERE id = %s
                RETURNING {_PRODUCT_COLUMNS}
            """, (
                product.name,
                product.category.value,
                product.price,
                product.stock,
                str(product.id)
            ))

            row = cursor.fetchone()
            if not row:
                raise LookupError(f"Product {product.id} vanished during update")

            return self._map_row_to_product(row)

        finally:
            cursor.close()

    def create(self, data: ProductCreate) -> Product:
        """Insert a new product and return it"""
        cursor = self.conn.cursor()

        try:
            cursor.execute(f"""
                INSERT INTO products (id, name, category, price, stock, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, NOW(), NOW())
                RETURNING {_PRODUCT_COLUMNS}
            """, (
                str(uuid4()),
                data.name,
                data.category.value,
                data.price,
                data.stock
            ))

            return self._map_row_to_product(cursor.fetchone())

        finally:
            cursor.close()

"""
Unit tests for ProductRepository

These tests validate repository logic without requiring a database connection.
"""
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from promo_quoter.domain.product import Product, ProductCategory, ProductCreate
from promo_quoter.repositories.product_repository import ProductRepository


def _row(product_id=None, **overrides):
    row = {
        'id': product_id or uuid4(),
        'name': 'Laptop',
        'category': 'ELECTRONICS',
        'price': Decimal('1000.00'),
        'stock': 10,
        'created_at': datetime.now(),
        'updated_at': None
    }
    row.update(overrides)
    return row


@pytest.fixture
def mock_conn():
    conn = MagicMock()
    conn.cursor.return_value = MagicMock()
    return conn


class TestProductRepository:
    """Test ProductRepository methods"""

    def test_find_by_id_returns_product(self, mock_conn):
        """Test find_by_id returns a Product domain model"""
        # Arrange
        product_id = uuid4()
        mock_cursor = mock_conn.cursor.return_value
        mock_cursor.fetchone.return_value = _row(product_id)

        # Act
        repo = ProductRepository(mock_conn)
        product = repo.find_by_id(product_id)

        # Assert
        assert isinstance(product, Product)
        assert product.id == product_id
        assert product.category == ProductCategory.ELECTRONICS
        assert product.price == Decimal('1000.00')

        # Verify database was called correctly
        mock_cursor.execute.assert_called_once()
        sql, params = mock_cursor.execute.call_args[0]
        assert 'FOR UPDATE' not in sql
        assert params == (str(product_id),)
        mock_cursor.close.assert_called_once()

    def test_find_by_id_returns_none_when_not_found(self, mock_conn):
        mock_conn.cursor.return_value.fetchone.return_value = None

        assert ProductRepository(mock_conn).find_by_id(uuid4()) is None

    def test_find_by_id_for_update_locks_row(self, mock_conn):
        """Test find_by_id_for_update issues SELECT ... FOR UPDATE"""
        mock_cursor = mock_conn.cursor.return_value
        mock_cursor.fetchone.return_value = _row(stock=3)

        product = ProductRepository(mock_conn).find_by_id_for_update(uuid4())

        sql = mock_cursor.execute.call_args[0][0]
        assert 'FOR UPDATE' in sql
        assert product.stock == 3

    def test_save_writes_new_stock(self, mock_conn):
        # Arrange
        product_id = uuid4()
        mock_cursor = mock_conn.cursor.return_value
        mock_cursor.fetchone.return_value = _row(product_id, stock=7)
        product = Product(**_row(product_id, stock=7))

        # Act
        saved = ProductRepository(mock_conn).save(product)

        # Assert
        sql, params = mock_cursor.execute.call_args[0]
        assert sql.strip().startswith('UPDATE products')
        assert params[3] == 7
        assert params[4] == str(product_id)
        assert saved.stock == 7
        mock_cursor.close.assert_called_once()

    def test_save_raises_when_row_missing(self, mock_conn):
        mock_conn.cursor.return_value.fetchone.return_value = None

        with pytest.raises(LookupError):
            ProductRepository(mock_conn).save(Product(**_row()))

        mock_conn.cursor.return_value.close.assert_called_once()

    def test_find_all_keeps_catalog_order(self, mock_conn):
        mock_cursor = mock_conn.cursor.return_value
        mock_cursor.fetchall.return_value = [_row(name='First'), _row(name='Second')]

        products = ProductRepository(mock_conn).find_all()

        assert [p.name for p in products] == ['First', 'Second']
        assert 'ORDER BY created_at, id' in mock_cursor.execute.call_args[0][0]

    def test_create_inserts_product(self, mock_conn):
        mock_cursor = mock_conn.cursor.return_value
        mock_cursor.fetchone.return_value = _row(name='Desk Lamp', category='HOME', price=Decimal('35.90'), stock=4)
        data = ProductCreate(name='Desk Lamp', category=ProductCategory.HOME, price=Decimal('35.90'), stock=4)

        product = ProductRepository(mock_conn).create(data)

        sql, params = mock_cursor.execute.call_args[0]
        assert 'INSERT INTO products' in sql
        assert params[1:] == ('Desk Lamp', 'HOME', Decimal('35.90'), 4)
        assert product.name == 'Desk Lamp'

    def test_product_domain_model_computed_properties(self):
        """Test Product.is_out_of_stock and to_dict"""
        product = Product(**_row(stock=0))

        data = product.to_dict()

        assert product.is_out_of_stock is True
        assert data['isOutOfStock'] is True
        assert data['price'] == 1000.0
        assert data['category'] == 'ELECTRONICS'

"""
Product Domain Model

Represents a sellable product: price, category and the stock count that
cart confirmations reserve against.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ProductCategory(str, Enum):
    """Catalog categories targeted by percent-off promotions"""
    ELECTRONICS = "ELECTRONICS"
    BOOKS = "BOOKS"
    CLOTHING = "CLOTHING"
    HOME = "HOME"
    SPORTS = "SPORTS"
    GROCERY = "GROCERY"


class Product(BaseModel):
    """
    Product domain model - represents a product in our catalog

    Fields:
        id: Product UUID (primary key)
        name: Product name
        category: Catalog category
        price: Unit price, two decimal places
        stock: Units available for reservation
        created_at: When product was created (drives catalog ordering)
        updated_at: When product was last updated
    """

    id: UUID = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    category: ProductCategory = Field(..., description="Product category")
    price: Decimal = Field(..., description="Unit price", ge=0)
    stock: int = Field(0, description="Units in stock", ge=0)

    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_out_of_stock(self) -> bool:
        """Check if product is out of stock"""
        return self.stock <= 0

    def to_dict(self) -> dict:
        """Convert to a JSON-ready dictionary"""
        return {
            "id": str(self.id),
            "name": self.name,
            "category": self.category.value,
            "price": float(self.price),
            "stock": self.stock,
            "isOutOfStock": self.is_out_of_stock,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    name: str = Field(..., min_length=1, max_length=100)
    category: ProductCategory
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    stock: int = Field(0, ge=0)

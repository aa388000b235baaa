"""
Products API Endpoints
Handles product catalog creation and listing
"""
from fastapi import APIRouter, Depends, status

from promo_quoter.api.dependencies import get_catalog_service
from promo_quoter.domain.product import ProductCreate
from promo_quoter.services.catalog_service import CatalogService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(data: ProductCreate, service: CatalogService = Depends(get_catalog_service)):
    """Create a product"""
    return service.create_product(data).to_dict()


@router.get("")
def list_products(service: CatalogService = Depends(get_catalog_service)):
    """
    Get all products in catalog order
    """
    products = service.list_products()
    return {
        "status": "success",
        "count": len(products),
        "data": [product.to_dict() for product in products]
    }

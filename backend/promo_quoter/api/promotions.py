"""
Promotions API Endpoints
Handles promotion creation and listing
"""
from fastapi import APIRouter, Depends, status

from promo_quoter.api.dependencies import get_catalog_service
from promo_quoter.domain.promotion import PromotionCreate
from promo_quoter.services.catalog_service import CatalogService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_promotion(data: PromotionCreate, service: CatalogService = Depends(get_catalog_service)):
    """
    Create a promotion

    PERCENT_OFF_CATEGORY needs category and percentOff;
    BUY_X_GET_Y needs productId, buyX and getY.
    """
    return service.create_promotion(data).to_dict()


@router.get("")
def list_promotions(service: CatalogService = Depends(get_catalog_service)):
    """Get active promotions in the order they are applied"""
    promotions = service.list_promotions()
    return {
        "status": "success",
        "count": len(promotions),
        "data": [promotion.to_dict() for promotion in promotions]
    }

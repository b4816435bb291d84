"""
Health check and system status endpoints
"""
from fastapi import APIRouter, Depends

from gift_redemption.config import VERSION
from gift_redemption.api.dependencies import get_store
from gift_redemption.database import GiftStore


router = APIRouter(tags=["health"])


@router.get("/")
def health_check(store: GiftStore = Depends(get_store)):
    """Health check endpoint"""
    return {
        "status": "ok",
        "message": "Gift Redemption Counter",
        "version": VERSION,
        "total_mappings": store.count_mappings(),
        "total_redemptions": store.count_redemptions(),
    }

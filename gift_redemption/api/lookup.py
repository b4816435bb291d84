"""
Staff pass lookup endpoint
"""
from typing import Optional

from fastapi import APIRouter, Depends

from gift_redemption.api.dependencies import get_store
from gift_redemption.database import GiftStore
from gift_redemption.errors import ValidationError
from gift_redemption.models import ErrorResponse, MappingEntry
from gift_redemption.services.resolver import resolve


router = APIRouter(tags=["lookup"])


@router.get(
    "/lookup",
    response_model=MappingEntry,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def lookup(staff_pass_id: Optional[str] = None, store: GiftStore = Depends(get_store)):
    """
    Find the team a staff pass belongs to

    Response:
        {"staff_pass_id": "...", "team_name": "...", "created_at": "..."}
    """
    if not staff_pass_id:
        raise ValidationError("staff_pass_id is needed to lookup redemption")

    return resolve(store, staff_pass_id)

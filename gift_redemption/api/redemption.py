"""
Gift redemption endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends

from gift_redemption.api.dependencies import get_store
from gift_redemption.database import GiftStore
from gift_redemption.errors import ValidationError
from gift_redemption.models import ErrorResponse, RedemptionEntry, RedemptionPayload, RedemptionStatus
from gift_redemption.services.redemption import redeem_for_credential, status_for_credential


router = APIRouter(prefix="/redemption", tags=["redemption"])


@router.post(
    "",
    response_model=RedemptionEntry,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def redeem_gift(payload: RedemptionPayload, store: GiftStore = Depends(get_store)):
    """
    Claim the gift for the staff pass's team

    Request:
        {"staff_pass_id": "MANAGER_T999888420B"}

    Response (first claim for the team):
        {"team_name": "RUST", "redeemed_at": "...", "redeemed_by": "MANAGER_T999888420B"}

    Response (team already claimed), status 400:
        {"error": "<staff pass> from team <team> has already claimed the gift on <timestamp>"}
    """
    if not payload.staff_pass_id:
        raise ValidationError("staff_pass_id is needed to redeem gift")

    return redeem_for_credential(store, payload.staff_pass_id)


@router.get(
    "",
    response_model=RedemptionStatus,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def get_redemption_status(staff_pass_id: Optional[str] = None, store: GiftStore = Depends(get_store)):
    """Whether the staff pass's team can still claim its gift"""
    if not staff_pass_id:
        raise ValidationError("staff_pass_id is needed to check redemption")

    return status_for_credential(store, staff_pass_id)

"""
Data models for the gift redemption API
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from gift_redemption.database import as_utc


class MappingEntry(BaseModel):
    """A staff pass and the team it belongs to"""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    staff_pass_id: str
    team_name: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class RedemptionEntry(BaseModel):
    """The single gift claim recorded for a team"""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    team_name: str
    redeemed_at: datetime
    redeemed_by: str  # staff_pass_id that claimed the gift

    @field_validator("redeemed_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class RedemptionPayload(BaseModel):
    """POST /redemption request body"""
    staff_pass_id: Optional[str] = None


class RedemptionStatus(BaseModel):
    staff_pass_id: str
    team_name: str
    can_redeem: bool
    redemption: Optional[RedemptionEntry] = None


class ErrorResponse(BaseModel):
    error: str

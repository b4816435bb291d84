"""
Error taxonomy shared by the resolver, the coordinator and the HTTP layer

Each error carries the HTTP status it is surfaced with; the exception
handler in gift_redemption.main renders every one as {"error": message}.
"""
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gift_redemption.models import RedemptionEntry


CLAIMED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


class GiftRedemptionError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GiftRedemptionError):
    """Missing or malformed input, rejected before storage is touched"""
    status_code = 400


class NotFoundError(GiftRedemptionError):
    status_code = 404


class ConflictError(GiftRedemptionError):
    """The team already has a redemption; carries the winning entry"""
    status_code = 400

    def __init__(self, existing: "RedemptionEntry"):
        super().__init__(
            f"{existing.redeemed_by} from team {existing.team_name} "
            f"has already claimed the gift on {existing.redeemed_at.strftime(CLAIMED_AT_FORMAT)}"
        )
        self.existing = existing


class StorageError(GiftRedemptionError):
    status_code = 500


class MappingImportError(GiftRedemptionError):
    """Bulk import rejected; nothing from the file was written"""
    status_code = 500

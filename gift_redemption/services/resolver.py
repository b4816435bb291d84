"""Staff pass -> team resolution"""
from sqlalchemy.exc import SQLAlchemyError

from gift_redemption.database import GiftStore, MappingRecord
from gift_redemption.errors import NotFoundError, StorageError
from gift_redemption.models import MappingEntry


def resolve(store: GiftStore, staff_pass_id: str) -> MappingEntry:
    """
    Look up the team a staff pass belongs to

    Exact, case-sensitive match on staff_pass_id. The mapping table does not
    change while serving, so a miss is final.

    Raises:
        NotFoundError: If no mapping row has this staff_pass_id
        StorageError: If the lookup itself fails
    """
    try:
        with store.read_session() as session:
            record = session.get(MappingRecord, staff_pass_id)
            entry = MappingEntry.model_validate(record) if record is not None else None
    except SQLAlchemyError as exc:
        raise StorageError(f"error looking up staff pass: {exc}") from exc

    if entry is None:
        raise NotFoundError(f"staff pass {staff_pass_id} not found")
    return entry

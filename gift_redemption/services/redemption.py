"""
Redemption coordinator

One gift per team. The existence check and the insert run inside a single
ledger transaction, and the team_name primary key rejects any duplicate that
gets past it.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gift_redemption.database import GiftStore, RedemptionRecord, utc_now
from gift_redemption.errors import ConflictError, StorageError
from gift_redemption.models import RedemptionEntry, RedemptionStatus
from gift_redemption.services.resolver import resolve


logger = logging.getLogger(__name__)


def _find_redemption(session: Session, team_name: str) -> Optional[RedemptionRecord]:
    return session.get(RedemptionRecord, team_name)


def redemption_status(store: GiftStore, team_name: str) -> Optional[RedemptionEntry]:
    """Current ledger entry for a team, or None if it has not redeemed"""
    try:
        record = store.get_redemption(team_name)
    except SQLAlchemyError as exc:
        raise StorageError(f"error retrieving redemption status: {exc}") from exc
    return RedemptionEntry.model_validate(record) if record is not None else None


def redeem(store: GiftStore, team_name: str, staff_pass_id: str) -> RedemptionEntry:
    """
    Record the team's redemption if it has none yet

    Of any number of concurrent callers for the same team, exactly one
    commits; every other caller gets ConflictError describing the winner.

    Args:
        store: Storage access object
        team_name: Team claiming the gift
        staff_pass_id: Staff pass performing the claim

    Returns:
        The committed RedemptionEntry

    Raises:
        ConflictError: If the team has already redeemed
        StorageError: On any other storage failure (not retried)
    """
    try:
        with store.write_transaction() as session:
            existing = _find_redemption(session, team_name)
            if existing is not None:
                raise ConflictError(RedemptionEntry.model_validate(existing))

            record = RedemptionRecord(
                team_name=team_name,
                redeemed_at=utc_now(),
                redeemed_by=staff_pass_id,
            )
            session.add(record)
            session.flush()
            entry = RedemptionEntry.model_validate(record)
    except IntegrityError as exc:
        # Lost the race at the constraint instead of at the lock
        winner = redemption_status(store, team_name)
        if winner is None:
            raise StorageError(f"error redeeming gift for team {team_name}: {exc}") from exc
        logger.info(f"Team {team_name} redemption rejected by constraint, already claimed by {winner.redeemed_by}")
        raise ConflictError(winner) from exc
    except SQLAlchemyError as exc:
        raise StorageError(f"error redeeming gift for team {team_name}: {exc}") from exc

    logger.info(f"🎁 Team {team_name} redeemed by {staff_pass_id}")
    return entry


def redeem_for_credential(store: GiftStore, staff_pass_id: str) -> RedemptionEntry:
    """Resolve the staff pass to its team, then redeem for that team"""
    mapping = resolve(store, staff_pass_id)
    try:
        return redeem(store, mapping.team_name, mapping.staff_pass_id)
    except ConflictError as exc:
        logger.info(f"Staff pass {staff_pass_id} refused: {exc.message}")
        raise


def status_for_credential(store: GiftStore, staff_pass_id: str) -> RedemptionStatus:
    mapping = resolve(store, staff_pass_id)
    existing = redemption_status(store, mapping.team_name)
    return RedemptionStatus(
        staff_pass_id=mapping.staff_pass_id,
        team_name=mapping.team_name,
        can_redeem=existing is None,
        redemption=existing,
    )

"""
Staff pass to team mapping loader from CSV
"""
import csv
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from gift_redemption.database import GiftStore, MappingRecord
from gift_redemption.errors import MappingImportError
from gift_redemption.models import MappingEntry


logger = logging.getLogger(__name__)

EXPECTED_COLUMNS = 3
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_mapping_csv(csv_path: str) -> List[MappingEntry]:
    """
    Parse and validate a mapping CSV without touching the database

    CSV format:
        staff_pass_id,team_name,created_at
        STAFF_H123804820G,BASS,1623772799000
        MANAGER_T999888420B,RUST,1623772799000

    created_at is epoch milliseconds.

    Args:
        csv_path: Path to CSV file

    Returns:
        List of MappingEntry in file order

    Raises:
        FileNotFoundError: If CSV file not found
        MappingImportError: On the first malformed line
    """
    path = Path(csv_path)

    if not path.exists():
        raise FileNotFoundError(f"Mapping file not found: {csv_path}")

    entries = []

    with open(path, 'r', encoding='utf-8', newline='') as f:
        reader = csv.reader(f)
        try:
            headers = next(reader, None)
            if headers is None:
                raise MappingImportError(f"{csv_path}: missing CSV header")
            if len(headers) != EXPECTED_COLUMNS:
                raise MappingImportError(
                    f"{csv_path}: invalid CSV format, header should have {EXPECTED_COLUMNS} columns, got {len(headers)}"
                )

            for row in reader:
                entry = _parse_row(csv_path, reader.line_num, row)
                if entry is not None:
                    entries.append(entry)
        except (UnicodeDecodeError, csv.Error) as exc:
            # line_num is the last line read successfully
            raise MappingImportError(
                f"{csv_path} after line {reader.line_num}: unreadable CSV data: {exc}"
            ) from exc

    return entries


def _parse_row(csv_path: str, line: int, row: List[str]) -> Optional[MappingEntry]:
    if not row:
        return None
    if len(row) != EXPECTED_COLUMNS:
        raise MappingImportError(
            f"{csv_path} line {line}: expected {EXPECTED_COLUMNS} columns, got {len(row)}"
        )

    # Kept byte-exact: staff_pass_id lookups are exact-match
    staff_pass_id, team_name, created_at_raw = row
    if not staff_pass_id:
        raise MappingImportError(f"{csv_path} line {line}: staff_pass_id is empty")

    try:
        created_at_ms = int(created_at_raw)
    except ValueError:
        raise MappingImportError(
            f"{csv_path} line {line}: error converting epoch time to integer: {created_at_raw!r}"
        ) from None

    try:
        created_at = EPOCH + timedelta(milliseconds=created_at_ms)
    except OverflowError:
        raise MappingImportError(
            f"{csv_path} line {line}: epoch time out of range: {created_at_ms}"
        ) from None

    return MappingEntry(staff_pass_id=staff_pass_id, team_name=team_name, created_at=created_at)


def load_mapping_csv(store: GiftStore, csv_path: str) -> int:
    """
    Upsert every row of a mapping CSV, all or nothing

    The file is validated in full before any row is written, and the rows
    are written in a single transaction.

    Returns:
        Number of rows applied
    """
    entries = parse_mapping_csv(csv_path)

    try:
        with store.write_transaction() as session:
            for entry in entries:
                logger.debug(f"Mapping {entry.staff_pass_id} -> {entry.team_name}")
                session.merge(MappingRecord(
                    staff_pass_id=entry.staff_pass_id,
                    team_name=entry.team_name,
                    created_at=entry.created_at,
                ))
    except SQLAlchemyError as exc:
        raise MappingImportError(f"error inserting mapping rows from {csv_path}: {exc}") from exc

    logger.info(f"✅ Loaded {len(entries)} staff pass mappings from {csv_path}")
    return len(entries)

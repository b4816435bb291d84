"""Shared fixtures: a file-backed store seeded with three staff passes"""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from gift_redemption.database import GiftStore, MappingRecord
from gift_redemption.main import create_app


SEED_MAPPINGS = [
    ("STAFF_H123804820G", "BASS", 1623772799000),
    ("MANAGER_T999888420B", "RUST", 1623772799000),
    ("BOSS_T000000001P", "RUST", 1623872111000),
]


@pytest.fixture
def store(tmp_path):
    # File-backed so that concurrent tests get one connection per thread
    store = GiftStore.from_path(str(tmp_path / "gifts.db"))
    store.init_db()
    with store.write_transaction() as session:
        for staff_pass_id, team_name, created_ms in SEED_MAPPINGS:
            session.add(MappingRecord(
                staff_pass_id=staff_pass_id,
                team_name=team_name,
                created_at=datetime.fromtimestamp(created_ms / 1000, tz=timezone.utc),
            ))
    yield store
    store.dispose()


@pytest.fixture
def client(store):
    return TestClient(create_app(store))

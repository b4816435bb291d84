"""
Tests for staff pass -> team resolution
"""
from datetime import datetime, timezone

import pytest

from gift_redemption.errors import NotFoundError
from gift_redemption.services.resolver import resolve


def test_resolve_returns_team(store):
    """Known staff pass resolves to its team and creation time"""
    mapping = resolve(store, "STAFF_H123804820G")
    assert mapping.team_name == "BASS"
    assert mapping.staff_pass_id == "STAFF_H123804820G"
    assert mapping.created_at == datetime.fromtimestamp(1623772799, tz=timezone.utc)


def test_resolve_unknown_pass(store):
    """Unknown staff pass raises NotFoundError"""
    with pytest.raises(NotFoundError):
        resolve(store, "NON_EXISTENT")


def test_resolve_is_case_sensitive(store):
    """Only an exact-case match resolves"""
    with pytest.raises(NotFoundError):
        resolve(store, "STAFF_H123804820g")
    with pytest.raises(NotFoundError):
        resolve(store, "staff_h123804820g")


def test_resolve_is_repeatable(store):
    """Repeated lookups return the same entry and write nothing"""
    first = resolve(store, "BOSS_T000000001P")
    second = resolve(store, "BOSS_T000000001P")
    assert first == second
    assert store.count_mappings() == 3
    assert store.count_redemptions() == 0

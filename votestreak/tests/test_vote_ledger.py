"""
Tests for the vote ledger.

Covers:
- Scope resolution (primary default, ownership verification)
- Stats snapshot on every write, matching the stored rows
- Ownership re-derived from the vote's own scope on update/delete
- Range listing and date validation before store access
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from votestreak.core.database import get_db_session
from votestreak.core.errors import (
    InvalidDateError,
    NoPrimaryIdentityError,
    NotFoundError,
    PermissionError,
)
from votestreak.features.identities.service import create_identity
from votestreak.features.votes.service import VoteLedger
from votestreak.features.votes.store import VoteStore
from votestreak.models.vote import VotePatch


def row_count(scope_id: int) -> int:
    with get_db_session() as session:
        return VoteStore(session).count_by_scope(scope_id)


def day(clock, offset: int) -> str:
    return (clock.now() - timedelta(days=offset)).date().isoformat()


def test_create_defaults_to_primary_scope_and_now(ledger, clock, make_owner):
    owner, scope = make_owner()

    result = ledger.create(owner, notes="first")

    assert result.vote.scope_id == scope
    assert result.vote.voted_at == clock.now()
    assert result.vote.date == clock.now().date()
    assert result.vote.notes == "first"
    assert result.stats.total == 1
    assert result.stats.this_month == 1
    assert result.stats.streak == 1


def test_create_for_explicit_secondary_scope(ledger, make_owner):
    owner, primary = make_owner()
    secondary = create_identity(owner).id

    result = ledger.create(owner, scope_id=secondary, date="2025-03-17")

    assert result.vote.scope_id == secondary
    assert row_count(primary) == 0
    assert row_count(secondary) == 1


def test_create_for_foreign_scope_is_forbidden_and_inserts_nothing(ledger, make_owner):
    owner, _ = make_owner()
    victim, victim_scope = make_owner()
    ledger.create(victim)

    with pytest.raises(PermissionError):
        ledger.create(owner, scope_id=victim_scope)

    assert len(ledger.list(victim)) == 1


def test_create_without_primary_scope(ledger, make_owner):
    owner, _ = make_owner(primary=False)
    with pytest.raises(NoPrimaryIdentityError):
        ledger.create(owner)


def test_invalid_date_rejected_before_store_access(clock):
    session_factory = MagicMock()
    ledger = VoteLedger(clock=clock, session_factory=session_factory)

    with pytest.raises(InvalidDateError):
        ledger.create(1, date="yesterday-ish")
    with pytest.raises(InvalidDateError):
        ledger.list(1, end_date="2025-99-01")
    with pytest.raises(InvalidDateError):
        ledger.update(1, 1, VotePatch(date="nope"))

    session_factory.assert_not_called()


def test_same_day_votes_are_kept_but_counted_once_for_streak(ledger, clock, make_owner):
    owner, scope = make_owner()
    ledger.create(owner, date=day(clock, 0))
    result = ledger.create(owner, date=day(clock, 0), notes="again")

    assert result.stats.total == 2
    assert result.stats.streak == 1
    assert row_count(scope) == 2


def test_streak_end_to_end(ledger, clock, make_owner):
    owner, _ = make_owner()

    today_vote = ledger.create(owner, date=day(clock, 0))
    assert today_vote.stats.streak == 1

    yesterday_vote = ledger.create(owner, date=day(clock, 1))
    assert yesterday_vote.stats.streak == 2

    deleted = ledger.delete(owner, yesterday_vote.vote.id)
    assert deleted.deleted_vote_id == yesterday_vote.vote.id
    assert deleted.stats.streak == 1
    assert deleted.stats.total == 1


def test_write_stats_match_row_count(ledger, clock, make_owner):
    owner, scope = make_owner()
    ids = []
    for offset in (0, 1, 1, 5, 40):
        result = ledger.create(owner, date=day(clock, offset))
        ids.append(result.vote.id)
        assert result.stats.total == row_count(scope)

    updated = ledger.update(owner, ids[0], VotePatch(notes="edited"))
    assert updated.stats.total == row_count(scope)

    deleted = ledger.delete(owner, ids[1])
    assert deleted.stats.total == row_count(scope) == 4


def test_update_moves_date_and_recomputes(ledger, clock, make_owner):
    owner, _ = make_owner()
    ledger.create(owner, date=day(clock, 0))
    stale = ledger.create(owner, date=day(clock, 3), notes="keep")
    assert stale.stats.streak == 1

    result = ledger.update(owner, stale.vote.id, VotePatch(date=day(clock, 1)))

    assert result.vote.date == (clock.now() - timedelta(days=1)).date()
    assert result.vote.notes == "keep"
    assert result.vote.created_at == stale.vote.created_at
    assert result.stats.streak == 2


def test_update_notes_only_keeps_date(ledger, clock, make_owner):
    owner, _ = make_owner()
    created = ledger.create(owner, date="2025-03-10T08:00:00Z", notes="old")

    result = ledger.update(owner, created.vote.id, VotePatch(notes="new"))

    assert result.vote.voted_at == datetime(2025, 3, 10, 8, tzinfo=timezone.utc)
    assert result.vote.notes == "new"


def test_update_can_clear_notes(ledger, make_owner):
    owner, _ = make_owner()
    created = ledger.create(owner, notes="remove me")

    result = ledger.update(owner, created.vote.id, VotePatch.model_validate({"notes": None}))

    assert result.vote.notes is None


def test_update_other_users_vote_is_not_found(ledger, make_owner):
    owner, _ = make_owner()
    victim, _ = make_owner()
    target = ledger.create(victim, notes="mine").vote

    with pytest.raises(NotFoundError):
        ledger.update(owner, target.id, VotePatch(notes="hijacked"))

    assert ledger.list(victim)[0].notes == "mine"


def test_delete_other_users_vote_is_not_found(ledger, make_owner):
    owner, _ = make_owner()
    victim, victim_scope = make_owner()
    target = ledger.create(victim).vote

    with pytest.raises(NotFoundError):
        ledger.delete(owner, target.id)

    assert row_count(victim_scope) == 1


def test_missing_vote_is_not_found(ledger, make_owner):
    owner, _ = make_owner()
    with pytest.raises(NotFoundError):
        ledger.update(owner, 777777, VotePatch(notes="x"))
    with pytest.raises(NotFoundError):
        ledger.delete(owner, 777777)


def test_list_range_and_order(ledger, clock, make_owner):
    owner, _ = make_owner()
    for offset in (0, 2, 4, 6, 8):
        ledger.create(owner, date=day(clock, offset))
    later_same_day = ledger.create(owner, date=day(clock, 4), notes="second")

    votes = ledger.list(owner, start_date=day(clock, 6), end_date=day(clock, 2))

    assert [v.date.isoformat() for v in votes] == [day(clock, 2), day(clock, 4), day(clock, 4), day(clock, 6)]
    # Same-day votes: most recently created first
    assert votes[1].id == later_same_day.vote.id


def test_list_foreign_scope_is_forbidden(ledger, make_owner):
    owner, _ = make_owner()
    _, other_scope = make_owner()
    with pytest.raises(PermissionError):
        ledger.list(owner, scope_id=other_scope)


def test_read_only_stats(ledger, clock, make_owner):
    owner, scope = make_owner()
    assert ledger.stats(owner).total == 0
    ledger.create(owner, date=day(clock, 1))
    snapshot = ledger.stats(owner, scope_id=scope)
    assert (snapshot.total, snapshot.this_month, snapshot.streak) == (1, 1, 1)


def test_streak_lapses_once_a_full_day_is_missed(ledger, clock, make_owner):
    owner, _ = make_owner()
    ledger.create(owner, date=day(clock, 1))
    ledger.create(owner, date=day(clock, 0))
    assert ledger.stats(owner).streak == 2

    clock.advance(days=1)
    assert ledger.stats(owner).streak == 2  # grace: last vote was yesterday

    clock.advance(days=1)
    assert ledger.stats(owner).streak == 0

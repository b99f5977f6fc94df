"""
Vote ledger: create/list/update/delete votes with a fresh stats snapshot on every write.

Each call runs in a single transaction. Input is validated before the session
is opened; ownership is resolved or verified before any mutation; the stats
snapshot is re-read inside the same transaction after the write, so it always
reflects that write and nothing is committed if computing it fails.
"""

from __future__ import annotations

from typing import Callable, ContextManager, List, Optional

from sqlalchemy.orm import Session

from votestreak.core.clock import Clock, system_clock
from votestreak.core.database import get_db_session
from votestreak.core.errors import NotFoundError, PermissionError
from votestreak.core.logging import log_event
from votestreak.features.votes.dates import DateInput, parse_day, parse_moment
from votestreak.features.votes.ownership import OwnershipGuard
from votestreak.features.votes.stats import compute_stats
from votestreak.features.votes.store import VoteStore
from votestreak.models.vote import DeletedVote, StatsSnapshot, Vote, VotePatch, VoteWithStats

SessionFactory = Callable[[], ContextManager[Session]]


class VoteLedger:
    def __init__(self, clock: Clock = system_clock, session_factory: SessionFactory = get_db_session):
        self._clock = clock
        self._session_factory = session_factory

    def create(
        self,
        caller_id: int,
        scope_id: Optional[int] = None,
        date: DateInput = None,
        notes: Optional[str] = None,
    ) -> VoteWithStats:
        voted_at = parse_moment(date, "date") or self._clock.now()

        with self._session_factory() as session:
            scope = self._resolve_scope(session, caller_id, scope_id)
            store = VoteStore(session)
            vote = store.insert(scope, voted_at, notes, created_at=self._clock.now())
            stats = compute_stats(store, scope, self._clock)

        log_event(
            "info",
            "vote.created",
            caller_id=caller_id,
            scope_id=scope,
            vote_id=vote.id,
            event_type="vote.created",
            extra={"streak": stats.streak, "total": stats.total},
        )
        return VoteWithStats(vote=vote, stats=stats)

    def list(
        self,
        caller_id: int,
        scope_id: Optional[int] = None,
        start_date: DateInput = None,
        end_date: DateInput = None,
    ) -> List[Vote]:
        start_day = parse_day(start_date, "startDate")
        end_day = parse_day(end_date, "endDate")

        with self._session_factory() as session:
            scope = self._resolve_scope(session, caller_id, scope_id)
            return VoteStore(session).list_by_scope(scope, start_day, end_day)

    def stats(self, caller_id: int, scope_id: Optional[int] = None) -> StatsSnapshot:
        with self._session_factory() as session:
            scope = self._resolve_scope(session, caller_id, scope_id)
            return compute_stats(VoteStore(session), scope, self._clock)

    def update(self, caller_id: int, vote_id: int, patch: VotePatch) -> VoteWithStats:
        changes = patch.supplied()
        voted_at = parse_moment(changes.get("date"), "date")

        with self._session_factory() as session:
            store = VoteStore(session)
            existing = self._owned_vote(session, store, caller_id, vote_id)
            if "notes" in changes:
                vote = store.update(vote_id, voted_at=voted_at, notes=changes["notes"])
            else:
                vote = store.update(vote_id, voted_at=voted_at)
            stats = compute_stats(store, existing.scope_id, self._clock)

        log_event(
            "info",
            "vote.updated",
            caller_id=caller_id,
            scope_id=existing.scope_id,
            vote_id=vote_id,
            event_type="vote.updated",
            extra={"fields": ",".join(sorted(changes))},
        )
        return VoteWithStats(vote=vote, stats=stats)

    def delete(self, caller_id: int, vote_id: int) -> DeletedVote:
        with self._session_factory() as session:
            store = VoteStore(session)
            existing = self._owned_vote(session, store, caller_id, vote_id)
            store.delete(vote_id)
            stats = compute_stats(store, existing.scope_id, self._clock)

        log_event(
            "info",
            "vote.deleted",
            caller_id=caller_id,
            scope_id=existing.scope_id,
            vote_id=vote_id,
            event_type="vote.deleted",
        )
        return DeletedVote(deleted_vote_id=vote_id, stats=stats)

    # Internal helpers -------------------------------------------------
    @staticmethod
    def _resolve_scope(session: Session, caller_id: int, scope_id: Optional[int]) -> int:
        try:
            return OwnershipGuard(session).resolve_scope(caller_id, scope_id)
        except PermissionError:
            log_event(
                "warning",
                "vote.forbidden",
                caller_id=caller_id,
                scope_id=scope_id,
                error_code=PermissionError.code,
            )
            raise

    @staticmethod
    def _owned_vote(session: Session, store: VoteStore, caller_id: int, vote_id: int) -> Vote:
        # Authorize against the vote's recorded scope, never a caller-supplied one.
        vote = store.find(vote_id)
        if vote is None or not OwnershipGuard(session).verify_ownership(caller_id, vote.scope_id):
            raise NotFoundError("Vote not found")
        return vote

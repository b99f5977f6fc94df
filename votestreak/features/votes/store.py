"""
votestreak/features/votes/store.py

SQL persistence for vote records.

All queries are scoped by identity scope id. Day-level filtering uses the
normalized `vote_date` column so range bounds are inclusive calendar days.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import select, insert, update, delete, func, and_
from sqlalchemy.orm import Session

from votestreak.core.database import votes
from votestreak.core.errors import NotFoundError
from votestreak.features.votes.dates import normalize_day, normalize_moment
from votestreak.models.vote import Vote

# Sentinel so update() can tell "clear the notes" from "leave them alone"
_UNSET = object()


def _scope_filter(scope_id: int, start_day: Optional[date], end_day: Optional[date]):
    clauses = [votes.c.user_identity_id == scope_id]
    if start_day is not None:
        clauses.append(votes.c.vote_date >= start_day)
    if end_day is not None:
        clauses.append(votes.c.vote_date <= end_day)
    return and_(*clauses)


class VoteStore:
    """Vote CRUD bound to one database session (one transaction per ledger call)."""

    def __init__(self, session: Session):
        self._session = session

    def insert(
        self,
        scope_id: int,
        voted_at: datetime,
        notes: Optional[str] = None,
        *,
        created_at: datetime,
    ) -> Vote:
        moment = normalize_moment(voted_at)
        result = self._session.execute(
            insert(votes).values(
                user_identity_id=scope_id,
                voted_at=moment,
                vote_date=normalize_day(moment),
                notes=notes,
                created_at=normalize_moment(created_at),
            )
        )
        vote_id = result.inserted_primary_key[0]
        return self._get(vote_id)

    def find(self, vote_id: int) -> Optional[Vote]:
        row = self._session.execute(
            select(votes).where(votes.c.id == vote_id)
        ).first()
        return Vote.from_row(row) if row else None

    def _get(self, vote_id: int) -> Vote:
        vote = self.find(vote_id)
        if vote is None:
            raise NotFoundError("Vote not found")
        return vote

    def list_by_scope(
        self,
        scope_id: int,
        start_day: Optional[date] = None,
        end_day: Optional[date] = None,
    ) -> List[Vote]:
        rows = self._session.execute(
            select(votes)
            .where(_scope_filter(scope_id, start_day, end_day))
            .order_by(
                votes.c.vote_date.desc(),
                votes.c.created_at.desc(),
                votes.c.id.desc(),
            )
        ).all()
        return [Vote.from_row(row) for row in rows]

    def update(self, vote_id: int, *, voted_at: Optional[datetime] = None, notes=_UNSET) -> Vote:
        values = {}
        if voted_at is not None:
            moment = normalize_moment(voted_at)
            values["voted_at"] = moment
            values["vote_date"] = normalize_day(moment)
        if notes is not _UNSET:
            values["notes"] = notes

        if not values:
            return self._get(vote_id)

        result = self._session.execute(
            update(votes).where(votes.c.id == vote_id).values(**values)
        )
        if result.rowcount == 0:
            raise NotFoundError("Vote not found")
        return self._get(vote_id)

    def delete(self, vote_id: int) -> None:
        result = self._session.execute(delete(votes).where(votes.c.id == vote_id))
        if result.rowcount == 0:
            raise NotFoundError("Vote not found")

    def count_by_scope(
        self,
        scope_id: int,
        start_day: Optional[date] = None,
        end_day: Optional[date] = None,
    ) -> int:
        return self._session.execute(
            select(func.count())
            .select_from(votes)
            .where(_scope_filter(scope_id, start_day, end_day))
        ).scalar_one()

    def distinct_dates_by_scope(self, scope_id: int) -> List[date]:
        """Each calendar day with at least one vote, most recent first."""
        rows = self._session.execute(
            select(votes.c.vote_date)
            .where(votes.c.user_identity_id == scope_id)
            .distinct()
            .order_by(votes.c.vote_date.desc())
        ).all()
        return [row.vote_date for row in rows]

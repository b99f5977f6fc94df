from __future__ import annotations

import datetime as dt
from datetime import datetime, timezone
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Largest value an INTEGER id column holds on Postgres and SQLite alike
MAX_ID = 2**31 - 1


def as_utc(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class Vote(BaseModel):
    """One dated check-in recorded against an identity scope."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    scope_id: int
    date: dt.date  # UTC day boundary used for streaks and range filters
    voted_at: datetime
    notes: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_row(cls, row) -> "Vote":
        return cls(
            id=row.id,
            scope_id=row.user_identity_id,
            date=row.vote_date,
            voted_at=as_utc(row.voted_at),
            notes=row.notes,
            created_at=as_utc(row.created_at),
        )


class StatsSnapshot(BaseModel):
    """Derived statistics for a scope; never persisted."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total: int = 0
    this_month: int = 0
    streak: int = 0


class VotePatch(BaseModel):
    """Partial update; only fields present in the payload are applied."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: Optional[str] = None
    notes: Optional[str] = None

    def supplied(self) -> dict:
        return self.model_dump(exclude_unset=True)


class CreateVoteRequest(BaseModel):
    scope_id: Optional[int] = Field(
        default=None,
        ge=1,
        le=MAX_ID,
        validation_alias=AliasChoices("scopeId", "userIdentityId", "scope_id"),
    )
    date: Optional[str] = None
    notes: Optional[str] = None


class VoteWithStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    vote: Vote
    stats: StatsSnapshot


class DeletedVote(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    deleted_vote_id: int
    stats: StatsSnapshot

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from votestreak.core.auth import get_current_user_id
from votestreak.core.clock import Clock, system_clock
from votestreak.features.votes.service import VoteLedger
from votestreak.models.vote import (
    MAX_ID,
    CreateVoteRequest,
    DeletedVote,
    StatsSnapshot,
    Vote,
    VotePatch,
    VoteWithStats,
)

router = APIRouter(prefix="/api/votes")


def get_clock() -> Clock:
    return system_clock


def get_ledger(clock: Clock = Depends(get_clock)) -> VoteLedger:
    return VoteLedger(clock=clock)


def get_scope_id(
    scope_id: Optional[int] = Query(None, alias="scopeId", ge=1, le=MAX_ID),
    user_identity_id: Optional[int] = Query(None, alias="userIdentityId", ge=1, le=MAX_ID),
) -> Optional[int]:
    """Scope from the query string; `userIdentityId` is the legacy name for `scopeId`."""
    return scope_id if scope_id is not None else user_identity_id


@router.post("", response_model=VoteWithStats, status_code=201)
def create_vote(
    body: CreateVoteRequest,
    caller_id: int = Depends(get_current_user_id),
    ledger: VoteLedger = Depends(get_ledger),
):
    """Record a vote (defaults: primary identity, now) and return fresh stats."""
    return ledger.create(caller_id, scope_id=body.scope_id, date=body.date, notes=body.notes)


@router.get("", response_model=List[Vote])
def list_votes(
    scope_id: Optional[int] = Depends(get_scope_id),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    caller_id: int = Depends(get_current_user_id),
    ledger: VoteLedger = Depends(get_ledger),
):
    """Votes for a scope, newest day first; bounds are inclusive days."""
    return ledger.list(caller_id, scope_id=scope_id, start_date=start_date, end_date=end_date)


@router.get("/stats", response_model=StatsSnapshot)
def get_vote_stats(
    scope_id: Optional[int] = Depends(get_scope_id),
    caller_id: int = Depends(get_current_user_id),
    ledger: VoteLedger = Depends(get_ledger),
):
    return ledger.stats(caller_id, scope_id=scope_id)


@router.put("/{vote_id}", response_model=VoteWithStats)
def update_vote(
    patch: VotePatch,
    vote_id: int = Path(..., ge=1, le=MAX_ID),
    caller_id: int = Depends(get_current_user_id),
    ledger: VoteLedger = Depends(get_ledger),
):
    return ledger.update(caller_id, vote_id, patch)


@router.delete("/{vote_id}", response_model=DeletedVote)
def delete_vote(
    vote_id: int = Path(..., ge=1, le=MAX_ID),
    caller_id: int = Depends(get_current_user_id),
    ledger: VoteLedger = Depends(get_ledger),
):
    return ledger.delete(caller_id, vote_id)

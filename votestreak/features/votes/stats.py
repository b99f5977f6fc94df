"""Stats snapshot for a scope: total, current calendar month, current streak."""

from votestreak.core.clock import Clock, today
from votestreak.features.votes.dates import month_bounds
from votestreak.features.votes.store import VoteStore
from votestreak.features.votes.streak import compute_streak
from votestreak.models.vote import StatsSnapshot


def compute_stats(store: VoteStore, scope_id: int, clock: Clock) -> StatsSnapshot:
    # Always re-read from the store; nothing here is cached between calls.
    current_day = today(clock)
    first_day, last_day = month_bounds(current_day)
    return StatsSnapshot(
        total=store.count_by_scope(scope_id),
        this_month=store.count_by_scope(scope_id, first_day, last_day),
        streak=compute_streak(store.distinct_dates_by_scope(scope_id), current_day),
    )

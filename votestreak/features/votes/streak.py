from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence


def compute_streak(dates_desc: Sequence[date], today: date) -> int:
    """Length of the consecutive-day run ending at the most recent vote.

    `dates_desc` must be distinct calendar days, most recent first. The run only
    counts while it is current: the most recent day has to be today or yesterday,
    so a user who has not checked in yet today keeps the streak until the day ends.
    Gaps earlier than the first break do not matter.
    """
    if not dates_desc:
        return 0

    most_recent = dates_desc[0]
    if most_recent not in (today, today - timedelta(days=1)):
        return 0

    streak = 0
    expected = most_recent
    for day in dates_desc:
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak

from __future__ import annotations

from datetime import datetime, timedelta

_TICK = timedelta(microseconds=1)


def advance(previous: datetime, now: datetime) -> datetime:
    """Return the next ``updated_at`` value for a record last written at *previous*.

    Normally ``now``; if the clock has not moved past *previous* (coarse clock,
    two writes in the same microsecond, clock skew) the result is bumped to the
    next representable instant so ``updated_at`` strictly increases.
    """
    if now > previous:
        return now
    return previous + _TICK

"""
SM-2 scheduler and quality estimator.

This is a pure computation module with no I/O. The only ambient input is
the current moment, which every function accepts as ``now`` so callers and
tests can pin it.
"""

import logging
import math
from datetime import datetime, timedelta, timezone

from revue.domain.constants import (
    FAILED_INTERVAL,
    FAST_ANSWER_MS,
    LEARNING_INTERVALS,
    MAX_QUALITY,
    MIN_EASINESS,
    PASSING_QUALITY,
    SLOW_ANSWER_MS,
)
from revue.domain.srs.models import CardScheduleState, ReviewOutcome

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are returned unchanged."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties going up (2.5 -> 3, 14.5 -> 15)."""
    return math.floor(value + 0.5)


def estimate_quality(
    was_correct: bool,
    response_latency_ms: int,
    *,
    fast_ms: int = FAST_ANSWER_MS,
    slow_ms: int = SLOW_ANSWER_MS,
) -> int:
    """
    Map an answer to a 0-5 recall grade.

    Wrong answers grade 0. Correct answers grade by latency:
    under ``fast_ms`` is 5, under ``slow_ms`` is 4, anything slower is 3.
    """
    if not was_correct:
        return 0
    if response_latency_ms < fast_ms:
        return 5
    if response_latency_ms < slow_ms:
        return 4
    return 3


def schedule(
    quality: int,
    prior_easiness: float,
    prior_interval: int,
    prior_repetitions: int,
    *,
    now: datetime | None = None,
    max_interval: int | None = None,
) -> CardScheduleState:
    """
    Compute the next scheduling state for a card (SM-2 variant).

    Args:
        quality: Recall grade, 0-5. Grades below 3 count as a lapse.
        prior_easiness: Current easiness factor.
        prior_interval: Current interval in days (0 for a new card).
        prior_repetitions: Current count of consecutive passing reviews.
        now: Reference moment for ``next_review``. Defaults to the current UTC time.
        max_interval: Optional cap on the resulting interval. None means unbounded.

    Returns:
        A new CardScheduleState. Inputs are not validated.
    """
    easiness = prior_easiness

    if quality >= PASSING_QUALITY:
        if prior_repetitions < len(LEARNING_INTERVALS):
            interval = LEARNING_INTERVALS[prior_repetitions]
        else:
            interval = round_half_up(prior_interval * prior_easiness)

        repetitions = prior_repetitions + 1
        lapse = MAX_QUALITY - quality
        easiness = prior_easiness + (0.1 - lapse * (0.08 + lapse * 0.02))
    else:
        repetitions = 0
        interval = FAILED_INTERVAL

    if easiness < MIN_EASINESS:
        easiness = MIN_EASINESS

    if max_interval is not None and interval > max_interval:
        interval = max(FAILED_INTERVAL, max_interval)

    reference = as_utc(now or utcnow())
    logger.debug(
        f"q={quality} ef {prior_easiness:.2f}->{easiness:.2f} "
        f"ivl {prior_interval}->{interval} reps {prior_repetitions}->{repetitions}"
    )

    return CardScheduleState(
        easiness_factor=easiness,
        interval=interval,
        repetitions=repetitions,
        next_review=reference + timedelta(days=interval),
    )


def review(
    state: CardScheduleState,
    outcome: ReviewOutcome,
    *,
    now: datetime | None = None,
    max_interval: int | None = None,
    fast_ms: int = FAST_ANSWER_MS,
    slow_ms: int = SLOW_ANSWER_MS,
) -> tuple[int, CardScheduleState]:
    """
    Grade an answer and schedule the card in one step.

    Returns:
        (quality, next_state)
    """
    quality = estimate_quality(
        outcome.was_correct,
        outcome.response_latency_ms,
        fast_ms=fast_ms,
        slow_ms=slow_ms,
    )
    next_state = schedule(
        quality,
        state.easiness_factor,
        state.interval,
        state.repetitions,
        now=now,
        max_interval=max_interval,
    )
    return quality, next_state

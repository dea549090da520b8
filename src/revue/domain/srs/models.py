"""
Domain models for spaced-repetition scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal

from revue.domain.constants import DEFAULT_EASINESS

StudyMode = Literal["study", "test"]


@dataclass(frozen=True)
class CardScheduleState:
    """
    Scheduling state for a single card.

    Owned and persisted by the caller. The scheduler only reads it and
    returns a fresh instance.

    Attributes:
        easiness_factor: Interval growth multiplier, never below 1.3.
        interval: Days until the next review.
        repetitions: Consecutive passing reviews (quality >= 3).
        next_review: When the card is next due. None for a card never reviewed.
    """

    easiness_factor: float
    interval: int
    repetitions: int
    next_review: datetime | None = None

    @classmethod
    def initial(cls, easiness_factor: float = DEFAULT_EASINESS) -> "CardScheduleState":
        """State for a card that has not been reviewed yet."""
        return cls(easiness_factor=easiness_factor, interval=0, repetitions=0)


@dataclass(frozen=True)
class ReviewOutcome:
    """
    What was observed when the user answered a card.

    Attributes:
        was_correct: Whether the answer matched the expected one.
        response_latency_ms: Time taken to answer, in milliseconds.
    """

    was_correct: bool
    response_latency_ms: int


@dataclass(frozen=True)
class ReviewRecord:
    """
    A single review log entry.

    Attributes:
        review_id: ULID of this review.
        card_id: The card that was reviewed.
        session_id: Session the review belongs to.
        quality: Grade assigned (0-5).
        response_latency_ms: Time taken to answer.
        was_correct: Whether the answer matched.
        reviewed_at: When the review happened.
        before: Scheduling state prior to the review.
        after: Scheduling state produced by the review.
    """

    review_id: str
    card_id: str
    session_id: str
    quality: int
    response_latency_ms: int
    was_correct: bool
    reviewed_at: datetime
    before: CardScheduleState
    after: CardScheduleState


@dataclass(frozen=True)
class SessionSummary:
    """Aggregate numbers for a finished study session."""

    session_id: str
    mode: StudyMode
    started_at: datetime
    ended_at: datetime
    cards_reviewed: int
    cards_correct: int
    duration_seconds: int

    @property
    def accuracy(self) -> float:
        if self.cards_reviewed == 0:
            return 0.0
        return self.cards_correct / self.cards_reviewed


@dataclass(frozen=True)
class StudyStats:
    """
    Running per-learner aggregate, updated once per finished session.

    Attributes:
        total_reviews: Reviews across all sessions.
        retention_rate: Running retention, folded in by merge_retention_rate.
        last_study_date: Calendar day (UTC) of the most recent session.
    """

    total_reviews: int = 0
    retention_rate: float = 0.0
    last_study_date: date | None = None

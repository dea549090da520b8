"""
Study session tracking.

Grades each answer, schedules the card, and keeps the running numbers
the caller stores as the session aggregate. Persistence of the returned
records is left to the caller.
"""

import logging
from datetime import datetime, timezone

from ulid import ULID

from revue.application.config import AppConfig
from revue.application.srs.scheduler import as_utc, review, utcnow
from revue.domain.errors import SessionClosedError
from revue.domain.srs.models import (
    CardScheduleState,
    ReviewOutcome,
    ReviewRecord,
    SessionSummary,
    StudyMode,
    StudyStats,
)

logger = logging.getLogger(__name__)


def generate_id(prefix: str) -> str:
    """Generate a sortable ID using ULID."""
    return f"{prefix}_{ULID()}"


def check_answer(given: str, expected: str) -> bool:
    """
    Typed-answer check for test mode: case-insensitive, ignoring
    surrounding whitespace on both sides (stray spaces in stored
    translations do not fail an otherwise correct answer).
    """
    return given.strip().lower() == expected.strip().lower()


def merge_retention_rate(previous: float, session_accuracy: float) -> float:
    """Fold one session's accuracy into the running retention rate."""
    return (previous + session_accuracy) / 2


def apply_session(stats: StudyStats, summary: SessionSummary) -> StudyStats:
    """
    Fold a finished session into the learner's running aggregate.

    Adds the session's reviews to the total, merges its accuracy into the
    retention rate and stamps the UTC day the session ended.
    """
    return StudyStats(
        total_reviews=stats.total_reviews + summary.cards_reviewed,
        retention_rate=merge_retention_rate(stats.retention_rate, summary.accuracy),
        last_study_date=as_utc(summary.ended_at).astimezone(timezone.utc).date(),
    )


class StudySession:
    """
    One sitting of reviews.

    Not thread-safe; a session belongs to a single caller.
    """

    def __init__(
        self,
        mode: StudyMode = "study",
        session_id: str | None = None,
        started_at: datetime | None = None,
        config: AppConfig | None = None,
    ):
        self.mode = mode
        self.session_id = session_id or generate_id("session")
        self.started_at = as_utc(started_at or utcnow())
        self._config = config or AppConfig()
        self._reviewed = 0
        self._correct = 0
        self._summary: SessionSummary | None = None

    @property
    def reviewed(self) -> int:
        return self._reviewed

    @property
    def correct(self) -> int:
        return self._correct

    @property
    def accuracy(self) -> float:
        if self._reviewed == 0:
            return 0.0
        return self._correct / self._reviewed

    @property
    def finished(self) -> bool:
        return self._summary is not None

    def answer(
        self,
        card_id: str,
        state: CardScheduleState,
        was_correct: bool,
        response_latency_ms: int,
        now: datetime | None = None,
    ) -> ReviewRecord:
        """
        Record an answer for a card and return the review log entry.

        The record's ``after`` field is the state the caller should persist.

        Raises:
            SessionClosedError: If the session has already been finished.
        """
        if self.finished:
            raise SessionClosedError(self.session_id)

        reviewed_at = as_utc(now or utcnow())
        outcome = ReviewOutcome(was_correct=was_correct, response_latency_ms=response_latency_ms)
        quality, next_state = review(
            state,
            outcome,
            now=reviewed_at,
            max_interval=self._config.max_interval_days,
            fast_ms=self._config.fast_answer_ms,
            slow_ms=self._config.slow_answer_ms,
        )

        self._reviewed += 1
        if was_correct:
            self._correct += 1

        logger.info(
            f"Session {self.session_id}: card {card_id} graded {quality}, "
            f"next in {next_state.interval}d"
        )

        return ReviewRecord(
            review_id=generate_id("review"),
            card_id=card_id,
            session_id=self.session_id,
            quality=quality,
            response_latency_ms=response_latency_ms,
            was_correct=was_correct,
            reviewed_at=reviewed_at,
            before=state,
            after=next_state,
        )

    def finish(self, now: datetime | None = None) -> SessionSummary:
        """Close the session. Calling again returns the same summary."""
        if self._summary is not None:
            return self._summary

        ended_at = as_utc(now or utcnow())
        self._summary = SessionSummary(
            session_id=self.session_id,
            mode=self.mode,
            started_at=self.started_at,
            ended_at=ended_at,
            cards_reviewed=self._reviewed,
            cards_correct=self._correct,
            duration_seconds=max(0, int((ended_at - self.started_at).total_seconds())),
        )
        logger.info(
            f"Session {self.session_id} finished: "
            f"{self._correct}/{self._reviewed} correct in {self._summary.duration_seconds}s"
        )
        return self._summary

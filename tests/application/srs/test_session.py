from datetime import date, datetime, timedelta, timezone

import pytest

from revue.application.config import AppConfig
from revue.application.srs.session import (
    StudySession,
    apply_session,
    check_answer,
    merge_retention_rate,
)
from revue.domain.errors import RevueError, SessionClosedError
from revue.domain.srs.models import CardScheduleState, SessionSummary, StudyStats


@pytest.fixture
def session(now):
    return StudySession(mode="study", started_at=now)


# ---------- Answer checking ----------


def test_check_answer_ignores_case_and_whitespace():
    assert check_answer("  Bonjour ", "bonjour")
    assert check_answer("HELLO", "hello")
    assert not check_answer("bonsoir", "bonjour")
    assert not check_answer("", "bonjour")


def test_check_answer_trims_stored_answer():
    assert check_answer("bonjour", " Bonjour  ")
    assert not check_answer("bon jour", "bonjour")


# ---------- Retention ----------


def test_merge_retention_rate_averages():
    assert merge_retention_rate(0.8, 0.6) == pytest.approx(0.7)
    assert merge_retention_rate(0.0, 1.0) == 0.5


def _summary(ended_at, reviewed=2, correct=1):
    return SessionSummary(
        session_id="session_x",
        mode="study",
        started_at=ended_at - timedelta(minutes=5),
        ended_at=ended_at,
        cards_reviewed=reviewed,
        cards_correct=correct,
        duration_seconds=300,
    )


def test_apply_session_updates_totals(now):
    stats = apply_session(StudyStats(total_reviews=10, retention_rate=0.8), _summary(now))

    assert stats.total_reviews == 12
    assert stats.retention_rate == pytest.approx(0.65)
    assert stats.last_study_date == date(2026, 1, 31)


def test_apply_session_from_empty_stats(now):
    stats = apply_session(StudyStats(), _summary(now, reviewed=4, correct=4))

    assert stats.total_reviews == 4
    assert stats.retention_rate == 0.5
    assert stats.last_study_date == date(2026, 1, 31)


def test_apply_session_stamps_utc_day():
    tokyo = timezone(timedelta(hours=9))
    ended = datetime(2026, 2, 1, 3, 0, tzinfo=tokyo)

    stats = apply_session(StudyStats(), _summary(ended))

    assert stats.last_study_date == date(2026, 1, 31)


def test_apply_session_chains_with_finish(session, now):
    session.answer("a", CardScheduleState.initial(), True, 1000, now=now)
    stats = apply_session(StudyStats(), session.finish(now=now))

    assert stats.total_reviews == 1
    assert stats.retention_rate == 0.5


# ---------- StudySession ----------


def test_new_session_has_ids_and_zero_counts(session):
    assert session.session_id.startswith("session_")
    assert session.reviewed == 0
    assert session.correct == 0
    assert session.accuracy == 0.0
    assert not session.finished


def test_answer_returns_review_record(session, now):
    prior = CardScheduleState.initial()
    record = session.answer("card-1", prior, True, 1200, now=now)

    assert record.review_id.startswith("review_")
    assert record.card_id == "card-1"
    assert record.session_id == session.session_id
    assert record.quality == 5
    assert record.was_correct is True
    assert record.response_latency_ms == 1200
    assert record.reviewed_at == now
    assert record.before is prior
    assert record.after.interval == 1
    assert record.after.repetitions == 1
    assert record.after.next_review == now + timedelta(days=1)


def test_answer_counts_reviewed_and_correct(session, now):
    state = CardScheduleState.initial()
    session.answer("a", state, True, 1000, now=now)
    session.answer("b", state, False, 1000, now=now)
    session.answer("c", state, True, 7000, now=now)

    assert session.reviewed == 3
    assert session.correct == 2
    assert session.accuracy == pytest.approx(2 / 3)


def test_review_ids_are_unique(session, now):
    state = CardScheduleState.initial()
    ids = {session.answer("a", state, True, 1000, now=now).review_id for _ in range(5)}
    assert len(ids) == 5


def test_session_uses_config(now):
    config = AppConfig(fast_answer_ms=500, slow_answer_ms=1000, max_interval_days=10)
    session = StudySession(started_at=now, config=config)

    record = session.answer("a", CardScheduleState.initial(), True, 700, now=now)
    assert record.quality == 4

    mature = CardScheduleState(easiness_factor=2.5, interval=20, repetitions=5)
    assert session.answer("b", mature, True, 100, now=now).after.interval == 10


def test_finish_builds_summary(session, now):
    state = CardScheduleState.initial()
    session.answer("a", state, True, 1000, now=now)
    session.answer("b", state, False, 1000, now=now)

    summary = session.finish(now=now + timedelta(minutes=3, seconds=20))

    assert summary.session_id == session.session_id
    assert summary.mode == "study"
    assert summary.cards_reviewed == 2
    assert summary.cards_correct == 1
    assert summary.duration_seconds == 200
    assert summary.accuracy == 0.5
    assert session.finished


def test_finish_twice_returns_same_summary(session, now):
    first = session.finish(now=now)
    assert session.finish(now=now + timedelta(hours=1)) is first


def test_empty_session_accuracy_is_zero(session, now):
    summary = session.finish(now=now)
    assert summary.cards_reviewed == 0
    assert summary.accuracy == 0.0


def test_answer_after_finish_raises(session, now):
    session.finish(now=now)
    with pytest.raises(SessionClosedError) as exc:
        session.answer("a", CardScheduleState.initial(), True, 1000, now=now)
    assert isinstance(exc.value, RevueError)
    assert session.session_id in str(exc.value)

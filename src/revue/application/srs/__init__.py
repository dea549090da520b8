# Application SRS Package
from .due import is_due, select_due_cards
from .scheduler import estimate_quality, review, round_half_up, schedule
from .session import StudySession, apply_session, check_answer, merge_retention_rate

__all__ = [
    "estimate_quality",
    "schedule",
    "review",
    "round_half_up",
    "is_due",
    "select_due_cards",
    "StudySession",
    "check_answer",
    "merge_retention_rate",
    "apply_session",
]

# Domain SRS Package
from .models import CardScheduleState, ReviewOutcome, ReviewRecord, SessionSummary, StudyStats

__all__ = ["CardScheduleState", "ReviewOutcome", "ReviewRecord", "SessionSummary", "StudyStats"]

import logging
import time
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, field_validator

from revue.application.srs.scheduler import as_utc
from revue.consts import VERSION
from revue.domain.constants import MAX_QUALITY, MIN_EASINESS, MIN_QUALITY

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("revue.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Revue Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("Revue Server shutting down...")


app = FastAPI(
    title="Revue Server",
    description="Spaced-repetition scheduling API.",
    version=VERSION,
    lifespan=lifespan,
)


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


class QualityRequest(BaseModel):
    was_correct: bool
    response_latency_ms: int = Field(ge=0)


class QualityResponse(BaseModel):
    quality: int


class CardState(BaseModel):
    easiness_factor: float = Field(ge=MIN_EASINESS)
    interval: int = Field(ge=0)
    repetitions: int = Field(ge=0)
    next_review: datetime | None = None


class ReferenceMoment(BaseModel):
    # If None, the server clock is used. Naive timestamps are taken as UTC.
    now: datetime | None = None

    @field_validator("now")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None


class ScheduleRequest(ReferenceMoment):
    quality: int = Field(ge=MIN_QUALITY, le=MAX_QUALITY)
    easiness_factor: float = Field(ge=MIN_EASINESS)
    interval: int = Field(ge=0)
    repetitions: int = Field(ge=0)


class ReviewRequest(ReferenceMoment):
    was_correct: bool
    response_latency_ms: int = Field(ge=0)
    easiness_factor: float | None = Field(default=None, ge=MIN_EASINESS)  # None: config default
    interval: int = Field(default=0, ge=0)
    repetitions: int = Field(default=0, ge=0)


class ReviewResponse(BaseModel):
    quality: int
    state: CardState


@app.post("/quality", response_model=QualityResponse)
async def grade_answer(req: QualityRequest):
    """Map an answer to a 0-5 recall grade."""
    from revue.application.config import resolve_config
    from revue.application.srs.scheduler import estimate_quality

    config = resolve_config()
    quality = estimate_quality(
        req.was_correct,
        req.response_latency_ms,
        fast_ms=config.fast_answer_ms,
        slow_ms=config.slow_answer_ms,
    )
    return QualityResponse(quality=quality)


@app.post("/schedule", response_model=CardState)
async def schedule_card(req: ScheduleRequest):
    """Compute the next scheduling state for a card."""
    from revue.application.config import resolve_config
    from revue.application.srs.scheduler import schedule

    try:
        config = resolve_config()
        state = schedule(
            req.quality,
            req.easiness_factor,
            req.interval,
            req.repetitions,
            now=req.now,
            max_interval=config.max_interval_days,
        )
        return CardState(**asdict(state))
    except Exception as e:
        logger.error(f"Schedule failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.post("/review", response_model=ReviewResponse)
async def review_card(req: ReviewRequest):
    """Grade an answer and schedule the card in one step."""
    from revue.application.config import resolve_config
    from revue.application.srs.scheduler import review
    from revue.domain.srs.models import CardScheduleState, ReviewOutcome

    logger.info(f"Review requested via API: {req}")

    try:
        config = resolve_config()
        prior = CardScheduleState(
            easiness_factor=(
                req.easiness_factor
                if req.easiness_factor is not None
                else config.default_easiness
            ),
            interval=req.interval,
            repetitions=req.repetitions,
        )
        quality, state = review(
            prior,
            ReviewOutcome(was_correct=req.was_correct, response_latency_ms=req.response_latency_ms),
            now=req.now,
            max_interval=config.max_interval_days,
            fast_ms=config.fast_answer_ms,
            slow_ms=config.slow_answer_ms,
        )
        return ReviewResponse(quality=quality, state=CardState(**asdict(state)))
    except Exception as e:
        logger.error(f"Review failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e

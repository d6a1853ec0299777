import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Annotated, Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from cadence.application import scheduler
from cadence.application.config import resolve_config
from cadence.application.stats import metrics_calculator as metrics
from cadence.application.utils.clock import ensure_utc, resolve_now
from cadence.consts import VERSION
from cadence.domain.constants import DEFAULT_EASE_FACTOR, INITIAL_INTERVAL, MIN_EASE_FACTOR
from cadence.domain.errors import InvalidRating
from cadence.domain.models import ReviewCard, ReviewEvent

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cadence.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"cadence server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("cadence server shutting down...")


app = FastAPI(
    title="cadence",
    description="Stateless SM-2 scheduling API.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class CardModel(BaseModel):
    id: str | None = None
    interval: Annotated[int, Field(ge=1)] = INITIAL_INTERVAL
    repetition: Annotated[int, Field(ge=0)] = 0
    ease_factor: Annotated[float, Field(ge=MIN_EASE_FACTOR)] = DEFAULT_EASE_FACTOR
    next_review: datetime

    def to_domain(self) -> ReviewCard:
        return ReviewCard(
            interval=self.interval,
            repetition=self.repetition,
            ease_factor=self.ease_factor,
            next_review=self.next_review,
            card_id=self.id,
        )

    @classmethod
    def from_domain(cls, card: ReviewCard) -> "CardModel":
        return cls(
            id=card.card_id,
            interval=card.interval,
            repetition=card.repetition,
            ease_factor=card.ease_factor,
            next_review=card.next_review,
        )


class EventModel(BaseModel):
    rating: Annotated[int, Field(ge=0, le=5)]
    reviewed_at: datetime
    time_spent: float | None = None
    card_id: str | None = None

    def to_domain(self) -> ReviewEvent:
        return ReviewEvent(
            rating=self.rating,
            reviewed_at=self.reviewed_at,
            time_spent=self.time_spent,
            card_id=self.card_id,
        )


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ReviewRequest(BaseModel):
    card: CardModel
    # Left uncoerced so the scheduler rejects bools, strings and floats as InvalidRating
    rating: Any
    now: datetime | None = None


class QueueRequest(BaseModel):
    cards: list[CardModel]
    now: datetime | None = None
    due_only: bool = True
    limit: Annotated[int | None, Field(gt=0)] = None


class StatsRequest(BaseModel):
    events: list[EventModel]
    card: CardModel | None = None
    now: datetime | None = None


class StatsResponse(BaseModel):
    total_reviews: int
    retention: float
    streak: int
    average_rating: float
    study_streak_days: int
    is_due: bool | None = None


class PlanRequest(BaseModel):
    due_count: int


class PlanResponse(BaseModel):
    sessions_per_day: int
    cards_per_session: int
    estimated_minutes: float


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/cards/new", response_model=CardModel)
async def create_card():
    return CardModel.from_domain(scheduler.new_card())


@app.post("/review", response_model=CardModel)
async def review_card(req: ReviewRequest):
    """
    Compute the card's next state. Nothing is stored; the caller persists the result.
    """
    try:
        card = scheduler.compute_next(req.card.to_domain(), req.rating, req.now)
    except InvalidRating as e:
        logger.info(f"Rejected review: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e
    return CardModel.from_domain(card)


@app.post("/queue", response_model=list[CardModel])
async def build_queue(req: QueueRequest):
    """Order cards for a session: most overdue first, then lowest ease."""
    now = resolve_now(req.now)
    cards = [c.to_domain() for c in req.cards]
    if req.due_only:
        cards = scheduler.select_due(cards, now)
    ordered = scheduler.prioritize(cards, now)
    if req.limit is not None:
        ordered = ordered[: req.limit]
    return [CardModel.from_domain(c) for c in ordered]


@app.post("/stats", response_model=StatsResponse)
async def compute_stats(req: StatsRequest):
    events = sorted(
        (e.to_domain() for e in req.events), key=lambda e: ensure_utc(e.reviewed_at)
    )
    return StatsResponse(
        total_reviews=len(events),
        retention=metrics.retention(events),
        streak=metrics.current_streak(events),
        average_rating=metrics.average_rating(events),
        study_streak_days=metrics.study_day_streak(events, req.now),
        is_due=scheduler.is_due(req.card.to_domain(), req.now) if req.card else None,
    )


@app.post("/plan", response_model=PlanResponse)
async def plan_sessions(req: PlanRequest):
    config = resolve_config()
    rec = metrics.study_recommendation(
        req.due_count,
        max_cards_per_session=config.max_cards_per_session,
        minutes_per_card=config.minutes_per_card,
        max_sessions_per_day=config.max_sessions_per_day,
    )
    return PlanResponse(
        sessions_per_day=rec.sessions_per_day,
        cards_per_session=rec.cards_per_session,
        estimated_minutes=rec.estimated_minutes,
    )

"""Due-card selection over caller-supplied scheduling states."""

from collections.abc import Hashable, Iterable
from datetime import datetime
from typing import TypeVar

from revue.application.srs.scheduler import as_utc, utcnow
from revue.domain.constants import DEFAULT_DUE_LIMIT
from revue.domain.srs.models import CardScheduleState

K = TypeVar("K", bound=Hashable)


def is_due(state: CardScheduleState, now: datetime | None = None) -> bool:
    """
    A card is due once its next review has passed. Unreviewed cards are always due.

    Naive timestamps on either side are read as UTC.
    """
    if state.next_review is None:
        return True
    return as_utc(state.next_review) <= as_utc(now or utcnow())


def select_due_cards(
    cards: Iterable[tuple[K, CardScheduleState]],
    now: datetime | None = None,
    limit: int | None = DEFAULT_DUE_LIMIT,
) -> list[tuple[K, CardScheduleState]]:
    """
    Pick the cards that are due, most overdue first.

    Args:
        cards: (card_id, state) pairs.
        now: Reference moment. Defaults to the current UTC time.
        limit: Maximum number of cards returned. None for no limit.

    Returns:
        Due (card_id, state) pairs ordered by next_review ascending,
        never-reviewed cards first.
    """
    reference = as_utc(now or utcnow())
    due = [(cid, state) for cid, state in cards if is_due(state, reference)]
    # Unreviewed cards sort ahead of everything; ties keep input order.
    due.sort(
        key=lambda item: (
            item[1].next_review is not None,
            as_utc(item[1].next_review or reference),
        )
    )

    if limit is not None:
        return due[:limit]
    return due

"""Due-card selection for review sessions."""
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, Sequence

from vocab_tutor.config import DEFAULT_CONFIG, SchedulerConfig
from vocab_tutor.errors import InvalidArgument
from vocab_tutor.models import Item, SchedulingRecord

logger = logging.getLogger(__name__)


def _due_order(record: SchedulingRecord):
    return (record.due_at, record.item_id)


def new_card_cap(limit: int, config: SchedulerConfig = DEFAULT_CONFIG) -> int:
    """Most new cards allowed among `limit` cards: one per `reviews_per_new_card` reviews."""
    return limit // (config.reviews_per_new_card + 1)


def interleave(reviews: Sequence, new: Sequence, every: int) -> list:
    """Place one new card after every `every` review cards; leftovers go last."""
    merged = []
    pending = list(new)
    for i, card in enumerate(reviews, 1):
        merged.append(card)
        if pending and every > 0 and i % every == 0:
            merged.append(pending.pop(0))
    merged.extend(pending)
    return merged


def select_due(
    records: Iterable[SchedulingRecord],
    now: datetime,
    limit: int,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> list[int]:
    """Return the ordered item ids to review at `now`, at most `limit` of them.

    Due records are taken most overdue first (ties by item id). Never-reviewed
    cards are capped and spread among the review cards.
    """
    if limit <= 0:
        raise InvalidArgument(f"session limit must be positive, got {limit}")

    due = sorted((r for r in records if r.is_due(now)), key=_due_order)
    reviews = [r for r in due if not r.is_new]
    new = [r for r in due if r.is_new]

    allowance = new_card_cap(limit, config)
    if not allowance and len(reviews) < limit:
        # too few reviews to fill the session; admit one new card
        allowance = 1
    new_taken = new[:allowance]
    reviews_taken = reviews[: limit - len(new_taken)]
    queue = interleave(reviews_taken, new_taken, config.reviews_per_new_card)

    logger.debug(
        "selected %d cards (%d review, %d new) from %d due",
        len(queue), len(reviews_taken), len(new_taken), len(due),
    )
    return [r.item_id for r in queue]


def filter_by_tags(
    pairs: Iterable[tuple[Item, SchedulingRecord]], tags: Iterable[str] | None
) -> list[tuple[Item, SchedulingRecord]]:
    """Keep pairs whose item carries any of `tags`. No tags keeps everything."""
    wanted = {t.strip().lower() for t in tags or () if t.strip()}
    if not wanted:
        return list(pairs)
    return [(item, rec) for item, rec in pairs if wanted & {t.lower() for t in item.tags}]


def count_due(records: Iterable[SchedulingRecord], now: datetime) -> int:
    return sum(1 for r in records if r.is_due(now))


def forecast(records: Iterable[SchedulingRecord], now: datetime, days: int = 7) -> list[int]:
    """Cards falling due on each of the next `days` days. Day 0 includes overdue cards."""
    if days <= 0:
        raise InvalidArgument(f"forecast days must be positive, got {days}")
    counts = Counter()
    for r in records:
        offset = max(0, (r.due_at - now) // timedelta(days=1))
        if offset < days:
            counts[offset] += 1
    return [counts[d] for d in range(days)]

"""SM-2 spaced repetition algorithm."""
import math
from dataclasses import replace
from datetime import datetime, timedelta

from vocab_tutor.config import DEFAULT_CONFIG, SchedulerConfig
from vocab_tutor.models import Rating, SchedulingRecord


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def new_record(item_id: int, now: datetime, config: SchedulerConfig = DEFAULT_CONFIG) -> SchedulingRecord:
    """Scheduling record for a card that has never been reviewed. Due immediately."""
    return SchedulingRecord(
        item_id=item_id,
        due_at=now,
        interval_days=0,
        ease_factor=config.starting_ease,
        repetitions=0,
        lapses=0,
        last_reviewed_at=None,
    )


def next_record(
    current: SchedulingRecord,
    rating: Rating,
    now: datetime,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> SchedulingRecord:
    """Calculate the record that follows a review rated `rating` at `now`.

    Args:
        current: Scheduling state before the review.
        rating: Recall quality.
        now: Review time; the new due date is measured from here.
        config: Ease and interval constants.

    Returns:
        A new SchedulingRecord. Never fails; an ease below the floor
        (including a negative one) is clamped before use.
    """
    floor = config.ease_floor
    ease = max(floor, current.ease_factor)
    previous = max(0.0, current.interval_days)
    repetitions = current.repetitions
    lapses = current.lapses

    if rating is Rating.AGAIN:
        # Lapse: restart the streak at a short interval
        repetitions = 0
        lapses += 1
        ease = max(floor, ease - config.again_ease_penalty)
        interval = config.again_interval_days
    elif rating is Rating.HARD:
        repetitions += 1
        ease = max(floor, ease - config.hard_ease_penalty)
        interval = previous * config.hard_interval_multiplier
    elif rating is Rating.GOOD:
        repetitions += 1
        interval = previous * ease if repetitions > 1 else 1
    else:
        repetitions += 1
        ease = ease + config.easy_ease_bonus
        if repetitions > 1:
            interval = previous * ease * config.easy_bonus
        else:
            interval = config.first_easy_interval_days

    interval_days = max(1, round_half_up(interval))

    return replace(
        current,
        due_at=now + timedelta(days=interval_days),
        interval_days=interval_days,
        ease_factor=round(ease, 2),
        repetitions=repetitions,
        lapses=lapses,
        last_reviewed_at=now,
    )

"""Session summary statistics derived from the review log."""
from typing import Iterable

from vocab_tutor.models import Rating, ReviewOutcome, SessionSummary


def summarize(outcomes: Iterable[ReviewOutcome]) -> SessionSummary:
    outcomes = tuple(outcomes)
    by_rating = {rating: 0 for rating in Rating}
    for outcome in outcomes:
        by_rating[outcome.rating] += 1
    reviewed = len(outcomes)
    recalled = by_rating[Rating.GOOD] + by_rating[Rating.EASY]
    return SessionSummary(
        reviewed=reviewed,
        accuracy=recalled / reviewed if reviewed else 0.0,
        by_rating=by_rating,
        outcomes=outcomes,
    )


def outcome_rows(summary: SessionSummary) -> list[dict]:
    """Flatten the outcome log for display or export."""
    return [
        {
            "order": o.order,
            "item_id": o.item_id,
            "prompt": o.prompt_shown,
            "answer": o.answer_shown,
            "rating": o.rating.value,
            "interval_days": o.scheduled_interval_after,
            "persisted": o.persisted,
        }
        for o in summary.outcomes
    ]

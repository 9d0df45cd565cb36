"""Deck-wide statistics: workload, maturity, retention and leeches."""
from datetime import datetime

from vocab_tutor.scheduler import count_due, forecast


def get_retention_label(percent: float) -> str:
    if percent >= 90:
        return "EXCELLENT"
    elif percent >= 80:
        return "GOOD"
    elif percent >= 65:
        return "FAIR"
    return "STRUGGLING"


def get_retention_color(percent: float) -> str:
    if percent >= 90:
        return "green"
    elif percent >= 80:
        return "cyan"
    elif percent >= 65:
        return "yellow"
    return "red"


def _retention(store) -> float:
    row = store.conn.execute(
        "SELECT COUNT(*) as t, SUM(CASE WHEN rating IN ('good', 'easy') THEN 1 ELSE 0 END) as c FROM review_log"
    ).fetchone()
    if not row["t"]:
        return 0.0
    return round((row["c"] / row["t"]) * 100, 1)


def deck_stats(store, now: datetime) -> dict:
    records = [record for _, record in store.list_items_with_records()]
    mature_after = store.config.mature_interval_days
    new = sum(1 for r in records if r.is_new)
    mature = sum(1 for r in records if not r.is_new and r.interval_days >= mature_after)
    reviews = store.conn.execute("SELECT COUNT(*) FROM review_log").fetchone()[0]
    return {
        "total": len(records),
        "new": new,
        "learning": len(records) - new - mature,
        "mature": mature,
        "due_now": count_due(records, now),
        "reviews_logged": reviews,
        "retention": _retention(store),
    }


def find_leeches(store) -> list[dict]:
    """Items that keep lapsing, worst first."""
    threshold = store.config.leech_threshold
    leeches = [
        {"item": item, "lapses": record.lapses, "ease_factor": record.ease_factor}
        for item, record in store.list_items_with_records()
        if record.lapses >= threshold
    ]
    return sorted(leeches, key=lambda x: (-x["lapses"], x["item"].id))


def due_forecast(store, now: datetime, days: int = 7) -> list[int]:
    return forecast([record for _, record in store.list_items_with_records()], now, days)

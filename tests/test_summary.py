# tests/test_summary.py
from vocab_tutor.models import Rating, ReviewOutcome
from vocab_tutor.summary import outcome_rows, summarize


def outcome(order, rating, persisted=True):
    return ReviewOutcome(
        item_id=order, rating=rating, prompt_shown=f"p{order}", answer_shown=f"a{order}",
        order=order, scheduled_interval_after=1, persisted=persisted,
    )


def test_summary_of_empty_log():
    summary = summarize([])
    assert summary.reviewed == 0
    assert summary.accuracy == 0.0
    assert summary.accuracy_percent == 0
    assert summary.by_rating == {r: 0 for r in Rating}
    assert summary.outcomes == ()


def test_accuracy_counts_good_and_easy():
    log = [
        outcome(1, Rating.GOOD),
        outcome(2, Rating.EASY),
        outcome(3, Rating.HARD),
        outcome(4, Rating.AGAIN),
        outcome(5, Rating.GOOD),
        outcome(6, Rating.AGAIN),
    ]
    summary = summarize(log)
    assert summary.reviewed == 6
    assert summary.accuracy == 3 / 6
    assert summary.accuracy_percent == 50
    assert summary.by_rating == {Rating.AGAIN: 2, Rating.HARD: 1, Rating.GOOD: 2, Rating.EASY: 1}


def test_summary_preserves_order():
    log = [outcome(1, Rating.HARD), outcome(2, Rating.EASY)]
    assert [o.order for o in summarize(log).outcomes] == [1, 2]


def test_unpersisted_count():
    summary = summarize([outcome(1, Rating.GOOD), outcome(2, Rating.GOOD, persisted=False)])
    assert summary.unpersisted == 1


def test_outcome_rows():
    rows = outcome_rows(summarize([outcome(1, Rating.EASY)]))
    assert rows == [{
        "order": 1, "item_id": 1, "prompt": "p1", "answer": "a1",
        "rating": "easy", "interval_days": 1, "persisted": True,
    }]


def test_rating_order():
    assert [r.rank for r in Rating] == [0, 1, 2, 3]
    assert Rating.AGAIN.rank < Rating.EASY.rank
    assert Rating.GOOD.is_success and not Rating.HARD.is_success

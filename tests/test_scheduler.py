# tests/test_scheduler.py
from datetime import timedelta

import pytest

from vocab_tutor.config import SchedulerConfig
from vocab_tutor.errors import InvalidArgument
from vocab_tutor.models import Item, SchedulingRecord
from vocab_tutor.scheduler import (
    count_due, filter_by_tags, forecast, interleave, new_card_cap, select_due,
)
from conftest import T0


def review(item_id, days_from_t0, interval=3):
    return SchedulingRecord(
        item_id=item_id,
        due_at=T0 + timedelta(days=days_from_t0),
        interval_days=interval,
        repetitions=1,
        last_reviewed_at=T0 - timedelta(days=interval),
    )


def new(item_id, days_from_t0=0):
    return SchedulingRecord(item_id=item_id, due_at=T0 + timedelta(days=days_from_t0))


def test_select_due_filters_and_orders_by_due_date():
    records = [review(1, 1), review(2, -1), review(3, -3)]
    assert select_due(records, T0, limit=10) == [3, 2]


def test_select_due_includes_cards_due_exactly_now():
    assert select_due([review(1, 0)], T0, limit=5) == [1]


def test_select_due_ties_broken_by_item_id():
    records = [review(9, -1), review(4, -1), review(6, -1)]
    assert select_due(records, T0, limit=10) == [4, 6, 9]


def test_select_due_is_pure():
    records = [review(i, -i) for i in range(1, 8)] + [new(i) for i in range(20, 25)]
    first = select_due(records, T0, limit=6)
    assert select_due(records, T0, limit=6) == first


def test_select_due_respects_limit():
    records = [review(i, -i) for i in range(1, 30)]
    assert len(select_due(records, T0, limit=5)) == 5


def test_select_due_returns_fewer_when_fewer_due():
    records = [review(1, -1), review(2, 5)]
    assert select_due(records, T0, limit=10) == [1]


def test_select_due_nothing_due():
    assert select_due([review(1, 2)], T0, limit=10) == []


@pytest.mark.parametrize("limit", [0, -3])
def test_select_due_rejects_non_positive_limit(limit):
    with pytest.raises(InvalidArgument):
        select_due([review(1, -1)], T0, limit=limit)


def test_interleave_caps_new_cards():
    """10 due reviews, 10 new, 1:4 ratio, limit 10: at most 2 new cards."""
    records = [review(i, -i) for i in range(1, 11)] + [new(i) for i in range(100, 110)]
    queue = select_due(records, T0, limit=10)
    assert len(queue) == 10
    assert len([i for i in queue if i >= 100]) <= 2


def test_new_cards_spread_among_reviews():
    records = [review(i, -10 + i) for i in range(1, 9)] + [new(100, -20), new(101, -20)]
    queue = select_due(records, T0, limit=10)
    assert queue == [1, 2, 3, 4, 100, 5, 6, 7, 8, 101]


def test_lapsed_cards_count_as_reviews():
    lapsed = SchedulingRecord(item_id=5, due_at=T0 - timedelta(days=1), interval_days=1,
                              repetitions=0, lapses=1, last_reviewed_at=T0 - timedelta(days=1))
    records = [lapsed] + [new(i) for i in range(10, 20)]
    queue = select_due(records, T0, limit=5)
    assert queue[0] == 5
    assert len(queue) == 2  # one lapsed review + the one new card a 5-card session allows


def test_only_new_cards_still_yields_a_session():
    records = [new(i) for i in range(1, 20)]
    assert select_due(records, T0, limit=10) == [1, 2]


def test_new_card_cap():
    assert new_card_cap(10) == 2
    assert new_card_cap(5) == 1
    assert new_card_cap(3) == 0
    assert new_card_cap(20, SchedulerConfig(reviews_per_new_card=1)) == 10


def test_interleave_appends_leftovers():
    assert interleave(["a", "b"], ["x", "y"], every=4) == ["a", "b", "x", "y"]
    assert interleave(["a", "b", "c", "d"], ["x"], every=2) == ["a", "b", "x", "c", "d"]


def test_filter_by_tags():
    pairs = [
        (Item(1, "猫", "cat", tags=("animals",)), new(1)),
        (Item(2, "红", "red", tags=("colours", "HSK1")), new(2)),
        (Item(3, "跑", "run"), new(3)),
    ]
    assert [i.id for i, _ in filter_by_tags(pairs, ["hsk1"])] == [2]
    assert [i.id for i, _ in filter_by_tags(pairs, ["animals", "colours"])] == [1, 2]
    assert len(filter_by_tags(pairs, None)) == 3
    assert len(filter_by_tags(pairs, [" "])) == 3


def test_count_due():
    assert count_due([review(1, -1), review(2, 0), review(3, 1)], T0) == 2


def test_forecast_buckets_by_day():
    records = [review(1, -5), review(2, 0), review(3, 1), review(4, 1.5), review(5, 10)]
    assert forecast(records, T0, days=3) == [2, 2, 0]


def test_forecast_rejects_non_positive_days():
    with pytest.raises(InvalidArgument):
        forecast([], T0, days=0)


@pytest.mark.parametrize("limit, expected", [
    (1, [10]),
    (4, [10, 9, 8, 7]),
    (5, [10, 9, 8, 7, 100]),
])
def test_short_sessions_keep_most_overdue_reviews(limit, expected):
    records = [review(i, -i) for i in range(1, 11)] + [new(100)]
    assert select_due(records, T0, limit=limit) == expected


def test_short_session_admits_new_card_when_reviews_run_out():
    records = [review(1, -2), new(100), new(101)]
    assert select_due(records, T0, limit=3) == [1, 100]


def test_zero_reviews_per_new_card_allows_all_new():
    config = SchedulerConfig(reviews_per_new_card=0)
    records = [review(1, -1)] + [new(i) for i in range(10, 14)]
    assert select_due(records, T0, limit=5, config=config) == [1, 10, 11, 12, 13]


def test_negative_ratio_is_rejected_before_selection():
    with pytest.raises(InvalidArgument):
        select_due([new(1)], T0, 5, SchedulerConfig(reviews_per_new_card=-1))

# tests/test_config.py
import pytest

from vocab_tutor.config import (
    DEFAULT_CONFIG, SETTING_PREFIX, SchedulerConfig, clamp_session_size, load_config, save_config,
)
from vocab_tutor.errors import InvalidArgument


def test_defaults_follow_sm2():
    assert DEFAULT_CONFIG.starting_ease == 2.5
    assert DEFAULT_CONFIG.ease_floor == 1.3
    assert DEFAULT_CONFIG.reviews_per_new_card == 4


@pytest.mark.parametrize("raw, expected", [
    ("10", 10), (7, 7), (3.6, 4), ("0", 1), (-5, 1), ("abc", 1), (None, 1), ("500", 200), ("nan", 1),
])
def test_clamp_session_size(raw, expected):
    assert clamp_session_size(raw) == expected


def test_load_config_without_settings(store):
    assert load_config(store) == DEFAULT_CONFIG


def test_save_and_load_config(store):
    config = SchedulerConfig(session_size=25, ease_floor=1.5)
    save_config(store, config)
    assert load_config(store) == config


def test_load_config_ignores_bad_values(store):
    store.set_setting(SETTING_PREFIX + "session_size", "lots")
    store.set_setting(SETTING_PREFIX + "easy_bonus", "1.4")
    store.set_setting("unrelated", "x")
    config = load_config(store)
    assert config.session_size == DEFAULT_CONFIG.session_size
    assert config.easy_bonus == 1.4


@pytest.mark.parametrize("overrides", [
    {"reviews_per_new_card": -1},
    {"again_ease_penalty": -0.1},
    {"ease_floor": 0},
    {"starting_ease": float("nan")},
    {"max_session_size": 0},
    {"again_interval_days": 0},
])
def test_config_rejects_invalid_values(overrides):
    with pytest.raises(InvalidArgument):
        SchedulerConfig(**overrides)


def test_load_config_drops_rejected_values(store):
    store.set_setting(SETTING_PREFIX + "reviews_per_new_card", "-1")
    store.set_setting(SETTING_PREFIX + "ease_floor", "0")
    store.set_setting(SETTING_PREFIX + "session_size", "20")
    config = load_config(store)
    assert config.reviews_per_new_card == DEFAULT_CONFIG.reviews_per_new_card
    assert config.ease_floor == DEFAULT_CONFIG.ease_floor
    assert config.session_size == 20


def test_clamp_session_size_infinite():
    assert clamp_session_size(float("inf")) == 200
    assert clamp_session_size("-inf") == 1

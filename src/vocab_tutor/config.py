"""Tunable scheduling parameters, persisted in the settings table."""
import logging
import math
from dataclasses import dataclass, fields, replace
from pathlib import Path

from vocab_tutor.errors import InvalidArgument

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = str(Path.home() / ".vocab_tutor" / "vocab.db")

SETTING_PREFIX = "scheduler."

_NON_NEGATIVE = ("again_ease_penalty", "hard_ease_penalty", "easy_ease_bonus", "reviews_per_new_card")
_POSITIVE = ("starting_ease", "ease_floor", "hard_interval_multiplier", "easy_bonus")
_AT_LEAST_ONE = (
    "again_interval_days", "first_easy_interval_days", "session_size", "max_session_size",
    "leech_threshold", "mature_interval_days",
)


@dataclass(frozen=True)
class SchedulerConfig:
    starting_ease: float = 2.5
    ease_floor: float = 1.3
    again_ease_penalty: float = 0.2
    hard_ease_penalty: float = 0.15
    easy_ease_bonus: float = 0.15
    hard_interval_multiplier: float = 1.2
    easy_bonus: float = 1.3
    again_interval_days: int = 1
    first_easy_interval_days: int = 4
    reviews_per_new_card: int = 4
    session_size: int = 10
    max_session_size: int = 200
    leech_threshold: int = 8
    mature_interval_days: int = 21

    def __post_init__(self):
        for name in _NON_NEGATIVE:
            if not getattr(self, name) >= 0:
                raise InvalidArgument(f"{name} must not be negative, got {getattr(self, name)}")
        for name in _POSITIVE:
            if not getattr(self, name) > 0:
                raise InvalidArgument(f"{name} must be positive, got {getattr(self, name)}")
        for name in _AT_LEAST_ONE:
            if getattr(self, name) < 1:
                raise InvalidArgument(f"{name} must be at least 1, got {getattr(self, name)}")


DEFAULT_CONFIG = SchedulerConfig()


def clamp_session_size(value, config: SchedulerConfig = DEFAULT_CONFIG) -> int:
    """Coerce user input to a session size between 1 and max_session_size."""
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return 1
    if math.isnan(numeric) or numeric <= 0:
        return 1
    if not math.isfinite(numeric):
        return config.max_session_size
    return min(config.max_session_size, max(1, round(numeric)))


def load_config(store) -> SchedulerConfig:
    """Overlay stored settings onto the defaults.

    Values that do not parse, or that the config rejects, are skipped and
    the default is kept.
    """
    config = DEFAULT_CONFIG
    for f in fields(SchedulerConfig):
        raw = store.get_setting(SETTING_PREFIX + f.name)
        if raw is None:
            continue
        cast = type(getattr(DEFAULT_CONFIG, f.name))
        try:
            config = replace(config, **{f.name: cast(raw)})
        except (ValueError, InvalidArgument):
            logger.warning("ignoring invalid setting %s=%r", f.name, raw)
    return config


def save_config(store, config: SchedulerConfig) -> None:
    for f in fields(SchedulerConfig):
        store.set_setting(SETTING_PREFIX + f.name, str(getattr(config, f.name)))

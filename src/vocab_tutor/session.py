"""Review session state machine: prompt, reveal, rate."""
import logging
from dataclasses import replace
from typing import Iterable, Optional

from vocab_tutor.clock import Clock, utc_now
from vocab_tutor.config import SchedulerConfig
from vocab_tutor.errors import EmptyQueue, InvalidArgument, InvalidTransition, PersistenceFailure
from vocab_tutor.models import (
    CardState, Direction, Item, PromptMode, Rating, ReviewOutcome, SchedulingRecord,
    SessionState, SessionSummary,
)
from vocab_tutor.scheduler import filter_by_tags, select_due
from vocab_tutor.sm2 import next_record
from vocab_tutor.summary import summarize

logger = logging.getLogger(__name__)


def prompt_for(item: Item, direction: Direction, mode: PromptMode = PromptMode.TEXT) -> str:
    if direction is Direction.BACK_TO_FRONT:
        return item.back
    if mode is PromptMode.PHONETIC and item.phonetic:
        return item.phonetic
    return item.front


def answer_for(item: Item, direction: Direction) -> str:
    if direction is Direction.BACK_TO_FRONT:
        return f"{item.front} • {item.phonetic}" if item.phonetic else item.front
    return item.back


class ReviewSession:
    """Walks a queue of due cards one at a time.

    The session moves SETUP -> REVIEWING -> SUMMARY, or to ABANDONED from
    any non-terminal state. While reviewing, each card is first PROMPTED,
    then REVEALED, then rated. Every rating is written to the store before
    `rate()` returns; committed records are never rolled back.
    """

    def __init__(self, store, clock: Clock = utc_now, config: Optional[SchedulerConfig] = None):
        self.store = store
        self.clock = clock
        self.config = config or store.config
        self.state = SessionState.SETUP
        self.card_state: Optional[CardState] = None
        self.queue: tuple[int, ...] = ()
        self.cursor = 0
        self.direction = Direction.FRONT_TO_BACK
        self.prompt_mode = PromptMode.TEXT
        self._items: dict[int, Item] = {}
        self._records: dict[int, SchedulingRecord] = {}
        self._log: list[ReviewOutcome] = []
        self._pending: dict[int, SchedulingRecord] = {}

    def _require(self, action: str, card_state: CardState) -> None:
        if self.state is not SessionState.REVIEWING:
            raise InvalidTransition(action, self.state.value)
        if self.card_state is not card_state:
            raise InvalidTransition(action, self.card_state.value)

    def start(
        self,
        queue: Iterable[int],
        direction: Direction = Direction.FRONT_TO_BACK,
        prompt_mode: PromptMode = PromptMode.TEXT,
    ) -> None:
        if self.state is not SessionState.SETUP:
            raise InvalidTransition("start", self.state.value)
        queue = tuple(queue)
        if not queue:
            raise EmptyQueue("no cards are due for review")
        if len(set(queue)) != len(queue):
            raise InvalidArgument("review queue contains duplicate items")
        for item_id in queue:
            item, record = self.store.get_item_with_record(item_id)
            self._items[item_id] = item
            self._records[item_id] = record
        self.queue = queue
        self.direction = Direction(direction)
        self.prompt_mode = PromptMode(prompt_mode)
        self.cursor = 0
        self.state = SessionState.REVIEWING
        self.card_state = CardState.PROMPTED
        logger.info("review session started with %d cards", len(queue))

    @property
    def current_item(self) -> Optional[Item]:
        if self.state is not SessionState.REVIEWING:
            return None
        return self._items[self.queue[self.cursor]]

    @property
    def current_record(self) -> Optional[SchedulingRecord]:
        item = self.current_item
        return self._records[item.id] if item else None

    @property
    def current_prompt(self) -> Optional[str]:
        item = self.current_item
        return prompt_for(item, self.direction, self.prompt_mode) if item else None

    @property
    def current_answer(self) -> Optional[str]:
        item = self.current_item
        return answer_for(item, self.direction) if item else None

    def reveal(self) -> str:
        self._require("reveal", CardState.PROMPTED)
        self.card_state = CardState.REVEALED
        return self.current_answer

    def rate(self, rating: Rating) -> ReviewOutcome:
        """Schedule the current card, persist it and move to the next one.

        On a store failure the outcome is still logged (flagged as not
        persisted) and the session advances before PersistenceFailure is
        re-raised; `retry_persistence()` can reconcile it later.
        """
        self._require("rate", CardState.REVEALED)
        rating = Rating(rating)
        item = self.current_item
        now = self.clock()
        updated = next_record(self._records[item.id], rating, now, self.config)

        failure = None
        try:
            self.store.save_record(updated, rating=rating, reviewed_at=now)
        except PersistenceFailure as exc:
            failure = exc
            self._pending[len(self._log)] = updated

        outcome = ReviewOutcome(
            item_id=item.id,
            rating=rating,
            prompt_shown=self.current_prompt,
            answer_shown=self.current_answer,
            order=len(self._log) + 1,
            scheduled_interval_after=updated.interval_days,
            persisted=failure is None,
        )
        self._records[item.id] = updated
        self._log.append(outcome)

        self.cursor += 1
        if self.cursor == len(self.queue):
            self.state = SessionState.SUMMARY
            self.card_state = None
            logger.info("review session finished: %d cards", len(self._log))
        else:
            self.card_state = CardState.PROMPTED

        if failure is not None:
            raise failure
        return outcome

    def abandon(self) -> None:
        if self.state in (SessionState.SUMMARY, SessionState.ABANDONED):
            raise InvalidTransition("abandon", self.state.value)
        self.state = SessionState.ABANDONED
        self.card_state = None
        logger.info("review session abandoned after %d of %d cards", len(self._log), len(self.queue))

    def retry_persistence(self) -> int:
        """Re-attempt failed record writes. Returns how many are still unsaved."""
        if self.state is SessionState.ABANDONED:
            raise InvalidTransition("retry persistence", self.state.value)
        for index, record in sorted(self._pending.items()):
            outcome = self._log[index]
            try:
                self.store.save_record(record, rating=outcome.rating, reviewed_at=record.last_reviewed_at)
            except PersistenceFailure:
                continue
            self._log[index] = replace(outcome, persisted=True)
            del self._pending[index]
        return len(self._pending)

    @property
    def log(self) -> tuple[ReviewOutcome, ...]:
        return tuple(self._log)

    @property
    def unpersisted(self) -> list[ReviewOutcome]:
        return [o for o in self._log if not o.persisted]

    @property
    def summary(self) -> SessionSummary:
        return summarize(self._log)

    @property
    def progress(self) -> dict:
        total = len(self.queue)
        completed = len(self._log)
        return {
            "completed": completed,
            "total": total,
            "percent": round(completed / total * 100) if total else 0,
        }


def start_session(
    store,
    limit: int,
    direction: Direction = Direction.FRONT_TO_BACK,
    prompt_mode: PromptMode = PromptMode.TEXT,
    tags: Iterable[str] | None = None,
    clock: Clock = utc_now,
    config: Optional[SchedulerConfig] = None,
) -> ReviewSession:
    """Select due cards from the store and start a session over them."""
    config = config or store.config
    pairs = filter_by_tags(store.list_items_with_records(), tags)
    queue = select_due([record for _, record in pairs], clock(), limit, config)
    session = ReviewSession(store, clock=clock, config=config)
    session.start(queue, direction, prompt_mode)
    return session

"""SQLite-backed card store: item content, scheduling records and review history."""
import logging
import sqlite3
from datetime import datetime
from typing import Iterable, Optional

from vocab_tutor.clock import parse_timestamp, utc_now
from vocab_tutor.config import DEFAULT_CONFIG, DEFAULT_DB_PATH, SchedulerConfig
from vocab_tutor.db import get_connection, init_db
from vocab_tutor.errors import InvalidArgument, PersistenceFailure
from vocab_tutor.models import Item, Rating, SchedulingRecord
from vocab_tutor.sm2 import new_record

logger = logging.getLogger(__name__)


def _split_tags(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(t.strip() for t in raw.split(",") if t.strip())


def _join_tags(tags: Iterable[str]) -> str:
    return ",".join(t.strip() for t in tags if t.strip())


def _item_from_row(row) -> Item:
    return Item(
        id=row["id"],
        front=row["front"],
        back=row["back"],
        phonetic=row["phonetic"] or None,
        tags=_split_tags(row["tags"]),
    )


def _record_from_row(row) -> SchedulingRecord:
    return SchedulingRecord(
        item_id=row["item_id"],
        due_at=parse_timestamp(row["due_at"]),
        interval_days=row["interval_days"],
        ease_factor=row["ease_factor"],
        repetitions=row["repetitions"],
        lapses=row["lapses"],
        last_reviewed_at=parse_timestamp(row["last_reviewed_at"]),
    )


_ITEM_WITH_RECORD = """SELECT i.*, r.item_id, r.due_at, r.interval_days, r.ease_factor,
    r.repetitions, r.lapses, r.last_reviewed_at
    FROM items i JOIN scheduling_records r ON r.item_id = i.id"""

_UPSERT_RECORD = """INSERT INTO scheduling_records
    (item_id, due_at, interval_days, ease_factor, repetitions, lapses, last_reviewed_at)
    VALUES (?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(item_id) DO UPDATE SET
        due_at=excluded.due_at, interval_days=excluded.interval_days,
        ease_factor=excluded.ease_factor, repetitions=excluded.repetitions,
        lapses=excluded.lapses, last_reviewed_at=excluded.last_reviewed_at"""


def _record_params(record: SchedulingRecord) -> tuple:
    return (
        record.item_id,
        record.due_at.isoformat(),
        record.interval_days,
        record.ease_factor,
        record.repetitions,
        record.lapses,
        record.last_reviewed_at.isoformat() if record.last_reviewed_at else None,
    )


class CardStore:
    """Handle over one vocabulary database.

    Open once, pass it to whatever needs it, close on shutdown:

        with CardStore(db_path) as store:
            ...
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH, config: SchedulerConfig = DEFAULT_CONFIG):
        self.db_path = db_path
        self.config = config
        self._conn: Optional[sqlite3.Connection] = None

    def open(self) -> "CardStore":
        if self._conn is None:
            init_db(self.db_path)
            self._conn = get_connection(self.db_path)
            logger.debug("opened card store at %s", self.db_path)
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "CardStore":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("card store is not open")
        return self._conn

    # --- items ---

    def add_item(
        self,
        front: str,
        back: str,
        phonetic: str | None = None,
        tags: Iterable[str] = (),
        now: datetime | None = None,
    ) -> Item:
        """Insert an item together with its new-card scheduling record."""
        front, back = (front or "").strip(), (back or "").strip()
        if not front or not back:
            raise InvalidArgument("both front and back text are required")
        now = now or utc_now()
        stamp = now.isoformat()
        with self.conn:
            cursor = self.conn.execute(
                "INSERT INTO items (front, back, phonetic, tags, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
                (front, back, (phonetic or "").strip() or None, _join_tags(tags), stamp, stamp),
            )
            item_id = cursor.lastrowid
            self.conn.execute(_UPSERT_RECORD, _record_params(new_record(item_id, now, self.config)))
        return self.get_item(item_id)

    def get_item(self, item_id: int) -> Item:
        row = self.conn.execute("SELECT * FROM items WHERE id = ?", (item_id,)).fetchone()
        if row is None:
            raise KeyError(item_id)
        return _item_from_row(row)

    def list_items(self) -> list[Item]:
        rows = self.conn.execute("SELECT * FROM items ORDER BY created_at DESC, id DESC").fetchall()
        return [_item_from_row(r) for r in rows]

    def search_items(self, query: str) -> list[Item]:
        """Case-insensitive substring match on front or back text."""
        needle = query.strip().lower()
        return [i for i in self.list_items() if needle in i.front.lower() or needle in i.back.lower()]

    def update_item(
        self,
        item_id: int,
        front: str | None = None,
        back: str | None = None,
        phonetic: str | None = None,
        tags: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> Item:
        """Change an item's content. Arguments left as None keep their value.

        A blank phonetic clears it. The scheduling record is not touched.
        """
        current = self.get_item(item_id)
        front = current.front if front is None else front.strip()
        back = current.back if back is None else back.strip()
        if not front or not back:
            raise InvalidArgument("both front and back text are required")
        phonetic = current.phonetic if phonetic is None else phonetic.strip() or None
        tags = current.tags if tags is None else tags
        with self.conn:
            self.conn.execute(
                "UPDATE items SET front = ?, back = ?, phonetic = ?, tags = ?, updated_at = ? WHERE id = ?",
                (front, back, phonetic, _join_tags(tags), (now or utc_now()).isoformat(), item_id),
            )
        logger.debug("updated item %s", item_id)
        return self.get_item(item_id)

    def delete_item(self, item_id: int) -> None:
        with self.conn:
            cursor = self.conn.execute("DELETE FROM items WHERE id = ?", (item_id,))
        if cursor.rowcount == 0:
            raise KeyError(item_id)

    # --- scheduling records ---

    def list_items_with_records(self) -> list[tuple[Item, SchedulingRecord]]:
        rows = self.conn.execute(_ITEM_WITH_RECORD + " ORDER BY i.id").fetchall()
        return [(_item_from_row(r), _record_from_row(r)) for r in rows]

    def get_item_with_record(self, item_id: int) -> tuple[Item, SchedulingRecord]:
        row = self.conn.execute(_ITEM_WITH_RECORD + " WHERE i.id = ?", (item_id,)).fetchone()
        if row is None:
            raise KeyError(item_id)
        return _item_from_row(row), _record_from_row(row)

    def create_record_for_new_item(self, item_id: int, now: datetime) -> SchedulingRecord:
        record = new_record(item_id, now, self.config)
        self.save_record(record)
        return record

    def save_record(
        self,
        record: SchedulingRecord,
        rating: Rating | None = None,
        reviewed_at: datetime | None = None,
    ) -> None:
        """Upsert `record`; with a rating, also append to the review history.

        Both writes commit together. Raises PersistenceFailure on any
        database error.
        """
        try:
            with self.conn:
                self.conn.execute(_UPSERT_RECORD, _record_params(record))
                if rating is not None:
                    when = reviewed_at or record.last_reviewed_at or utc_now()
                    self.conn.execute(
                        "INSERT INTO review_log (item_id, rating, interval_days, ease_factor, reviewed_at) VALUES (?, ?, ?, ?, ?)",
                        (record.item_id, Rating(rating).value, record.interval_days, record.ease_factor, when.isoformat()),
                    )
        except sqlite3.Error as exc:
            logger.warning("could not save record for item %s: %s", record.item_id, exc)
            raise PersistenceFailure(record.item_id, str(exc)) from exc
        logger.debug("saved record for item %s, due %s", record.item_id, record.due_at.isoformat())

    def review_history(self, item_id: int | None = None) -> list[dict]:
        if item_id is None:
            rows = self.conn.execute("SELECT * FROM review_log ORDER BY reviewed_at, id").fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM review_log WHERE item_id = ? ORDER BY reviewed_at, id", (item_id,)
            ).fetchall()
        return [dict(r) for r in rows]

    # --- settings ---

    def get_setting(self, key: str, default: str | None = None) -> str | None:
        row = self.conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str) -> None:
        with self.conn:
            self.conn.execute(
                "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
                (key, value, value),
            )

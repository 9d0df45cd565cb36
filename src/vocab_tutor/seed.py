"""Seed an empty database with a small starter deck."""
from datetime import datetime

from vocab_tutor.store import CardStore

SAMPLE_DECK = [
    ("学习", "to study", "xuéxí"),
    ("朋友", "friend", "péngyou"),
    ("开心", "happy", "kāixīn"),
    ("今天", "today", "jīntiān"),
    ("咖啡", "coffee", "kāfēi"),
    ("工作", "work", "gōngzuò"),
    ("时间", "time", "shíjiān"),
    ("谢谢", "thank you", "xièxie"),
]


def is_seeded(store: CardStore) -> bool:
    """Check whether the database already holds any items."""
    count = store.conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]
    return count > 0


def seed_sample_deck(store: CardStore, now: datetime | None = None) -> int:
    """Insert the sample deck unless items already exist. Returns items added."""
    if is_seeded(store):
        return 0
    for front, back, phonetic in SAMPLE_DECK:
        store.add_item(front, back, phonetic=phonetic, tags=("sample",), now=now)
    return len(SAMPLE_DECK)

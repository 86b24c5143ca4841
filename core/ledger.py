"""Persistent word statistics, score and mistake history."""

import logging
import time

from .config import (
    PRIORITY_WORD_LIMIT, RECENT_FAILURE_WINDOW,
    WORD_STATS_KEY, SCORE_KEY, MISTAKES_KEY
)
from .interfaces import Storage, ProgressReporter, PriorityProvider
from .models import WordStat

logger = logging.getLogger(__name__)


def _load(storage: Storage, key: str, default):
    try:
        value = storage.get(key, default)
    except Exception as e:
        logger.error(f"Failed to load '{key}': {e}")
        return default
    return default if value is None else value


def _persist(storage: Storage, key: str, value) -> None:
    """Best-effort write. Errors are logged and dropped."""
    try:
        storage.set(key, value)
    except Exception as e:
        logger.error(f"Failed to persist '{key}': {e}")


class Ledger(PriorityProvider):
    """Tracks per-word quiz outcomes and picks the words that need reinforcement.

    The ledger is the only writer of word statistics. State is read once from
    storage when constructed and written back in full after every outcome.
    """

    def __init__(self, storage: Storage, clock=time.time):
        self.storage = storage
        self.clock = clock
        self.words: dict[str, WordStat] = {}
        for word, data in _load(storage, WORD_STATS_KEY, {}).items():
            try:
                self.words[word] = WordStat.from_dict(data)
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping unreadable stats for '{word}': {e}")

    def record_outcome(self, word: str, is_correct: bool) -> WordStat:
        now = self.clock()
        stat = self.words.get(word)
        if stat is None:
            stat = WordStat(last_seen=now)
            self.words[word] = stat
        stat.record(is_correct, now)
        _persist(self.storage, WORD_STATS_KEY, self.to_dict())
        return stat

    def get_prioritized_words(self) -> list[str]:
        now = self.clock()
        words = [
            word for word, stat in self.words.items()
            if stat.needs_practice(now, RECENT_FAILURE_WINDOW)
        ]
        return words[:PRIORITY_WORD_LIMIT]

    def get_stats(self, word: str) -> WordStat | None:
        return self.words.get(word)

    def to_dict(self) -> dict:
        return {word: stat.to_dict() for word, stat in self.words.items()}


class ScoreBoard:
    """Process-wide quiz score. Can go negative."""

    def __init__(self, storage: Storage):
        self.storage = storage
        try:
            self.score = int(_load(storage, SCORE_KEY, 0))
        except (TypeError, ValueError):
            self.score = 0

    def add(self, points: int) -> int:
        self.score += points
        _persist(self.storage, SCORE_KEY, self.score)
        return self.score


class MistakeHistory:
    """Cumulative miss count per word, kept apart from the win/loss ledger."""

    def __init__(self, storage: Storage):
        self.storage = storage
        self.counts: dict[str, int] = dict(_load(storage, MISTAKES_KEY, {}))

    def record(self, word: str) -> int:
        self.counts[word] = self.counts.get(word, 0) + 1
        _persist(self.storage, MISTAKES_KEY, self.counts)
        return self.counts[word]

    def top(self, limit: int = 10) -> list[tuple[str, int]]:
        """Most-missed words first."""
        return sorted(self.counts.items(), key=lambda item: item[1], reverse=True)[:limit]


class LocalProgress(ProgressReporter, PriorityProvider):
    """Wires quiz outcomes straight into local ledger, score and mistake history."""

    def __init__(self, storage: Storage, clock=time.time):
        self.ledger = Ledger(storage, clock=clock)
        self.scoreboard = ScoreBoard(storage)
        self.mistakes = MistakeHistory(storage)

    def record_outcome(self, word: str, is_correct: bool) -> None:
        self.ledger.record_outcome(word, is_correct)

    def add_score(self, points: int) -> int:
        return self.scoreboard.add(points)

    def record_mistake(self, word: str) -> None:
        self.mistakes.record(word)

    def get_prioritized_words(self) -> list[str]:
        return self.ledger.get_prioritized_words()

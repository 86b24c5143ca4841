"""Domain models for lingoghost."""

import json
import time

from .config import (
    DEFAULT_TARGET_LANGUAGE, DEFAULT_DENSITY, MAX_TRANSLATE_CHARS,
    DISTRACTOR_COUNT, CORRECT_POINTS, WRONG_PENALTY, POPUP_HIDE_DELAY
)


class WordStat:
    """Success/failure counters for a single word."""

    def __init__(self, success_count: int = 0, fail_count: int = 0, last_seen: float | None = None):
        self.success_count = success_count
        self.fail_count = fail_count
        self.last_seen = last_seen if last_seen is not None else time.time()

    def record(self, is_correct: bool, now: float) -> None:
        if is_correct:
            self.success_count += 1
        else:
            self.fail_count += 1
        self.last_seen = now

    def needs_practice(self, now: float, recent_window: float) -> bool:
        """Failed more often than passed, or failed at all within the recent window."""
        if self.fail_count > self.success_count:
            return True
        return self.fail_count > 0 and (now - self.last_seen) < recent_window

    def to_dict(self) -> dict:
        # Stored in the extension's original shape, lastSeen in epoch milliseconds
        return {
            'success': self.success_count,
            'fails': self.fail_count,
            'lastSeen': int(self.last_seen * 1000)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WordStat':
        last_seen = data.get('lastSeen')
        return cls(
            success_count=max(0, int(data.get('success', 0))),
            fail_count=max(0, int(data.get('fails', 0))),
            last_seen=last_seen / 1000 if last_seen is not None else None
        )


class ReplacementSpec:
    """A word chosen by the model together with its translation and distractors."""

    __slots__ = ('original', 'translated', 'alternatives')

    def __init__(self, original: str, translated: str, alternatives=()):
        self.original = original
        self.translated = translated
        self.alternatives = tuple(alternatives or ())

    def __eq__(self, other):
        if not isinstance(other, ReplacementSpec):
            return NotImplemented
        return (self.original, self.translated, self.alternatives) == \
            (other.original, other.translated, other.alternatives)

    def __hash__(self):
        return hash((self.original, self.translated, self.alternatives))

    def __repr__(self):
        return f"ReplacementSpec({self.original!r} -> {self.translated!r}, {list(self.alternatives)!r})"

    def to_dict(self) -> dict:
        return {
            'original': self.original,
            'translated': self.translated,
            'alternatives': list(self.alternatives)
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ReplacementSpec':
        alternatives = data.get('alternatives') or []
        return cls(
            str(data['original']),
            str(data['translated']),
            [str(a) for a in alternatives]
        )


class SampleBatch:
    """Text nodes collected in one harvesting pass."""

    def __init__(self, items: list | None = None):
        self.items = items or []  # [(text node, raw text)]

    @property
    def raw_text(self) -> str:
        return ''.join(text + ' ' for _, text in self.items)

    @property
    def combined_text(self) -> str:
        return self.raw_text[:MAX_TRANSLATE_CHARS]

    def __len__(self) -> int:
        return len(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)


class WidgetState:
    """An injected quiz word and whether it has been answered."""

    ACTIVE = 'active'
    REVEALED = 'revealed'

    def __init__(self, owner, original: str, translated: str, alternatives=()):
        self.owner = owner
        self.original = original
        self.translated = translated
        self.alternatives = list(alternatives)
        self.status = self.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == self.ACTIVE

    def reveal(self) -> bool:
        """Move to the terminal revealed state. Returns False if already revealed."""
        if self.status == self.REVEALED:
            return False
        self.status = self.REVEALED
        return True

    @classmethod
    def from_element(cls, element) -> 'WidgetState | None':
        """Rebuild state from the data attributes of a widget element."""
        original = element.get('data-original')
        if not original:
            return None
        try:
            alternatives = json.loads(element.get('data-alternatives') or '[]')
        except ValueError:
            alternatives = []
        return cls(element, original, element.get_text(), alternatives)


class EngineConfig:
    """Per-run engine settings. Changes apply on the next scheduler start."""

    def __init__(self, target_language: str = DEFAULT_TARGET_LANGUAGE,
                 density: int = DEFAULT_DENSITY, enabled: bool = True):
        self.target_language = target_language
        self.density = density
        self.enabled = enabled

    @classmethod
    def from_dict(cls, data: dict) -> 'EngineConfig':
        return cls(
            target_language=data.get('target_language') or DEFAULT_TARGET_LANGUAGE,
            density=int(data.get('density') or DEFAULT_DENSITY),
            enabled=data.get('engine_enabled', True) is not False
        )


class QuizSettings:
    """Interaction style of the quiz popups."""

    HOVER = 'hover'
    CLICK = 'click'
    REVERT = 'revert'
    LOCK = 'lock'

    def __init__(self, trigger: str = HOVER, distractor_count: int = DISTRACTOR_COUNT,
                 correct_points: int = CORRECT_POINTS, wrong_penalty: int = WRONG_PENALTY,
                 hide_delay: float = POPUP_HIDE_DELAY, reveal_mode: str = REVERT):
        if trigger not in (self.HOVER, self.CLICK):
            raise ValueError(f"Unknown quiz trigger: {trigger}")
        if reveal_mode not in (self.REVERT, self.LOCK):
            raise ValueError(f"Unknown reveal mode: {reveal_mode}")
        self.trigger = trigger
        self.distractor_count = distractor_count
        self.correct_points = correct_points
        self.wrong_penalty = wrong_penalty
        self.hide_delay = hide_delay
        self.reveal_mode = reveal_mode


class Rect:
    """Axis-aligned box in pixels."""

    __slots__ = ('top', 'left', 'bottom', 'right')

    def __init__(self, top: float, left: float, bottom: float, right: float):
        self.top = top
        self.left = left
        self.bottom = bottom
        self.right = right

    def __repr__(self):
        return f"Rect(top={self.top}, left={self.left}, bottom={self.bottom}, right={self.right})"

    def __eq__(self, other):
        if not isinstance(other, Rect):
            return NotImplemented
        return (self.top, self.left, self.bottom, self.right) == \
            (other.top, other.left, other.bottom, other.right)

    def shifted(self, dx: float, dy: float) -> 'Rect':
        return Rect(self.top + dy, self.left + dx, self.bottom + dy, self.right + dx)

    def union(self, other: 'Rect') -> 'Rect':
        return Rect(min(self.top, other.top), min(self.left, other.left),
                    max(self.bottom, other.bottom), max(self.right, other.right))

    def intersects(self, other: 'Rect') -> bool:
        return (self.left <= other.right and self.right >= other.left and
                self.top <= other.bottom and self.bottom >= other.top)


class Viewport:
    """Visible window onto the document."""

    def __init__(self, width: int = 1280, height: int = 800, scroll_x: int = 0, scroll_y: int = 0):
        self.width = width
        self.height = height
        self.scroll_x = scroll_x
        self.scroll_y = scroll_y

    def to_client(self, rect: Rect) -> Rect:
        """Convert a document rect to viewport-relative coordinates."""
        return rect.shifted(-self.scroll_x, -self.scroll_y)

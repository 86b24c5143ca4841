"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod

from .config import DEFAULT_DENSITY


class TranslationError(Exception):
    """Raised when no replacements can be obtained for a batch of text."""


class Translator(ABC):
    """Abstract base class for the language model collaborator."""

    @abstractmethod
    async def translate(self, text: str, target_language: str, prioritized_words: list[str],
                        density: int = DEFAULT_DENSITY) -> list:
        """Pick words from text and translate them.

        Returns a list of ReplacementSpec. Raises TranslationError on any failure
        (missing credentials, malformed response, upstream error).
        """
        pass


class Storage(ABC):
    """Abstract base class for the flat key-value store and config."""

    @abstractmethod
    def load_config(self) -> dict:
        """Load configuration. Returns config dict."""
        pass

    @abstractmethod
    def get(self, key: str, default=None):
        """Read a value. Returns default when the key is not set."""
        pass

    @abstractmethod
    def set(self, key: str, value) -> None:
        """Write a JSON-serializable value under key."""
        pass


class ProgressReporter(ABC):
    """Sink for quiz outcomes: word stats, score and mistake history."""

    @abstractmethod
    def record_outcome(self, word: str, is_correct: bool) -> None:
        pass

    @abstractmethod
    def add_score(self, points: int) -> int:
        """Apply a signed score delta. Returns the new score."""
        pass

    @abstractmethod
    def record_mistake(self, word: str) -> None:
        pass


class PriorityProvider(ABC):
    """Source of words that need reinforcement.

    Providers that do network I/O set blocking = True and are called off the
    event loop. In-process providers are called on it.
    """

    blocking = False

    @abstractmethod
    def get_prioritized_words(self) -> list[str]:
        pass


class LayoutProvider(ABC):
    """Answers where an element sits on the page, in document coordinates."""

    @abstractmethod
    def get_rect(self, element):
        """Returns a Rect for the element, or None when it is not rendered."""
        pass

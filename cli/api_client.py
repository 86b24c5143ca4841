"""REST API client for the lingoghost server."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

import requests

from core.config import DEFAULT_DENSITY
from core.interfaces import Translator, TranslationError, ProgressReporter, PriorityProvider
from core.models import ReplacementSpec

logger = logging.getLogger(__name__)


class LingoAPIClient(PriorityProvider):
    """Client for communicating with the lingoghost REST API."""

    blocking = True

    def __init__(self, base_url: str = "http://localhost:8000"):
        self.base_url = base_url.rstrip('/')
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make a GET request."""
        response = self.session.get(f"{self.base_url}{endpoint}", params=params or {})
        response.raise_for_status()
        return response.json()

    def _post(self, endpoint: str, data: dict) -> dict:
        """Make a POST request."""
        response = self.session.post(f"{self.base_url}{endpoint}", json=data)
        response.raise_for_status()
        return response.json()

    def health_check(self) -> dict:
        """Check if the server is running."""
        return self._get("/")

    def get_status(self) -> dict:
        """Get score and learning progress."""
        return self._get("/api/status")

    def get_prioritized_words(self) -> list[str]:
        return self._get("/api/priority-words")['words']

    def translate(self, text: str, target_language: str, prioritized_words: list[str],
                  density: int = DEFAULT_DENSITY) -> dict:
        """Ask the server to pick and translate words from text."""
        return self._post("/api/translate", {
            'text': text,
            'target_language': target_language,
            'prioritized_words': prioritized_words,
            'density': density
        })

    def update_word_stats(self, word: str, is_correct: bool) -> dict:
        return self._post("/api/word-stats", {'word': word, 'is_correct': is_correct})

    def update_score(self, points: int) -> dict:
        return self._post("/api/score", {'points': points})

    def record_mistake(self, word: str) -> dict:
        return self._post("/api/mistakes", {'word': word})


class ApiTranslator(Translator):
    """Translator that goes through the server."""

    def __init__(self, client: LingoAPIClient):
        self.client = client

    async def translate(self, text: str, target_language: str, prioritized_words: list[str],
                        density: int = DEFAULT_DENSITY) -> list[ReplacementSpec]:
        try:
            data = await asyncio.to_thread(
                self.client.translate, text, target_language, prioritized_words, density
            )
        except requests.HTTPError as e:
            detail = e.response.text if e.response is not None else str(e)
            raise TranslationError(f"Server error: {detail}") from e
        except requests.RequestException as e:
            raise TranslationError(f"Cannot reach server: {e}") from e
        try:
            return [ReplacementSpec.from_dict(item) for item in data.get('replacements') or []]
        except (KeyError, TypeError, AttributeError) as e:
            raise TranslationError(f"Malformed server response: {e}") from e


class RemoteProgress(ProgressReporter):
    """Sends quiz outcomes to the server without blocking the caller.

    Requests go through a single worker thread so they reach the server in
    the order they were reported. The score is mirrored locally.
    """

    def __init__(self, client: LingoAPIClient, score: int = 0):
        self.client = client
        self.score = score
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='lingoghost-report')

    def _submit(self, method, *args) -> None:
        future = self._executor.submit(method, *args)
        future.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(future) -> None:
        error = future.exception()
        if error is not None:
            logger.error(f"Failed to report progress: {error}")

    def record_outcome(self, word: str, is_correct: bool) -> None:
        self._submit(self.client.update_word_stats, word, is_correct)

    def add_score(self, points: int) -> int:
        self.score += points
        self._submit(self.client.update_score, points)
        return self.score

    def record_mistake(self, word: str) -> None:
        self._submit(self.client.record_mistake, word)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

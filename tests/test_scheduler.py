"""Tests for the lingoghost scheduler lifecycle and request guard."""

import asyncio
import json
import random
import threading
import unittest

from core.config import DEFAULT_DENSITY
from core.interfaces import Translator, TranslationError, Storage, PriorityProvider
from core.ledger import Ledger, LocalProgress
from core.models import EngineConfig, ReplacementSpec, Viewport
from core.page import Page
from core.quiz import QuizController
from core.scheduler import Scheduler


class MockStorage(Storage):
    def __init__(self):
        self.data = {}

    def load_config(self) -> dict:
        return {}

    def get(self, key: str, default=None):
        return json.loads(json.dumps(self.data[key])) if key in self.data else default

    def set(self, key: str, value) -> None:
        self.data[key] = json.loads(json.dumps(value))


class MockTranslator(Translator):
    """Records calls; optionally waits on a gate or raises."""

    def __init__(self, specs=None, error=None):
        self.specs = specs or []
        self.error = error
        self.gate = None
        self.calls = []

    async def translate(self, text: str, target_language: str, prioritized_words: list[str],
                        density: int = DEFAULT_DENSITY) -> list:
        self.calls.append({
            'text': text,
            'target_language': target_language,
            'words': prioritized_words,
            'density': density
        })
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.specs)


class BrokenPriorities(PriorityProvider):
    def get_prioritized_words(self) -> list[str]:
        raise ConnectionError("server down")


class ThreadRecordingPriorities(PriorityProvider):
    """Remembers which thread each lookup ran on."""

    def __init__(self, blocking: bool = False):
        self.blocking = blocking
        self.threads = []

    def get_prioritized_words(self) -> list[str]:
        self.threads.append(threading.current_thread())
        return ['dog']


CAT_SPEC = ReplacementSpec('cat', 'gato', ['perro', 'pájaro'])


async def settle(seconds: float = 0.1):
    await asyncio.sleep(seconds)


class TestScheduler(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.now = 0.0
        self.page = Page.from_html("<html><body><p>The cat sat on the mat</p></body></html>")
        self.translator = MockTranslator()
        self.scheduler = None

    async def asyncTearDown(self):
        if self.scheduler is not None:
            self.scheduler.stop()

    def make_scheduler(self, **kwargs) -> Scheduler:
        kwargs.setdefault('debounce', 0.01)
        kwargs.setdefault('scroll_interval', 1000)
        self.scheduler = Scheduler(self.page, self.translator, clock=lambda: self.now, **kwargs)
        return self.scheduler

    def ghosts(self):
        return self.page.soup.find_all('span', class_='lingo-ghost')

    async def test_initial_cycle_injects_widgets(self):
        self.translator.specs = [CAT_SPEC]
        quiz = QuizController(self.page, None)
        scheduler = self.make_scheduler(quiz=quiz)
        scheduler.start(EngineConfig(target_language='Spanish', density=40))
        await settle()

        self.assertEqual(len(self.translator.calls), 1)
        call = self.translator.calls[0]
        self.assertEqual(call['text'], "The cat sat on the mat ")
        self.assertEqual(call['target_language'], 'Spanish')
        self.assertEqual(call['density'], 40)
        self.assertEqual(call['words'], [])
        self.assertEqual([g.get_text() for g in self.ghosts()], ['gato'])
        self.assertEqual(len(quiz._widgets), 1)

    async def test_single_request_in_flight(self):
        self.translator.gate = asyncio.Event()
        scheduler = self.make_scheduler()
        scheduler.start(EngineConfig())
        await settle()
        self.assertEqual(len(self.translator.calls), 1)
        self.assertTrue(scheduler.pending_request)

        self.now = 5.0
        self.assertFalse(scheduler.trigger())
        self.page.append_html("<p>A new paragraph arrived while waiting.</p>")
        await settle()
        self.assertEqual(len(self.translator.calls), 1)

        self.translator.gate.set()
        await settle()
        self.assertFalse(scheduler.pending_request)
        self.assertEqual(len(self.translator.calls), 1)

    async def test_cooldown_between_requests(self):
        scheduler = self.make_scheduler()
        scheduler.start(EngineConfig())
        await settle()
        self.assertEqual(scheduler.last_request_at, 0.0)

        self.now = 10.0
        self.page.append_html("<p>Fresh content loaded by the page.</p>")
        await settle()
        self.assertEqual(len(self.translator.calls), 1)

        self.now = 25.0
        self.assertTrue(scheduler.trigger())
        await settle()
        self.assertEqual(len(self.translator.calls), 2)
        self.assertEqual(self.translator.calls[1]['text'], "Fresh content loaded by the page. ")

    async def test_failure_clears_pending(self):
        self.translator.error = TranslationError("model unavailable")
        scheduler = self.make_scheduler()
        scheduler.start(EngineConfig())
        await settle()
        self.assertEqual(len(self.translator.calls), 1)
        self.assertFalse(scheduler.pending_request)
        self.assertEqual(scheduler.last_request_at, 0.0)
        self.assertEqual(self.ghosts(), [])

        self.translator.error = None
        self.translator.specs = [CAT_SPEC]
        self.now = 25.0
        self.page.append_html("<p>My cat likes to sleep all day.</p>")
        await settle()
        self.assertEqual(len(self.translator.calls), 2)
        self.assertEqual(len(self.ghosts()), 1)

    async def test_unexpected_error_clears_pending(self):
        self.translator.error = ValueError("bad payload")
        scheduler = self.make_scheduler()
        scheduler.start(EngineConfig())
        await settle()
        self.assertFalse(scheduler.pending_request)
        self.assertTrue(scheduler.enabled)

    async def test_stop_discards_in_flight_result(self):
        self.translator.specs = [CAT_SPEC]
        self.translator.gate = asyncio.Event()
        scheduler = self.make_scheduler()
        scheduler.start(EngineConfig())
        await settle()
        self.assertTrue(scheduler.pending_request)

        scheduler.stop()
        self.translator.gate.set()
        await settle()
        self.assertFalse(scheduler.enabled)
        self.assertFalse(scheduler.pending_request)
        self.assertEqual(self.ghosts(), [])
        self.assertFalse(scheduler.trigger())

    async def test_start_twice_does_not_double_up(self):
        scheduler = self.make_scheduler()
        scheduler.start(EngineConfig())
        scheduler.start(EngineConfig())
        await settle()
        self.assertEqual(len(self.page._observers), 1)
        self.assertEqual(len(self.translator.calls), 1)

    async def test_stop_is_idempotent(self):
        scheduler = self.make_scheduler()
        scheduler.stop()
        scheduler.start(EngineConfig())
        scheduler.stop()
        scheduler.stop()
        self.assertEqual(self.page._observers, [])

    async def test_disabled_config_does_not_start(self):
        scheduler = self.make_scheduler()
        scheduler.start(EngineConfig(enabled=False))
        await settle()
        self.assertFalse(scheduler.enabled)
        self.assertEqual(self.translator.calls, [])

    async def test_small_page_sends_nothing(self):
        self.page = Page.from_html("<html><body><p>Hello there</p></body></html>")
        scheduler = self.make_scheduler()
        scheduler.start(EngineConfig())
        await settle()
        self.assertEqual(self.translator.calls, [])
        self.assertIsNone(scheduler.last_request_at)

    async def test_mutations_are_debounced(self):
        self.page = Page.from_html("<html><body><p>Hello there</p></body></html>")
        scheduler = self.make_scheduler()
        scheduler.start(EngineConfig())
        await settle()

        self.page.append_html("<p>First paragraph added by a script.</p>")
        self.page.append_html("<p>Second paragraph added right after.</p>")
        await settle()
        self.assertEqual(len(self.translator.calls), 1)
        self.assertIn("First paragraph", self.translator.calls[0]['text'])
        self.assertIn("Second paragraph", self.translator.calls[0]['text'])

    async def test_scroll_triggers_new_sample(self):
        paragraphs = ''.join(f"<p>Paragraph number {i} has words.</p>" for i in range(100))
        self.page = Page.from_html(f"<html><body>{paragraphs}</body></html>", viewport=Viewport(height=800))
        scheduler = self.make_scheduler()
        scheduler.start(EngineConfig())
        await settle()
        self.assertEqual(len(self.translator.calls), 1)
        self.assertNotIn("Paragraph number 90 ", self.translator.calls[0]['text'])

        self.now = 25.0
        self.page.scroll_to(200)
        self.assertFalse(scheduler.check_scroll())

        self.page.scroll_to(1200)
        self.assertTrue(scheduler.check_scroll())
        await settle()
        self.assertEqual(len(self.translator.calls), 2)
        self.assertIn("Paragraph number 90 ", self.translator.calls[1]['text'])

    async def test_prioritized_words_are_sent(self):
        ledger = Ledger(MockStorage())
        ledger.record_outcome('dog', False)
        scheduler = self.make_scheduler(priorities=ledger)
        scheduler.start(EngineConfig())
        await settle(0.3)
        self.assertEqual(self.translator.calls[0]['words'], ['dog'])

    async def test_priority_lookup_failure_sends_empty_list(self):
        scheduler = self.make_scheduler(priorities=BrokenPriorities())
        scheduler.start(EngineConfig())
        await settle(0.3)
        self.assertEqual(self.translator.calls[0]['words'], [])

    async def test_local_priorities_read_on_loop_thread(self):
        priorities = ThreadRecordingPriorities()
        scheduler = self.make_scheduler(priorities=priorities)
        scheduler.start(EngineConfig())
        await settle()
        self.assertEqual(priorities.threads, [threading.current_thread()])
        self.assertEqual(self.translator.calls[0]['words'], ['dog'])

    async def test_blocking_priorities_read_off_loop_thread(self):
        priorities = ThreadRecordingPriorities(blocking=True)
        scheduler = self.make_scheduler(priorities=priorities)
        scheduler.start(EngineConfig())
        await settle(0.3)
        self.assertEqual(len(priorities.threads), 1)
        self.assertIsNot(priorities.threads[0], threading.current_thread())
        self.assertEqual(self.translator.calls[0]['words'], ['dog'])

    async def test_scroll_distance_kept_until_cycle_fires(self):
        paragraphs = ''.join(f"<p>Paragraph number {i} has words.</p>" for i in range(100))
        self.page = Page.from_html(f"<html><body>{paragraphs}</body></html>", viewport=Viewport(height=800))
        scheduler = self.make_scheduler()
        scheduler.start(EngineConfig())
        await settle()
        self.assertEqual(len(self.translator.calls), 1)

        self.now = 5.0
        self.page.scroll_to(1200)
        self.assertTrue(scheduler.check_scroll())
        await settle()
        self.assertEqual(len(self.translator.calls), 1)
        self.assertEqual(scheduler.last_scroll_y, 0)

        self.now = 25.0
        self.assertTrue(scheduler.check_scroll())
        await settle()
        self.assertEqual(len(self.translator.calls), 2)
        self.assertEqual(scheduler.last_scroll_y, 1200)

    async def test_answer_reaches_ledger(self):
        self.translator.specs = [CAT_SPEC]
        progress = LocalProgress(MockStorage())
        quiz = QuizController(self.page, progress, rng=random.Random(0))
        scheduler = self.make_scheduler(priorities=progress, quiz=quiz)
        scheduler.start(EngineConfig())
        await settle(0.3)

        widget = self.ghosts()[0]
        quiz.hover(widget)
        self.assertTrue(quiz.select('gato'))
        self.assertEqual(progress.ledger.get_stats('cat').success_count, 1)
        self.assertEqual(progress.scoreboard.score, 10)


if __name__ == '__main__':
    unittest.main()

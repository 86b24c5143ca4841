"""Drives sample -> translate -> inject cycles from page events."""

import asyncio
import logging
import time

from .config import (
    REQUEST_COOLDOWN, MUTATION_DEBOUNCE, SCROLL_POLL_INTERVAL, SCROLL_THRESHOLD
)
from .harvester import Harvester, SampledSet
from .injector import Injector
from .interfaces import Translator, TranslationError, PriorityProvider
from .models import EngineConfig
from .page import Page

logger = logging.getLogger(__name__)


class Scheduler:
    """Owns the engine lifecycle and the one-request-at-a-time guard.

    Three event sources feed a single coalescing queue (capacity one) that a
    runner task drains: the initial trigger on start, debounced page
    mutations, and a scroll poller that fires after enough distance. Triggers
    that arrive while a request is in flight are dropped, not queued.
    """

    INITIAL = 'initial'
    MUTATION = 'mutation'
    SCROLL = 'scroll'
    MANUAL = 'manual'

    def __init__(self, page: Page, translator: Translator, priorities: PriorityProvider | None = None,
                 quiz=None, clock=time.monotonic, cooldown: float = REQUEST_COOLDOWN,
                 debounce: float = MUTATION_DEBOUNCE, scroll_interval: float = SCROLL_POLL_INTERVAL,
                 scroll_threshold: int = SCROLL_THRESHOLD):
        self.page = page
        self.translator = translator
        self.priorities = priorities
        self.quiz = quiz
        self.clock = clock
        self.cooldown = cooldown
        self.debounce = debounce
        self.scroll_interval = scroll_interval
        self.scroll_threshold = scroll_threshold

        self.sampled = SampledSet()
        self.harvester = Harvester(page, self.sampled)
        self.injector = Injector(page)

        self.config = EngineConfig()
        self.enabled = False
        self.pending_request = False
        self.last_request_at = None
        self.last_scroll_y = 0

        self._generation = 0
        self._loop = None
        self._queue = None
        self._runner = None
        self._poller = None
        self._debounce_handle = None
        self._disconnect = None

    # ---- lifecycle ----

    def start(self, config: EngineConfig | None = None) -> None:
        """Attach triggers. Calling it again re-attaches instead of doubling up."""
        if self.enabled:
            self.stop()
        self.config = config or self.config
        if not self.config.enabled:
            logger.info("Engine disabled in config; not starting")
            return

        self._loop = asyncio.get_running_loop()
        self._generation += 1
        self.enabled = True
        self.last_scroll_y = self.page.scroll_y
        self._queue = asyncio.Queue(maxsize=1)
        self._runner = self._loop.create_task(self._run(self._queue))
        self._poller = self._loop.create_task(self._poll_scroll())
        self._disconnect = self.page.observe(self._on_mutation)
        logger.info(f"LingoGhost is awake (target language: {self.config.target_language})")
        self.trigger(self.INITIAL)

    def stop(self) -> None:
        """Detach everything. Safe to call when already stopped."""
        if not self.enabled and self._runner is None:
            return
        self.enabled = False
        self._generation += 1
        if self._disconnect is not None:
            self._disconnect()
            self._disconnect = None
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        for task in (self._runner, self._poller):
            if task is not None:
                task.cancel()
        self._runner = None
        self._poller = None
        self._queue = None
        self.pending_request = False
        logger.info("Engine stopped")

    # ---- event sources ----

    def trigger(self, reason: str = MANUAL) -> bool:
        """Ask for a cycle. Returns False when the request is dropped."""
        if not self.enabled or self._queue is None:
            return False
        if self.pending_request:
            logger.debug(f"Request in flight, dropping {reason} trigger")
            return False
        try:
            self._queue.put_nowait(reason)
        except asyncio.QueueFull:
            logger.debug(f"Cycle already queued, coalescing {reason} trigger")
            return False
        return True

    def _on_mutation(self) -> None:
        if not self.enabled:
            return
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = self._loop.call_later(self.debounce, self._mutation_settled)

    def _mutation_settled(self) -> None:
        self._debounce_handle = None
        logger.debug("Page changed, checking for new text")
        self.trigger(self.MUTATION)

    def check_scroll(self) -> bool:
        if self.pending_request:
            return False
        current = self.page.scroll_y
        if abs(current - self.last_scroll_y) > self.scroll_threshold:
            return self.trigger(self.SCROLL)
        return False

    async def _poll_scroll(self) -> None:
        while True:
            await asyncio.sleep(self.scroll_interval)
            self.check_scroll()

    async def _run(self, queue: asyncio.Queue) -> None:
        while True:
            reason = await queue.get()
            try:
                await self.run_cycle(reason)
            except Exception as e:
                logger.error(f"Cycle ({reason}) failed: {type(e).__name__}: {e}")

    # ---- the cycle ----

    def _cooling_down(self, now: float) -> bool:
        return self.last_request_at is not None and now - self.last_request_at < self.cooldown

    async def _prioritized_words(self) -> list[str]:
        if self.priorities is None:
            return []
        try:
            if self.priorities.blocking:
                return list(await asyncio.to_thread(self.priorities.get_prioritized_words))
            # Ledger state is only touched from the loop thread
            return list(self.priorities.get_prioritized_words())
        except Exception as e:
            logger.warning(f"Failed to load prioritized words: {e}")
            return []

    async def run_cycle(self, reason: str = MANUAL) -> bool:
        """Sample, translate and inject once. Returns True if a request was dispatched."""
        if not self.enabled or self.pending_request:
            return False
        now = self.clock()
        if self._cooling_down(now):
            logger.debug(f"Cooling down, skipping {reason} cycle")
            return False

        batch = self.harvester.sample()
        if not batch:
            return False

        # Committed: mark in flight before the first suspension point
        self.pending_request = True
        self.last_request_at = now
        self.last_scroll_y = self.page.scroll_y
        generation = self._generation
        config = self.config
        logger.info(f"Preparing lesson for this section ({reason})")

        try:
            words = await self._prioritized_words()
            if words:
                logger.info(f"Prioritizing words: {words}")
            specs = await self.translator.translate(
                batch.combined_text, config.target_language, words, density=config.density
            )
        except TranslationError as e:
            logger.error(f"Translation failed: {e}")
            return True
        except Exception as e:
            logger.error(f"Translator error: {type(e).__name__}: {e}")
            return True
        finally:
            if generation == self._generation:
                self.pending_request = False

        if generation != self._generation or not self.enabled:
            logger.info("Engine stopped while waiting for translation; discarding result")
            return True

        logger.info(f"Model returned {len(specs or [])} words")
        widgets = self.injector.apply(batch, specs)
        if self.quiz is not None:
            self.quiz.register(widgets)
        return True

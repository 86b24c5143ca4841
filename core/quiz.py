"""Quiz popup state machine bound to injected widgets."""

import asyncio
import logging
import random

from bs4 import Tag

from .config import (
    POPUP_CLASS, OPTION_CLASS, SOLVED_CLASS, LOCKED_CLASS, GHOST_CLASS,
    GHOST_ANIMATION_SECONDS, POPUP_OFFSET, POPUP_FLIP_MARGIN, POPUP_FLIP_OFFSET
)
from .interfaces import ProgressReporter
from .models import QuizSettings, WidgetState
from .page import Page, closest, has_class

logger = logging.getLogger(__name__)

GHOST_MARKER = 'lingo-ghost'


def _call_later(delay, callback, *args):
    return asyncio.get_running_loop().call_later(delay, callback, *args)


class QuizController:
    """Shows one popup at a time and turns answers into progress updates.

    States: idle (no popup) and showing (popup bound to one widget). An
    answer moves the widget to its terminal revealed state and the controller
    back to idle; leaving the widget and popup for longer than the hide delay
    dismisses the popup without an answer.
    """

    IDLE = 'idle'
    SHOWING = 'showing'

    def __init__(self, page: Page, reporter: ProgressReporter, settings: QuizSettings | None = None,
                 rng: random.Random | None = None, call_later=_call_later):
        self.page = page
        self.reporter = reporter
        self.settings = settings or QuizSettings()
        self.rng = rng or random.Random()
        self.call_later = call_later
        self.state = self.IDLE
        self.popup = None
        self.active: WidgetState | None = None
        self.options: list[str] = []
        self._hide_handle = None
        self._widgets: dict[int, WidgetState] = {}

    def register(self, widgets) -> None:
        for widget in widgets:
            self._widgets[id(widget.owner)] = widget

    def widget_for(self, element) -> WidgetState | None:
        if not isinstance(element, Tag) or not has_class(element, GHOST_MARKER):
            return None
        widget = self._widgets.get(id(element))
        if widget is None:
            widget = WidgetState.from_element(element)
            if widget is not None:
                self._widgets[id(element)] = widget
        return widget

    def _in_popup(self, target) -> bool:
        return self.popup is not None and closest(target, POPUP_CLASS) is self.popup

    # ---- pointer events ----

    def hover(self, target) -> None:
        widget = self.widget_for(target)
        if widget is not None:
            self._cancel_hide()
            if self.settings.trigger == QuizSettings.HOVER:
                self._open(widget)
        elif self._in_popup(target):
            self._cancel_hide()

    def click(self, target) -> None:
        widget = self.widget_for(target)
        if widget is not None:
            self._cancel_hide()
            self._open(widget)

    def leave(self, target) -> None:
        if self.state != self.SHOWING:
            return
        if self.widget_for(target) is not None or self._in_popup(target):
            self._cancel_hide()
            self._hide_handle = self.call_later(self.settings.hide_delay, self._auto_dismiss)

    def select(self, value: str, x: int = 0, y: int = 0) -> bool | None:
        """Answer the open quiz. Returns whether the answer was right, or None if no quiz is open."""
        if self.state != self.SHOWING or self.active is None:
            return None
        widget = self.active
        is_correct = value.strip() == widget.translated.strip()

        self._close()
        widget.reveal()
        self._present_answer(widget, is_correct)

        self._report(self.reporter.record_outcome, widget.original, is_correct)
        if is_correct:
            self._report(self.reporter.add_score, self.settings.correct_points)
        else:
            self._show_ghost(x, y)
            self._report(self.reporter.record_mistake, widget.original)
            self._report(self.reporter.add_score, -self.settings.wrong_penalty)
        logger.info(f"Answer for '{widget.original}': {'correct' if is_correct else 'wrong'} ({value})")
        return is_correct

    def dismiss(self) -> None:
        self._close()

    # ---- internals ----

    def _open(self, widget: WidgetState) -> None:
        if not widget.is_active:
            return
        if self.state == self.SHOWING and self.active is widget:
            return
        self._close()
        self.options = self._build_options(widget)
        self.popup = self._render_popup(widget, self.options)
        self.active = widget
        self.state = self.SHOWING
        self.page.append(self.popup)

    def _build_options(self, widget: WidgetState) -> list[str]:
        correct = widget.translated.strip()
        candidates = [a for a in widget.alternatives if a.strip() != correct]
        count = min(self.settings.distractor_count, len(candidates))
        options = [correct] + self.rng.sample(candidates, count)
        self.rng.shuffle(options)
        return options

    def _render_popup(self, widget: WidgetState, options: list[str]):
        popup = self.page.new_tag('div', **{'class': [POPUP_CLASS]})
        top, left = self._position(widget)
        popup['style'] = f"top: {top}px; left: {left}px;"

        origin = self.page.new_tag('span', **{'class': ['lingo-origin-text']})
        origin.string = widget.original
        popup.append(origin)
        for option in options:
            button = self.page.new_tag('div', **{'class': [OPTION_CLASS], 'data-val': option})
            button.string = option
            popup.append(button)
        return popup

    def _position(self, widget: WidgetState) -> tuple[int, int]:
        viewport = self.page.viewport
        rect = self.page.client_rect(widget.owner)
        if rect is None:
            return viewport.scroll_y, viewport.scroll_x
        top = rect.bottom + viewport.scroll_y + POPUP_OFFSET
        left = rect.left + viewport.scroll_x
        if rect.bottom + POPUP_FLIP_MARGIN > viewport.height:
            top = rect.top + viewport.scroll_y - POPUP_FLIP_OFFSET
        return top, left

    def _present_answer(self, widget: WidgetState, is_correct: bool) -> None:
        element = widget.owner
        if self.settings.reveal_mode == QuizSettings.REVERT:
            element.string = widget.original
            element['class'] = [SOLVED_CLASS]
        else:
            classes = [c for c in (element.get('class') or []) if c != GHOST_MARKER]
            element['class'] = classes + [LOCKED_CLASS]
        if not is_correct:
            element['class'] = element['class'] + ['lingo-missed']

    def _show_ghost(self, x: int, y: int) -> None:
        ghost = self.page.new_tag('div', **{'class': [GHOST_CLASS]})
        ghost.string = '\U0001F47B'
        ghost['style'] = f"left: {x}px; top: {y}px;"
        self.page.append(ghost)
        try:
            self.call_later(GHOST_ANIMATION_SECONDS, self.page.remove, ghost)
        except RuntimeError:
            # No event loop to time the flourish; drop it straight away
            self.page.remove(ghost)

    def _auto_dismiss(self) -> None:
        self._hide_handle = None
        self._close()

    def _cancel_hide(self) -> None:
        if self._hide_handle is not None:
            self._hide_handle.cancel()
            self._hide_handle = None

    def _close(self) -> None:
        self._cancel_hide()
        if self.popup is not None:
            self.page.remove(self.popup)
        self.popup = None
        self.active = None
        self.options = []
        self.state = self.IDLE

    def _report(self, method, *args) -> None:
        try:
            method(*args)
        except Exception as e:
            logger.error(f"Failed to report {method.__name__}{args}: {e}")

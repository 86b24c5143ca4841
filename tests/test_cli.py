"""Tests for the lingoghost console client."""

import asyncio
import random
import unittest
from unittest.mock import MagicMock

from cli.api_client import LingoAPIClient
from cli.console import ConsoleUI
from core.injector import Injector
from core.harvester import Harvester, SampledSet
from core.models import EngineConfig, QuizSettings, ReplacementSpec
from core.page import Page
from core.quiz import QuizController


class TestConsoleUI(unittest.TestCase):
    """Console commands driving the quiz controller."""

    def make_ui(self, trigger: str) -> ConsoleUI:
        self.page = Page.from_html("<html><body><p>The cat sat on the mat</p></body></html>")
        batch = Harvester(self.page, SampledSet()).sample()
        widgets = Injector(self.page).apply(batch, [ReplacementSpec('cat', 'gato', ['perro', 'pájaro'])])
        self.quiz = QuizController(self.page, MagicMock(), QuizSettings(trigger=trigger),
                                   rng=random.Random(0), call_later=MagicMock())
        self.quiz.register(widgets)
        self.progress = MagicMock(score=0)
        return ConsoleUI(MagicMock(), self.page, MagicMock(), self.quiz, self.progress, EngineConfig())

    def test_quiz_opens_in_click_mode(self):
        ui = self.make_ui(QuizSettings.CLICK)
        ui.open_quiz('1')
        self.assertEqual(self.quiz.state, QuizController.SHOWING)
        self.assertEqual(self.quiz.active.original, 'cat')

    def test_quiz_opens_in_hover_mode(self):
        ui = self.make_ui(QuizSettings.HOVER)
        ui.open_quiz('1')
        self.assertEqual(self.quiz.state, QuizController.SHOWING)

    def test_answer_by_number_in_click_mode(self):
        ui = self.make_ui(QuizSettings.CLICK)
        ui.open_quiz('1')
        index = self.quiz.options.index('gato') + 1
        self.assertTrue(asyncio.run(ui.handle(str(index))))
        self.quiz.reporter.record_outcome.assert_called_once_with('cat', True)
        self.assertEqual(self.quiz.state, QuizController.IDLE)
        self.assertEqual(ui.active_widgets(), [])

    def test_bad_quiz_number(self):
        ui = self.make_ui(QuizSettings.CLICK)
        ui.open_quiz('7')
        self.assertEqual(self.quiz.state, QuizController.IDLE)

    def test_exit_ends_session(self):
        ui = self.make_ui(QuizSettings.HOVER)
        self.assertFalse(asyncio.run(ui.handle('exit')))


class TestApiClient(unittest.TestCase):

    def test_remote_priorities_are_blocking(self):
        self.assertTrue(LingoAPIClient().blocking)


if __name__ == '__main__':
    unittest.main()

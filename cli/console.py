"""Console UI for lingoghost: a page session driven from the terminal."""

import asyncio

from core.config import POPUP_CLASS
from core.models import EngineConfig, QuizSettings
from core.page import Page, closest
from core.quiz import QuizController, GHOST_MARKER
from core.scheduler import Scheduler
from cli.api_client import LingoAPIClient, RemoteProgress

HELP = (
    'Commands: "list" quiz words, "quiz N" open a quiz, "answer N|WORD", "skip", '
    '"scroll PX", "append HTML", "save PATH", "status", "stop", "start", "exit"'
)


class ConsoleUI:
    """Console user interface standing in for a browser tab."""

    def __init__(self, client: LingoAPIClient, page: Page, scheduler: Scheduler,
                 quiz: QuizController, progress: RemoteProgress, config: EngineConfig):
        self.client = client
        self.page = page
        self.scheduler = scheduler
        self.quiz = quiz
        self.progress = progress
        self.config = config

    def active_widgets(self) -> list:
        """Unanswered widgets in document order, popups excluded."""
        return [
            el for el in self.page.soup.find_all('span', class_=GHOST_MARKER)
            if closest(el, POPUP_CLASS) is None
        ]

    def print_widgets(self):
        widgets = self.active_widgets()
        if not widgets:
            print('No quiz words yet. Scroll or wait for the next lesson.')
            return
        print('-' * 40)
        for index, widget in enumerate(widgets, 1):
            context = widget.parent.get_text() if widget.parent else ''
            print(f'  {index}. {widget.get_text()}  |  ...{context.strip()[:60]}...')
        print('-' * 40)

    def print_popup(self):
        if self.quiz.state != QuizController.SHOWING:
            print('No quiz open.')
            return
        print(f'\nWhich one means "{self.quiz.active.original}"?')
        for index, option in enumerate(self.quiz.options, 1):
            print(f'  {index}) {option}')

    def print_status(self, status: dict):
        print('\n' + '=' * 50)
        print('STATUS SUMMARY')
        print('=' * 50)
        print(f'Score: {status["score"]}')
        print(f'Words tracked: {status["tracked_words"]}')
        if status['prioritized_words']:
            print(f'Needs practice: {", ".join(status["prioritized_words"])}')
        if status['top_mistakes']:
            print('Most missed:')
            for entry in status['top_mistakes']:
                print(f'  {entry["word"]}: {entry["count"]}')
        print('=' * 50 + '\n')

    def open_quiz(self, arg: str):
        widgets = self.active_widgets()
        try:
            widget = widgets[int(arg) - 1]
        except (ValueError, IndexError):
            print(f'Pick a number between 1 and {len(widgets)}.')
            return
        if self.quiz.settings.trigger == QuizSettings.CLICK:
            self.quiz.click(widget)
        else:
            self.quiz.hover(widget)
        self.print_popup()

    def answer(self, arg: str):
        if self.quiz.state != QuizController.SHOWING:
            print('No quiz open. Use "quiz N" first.')
            return
        value = arg
        if arg.isdigit() and 1 <= int(arg) <= len(self.quiz.options):
            value = self.quiz.options[int(arg) - 1]
        correct = self.quiz.active.translated
        result = self.quiz.select(value)
        if result:
            print(f'Correct! +{self.quiz.settings.correct_points}  (score {self.progress.score})')
        else:
            print(f'\U0001F47B Wrong, it was "{correct}".  (score {self.progress.score})')

    async def handle(self, line: str) -> bool:
        """Run one command. Returns False when the session should end."""
        command, _, arg = line.strip().partition(' ')
        command = command.lower()
        arg = arg.strip()

        if command == 'exit':
            return False
        elif command == 'list':
            self.print_widgets()
        elif command == 'quiz':
            self.open_quiz(arg)
        elif command == 'answer':
            self.answer(arg)
        elif command.isdigit() and self.quiz.state == QuizController.SHOWING:
            self.answer(command)
        elif command == 'skip':
            self.quiz.dismiss()
        elif command == 'scroll':
            try:
                self.page.scroll_to(self.page.scroll_y + int(arg))
            except ValueError:
                print('Usage: scroll PX')
            else:
                print(f'Scrolled to {self.page.scroll_y}px')
        elif command == 'append':
            self.page.append_html(arg)
        elif command == 'save':
            with open(arg or 'lingoghost_page.html', 'w') as f:
                f.write(self.page.to_html())
            print(f'Saved page to {arg or "lingoghost_page.html"}')
        elif command == 'status':
            try:
                status = await asyncio.to_thread(self.client.get_status)
                self.print_status(status)
            except Exception as e:
                print(f'Error getting status: {e}')
        elif command == 'stop':
            self.scheduler.stop()
        elif command == 'start':
            self.scheduler.start(self.config)
        else:
            print(HELP)
        return True

    async def run(self):
        """Run the main session loop."""
        try:
            health = await asyncio.to_thread(self.client.health_check)
            print(f"Connected to lingoghost server ({health['service']})")
        except Exception:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print("Make sure the server is running: python run_server.py")
            return

        self.scheduler.start(self.config)
        print(f'LingoGhost started ({self.config.target_language}).')
        print(HELP + '\n')

        try:
            while True:
                line = await asyncio.to_thread(input, '==> ')
                if not await self.handle(line):
                    print('Goodbye!')
                    return
        finally:
            self.scheduler.stop()
            self.progress.close()

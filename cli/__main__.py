"""Entry point for lingoghost CLI client."""

import argparse
import asyncio
import logging
import sys

import requests

from core.config import DISTRACTOR_COUNT, WRONG_PENALTY
from core.models import EngineConfig, QuizSettings, Viewport
from core.page import Page
from core.quiz import QuizController
from core.scheduler import Scheduler
from cli.api_client import LingoAPIClient, ApiTranslator, RemoteProgress
from cli.console import ConsoleUI
from server.file_storage import CONFIG_FILE, read_config_file


def load_html(source: str) -> str:
    if source.startswith(('http://', 'https://')):
        response = requests.get(source, timeout=30)
        response.raise_for_status()
        return response.text
    with open(source, 'r', encoding='utf-8') as f:
        return f.read()


def load_engine_config() -> EngineConfig:
    """Engine settings from the shared config file, defaults when it is missing."""
    try:
        return EngineConfig.from_dict(read_config_file(CONFIG_FILE))
    except FileNotFoundError:
        return EngineConfig()
    except ValueError as e:
        print(f'Ignoring unreadable config file: {e}')
        return EngineConfig()


def main():
    parser = argparse.ArgumentParser(description='LingoGhost - learn vocabulary while you read')
    parser.add_argument('page', help='HTML file or URL to read')
    parser.add_argument(
        '--server',
        default='http://localhost:8000',
        help='Server URL (default: http://localhost:8000)'
    )
    parser.add_argument('--language', help='Target language (default: from config file)')
    parser.add_argument('--density', type=int, help='Replacement density, 1-100 (default: from config file)')
    parser.add_argument('--trigger', choices=[QuizSettings.HOVER, QuizSettings.CLICK], default=QuizSettings.HOVER)
    parser.add_argument('--reveal', choices=[QuizSettings.REVERT, QuizSettings.LOCK], default=QuizSettings.REVERT)
    parser.add_argument('--distractors', type=int, default=DISTRACTOR_COUNT)
    parser.add_argument('--penalty', type=int, default=WRONG_PENALTY)
    parser.add_argument('--height', type=int, default=800, help='Viewport height in pixels')
    parser.add_argument('--verbose', action='store_true', help='Show engine logs')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    try:
        html = load_html(args.page)
    except (OSError, requests.RequestException) as e:
        print(f'Error loading page: {e}')
        sys.exit(1)

    client = LingoAPIClient(base_url=args.server)
    page = Page.from_html(html, viewport=Viewport(height=args.height))
    settings = QuizSettings(
        trigger=args.trigger, distractor_count=args.distractors,
        wrong_penalty=args.penalty, reveal_mode=args.reveal
    )
    score = 0
    try:
        score = client.get_status()['score']
    except requests.RequestException:
        pass
    progress = RemoteProgress(client, score=score)
    quiz = QuizController(page, progress, settings)
    scheduler = Scheduler(page, ApiTranslator(client), priorities=client, quiz=quiz)
    config = load_engine_config()
    if args.language:
        config.target_language = args.language
    if args.density:
        config.density = args.density

    ui = ConsoleUI(client, page, scheduler, quiz, progress, config)
    try:
        asyncio.run(ui.run())
    except KeyboardInterrupt:
        print('\nGoodbye!')
        sys.exit(0)


if __name__ == '__main__':
    main()

from .models import (
    WordStat, ReplacementSpec, SampleBatch, WidgetState,
    EngineConfig, QuizSettings, Rect, Viewport
)
from .interfaces import (
    Translator, TranslationError, Storage, ProgressReporter, PriorityProvider, LayoutProvider
)
from .ledger import Ledger, ScoreBoard, MistakeHistory, LocalProgress
from .page import Page, FlowLayout, StaticLayout
from .harvester import Harvester, SampledSet
from .injector import Injector
from .quiz import QuizController
from .scheduler import Scheduler
from .utils import build_lookup, build_pattern, split_segments
from .config import (
    DEFAULT_MODEL, DEFAULT_TARGET_LANGUAGE, DEFAULT_DENSITY,
    REQUEST_COOLDOWN, MAX_SAMPLE_CHARS, MAX_REPEATS, MAX_TRANSLATE_CHARS
)

__all__ = [
    'WordStat', 'ReplacementSpec', 'SampleBatch', 'WidgetState',
    'EngineConfig', 'QuizSettings', 'Rect', 'Viewport',
    'Translator', 'TranslationError', 'Storage', 'ProgressReporter', 'PriorityProvider', 'LayoutProvider',
    'Ledger', 'ScoreBoard', 'MistakeHistory', 'LocalProgress',
    'Page', 'FlowLayout', 'StaticLayout',
    'Harvester', 'SampledSet', 'Injector', 'QuizController', 'Scheduler',
    'build_lookup', 'build_pattern', 'split_segments',
    'DEFAULT_MODEL', 'DEFAULT_TARGET_LANGUAGE', 'DEFAULT_DENSITY',
    'REQUEST_COOLDOWN', 'MAX_SAMPLE_CHARS', 'MAX_REPEATS', 'MAX_TRANSLATE_CHARS'
]

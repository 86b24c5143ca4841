"""Configuration constants for lingoghost."""

DEFAULT_MODEL = 'gemini-2.5-flash-preview-09-2025'
DEFAULT_TARGET_LANGUAGE = 'Japanese'
DEFAULT_DENSITY = 20          # Percentage-style slider value, 1-100

# Scheduler timing (seconds)
REQUEST_COOLDOWN = 20.0       # Minimum gap between dispatched translation requests
MUTATION_DEBOUNCE = 0.7       # Quiet period after the last DOM change
SCROLL_POLL_INTERVAL = 6.0    # How often the scroll position is checked
SCROLL_THRESHOLD = 300        # Pixels scrolled before a new sample is taken

# Harvesting
MAX_SAMPLE_CHARS = 2000       # Stop collecting once combined text exceeds this
MIN_SAMPLE_CHARS = 20         # Batches shorter than this are dropped
MIN_NODE_TEXT_LENGTH = 5      # Trimmed text shorter than this is ignored
VIEWPORT_VERTICAL_SLACK = 100 # Near-viewport band above and below, in pixels
EXCLUDED_TAGS = frozenset(['script', 'style', 'noscript', 'textarea', 'input', 'code', 'pre'])
MAX_TRANSLATE_CHARS = 5000    # Text sent to the model is cut to this length

# Injection
MAX_REPEATS = 3               # Widgets per distinct word per injection pass
CONTAINER_CLASS = 'langswitch-text'
WIDGET_CLASS = 'langswitch-word lingo-ghost'
POPUP_CLASS = 'lingo-quiz-popup'
OPTION_CLASS = 'lingo-opt-btn'
SOLVED_CLASS = 'lingo-solved'
LOCKED_CLASS = 'lingo-locked'
GHOST_CLASS = 'ghost-anim-element'

# Quiz
DISTRACTOR_COUNT = 2
CORRECT_POINTS = 10
WRONG_PENALTY = 5
POPUP_HIDE_DELAY = 0.4        # seconds
GHOST_ANIMATION_SECONDS = 1.5
POPUP_OFFSET = 8              # Gap below the widget, in pixels
POPUP_FLIP_MARGIN = 200       # Flip above when the popup would overflow the viewport
POPUP_FLIP_OFFSET = 100

# Ledger
PRIORITY_WORD_LIMIT = 10
RECENT_FAILURE_WINDOW = 24 * 60 * 60  # seconds

# Persisted key-value namespaces
WORD_STATS_KEY = 'wordStats'
SCORE_KEY = 'score'
MISTAKES_KEY = 'mistakeHistory'

# Words requested from the model per lesson at the default density
WORDS_PER_LESSON = 5
MAX_WORDS_PER_LESSON = 15

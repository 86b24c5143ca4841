"""Gemini translator implementation."""

import json
import logging
import re
import time
import google.generativeai as genai

from core.interfaces import Translator, TranslationError
from core.models import ReplacementSpec
from core.config import (
    DEFAULT_MODEL, DEFAULT_DENSITY, MAX_TRANSLATE_CHARS,
    WORDS_PER_LESSON, MAX_WORDS_PER_LESSON
)

logger = logging.getLogger(__name__)

_FENCE = re.compile(r'```(?:json)?\n?|\n?```')


def words_for_density(density: int) -> int:
    """Words per lesson; the default density asks for WORDS_PER_LESSON."""
    scaled = round(WORDS_PER_LESSON * density / DEFAULT_DENSITY)
    return max(1, min(MAX_WORDS_PER_LESSON, scaled))


def parse_replacements(raw: str) -> list[ReplacementSpec]:
    """Parse the model's JSON answer into replacement specs.

    Raises TranslationError when the payload is not the expected object.
    Individual malformed entries are skipped.
    """
    cleaned = _FENCE.sub('', raw).strip()
    try:
        data = json.loads(cleaned)
    except ValueError as e:
        raise TranslationError(f"Model returned invalid JSON: {e}") from e
    if not isinstance(data, dict) or not isinstance(data.get('replacements'), list):
        raise TranslationError("Model response has no 'replacements' list")

    specs = []
    for item in data['replacements']:
        try:
            spec = ReplacementSpec.from_dict(item)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping malformed replacement {item!r}: {e}")
            continue
        if spec.original.strip() and spec.translated.strip():
            specs.append(spec)
    return specs


class GeminiTranslator(Translator):
    """Gemini-backed word picker and translator."""

    def __init__(self, api_key: str | None, model_name: str = DEFAULT_MODEL):
        self.api_key = api_key
        self.model_name = model_name
        self.model = None
        if api_key:
            genai.configure(api_key=api_key)
            self.model = genai.GenerativeModel(model_name)
        self.stats = {'calls': 0, 'errors': 0, 'total_ms': 0}

    def get_stats(self) -> dict:
        calls = self.stats['calls']
        return {
            'model': self.model_name,
            **self.stats,
            'avg_ms': int(self.stats['total_ms'] / calls) if calls else 0
        }

    def build_prompt(self, text: str, target_language: str, prioritized_words: list[str], density: int) -> str:
        max_words = words_for_density(density)
        priority = ''
        if prioritized_words:
            priority = (
                f"\n            7. The learner keeps missing these words. If the text contains any of them "
                f"(or a variation), you MUST include them: [{', '.join(prioritized_words)}]"
            )
        return f"""
            You are a language learning assistant.
            Pick {max_words} distinct, useful words (nouns, adjectives, verbs) from the text
            below and translate each into {target_language}.

            Rules:
            1. Prefer simple, common words suitable for learners.
            2. Translate according to the context the word appears in.
            3. Skip proper names and specialised technical terms.
            4. For each word give 2 plausible but WRONG options in {target_language}
               (e.g. original "cat", translated "gato" -> alternatives ["perro", "pájaro"]).
               Never give distractors in the original language.
            5. "original" must be copied exactly as it appears in the text.
            6. Answer with JSON only, shaped as
               {{"replacements": [{{"original": "word", "translated": "...", "alternatives": ["...", "..."]}}]}}{priority}

            Text:
            "{text}"
        """

    async def _execute(self, prompt: str) -> tuple[str, int]:
        start_time = time.time()
        response = await self.model.generate_content_async(
            prompt,
            generation_config={'response_mime_type': 'application/json'}
        )
        ms = int((time.time() - start_time) * 1000)
        return (response.text, ms)

    async def translate(self, text: str, target_language: str, prioritized_words: list[str],
                        density: int = DEFAULT_DENSITY) -> list[ReplacementSpec]:
        if self.model is None:
            raise TranslationError("Missing Gemini API key")

        prompt = self.build_prompt(text[:MAX_TRANSLATE_CHARS], target_language, prioritized_words, density)
        self.stats['calls'] += 1
        try:
            raw, ms = await self._execute(prompt)
        except Exception as e:
            self.stats['errors'] += 1
            logger.error(f"Gemini request failed: {type(e).__name__}: {e}")
            raise TranslationError(f"Gemini request failed: {e}") from e
        self.stats['total_ms'] += ms

        try:
            specs = parse_replacements(raw)
        except TranslationError:
            self.stats['errors'] += 1
            logger.error(f"Failed to parse replacements. Raw response:\n{raw}")
            raise
        logger.info(f"Gemini picked {len(specs)} words in {ms}ms: {[s.original for s in specs]}")
        return specs

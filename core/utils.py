"""Utility functions for lingoghost."""

import re

_WORD_KEY = re.compile(r'\w+')


def build_lookup(specs) -> dict:
    """Map both the exact and the lowercased original word to its spec.

    The first replacement registered under a lowercase key keeps it, so a later
    duplicate cannot replace an earlier case-insensitive fallback.
    """
    lookup = {}
    for spec in specs:
        lookup[spec.original] = spec
        lower = spec.original.lower()
        if lower not in lookup:
            lookup[lower] = spec
    return lookup


def build_pattern(keys) -> re.Pattern | None:
    """Single alternation over keys, longest first so longer phrases win.

    Keys made only of word characters are anchored on word boundaries; any
    other key (multi-word, punctuated) is matched literally.
    """
    ordered = sorted((k for k in keys if k), key=len, reverse=True)
    if not ordered:
        return None
    alternatives = []
    for key in ordered:
        escaped = re.escape(key)
        if _WORD_KEY.fullmatch(key):
            alternatives.append(rf'\b{escaped}\b')
        else:
            alternatives.append(escaped)
    return re.compile('(' + '|'.join(alternatives) + ')')


def resolve_spec(segment: str, lookup: dict):
    spec = lookup.get(segment)
    if spec is None:
        spec = lookup.get(segment.lower())
    return spec


def split_segments(text: str, lookup: dict, pattern: re.Pattern | None) -> list[tuple]:
    """Split text into ordered (segment, spec or None) pairs.

    Matched segments carry their replacement; the text in between is kept with None.
    Returns an empty list when nothing matches.
    """
    if pattern is None or not pattern.search(text):
        return []
    segments = []
    # With one capture group re.split alternates text, match, text, ...
    for index, part in enumerate(pattern.split(text)):
        if not part:
            continue
        spec = resolve_spec(part, lookup) if index % 2 else None
        segments.append((part, spec))
    return segments

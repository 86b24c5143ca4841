"""Rewrites sampled text nodes into quiz widgets."""

import json
import logging

from bs4 import NavigableString

from .config import MAX_REPEATS, CONTAINER_CLASS, WIDGET_CLASS
from .models import SampleBatch, WidgetState
from .page import Page
from .utils import build_lookup, build_pattern, split_segments

logger = logging.getLogger(__name__)


class Injector:
    """Swaps matched words for widgets, at most max_repeats per word per pass."""

    def __init__(self, page: Page, max_repeats: int = MAX_REPEATS):
        self.page = page
        self.max_repeats = max_repeats

    def build_widget(self, spec):
        widget = self.page.new_tag('span', **{
            'class': WIDGET_CLASS.split(),
            'data-original': spec.original,
            'data-alternatives': json.dumps(list(spec.alternatives), ensure_ascii=False),
        })
        widget.string = spec.translated
        return widget

    def apply(self, batch: SampleBatch, specs) -> list[WidgetState]:
        """Replace each node that has a match with a container of text and widgets.

        A node is either left alone or replaced as a whole. Returns the state
        of every widget created.
        """
        if not specs:
            return []
        lookup = build_lookup(specs)
        pattern = build_pattern(lookup.keys())
        if pattern is None:
            return []

        usage = {}
        widgets = []
        for node, _ in batch.items:
            if node.parent is None:
                # Removed from the page while the request was in flight
                continue
            segments = split_segments(str(node), lookup, pattern)
            if not segments:
                continue

            container = self.page.new_tag('span', **{'class': [CONTAINER_CLASS]})
            for part, spec in segments:
                if spec is not None and usage.get(spec.original, 0) < self.max_repeats:
                    usage[spec.original] = usage.get(spec.original, 0) + 1
                    widget = self.build_widget(spec)
                    container.append(widget)
                    widgets.append(WidgetState(widget, spec.original, spec.translated, spec.alternatives))
                else:
                    container.append(NavigableString(part))
            self.page.replace(node, container)

        logger.info(f"Created {len(widgets)} quiz words.")
        return widgets

"""Collects visible, not-yet-sampled text from a page."""

import logging

from .config import (
    MAX_SAMPLE_CHARS, MIN_SAMPLE_CHARS, MIN_NODE_TEXT_LENGTH,
    VIEWPORT_VERTICAL_SLACK, EXCLUDED_TAGS, CONTAINER_CLASS, POPUP_CLASS
)
from .models import Rect, SampleBatch
from .page import Page, element_parent, closest

logger = logging.getLogger(__name__)


class SampledSet:
    """Text nodes that have already gone out in a batch. Only ever grows.

    bs4 text nodes compare equal by content, so membership is by identity.
    """

    def __init__(self):
        self._nodes = {}

    def add(self, node) -> None:
        # Holding the node keeps its id from being reused
        self._nodes[id(node)] = node

    def __contains__(self, node) -> bool:
        return id(node) in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)


class Harvester:
    """Walks the page in document order and gathers text worth translating."""

    def __init__(self, page: Page, sampled: SampledSet):
        self.page = page
        self.sampled = sampled

    def is_visible(self, element) -> bool:
        """Element box intersects the viewport widened by the vertical slack band."""
        rect = self.page.client_rect(element)
        if rect is None:
            return False
        viewport = self.page.viewport
        band = Rect(-VIEWPORT_VERTICAL_SLACK, 0,
                    viewport.height + VIEWPORT_VERTICAL_SLACK, viewport.width)
        return rect.intersects(band)

    def accepts(self, node) -> bool:
        parent = element_parent(node)
        if parent is None:
            return False
        if parent.name.lower() in EXCLUDED_TAGS:
            return False
        # Widget text sits one level below the container
        if closest(parent, CONTAINER_CLASS) is not None or closest(parent, POPUP_CLASS) is not None:
            return False
        if not self.is_visible(parent):
            return False
        if len(node.strip()) < MIN_NODE_TEXT_LENGTH:
            return False
        return node not in self.sampled

    def sample(self, max_chars: int = MAX_SAMPLE_CHARS) -> SampleBatch:
        """Greedy first-fit pass. Stops as soon as the text collected exceeds max_chars.

        Every accepted node is marked as sampled, even when the batch ends up
        too small to be worth sending and an empty batch is returned.
        """
        items = []
        length = 0
        for node in list(self.page.text_nodes()):
            if not self.accepts(node):
                continue
            text = str(node)
            items.append((node, text))
            self.sampled.add(node)
            length += len(text) + 1
            if length > max_chars:
                break

        if length < MIN_SAMPLE_CHARS:
            logger.debug(f"Nothing new to sample ({len(items)} nodes, {length} chars)")
            return SampleBatch()
        logger.info(f"Sampled {len(items)} text nodes, {length} chars")
        return SampleBatch(items)

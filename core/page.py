"""Page document model: parsed HTML, viewport, layout and change notification."""

import logging
import math

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from .interfaces import LayoutProvider
from .models import Rect, Viewport

logger = logging.getLogger(__name__)

# Never rendered, so never given a box by the estimated layout
_UNRENDERED_TAGS = frozenset(['head', 'title', 'script', 'style', 'noscript', 'template'])


def is_text_node(node) -> bool:
    """True for plain text, False for comments, doctypes, CDATA and elements."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def element_parent(node) -> Tag | None:
    """The node's parent element, or None for detached nodes and document-level text."""
    parent = node.parent
    if parent is None or isinstance(parent, BeautifulSoup):
        return None
    return parent


def has_class(tag, name: str) -> bool:
    classes = tag.get('class') or []
    if isinstance(classes, str):
        classes = classes.split()
    return name in classes


def closest(tag, class_name: str):
    """The tag itself or its nearest ancestor carrying class_name, like Element.closest."""
    while tag is not None and not isinstance(tag, BeautifulSoup):
        if isinstance(tag, Tag) and has_class(tag, class_name):
            return tag
        tag = tag.parent
    return None


def _root_of(element):
    while element.parent is not None:
        element = element.parent
    return element


class StaticLayout(LayoutProvider):
    """Geometry measured elsewhere (e.g. by a browser) and handed in per element."""

    def __init__(self):
        self._rects = {}

    def place(self, element, rect: Rect) -> None:
        # Keep the element alive alongside its id so the key cannot be recycled
        self._rects[id(element)] = (element, rect)

    def get_rect(self, element):
        entry = self._rects.get(id(element))
        return entry[1] if entry else None

    def invalidate(self) -> None:
        pass


class FlowLayout(LayoutProvider):
    """Rough geometry estimated from text flow.

    Every non-blank text node is laid out as its own block, wrapped at the
    page width. An element's box is the union of the boxes of its text.
    """

    def __init__(self, width: int = 1280, char_width: int = 8, line_height: int = 20):
        self.width = width
        self.char_width = char_width
        self.line_height = line_height
        self._rects = None

    def invalidate(self) -> None:
        self._rects = None

    def get_rect(self, element):
        if self._rects is None:
            self._rects = self._compute(_root_of(element))
        entry = self._rects.get(id(element))
        return entry[1] if entry else None

    def _compute(self, root) -> dict:
        rects = {}
        y = 0
        for node in root.descendants:
            if not is_text_node(node) or not node.strip():
                continue
            if any(p.name in _UNRENDERED_TAGS for p in node.parents if isinstance(p, Tag)):
                continue
            text_width = len(node.strip()) * self.char_width
            lines = max(1, math.ceil(text_width / self.width))
            height = lines * self.line_height
            rect = Rect(y, 0, y + height, min(text_width, self.width))
            y += height
            for ancestor in node.parents:
                if isinstance(ancestor, BeautifulSoup):
                    break
                entry = rects.get(id(ancestor))
                rects[id(ancestor)] = (ancestor, entry[1].union(rect) if entry else rect)
        return rects


class Page:
    """A live document the engine reads from and writes into.

    All structural changes go through the page so that observers (the
    scheduler's mutation trigger) and the layout cache see them.
    """

    def __init__(self, soup: BeautifulSoup, viewport: Viewport | None = None,
                 layout: LayoutProvider | None = None):
        self.soup = soup
        self.viewport = viewport or Viewport()
        self.layout = layout or FlowLayout(width=self.viewport.width)
        self._observers = []

    @classmethod
    def from_html(cls, html: str, viewport: Viewport | None = None,
                  layout: LayoutProvider | None = None) -> 'Page':
        return cls(BeautifulSoup(html, 'html.parser'), viewport, layout)

    @property
    def body(self):
        return self.soup.body or self.soup

    @property
    def scroll_y(self) -> int:
        return self.viewport.scroll_y

    def scroll_to(self, y: int) -> None:
        self.viewport.scroll_y = max(0, int(y))

    def text_nodes(self):
        """Text nodes under the body in document order."""
        for node in self.body.descendants:
            if is_text_node(node):
                yield node

    def client_rect(self, element) -> Rect | None:
        """Viewport-relative box of an element, like getBoundingClientRect."""
        rect = self.layout.get_rect(element)
        if rect is None:
            return None
        return self.viewport.to_client(rect)

    def new_tag(self, name: str, **attrs) -> Tag:
        return self.soup.new_tag(name, attrs=attrs)

    def replace(self, node, replacement) -> None:
        node.replace_with(replacement)
        self.notify_mutation()

    def append(self, element) -> None:
        self.body.append(element)
        self.notify_mutation()

    def remove(self, element) -> None:
        if element.parent is not None:
            element.extract()
            self.notify_mutation()

    def append_html(self, html: str) -> None:
        fragment = BeautifulSoup(html, 'html.parser')
        for child in list(fragment.contents):
            self.body.append(child.extract())
        self.notify_mutation()

    def observe(self, callback):
        """Register a mutation callback. Returns a function that detaches it."""
        self._observers.append(callback)

        def disconnect():
            if callback in self._observers:
                self._observers.remove(callback)
        return disconnect

    def notify_mutation(self) -> None:
        invalidate = getattr(self.layout, 'invalidate', None)
        if invalidate:
            invalidate()
        for callback in list(self._observers):
            callback()

    def to_html(self) -> str:
        return str(self.soup)

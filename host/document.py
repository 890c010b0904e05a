"""Pages, containers and the document that owns them.

Geometry follows the ``[top, left, bottom, right]`` convention in points,
with the origin at the top-left corner of each page.
"""

import logging
from dataclasses import dataclass

from host.hyperlinks import Hyperlink, HyperlinkTextSource
from host.metrics import TextMetrics
from host.story import Paragraph, Story
from host.styles import StyleRegistry
from utils.errors import HostError

logger = logging.getLogger(__name__)

# US Letter, 1 inch margins.
_DEFAULT_PAGE_WIDTH = 612.0
_DEFAULT_PAGE_HEIGHT = 792.0
_DEFAULT_MARGIN = 72.0


@dataclass(frozen=True)
class Margins:
    top: float = _DEFAULT_MARGIN
    left: float = _DEFAULT_MARGIN
    bottom: float = _DEFAULT_MARGIN
    right: float = _DEFAULT_MARGIN


@dataclass(frozen=True)
class Bounds:
    top: float
    left: float
    bottom: float
    right: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def inset(self, margins: Margins) -> "Bounds":
        return Bounds(
            top=self.top + margins.top,
            left=self.left + margins.left,
            bottom=self.bottom - margins.bottom,
            right=self.right - margins.right,
        )

    def as_list(self) -> list[float]:
        return [self.top, self.left, self.bottom, self.right]


class Container:
    """A rectangular text region; chains with ``next_container``."""

    def __init__(self, page: "Page", bounds: Bounds) -> None:
        self.page = page
        self.bounds = bounds
        self.parent_story: Story | None = None
        self.previous_container: "Container | None" = None
        self._next: "Container | None" = None

    def __repr__(self) -> str:
        return f"Container(page={self.page.index}, bounds={self.bounds.as_list()})"

    @property
    def width(self) -> float:
        return max(self.bounds.width, 0.0)

    @property
    def height(self) -> float:
        return max(self.bounds.height, 0.0)

    @property
    def has_usable_area(self) -> bool:
        return self.width > 0 and self.height > 0

    @property
    def next_container(self) -> "Container | None":
        return self._next

    @next_container.setter
    def next_container(self, container: "Container | None") -> None:
        if container is self:
            raise HostError("A container cannot be linked to itself.")
        if container is not None and container.previous_container is not None:
            raise HostError("Container is already threaded to another container.")
        if self._next is not None:
            self._next.previous_container = None
            self._next.parent_story = None
        self._next = container
        if container is not None:
            container.previous_container = self
            container.parent_story = self.parent_story

    def place(self, story: Story) -> Story:
        """Make this container the head of *story*'s chain."""
        if self.previous_container is not None:
            raise HostError("Only the first container of a chain can receive content.")
        story.first_container = self
        container: Container | None = self
        while container is not None:
            container.parent_story = story
            container = container.next_container
        return story


class Page:
    def __init__(self, document: "Document", width: float, height: float, margins: Margins) -> None:
        self.document = document
        self.bounds = Bounds(0.0, 0.0, height, width)
        self.margins = margins
        self.containers: list[Container] = []

    def __repr__(self) -> str:
        return f"Page(index={self.index})"

    @property
    def index(self) -> int:
        for position, page in enumerate(self.document.pages):
            if page is self:
                return position
        raise HostError("Page has been removed from its document.")

    @property
    def content_bounds(self) -> Bounds:
        return self.bounds.inset(self.margins)

    def add_container(self, bounds: Bounds | None = None) -> Container:
        container = Container(self, bounds or self.content_bounds)
        self.containers.append(container)
        return container


class Document:
    """A paginated document with its style registry.

    Args:
        name: Display name (usually the template file name).
        page_width: Page width in points.
        page_height: Page height in points.
        margins: Margins applied to every page this document creates.
        styles: The target style set.
        metrics: Text geometry used when composing stories.
    """

    def __init__(
        self,
        name: str = "Untitled",
        page_width: float = _DEFAULT_PAGE_WIDTH,
        page_height: float = _DEFAULT_PAGE_HEIGHT,
        margins: Margins | None = None,
        styles: StyleRegistry | None = None,
        metrics: TextMetrics | None = None,
    ) -> None:
        self.name = name
        self.page_width = float(page_width)
        self.page_height = float(page_height)
        self.margins = margins or Margins()
        self.styles = styles or StyleRegistry()
        self.metrics = metrics or TextMetrics()
        self.pages: list[Page] = [self._new_page()]
        self.stories: list[Story] = []
        self.hyperlinks: list[Hyperlink] = []

    def _new_page(self) -> Page:
        return Page(self, self.page_width, self.page_height, self.margins)

    def add_page(self, after: Page | None = None) -> Page:
        """Insert a new page after *after* (default: after the last page)."""
        page = self._new_page()
        if after is None:
            self.pages.append(page)
        else:
            self.pages.insert(after.index + 1, page)
        logger.debug("Added page %d to '%s'.", page.index + 1, self.name)
        return page

    def new_story(self) -> Story:
        story = Story(self)
        self.stories.append(story)
        return story

    def add_hyperlink(self, hyperlink: Hyperlink) -> Hyperlink:
        self.hyperlinks.append(hyperlink)
        return hyperlink

    def link_spans_boundary(self, paragraph: Paragraph, run_index: int) -> bool:
        """``True`` if a text link in *paragraph* has runs on both sides of *run_index*."""
        for hyperlink in self.hyperlinks:
            source = hyperlink.source
            if not isinstance(source, HyperlinkTextSource):
                continue
            text_range = source.source_text
            if text_range.paragraph is not paragraph:
                continue
            positions = [
                index for index, run in enumerate(paragraph.runs)
                if any(run is r for r in text_range.runs)
            ]
            if positions and positions[0] < run_index <= positions[-1]:
                return True
        return False

    def rehome_text_ranges(self, old: Paragraph, new: Paragraph) -> None:
        """Point ranges whose runs moved from *old* to *new* at *new*."""
        moved = {id(run) for run in new.runs}
        for hyperlink in self.hyperlinks:
            source = hyperlink.source
            if not isinstance(source, HyperlinkTextSource):
                continue
            text_range = source.source_text
            if text_range.paragraph is old and text_range.runs and all(
                id(run) in moved for run in text_range.runs
            ):
                text_range.paragraph = new

"""Pagination flow: grow a story's container chain until nothing overflows."""

import logging

from host.document import Container, Document, Page
from host.story import Story
from utils.errors import PaginationError

logger = logging.getLogger(__name__)

_DEFAULT_MAX_PAGES = 500


def container_inside_margins(page: Page) -> Container:
    """Create a container covering *page*'s margin-derived bounds."""
    container = page.add_container(page.content_bounds)
    if not container.has_usable_area:
        raise PaginationError(
            f"Page {page.index + 1} has no usable area inside its margins "
            f"(bounds {page.bounds.as_list()}, margins {page.margins})."
        )
    return container


def first_container(page: Page) -> Container:
    """Return the page's first container, creating one if it has none."""
    if page.containers:
        return page.containers[0]
    return container_inside_margins(page)


class PaginationFlowController:
    """Adds pages and threads new containers while the story overflows.

    Pages are only ever added.  ``max_pages`` bounds the whole document so a
    story that can never fit fails with :class:`PaginationError` instead of
    looping.
    """

    def __init__(self, document: Document, max_pages: int = _DEFAULT_MAX_PAGES) -> None:
        self.document = document
        self.max_pages = max_pages

    def flow(self, story: Story) -> int:
        """Flow *story* until it no longer overflows; return pages added."""
        if story.first_container is None:
            raise PaginationError("Story is not attached to any container.")

        added = 0
        while story.overflows:
            if len(self.document.pages) >= self.max_pages:
                raise PaginationError(
                    f"Story still overflows after {len(self.document.pages)} pages "
                    f"(limit {self.max_pages}); content cannot be made to fit."
                )
            last_page = self.document.pages[-1]
            new_page = self.document.add_page(after=last_page)
            new_container = container_inside_margins(new_page)
            story.text_containers[-1].next_container = new_container
            added += 1

        logger.info(
            "Story flowed across %d container(s); %d page(s) added.",
            len(story.text_containers),
            added,
        )
        return added

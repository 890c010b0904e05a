"""Content sanitizer: blank-line collapse and trim-and-prune.

Both passes work on one story and reach a fixed point in a single call, so
running the sanitizer again on its own output changes nothing.
"""

import logging
from typing import Any

from host.story import Paragraph, Story

logger = logging.getLogger(__name__)


class ContentSanitizer:
    """Removes the empty-paragraph noise word processors leave behind.

    Table-cell paragraphs are trimmed but never removed; a cell always keeps
    its own paragraph.

    Args:
        keep_leading_tabs: Leave tabs that directly precede a paragraph's
            text in place so list classification can still see them.
    """

    def __init__(self, keep_leading_tabs: bool = True) -> None:
        self.keep_leading_tabs = keep_leading_tabs

    def sanitize(self, story: Story) -> dict[str, Any]:
        """Run both passes and return counters for the run report."""
        collapsed = self.collapse_blank_runs(story)
        trimmed, removed = self.trim_and_prune(story)
        stats = {
            "blank_runs_collapsed": collapsed,
            "paragraphs_trimmed": trimmed,
            "paragraphs_removed": removed,
        }
        logger.info(
            "Sanitized story: collapsed=%d trimmed=%d removed=%d",
            collapsed,
            trimmed,
            removed,
        )
        return stats

    # ------------------------------------------------------------------
    # Pass 1: whitespace collapse
    # ------------------------------------------------------------------

    def collapse_blank_runs(self, story: Story) -> int:
        """Reduce every run of two or more blank paragraphs to one.

        The first blank paragraph of a run survives; the others are
        removed.  Iterates from the end so removals never shift paragraphs
        that are still to be visited.

        Returns:
            Number of paragraphs removed.
        """
        removed = 0
        paragraphs = story.paragraphs
        index = len(paragraphs) - 1
        while index > 0:
            current = paragraphs[index]
            previous = paragraphs[index - 1]
            if self._is_blank_body(current) and self._is_blank_body(previous):
                if self._remove(current):
                    removed += 1
            index -= 1
        return removed

    # ------------------------------------------------------------------
    # Pass 2: trim and prune
    # ------------------------------------------------------------------

    def trim_and_prune(self, story: Story) -> tuple[int, int]:
        """Trim every paragraph and delete the ones left empty.

        Walks the paragraph list in reverse: deleting index *i* only moves
        paragraphs at positions > *i*, all of which were already visited.

        Returns:
            ``(trimmed, removed)`` counts.
        """
        trimmed = 0
        removed = 0
        for index in range(len(story.paragraphs) - 1, -1, -1):
            paragraph = story.paragraphs[index]
            try:
                with paragraph.transaction():
                    if paragraph.trim(keep_leading_tabs=self.keep_leading_tabs):
                        trimmed += 1
            except Exception:
                logger.warning(
                    "Could not trim paragraph %d; leaving it unchanged.",
                    index,
                    exc_info=True,
                )
                continue

            if paragraph.in_table or paragraph.contents:
                continue
            if self._remove(paragraph):
                removed += 1
        return trimmed, removed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _is_blank_body(paragraph: Paragraph) -> bool:
        return not paragraph.in_table and paragraph.is_blank()

    @staticmethod
    def _remove(paragraph: Paragraph) -> bool:
        try:
            paragraph.remove()
        except Exception:
            logger.warning("Could not remove empty paragraph; skipping.", exc_info=True)
            return False
        return True

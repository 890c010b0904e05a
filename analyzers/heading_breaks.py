"""Paragraph breaks between run-together headings.

Word can carry two headings in one paragraph when the second one is only
marked by a heading-linked character style (``"Heading 2 Char"``).  The
boundary is found from run styles, never from the text itself.
"""

import logging
import re

from host.story import Paragraph, Run, Story

logger = logging.getLogger(__name__)

_HEADING_LEVEL_RE = re.compile(r"\bheading\s*([1-6])\b", re.IGNORECASE)


def heading_level(style_name: str | None) -> int | None:
    """Heading level named by a paragraph or linked character style."""
    if not style_name:
        return None
    m = _HEADING_LEVEL_RE.search(style_name)
    return int(m.group(1)) if m else None


def _run_level(run: Run, paragraph_level: int | None) -> int | None:
    return heading_level(run.source_style_name) or paragraph_level


class HeadingBreakInserter:
    """Splits paragraphs where one heading level runs straight into another.

    Once a paragraph is known to hold run-together headings, body text
    around them is split off too, so it keeps the paragraph's own style
    instead of being renamed to a heading.
    """

    def insert_breaks(self, story: Story) -> int:
        """Split every run-together heading; return the number of breaks added."""
        inserted = 0
        for paragraph in list(story.paragraphs):
            if paragraph.in_table or len(paragraph.runs) < 2:
                continue
            boundaries = self.find_boundaries(paragraph)
            if not boundaries:
                continue
            boundaries = self._outside_links(paragraph, boundaries)
            if not boundaries:
                continue
            try:
                inserted += self._split(paragraph, boundaries)
            except Exception:
                logger.warning("Could not split headings in %r; skipping.",
                               paragraph, exc_info=True)
        if inserted:
            logger.info("Inserted %d break(s) between adjacent headings.", inserted)
        return inserted

    @staticmethod
    def find_boundaries(paragraph: Paragraph) -> list[tuple[int, int | None, int | None]]:
        """Return ``(run_index, level_before, level_after)`` per boundary.

        A level of ``None`` marks body text.  Nothing is returned unless two
        heading segments of different levels meet directly.  Blank runs
        belong to the segment before them.
        """
        paragraph_level = heading_level(paragraph.source_style_name)
        boundaries: list[tuple[int, int | None, int | None]] = []
        run_together = False
        current: int | None = None
        started = False
        for index, run in enumerate(paragraph.runs):
            if not run.text.strip():
                continue
            level = _run_level(run, paragraph_level)
            if started and level != current:
                boundaries.append((index, current, level))
                if current is not None and level is not None:
                    run_together = True
            current = level
            started = True
        return boundaries if run_together else []

    @staticmethod
    def _outside_links(
        paragraph: Paragraph, boundaries: list[tuple[int, int | None, int | None]]
    ) -> list[tuple[int, int | None, int | None]]:
        document = paragraph.story.document if paragraph.story else None
        if document is None:
            return boundaries
        kept = []
        for boundary in boundaries:
            if document.link_spans_boundary(paragraph, boundary[0]):
                logger.debug("Not splitting %r inside a hyperlink at run %d.",
                             paragraph, boundary[0])
                continue
            kept.append(boundary)
        return kept

    @staticmethod
    def _split(paragraph: Paragraph, boundaries: list[tuple[int, int | None, int | None]]) -> int:
        body_style = paragraph.source_style_name
        paragraph_level = heading_level(body_style)
        first_level = next(
            _run_level(run, paragraph_level) for run in paragraph.runs if run.text.strip()
        )
        for index, _before, after in reversed(boundaries):
            tail = paragraph.split_before_run(index)
            tail.source_style_name = f"Heading {after}" if after is not None else body_style
            tail.trim(keep_leading_tabs=True)
        if first_level is not None:
            paragraph.source_style_name = f"Heading {first_level}"
        paragraph.trim(keep_leading_tabs=True)
        return len(boundaries)

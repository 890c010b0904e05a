"""Applies the target table style to every table of a story."""

import logging

from host.story import Story
from host.styles import StyleRegistry

logger = logging.getLogger(__name__)


class TableStyler:
    """Assigns one registered table style to all tables.

    Args:
        styles: The target document's style registry.
        style_name: Name of the table style to apply.
    """

    def __init__(self, styles: StyleRegistry, style_name: str) -> None:
        self._registry = styles
        self.style_name = style_name

    def apply(self, story: Story) -> dict[str, int]:
        """Style every table; one failing table never stops the others."""
        stats = {"tables_styled": 0, "tables_failed": 0}
        style = self._registry.table_style(self.style_name)
        if style is None:
            logger.debug("Table style '%s' is not registered; tables left as imported.",
                         self.style_name)
            return stats
        if not story.tables:
            return stats

        for index, table in enumerate(story.tables):
            try:
                table.apply_style(style)
            except Exception:
                logger.warning("Failed to style table %d; continuing.", index, exc_info=True)
                stats["tables_failed"] += 1
                continue
            stats["tables_styled"] += 1

        logger.info("Applied table style '%s' to %d/%d table(s).",
                    style.name, stats["tables_styled"], len(story.tables))
        return stats

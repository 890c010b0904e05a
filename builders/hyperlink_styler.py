"""Hyperlink classification and character styling.

Only links that point at a literal external URL and are anchored on real
text get the hyperlink character style; everything else keeps its imported
look.
"""

import logging
import re
from typing import Iterable

from host.document import Document
from host.hyperlinks import Hyperlink, HyperlinkTextSource, URLDestination
from host.styles import StyleRegistry

logger = logging.getLogger(__name__)

DEFAULT_SCHEMES = ("http", "https", "mailto", "ftp")


def _scheme_pattern(schemes: Iterable[str]) -> re.Pattern[str]:
    alternatives = "|".join(sorted((re.escape(s) for s in schemes), key=len, reverse=True))
    return re.compile(rf"^\s*(?:{alternatives}):", re.IGNORECASE)


class HyperlinkStyler:
    """Applies the hyperlink character style to external text links.

    Parameters
    ----------
    styles:
        The target document's style registry.
    style_name:
        Name of the character style to apply.
    schemes:
        URL schemes recognised as external when the destination is not an
        explicit URL destination.
    """

    def __init__(
        self,
        styles: StyleRegistry,
        style_name: str,
        schemes: Iterable[str] = DEFAULT_SCHEMES,
    ) -> None:
        self._registry = styles
        self.style_name = style_name
        self._scheme_re = _scheme_pattern(schemes)

    def is_external(self, hyperlink: Hyperlink) -> bool:
        """``True`` for an explicit URL destination or a known URL scheme."""
        destination = hyperlink.destination
        if destination is None:
            return False
        if isinstance(destination, URLDestination):
            return True
        address = getattr(destination, "address", None)
        return bool(address) and bool(self._scheme_re.match(address))

    def apply(self, document: Document) -> dict[str, int]:
        """Style every qualifying hyperlink of *document*."""
        stats = {"links_styled": 0, "links_skipped": 0, "links_failed": 0}
        style = self._registry.character_style(self.style_name)
        if style is None:
            logger.debug("Character style '%s' is not registered; links left as imported.",
                         self.style_name)
            return stats

        for index, hyperlink in enumerate(document.hyperlinks):
            try:
                if not self.is_external(hyperlink):
                    logger.debug("Link %d is internal; skipped.", index)
                    stats["links_skipped"] += 1
                    continue
                source = hyperlink.source
                if not isinstance(source, HyperlinkTextSource):
                    logger.debug("Link %d is not anchored on text; skipped.", index)
                    stats["links_skipped"] += 1
                    continue
                text_range = source.source_text
                if not text_range.is_valid or len(text_range) == 0:
                    logger.debug("Link %d has an empty text range; skipped.", index)
                    stats["links_skipped"] += 1
                    continue
                text_range.apply_character_style(style)
            except Exception:
                logger.warning("Failed to style hyperlink %d; continuing.", index, exc_info=True)
                stats["links_failed"] += 1
                continue
            stats["links_styled"] += 1

        logger.info("Applied '%s' to %d of %d hyperlink(s).",
                    style.name, stats["links_styled"], len(document.hyperlinks))
        return stats

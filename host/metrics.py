"""Line-count estimation used to compose a story into its containers.

Glyph shapes are not resolved; a paragraph's width is approximated from an
average character width expressed as a fraction of the font size.
"""

import math
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TextMetrics:
    """Average text geometry, all values in points.

    Attributes:
        font_size: Body font size.
        leading: Line height as a multiple of ``font_size``.
        char_width: Average glyph advance as a fraction of ``font_size``.
    """

    font_size: float = 11.0
    leading: float = 1.2
    char_width: float = 0.5

    @classmethod
    def from_config(cls, config: dict[str, Any] | None) -> "TextMetrics":
        cfg = config or {}
        return cls(
            font_size=float(cfg.get("font_size", cls.font_size)),
            leading=float(cfg.get("leading", cls.leading)),
            char_width=float(cfg.get("char_width", cls.char_width)),
        )

    @property
    def line_height(self) -> float:
        return self.font_size * self.leading

    def lines_available(self, height: float) -> int:
        """Number of whole lines that fit in *height*."""
        if height <= 0 or self.line_height <= 0:
            return 0
        return int(math.floor(height / self.line_height + 1e-9))

    def lines_for_text(self, text: str, width: float) -> int:
        """Lines a paragraph of *text* needs in a column *width* wide.

        Every paragraph takes at least one line; forced line breaks start a
        new line.
        """
        if width <= 0:
            return max(len(text), 1)
        advance = self.font_size * self.char_width
        chars_per_line = max(int(width // advance), 1) if advance > 0 else 1
        total = 0
        for segment in text.split("\n"):
            total += max(math.ceil(len(segment.expandtabs(4)) / chars_per_line), 1)
        return total

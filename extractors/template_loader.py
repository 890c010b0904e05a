"""Target template loading.

The template ``.docx`` is the target presentation style set: its styles fill
the :class:`~host.styles.StyleRegistry` and its first section gives the page
size and margins of every page the pipeline creates.
"""

import logging
import os
from typing import Any

from docx import Document as open_docx
from docx.enum.style import WD_STYLE_TYPE

from host.document import Document, Margins
from host.metrics import TextMetrics
from host.styles import StyleDefinition, StyleKind, StyleRegistry
from utils.errors import StructuralPrecondition

logger = logging.getLogger(__name__)

_KIND_BY_TYPE = {
    WD_STYLE_TYPE.PARAGRAPH: StyleKind.PARAGRAPH,
    WD_STYLE_TYPE.CHARACTER: StyleKind.CHARACTER,
    WD_STYLE_TYPE.TABLE: StyleKind.TABLE,
}

# US Letter with 1 inch margins, in points.
_FALLBACK_PAGE = (612.0, 792.0)
_FALLBACK_MARGIN = 72.0


def _pt(length: Any, default: float) -> float:
    return float(length.pt) if length is not None else default


class TemplateLoader:
    """Opens a template ``.docx`` as the target host document."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config: dict[str, Any] = config or {}

    def load(self, template_path: str | None) -> Document:
        """Build a host :class:`Document` from *template_path*.

        Raises:
            StructuralPrecondition: No template was given, or it cannot be
                opened as a Word document.
        """
        if not template_path:
            raise StructuralPrecondition("No target template given; open a template first.")
        if not os.path.isfile(template_path):
            raise StructuralPrecondition(f"Target template not found: {template_path}")

        try:
            source = open_docx(template_path)
        except Exception as exc:
            raise StructuralPrecondition(
                f"Cannot open target template '{template_path}': {exc}"
            ) from exc

        styles = self.read_styles(source)
        section = source.sections[0]
        margins = Margins(
            top=_pt(section.top_margin, _FALLBACK_MARGIN),
            left=_pt(section.left_margin, _FALLBACK_MARGIN),
            bottom=_pt(section.bottom_margin, _FALLBACK_MARGIN),
            right=_pt(section.right_margin, _FALLBACK_MARGIN),
        )
        document = Document(
            name=os.path.basename(template_path),
            page_width=_pt(section.page_width, _FALLBACK_PAGE[0]),
            page_height=_pt(section.page_height, _FALLBACK_PAGE[1]),
            margins=margins,
            styles=styles,
            metrics=TextMetrics.from_config(self.config.get("metrics")),
        )
        logger.info(
            "Template '%s': %.0fx%.0f pt page, %d paragraph / %d character / %d table style(s).",
            document.name,
            document.page_width,
            document.page_height,
            len(styles.names(StyleKind.PARAGRAPH)),
            len(styles.names(StyleKind.CHARACTER)),
            len(styles.names(StyleKind.TABLE)),
        )
        return document

    @staticmethod
    def read_styles(source: Any) -> StyleRegistry:
        """Register every paragraph, character and table style of *source*."""
        registry = StyleRegistry()
        for style in source.styles:
            try:
                kind = _KIND_BY_TYPE.get(style.type)
                name = style.name
            except Exception:
                logger.debug("Unreadable style entry in template; skipped.", exc_info=True)
                continue
            if kind is None or not name:
                continue
            base = style.base_style
            registry.register(
                StyleDefinition(
                    name=name,
                    kind=kind,
                    style_id=style.style_id,
                    base_style=base.name if base is not None else None,
                )
            )
        return registry

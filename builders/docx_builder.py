"""DOCX output builder.

Writes a normalized host story back out as a Word document.  The target
template is reopened as the base so its styles, section geometry, headers
and footers carry over; only the body content is replaced.
"""

import os
import logging
from typing import Any, Dict, Optional

from lxml import etree

import docx.opc.constants
from docx import Document
from docx.shared import Pt, RGBColor
from docx.oxml.ns import qn

from host.document import Document as HostDocument
from host.hyperlinks import Hyperlink, HyperlinkTextSource, TextAnchorDestination, URLDestination
from host.story import Paragraph, Run, Story, Table
from host.styles import StyleKind

logger = logging.getLogger(__name__)


class DocxBuilder:
    """Builds a ``.docx`` document from a host story.

    Parameters
    ----------
    config : dict
        Application configuration (typically loaded from
        ``config/settings.json``).  ``output.keep_source_styles`` decides
        whether paragraphs and runs without an applied style keep their
        source style when the template defines it.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        self._config = config or {}
        output_cfg = self._config.get("output") or {}
        self._keep_source_styles = bool(output_cfg.get("keep_source_styles", True))
        self._doc: Any = None
        self._host: Optional[HostDocument] = None
        self._links_by_run: Dict[int, Hyperlink] = {}
        self._skipped: int = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(
        self,
        document: HostDocument,
        story: Story,
        template_path: str,
        output_path: str,
    ) -> str:
        """Write *story* into a copy of *template_path* saved at *output_path*.

        Parameters
        ----------
        document:
            Host document owning *story*; supplies the style registry and
            the hyperlink list.
        story:
            The normalized story to write.
        template_path:
            The target template the host document was loaded from.
        output_path:
            Filesystem path for the generated ``.docx`` file.

        Returns
        -------
        str
            The absolute path to the saved document.
        """
        self._skipped = 0
        self._host = document
        self._doc = Document(template_path)
        self._clear_body()
        self._index_links(document)

        for idx, block in enumerate(story.blocks()):
            try:
                if isinstance(block, Table):
                    self._add_table(block)
                else:
                    self._add_paragraph(block)
            except Exception:
                logger.warning(
                    "Failed to write block %d (%s); skipping.",
                    idx,
                    type(block).__name__,
                    exc_info=True,
                )
                self._skipped += 1

        if self._skipped:
            logger.info("Document built with %d skipped block(s).", self._skipped)

        return self._save(output_path)

    # ------------------------------------------------------------------
    # Document setup
    # ------------------------------------------------------------------

    def _clear_body(self) -> None:
        """Drop the template's body content, keeping the final section properties."""
        body = self._doc.element.body
        for child in list(body.iterchildren()):
            if child.tag != qn("w:sectPr"):
                body.remove(child)

    def _index_links(self, document: HostDocument) -> None:
        self._links_by_run = {}
        for hyperlink in document.hyperlinks:
            source = hyperlink.source
            if not isinstance(source, HyperlinkTextSource):
                continue
            text_range = source.source_text
            if not text_range.is_valid:
                continue
            for run in text_range.runs:
                self._links_by_run[id(run)] = hyperlink

    # ------------------------------------------------------------------
    # Block writers
    # ------------------------------------------------------------------

    def _add_paragraph(self, paragraph: Paragraph) -> None:
        para = self._doc.add_paragraph()
        self._fill_paragraph(para, paragraph)

    def _add_table(self, table: Table) -> None:
        num_rows = len(table.rows)
        num_cols = table.column_count
        if num_rows <= 0 or num_cols <= 0:
            logger.warning("Table with invalid dimensions (%dx%d); skipping.", num_rows, num_cols)
            return

        out = self._doc.add_table(rows=num_rows, cols=num_cols)
        style_name = table.applied_style.name if table.applied_style is not None else None
        if style_name:
            try:
                out.style = style_name
            except (KeyError, ValueError):
                logger.debug("Table style '%s' missing from template.", style_name)

        for r_idx, row in enumerate(table.rows):
            for c_idx, cell in enumerate(row):
                if c_idx >= num_cols:
                    break
                target = out.cell(r_idx, c_idx)
                for p_idx, paragraph in enumerate(cell.paragraphs):
                    para = target.paragraphs[0] if p_idx == 0 else target.add_paragraph()
                    self._fill_paragraph(para, paragraph)

    def _fill_paragraph(self, para: Any, paragraph: Paragraph) -> None:
        style_name = self._paragraph_style_name(paragraph)
        if style_name:
            try:
                para.style = style_name
            except (KeyError, ValueError):
                logger.debug("Paragraph style '%s' missing from template.", style_name)
        self._apply_paragraph_overrides(para, paragraph.overrides)

        written: set[int] = set()
        for run in paragraph.runs:
            if id(run) in written:
                continue
            hyperlink = self._links_by_run.get(id(run))
            if hyperlink is not None and hyperlink.source.source_text.paragraph is paragraph:
                link_runs = [r for r in hyperlink.source.source_text.runs if r in paragraph.runs]
                self._add_hyperlink(para, link_runs, hyperlink)
                written.update(id(r) for r in link_runs)
                continue
            out = para.add_run(run.text)
            self._apply_run_formatting(out, run)
            written.add(id(run))

    def _paragraph_style_name(self, paragraph: Paragraph) -> Optional[str]:
        if paragraph.applied_style is not None:
            return paragraph.applied_style.name
        # Unclassified paragraphs keep their source style when the template has it.
        if not self._keep_source_styles or self._host is None:
            return None
        if self._host.styles.paragraph_style(paragraph.source_style_name):
            return paragraph.source_style_name
        return None

    @staticmethod
    def _apply_paragraph_overrides(para: Any, overrides: Dict[str, Any]) -> None:
        fmt = para.paragraph_format
        if "alignment" in overrides:
            fmt.alignment = overrides["alignment"]
        if "space_before" in overrides:
            fmt.space_before = Pt(overrides["space_before"])
        if "space_after" in overrides:
            fmt.space_after = Pt(overrides["space_after"])
        if "first_line_indent" in overrides:
            fmt.first_line_indent = Pt(overrides["first_line_indent"])

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def _save(self, output_path: str) -> str:
        """Persist the document to *output_path*.

        Creates intermediate directories when necessary.

        Returns
        -------
        str
            The absolute path of the saved file.
        """
        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        self._doc.save(output_path)
        abs_path = os.path.abspath(output_path)
        logger.info("Document saved to '%s'.", abs_path)
        return abs_path

    # ------------------------------------------------------------------
    # Hyperlink helper
    # ------------------------------------------------------------------

    def _add_hyperlink(self, paragraph: Any, runs: list[Run], hyperlink: Hyperlink) -> None:
        """Write *runs* inside a ``<w:hyperlink>`` element of *paragraph*.

        python-docx cannot create hyperlinks, so the element is built on the
        underlying OOXML and the runs are moved into it after formatting.
        """
        destination = hyperlink.destination
        link_el = etree.SubElement(paragraph._element, qn("w:hyperlink"))
        if isinstance(destination, URLDestination):
            r_id = self._doc.part.relate_to(
                destination.url,
                docx.opc.constants.RELATIONSHIP_TYPE.HYPERLINK,
                is_external=True,
            )
            link_el.set(qn("r:id"), r_id)
        elif isinstance(destination, TextAnchorDestination):
            link_el.set(qn("w:anchor"), destination.name)

        for run in runs:
            out = paragraph.add_run(run.text)
            self._apply_run_formatting(out, run)
            # Preserve leading/trailing whitespace.
            for t_el in out._element.iter(qn("w:t")):
                t_el.set(qn("xml:space"), "preserve")
            link_el.append(out._element)

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    def _apply_run_formatting(self, out: Any, run: Run) -> None:
        """Copy emphasis, character style and surviving font overrides to *out*."""
        if run.bold is not None:
            out.font.bold = bool(run.bold)
        if run.italic is not None:
            out.font.italic = bool(run.italic)
        if run.underline is not None:
            out.font.underline = bool(run.underline)

        style_name = self._character_style_name(run)
        if style_name:
            try:
                out.style = style_name
            except (KeyError, ValueError):
                logger.debug("Character style '%s' missing from template.", style_name)

        overrides = run.font_overrides
        if overrides.get("font"):
            out.font.name = overrides["font"]
        size = overrides.get("size")
        if size is not None:
            try:
                out.font.size = Pt(float(size))
            except (TypeError, ValueError):
                logger.debug("Invalid font size '%s'; ignoring.", size)
        color = overrides.get("color")
        if color:
            try:
                out.font.color.rgb = RGBColor.from_string(str(color).lstrip("#"))
            except (TypeError, ValueError):
                logger.debug("Invalid color value '%s'; ignoring.", color)

    def _character_style_name(self, run: Run) -> Optional[str]:
        if run.applied_character_style is not None:
            return run.applied_character_style.name
        if not self._keep_source_styles or self._host is None:
            return None
        if self._host.styles.lookup(StyleKind.CHARACTER, run.source_style_name):
            return run.source_style_name
        return None

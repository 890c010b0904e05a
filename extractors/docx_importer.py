"""Places a Word document into a container as a host story.

python-docx does the parsing; this module only maps what it exposes onto
the host model: paragraphs with their source style name, left indent, list
membership and local formatting, character runs, tables, and hyperlinks on
text or on inline pictures.
"""

import logging
import os
from typing import Any, Iterator

from docx import Document as open_docx
from docx.oxml.ns import qn
from docx.table import Table as DocxTable
from docx.text.hyperlink import Hyperlink as DocxHyperlink
from docx.text.paragraph import Paragraph as DocxParagraph
from docx.text.run import Run as DocxRun

from host.document import Container, Document
from host.hyperlinks import (
    Hyperlink,
    HyperlinkPageItemSource,
    HyperlinkTextSource,
    TextAnchorDestination,
    URLDestination,
)
from host.story import Cell, ListType, Paragraph, Run, Story, Table, TextRange
from utils.errors import InputMissing, StructuralPrecondition

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".docx",)

# Character style python-docx reports for runs that carry none.
_DEFAULT_CHARACTER_STYLE = "Default Paragraph Font"


class DocxImporter:
    """Flows the content of a ``.docx`` file into a host container."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config: dict[str, Any] = config or {}
        self._document: Document | None = None
        self._source: Any = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def place(self, input_path: str, container: Container) -> Story:
        """Read *input_path* and place its content into *container*.

        Returns:
            The new story, headed by *container*.

        Raises:
            InputMissing: The file is missing, not a ``.docx`` or unreadable.
            StructuralPrecondition: No story resolved after placement.
        """
        self._check_input(input_path)
        try:
            self._source = open_docx(input_path)
        except Exception as exc:
            raise InputMissing(f"Cannot read '{input_path}' as a Word document: {exc}") from exc

        self._document = container.page.document
        story = self._document.new_story()
        container.place(story)

        paragraph_count = 0
        for block in self._iter_blocks():
            if isinstance(block, DocxTable):
                story.add_table(self._convert_table(block))
            else:
                story.add_paragraph(self._convert_paragraph(block))
                paragraph_count += 1

        if story.first_container is not container:
            raise StructuralPrecondition("No story found in the placed container.")

        logger.info(
            "Placed '%s': %d paragraph(s), %d table(s), %d hyperlink(s).",
            os.path.basename(input_path),
            paragraph_count,
            len(story.tables),
            len(self._document.hyperlinks),
        )
        return story

    # ------------------------------------------------------------------
    # Source traversal
    # ------------------------------------------------------------------

    @staticmethod
    def _check_input(input_path: str) -> None:
        if not os.path.isfile(input_path):
            raise InputMissing(f"Input file does not exist: {input_path}")
        ext = os.path.splitext(input_path)[1].lower()
        if ext not in SUPPORTED_EXTENSIONS:
            raise InputMissing(
                f"Unsupported input format '{ext or '(none)'}'; "
                f"expected one of {', '.join(SUPPORTED_EXTENSIONS)}."
            )

    def _iter_blocks(self) -> Iterator[DocxParagraph | DocxTable]:
        body = self._source.element.body
        qp, qt = qn("w:p"), qn("w:tbl")
        for child in body.iterchildren():
            if child.tag == qp:
                yield DocxParagraph(child, self._source)
            elif child.tag == qt:
                yield DocxTable(child, self._source)

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def _convert_table(self, source_table: DocxTable) -> Table:
        rows: list[list[Cell]] = []
        for source_row in source_table.rows:
            cells: list[Cell] = []
            seen: set[int] = set()
            for source_cell in source_row.cells:
                # Horizontally merged cells come back once per grid column.
                if id(source_cell._tc) in seen:
                    continue
                seen.add(id(source_cell._tc))
                paragraphs = [self._convert_paragraph(p) for p in source_cell.paragraphs]
                cells.append(Cell(paragraphs or None))
            rows.append(cells)
        return Table(rows)

    def _convert_paragraph(self, source: DocxParagraph) -> Paragraph:
        list_type, list_level = self._list_info(source)
        paragraph = Paragraph(
            source_style_name=self._style_name(source),
            left_indent=self._left_indent(source),
            list_type=list_type,
            list_level=list_level,
            overrides=self._paragraph_overrides(source),
        )
        for item in source.iter_inner_content():
            if isinstance(item, DocxHyperlink):
                runs = [self._convert_run(r) for r in item.runs]
                paragraph.runs.extend(runs)
                self._register_text_link(paragraph, runs, item)
            elif isinstance(item, DocxRun):
                paragraph.runs.append(self._convert_run(item))
                self._register_picture_links(item)
        return paragraph

    @staticmethod
    def _convert_run(source: DocxRun) -> Run:
        font = source.font
        overrides: dict[str, Any] = {}
        if font.name:
            overrides["font"] = font.name
        if font.size is not None:
            overrides["size"] = font.size.pt
        try:
            if font.color is not None and font.color.rgb is not None:
                overrides["color"] = str(font.color.rgb)
        except (AttributeError, ValueError):
            pass

        style_name: str | None = None
        try:
            style_name = source.style.name if source.style is not None else None
        except (AttributeError, KeyError):
            style_name = None
        if style_name == _DEFAULT_CHARACTER_STYLE:
            style_name = None

        return Run(
            text=source.text,
            bold=source.bold,
            italic=source.italic,
            underline=bool(source.underline) if source.underline is not None else None,
            source_style_name=style_name,
            font_overrides=overrides,
        )

    # ------------------------------------------------------------------
    # Hyperlinks
    # ------------------------------------------------------------------

    def _register_text_link(self, paragraph: Paragraph, runs: list[Run], source: DocxHyperlink) -> None:
        address = source.address
        fragment = source.fragment
        if address:
            destination: URLDestination | TextAnchorDestination | None = URLDestination(source.url)
        elif fragment:
            destination = TextAnchorDestination(fragment)
        else:
            destination = None
        self._document.add_hyperlink(
            Hyperlink(
                source=HyperlinkTextSource(TextRange(paragraph, runs)),
                destination=destination,
                name=source.text,
            )
        )

    def _register_picture_links(self, source: DocxRun) -> None:
        """Record hyperlinks attached to inline pictures (non-text sources)."""
        for click in source._r.xpath(".//a:hlinkClick"):
            r_id = click.get(qn("r:id"))
            if not r_id:
                continue
            try:
                rel = source.part.rels[r_id]
            except KeyError:
                logger.debug("Picture link '%s' has no relationship; skipped.", r_id)
                continue
            target = rel.target_ref
            destination = URLDestination(target) if rel.is_external else TextAnchorDestination(target)
            self._document.add_hyperlink(
                Hyperlink(
                    source=HyperlinkPageItemSource("inline picture"),
                    destination=destination,
                )
            )

    # ------------------------------------------------------------------
    # Paragraph properties
    # ------------------------------------------------------------------

    @staticmethod
    def _style_name(source: DocxParagraph) -> str | None:
        try:
            style = source.style
            return style.name if style is not None else None
        except (AttributeError, KeyError):
            return None

    @staticmethod
    def _left_indent(source: DocxParagraph) -> float:
        """Direct left indent in points, else the nearest one in the style chain."""
        indent = source.paragraph_format.left_indent
        if indent is not None:
            return float(indent.pt)
        style = source.style
        seen: set[int] = set()
        while style is not None and id(style) not in seen:
            seen.add(id(style))
            indent = style.paragraph_format.left_indent
            if indent is not None:
                return float(indent.pt)
            style = style.base_style
        return 0.0

    @staticmethod
    def _list_info(source: DocxParagraph) -> tuple[ListType, int]:
        """List membership from ``w:numPr`` on the paragraph or its style chain.

        ``numId`` 0 explicitly switches numbering off.
        """
        num_pr = None
        p_pr = source._p.pPr
        if p_pr is not None:
            num_pr = p_pr.numPr
        if num_pr is None:
            style = source.style
            seen: set[int] = set()
            while style is not None and id(style) not in seen:
                seen.add(id(style))
                style_p_pr = style.element.pPr
                if style_p_pr is not None and style_p_pr.numPr is not None:
                    num_pr = style_p_pr.numPr
                    break
                style = style.base_style
        if num_pr is None:
            return ListType.NO_LIST, 0

        num_id = num_pr.numId
        if num_id is not None and num_id.val == 0:
            return ListType.NO_LIST, 0
        level = num_pr.ilvl.val if num_pr.ilvl is not None else 0
        return ListType.BULLET_LIST, int(level)

    @staticmethod
    def _paragraph_overrides(source: DocxParagraph) -> dict[str, Any]:
        fmt = source.paragraph_format
        overrides: dict[str, Any] = {}
        if fmt.alignment is not None:
            overrides["alignment"] = fmt.alignment
        if fmt.space_before is not None:
            overrides["space_before"] = fmt.space_before.pt
        if fmt.space_after is not None:
            overrides["space_after"] = fmt.space_after.pt
        if fmt.first_line_indent is not None:
            overrides["first_line_indent"] = fmt.first_line_indent.pt
        return overrides

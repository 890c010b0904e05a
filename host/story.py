"""Flowing text content: stories, paragraphs, runs and tables.

A paragraph's text is held as an ordered list of :class:`Run` objects.  Text
ranges (hyperlink sources) point at runs rather than character offsets, so
trimming or stripping a paragraph never leaves a range pointing at the wrong
characters.
"""

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator

from host.metrics import TextMetrics
from host.styles import StyleDefinition
from utils.errors import HostError

if TYPE_CHECKING:
    from host.document import Container, Document

logger = logging.getLogger(__name__)

# Characters treated as whitespace when trimming paragraphs.
_WHITESPACE = " \t\n\r\f\v\u00a0\u2002\u2003\u2009\u200b\ufeff"


class ListType(Enum):
    NO_LIST = "none"
    BULLET_LIST = "bullet"


class StyleCategory(Enum):
    UNCLASSIFIED = "unclassified"
    HEADING = "heading"
    BODY = "body"
    BULLET = "bullet"
    SUB_BULLET = "sub_bullet"


@dataclass(eq=False)
class Run:
    """A span of characters sharing one set of character attributes."""

    text: str = ""
    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    source_style_name: str | None = None
    applied_character_style: StyleDefinition | None = None
    font_overrides: dict[str, Any] = field(default_factory=dict)


class TextRange:
    """A contiguous range of whole runs inside one paragraph."""

    def __init__(self, paragraph: "Paragraph", runs: list[Run]) -> None:
        self.paragraph = paragraph
        self.runs = list(runs)

    @property
    def is_valid(self) -> bool:
        if not self.paragraph.is_valid:
            return False
        owned = self.paragraph.runs
        return all(any(run is r for r in owned) for run in self.runs)

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)

    def __len__(self) -> int:
        return len(self.text)

    def apply_character_style(self, style: StyleDefinition) -> None:
        if not self.is_valid:
            raise HostError("Text range no longer belongs to a live paragraph.")
        for run in self.runs:
            run.applied_character_style = style


class Paragraph:
    """One paragraph of a story (or of a table cell)."""

    def __init__(
        self,
        runs: list[Run] | None = None,
        source_style_name: str | None = None,
        left_indent: float = 0.0,
        list_type: ListType = ListType.NO_LIST,
        list_level: int = 0,
        overrides: dict[str, Any] | None = None,
        table: "Table | None" = None,
    ) -> None:
        self.runs: list[Run] = list(runs or [])
        self.source_style_name = source_style_name
        self.left_indent = float(left_indent or 0.0)
        self.list_type = list_type
        self.list_level = list_level
        self.overrides: dict[str, Any] = dict(overrides or {})
        self.table = table
        self.applied_style: StyleDefinition | None = None
        self.category = StyleCategory.UNCLASSIFIED
        self.story: "Story | None" = None
        self._valid = True

    @classmethod
    def from_text(cls, text: str, **kwargs: Any) -> "Paragraph":
        return cls(runs=[Run(text=text)], **kwargs)

    def __repr__(self) -> str:
        return f"Paragraph({self.contents!r}, style={self.source_style_name!r})"

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_valid(self) -> bool:
        return self._valid

    @property
    def in_table(self) -> bool:
        return self.table is not None

    @property
    def contents(self) -> str:
        return "".join(run.text for run in self.runs)

    @property
    def applied_style_name(self) -> str | None:
        return self.applied_style.name if self.applied_style else None

    def invalidate(self) -> None:
        self._valid = False

    def _check(self) -> None:
        if not self._valid:
            raise HostError("Paragraph has been removed from its story.")

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def apply_style(self, style: StyleDefinition, clear_overrides: bool = True) -> None:
        """Assign a paragraph style, optionally dropping local formatting."""
        self._check()
        self.applied_style = style
        if clear_overrides:
            self.clear_overrides()

    def clear_overrides(self) -> None:
        """Drop local formatting so the applied style fully determines it.

        Bold, italic and underline emphasis on runs is kept.
        """
        self._check()
        self.overrides.clear()
        for run in self.runs:
            run.font_overrides.clear()

    def set_list_type(self, list_type: ListType, level: int | None = None) -> None:
        self._check()
        self.list_type = list_type
        if level is not None:
            self.list_level = level

    # ------------------------------------------------------------------
    # Text editing
    # ------------------------------------------------------------------

    def delete_leading(self, count: int) -> None:
        """Delete the first *count* characters, walking across runs."""
        self._check()
        remaining = count
        for run in self.runs:
            if remaining <= 0:
                break
            cut = min(len(run.text), remaining)
            run.text = run.text[cut:]
            remaining -= cut

    def delete_trailing(self, count: int) -> None:
        """Delete the last *count* characters, walking across runs."""
        self._check()
        remaining = count
        for run in reversed(self.runs):
            if remaining <= 0:
                break
            cut = min(len(run.text), remaining)
            run.text = run.text[: len(run.text) - cut]
            remaining -= cut

    def trim(self, keep_leading_tabs: bool = False) -> bool:
        """Strip leading and trailing whitespace; return ``True`` if changed.

        With *keep_leading_tabs*, tabs directly in front of the first visible
        character survive (they mark list continuation lines).
        """
        self._check()
        text = self.contents
        leading = len(text) - len(text.lstrip(_WHITESPACE))
        if leading == len(text):
            changed = leading > 0
            self.delete_leading(leading)
            return changed
        if keep_leading_tabs:
            prefix = text[:leading]
            leading -= len(prefix) - len(prefix.rstrip("\t"))
        trailing = len(text) - len(text.rstrip(_WHITESPACE))
        if leading:
            self.delete_leading(leading)
        if trailing:
            self.delete_trailing(trailing)
        return bool(leading or trailing)

    def is_blank(self) -> bool:
        return not self.contents.strip(_WHITESPACE)

    def text_range(self, start_run: int, end_run: int) -> TextRange:
        """Range over ``runs[start_run:end_run]``."""
        return TextRange(self, self.runs[start_run:end_run])

    def split_before_run(self, index: int) -> "Paragraph":
        """Move ``runs[index:]`` into a new paragraph inserted right after.

        The new paragraph copies the source attributes; callers adjust its
        source style as needed.
        """
        self._check()
        if self.story is None:
            raise HostError("Cannot split a paragraph that is not in a story.")
        if not 0 < index < len(self.runs):
            raise HostError(f"Split index {index} outside 1..{len(self.runs) - 1}.")
        document = self.story.document
        if document is not None and document.link_spans_boundary(self, index):
            raise HostError(f"Split at run {index} would cut a hyperlink in two.")
        tail = Paragraph(
            runs=self.runs[index:],
            source_style_name=self.source_style_name,
            left_indent=self.left_indent,
            list_type=self.list_type,
            list_level=self.list_level,
            overrides=self.overrides,
            table=self.table,
        )
        del self.runs[index:]
        self.story.insert_paragraph_after(self, tail)
        if self.story.document is not None:
            self.story.document.rehome_text_ranges(self, tail)
        return tail

    def remove(self) -> None:
        self._check()
        if self.story is None:
            raise HostError("Paragraph is not attached to a story.")
        self.story.remove_paragraph(self)

    # ------------------------------------------------------------------
    # Snapshot / restore
    # ------------------------------------------------------------------

    def _snapshot(self) -> dict[str, Any]:
        return {
            "runs": list(self.runs),
            "run_state": [
                (run.text, run.applied_character_style, dict(run.font_overrides))
                for run in self.runs
            ],
            "applied_style": self.applied_style,
            "category": self.category,
            "list_type": self.list_type,
            "list_level": self.list_level,
            "overrides": copy.deepcopy(self.overrides),
        }

    def _restore(self, state: dict[str, Any]) -> None:
        self.runs = state["runs"]
        for run, (text, char_style, font_overrides) in zip(self.runs, state["run_state"]):
            run.text = text
            run.applied_character_style = char_style
            run.font_overrides = font_overrides
        self.applied_style = state["applied_style"]
        self.category = state["category"]
        self.list_type = state["list_type"]
        self.list_level = state["list_level"]
        self.overrides = state["overrides"]

    @contextmanager
    def transaction(self) -> Iterator["Paragraph"]:
        """Restore this paragraph's prior state if the block raises."""
        state = self._snapshot()
        try:
            yield self
        except Exception:
            self._restore(state)
            raise


class Cell:
    """A table cell; holds at least one paragraph."""

    def __init__(self, paragraphs: list[Paragraph] | None = None) -> None:
        self.paragraphs: list[Paragraph] = paragraphs or [Paragraph.from_text("")]


class Table:
    """A table anchored in a story."""

    def __init__(self, rows: list[list[Cell]]) -> None:
        self.rows = rows
        self.applied_style: StyleDefinition | None = None
        self.story: "Story | None" = None
        for paragraph in self.paragraphs:
            paragraph.table = self

    @classmethod
    def from_rows(cls, rows: list[list[str]]) -> "Table":
        return cls(
            [[Cell([Paragraph.from_text(text)]) for text in row] for row in rows]
        )

    @property
    def paragraphs(self) -> list[Paragraph]:
        return [p for row in self.rows for cell in row for p in cell.paragraphs]

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    def apply_style(self, style: StyleDefinition) -> None:
        if self.story is None:
            raise HostError("Table is not anchored in a story.")
        self.applied_style = style

    def row_lines(self, metrics: TextMetrics, width: float) -> list[int]:
        """Line height of each row; a row is as tall as its tallest cell."""
        columns = max(self.column_count, 1)
        cell_width = width / columns
        heights: list[int] = []
        for row in self.rows:
            tallest = 1
            for cell in row:
                lines = sum(
                    metrics.lines_for_text(p.contents, cell_width) for p in cell.paragraphs
                )
                tallest = max(tallest, lines)
            heights.append(tallest)
        return heights


@dataclass
class Composition:
    """Result of flowing a story through its container chain."""

    lines_per_container: list[int]
    overset_lines: int

    @property
    def overflows(self) -> bool:
        return self.overset_lines > 0


class Story:
    """Flowing content displayed by a chain of containers.

    ``paragraphs`` is the flat content order, table-cell paragraphs included
    (each carries a ``table`` reference).
    """

    def __init__(self, document: "Document | None" = None) -> None:
        self.document = document
        self.paragraphs: list[Paragraph] = []
        self.tables: list[Table] = []
        self.first_container: "Container | None" = None

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def add_paragraph(self, paragraph: Paragraph) -> Paragraph:
        paragraph.story = self
        self.paragraphs.append(paragraph)
        return paragraph

    def add_table(self, table: Table) -> Table:
        table.story = self
        self.tables.append(table)
        for paragraph in table.paragraphs:
            self.add_paragraph(paragraph)
        return table

    def insert_paragraph_after(self, anchor: Paragraph, paragraph: Paragraph) -> None:
        index = self._index_of(anchor)
        paragraph.story = self
        self.paragraphs.insert(index + 1, paragraph)

    def remove_paragraph(self, paragraph: Paragraph) -> None:
        if paragraph.in_table:
            raise HostError("Table-cell paragraphs cannot be removed from the story.")
        index = self._index_of(paragraph)
        del self.paragraphs[index]
        paragraph.invalidate()
        paragraph.story = None

    def _index_of(self, paragraph: Paragraph) -> int:
        for index, candidate in enumerate(self.paragraphs):
            if candidate is paragraph:
                return index
        raise HostError("Paragraph does not belong to this story.")

    @property
    def contents(self) -> str:
        return "\r".join(p.contents for p in self.paragraphs)

    def blocks(self) -> Iterator[Paragraph | Table]:
        """Yield body paragraphs and tables in content order."""
        emitted: set[int] = set()
        for paragraph in self.paragraphs:
            if paragraph.table is None:
                yield paragraph
            elif id(paragraph.table) not in emitted:
                emitted.add(id(paragraph.table))
                yield paragraph.table

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    @property
    def text_containers(self) -> list["Container"]:
        chain: list["Container"] = []
        container = self.first_container
        while container is not None:
            chain.append(container)
            container = container.next_container
        return chain

    @property
    def metrics(self) -> TextMetrics:
        if self.document is not None:
            return self.document.metrics
        return TextMetrics()

    def compose(self) -> Composition:
        """Distribute content lines over the container chain.

        Paragraph lines may break across containers; table rows may not.
        """
        containers = self.text_containers
        metrics = self.metrics
        used = [0] * len(containers)
        capacity = [metrics.lines_available(c.height) for c in containers]
        overset = 0
        index = 0

        def free() -> int:
            return capacity[index] - used[index]

        for block in self.blocks():
            width = containers[min(index, len(containers) - 1)].width if containers else 0.0
            if isinstance(block, Table):
                for row_height in block.row_lines(metrics, width):
                    while index < len(containers) and row_height > free():
                        index += 1
                    if index >= len(containers):
                        overset += row_height
                        continue
                    used[index] += row_height
                continue

            remaining = metrics.lines_for_text(block.contents, width) if containers else 1
            while remaining > 0:
                if index >= len(containers):
                    overset += remaining
                    break
                take = min(free(), remaining)
                used[index] += take
                remaining -= take
                if remaining > 0:
                    index += 1

        return Composition(lines_per_container=used, overset_lines=overset)

    @property
    def overflows(self) -> bool:
        return self.compose().overflows

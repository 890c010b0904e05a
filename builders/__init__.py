"""Builders package - target styling and DOCX output."""
from .docx_builder import DocxBuilder
from .hyperlink_styler import HyperlinkStyler
from .table_styler import TableStyler

__all__ = ["DocxBuilder", "HyperlinkStyler", "TableStyler"]

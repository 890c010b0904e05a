"""Host package - in-process paginated document model."""
from .application import Application, UserInteractionLevels, suppressed_interaction
from .document import Bounds, Container, Document, Margins, Page
from .flow import PaginationFlowController
from .hyperlinks import (
    Hyperlink,
    HyperlinkPageItemSource,
    HyperlinkTextSource,
    PageDestination,
    TextAnchorDestination,
    URLDestination,
)
from .metrics import TextMetrics
from .story import Cell, ListType, Paragraph, Run, Story, StyleCategory, Table, TextRange
from .styles import StyleDefinition, StyleKind, StyleRegistry

__all__ = [
    "Application",
    "UserInteractionLevels",
    "suppressed_interaction",
    "Bounds",
    "Container",
    "Document",
    "Margins",
    "Page",
    "PaginationFlowController",
    "Hyperlink",
    "HyperlinkPageItemSource",
    "HyperlinkTextSource",
    "PageDestination",
    "TextAnchorDestination",
    "URLDestination",
    "TextMetrics",
    "Cell",
    "ListType",
    "Paragraph",
    "Run",
    "Story",
    "StyleCategory",
    "Table",
    "TextRange",
    "StyleDefinition",
    "StyleKind",
    "StyleRegistry",
]

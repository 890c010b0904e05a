"""Hyperlink sources and destinations."""

from dataclasses import dataclass

from host.story import TextRange


@dataclass
class URLDestination:
    """An external address, e.g. ``https://example.com``."""

    url: str

    @property
    def address(self) -> str:
        return self.url


@dataclass
class TextAnchorDestination:
    """A named anchor (bookmark) inside the document."""

    name: str

    @property
    def address(self) -> str:
        return f"#{self.name}"


@dataclass
class PageDestination:
    """A jump to a page of the document."""

    page_index: int

    @property
    def address(self) -> None:
        return None


@dataclass
class HyperlinkTextSource:
    source_text: TextRange


@dataclass
class HyperlinkPageItemSource:
    """A non-text anchor such as an inline picture."""

    description: str = ""


Destination = URLDestination | TextAnchorDestination | PageDestination
Source = HyperlinkTextSource | HyperlinkPageItemSource


@dataclass
class Hyperlink:
    source: Source
    destination: Destination | None
    name: str = ""

"""Style registry of the target document.

Lookups never raise: a missing name yields ``None`` so callers decide what a
miss means for them.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)


class StyleKind(Enum):
    PARAGRAPH = "paragraph"
    CHARACTER = "character"
    TABLE = "table"


@dataclass(frozen=True)
class StyleDefinition:
    """A named style known to the target document."""

    name: str
    kind: StyleKind
    style_id: str | None = None
    base_style: str | None = None


@dataclass
class StyleRegistry:
    """Name → :class:`StyleDefinition` lookup, one namespace per kind."""

    _styles: dict[StyleKind, dict[str, StyleDefinition]] = field(
        default_factory=lambda: {kind: {} for kind in StyleKind}
    )

    @classmethod
    def from_names(
        cls,
        paragraph: Iterable[str] = (),
        character: Iterable[str] = (),
        table: Iterable[str] = (),
    ) -> "StyleRegistry":
        """Build a registry from plain style names."""
        registry = cls()
        for kind, names in (
            (StyleKind.PARAGRAPH, paragraph),
            (StyleKind.CHARACTER, character),
            (StyleKind.TABLE, table),
        ):
            for name in names:
                registry.register(StyleDefinition(name=name, kind=kind))
        return registry

    def register(self, style: StyleDefinition) -> None:
        if style.name in self._styles[style.kind]:
            logger.debug("Replacing %s style '%s'.", style.kind.value, style.name)
        self._styles[style.kind][style.name] = style

    def lookup(self, kind: StyleKind, name: str | None) -> StyleDefinition | None:
        if not name:
            return None
        return self._styles[kind].get(name)

    def paragraph_style(self, name: str | None) -> StyleDefinition | None:
        return self.lookup(StyleKind.PARAGRAPH, name)

    def character_style(self, name: str | None) -> StyleDefinition | None:
        return self.lookup(StyleKind.CHARACTER, name)

    def table_style(self, name: str | None) -> StyleDefinition | None:
        return self.lookup(StyleKind.TABLE, name)

    def names(self, kind: StyleKind) -> list[str]:
        return sorted(self._styles[kind])

    def __iter__(self) -> Iterator[StyleDefinition]:
        for by_name in self._styles.values():
            yield from by_name.values()

    def __len__(self) -> int:
        return sum(len(by_name) for by_name in self._styles.values())

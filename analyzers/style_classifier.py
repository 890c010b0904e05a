"""Style classifier: maps imported paragraphs onto the target style set.

Two passes over one story:

* **Pass A** maps the source style name (``Heading 1`` … ``Heading 6``,
  ``Normal``) onto the target heading/body styles using :data:`STYLE_RULES`.
* **Pass B** decides whether each remaining body paragraph is really a
  bullet or sub-bullet.  Four independent signals are collected into a
  :class:`BulletEvidence`; any one of them is enough, and
  :data:`EVIDENCE_PRECEDENCE` decides which signal picks the category when
  several fire.

Both rule tables are evaluated first-match-wins; their order is part of the
behaviour and is covered by the tests.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

from host.story import ListType, Paragraph, Story, StyleCategory
from host.styles import StyleDefinition, StyleRegistry

logger = logging.getLogger(__name__)

# Target style names, keyed by role.  Overridable through ``config["styles"]``.
DEFAULT_STYLE_NAMES: dict[str, str] = {
    "body": "Body",
    "heading_1": "Heading 1",
    "heading_2": "Heading 2",
    "heading_3": "Heading 3",
    "heading_4": "Heading 4",
    "heading_5": "Heading 5",
    "heading_6": "Heading 6",
    "bullet": "Bullets",
    "sub_bullet": "Sub-Bullets",
    "table": "Table Style 1",
    "hyperlink": "Inline Link",
}

_DEFAULT_BULLET_INDENT_THRESHOLD = 0.0
_DEFAULT_SUB_BULLET_INDENT = 36.0
_DEFAULT_LIST_STYLE_PATTERN = r"list|bullet"


@dataclass(frozen=True)
class StyleRule:
    """Maps a matching source style name onto a target style role."""

    role: str
    pattern: re.Pattern[str] | None
    category: StyleCategory

    def matches(self, source_style_name: str | None) -> bool:
        if self.pattern is None:
            return True
        return bool(source_style_name) and bool(self.pattern.search(source_style_name))


# Headings first, then ``Normal``, then the catch-all body rule.
STYLE_RULES: tuple[StyleRule, ...] = tuple(
    StyleRule(f"heading_{level}", re.compile(rf"\bheading\s*{level}\b", re.IGNORECASE), StyleCategory.HEADING)
    for level in range(1, 7)
) + (
    StyleRule("body", re.compile(r"\bnormal\b", re.IGNORECASE), StyleCategory.BODY),
    StyleRule("body", None, StyleCategory.BODY),
)


@dataclass(frozen=True)
class GlyphRule:
    """A leading glyph pattern and the list category it implies."""

    name: str
    pattern: re.Pattern[str]
    category: StyleCategory


# Sub-bullet glyphs must be tested before primary ones: "◦" belongs to both
# families in imported Word lists.
GLYPH_RULES: tuple[GlyphRule, ...] = (
    GlyphRule(
        "sub_bullet",
        re.compile(r"^(?:[\u25CB\u25E6][ \t\u00A0]*|o[ \t\u00A0]+)"),
        StyleCategory.SUB_BULLET,
    ),
    GlyphRule(
        "bullet",
        re.compile(r"^[\u2022\u25CF\uF0B7\u2219\u00B7\u25AA\u25A0][ \t\u00A0]*"),
        StyleCategory.BULLET,
    ),
    GlyphRule(
        "dash",
        re.compile(r"^[\-\u2013][ \t\u00A0]+"),
        StyleCategory.BULLET,
    ),
)

_LEADING_TABS_RE = re.compile(r"^[\t \u00A0]+")


@dataclass(frozen=True)
class GlyphMatch:
    rule: GlyphRule
    prefix_length: int


def match_style_rule(source_style_name: str | None) -> StyleRule:
    """Return the first rule of :data:`STYLE_RULES` matching the name."""
    for rule in STYLE_RULES:
        if rule.matches(source_style_name):
            return rule
    raise AssertionError("STYLE_RULES must end with a catch-all rule")


def match_glyph(text: str) -> GlyphMatch | None:
    """Return the first glyph rule matching the start of *text*.

    Leading tabs and spaces are skipped; ``prefix_length`` counts them so
    deleting the prefix removes both the indentation and the glyph.
    """
    lead = _LEADING_TABS_RE.match(text)
    offset = lead.end() if lead else 0
    body = text[offset:]
    for rule in GLYPH_RULES:
        m = rule.pattern.match(body)
        if m:
            return GlyphMatch(rule=rule, prefix_length=offset + m.end())
    return None


@dataclass
class BulletEvidence:
    """The four list signals for one paragraph; ``None`` means "did not fire"."""

    structural: StyleCategory | None = None
    lexical: GlyphMatch | None = None
    layout: StyleCategory | None = None
    contextual: StyleCategory | None = None

    @property
    def is_list_item(self) -> bool:
        return any(
            signal is not None
            for signal in (self.structural, self.lexical, self.layout, self.contextual)
        )

    @property
    def category(self) -> StyleCategory | None:
        for _name, pick in EVIDENCE_PRECEDENCE:
            category = pick(self)
            if category is not None:
                return category
        return None


# Strongest signal first.
EVIDENCE_PRECEDENCE: tuple[tuple[str, Callable[[BulletEvidence], StyleCategory | None]], ...] = (
    ("structural", lambda e: e.structural),
    ("lexical", lambda e: e.lexical.rule.category if e.lexical else None),
    ("layout", lambda e: e.layout),
    ("contextual", lambda e: e.contextual),
)


class StyleClassifier:
    """Applies heading/body mapping and bullet classification to a story.

    Args:
        styles: The target document's style registry.
        config: Application configuration; reads ``styles`` (role → style
            name) and ``classification`` (indent thresholds, list-style
            pattern).
    """

    def __init__(self, styles: StyleRegistry, config: dict[str, Any] | None = None) -> None:
        self.config: dict[str, Any] = config or {}
        self._registry = styles
        self.style_names: dict[str, str] = {
            **DEFAULT_STYLE_NAMES,
            **(self.config.get("styles") or {}),
        }
        cls_cfg = self.config.get("classification") or {}
        self.bullet_indent_threshold = float(
            cls_cfg.get("bullet_indent_threshold", _DEFAULT_BULLET_INDENT_THRESHOLD)
        )
        self.sub_bullet_indent = float(cls_cfg.get("sub_bullet_indent", _DEFAULT_SUB_BULLET_INDENT))
        self._list_style_re = re.compile(
            cls_cfg.get("list_style_pattern", _DEFAULT_LIST_STYLE_PATTERN), re.IGNORECASE
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def target_style(self, role: str) -> StyleDefinition | None:
        return self._registry.paragraph_style(self.style_names.get(role))

    def classify(self, story: Story) -> dict[str, int]:
        """Run Pass A then Pass B; return merged counters."""
        stats = self.map_headings_and_body(story)
        stats.update(self.classify_lists(story))
        return stats

    def map_headings_and_body(self, story: Story) -> dict[str, int]:
        """Pass A: reassign heading and body styles from source style names."""
        stats = {"headings": 0, "body": 0, "unregistered": 0, "failed": 0}
        for paragraph in story.paragraphs:
            if paragraph.in_table:
                continue
            rule = match_style_rule(paragraph.source_style_name)
            if rule.category is StyleCategory.HEADING:
                paragraph.category = StyleCategory.HEADING

            target = self.target_style(rule.role)
            if target is None:
                logger.debug(
                    "Target style for role '%s' is not registered; leaving %r as is.",
                    rule.role,
                    paragraph,
                )
                stats["unregistered"] += 1
                continue

            try:
                with paragraph.transaction():
                    paragraph.apply_style(target)
                    paragraph.category = rule.category
            except Exception:
                logger.warning("Could not apply style '%s'; skipping paragraph.",
                               target.name, exc_info=True)
                stats["failed"] += 1
                continue
            stats["headings" if rule.category is StyleCategory.HEADING else "body"] += 1

        logger.info(
            "Heading/body mapping: headings=%d body=%d unregistered=%d failed=%d",
            stats["headings"], stats["body"], stats["unregistered"], stats["failed"],
        )
        return stats

    def classify_lists(self, story: Story) -> dict[str, int]:
        """Pass B: reclassify body paragraphs as bullets or sub-bullets."""
        stats = {"bullets": 0, "sub_bullets": 0, "list_failed": 0}
        previous: StyleCategory | None = None

        for paragraph in story.paragraphs:
            if paragraph.in_table or paragraph.category is StyleCategory.HEADING:
                previous = None
                continue

            evidence = self.evaluate(paragraph, previous)
            category = evidence.category
            if category is None:
                previous = None
                continue

            try:
                with paragraph.transaction():
                    applied = self._apply_list_category(paragraph, category, evidence)
            except Exception:
                logger.warning("Could not convert %r to a list item; skipping.",
                               paragraph, exc_info=True)
                stats["list_failed"] += 1
                previous = None
                continue

            if not applied:
                previous = None
                continue
            previous = category
            stats["bullets" if category is StyleCategory.BULLET else "sub_bullets"] += 1

        stats["tabs_trimmed"] = self.trim_leftover_tabs(story)
        logger.info(
            "List classification: bullets=%d sub_bullets=%d failed=%d",
            stats["bullets"], stats["sub_bullets"], stats["list_failed"],
        )
        return stats

    @staticmethod
    def trim_leftover_tabs(story: Story) -> int:
        """Strip the leading tabs kept for list detection from non-list paragraphs."""
        trimmed = 0
        for paragraph in story.paragraphs:
            if paragraph.category in (StyleCategory.BULLET, StyleCategory.SUB_BULLET):
                continue
            m = _LEADING_TABS_RE.match(paragraph.contents)
            if not m:
                continue
            try:
                with paragraph.transaction():
                    paragraph.delete_leading(m.end())
            except Exception:
                logger.warning("Could not trim leading tabs of %r; skipping.",
                               paragraph, exc_info=True)
                continue
            trimmed += 1
        return trimmed

    def evaluate(self, paragraph: Paragraph, previous: StyleCategory | None) -> BulletEvidence:
        """Collect the four list signals for *paragraph*.

        Args:
            paragraph: A non-heading, non-table paragraph.
            previous: Category of the preceding evaluated paragraph when it
                was classified as a bullet or sub-bullet, otherwise ``None``.
        """
        evidence = BulletEvidence()
        text = paragraph.contents

        if paragraph.list_type is ListType.BULLET_LIST:
            evidence.structural = (
                StyleCategory.SUB_BULLET if paragraph.list_level >= 1 else StyleCategory.BULLET
            )

        evidence.lexical = match_glyph(text)

        if paragraph.left_indent > self.bullet_indent_threshold:
            evidence.layout = (
                StyleCategory.SUB_BULLET
                if paragraph.left_indent >= self.sub_bullet_indent
                else StyleCategory.BULLET
            )

        if text.startswith("\t"):
            list_like = bool(
                paragraph.source_style_name
                and self._list_style_re.search(paragraph.source_style_name)
            )
            if previous is not None:
                evidence.contextual = previous
            elif list_like:
                evidence.contextual = StyleCategory.BULLET

        return evidence

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _apply_list_category(
        self,
        paragraph: Paragraph,
        category: StyleCategory,
        evidence: BulletEvidence,
    ) -> bool:
        role = "sub_bullet" if category is StyleCategory.SUB_BULLET else "bullet"
        target = self.target_style(role)
        if target is None:
            logger.debug("No '%s' style registered; %r keeps its style.", role, paragraph)
            return False

        if evidence.lexical is not None:
            paragraph.delete_leading(evidence.lexical.prefix_length)
        else:
            m = _LEADING_TABS_RE.match(paragraph.contents)
            if m:
                paragraph.delete_leading(m.end())

        paragraph.apply_style(target)
        paragraph.set_list_type(ListType.BULLET_LIST)
        paragraph.category = category
        return True

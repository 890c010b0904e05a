"""Tests for the StyleClassifier heading/body mapping and list detection."""

import os
import sys
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analyzers.content_sanitizer import ContentSanitizer
from analyzers.heading_breaks import HeadingBreakInserter
from analyzers.style_classifier import (
    EVIDENCE_PRECEDENCE,
    GLYPH_RULES,
    STYLE_RULES,
    BulletEvidence,
    StyleClassifier,
    match_glyph,
    match_style_rule,
)
from host.document import Document
from host.story import ListType, Paragraph, StyleCategory, Table
from host.styles import StyleRegistry
from utils.errors import HostError

ALL_TARGETS = ["Body", "Bullets", "Sub-Bullets"] + [f"Heading {n}" for n in range(1, 7)]


def _classifier(paragraph_styles=ALL_TARGETS, config=None) -> StyleClassifier:
    return StyleClassifier(StyleRegistry.from_names(paragraph=paragraph_styles), config)


def _story(*paragraphs: Paragraph):
    story = Document().new_story()
    for paragraph in paragraphs:
        story.add_paragraph(paragraph)
    return story


class TestRuleTables(unittest.TestCase):

    def test_style_rules_end_with_catch_all(self):
        self.assertIsNone(STYLE_RULES[-1].pattern)
        self.assertEqual(match_style_rule(None).role, "body")
        self.assertEqual(match_style_rule("Quote").role, "body")

    def test_heading_names_match_their_level(self):
        self.assertEqual(match_style_rule("Heading 3").role, "heading_3")
        self.assertEqual(match_style_rule("heading2").role, "heading_2")
        self.assertEqual(match_style_rule("Normal").role, "body")
        # "Heading 10" is not a level-1 heading.
        self.assertEqual(match_style_rule("Heading 10").role, "body")

    def test_sub_bullet_glyphs_are_tested_first(self):
        self.assertEqual([r.name for r in GLYPH_RULES], ["sub_bullet", "bullet", "dash"])
        self.assertEqual(match_glyph("◦ nested").rule.category, StyleCategory.SUB_BULLET)
        self.assertEqual(match_glyph("o nested").rule.category, StyleCategory.SUB_BULLET)
        self.assertEqual(match_glyph("• Item").rule.category, StyleCategory.BULLET)
        self.assertEqual(match_glyph("- dash").rule.category, StyleCategory.BULLET)

    def test_words_are_not_glyphs(self):
        self.assertIsNone(match_glyph("only words"))
        self.assertIsNone(match_glyph("-1 degrees"))
        self.assertIsNone(match_glyph(""))

    def test_indentation_before_glyph_is_part_of_prefix(self):
        match = match_glyph("\t• Item")
        self.assertEqual(match.rule.name, "bullet")
        self.assertEqual(match.prefix_length, 3)
        self.assertEqual(match_glyph(" \t- Item").prefix_length, 4)
        self.assertIsNone(match_glyph("\tItem"))

    def test_evidence_precedence_order(self):
        self.assertEqual([name for name, _ in EVIDENCE_PRECEDENCE],
                         ["structural", "lexical", "layout", "contextual"])
        evidence = BulletEvidence(
            structural=StyleCategory.BULLET,
            lexical=match_glyph("◦ x"),
            layout=StyleCategory.SUB_BULLET,
        )
        self.assertEqual(evidence.category, StyleCategory.BULLET)
        self.assertIsNone(BulletEvidence().category)
        self.assertFalse(BulletEvidence().is_list_item)


class TestHeadingAndBodyMapping(unittest.TestCase):

    def test_registered_heading_is_applied(self):
        p = Paragraph.from_text("Results", source_style_name="Heading 3")
        stats = _classifier().map_headings_and_body(_story(p))
        self.assertEqual(p.applied_style_name, "Heading 3")
        self.assertEqual(p.category, StyleCategory.HEADING)
        self.assertEqual(stats["headings"], 1)

    def test_unregistered_heading_is_left_unchanged(self):
        p = Paragraph.from_text("Results", source_style_name="Heading 3", overrides={"alignment": 1})
        stats = _classifier(paragraph_styles=["Body"]).map_headings_and_body(_story(p))
        self.assertIsNone(p.applied_style)
        self.assertEqual(p.overrides, {"alignment": 1})
        self.assertEqual(stats["unregistered"], 1)

    def test_other_styles_map_to_body_and_clear_overrides(self):
        normal = Paragraph.from_text("Text", source_style_name="Normal", overrides={"space_after": 6})
        quote = Paragraph.from_text("Quote", source_style_name="Intense Quote")
        _classifier().map_headings_and_body(_story(normal, quote))
        self.assertEqual(normal.applied_style_name, "Body")
        self.assertEqual(normal.overrides, {})
        self.assertEqual(quote.applied_style_name, "Body")
        self.assertEqual(quote.category, StyleCategory.BODY)

    def test_configured_style_names_are_used(self):
        p = Paragraph.from_text("Text", source_style_name="Normal")
        classifier = _classifier(
            paragraph_styles=["Copy"], config={"styles": {"body": "Copy"}}
        )
        classifier.map_headings_and_body(_story(p))
        self.assertEqual(p.applied_style_name, "Copy")

    def test_table_paragraphs_are_skipped(self):
        story = _story()
        table = story.add_table(Table.from_rows([["cell"]]))
        _classifier().map_headings_and_body(story)
        self.assertIsNone(table.paragraphs[0].applied_style)

    def test_failure_on_one_paragraph_does_not_stop_others(self):
        first = Paragraph.from_text("One", source_style_name="Normal")
        second = Paragraph.from_text("Two", source_style_name="Normal")
        original = Paragraph.apply_style

        def flaky(paragraph, style, clear_overrides=True):
            if paragraph is first:
                raise HostError("locked")
            return original(paragraph, style, clear_overrides)

        with patch.object(Paragraph, "apply_style", flaky):
            stats = _classifier().map_headings_and_body(_story(first, second))
        self.assertIsNone(first.applied_style)
        self.assertEqual(first.category, StyleCategory.UNCLASSIFIED)
        self.assertEqual(second.applied_style_name, "Body")
        self.assertEqual(stats["failed"], 1)


class TestListClassification(unittest.TestCase):

    def _classify(self, *paragraphs, **kwargs):
        story = _story(*paragraphs)
        stats = _classifier(**kwargs).classify(story)
        return story, stats

    def test_glyph_bullet_is_stripped_and_flagged(self):
        p = Paragraph.from_text("• Item one", source_style_name="Normal")
        _, stats = self._classify(p)
        self.assertEqual(p.contents, "Item one")
        self.assertEqual(p.applied_style_name, "Bullets")
        self.assertEqual(p.list_type, ListType.BULLET_LIST)
        self.assertEqual(p.category, StyleCategory.BULLET)
        self.assertEqual(stats["bullets"], 1)

    def test_sub_bullet_glyph(self):
        p = Paragraph.from_text("◦\tNested", source_style_name="Normal")
        self._classify(p)
        self.assertEqual(p.contents, "Nested")
        self.assertEqual(p.applied_style_name, "Sub-Bullets")
        self.assertEqual(p.category, StyleCategory.SUB_BULLET)

    def test_native_list_level_decides_sub_bullet(self):
        top = Paragraph.from_text("Top", list_type=ListType.BULLET_LIST, list_level=0)
        nested = Paragraph.from_text("Nested", list_type=ListType.BULLET_LIST, list_level=2)
        self._classify(top, nested)
        self.assertEqual(top.applied_style_name, "Bullets")
        self.assertEqual(nested.applied_style_name, "Sub-Bullets")

    def test_structural_beats_lexical(self):
        p = Paragraph.from_text("◦ Item", list_type=ListType.BULLET_LIST, list_level=0)
        self._classify(p)
        self.assertEqual(p.category, StyleCategory.BULLET)
        self.assertEqual(p.contents, "Item")

    def test_layout_indent(self):
        shallow = Paragraph.from_text("Shallow", left_indent=18)
        deep = Paragraph.from_text("Deep", left_indent=40)
        flat = Paragraph.from_text("Flat")
        self._classify(shallow, deep, flat)
        self.assertEqual(shallow.category, StyleCategory.BULLET)
        self.assertEqual(deep.category, StyleCategory.SUB_BULLET)
        self.assertEqual(flat.category, StyleCategory.BODY)
        self.assertEqual(flat.list_type, ListType.NO_LIST)

    def test_tab_continues_previous_list_item(self):
        bullet = Paragraph.from_text("◦ First")
        continued = Paragraph.from_text("\tSecond")
        self._classify(bullet, continued)
        self.assertEqual(continued.category, StyleCategory.SUB_BULLET)
        self.assertEqual(continued.contents, "Second")

    def test_context_resets_after_body_paragraph(self):
        bullet = Paragraph.from_text("• First")
        body = Paragraph.from_text("Plain text")
        tabbed = Paragraph.from_text("\tNot a list")
        _, stats = self._classify(bullet, body, tabbed)
        self.assertEqual(tabbed.category, StyleCategory.BODY)
        self.assertEqual(tabbed.contents, "Not a list")
        self.assertEqual(stats["tabs_trimmed"], 1)

    def test_tab_before_glyph_strips_both(self):
        p = Paragraph.from_text("\t• Item", source_style_name="List Paragraph")
        self._classify(p)
        self.assertEqual(p.contents, "Item")
        self.assertEqual(p.applied_style_name, "Bullets")
        self.assertEqual(p.list_type, ListType.BULLET_LIST)

    def test_continuation_with_tab_and_dash(self):
        first = Paragraph.from_text("• First")
        second = Paragraph.from_text("\t- Second")
        self._classify(first, second)
        self.assertEqual(second.contents, "Second")
        self.assertEqual(second.category, StyleCategory.BULLET)

    def test_glyph_after_tab_picks_glyph_category(self):
        first = Paragraph.from_text("• First")
        nested = Paragraph.from_text("\t◦ Nested")
        self._classify(first, nested)
        self.assertEqual(nested.category, StyleCategory.SUB_BULLET)
        self.assertEqual(nested.contents, "Nested")

    def test_context_resets_after_heading(self):
        bullet = Paragraph.from_text("• First")
        heading = Paragraph.from_text("Section", source_style_name="Heading 2")
        tabbed = Paragraph.from_text("\tIndented")
        self._classify(bullet, heading, tabbed)
        self.assertEqual(heading.applied_style_name, "Heading 2")
        self.assertEqual(tabbed.category, StyleCategory.BODY)

    def test_tab_in_list_style_without_context(self):
        p = Paragraph.from_text("\tEntry", source_style_name="List Paragraph")
        self._classify(p)
        self.assertEqual(p.category, StyleCategory.BULLET)

    def test_headings_are_never_bullets(self):
        p = Paragraph.from_text("• Heading text", source_style_name="Heading 1")
        self._classify(p)
        self.assertEqual(p.applied_style_name, "Heading 1")
        self.assertEqual(p.contents, "• Heading text")

    def test_unregistered_bullet_style_leaves_paragraph_untouched(self):
        p = Paragraph.from_text("• Item one", source_style_name="Normal")
        self._classify(p, paragraph_styles=["Body"])
        self.assertEqual(p.contents, "• Item one")
        self.assertEqual(p.applied_style_name, "Body")
        self.assertEqual(p.list_type, ListType.NO_LIST)

    def test_failed_conversion_is_rolled_back(self):
        p = Paragraph.from_text("• Item one", source_style_name="Normal")

        def failing(paragraph, list_type, level=None):
            raise HostError("read-only")

        with patch.object(Paragraph, "set_list_type", failing):
            _, stats = self._classify(p)
        self.assertEqual(p.contents, "• Item one")
        self.assertEqual(p.applied_style_name, "Body")
        self.assertEqual(p.category, StyleCategory.BODY)
        self.assertEqual(stats["list_failed"], 1)

    def test_list_flag_matches_category(self):
        paragraphs = [
            Paragraph.from_text("• a"),
            Paragraph.from_text("b", left_indent=50),
            Paragraph.from_text("c"),
        ]
        self._classify(*paragraphs)
        for p in paragraphs:
            is_list = p.category in (StyleCategory.BULLET, StyleCategory.SUB_BULLET)
            self.assertEqual(p.list_type is ListType.BULLET_LIST, is_list)


class TestSanitizedStoryLists(unittest.TestCase):
    """Bullets classified after sanitizing carry neither glyph nor indentation."""

    TEXTS = [
        "Heading text",
        "\t• Tabbed bullet",
        "  \t- Padded dash",
        "\tContinuation",
        "",
        "",
        "Plain body",
        "\t\tStray tabs",
        "• Top level ",
        "\t◦ Nested",
    ]

    def _pipeline(self):
        story = Document().new_story()
        for index, text in enumerate(self.TEXTS):
            style = "Heading 1" if index == 0 else "Normal"
            story.add_paragraph(Paragraph.from_text(text, source_style_name=style))
        ContentSanitizer().sanitize(story)
        HeadingBreakInserter().insert_breaks(story)
        _classifier().classify(story)
        return story

    def test_no_bullet_keeps_glyph_or_tab(self):
        story = self._pipeline()
        bullets = [
            p for p in story.paragraphs
            if p.category in (StyleCategory.BULLET, StyleCategory.SUB_BULLET)
        ]
        self.assertEqual(
            [p.contents for p in bullets],
            ["Tabbed bullet", "Padded dash", "Continuation", "Top level", "Nested"],
        )
        for p in bullets:
            self.assertIsNone(match_glyph(p.contents), p.contents)
            self.assertEqual(p.contents, p.contents.lstrip(" \t"))
            self.assertEqual(p.list_type, ListType.BULLET_LIST)

    def test_no_paragraph_keeps_leading_tabs(self):
        story = self._pipeline()
        for p in story.paragraphs:
            self.assertFalse(p.contents.startswith("\t"), p.contents)
        self.assertIn("Stray tabs", [p.contents for p in story.paragraphs])

if __name__ == "__main__":
    unittest.main()

"""Tests for the python-docx backed template loader, importer, builder and validator."""

import os
import shutil
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from docx import Document as open_docx

from docx_factory import build_indented_input, build_input, build_template, output_path
from builders.docx_builder import DocxBuilder
from extractors.docx_importer import DocxImporter
from extractors.template_loader import TemplateLoader
from host.flow import first_container
from host.hyperlinks import (
    HyperlinkPageItemSource,
    HyperlinkTextSource,
    TextAnchorDestination,
    URLDestination,
)
from host.story import ListType, Table
from host.styles import StyleKind
from utils.errors import InputMissing, StructuralPrecondition
from utils.validator import OutputValidator


class _TempDirCase(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.template = build_template(os.path.join(self.temp_dir, "template.docx"))

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)


class TestTemplateLoader(_TempDirCase):

    def test_registers_target_styles(self):
        document = TemplateLoader().load(self.template)
        styles = document.styles
        for name in ("Body", "Bullets", "Sub-Bullets", "Heading 1", "Normal"):
            self.assertIsNotNone(styles.paragraph_style(name), name)
        self.assertIsNotNone(styles.table_style("Table Style 1"))
        self.assertIsNotNone(styles.character_style("Inline Link"))
        self.assertIsNone(styles.lookup(StyleKind.PARAGRAPH, "Inline Link"))

    def test_page_geometry_from_first_section(self):
        section = open_docx(self.template).sections[0]
        document = TemplateLoader().load(self.template)
        self.assertAlmostEqual(document.page_width, section.page_width.pt)
        self.assertAlmostEqual(document.margins.left, section.left_margin.pt)
        self.assertEqual(len(document.pages), 1)

    def test_metrics_come_from_config(self):
        document = TemplateLoader({"metrics": {"font_size": 9}}).load(self.template)
        self.assertEqual(document.metrics.font_size, 9.0)

    def test_missing_template_is_a_structural_failure(self):
        with self.assertRaises(StructuralPrecondition):
            TemplateLoader().load(None)
        with self.assertRaises(StructuralPrecondition):
            TemplateLoader().load(os.path.join(self.temp_dir, "nope.docx"))

    def test_unreadable_template(self):
        bogus = os.path.join(self.temp_dir, "bogus.docx")
        with open(bogus, "w", encoding="utf-8") as fh:
            fh.write("not a zip")
        with self.assertRaises(StructuralPrecondition):
            TemplateLoader().load(bogus)


class TestDocxImporter(_TempDirCase):

    def _place(self, path):
        document = TemplateLoader().load(self.template)
        container = first_container(document.pages[0])
        story = DocxImporter().place(path, container)
        return document, story

    def test_places_paragraphs_tables_and_styles(self):
        document, story = self._place(build_input(os.path.join(self.temp_dir, "in.docx")))
        body = [p for p in story.paragraphs if not p.in_table]

        self.assertIs(story.first_container, document.pages[0].containers[0])
        self.assertEqual(body[0].contents, "Annual Report")
        self.assertEqual(body[0].source_style_name, "Heading 1")
        self.assertEqual(body[1].source_style_name, "Normal")
        self.assertEqual(len(story.tables), 1)
        self.assertEqual(
            [p.contents for p in story.tables[0].paragraphs], ["R0C0", "R0C1", "R1C0", "R1C1"]
        )
        blocks = list(story.blocks())
        self.assertTrue(any(isinstance(b, Table) for b in blocks))

    def test_native_numbering_sets_list_flag(self):
        _, story = self._place(build_input(os.path.join(self.temp_dir, "in.docx")))
        numbered = next(p for p in story.paragraphs if p.contents == "Numbered entry")
        self.assertEqual(numbered.list_type, ListType.BULLET_LIST)
        self.assertEqual(numbered.list_level, 1)
        plain = next(p for p in story.paragraphs if p.contents == "Intro text.")
        self.assertEqual(plain.list_type, ListType.NO_LIST)

    def test_hyperlinks_become_text_sources(self):
        document, story = self._place(build_input(os.path.join(self.temp_dir, "in.docx")))
        self.assertEqual(len(document.hyperlinks), 2)
        external, internal = document.hyperlinks

        self.assertIsInstance(external.source, HyperlinkTextSource)
        self.assertEqual(external.source.source_text.text, "the site")
        self.assertEqual(external.destination, URLDestination("https://example.com"))
        self.assertEqual(internal.destination, TextAnchorDestination("details"))
        links_paragraph = external.source.source_text.paragraph
        self.assertEqual(links_paragraph.contents, "See the site or details")
        self.assertIn(links_paragraph, story.paragraphs)

    def test_left_indent_in_points(self):
        path = build_indented_input(os.path.join(self.temp_dir, "indent.docx"), 40)
        _, story = self._place(path)
        self.assertAlmostEqual(story.paragraphs[0].left_indent, 40.0, places=1)

    def test_missing_and_unsupported_inputs(self):
        with self.assertRaises(InputMissing):
            self._place(os.path.join(self.temp_dir, "absent.docx"))
        rtf = os.path.join(self.temp_dir, "legacy.rtf")
        with open(rtf, "w", encoding="utf-8") as fh:
            fh.write("{\\rtf1 hello}")
        with self.assertRaises(InputMissing):
            self._place(rtf)

    def test_corrupt_docx_is_input_missing(self):
        bogus = os.path.join(self.temp_dir, "broken.docx")
        with open(bogus, "wb") as fh:
            fh.write(b"PK\x03\x04 truncated")
        with self.assertRaises(InputMissing):
            self._place(bogus)


class TestDocxBuilder(_TempDirCase):

    def _build(self, mutate=None, config=None):
        document = TemplateLoader().load(self.template)
        story = DocxImporter().place(
            build_input(os.path.join(self.temp_dir, "in.docx")),
            first_container(document.pages[0]),
        )
        if mutate is not None:
            mutate(document, story)
        out = output_path(self.temp_dir, os.path.join("nested", "out.docx"))
        saved = DocxBuilder(config).build(document, story, self.template, out)
        return saved, open_docx(saved)

    def test_output_replaces_template_body(self):
        saved, doc = self._build()
        self.assertTrue(os.path.isabs(saved))
        texts = [p.text for p in doc.paragraphs]
        self.assertNotIn("Template placeholder text.", texts)
        self.assertEqual(texts[0], "Annual Report")
        self.assertEqual(len(doc.tables), 1)
        self.assertEqual(doc.tables[0].cell(1, 1).text, "R1C1")

    def test_applied_styles_are_written(self):
        def mutate(document, story):
            body = document.styles.paragraph_style("Body")
            story.paragraphs[1].apply_style(body)
            story.tables[0].apply_style(document.styles.table_style("Table Style 1"))
            link = document.hyperlinks[0]
            link.source.source_text.apply_character_style(
                document.styles.character_style("Inline Link")
            )

        _, doc = self._build(mutate)
        self.assertEqual(doc.paragraphs[1].style.name, "Body")
        self.assertEqual(doc.tables[0].style.name, "Table Style 1")

        link_paragraph = next(p for p in doc.paragraphs if p.text.startswith("See"))
        self.assertEqual(link_paragraph.text, "See the site or details")
        hyperlinks = link_paragraph.hyperlinks
        self.assertEqual(len(hyperlinks), 2)
        self.assertEqual(hyperlinks[0].address, "https://example.com")
        self.assertEqual(hyperlinks[0].runs[0].style.name, "Inline Link")
        self.assertEqual(hyperlinks[1].fragment, "details")

    def test_source_styles_kept_by_default(self):
        _, doc = self._build()
        self.assertEqual(doc.paragraphs[0].style.name, "Heading 1")

    def test_source_styles_can_be_dropped(self):
        _, doc = self._build(config={"output": {"keep_source_styles": False}})
        self.assertEqual(doc.paragraphs[0].text, "Annual Report")
        self.assertEqual(doc.paragraphs[0].style.name, "Normal")


class TestOutputValidator(_TempDirCase):

    def test_valid_output_metrics(self):
        styles = {"heading_1": "Heading 1", "bullet": "Bullets", "table": "Table Style 1"}
        doc = open_docx(self.template)
        doc.add_paragraph("Head", style="Heading 1")
        doc.add_paragraph("Point", style="Bullets")
        path = os.path.join(self.temp_dir, "checked.docx")
        doc.save(path)

        report = OutputValidator(styles).validate(path, {"bullets": 1})
        self.assertTrue(report["valid"])
        self.assertEqual(report["metrics"]["headings"], 1)
        self.assertEqual(report["metrics"]["bullets"], 1)
        self.assertEqual(report["warnings"], [])

    def test_cross_check_warns_on_missing_styles(self):
        report = OutputValidator({"bullet": "Bullets"}).validate(self.template, {"bullets": 3})
        self.assertTrue(report["valid"])
        self.assertEqual(len(report["warnings"]), 1)

    def test_invalid_files(self):
        missing = OutputValidator().validate(os.path.join(self.temp_dir, "none.docx"))
        self.assertFalse(missing["valid"])
        not_zip = os.path.join(self.temp_dir, "plain.docx")
        with open(not_zip, "w", encoding="utf-8") as fh:
            fh.write("text")
        report = OutputValidator().validate(not_zip)
        self.assertFalse(report["valid"])
        self.assertFalse(report["is_valid_docx"])


class TestPictureLinks(_TempDirCase):

    def test_page_item_source_from_picture_link(self):
        # Build a run holding an a:hlinkClick the way Word marks linked pictures.
        from docx.oxml import parse_xml
        import docx.opc.constants

        doc = open_docx()
        paragraph = doc.add_paragraph()
        r_id = doc.part.relate_to(
            "https://example.com/pic", docx.opc.constants.RELATIONSHIP_TYPE.HYPERLINK,
            is_external=True,
        )
        run = paragraph.add_run()
        run._r.append(parse_xml(
            '<w:drawing xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main" '
            'xmlns:wp="http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing" '
            'xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main" '
            'xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">'
            '<wp:inline><wp:docPr id="1" name="Picture 1">'
            f'<a:hlinkClick r:id="{r_id}"/>'
            '</wp:docPr></wp:inline></w:drawing>'
        ))
        path = os.path.join(self.temp_dir, "picture.docx")
        doc.save(path)

        document = TemplateLoader().load(self.template)
        DocxImporter().place(path, first_container(document.pages[0]))
        self.assertEqual(len(document.hyperlinks), 1)
        link = document.hyperlinks[0]
        self.assertIsInstance(link.source, HyperlinkPageItemSource)
        self.assertEqual(link.destination, URLDestination("https://example.com/pic"))


if __name__ == "__main__":
    unittest.main()

#!/usr/bin/env python3
"""Smart Document Import: main orchestrator.

Places a Word document into a target template, paginates it, cleans up
blank content, reassigns headings, bullets, tables and hyperlinks to the
template's presentation styles, and writes the result as a new ``.docx``.

Usage
-----
    python smartdoc_import.py --template house.docx input.docx
    python smartdoc_import.py --template house.docx input.docx output.docx --validate
    python smartdoc_import.py --verbose --max-pages 50 --template house.docx input.docx
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from analyzers.content_sanitizer import ContentSanitizer
from analyzers.heading_breaks import HeadingBreakInserter
from analyzers.style_classifier import DEFAULT_STYLE_NAMES, StyleClassifier
from builders.docx_builder import DocxBuilder
from builders.hyperlink_styler import DEFAULT_SCHEMES, HyperlinkStyler
from builders.table_styler import TableStyler
from extractors.docx_importer import DocxImporter
from extractors.template_loader import TemplateLoader
from host.application import Application, app, suppressed_interaction
from host.document import Document
from host.flow import PaginationFlowController, first_container
from host.story import Story
from utils.errors import ImportFlowError, StructuralPrecondition, UserCancelled
from utils.progress import ProgressTracker
from utils.validator import OutputValidator

logger = logging.getLogger("smartdoc_import")

# Path to the default config file shipped alongside this script.
_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config", "settings.json")

ProgressCallback = Callable[[str, int, int, str], None]


# ------------------------------------------------------------------ #
#  Helpers                                                            #
# ------------------------------------------------------------------ #

def _load_config(config_path: str | None = None) -> dict[str, Any]:
    """Load configuration from a JSON file, falling back to defaults."""
    path = config_path or _CONFIG_PATH
    defaults: dict[str, Any] = {
        "template": None,
        "styles": dict(DEFAULT_STYLE_NAMES),
        "classification": {
            "bullet_indent_threshold": 0.0,
            "sub_bullet_indent": 36.0,
            "list_style_pattern": "list|bullet",
        },
        "pagination": {"max_pages": 500},
        "metrics": {"font_size": 11.0, "leading": 1.2, "char_width": 0.5},
        "hyperlink_schemes": list(DEFAULT_SCHEMES),
        "output": {"keep_source_styles": True},
        "verbose": False,
    }
    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as fh:
                user = json.load(fh)
            for key, value in user.items():
                if isinstance(value, dict) and isinstance(defaults.get(key), dict):
                    defaults[key].update(value)
                else:
                    defaults[key] = value
        except Exception:
            logger.warning("Could not load config from '%s'; using defaults.", path)
    elif config_path:
        logger.warning("Config file '%s' not found; using defaults.", path)
    return defaults


class ImportStatus(Enum):
    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class ImportOutcome:
    """Result of one import run."""

    status: ImportStatus
    message: str
    output_path: str | None = None
    page_count: int = 0
    stats: dict[str, Any] = field(default_factory=dict)
    validation: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.status is not ImportStatus.FAILED


# ------------------------------------------------------------------ #
#  Pipeline                                                           #
# ------------------------------------------------------------------ #

def normalize_story(
    document: Document,
    story: Story,
    config: dict[str, Any],
    progress_callback: ProgressCallback | None = None,
) -> dict[str, Any]:
    """Run the five normalization stages over *story*, strictly in order.

    Returns the merged per-stage counters.
    """
    styles_cfg = {**DEFAULT_STYLE_NAMES, **(config.get("styles") or {})}
    max_pages = int((config.get("pagination") or {}).get("max_pages", 500))

    def _tracker_callback(current: int, total: int, message: str) -> None:
        if progress_callback is not None:
            progress_callback("normalize", current, total, message)

    stats: dict[str, Any] = {}
    with ProgressTracker(
        total=5,
        description="Normalizing",
        callback=_tracker_callback,
        disable=not config.get("verbose", False),
    ) as progress:
        # ── Stage 1: Pagination ─────────────────────────────────────
        progress.set_description("Paginating")
        stats["pages_added"] = PaginationFlowController(document, max_pages=max_pages).flow(story)
        progress.update()

        # ── Stage 2: Content sanitizing ─────────────────────────────
        progress.set_description("Sanitizing")
        stats.update(ContentSanitizer().sanitize(story))
        progress.update()

        # ── Stage 3: Style classification ───────────────────────────
        progress.set_description("Classifying styles")
        stats["heading_breaks"] = HeadingBreakInserter().insert_breaks(story)
        stats.update(StyleClassifier(document.styles, config).classify(story))
        progress.update()

        # ── Stage 4: Tables ─────────────────────────────────────────
        progress.set_description("Styling tables")
        stats.update(TableStyler(document.styles, styles_cfg["table"]).apply(story))
        progress.update()

        # ── Stage 5: Hyperlinks ─────────────────────────────────────
        progress.set_description("Styling hyperlinks")
        schemes = config.get("hyperlink_schemes") or DEFAULT_SCHEMES
        stats.update(
            HyperlinkStyler(document.styles, styles_cfg["hyperlink"], schemes).apply(document)
        )
        progress.update()

    return stats


def _run(
    input_path: str | None,
    template_path: str | None,
    output_path: str,
    config: dict[str, Any],
    application: Application,
    validate: bool,
    progress_callback: ProgressCallback | None,
) -> ImportOutcome:
    if not input_path:
        raise UserCancelled("Import cancelled: no input file selected.")

    input_path = os.path.abspath(input_path)
    output_path = os.path.abspath(output_path)
    logger.info("Importing '%s' -> '%s'", input_path, output_path)

    # ── Stage 0: Target document and placement ─────────────────────
    application.open(TemplateLoader(config).load(template_path))
    document = application.active_document
    try:
        container = first_container(document.pages[0])
        story = DocxImporter(config).place(input_path, container)
        if story is None or story.first_container is None:
            raise StructuralPrecondition("No story found after placing the input file.")

        stats = normalize_story(document, story, config, progress_callback)

        # ── Stage 6: Output ─────────────────────────────────────────
        saved = DocxBuilder(config).build(document, story, template_path, output_path)
    finally:
        application.close(document)

    outcome = ImportOutcome(
        status=ImportStatus.SUCCESS,
        message=(
            f"Import complete: {len(document.pages)} page(s), "
            f"{stats.get('headings', 0)} heading(s), {stats.get('bullets', 0)} bullet(s), "
            f"{stats.get('sub_bullets', 0)} sub-bullet(s), "
            f"{stats.get('tables_styled', 0)} table(s), {stats.get('links_styled', 0)} link(s) styled."
        ),
        output_path=saved,
        page_count=len(document.pages),
        stats=stats,
    )

    # ── Stage 7: Optional validation ───────────────────────────────
    if validate:
        styles_cfg = {**DEFAULT_STYLE_NAMES, **(config.get("styles") or {})}
        outcome.validation = OutputValidator(styles_cfg).validate(saved, stats)
    return outcome


def import_document(
    input_path: str | None,
    template_path: str | None,
    output_path: str,
    config: dict[str, Any],
    application: Application | None = None,
    validate: bool = False,
    progress_callback: ProgressCallback | None = None,
) -> ImportOutcome:
    """Run the full import pipeline for a single document.

    Parameters
    ----------
    input_path : str | None
        Path to the source ``.docx``; ``None`` or empty means the user
        cancelled the selection.
    template_path : str | None
        Path to the target template ``.docx``.
    output_path : str
        Destination path for the styled ``.docx``.
    config : dict
        Application configuration.
    application : Application | None
        Host application whose interaction level is suppressed for the run;
        defaults to the shared instance.
    validate : bool
        If ``True``, run validation on the output file.
    progress_callback : callable | None
        Optional ``(stage, current, total, message) -> None`` callback.

    Returns
    -------
    ImportOutcome
        ``SUCCESS``, ``CANCELLED`` or ``FAILED`` with a user-facing message.
        The interaction level is restored before this returns or raises.
    """
    application = application or app
    try:
        with suppressed_interaction(application):
            return _run(
                input_path, template_path, output_path, config,
                application, validate, progress_callback,
            )
    except UserCancelled as exc:
        logger.info("%s", exc)
        return ImportOutcome(status=ImportStatus.CANCELLED, message=str(exc))
    except ImportFlowError as exc:
        logger.error("Import failed: %s", exc)
        return ImportOutcome(status=ImportStatus.FAILED, message=str(exc))


# ------------------------------------------------------------------ #
#  CLI entry point                                                    #
# ------------------------------------------------------------------ #

def main() -> None:
    """Parse arguments and run the import."""
    parser = argparse.ArgumentParser(
        prog="smartdoc-import",
        description="Import a Word document into a template and apply its styles.",
    )

    parser.add_argument("input", nargs="?", help="Input .docx file path.")
    parser.add_argument("output", nargs="?", help="Output .docx file path.")

    parser.add_argument(
        "--template",
        type=str,
        default=None,
        help="Target template .docx whose styles and page setup are applied.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a custom configuration JSON file.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging.",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Run validation checks on the output document.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing output file without prompting.",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Fail instead of growing the document past this many pages.",
    )

    args = parser.parse_args()

    # ── Logging ──────────────────────────────────────────────────────
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    # ── Config ───────────────────────────────────────────────────────
    config = _load_config(args.config)
    if args.verbose:
        config["verbose"] = True
    if args.max_pages is not None:
        config.setdefault("pagination", {})["max_pages"] = max(1, args.max_pages)
    template_path = args.template or config.get("template")

    input_path = args.input
    output_path = args.output
    if input_path and not output_path:
        # Default: "<input>_styled.docx" next to the input.
        base = os.path.splitext(input_path)[0]
        output_path = base + "_styled.docx"

    # Check overwrite.
    if output_path and os.path.exists(output_path) and not args.force:
        if not app.interaction_allowed:
            logger.error("Output file '%s' exists; use --force to overwrite.", output_path)
            sys.exit(1)
        resp = input(f"Output file '{output_path}' exists. Overwrite? [y/N] ").strip().lower()
        if resp not in ("y", "yes"):
            print("Aborted.")
            sys.exit(0)

    outcome = import_document(
        input_path,
        template_path,
        output_path or "",
        config,
        application=app,
        validate=args.validate,
    )
    app.alert(outcome.message)
    if outcome.validation is not None:
        app.alert(f"Validation: {outcome.validation['summary']}")
    sys.exit(0 if outcome.ok else 1)


if __name__ == "__main__":
    main()

"""Output validation module.

Validates generated DOCX files for structural integrity and checks that the
styles the normalization applied actually made it into the output.
"""

import logging
import os
import zipfile
from typing import Any, Dict, List, Optional

from docx import Document

logger = logging.getLogger(__name__)

# Standard entries expected in a valid DOCX (Open XML) archive.
REQUIRED_DOCX_ENTRIES = frozenset(
    {
        "[Content_Types].xml",
        "word/document.xml",
    }
)


class OutputValidator:
    """Validates DOCX output files for correctness and consistency.

    Args:
        styles: The ``styles`` section of the configuration; its role names
            are used to count headings, bullets and styled tables.
    """

    def __init__(self, styles: Optional[Dict[str, str]] = None) -> None:
        self.styles: Dict[str, str] = dict(styles or {})

    def validate(
        self,
        docx_path: str,
        run_stats: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Validate a DOCX file and return a detailed report.

        Args:
            docx_path: Path to the DOCX file to validate.
            run_stats: Optional statistics from the normalization run, used
                to cross-check style counts in the output.

        Returns:
            A validation-report dict with the following keys:
                - ``valid`` (bool): Overall validation result.
                - ``file_exists`` (bool): Whether the file exists.
                - ``file_size_kb`` (float): File size in kilobytes.
                - ``is_valid_docx`` (bool): Passes ZIP/XML structure checks.
                - ``metrics`` (dict): Paragraph, table and style counts.
                - ``issues`` (list[str]): Hard-failure descriptions.
                - ``warnings`` (list[str]): Non-fatal observations.
                - ``summary`` (str): Human-readable one-line summary.
        """
        issues: List[str] = []
        warnings: List[str] = []

        report: Dict[str, Any] = {
            "valid": False,
            "file_exists": False,
            "file_size_kb": 0.0,
            "is_valid_docx": False,
            "metrics": {},
            "issues": issues,
            "warnings": warnings,
            "summary": "",
        }

        # 1. File existence and size ----------------------------------------
        if not os.path.isfile(docx_path):
            issues.append(f"File does not exist: {docx_path}")
            report["summary"] = "Validation failed: file not found."
            return report

        report["file_exists"] = True
        file_size = os.path.getsize(docx_path)
        report["file_size_kb"] = round(file_size / 1024, 2)

        if file_size == 0:
            issues.append("File is empty (0 bytes).")
            report["summary"] = "Validation failed: file is empty."
            return report

        # 2. ZIP structure --------------------------------------------------
        if not zipfile.is_zipfile(docx_path):
            issues.append("File is not a valid ZIP archive.")
            report["summary"] = "Validation failed: not a ZIP archive."
            return report

        try:
            with zipfile.ZipFile(docx_path, "r") as zf:
                names = set(zf.namelist())
        except zipfile.BadZipFile as exc:
            issues.append(f"Corrupt ZIP file: {exc}")
            report["summary"] = "Validation failed: corrupt ZIP."
            return report

        # 3. Required DOCX entries ------------------------------------------
        missing = REQUIRED_DOCX_ENTRIES - names
        if missing:
            for entry in sorted(missing):
                issues.append(f"Missing required entry: {entry}")
            report["summary"] = "Validation failed: missing standard DOCX entries."
            return report

        report["is_valid_docx"] = True

        # 4. python-docx opening test and style metrics ---------------------
        try:
            doc = Document(docx_path)
            report["metrics"] = self.style_metrics(doc)
            logger.debug(
                "DOCX opened successfully: %d paragraphs.",
                report["metrics"]["paragraphs"],
            )
        except Exception as exc:
            issues.append(f"python-docx could not open file: {exc}")
            report["is_valid_docx"] = False

        # 5. Cross-reference with the run statistics ------------------------
        if run_stats is not None and report["metrics"]:
            self._cross_check(run_stats, report["metrics"], warnings)

        report["valid"] = len(issues) == 0
        report["summary"] = self._build_summary(report)

        log_fn = logger.info if report["valid"] else logger.warning
        log_fn("Validation result for '%s': %s", docx_path, report["summary"])

        return report

    def style_metrics(self, doc: Any) -> Dict[str, int]:
        """Count paragraphs, tables and target-style usage in *doc*."""
        heading_names = {
            name for role, name in self.styles.items() if role.startswith("heading_")
        }
        bullet = self.styles.get("bullet")
        sub_bullet = self.styles.get("sub_bullet")
        table_style = self.styles.get("table")

        metrics = {"paragraphs": 0, "tables": len(doc.tables), "headings": 0,
                   "bullets": 0, "sub_bullets": 0, "styled_tables": 0}
        for p in doc.paragraphs:
            metrics["paragraphs"] += 1
            name = p.style.name if p.style is not None else ""
            if name in heading_names:
                metrics["headings"] += 1
            elif name == bullet:
                metrics["bullets"] += 1
            elif name == sub_bullet:
                metrics["sub_bullets"] += 1
        for t in doc.tables:
            if t.style is not None and t.style.name == table_style:
                metrics["styled_tables"] += 1
        return metrics

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _cross_check(
        run_stats: Dict[str, Any],
        metrics: Dict[str, int],
        warnings: List[str],
    ) -> None:
        """Compare output style counts against what the run reported."""
        pairs = (
            ("bullets", "bullets"),
            ("sub_bullets", "sub_bullets"),
            ("tables_styled", "styled_tables"),
        )
        for stat_key, metric_key in pairs:
            expected = run_stats.get(stat_key)
            if expected is None:
                continue
            if metrics.get(metric_key, 0) < expected:
                warnings.append(
                    f"Run reported {expected} {stat_key.replace('_', ' ')} "
                    f"but the output has {metrics.get(metric_key, 0)}."
                )

    @staticmethod
    def _build_summary(report: Dict[str, Any]) -> str:
        issues = report["issues"]
        warnings = report["warnings"]
        size_kb = report["file_size_kb"]

        if report["valid"]:
            parts = [f"Valid DOCX ({size_kb} KB)"]
            if warnings:
                parts.append(f"{len(warnings)} warning(s)")
            return "; ".join(parts) + "."
        return f"Invalid DOCX: {len(issues)} issue(s), {len(warnings)} warning(s)."

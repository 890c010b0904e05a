"""Analyzers package - story normalization passes."""
from .content_sanitizer import ContentSanitizer
from .heading_breaks import HeadingBreakInserter
from .style_classifier import BulletEvidence, StyleClassifier

__all__ = ["ContentSanitizer", "HeadingBreakInserter", "BulletEvidence", "StyleClassifier"]

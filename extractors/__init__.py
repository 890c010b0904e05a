"""Extractors package - template loading and document placement."""
from .docx_importer import DocxImporter
from .template_loader import TemplateLoader

__all__ = ["DocxImporter", "TemplateLoader"]

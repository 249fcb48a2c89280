"""Template discovery subpackage."""

from .scanner import TemplateSet, scan_languages, scan_templates

__all__ = ["TemplateSet", "scan_languages", "scan_templates"]

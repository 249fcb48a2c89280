"""Rendering subpackage: the renderer contract and the PPTX implementation."""

from .pptx_renderer import PptxRenderer, Renderer, substitute_placeholders

__all__ = ["PptxRenderer", "Renderer", "substitute_placeholders"]

"""HTML views."""

from .view_renderer import ViewRenderer

__all__ = ["ViewRenderer"]

# src/renderchain/renderers/__init__.py
from __future__ import annotations

from .base import ItemRenderer, RenderedItem, Renderer
from .registry import (
    RendererCatalog,
    RendererDefinition,
    get_catalog,
    register_renderer,
)
from .image import ImageRenderer
from .plot import PlotRenderer
from .table import TableRenderer
from .json_tree import JsonTreeRenderer
from .markdown import MarkdownRenderer
from .html import HtmlRenderer
from .text import TextRenderer

# Catalog order matters: it breaks weight ties and seeds default weights.
# More specific renderers first, plain text last.
BUILTIN_RENDERERS: tuple[type[ItemRenderer], ...] = (
    ImageRenderer,
    PlotRenderer,
    TableRenderer,
    JsonTreeRenderer,
    MarkdownRenderer,
    HtmlRenderer,
    TextRenderer,
)


def register_default_renderers(catalog: RendererCatalog | None = None) -> RendererCatalog:
    target = catalog if catalog is not None else get_catalog()
    for cls in BUILTIN_RENDERERS:
        register_renderer(
            cls.id,
            cls,
            label=getattr(cls, "label", cls.id),
            record_types=cls.record_types,
            default_settings=cls.default_settings,
            description=(cls.__doc__ or "").strip().split("\n")[0],
            catalog=target,
        )
    return target


def default_catalog() -> RendererCatalog:
    """A fresh catalog holding only the built-in renderers."""
    return register_default_renderers(RendererCatalog())


__all__ = [
    "BUILTIN_RENDERERS",
    "ItemRenderer",
    "RenderedItem",
    "Renderer",
    "RendererCatalog",
    "RendererDefinition",
    "default_catalog",
    "get_catalog",
    "register_default_renderers",
    "register_renderer",
]

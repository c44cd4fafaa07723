# src/renderchain/__init__.py
from __future__ import annotations

from .chain import (
    Chain,
    ConfigIssue,
    RendererDescriptor,
    StoredRendererConfig,
    diagnose_config,
    resolve_chain,
)
from .errors import ContractViolation, PluginLoadError, RenderChainError, RendererNotFound
from .executor import FallbackExecutor, RenderAttempt, RenderResult, render_record
from .items import Item, Record, RecordContext
from .renderers import (
    ItemRenderer,
    RenderedItem,
    Renderer,
    RendererCatalog,
    RendererDefinition,
    default_catalog,
    get_catalog,
    register_default_renderers,
    register_renderer,
)
from .summary import render_summary_html, summarize_chain

__all__ = [
    "Chain",
    "ConfigIssue",
    "ContractViolation",
    "FallbackExecutor",
    "Item",
    "ItemRenderer",
    "PluginLoadError",
    "Record",
    "RecordContext",
    "RenderAttempt",
    "RenderChainError",
    "RenderResult",
    "RenderedItem",
    "Renderer",
    "RendererCatalog",
    "RendererDefinition",
    "RendererDescriptor",
    "RendererNotFound",
    "StoredRendererConfig",
    "default_catalog",
    "diagnose_config",
    "get_catalog",
    "register_default_renderers",
    "register_renderer",
    "render_record",
    "render_summary_html",
    "resolve_chain",
    "summarize_chain",
]

# src/renderchain/errors.py
from __future__ import annotations


class RenderChainError(Exception):
    """Base class for renderchain errors."""


class ContractViolation(RenderChainError, ValueError):
    """
    Raised for programmer-level misuse: malformed items, empty record type,
    a stored configuration that isn't a mapping.

    Renderer failures and stale configuration never raise; they degrade.
    """


class RendererNotFound(RenderChainError, LookupError):
    pass


class PluginLoadError(RenderChainError):
    pass

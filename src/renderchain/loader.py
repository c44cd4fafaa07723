from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any

from .errors import PluginLoadError
from .renderers.registry import RendererCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImportPath:
    module: str
    attr: str  # may be dotted, e.g. "plugins.register"


def parse_import_path(value: str) -> ImportPath:
    """
    Parse "package.module:callable" into (module, attr).
    """
    if ":" not in value:
        raise ValueError("Import path must be in the form 'package.module:callable'")

    module, attr = value.split(":", 1)
    module = module.strip()
    attr = attr.strip()

    if not module:
        raise ValueError("Import path module part is empty")
    if not attr:
        raise ValueError("Import path attribute part is empty")

    return ImportPath(module=module, attr=attr)


def load_object(path: str) -> Any:
    parsed = parse_import_path(path)
    mod = importlib.import_module(parsed.module)

    obj: Any = mod
    for part in parsed.attr.split("."):
        obj = getattr(obj, part)

    return obj


def load_plugin(path: str, catalog: RendererCatalog) -> None:
    """
    Import "package.module:register" and call it with the catalog, so a
    plugin can add its own renderer definitions.
    """
    try:
        register = load_object(path)
    except (ValueError, ImportError, AttributeError) as e:
        logger.error(f"Failed to load renderer plugin {path!r}: {e}")
        raise PluginLoadError(f"Cannot load plugin {path!r}: {e}") from e

    if not callable(register):
        raise PluginLoadError(
            f"Plugin entry point is not callable: {path!r} (type={type(register)!r})"
        )

    before = len(catalog)
    register(catalog)
    logger.debug(f"Plugin {path!r} registered {len(catalog) - before} renderer(s)")

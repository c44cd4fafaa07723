# src/renderchain/renderers/registry.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping, TYPE_CHECKING

from .base import Renderer
from ..errors import RendererNotFound
from ..items import RecordContext

if TYPE_CHECKING:
    from ..chain import RendererDescriptor

logger = logging.getLogger(__name__)

# The chain itself is registered under this id by hosts that expose it as a
# renderer; it can never be a member of its own chain.
FALLBACK_ID = "fallback"
ANY_RECORD_TYPE = "*"

RendererFactory = Callable[..., Renderer]


@dataclass(frozen=True, slots=True)
class RendererDefinition:
    id: str
    label: str
    record_types: tuple[str, ...]
    factory: RendererFactory
    default_settings: dict[str, Any] = field(default_factory=dict)
    description: str = ""

    def supports(self, record_type: str) -> bool:
        return record_type in self.record_types or ANY_RECORD_TYPE in self.record_types

    def is_applicable(self, context: RecordContext | None) -> bool:
        check = getattr(self.factory, "is_applicable", None)
        if check is None:
            return True
        return bool(check(context))


class RendererCatalog:
    """
    Ordered set of renderer definitions.

    Insertion order is significant: it is the tie-break for equal weights and
    the order in which never-configured renderers receive default weights.
    """

    def __init__(self, definitions: list[RendererDefinition] | None = None) -> None:
        self._definitions: dict[str, RendererDefinition] = {}
        for d in definitions or []:
            self.register(d)

    def register(self, definition: RendererDefinition) -> None:
        # dict assignment keeps the original slot when an id is re-registered
        self._definitions[definition.id] = definition
        logger.debug(f"Registered renderer: {definition.id}")

    def unregister(self, renderer_id: str) -> None:
        self._definitions.pop(renderer_id, None)

    def get(self, renderer_id: str) -> RendererDefinition | None:
        return self._definitions.get(renderer_id)

    def definitions(self) -> list[RendererDefinition]:
        return list(self._definitions.values())

    def ids(self) -> list[str]:
        return list(self._definitions.keys())

    def clear(self) -> None:
        self._definitions.clear()

    def __contains__(self, renderer_id: object) -> bool:
        return renderer_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[RendererDefinition]:
        return iter(self.definitions())

    def applicable_renderers(
        self, record_type: str, context: RecordContext | None = None
    ) -> list[RendererDefinition]:
        """
        Definitions usable for record_type, in catalog order.

        Key behaviour:
        - record type must be declared (or the "*" wildcard),
        - the definition's own applicability predicate must accept the context,
        - the fallback renderer is never offered as a chain member.
        """
        out: list[RendererDefinition] = []
        for d in self._definitions.values():
            if d.id == FALLBACK_ID:
                continue
            if not d.supports(record_type):
                continue
            if not d.is_applicable(context):
                continue
            out.append(d)
        return out

    def create(self, descriptor: "RendererDescriptor") -> Renderer:
        """
        Instantiate the renderer behind a chain descriptor.

        Descriptor settings are already merged with catalog defaults by the
        chain builder; defaults are merged again here so a hand-built
        descriptor behaves the same way.
        """
        d = self._definitions.get(descriptor.id)
        if d is None:
            raise RendererNotFound(f"No renderer registered with id: {descriptor.id}")
        settings = merge_settings(d.default_settings, descriptor.settings)
        return d.factory(settings=settings)


def merge_settings(
    defaults: Mapping[str, Any], stored: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Key-by-key merge; stored values win."""
    out = dict(defaults)
    out.update(stored or {})
    return out


_CATALOG = RendererCatalog()


def get_catalog() -> RendererCatalog:
    return _CATALOG


def register_renderer(
    renderer_id: str,
    factory: RendererFactory,
    *,
    label: str | None = None,
    record_types: tuple[str, ...] = (ANY_RECORD_TYPE,),
    default_settings: Mapping[str, Any] | None = None,
    description: str = "",
    catalog: RendererCatalog | None = None,
) -> RendererDefinition:
    d = RendererDefinition(
        id=renderer_id,
        label=label or renderer_id,
        record_types=tuple(record_types),
        factory=factory,
        default_settings=dict(default_settings or {}),
        description=description,
    )
    # an empty catalog is falsy (__len__), so compare against None
    target = catalog if catalog is not None else _CATALOG
    target.register(d)
    return d


def reset_catalog() -> None:
    _CATALOG.clear()

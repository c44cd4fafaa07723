# src/renderchain/renderers/base.py
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from ..items import Item, ItemKind, RecordContext, Truncation


@dataclass(frozen=True, slots=True)
class RenderedItem:
    kind: ItemKind
    html: str
    mime: str = "text/html"
    visible: bool = True
    truncation: Truncation | None = None
    meta: dict[str, Any] | None = None


@runtime_checkable
class Renderer(Protocol):
    id: str

    def render(
        self, items: Sequence[Item], *, context: RecordContext
    ) -> Mapping[int, Any]: ...

    def summarize(self) -> list[str]: ...


class ItemRenderer:
    """
    Convenience base for renderers that handle items one at a time.

    Subclasses implement can_render() and render_item(); render() returns
    outputs only for the items they accepted, which lets the fallback chain
    hand the rest to the next renderer.
    """

    id: str = ""
    kind: ItemKind = "text"
    label: str = ""
    record_types: tuple[str, ...] = ("*",)
    default_settings: Mapping[str, Any] = MappingProxyType({})

    def __init__(self, *, settings: Mapping[str, Any] | None = None) -> None:
        self.settings: dict[str, Any] = dict(settings or {})

    @classmethod
    def is_applicable(cls, context: RecordContext | None) -> bool:
        return True

    def can_render(self, value: Any) -> bool:
        raise NotImplementedError

    def render_item(self, item: Item, *, context: RecordContext) -> RenderedItem:
        raise NotImplementedError

    def render(
        self, items: Sequence[Item], *, context: RecordContext
    ) -> dict[int, RenderedItem]:
        out: dict[int, RenderedItem] = {}
        for item in items:
            if self.can_render(item.value):
                out[item.position] = self.render_item(item, context=context)
        return out

    def summarize(self) -> list[str]:
        return [f"{k}: {_fmt_setting(v)}" for k, v in sorted(self.settings.items())]


def escape_html(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def _fmt_setting(v: Any) -> str:
    if v is None:
        return "none"
    if isinstance(v, bool):
        return "yes" if v else "no"
    return str(v)

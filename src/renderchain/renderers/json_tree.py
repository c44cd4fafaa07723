# src/renderchain/renderers/json_tree.py
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from .base import ItemRenderer, RenderedItem, escape_html
from .limits import JsonLimits, json_limits_from_settings, safe_scalar_text
from ..items import Item, RecordContext, Truncation


class JsonTreeRenderer(ItemRenderer):
    id = "json"
    kind = "json"
    label = "JSON tree"
    record_types = ("data",)
    default_settings: Mapping[str, Any] = MappingProxyType(
        {
            "max_depth": 10,
            "max_nodes": 5_000,
            "max_string_chars": 1_000,
            "max_list_items": 200,
            "max_dict_items": 200,
        }
    )

    def can_render(self, value: Any) -> bool:
        return isinstance(value, (dict, list, tuple)) and len(value) > 0

    def render_item(self, item: Item, *, context: RecordContext) -> RenderedItem:
        ctx = _JsonCtx(limits=json_limits_from_settings(self.settings))
        tree_html = _render_node(item.value, ctx=ctx, depth=0, label=f"[{item.position}]")

        if ctx.truncated:
            truncation = Truncation(
                truncated=True,
                reason="json tree truncated by limits",
                details={
                    "max_depth": ctx.limits.max_depth,
                    "max_nodes": ctx.limits.max_nodes,
                    "visited_nodes": ctx.nodes,
                    "hit": ctx.hit,
                },
            )
        else:
            truncation = Truncation(truncated=False)

        return RenderedItem(
            kind="json",
            html=f'<div class="rc-json" data-rc-json="1">{tree_html}</div>',
            truncation=truncation,
            meta={"position": item.position, "visited_nodes": ctx.nodes},
        )

    def summarize(self) -> list[str]:
        limits = json_limits_from_settings(self.settings)
        return [f"Depth {limits.max_depth}", f"Nodes {limits.max_nodes}"]


@dataclass(slots=True)
class _JsonCtx:
    limits: JsonLimits
    nodes: int = 0
    truncated: bool = False
    hit: str | None = None  # first limit reached


def _render_node(obj: Any, *, ctx: _JsonCtx, depth: int, label: str) -> str:
    ctx.nodes += 1
    if ctx.nodes > ctx.limits.max_nodes:
        ctx.truncated = True
        ctx.hit = ctx.hit or "max_nodes"
        return _badge(f"{label}: …", reason="node limit")

    if depth > ctx.limits.max_depth:
        ctx.truncated = True
        ctx.hit = ctx.hit or "max_depth"
        return _badge(f"{label}: …", reason="depth limit")

    if isinstance(obj, dict):
        return _render_children(
            [(str(k), v) for k, v in obj.items()],
            ctx=ctx,
            depth=depth,
            label=label,
            max_items=ctx.limits.max_dict_items,
            noun="keys",
            hit="max_dict_items",
        )

    if isinstance(obj, (list, tuple)):
        return _render_children(
            [(f"[{i}]", v) for i, v in enumerate(obj)],
            ctx=ctx,
            depth=depth,
            label=label,
            max_items=ctx.limits.max_list_items,
            noun="items",
            hit="max_list_items",
        )

    return _render_scalar(obj, ctx=ctx, label=label)


def _render_children(
    pairs: list[tuple[str, Any]],
    *,
    ctx: _JsonCtx,
    depth: int,
    label: str,
    max_items: int,
    noun: str,
    hit: str,
) -> str:
    total = len(pairs)
    shown = pairs
    if total > max_items:
        ctx.truncated = True
        ctx.hit = ctx.hit or hit
        shown = pairs[:max_items]

    inner_parts: list[str] = []
    for k, v in shown:
        inner_parts.append(_render_node(v, ctx=ctx, depth=depth + 1, label=k))
        if ctx.truncated and ctx.hit in ("max_nodes", "max_depth"):
            break

    more = ""
    if total > len(shown):
        more = _badge(f"… {total - len(shown)} more {noun}", reason=f"{noun} limit")

    inner_html = "".join(f"<li>{p}</li>" for p in inner_parts)
    if more:
        inner_html += f"<li>{more}</li>"

    return (
        '<details open class="rc-json-node">'
        f'<summary><span class="rc-json-label">{escape_html(label)}</span>'
        f' <span class="rc-json-summary">({total} {noun})</span></summary>'
        f'<ul class="rc-json-children">{inner_html}</ul>'
        "</details>"
    )


def _render_scalar(x: Any, *, ctx: _JsonCtx, label: str) -> str:
    s, was_trunc = safe_scalar_text(x, max_chars=ctx.limits.max_string_chars)
    if was_trunc:
        ctx.truncated = True
        ctx.hit = ctx.hit or "max_string_chars"

    return (
        '<span class="rc-json-scalar">'
        f'<span class="rc-json-key">{escape_html(label)}</span>: '
        f'<span class="rc-json-val">{escape_html(s)}</span>'
        "</span>"
    )


def _badge(text: str, *, reason: str) -> str:
    return f'<span class="rc-badge" title="{escape_html(reason)}">{escape_html(text)}</span>'

# src/renderchain/renderers/text.py
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from .base import ItemRenderer, RenderedItem, escape_html
from .limits import text_limits_from_settings, truncate_text
from ..items import Item, RecordContext

_SCALARS = (int, float, complex)


class TextRenderer(ItemRenderer):
    """Plain, escaped text. The usual last resort at the end of a chain."""

    id = "text"
    kind = "text"
    label = "Plain text"
    record_types = ("text", "data", "media", "*")
    default_settings: Mapping[str, Any] = MappingProxyType(
        {
            "max_chars": 50_000,
            "max_lines": None,
            "allow_repr": False,
        }
    )

    def can_render(self, value: Any) -> bool:
        if isinstance(value, (str, bytes, bytearray)):
            return bool(_to_text(value).strip())
        if isinstance(value, bool) or value is None:
            return False
        # numbers and other scalars only when explicitly allowed
        return bool(self.settings.get("allow_repr")) and isinstance(value, _SCALARS)

    def render_item(self, item: Item, *, context: RecordContext) -> RenderedItem:
        text = _to_text(item.value)
        out, truncation = truncate_text(text, limits=text_limits_from_settings(self.settings))

        html = f'<pre class="rc-pre" data-rc-pre="1">{escape_html(out)}</pre>'
        return RenderedItem(
            kind="text",
            html=html,
            truncation=truncation,
            meta={"position": item.position, "length": len(text)},
        )

    def summarize(self) -> list[str]:
        lines = [f"Max chars: {self.settings.get('max_chars')}"]
        if self.settings.get("max_lines") is not None:
            lines.append(f"Max lines: {self.settings['max_lines']}")
        if self.settings.get("allow_repr"):
            lines.append("Renders scalars")
        return lines


def _to_text(obj: Any) -> str:
    if isinstance(obj, str):
        return obj
    if isinstance(obj, (bytes, bytearray)):
        return bytes(obj).decode("utf-8", errors="replace")
    return repr(obj)

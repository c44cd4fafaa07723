# src/renderchain/renderers/image.py
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from .base import ItemRenderer, RenderedItem, escape_html
from ..items import Item, RecordContext


class ImageRenderer(ItemRenderer):
    id = "image"
    kind = "image"
    label = "Inline image"
    record_types = ("media",)
    default_settings: Mapping[str, Any] = MappingProxyType({"max_width": "100%"})

    def can_render(self, value: Any) -> bool:
        if not isinstance(value, dict):
            return False
        mime = value.get("mime")
        return (
            bool(value.get("data_b64"))
            and isinstance(mime, str)
            and mime.startswith("image/")
        )

    def render_item(self, item: Item, *, context: RecordContext) -> RenderedItem:
        obj = item.value
        mime = str(obj.get("mime"))
        data_b64 = str(obj.get("data_b64"))
        filename = obj.get("filename")
        max_width = escape_html(str(self.settings.get("max_width") or "100%"))

        caption = (
            f"<figcaption>{escape_html(str(filename))}</figcaption>" if filename else ""
        )
        html = (
            '<figure class="rc-image">'
            f"<img src='data:{escape_html(mime)};base64,{escape_html(data_b64)}' "
            f"style='max-width:{max_width};height:auto' />"
            f"{caption}</figure>"
        )
        return RenderedItem(
            kind="image",
            html=html,
            meta={"position": item.position, "mime": mime},
        )

    def summarize(self) -> list[str]:
        return [f"Max width: {self.settings.get('max_width')}"]

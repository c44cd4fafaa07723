# src/renderchain/renderers/plot.py
from __future__ import annotations

import base64
import io
from types import MappingProxyType
from typing import Any, Mapping

from matplotlib.figure import Figure

from .base import ItemRenderer, RenderedItem
from ..items import Item, RecordContext, Truncation


class PlotRenderer(ItemRenderer):
    id = "plot"
    kind = "plot"
    label = "Matplotlib figure"
    record_types = ("media", "data")
    default_settings: Mapping[str, Any] = MappingProxyType({"dpi": 100, "bbox_tight": True})

    def can_render(self, value: Any) -> bool:
        return isinstance(value, Figure)

    def render_item(self, item: Item, *, context: RecordContext) -> RenderedItem:
        png = fig_to_png_bytes(
            item.value,
            dpi=int(self.settings.get("dpi") or 100),
            bbox_tight=bool(self.settings.get("bbox_tight", True)),
        )
        b64 = base64.b64encode(png).decode("ascii")
        html = (
            '<div class="rc-plot">'
            f'<img src="data:image/png;base64,{b64}" alt="Plot {item.position}" />'
            "</div>"
        )
        return RenderedItem(
            kind="plot",
            html=html,
            truncation=Truncation(truncated=False),
            meta={"position": item.position, "bytes": len(png)},
        )

    def summarize(self) -> list[str]:
        return [f"DPI: {self.settings.get('dpi')}"]


def fig_to_png_bytes(fig: Figure, *, dpi: int = 100, bbox_tight: bool = True) -> bytes:
    """Render a matplotlib Figure to PNG bytes."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", bbox_inches="tight" if bbox_tight else None, dpi=dpi)
    buf.seek(0)
    return buf.read()

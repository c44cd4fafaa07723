# src/renderchain/renderers/table.py
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

import pandas as pd

from .base import ItemRenderer, RenderedItem
from ..items import Item, RecordContext, Truncation


class TableRenderer(ItemRenderer):
    """
    Tables from DataFrames, or from {"columns": [...], "rows": [...]} payloads
    as they arrive over JSON.
    """

    id = "table"
    kind = "table"
    label = "Table"
    record_types = ("data",)
    default_settings: Mapping[str, Any] = MappingProxyType({"max_rows": 200, "index": False})

    def can_render(self, value: Any) -> bool:
        if isinstance(value, pd.DataFrame):
            return not value.empty
        if isinstance(value, dict):
            cols, rows = value.get("columns"), value.get("rows")
            return isinstance(cols, list) and isinstance(rows, list) and bool(rows)
        return False

    def render_item(self, item: Item, *, context: RecordContext) -> RenderedItem:
        df = _to_frame(item.value)
        max_rows = max(1, int(self.settings.get("max_rows") or 200))
        trimmed = df.head(max_rows)

        html = trimmed.to_html(
            classes="rc-table",
            border=0,
            index=bool(self.settings.get("index")),
            escape=True,
        )
        if len(df) > len(trimmed):
            truncation = Truncation(
                truncated=True,
                reason="table truncated by max_rows",
                details={"total_rows": len(df), "max_rows": max_rows},
            )
        else:
            truncation = Truncation(truncated=False)

        return RenderedItem(
            kind="table",
            html=html,
            truncation=truncation,
            meta={
                "position": item.position,
                "total_rows": int(len(df)),
                "returned_rows": int(len(trimmed)),
            },
        )

    def summarize(self) -> list[str]:
        return [f"Max rows: {self.settings.get('max_rows')}"]


def _to_frame(value: Any) -> pd.DataFrame:
    if isinstance(value, pd.DataFrame):
        return value
    return pd.DataFrame(value["rows"], columns=value["columns"])

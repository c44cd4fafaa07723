# src/renderchain/renderers/markdown.py
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Mapping

import markdown

from .base import ItemRenderer, RenderedItem
from .html import sanitize_html
from .limits import text_limits_from_settings, truncate_text
from ..items import Item, RecordContext

# headings, emphasis, lists, links, fences, quotes, tables
_MD_SYNTAX_RE = re.compile(
    r"(?m)(^#{1,6}\s)|(\*\*[^*]+\*\*)|(__[^_]+__)|(^\s*[-*+]\s)|(^\s*\d+\.\s)"
    r"|(\[[^\]]+\]\([^)]+\))|(^```)|(^>\s)|(^\|.*\|\s*$)|(`[^`]+`)"
)


def _coerce_markdown_obj(obj: Any) -> str | None:
    """
    Supported forms:
      - str -> markdown text
      - {"text": "..."} -> markdown text
    """
    if isinstance(obj, str):
        return obj
    if isinstance(obj, dict) and isinstance(obj.get("text"), str):
        return obj["text"]
    return None


def has_markdown_syntax(text: str) -> bool:
    return _MD_SYNTAX_RE.search(text) is not None


class MarkdownRenderer(ItemRenderer):
    id = "markdown"
    kind = "markdown"
    label = "Markdown"
    record_types = ("text",)
    default_settings: Mapping[str, Any] = MappingProxyType(
        {
            "unsafe_html": False,
            "require_syntax": True,
            "max_chars": 50_000,
        }
    )

    def can_render(self, value: Any) -> bool:
        text = _coerce_markdown_obj(value)
        if text is None or not text.strip():
            return False
        if isinstance(value, dict):
            return True
        if self.settings.get("require_syntax", True):
            return has_markdown_syntax(text)
        return True

    def render_item(self, item: Item, *, context: RecordContext) -> RenderedItem:
        text = _coerce_markdown_obj(item.value) or ""
        text2, truncation = truncate_text(
            text, limits=text_limits_from_settings(self.settings)
        )

        body = markdown.markdown(text2, extensions=["fenced_code", "tables"])
        unsafe = bool(self.settings.get("unsafe_html"))
        if not unsafe:
            body = sanitize_html(body)

        return RenderedItem(
            kind="markdown",
            html=f"<div class='rc-markdown'>{body}</div>",
            truncation=truncation,
            meta={"position": item.position, "sanitized": not unsafe},
        )

    def summarize(self) -> list[str]:
        lines = ["Raw HTML allowed" if self.settings.get("unsafe_html") else "Sanitized"]
        if not self.settings.get("require_syntax", True):
            lines.append("Accepts any text")
        return lines

# src/renderchain/renderers/html.py
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Mapping

import bleach

from .base import ItemRenderer, RenderedItem, escape_html
from .limits import text_limits_from_settings, truncate_text
from ..items import Item, RecordContext

_STYLE_SCRIPT_RE = re.compile(r"(?is)<(script|style)\b[^>]*>.*?</\1\s*>")
_TAG_RE = re.compile(r"<[^>]*>")

ALLOWED_TAGS = frozenset(
    {
        "a", "p", "br", "hr", "b", "strong", "i", "em", "u", "blockquote",
        "pre", "code", "kbd", "ul", "ol", "li",
        "h1", "h2", "h3", "h4", "h5", "h6",
        "table", "thead", "tbody", "tr", "th", "td",
        "span", "div", "img",
    }
)
ALLOWED_ATTRS: dict[str, list[str]] = {
    "a": ["href", "title", "rel", "target"],
    "img": ["src", "alt", "title"],
    "th": ["colspan", "rowspan"],
    "td": ["colspan", "rowspan"],
    "span": ["class"],
    "div": ["class"],
    "code": ["class"],
    "pre": ["class"],
    "table": ["class"],
}
ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto", "data"})

DEFAULT_SANDBOX = "allow-forms allow-modals allow-popups allow-downloads"


def strip_style_and_script_blocks(html: str) -> str:
    return _STYLE_SCRIPT_RE.sub("", html)


def sanitize_html(html: str) -> str:
    """Allowlist-based sanitization; disallowed tags are stripped, not escaped."""
    cleaned = bleach.clean(
        strip_style_and_script_blocks(html),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRS,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )
    return bleach.linkify(cleaned, callbacks=[bleach.callbacks.nofollow])


def looks_like_html(s: str) -> bool:
    """
    Conservative heuristic: only treat as HTML if it starts with a tag-ish token.
    """
    t = s.lstrip()
    if not t.startswith("<"):
        return False
    head = t[:2000]
    if ">" not in head:
        return False
    return head.lower().startswith("<!doctype") or head[1:2].isalpha()


def _iframe_html(raw_html: str, *, sandbox: str) -> str:
    srcdoc = raw_html.replace("&", "&amp;").replace('"', "&quot;")
    return (
        '<div class="rc-html-iframe-wrap">'
        f'<iframe class="rc-html-iframe" sandbox="{escape_html(sandbox)}" srcdoc="{srcdoc}">'
        "</iframe></div>"
    )


class HtmlRenderer(ItemRenderer):
    id = "html"
    kind = "html"
    label = "HTML"
    record_types = ("text",)
    default_settings: Mapping[str, Any] = MappingProxyType(
        {
            "unsafe": False,
            "sandbox": DEFAULT_SANDBOX,
            "max_chars": 50_000,
        }
    )

    @classmethod
    def is_applicable(cls, context: RecordContext | None) -> bool:
        if context is None:
            return True
        return context.option("allow_html", True) is not False

    def can_render(self, value: Any) -> bool:
        if isinstance(value, dict):
            return isinstance(value.get("html"), str) and bool(value["html"].strip())
        return isinstance(value, str) and looks_like_html(value)

    def render_item(self, item: Item, *, context: RecordContext) -> RenderedItem:
        obj = item.value
        unsafe = bool(self.settings.get("unsafe"))
        sandbox = str(self.settings.get("sandbox") or DEFAULT_SANDBOX)
        if isinstance(obj, dict):
            raw_html = str(obj.get("html") or "")
            sandbox = str(obj.get("sandbox") or sandbox)
        else:
            raw_html = str(obj)

        raw_html2, truncation = truncate_text(
            raw_html, limits=text_limits_from_settings(self.settings)
        )

        if unsafe:
            # isolated in a sandboxed iframe; scripts only run if the sandbox allows them
            return RenderedItem(
                kind="html",
                html=_iframe_html(raw_html2, sandbox=sandbox),
                truncation=truncation,
                meta={"position": item.position, "mode": "unsafe_iframe", "sandbox": sandbox},
            )

        cleaned = sanitize_html(raw_html2)
        return RenderedItem(
            kind="html",
            html=f"<div class='rc-html'>{cleaned}</div>",
            # sanitization can strip everything; that counts as no output
            visible=bool(_TAG_RE.sub("", cleaned).strip()) or "<img" in cleaned,
            truncation=truncation,
            meta={"position": item.position, "mode": "sanitized"},
        )

    def summarize(self) -> list[str]:
        if self.settings.get("unsafe"):
            return [f"Unsafe (sandbox: {self.settings.get('sandbox')})"]
        return ["Sanitized"]

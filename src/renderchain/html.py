# src/renderchain/html.py
from __future__ import annotations

from typing import Any

from .executor import RenderResult
from .renderers.base import RenderedItem, escape_html
from .summary import render_summary_html

PAGE_CSS = """
body { font-family: system-ui, -apple-system, sans-serif; margin: 0; background: #f7f7f7; }
header { background: #ffffff; border-bottom: 1px solid #ddd; padding: 12px 24px; }
main { padding: 16px 24px; max-width: 960px; }
.rc-item { background: #fff; border: 1px solid #e2e2e2; border-radius: 6px;
           padding: 8px 12px; margin-bottom: 10px; }
.rc-item--missing { border-style: dashed; min-height: 1em; }
.rc-item__meta { font-size: 11px; color: #777; margin-bottom: 4px; }
.rc-pre { white-space: pre-wrap; margin: 0; }
.rc-table { border-collapse: collapse; }
.rc-table th, .rc-table td { border: 1px solid #ddd; padding: 2px 6px; }
.rc-summary { font-size: 13px; color: #444; }
"""


def output_html(output: Any) -> str:
    """HTML for one accepted output; non-RenderedItem outputs are escaped."""
    if isinstance(output, RenderedItem):
        return output.html
    if isinstance(output, (bytes, bytearray)):
        output = bytes(output).decode("utf-8", errors="replace")
    return f'<pre class="rc-pre">{escape_html(str(output))}</pre>'


def render_items_html(result: RenderResult, *, show_missing: bool = True) -> str:
    parts: list[str] = []
    for position in result.positions_requested:
        if position in result:
            renderer_id = result.contributors.get(position, "")
            parts.append(
                f'<div class="rc-item" data-position="{position}" '
                f'data-renderer="{escape_html(renderer_id)}">'
                f'<div class="rc-item__meta">#{position} · {escape_html(renderer_id)}</div>'
                f"{output_html(result[position])}</div>"
            )
        elif show_missing:
            # the executor leaves uncovered positions out; this page marks them
            parts.append(
                f'<div class="rc-item rc-item--missing" data-position="{position}"></div>'
            )
    return "\n".join(parts)


def render_record_page(
    result: RenderResult,
    *,
    title: str = "renderchain",
    summary_lines: list[str] | None = None,
    show_missing: bool = True,
) -> str:
    summary_html = ""
    if summary_lines is not None:
        summary_html = f"<section>{render_summary_html(summary_lines)}</section>"

    covered = len(result)
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{escape_html(title)}</title>
  <style>{PAGE_CSS}</style>
</head>
<body>
  <header><strong>{escape_html(title)}</strong>
    <span class="rc-item__meta">{covered}/{result.total_items} items rendered</span>
  </header>
  <main>
    {summary_html}
    {render_items_html(result, show_missing=show_missing)}
  </main>
</body>
</html>
"""

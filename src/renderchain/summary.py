# src/renderchain/summary.py
from __future__ import annotations

import logging
from typing import Any, Mapping

from .chain import diagnose_config, resolve_chain
from .items import RecordContext
from .renderers.base import escape_html
from .renderers.registry import RendererCatalog

logger = logging.getLogger(__name__)

EMPTY_SUMMARY = "No renderers selected yet."


def summarize_chain(
    record_type: str,
    stored_config: Mapping[str, Any] | None,
    catalog: RendererCatalog,
    *,
    context: RecordContext | None = None,
) -> list[str]:
    """
    Describe the active chain: configuration problems first, then one line
    per enabled renderer in chain order with its own settings summary.
    """
    lines = [
        issue.message
        for issue in diagnose_config(record_type, stored_config, catalog, context=context)
        if issue.kind in ("unknown", "not_applicable")
    ]

    chain = resolve_chain(record_type, stored_config, catalog, context=context)
    for descriptor in chain:
        try:
            details = list(catalog.create(descriptor).summarize())
        except Exception as e:
            logger.warning(f"Could not summarize renderer '{descriptor.id}': {e}")
            details = []

        if details:
            lines.append(f"{descriptor.label}: {', '.join(details)}")
        else:
            lines.append(descriptor.label)

    return lines or [EMPTY_SUMMARY]


def render_summary_html(lines: list[str]) -> str:
    if not lines or lines == [EMPTY_SUMMARY]:
        return f"<strong>{escape_html(EMPTY_SUMMARY)}</strong>"
    items = "".join(f"<li>{escape_html(line)}</li>" for line in lines)
    return f'<ol class="rc-summary">{items}</ol>'

# src/renderchain/app.py
"""
Read-only preview API over the fallback chain.

Configuration is never written here; stored configuration comes from the
request payload or, when omitted, from renderchain.ini.
"""
from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse

from . import config
from .chain import resolve_chain
from .errors import ContractViolation
from .executor import FallbackExecutor, RenderResult
from .html import output_html, render_record_page
from .items import Record, RecordContext
from .renderers import register_default_renderers
from .renderers.base import RenderedItem
from .renderers.registry import get_catalog
from .summary import render_summary_html, summarize_chain

app = FastAPI(title="renderchain")

if not len(get_catalog()):
    register_default_renderers()


def _record_type(raw: str | None) -> str:
    return raw or config.load_settings().default_record_type


def _context(record_type: str, *, allow_html: bool | None = None) -> RecordContext:
    settings = config.load_settings()
    options = settings.context_options()
    if allow_html is not None:
        options["allow_html"] = allow_html
    return RecordContext(
        record_type=record_type, view_mode=settings.view_mode, options=options
    )


def _stored_config(record_type: str, payload_config: Any) -> Any:
    if payload_config is None:
        return config.load_chain_config(record_type)
    return payload_config


@app.get("/renderers")
def list_renderers(record_type: str | None = None) -> dict[str, Any]:
    catalog = get_catalog()
    rt = _record_type(record_type)
    applicable = {d.id for d in catalog.applicable_renderers(rt, _context(rt))}
    return {
        "record_type": rt,
        "renderers": [
            {
                "id": d.id,
                "label": d.label,
                "record_types": list(d.record_types),
                "default_settings": d.default_settings,
                "description": d.description,
                "applicable": d.id in applicable,
            }
            for d in catalog.definitions()
        ],
    }


@app.get("/chain")
def get_chain(
    record_type: str | None = None,
    preview: bool = Query(default=False, description="Include disabled renderers"),
) -> dict[str, Any]:
    rt = _record_type(record_type)
    chain = resolve_chain(
        rt,
        config.load_chain_config(rt),
        get_catalog(),
        context=_context(rt),
        filter_enabled=not preview,
    )
    return {"record_type": rt, "renderers": [d.as_dict() for d in chain]}


@app.get("/summary")
def get_summary(record_type: str | None = None) -> dict[str, Any]:
    rt = _record_type(record_type)
    lines = summarize_chain(
        rt, config.load_chain_config(rt), get_catalog(), context=_context(rt)
    )
    return {"record_type": rt, "lines": lines, "html": render_summary_html(lines)}


def _render_payload(payload: dict[str, Any]) -> tuple[Record, RenderResult]:
    items = payload.get("items")
    if not isinstance(items, list):
        raise HTTPException(status_code=422, detail="render: items must be a list")

    allow_html = payload.get("allow_html")
    try:
        record = Record.from_values(
            _record_type(payload.get("record_type")),
            items,
            record_id=payload.get("record_id"),
        )
        ctx = _context(
            record.record_type,
            allow_html=allow_html if isinstance(allow_html, bool) else None,
        )
        catalog = get_catalog()
        chain = resolve_chain(
            record.record_type,
            _stored_config(record.record_type, payload.get("config")),
            catalog,
            context=ctx,
            filter_enabled=not bool(payload.get("preview") or False),
        )
        result = FallbackExecutor(catalog).render(chain, record.items, context=ctx)
    except ContractViolation as e:
        raise HTTPException(status_code=422, detail=f"render: {e}")

    return record, result


@app.post("/render")
def render(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Expected payload:
      {
        "record_type": "text",          # optional, ini default otherwise
        "items": ["a", {"text": "# b"}],
        "config": {"text": {"enabled": true, "weight": 0}},   # optional
        "preview": false,               # include disabled renderers
        "allow_html": true              # optional context override
      }
    """
    record, result = _render_payload(payload)

    rendered = []
    for position, output in result.items():
        kind = output.kind if isinstance(output, RenderedItem) else None
        rendered.append(
            {
                "position": position,
                "renderer": result.contributors[position],
                "kind": kind,
                "html": output_html(output),
            }
        )

    return {
        "record_type": record.record_type,
        "items": rendered,
        "missing": result.missing_positions,
        "attempts": [
            {
                "renderer": a.renderer_id,
                "requested": list(a.requested),
                "accepted": list(a.accepted),
                "error": a.error,
            }
            for a in result.attempts
        ],
    }


@app.post("/render/html", response_class=HTMLResponse)
def render_html(payload: dict[str, Any]) -> HTMLResponse:
    record, result = _render_payload(payload)
    return HTMLResponse(
        content=render_record_page(result, title=record.label or record.record_type)
    )

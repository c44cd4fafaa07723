# tests/test_summary.py
from __future__ import annotations

import logging
from typing import Any

import pytest

from renderchain.items import RecordContext
from renderchain.renderers import default_catalog
from renderchain.renderers.registry import register_renderer
from renderchain.summary import EMPTY_SUMMARY, render_summary_html, summarize_chain


class _Broken:
    def __init__(self, *, settings: dict[str, Any] | None = None) -> None:
        self.settings = settings or {}

    def render(self, items: Any, *, context: RecordContext) -> dict[int, Any]:
        return {}

    def summarize(self) -> list[str]:
        raise RuntimeError("no summary")


def test_empty_config_summary() -> None:
    assert summarize_chain("text", {}, default_catalog()) == [EMPTY_SUMMARY]


def test_summary_lists_enabled_renderers_in_chain_order() -> None:
    stored = {
        "text": {"enabled": True, "weight": 5, "settings": {"max_chars": 100}},
        "markdown": {"enabled": True, "weight": 1},
        "html": {"enabled": False},
    }
    lines = summarize_chain("text", stored, default_catalog())
    assert lines == ["Markdown: Sanitized", "Plain text: Max chars: 100"]


def test_summary_reports_problems_first() -> None:
    stored = {
        "text": {"enabled": True},
        "nope": {"enabled": True},
        "table": {"enabled": True},
    }
    lines = summarize_chain("text", stored, default_catalog())
    assert lines == [
        "Unknown renderer 'nope'.",
        "Invalid renderer 'Table'.",
        "Plain text: Max chars: 50000",
    ]


def test_problems_alone_replace_the_empty_message() -> None:
    lines = summarize_chain("text", {"nope": {"enabled": True}}, default_catalog())
    assert lines == ["Unknown renderer 'nope'."]


def test_html_is_invalid_when_context_forbids_it() -> None:
    ctx = RecordContext(record_type="text", options={"allow_html": False})
    lines = summarize_chain(
        "text", {"html": {"enabled": True}}, default_catalog(), context=ctx
    )
    assert lines == ["Invalid renderer 'HTML'."]


def test_failing_summarize_falls_back_to_label(caplog: pytest.LogCaptureFixture) -> None:
    catalog = default_catalog()
    register_renderer("broken", _Broken, label="Broken", catalog=catalog)

    with caplog.at_level(logging.WARNING, logger="renderchain.summary"):
        lines = summarize_chain("text", {"broken": {"enabled": True}}, catalog)

    assert lines == ["Broken"]
    assert any("broken" in r.message for r in caplog.records)


def test_render_summary_html() -> None:
    html = render_summary_html(["Plain <text>", "Markdown: Sanitized"])
    assert html.startswith('<ol class="rc-summary">')
    assert "<li>Plain &lt;text&gt;</li>" in html
    assert html.count("<li>") == 2


def test_render_summary_html_empty() -> None:
    assert render_summary_html([]) == f"<strong>{EMPTY_SUMMARY}</strong>"
    assert render_summary_html([EMPTY_SUMMARY]) == f"<strong>{EMPTY_SUMMARY}</strong>"

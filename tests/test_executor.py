# tests/test_executor.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import pytest

from renderchain.chain import Chain, RendererDescriptor, resolve_chain
from renderchain.errors import ContractViolation
from renderchain.executor import (
    FallbackExecutor,
    accept_outputs,
    is_visible,
    render_record,
)
from renderchain.items import Item, Record, RecordContext
from renderchain.renderers import default_catalog
from renderchain.renderers.base import RenderedItem
from renderchain.renderers.registry import RendererCatalog, register_renderer


@dataclass
class ScriptedRenderer:
    id: str
    handles: set[int] | None = None  # None: every requested position
    error: Exception | None = None
    returns: Any = None  # overrides the produced mapping when set
    extra: dict[Any, Any] = field(default_factory=dict)
    calls: list[list[int]] = field(default_factory=list)

    def render(self, items: Any, *, context: RecordContext) -> Any:
        self.calls.append([it.position for it in items])
        if self.error is not None:
            raise self.error
        if self.returns is not None:
            return self.returns
        out: dict[Any, Any] = {
            it.position: f"{self.id}:{it.value}"
            for it in items
            if self.handles is None or it.position in self.handles
        }
        out.update(self.extra)
        return out

    def summarize(self) -> list[str]:
        return []


def _catalog(*renderers: Any) -> RendererCatalog:
    catalog = RendererCatalog()
    for r in renderers:
        register_renderer(r.id, lambda *, settings=None, _r=r: _r, catalog=catalog)
    return catalog


def _enable(*ids: str) -> dict[str, Any]:
    return {rid: {"enabled": True, "weight": i} for i, rid in enumerate(ids)}


def _items(*values: Any) -> list[Item]:
    return [Item(position=i, value=v) for i, v in enumerate(values)]


def _run(catalog: RendererCatalog, config: dict[str, Any], items: list[Item]) -> Any:
    chain = resolve_chain("text", config, catalog)
    return FallbackExecutor(catalog).render(chain, items)


def test_second_renderer_only_sees_uncovered_items() -> None:
    a = ScriptedRenderer("a", handles={0, 2})
    b = ScriptedRenderer("b")
    result = _run(_catalog(a, b), _enable("a", "b"), _items("x", "y", "z"))

    assert dict(result) == {0: "a:x", 1: "b:y", 2: "a:z"}
    assert result.contributors == {0: "a", 1: "b", 2: "a"}
    assert a.calls == [[0, 1, 2]]
    assert b.calls == [[1]]
    assert result.complete is True


def test_empty_chain_yields_empty_result_without_invoking_anything() -> None:
    a = ScriptedRenderer("a")
    catalog = _catalog(a)
    result = FallbackExecutor(catalog).render(Chain("text"), _items("x", "y"))

    assert len(result) == 0
    assert result.invoked() == []
    assert result.missing_positions == [0, 1]
    assert a.calls == []


def test_empty_items_never_invoke_renderers() -> None:
    a = ScriptedRenderer("a")
    result = _run(_catalog(a), _enable("a"), [])

    assert len(result) == 0
    assert a.calls == []
    assert result.complete is True


def test_failing_renderer_is_skipped_and_logged(caplog: pytest.LogCaptureFixture) -> None:
    a = ScriptedRenderer("a", error=RuntimeError("boom"))
    b = ScriptedRenderer("b")

    with caplog.at_level(logging.WARNING, logger="renderchain.executor"):
        result = _run(_catalog(a, b), _enable("a", "b"), _items("x", "y"))

    assert dict(result) == {0: "b:x", 1: "b:y"}
    assert b.calls == [[0, 1]]
    assert result.attempts[0].failed is True
    assert "RuntimeError: boom" in (result.attempts[0].error or "")
    assert result.attempts[1].failed is False
    assert any("Renderer 'a' failed" in r.message for r in caplog.records)


def test_single_throwing_renderer_yields_empty_result() -> None:
    a = ScriptedRenderer("a", error=ValueError("bad input"))
    result = _run(_catalog(a), _enable("a"), _items(1, 2, 3))

    assert len(result) == 0
    assert result.invoked() == ["a"]
    assert result.missing_positions == [0, 1, 2]


def test_walk_stops_once_everything_is_covered() -> None:
    a = ScriptedRenderer("a")
    b = ScriptedRenderer("b")
    c = ScriptedRenderer("c")
    result = _run(_catalog(a, b, c), _enable("a", "b", "c"), _items(1, 2, 3))

    assert len(a.calls) == 1
    assert b.calls == []
    assert c.calls == []
    assert result.invoked() == ["a"]


def test_first_renderer_wins_overlapping_positions() -> None:
    a = ScriptedRenderer("a", handles={0})
    b = ScriptedRenderer("b", extra={0: "stolen"})
    result = _run(_catalog(a, b), _enable("a", "b"), _items("x", "y"))

    assert result[0] == "a:x"
    assert result[1] == "b:y"
    assert result.contributors[0] == "a"


def test_swapping_weights_swaps_the_winner() -> None:
    a = ScriptedRenderer("a")
    b = ScriptedRenderer("b")
    catalog = _catalog(a, b)

    a_first = {"a": {"enabled": True, "weight": 0}, "b": {"enabled": True, "weight": 1}}
    b_first = {"a": {"enabled": True, "weight": 1}, "b": {"enabled": True, "weight": 0}}

    first = _run(catalog, a_first, _items("x"))
    second = _run(catalog, b_first, _items("x"))

    assert first[0] == "a:x"
    assert second[0] == "b:x"


def test_outputs_for_unrequested_positions_are_discarded() -> None:
    a = ScriptedRenderer("a", extra={99: "ghost", "k": "nope", -1: "neg"})
    result = _run(_catalog(a), _enable("a"), _items("x"))

    assert list(result) == [0]
    assert 99 not in result
    assert result.attempts[0].accepted == (0,)


@pytest.mark.parametrize(
    "invisible",
    [
        "",
        "   ",
        None,
        {},
        {"visible": False, "html": "<p>x</p>"},
        {"#access": False},
        RenderedItem(kind="text", html="<p>x</p>", visible=False),
        RenderedItem(kind="text", html="  "),
    ],
)
def test_invisible_output_does_not_cover_the_position(invisible: Any) -> None:
    a = ScriptedRenderer("a", returns={0: invisible})
    b = ScriptedRenderer("b")
    result = _run(_catalog(a, b), _enable("a", "b"), _items("x"))

    assert result[0] == "b:x"
    assert b.calls == [[0]]


def test_non_mapping_output_counts_as_failure(caplog: pytest.LogCaptureFixture) -> None:
    a = ScriptedRenderer("a", returns=["not", "a", "mapping"])
    b = ScriptedRenderer("b")

    with caplog.at_level(logging.WARNING, logger="renderchain.executor"):
        result = _run(_catalog(a, b), _enable("a", "b"), _items("x"))

    assert result[0] == "b:x"
    assert result.attempts[0].error == "malformed output: list"
    assert any("expected a mapping" in r.message for r in caplog.records)


def test_malformed_output_value_counts_as_failure(caplog: pytest.LogCaptureFixture) -> None:
    a = ScriptedRenderer("a", returns={0: RenderedItem(kind="text", html=None)})  # type: ignore[arg-type]
    b = ScriptedRenderer("b")

    with caplog.at_level(logging.WARNING, logger="renderchain.executor"):
        result = _run(_catalog(a, b), _enable("a", "b"), _items("x"))

    assert result[0] == "b:x"
    assert result.contributors[0] == "b"
    assert result.attempts[0].failed is True
    assert result.attempts[0].error.startswith("malformed output:")
    assert any("Renderer 'a' returned unusable output" in r.message for r in caplog.records)


def test_mapping_that_fails_to_iterate_counts_as_failure() -> None:
    class Broken(dict):
        def items(self) -> Any:
            raise RuntimeError("boom")

    a = ScriptedRenderer("a", returns=Broken({0: "x"}))
    b = ScriptedRenderer("b")
    result = _run(_catalog(a, b), _enable("a", "b"), _items("x"))

    assert result[0] == "b:x"
    assert result.attempts[0].error == "malformed output: RuntimeError: boom"


def test_result_iterates_in_position_order() -> None:
    a = ScriptedRenderer("a", handles={2})
    b = ScriptedRenderer("b")
    result = _run(_catalog(a, b), _enable("a", "b"), _items("x", "y", "z"))

    assert list(result) == [0, 1, 2]
    assert list(result.contributors) == [0, 1, 2]


def test_missing_positions_when_no_renderer_covers_them() -> None:
    a = ScriptedRenderer("a", handles={1})
    result = _run(_catalog(a), _enable("a"), _items("x", "y", "z"))

    assert list(result) == [1]
    assert result.missing_positions == [0, 2]
    assert result.complete is False
    assert result.total_items == 3


def test_unordered_positions_are_allowed() -> None:
    a = ScriptedRenderer("a", handles={1})
    b = ScriptedRenderer("b")
    items = [Item(position=1, value="x"), Item(position=0, value="y")]
    result = _run(_catalog(a, b), _enable("a", "b"), items)

    assert list(result) == [0, 1]
    assert b.calls == [[0]]


def test_out_of_range_positions_are_rejected() -> None:
    a = ScriptedRenderer("a")
    items = [Item(position=7, value="x"), Item(position=3, value="y")]
    with pytest.raises(ContractViolation, match="out of range"):
        _run(_catalog(a), _enable("a"), items)
    assert a.calls == []


def test_prepare_hook_runs_before_render_with_remaining_items() -> None:
    seen: list[tuple[str, list[int]]] = []

    class Preparing(ScriptedRenderer):
        def prepare(self, items: Any, *, context: RecordContext) -> None:
            seen.append(("prepare", [it.position for it in items]))

        def render(self, items: Any, *, context: RecordContext) -> Any:
            seen.append(("render", [it.position for it in items]))
            return super().render(items, context=context)

    a = ScriptedRenderer("a", handles={0})
    b = Preparing("b")
    _run(_catalog(a, b), _enable("a", "b"), _items("x", "y"))

    assert seen == [("prepare", [1]), ("render", [1])]


def test_failing_prepare_skips_the_renderer() -> None:
    class BadPrepare(ScriptedRenderer):
        def prepare(self, items: Any, *, context: RecordContext) -> None:
            raise ValueError("no")

    a = BadPrepare("a")
    b = ScriptedRenderer("b")
    result = _run(_catalog(a, b), _enable("a", "b"), _items("x"))

    assert a.calls == []
    assert result[0] == "b:x"
    assert result.attempts[0].failed is True


def test_unknown_descriptor_is_a_failed_attempt() -> None:
    b = ScriptedRenderer("b")
    catalog = _catalog(b)
    chain = Chain(
        "text",
        (
            RendererDescriptor(id="ghost", label="ghost", enabled=True, weight=0),
            RendererDescriptor(id="b", label="b", enabled=True, weight=1),
        ),
    )
    result = FallbackExecutor(catalog).render(chain, _items("x"))

    assert result[0] == "b:x"
    assert result.attempts[0].renderer_id == "ghost"
    assert "RendererNotFound" in (result.attempts[0].error or "")


def test_renderers_receive_the_context() -> None:
    got: list[RecordContext] = []

    class Capturing(ScriptedRenderer):
        def render(self, items: Any, *, context: RecordContext) -> Any:
            got.append(context)
            return super().render(items, context=context)

    catalog = _catalog(Capturing("a"))
    ctx = RecordContext(record_type="text", record_id="42", options={"k": 1})
    chain = resolve_chain("text", _enable("a"), catalog, context=ctx)
    FallbackExecutor(catalog).render(chain, _items("x"), context=ctx)

    assert got == [ctx]


def test_duplicate_positions_are_rejected() -> None:
    catalog = _catalog(ScriptedRenderer("a"))
    with pytest.raises(ContractViolation):
        FallbackExecutor(catalog).render(
            Chain("text"), [Item(position=0, value="x"), Item(position=0, value="y")]
        )


@pytest.mark.parametrize(
    "bad",
    [
        "abc",
        [("x", 0)],
        [Item(position=-1, value="x")],
        [Item(position=True, value="x")],
        [Item(position=1, value="x")],
    ],
)
def test_malformed_items_are_rejected(bad: Any) -> None:
    with pytest.raises(ContractViolation):
        FallbackExecutor(RendererCatalog()).render(Chain("text"), bad)


def test_accept_outputs_filters_keys() -> None:
    produced = {0: "a", 1: "", 2: "c", 5: "x", "0": "s"}
    assert accept_outputs(produced, [0, 1, 2]) == [0, 2]
    assert accept_outputs({True: "b"}, [1]) == []


def test_is_visible_treats_other_objects_as_visible() -> None:
    assert is_visible(0) is True
    assert is_visible({"html": "<p/>"}) is True
    assert is_visible(RenderedItem(kind="text", html="<p>x</p>")) is True


def test_is_visible_rejects_rendered_items_without_html() -> None:
    assert is_visible(RenderedItem(kind="text", html=None)) is False  # type: ignore[arg-type]
    assert is_visible(RenderedItem(kind="text", html=b"<p/>")) is False  # type: ignore[arg-type]
    assert is_visible(RenderedItem(kind="text", html="  ")) is False
    assert is_visible(RenderedItem(kind="text", html="<p/>", visible=False)) is False


def test_render_record_with_builtin_renderers() -> None:
    record = Record.from_values("text", ["# Title", "<p>hi</p>", "plain words"])
    config = {
        "markdown": {"enabled": True, "weight": 0},
        "html": {"enabled": True, "weight": 1},
        "text": {"enabled": True, "weight": 2},
    }
    result = render_record(record, config, catalog=default_catalog())

    assert result.contributors == {0: "markdown", 1: "html", 2: "text"}
    assert "<h1>Title</h1>" in result[0].html
    assert "<p>hi</p>" in result[1].html
    assert "plain words" in result[2].html


def test_render_record_without_enabled_renderers_is_empty() -> None:
    record = Record.from_values("text", ["x"])
    result = render_record(record, {}, catalog=default_catalog())
    assert len(result) == 0
    assert result.missing_positions == [0]


def test_render_record_preview_runs_unconfigured_renderers() -> None:
    record = Record.from_values("text", ["plain words"])
    result = render_record(record, {}, catalog=default_catalog(), filter_enabled=False)
    assert result.contributors == {0: "text"}

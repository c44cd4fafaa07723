# src/renderchain/executor.py
"""
Fallback execution: walk a resolved chain, giving each renderer only the
items no earlier renderer produced output for.

The walk is strictly sequential. Each renderer's accepted output extends the
coverage set before the next renderer is considered, and the walk stops as
soon as coverage is complete.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from .chain import Chain, resolve_chain
from .items import Item, Record, RecordContext, check_items
from .renderers.base import RenderedItem
from .renderers.registry import RendererCatalog, get_catalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RenderAttempt:
    renderer_id: str
    requested: tuple[int, ...]
    accepted: tuple[int, ...] = ()
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True, slots=True)
class RenderResult(Mapping):
    """
    Position -> output, iterating in ascending position order.

    Every position present was filled by the first renderer in chain order
    that produced visible output for it (see contributors).
    """

    outputs: dict[int, Any] = field(default_factory=dict)
    contributors: dict[int, str] = field(default_factory=dict)
    attempts: tuple[RenderAttempt, ...] = ()
    total_items: int = 0
    positions_requested: tuple[int, ...] = ()

    def __getitem__(self, position: int) -> Any:
        return self.outputs[position]

    def __iter__(self) -> Iterator[int]:
        return iter(self.outputs)

    def __len__(self) -> int:
        return len(self.outputs)

    @property
    def missing_positions(self) -> list[int]:
        return [p for p in self.positions_requested if p not in self.outputs]

    @property
    def complete(self) -> bool:
        return not self.missing_positions

    def invoked(self) -> list[str]:
        return [a.renderer_id for a in self.attempts]


class FallbackExecutor:
    """Runs a chain against items; renderer instances come from the catalog."""

    def __init__(self, catalog: RendererCatalog | None = None) -> None:
        self.catalog = catalog if catalog is not None else get_catalog()

    def render(
        self,
        chain: Chain,
        items: Sequence[Item],
        *,
        context: RecordContext | None = None,
    ) -> RenderResult:
        items = check_items(items)
        ctx = context or RecordContext(record_type=chain.record_type)

        outputs: dict[int, Any] = {}
        contributors: dict[int, str] = {}
        attempts: list[RenderAttempt] = []

        for descriptor in chain:
            remaining = [it for it in items if it.position not in outputs]
            if not remaining:
                logger.debug(
                    f"All {len(items)} items covered; skipping rest of chain at '{descriptor.id}'"
                )
                break

            requested = tuple(it.position for it in remaining)
            try:
                renderer = self.catalog.create(descriptor)
                prepare = getattr(renderer, "prepare", None)
                if callable(prepare):
                    prepare(remaining, context=ctx)
                produced = renderer.render(remaining, context=ctx)
            except Exception as e:
                logger.warning(f"Renderer '{descriptor.id}' failed: {type(e).__name__}: {e}")
                attempts.append(
                    RenderAttempt(
                        renderer_id=descriptor.id,
                        requested=requested,
                        error=f"{type(e).__name__}: {e}",
                    )
                )
                continue

            if not isinstance(produced, Mapping):
                logger.warning(
                    f"Renderer '{descriptor.id}' returned {type(produced).__name__}, expected a mapping"
                )
                attempts.append(
                    RenderAttempt(
                        renderer_id=descriptor.id,
                        requested=requested,
                        error=f"malformed output: {type(produced).__name__}",
                    )
                )
                continue

            try:
                accepted = {p: produced[p] for p in accept_outputs(produced, requested)}
            except Exception as e:
                logger.warning(
                    f"Renderer '{descriptor.id}' returned unusable output: {type(e).__name__}: {e}"
                )
                attempts.append(
                    RenderAttempt(
                        renderer_id=descriptor.id,
                        requested=requested,
                        error=f"malformed output: {type(e).__name__}: {e}",
                    )
                )
                continue

            for position, output in accepted.items():
                outputs[position] = output
                contributors[position] = descriptor.id

            attempts.append(
                RenderAttempt(
                    renderer_id=descriptor.id,
                    requested=requested,
                    accepted=tuple(accepted),
                )
            )
            logger.debug(
                f"Renderer '{descriptor.id}' covered {len(accepted)}/{len(requested)} remaining items"
            )

        ordered = sorted(outputs)
        return RenderResult(
            outputs={p: outputs[p] for p in ordered},
            contributors={p: contributors[p] for p in ordered},
            attempts=tuple(attempts),
            total_items=len(items),
            positions_requested=tuple(it.position for it in items),
        )


def accept_outputs(produced: Mapping[Any, Any], requested: Sequence[int]) -> list[int]:
    """
    Positions from a renderer's output that may be merged: requested ones
    (so already-covered and unknown positions are discarded) with visible output.
    """
    wanted = set(requested)
    accepted: list[int] = []
    for key, value in produced.items():
        if isinstance(key, bool) or not isinstance(key, int):
            continue
        if key not in wanted:
            continue
        if is_visible(value):
            accepted.append(key)
    return accepted


def is_visible(output: Any) -> bool:
    if output is None:
        return False
    if isinstance(output, RenderedItem):
        html = output.html
        return bool(output.visible) and isinstance(html, str) and bool(html.strip())
    if isinstance(output, (str, bytes, bytearray)):
        return bool(output.strip())
    if isinstance(output, Mapping):
        for flag in ("visible", "#access"):
            if output.get(flag) is False:
                return False
        return bool(output)
    return True


def render_record(
    record: Record,
    stored_config: Mapping[str, Any] | None,
    *,
    catalog: RendererCatalog | None = None,
    context: RecordContext | None = None,
    filter_enabled: bool = True,
) -> RenderResult:
    """Resolve the chain for a record's type and run it over the record's items."""
    cat = catalog if catalog is not None else get_catalog()
    ctx = context or record.context()
    chain = resolve_chain(
        record.record_type,
        stored_config,
        cat,
        context=ctx,
        filter_enabled=filter_enabled,
    )
    return FallbackExecutor(cat).render(chain, record.items, context=ctx)

# src/renderchain/items.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Sequence

from .errors import ContractViolation

ItemKind = Literal["text", "markdown", "html", "json", "table", "plot", "image"]


@dataclass(frozen=True, slots=True)
class Truncation:
    truncated: bool
    reason: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class Item:
    """One value of a multi-value record, pinned to its position."""

    position: int
    value: Any


@dataclass(frozen=True, slots=True)
class RecordContext:
    record_type: str
    record_id: str | None = None
    view_mode: str = "default"
    options: dict[str, Any] = field(default_factory=dict)

    def option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


@dataclass(frozen=True, slots=True)
class Record:
    record_type: str
    items: tuple[Item, ...]
    record_id: str | None = None
    label: str | None = None

    @classmethod
    def from_values(
        cls,
        record_type: str,
        values: Iterable[Any],
        *,
        record_id: str | None = None,
        label: str | None = None,
    ) -> "Record":
        check_record_type(record_type)
        items = tuple(Item(position=i, value=v) for i, v in enumerate(values))
        return cls(record_type=record_type, items=items, record_id=record_id, label=label)

    def context(
        self, *, view_mode: str = "default", options: dict[str, Any] | None = None
    ) -> RecordContext:
        return RecordContext(
            record_type=self.record_type,
            record_id=self.record_id,
            view_mode=view_mode,
            options=dict(options or {}),
        )


def check_record_type(record_type: Any) -> str:
    if not isinstance(record_type, str) or not record_type.strip():
        raise ContractViolation(
            f"record_type must be a non-empty string, got {record_type!r}"
        )
    return record_type


def check_items(items: Any) -> tuple[Item, ...]:
    """
    Validate the item sequence handed to the executor.

    Items must be Item instances with unique int positions in 0..len(items)-1,
    in any order.
    """
    if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
        raise ContractViolation(
            f"items must be a sequence of Item, got {type(items).__name__}"
        )

    seen: set[int] = set()
    for it in items:
        if not isinstance(it, Item):
            raise ContractViolation(f"expected Item, got {type(it).__name__}")
        pos = it.position
        if isinstance(pos, bool) or not isinstance(pos, int) or pos < 0:
            raise ContractViolation(f"invalid item position: {pos!r}")
        if pos >= len(items):
            raise ContractViolation(
                f"item position {pos} out of range for {len(items)} items"
            )
        if pos in seen:
            raise ContractViolation(f"duplicate item position: {pos}")
        seen.add(pos)

    return tuple(items)

# src/renderchain/chain.py
"""
Chain resolution: stored per-renderer configuration + catalog -> ordered chain.

The stored configuration may be stale (ids of renderers that are gone) or
incomplete (renderers installed since it was written). Both are normal and
resolve silently; diagnose_config() reports them for display purposes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Literal, Mapping

from .errors import ContractViolation
from .items import RecordContext, check_record_type
from .renderers.registry import RendererCatalog, merge_settings

IssueKind = Literal["unknown", "not_applicable", "invalid_entry", "unknown_setting"]


@dataclass(frozen=True, slots=True)
class StoredRendererConfig:
    enabled: bool | None = None
    weight: int | None = None
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RendererDescriptor:
    id: str
    label: str
    enabled: bool
    weight: int
    settings: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # read-only view over a private copy
        object.__setattr__(self, "settings", MappingProxyType(dict(self.settings)))

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "enabled": self.enabled,
            "weight": self.weight,
            "settings": dict(self.settings),
        }


@dataclass(frozen=True, slots=True)
class Chain:
    record_type: str
    descriptors: tuple[RendererDescriptor, ...] = ()

    def __iter__(self) -> Iterator[RendererDescriptor]:
        return iter(self.descriptors)

    def __len__(self) -> int:
        return len(self.descriptors)

    def ids(self) -> list[str]:
        return [d.id for d in self.descriptors]


@dataclass(frozen=True, slots=True)
class ConfigIssue:
    kind: IssueKind
    renderer_id: str
    message: str
    setting: str | None = None


def resolve_chain(
    record_type: str,
    stored_config: Mapping[str, Any] | None,
    catalog: RendererCatalog,
    *,
    context: RecordContext | None = None,
    filter_enabled: bool = True,
) -> Chain:
    """
    Merge stored configuration with the catalog's applicable renderers.

    - ids not applicable to record_type are dropped,
    - renderers without a stored weight get 0, 1, 2, ... in catalog order,
    - with filter_enabled, renderers not explicitly enabled are left out
      (and do not use up a default weight),
    - catalog default settings fill in keys the stored settings lack,
    - result is stably sorted by weight, so ties keep catalog order.
    """
    check_record_type(record_type)
    stored = normalize_stored_config(stored_config)

    default_weight = 0
    descriptors: list[RendererDescriptor] = []
    for definition in catalog.applicable_renderers(record_type, context):
        cfg = stored.get(definition.id) or StoredRendererConfig()
        enabled = bool(cfg.enabled)
        if filter_enabled and not enabled:
            continue

        weight = cfg.weight
        if weight is None:
            weight = default_weight
            default_weight += 1

        descriptors.append(
            RendererDescriptor(
                id=definition.id,
                label=definition.label,
                enabled=enabled,
                weight=weight,
                settings=merge_settings(definition.default_settings, cfg.settings),
            )
        )

    descriptors.sort(key=lambda d: d.weight)
    return Chain(record_type=record_type, descriptors=tuple(descriptors))


def diagnose_config(
    record_type: str,
    stored_config: Mapping[str, Any] | None,
    catalog: RendererCatalog,
    *,
    context: RecordContext | None = None,
) -> list[ConfigIssue]:
    check_record_type(record_type)
    raw = _check_mapping(stored_config)
    applicable = {d.id for d in catalog.applicable_renderers(record_type, context)}

    issues: list[ConfigIssue] = []
    for renderer_id, entry in raw.items():
        definition = catalog.get(renderer_id)
        if definition is None:
            issues.append(
                ConfigIssue("unknown", renderer_id, f"Unknown renderer '{renderer_id}'.")
            )
            continue
        if renderer_id not in applicable:
            issues.append(
                ConfigIssue(
                    "not_applicable",
                    renderer_id,
                    f"Invalid renderer '{definition.label}'.",
                )
            )
            continue
        if not isinstance(entry, (Mapping, StoredRendererConfig)):
            issues.append(
                ConfigIssue(
                    "invalid_entry",
                    renderer_id,
                    f"Configuration for '{definition.label}' is not a mapping.",
                )
            )
            continue

        settings = _coerce_entry(entry).settings
        if definition.default_settings:
            for key in settings:
                if key not in definition.default_settings:
                    issues.append(
                        ConfigIssue(
                            "unknown_setting",
                            renderer_id,
                            f"Unknown setting '{key}' for '{definition.label}'.",
                            setting=key,
                        )
                    )
    return issues


def normalize_stored_config(
    stored_config: Mapping[str, Any] | None,
) -> dict[str, StoredRendererConfig]:
    """
    Accept StoredRendererConfig values or plain dicts
    ({"enabled"|"status": bool, "weight": int, "settings": {...}}).
    Entries that are neither are treated as empty.
    """
    raw = _check_mapping(stored_config)
    return {str(k): _coerce_entry(v) for k, v in raw.items()}


def _check_mapping(stored_config: Any) -> Mapping[str, Any]:
    if stored_config is None:
        return {}
    if not isinstance(stored_config, Mapping):
        raise ContractViolation(
            f"stored_config must be a mapping, got {type(stored_config).__name__}"
        )
    return stored_config


def _coerce_entry(entry: Any) -> StoredRendererConfig:
    if isinstance(entry, StoredRendererConfig):
        return entry
    if not isinstance(entry, Mapping):
        return StoredRendererConfig()

    enabled = entry.get("enabled", entry.get("status"))
    settings = entry.get("settings")
    return StoredRendererConfig(
        enabled=_coerce_bool(enabled),
        weight=_coerce_weight(entry.get("weight")),
        settings=dict(settings) if isinstance(settings, Mapping) else {},
    )


def _coerce_bool(raw: Any) -> bool | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    return bool(raw)


def _coerce_weight(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return None

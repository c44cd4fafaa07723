# src/renderchain/config.py
"""
Read-only loading of stored chain configuration from an INI file.

Example renderchain.ini:

    [renderchain]
    default_record_type = text
    allow_html = false

    [renderer:markdown]
    enabled = true
    weight = 0
    setting.unsafe_html = false

    [renderer:text]
    enabled = true
    weight = 10
    setting.max_chars = 2000

    # only for "data" records; overrides the unscoped section key by key
    [renderer:data:text]
    setting.allow_repr = true
"""
from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .chain import StoredRendererConfig

ENV_VAR = "RENDERCHAIN_INI"
DEFAULT_INI_NAME = "renderchain.ini"
MAIN_SECTION = "renderchain"
RENDERER_PREFIX = "renderer:"
SETTING_PREFIX = "setting."

DEFAULT_RECORD_TYPE = "text"
DEFAULT_VIEW_MODE = "default"


@dataclass(frozen=True, slots=True)
class AppSettings:
    default_record_type: str = DEFAULT_RECORD_TYPE
    allow_html: bool = True
    view_mode: str = DEFAULT_VIEW_MODE
    ini_path: Path | None = None

    def context_options(self) -> dict[str, Any]:
        return {"allow_html": self.allow_html}


def _strip_quotes(s: str) -> str:
    s = s.strip()
    if len(s) >= 2 and ((s[0] == s[-1] == "'") or (s[0] == s[-1] == '"')):
        return s[1:-1].strip()
    return s


def _resolve_ini_path(path: str | Path | None = None) -> Path | None:
    """
    Resolution order:
      1) explicit path argument
      2) env var RENDERCHAIN_INI
      3) ./renderchain.ini (cwd)
      4) None
    """
    candidates: list[Path] = []
    if path is not None:
        candidates.append(Path(path).expanduser())
    env_path = os.environ.get(ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(Path.cwd() / DEFAULT_INI_NAME)

    for p in candidates:
        if p.exists() and p.is_file():
            return p
    return None


def _read_ini(path: str | Path | None) -> tuple[configparser.ConfigParser, Path | None]:
    cfg = configparser.ConfigParser()
    ini_path = _resolve_ini_path(path)
    if ini_path is not None:
        cfg.read(ini_path, encoding="utf-8")
    return cfg, ini_path


def _parse_bool(raw: str | None) -> bool | None:
    if raw is None:
        return None
    v = _strip_quotes(raw).lower()
    if v in ("1", "true", "yes", "on"):
        return True
    if v in ("0", "false", "no", "off"):
        return False
    return None


def _parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    v = _strip_quotes(raw)
    try:
        return int(float(v)) if v else None
    except (ValueError, OverflowError):
        return None


def _coerce_value(raw: str) -> Any:
    """
    Setting values: quoted -> str as-is, none/null -> None, booleans,
    ints, floats; anything else stays a string.
    """
    s = raw.strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        return s[1:-1]

    low = s.lower()
    if low in ("none", "null", ""):
        return None
    if low in ("true", "yes", "on"):
        return True
    if low in ("false", "no", "off"):
        return False
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return float(s)
    except ValueError:
        return s


def load_settings(path: str | Path | None = None) -> AppSettings:
    cfg, ini_path = _read_ini(path)
    if not cfg.has_section(MAIN_SECTION):
        return AppSettings(ini_path=ini_path)

    record_type = _strip_quotes(
        cfg.get(MAIN_SECTION, "default_record_type", fallback=DEFAULT_RECORD_TYPE)
    )
    allow_html = _parse_bool(cfg.get(MAIN_SECTION, "allow_html", fallback=None))
    view_mode = _strip_quotes(cfg.get(MAIN_SECTION, "view_mode", fallback=DEFAULT_VIEW_MODE))

    return AppSettings(
        default_record_type=record_type or DEFAULT_RECORD_TYPE,
        allow_html=True if allow_html is None else allow_html,
        view_mode=view_mode or DEFAULT_VIEW_MODE,
        ini_path=ini_path,
    )


def load_chain_config(
    record_type: str, path: str | Path | None = None
) -> dict[str, StoredRendererConfig]:
    """
    Stored renderer configuration for one record type.

    Read on every call; the file may change between requests.
    """
    cfg, _ = _read_ini(path)
    return parse_chain_config(cfg, record_type)


def parse_chain_config(
    cfg: configparser.ConfigParser, record_type: str
) -> dict[str, StoredRendererConfig]:
    unscoped: dict[str, dict[str, str]] = {}
    scoped: dict[str, dict[str, str]] = {}

    for section in cfg.sections():
        if not section.startswith(RENDERER_PREFIX):
            continue
        parts = section[len(RENDERER_PREFIX):].split(":")
        if len(parts) == 1 and parts[0].strip():
            unscoped[parts[0].strip()] = dict(cfg.items(section))
        elif len(parts) == 2 and parts[0].strip() == record_type and parts[1].strip():
            scoped[parts[1].strip()] = dict(cfg.items(section))

    out: dict[str, StoredRendererConfig] = {}
    for renderer_id in [*unscoped, *(k for k in scoped if k not in unscoped)]:
        raw = {**unscoped.get(renderer_id, {}), **scoped.get(renderer_id, {})}
        out[renderer_id] = _entry_from_section(raw)
    return out


def _entry_from_section(raw: dict[str, str]) -> StoredRendererConfig:
    settings = {
        key[len(SETTING_PREFIX):]: _coerce_value(value)
        for key, value in raw.items()
        if key.startswith(SETTING_PREFIX) and len(key) > len(SETTING_PREFIX)
    }
    return StoredRendererConfig(
        enabled=_parse_bool(raw.get("enabled")),
        weight=_parse_int(raw.get("weight")),
        settings=settings,
    )

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from . import config
from .errors import RenderChainError
from .executor import render_record
from .html import output_html, render_record_page
from .items import Record
from .loader import load_plugin
from .renderers import default_catalog
from .renderers.registry import RendererCatalog
from .summary import summarize_chain

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="renderchain",
        description="renderchain – render multi-value records through a fallback chain",
    )
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("--record-type", default=None, help="Record type (default: from ini)")
        sp.add_argument("--config", default=None, help="Path to renderchain.ini")
        sp.add_argument(
            "--plugin",
            action="append",
            default=[],
            help="Extra renderers: package.module:register (repeatable)",
        )

    render_p = sub.add_parser("render", help="Render a JSON array of items")
    render_p.add_argument("items", help="Path to a JSON file holding a list of items")
    add_common(render_p)
    render_p.add_argument(
        "--preview", action="store_true", help="Include disabled renderers"
    )
    render_p.add_argument("--html", action="store_true", help="Emit an HTML page")

    summary_p = sub.add_parser("summary", help="Describe the active chain")
    add_common(summary_p)

    serve_p = sub.add_parser("serve", help="Serve the preview API")
    serve_p.add_argument(
        "--host", default="127.0.0.1", help="Host to bind (default: 127.0.0.1)"
    )
    serve_p.add_argument(
        "--port", type=int, default=8000, help="Port to bind (default: 8000)"
    )
    serve_p.add_argument("--config", default=None, help="Path to renderchain.ini")
    serve_p.add_argument(
        "--quiet", action="store_true", help="Reduce uvicorn logging noise"
    )

    return p


def _configure_logging(*, verbose: bool, quiet: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _build_catalog(plugins: list[str]) -> RendererCatalog:
    catalog = default_catalog()
    for plugin in plugins:
        load_plugin(plugin, catalog)
    return catalog


def _read_items(path: str) -> list[Any]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of items")
    return data


def _cmd_render(args: argparse.Namespace) -> int:
    settings = config.load_settings(args.config)
    record_type = args.record_type or settings.default_record_type
    catalog = _build_catalog(args.plugin)

    record = Record.from_values(record_type, _read_items(args.items), label=Path(args.items).name)
    result = render_record(
        record,
        config.load_chain_config(record_type, args.config),
        catalog=catalog,
        context=record.context(
            view_mode=settings.view_mode, options=settings.context_options()
        ),
        filter_enabled=not args.preview,
    )

    if args.html:
        print(render_record_page(result, title=record.label or record_type))
    else:
        out = {
            "record_type": record_type,
            "items": [
                {
                    "position": pos,
                    "renderer": result.contributors[pos],
                    "html": output_html(output),
                }
                for pos, output in result.items()
            ],
            "missing": result.missing_positions,
        }
        print(json.dumps(out, indent=2))
    return 0


def _cmd_summary(args: argparse.Namespace) -> int:
    settings = config.load_settings(args.config)
    record_type = args.record_type or settings.default_record_type
    catalog = _build_catalog(args.plugin)
    record = Record.from_values(record_type, [])

    lines = summarize_chain(
        record_type,
        config.load_chain_config(record_type, args.config),
        catalog,
        context=record.context(
            view_mode=settings.view_mode, options=settings.context_options()
        ),
    )
    for i, line in enumerate(lines, start=1):
        print(f"{i}. {line}")
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    if args.config:
        # the app reads configuration per request through the env var
        os.environ[config.ENV_VAR] = str(Path(args.config).expanduser().resolve())

    uvicorn.run(
        "renderchain.app:app",
        host=args.host,
        port=args.port,
        log_level="warning" if args.quiet else "info",
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(verbose=args.verbose, quiet=getattr(args, "quiet", False))

    handlers = {"render": _cmd_render, "summary": _cmd_summary, "serve": _cmd_serve}
    try:
        return handlers[args.cmd](args)
    except (RenderChainError, ValueError, OSError) as e:
        print(f"renderchain: error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))

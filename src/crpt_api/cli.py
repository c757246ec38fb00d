"""CLI entrypoint for crpt-api."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from crpt_api.client import CrptClient
from crpt_api.document import load_document
from crpt_api.errors import CrptAPIError
from crpt_api.gate import WINDOW_UNITS
from crpt_api.log import configure_logging
from crpt_api.settings import Settings


class CLIError(CrptAPIError):
    """User-facing CLI error."""


def _load_settings(args: argparse.Namespace) -> Settings:
    config = str(getattr(args, "config", "") or "").strip()
    settings = Settings.from_runtime(Path(config)) if config else Settings()
    updates: dict[str, Any] = {}
    if getattr(args, "endpoint", ""):
        updates["endpoint"] = args.endpoint
    if getattr(args, "signature", ""):
        updates["signature"] = args.signature
    if getattr(args, "limit", None) is not None:
        updates["request_limit"] = args.limit
    if getattr(args, "window_unit", ""):
        updates["window_unit"] = args.window_unit
    if getattr(args, "timeout", None) is not None:
        updates["timeout_s"] = args.timeout
    if getattr(args, "log_level", ""):
        updates["log_level"] = args.log_level
    if getattr(args, "log_json", False):
        updates["log_json"] = True
    return settings.model_copy(update=updates) if updates else settings


def _cmd_validate(args: argparse.Namespace) -> int:
    failures = 0
    for raw_path in args.documents:
        path = Path(raw_path)
        try:
            load_document(path)
        except (CrptAPIError, OSError) as exc:
            failures += 1
            print(f"{path}: {exc}")
            continue
        print(f"{path}: ok")
    return 1 if failures else 0


def _cmd_submit(args: argparse.Namespace) -> int:
    settings = _load_settings(args)
    configure_logging(settings.log_level, json_output=settings.log_json)
    if not settings.signature.strip():
        raise CLIError("missing signature; pass --signature or set CRPT_API_SIGNATURE")

    paths = [Path(value) for value in args.documents]
    documents = [load_document(path) for path in paths]

    with CrptClient.from_settings(settings) as client:
        futures = [client.submit(document, settings.signature) for document in documents]
        results = [future.result() for future in futures]

    all_ok = True
    for path, result in zip(paths, results, strict=True):
        all_ok = all_ok and result.ok
        row = {"document": str(path), **result.to_dict()}
        print(json.dumps(row, sort_keys=True, ensure_ascii=False))
    return 0 if all_ok else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="crpt-api")
    parser.add_argument(
        "--config",
        default="",
        help="Path to runtime config TOML (default: settings from CRPT_API_* env).",
    )
    parser.add_argument("--log-level", default="", help="Override log level.")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log lines.")
    subparsers = parser.add_subparsers(dest="command")

    validate = subparsers.add_parser("validate", help="Validate document JSON files.")
    validate.add_argument("documents", nargs="+", help="Document JSON file(s).")
    validate.set_defaults(func=_cmd_validate)

    submit = subparsers.add_parser("submit", help="Submit document JSON files.")
    submit.add_argument("documents", nargs="+", help="Document JSON file(s).")
    submit.add_argument("--signature", default="", help="Signature sent with each document.")
    submit.add_argument("--endpoint", default="", help="Override the document endpoint URL.")
    submit.add_argument("--limit", type=int, default=None, help="Max requests per window.")
    submit.add_argument(
        "--window-unit",
        default="",
        choices=["", *WINDOW_UNITS],
        help="Rate-limit window unit.",
    )
    submit.add_argument("--timeout", type=float, default=None, help="Request timeout seconds.")
    submit.set_defaults(func=_cmd_submit)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    try:
        return int(func(args))
    except (CrptAPIError, FileNotFoundError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

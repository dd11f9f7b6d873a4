"""
Command-line interface for the fxns engine.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .ai.registry import build_provider
from .config import load_config
from .errors import FxnsError
from .harness.runner import ToolRunner
from .pipeline.executor import StepExecutor
from .tools.codec import loads_draft
from .tools.graph import publish_issues
from .version import __version__


def build_cli_parser() -> argparse.ArgumentParser:
    cli = argparse.ArgumentParser(prog="fxns", description="fxns tool logic engine")
    cli.add_argument(
        "--version",
        action="version",
        version=f"fxns {__version__} (Python {sys.version.split()[0]})",
    )
    cli.add_argument("--log-level", default="WARNING", help="Logging level (default WARNING)")
    sub = cli.add_subparsers(dest="command", required=True)

    check_cmd = sub.add_parser("check", help="Validate a tool definition file")
    check_cmd.add_argument("file", type=Path, help="Path to a tool definition (.json)")

    run_cmd = sub.add_parser("run", help="Run a tool definition file once")
    run_cmd.add_argument("file", type=Path, help="Path to a tool definition (.json)")
    run_cmd.add_argument("--data", default="{}", help="Form input as a JSON object")

    serve_cmd = sub.add_parser("serve", help="Start the HTTP API")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)
    serve_cmd.add_argument("--dry-run", action="store_true", help="Build the app and exit")
    return cli


def _load_definition(path: Path):
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SystemExit(f"Cannot read {path}: {exc}") from exc
    return loads_draft(text)


def _parse_data(raw: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"--data is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SystemExit("--data must be a JSON object")
    return data


def _print(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str))


def main(argv: Optional[list[str]] = None) -> int:
    cli = build_cli_parser()
    args = cli.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))
    config = load_config()

    if args.command == "check":
        try:
            draft = _load_definition(args.file)
        except FxnsError as exc:
            _print({"ok": False, "issues": exc.to_payload().get("issues", [exc.message])})
            return 1
        issues = publish_issues(
            draft.input_config,
            draft.logic_config,
            draft.output_config,
            max_steps=config.max_steps,
            max_depth=config.formula_max_depth,
            max_length=config.formula_max_length,
        )
        _print({"ok": not issues, "issues": issues})
        return 0 if not issues else 1

    if args.command == "run":
        data = _parse_data(args.data)
        try:
            draft = _load_definition(args.file)
        except FxnsError as exc:
            _print(exc.to_payload())
            return 1
        executor = StepExecutor(config, ai_provider=build_provider(config))
        runner = ToolRunner(executor=executor, config=config)
        outcome = runner.run_definition(
            draft.input_config,
            draft.logic_config,
            draft.output_config,
            data,
            tool_id=draft.id,
            mode="cli",
        )
        if outcome.success and outcome.rendered is not None:
            payload: Dict[str, Any] = {"success": True, "result": outcome.rendered.to_dict()}
        else:
            payload = outcome.error.to_payload() if outcome.error else {"success": False, "error": "Unknown error."}
        payload["steps"] = outcome.step_summaries()
        payload["executionTimeMs"] = outcome.duration_ms
        _print(payload)
        return 0 if outcome.success else 1

    if args.command == "serve":
        from .server import create_app

        app = create_app(config=config)
        if args.dry_run:
            _print({"status": "ready", "host": args.host, "port": args.port})
            return 0
        import uvicorn

        uvicorn.run(app, host=args.host, port=args.port)
        return 0

    cli.error(f"Unknown command {args.command}")
    return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

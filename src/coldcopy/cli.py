"""Command-line entry point for ColdCopy."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from coldcopy.core import (
    AppSettings,
    ColdCopyError,
    ConfigurationError,
    configure_logging,
    load_app_settings,
)
from coldcopy.core.models import ANGLE_KEYS, TONES, GenerationRequest
from coldcopy.export import CrmEntry, build_crm_csv
from coldcopy.intelligence import (
    BatchCoordinator,
    GenerationOrchestrator,
    OpenAIChatExecutor,
)


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="ColdCopy cold email generator")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help=(
            "Path to a .env file containing configuration overrides "
            "(default: ./.env)."
        ),
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("info", help="Show the active configuration.")

    serve = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default=None, help="Override the listening host.")
    serve.add_argument("--port", type=int, default=None, help="Override the port.")

    generate = subparsers.add_parser("generate", help="Generate a single email.")
    generate.add_argument("--offer", required=True, help="What you are selling.")
    generate.add_argument(
        "--target", required=True, help="Free-text description of the target."
    )
    generate.add_argument("--tone", choices=TONES, default="professional")
    generate.add_argument("--angle", choices=ANGLE_KEYS, default=None)

    batch = subparsers.add_parser("batch", help="Generate emails for a JSON file.")
    batch.add_argument(
        "input",
        type=Path,
        help="JSON list of {offer, targetText, tone, selectedAngle?} entries.",
    )
    batch.add_argument(
        "--csv",
        dest="csv_path",
        type=Path,
        default=None,
        help="Write successful results as CRM CSV to this path.",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return an exit status."""
    command = args.command or "info"
    if command == "info":
        _print_info(settings)
        return 0
    if command == "serve":
        _serve(settings, host=args.host, port=args.port)
        return 0
    if command == "generate":
        request = GenerationRequest(
            offer=args.offer,
            tone=args.tone,
            target_text=args.target,
            selected_angle=args.angle,
        )
        return asyncio.run(_generate(settings, request))
    if command == "batch":
        return asyncio.run(_run_batch(settings, args.input, args.csv_path))
    raise ValueError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_app_settings(env_file=args.env_file)
    except ConfigurationError as exc:
        print(exc, file=sys.stderr)
        raise SystemExit(2) from exc
    configure_logging(settings.logging)
    raise SystemExit(execute(args, settings))


def _print_info(settings: AppSettings) -> None:
    print("ColdCopy is configured.")
    print(f"Model: {settings.llm.model}")
    print(f"API base URL: {settings.llm.base_url}")
    print(f"Listening on: {settings.server.host}:{settings.server.port}")
    print(f"Batch concurrency: {settings.batch.max_concurrency}")
    provider = settings.suggestions.url or "not configured (fallback list)"
    print(f"Suggestion provider: {provider}")


def _serve(settings: AppSettings, *, host: str | None, port: int | None) -> None:
    import uvicorn

    from coldcopy.web import create_app

    uvicorn.run(
        create_app(settings),
        host=host or settings.server.host,
        port=port or settings.server.port,
        log_config=None,
    )


async def _generate(settings: AppSettings, request: GenerationRequest) -> int:
    executor = OpenAIChatExecutor(settings.llm)
    try:
        result = await GenerationOrchestrator(executor).generate(request)
    except ColdCopyError as exc:
        print(f"Generation failed: {exc}", file=sys.stderr)
        return 1
    finally:
        await executor.aclose()
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0


def _load_batch_entries(path: Path) -> list[GenerationRequest]:
    raw: Any = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("entries")
    if not isinstance(raw, list) or not raw:
        raise ValueError("Batch file must contain a non-empty list of entries")
    entries = []
    for item in raw:
        entries.append(
            GenerationRequest(
                offer=item["offer"],
                tone=item.get("tone", "professional"),
                target_text=item["targetText"],
                selected_angle=item.get("selectedAngle"),
            )
        )
    return entries


async def _run_batch(settings: AppSettings, path: Path, csv_path: Path | None) -> int:
    try:
        entries = _load_batch_entries(path)
    except (OSError, ValueError, KeyError, TypeError) as exc:
        print(f"Could not read batch file {path}: {exc}", file=sys.stderr)
        return 2

    executor = OpenAIChatExecutor(settings.llm)
    try:
        coordinator = BatchCoordinator(
            GenerationOrchestrator(executor),
            max_concurrency=settings.batch.max_concurrency,
        )
        results = await coordinator.run_batch(entries)
    finally:
        await executor.aclose()

    crm_entries: list[CrmEntry] = []
    for item, entry in zip(results, entries):
        if item.result is not None:
            print(f"[{item.index}] ok   {item.result.email.selected_angle}")
            crm_entries.append(
                CrmEntry(
                    offer=entry.offer,
                    tone=entry.tone,
                    research=item.result.research,
                    email=item.result.email,
                )
            )
        else:
            print(f"[{item.index}] fail {item.error}")

    if csv_path is not None and crm_entries:
        csv_path.write_text(build_crm_csv(crm_entries), encoding="utf-8")
        print(f"Wrote {len(crm_entries)} row(s) to {csv_path}")

    failed = len(results) - len(crm_entries)
    print(f"Processed {len(results)} entr{'y' if len(results) == 1 else 'ies'}, {failed} failed.")
    return 1 if failed else 0


if __name__ == "__main__":
    main()

"""CLI entry point: ``stackscore analyze`` and ``stackscore serve``."""

from __future__ import annotations

# Phase 1: Singleton logging, before any transitive litellm imports
from stackscore.logging_config import setup_logging

setup_logging()

import argparse  # noqa: E402
import asyncio  # noqa: E402
import json  # noqa: E402
import sys  # noqa: E402
from typing import Any  # noqa: E402

from stackscore import __version__  # noqa: E402
from stackscore.config import Settings  # noqa: E402
from stackscore.logging_config import (  # noqa: E402
    cleanup_third_party_handlers,
)

# Phase 2: Clear litellm's duplicate handlers after all imports
cleanup_third_party_handlers()


def main() -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.version:
        print(f"stackscore {__version__}")
        return

    if args.command == "analyze":
        _run_analyze(args)
    elif args.command == "serve":
        _run_serve(args)
    else:
        parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="stackscore",
        description=(
            "Repository analysis: tech-stack detection and"
            " LLM-reviewed code quality scores."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    analyze = sub.add_parser(
        "analyze",
        help="Analyze a GitHub repository",
    )
    analyze.add_argument(
        "repo_url",
        type=str,
        help="Repository URL (https://github.com/owner/name) or owner/name",
    )
    analyze.add_argument(
        "--owner",
        default="cli",
        help="Owner id stored on the record (default: cli)",
    )
    analyze.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print per-stage timings",
    )

    serve = sub.add_parser(
        "serve",
        help="Run the HTTP API",
    )
    serve.add_argument(
        "--host",
        default="127.0.0.1",
        help="Bind address (default: 127.0.0.1)",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port (default: 8000)",
    )
    serve.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (development)",
    )

    return parser


def _run_analyze(args: argparse.Namespace) -> None:
    """Execute the analyze command."""
    from stackscore.errors import AnalysisError

    settings = Settings()
    print(f"Analyzing: {args.repo_url}", file=sys.stderr)

    try:
        record, stages = asyncio.run(
            _analyze_and_load(args.repo_url, args.owner, settings)
        )
    except AnalysisError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.verbose:
        for name, ok, duration_ms, error in stages:
            status = "ok" if ok else "FAILED"
            print(
                f"  [{status}] {name} ({duration_ms:.0f}ms)",
                file=sys.stderr,
            )
            if error:
                print(f"    Error: {error}", file=sys.stderr)

    print(json.dumps(record, indent=2))


async def _analyze_and_load(
    repo_url: str, owner_id: str, settings: Settings
) -> tuple[dict[str, Any], list[tuple[str, bool, float, str | None]]]:
    """Initialize engine, run the pipeline, reload the record."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    from stackscore.config import create_app_engine
    from stackscore.logger import RunLogger
    from stackscore.models.base import Base
    from stackscore.repositories.analysis_repo import (
        SqlAnalysisRepository,
    )
    from stackscore.services.analysis_persistence import (
        AnalysisPersistenceService,
    )
    from stackscore.services.analysis_service import run_analysis

    engine = create_app_engine(settings.database_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        session_factory = async_sessionmaker(
            engine, expire_on_commit=False
        )
        result = await run_analysis(
            repo_url,
            owner_id,
            AnalysisPersistenceService(session_factory),
            settings=settings,
            run_logger=RunLogger(
                log_dir=settings.log_dir, level=settings.log_level
            ),
        )
        async with session_factory() as session:
            record = await SqlAnalysisRepository(session).get_by_id(
                result.analysis_id
            )
            payload = record.to_dict() if record else {}
    finally:
        await engine.dispose()

    stages = [
        (s.name, s.ok, s.duration_ms, s.error) for s in result.stages
    ]
    return payload, stages


def _run_serve(args: argparse.Namespace) -> None:
    """Execute the serve command."""
    import uvicorn

    uvicorn.run(
        "stackscore.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()

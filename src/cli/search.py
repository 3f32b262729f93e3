# =============================================================================
# src/cli/search.py: CLI Search Command
# =============================================================================
#
# Runs one knowledge search from the terminal, bypassing the API server.
# Uses the same cache and provider wiring as the web app, so a query made
# here warms the cache for the API and vice versa (sqlite backend).
#
# Typical usage:
#   python -m src.cli.search "python asyncio gather"
#   python -m src.cli.search "rust lifetimes" --json
#   python -m src.cli.search "docker volumes" --memory-cache
#
# Log lines go to stderr; stdout carries only the report or JSON.
#
# Exit codes:
#   0: results printed
#   1: a provider or the cache failed
#   2: the query was empty
# =============================================================================

"""Standalone CLI for running a knowledge search.

Usage::

    python -m src.cli.search "QUERY"
    python -m src.cli.search "QUERY" --json
    python -m src.cli.search "QUERY" --memory-cache
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

import httpx

from src.utils.errors import InvalidQueryError, UpstreamFailureError
from src.utils.text_normalizer import normalize_query

_EXIT_OK = 0
_EXIT_UPSTREAM = 1
_EXIT_INVALID = 2


async def _run(query: str, json_output: bool, memory_cache: bool) -> int:
    """Build the search stack, run one search, and print the result."""
    # Deferred import: src.main configures logging for the server on import.
    from src.main import (
        _build_cache_provider,
        _build_search_providers,
        build_search_service,
        config,
        settings,
    )
    from src.services.output_formatter import OutputFormatter
    from src.utils.logging import configure_logging

    configure_logging(log_level=settings.log_level, stream=sys.stderr)

    app_settings = settings
    if memory_cache:
        app_settings = settings.model_copy(update={"cache_backend": "memory"})

    async with httpx.AsyncClient(
        timeout=httpx.Timeout(app_settings.http_timeout_seconds),
        follow_redirects=True,
    ) as http_client:
        cache = _build_cache_provider(app_settings)
        providers = _build_search_providers(
            app_settings,
            http_client,
            config.get("providers", {}).get("enabled"),
        )
        service = build_search_service(app_settings, cache, providers)

        try:
            await cache.initialize()
            result = await service.search(query)
        except InvalidQueryError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            return _EXIT_INVALID
        except UpstreamFailureError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            return _EXIT_UPSTREAM
        finally:
            await cache.close()

    if json_output:
        payload = {
            "query": normalize_query(query),
            "results": result.model_dump(mode="json")["results"],
        }
        print(json.dumps(payload, indent=2))
    else:
        print(OutputFormatter().format_text_report(result, query))
    return _EXIT_OK


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.search",
        description="Search Stack Overflow and Reddit with one query.",
    )
    parser.add_argument(
        "query",
        type=str,
        help="Search text. Case and surrounding whitespace are ignored.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output results as JSON instead of a text report.",
    )
    parser.add_argument(
        "--memory-cache",
        action="store_true",
        help="Use a process-local cache instead of the SQLite database.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point; exits with the search outcome's exit code."""
    args = _build_parser().parse_args(argv)
    exit_code = asyncio.run(_run(args.query, args.json_output, args.memory_cache))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Command-line interface for idscope.

Commands:
- search: Run an identity search across every configured platform
- platforms: List the platform registry
- validate: Validate configuration
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from idscope.core.config import get_config
from idscope.core.data_models import AgeRange, SearchQuery
from idscope.core.error_recovery import QueryValidationError
from idscope.core.logging_setup import configure_comprehensive_logging
from idscope.core.orchestrator import Orchestrator, SearchReport
from idscope.core.platforms import PlatformRegistry

ENGINE_FAILURE_MESSAGE = "OSINT Engine Failure"

# Global audit and performance loggers
audit_logger = None
performance_logger = None


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="idscope",
        description="idscope identity discovery CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  idscope search "Jane Doe" --location Berlin
  idscope search octocat --platform GitHub --platform GitLab --json
  idscope platforms
  idscope validate --strict
        """,
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=Path("logs"),
        help="Directory for log files (default: logs)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Use JSON structured logging format",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML or TOML config file",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Search for an identity")
    search_parser.add_argument("query", help="Name or handle to search for")
    search_parser.add_argument("--location", help="Location to match against profiles")
    search_parser.add_argument(
        "--platform",
        dest="platforms",
        action="append",
        metavar="NAME",
        help="Restrict to a platform (repeatable)",
    )
    search_parser.add_argument("--min-age", type=int, help="Lower bound of the age range")
    search_parser.add_argument("--max-age", type=int, help="Upper bound of the age range")
    search_parser.add_argument("--gender", help="Gender metadata echoed with the query")
    search_parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Overall search budget in seconds (default: from config)",
    )
    search_parser.add_argument("--json", action="store_true", help="Output as JSON")

    platforms_parser = subparsers.add_parser("platforms", help="List supported platforms")
    platforms_parser.add_argument("--json", action="store_true", help="Output as JSON")

    validate_parser = subparsers.add_parser("validate", help="Validate configuration")
    validate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with error code if validation fails",
    )

    return parser.parse_args(argv)


def build_query(args: argparse.Namespace) -> SearchQuery:
    """Build a :class:`SearchQuery` from parsed ``search`` arguments."""
    age_range = None
    if args.min_age is not None or args.max_age is not None:
        age_range = AgeRange(min=args.min_age, max=args.max_age)
    return SearchQuery.build(
        args.query,
        location=args.location,
        age_range=age_range,
        gender=args.gender,
        platforms=args.platforms,
    )


def print_report(report: SearchReport) -> None:
    """Print a human-readable summary of a search."""
    print(f"Identity search results for '{report.query.raw_text}':")
    if report.query.location:
        print(f"Location: {report.query.location}")
    print(f"Platforms searched: {report.platforms_searched}")
    print()

    if not report.results:
        print("No matching profiles found.")
    for result in report.results:
        print(f"[{result.confidence:>3}] {result.platform:<15} {result.url}")
        if result.match_reasons:
            print(f"      {', '.join(result.match_reasons)}")
        if result.scraped_bio:
            print(f"      {result.scraped_bio[:120]}")

    if report.failed_tasks:
        print()
        print(f"{len(report.failed_tasks)} probe task(s) failed or timed out.")


async def main_async(args: argparse.Namespace) -> int:
    """Main async entry point.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    global audit_logger, performance_logger

    log_level = getattr(logging, args.log_level)
    audit_logger, performance_logger = configure_comprehensive_logging(
        log_dir=args.log_dir,
        level=log_level,
        use_json=args.json_logs,
        console_output=True,
    )

    logger = logging.getLogger(__name__)
    logger.info(f"idscope CLI started with command: {args.command}")

    if args.command == "platforms":
        return handle_platforms(args)
    elif args.command == "validate":
        return handle_validate(args)

    return await handle_search(args)


async def handle_search(args: argparse.Namespace) -> int:
    """Handle the search command."""
    logger = logging.getLogger(__name__)
    try:
        query = build_query(args)
    except QueryValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    orchestrator = Orchestrator(get_config(args.config), performance_logger=performance_logger)
    try:
        report = await orchestrator.search(query, deadline=args.deadline)
    except QueryValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except Exception:
        logger.exception(f"Search failed for '{query.raw_text}'")
        audit_logger.log_search("cli", query.raw_text, location=query.location, success=False)
        print(f"Error: {ENGINE_FAILURE_MESSAGE}", file=sys.stderr)
        return 1

    audit_logger.log_search(
        "cli",
        query.raw_text,
        location=query.location,
        platforms=report.platforms_searched,
        results_count=len(report.results),
        failed_tasks=len(report.failed_tasks),
    )

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print_report(report)

    logger.info(f"idscope CLI completed search for '{query.raw_text}'")
    return 0


def handle_platforms(args: argparse.Namespace) -> int:
    """Handle the platforms command."""
    config = get_config(args.config)
    registry = PlatformRegistry.from_config(config.get_section("platforms"))

    if args.json:
        print(json.dumps([platform.to_dict() for platform in registry], indent=2))
    else:
        print(f"{len(registry)} platforms")
        print("=" * 40)
        for platform in registry:
            print(f"{platform.name:<15} {platform.category.value:<13} {platform.url_template}")

    return 0


def handle_validate(args: argparse.Namespace) -> int:
    """Handle the validate command."""
    config = get_config(args.config)

    if args.strict:
        try:
            result = config.validate_and_raise()
        except ValueError as e:
            print(e)
            return 1
    else:
        result = config.validate()

    print(result)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        exit_code = asyncio.run(main_async(args))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nAborted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()

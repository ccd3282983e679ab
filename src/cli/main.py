"""docshift CLI entry points.
This module exposes the transform command for JSON and CSV files.
It maps argparse options onto validated settings and transform calls.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from core.config import TransformSettings
from core.constants import DEFAULT_COUCHDB_URL
from core.errors import DocshiftError, DocshiftValidationError
from core.logging_config import configure_logging, get_logger
from core.types import TransformRequest
from transforms.registry import TRANSFORMATION_SUMMARIES, run_transformation

_LOGGER = get_logger(__name__)

_LOG_LEVELS = ("debug", "info", "warning", "error")


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="docshift",
        usage="%(prog)s TRANSFORMATION [OPTIONS] SOURCE TARGET",
        description="Performs transformations on JSON files",
        epilog=_transformations_help(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "transformation",
        nargs="?",
        help="The operation to perform on SOURCE",
    )
    parser.add_argument("source", nargs="?", help="The source file to use as input")
    parser.add_argument("target", nargs="?", help="The filename for saving the output to")
    parser.add_argument(
        "-i",
        "--indent",
        help='Number of spaces to indent output with, or "tabs". Not indented by default',
    )
    parser.add_argument(
        "-u",
        "--url",
        default=DEFAULT_COUCHDB_URL,
        help=f"The CouchDB instance to fetch UUIDs from (default {DEFAULT_COUCHDB_URL})",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=_LOG_LEVELS,
        help="Minimum level of emitted log events",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the docshift CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code: 0 on success, 1 on failure, 2 on invalid usage.
    """
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)
    configure_logging(args.log_level)
    request = TransformRequest(
        transformation=args.transformation or "",
        source_path=args.source or "",
        target_path=args.target or "",
    )
    try:
        settings = TransformSettings.from_env().with_options(args.indent, args.url)
        result = run_transformation(request, settings)
    except DocshiftValidationError as error:
        _LOGGER.error("invalid_usage", error=str(error))
        parser.print_usage(sys.stderr)
        return 2
    except DocshiftError as error:
        _LOGGER.error(
            "transform_aborted",
            transformation=request.transformation,
            error=str(error),
        )
        return 1
    print(result.target_path)
    return 0


def _transformations_help() -> str:
    """Render the transformation list shown after the options."""
    width = max(len(name) for name in TRANSFORMATION_SUMMARIES)
    lines = ["Transformations:"]
    for name, summary in TRANSFORMATION_SUMMARIES.items():
        lines.append(f"  {name.ljust(width)}  {summary}")
    return "\n".join(lines)

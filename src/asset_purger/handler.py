"""Lambda handler and command-line entry point for asset purging."""

import argparse
import json
import os
import signal
import sys
import threading
from typing import Any, Dict, List, Optional

from shared.config import DEFAULT_SETTINGS_FILES, load_config
from shared.errors import (
    AssetPurgeError,
    ConfigurationError,
    ConnectionEstablishmentError,
    EmptyInputError,
    IdentifierSourceError,
)
from shared.logger import StructuredLogger

from asset_purger.coordinator import run_purge
from asset_purger.identifiers import DEFAULT_IDENTIFIER_FILE, clean_identifiers, read_identifiers
from asset_purger.report import CollectingReportSink, ConsoleReportSink, LoggingReportSink

EXIT_OK = 0
EXIT_PROBLEMS = 1
EXIT_PRECONDITION = 2
EXIT_EMPTY_INPUT = 3
EXIT_CANCELLED = 130


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Purge the identifiers named in the event.

    Expected event:
    {
        "identifiers": ["abc123", "def456", ...]
    }

    Settings come from the function's environment variables.
    """
    request_id = getattr(context, "request_id", None) or getattr(context, "aws_request_id", None)
    try:
        StructuredLogger.info("Asset purger lambda invoked", request_id=request_id)

        config = load_config(settings_files=())
        identifiers = clean_identifiers(_event_identifiers(event))

        collector = CollectingReportSink()
        summary = run_purge(config, identifiers, sinks=[LoggingReportSink(), collector])

        return {
            "statusCode": 207 if summary.has_problems else 200,
            "body": json.dumps(
                {
                    "summary": summary.to_dict(),
                    "outcomes": [outcome.to_dict() for outcome in collector.outcomes],
                }
            ),
        }

    except AssetPurgeError as e:
        StructuredLogger.error(
            "Asset purge precondition failed",
            exception=e,
            request_id=request_id,
        )
        return {
            "statusCode": 400,
            "body": json.dumps({"error": str(e), "error_type": type(e).__name__}),
        }
    except Exception as e:
        StructuredLogger.error(
            "Unexpected error in asset purger",
            exception=e,
            request_id=request_id,
        )
        return {
            "statusCode": 500,
            "body": json.dumps({"error": "Internal server error"}),
        }


def _event_identifiers(event: Dict[str, Any]) -> List[str]:
    raw = event.get("identifiers", [])
    # A bare string would otherwise be split into characters
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ConfigurationError("Event field 'identifiers' must be a list of strings")
    return raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asset-purger",
        description="Delete retired assets from S3 and invalidate their CloudFront copies",
    )
    parser.add_argument("--file", default=DEFAULT_IDENTIFIER_FILE, help="Identifier list, one per line")
    parser.add_argument(
        "--settings",
        action="append",
        help="JSON settings file (repeatable, later files win; default: appsettings.json, appsettings.local.json)",
    )
    parser.add_argument("--workers", type=int, help="Identifiers processed concurrently")
    parser.add_argument(
        "--dry-run-invalidation",
        action="store_true",
        help="Print the CloudFront invalidation command instead of calling the API",
    )
    parser.add_argument(
        "--no-edge-check",
        action="store_true",
        help="Invalidate every path without probing the edge first",
    )
    parser.add_argument("--log-level", default="WARNING", help="Structured log level on stderr")
    return parser


def _install_signal_handlers(cancel_event: threading.Event) -> Dict[int, Any]:
    def _cancel(signum, frame):
        StructuredLogger.warning("Signal received, finishing in-flight work", signal=signum)
        cancel_event.set()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _cancel)
    return previous


def main(argv: Optional[List[str]] = None) -> int:
    """Run a purge from the command line and return the process exit code."""
    args = build_parser().parse_args(argv)
    StructuredLogger.configure(args.log_level)

    overrides = {}
    if args.workers is not None:
        overrides["PURGE_WORKERS"] = str(args.workers)
    if args.dry_run_invalidation:
        overrides["INVALIDATION_DRY_RUN"] = "true"
    if args.no_edge_check:
        overrides["EDGE_CHECK_ENABLED"] = "false"

    cancel_event = threading.Event()
    previous_handlers = {}
    if threading.current_thread() is threading.main_thread():
        previous_handlers = _install_signal_handlers(cancel_event)

    try:
        config = load_config(
            env={**os.environ, **overrides},
            settings_files=tuple(args.settings) if args.settings else DEFAULT_SETTINGS_FILES,
        )
        config.validate()
        identifiers = read_identifiers(args.file)
        summary = run_purge(
            config,
            identifiers,
            sinks=[ConsoleReportSink(), LoggingReportSink()],
            cancel_event=cancel_event,
        )
    except EmptyInputError:
        print(f"No lines found in {args.file}", file=sys.stderr)
        return EXIT_EMPTY_INPUT
    except (ConfigurationError, ConnectionEstablishmentError, IdentifierSourceError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_PRECONDITION
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)

    if summary.cancelled:
        return EXIT_CANCELLED
    return EXIT_PROBLEMS if summary.has_problems else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

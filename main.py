"""replay-logs: rebuild a reference client's range requests from nginx captures."""

import json
import logging
import sys
from argparse import ArgumentParser

from replay_logs.cache import CacheFormatError, load_request_file
from replay_logs.compare import compare_requests
from replay_logs.config import ConfigError, load_config, load_yaml_config
from replay_logs.formatter import format_text, get_formatter
from replay_logs.models import request_to_dict
from replay_logs.parser import LogParseError
from replay_logs.service import (
    CorruptCaptureError,
    get_latest_log_version,
    get_saved_request_logs,
)
from replay_logs.stats import compute_stats, format_stats_json, format_stats_text

logger = logging.getLogger("replay_logs")


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="replay-logs",
        description="Rebuild the range requests a reference client made from saved nginx captures.",
    )
    parser.add_argument(
        "product",
        help="Product name; captures are read from <log-dir>/<product>/",
    )
    parser.add_argument(
        "--log-dir",
        help="Root folder holding per-product captures (default: $REPLAY_LOG_DIR or ./request_logs)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file with log dialect overrides",
    )
    parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Show statistics instead of requests",
    )
    parser.add_argument(
        "--compare",
        metavar="FILE",
        help="Diff against another client's requests (JSON list); exit 1 on differences",
    )
    parser.add_argument(
        "--latest-version",
        action="store_true",
        help="Print the newest capture version for the product and exit",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def print_comparison(result, output_format: str):
    if output_format == "json":
        print(json.dumps({
            "is_match": result.is_match,
            "expected_count": result.expected_count,
            "actual_count": result.actual_count,
            "expected_bytes": result.expected_bytes,
            "actual_bytes": result.actual_bytes,
            "misses": [request_to_dict(r) for r in result.misses],
            "unnecessary": [request_to_dict(r) for r in result.unnecessary],
        }, indent=2))
        return

    print(f"Expected requests: {result.expected_count} ({result.expected_bytes} ranged bytes)")
    print(f"Actual requests:   {result.actual_count} ({result.actual_bytes} ranged bytes)")
    print(f"Misses: {len(result.misses)}")
    for request in result.misses:
        print(f"  - {format_text(request)}")
    print(f"Unnecessary: {len(result.unnecessary)}")
    for request in result.unnecessary:
        print(f"  + {format_text(request)}")


def run(args) -> int:
    """Execute the selected command and return the process exit status."""
    yaml_data = load_yaml_config(args.config)
    config = load_config(args, yaml_data)
    logger.debug("Config: log_base_path=%s, use_cache=%s", config.log_base_path, config.use_cache)

    if args.latest_version:
        print(get_latest_log_version(config.log_base_path, args.product))
        return 0

    requests = get_saved_request_logs(
        config.log_base_path,
        args.product,
        dialect=config.dialect,
        use_cache=config.use_cache,
    )

    if args.compare:
        result = compare_requests(requests, load_request_file(args.compare))
        print_comparison(result, args.output)
        return 0 if result.is_match else 1

    if args.stats:
        stats = compute_stats(requests)
        if args.output == "json":
            print(format_stats_json(stats))
        else:
            print(format_stats_text(stats))
        return 0

    formatter = get_formatter(args.output)
    for request in requests:
        print(formatter(request))
    return 0


def main():
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [REPLAY] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        status = run(args)
    except (FileNotFoundError, LogParseError, CacheFormatError,
            CorruptCaptureError, ConfigError) as e:
        logger.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        status = 1
    sys.exit(status)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
    except BrokenPipeError:
        sys.exit(0)

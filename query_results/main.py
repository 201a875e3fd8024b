"""
Query Results - Command-Line Entry Point

Normalizes a raw driver result read as JSON and prints the outcome as JSON.

Usage:
    python -m query_results.main --query-type TYPE [OPTIONS]

Options:
    --query-type TEXT    select, insert, update, delete, sum, avg, min or max
    --input PATH         File holding the raw result JSON (default: stdin)
    --meta JSON          Opaque metadata passed through to the output
    --config PATH        Parser configuration file (default: $QUERY_RESULTS_CONFIG
                         or config/parser.yml)
    --verbose            Enable debug logging
    --help               Show this message and exit

Examples:
    # Normalize an insert result:
    echo '{"rows": [{"id": 7}]}' | python -m query_results.main --query-type insert

    # Normalize an aggregate read from a file, passing metadata through:
    python -m query_results.main --query-type sum --input result.json --meta '{"request": 1}'

Exit Codes:
    0: Success
    1: The raw result could not be parsed (error printed as JSON)
    2: Fatal error (unreadable input, invalid JSON, bad configuration)
"""

import argparse
import json
import logging
import math
import os
import sys
from typing import Any, Optional

from dotenv import load_dotenv

from .config_loader import load_parser_config
from .parse import parse_native_query_result

# Load environment variables
load_dotenv()

# stdout carries the JSON outcome, so logs go to stderr
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stderr)
    ]
)

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description='Normalize a raw database driver result',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument(
        '--query-type',
        type=str,
        required=True,
        help='Query operation the raw result came from (e.g., "insert")',
        dest='query_type'
    )

    parser.add_argument(
        '--input',
        type=str,
        help='Path to a JSON file holding the raw result (default: stdin)',
        default=None
    )

    parser.add_argument(
        '--meta',
        type=str,
        help='JSON metadata passed through unchanged',
        default=None
    )

    parser.add_argument(
        '--config',
        type=str,
        help='Path to parser configuration YAML',
        default=None
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    return parser.parse_args(argv)


def _json_safe(value: Any) -> Any:
    """Replace NaN and infinity with None so the output stays valid JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return None

    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}

    if isinstance(value, list):
        return [_json_safe(item) for item in value]

    return value


def _read_raw_result(input_path: Optional[str]) -> Any:
    if input_path is None:
        return json.load(sys.stdin)

    with open(input_path, encoding='utf-8') as f:
        return json.load(f)


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the command line.

    Returns:
        Exit code (0 = success, 1 = parse failure, 2 = fatal error)
    """
    args = parse_args(argv)

    # Set logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Debug logging enabled")

    config_path = args.config or os.getenv('QUERY_RESULTS_CONFIG')

    try:
        config = load_parser_config(config_path)
        raw_result = _read_raw_result(args.input)
        meta = json.loads(args.meta) if args.meta is not None else None

    except (OSError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        logger.error(
            "Failed to load input",
            extra={'error': str(e), 'error_type': type(e).__name__}
        )
        return 2  # Fatal error

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130  # Standard Unix exit code for SIGINT

    outcome = parse_native_query_result(args.query_type, raw_result, meta=meta, config=config)

    print(json.dumps(_json_safe(outcome.to_dict()), allow_nan=False))

    if not outcome.ok:
        logger.warning(f"Could not parse {args.query_type} result: {outcome.error}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())

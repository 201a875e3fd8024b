"""Query Results Package.

Normalizes the raw result returned by a database driver into a single
shape keyed by the logical query operation:
- select: the row records themselves
- insert: the generated identifiers
- update/delete: the affected row count
- sum/avg/min/max: the aggregate value as a number
"""

from .parse import (
    MalformedResultError,
    NonNumericAggregateError,
    ParsedResult,
    ParseFailure,
    ResultParseError,
    UnsupportedQueryTypeError,
    parse_native_query_result,
    parse_or_raise,
)
from .query_types import QueryType

__version__ = "0.1.0"

__all__ = [
    "MalformedResultError",
    "NonNumericAggregateError",
    "ParsedResult",
    "ParseFailure",
    "QueryType",
    "ResultParseError",
    "UnsupportedQueryTypeError",
    "parse_native_query_result",
    "parse_or_raise",
]

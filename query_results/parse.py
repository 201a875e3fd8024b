"""
Native Query Result Parsing

This module normalizes the raw result a database driver sends back after a
query into a shape keyed by the logical query operation. Downstream code
reads the normalized shape without knowing which driver ran the query.

Normalized shapes:
- select: the row records themselves
- insert: {'inserted': <id> | [<id>, ...]}
- update: {'numRecordsUpdated': <count>}
- delete: {'numRecordsDeleted': <count>}
- sum/avg/min/max: {<kind>: <number>}

Parsing never raises: the outcome is either a ParsedResult or a ParseFailure
carrying a typed error. Callers that prefer exceptions use parse_or_raise()
or ParseFailure.unwrap().
"""

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Union

from .config_loader import ParserConfig
from .dehydrate import dehydrate
from .query_types import QueryType

logger = logging.getLogger(__name__)


class ResultParseError(Exception):
    """Base class for errors raised while normalizing a raw driver result."""

    kind = 'result_parse_error'


class UnsupportedQueryTypeError(ResultParseError):
    """Raised when the query type tag is not one of the recognized kinds."""

    kind = 'unsupported_query_type'

    def __init__(self, query_type: Any):
        self.query_type = query_type
        super().__init__(f"Unsupported query type: {query_type!r}")


class MalformedResultError(ResultParseError):
    """Raised when the raw result does not have the shape the query type expects."""

    kind = 'malformed_result'


class NonNumericAggregateError(ResultParseError):
    """Raised when an aggregate value cannot be read as a number."""

    kind = 'non_numeric_aggregate'

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Aggregate '{field}' is not numeric: {value!r}")


@dataclass(frozen=True)
class ParsedResult:
    """Successfully normalized result, with the caller's meta passed through."""

    result: Any
    meta: Any = None

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> 'ParsedResult':
        return self

    def to_dict(self) -> dict[str, Any]:
        return {'result': self.result, 'meta': self.meta}


@dataclass(frozen=True)
class ParseFailure:
    """Raw result that could not be normalized, with the caller's meta passed through."""

    error: ResultParseError
    meta: Any = None

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> ParsedResult:
        """Raise the carried error."""
        raise self.error

    def to_dict(self) -> dict[str, Any]:
        return {
            'error': {'kind': self.error.kind, 'message': str(self.error)},
            'meta': self.meta,
        }


ParseOutcome = Union[ParsedResult, ParseFailure]


def parse_native_query_result(
    query_type: Union[QueryType, str],
    native_query_result: Any,
    meta: Any = None,
    config: Optional[ParserConfig] = None,
) -> ParseOutcome:
    """
    Normalize a raw driver result for the given query type.

    The raw result is a mapping shaped like a driver result object:
    'rows' holds the returned row records (select, insert and aggregates),
    'rowCount' (or 'row_count') holds the affected row count (update, delete).

    Args:
        query_type: One of select, insert, update, delete, sum, avg, min, max
        native_query_result: Raw result from the driver
        meta: Opaque value returned untouched in the outcome
        config: Parser settings. Defaults to ParserConfig()

    Returns:
        ParsedResult on success, ParseFailure carrying a ResultParseError otherwise.
        In both cases `meta` is the very object that was passed in.

    Examples:
        >>> parse_native_query_result('insert', {'rows': [{'id': 7, 'name': 'x'}]}).result
        {'inserted': 7}
        >>> parse_native_query_result('sum', {'rows': [{'sum': '42.5'}]}).result
        {'sum': 42.5}
    """
    if config is None:
        config = ParserConfig()

    resolved = QueryType.from_value(query_type)
    if resolved is None:
        error = UnsupportedQueryTypeError(query_type)
        logger.warning("Cannot parse result for unsupported query type", extra={'query_type': query_type})
        return ParseFailure(error=error, meta=meta)

    try:
        raw = _dehydrate_input(native_query_result) if config.dehydrate_input else native_query_result
        result = _parse_for_type(resolved, raw, config)

    except ResultParseError as e:
        logger.warning(
            "Failed to parse native query result",
            extra={
                'query_type': resolved.value,
                'error': str(e),
                'error_kind': e.kind,
            }
        )
        return ParseFailure(error=e, meta=meta)

    except Exception as e:
        # Anything else comes from reading an unexpected structure
        logger.error(
            "Unexpected error while parsing native query result",
            extra={
                'query_type': resolved.value,
                'error': str(e),
                'error_type': type(e).__name__,
            }
        )
        error = MalformedResultError(f"Unexpected {type(e).__name__} while parsing {resolved.value} result: {e}")
        error.__cause__ = e
        return ParseFailure(error=error, meta=meta)

    logger.debug("Parsed native query result", extra={'query_type': resolved.value})
    return ParsedResult(result=result, meta=meta)


def parse_or_raise(
    query_type: Union[QueryType, str],
    native_query_result: Any,
    meta: Any = None,
    config: Optional[ParserConfig] = None,
) -> ParsedResult:
    """
    Normalize a raw driver result, raising on failure.

    Raises:
        ResultParseError: UnsupportedQueryTypeError, MalformedResultError or
            NonNumericAggregateError
    """
    return parse_native_query_result(query_type, native_query_result, meta, config).unwrap()


def _dehydrate_input(native_query_result: Any) -> Any:
    try:
        return dehydrate(native_query_result)
    except ValueError as e:
        raise MalformedResultError(f"Raw result cannot be made JSON-representable: {e}") from e


def _parse_for_type(query_type: QueryType, raw: Any, config: ParserConfig) -> Any:
    if not isinstance(raw, Mapping):
        raise MalformedResultError(f"Raw result must be a mapping, got {type(raw).__name__}")

    if query_type is QueryType.SELECT:
        return _get_rows(raw)

    if query_type is QueryType.INSERT:
        return {'inserted': _extract_inserted(_get_rows(raw), config.insert_id_column)}

    if query_type is QueryType.UPDATE:
        return {'numRecordsUpdated': _get_row_count(raw)}

    if query_type is QueryType.DELETE:
        return {'numRecordsDeleted': _get_row_count(raw)}

    if query_type.is_aggregate:
        field = query_type.value
        return {field: _extract_aggregate(_get_rows(raw), field, config)}

    raise UnsupportedQueryTypeError(query_type)


def _get_rows(raw: Mapping[str, Any]) -> Sequence[Mapping[str, Any]]:
    """Return the row records of a raw result, checking each is a mapping."""
    if 'rows' not in raw:
        raise MalformedResultError("Raw result has no 'rows'")

    rows = raw['rows']
    if isinstance(rows, (str, bytes)) or not isinstance(rows, Sequence):
        raise MalformedResultError(f"'rows' must be a sequence of row records, got {type(rows).__name__}")

    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise MalformedResultError(f"Row {index} is not a record: {type(row).__name__}")

    return rows


def _get_row_count(raw: Mapping[str, Any]) -> int:
    if 'rowCount' in raw:
        count = raw['rowCount']
    elif 'row_count' in raw:
        count = raw['row_count']
    else:
        raise MalformedResultError("Raw result has no 'rowCount'")

    if isinstance(count, bool) or not isinstance(count, int):
        raise MalformedResultError(f"'rowCount' must be an integer, got {count!r}")

    if count < 0:
        raise MalformedResultError(f"'rowCount' must not be negative, got {count}")

    return count


def _extract_inserted(rows: Sequence[Mapping[str, Any]], id_column: Optional[str]) -> Any:
    """
    Extract the generated identifiers from insert rows.

    Insert queries are expected to run with something like `RETURNING "id"`.
    Without a configured id column the first field of each row is taken, so
    the identifier must come first in the returning clause.

    Returns:
        [] for no rows, the bare identifier for one row, a list otherwise
    """
    if not rows:
        return []

    values = []
    for index, row in enumerate(rows):
        if id_column is not None:
            if id_column not in row:
                raise MalformedResultError(f"Inserted row {index} has no '{id_column}' column")
            values.append(row[id_column])
            continue

        if not row:
            raise MalformedResultError(f"Inserted row {index} has no fields")
        values.append(next(iter(row.values())))

    if len(values) == 1:
        return values[0]

    return values


def _extract_aggregate(rows: Sequence[Mapping[str, Any]], field: str, config: ParserConfig) -> Any:
    if not rows:
        raise MalformedResultError(f"Aggregate '{field}' result has no rows")

    if len(rows) > 1:
        logger.warning(
            "Aggregate result has more than one row, using the first",
            extra={'field': field, 'row_count': len(rows)}
        )

    row = rows[0]
    if field not in row:
        raise MalformedResultError(f"Aggregate row has no '{field}' field")

    return _coerce_number(field, row[field], config)


def _coerce_number(field: str, value: Any, config: ParserConfig) -> Any:
    """
    Coerce an aggregate value to a number.

    Drivers commonly send NUMERIC aggregates back as strings or Decimals.
    Integral strings become int, other numeric strings become float.
    NaN and infinity count as non-numeric.
    """
    if value is None:
        return 0 if config.null_aggregate_as_zero else None

    if isinstance(value, bool):
        return _non_numeric(field, value, config)

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        if not math.isfinite(value):
            return _non_numeric(field, value, config)
        return value

    if isinstance(value, Decimal):
        value = str(value)

    if isinstance(value, str):
        number = _parse_numeric_string(value)
        if number is not None:
            return number

    return _non_numeric(field, value, config)


def _parse_numeric_string(value: str) -> Optional[Union[int, float]]:
    text = value.strip()
    if not text or '_' in text:
        return None

    try:
        return int(text)
    except ValueError:
        pass

    try:
        number = float(text)
    except ValueError:
        return None

    # NaN and infinity have no JSON form
    if not math.isfinite(number):
        return None

    return number


def _non_numeric(field: str, value: Any, config: ParserConfig) -> float:
    if config.strict_aggregates:
        raise NonNumericAggregateError(field, value)

    logger.warning(
        f"Aggregate '{field}' is not numeric, using NaN",
        extra={'value': value, 'type': type(value).__name__}
    )
    return math.nan


__all__ = [
    "MalformedResultError",
    "NonNumericAggregateError",
    "ParseFailure",
    "ParseOutcome",
    "ParsedResult",
    "ResultParseError",
    "UnsupportedQueryTypeError",
    "parse_native_query_result",
    "parse_or_raise",
]

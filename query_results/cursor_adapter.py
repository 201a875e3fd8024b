"""
psycopg2 Cursor Adapter

Builds the raw result mapping the parser understands from a psycopg2 cursor
that has already executed a statement. Executing the statement and managing
the connection stay with the caller.

Example:
    with conn.cursor() as cur:
        cur.execute('INSERT INTO widgets (name) VALUES (%s) RETURNING id', ('bolt',))
        report = parse_native_query_result('insert', native_result_from_cursor(cur))
"""

import logging
from collections.abc import Mapping
from typing import Any

import psycopg2
import psycopg2.extensions

from .parse import MalformedResultError

logger = logging.getLogger(__name__)


def native_result_from_cursor(cursor: psycopg2.extensions.cursor) -> dict[str, Any]:
    """
    Read rows and row count from an executed cursor.

    Works with the default tuple cursor as well as dict-like cursor factories
    such as RealDictCursor; rows are always returned as dicts keyed by column name.

    Args:
        cursor: psycopg2 cursor after execute()

    Returns:
        {'rows': [dict, ...], 'rowCount': int}. 'rows' is empty for statements
        that return no result set (e.g. UPDATE without RETURNING).

    Raises:
        MalformedResultError: If the cursor's result set cannot be fetched
    """
    rows: list[dict[str, Any]] = []

    if cursor.description is not None:
        columns = [column[0] for column in cursor.description]
        try:
            fetched = cursor.fetchall()
        except psycopg2.ProgrammingError as e:
            logger.error(
                "Failed to fetch rows from cursor",
                extra={'error': str(e), 'pgcode': e.pgcode}
            )
            raise MalformedResultError(f"Failed to fetch rows from cursor: {e}") from e

        rows = [_row_to_dict(row, columns) for row in fetched]

    logger.debug(
        "Read native result from cursor",
        extra={'row_count': cursor.rowcount, 'fetched': len(rows)}
    )

    return {'rows': rows, 'rowCount': cursor.rowcount}


def _row_to_dict(row: Any, columns: list[str]) -> dict[str, Any]:
    if isinstance(row, Mapping):
        return dict(row)

    return dict(zip(columns, row))


__all__ = ["native_result_from_cursor"]

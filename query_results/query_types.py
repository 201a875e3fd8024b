"""Operation kinds a raw driver result can be normalized for."""

from enum import Enum
from typing import Any, Optional


class QueryType(str, Enum):
    """Logical query operation driving which normalization branch applies."""

    SELECT = 'select'
    INSERT = 'insert'
    UPDATE = 'update'
    DELETE = 'delete'
    SUM = 'sum'
    AVG = 'avg'
    MIN = 'min'
    MAX = 'max'

    @property
    def is_aggregate(self) -> bool:
        return self in AGGREGATE_TYPES

    @classmethod
    def from_value(cls, value: Any) -> Optional['QueryType']:
        """
        Resolve a query type tag.

        Tags are matched case-insensitively after stripping whitespace, and
        'average' is accepted for avg.

        Args:
            value: QueryType member or string tag

        Returns:
            Matching QueryType, or None if the tag is not recognized
        """
        if isinstance(value, cls):
            return value

        if not isinstance(value, str):
            return None

        tag = value.strip().lower()
        tag = _ALIASES.get(tag, tag)

        try:
            return cls(tag)
        except ValueError:
            return None


AGGREGATE_TYPES = frozenset({QueryType.SUM, QueryType.AVG, QueryType.MIN, QueryType.MAX})

_ALIASES = {
    'average': 'avg',
}


__all__ = ["AGGREGATE_TYPES", "QueryType"]

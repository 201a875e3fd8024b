"""
Dehydration of Driver Values

Database drivers hand back rich Python objects (datetimes, Decimals, UUIDs,
memoryviews). Before a raw result is normalized it is coerced into a
JSON-representable copy so downstream consumers see the same shapes no
matter which driver produced them:

- datetime -> ISO 8601 string (aware values converted to UTC, "Z" suffix)
- date / time -> ISO 8601 string
- Decimal / UUID -> str
- bytes / memoryview -> hex string
- mappings -> dict with str keys (order preserved)
- list / tuple / set -> list
"""

from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID


def dehydrate(value: Any) -> Any:
    """
    Return a JSON-representable copy of a driver value.

    The input is never mutated; containers are rebuilt.

    Args:
        value: Any value returned by a database driver

    Returns:
        Equivalent value built only from dict, list, str, int, float, bool and None

    Raises:
        ValueError: If two keys of a mapping become the same string (e.g. 1 and '1')

    Examples:
        >>> dehydrate({'created_at': datetime(2025, 10, 15, 10, 0, tzinfo=timezone.utc)})
        {'created_at': '2025-10-15T10:00:00Z'}
        >>> dehydrate([Decimal('42.50')])
        ['42.50']
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value

    if isinstance(value, datetime):
        return _datetime_to_json(value)

    if isinstance(value, (date, time)):
        return value.isoformat()

    if isinstance(value, (Decimal, UUID)):
        return str(value)

    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()

    if isinstance(value, Mapping):
        return _dehydrate_mapping(value)

    if isinstance(value, (list, tuple)):
        return [dehydrate(item) for item in value]

    if isinstance(value, (set, frozenset)):
        return [dehydrate(item) for item in value]

    return str(value)


def _dehydrate_mapping(value: Mapping) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, item in value.items():
        name = str(key)
        if name in result:
            raise ValueError(f"Keys collide once converted to strings: {name!r}")
        result[name] = dehydrate(item)
    return result


def _datetime_to_json(value: datetime) -> str:
    # Naive datetimes are left in their own (unknown) zone
    if value.tzinfo is None or value.utcoffset() is None:
        return value.isoformat()

    return value.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


__all__ = ["dehydrate"]

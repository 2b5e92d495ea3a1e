import re
from datetime import date, datetime
from typing import Any, Mapping

_UPPER = re.compile(r"([A-Z])")
_UNDERSCORED = re.compile(r"_(\w)")


def to_column_key(field_key: str) -> str:
    """contactEmail -> contact_email"""
    return _UPPER.sub(lambda m: "_" + m.group(1).lower(), field_key)


def to_field_key(column_key: str) -> str:
    """contact_email -> contactEmail"""
    return _UNDERSCORED.sub(lambda m: m.group(1).upper(), column_key)


def format_date(value: date | datetime) -> str:
    # Calendar day as stored; never shifted into the server's timezone
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def to_external(row: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in row.items():
        if isinstance(value, (date, datetime)):
            value = format_date(value)
        out[to_field_key(key)] = value
    return out


def to_columns(data: Mapping[str, Any]) -> dict[str, Any]:
    return {to_column_key(key): value for key, value in data.items()}

"""Parameter binding and parameterized statement builders.

Every statement the engine issues goes through these helpers so values are
always sent as positional ``?`` arguments and never spliced into SQL text.
Values that SQLite cannot store are dropped from the statement and reported
back to the caller instead of failing the whole write.
"""

from __future__ import annotations

import enum
import re
import string
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from pathlib import PurePath
from typing import Any, Sequence

import orjson

from page_archive.core.logging import get_logger

logger = get_logger(__name__)

SQLiteArg = str | int | float | bytes | bytearray | memoryview | None

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_BINARY_TYPES = (bytes, bytearray, memoryview)
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_STRINGIFIED_TYPES = (enum.Enum, uuid.UUID, PurePath, Decimal)
_FORMATTER = string.Formatter()


class UnbindableValue(TypeError):
    """Raised when a value has no SQLite representation."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"cannot bind value of type {type(value).__name__}")
        self.value = value


@dataclass(slots=True)
class BoundStatement:
    sql: str
    args: list[SQLiteArg]
    invalid: dict[str | int, Any] = field(default_factory=dict)

    @property
    def has_invalid(self) -> bool:
        return bool(self.invalid)


def to_sql_arg(value: Any) -> SQLiteArg:
    """Convert ``value`` to something the SQLite binding layer accepts.

    Booleans become 0/1, mappings and lists become compact JSON text, enums,
    UUIDs, paths and decimals become their string form, dates become ISO
    strings. Integers outside the signed 64-bit range and anything else
    (callables, arbitrary objects) raise ``UnbindableValue``.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise UnbindableValue(value)
        return value
    if isinstance(value, (str, float)):
        return value
    if isinstance(value, _BINARY_TYPES):
        return value
    if isinstance(value, _STRINGIFIED_TYPES):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Mapping, list, tuple)):
        try:
            return orjson.dumps(value).decode("utf-8")
        except TypeError as exc:
            raise UnbindableValue(value) from exc
    raise UnbindableValue(value)


def validate(values: Mapping[str, Any]) -> tuple[list[str], list[SQLiteArg], dict[str | int, Any]]:
    """Split a column mapping into bindable keys/args and the dropped remainder."""
    keys: list[str] = []
    args: list[SQLiteArg] = []
    invalid: dict[str | int, Any] = {}
    for key, value in values.items():
        try:
            arg = to_sql_arg(value)
        except UnbindableValue:
            invalid[key] = value
            continue
        keys.append(_identifier(key))
        args.append(arg)
    return keys, args, invalid


def format_sql(template: str, *args: Any, **kwargs: Any) -> BoundStatement:
    """Turn a ``str.format`` style template into a ``?`` statement.

    ``format_sql("SELECT * FROM document WHERE url = {} LIMIT {limit}", url, limit=5)``
    yields ``SELECT * FROM document WHERE url = ? LIMIT ?`` with ``[url, 5]``.
    A value that cannot be bound is recorded in ``invalid`` (keyed by its
    position or name) and its placeholder is left out of the SQL.
    """
    sql_parts: list[str] = []
    bound: list[SQLiteArg] = []
    invalid: dict[str | int, Any] = {}
    auto_index = 0
    for literal, field_name, _spec, _conversion in _FORMATTER.parse(template):
        sql_parts.append(literal)
        if field_name is None:
            continue
        key: str | int
        if field_name == "":
            key = auto_index
            auto_index += 1
            value = args[key]
        elif field_name.isdigit():
            key = int(field_name)
            value = args[key]
        else:
            key = field_name
            value = kwargs[key]
        try:
            bound.append(to_sql_arg(value))
        except UnbindableValue:
            invalid[key] = value
            continue
        sql_parts.append("?")
    return _logged(BoundStatement(sql="".join(sql_parts), args=bound, invalid=invalid))


def build_insert(table: str, values: Mapping[str, Any], on_conflict: str | None = None) -> BoundStatement:
    """Build ``INSERT [OR <on_conflict>] INTO table (...) VALUES (...)``."""
    keys, args, invalid = validate(values)
    verb = f"INSERT OR {on_conflict.upper()}" if on_conflict else "INSERT"
    if not keys:
        sql = f'{verb} INTO "{_identifier(table)}" DEFAULT VALUES'
    else:
        columns = ", ".join(f'"{key}"' for key in keys)
        placeholders = ", ".join("?" for _ in keys)
        sql = f'{verb} INTO "{_identifier(table)}" ({columns}) VALUES ({placeholders})'
    return _logged(BoundStatement(sql=sql, args=args, invalid=invalid))


def build_update(
    table: str,
    values: Mapping[str, Any],
    condition: str,
    condition_args: Sequence[Any] = (),
) -> BoundStatement:
    """Build ``UPDATE table SET ... WHERE <condition>``.

    ``condition`` is raw SQL and may contain ``?`` placeholders; their values
    come from ``condition_args`` and are appended after the SET arguments.
    """
    keys, args, invalid = validate(values)
    if not keys:
        raise ValueError(f"update of {table!r} has no bindable columns")
    assignments = ", ".join(f'"{key}" = ?' for key in keys)
    sql = f'UPDATE "{_identifier(table)}" SET {assignments} WHERE {condition}'
    args.extend(to_sql_arg(value) for value in condition_args)
    return _logged(BoundStatement(sql=sql, args=args, invalid=invalid))


def _identifier(name: str) -> str:
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(f"invalid SQL identifier: {name!r}")
    return name


def _logged(statement: BoundStatement) -> BoundStatement:
    logger.debug("sql :: %s %s", statement.sql, statement.args)
    if statement.invalid:
        logger.warning(
            "Dropped unbindable values from statement: %s",
            {key: type(value).__name__ for key, value in statement.invalid.items()},
        )
    return statement


__all__ = [
    "BoundStatement",
    "SQLiteArg",
    "UnbindableValue",
    "build_insert",
    "build_update",
    "format_sql",
    "to_sql_arg",
    "validate",
]

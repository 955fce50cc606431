"""
Schema-agnostic row materialization.

Queries like `SELECT * FROM items` return whatever columns the table has.
Rows are turned into plain dicts keyed by column name, in column order, so
they can be serialized as JSON without a fixed record type.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Any

Row = dict[str, Any]

_BINARY_TYPES = (bytes, bytearray, memoryview)


class RowDecodeError(RuntimeError):
    pass


def column_names(attributes: Iterable[Any]) -> tuple[str, ...]:
    """
    Column names of a prepared statement, from `PreparedStatement.get_attributes()`.
    """
    return tuple(str(attr.name) for attr in attributes)


def normalize_value(value: Any) -> Any:
    # Raw byte values (bytea, or text the driver hands back undecoded) become str.
    # Invalid UTF-8 sequences become U+FFFD instead of failing the row.
    if isinstance(value, _BINARY_TYPES):
        return bytes(value).decode("utf-8", errors="replace")
    return value


def iter_rows(columns: Sequence[str], records: Iterable[Sequence[Any]]) -> Iterator[Row]:
    """
    Lazily convert positional records into rows.

    `columns` is discovered once per query and reused for every record.
    """
    width = len(columns)
    for record in records:
        if len(record) != width:
            raise RowDecodeError(f"Record has {len(record)} values, expected {width}.")
        yield {name: normalize_value(record[i]) for i, name in enumerate(columns)}


def materialize(columns: Sequence[str], records: Iterable[Sequence[Any]]) -> list[Row]:
    """
    Drain `iter_rows` into a list. No rows -> [].
    """
    return list(iter_rows(columns, records))

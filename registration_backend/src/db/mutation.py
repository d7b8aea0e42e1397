"""
Update-statement builder shared by every entity's update path.

A statement is composed from an ordered list of assignments and a sparse
identifier snapshot: identifier fields that are unset (``None``) or empty
strings are not predicates. Predicates are emitted in sorted column order so
the rendered statement is reproducible, and every value travels as a bound
parameter coerced to its column's Python type.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import Column, Table, update
from sqlalchemy.sql.dml import Update

from src.core.errors import InvalidRequest, ShapeMismatch

logger = logging.getLogger(__name__)


def is_unset(value: Any) -> bool:
    """True for identifier values that do not form a predicate: ``None`` or ``""``."""
    return value is None or value == ""


def column_for(table: Table, field: str) -> Column:
    """Resolve ``field`` to a column of ``table`` or raise InvalidRequest."""
    try:
        return table.c[field.lower()]
    except KeyError:
        raise InvalidRequest(
            f"{table.name}: unknown field {field!r}",
            details={"table": table.name, "field": field},
        ) from None


def coerce(column: Column, value: Any) -> Any:
    """Validate ``value`` against the column's Python type (``"7"`` -> ``7`` for integers)."""
    if value is None:
        return None
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    try:
        return TypeAdapter(python_type).validate_python(value)
    except ValidationError as e:
        raise InvalidRequest(
            f"{column.table.name}.{column.name}: invalid value {value!r}",
            details={"table": column.table.name, "field": column.name},
        ) from e


def predicates_from(identifiers: Mapping[str, Any]) -> list[tuple[str, Any]]:
    """Set identifier fields, sorted by field name."""
    return sorted(
        ((field, value) for field, value in identifiers.items() if not is_unset(value)),
        key=lambda item: item[0],
    )


def build_update(
    table: Table,
    set_fields: Sequence[str],
    set_values: Sequence[Any],
    identifiers: Mapping[str, Any],
) -> Update:
    """
    Compose ``UPDATE <table> SET <assignments> WHERE <p1> AND <p2> ...``.

    Args:
        table: Target table
        set_fields: Columns to assign, in order
        set_values: Values for ``set_fields``, same length
        identifiers: Sparse identifier snapshot; unset fields are skipped

    Raises:
        ShapeMismatch: Assignment lists differ in length, are empty, or no
            identifier is set (an unconditional update is never built)
        InvalidRequest: A field is not a column of ``table`` or a value does
            not fit its column
    """
    if len(set_fields) != len(set_values):
        raise ShapeMismatch(
            f"{table.name}: set fields and set values are not the same length",
            details={"fields": len(set_fields), "values": len(set_values)},
        )
    if not set_fields:
        raise ShapeMismatch(f"{table.name}: nothing to update")

    assignments: dict[str, Any] = {}
    for field, value in zip(set_fields, set_values):
        column = column_for(table, field)
        assignments[column.name] = coerce(column, value)

    predicates = []
    for field, value in predicates_from(identifiers):
        column = column_for(table, field)
        predicates.append(column == coerce(column, value))

    if not predicates:
        raise ShapeMismatch(f"{table.name}: update requires at least one identifying field")

    stmt = update(table).values(assignments).where(*predicates)
    logger.debug("built update: %s", stmt)
    return stmt

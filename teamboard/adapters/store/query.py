"""SQL helpers shared by the store adapters."""

from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from typing import Any


def to_db_value(value: Any) -> Any:
    """Strip value-object branding so database drivers see plain types."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, str):
        return str(value)
    return value


def build_where_clause(
    filters: Mapping[str, Any],
    columns: Iterable[str],
    placeholder: Callable[[int], str],
) -> tuple[str, list[Any]]:
    """Translate equality filters into a conjunctive WHERE clause.

    Args:
        filters: Column name to required value. None values are skipped.
        columns: Column names that may be filtered on.
        placeholder: Maps a 1-based parameter index to the driver's
            placeholder syntax (``$1`` for asyncpg, ``?`` for sqlite).

    Returns:
        ``(" WHERE a = $1 AND b = $2", [va, vb])``, or ``("", [])`` when
        no filter applies.

    Raises:
        ValueError: If a filter names a column outside ``columns``.
    """
    allowed = set(columns)
    unknown = sorted(set(filters) - allowed)
    if unknown:
        raise ValueError(f"Unknown filter field(s): {', '.join(unknown)}")

    clauses: list[str] = []
    params: list[Any] = []
    for name, value in filters.items():
        if value is None:
            continue
        params.append(to_db_value(value))
        clauses.append(f"{name} = {placeholder(len(params))}")

    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


def build_set_clause(
    fields: Mapping[str, Any],
    columns: Iterable[str],
    placeholder: Callable[[int], str],
    first_index: int = 1,
) -> tuple[str, list[Any]]:
    """Translate a partial update into ``a = $n, b = $n+1``.

    Raises:
        ValueError: If no field is given or a field is not updatable.
    """
    allowed = set(columns)
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ValueError(f"Unknown update field(s): {', '.join(unknown)}")
    if not fields:
        raise ValueError("No fields to update")

    assignments: list[str] = []
    params: list[Any] = []
    for index, (name, value) in enumerate(fields.items(), start=first_index):
        params.append(to_db_value(value))
        assignments.append(f"{name} = {placeholder(index)}")
    return ", ".join(assignments), params


def dollar_placeholder(index: int) -> str:
    return f"${index}"


def qmark_placeholder(index: int) -> str:
    return "?"

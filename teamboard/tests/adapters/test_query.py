"""Tests for the SQL clause builders shared by the stores."""

import pytest

from teamboard.adapters.store.query import (
    build_set_clause,
    build_where_clause,
    dollar_placeholder,
    qmark_placeholder,
    to_db_value,
)
from teamboard.core.value_objects import EnrollmentStatus, create_name

COLUMNS = ("id", "name", "enrollment_status")


def test_to_db_value_strips_branding():
    value = to_db_value(create_name("Alice"))

    assert value == "Alice"
    assert type(value) is str


def test_to_db_value_uses_enum_value():
    assert to_db_value(EnrollmentStatus.WITHDRAWN) == "退会済"


def test_to_db_value_passes_other_types_through():
    assert to_db_value(False) is False
    assert to_db_value(None) is None


def test_where_clause_with_dollar_placeholders():
    where, params = build_where_clause(
        {"name": "Alice", "enrollment_status": EnrollmentStatus.ENROLLED},
        COLUMNS,
        dollar_placeholder,
    )

    assert where == " WHERE name = $1 AND enrollment_status = $2"
    assert params == ["Alice", "在籍中"]


def test_where_clause_skips_none_values():
    where, params = build_where_clause(
        {"id": None, "name": "Alice"}, COLUMNS, dollar_placeholder
    )

    assert where == " WHERE name = $1"
    assert params == ["Alice"]


def test_where_clause_empty_when_no_filters_apply():
    assert build_where_clause({"id": None}, COLUMNS, qmark_placeholder) == ("", [])
    assert build_where_clause({}, COLUMNS, qmark_placeholder) == ("", [])


def test_where_clause_with_qmark_placeholders():
    where, _ = build_where_clause({"id": "x", "name": "y"}, COLUMNS, qmark_placeholder)

    assert where == " WHERE id = ? AND name = ?"


def test_where_clause_rejects_unknown_columns():
    with pytest.raises(ValueError, match="Unknown filter field"):
        build_where_clause({"password": "x"}, COLUMNS, qmark_placeholder)


def test_set_clause_numbers_from_first_index():
    assignments, params = build_set_clause(
        {"name": "Bob", "enrollment_status": "休会中"},
        COLUMNS,
        dollar_placeholder,
        first_index=2,
    )

    assert assignments == "name = $2, enrollment_status = $3"
    assert params == ["Bob", "休会中"]


def test_set_clause_rejects_empty_update():
    with pytest.raises(ValueError, match="No fields"):
        build_set_clause({}, COLUMNS, qmark_placeholder)


def test_set_clause_rejects_unknown_field():
    with pytest.raises(ValueError, match="Unknown update field"):
        build_set_clause({"team_id": "x"}, COLUMNS, qmark_placeholder)

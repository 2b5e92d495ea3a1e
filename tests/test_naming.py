from datetime import date, datetime, timedelta, timezone

import pytest

from app.core.naming import to_column_key, to_columns, to_external, to_field_key


@pytest.mark.parametrize(
    "field_key,column_key",
    [
        ("name", "name"),
        ("contactEmail", "contact_email"),
        ("realizationPercentage", "realization_percentage"),
        ("cigDerivato", "cig_derivato"),
        ("addressLine2", "address_line2"),
    ],
)
def test_field_and_column_keys(field_key, column_key):
    assert to_column_key(field_key) == column_key
    assert to_field_key(column_key) == field_key


@pytest.mark.parametrize("key", ["a", "abc", "fooBarBaz", "x1Y2z3", "already", "vatID", "Leading"])
def test_round_trip(key):
    assert to_field_key(to_column_key(key)) == key


def test_to_external_maps_keys_and_normalizes_dates():
    row = {
        "id": "abc",
        "start_date": date(2024, 3, 1),
        "client_id": None,
        "version": 2,
    }
    assert to_external(row) == {
        "id": "abc",
        "startDate": "2024-03-01",
        "clientId": None,
        "version": 2,
    }


def test_datetime_keeps_its_calendar_day():
    # 23:30 at UTC-5 is the next day in UTC; the stored day must not shift
    late = datetime(2024, 12, 31, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert to_external({"end_date": late}) == {"endDate": "2024-12-31"}


def test_to_columns():
    assert to_columns({"contractId": "c", "projectId": "p"}) == {
        "contract_id": "c",
        "project_id": "p",
    }

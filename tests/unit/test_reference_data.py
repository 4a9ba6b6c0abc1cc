"""Unit tests for bureau code lookup tables."""

import pytest

from credit_ingest.extraction.reference_data import (
    ACCOUNT_STATUS_LABELS,
    ACCOUNT_TYPE_LABELS,
    DEFAULT_ACCOUNT_STATUS,
    DEFAULT_ACCOUNT_TYPE,
    map_account_status,
    map_account_type,
)


@pytest.mark.parametrize(
    "code,expected",
    [("10", "Credit Card"), ("51", "Home Loan"), (52, "Personal Loan"), (" 53 ", "Auto Loan"), ("71", "Business Loan")],
)
def test_known_account_types(code, expected):
    assert map_account_type(code) == expected


@pytest.mark.parametrize(
    "code,expected",
    [("11", "active"), ("13", "closed"), ("53", "default"), (71, "delinquent")],
)
def test_known_account_statuses(code, expected):
    assert map_account_status(code) == expected


@pytest.mark.parametrize("code", [999, "999", "", None, "XX", -1, 0])
def test_unknown_codes_fall_back(code):
    assert map_account_type(code) == DEFAULT_ACCOUNT_TYPE
    assert map_account_status(code) == DEFAULT_ACCOUNT_STATUS


def test_every_integer_maps_to_a_label():
    for code in range(-5, 1000):
        assert map_account_type(code)
        assert map_account_status(code)


def test_tables_are_immutable():
    with pytest.raises(TypeError):
        ACCOUNT_TYPE_LABELS[99] = "Gold Loan"  # type: ignore[index]
    with pytest.raises(TypeError):
        ACCOUNT_STATUS_LABELS[99] = "written off"  # type: ignore[index]

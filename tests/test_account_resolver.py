"""Tests for account resolution."""

import pytest

from ledgerbook.domain.entities import AccountType
from ledgerbook.domain.errors import NotFoundError
from ledgerbook.utils.account_resolver import resolve_account


def test_resolve_by_code(account_service, chart):
    """Test codes are tried first."""
    assert resolve_account(account_service, "1011") == chart["1011"]


def test_resolve_by_hash_id(account_service, chart):
    """Test '#<id>' always means an ID."""
    assert resolve_account(account_service, f"#{chart['7011']}") == chart["7011"]


def test_resolve_plain_integer(account_service, chart):
    """Test integers are IDs."""
    assert resolve_account(account_service, chart["1012"]) == chart["1012"]


def test_numeric_string_falls_back_to_id(account_service, chart):
    """Test a numeric string that is not a code is read as an ID."""
    assert resolve_account(account_service, str(chart["5011"])) == chart["5011"]


def test_code_wins_over_id(account_service):
    """Test a numeric code shadows an account with the same ID."""
    first = account_service.create_account("2", "Two", AccountType.ASSET)
    account_service.create_account("1", "One", AccountType.ASSET)

    assert first == 1
    assert resolve_account(account_service, "1") != first


def test_resolve_by_name(account_service, chart):
    """Test exact names are the last resort."""
    assert resolve_account(account_service, "Bank - savings") == chart["1012"]


def test_resolve_unknown(account_service, chart):
    """Test unknown accounts raise NotFoundError."""
    with pytest.raises(NotFoundError):
        resolve_account(account_service, "No such account")
    with pytest.raises(NotFoundError):
        resolve_account(account_service, "#9999")

"""Tests for engine configuration and logging setup."""

import logging
import pytest
from decimal import Decimal

from ledgerbook.config import BALANCE_EPSILON, LedgerConfig, load_config
from ledgerbook.domain.entities import AccountType
from ledgerbook.logging_config import configure_logging


def test_defaults():
    """Test the default configuration."""
    config = load_config(environ={})

    assert config.company_id == "default"
    assert config.epsilon == BALANCE_EPSILON
    assert config.reconciliation_tolerance == Decimal("0.01")
    assert config.nature_table[AccountType.ASSET].increases_on_debit is True
    assert config.nature_table[AccountType.INCOME].increases_on_debit is False


def test_company_from_environment_and_argument():
    """Test an explicit company wins over the environment."""
    env = {"LEDGERBOOK_COMPANY": "acme"}

    assert load_config(environ=env).company_id == "acme"
    assert load_config("globex", environ=env).company_id == "globex"


def test_tolerance_from_environment():
    """Test reading the reconciliation tolerance."""
    assert load_config(
        environ={"LEDGERBOOK_RECONCILIATION_TOLERANCE": "0.50"}
    ).reconciliation_tolerance == Decimal("0.50")
    assert load_config(
        environ={"LEDGERBOOK_RECONCILIATION_TOLERANCE": "None"}
    ).reconciliation_tolerance is None


@pytest.mark.parametrize("value", ["abc", "-1"])
def test_invalid_tolerance(value):
    """Test invalid tolerances raise ValueError."""
    with pytest.raises(ValueError):
        load_config(environ={"LEDGERBOOK_RECONCILIATION_TOLERANCE": value})


def test_for_company_copies_settings():
    """Test scoping a configuration to another company."""
    config = LedgerConfig(reconciliation_tolerance=None)
    scoped = config.for_company("acme")

    assert scoped.company_id == "acme"
    assert scoped.reconciliation_tolerance is None
    assert config.company_id == "default"


def test_configure_logging_sets_level():
    """Test the package logger follows the requested level."""
    configure_logging("DEBUG")
    assert logging.getLogger("ledgerbook").level == logging.DEBUG

    configure_logging("warning")
    assert logging.getLogger("ledgerbook").level == logging.WARNING


def test_json_formatter_includes_extras():
    """Test JSON log lines carry extra fields."""
    import json
    from ledgerbook.logging_config import JsonFormatter

    record = logging.LogRecord(
        "ledgerbook.domain.journal", logging.INFO, __file__, 1, "Created entry %s", ("A-1",), None
    )
    record.entry_id = 7

    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["message"] == "Created entry A-1"
    assert payload["extra"] == {"entry_id": 7}

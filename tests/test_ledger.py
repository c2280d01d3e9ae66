"""Tests for the ledger engine."""

import pytest
from datetime import date
from decimal import Decimal

from ledgerbook.cli.main import cli
from ledgerbook.domain.errors import AccountNotFound, ValidationError


MARCH = (date(2024, 3, 1), date(2024, 3, 31))


def test_march_ledger_for_checking_account(ledger_service, chart, march_sale):
    """One 1180 sale split across three movements shows up on 1011 as a debit."""
    report = ledger_service.get_ledger(chart["1011"], *MARCH)

    assert report.opening_balance == Decimal("0")
    assert report.closing_balance == Decimal("1180.00")
    assert report.total_debit == Decimal("1180.00")
    assert report.total_credit == Decimal("0.00")
    assert len(report.lines) == 1

    line = report.lines[0]
    assert line.date == date(2024, 3, 15)
    assert line.entry_number == "A-0001"
    assert line.description == "Invoice F001-123"
    assert line.running_balance == Decimal("1180.00")


def test_credit_nature_accounts_grow_on_credit(ledger_service, chart, march_sale):
    sales = ledger_service.get_ledger(chart["7011"], *MARCH)
    tax = ledger_service.get_ledger(chart["40111"], *MARCH)

    assert sales.closing_balance == Decimal("1000.00")
    assert sales.total_credit == Decimal("1000.00")
    assert tax.closing_balance == Decimal("180.00")


def test_opening_balance_and_running_balance(ledger_service, chart, post_entry):
    post_entry(date(2024, 2, 20), [("1011", 500, 0), ("5011", 0, 500)])
    post_entry(date(2024, 3, 2), [("6311", 120, 0), ("1011", 0, 120)])
    post_entry(date(2024, 3, 9), [("1011", 300, 0), ("7011", 0, 300)])
    post_entry(date(2024, 4, 1), [("1011", 50, 0), ("7011", 0, 50)])

    report = ledger_service.get_ledger(chart["1011"], *MARCH)

    assert report.opening_balance == Decimal("500.00")
    assert [line.running_balance for line in report.lines] == [
        Decimal("380.00"),
        Decimal("680.00"),
    ]
    assert report.total_debit == Decimal("300.00")
    assert report.total_credit == Decimal("120.00")
    assert report.closing_balance == Decimal("680.00")
    assert report.period_change == Decimal("180.00")


def test_closing_equals_opening_plus_signed_period_sum(ledger_service, chart, post_entry):
    post_entry(date(2024, 1, 5), [("1011", 1000, 0), ("5011", 0, 1000)])
    post_entry(date(2024, 3, 3), [("6311", 80, 0), ("1011", 0, 80)])
    post_entry(date(2024, 3, 20), [("1011", 250, 0), ("7011", 0, 250)])

    report = ledger_service.get_ledger(chart["1011"], *MARCH)
    signed = sum((line.debit - line.credit for line in report.lines), Decimal("0"))

    assert report.closing_balance == report.opening_balance + signed


def test_continuity_across_adjacent_periods(ledger_service, chart, post_entry):
    post_entry(date(2024, 2, 10), [("1011", 400, 0), ("5011", 0, 400)])
    post_entry(date(2024, 2, 29), [("6311", 25, 0), ("1011", 0, 25)])
    post_entry(date(2024, 3, 1), [("1011", 60, 0), ("7011", 0, 60)])

    february = ledger_service.get_ledger(chart["1011"], date(2024, 2, 1), date(2024, 2, 29))
    march = ledger_service.get_ledger(chart["1011"], *MARCH)

    assert march.opening_balance == february.closing_balance
    assert march.closing_balance == Decimal("435.00")


def test_recomputation_is_idempotent(ledger_service, chart, march_sale, post_entry):
    post_entry(date(2024, 3, 20), [("6311", 30, 0), ("1011", 0, 30)])

    first = ledger_service.get_ledger(chart["1011"], *MARCH)
    second = ledger_service.get_ledger(chart["1011"], *MARCH)

    assert first == second


def test_draft_and_void_entries_excluded(ledger_service, journal_service, chart, march_sale, post_entry):
    post_entry(date(2024, 3, 16), [("1011", 999, 0), ("7011", 0, 999)], confirm=False)
    voided = post_entry(date(2024, 3, 17), [("1011", 55, 0), ("7011", 0, 55)])
    journal_service.void_entry(voided)

    report = ledger_service.get_ledger(chart["1011"], *MARCH)

    assert len(report.lines) == 1
    assert report.closing_balance == Decimal("1180.00")


def test_draft_and_void_entries_excluded_from_opening_balance(
    ledger_service, journal_service, chart, post_entry
):
    post_entry(date(2024, 2, 10), [("1011", 400, 0), ("5011", 0, 400)])
    post_entry(date(2024, 2, 12), [("1011", 999, 0), ("7011", 0, 999)], confirm=False)
    voided = post_entry(date(2024, 2, 14), [("1011", 55, 0), ("7011", 0, 55)])
    journal_service.void_entry(voided)

    report = ledger_service.get_ledger(chart["1011"], *MARCH)

    assert report.opening_balance == Decimal("400.00")
    assert report.closing_balance == Decimal("400.00")
    assert report.lines == ()


def test_lines_ordered_by_date_then_number(ledger_service, chart, post_entry):
    post_entry(date(2024, 3, 10), [("1011", 1, 0), ("7011", 0, 1)], number="B-2")
    post_entry(date(2024, 3, 10), [("1011", 2, 0), ("7011", 0, 2)], number="B-1")
    post_entry(date(2024, 3, 5), [("1011", 3, 0), ("7011", 0, 3)], number="B-3")

    report = ledger_service.get_ledger(chart["1011"], *MARCH)

    assert [line.entry_number for line in report.lines] == ["B-3", "B-1", "B-2"]


def test_movement_description_overrides_entry(ledger_service, journal_service, chart):
    from ledgerbook.domain.entities import Movement

    journal_service.create_entry(
        "M-1",
        date(2024, 3, 8),
        "Entry text",
        [
            Movement(id=None, account_id=chart["1011"], debit=Decimal("10"), description="Line text"),
            Movement(id=None, account_id=chart["7011"], credit=Decimal("10")),
        ],
        confirm=True,
    )

    report = ledger_service.get_ledger(chart["1011"], *MARCH)
    assert report.lines[0].description == "Line text"


def test_empty_ledger_is_not_an_error(ledger_service, chart, march_sale):
    report = ledger_service.get_ledger(chart["1012"], *MARCH)

    assert report.lines == ()
    assert report.opening_balance == Decimal("0")
    assert report.closing_balance == Decimal("0")


def test_unknown_account(ledger_service, chart):
    with pytest.raises(AccountNotFound):
        ledger_service.get_ledger(9999)


def test_inverted_period_rejected(ledger_service, chart):
    with pytest.raises(ValidationError):
        ledger_service.get_ledger(chart["1011"], date(2024, 4, 1), date(2024, 3, 1))


def test_get_balance(ledger_service, chart, march_sale, post_entry):
    post_entry(date(2024, 4, 2), [("6311", 180, 0), ("1011", 0, 180)])

    assert ledger_service.get_balance(chart["1011"], date(2024, 3, 31)) == Decimal("1180.00")
    assert ledger_service.get_balance(chart["1011"]) == Decimal("1000.00")


def test_get_ledgers(ledger_service, chart, march_sale):
    reports = ledger_service.get_ledgers(period_start=MARCH[0], period_end=MARCH[1], skip_empty=True)

    assert [r.account.code for r in reports] == ["1011", "40111", "7011"]

    selected = ledger_service.get_ledgers([chart["7011"], chart["1011"]], *MARCH)
    assert [r.account.code for r in selected] == ["7011", "1011"]


def test_ledger_cli(cli_runner, temp_db, chart, march_sale):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "ledger", "1011", "--period", "2024-03"]
    )

    assert result.exit_code == 0
    assert "Ledger 1011 - Bank - checking" in result.output
    assert "Invoice F001-123" in result.output
    assert "1,180.00" in result.output


def test_ledger_cli_rejects_combined_period_options(cli_runner, temp_db, chart):
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "ledger", "1011", "--period", "2024-03", "--start-date", "2024-03-01",
        ],
    )

    assert result.exit_code == 1
    assert "cannot be combined" in result.output

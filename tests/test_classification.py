"""Tests for statement classification rules."""

from datetime import date
from decimal import Decimal

from ledgerbook.domain.classification import (
    CashFlowByCounterpart,
    PrefixClassifier,
    counterpart_of,
    default_income_band,
    group_by_parent,
    group_by_type,
)
from ledgerbook.domain.entities import (
    Account,
    AccountType,
    CashFlowBucket,
    EntryStatus,
    IncomeBand,
    JournalEntry,
    Movement,
)


def _account(account_id, code, name, account_type, parent_code=None):
    return Account(
        id=account_id,
        company_id="default",
        code=code,
        name=name,
        type=account_type,
        level=1 if parent_code is None else 2,
        parent_code=parent_code,
        active=True,
    )


ACCOUNTS = [
    _account(1, "10", "Cash and equivalents", AccountType.ASSET),
    _account(2, "1011", "Bank - checking", AccountType.ASSET, "10"),
    _account(3, "1012", "Bank - savings", AccountType.ASSET, "10"),
    _account(4, "3361", "Computer equipment", AccountType.ASSET),
    _account(5, "4511", "Bank loans", AccountType.LIABILITY),
    _account(6, "7011", "Sales of goods", AccountType.INCOME),
    _account(7, "40111", "Sales tax payable", AccountType.LIABILITY),
]
BY_CODE = {acc.code: acc for acc in ACCOUNTS}


def _entry(*movements):
    return JournalEntry(
        id=1,
        company_id="default",
        number="E-1",
        date=date(2024, 3, 15),
        description="Test",
        status=EntryStatus.CONFIRMED,
        movements=tuple(
            Movement(id=i, account_id=account_id, debit=Decimal(debit), credit=Decimal(credit), position=i)
            for i, (account_id, debit, credit) in enumerate(movements, start=1)
        ),
    )


def test_prefix_classifier_longest_prefix_wins():
    """Test the most specific prefix is used."""
    rule = PrefixClassifier({"1": "Short", "101": "Long"}, "Other")

    assert rule(BY_CODE["1011"]) == "Long"
    assert rule(BY_CODE["10"]) == "Short"
    assert rule(BY_CODE["7011"]) == "Other"


def test_prefix_classifier_callable_default():
    """Test a callable default computes the label."""
    rule = PrefixClassifier({"69": IncomeBand.COST_OF_SALES}, default_income_band)

    assert rule(BY_CODE["7011"]) == IncomeBand.REVENUE


def test_group_by_parent():
    """Test children are labelled with the parent name, roots with their own."""
    rule = group_by_parent(ACCOUNTS)

    assert rule(BY_CODE["1011"]) == "Cash and equivalents"
    assert rule(BY_CODE["3361"]) == "Computer equipment"


def test_group_by_type():
    """Test labelling by account type."""
    assert group_by_type(BY_CODE["4511"]) == "Liability"


def test_counterpart_is_largest_opposite_movement():
    """Test the largest non-cash movement on the other side is picked."""
    entry = _entry((2, "1180", "0"), (6, "0", "1000"), (7, "0", "180"))

    counterpart = counterpart_of(entry, entry.movements[0], {2})
    assert counterpart.account_id == 6


def test_counterpart_of_pure_cash_transfer():
    """Test an entry between cash accounts has no counterpart."""
    entry = _entry((3, "200", "0"), (2, "0", "200"))

    assert counterpart_of(entry, entry.movements[0], {2, 3}) is None


def test_cash_flow_by_counterpart_uses_type():
    """Test buckets follow the counterpart account type."""
    rule = CashFlowByCounterpart(ACCOUNTS, {2, 3})

    sale = _entry((2, "1180", "0"), (6, "0", "1000"), (7, "0", "180"))
    purchase = _entry((4, "1500", "0"), (2, "0", "1500"))
    loan = _entry((2, "2000", "0"), (5, "0", "2000"))
    transfer = _entry((3, "200", "0"), (2, "0", "200"))

    assert rule(sale, sale.movements[0]) == CashFlowBucket.OPERATING
    assert rule(purchase, purchase.movements[1]) == CashFlowBucket.INVESTING
    assert rule(loan, loan.movements[0]) == CashFlowBucket.FINANCING
    assert rule(transfer, transfer.movements[1]) == CashFlowBucket.OPERATING


def test_cash_flow_prefix_table_overrides_type():
    """Test a prefix table takes precedence over the type rule."""
    rule = CashFlowByCounterpart(ACCOUNTS, {2}, prefix_table={"33": CashFlowBucket.OPERATING})
    purchase = _entry((4, "1500", "0"), (2, "0", "1500"))

    assert rule(purchase, purchase.movements[1]) == CashFlowBucket.OPERATING

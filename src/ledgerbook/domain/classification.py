"""Ready-made classification rules for financial statements.

Statements never infer how accounts map to report lines. Callers hand the
statement service plain callables; this module provides the common ones:

- ``PrefixClassifier``: longest matching code prefix wins
- ``group_by_parent``: group label is the parent account's name
- ``CashFlowByCounterpart``: cash-flow activity from the counterpart account
"""

from typing import Callable, Generic, Iterable, Mapping, Optional, TypeVar, Union

from ledgerbook.domain.entities import (
    Account,
    AccountType,
    CashFlowBucket,
    IncomeBand,
    JournalEntry,
    Movement,
)

T = TypeVar("T")

GroupRule = Callable[[Account], str]
BandRule = Callable[[Account], IncomeBand]
BucketRule = Callable[[JournalEntry, Movement], CashFlowBucket]


class PrefixClassifier(Generic[T]):
    """Map an account to a label by the longest matching code prefix.

    Example:
        >>> groups = PrefixClassifier({"10": "Cash", "12": "Receivables"}, "Other")
        >>> groups(account)  # account.code == "1011"
        'Cash'
    """

    def __init__(
        self,
        table: Mapping[str, T],
        default: Union[T, Callable[[Account], T]],
    ):
        """Initialize classifier.

        Args:
            table: Code prefix to label
            default: Label for unmatched accounts, or a callable computing it
        """
        self._prefixes = sorted(table.items(), key=lambda item: len(item[0]), reverse=True)
        self.default = default

    def __call__(self, account: Account) -> T:
        for prefix, label in self._prefixes:
            if account.code.startswith(prefix):
                return label
        if callable(self.default):
            return self.default(account)
        return self.default


def group_by_parent(accounts: Iterable[Account]) -> GroupRule:
    """Build a rule that labels each account with its parent's name.

    Root accounts are labelled with their own name.
    """
    names = {acc.code: acc.name for acc in accounts}

    def rule(account: Account) -> str:
        if account.parent_code is not None and account.parent_code in names:
            return names[account.parent_code]
        return account.name

    return rule


def group_by_type(account: Account) -> str:
    """Label an account with its type name, e.g. 'Asset'."""
    return account.type.value.capitalize()


def default_income_band(account: Account) -> IncomeBand:
    """Income is revenue and expenses are operating unless told otherwise."""
    if account.type == AccountType.INCOME:
        return IncomeBand.REVENUE
    return IncomeBand.OPERATING_EXPENSE


def counterpart_of(
    entry: JournalEntry, movement: Movement, cash_account_ids: Iterable[int]
) -> Optional[Movement]:
    """Return the largest movement of the entry on the opposite side.

    Only non-cash movements qualify; None means the entry only moves cash
    between cash accounts.
    """
    cash_ids = set(cash_account_ids)
    movement_is_debit = movement.debit > 0
    candidates = [
        m
        for m in entry.movements
        if m.account_id not in cash_ids and (m.debit > 0) != movement_is_debit
    ]
    if not candidates:
        candidates = [m for m in entry.movements if m.account_id not in cash_ids]
    if not candidates:
        return None
    return max(candidates, key=lambda m: (m.amount, -m.position))


TYPE_BUCKETS: Mapping[AccountType, CashFlowBucket] = {
    AccountType.ASSET: CashFlowBucket.INVESTING,
    AccountType.LIABILITY: CashFlowBucket.FINANCING,
    AccountType.EQUITY: CashFlowBucket.FINANCING,
    AccountType.INCOME: CashFlowBucket.OPERATING,
    AccountType.EXPENSE: CashFlowBucket.OPERATING,
}


class CashFlowByCounterpart:
    """Classify cash movements by the account on the other side of the entry.

    A prefix table takes precedence; otherwise the counterpart's type decides
    (non-cash assets are investing, liabilities and equity are financing,
    income and expense are operating). Entries that only move cash between
    cash accounts fall into the default bucket.
    """

    def __init__(
        self,
        accounts: Iterable[Account],
        cash_account_ids: Iterable[int],
        prefix_table: Optional[Mapping[str, CashFlowBucket]] = None,
        default: CashFlowBucket = CashFlowBucket.OPERATING,
    ):
        self.accounts = {acc.id: acc for acc in accounts}
        self.cash_account_ids = frozenset(cash_account_ids)
        self.default = default
        self._by_prefix = PrefixClassifier(
            prefix_table or {}, lambda acc: TYPE_BUCKETS[acc.type]
        )

    def __call__(self, entry: JournalEntry, movement: Movement) -> CashFlowBucket:
        counterpart = counterpart_of(entry, movement, self.cash_account_ids)
        if counterpart is None:
            return self.default
        account = self.accounts.get(counterpart.account_id)
        if account is None:
            return self.default
        return self._by_prefix(account)

"""Domain model entities for ledgerbook.

These are pure data classes representing bookkeeping concepts, independent of
the database schema. Services and report builders only ever see these types,
so the storage layer can change without touching the accounting rules.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


ZERO = Decimal("0")


class AccountType(str, Enum):
    """Chart-of-accounts type."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class EntryStatus(str, Enum):
    """Journal entry lifecycle status."""

    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    VOID = "VOID"


class BankDirection(str, Enum):
    """Direction of a bank statement line relative to the bank account."""

    CREDIT_TO_ACCOUNT = "CREDIT_TO_ACCOUNT"
    DEBIT_FROM_ACCOUNT = "DEBIT_FROM_ACCOUNT"


class ReconciliationState(str, Enum):
    """Reconciliation state of either side of a link."""

    PENDING = "PENDING"
    RECONCILED = "RECONCILED"


class CashFlowBucket(str, Enum):
    """Cash-flow statement activity."""

    OPERATING = "OPERATING"
    INVESTING = "INVESTING"
    FINANCING = "FINANCING"


class IncomeBand(str, Enum):
    """Income statement band used for the gross/operating/other breakdown."""

    REVENUE = "REVENUE"
    COST_OF_SALES = "COST_OF_SALES"
    OPERATING_EXPENSE = "OPERATING_EXPENSE"
    OTHER_INCOME = "OTHER_INCOME"
    OTHER_EXPENSE = "OTHER_EXPENSE"


@dataclass(frozen=True)
class AccountNature:
    """Sign convention for an account type."""

    increases_on_debit: bool


@dataclass(frozen=True)
class Account:
    """Chart-of-accounts entry."""

    id: int
    company_id: str
    code: str
    name: str
    type: AccountType
    level: int
    parent_code: Optional[str]
    active: bool
    description: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Movement:
    """One debit-or-credit line of a journal entry."""

    id: Optional[int]
    account_id: int
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: Optional[str] = None
    entry_id: Optional[int] = None
    position: int = 0
    reconciled: bool = False
    bank_movement_id: Optional[int] = None

    @property
    def amount(self) -> Decimal:
        """Unsigned amount of whichever side is set."""
        return self.debit if self.debit > 0 else self.credit

    @property
    def state(self) -> ReconciliationState:
        if self.reconciled:
            return ReconciliationState.RECONCILED
        return ReconciliationState.PENDING


@dataclass(frozen=True)
class JournalEntry:
    """Dated, described set of movements."""

    id: Optional[int]
    company_id: str
    number: str
    date: date
    description: str
    status: EntryStatus
    movements: tuple[Movement, ...] = ()
    reference: Optional[str] = None
    created_at: Optional[datetime] = None
    version: int = 1

    @property
    def total_debit(self) -> Decimal:
        return sum((m.debit for m in self.movements), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((m.credit for m in self.movements), ZERO)


@dataclass(frozen=True)
class BankMovement:
    """One line of an external bank statement."""

    id: int
    company_id: str
    account_id: int
    date: date
    amount: Decimal
    direction: BankDirection
    description: Optional[str] = None
    reference: Optional[str] = None
    reconciled: bool = False
    linked_movement_id: Optional[int] = None
    reconciled_at: Optional[datetime] = None

    @property
    def signed_amount(self) -> Decimal:
        """Amount as seen by the bank account: deposits positive."""
        if self.direction == BankDirection.CREDIT_TO_ACCOUNT:
            return self.amount
        return -self.amount

    @property
    def state(self) -> ReconciliationState:
        if self.reconciled:
            return ReconciliationState.RECONCILED
        return ReconciliationState.PENDING


# Ledger results


@dataclass(frozen=True)
class LedgerLine:
    """One row of a general-ledger inquiry."""

    date: date
    entry_id: int
    entry_number: str
    movement_id: int
    description: str
    reference: Optional[str]
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class LedgerReport:
    """General ledger for one account over one period."""

    account: Account
    period_start: Optional[date]
    period_end: Optional[date]
    opening_balance: Decimal
    lines: tuple[LedgerLine, ...]
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal

    @property
    def period_change(self) -> Decimal:
        return self.closing_balance - self.opening_balance


# Statement results


@dataclass(frozen=True)
class StatementRow:
    """Account line inside a statement group."""

    code: str
    name: str
    balance: Decimal


@dataclass(frozen=True)
class StatementGroup:
    """Named group of statement rows with its total."""

    name: str
    rows: tuple[StatementRow, ...]
    total: Decimal


@dataclass(frozen=True)
class TrialBalanceRow:
    """Trial balance line for one account (or rolled-up ancestor)."""

    code: str
    name: str
    type: AccountType
    opening_debit: Decimal
    opening_credit: Decimal
    period_debit: Decimal
    period_credit: Decimal
    closing_debit: Decimal
    closing_credit: Decimal


@dataclass(frozen=True)
class TrialBalance:
    """Trial balance over a period."""

    period_start: Optional[date]
    period_end: Optional[date]
    rows: tuple[TrialBalanceRow, ...]
    total_opening_debit: Decimal
    total_opening_credit: Decimal
    total_period_debit: Decimal
    total_period_credit: Decimal
    total_closing_debit: Decimal
    total_closing_credit: Decimal
    max_level: Optional[int] = None


@dataclass(frozen=True)
class BalanceSheet:
    """Balance sheet as of a date."""

    as_of: Optional[date]
    assets: tuple[StatementGroup, ...]
    liabilities: tuple[StatementGroup, ...]
    equity: tuple[StatementGroup, ...]
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    current_earnings: Decimal


@dataclass(frozen=True)
class IncomeBreakdown:
    """Gross/operating/other decomposition of an income statement."""

    revenue: Decimal
    cost_of_sales: Decimal
    gross_profit: Decimal
    operating_expenses: Decimal
    operating_income: Decimal
    other_income: Decimal
    other_expenses: Decimal


@dataclass(frozen=True)
class IncomeStatement:
    """Income statement over a period."""

    period_start: Optional[date]
    period_end: Optional[date]
    income: tuple[StatementGroup, ...]
    expenses: tuple[StatementGroup, ...]
    total_income: Decimal
    total_expense: Decimal
    net_income: Decimal
    breakdown: Optional[IncomeBreakdown] = None


@dataclass(frozen=True)
class CashFlowStatement:
    """Cash-flow statement over a period."""

    period_start: Optional[date]
    period_end: Optional[date]
    operating: tuple[StatementGroup, ...]
    investing: tuple[StatementGroup, ...]
    financing: tuple[StatementGroup, ...]
    total_operating: Decimal
    total_investing: Decimal
    total_financing: Decimal
    opening_cash: Decimal
    closing_cash: Decimal

    @property
    def net_change(self) -> Decimal:
        return self.total_operating + self.total_investing + self.total_financing


@dataclass(frozen=True)
class ReconciliationSummary:
    """Counts and amounts of reconciled and pending movements on both sides."""

    account_id: Optional[int]
    bank_total: int
    bank_reconciled: int
    bank_reconciled_amount: Decimal
    bank_pending_amount: Decimal
    book_total: int
    book_reconciled: int
    book_reconciled_amount: Decimal
    book_pending_amount: Decimal
    pending_count: int
    unreconciled_difference: Decimal

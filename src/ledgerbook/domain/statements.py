"""Financial statement aggregation.

Statements are recomputed from confirmed entries on every call, reading
per-account balances from the ledger engine. Each one checks its own
accounting identity and refuses to return a report that does not hold,
raising a ReportInvariantError that names the difference.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from ledgerbook.config import LedgerConfig
from ledgerbook.database.base import Database
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.classification import (
    BandRule,
    BucketRule,
    CashFlowByCounterpart,
    GroupRule,
    counterpart_of,
    group_by_parent,
)
from ledgerbook.domain.entities import (
    ZERO,
    Account,
    AccountType,
    BalanceSheet,
    CashFlowBucket,
    CashFlowStatement,
    IncomeBand,
    IncomeBreakdown,
    IncomeStatement,
    JournalEntry,
    LedgerReport,
    StatementGroup,
    StatementRow,
    TrialBalance,
    TrialBalanceRow,
)
from ledgerbook.domain.errors import (
    AccountNotFound,
    BalanceSheetImbalance,
    CashFlowMismatch,
    TrialBalanceImbalance,
    ValidationError,
)
from ledgerbook.domain.ledger import LedgerService, check_period

logger = logging.getLogger(__name__)

INCOME_BANDS = {IncomeBand.REVENUE, IncomeBand.OTHER_INCOME}
EXPENSE_BANDS = {
    IncomeBand.COST_OF_SALES,
    IncomeBand.OPERATING_EXPENSE,
    IncomeBand.OTHER_EXPENSE,
}


def _build_groups(
    accounts: Sequence[Account],
    balances: dict[int, Decimal],
    group_of: GroupRule,
) -> tuple[tuple[StatementGroup, ...], Decimal]:
    """Group accounts with a non-zero balance, keeping first-seen group order."""
    rows_by_group: dict[str, list[StatementRow]] = {}
    for account in accounts:
        balance = balances.get(account.id, ZERO)
        if balance == 0:
            continue
        label = group_of(account)
        rows_by_group.setdefault(label, []).append(
            StatementRow(code=account.code, name=account.name, balance=balance)
        )

    groups = tuple(
        StatementGroup(
            name=label,
            rows=tuple(rows),
            total=sum((row.balance for row in rows), ZERO),
        )
        for label, rows in rows_by_group.items()
    )
    return groups, sum((group.total for group in groups), ZERO)


class _TrialBalanceSums:
    """Signed balances and raw period sums of one (possibly rolled-up) row."""

    def __init__(self):
        self.opening = ZERO
        self.period_debit = ZERO
        self.period_credit = ZERO
        self.closing = ZERO
        self.has_lines = False

    def add(self, report: LedgerReport) -> None:
        self.opening += report.opening_balance
        self.period_debit += report.total_debit
        self.period_credit += report.total_credit
        self.closing += report.closing_balance
        self.has_lines = self.has_lines or bool(report.lines)


class StatementService:
    """Service for trial balance, balance sheet, income and cash-flow statements."""

    def __init__(self, db: Database, config: Optional[LedgerConfig] = None):
        """Initialize statement service.

        Args:
            db: Database instance
            config: Engine configuration
        """
        self.db = db
        self.config = config or LedgerConfig()
        self.ledger_service = LedgerService(db, self.config)
        self.account_service = self.ledger_service.account_service

    def _confirmed_entries(self, end_date: Optional[date] = None) -> list[JournalEntry]:
        return self.db.list_confirmed_entries(self.config.company_id, end_date=end_date)

    def _ledgers(
        self,
        accounts: Sequence[Account],
        entries: Sequence[JournalEntry],
        period_start: Optional[date],
        period_end: Optional[date],
    ) -> dict[int, LedgerReport]:
        """Ledger of every account over the period, from one journal read.

        Raises:
            AccountNotFound: If a confirmed movement points at an account
                outside the directory
        """
        known = {acc.id for acc in accounts}
        for entry in entries:
            for movement in entry.movements:
                if movement.account_id not in known:
                    raise AccountNotFound(movement.account_id)
        return {
            acc.id: self.ledger_service.build_report(acc, entries, period_start, period_end)
            for acc in accounts
        }

    def _presentation_columns(self, account: Account, balance: Decimal):
        """Split a signed balance into (debit column, credit column).

        A balance of the account's own nature sits in its nature column; a
        negative one moves to the other column as an absolute amount.
        """
        on_debit = self.account_service.resolve_nature(account.type).increases_on_debit
        if balance < 0:
            on_debit = not on_debit
        if on_debit:
            return abs(balance), ZERO
        return ZERO, abs(balance)

    def trial_balance(
        self,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
        max_level: Optional[int] = None,
    ) -> TrialBalance:
        """Build a trial balance over a period.

        One row per account with movements in the period or a non-zero
        balance. Opening and closing balances sit in the debit or credit
        column according to the account nature, or in the other column when
        the balance runs against it; period columns are raw sums.

        Args:
            period_start: Optional first day of the period
            period_end: Optional last day of the period
            max_level: If set, deeper accounts are rolled up into their
                ancestor at this level

        Returns:
            TrialBalance

        Raises:
            ValidationError: If the period is inverted or max_level < 1
            TrialBalanceImbalance: If the period or closing columns differ
                beyond the epsilon
        """
        check_period(period_start, period_end)
        if max_level is not None and max_level < 1:
            raise ValidationError("max_level must be at least 1")

        accounts = self.account_service.list_accounts()
        by_code = {acc.code: acc for acc in accounts}
        ledgers = self._ledgers(
            accounts, self._confirmed_entries(end_date=period_end), period_start, period_end
        )

        # Children share their parent's type, so signed balances add up
        rolled: dict[str, _TrialBalanceSums] = {}
        for account in accounts:
            target = account
            if max_level is not None:
                target = AccountService.rollup_account(account, max_level, by_code)
            rolled.setdefault(target.code, _TrialBalanceSums()).add(ledgers[account.id])

        rows = []
        for code in sorted(rolled):
            account = by_code[code]
            sums = rolled[code]
            if not sums.has_lines and sums.closing == 0:
                continue
            opening_debit, opening_credit = self._presentation_columns(account, sums.opening)
            closing_debit, closing_credit = self._presentation_columns(account, sums.closing)
            rows.append(
                TrialBalanceRow(
                    code=account.code,
                    name=account.name,
                    type=account.type,
                    opening_debit=opening_debit,
                    opening_credit=opening_credit,
                    period_debit=sums.period_debit,
                    period_credit=sums.period_credit,
                    closing_debit=closing_debit,
                    closing_credit=closing_credit,
                )
            )

        report = TrialBalance(
            period_start=period_start,
            period_end=period_end,
            rows=tuple(rows),
            total_opening_debit=sum((r.opening_debit for r in rows), ZERO),
            total_opening_credit=sum((r.opening_credit for r in rows), ZERO),
            total_period_debit=sum((r.period_debit for r in rows), ZERO),
            total_period_credit=sum((r.period_credit for r in rows), ZERO),
            total_closing_debit=sum((r.closing_debit for r in rows), ZERO),
            total_closing_credit=sum((r.closing_credit for r in rows), ZERO),
            max_level=max_level,
        )

        for column, total_debit, total_credit in (
            ("period", report.total_period_debit, report.total_period_credit),
            ("closing", report.total_closing_debit, report.total_closing_credit),
        ):
            if abs(total_debit - total_credit) > self.config.epsilon:
                error = TrialBalanceImbalance(column, total_debit, total_credit)
                logger.error("Refusing trial balance: %s", error)
                raise error

        logger.debug("Trial balance with %d rows", len(rows))
        return report

    def balance_sheet(
        self,
        as_of: Optional[date] = None,
        group_of: Optional[GroupRule] = None,
    ) -> BalanceSheet:
        """Build a balance sheet as of a date.

        The unclosed result of income and expense accounts is shown as a
        current-earnings group inside equity.

        Args:
            as_of: Optional last day included (default: all entries)
            group_of: Account -> group label (default: parent account name)

        Returns:
            BalanceSheet

        Raises:
            BalanceSheetImbalance: If assets differ from liabilities plus
                equity beyond the epsilon
        """
        accounts = self.account_service.list_accounts()
        group_of = group_of or group_by_parent(accounts)
        ledgers = self._ledgers(accounts, self._confirmed_entries(end_date=as_of), None, as_of)
        balances = {account_id: r.closing_balance for account_id, r in ledgers.items()}

        def of_type(*types: AccountType) -> list[Account]:
            return [acc for acc in accounts if acc.type in types]

        assets, total_assets = _build_groups(of_type(AccountType.ASSET), balances, group_of)
        liabilities, total_liabilities = _build_groups(
            of_type(AccountType.LIABILITY), balances, group_of
        )
        equity, total_equity = _build_groups(of_type(AccountType.EQUITY), balances, group_of)

        total_income = sum(
            (balances.get(acc.id, ZERO) for acc in of_type(AccountType.INCOME)), ZERO
        )
        total_expense = sum(
            (balances.get(acc.id, ZERO) for acc in of_type(AccountType.EXPENSE)), ZERO
        )
        current_earnings = total_income - total_expense
        if current_earnings != 0:
            label = self.config.current_earnings_label
            equity = equity + (
                StatementGroup(
                    name=label,
                    rows=(StatementRow(code="", name=label, balance=current_earnings),),
                    total=current_earnings,
                ),
            )
            total_equity += current_earnings

        if abs(total_assets - (total_liabilities + total_equity)) > self.config.epsilon:
            error = BalanceSheetImbalance(total_assets, total_liabilities, total_equity)
            logger.error("Refusing balance sheet: %s", error)
            raise error

        return BalanceSheet(
            as_of=as_of,
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            total_assets=total_assets,
            total_liabilities=total_liabilities,
            total_equity=total_equity,
            current_earnings=current_earnings,
        )

    def income_statement(
        self,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
        group_of: Optional[GroupRule] = None,
        band_of: Optional[BandRule] = None,
    ) -> IncomeStatement:
        """Build an income statement over a period.

        Args:
            period_start: Optional first day of the period
            period_end: Optional last day of the period
            group_of: Account -> group label (default: parent account name)
            band_of: Optional Account -> IncomeBand rule; when given, the
                statement also carries the gross/operating/other breakdown

        Returns:
            IncomeStatement

        Raises:
            ValidationError: If the period is inverted, or band_of puts an
                income account in an expense band (or the reverse)
        """
        check_period(period_start, period_end)
        accounts = self.account_service.list_accounts()
        group_of = group_of or group_by_parent(accounts)
        ledgers = self._ledgers(
            accounts, self._confirmed_entries(end_date=period_end), period_start, period_end
        )
        result_accounts = [
            acc for acc in accounts if acc.type in (AccountType.INCOME, AccountType.EXPENSE)
        ]
        balances = {acc.id: ledgers[acc.id].period_change for acc in result_accounts}

        income, total_income = _build_groups(
            [acc for acc in result_accounts if acc.type == AccountType.INCOME],
            balances,
            group_of,
        )
        expenses, total_expense = _build_groups(
            [acc for acc in result_accounts if acc.type == AccountType.EXPENSE],
            balances,
            group_of,
        )

        breakdown = None
        if band_of is not None:
            breakdown = self._income_breakdown(result_accounts, balances, band_of)

        return IncomeStatement(
            period_start=period_start,
            period_end=period_end,
            income=income,
            expenses=expenses,
            total_income=total_income,
            total_expense=total_expense,
            net_income=total_income - total_expense,
            breakdown=breakdown,
        )

    def _income_breakdown(
        self, accounts: Sequence[Account], balances: dict[int, Decimal], band_of: BandRule
    ) -> IncomeBreakdown:
        totals = {band: ZERO for band in IncomeBand}
        for account in accounts:
            band = band_of(account)
            if not isinstance(band, IncomeBand):
                raise ValidationError(
                    f"Income band rule returned {band!r} for account '{account.code}'"
                )
            allowed = INCOME_BANDS if account.type == AccountType.INCOME else EXPENSE_BANDS
            if band not in allowed:
                raise ValidationError(
                    f"Account '{account.code}' is {account.type.value} and cannot be "
                    f"classified as {band.value}"
                )
            totals[band] += balances.get(account.id, ZERO)

        gross_profit = totals[IncomeBand.REVENUE] - totals[IncomeBand.COST_OF_SALES]
        operating_income = gross_profit - totals[IncomeBand.OPERATING_EXPENSE]
        return IncomeBreakdown(
            revenue=totals[IncomeBand.REVENUE],
            cost_of_sales=totals[IncomeBand.COST_OF_SALES],
            gross_profit=gross_profit,
            operating_expenses=totals[IncomeBand.OPERATING_EXPENSE],
            operating_income=operating_income,
            other_income=totals[IncomeBand.OTHER_INCOME],
            other_expenses=totals[IncomeBand.OTHER_EXPENSE],
        )

    def cash_flow(
        self,
        period_start: Optional[date],
        period_end: Optional[date],
        cash_account_ids: Iterable[int],
        bucket_of: Optional[BucketRule] = None,
        group_of: Optional[Callable[[Account], str]] = None,
    ) -> CashFlowStatement:
        """Build a cash-flow statement over a period.

        Every period movement on a cash account is put in the bucket returned
        by bucket_of. Inside a bucket, rows are the counterpart accounts,
        grouped by group_of.

        Args:
            period_start: Optional first day of the period
            period_end: Optional last day of the period
            cash_account_ids: Accounts that make up cash
            bucket_of: (entry, movement) -> CashFlowBucket
                (default: CashFlowByCounterpart)
            group_of: Counterpart account -> group label
                (default: parent account name)

        Returns:
            CashFlowStatement

        Raises:
            ValidationError: If no cash account is given or a rule returns
                something that is not a CashFlowBucket
            AccountNotFound: If a cash account does not resolve
            CashFlowMismatch: If opening cash plus flows differs from
                closing cash beyond the epsilon
        """
        check_period(period_start, period_end)
        cash_ids = list(dict.fromkeys(cash_account_ids))
        if not cash_ids:
            raise ValidationError("At least one cash account is required")

        accounts = self.account_service.list_accounts()
        by_id = {acc.id: acc for acc in accounts}
        for account_id in cash_ids:
            if account_id not in by_id:
                raise AccountNotFound(account_id)
        cash_set = set(cash_ids)
        bucket_of = bucket_of or CashFlowByCounterpart(accounts, cash_set)
        group_of = group_of or group_by_parent(accounts)

        entries = self._confirmed_entries(end_date=period_end)
        ledgers = self._ledgers(accounts, entries, period_start, period_end)
        opening_cash = sum((ledgers[account_id].opening_balance for account_id in cash_ids), ZERO)
        closing_cash = sum((ledgers[account_id].closing_balance for account_id in cash_ids), ZERO)

        # bucket -> group label -> (code, name) -> amount
        flows: dict[CashFlowBucket, dict[str, dict[tuple[str, str], Decimal]]] = {
            bucket: {} for bucket in CashFlowBucket
        }
        for entry in entries:
            if period_start is not None and entry.date < period_start:
                continue
            for movement in entry.movements:
                if movement.account_id not in cash_set:
                    continue
                bucket = bucket_of(entry, movement)
                if not isinstance(bucket, CashFlowBucket):
                    raise ValidationError(
                        f"Cash-flow rule returned {bucket!r} for movement {movement.id}"
                    )
                amount = self.account_service.signed_amount(
                    by_id[movement.account_id], movement.debit, movement.credit
                )
                counterpart = counterpart_of(entry, movement, cash_set)
                other = by_id.get(counterpart.account_id) if counterpart else None
                if other is None:
                    label, key = "Cash transfers", ("", "Cash transfers")
                else:
                    label, key = group_of(other), (other.code, other.name)
                rows = flows[bucket].setdefault(label, {})
                rows[key] = rows.get(key, ZERO) + amount

        sections = {}
        totals = {}
        for bucket, grouped in flows.items():
            groups = []
            for label, rows in grouped.items():
                statement_rows = tuple(
                    StatementRow(code=code, name=name, balance=amount)
                    for (code, name), amount in sorted(rows.items())
                )
                groups.append(
                    StatementGroup(
                        name=label,
                        rows=statement_rows,
                        total=sum((row.balance for row in statement_rows), ZERO),
                    )
                )
            sections[bucket] = tuple(groups)
            totals[bucket] = sum((group.total for group in groups), ZERO)

        classified = sum(totals.values(), ZERO)
        if abs(closing_cash - (opening_cash + classified)) > self.config.epsilon:
            error = CashFlowMismatch(opening_cash, closing_cash, classified)
            logger.error("Refusing cash-flow statement: %s", error)
            raise error

        return CashFlowStatement(
            period_start=period_start,
            period_end=period_end,
            operating=sections[CashFlowBucket.OPERATING],
            investing=sections[CashFlowBucket.INVESTING],
            financing=sections[CashFlowBucket.FINANCING],
            total_operating=totals[CashFlowBucket.OPERATING],
            total_investing=totals[CashFlowBucket.INVESTING],
            total_financing=totals[CashFlowBucket.FINANCING],
            opening_cash=opening_cash,
            closing_cash=closing_cash,
        )

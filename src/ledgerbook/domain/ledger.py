"""General ledger domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ledgerbook.config import LedgerConfig
from ledgerbook.database.base import Database
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.entities import (
    ZERO,
    Account,
    JournalEntry,
    LedgerLine,
    LedgerReport,
)
from ledgerbook.domain.errors import AccountNotFound, ValidationError

logger = logging.getLogger(__name__)


def check_period(period_start: Optional[date], period_end: Optional[date]) -> None:
    """Raise ValidationError if a period ends before it starts."""
    if period_start is not None and period_end is not None and period_start > period_end:
        raise ValidationError(
            f"Period start {period_start.isoformat()} is after period end "
            f"{period_end.isoformat()}"
        )


class LedgerService:
    """Service for per-account ledgers with running balances.

    Every query is recomputed from the confirmed journal; nothing is cached
    between calls.
    """

    def __init__(self, db: Database, config: Optional[LedgerConfig] = None):
        """Initialize ledger service.

        Args:
            db: Database instance
            config: Engine configuration
        """
        self.db = db
        self.config = config or LedgerConfig()
        self.account_service = AccountService(db, self.config)

    def get_ledger(
        self,
        account_id: int,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> LedgerReport:
        """Build the ledger of one account over a period.

        The opening balance covers confirmed entries dated strictly before
        period_start. Lines cover [period_start, period_end] and are ordered by
        entry date, entry number, entry id and movement position.

        Args:
            account_id: Account ID
            period_start: Optional first day of the period
            period_end: Optional last day of the period

        Returns:
            LedgerReport for the account

        Raises:
            AccountNotFound: If the account does not resolve in this company
            ValidationError: If period_start is after period_end
        """
        check_period(period_start, period_end)
        account = self.account_service.get_account(account_id)
        if account is None or account.company_id != self.config.company_id:
            raise AccountNotFound(account_id)

        entries = self.db.list_confirmed_entries(
            self.config.company_id, account_id=account_id, end_date=period_end
        )
        report = self.build_report(account, entries, period_start, period_end)
        logger.debug(
            "Ledger for %s: %d lines, closing %s",
            account.code,
            len(report.lines),
            report.closing_balance,
        )
        return report

    def build_report(
        self,
        account: Account,
        entries: Iterable[JournalEntry],
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> LedgerReport:
        """Fold already-loaded entries into a ledger report for one account.

        Entries must be in ledger order; entries after period_end are ignored.
        """
        opening = ZERO
        running = ZERO
        total_debit = ZERO
        total_credit = ZERO
        lines = []

        for entry in entries:
            if period_end is not None and entry.date > period_end:
                continue
            before_period = period_start is not None and entry.date < period_start
            for movement in sorted(entry.movements, key=lambda m: m.position):
                if movement.account_id != account.id:
                    continue
                amount = self.account_service.signed_amount(
                    account, movement.debit, movement.credit
                )
                if before_period:
                    opening += amount
                    continue

                if not lines:
                    running = opening
                running += amount
                total_debit += movement.debit
                total_credit += movement.credit
                lines.append(
                    LedgerLine(
                        date=entry.date,
                        entry_id=entry.id,
                        entry_number=entry.number,
                        movement_id=movement.id,
                        description=movement.description or entry.description,
                        reference=entry.reference,
                        debit=movement.debit,
                        credit=movement.credit,
                        running_balance=running,
                    )
                )

        closing = running if lines else opening
        return LedgerReport(
            account=account,
            period_start=period_start,
            period_end=period_end,
            opening_balance=opening,
            lines=tuple(lines),
            total_debit=total_debit,
            total_credit=total_credit,
            closing_balance=closing,
        )

    def get_balance(self, account_id: int, as_of: Optional[date] = None) -> Decimal:
        """Return the nature-signed balance of an account at the end of as_of."""
        return self.get_ledger(account_id, period_end=as_of).closing_balance

    def get_ledgers(
        self,
        account_ids: Optional[Iterable[int]] = None,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
        skip_empty: bool = False,
    ) -> list[LedgerReport]:
        """Build ledgers for several accounts over one period.

        Args:
            account_ids: Accounts to include (default: every account, by code)
            period_start: Optional first day of the period
            period_end: Optional last day of the period
            skip_empty: If True, omit accounts with no lines and a zero balance

        Returns:
            List of LedgerReport in account-code order when account_ids is None,
            otherwise in the order given
        """
        check_period(period_start, period_end)
        if account_ids is None:
            accounts = self.account_service.list_accounts()
        else:
            accounts = []
            for account_id in account_ids:
                account = self.account_service.get_account(account_id)
                if account is None or account.company_id != self.config.company_id:
                    raise AccountNotFound(account_id)
                accounts.append(account)

        # One journal read serves every account
        entries = self.db.list_confirmed_entries(
            self.config.company_id, end_date=period_end
        )
        reports = []
        for account in accounts:
            report = self.build_report(account, entries, period_start, period_end)
            if skip_empty and not report.lines and report.closing_balance == 0:
                continue
            reports.append(report)
        return reports

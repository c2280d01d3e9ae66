"""Engine configuration.

The company, tolerances and sign-convention table travel with every service
call as an explicit value instead of being read from ambient state.

Environment variables:
- LEDGERBOOK_COMPANY: company id used by the CLI (default: "default")
- LEDGERBOOK_RECONCILIATION_TOLERANCE: allowed bank/book amount difference,
  or "none" to disable the check (default: 0.01)
"""

import os
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from ledgerbook.domain.entities import AccountNature, AccountType


BALANCE_EPSILON = Decimal("0.01")

DEFAULT_NATURE_TABLE: Mapping[AccountType, AccountNature] = {
    AccountType.ASSET: AccountNature(increases_on_debit=True),
    AccountType.EXPENSE: AccountNature(increases_on_debit=True),
    AccountType.LIABILITY: AccountNature(increases_on_debit=False),
    AccountType.EQUITY: AccountNature(increases_on_debit=False),
    AccountType.INCOME: AccountNature(increases_on_debit=False),
}


@dataclass(frozen=True)
class LedgerConfig:
    """Per-call engine configuration."""

    company_id: str = "default"
    epsilon: Decimal = BALANCE_EPSILON
    reconciliation_tolerance: Optional[Decimal] = BALANCE_EPSILON
    current_earnings_label: str = "Current period earnings"
    nature_table: Mapping[AccountType, AccountNature] = field(
        default_factory=lambda: dict(DEFAULT_NATURE_TABLE)
    )

    def for_company(self, company_id: str) -> "LedgerConfig":
        """Return a copy of this configuration scoped to another company."""
        return replace(self, company_id=company_id)


def load_config(
    company_id: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> LedgerConfig:
    """Build a LedgerConfig from explicit values and environment variables.

    Args:
        company_id: Company id; if None, LEDGERBOOK_COMPANY is used
        environ: Environment mapping (defaults to os.environ)

    Returns:
        LedgerConfig instance

    Raises:
        ValueError: If the tolerance variable is not a decimal number
    """
    env = os.environ if environ is None else environ

    if company_id is None:
        company_id = env.get("LEDGERBOOK_COMPANY", "default")

    tolerance: Optional[Decimal] = BALANCE_EPSILON
    raw_tolerance = env.get("LEDGERBOOK_RECONCILIATION_TOLERANCE")
    if raw_tolerance is not None:
        if raw_tolerance.strip().lower() == "none":
            tolerance = None
        else:
            try:
                tolerance = Decimal(raw_tolerance.strip())
            except InvalidOperation:
                raise ValueError(
                    f"Invalid LEDGERBOOK_RECONCILIATION_TOLERANCE '{raw_tolerance}'"
                )
            if tolerance < 0:
                raise ValueError("Reconciliation tolerance cannot be negative")

    return LedgerConfig(company_id=company_id, reconciliation_tolerance=tolerance)

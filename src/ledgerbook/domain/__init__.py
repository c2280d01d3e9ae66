"""Domain layer for ledgerbook application."""

_SERVICES = {
    "AccountService": "ledgerbook.domain.account",
    "JournalEntryValidator": "ledgerbook.domain.journal",
    "JournalEntryService": "ledgerbook.domain.journal",
    "LedgerService": "ledgerbook.domain.ledger",
    "StatementService": "ledgerbook.domain.statements",
    "ReconciliationService": "ledgerbook.domain.reconciliation",
    "ReconciliationWorkspace": "ledgerbook.domain.reconciliation",
}

__all__ = list(_SERVICES)


# Services are resolved lazily so that importing ledgerbook.domain.entities
# from the config and database layers does not pull the services in.
def __getattr__(name):
    if name in _SERVICES:
        import importlib

        module = importlib.import_module(_SERVICES[name])
        return getattr(module, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

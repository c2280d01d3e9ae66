"""Integration tests for end-to-end workflows."""

from ledgerbook.cli.main import cli


CHART = [
    ("10", "Cash and equivalents", "ASSET", None),
    ("1011", "Bank - checking", "ASSET", "10"),
    ("40", "Taxes payable", "LIABILITY", None),
    ("40111", "Sales tax payable", "LIABILITY", "40"),
    ("50", "Capital", "EQUITY", None),
    ("5011", "Share capital", "EQUITY", "50"),
    ("63", "Services", "EXPENSE", None),
    ("6311", "Transport", "EXPENSE", "63"),
    ("70", "Sales", "INCOME", None),
    ("7011", "Sales of goods", "INCOME", "70"),
]


def test_full_workflow(cli_runner, temp_db):
    """Test complete workflow: chart -> entries -> ledger -> reports -> reconciliation."""
    base = ["--db-path", temp_db.database_path]

    def run(*args):
        return cli_runner.invoke(cli, base + list(args))

    # Step 1: Chart of accounts
    for code, name, account_type, parent in CHART:
        args = ["account", "create", code, name, "--type", account_type]
        if parent:
            args += ["--parent", parent]
        result = run(*args)
        assert result.exit_code == 0, result.output

    # Step 2: Confirmed entries
    result = run(
        "entry", "add", "A-001", "--date", "2024-03-01", "--description", "Capital",
        "--debit", "1011=5000", "--credit", "5011=5000", "--confirm",
    )
    assert result.exit_code == 0
    assert "as CONFIRMED" in result.output

    result = run(
        "entry", "add", "A-002", "--date", "2024-03-15", "--description", "Invoice F001-123",
        "--debit", "1011=1,180.00", "--credit", "7011=1000", "--credit", "40111=180", "--confirm",
    )
    assert result.exit_code == 0
    assert "Created entry A-002 (ID: 2)" in result.output

    # Step 3: An unbalanced draft can be saved but not confirmed
    result = run(
        "entry", "add", "A-003", "--date", "2024-03-20", "--description", "Courier",
        "--debit", "6311=100", "--credit", "1011=90",
    )
    assert result.exit_code == 0
    assert "as DRAFT" in result.output
    assert "difference 10.00" in result.output

    result = run("entry", "confirm", "3")
    assert result.exit_code == 1
    assert "Difference: 10.00" in result.output

    result = run("entry", "delete", "3")
    assert result.exit_code == 0

    result = run("entry", "list", "--period", "2024-03")
    assert "Found 2 entries" in result.output

    # Step 4: Ledger and statements
    result = run("ledger", "1011", "--period", "2024-03")
    assert result.exit_code == 0
    assert "6,180.00" in result.output

    result = run("report", "trial-balance", "--period", "2024-03")
    assert result.exit_code == 0
    assert "6,180.00" in result.output

    result = run("report", "balance-sheet", "--as-of", "2024-03-31")
    assert result.exit_code == 0
    assert "Current period earnings" in result.output

    result = run("report", "income-statement", "--period", "2024-03")
    assert result.exit_code == 0
    assert "1,000.00" in result.output

    # Step 5: Bank reconciliation
    result = run("bank", "add", "1011", "--date", "2024-03-16", "--amount", "1180")
    assert result.exit_code == 0
    assert "Recorded bank movement 1" in result.output

    # Movement 3 is the checking-account debit of A-002
    result = run("bank", "match", "1", "3")
    assert result.exit_code == 0, result.output

    result = run("entry", "void", "2")
    assert result.exit_code == 1
    assert "reconciled" in result.output

    result = run("bank", "summary", "--account", "1011")
    assert result.exit_code == 0
    assert "Pending movements: 1" in result.output

    # Step 6: Undo the match, then void and reverse cleanly
    assert run("bank", "revert", "1", "3").exit_code == 0
    result = run("entry", "reverse", "1", "--number", "A-004", "--date", "2024-03-31")
    assert result.exit_code == 0
    assert "Created reversing entry A-004" in result.output

    result = run("ledger", "5011")
    assert result.exit_code == 0
    assert "Reversal of A-001" in result.output

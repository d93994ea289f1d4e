"""Command line tests for end-to-end payroll workflows."""

from payrollkit.cli.main import cli


def run(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)


def setup_company(cli_runner, temp_db):
    """Company 1 with account 1, cost centers 1 and 2 and a 60/40 contract for employee 1."""
    steps = [
        ("company", "create", "Acme Ltda"),
        ("account", "create", "Payroll", "--company", "1", "--bank", "First Bank"),
        ("cost-center", "create", "Operations", "--company", "1"),
        ("cost-center", "create", "Administration", "--company", "1"),
        ("employee", "create", "Maria Silva", "--company", "1"),
        ("contract", "create", "--employee", "1", "--value", "5000.00", "--start-date", "2024-01-01"),
        ("contract", "cost-centers", "1", "1=60", "2=40"),
    ]
    for step in steps:
        result = run(cli_runner, temp_db, *step)
        assert result.exit_code == 0, result.output


def test_full_workflow(cli_runner, temp_db):
    """Test complete workflow: company → contract → payroll → thirteenth → close."""
    result = run(cli_runner, temp_db, "company", "create", "Acme Ltda")
    assert result.exit_code == 0
    assert "Created company 'Acme Ltda' (ID: 1)" in result.output

    result = run(cli_runner, temp_db, "account", "create", "Payroll", "--company", "1", "--bank", "First Bank")
    assert result.exit_code == 0
    assert "Created account 'Payroll' (ID: 1)" in result.output

    result = run(cli_runner, temp_db, "cost-center", "create", "Operations", "--company", "1")
    assert result.exit_code == 0
    assert "Created cost center 'Operations' (ID: 1)" in result.output
    result = run(cli_runner, temp_db, "cost-center", "create", "Administration", "--company", "1")
    assert result.exit_code == 0

    result = run(cli_runner, temp_db, "employee", "create", "Maria Silva", "--company", "1")
    assert result.exit_code == 0
    assert "Created employee 'Maria Silva' (ID: 1)" in result.output

    result = run(
        cli_runner,
        temp_db,
        "contract",
        "create",
        "--employee",
        "1",
        "--value",
        "5000.00",
        "--start-date",
        "2024-01-01",
    )
    assert result.exit_code == 0
    assert "Created contract 1 for employee 1" in result.output

    result = run(cli_runner, temp_db, "contract", "cost-centers", "1", "1=60", "2=40")
    assert result.exit_code == 0
    assert "Cost center   1 | 60" in result.output
    assert "Cost center   2 | 40" in result.output

    result = run(cli_runner, temp_db, "contract", "benefit", "add", "1", "Meal allowance", "--amount", "100.00")
    assert result.exit_code == 0
    assert "'Meal allowance' (ID: 1) to contract 1" in result.output

    result = run(cli_runner, temp_db, "payroll", "create", "--company", "1", "--period", "2024-06")
    assert result.exit_code == 0
    assert "Created payroll 1 with 1 employee(s)" in result.output
    assert "Payroll 1 | 2024-06-01 - 2024-06-30 | open" in result.output
    assert "Maria Silva" in result.output
    assert "Meal allowance" in result.output
    assert "Net 5,100.00" in result.output

    result = run(cli_runner, temp_db, "payroll", "days-worked", "1", "20")
    assert result.exit_code == 0
    assert "Payroll employee 1 worked 20 day(s)" in result.output

    result = run(cli_runner, temp_db, "payroll", "show", "1")
    assert result.exit_code == 0
    assert "days 20/30" in result.output
    assert "Net 5,066.67" in result.output

    result = run(cli_runner, temp_db, "thirteenth", "apply", "1", "--percentage", "100")
    assert result.exit_code == 0
    assert "Applied 100.00% thirteenth salary to payroll 1" in result.output
    assert "Net 10,066.67" in result.output

    result = run(
        cli_runner,
        temp_db,
        "payroll",
        "close",
        "1",
        "--account",
        "1",
        "--payment-date",
        "2024-07-05",
    )
    assert result.exit_code == 0
    assert "Closed payroll 1: 1 transaction(s) posted" in result.output

    result = run(cli_runner, temp_db, "transaction", "list", "--company", "1", "--payroll", "1")
    assert result.exit_code == 0
    assert "2024-07-05" in result.output
    assert "-   10,066.67" in result.output
    assert "6,040.00" in result.output
    assert "4,026.67" in result.output

    result = run(cli_runner, temp_db, "payroll", "list", "--company", "1")
    assert result.exit_code == 0
    assert "closed" in result.output

    result = run(cli_runner, temp_db, "payroll", "suggest", "--company", "1")
    assert result.exit_code == 0
    assert "Next period: 2024-07-01 - 2024-07-31" in result.output


def test_closed_payroll_rejects_changes(cli_runner, temp_db):
    """Test that a closed payroll can only change after reopening."""
    setup_company(cli_runner, temp_db)
    assert run(cli_runner, temp_db, "payroll", "create", "--company", "1", "--period", "2024-06").exit_code == 0
    result = run(cli_runner, temp_db, "payroll", "close", "1", "--account", "1", "--payment-date", "2024-07-05")
    assert result.exit_code == 0

    result = run(cli_runner, temp_db, "item", "add", "1", "Overtime", "--amount", "320.00")
    assert result.exit_code == 1
    assert "Error:" in result.output

    result = run(cli_runner, temp_db, "payroll", "close", "1", "--account", "1", "--payment-date", "2024-07-05")
    assert result.exit_code == 1
    assert "Error:" in result.output

    result = run(cli_runner, temp_db, "payroll", "reopen", "1")
    assert result.exit_code == 0
    assert "Reopened payroll 1" in result.output

    result = run(cli_runner, temp_db, "payroll", "reverse", "1", "--date", "2024-07-10")
    assert result.exit_code == 0
    assert "Reversed settlement of payroll 1" in result.output

    result = run(cli_runner, temp_db, "item", "add", "1", "Overtime", "--amount", "320.00")
    assert result.exit_code == 0
    assert "Added item 'Overtime' to payroll employee 1" in result.output

    result = run(cli_runner, temp_db, "transaction", "list", "--company", "1", "--payroll", "1")
    assert result.exit_code == 0
    assert "+    5,000.00" in result.output


def test_vacation_workflow(cli_runner, temp_db):
    """Test applying and removing a vacation through the CLI."""
    setup_company(cli_runner, temp_db)
    assert run(cli_runner, temp_db, "payroll", "create", "--company", "1", "--period", "2024-06").exit_code == 0

    result = run(cli_runner, temp_db, "vacation", "apply", "1", "1", "--days", "30", "--start-date", "2024-06-10")
    assert result.exit_code == 0
    assert "Applied 30 vacation day(s) to payroll employee 1" in result.output
    assert "vacation 30 days from 2024-06-10" in result.output
    assert "1,666.67" in result.output

    result = run(cli_runner, temp_db, "vacation", "remove", "1", "1")
    assert result.exit_code == 0
    assert "Removed vacation from payroll employee 1" in result.output


def test_delete_payroll_confirmation(cli_runner, temp_db):
    """Test that deletion asks for confirmation unless --yes is given."""
    setup_company(cli_runner, temp_db)
    assert run(cli_runner, temp_db, "payroll", "create", "--company", "1", "--period", "2024-06").exit_code == 0

    result = run(cli_runner, temp_db, "payroll", "delete", "1", input="n\n")
    assert result.exit_code == 0
    assert "Deletion cancelled." in result.output

    result = run(cli_runner, temp_db, "payroll", "delete", "1", "--yes")
    assert result.exit_code == 0
    assert "Deleted payroll 1" in result.output

    result = run(cli_runner, temp_db, "payroll", "list", "--company", "1")
    assert result.exit_code == 0
    assert "No payrolls found." in result.output


def test_duplicate_company_fails(cli_runner, temp_db):
    assert run(cli_runner, temp_db, "company", "create", "Acme Ltda").exit_code == 0

    result = run(cli_runner, temp_db, "company", "create", "Acme Ltda")
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_invalid_amount_fails(cli_runner, temp_db):
    setup_company(cli_runner, temp_db)

    result = run(cli_runner, temp_db, "contract", "benefit", "add", "1", "Meal", "--amount", "lots")
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_overlapping_payroll_fails(cli_runner, temp_db):
    setup_company(cli_runner, temp_db)
    assert run(cli_runner, temp_db, "payroll", "create", "--company", "1", "--period", "2024-06").exit_code == 0

    result = run(
        cli_runner,
        temp_db,
        "payroll",
        "create",
        "--company",
        "1",
        "--start-date",
        "2024-06-15",
        "--end-date",
        "2024-07-14",
    )
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_period_and_dates_are_exclusive(cli_runner, temp_db):
    setup_company(cli_runner, temp_db)

    result = run(
        cli_runner,
        temp_db,
        "payroll",
        "create",
        "--company",
        "1",
        "--period",
        "2024-06",
        "--start-date",
        "2024-06-01",
    )
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_help_does_not_touch_database(cli_runner, tmp_path):
    db_path = tmp_path / "payroll.db"

    result = cli_runner.invoke(cli, ["--db-path", str(db_path), "--help"])
    assert result.exit_code == 0
    assert "payroll" in result.output
    assert not db_path.exists()

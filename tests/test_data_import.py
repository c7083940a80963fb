from datetime import UTC, date, datetime

import pytest

from src.data_io.import_validator import rate_as_percent, validate_headers, validate_import_rows
from src.data_io.importer import ImportFormatError, import_accounts
from src.data_io.mapper import (
    account_to_row,
    import_template_csv,
    normalize_frequency,
    parse_interest_rate,
)
from src.utils.quant_models import AmountGoal, DateGoal, DefaultGoal

NOW = datetime(2024, 1, 1, tzinfo=UTC)

HEADER = "Account Name,Starting Balance,Interest Rate,Compound Frequency,Goal Type,Target Amount,Target Date,Monthly Contribution\n"


def test_parse_interest_rate_forms():
    assert parse_interest_rate("4%") == pytest.approx(0.04)
    assert parse_interest_rate("4") == pytest.approx(0.04)
    assert parse_interest_rate("0.04") == pytest.approx(0.04)
    assert parse_interest_rate("") == 0.0
    assert rate_as_percent("0.04") == pytest.approx(4)


def test_normalize_frequency():
    assert normalize_frequency("Annual") == "yearly"
    assert normalize_frequency("DAILY") == "daily"
    assert normalize_frequency("weekly") == "monthly"


def test_validate_headers_reports_missing():
    assert validate_headers(["account name", "Starting Balance"]) == ["Interest Rate", "Compound Frequency", "Goal Type"]


def test_empty_rows_single_error():
    issues = validate_import_rows([], now=NOW)
    assert len(issues) == 1
    assert issues[0].row == 0
    assert issues[0].severity == "error"


def test_csv_import_splits_valid_and_invalid_rows():
    csv = (
        HEADER
        + "Vacation,\"2,000\",4%,monthly,amount,10000,,300\n"
        + ",500,3,monthly,default,,,\n"
        + "House,20000,0.05,annual,date,,2030-06-01,\n"
        + "Old Goal,100,2,yearly,date,,2020-01-01,\n"
        + "\n"
    )
    result = import_accounts(csv.encode("utf-8"), "accounts.csv", now=NOW)

    assert result.stats.total_rows == 4
    assert result.stats.valid_rows == 2
    assert result.stats.error_rows == 2
    assert result.stats.warning_rows == 1

    names = [d.name for d in result.accounts]
    assert names == ["Vacation", "Old Goal"]

    vacation = result.accounts[0]
    assert vacation.starting_balance == 2000
    assert vacation.interest_rate == pytest.approx(0.04)
    assert vacation.monthly_contribution == 300
    assert vacation.goal == AmountGoal(target_amount=10000)

    columns = {(i.row, i.column) for i in result.errors}
    assert (2, "Account Name") in columns
    assert (3, "Compound Frequency") in columns
    assert result.warnings[0].column == "Target Date"


def test_unsupported_extension():
    with pytest.raises(ImportFormatError):
        import_accounts(b"whatever", "accounts.txt", now=NOW)


def test_template_round_trip():
    result = import_accounts(import_template_csv().encode("utf-8"), "template.csv", now=NOW)
    assert result.errors == []
    assert len(result.accounts) == 2
    assert isinstance(result.accounts[1].goal, DateGoal)
    assert result.accounts[1].goal.target_date == date(2030, 6, 1)


def test_account_to_row_matches_import_layout():
    result = import_accounts(import_template_csv().encode("utf-8"), "template.csv", now=NOW)
    row = account_to_row(result.accounts[0])
    assert row["Account Name"] == "Emergency Fund"
    assert row["Goal Type"] == "amount"
    assert float(row["Target Amount"]) == 15000
    assert row["Target Date"] == ""


def test_default_goal_type_maps_to_default_goal():
    csv = HEADER + "Rainy Day,100,2,monthly,default,,,\n"
    result = import_accounts(csv.encode("utf-8"), "a.csv", now=NOW)
    assert isinstance(result.accounts[0].goal, DefaultGoal)

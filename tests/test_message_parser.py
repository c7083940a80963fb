from datetime import UTC, date, datetime

import pytest

from src.chat.extraction import extract_with_rules, parse_extraction_json
from src.chat.message_parser import (
    MessageParser,
    has_confirmation,
    is_account_creation_request,
    requires_calculation,
)
from src.core.schemas import AccountPrompt, ChatMessage

NOW = datetime(2024, 1, 1, tzinfo=UTC)

VACATION = (
    "I want to save for a vacation. I have $2,000 and want to reach $10,000 "
    "with 4% interest compounded monthly, adding $300 a month."
)


def test_intent_keywords():
    assert is_account_creation_request(VACATION)
    assert not is_account_creation_request("What is APY?")
    assert requires_calculation("How long until I reach my goal?")
    assert has_confirmation("Yes, create it please")
    assert not has_confirmation("Maybe later")


def test_parse_full_request():
    parsed = MessageParser.parse_account_data(VACATION, now=NOW)
    assert len(parsed.accounts) == 1
    acc = parsed.accounts[0]
    assert acc.name == "Vacation"
    assert acc.starting_balance == 2000
    assert acc.interest_rate == 4
    assert acc.compound_frequency == "monthly"
    assert acc.goal_type == "amount"
    assert acc.target_amount == 10000
    assert acc.monthly_contribution == 300
    assert MessageParser.missing_info(acc) == []


def test_parse_date_goal_by_year():
    msg = "Start saving for a house: I have $5,000 at 3% and need it by 2030"
    acc = MessageParser.parse_account_data(msg, now=NOW).accounts[0]
    assert acc.name == "House"
    assert acc.starting_balance == 5000
    assert acc.goal_type == "date"
    assert acc.target_amount is None
    assert acc.target_date == date(2030, 12, 31)


def test_extract_date_forms():
    assert MessageParser.extract_date("by 06/15/2027", now=NOW) == date(2027, 6, 15)
    assert MessageParser.extract_date("on 2026-03-01", now=NOW) == date(2026, 3, 1)
    assert MessageParser.extract_date("before March 5, 2028", now=NOW) == date(2028, 3, 5)
    assert MessageParser.extract_date("in 3 years", now=NOW) == date(2027, 1, 1)
    assert MessageParser.extract_date("someday", now=NOW) is None


def test_rate_and_frequency_patterns():
    assert MessageParser.extract_interest_rate("a rate of 3.5 on savings") == 3.5
    assert MessageParser.extract_interest_rate("2.1 percent") == 2.1
    assert MessageParser.extract_compound_frequency("compounded annually") == "yearly"
    assert MessageParser.extract_compound_frequency("daily compounding") == "daily"
    assert MessageParser.extract_compound_frequency("no schedule given") == "monthly"


def test_named_fund():
    assert MessageParser.extract_account_name("create a new emergency fund with $500") == "Emergency Fund"


def test_validate_account_data_bounds():
    assert MessageParser.validate_account_data(AccountPrompt(interestRate=4, startingBalance=0))
    assert not MessageParser.validate_account_data(AccountPrompt(interestRate=140))
    assert not MessageParser.validate_account_data(AccountPrompt(targetAmount=0))


def test_rules_extraction_uses_latest_request_in_history():
    history = [
        ChatMessage(role="user", content=VACATION),
        ChatMessage(role="assistant", content="Would you like me to create this account for you?"),
    ]
    parsed = extract_with_rules("Yes, create it", history, now=NOW)
    assert parsed.user_query == "Yes, create it"
    assert [a.name for a in parsed.accounts] == ["Vacation"]
    assert not parsed.requires_validation


def test_rules_extraction_reports_missing_info():
    history = [ChatMessage(role="user", content="I want to save for a car")]
    parsed = extract_with_rules("go ahead", history, now=NOW)
    assert parsed.accounts == []
    assert parsed.requires_validation
    assert parsed.missing_info == ["startingBalance", "interestRate", "targetAmount"]


def test_parse_extraction_json_strips_fences():
    reply = """```json
{"accounts": [{"name": "Travel Account", "startingBalance": 1000, "interestRate": 4,
  "compoundFrequency": "Annually", "goalType": "Amount", "targetAmount": 10000, "monthlyContribution": 750}],
 "requiresCalculation": false, "requiresValidation": false, "missingInfo": []}
```"""
    parsed = parse_extraction_json(reply, user_text="yes create it")
    acc = parsed.accounts[0]
    assert acc.compound_frequency == "yearly"
    assert acc.goal_type == "amount"
    assert acc.monthly_contribution == 750
    assert parsed.user_query == "yes create it"


def test_parse_extraction_json_invalid_is_empty():
    parsed = parse_extraction_json("sorry, I can't do that", user_text="hi")
    assert parsed.accounts == []
    assert parsed.user_query == "hi"
    assert not parsed.requires_validation


@pytest.mark.parametrize("reply", ["[]", "\"none\"", "42", "null"])
def test_parse_extraction_json_non_object_is_empty(reply):
    parsed = parse_extraction_json(reply, user_text="hi")
    assert parsed.accounts == []
    assert parsed.user_query == "hi"

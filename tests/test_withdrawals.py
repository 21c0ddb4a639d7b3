"""Tests for the age-banded withdrawal order and shortfall coverage."""

from datetime import date

import pytest

from retireplan.accounts import AccountKind, TransactionCategory
from retireplan.withdrawals import cover_shortfall, deposit_income, invest_surplus_savings, optimal_withdrawal_order
from tests.helpers import make_person

ON = date(2025, 6, 1)


@pytest.mark.parametrize("age", [20, 45, 59.4, 59.5, 65, 72.9, 73, 90, 110])
def test_order_is_total_with_savings_first(age):
    order = optimal_withdrawal_order(age)
    assert order[0] == AccountKind.SAVINGS
    assert len(order) == len(AccountKind)
    assert set(order) == set(AccountKind)


def test_order_bands():
    assert optimal_withdrawal_order(40)[-2:] == [AccountKind.TRADITIONAL_IRA, AccountKind.TRADITIONAL_401K]
    assert optimal_withdrawal_order(60)[1] == AccountKind.TRADITIONAL_401K
    assert optimal_withdrawal_order(60)[-1] == AccountKind.ROTH_IRA
    assert optimal_withdrawal_order(74, rmd_start_age=75)[3] == AccountKind.HSA
    assert optimal_withdrawal_order(75, rmd_start_age=75)[5] == AccountKind.HSA


def test_savings_used_first():
    person = make_person(
        date(1990, 1, 1),
        [("Cash", AccountKind.SAVINGS, 50_000), ("Brokerage", AccountKind.TAXABLE_BROKERAGE, 100_000)],
    )

    outcome = cover_shortfall(person, 10_000, ON)

    assert outcome.withdrawn == 10_000
    assert [event.account for event in outcome.events] == ["Cash"]
    assert outcome.shortfall == 0.0


def test_emergency_reserve_protected_in_first_pass():
    person = make_person(
        date(1990, 1, 1),
        [("Cash", AccountKind.SAVINGS, 30_000), ("Brokerage", AccountKind.TAXABLE_BROKERAGE, 100_000)],
        essential_expenses=12_000,
    )

    outcome = cover_shortfall(person, 10_000, ON)

    assert [(event.account, round(event.amount, 2)) for event in outcome.events] == [
        ("Cash", 6_000.00),
        ("Brokerage", 4_000.00),
    ]
    assert person.account("Cash").balance(ON) == 24_000


def test_emergency_reserve_spent_as_last_resort():
    person = make_person(date(1990, 1, 1), [("Cash", AccountKind.SAVINGS, 30_000)], essential_expenses=12_000)

    outcome = cover_shortfall(person, 10_000, ON)

    assert outcome.withdrawn == 10_000
    assert outcome.shortfall == 0.0
    assert person.account("Cash").balance(ON) == 20_000


def test_uncovered_amount_reported_as_shortfall():
    person = make_person(date(1990, 1, 1), [("Cash", AccountKind.SAVINGS, 1_000)])

    outcome = cover_shortfall(person, 5_000, ON)

    assert outcome.withdrawn == 1_000
    assert outcome.shortfall == 4_000


def test_early_traditional_withdrawal_in_shortfall_records_penalty():
    person = make_person(date(1990, 1, 1), [("IRA", AccountKind.TRADITIONAL_IRA, 10_000)])

    outcome = cover_shortfall(person, 1_000, ON)

    assert outcome.withdrawn == 1_000
    assert round(person.account("IRA").penalties_in_year(2025), 2) == 100.00


def test_zero_request_is_a_no_op():
    person = make_person(date(1990, 1, 1), [("Cash", AccountKind.SAVINGS, 1_000)])
    outcome = cover_shortfall(person, 0, ON)
    assert outcome.withdrawn == 0.0
    assert outcome.events == []


def test_deposit_income_targets():
    with_savings = make_person(
        date(1990, 1, 1),
        [("Brokerage", AccountKind.TAXABLE_BROKERAGE, 0), ("Cash", AccountKind.SAVINGS, 0)],
    )
    assert deposit_income(with_savings, 500, ON) == "Cash"

    brokerage_only = make_person(date(1990, 1, 1), [("Brokerage", AccountKind.TAXABLE_BROKERAGE, 0)])
    assert deposit_income(brokerage_only, 500, ON, TransactionCategory.SOCIAL_SECURITY) == "Brokerage"
    assert brokerage_only.account("Brokerage").balance(ON) == 500

    neither = make_person(date(1990, 1, 1), [("IRA", AccountKind.TRADITIONAL_IRA, 0)])
    assert deposit_income(neither, 500, ON) == "Cash"
    assert neither.account("Cash").kind == AccountKind.SAVINGS
    assert neither.account("Cash").balance(ON) == 500
    assert neither.account("Cash").balance(date(2025, 5, 31)) == 0.0
    assert deposit_income(neither, 0, ON) is None
    assert len(neither.accounts) == 2


def test_invest_surplus_savings_keeps_reserve():
    person = make_person(
        date(1990, 1, 1),
        [("Cash", AccountKind.SAVINGS, 30_000), ("Brokerage", AccountKind.TAXABLE_BROKERAGE, 0)],
        essential_expenses=12_000,
    )

    moved = invest_surplus_savings(person, ON)

    assert moved == 6_000
    assert person.account("Cash").balance(ON) == 24_000
    assert person.account("Brokerage").balance(ON) == 6_000

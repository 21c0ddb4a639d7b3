"""Roth conversion helpers."""

from __future__ import annotations

from datetime import date
import logging

from .accounts import AccountKind, TransactionCategory
from .person import Person
from .reference import ReferenceData
from .tax import compute_total_tax, summarize_year

logger = logging.getLogger(__name__)

SAFETY_NET_YEARS = 5


def _bracket_room(taxable_income: float, filing_status: str, year: int, reference: ReferenceData | None, fill_to_rate: float | None) -> float:
    tax_year = (reference or ReferenceData.default()).for_year(year)
    brackets = tax_year.brackets[tax_year.status_key(filing_status)]
    for bracket in brackets:
        if bracket.upper_bound is None:
            return 0.0
        if fill_to_rate is not None:
            if abs(bracket.rate - fill_to_rate) < 1e-9:
                return max(0.0, bracket.upper_bound - taxable_income)
            continue
        if taxable_income < bracket.upper_bound:
            return bracket.upper_bound - taxable_income
    return 0.0


def plan_roth_conversion(
    person: Person,
    on: date,
    *,
    reference: ReferenceData | None = None,
    fill_to_rate: float | None = None,
) -> float:
    """Amount to convert this year without leaving the current (or target) bracket.

    Conversions stop short of the balance needed to cover five years of
    expenses across the traditional and Roth accounts.
    """
    traditional = person.accounts_of(AccountKind.TRADITIONAL_401K) + person.accounts_of(AccountKind.TRADITIONAL_IRA)
    roth = person.accounts_of(AccountKind.ROTH_IRA)
    if not traditional or not roth:
        return 0.0

    result = compute_total_tax(summarize_year(person, on.year), reference)
    room = _bracket_room(result.taxable_income, person.filing_status, on.year, reference, fill_to_rate)
    if room <= 0:
        return 0.0

    traditional_balance = sum(account.balance(on) for account in traditional)
    available = traditional_balance + sum(account.balance(on) for account in roth)
    max_safe = available - SAFETY_NET_YEARS * person.annual_expenses
    return max(0.0, min(room, max_safe, traditional_balance))


def execute_roth_conversion(person: Person, on: date, amount: float) -> float:
    """Move ``amount`` from traditional accounts into the first Roth IRA."""
    roth = person.accounts_of(AccountKind.ROTH_IRA)
    if amount <= 0 or not roth:
        return 0.0

    converted = 0.0
    for kind in (AccountKind.TRADITIONAL_IRA, AccountKind.TRADITIONAL_401K):
        for account in person.accounts_of(kind):
            if converted >= amount:
                break
            taken = account.withdraw(amount - converted, on, TransactionCategory.INTERNAL_TRANSFER)
            if taken > 0:
                roth[0].deposit(taken, on, TransactionCategory.INTERNAL_TRANSFER)
                converted += taken

    if converted > 0:
        logger.info("Roth conversion of %.2f on %s", converted, on.isoformat())
    return converted


def eligible_for_conversion(person: Person, on: date) -> bool:
    """Conversions run once employment income has stopped."""
    return person.roth_conversions and not person.has_full_time_job(on)

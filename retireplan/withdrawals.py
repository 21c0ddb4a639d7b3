"""Withdrawal ordering policy and surplus placement."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging

from .accounts import Account, AccountKind, TransactionCategory
from .person import Person
from .rmd import rmd_start_age as cohort_rmd_start_age
from .tax_data import PENALTY_FREE_AGE

logger = logging.getLogger(__name__)

IMPLICIT_CASH_ACCOUNT = "Cash"

_BEFORE_PENALTY_FREE = [
    AccountKind.SAVINGS,
    AccountKind.ROTH_401K,
    AccountKind.ROTH_IRA,
    AccountKind.HSA,
    AccountKind.TAXABLE_BROKERAGE,
    AccountKind.TRADITIONAL_IRA,
    AccountKind.TRADITIONAL_401K,
]

_BEFORE_RMD = [
    AccountKind.SAVINGS,
    AccountKind.TRADITIONAL_401K,
    AccountKind.TRADITIONAL_IRA,
    AccountKind.HSA,
    AccountKind.TAXABLE_BROKERAGE,
    AccountKind.ROTH_401K,
    AccountKind.ROTH_IRA,
]

_AFTER_RMD = [
    AccountKind.SAVINGS,
    AccountKind.TRADITIONAL_401K,
    AccountKind.TRADITIONAL_IRA,
    AccountKind.TAXABLE_BROKERAGE,
    AccountKind.ROTH_401K,
    AccountKind.HSA,
    AccountKind.ROTH_IRA,
]


@dataclass(slots=True)
class WithdrawalEvent:
    account: str
    kind: AccountKind
    amount: float


@dataclass(slots=True)
class WithdrawalOutcome:
    requested: float
    withdrawn: float = 0.0
    events: list[WithdrawalEvent] = field(default_factory=list)

    @property
    def shortfall(self) -> float:
        return max(0.0, self.requested - self.withdrawn)


def optimal_withdrawal_order(age: float, rmd_start_age: int = 73) -> list[AccountKind]:
    """Account kinds in the order they should be drawn down at ``age``.

    Savings always comes first. Before 59.5 the penalty-bearing traditional
    accounts go last; between 59.5 and the RMD age the traditional accounts
    are drawn first to shrink future forced distributions.
    """
    if age < PENALTY_FREE_AGE:
        return list(_BEFORE_PENALTY_FREE)
    if age < rmd_start_age:
        return list(_BEFORE_RMD)
    return list(_AFTER_RMD)


def _withdraw_pass(
    person: Person,
    need: float,
    on: date,
    category: TransactionCategory,
    order: list[AccountKind],
    outcome: WithdrawalOutcome,
    savings_headroom: float | None,
) -> float:
    """Walk the order once. Returns the remaining need."""
    for kind in order:
        for account in person.accounts_of(kind):
            if need <= 1e-9:
                return 0.0
            request = need
            if kind == AccountKind.SAVINGS and savings_headroom is not None:
                request = min(request, savings_headroom)
            if request <= 0:
                continue

            amount = account.withdraw(request, on, category)
            if amount <= 0:
                continue
            if kind == AccountKind.SAVINGS and savings_headroom is not None:
                savings_headroom -= amount
            outcome.withdrawn += amount
            outcome.events.append(WithdrawalEvent(account=account.name, kind=kind, amount=amount))
            need -= amount
    return max(0.0, need)


def cover_shortfall(
    person: Person,
    amount: float,
    on: date,
    category: TransactionCategory = TransactionCategory.EXPENSES,
) -> WithdrawalOutcome:
    """Withdraw ``amount`` across the person's accounts in policy order.

    The first pass leaves the emergency reserve in savings untouched; a second
    pass spends it as a last resort. Whatever cannot be covered is reported
    as the outcome's shortfall.
    """
    outcome = WithdrawalOutcome(requested=max(0.0, amount))
    if amount <= 0:
        return outcome

    order = optimal_withdrawal_order(person.exact_age(on), cohort_rmd_start_age(person.birth_date.year))
    headroom = person.available_for_withdrawal(on, AccountKind.SAVINGS)

    remaining = _withdraw_pass(person, amount, on, category, order, outcome, headroom)
    if remaining > 0:
        remaining = _withdraw_pass(person, remaining, on, category, order, outcome, None)
    return outcome


def deposit_income(
    person: Person,
    amount: float,
    on: date,
    category: TransactionCategory = TransactionCategory.INCOME,
) -> str | None:
    """Deposit spendable income into savings, or the taxable account without one.

    A person with neither gets a zero-growth savings account opened on ``on``.
    Returns the receiving account name, or None for a non-positive amount.
    """
    if amount <= 0:
        return None
    targets = person.accounts_of(AccountKind.SAVINGS) or person.accounts_of(AccountKind.TAXABLE_BROKERAGE)
    if not targets:
        targets = [person.add_account(Account.open(IMPLICIT_CASH_ACCOUNT, AccountKind.SAVINGS, 0.0, on))]
        logger.info("%s: opened savings account %r to receive income", person.name, IMPLICIT_CASH_ACCOUNT)
    targets[0].deposit(amount, on, category)
    return targets[0].name


def invest_surplus_savings(person: Person, on: date) -> float:
    """Move savings above the emergency-fund target into the taxable account."""
    brokerage = person.accounts_of(AccountKind.TAXABLE_BROKERAGE)
    if not brokerage:
        return 0.0
    surplus = person.available_for_withdrawal(on, AccountKind.SAVINGS)
    if surplus <= 0:
        return 0.0

    moved = 0.0
    for account in person.accounts_of(AccountKind.SAVINGS):
        if surplus - moved <= 0:
            break
        taken = account.withdraw(surplus - moved, on, TransactionCategory.INTERNAL_TRANSFER)
        if taken > 0:
            brokerage[0].deposit(taken, on, TransactionCategory.INTERNAL_TRANSFER)
            moved += taken
    return moved

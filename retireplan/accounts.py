"""Ledger-backed investment accounts."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
import logging
from typing import Iterable

from .limits import hsa_limit, ira_limit, personal_401k_limit, total_401k_limit
from .reference import ReferenceData
from .rmd import compute_rmd_amount, rmd_start_age
from .tax_data import (
    EARLY_WITHDRAWAL_PENALTY_RATE,
    HSA_NON_MEDICAL_PENALTY_RATE,
    HSA_PENALTY_FREE_AGE,
    PENALTY_FREE_AGE,
    ROTH_BASIS_FRACTION,
    RULE_OF_55_AGE,
)

logger = logging.getLogger(__name__)


class AccountKind(str, Enum):
    TRADITIONAL_401K = "traditional_401k"
    TRADITIONAL_IRA = "traditional_ira"
    ROTH_IRA = "roth_ira"
    ROTH_401K = "roth_401k"
    TAXABLE_BROKERAGE = "taxable_brokerage"
    SAVINGS = "savings"
    HSA = "hsa"


TAX_DEFERRED_KINDS = {AccountKind.TRADITIONAL_401K, AccountKind.TRADITIONAL_IRA}
ROTH_KINDS = {AccountKind.ROTH_IRA, AccountKind.ROTH_401K}
EMPLOYER_PLAN_KINDS = {AccountKind.TRADITIONAL_401K, AccountKind.ROTH_401K}
IRA_KINDS = {AccountKind.TRADITIONAL_IRA, AccountKind.ROTH_IRA}


class TransactionCategory(str, Enum):
    INCOME = "income"
    CONTRIBUTION_PERSONAL = "contribution_personal"
    CONTRIBUTION_EMPLOYER = "contribution_employer"
    INTEREST = "interest"
    WITHDRAWAL = "withdrawal"
    EXPENSES = "expenses"
    EARLY_WITHDRAWAL_PENALTY = "early_withdrawal_penalty"
    RMD = "rmd"
    INTERNAL_TRANSFER = "internal_transfer"
    SOCIAL_SECURITY = "social_security"
    TAXES = "taxes"
    MEDICAL = "medical"


CONTRIBUTION_CATEGORIES = {TransactionCategory.CONTRIBUTION_PERSONAL, TransactionCategory.CONTRIBUTION_EMPLOYER}
# Withdrawals in these categories never carry an early-withdrawal penalty.
PENALTY_EXEMPT_CATEGORIES = {
    TransactionCategory.INTERNAL_TRANSFER,
    TransactionCategory.EARLY_WITHDRAWAL_PENALTY,
}
# Ledger withdrawals that are not distributions to the owner.
NON_DISTRIBUTION_CATEGORIES = PENALTY_EXEMPT_CATEGORIES | {TransactionCategory.INTEREST}


@dataclass(frozen=True, slots=True)
class Transaction:
    amount: float
    date: date
    category: TransactionCategory


def exact_age(birth_date: date, on: date) -> float:
    """Age in years with whole-month resolution (59.5 is reached on the half-birthday)."""
    months = (on.year - birth_date.year) * 12 + (on.month - birth_date.month)
    if on.day < birth_date.day:
        months -= 1
    return months / 12.0


def whole_age(birth_date: date, on: date) -> int:
    years = on.year - birth_date.year
    if (on.month, on.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years


@dataclass(slots=True)
class AccountOwner:
    """The slice of a person that account rules depend on."""

    birth_date: date
    separation_from_service_age: float | None = None
    hsa_family_coverage: bool = False

    def age_at(self, on: date) -> float:
        return exact_age(self.birth_date, on)

    def age_at_year_end(self, year: int) -> int:
        return whole_age(self.birth_date, date(year, 12, 31))


def monthly_rate(annual_rate: float) -> float:
    return (1.0 + annual_rate) ** (1.0 / 12.0) - 1.0


@dataclass(slots=True)
class Account:
    name: str
    kind: AccountKind
    growth_rate: float = 0.0
    owner: AccountOwner | None = None
    yearly_starting_balances: dict[int, float] = field(default_factory=dict)
    _deposits: dict[int, list[Transaction]] = field(default_factory=dict, repr=False)
    _withdrawals: dict[int, list[Transaction]] = field(default_factory=dict, repr=False)

    @classmethod
    def open(
        cls,
        name: str,
        kind: AccountKind | str,
        balance: float,
        on: date,
        *,
        growth_rate: float = 0.0,
        owner: AccountOwner | None = None,
    ) -> "Account":
        account = cls(name=name, kind=AccountKind(kind), growth_rate=growth_rate, owner=owner)
        account.yearly_starting_balances[on.year] = float(balance)
        return account

    # Ledger views

    @property
    def deposits(self) -> list[Transaction]:
        return [tx for year in sorted(self._deposits) for tx in self._deposits[year]]

    @property
    def withdrawals(self) -> list[Transaction]:
        return [tx for year in sorted(self._withdrawals) for tx in self._withdrawals[year]]

    @property
    def is_tax_deferred(self) -> bool:
        return self.kind in TAX_DEFERRED_KINDS

    @property
    def is_roth(self) -> bool:
        return self.kind in ROTH_KINDS

    def _base_year(self, year: int) -> int | None:
        if year in self.yearly_starting_balances:
            return year
        earlier = [y for y in self.yearly_starting_balances if y < year]
        if not earlier:
            return None
        return max(earlier)

    def balance(self, on: date) -> float:
        base_year = self._base_year(on.year)
        if base_year is None:
            return 0.0

        total = self.yearly_starting_balances[base_year]
        for year in range(base_year, on.year + 1):
            for tx in self._deposits.get(year, ()):
                if tx.date <= on:
                    total += tx.amount
            for tx in self._withdrawals.get(year, ()):
                if tx.date <= on:
                    total -= tx.amount
        return total

    def starting_balance(self, year: int) -> float:
        if year in self.yearly_starting_balances:
            return self.yearly_starting_balances[year]
        return self.balance(date(year - 1, 12, 31))

    def start_year(self, year: int) -> float:
        """Record the starting balance for ``year`` if it is not already known."""
        if year not in self.yearly_starting_balances:
            self.yearly_starting_balances[year] = self.balance(date(year - 1, 12, 31))
        return self.yearly_starting_balances[year]

    def _record(self, ledger: dict[int, list[Transaction]], amount: float, on: date, category: TransactionCategory) -> None:
        ledger.setdefault(on.year, []).append(Transaction(amount=amount, date=on, category=TransactionCategory(category)))

    @staticmethod
    def _sum(
        ledger: dict[int, list[Transaction]],
        year: int,
        categories: Iterable[TransactionCategory] | None,
        start: date | None = None,
        end: date | None = None,
    ) -> float:
        wanted = None if categories is None else set(categories)
        total = 0.0
        for tx in ledger.get(year, ()):
            if wanted is not None and tx.category not in wanted:
                continue
            if start is not None and tx.date < start:
                continue
            if end is not None and tx.date > end:
                continue
            total += tx.amount
        return total

    def deposits_in(self, year: int, categories: Iterable[TransactionCategory] | None = None) -> float:
        return self._sum(self._deposits, year, categories)

    def withdrawals_in(self, year: int, categories: Iterable[TransactionCategory] | None = None) -> float:
        return self._sum(self._withdrawals, year, categories)

    def deposits_between(self, start: date, end: date) -> float:
        return sum(self._sum(self._deposits, year, None, start, end) for year in range(start.year, end.year + 1))

    def withdrawals_between(self, start: date, end: date) -> float:
        return sum(self._sum(self._withdrawals, year, None, start, end) for year in range(start.year, end.year + 1))

    def contributions_in_year(self, year: int, categories: Iterable[TransactionCategory] = CONTRIBUTION_CATEGORIES) -> float:
        return self.deposits_in(year, categories)

    def distributions_in_year(self, year: int) -> float:
        """Withdrawals that count toward an RMD (excludes penalties and transfers)."""
        return sum(
            tx.amount
            for tx in self._withdrawals.get(year, ())
            if tx.category not in NON_DISTRIBUTION_CATEGORIES
        )

    def taxable_withdrawals_in_year(self, year: int) -> float:
        """Ordinary income created by withdrawals from this account in ``year``."""
        if self.is_tax_deferred:
            return sum(
                tx.amount
                for tx in self._withdrawals.get(year, ())
                if tx.category not in {TransactionCategory.EARLY_WITHDRAWAL_PENALTY, TransactionCategory.INTEREST}
            )
        if self.kind == AccountKind.HSA:
            return sum(
                tx.amount
                for tx in self._withdrawals.get(year, ())
                if tx.category not in {TransactionCategory.MEDICAL, TransactionCategory.EARLY_WITHDRAWAL_PENALTY, TransactionCategory.INTEREST}
            )
        return 0.0

    def penalties_in_year(self, year: int) -> float:
        return self.withdrawals_in(year, [TransactionCategory.EARLY_WITHDRAWAL_PENALTY])

    # Contribution limits

    def contribution_limit(self, year: int, category: TransactionCategory, reference: ReferenceData | None = None) -> float | None:
        """Yearly cap for deposits of ``category``; None when deposits are unrestricted."""
        if category not in CONTRIBUTION_CATEGORIES:
            return None
        age = self.owner.age_at_year_end(year) if self.owner is not None else 0

        if self.kind in EMPLOYER_PLAN_KINDS:
            if category == TransactionCategory.CONTRIBUTION_PERSONAL:
                return personal_401k_limit(year, age, reference)
            return total_401k_limit(year, age, reference)
        if self.kind in IRA_KINDS:
            return ira_limit(year, age, reference)
        if self.kind == AccountKind.HSA:
            family = self.owner.hsa_family_coverage if self.owner is not None else False
            return hsa_limit(year, age, family, reference)
        return None

    def contribution_room(self, year: int, category: TransactionCategory, reference: ReferenceData | None = None) -> float | None:
        limit = self.contribution_limit(year, category, reference)
        if limit is None:
            return None
        if self.kind in EMPLOYER_PLAN_KINDS and category == TransactionCategory.CONTRIBUTION_PERSONAL:
            used = self.contributions_in_year(year, [TransactionCategory.CONTRIBUTION_PERSONAL])
        else:
            used = self.contributions_in_year(year)
        return max(0.0, limit - used)

    # Mutations

    def deposit(
        self,
        amount: float,
        on: date,
        category: TransactionCategory = TransactionCategory.INCOME,
        reference: ReferenceData | None = None,
    ) -> float:
        """Record a deposit and return the amount actually deposited.

        Contributions to limited account kinds are capped at the remaining
        room for the year; everything else is recorded in full.
        """
        if amount <= 0:
            return 0.0
        category = TransactionCategory(category)

        actual = amount
        room = self.contribution_room(on.year, category, reference)
        if room is not None:
            actual = min(amount, room)
            if actual < amount:
                logger.debug("%s: contribution capped at %.2f of %.2f requested", self.name, actual, amount)
        if actual <= 0:
            return 0.0

        self._record(self._deposits, actual, on, category)
        return actual

    def _penalty_terms(self, on: date, category: TransactionCategory) -> tuple[float, float]:
        """Return (penalty_rate, penalty_free_amount) for a withdrawal on ``on``."""
        if category in PENALTY_EXEMPT_CATEGORIES or self.owner is None:
            return 0.0, 0.0
        age = self.owner.age_at(on)

        if self.kind == AccountKind.HSA:
            if category == TransactionCategory.MEDICAL or age >= HSA_PENALTY_FREE_AGE:
                return 0.0, 0.0
            return HSA_NON_MEDICAL_PENALTY_RATE, 0.0

        if not self.is_tax_deferred and not self.is_roth:
            return 0.0, 0.0
        if age >= PENALTY_FREE_AGE:
            return 0.0, 0.0
        separated = self.owner.separation_from_service_age
        if self.kind in EMPLOYER_PLAN_KINDS and separated is not None and separated >= RULE_OF_55_AGE and age >= separated:
            return 0.0, 0.0

        if self.is_roth:
            # Basis approximated as a fixed share of the year's starting balance.
            basis = ROTH_BASIS_FRACTION * max(0.0, self.starting_balance(on.year))
            already = self.distributions_in_year(on.year)
            return EARLY_WITHDRAWAL_PENALTY_RATE, max(0.0, basis - already)
        return EARLY_WITHDRAWAL_PENALTY_RATE, 0.0

    def withdraw(self, amount: float, on: date, category: TransactionCategory = TransactionCategory.WITHDRAWAL) -> float:
        """Withdraw up to ``amount`` and return the amount actually withdrawn.

        Early withdrawals record the penalty as a separate ledger entry; the
        withdrawal shrinks so that withdrawal plus penalty fits the balance.
        """
        if amount <= 0:
            return 0.0
        category = TransactionCategory(category)
        available = self.balance(on)
        if available <= 0:
            return 0.0

        rate, penalty_free = self._penalty_terms(on, category)
        if rate <= 0 or available <= penalty_free:
            actual = min(amount, available)
        else:
            actual = min(amount, (available + rate * penalty_free) / (1.0 + rate))
        penalty = rate * max(0.0, actual - penalty_free)

        self._record(self._withdrawals, actual, on, category)
        if penalty > 0:
            self._record(self._withdrawals, penalty, on, TransactionCategory.EARLY_WITHDRAWAL_PENALTY)
            logger.debug("%s: early withdrawal penalty %.2f on %.2f", self.name, penalty, actual)
        return actual

    def apply_monthly_growth(self, on: date) -> float:
        """Credit one month of growth; call exactly once per month."""
        growth = self.balance(on) * monthly_rate(self.growth_rate)
        if growth > 0:
            self._record(self._deposits, growth, on, TransactionCategory.INTEREST)
        elif growth < 0:
            self._record(self._withdrawals, -growth, on, TransactionCategory.INTEREST)
        return growth

    def required_minimum_distribution(self, on: date) -> float:
        if not self.is_tax_deferred or self.owner is None:
            return 0.0
        age = self.owner.age_at_year_end(on.year)
        if age < rmd_start_age(self.owner.birth_date.year):
            return 0.0
        return compute_rmd_amount(self.starting_balance(on.year), age)

    def clone(self) -> "Account":
        return copy.deepcopy(self)

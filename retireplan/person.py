"""Person profile and derived financial queries."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from .accounts import Account, AccountKind, AccountOwner, exact_age, whole_age
from .income import Job, JobType
from .life_expectancy import life_expectancy_age
from .rmd import rmd_start_age
from .social_security import full_retirement_age
from .tax_data import DEFAULT_EMERGENCY_MONTHS, PENALTY_FREE_AGE


class LifeStage(str, Enum):
    WORKING = "working"
    PART_TIME = "part_time"
    RETIRED_PRE_RMD = "retired_pre_rmd"
    RETIRED_POST_RMD = "retired_post_rmd"


@dataclass(slots=True)
class EmergencyFundPolicy:
    pre_retirement_months: int = DEFAULT_EMERGENCY_MONTHS["pre_retirement"]
    early_retirement_months: int = DEFAULT_EMERGENCY_MONTHS["early_retirement"]
    post_retirement_months: int = DEFAULT_EMERGENCY_MONTHS["post_retirement"]


@dataclass(slots=True)
class YearToDate:
    """Running payroll and benefit totals for the current tax year."""

    year: int
    wages: float = 0.0
    pretax_contributions: float = 0.0
    income_tax_withheld: float = 0.0
    fica_withheld: float = 0.0
    social_security: float = 0.0


@dataclass(slots=True)
class Person:
    name: str
    birth_date: date
    gender: str = "unspecified"
    filing_status: str = "single"
    full_retirement_age: float | None = None
    part_time_age: float | None = None
    part_time_end_age: float | None = None
    social_security_claiming_age: float = 67.0
    social_security_monthly_benefit: float = 0.0
    essential_expenses: float = 0.0
    discretionary_expenses: float = 0.0
    inflation_rate: float = 0.0
    jobs: list[Job] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list)
    emergency_fund: EmergencyFundPolicy = field(default_factory=EmergencyFundPolicy)
    tax_exempt_interest: float = 0.0
    separation_from_service_age: float | None = None
    hsa_family_coverage: bool = False
    roth_conversions: bool = False
    owner: AccountOwner | None = None
    ytd: YearToDate | None = None

    def __post_init__(self) -> None:
        if self.full_retirement_age is None:
            self.full_retirement_age = full_retirement_age(self.birth_date.year)
        if self.owner is None:
            self.owner = AccountOwner(
                birth_date=self.birth_date,
                separation_from_service_age=self.separation_from_service_age,
                hsa_family_coverage=self.hsa_family_coverage,
            )
        for account in self.accounts:
            if account.owner is None:
                account.owner = self.owner

    def add_account(self, account: Account) -> Account:
        if account.owner is None:
            account.owner = self.owner
        self.accounts.append(account)
        return account

    def age_at(self, on: date) -> int:
        return whole_age(self.birth_date, on)

    def exact_age(self, on: date) -> float:
        return exact_age(self.birth_date, on)

    @property
    def rmd_start_age(self) -> int:
        return rmd_start_age(self.birth_date.year)

    @property
    def annual_expenses(self) -> float:
        return self.essential_expenses + self.discretionary_expenses

    @property
    def is_early_retirement_candidate(self) -> bool:
        return self.part_time_age is not None and self.part_time_age < PENALTY_FREE_AGE

    def accounts_of(self, kind: AccountKind) -> list[Account]:
        return [account for account in self.accounts if account.kind == kind]

    def account(self, name: str) -> Account:
        for account in self.accounts:
            if account.name == name:
                return account
        raise KeyError(name)

    def has_full_time_job(self, on: date) -> bool:
        return any(job.job_type == JobType.FULL_TIME and job.is_active(on) for job in self.jobs)

    def has_part_time_job(self, on: date) -> bool:
        return any(job.job_type == JobType.PART_TIME and job.is_active(on) for job in self.jobs)

    def life_stage(self, on: date) -> LifeStage:
        age = self.exact_age(on)
        if self.has_full_time_job(on):
            return LifeStage.WORKING
        in_part_time_window = (
            self.part_time_age is not None
            and age >= self.part_time_age
            and (self.part_time_end_age is None or age < self.part_time_end_age)
        )
        if self.has_part_time_job(on) or in_part_time_window:
            return LifeStage.PART_TIME
        if self.age_at(on) >= self.rmd_start_age:
            return LifeStage.RETIRED_POST_RMD
        return LifeStage.RETIRED_PRE_RMD

    def required_emergency_fund(self, on: date) -> float:
        monthly_expenses = self.annual_expenses / 12.0
        if self.has_full_time_job(on):
            months = self.emergency_fund.pre_retirement_months
        elif self.exact_age(on) < PENALTY_FREE_AGE:
            months = self.emergency_fund.early_retirement_months
        else:
            months = self.emergency_fund.post_retirement_months
        return monthly_expenses * months

    def emergency_fund_balance(self, on: date) -> float:
        return sum(account.balance(on) for account in self.accounts_of(AccountKind.SAVINGS))

    def emergency_fund_shortfall(self, on: date) -> float:
        return max(0.0, self.required_emergency_fund(on) - self.emergency_fund_balance(on))

    def is_emergency_fund_low(self, on: date) -> bool:
        return self.emergency_fund_shortfall(on) > 0

    def available_for_withdrawal(self, on: date, kind: AccountKind) -> float:
        """Balance of ``kind`` accounts that can be spent; savings keeps the emergency reserve."""
        total = sum(max(0.0, account.balance(on)) for account in self.accounts_of(kind))
        if kind == AccountKind.SAVINGS:
            return max(0.0, total - self.required_emergency_fund(on))
        return total

    def net_worth(self, on: date) -> float:
        return sum(account.balance(on) for account in self.accounts)

    def life_expectancy(self, on: date) -> float:
        """Expected age at death from the period life table for this person's gender."""
        return life_expectancy_age(self.age_at(on), self.gender)

    def years_to_full_retirement(self, on: date) -> float:
        return max(0.0, (self.full_retirement_age or 67.0) - self.exact_age(on))

    def inflate_expenses(self) -> None:
        self.essential_expenses *= 1.0 + self.inflation_rate
        self.discretionary_expenses *= 1.0 + self.inflation_rate

    def clone(self) -> "Person":
        """Deep, independent copy of the person including account ledgers and jobs."""
        return copy.deepcopy(self)

"""Semantic validation for profiles."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from .accounts import AccountKind
from .income import JobType, PayFrequency, PaymentType
from .schema import Profile
from .tax_data import FILING_STATUSES, SOCIAL_SECURITY_EARLY_AGE, SOCIAL_SECURITY_MAX_CLAIM_AGE

ACCOUNT_TYPES = {kind.value for kind in AccountKind}
JOB_TYPES = {kind.value for kind in JobType}
PAYMENT_TYPES = {kind.value for kind in PaymentType}
PAY_FREQUENCIES = {kind.value for kind in PayFrequency}
GENDERS = {"male", "female", "unspecified"}
BRACKET_RATES = {0.10, 0.12, 0.22, 0.24, 0.32, 0.35}


@dataclass(slots=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _check_enum(result: ValidationResult, path: str, value: str, allowed: Iterable[str]) -> None:
    allowed_set = set(allowed)
    if value not in allowed_set:
        expected = ", ".join(sorted(allowed_set))
        result.errors.append(f"{path}: '{value}' is not valid; expected one of [{expected}]")


def _parse_date(result: ValidationResult, path: str, value: str | None, allow_null: bool = False) -> date | None:
    if value is None:
        if not allow_null:
            result.errors.append(f"{path}: date is required")
        return None
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        result.errors.append(f"{path}: '{value}' is not valid; expected YYYY-MM-DD")
        return None


def _check_non_negative(result: ValidationResult, path: str, value: float) -> None:
    if value < 0:
        result.errors.append(f"{path}: must be >= 0")


def _check_fraction(result: ValidationResult, path: str, value: float | None) -> None:
    if value is not None and not 0.0 <= value <= 1.0:
        result.errors.append(f"{path}: must be between 0 and 1")


def validate_profile(profile: Profile) -> ValidationResult:
    result = ValidationResult()
    person = profile.person

    _check_enum(result, "person.filing_status", person.filing_status, FILING_STATUSES)
    if person.gender not in GENDERS:
        result.warnings.append(f"person.gender: '{person.gender}' is not recognized; life expectancy uses unisex values")
    birth = _parse_date(result, "person.birth_date", person.birth_date)

    _check_non_negative(result, "person.expenses.essential", person.essential_expenses)
    _check_non_negative(result, "person.expenses.discretionary", person.discretionary_expenses)
    _check_non_negative(result, "person.social_security.monthly_benefit", person.social_security_monthly_benefit)
    _check_non_negative(result, "person.tax_exempt_interest", person.tax_exempt_interest)
    if person.inflation_rate > 0.15:
        result.warnings.append(f"person.expenses.inflation_rate: {person.inflation_rate:.1%} is unusually high")
    if not SOCIAL_SECURITY_EARLY_AGE <= person.social_security_claiming_age <= SOCIAL_SECURITY_MAX_CLAIM_AGE:
        result.errors.append("person.social_security.claiming_age: must be between 62 and 70")
    if (
        person.part_time_age is not None
        and person.part_time_end_age is not None
        and person.part_time_age > person.part_time_end_age
    ):
        result.errors.append("person.part_time_age/person.part_time_end_age: part_time_age must be <= part_time_end_age")

    account_names: set[str] = set()
    account_types: set[str] = set()
    for idx, account in enumerate(profile.accounts):
        base = f"accounts[{idx}]"
        if account.name in account_names:
            result.errors.append(f"{base}.name: duplicate account name '{account.name}'")
        account_names.add(account.name)
        account_types.add(account.type)
        _check_enum(result, f"{base}.type", account.type, ACCOUNT_TYPES)
        _check_non_negative(result, f"{base}.balance", account.balance)
        if account.growth_rate > 0.2:
            result.warnings.append(f"{base}.growth_rate: {account.growth_rate:.1%} is unusually high")

    if not account_types & {AccountKind.SAVINGS.value, AccountKind.TAXABLE_BROKERAGE.value}:
        result.warnings.append("accounts: no savings or taxable account; a 'Cash' savings account will be opened for income")

    for idx, job in enumerate(profile.jobs):
        base = f"jobs[{idx}]"
        _check_enum(result, f"{base}.job_type", job.job_type, JOB_TYPES)
        _check_enum(result, f"{base}.payment_type", job.payment_type, PAYMENT_TYPES)
        _check_enum(result, f"{base}.pay_frequency", job.pay_frequency, PAY_FREQUENCIES)
        start = _parse_date(result, f"{base}.start_date", job.start_date, allow_null=True)
        end = _parse_date(result, f"{base}.end_date", job.end_date, allow_null=True)
        if start is not None and end is not None and start > end:
            result.errors.append(f"{base}.start_date/{base}.end_date: start_date must be <= end_date")
        if job.payment_type == PaymentType.SALARIED.value and job.salary <= 0:
            result.errors.append(f"{base}.salary: must be > 0 for salaried jobs")
        if job.payment_type == PaymentType.HOURLY.value and job.hourly_rate <= 0:
            result.errors.append(f"{base}.hourly_rate: must be > 0 for hourly jobs")
        _check_fraction(result, f"{base}.personal_contribution_percent", job.personal_contribution_percent)
        _check_fraction(result, f"{base}.employer_match_percent", job.employer_match_percent)
        _check_fraction(result, f"{base}.roth_fraction", job.roth_fraction)
        if job.personal_contribution_percent > 0 and not account_types & {
            AccountKind.TRADITIONAL_401K.value,
            AccountKind.ROTH_401K.value,
        }:
            result.warnings.append(f"{base}.personal_contribution_percent: no 401k account to receive contributions")

    fund = profile.emergency_fund
    _check_non_negative(result, "emergency_fund.pre_retirement_months", fund.pre_retirement_months)
    _check_non_negative(result, "emergency_fund.early_retirement_months", fund.early_retirement_months)
    _check_non_negative(result, "emergency_fund.post_retirement_months", fund.post_retirement_months)

    sim = profile.simulation
    start = _parse_date(result, "simulation.start", sim.start, allow_null=True)
    end = _parse_date(result, "simulation.end", sim.end, allow_null=True)
    if start is not None and end is not None and start > end:
        result.errors.append("simulation.start/simulation.end: start must be <= end")
    if birth is not None and start is not None and start < birth:
        result.errors.append("simulation.start: must not be before person.birth_date")
    if sim.roth_conversion_rate is not None and round(sim.roth_conversion_rate, 4) not in BRACKET_RATES:
        result.errors.append(
            f"simulation.roth_conversion_rate: {sim.roth_conversion_rate} does not match a federal bracket rate"
        )
    if person.roth_conversions and AccountKind.ROTH_IRA.value not in account_types:
        result.warnings.append("person.roth_conversions: enabled but there is no roth_ira account")

    return result

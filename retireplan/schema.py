"""Profile schema dataclasses, JSON loading and conversion to domain objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import json
from pathlib import Path
from typing import Any

from .accounts import Account, AccountKind
from .engine import SimulationSettings
from .income import Job, JobType, PayFrequency, PaymentType
from .person import EmergencyFundPolicy, Person
from .tax_data import DEFAULT_EMERGENCY_MONTHS


class SchemaError(ValueError):
    """Raised when raw JSON cannot be parsed into schema objects."""


def _expect_dict(value: Any, path: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaError(f"{path}: expected object")
    return value


def _expect_list(value: Any, path: str) -> list[Any]:
    if not isinstance(value, list):
        raise SchemaError(f"{path}: expected array")
    return value


def _require(data: dict[str, Any], key: str, path: str) -> Any:
    if key not in data:
        raise SchemaError(f"{path}.{key}: missing required field")
    return data[key]


def _optional(data: dict[str, Any], key: str, default: Any = None) -> Any:
    return data.get(key, default)


def _optional_float(data: dict[str, Any], key: str, path: str, default: float | None = None) -> float | None:
    value = data.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise SchemaError(f"{path}.{key}: expected number") from None


def parse_date(value: str, path: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise SchemaError(f"{path}: '{value}' is not a valid YYYY-MM-DD date") from None


@dataclass(slots=True)
class PersonConfig:
    name: str
    birth_date: str
    gender: str
    filing_status: str
    full_retirement_age: float | None
    part_time_age: float | None
    part_time_end_age: float | None
    separation_from_service_age: float | None
    social_security_claiming_age: float
    social_security_monthly_benefit: float
    essential_expenses: float
    discretionary_expenses: float
    inflation_rate: float
    tax_exempt_interest: float
    hsa_family_coverage: bool
    roth_conversions: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "person") -> "PersonConfig":
        ss = _expect_dict(_optional(data, "social_security", {}), f"{path}.social_security")
        expenses = _expect_dict(_optional(data, "expenses", {}), f"{path}.expenses")
        return cls(
            name=_require(data, "name", path),
            birth_date=_require(data, "birth_date", path),
            gender=_optional(data, "gender", "unspecified"),
            filing_status=_optional(data, "filing_status", "single"),
            full_retirement_age=_optional_float(data, "full_retirement_age", path),
            part_time_age=_optional_float(data, "part_time_age", path),
            part_time_end_age=_optional_float(data, "part_time_end_age", path),
            separation_from_service_age=_optional_float(data, "separation_from_service_age", path),
            social_security_claiming_age=float(_optional(ss, "claiming_age", 67)),
            social_security_monthly_benefit=float(_optional(ss, "monthly_benefit", 0.0)),
            essential_expenses=float(_optional(expenses, "essential", 0.0)),
            discretionary_expenses=float(_optional(expenses, "discretionary", 0.0)),
            inflation_rate=float(_optional(expenses, "inflation_rate", 0.0)),
            tax_exempt_interest=float(_optional(data, "tax_exempt_interest", 0.0)),
            hsa_family_coverage=bool(_optional(data, "hsa_family_coverage", False)),
            roth_conversions=bool(_optional(data, "roth_conversions", False)),
        )


@dataclass(slots=True)
class AccountConfig:
    name: str
    type: str
    balance: float
    growth_rate: float

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "AccountConfig":
        return cls(
            name=_require(data, "name", path),
            type=_require(data, "type", path),
            balance=float(_require(data, "balance", path)),
            growth_rate=float(_optional(data, "growth_rate", 0.0)),
        )


@dataclass(slots=True)
class JobConfig:
    title: str
    start_date: str | None
    end_date: str | None
    job_type: str
    payment_type: str
    pay_frequency: str
    salary: float
    hourly_rate: float
    hours_per_week: float
    raise_rate: float
    bonus: float
    personal_contribution_percent: float
    employer_match_percent: float
    roth_fraction: float | None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "JobConfig":
        return cls(
            title=_require(data, "title", path),
            start_date=_optional(data, "start_date"),
            end_date=_optional(data, "end_date"),
            job_type=_optional(data, "job_type", "full_time"),
            payment_type=_optional(data, "payment_type", "salaried"),
            pay_frequency=_optional(data, "pay_frequency", "biweekly"),
            salary=float(_optional(data, "salary", 0.0)),
            hourly_rate=float(_optional(data, "hourly_rate", 0.0)),
            hours_per_week=float(_optional(data, "hours_per_week", 40.0)),
            raise_rate=float(_optional(data, "raise_rate", 0.0)),
            bonus=float(_optional(data, "bonus", 0.0)),
            personal_contribution_percent=float(_optional(data, "personal_contribution_percent", 0.0)),
            employer_match_percent=float(_optional(data, "employer_match_percent", 0.0)),
            roth_fraction=_optional_float(data, "roth_fraction", path),
        )


@dataclass(slots=True)
class EmergencyFundConfig:
    pre_retirement_months: int
    early_retirement_months: int
    post_retirement_months: int

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "emergency_fund") -> "EmergencyFundConfig":
        return cls(
            pre_retirement_months=int(_optional(data, "pre_retirement_months", DEFAULT_EMERGENCY_MONTHS["pre_retirement"])),
            early_retirement_months=int(
                _optional(data, "early_retirement_months", DEFAULT_EMERGENCY_MONTHS["early_retirement"])
            ),
            post_retirement_months=int(
                _optional(data, "post_retirement_months", DEFAULT_EMERGENCY_MONTHS["post_retirement"])
            ),
        )


@dataclass(slots=True)
class SimulationConfig:
    start: str | None
    end: str | None
    rmd_enabled: bool
    settle_taxes: bool
    roth_conversion_rate: float | None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "simulation") -> "SimulationConfig":
        return cls(
            start=_optional(data, "start"),
            end=_optional(data, "end"),
            rmd_enabled=bool(_optional(data, "rmd_enabled", True)),
            settle_taxes=bool(_optional(data, "settle_taxes", True)),
            roth_conversion_rate=_optional_float(data, "roth_conversion_rate", path),
        )

    def settings(self) -> SimulationSettings:
        return SimulationSettings(
            rmd_enabled=self.rmd_enabled,
            settle_taxes=self.settle_taxes,
            roth_conversion_rate=self.roth_conversion_rate,
        )


@dataclass(slots=True)
class Profile:
    person: PersonConfig
    accounts: list[AccountConfig]
    jobs: list[JobConfig] = field(default_factory=list)
    emergency_fund: EmergencyFundConfig = field(default_factory=lambda: EmergencyFundConfig.from_dict({}))
    simulation: SimulationConfig = field(default_factory=lambda: SimulationConfig.from_dict({}))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        return cls(
            person=PersonConfig.from_dict(_expect_dict(_require(data, "person", "profile"), "person")),
            accounts=[
                AccountConfig.from_dict(_expect_dict(item, f"accounts[{idx}]"), f"accounts[{idx}]")
                for idx, item in enumerate(_expect_list(_require(data, "accounts", "profile"), "accounts"))
            ],
            jobs=[
                JobConfig.from_dict(_expect_dict(item, f"jobs[{idx}]"), f"jobs[{idx}]")
                for idx, item in enumerate(_expect_list(_optional(data, "jobs", []), "jobs"))
            ],
            emergency_fund=EmergencyFundConfig.from_dict(
                _expect_dict(_optional(data, "emergency_fund", {}), "emergency_fund")
            ),
            simulation=SimulationConfig.from_dict(_expect_dict(_optional(data, "simulation", {}), "simulation")),
        )

    def start_date(self) -> date:
        if self.simulation.start:
            return parse_date(self.simulation.start, "simulation.start").replace(day=1)
        return date.today().replace(day=1)

    def end_date(self) -> date | None:
        if self.simulation.end:
            return parse_date(self.simulation.end, "simulation.end").replace(day=1)
        return None


def _build_job(config: JobConfig, path: str) -> Job:
    return Job(
        title=config.title,
        start_date=parse_date(config.start_date, f"{path}.start_date") if config.start_date else None,
        end_date=parse_date(config.end_date, f"{path}.end_date") if config.end_date else None,
        job_type=JobType(config.job_type),
        payment_type=PaymentType(config.payment_type),
        pay_frequency=PayFrequency(config.pay_frequency),
        salary=config.salary,
        hourly_rate=config.hourly_rate,
        hours_per_week=config.hours_per_week,
        raise_rate=config.raise_rate,
        bonus=config.bonus,
        personal_contribution_percent=config.personal_contribution_percent,
        employer_match_percent=config.employer_match_percent,
        roth_fraction=config.roth_fraction,
    )


def build_person(profile: Profile, as_of: date | None = None) -> Person:
    """Create the domain person with accounts opened at ``as_of`` (default: simulation start)."""
    opened = as_of or profile.start_date()
    cfg = profile.person
    person = Person(
        name=cfg.name,
        birth_date=parse_date(cfg.birth_date, "person.birth_date"),
        gender=cfg.gender,
        filing_status=cfg.filing_status,
        full_retirement_age=cfg.full_retirement_age,
        part_time_age=cfg.part_time_age,
        part_time_end_age=cfg.part_time_end_age,
        social_security_claiming_age=cfg.social_security_claiming_age,
        social_security_monthly_benefit=cfg.social_security_monthly_benefit,
        essential_expenses=cfg.essential_expenses,
        discretionary_expenses=cfg.discretionary_expenses,
        inflation_rate=cfg.inflation_rate,
        jobs=[_build_job(job, f"jobs[{idx}]") for idx, job in enumerate(profile.jobs)],
        emergency_fund=EmergencyFundPolicy(
            pre_retirement_months=profile.emergency_fund.pre_retirement_months,
            early_retirement_months=profile.emergency_fund.early_retirement_months,
            post_retirement_months=profile.emergency_fund.post_retirement_months,
        ),
        tax_exempt_interest=cfg.tax_exempt_interest,
        separation_from_service_age=cfg.separation_from_service_age,
        hsa_family_coverage=cfg.hsa_family_coverage,
        roth_conversions=cfg.roth_conversions,
    )
    for account in profile.accounts:
        person.add_account(
            Account.open(account.name, AccountKind(account.type), account.balance, opened, growth_rate=account.growth_rate)
        )
    return person


def load_profile(path: str | Path) -> Profile:
    """Load profile JSON into strongly-typed dataclasses."""
    source = Path(path)
    raw = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise SchemaError("profile: root must be a JSON object")
    return Profile.from_dict(raw)

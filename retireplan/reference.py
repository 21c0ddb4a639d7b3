"""Year-indexed tax and limit reference data with previous-year fallback."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from .tax_data import (
    ADDITIONAL_MEDICARE_RATE,
    DEFAULT_ADDITIONAL_DEDUCTIONS,
    DEFAULT_AMT,
    DEFAULT_BRACKETS,
    DEFAULT_CONTRIBUTION_LIMITS,
    DEFAULT_FICA,
    DEFAULT_ROTH_IRA_PHASEOUT,
    DEFAULT_STANDARD_DEDUCTIONS,
    DEFAULT_TAX_YEAR,
    FILING_STATUS_ALIASES,
    NIIT_RATE,
    SOCIAL_SECURITY_TAX_THRESHOLDS,
    SURTAX_THRESHOLDS,
)

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_PATH = Path(__file__).with_name("tax_years.json")


def _readonly(values: Mapping[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(values))


@dataclass(frozen=True, slots=True)
class Bracket:
    lower_bound: float
    upper_bound: float | None
    rate: float


@dataclass(frozen=True, slots=True)
class AmtParameters:
    exemption: Mapping[str, float]
    phaseout_start: Mapping[str, float]
    rate_breakpoint: Mapping[str, float]

    def __post_init__(self) -> None:
        for name in ("exemption", "phaseout_start", "rate_breakpoint"):
            object.__setattr__(self, name, _readonly(getattr(self, name)))


@dataclass(frozen=True, slots=True)
class ContributionLimits:
    k401_personal: float
    k401_catch_up: float
    k401_super_catch_up: float
    k401_total: float
    ira: float
    ira_catch_up: float
    hsa_self: float
    hsa_family: float
    hsa_catch_up: float
    compensation: float
    roth_ira_phaseout: Mapping[str, tuple[float, float]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "roth_ira_phaseout", _readonly(self.roth_ira_phaseout))


@dataclass(frozen=True, slots=True)
class TaxYear:
    year: int
    brackets: Mapping[str, tuple[Bracket, ...]]
    standard_deduction: Mapping[str, float]
    additional_deduction: Mapping[str, float]
    niit_rate: float
    niit_thresholds: Mapping[str, float]
    additional_medicare_rate: float
    additional_medicare_thresholds: Mapping[str, float]
    social_security_thresholds: Mapping[str, tuple[float, float]]
    amt: AmtParameters
    fica: Mapping[str, float]
    limits: ContributionLimits

    def __post_init__(self) -> None:
        object.__setattr__(self, "brackets", _readonly({status: tuple(rows) for status, rows in self.brackets.items()}))
        for name in (
            "standard_deduction",
            "additional_deduction",
            "niit_thresholds",
            "additional_medicare_thresholds",
            "social_security_thresholds",
            "fica",
        ):
            object.__setattr__(self, name, _readonly(getattr(self, name)))

    @classmethod
    def builtin(cls, year: int = DEFAULT_TAX_YEAR) -> "TaxYear":
        brackets: dict[str, list[Bracket]] = {}
        for status, rows in DEFAULT_BRACKETS.items():
            lower = 0.0
            converted: list[Bracket] = []
            for upper, rate in rows:
                converted.append(Bracket(lower_bound=lower, upper_bound=upper, rate=rate))
                if upper is not None:
                    lower = upper
            brackets[status] = converted

        return cls(
            year=year,
            brackets=brackets,
            standard_deduction=dict(DEFAULT_STANDARD_DEDUCTIONS),
            additional_deduction=dict(DEFAULT_ADDITIONAL_DEDUCTIONS),
            niit_rate=NIIT_RATE,
            niit_thresholds=dict(SURTAX_THRESHOLDS),
            additional_medicare_rate=ADDITIONAL_MEDICARE_RATE,
            additional_medicare_thresholds=dict(SURTAX_THRESHOLDS),
            social_security_thresholds=dict(SOCIAL_SECURITY_TAX_THRESHOLDS),
            amt=AmtParameters(
                exemption={status: values[0] for status, values in DEFAULT_AMT.items()},
                phaseout_start={status: values[1] for status, values in DEFAULT_AMT.items()},
                rate_breakpoint={status: values[2] for status, values in DEFAULT_AMT.items()},
            ),
            fica=dict(DEFAULT_FICA),
            limits=_limits_from_dict(DEFAULT_CONTRIBUTION_LIMITS, DEFAULT_ROTH_IRA_PHASEOUT),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "years[]") -> "TaxYear":
        year = int(_field(data, "year", path))
        brackets = {
            status: [
                Bracket(
                    lower_bound=float(_field(row, "lower_bound", f"{path}.brackets.{status}")),
                    upper_bound=None if row.get("upper_bound") is None else float(row["upper_bound"]),
                    rate=float(_field(row, "rate", f"{path}.brackets.{status}")),
                )
                for row in rows
            ]
            for status, rows in _field(data, "brackets", path).items()
        }
        niit = _field(data, "niit", path)
        medicare = _field(data, "additional_medicare", path)
        amt = _field(data, "amt", path)
        limits_raw = dict(_field(data, "contribution_limits", path))
        phaseout_raw = limits_raw.pop("roth_ira_phaseout", {})

        return cls(
            year=year,
            brackets=brackets,
            standard_deduction=_floats(_field(data, "standard_deduction", path)),
            additional_deduction=_floats(data.get("additional_deduction", DEFAULT_ADDITIONAL_DEDUCTIONS)),
            niit_rate=float(niit.get("rate", NIIT_RATE)),
            niit_thresholds=_floats(_field(niit, "thresholds", f"{path}.niit")),
            additional_medicare_rate=float(medicare.get("rate", ADDITIONAL_MEDICARE_RATE)),
            additional_medicare_thresholds=_floats(_field(medicare, "thresholds", f"{path}.additional_medicare")),
            social_security_thresholds={
                status: (float(pair[0]), float(pair[1]))
                for status, pair in data.get("social_security_thresholds", SOCIAL_SECURITY_TAX_THRESHOLDS).items()
            },
            amt=AmtParameters(
                exemption=_floats(_field(amt, "exemption", f"{path}.amt")),
                phaseout_start=_floats(_field(amt, "phaseout_start", f"{path}.amt")),
                rate_breakpoint=_floats(_field(amt, "rate_breakpoint", f"{path}.amt")),
            ),
            fica=_floats(data.get("fica", DEFAULT_FICA)),
            limits=_limits_from_dict(
                {**DEFAULT_CONTRIBUTION_LIMITS, **limits_raw},
                {status: (float(pair[0]), float(pair[1])) for status, pair in phaseout_raw.items()} or DEFAULT_ROTH_IRA_PHASEOUT,
            ),
        )

    def status_key(self, filing_status: str) -> str:
        status = FILING_STATUS_ALIASES.get(filing_status, filing_status)
        if status in self.brackets:
            return status
        return "single"


def _field(data: dict[str, Any], key: str, path: str) -> Any:
    if key not in data:
        raise ValueError(f"{path}.{key}: missing required field")
    return data[key]


def _floats(values: dict[str, Any]) -> dict[str, float]:
    return {key: float(value) for key, value in values.items()}


def _limits_from_dict(values: dict[str, Any], phaseout: dict[str, tuple[float, float]]) -> ContributionLimits:
    return ContributionLimits(
        k401_personal=float(values["401k_personal"]),
        k401_catch_up=float(values["401k_catch_up"]),
        k401_super_catch_up=float(values.get("401k_super_catch_up", 0.0)),
        k401_total=float(values["401k_total"]),
        ira=float(values["ira"]),
        ira_catch_up=float(values["ira_catch_up"]),
        hsa_self=float(values["hsa_self"]),
        hsa_family=float(values["hsa_family"]),
        hsa_catch_up=float(values["hsa_catch_up"]),
        compensation=float(values["compensation"]),
        roth_ira_phaseout=dict(phaseout),
    )


@dataclass(frozen=True, slots=True)
class ReferenceData:
    """Read-only tax-year tables keyed by year.

    Lookups for a missing year use the latest earlier year, then the earliest
    available year, and finally the built-in defaults.
    """

    years: Mapping[int, TaxYear] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "years", _readonly(self.years))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReferenceData":
        rows = data.get("years")
        if not isinstance(rows, list):
            raise ValueError("years: expected array")
        years: dict[int, TaxYear] = {}
        for idx, row in enumerate(rows):
            tax_year = TaxYear.from_dict(row, f"years[{idx}]")
            years[tax_year.year] = tax_year
        return cls(years=years)

    @classmethod
    def default(cls) -> "ReferenceData":
        return default_reference()

    def for_year(self, year: int) -> TaxYear:
        found = self.years.get(year)
        if found is not None:
            return found

        earlier = [y for y in self.years if y < year]
        if earlier:
            chosen = max(earlier)
            logger.debug("No reference data for %s; using %s", year, chosen)
            return self.years[chosen]
        if self.years:
            chosen = min(self.years)
            logger.debug("No reference data for %s; using earliest year %s", year, chosen)
            return self.years[chosen]

        logger.debug("No reference data loaded; using built-in defaults for %s", year)
        return _builtin_tax_year()


def load_reference_data(path: str | Path | None = None) -> ReferenceData:
    source = Path(path) if path is not None else DEFAULT_REFERENCE_PATH
    raw = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("root: expected object")
    return ReferenceData.from_dict(raw)


@lru_cache(maxsize=1)
def _builtin_tax_year() -> TaxYear:
    return TaxYear.builtin()


@lru_cache(maxsize=1)
def default_reference() -> ReferenceData:
    return load_reference_data()

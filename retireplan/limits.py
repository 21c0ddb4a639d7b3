"""IRS contribution limits by account kind, year and age."""

from __future__ import annotations

import math

from .reference import ContributionLimits, ReferenceData
from .tax_data import CATCH_UP_AGE, HSA_CATCH_UP_AGE, SUPER_CATCH_UP_AGES


def _limits(year: int, reference: ReferenceData | None) -> ContributionLimits:
    return (reference or ReferenceData.default()).for_year(year).limits


def catch_up_401k(year: int, age: int, reference: ReferenceData | None = None) -> float:
    limits = _limits(year, reference)
    low, high = SUPER_CATCH_UP_AGES
    if low <= age <= high and limits.k401_super_catch_up > 0:
        return limits.k401_super_catch_up
    if age >= CATCH_UP_AGE:
        return limits.k401_catch_up
    return 0.0


def personal_401k_limit(year: int, age: int, reference: ReferenceData | None = None) -> float:
    """Elective deferral limit shared by traditional and Roth 401(k) contributions."""
    return _limits(year, reference).k401_personal + catch_up_401k(year, age, reference)


def total_401k_limit(year: int, age: int, reference: ReferenceData | None = None) -> float:
    """Combined employee and employer limit (section 415(c)) plus catch-up."""
    return _limits(year, reference).k401_total + catch_up_401k(year, age, reference)


def ira_limit(year: int, age: int, reference: ReferenceData | None = None) -> float:
    limits = _limits(year, reference)
    return limits.ira + (limits.ira_catch_up if age >= CATCH_UP_AGE else 0.0)


def hsa_limit(year: int, age: int, family: bool = False, reference: ReferenceData | None = None) -> float:
    limits = _limits(year, reference)
    base = limits.hsa_family if family else limits.hsa_self
    return base + (limits.hsa_catch_up if age >= HSA_CATCH_UP_AGE else 0.0)


def compensation_limit(year: int, reference: ReferenceData | None = None) -> float:
    return _limits(year, reference).compensation


def roth_ira_limit(
    year: int,
    age: int,
    magi: float,
    filing_status: str,
    reference: ReferenceData | None = None,
) -> float:
    """Roth IRA contribution allowed after the MAGI phase-out.

    The reduced limit rounds up to the next $10 and is never below $200 while
    any contribution is still allowed.
    """
    full = ira_limit(year, age, reference)
    phaseout = _limits(year, reference).roth_ira_phaseout
    start, end = phaseout.get(filing_status, phaseout.get("single", (0.0, 0.0)))
    if magi <= start:
        return full
    if magi >= end or end <= start:
        return 0.0

    reduced = full * (end - magi) / (end - start)
    reduced = math.ceil(reduced / 10.0) * 10.0
    return min(full, max(200.0, reduced))

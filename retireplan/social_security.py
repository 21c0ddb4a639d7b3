"""Social Security benefit modeling."""

from __future__ import annotations

from .tax_data import PIA_BEND_POINTS, PIA_FACTORS, SOCIAL_SECURITY_EARLY_AGE, SOCIAL_SECURITY_MAX_CLAIM_AGE


def full_retirement_age(birth_year: int) -> float:
    """Full retirement age in years for a birth year."""
    if birth_year <= 1937:
        return 65.0
    if birth_year <= 1942:
        return 65.0 + 2.0 * (birth_year - 1937) / 12.0
    if birth_year <= 1954:
        return 66.0
    if birth_year <= 1959:
        return 66.0 + 2.0 * (birth_year - 1954) / 12.0
    return 67.0


def _months(age_years: float) -> int:
    return int(round(max(0.0, age_years) * 12.0))


def claiming_multiplier(claim_age: float, fra: float) -> float:
    """Benefit multiplier for claiming at ``claim_age`` relative to FRA.

    Early claims lose 5/9 of 1% per month for the first 36 months and 5/12 of
    1% beyond that. Delayed claims earn 2/3 of 1% per month up to age 70.
    """
    claim_age = min(claim_age, SOCIAL_SECURITY_MAX_CLAIM_AGE)
    diff = _months(claim_age) - _months(fra)
    if diff == 0:
        return 1.0
    if diff < 0:
        early = abs(diff)
        first_36 = min(36, early)
        additional = max(0, early - 36)
        reduction = first_36 * (5.0 / 900.0) + additional * (5.0 / 1200.0)
        return max(0.0, 1.0 - reduction)
    return 1.0 + diff * (2.0 / 300.0)


def primary_insurance_amount(
    aime: float,
    bend_points: tuple[float, float] = PIA_BEND_POINTS,
    factors: tuple[float, float, float] = PIA_FACTORS,
) -> float:
    """PIA from average indexed monthly earnings."""
    if aime <= 0:
        return 0.0
    first, second = bend_points
    pia = factors[0] * min(aime, first)
    if aime > first:
        pia += factors[1] * (min(aime, second) - first)
    if aime > second:
        pia += factors[2] * (aime - second)
    return pia


def monthly_benefit(
    pia: float,
    *,
    age: float,
    claim_age: float,
    fra: float,
    cola_rate: float = 0.0,
) -> float:
    """Monthly benefit payable at ``age`` for a claim made at ``claim_age``."""
    claim_age = max(SOCIAL_SECURITY_EARLY_AGE, min(claim_age, SOCIAL_SECURITY_MAX_CLAIM_AGE))
    if pia <= 0 or _months(age) < _months(claim_age):
        return 0.0
    years_after_claim = (_months(age) - _months(claim_age)) // 12
    return pia * claiming_multiplier(claim_age, fra) * ((1.0 + cola_rate) ** years_after_claim)


def break_even_age(pia: float, early_claim_age: float, late_claim_age: float, fra: float) -> float | None:
    """Age at which cumulative benefits from the later claim overtake the earlier one."""
    if pia <= 0 or late_claim_age <= early_claim_age:
        return None
    early = pia * claiming_multiplier(early_claim_age, fra)
    late = pia * claiming_multiplier(late_claim_age, fra)
    if late <= early:
        return None

    head_start = early * (_months(late_claim_age) - _months(early_claim_age))
    months_to_catch_up = head_start / (late - early)
    return late_claim_age + months_to_catch_up / 12.0

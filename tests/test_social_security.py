import pytest

from retireplan.social_security import (
    break_even_age,
    claiming_multiplier,
    full_retirement_age,
    monthly_benefit,
    primary_insurance_amount,
)


@pytest.mark.parametrize(
    ("birth_year", "expected"),
    [(1936, 65.0), (1940, 65.5), (1950, 66.0), (1957, 66.5), (1960, 67.0)],
)
def test_full_retirement_age(birth_year, expected):
    assert full_retirement_age(birth_year) == pytest.approx(expected)


def test_claiming_multiplier():
    assert claiming_multiplier(67, 67) == 1.0
    assert claiming_multiplier(62, 67) == pytest.approx(0.70)
    assert claiming_multiplier(70, 67) == pytest.approx(1.24)
    assert claiming_multiplier(72, 67) == pytest.approx(1.24)


def test_primary_insurance_amount_bend_points():
    assert primary_insurance_amount(0) == 0.0
    assert primary_insurance_amount(1_000) == pytest.approx(900)
    assert primary_insurance_amount(5_000) == pytest.approx(0.9 * 1_115 + 0.32 * (5_000 - 1_115))


def test_monthly_benefit_starts_at_claim_age_and_applies_cola():
    assert monthly_benefit(2_000, age=66.9, claim_age=67, fra=67) == 0.0
    assert monthly_benefit(2_000, age=67, claim_age=67, fra=67) == pytest.approx(2_000)
    assert monthly_benefit(2_000, age=69, claim_age=67, fra=67, cola_rate=0.02) == pytest.approx(2_000 * 1.02**2)


def test_monthly_benefit_clamps_claim_age():
    assert monthly_benefit(2_000, age=61, claim_age=60, fra=67) == 0.0
    assert monthly_benefit(2_000, age=62, claim_age=60, fra=67) == pytest.approx(1_400)


def test_break_even_age():
    assert break_even_age(1_000, 62, 70, 67) == pytest.approx(70 + (700 * 96 / 540) / 12)
    assert break_even_age(1_000, 70, 62, 67) is None
    assert break_even_age(0, 62, 70, 67) is None

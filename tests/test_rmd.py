import pytest

from retireplan.rmd import compute_rmd_amount, divisor_for_age, missed_rmd_penalty, rmd_start_age


def test_compute_rmd_amount_for_age_74():
    assert round(compute_rmd_amount(400_000, 74), 2) == 15_686.27


def test_compute_rmd_amount_for_age_73():
    assert round(compute_rmd_amount(265_000, 73), 2) == 10_000.00


@pytest.mark.parametrize(
    ("birth_year", "expected"),
    [(1949, 72), (1950, 72), (1951, 73), (1959, 73), (1960, 75), (1985, 75)],
)
def test_rmd_start_age_by_cohort(birth_year, expected):
    assert rmd_start_age(birth_year) == expected


def test_divisor_bounds():
    assert divisor_for_age(71) is None
    assert divisor_for_age(72) == 27.4
    assert divisor_for_age(125) == 2.0
    assert compute_rmd_amount(100_000, 65) == 0.0
    assert compute_rmd_amount(-5, 80) == 0.0


def test_missed_rmd_penalty():
    assert missed_rmd_penalty(10_000, 4_000) == pytest.approx(1_500)
    assert missed_rmd_penalty(10_000, 4_000, corrected=True) == pytest.approx(600)
    assert missed_rmd_penalty(10_000, 12_000) == 0.0

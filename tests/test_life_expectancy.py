from datetime import date

import pytest

from retireplan.life_expectancy import (
    MAX_TABLE_AGE,
    MORTALITY_RATES,
    life_expectancy_age,
    mortality_rate,
    remaining_life_expectancy,
)
from tests.helpers import make_person


def test_table_covers_every_age():
    assert sorted(MORTALITY_RATES) == list(range(MAX_TABLE_AGE + 1))


def test_mortality_rate_by_gender():
    assert mortality_rate(65, "male") == 0.00854
    assert mortality_rate(65, "female") == 0.00614
    assert mortality_rate(65) == pytest.approx((0.00854 + 0.00614) / 2)
    assert mortality_rate(130) == 1.0


def test_women_outlive_men():
    male = remaining_life_expectancy(65, "male")
    female = remaining_life_expectancy(65, "female")
    assert female > male
    assert male < remaining_life_expectancy(65) < female


def test_remaining_years_shrink_with_age():
    values = [remaining_life_expectancy(age, "male") for age in range(40, 110, 10)]
    assert values == sorted(values, reverse=True)
    assert remaining_life_expectancy(125) == 0.5


def test_person_life_expectancy_uses_gender():
    person = make_person(date(1960, 1, 1), gender="female")
    on = date(2025, 6, 1)
    assert person.life_expectancy(on) == pytest.approx(life_expectancy_age(65, "female"))
    assert person.life_expectancy(on) > 65

"""Jobs and payroll calendars."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from enum import Enum


class JobType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"


class PaymentType(str, Enum):
    HOURLY = "hourly"
    SALARIED = "salaried"


class PayFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMIMONTHLY = "semimonthly"
    MONTHLY = "monthly"


PERIODS_PER_YEAR: dict[PayFrequency, int] = {
    PayFrequency.WEEKLY: 52,
    PayFrequency.BIWEEKLY: 26,
    PayFrequency.SEMIMONTHLY: 24,
    PayFrequency.MONTHLY: 12,
}

WEEKS_PER_YEAR = 52


def _month_days(year: int, month: int) -> list[date]:
    _, last = calendar.monthrange(year, month)
    return [date(year, month, day) for day in range(1, last + 1)]


def paydays_in_month(frequency: PayFrequency, year: int, month: int) -> list[date]:
    """Paydays in a calendar month.

    Weekly pay lands on Fridays, biweekly on every fourteenth day of the year,
    semimonthly on the 15th and the last day, monthly on the last day.
    """
    days = _month_days(year, month)
    if frequency == PayFrequency.WEEKLY:
        return [d for d in days if d.weekday() == calendar.FRIDAY]
    if frequency == PayFrequency.BIWEEKLY:
        return [d for d in days if d.timetuple().tm_yday % 14 == 0]
    if frequency == PayFrequency.SEMIMONTHLY:
        return [days[14], days[-1]]
    return [days[-1]]


@dataclass(slots=True)
class Job:
    title: str
    start_date: date | None = None
    end_date: date | None = None
    job_type: JobType = JobType.FULL_TIME
    payment_type: PaymentType = PaymentType.SALARIED
    pay_frequency: PayFrequency = PayFrequency.BIWEEKLY
    salary: float = 0.0
    hourly_rate: float = 0.0
    hours_per_week: float = 40.0
    raise_rate: float = 0.0
    bonus: float = 0.0
    personal_contribution_percent: float = 0.0
    employer_match_percent: float = 0.0
    # Fraction of personal contributions sent to Roth; None picks the optimal split.
    roth_fraction: float | None = None

    def base_annual_pay(self) -> float:
        if self.payment_type == PaymentType.HOURLY:
            return self.hourly_rate * self.hours_per_week * WEEKS_PER_YEAR
        return self.salary

    def gross_annual_income(self) -> float:
        return self.base_annual_pay() + self.bonus

    def is_active(self, on: date) -> bool:
        if self.start_date is not None and on < self.start_date:
            return False
        if self.end_date is not None and on > self.end_date:
            return False
        return True

    def paydays(self, year: int, month: int) -> list[date]:
        return [d for d in paydays_in_month(self.pay_frequency, year, month) if self.is_active(d)]

    def paycheck_amount(self) -> float:
        return self.base_annual_pay() / PERIODS_PER_YEAR[self.pay_frequency]

    def gross_pay_for_month(self, year: int, month: int) -> float:
        """Gross pay for the month; the annual bonus is paid with December pay."""
        gross = self.paycheck_amount() * len(self.paydays(year, month))
        if month == 12 and self.bonus > 0 and self.is_active(date(year, 12, 1)):
            gross += self.bonus
        return gross

    def annual_gross_for_year(self, year: int) -> float:
        return sum(self.gross_pay_for_month(year, month) for month in range(1, 13))

    def apply_raise(self) -> None:
        if self.raise_rate == 0:
            return
        self.salary *= 1.0 + self.raise_rate
        self.hourly_rate *= 1.0 + self.raise_rate
        self.bonus *= 1.0 + self.raise_rate


def optimal_roth_fraction(
    *,
    marginal_rate: float,
    age: float,
    years_to_full_retirement: float,
    early_retirement_candidate: bool,
) -> float:
    """Share of personal 401(k) contributions that should go to Roth.

    Only the employee's own deferrals are split. Employer match goes to the
    traditional 401(k), or to the Roth 401(k) when there is no traditional one.
    """
    young = age < 40 and years_to_full_retirement > 30
    if marginal_rate <= 0.12:
        return 1.0
    if marginal_rate >= 0.22:
        if early_retirement_candidate or young:
            return 0.6
        return 0.0
    if early_retirement_candidate or age < 40:
        return 0.7
    return 0.4

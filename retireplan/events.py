"""Lifecycle hooks, event payloads and one-shot milestones."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Any, Callable

from .person import Person
from .social_security import full_retirement_age
from .tax_data import (
    CATCH_UP_AGE,
    MEDICARE_AGE,
    PENALTY_FREE_AGE,
    RULE_OF_55_AGE,
    SOCIAL_SECURITY_EARLY_AGE,
)

logger = logging.getLogger(__name__)

NEW_YEAR = "new_year"
NEW_MONTH = "new_month"
BIRTHDAY = "birthday"
JOB_PAY = "job_pay"
SPENDING = "spending"
SHORTFALL = "shortfall"
TAXES_PAID = "taxes_paid"
MILESTONE = "milestone"

HOOKS = {NEW_YEAR, NEW_MONTH, BIRTHDAY, JOB_PAY, SPENDING, SHORTFALL, TAXES_PAID, MILESTONE}


@dataclass(frozen=True, slots=True)
class YearEvent:
    date: date
    year: int


@dataclass(frozen=True, slots=True)
class MonthEvent:
    date: date
    age: float


@dataclass(frozen=True, slots=True)
class BirthdayEvent:
    date: date
    age: int


@dataclass(frozen=True, slots=True)
class JobPayEvent:
    date: date
    job: str
    gross: float
    traditional_contribution: float
    roth_contribution: float
    employer_match: float
    withheld: float
    net: float


@dataclass(frozen=True, slots=True)
class SpendingEvent:
    date: date
    requested: float
    withdrawn: float


@dataclass(frozen=True, slots=True)
class ShortfallEvent:
    date: date
    reason: str
    requested: float
    shortfall: float


@dataclass(frozen=True, slots=True)
class TaxesPaidEvent:
    date: date
    year: int
    liability: float
    withheld: float
    paid: float
    refund: float


@dataclass(frozen=True, slots=True)
class MilestoneEvent:
    date: date
    name: str
    age: float


class EventBus:
    """Named hooks with per-simulation subscriber lists."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Callable[[Any], None]]] = defaultdict(list)

    def subscribe(self, hook: str, callback: Callable[[Any], None]) -> None:
        if hook not in HOOKS:
            expected = ", ".join(sorted(HOOKS))
            raise ValueError(f"unknown hook '{hook}'; expected one of [{expected}]")
        self._subscribers[hook].append(callback)

    def publish(self, hook: str, payload: Any) -> None:
        for callback in list(self._subscribers.get(hook, ())):
            callback(payload)


@dataclass(slots=True)
class Milestone:
    name: str
    trigger: Callable[[Person, float], bool]
    callback: Callable[[Person, float], None] | None = None
    fired: bool = field(default=False)

    def check_and_fire(self, person: Person, age: float) -> bool:
        """Fire once when the trigger first holds; returns True only on that call."""
        if self.fired or not self.trigger(person, age):
            return False
        self.fired = True
        logger.info("Milestone reached: %s at age %.1f", self.name, age)
        if self.callback is not None:
            self.callback(person, age)
        return True

    def reset(self) -> None:
        self.fired = False


def _age_reached(threshold: float) -> Callable[[Person, float], bool]:
    return lambda _person, age: age >= threshold


def standard_milestones(person: Person) -> list[Milestone]:
    fra = person.full_retirement_age or full_retirement_age(person.birth_date.year)
    milestones = [
        Milestone("catch_up_contributions", _age_reached(CATCH_UP_AGE)),
        Milestone("rule_of_55", _age_reached(RULE_OF_55_AGE)),
        Milestone("penalty_free_withdrawals", _age_reached(PENALTY_FREE_AGE)),
        Milestone("social_security_eligible", _age_reached(SOCIAL_SECURITY_EARLY_AGE)),
        Milestone("medicare_eligible", _age_reached(MEDICARE_AGE)),
        Milestone("full_retirement_age", _age_reached(fra)),
        Milestone("rmd_start", _age_reached(person.rmd_start_age)),
    ]
    return milestones

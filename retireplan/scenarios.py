"""What-if scenarios run from independent clones of one person."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
import logging
from typing import Callable, Iterable

from .engine import EngineResult, SimulationContext, SimulationSettings, run_simulation
from .person import Person
from .reference import ReferenceData

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Scenario:
    name: str
    adjust: Callable[[Person], None] | None = None
    settings: SimulationSettings | None = None


@dataclass(slots=True)
class ScenarioSummary:
    name: str
    ending_net_worth: float
    first_shortfall: date | None
    total_shortfall: float
    total_taxes: float
    result: EngineResult


def run_scenario(
    base: Person,
    scenario: Scenario,
    *,
    start: date | None = None,
    end: date | None = None,
    reference: ReferenceData | None = None,
) -> ScenarioSummary:
    person = base.clone()
    if scenario.adjust is not None:
        scenario.adjust(person)
    context = SimulationContext(
        reference=reference or ReferenceData.default(),
        settings=scenario.settings or SimulationSettings(),
    )
    result = run_simulation(person, start=start, end=end, context=context)
    return ScenarioSummary(
        name=scenario.name,
        ending_net_worth=result.final_net_worth,
        first_shortfall=result.first_shortfall_date,
        total_shortfall=result.total_shortfall,
        total_taxes=sum(settlement.result.total_tax for settlement in result.taxes),
        result=result,
    )


def run_scenarios(
    base: Person,
    scenarios: Iterable[Scenario],
    *,
    start: date | None = None,
    end: date | None = None,
    reference: ReferenceData | None = None,
    workers: int = 1,
) -> list[ScenarioSummary]:
    """Run each scenario against its own clone of ``base``; order follows ``scenarios``."""
    items = list(scenarios)
    logger.info("Running %d scenario(s) with %d worker(s)", len(items), workers)

    def _run(scenario: Scenario) -> ScenarioSummary:
        return run_scenario(base, scenario, start=start, end=end, reference=reference)

    if workers <= 1:
        return [_run(scenario) for scenario in items]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(_run, items))


def claiming_age_scenarios(ages: Iterable[float]) -> list[Scenario]:
    def _claim_at(age: float) -> Callable[[Person], None]:
        def adjust(person: Person) -> None:
            person.social_security_claiming_age = age

        return adjust

    return [Scenario(name=f"claim_at_{age:g}", adjust=_claim_at(age)) for age in ages]

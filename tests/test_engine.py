from datetime import date

import pytest

from retireplan.accounts import AccountKind, TransactionCategory
from retireplan.engine import SimulationContext, SimulationSettings, default_end_date, run_simulation
from retireplan.events import JOB_PAY, NEW_YEAR, SHORTFALL, EventBus
from retireplan.income import Job, PayFrequency
from retireplan.person import LifeStage
from tests.helpers import make_person


def test_401k_grows_to_age_100():
    person = make_person(
        date(1998, 1, 14),
        [("401k", AccountKind.TRADITIONAL_401K, 75_000)],
    )
    person.account("401k").growth_rate = 0.05
    context = SimulationContext(settings=SimulationSettings(rmd_enabled=False))

    result = run_simulation(person, start=date(2025, 2, 1), context=context)

    assert result.snapshots[-1].date == default_end_date(person) == date(2098, 1, 1)
    assert person.exact_age(date(2025, 2, 1)) == 27.0
    expected = 75_000 * 1.05**73
    assert result.final_net_worth == pytest.approx(expected, rel=0.01)
    assert result.shortfalls == []


def test_retiree_takes_required_minimum_distributions():
    person = make_person(
        date(1951, 1, 1),
        [("IRA", AccountKind.TRADITIONAL_IRA, 500_000), ("Cash", AccountKind.SAVINGS, 0)],
    )

    result = run_simulation(person, start=date(2025, 1, 1), end=date(2027, 12, 1))

    december = [snap for snap in result.snapshots if snap.date.month == 12]
    assert december[0].rmd_required == pytest.approx(500_000 / 25.5)
    assert december[0].rmd_taken == pytest.approx(500_000 / 25.5)
    assert december[0].life_stage == LifeStage.RETIRED_POST_RMD

    ira = person.account("IRA")
    for year in (2025, 2026, 2027):
        required = ira.required_minimum_distribution(date(year, 12, 1))
        assert required > 0
        assert ira.distributions_in_year(year) >= required - 0.01
    assert person.account("Cash").deposits_in(2025, [TransactionCategory.RMD]) == pytest.approx(500_000 / 25.5)


def test_shortfalls_are_events_not_errors():
    bus = EventBus()
    seen = []
    bus.subscribe(SHORTFALL, seen.append)
    person = make_person(date(1980, 1, 1), [("Cash", AccountKind.SAVINGS, 1_000)], essential_expenses=24_000)
    context = SimulationContext(bus=bus, settings=SimulationSettings(settle_taxes=False))

    result = run_simulation(person, start=date(2025, 1, 1), end=date(2025, 12, 1), context=context)

    assert len(result.snapshots) == 12
    assert result.first_shortfall_date == date(2025, 1, 1)
    assert result.total_shortfall == pytest.approx(23_000)
    assert len(seen) == 12
    assert seen[0].reason == "expenses"
    assert result.snapshots[0].shortfall == pytest.approx(1_000)


def test_payroll_contributions_capped_across_paychecks():
    person = make_person(
        date(1990, 1, 1),
        [("401k", AccountKind.TRADITIONAL_401K, 0), ("Cash", AccountKind.SAVINGS, 0)],
        jobs=[
            Job(
                title="Engineer",
                salary=120_000,
                pay_frequency=PayFrequency.MONTHLY,
                personal_contribution_percent=0.30,
                employer_match_percent=0.05,
                roth_fraction=0.0,
            )
        ],
    )
    pay_events = []
    context = SimulationContext()
    context.bus.subscribe(JOB_PAY, pay_events.append)

    result = run_simulation(person, start=date(2025, 1, 1), end=date(2025, 12, 1), context=context)

    plan = person.account("401k")
    assert plan.contributions_in_year(2025, [TransactionCategory.CONTRIBUTION_PERSONAL]) == pytest.approx(23_500)
    assert plan.contributions_in_year(2025, [TransactionCategory.CONTRIBUTION_EMPLOYER]) == pytest.approx(6_000)
    assert len(pay_events) == 12
    assert pay_events[7].traditional_contribution == pytest.approx(2_500)
    assert pay_events[8].traditional_contribution == 0.0
    assert result.snapshots[0].salary == pytest.approx(10_000)
    assert result.snapshots[0].life_stage == LifeStage.WORKING
    assert [settlement.year for settlement in result.taxes] == [2025]
    assert person.account("Cash").balance(date(2025, 12, 31)) > 0


def test_roth_split_shares_personal_limit():
    person = make_person(
        date(1990, 1, 1),
        [
            ("401k", AccountKind.TRADITIONAL_401K, 0),
            ("Roth 401k", AccountKind.ROTH_401K, 0),
            ("Cash", AccountKind.SAVINGS, 0),
        ],
        jobs=[
            Job(
                title="Engineer",
                salary=240_000,
                pay_frequency=PayFrequency.MONTHLY,
                personal_contribution_percent=0.20,
                roth_fraction=0.5,
            )
        ],
    )

    run_simulation(person, start=date(2025, 1, 1), end=date(2025, 12, 1))

    personal = [TransactionCategory.CONTRIBUTION_PERSONAL]
    total = sum(person.account(name).contributions_in_year(2025, personal) for name in ("401k", "Roth 401k"))
    assert total == pytest.approx(23_500)
    assert person.account("Roth 401k").contributions_in_year(2025, personal) > 0


def test_new_year_raises_and_inflation():
    person = make_person(
        date(1980, 1, 1),
        [("Cash", AccountKind.SAVINGS, 100_000)],
        essential_expenses=12_000,
        inflation_rate=0.10,
        jobs=[Job(title="Engineer", salary=60_000, raise_rate=0.05, pay_frequency=PayFrequency.MONTHLY)],
    )
    years = []
    context = SimulationContext(settings=SimulationSettings(settle_taxes=False))
    context.bus.subscribe(NEW_YEAR, lambda event: years.append(event.year))

    result = run_simulation(person, start=date(2025, 1, 1), end=date(2026, 1, 1), context=context)

    assert years == [2025, 2026]
    assert result.snapshots[0].essential_expenses == pytest.approx(1_000)
    assert result.snapshots[-1].essential_expenses == pytest.approx(1_100)
    assert result.snapshots[-1].salary == pytest.approx(5_250)
    assert [detail.year for detail in result.account_years["Cash"]] == [2025, 2026]


def test_milestones_fire_on_crossing_only():
    person = make_person(date(1975, 6, 15), [("Cash", AccountKind.SAVINGS, 10_000)])

    result = run_simulation(person, start=date(2025, 1, 1), end=date(2025, 12, 1))

    assert [(event.name, event.date) for event in result.milestones] == [
        ("catch_up_contributions", date(2025, 7, 1)),
    ]


def test_snapshots_and_ledger_rows_per_month():
    person = make_person(
        date(1970, 1, 1),
        [("Cash", AccountKind.SAVINGS, 10_000), ("Brokerage", AccountKind.TAXABLE_BROKERAGE, 5_000)],
    )

    result = run_simulation(person, start=date(2025, 3, 1), end=date(2025, 8, 1))

    assert len(result.snapshots) == 6
    assert len(result.account_rows) == 12
    # Savings above the (zero) reserve is swept into the brokerage account.
    assert result.snapshots[0].balances == {"Cash": 0.0, "Brokerage": 15_000}
    assert result.final_net_worth == pytest.approx(15_000)


def test_end_before_start_rejected():
    person = make_person(date(1970, 1, 1))
    with pytest.raises(ValueError, match="before start date"):
        run_simulation(person, start=date(2025, 3, 1), end=date(2025, 1, 1))


def test_first_required_distribution_uses_age_at_year_end():
    person = make_person(
        date(1951, 12, 20),
        [("IRA", AccountKind.TRADITIONAL_IRA, 500_000), ("Cash", AccountKind.SAVINGS, 0)],
        opened=date(2024, 1, 1),
    )

    result = run_simulation(person, start=date(2024, 1, 1), end=date(2024, 12, 1))

    assert person.exact_age(date(2024, 12, 1)) < 73
    assert result.snapshots[-1].rmd_required == pytest.approx(500_000 / 26.5)
    assert result.snapshots[-1].rmd_taken == pytest.approx(500_000 / 26.5)


def test_distributions_kept_without_a_cash_account():
    person = make_person(date(1945, 1, 1), [("401k", AccountKind.TRADITIONAL_401K, 500_000)])
    context = SimulationContext(settings=SimulationSettings(settle_taxes=False))

    result = run_simulation(person, start=date(2025, 1, 1), end=date(2025, 12, 1), context=context)

    required = 500_000 / 20.2
    assert result.snapshots[-1].rmd_taken == pytest.approx(required)
    assert result.final_net_worth == pytest.approx(500_000)
    assert result.shortfalls == []
    cash = person.account("Cash")
    assert cash.kind == AccountKind.SAVINGS
    assert cash.deposits_in(2025, [TransactionCategory.RMD]) == pytest.approx(required)
    assert result.snapshots[-1].balances["Cash"] == pytest.approx(required)


def test_employer_match_goes_to_roth_401k_without_traditional_plan():
    person = make_person(
        date(1990, 1, 1),
        [("Roth 401k", AccountKind.ROTH_401K, 0), ("Cash", AccountKind.SAVINGS, 0)],
        jobs=[
            Job(
                title="Engineer",
                salary=120_000,
                pay_frequency=PayFrequency.MONTHLY,
                personal_contribution_percent=0.10,
                employer_match_percent=0.04,
                roth_fraction=1.0,
            )
        ],
    )

    run_simulation(person, start=date(2025, 1, 1), end=date(2025, 12, 1))

    plan = person.account("Roth 401k")
    assert plan.contributions_in_year(2025, [TransactionCategory.CONTRIBUTION_PERSONAL]) == pytest.approx(12_000)
    assert plan.contributions_in_year(2025, [TransactionCategory.CONTRIBUTION_EMPLOYER]) == pytest.approx(4_800)

"""Core month-by-month simulation engine."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
import logging

from .accounts import Account, AccountKind, TAX_DEFERRED_KINDS, TransactionCategory
from .events import (
    BIRTHDAY,
    JOB_PAY,
    MILESTONE,
    NEW_MONTH,
    NEW_YEAR,
    SHORTFALL,
    SPENDING,
    TAXES_PAID,
    BirthdayEvent,
    EventBus,
    JobPayEvent,
    Milestone,
    MilestoneEvent,
    MonthEvent,
    ShortfallEvent,
    SpendingEvent,
    TaxesPaidEvent,
    YearEvent,
    standard_milestones,
)
from .income import Job, optimal_roth_fraction
from .limits import personal_401k_limit
from .person import LifeStage, Person, YearToDate
from .reference import ReferenceData
from .roth import eligible_for_conversion, execute_roth_conversion, plan_roth_conversion
from .social_security import monthly_benefit
from .tax import TaxResult, compute_fica, compute_total_tax, marginal_rate, standard_deduction, summarize_year, tax_owed
from .withdrawals import cover_shortfall, deposit_income, invest_surplus_savings

logger = logging.getLogger(__name__)

# Amounts below a cent are treated as covered.
SHORTFALL_TOLERANCE = 0.01
DEFAULT_END_AGE = 100


@dataclass(slots=True)
class SimulationSettings:
    rmd_enabled: bool = True
    settle_taxes: bool = True
    # Bracket rate to fill with Roth conversions; None fills the current bracket.
    roth_conversion_rate: float | None = None


@dataclass(slots=True)
class SimulationContext:
    """Per-run collaborators: reference data, event subscribers and milestones."""

    reference: ReferenceData = field(default_factory=ReferenceData.default)
    bus: EventBus = field(default_factory=EventBus)
    milestones: list[Milestone] | None = None
    settings: SimulationSettings = field(default_factory=SimulationSettings)


@dataclass(frozen=True, slots=True)
class Snapshot:
    date: date
    age: float
    life_stage: LifeStage
    salary: float
    social_security: float
    total_income: float
    essential_expenses: float
    discretionary_expenses: float
    total_expenses: float
    withdrawals: float
    contributions: float
    rmd_required: float
    rmd_taken: float
    roth_converted: float
    taxes_paid: float
    shortfall: float
    net_worth: float
    balances: dict[str, float]


@dataclass(frozen=True, slots=True)
class AccountMonthRow:
    date: date
    account: str
    deposits: float
    withdrawals: float
    balance: float


@dataclass(slots=True)
class AccountYearDetail:
    year: int
    account: str
    starting_balance: float = 0.0
    contributions: float = 0.0
    withdrawals: float = 0.0
    growth: float = 0.0
    ending_balance: float = 0.0


@dataclass(slots=True)
class TaxSettlement:
    year: int
    date: date
    result: TaxResult
    withheld: float
    paid: float
    refund: float
    shortfall: float


@dataclass(slots=True)
class EngineResult:
    snapshots: list[Snapshot] = field(default_factory=list)
    account_rows: list[AccountMonthRow] = field(default_factory=list)
    account_years: dict[str, list[AccountYearDetail]] = field(default_factory=dict)
    shortfalls: list[ShortfallEvent] = field(default_factory=list)
    milestones: list[MilestoneEvent] = field(default_factory=list)
    taxes: list[TaxSettlement] = field(default_factory=list)

    @property
    def final_net_worth(self) -> float:
        return self.snapshots[-1].net_worth if self.snapshots else 0.0

    @property
    def total_shortfall(self) -> float:
        return sum(event.shortfall for event in self.shortfalls)

    @property
    def first_shortfall_date(self) -> date | None:
        return self.shortfalls[0].date if self.shortfalls else None


@dataclass(slots=True)
class _MonthTotals:
    salary: float = 0.0
    social_security: float = 0.0
    withdrawals: float = 0.0
    contributions: float = 0.0
    rmd_required: float = 0.0
    rmd_taken: float = 0.0
    roth_converted: float = 0.0
    taxes_paid: float = 0.0
    shortfall: float = 0.0


def _iter_months(start: date, end: date):
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield date(year, month, 1)
        month += 1
        if month > 12:
            month = 1
            year += 1


def _month_end(on: date) -> date:
    return date(on.year, on.month, calendar.monthrange(on.year, on.month)[1])


def default_end_date(person: Person, age: int = DEFAULT_END_AGE) -> date:
    return date(person.birth_date.year + age, person.birth_date.month, 1)


def _first(person: Person, kind: AccountKind) -> Account | None:
    matches = person.accounts_of(kind)
    return matches[0] if matches else None


def _record_shortfall(
    context: SimulationContext,
    result: EngineResult,
    totals: _MonthTotals,
    on: date,
    reason: str,
    requested: float,
    shortfall: float,
) -> None:
    event = ShortfallEvent(date=on, reason=reason, requested=requested, shortfall=shortfall)
    result.shortfalls.append(event)
    totals.shortfall += shortfall
    logger.warning("Shortfall on %s (%s): %.2f of %.2f uncovered", on.isoformat(), reason, shortfall, requested)
    context.bus.publish(SHORTFALL, event)


def _prime_milestones(person: Person, milestones: list[Milestone], start: date) -> None:
    # Thresholds already passed before the run are not crossings.
    age_before = person.exact_age(start - timedelta(days=1))
    for milestone in milestones:
        if milestone.trigger(person, age_before):
            milestone.fired = True


def _close_year(person: Person, year: int, through: date, result: EngineResult) -> None:
    growth_categories = [TransactionCategory.INTEREST]
    for account in person.accounts:
        growth = account.deposits_in(year, growth_categories) - account.withdrawals_in(year, growth_categories)
        withdrawals = account.withdrawals_in(year) - account.withdrawals_in(year, growth_categories)
        result.account_years.setdefault(account.name, []).append(
            AccountYearDetail(
                year=year,
                account=account.name,
                starting_balance=account.starting_balance(year),
                contributions=account.contributions_in_year(year),
                withdrawals=withdrawals,
                growth=growth,
                ending_balance=account.balance(through),
            )
        )


def _begin_year(person: Person, on: date, context: SimulationContext, result: EngineResult, *, first: bool) -> None:
    if not first:
        _close_year(person, on.year - 1, date(on.year - 1, 12, 31), result)
        for job in person.jobs:
            job.apply_raise()
        person.inflate_expenses()

    for account in person.accounts:
        account.start_year(on.year)
    person.ytd = YearToDate(year=on.year)
    logger.debug("Starting %s with net worth %.2f", on.year, person.net_worth(on))
    context.bus.publish(NEW_YEAR, YearEvent(date=on, year=on.year))


def _estimated_withholding(person: Person, taxable_wages: float, on: date, reference: ReferenceData) -> float:
    annualized = taxable_wages * 12.0
    deduction = standard_deduction(person.filing_status, on.year, age=person.age_at(on), reference=reference)
    return tax_owed(person.filing_status, max(0.0, annualized - deduction), on.year, reference) / 12.0


def _roth_fraction(person: Person, job: Job, on: date, reference: ReferenceData) -> float:
    if job.roth_fraction is not None:
        return job.roth_fraction
    deduction = standard_deduction(person.filing_status, on.year, age=person.age_at(on), reference=reference)
    rate = marginal_rate(person.filing_status, max(0.0, job.gross_annual_income() - deduction), on.year, reference)
    return optimal_roth_fraction(
        marginal_rate=rate,
        age=person.exact_age(on),
        years_to_full_retirement=person.years_to_full_retirement(on),
        early_retirement_candidate=person.is_early_retirement_candidate,
    )


def _process_job(person: Person, job: Job, on: date, context: SimulationContext, totals: _MonthTotals) -> None:
    gross = job.gross_pay_for_month(on.year, on.month)
    if gross <= 0:
        return
    reference = context.reference
    ytd = person.ytd

    traditional = _first(person, AccountKind.TRADITIONAL_401K)
    roth = _first(person, AccountKind.ROTH_401K)
    roth_fraction = _roth_fraction(person, job, on, reference)
    if roth is None:
        roth_fraction = 0.0
    elif traditional is None:
        roth_fraction = 1.0

    personal = gross * job.personal_contribution_percent
    if traditional is not None or roth is not None:
        used = sum(
            account.contributions_in_year(on.year, [TransactionCategory.CONTRIBUTION_PERSONAL])
            for account in (traditional, roth)
            if account is not None
        )
        room = personal_401k_limit(on.year, person.owner.age_at_year_end(on.year), reference) - used
        personal = max(0.0, min(personal, room))
    else:
        personal = 0.0

    traditional_amount = 0.0
    roth_amount = 0.0
    match_amount = 0.0
    if traditional is not None:
        traditional_amount = traditional.deposit(
            personal * (1.0 - roth_fraction), on, TransactionCategory.CONTRIBUTION_PERSONAL, reference
        )
    if roth is not None:
        roth_amount = roth.deposit(personal * roth_fraction, on, TransactionCategory.CONTRIBUTION_PERSONAL, reference)
    match_target = traditional or roth
    if match_target is not None and job.employer_match_percent > 0:
        match_amount = match_target.deposit(
            gross * job.employer_match_percent, on, TransactionCategory.CONTRIBUTION_EMPLOYER, reference
        )

    fica = compute_fica(gross, ytd.wages, on.year, reference)
    withholding = _estimated_withholding(person, gross - traditional_amount, on, reference)
    net = max(0.0, gross - traditional_amount - roth_amount - fica - withholding)
    deposit_income(person, net, on, TransactionCategory.INCOME)

    ytd.wages += gross
    ytd.pretax_contributions += traditional_amount
    ytd.income_tax_withheld += withholding
    ytd.fica_withheld += fica
    totals.salary += gross
    totals.contributions += traditional_amount + roth_amount + match_amount
    totals.taxes_paid += withholding + fica

    context.bus.publish(
        JOB_PAY,
        JobPayEvent(
            date=on,
            job=job.title,
            gross=gross,
            traditional_contribution=traditional_amount,
            roth_contribution=roth_amount,
            employer_match=match_amount,
            withheld=withholding + fica,
            net=net,
        ),
    )


def _process_social_security(person: Person, on: date, totals: _MonthTotals) -> None:
    benefit = monthly_benefit(
        person.social_security_monthly_benefit,
        age=person.exact_age(on),
        claim_age=person.social_security_claiming_age,
        fra=person.full_retirement_age or 67.0,
        cola_rate=person.inflation_rate,
    )
    if benefit <= 0:
        return
    deposit_income(person, benefit, on, TransactionCategory.SOCIAL_SECURITY)
    person.ytd.social_security += benefit
    totals.social_security += benefit


def _process_expenses(person: Person, on: date, context: SimulationContext, result: EngineResult, totals: _MonthTotals) -> None:
    need = person.annual_expenses / 12.0
    if need <= 0:
        return
    outcome = cover_shortfall(person, need, on, TransactionCategory.EXPENSES)
    totals.withdrawals += outcome.withdrawn
    context.bus.publish(SPENDING, SpendingEvent(date=on, requested=need, withdrawn=outcome.withdrawn))
    if outcome.shortfall > SHORTFALL_TOLERANCE:
        _record_shortfall(context, result, totals, on, "expenses", need, outcome.shortfall)


def _process_rmds(person: Person, on: date, context: SimulationContext, result: EngineResult, totals: _MonthTotals) -> None:
    for account in list(person.accounts):
        if account.kind not in TAX_DEFERRED_KINDS:
            continue
        required = account.required_minimum_distribution(on)
        if required <= 0:
            continue
        totals.rmd_required += required
        top_up = required - account.distributions_in_year(on.year)
        if top_up <= SHORTFALL_TOLERANCE:
            continue

        taken = account.withdraw(top_up, on, TransactionCategory.RMD)
        deposit_income(person, taken, on, TransactionCategory.RMD)
        totals.rmd_taken += taken
        totals.withdrawals += taken
        if top_up - taken > SHORTFALL_TOLERANCE:
            _record_shortfall(context, result, totals, on, "rmd", top_up, top_up - taken)


def _settle_taxes(person: Person, on: date, context: SimulationContext, result: EngineResult, totals: _MonthTotals) -> None:
    tax_result = compute_total_tax(summarize_year(person, on.year), context.reference)
    withheld = person.ytd.income_tax_withheld
    due = tax_result.total_tax - withheld

    paid = 0.0
    refund = 0.0
    shortfall = 0.0
    if due > 0:
        outcome = cover_shortfall(person, due, on, TransactionCategory.TAXES)
        paid = outcome.withdrawn
        shortfall = outcome.shortfall
        totals.withdrawals += paid
        totals.taxes_paid += paid
        if shortfall > SHORTFALL_TOLERANCE:
            _record_shortfall(context, result, totals, on, "taxes", due, shortfall)
    elif due < 0:
        refund = -due
        deposit_income(person, refund, on, TransactionCategory.TAXES)
        totals.taxes_paid -= refund

    result.taxes.append(
        TaxSettlement(
            year=on.year,
            date=on,
            result=tax_result,
            withheld=withheld,
            paid=paid,
            refund=refund,
            shortfall=shortfall,
        )
    )
    context.bus.publish(
        TAXES_PAID,
        TaxesPaidEvent(date=on, year=on.year, liability=tax_result.total_tax, withheld=withheld, paid=paid, refund=refund),
    )


def _check_milestones(person: Person, on: date, context: SimulationContext, result: EngineResult) -> None:
    age = person.exact_age(on)
    for milestone in context.milestones or ():
        if milestone.check_and_fire(person, age):
            event = MilestoneEvent(date=on, name=milestone.name, age=age)
            result.milestones.append(event)
            context.bus.publish(MILESTONE, event)


def _record_month(person: Person, on: date, totals: _MonthTotals, result: EngineResult) -> None:
    month_end = _month_end(on)
    balances: dict[str, float] = {}
    for account in person.accounts:
        balance = account.balance(month_end)
        balances[account.name] = balance
        result.account_rows.append(
            AccountMonthRow(
                date=on,
                account=account.name,
                deposits=account.deposits_between(on, month_end),
                withdrawals=account.withdrawals_between(on, month_end),
                balance=balance,
            )
        )

    essential = person.essential_expenses / 12.0
    discretionary = person.discretionary_expenses / 12.0
    result.snapshots.append(
        Snapshot(
            date=on,
            age=person.exact_age(on),
            life_stage=person.life_stage(on),
            salary=totals.salary,
            social_security=totals.social_security,
            total_income=totals.salary + totals.social_security,
            essential_expenses=essential,
            discretionary_expenses=discretionary,
            total_expenses=essential + discretionary,
            withdrawals=totals.withdrawals,
            contributions=totals.contributions,
            rmd_required=totals.rmd_required,
            rmd_taken=totals.rmd_taken,
            roth_converted=totals.roth_converted,
            taxes_paid=totals.taxes_paid,
            shortfall=totals.shortfall,
            net_worth=sum(balances.values()),
            balances=balances,
        )
    )


def run_simulation(
    person: Person,
    *,
    start: date | None = None,
    end: date | None = None,
    context: SimulationContext | None = None,
) -> EngineResult:
    """Advance ``person`` month by month from ``start`` through ``end``.

    The person and its account ledgers are mutated in place; clone first to
    keep the starting state. Each month runs in a fixed order: year rollover,
    birthday and milestones, growth, payroll, Social Security, expenses, then
    the December RMD, Roth conversion and tax settlement.
    """
    context = context or SimulationContext()
    start = (start or date.today()).replace(day=1)
    end = (end or default_end_date(person)).replace(day=1)
    if end < start:
        raise ValueError(f"end date {end.isoformat()} is before start date {start.isoformat()}")

    if context.milestones is None:
        context.milestones = standard_milestones(person)
    _prime_milestones(person, context.milestones, start)

    result = EngineResult()
    settings = context.settings
    logger.info("Simulating %s from %s to %s", person.name, start.isoformat(), end.isoformat())

    for on in _iter_months(start, end):
        totals = _MonthTotals()
        if on == start or on.month == 1:
            _begin_year(person, on, context, result, first=on == start)

        if on.month == person.birth_date.month:
            context.bus.publish(BIRTHDAY, BirthdayEvent(date=on, age=on.year - person.birth_date.year))
        _check_milestones(person, on, context, result)
        context.bus.publish(NEW_MONTH, MonthEvent(date=on, age=person.exact_age(on)))

        for account in person.accounts:
            account.apply_monthly_growth(on)
        for job in person.jobs:
            _process_job(person, job, on, context, totals)
        _process_social_security(person, on, totals)
        _process_expenses(person, on, context, result, totals)

        if on.month == 12:
            if settings.rmd_enabled:
                _process_rmds(person, on, context, result, totals)
            if eligible_for_conversion(person, on):
                amount = plan_roth_conversion(
                    person, on, reference=context.reference, fill_to_rate=settings.roth_conversion_rate
                )
                totals.roth_converted += execute_roth_conversion(person, on, amount)
        if settings.settle_taxes and (on.month == 12 or on == end):
            _settle_taxes(person, on, context, result, totals)

        invest_surplus_savings(person, on)
        _record_month(person, on, totals, result)

    _close_year(person, end.year, _month_end(end), result)
    logger.info(
        "Finished %s: ending net worth %.2f, %d shortfall event(s)",
        person.name,
        result.final_net_worth,
        len(result.shortfalls),
    )
    return result

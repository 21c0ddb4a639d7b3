"""Federal income tax, Social Security taxation and surtaxes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from .accounts import AccountKind, TransactionCategory
from .reference import Bracket, ReferenceData, TaxYear
from .tax_data import AMT_HIGH_RATE, AMT_LOW_RATE, AMT_PHASEOUT_RATE, MEDICARE_AGE

if TYPE_CHECKING:
    from .person import Person


@dataclass(slots=True)
class YearIncomeSummary:
    year: int
    filing_status: str
    wages: float = 0.0
    pretax_contributions: float = 0.0
    taxable_withdrawals: float = 0.0
    social_security_benefits: float = 0.0
    interest: float = 0.0
    tax_exempt_interest: float = 0.0
    age: int = 0
    withheld_tax: float = 0.0
    early_withdrawal_penalty: float = 0.0


@dataclass(slots=True)
class TaxResult:
    gross_income: float
    taxable_social_security: float
    deduction_used: float
    taxable_income: float
    income_tax: float
    niit_tax: float
    additional_medicare_tax: float
    amt_tax: float
    early_withdrawal_penalty: float
    total_tax: float
    marginal_rate: float


def _tax_year(year: int, reference: ReferenceData | None) -> TaxYear:
    return (reference or ReferenceData.default()).for_year(year)


def progressive_tax(amount: float, brackets: Sequence[Bracket]) -> float:
    if amount <= 0:
        return 0.0

    tax = 0.0
    for bracket in brackets:
        if bracket.lower_bound >= amount:
            break
        upper = amount if bracket.upper_bound is None else min(amount, bracket.upper_bound)
        tax += (upper - bracket.lower_bound) * bracket.rate
    return max(0.0, tax)


def tax_owed(filing_status: str, taxable_income: float, year: int, reference: ReferenceData | None = None) -> float:
    tax_year = _tax_year(year, reference)
    return progressive_tax(taxable_income, tax_year.brackets[tax_year.status_key(filing_status)])


def marginal_rate(filing_status: str, taxable_income: float, year: int, reference: ReferenceData | None = None) -> float:
    tax_year = _tax_year(year, reference)
    brackets = tax_year.brackets[tax_year.status_key(filing_status)]
    rate = brackets[0].rate
    for bracket in brackets:
        if taxable_income >= bracket.lower_bound:
            rate = bracket.rate
    return rate


def bracket_upper_bound(filing_status: str, rate: float, year: int, reference: ReferenceData | None = None) -> float | None:
    tax_year = _tax_year(year, reference)
    for bracket in tax_year.brackets[tax_year.status_key(filing_status)]:
        if abs(bracket.rate - rate) < 1e-9:
            return bracket.upper_bound
    return None


def standard_deduction(filing_status: str, year: int, *, age: int = 0, reference: ReferenceData | None = None) -> float:
    tax_year = _tax_year(year, reference)
    status = tax_year.status_key(filing_status)
    deduction = tax_year.standard_deduction[status]
    if age >= MEDICARE_AGE:
        deduction += tax_year.additional_deduction.get(status, 0.0)
    return deduction


def taxable_social_security(
    annual_benefit: float,
    other_income: float,
    filing_status: str,
    year: int,
    *,
    tax_exempt_interest: float = 0.0,
    reference: ReferenceData | None = None,
) -> float:
    """Taxable portion of Social Security from provisional income.

    Provisional income is other income plus tax-exempt interest plus half the
    benefit; it is compared against the base and adjusted-base thresholds for
    the 50% and 85% inclusion bands.
    """
    if annual_benefit <= 0:
        return 0.0
    tax_year = _tax_year(year, reference)
    base, adjusted_base = tax_year.social_security_thresholds[tax_year.status_key(filing_status)]
    provisional = other_income + tax_exempt_interest + 0.5 * annual_benefit

    if provisional <= base:
        return 0.0
    if provisional <= adjusted_base:
        return min(0.5 * (provisional - base), 0.5 * annual_benefit)
    first_band = min(0.5 * annual_benefit, 0.5 * (adjusted_base - base))
    return min(0.85 * annual_benefit, 0.85 * (provisional - adjusted_base) + first_band)


def compute_niit(
    investment_income: float,
    magi: float,
    filing_status: str,
    year: int,
    reference: ReferenceData | None = None,
) -> float:
    if investment_income <= 0:
        return 0.0
    tax_year = _tax_year(year, reference)
    threshold = tax_year.niit_thresholds[tax_year.status_key(filing_status)]
    excess = max(0.0, magi - threshold)
    return min(investment_income, excess) * tax_year.niit_rate


def compute_additional_medicare_tax(wages: float, filing_status: str, year: int, reference: ReferenceData | None = None) -> float:
    tax_year = _tax_year(year, reference)
    threshold = tax_year.additional_medicare_thresholds[tax_year.status_key(filing_status)]
    return max(0.0, wages - threshold) * tax_year.additional_medicare_rate


def compute_fica(wages: float, wages_to_date: float, year: int, reference: ReferenceData | None = None) -> float:
    """Employee Social Security and Medicare withholding on ``wages``.

    ``wages_to_date`` is what was already paid this year, so the Social
    Security wage base applies across paychecks.
    """
    if wages <= 0:
        return 0.0
    fica = _tax_year(year, reference).fica
    wage_base = fica["social_security_wage_base"]
    ss_wages = max(0.0, min(wages, wage_base - wages_to_date))
    return ss_wages * fica["social_security_rate"] + wages * fica["medicare_rate"]


def compute_amt(income: float, filing_status: str, year: int, reference: ReferenceData | None = None) -> float:
    """Tentative minimum tax; AMT owed is the excess over regular tax."""
    tax_year = _tax_year(year, reference)
    status = tax_year.status_key(filing_status)
    exemption = tax_year.amt.exemption[status]
    phaseout_start = tax_year.amt.phaseout_start[status]
    breakpoint = tax_year.amt.rate_breakpoint[status]

    amt_income = max(0.0, income)
    if amt_income > phaseout_start:
        exemption = max(0.0, exemption - AMT_PHASEOUT_RATE * (amt_income - phaseout_start))
    base = max(0.0, amt_income - exemption)
    return min(base, breakpoint) * AMT_LOW_RATE + max(0.0, base - breakpoint) * AMT_HIGH_RATE


def gross_income(person: Person, year: int, reference: ReferenceData | None = None) -> float:
    """Taxable wages plus taxable withdrawals plus taxable Social Security for ``year``."""
    summary = summarize_year(person, year)
    return _gross_income(summary, reference)[0]


def _gross_income(summary: YearIncomeSummary, reference: ReferenceData | None) -> tuple[float, float]:
    other = max(0.0, summary.wages - summary.pretax_contributions) + summary.taxable_withdrawals + summary.interest
    taxable_ss = taxable_social_security(
        summary.social_security_benefits,
        other,
        summary.filing_status,
        summary.year,
        tax_exempt_interest=summary.tax_exempt_interest,
        reference=reference,
    )
    return other + taxable_ss, taxable_ss


def summarize_year(person: Person, year: int) -> YearIncomeSummary:
    """Collect the year's taxable events from the ledgers and payroll tracking.

    Payroll totals come from the person's year-to-date record when it covers
    ``year``; otherwise jobs are projected for the whole year.
    """
    ytd = person.ytd if person.ytd is not None and person.ytd.year == year else None
    if ytd is not None:
        wages = ytd.wages
        pretax = ytd.pretax_contributions
        benefits = ytd.social_security
        withheld = ytd.income_tax_withheld
    else:
        wages = sum(job.annual_gross_for_year(year) for job in person.jobs)
        pretax = 0.0
        benefits = 0.0
        withheld = 0.0

    interest = sum(
        account.deposits_in(year, [TransactionCategory.INTEREST])
        for account in person.accounts_of(AccountKind.SAVINGS)
    )
    return YearIncomeSummary(
        year=year,
        filing_status=person.filing_status,
        wages=wages,
        pretax_contributions=pretax,
        taxable_withdrawals=sum(account.taxable_withdrawals_in_year(year) for account in person.accounts),
        social_security_benefits=benefits,
        interest=interest,
        tax_exempt_interest=person.tax_exempt_interest,
        age=person.owner.age_at_year_end(year) if person.owner is not None else 0,
        withheld_tax=withheld,
        early_withdrawal_penalty=sum(account.penalties_in_year(year) for account in person.accounts),
    )


def compute_total_tax(summary: YearIncomeSummary, reference: ReferenceData | None = None) -> TaxResult:
    income, taxable_ss = _gross_income(summary, reference)
    deduction = standard_deduction(summary.filing_status, summary.year, age=summary.age, reference=reference)
    taxable_income = max(0.0, income - deduction)

    income_tax = tax_owed(summary.filing_status, taxable_income, summary.year, reference)
    niit_tax = compute_niit(summary.interest, income, summary.filing_status, summary.year, reference)
    medicare_tax = compute_additional_medicare_tax(summary.wages, summary.filing_status, summary.year, reference)
    tentative_minimum = compute_amt(income, summary.filing_status, summary.year, reference)
    amt_tax = max(0.0, tentative_minimum - income_tax)

    total = income_tax + niit_tax + medicare_tax + amt_tax
    return TaxResult(
        gross_income=income,
        taxable_social_security=taxable_ss,
        deduction_used=deduction,
        taxable_income=taxable_income,
        income_tax=income_tax,
        niit_tax=niit_tax,
        additional_medicare_tax=medicare_tax,
        amt_tax=amt_tax,
        early_withdrawal_penalty=summary.early_withdrawal_penalty,
        total_tax=total,
        marginal_rate=marginal_rate(summary.filing_status, taxable_income, summary.year, reference),
    )

"""Built-in tax, benefit and contribution-limit reference data."""

from __future__ import annotations

from typing import Final

DEFAULT_TAX_YEAR: Final[int] = 2025

FILING_STATUSES: Final[set[str]] = {
    "single",
    "married_filing_jointly",
    "married_filing_separately",
    "head_of_household",
    "qualifying_surviving_spouse",
}

# Statuses that share another status's tables.
FILING_STATUS_ALIASES: Final[dict[str, str]] = {
    "qualifying_surviving_spouse": "married_filing_jointly",
}

# Brackets are (upper_bound, marginal_rate). Upper bound None means infinity.
DEFAULT_BRACKETS: Final[dict[str, list[tuple[float | None, float]]]] = {
    "single": [
        (11_925.0, 0.10),
        (48_475.0, 0.12),
        (103_350.0, 0.22),
        (197_300.0, 0.24),
        (250_525.0, 0.32),
        (626_350.0, 0.35),
        (None, 0.37),
    ],
    "married_filing_jointly": [
        (23_850.0, 0.10),
        (96_950.0, 0.12),
        (206_700.0, 0.22),
        (394_600.0, 0.24),
        (501_050.0, 0.32),
        (751_600.0, 0.35),
        (None, 0.37),
    ],
    "married_filing_separately": [
        (11_925.0, 0.10),
        (48_475.0, 0.12),
        (103_350.0, 0.22),
        (197_300.0, 0.24),
        (250_525.0, 0.32),
        (375_800.0, 0.35),
        (None, 0.37),
    ],
    "head_of_household": [
        (17_000.0, 0.10),
        (64_850.0, 0.12),
        (103_350.0, 0.22),
        (197_300.0, 0.24),
        (250_500.0, 0.32),
        (626_350.0, 0.35),
        (None, 0.37),
    ],
}

DEFAULT_STANDARD_DEDUCTIONS: Final[dict[str, float]] = {
    "single": 15_750.0,
    "married_filing_jointly": 31_500.0,
    "married_filing_separately": 15_750.0,
    "head_of_household": 23_625.0,
}

# Extra deduction per taxpayer aged 65 or older.
DEFAULT_ADDITIONAL_DEDUCTIONS: Final[dict[str, float]] = {
    "single": 2_000.0,
    "married_filing_jointly": 1_600.0,
    "married_filing_separately": 1_600.0,
    "head_of_household": 2_000.0,
}

NIIT_RATE: Final[float] = 0.038
ADDITIONAL_MEDICARE_RATE: Final[float] = 0.009

# NIIT and Additional Medicare share the same statutory thresholds; neither is indexed.
SURTAX_THRESHOLDS: Final[dict[str, float]] = {
    "single": 200_000.0,
    "married_filing_jointly": 250_000.0,
    "married_filing_separately": 125_000.0,
    "head_of_household": 200_000.0,
}

# Provisional income (base, adjusted base) for the 50% and 85% inclusion bands.
SOCIAL_SECURITY_TAX_THRESHOLDS: Final[dict[str, tuple[float, float]]] = {
    "single": (25_000.0, 34_000.0),
    "married_filing_jointly": (32_000.0, 44_000.0),
    "married_filing_separately": (0.0, 0.0),
    "head_of_household": (25_000.0, 34_000.0),
}

# (exemption, phase-out start, 26%/28% breakpoint)
DEFAULT_AMT: Final[dict[str, tuple[float, float, float]]] = {
    "single": (88_100.0, 626_350.0, 239_100.0),
    "married_filing_jointly": (137_000.0, 1_252_700.0, 239_100.0),
    "married_filing_separately": (68_500.0, 626_350.0, 119_550.0),
    "head_of_household": (88_100.0, 626_350.0, 239_100.0),
}
AMT_LOW_RATE: Final[float] = 0.26
AMT_HIGH_RATE: Final[float] = 0.28
AMT_PHASEOUT_RATE: Final[float] = 0.25

DEFAULT_FICA: Final[dict[str, float]] = {
    "social_security_rate": 0.062,
    "social_security_wage_base": 176_100.0,
    "medicare_rate": 0.0145,
}

DEFAULT_CONTRIBUTION_LIMITS: Final[dict[str, float]] = {
    "401k_personal": 23_500.0,
    "401k_catch_up": 7_500.0,
    "401k_super_catch_up": 11_250.0,
    "401k_total": 70_000.0,
    "ira": 7_000.0,
    "ira_catch_up": 1_000.0,
    "hsa_self": 4_300.0,
    "hsa_family": 8_550.0,
    "hsa_catch_up": 1_000.0,
    "compensation": 350_000.0,
}

# Roth IRA MAGI phase-out ranges (start, end).
DEFAULT_ROTH_IRA_PHASEOUT: Final[dict[str, tuple[float, float]]] = {
    "single": (150_000.0, 165_000.0),
    "married_filing_jointly": (236_000.0, 246_000.0),
    "married_filing_separately": (0.0, 10_000.0),
    "head_of_household": (150_000.0, 165_000.0),
}

CATCH_UP_AGE: Final[int] = 50
SUPER_CATCH_UP_AGES: Final[tuple[int, int]] = (60, 63)
HSA_CATCH_UP_AGE: Final[int] = 55

PENALTY_FREE_AGE: Final[float] = 59.5
RULE_OF_55_AGE: Final[float] = 55.0
EARLY_WITHDRAWAL_PENALTY_RATE: Final[float] = 0.10
HSA_PENALTY_FREE_AGE: Final[float] = 65.0
HSA_NON_MEDICAL_PENALTY_RATE: Final[float] = 0.20
# Share of the year's starting Roth balance treated as contribution basis.
ROTH_BASIS_FRACTION: Final[float] = 0.25

MEDICARE_AGE: Final[float] = 65.0
SOCIAL_SECURITY_EARLY_AGE: Final[float] = 62.0
SOCIAL_SECURITY_MAX_CLAIM_AGE: Final[float] = 70.0

# PIA bend points (first, second) and the replacement factors applied to each band.
PIA_BEND_POINTS: Final[tuple[float, float]] = (1_115.0, 6_721.0)
PIA_FACTORS: Final[tuple[float, float, float]] = (0.90, 0.32, 0.15)

# Emergency fund months of expenses by life phase.
DEFAULT_EMERGENCY_MONTHS: Final[dict[str, int]] = {
    "pre_retirement": 6,
    "early_retirement": 24,
    "post_retirement": 12,
}

MISSED_RMD_PENALTY_RATE: Final[float] = 0.25
CORRECTED_RMD_PENALTY_RATE: Final[float] = 0.10

"""CSV output for simulation results."""

from __future__ import annotations

import csv
from pathlib import Path

from .engine import EngineResult

ACCOUNT_COLUMNS = ["date", "account", "deposits", "withdrawals", "balance"]
SNAPSHOT_COLUMNS = [
    "date",
    "age",
    "life_stage",
    "salary",
    "social_security",
    "total_income",
    "essential_expenses",
    "discretionary_expenses",
    "total_expenses",
    "withdrawals",
    "contributions",
    "rmd_taken",
    "roth_converted",
    "taxes_paid",
    "shortfall",
    "net_worth",
]


def _money(value: float) -> str:
    return f"{value:.2f}"


def write_account_csv(path: str | Path, result: EngineResult) -> Path:
    """One row per account per month."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(ACCOUNT_COLUMNS)
        for row in result.account_rows:
            writer.writerow(
                [row.date.isoformat(), row.account, _money(row.deposits), _money(row.withdrawals), _money(row.balance)]
            )
    return target


def write_snapshot_csv(path: str | Path, result: EngineResult) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    account_names = list(result.snapshots[0].balances) if result.snapshots else []
    with target.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(SNAPSHOT_COLUMNS + account_names)
        for snap in result.snapshots:
            writer.writerow(
                [
                    snap.date.isoformat(),
                    f"{snap.age:.2f}",
                    snap.life_stage.value,
                    _money(snap.salary),
                    _money(snap.social_security),
                    _money(snap.total_income),
                    _money(snap.essential_expenses),
                    _money(snap.discretionary_expenses),
                    _money(snap.total_expenses),
                    _money(snap.withdrawals),
                    _money(snap.contributions),
                    _money(snap.rmd_taken),
                    _money(snap.roth_converted),
                    _money(snap.taxes_paid),
                    _money(snap.shortfall),
                    _money(snap.net_worth),
                ]
                + [_money(snap.balances.get(name, 0.0)) for name in account_names]
            )
    return target

import copy
import json
from datetime import date
from pathlib import Path

from retireplan.accounts import Account, AccountKind
from retireplan.person import Person


def write_profile(tmp_path: Path, data: dict, filename: str = "profile.json") -> Path:
    path = tmp_path / filename
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def clone_profile(data: dict) -> dict:
    return copy.deepcopy(data)


def make_person(birth_date: date, accounts: list[tuple[str, AccountKind, float]] = (), opened: date = date(2025, 1, 1), **kwargs) -> Person:
    person = Person(name="Test", birth_date=birth_date, **kwargs)
    for name, kind, balance in accounts:
        person.add_account(Account.open(name, kind, balance, opened))
    return person

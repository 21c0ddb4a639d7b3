import pytest

from retireplan.schema import load_profile
from retireplan.validate import validate_profile
from tests.helpers import clone_profile, write_profile


def _run_validation(tmp_path, sample_profile_dict, mutator):
    data = clone_profile(sample_profile_dict)
    mutator(data)
    path = write_profile(tmp_path, data)
    profile = load_profile(path)
    return validate_profile(profile)


def test_sample_profile_validates():
    result = validate_profile(load_profile("sample_profile.json"))
    assert result.errors == []
    assert result.warnings == []
    assert result.is_valid


@pytest.mark.parametrize(
    ("mutator", "expected_error"),
    [
        (
            lambda d: d["person"].update({"birth_date": "1985-02-30"}),
            "person.birth_date: '1985-02-30' is not valid; expected YYYY-MM-DD",
        ),
        (
            lambda d: d["person"]["social_security"].update({"claiming_age": 72}),
            "person.social_security.claiming_age: must be between 62 and 70",
        ),
        (
            lambda d: d["person"].update({"part_time_age": 61}),
            "person.part_time_age/person.part_time_end_age: part_time_age must be <= part_time_end_age",
        ),
        (
            lambda d: d["person"]["expenses"].update({"essential": -1}),
            "person.expenses.essential: must be >= 0",
        ),
        (
            lambda d: d["accounts"][1].update({"name": "Emergency Savings"}),
            "accounts[1].name: duplicate account name 'Emergency Savings'",
        ),
        (
            lambda d: d["accounts"][0].update({"balance": -5}),
            "accounts[0].balance: must be >= 0",
        ),
        (
            lambda d: d["jobs"][0].update({"start_date": "2040-01-01", "end_date": "2039-12-31"}),
            "jobs[0].start_date/jobs[0].end_date: start_date must be <= end_date",
        ),
        (
            lambda d: d["jobs"][0].update({"salary": 0}),
            "jobs[0].salary: must be > 0 for salaried jobs",
        ),
        (
            lambda d: d["jobs"][1].update({"hourly_rate": 0}),
            "jobs[1].hourly_rate: must be > 0 for hourly jobs",
        ),
        (
            lambda d: d["jobs"][0].update({"personal_contribution_percent": 1.5}),
            "jobs[0].personal_contribution_percent: must be between 0 and 1",
        ),
        (
            lambda d: d["simulation"].update({"start": "2030-01-01", "end": "2029-01-01"}),
            "simulation.start/simulation.end: start must be <= end",
        ),
        (
            lambda d: d["simulation"].update({"roth_conversion_rate": 0.2}),
            "simulation.roth_conversion_rate: 0.2 does not match a federal bracket rate",
        ),
    ],
)
def test_validation_errors(tmp_path, sample_profile_dict, mutator, expected_error):
    result = _run_validation(tmp_path, sample_profile_dict, mutator)
    assert expected_error in result.errors
    assert not result.is_valid


@pytest.mark.parametrize(
    ("mutator", "prefix"),
    [
        (lambda d: d["person"].update({"filing_status": "married"}), "person.filing_status: 'married' is not valid"),
        (lambda d: d["accounts"][0].update({"type": "checking"}), "accounts[0].type: 'checking' is not valid"),
        (lambda d: d["jobs"][0].update({"pay_frequency": "daily"}), "jobs[0].pay_frequency: 'daily' is not valid"),
    ],
)
def test_enum_errors(tmp_path, sample_profile_dict, mutator, prefix):
    result = _run_validation(tmp_path, sample_profile_dict, mutator)
    assert any(error.startswith(prefix) for error in result.errors)


@pytest.mark.parametrize(
    ("mutator", "prefix"),
    [
        (
            lambda d: d.update({"accounts": [a for a in d["accounts"] if a["type"] not in {"savings", "taxable_brokerage"}]}),
            "accounts: no savings or taxable account",
        ),
        (lambda d: d["person"]["expenses"].update({"inflation_rate": 0.2}), "person.expenses.inflation_rate"),
        (lambda d: d["accounts"][2].update({"growth_rate": 0.25}), "accounts[2].growth_rate"),
        (
            lambda d: d.update({"accounts": [a for a in d["accounts"] if a["type"] != "roth_ira"]}),
            "person.roth_conversions: enabled but there is no roth_ira account",
        ),
        (
            lambda d: d.update({"accounts": [a for a in d["accounts"] if "401k" not in a["type"]]}),
            "jobs[0].personal_contribution_percent: no 401k account",
        ),
        (lambda d: d["person"].update({"gender": "other"}), "person.gender"),
    ],
)
def test_validation_warnings(tmp_path, sample_profile_dict, mutator, prefix):
    result = _run_validation(tmp_path, sample_profile_dict, mutator)
    assert result.is_valid
    assert any(warning.startswith(prefix) for warning in result.warnings)

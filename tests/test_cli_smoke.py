import csv

from retireplan.__main__ import main
from tests.helpers import clone_profile, write_profile


def test_validate_mode_exits_zero(capsys):
    code = main(["sample_profile.json", "--validate"])
    assert code == 0
    assert "Profile is valid." in capsys.readouterr().out


def test_invalid_profile_returns_one(tmp_path, sample_profile_dict, capsys):
    data = clone_profile(sample_profile_dict)
    data["accounts"][0]["balance"] = -1
    path = write_profile(tmp_path, data)

    code = main([str(path), "--validate"])

    assert code == 1
    assert "ERROR: accounts[0].balance: must be >= 0" in capsys.readouterr().err


def test_missing_profile_file_returns_two(tmp_path, capsys):
    code = main([str(tmp_path / "nope.json"), "--validate"])
    assert code == 2
    assert "Failed to load profile" in capsys.readouterr().err


def test_bad_tax_data_returns_two(tmp_path, sample_profile_dict):
    path = write_profile(tmp_path, sample_profile_dict)
    bad = tmp_path / "tax.json"
    bad.write_text('{"years": {}}', encoding="utf-8")

    assert main([str(path), "--tax-data", str(bad), "-o", str(tmp_path / "a.csv")]) == 2


def test_summary_mode_writes_outputs(tmp_path, sample_profile_dict, capsys):
    path = write_profile(tmp_path, sample_profile_dict)
    accounts = tmp_path / "accounts.csv"
    snapshots = tmp_path / "snapshots.csv"

    code = main(
        [
            str(path),
            "--summary",
            "--start",
            "2025-01-01",
            "--end",
            "2027-12-01",
            "-o",
            str(accounts),
            "--snapshots",
            str(snapshots),
        ]
    )

    assert code == 0
    out = capsys.readouterr().out
    assert "Ending net worth: $" in out
    assert "Months: 2025-01-01 to 2027-12-01 (36)" in out
    with snapshots.open(encoding="utf-8", newline="") as handle:
        assert len(list(csv.reader(handle))) == 37
    assert accounts.exists()

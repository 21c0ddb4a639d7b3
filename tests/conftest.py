import json
from pathlib import Path

import pytest


@pytest.fixture
def sample_profile_dict() -> dict:
    return json.loads(Path("sample_profile.json").read_text(encoding="utf-8"))

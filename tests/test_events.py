from datetime import date

import pytest

from retireplan.events import NEW_YEAR, SHORTFALL, EventBus, Milestone, ShortfallEvent, standard_milestones
from tests.helpers import make_person


def test_bus_delivers_to_subscribers_in_order():
    bus = EventBus()
    seen = []
    bus.subscribe(SHORTFALL, lambda event: seen.append(("first", event.reason)))
    bus.subscribe(SHORTFALL, lambda event: seen.append(("second", event.reason)))

    bus.publish(SHORTFALL, ShortfallEvent(date=date(2025, 1, 1), reason="expenses", requested=10, shortfall=5))
    bus.publish(NEW_YEAR, object())

    assert seen == [("first", "expenses"), ("second", "expenses")]


def test_bus_rejects_unknown_hook():
    with pytest.raises(ValueError, match="unknown hook"):
        EventBus().subscribe("payday", lambda event: None)


def test_milestone_fires_once_and_resets():
    person = make_person(date(1980, 1, 1))
    calls = []
    milestone = Milestone("fifty", lambda _p, age: age >= 50, callback=lambda _p, age: calls.append(age))

    assert milestone.check_and_fire(person, 49.9) is False
    assert milestone.check_and_fire(person, 50.0) is True
    assert milestone.check_and_fire(person, 51.0) is False
    assert calls == [50.0]

    milestone.reset()
    assert milestone.check_and_fire(person, 52.0) is True


def test_standard_milestones():
    person = make_person(date(1957, 3, 1))
    milestones = {milestone.name: milestone for milestone in standard_milestones(person)}

    assert set(milestones) == {
        "catch_up_contributions",
        "rule_of_55",
        "penalty_free_withdrawals",
        "social_security_eligible",
        "medicare_eligible",
        "full_retirement_age",
        "rmd_start",
    }
    assert milestones["full_retirement_age"].trigger(person, 66.5) is True
    assert milestones["full_retirement_age"].trigger(person, 66.4) is False
    assert milestones["rmd_start"].trigger(person, 73) is True
    assert milestones["penalty_free_withdrawals"].trigger(person, 59.4) is False

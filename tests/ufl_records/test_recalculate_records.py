"""Tests for the counter drift repair script helpers."""

from __future__ import annotations

from scripts.recalculate_records import find_drift, render_drift
from ufl_records.schemas.fight import FightMethod
from ufl_records.schemas.fighter import Division, Fighter


def test_find_drift_reports_only_mismatched_fighters(make_fight) -> None:
    stored = [
        Fighter(name="Ryu", division=Division.PC, wins=0),
        Fighter(name="Ken", division=Division.PC, losses=1),
        Fighter(name="Guile", division=Division.PS5, wins=4),
    ]
    ledger = [make_fight("Ryu", "Ken", "Ryu", method=FightMethod.KO)]

    drift = find_drift(stored, ledger)

    assert [(old.name, new.record, new.ko_wins) for old, new in drift] == [
        ("Ryu", "1-0-0", 1),
        ("Guile", "0-0-0", 0),
    ]


def test_find_drift_can_be_scoped_to_a_division(make_fight) -> None:
    stored = [
        Fighter(name="Ryu", division=Division.PC, wins=3),
        Fighter(name="Guile", division=Division.PS5, wins=4),
    ]

    drift = find_drift(stored, [], Division.PS5)

    assert [old.name for old, _ in drift] == ["Guile"]
    assert render_drift(drift).row_count == 1

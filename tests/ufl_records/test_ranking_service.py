"""Tests for division leaderboards."""

from __future__ import annotations

from ufl_records.schemas.fight import FightMethod
from ufl_records.schemas.fighter import Division, Fighter
from ufl_records.services.aggregation import aggregate
from ufl_records.services.ranking_service import (
    LEADERBOARD_SIZE,
    RankingService,
    quality_of,
    rank,
    score_of,
)


def test_winner_ranks_above_loser(make_fight) -> None:
    ledger = [make_fight("A", "B", "A", method=FightMethod.KO)]
    fighters = aggregate(
        ledger,
        [Fighter(name="A", division=Division.PC), Fighter(name="B", division=Division.PC)],
    )

    ranked = rank(Division.PC, fighters, ledger, champion=None)

    assert [entry.name for entry in ranked] == ["A", "B"]
    assert ranked[0].score == 5
    assert ranked[0].rank == 1
    assert ranked[1].rank == 2


def test_quality_sums_current_opponent_wins(make_fight) -> None:
    ledger = [
        make_fight("A", "B", "A"),
        make_fight("B", "C", "B"),
        make_fight("B", "D", "B"),
    ]
    fighters = aggregate(
        ledger,
        [Fighter(name=name, division=Division.PC) for name in ("A", "B", "C", "D")],
    )
    a = fighters[0]

    quality = quality_of(a, Division.PC, fighters, ledger)

    assert quality == 2
    assert score_of(a, quality) == 1 * 5 + 2


def test_quality_counts_missing_opponent_as_zero(make_fight) -> None:
    ledger = [make_fight("A", "Ghost", "A")]
    fighters = aggregate(ledger, [Fighter(name="A", division=Division.PC)])

    assert quality_of(fighters[0], Division.PC, fighters, ledger) == 0


def test_quality_prefers_same_division_opponent(make_fight) -> None:
    ledger = [make_fight("A", "B", "A", division=Division.PC)]
    fighters = [
        Fighter(name="A", division=Division.PC, wins=1),
        Fighter(name="B", division=Division.XBOX, wins=7),
        Fighter(name="B", division=Division.PC, wins=2),
    ]

    assert quality_of(fighters[0], Division.PC, fighters, ledger) == 2


def test_champion_is_excluded(make_fight) -> None:
    ledger = [make_fight("A", "B", "A")]
    fighters = aggregate(
        ledger,
        [Fighter(name="A", division=Division.PC), Fighter(name="B", division=Division.PC)],
    )

    ranked = rank(Division.PC, fighters, ledger, champion="A")

    assert [entry.name for entry in ranked] == ["B"]


def test_leaderboard_is_bounded_and_division_scoped() -> None:
    fighters = [Fighter(name=f"PC-{i}", division=Division.PC) for i in range(15)]
    fighters.append(Fighter(name="Console", division=Division.PS5))

    ranked = rank(Division.PC, fighters, [], champion=None)

    assert len(ranked) == LEADERBOARD_SIZE
    assert all(entry.division == Division.PC for entry in ranked)


def test_equal_scores_keep_roster_order() -> None:
    fighters = [Fighter(name=name, division=Division.PC) for name in ("Zed", "Amy", "Moe")]

    ranked = rank(Division.PC, fighters, [], champion=None)

    assert [entry.name for entry in ranked] == ["Zed", "Amy", "Moe"]


def test_rank_movement_uses_previous_rank() -> None:
    fighters = [
        Fighter(name="Up", division=Division.PC, wins=3, previous_rank=4),
        Fighter(name="New", division=Division.PC, wins=1),
    ]

    up, new = rank(Division.PC, fighters, [], champion=None)

    assert up.rank_movement == 3
    assert new.rank_movement is None


def test_ranking_service_covers_every_division(make_fight) -> None:
    fighters = [
        Fighter(name="A", division=Division.PC),
        Fighter(name="G", division=Division.PS5),
    ]
    service = RankingService(fighters, [], {Division.PS5: "G"})

    response = service.get_all_rankings()

    assert response.total_divisions == len(Division)
    by_division = {entry.division: entry for entry in response.divisions}
    assert by_division[Division.PS5].champion == "G"
    assert by_division[Division.PS5].rankings == []
    assert [r.name for r in by_division[Division.PC].rankings] == ["A"]
    assert response.total_fighters == 1

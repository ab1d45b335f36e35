"""Division leaderboards derived from aggregated records.

Rankings are recomputed on demand from the current fighters and ledger.
``quality`` deliberately reads each opponent's *current* win total rather than
the total they held on fight night, so a fighter's strength of schedule keeps
moving as past opponents keep winning.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from ufl_records.schemas.fight import Fight
from ufl_records.schemas.fighter import Division, Fighter
from ufl_records.schemas.ranking import (
    AllRankingsResponse,
    DivisionRankingsResponse,
    RankedFighter,
)

logger = logging.getLogger(__name__)

LEADERBOARD_SIZE = 10
WIN_POINTS = 5
LOSS_PENALTY = 2


def _opponent_wins(name: str, division: Division, fighters: Sequence[Fighter]) -> int:
    """Return the current win count of ``name``, preferring the same division.

    Opponents that were deleted or renamed without cascading contribute zero.
    """

    fallback: Fighter | None = None
    for candidate in fighters:
        if candidate.name != name:
            continue
        if candidate.division == division:
            return candidate.wins
        if fallback is None:
            fallback = candidate
    return fallback.wins if fallback is not None else 0


def quality_of(
    fighter: Fighter,
    division: Division,
    fighters: Sequence[Fighter],
    ledger: Sequence[Fight],
) -> int:
    return sum(
        _opponent_wins(fight.opponent_of(fighter.name), division, fighters)
        for fight in ledger
        if fight.division == division and fight.involves(fighter.name)
    )


def score_of(fighter: Fighter, quality: int) -> int:
    return fighter.wins * WIN_POINTS + quality - fighter.losses * LOSS_PENALTY


def _rank_movement(previous_rank: int, rank: int) -> int | None:
    if previous_rank <= 0:
        return None
    return previous_rank - rank


def rank(
    division: Division,
    fighters: Sequence[Fighter],
    ledger: Sequence[Fight],
    champion: str | None,
    *,
    limit: int = LEADERBOARD_SIZE,
) -> list[RankedFighter]:
    """Return the ordered leaderboard for ``division``.

    The division's champion is excluded. Candidates are ordered by descending
    score; ``sorted`` is stable so equal scores keep their roster order. At
    most ``limit`` entries are returned.
    """

    candidates = [
        fighter
        for fighter in fighters
        if fighter.division == division and not (champion and fighter.name == champion)
    ]

    scored: list[tuple[Fighter, int, int]] = []
    for fighter in candidates:
        quality = quality_of(fighter, division, fighters, ledger)
        scored.append((fighter, quality, score_of(fighter, quality)))

    ordered = sorted(scored, key=lambda entry: entry[2], reverse=True)[:limit]

    return [
        RankedFighter(
            **fighter.model_dump(),
            quality=quality,
            score=score,
            rank=position,
            rank_movement=_rank_movement(fighter.previous_rank, position),
        )
        for position, (fighter, quality, score) in enumerate(ordered, start=1)
    ]


class RankingService:
    """Build leaderboard responses from a read-only view of the records."""

    def __init__(
        self,
        fighters: Sequence[Fighter],
        fights: Sequence[Fight],
        champions: Mapping[Division, str],
    ) -> None:
        self.fighters = fighters
        self.fights = fights
        self.champions = champions

    def get_division_rankings(self, division: Division) -> DivisionRankingsResponse:
        champion = self.champions.get(division)
        rankings = rank(division, self.fighters, self.fights, champion)
        return DivisionRankingsResponse(
            division=division,
            champion=champion,
            rankings=rankings,
            total_fighters=len(rankings),
        )

    def get_all_rankings(self) -> AllRankingsResponse:
        division_rankings = [self.get_division_rankings(division) for division in Division]
        total_fighters = sum(entry.total_fighters for entry in division_rankings)
        logger.debug(
            "Built rankings for %d divisions (%d fighters)",
            len(division_rankings),
            total_fighters,
        )
        return AllRankingsResponse(
            divisions=division_rankings,
            total_divisions=len(division_rankings),
            total_fighters=total_fighters,
        )


__all__ = [
    "LEADERBOARD_SIZE",
    "RankingService",
    "quality_of",
    "rank",
    "score_of",
]

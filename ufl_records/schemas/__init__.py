"""Pydantic schemas for records, rankings and API responses."""

from ufl_records.schemas.champion import (  # noqa: F401
    ChampionsResponse,
    ChampionUpdate,
)
from ufl_records.schemas.fight import (  # noqa: F401
    DRAW,
    Fight,
    FightKey,
    FightListItem,
    FightMethod,
    FightsResponse,
    FightUpdate,
)
from ufl_records.schemas.fighter import (  # noqa: F401
    Division,
    Fighter,
    FighterCreate,
    FighterListItem,
    FighterRename,
    FightersResponse,
)
from ufl_records.schemas.ranking import (  # noqa: F401
    AllRankingsResponse,
    DivisionRankingsResponse,
    RankedFighter,
)
from ufl_records.schemas.snapshot import StoreSnapshot  # noqa: F401
from ufl_records.schemas.mutation import MutationResult  # noqa: F401

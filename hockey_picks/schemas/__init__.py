"""API response and snapshot schemas."""

from hockey_picks.schemas.picks import (
    FixtureModel,
    MethodInfo,
    PicksFileInfo,
    PicksSnapshot,
    RankedPlayerModel,
    RoundModel,
    SeasonCacheStatusModel,
    StandingModel,
    StandingsCacheStats,
)

__all__ = [
    "FixtureModel",
    "MethodInfo",
    "PicksFileInfo",
    "PicksSnapshot",
    "RankedPlayerModel",
    "RoundModel",
    "SeasonCacheStatusModel",
    "StandingModel",
    "StandingsCacheStats",
]

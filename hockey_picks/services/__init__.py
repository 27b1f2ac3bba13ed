"""Service layer for business logic."""

from hockey_picks.services.aggregator import SeasonAggregator
from hockey_picks.services.nhl_client import NhlApiClient

__all__ = ["NhlApiClient", "SeasonAggregator"]

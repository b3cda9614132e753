"""
Store / change-feed adapters.

Public API:
- RideStore (interface), InMemoryRideStore, HttpRideStore
- ChangeFeed, InMemoryChangeFeed, Subscription, ChangeDelta, DeltaKind
"""

from .change_feed import (
    DRIVERS,
    FORECASTS,
    RIDES,
    ChangeDelta,
    ChangeFeed,
    DeltaKind,
    InMemoryChangeFeed,
    Subscription,
)
from .base import RideStore, InMemoryRideStore
from .http_store import HttpRideStore

__all__ = [
    "DRIVERS",
    "FORECASTS",
    "RIDES",
    "ChangeDelta",
    "ChangeFeed",
    "DeltaKind",
    "InMemoryChangeFeed",
    "Subscription",
    "RideStore",
    "InMemoryRideStore",
    "HttpRideStore",
]

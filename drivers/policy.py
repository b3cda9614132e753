"""
Purpose: Central configuration for driver selection.
What it does:

Stores all tunable thresholds for choosing a driver for a pending ride:

MAX_PICKUP_DISTANCE_KM = 5.0
MAX_LOCATION_AGE_SECONDS = 300

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class DriverPolicy:
    """
    Central configuration for driver eligibility and ranking.
    """

    # --- Reachability ---
    # Drivers further than this (great-circle) from the pickup are not offered the ride.
    max_pickup_distance_km: float = 5.0

    # --- Telemetry freshness ---
    # A location sample older than this is considered stale and the driver is skipped.
    # None disables the check (useful for replaying history).
    max_location_age_seconds: int | None = 300

    # --- Ranking ---
    # Idle drivers are tried before active ones at any distance.
    prefer_idle: bool = True

    # Upper bound on candidates returned by rank_candidates.
    max_candidates: int = 5

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.max_pickup_distance_km <= 0:
            raise ValueError("max_pickup_distance_km must be > 0")

        if self.max_location_age_seconds is not None and self.max_location_age_seconds <= 0:
            raise ValueError("max_location_age_seconds must be > 0 (or None)")

        if self.max_candidates <= 0:
            raise ValueError("max_candidates must be > 0")


def default_driver_policy() -> DriverPolicy:
    """
    Convenience factory for the default policy.
    """
    p = DriverPolicy()
    p.validate()
    return p

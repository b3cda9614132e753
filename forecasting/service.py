"""
Purpose: The forecasting "heartbeat".
What it does:
Every cycle (FORECAST_INTERVAL_SECONDS, default 5 minutes):
  1) take a snapshot of ride history from the store
  2) map rides onto zones -> DemandSample series
  3) forecast every campus zone (+ any extra zone seen in history)
  4) replace the stored forecast set for the dashboard

Each cycle starts from scratch. Nothing accumulates between cycles, so running it
concurrently with ride mutations only means it sees a slightly older snapshot.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

from common.exceptions import ExternalServiceError
from common.settings import load_settings
from routing.zones import ZoneRegistry, default_zone_registry
from .history import demand_samples_from_rides
from .models import ForecastResult
from .policy import ForecastPolicy, forecast_policy_from_settings
from .predictor import predict_multi_zone_demand

logger = logging.getLogger(__name__)


class DemandForecastService:
    def __init__(
        self,
        store,
        registry: Optional[ZoneRegistry] = None,
        policy: Optional[ForecastPolicy] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.registry = registry or default_zone_registry()
        self.policy = policy or forecast_policy_from_settings(load_settings())
        self.clock = clock

    def run_cycle(self, hours_ahead: Optional[int] = None) -> Dict[str, ForecastResult]:
        """
        One full recomputation. Store failures propagate as ExternalServiceError.
        """
        now = self.clock()
        rides = self.store.list_rides()
        samples = demand_samples_from_rides(rides, self.registry)

        zones: List[str] = self.registry.names()
        for sample in samples:
            if sample.zone not in zones:
                zones.append(sample.zone)

        results = predict_multi_zone_demand(
            samples,
            zones,
            hours_ahead,
            now=now,
            policy=self.policy,
        )
        by_zone = {result.zone: result for result in results}
        self.store.save_forecasts(by_zone)

        anomalies = [zone for zone, result in by_zone.items() if result.anomaly]
        logger.info(
            "Forecast cycle: %d zones from %d samples, anomalies=%s",
            len(by_zone), len(samples), anomalies or "none",
        )
        return by_zone

    def run_periodically(self, stop_event: threading.Event, hours_ahead: Optional[int] = None) -> int:
        """
        Blocking loop; returns the number of completed cycles once stop_event is set.
        A cycle that cannot reach the store is logged and retried on the next tick.
        """
        cycles = 0
        while not stop_event.is_set():
            try:
                self.run_cycle(hours_ahead)
                cycles += 1
            except ExternalServiceError as error:
                logger.warning("Forecast cycle skipped: %s", error)
            stop_event.wait(self.policy.cycle_interval_seconds)
        return cycles

"""
Purpose: Central configuration for demand forecasting (single source of truth).
What it does:

Stores all forecasting constants:

MIN_SAMPLES = 3            (below this: baseline prediction)
SMOOTHING_ALPHA = 0.3
BLEND = 0.6 linear / 0.4 smoothed
ANOMALY_MIN_SAMPLES = 10
ANOMALY_Z_THRESHOLD = 2.5
CYCLE_INTERVAL_SECONDS = 300      (deployments override it with FORECAST_INTERVAL_SECONDS)

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from common.settings import Settings


@dataclass(frozen=True)
class ForecastPolicy:
    """
    Central configuration for the demand forecaster.
    """

    # --- Sparse data fallback ---
    min_samples: int = 3
    baseline_demand: int = 5
    baseline_confidence: int = 40

    # --- Blended forecast ---
    smoothing_alpha: float = 0.3
    linear_weight: float = 0.6
    smoothed_weight: float = 0.4

    # --- Trend labelling ---
    # |slope| above this (requests/hour per hour) is a trend, below is stable.
    trend_slope_threshold: float = 0.5

    # --- Confidence ---
    # Confidence grows linearly with sample count up to this many samples.
    full_confidence_samples: int = 50
    # Slopes steeper than this are treated as an unsettled series.
    steady_slope_limit: float = 2.0
    steady_trend_factor: float = 0.9
    unsteady_trend_factor: float = 0.6
    max_confidence: int = 95

    # --- Anomaly detection ---
    anomaly_min_samples: int = 10
    anomaly_z_threshold: float = 2.5

    # --- Scheduling ---
    cycle_interval_seconds: int = 300
    default_hours_ahead: int = 1

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.min_samples < 1:
            raise ValueError("min_samples must be >= 1")

        if not 0.0 < self.smoothing_alpha <= 1.0:
            raise ValueError("smoothing_alpha must be in (0, 1]")

        if abs(self.linear_weight + self.smoothed_weight - 1.0) > 1e-9:
            raise ValueError("linear_weight + smoothed_weight must equal 1")

        if self.full_confidence_samples <= 0:
            raise ValueError("full_confidence_samples must be > 0")

        if not 0 <= self.max_confidence <= 100:
            raise ValueError("max_confidence must be within 0..100")

        if self.anomaly_min_samples < 2:
            raise ValueError("anomaly_min_samples must be >= 2")

        if self.cycle_interval_seconds <= 0:
            raise ValueError("cycle_interval_seconds must be > 0")


def default_forecast_policy() -> ForecastPolicy:
    """
    Convenience factory for the default policy.
    """
    p = ForecastPolicy()
    p.validate()
    return p


def forecast_policy_from_settings(settings: Settings) -> ForecastPolicy:
    """
    Default policy with the deployment's cycle interval (FORECAST_INTERVAL_SECONDS).
    """
    p = replace(default_forecast_policy(), cycle_interval_seconds=settings.forecast_interval_seconds)
    p.validate()
    return p

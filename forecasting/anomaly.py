#Purpose: Statistical anomaly flag for a zone's latest demand observation.
#z = (latest - mean) / population std over every sample of the zone.
#Independent of the forecast: a zone can be "stable" and anomalous at once.

from __future__ import annotations

from typing import Iterable, Optional

from .history import samples_to_frame
from .models import DemandSample
from .policy import ForecastPolicy, default_forecast_policy


def detect_anomaly(
    samples: Iterable[DemandSample],
    zone: str,
    *,
    policy: Optional[ForecastPolicy] = None,
) -> bool:
    """
    True when the zone's most recent sample lies more than anomaly_z_threshold
    standard deviations from the zone mean.

    Always False below anomaly_min_samples, and False for a flat series (std 0).
    """
    policy = policy or default_forecast_policy()
    zone_samples = [sample for sample in samples if sample.zone == zone]

    if len(zone_samples) < policy.anomaly_min_samples:
        return False

    frame = samples_to_frame(zone_samples)
    # stable sort: among equal timestamps the last one supplied counts as most recent
    counts = frame.sort_values("timestamp", kind="mergesort")["count"].astype(float)

    mean = counts.mean()
    std = counts.std(ddof=0)
    if std == 0:
        return False

    z_score = (counts.iloc[-1] - mean) / std
    return bool(abs(z_score) > policy.anomaly_z_threshold)

"""
Purpose: Turn raw history into DemandSample series.
What it does:
- ride history -> one DemandSample per ride, mapped onto a campus zone
- DemandSample list <-> pandas DataFrame (zone, timestamp, count)
- CSV load/save of demand history

Zone mapping order for a ride:
  1) the ride's explicit `zone`
  2) registry zone whose name matches the pickup name
  3) nearest zone centroid to the pickup coordinates (Haversine)
Rides that match none of these are skipped.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Union

import pandas as pd

from routing.zones import ZoneRegistry
from .models import DemandSample

logger = logging.getLogger(__name__)

SAMPLE_COLUMNS = ["zone", "timestamp", "count"]


def samples_to_frame(samples: Iterable[DemandSample]) -> pd.DataFrame:
    frame = pd.DataFrame(
        [(sample.zone, sample.timestamp, sample.count) for sample in samples],
        columns=SAMPLE_COLUMNS,
    )
    frame["timestamp"] = pd.to_datetime(frame["timestamp"])
    return frame


def frame_to_samples(frame: pd.DataFrame) -> List[DemandSample]:
    timestamps = pd.to_datetime(frame["timestamp"])
    return [
        DemandSample(zone=str(zone), timestamp=timestamp.to_pydatetime(), count=float(count))
        for zone, timestamp, count in zip(frame["zone"], timestamps, frame["count"])
    ]


def load_samples_csv(path: Union[str, Path]) -> List[DemandSample]:
    """Read a zone,timestamp,count CSV. A missing count column means one request per row."""
    frame = pd.read_csv(path)
    missing = {"zone", "timestamp"} - set(frame.columns)
    if missing:
        raise ValueError(f"{path}: missing columns {sorted(missing)}")
    if "count" not in frame.columns:
        frame["count"] = 1
    return frame_to_samples(frame)


def save_samples_csv(samples: Sequence[DemandSample], path: Union[str, Path]) -> int:
    frame = samples_to_frame(samples)
    frame.to_csv(path, index=False)
    return len(frame)


def demand_samples_from_rides(rides: Iterable, registry: ZoneRegistry) -> List[DemandSample]:
    """
    One sample (count=1) per ride at its request_time, in the ride's zone.
    """
    samples: List[DemandSample] = []
    skipped = 0

    for ride in rides:
        zone_name = ride.zone
        if not zone_name:
            zone = registry.resolve(ride.pickup)
            zone_name = zone.name if zone else None

        if not zone_name:
            skipped += 1
            continue

        samples.append(DemandSample(zone=zone_name, timestamp=ride.request_time, count=1))

    if skipped:
        logger.debug("Skipped %d rides with no resolvable zone", skipped)
    return samples

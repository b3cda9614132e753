"""
Purpose: Ride history reports for the operations team.
What it does:
- flattens RideRequest records into a pandas DataFrame (one row per ride)
- summary counts + completion rate
- CSV export with the columns admins already use
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from .models import RideRequest, RideStatus

REPORT_COLUMNS = [
    "ride_id",
    "student_name",
    "student_id",
    "pickup",
    "destination",
    "driver_id",
    "driver_name",
    "vehicle_number",
    "priority",
    "priority_score",
    "status",
    "request_time",
    "assigned_time",
    "started_time",
    "completed_time",
    "cancelled_time",
]


@dataclass(frozen=True)
class RideSummary:
    total: int
    completed: int
    pending: int
    in_progress: int
    cancelled: int
    completion_rate: int  # percent, rounded


def rides_to_frame(rides: Iterable[RideRequest], status: Optional[RideStatus] = None) -> pd.DataFrame:
    rows = []
    for ride in rides:
        if status is not None and ride.status != status:
            continue
        driver = ride.assigned_driver
        rows.append({
            "ride_id": ride.id,
            "student_name": ride.student_name or "",
            "student_id": ride.student_id,
            "pickup": ride.pickup.name,
            "destination": ride.destination.name,
            "driver_id": driver.driver_id if driver else "",
            "driver_name": (driver.driver_name or "") if driver else "",
            "vehicle_number": (driver.vehicle_number or "") if driver else "",
            "priority": ride.priority_class.value,
            "priority_score": ride.priority_score,
            "status": ride.status.value,
            "request_time": ride.request_time,
            "assigned_time": ride.assigned_time,
            "started_time": ride.started_time,
            "completed_time": ride.completed_time,
            "cancelled_time": ride.cancelled_time,
        })
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def summarize_rides(rides: Iterable[RideRequest]) -> RideSummary:
    frame = rides_to_frame(rides)
    counts = frame["status"].value_counts()
    total = len(frame)
    completed = int(counts.get(RideStatus.COMPLETED.value, 0))
    return RideSummary(
        total=total,
        completed=completed,
        pending=int(counts.get(RideStatus.PENDING.value, 0)),
        in_progress=int(counts.get(RideStatus.IN_PROGRESS.value, 0)),
        cancelled=int(counts.get(RideStatus.CANCELLED.value, 0)),
        completion_rate=int(completed * 100 / total + 0.5) if total else 0,
    )


def export_rides_csv(rides: Iterable[RideRequest], path: Union[str, Path], status: Optional[RideStatus] = None) -> int:
    """Write the report to `path`; returns the number of rows written."""
    frame = rides_to_frame(rides, status=status)
    for column in ("request_time", "assigned_time", "started_time", "completed_time", "cancelled_time"):
        frame[column] = pd.to_datetime(frame[column]).dt.strftime("%Y-%m-%dT%H:%M:%S").fillna("")
    frame.to_csv(path, index=False)
    return len(frame)

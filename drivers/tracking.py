"""
Purpose: Driver location sharing, one explicit session object per driver device.
What it does:
- TrackingSession holds "is this driver sharing location" + the platform watch handle
- start_tracking / stop_tracking flip that state on the session passed in
- publish_location normalises a raw fix and writes it to the store, last write wins

Rule: No module-level tracking state. Two sessions never see each other's state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from common.exceptions import InvalidTransition
from routing.coordinates import normalize_location
from .models import LocationSample

logger = logging.getLogger(__name__)


@dataclass
class TrackingSession:
    driver_id: str
    is_tracking: bool = False
    watch_handle: Optional[Any] = None
    last_sample: Optional[LocationSample] = None


def start_tracking(session: TrackingSession, watch_handle: Any = None) -> TrackingSession:
    if session.is_tracking:
        raise InvalidTransition(session.driver_id, "tracking", "start tracking")
    session.is_tracking = True
    session.watch_handle = watch_handle
    logger.info("Driver %s started sharing location", session.driver_id)
    return session


def stop_tracking(session: TrackingSession) -> Optional[Any]:
    """
    Stop sharing; returns the watch handle so the caller can clear the platform watch.
    Stopping an idle session is a no-op that returns None.
    """
    handle = session.watch_handle
    session.is_tracking = False
    session.watch_handle = None
    if handle is not None:
        logger.info("Driver %s stopped sharing location", session.driver_id)
    return handle


def publish_location(
    session: TrackingSession,
    store,
    raw_location: Any,
    *,
    timestamp: Optional[datetime] = None,
    speed: Optional[float] = None,
    heading: Optional[float] = None,
) -> Optional[LocationSample]:
    """
    Push one telemetry fix for the session's driver.

    Returns the stored sample, or None when the session is not tracking (late fixes
    that arrive after stop are dropped). Out-of-order fixes are NOT reordered: the
    store keeps whichever write lands last.
    """
    if not session.is_tracking:
        logger.debug("Dropping fix for %s: session not tracking", session.driver_id)
        return None

    sample = LocationSample(
        point=normalize_location(raw_location),
        timestamp=timestamp or datetime.now(),
        speed=speed,
        heading=heading,
    )
    store.record_driver_location(session.driver_id, sample)
    session.last_sample = sample
    return sample

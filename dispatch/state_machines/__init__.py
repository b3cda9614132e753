from .ride_state import (
    RideStateMachine,
    assign_ride,
    cancel_ride,
    complete_ride,
    start_ride,
    submit_ride,
)
from .driver_state import (
    bring_driver_online,
    mark_driver_active,
    mark_driver_idle,
    take_driver_offline,
)

__all__ = [
    "RideStateMachine",
    "assign_ride",
    "cancel_ride",
    "complete_ride",
    "start_ride",
    "submit_ride",
    "bring_driver_online",
    "mark_driver_active",
    "mark_driver_idle",
    "take_driver_offline",
]

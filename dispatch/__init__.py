#Expose the high-level pipeline pieces:
#Ride lifecycle state machine (pure transitions + store-bound service)
#Dispatcher orchestrator (queue -> driver -> route -> notifications)

from .state_machines.ride_state import RideStateMachine
from .dispatcher import AssignmentCommand, Dispatcher

__all__ = [
    "RideStateMachine",
    "AssignmentCommand",
    "Dispatcher",
]

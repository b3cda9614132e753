"""
Purpose: The error taxonomy of the dispatch core.

ValidationError, InvalidTransition and Conflict are raised straight back to the
caller (the dispatcher) and must never be swallowed.
ExternalServiceError wraps store / feed / notifier transport failures; the core
never retries on its own.

Sparse forecasting input is NOT an error: see ForecastResult.insufficient_data.
"""


class DispatchError(Exception):
    """Base class for every error raised by the dispatch core."""
    pass


class ValidationError(DispatchError):
    """Malformed input: missing/identical pickup and destination, bad coordinates, etc."""
    pass


class InvalidTransition(DispatchError):
    """Raised when a ride or driver transition precondition is violated."""

    def __init__(self, record_id: str, current: str, attempted: str):
        self.record_id = record_id
        self.current = current
        self.attempted = attempted
        super().__init__(f"Cannot {attempted} {record_id} from status '{current}'")


class Conflict(DispatchError):
    """A concurrent mutation won the race for the same record."""
    pass


class NotFound(DispatchError):
    """A referenced ride, driver or zone does not exist."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} '{record_id}' not found")


class ExternalServiceError(DispatchError):
    """The store, change feed or notification backend could not be reached."""
    pass

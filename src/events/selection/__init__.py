"""Selection state machine for the booking page."""

from .flow import BackendResponse, BackendUnavailable, BookingBackend, BookingFlow
from .machine import submission_payload, transition
from .state import SelectionState, Step

__all__ = [
    "BackendResponse",
    "BackendUnavailable",
    "BookingBackend",
    "BookingFlow",
    "SelectionState",
    "Step",
    "submission_payload",
    "transition",
]

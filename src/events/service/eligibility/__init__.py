from .enums import FlowState, ItemStatus, Reasons, SaleStatus
from .gates import sale_status
from .service import EligibilityService
from .types import EventEligibility, ItemEligibility

__all__ = [
    "EligibilityService",
    "EventEligibility",
    "FlowState",
    "ItemEligibility",
    "ItemStatus",
    "Reasons",
    "SaleStatus",
    "sale_status",
]

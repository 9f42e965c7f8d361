"""Events schema package.

All schemas are re-exported here so controllers can use ``schema.X``.
"""

from .booking import (
    AddOnSelectionSchema,
    BookingAddOnLineSchema,
    BookingErrorSchema,
    BookingListFilter,
    BookingPayload,
    BookingResponseSchema,
    BookingSchema,
    FormAnswerSchema,
)
from .event import (
    AddOnCatalogSchema,
    AddOnGroupSchema,
    EventCatalogSchema,
    EventStatsSchema,
    EventSummarySchema,
    FormFieldSchema,
    TicketTypeCatalogSchema,
)
from .waitlist import WaitlistEntrySchema, WaitlistJoinPayload, WaitlistJoinResponse

__all__ = [
    # Event catalog
    "AddOnCatalogSchema",
    "AddOnGroupSchema",
    "EventCatalogSchema",
    "EventStatsSchema",
    "EventSummarySchema",
    "FormFieldSchema",
    "TicketTypeCatalogSchema",
    # Bookings
    "AddOnSelectionSchema",
    "BookingAddOnLineSchema",
    "BookingErrorSchema",
    "BookingListFilter",
    "BookingPayload",
    "BookingResponseSchema",
    "BookingSchema",
    "FormAnswerSchema",
    # Waitlist
    "WaitlistEntrySchema",
    "WaitlistJoinPayload",
    "WaitlistJoinResponse",
]

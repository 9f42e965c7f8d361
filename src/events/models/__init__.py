from .booking import BookingAddOn, EventBooking, EventFormField, FormResponse
from .event import Event
from .mixins import PurchasableMixin, SaleWindowMixin
from .ticket import AddOn, AddOnGroup, TicketType
from .waitlist import EventWaitlistEntry

__all__ = [
    # Events
    "Event",
    # Catalog
    "AddOn",
    "AddOnGroup",
    "EventFormField",
    "TicketType",
    # Bookings
    "BookingAddOn",
    "EventBooking",
    "FormResponse",
    # Waitlist
    "EventWaitlistEntry",
    # Mixins
    "PurchasableMixin",
    "SaleWindowMixin",
]

# src/events/admin/__init__.py
"""Events admin module.

Django autodiscover will import this module, which triggers registration
of all admin classes via the @admin.register decorators in submodules.
"""

from events.admin.booking import EventBookingAdmin
from events.admin.event import AddOnAdmin, EventAdmin, TicketTypeAdmin
from events.admin.waitlist import EventWaitlistEntryAdmin

__all__ = [
    # Event
    "EventAdmin",
    "TicketTypeAdmin",
    "AddOnAdmin",
    # Booking
    "EventBookingAdmin",
    # Waitlist
    "EventWaitlistEntryAdmin",
]

"""Enums for the booking eligibility system."""

from enum import StrEnum

from django.utils.translation import gettext_noop


class FlowState(StrEnum):
    """Event-level outcome. Anything but OPEN ends the booking flow before ticket selection."""

    OPEN = "open"
    CANCELLED = "cancelled"
    CLOSED = "closed"
    NOT_OPEN = "not_open"
    SOLD_OUT = "sold_out"


class ItemStatus(StrEnum):
    """Per ticket type / add-on classification."""

    SELECTABLE = "selectable"
    SOLD_OUT = "sold_out"
    NOT_ON_SALE_YET = "not_on_sale_yet"
    SALE_ENDED = "sale_ended"
    LOCKED = "locked"


class SaleStatus(StrEnum):
    OPEN = "open"
    NOT_STARTED = "not_started"
    ENDED = "ended"


class Reasons(StrEnum):
    """Human-readable explanations attached to eligibility results.

    Note: Strings are marked with _noop() for translation extraction.
    The actual translation happens in gates.py when using _(Reasons.XXX).
    """

    EVENT_CANCELLED = gettext_noop("This event has been cancelled.")
    EVENT_CLOSED = gettext_noop("Registration for this event is closed.")
    EVENT_NOT_OPEN = gettext_noop("Registration for this event is not open yet.")
    EVENT_SOLD_OUT = gettext_noop("This event is sold out.")
    NO_TICKETS_ON_SALE = gettext_noop("Tickets are not currently on sale.")
    WAITLIST_ONLY = gettext_noop("This event is sold out. Join the waitlist to be notified when a spot opens.")

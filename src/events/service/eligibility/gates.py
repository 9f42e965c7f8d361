"""Eligibility gate classes for the booking engine.

Event gates decide once per event whether the booking flow can start at all. Item gates
classify a single ticket type or add-on. Gates are evaluated in list order and the first
one that returns a result wins.
"""

from __future__ import annotations

import abc
import datetime
from typing import TYPE_CHECKING

from django.utils.translation import gettext as _

from events.models import AddOn, Event, TicketType
from events.service.capacity import AddOnAvailability, TicketAvailability

from .enums import FlowState, ItemStatus, Reasons, SaleStatus
from .types import EventEligibility

if TYPE_CHECKING:
    from .service import EligibilityService


def sale_status(item: TicketType | AddOn, now: datetime.datetime) -> SaleStatus:
    if item.sale_starts_at and item.sale_starts_at > now:
        return SaleStatus.NOT_STARTED
    if item.sale_ends_at and item.sale_ends_at < now:
        return SaleStatus.ENDED
    return SaleStatus.OPEN


class BaseEventGate(abc.ABC):
    """Abstract Base Class for a composable event-level check."""

    def __init__(self, handler: EligibilityService) -> None:
        """Initialize the gate."""
        self.handler = handler
        self.event: Event = handler.event

    def result(self, state: FlowState, reason: Reasons, **kwargs: object) -> EventEligibility:
        return EventEligibility(event_id=self.event.pk, state=state, reason=_(reason), **kwargs)  # type: ignore[arg-type]

    @abc.abstractmethod
    def check(self) -> EventEligibility | None:
        """Perform the check.

        Returns:
            EventEligibility if this gate ends the flow, None to continue to the next gate.
        """


class CancelledEventGate(BaseEventGate):
    """Gate #1: Cancelled events short-circuit everything."""

    def check(self) -> EventEligibility | None:
        """Check the status."""
        if self.event.status == Event.EventStatus.CANCELLED:
            return self.result(FlowState.CANCELLED, Reasons.EVENT_CANCELLED)
        return None


class ClosedEventGate(BaseEventGate):
    """Gate #2: Events closed by an admin."""

    def check(self) -> EventEligibility | None:
        """Check the status."""
        if self.event.status == Event.EventStatus.CLOSED:
            return self.result(FlowState.CLOSED, Reasons.EVENT_CLOSED)
        return None


class DraftEventGate(BaseEventGate):
    """Gate #3: Drafts are never bookable."""

    def check(self) -> EventEligibility | None:
        """Check the status."""
        if self.event.status == Event.EventStatus.DRAFT:
            return self.result(FlowState.NOT_OPEN, Reasons.EVENT_NOT_OPEN)
        return None


class SoldOutGate(BaseEventGate):
    """Gate #4: Sold out without a waitlist ends the flow.

    With the waitlist enabled the flow continues, flagged as waitlist-only.
    """

    def check(self) -> EventEligibility | None:
        """Check event capacity."""
        if self.handler.is_sold_out and not self.event.waitlist_enabled:
            return self.result(FlowState.SOLD_OUT, Reasons.EVENT_SOLD_OUT)
        return None


class RegistrationWindowGate(BaseEventGate):
    """Gate #5: The registration window, when configured."""

    def check(self) -> EventEligibility | None:
        """Check the window against the evaluation time."""
        now = self.handler.now
        opens_at = self.event.registration_opens_at
        if opens_at and opens_at > now:
            return self.result(FlowState.NOT_OPEN, Reasons.EVENT_NOT_OPEN, opens_at=opens_at)
        closes_at = self.event.registration_closes_at
        if closes_at and closes_at < now:
            return self.result(FlowState.CLOSED, Reasons.EVENT_CLOSED)
        return None


class BookableTicketGate(BaseEventGate):
    """Gate #6: Status alone is not enough. At least one ticket type must still be on sale."""

    def check(self) -> EventEligibility | None:
        """Check that some ticket type's sale has not ended."""
        ticket_types = self.handler.ticket_types
        if not ticket_types or all(
            sale_status(ticket, self.handler.now) == SaleStatus.ENDED for ticket in ticket_types
        ):
            return self.result(FlowState.CLOSED, Reasons.NO_TICKETS_ON_SALE)
        return None


EVENT_GATES: list[type[BaseEventGate]] = [
    CancelledEventGate,
    ClosedEventGate,
    DraftEventGate,
    SoldOutGate,
    RegistrationWindowGate,
    BookableTicketGate,
]


class BaseItemGate(abc.ABC):
    """Abstract Base Class for a per-item check."""

    def __init__(
        self,
        handler: EligibilityService,
        item: TicketType | AddOn,
        availability: TicketAvailability | AddOnAvailability,
        unlocked: bool,
    ) -> None:
        """Initialize the gate for one item."""
        self.handler = handler
        self.item = item
        self.availability = availability
        self.unlocked = unlocked

    @abc.abstractmethod
    def check(self) -> ItemStatus | None:
        """Return a blocking status, or None to continue to the next gate."""


class SaleWindowGate(BaseItemGate):
    """Item gate #1: "Coming soon" and "sale ended" win over capacity."""

    def check(self) -> ItemStatus | None:
        """Check the sale window."""
        match sale_status(self.item, self.handler.now):
            case SaleStatus.NOT_STARTED:
                return ItemStatus.NOT_ON_SALE_YET
            case SaleStatus.ENDED:
                return ItemStatus.SALE_ENDED
        return None


class CapacityGate(BaseItemGate):
    """Item gate #2: Sold out wins over the access code."""

    def check(self) -> ItemStatus | None:
        """Check remaining capacity."""
        if self.availability.is_sold_out:
            return ItemStatus.SOLD_OUT
        return None


class AccessCodeGate(BaseItemGate):
    """Item gate #3: Gated ticket types stay locked until a code was entered in the session.

    The code is not verified here; the booking service does that at submission.
    """

    def check(self) -> ItemStatus | None:
        """Check whether the item is gated and still locked."""
        if isinstance(self.item, TicketType) and self.item.requires_code and not self.unlocked:
            return ItemStatus.LOCKED
        return None


ITEM_GATES: list[type[BaseItemGate]] = [
    SaleWindowGate,
    CapacityGate,
    AccessCodeGate,
]

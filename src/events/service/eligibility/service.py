"""EligibilityService for deciding what can be booked right now."""

import datetime
import typing as t
import uuid
from functools import cached_property

from django.utils import timezone
from django.utils.translation import gettext as _

from events.models import AddOn, Event, TicketType
from events.service.capacity import CapacityLedger, LedgerSnapshot

from .enums import FlowState, ItemStatus, Reasons
from .gates import EVENT_GATES, ITEM_GATES, BaseEventGate, sale_status
from .types import EventEligibility, ItemEligibility


class EligibilityService:
    """The Eligibility Service Class.

    Combines a ledger snapshot with the sale windows, the registration window and the access
    code configuration. All checks run in memory once the service has been constructed.
    """

    def __init__(
        self,
        event: Event,
        *,
        ledger: LedgerSnapshot | None = None,
        now: datetime.datetime | None = None,
        ticket_types: t.Iterable[TicketType] | None = None,
        add_ons: t.Iterable[AddOn] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            event: The event being booked.
            ledger: A precomputed snapshot. Computed from the database when omitted.
            now: Evaluation time. Defaults to the current time.
            ticket_types: Ticket types to evaluate. Defaults to all of the event's ticket types.
            add_ons: Add-ons to evaluate. Defaults to all of the event's add-ons.
        """
        self.event = event
        self.now = now or timezone.now()
        self.ticket_types: list[TicketType] = list(
            ticket_types if ticket_types is not None else TicketType.objects.filter(event=event)
        )
        self.add_ons: list[AddOn] = list(add_ons if add_ons is not None else AddOn.objects.filter(event=event))
        self.ledger = ledger or CapacityLedger(event).snapshot(ticket_types=self.ticket_types, add_ons=self.add_ons)
        self._gates: list[BaseEventGate] = [gate(self) for gate in EVENT_GATES]

    @cached_property
    def is_sold_out(self) -> bool:
        """Event-wide sold out: no spots, an admin-set sold_out status, or every ticket type sold out."""
        if self.ledger.is_sold_out or self.event.status == Event.EventStatus.SOLD_OUT:
            return True
        tickets = [self.ledger.per_ticket.get(ticket.pk) for ticket in self.ticket_types]
        return bool(tickets) and all(ticket is not None and ticket.is_sold_out for ticket in tickets)

    def check_event(self) -> EventEligibility:
        """Run the event gates in order.

        Returns:
            The first blocking result, or an OPEN result, flagged waitlist-only when sold out.
        """
        for gate in self._gates:
            if result := gate.check():
                return result

        if self.is_sold_out:
            return EventEligibility(
                event_id=self.event.pk,
                state=FlowState.OPEN,
                reason=_(Reasons.WAITLIST_ONLY),
                waitlist_only=True,
            )
        return EventEligibility(event_id=self.event.pk, state=FlowState.OPEN)

    def check_ticket(self, ticket: TicketType, unlocked_ticket_ids: t.Container[uuid.UUID] = ()) -> ItemEligibility:
        """Classify a ticket type. Sale window, then capacity, then access code."""
        availability = self.ledger.ticket(ticket.pk)
        unlocked = ticket.pk in unlocked_ticket_ids
        return ItemEligibility(
            item_id=ticket.pk,
            status=self._run_item_gates(ticket, availability, unlocked),
            sale_status=sale_status(ticket, self.now),
            requires_code=ticket.requires_code,
        )

    def check_add_on(self, add_on: AddOn) -> ItemEligibility:
        """Classify an add-on. Add-ons are never code-gated."""
        availability = self.ledger.add_on(add_on.pk)
        return ItemEligibility(
            item_id=add_on.pk,
            status=self._run_item_gates(add_on, availability, unlocked=True),
            sale_status=sale_status(add_on, self.now),
        )

    def _run_item_gates(self, item: TicketType | AddOn, availability: t.Any, unlocked: bool) -> ItemStatus:
        for gate_class in ITEM_GATES:
            if status := gate_class(self, item, availability, unlocked).check():
                return status
        return ItemStatus.SELECTABLE

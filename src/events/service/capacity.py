"""Capacity ledger.

Remaining inventory is never stored. It is derived on every read from the booking rows
whose status is pending or confirmed, at three granularities: the whole event, each
ticket type and each add-on. Raw figures may go negative when a race overbooks; display
figures are floored at zero and anything at or below zero counts as sold out.
"""

import typing as t
import uuid
from dataclasses import dataclass, field

from django.db.models import Sum

from events.models import AddOn, BookingAddOn, Event, EventBooking, TicketType


def floor_zero(value: int | None) -> int | None:
    return None if value is None else max(0, value)


@dataclass(frozen=True)
class TicketAvailability:
    ticket_type_id: uuid.UUID
    capacity: int | None
    sold_count: int
    available: int | None
    """Own remaining capacity, raw. ``None`` when the ticket has no cap of its own."""
    effective_available: int
    """``min(available, spots_remaining)``, raw. The event always bounds a ticket."""

    @property
    def display_available(self) -> int | None:
        return floor_zero(self.available)

    @property
    def display_effective_available(self) -> int:
        return max(0, self.effective_available)

    @property
    def is_sold_out(self) -> bool:
        return self.effective_available <= 0

    def max_purchasable(self, max_per_order: int) -> int:
        """Upper bound of the quantity stepper for this ticket."""
        return max(0, min(max_per_order, self.effective_available))


@dataclass(frozen=True)
class AddOnAvailability:
    add_on_id: uuid.UUID
    capacity: int | None
    sold_count: int
    available: int | None
    """Own remaining capacity, raw. Add-ons are never bounded by the event."""

    @property
    def display_available(self) -> int | None:
        return floor_zero(self.available)

    @property
    def is_sold_out(self) -> bool:
        return self.available is not None and self.available <= 0

    def max_purchasable(self, max_per_order: int) -> int:
        if self.available is None:
            return max_per_order
        return max(0, min(max_per_order, self.available))


@dataclass(frozen=True)
class LedgerSnapshot:
    event_id: uuid.UUID
    total_capacity: int
    total_booked: int
    spots_remaining: int
    per_ticket: dict[uuid.UUID, TicketAvailability] = field(default_factory=dict)
    per_addon: dict[uuid.UUID, AddOnAvailability] = field(default_factory=dict)

    @property
    def display_spots_remaining(self) -> int:
        return max(0, self.spots_remaining)

    @property
    def is_sold_out(self) -> bool:
        return self.spots_remaining <= 0

    def ticket(self, ticket_type_id: uuid.UUID) -> TicketAvailability:
        return self.per_ticket[ticket_type_id]

    def add_on(self, add_on_id: uuid.UUID) -> AddOnAvailability:
        return self.per_addon[add_on_id]


class CapacityLedger:
    """Derives a LedgerSnapshot for one event from its active bookings."""

    def __init__(self, event: Event) -> None:
        """Bind the ledger to an event."""
        self.event = event

    @classmethod
    def for_event(cls, event: Event, *, locked: bool = False) -> LedgerSnapshot:
        """Snapshot an event. With ``locked`` the event row is locked first; call it inside a transaction."""
        if locked:
            event = Event.objects.select_for_update().get(pk=event.pk)
        return cls(event).snapshot()

    def ticket_sold_counts(self) -> dict[uuid.UUID, int]:
        rows = (
            EventBooking.objects.active()
            .filter(event_id=self.event.pk)
            .order_by()
            .values("ticket_type_id")
            .annotate(total=Sum("quantity"))
            .values_list("ticket_type_id", "total")
        )
        return {ticket_type_id: total or 0 for ticket_type_id, total in rows}

    def add_on_sold_counts(self) -> dict[uuid.UUID, int]:
        rows = (
            BookingAddOn.objects.filter(
                booking__event_id=self.event.pk,
                booking__status__in=EventBooking.ACTIVE_STATUSES,
            )
            .order_by()
            .values("add_on_id")
            .annotate(total=Sum("quantity"))
            .values_list("add_on_id", "total")
        )
        return {add_on_id: total or 0 for add_on_id, total in rows}

    def snapshot(
        self,
        ticket_types: t.Iterable[TicketType] | None = None,
        add_ons: t.Iterable[AddOn] | None = None,
    ) -> LedgerSnapshot:
        """Compute the snapshot.

        Args:
            ticket_types: Ticket types to include. Defaults to every ticket type of the event.
            add_ons: Add-ons to include. Defaults to every add-on of the event.
        """
        ticket_sold = self.ticket_sold_counts()
        add_on_sold = self.add_on_sold_counts()
        # Bookings on ticket types that were filtered out still consume event capacity.
        total_booked = sum(ticket_sold.values())
        spots_remaining = self.event.total_capacity - total_booked

        if ticket_types is None:
            ticket_types = TicketType.objects.filter(event_id=self.event.pk)
        if add_ons is None:
            add_ons = AddOn.objects.filter(event_id=self.event.pk)

        per_ticket: dict[uuid.UUID, TicketAvailability] = {}
        for ticket in ticket_types:
            sold = ticket_sold.get(ticket.pk, 0)
            available = None if ticket.capacity is None else ticket.capacity - sold
            effective = spots_remaining if available is None else min(available, spots_remaining)
            per_ticket[ticket.pk] = TicketAvailability(
                ticket_type_id=ticket.pk,
                capacity=ticket.capacity,
                sold_count=sold,
                available=available,
                effective_available=effective,
            )

        per_addon: dict[uuid.UUID, AddOnAvailability] = {}
        for add_on in add_ons:
            sold = add_on_sold.get(add_on.pk, 0)
            per_addon[add_on.pk] = AddOnAvailability(
                add_on_id=add_on.pk,
                capacity=add_on.capacity,
                sold_count=sold,
                available=None if add_on.capacity is None else add_on.capacity - sold,
            )

        return LedgerSnapshot(
            event_id=self.event.pk,
            total_capacity=self.event.total_capacity,
            total_booked=total_booked,
            spots_remaining=spots_remaining,
            per_ticket=per_ticket,
            per_addon=per_addon,
        )

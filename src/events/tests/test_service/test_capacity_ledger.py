import typing as t

import pytest

from events.models import AddOn, BookingAddOn, Event, EventBooking, TicketType
from events.service.capacity import CapacityLedger

pytestmark = pytest.mark.django_db


class TestCapacityLedger:
    def test_counts_only_pending_and_confirmed_bookings(
        self, event: Event, ticket_type: TicketType, make_booking: t.Callable[..., EventBooking]
    ) -> None:
        make_booking(ticket_type, quantity=2, status=EventBooking.BookingStatus.CONFIRMED)
        make_booking(ticket_type, quantity=3, status=EventBooking.BookingStatus.PENDING)
        make_booking(ticket_type, quantity=4, status=EventBooking.BookingStatus.CANCELLED)
        make_booking(ticket_type, quantity=5, status=EventBooking.BookingStatus.REFUNDED)

        ledger = CapacityLedger.for_event(event)

        assert ledger.total_booked == 5
        assert ledger.spots_remaining == 95
        availability = ledger.ticket(ticket_type.pk)
        assert availability.sold_count == 5
        assert availability.available == 45
        assert availability.effective_available == 45

    def test_event_cap_bounds_uncapped_ticket(
        self, event: Event, make_booking: t.Callable[..., EventBooking]
    ) -> None:
        """Two tickets left on a two-seat event: an uncapped ticket type is sold out."""
        event.total_capacity = 2
        event.save()
        ga = TicketType.objects.create(event=event, name="GA", price=5000, capacity=None, max_per_order=4)
        make_booking(ga, quantity=1)
        make_booking(ga, quantity=1)

        ledger = CapacityLedger.for_event(event)

        assert ledger.spots_remaining == 0
        assert ledger.is_sold_out
        availability = ledger.ticket(ga.pk)
        assert availability.available is None
        assert availability.effective_available == 0
        assert availability.is_sold_out
        assert availability.max_purchasable(ga.max_per_order) == 0

    def test_event_cap_dominates_own_capacity(self, event: Event, make_booking: t.Callable[..., EventBooking]) -> None:
        event.total_capacity = 5
        event.save()
        big = TicketType.objects.create(event=event, name="Big", price=1000, capacity=50)
        other = TicketType.objects.create(event=event, name="Other", price=1000, capacity=50)
        make_booking(other, quantity=3)

        availability = CapacityLedger.for_event(event).ticket(big.pk)

        assert availability.available == 50
        assert availability.effective_available == 2
        assert availability.max_purchasable(10) == 2

    def test_overbooked_figures_are_raw_but_display_is_floored(
        self, event: Event, ticket_type: TicketType, make_booking: t.Callable[..., EventBooking]
    ) -> None:
        ticket_type.capacity = 2
        ticket_type.save()
        event.total_capacity = 3
        event.save()
        make_booking(ticket_type, quantity=4)

        ledger = CapacityLedger.for_event(event)
        availability = ledger.ticket(ticket_type.pk)

        assert ledger.spots_remaining == -1
        assert ledger.display_spots_remaining == 0
        assert availability.available == -2
        assert availability.display_available == 0
        assert availability.display_effective_available == 0
        assert availability.is_sold_out

    def test_add_on_counts_follow_booking_status(
        self,
        event: Event,
        ticket_type: TicketType,
        vegan_meal: AddOn,
        parking: AddOn,
        make_booking: t.Callable[..., EventBooking],
    ) -> None:
        active = make_booking(ticket_type, quantity=1)
        cancelled = make_booking(ticket_type, quantity=1, status=EventBooking.BookingStatus.CANCELLED)
        BookingAddOn.objects.create(booking=active, add_on=vegan_meal, quantity=2, price_at_purchase=1500)
        BookingAddOn.objects.create(booking=cancelled, add_on=vegan_meal, quantity=5, price_at_purchase=1500)

        ledger = CapacityLedger.for_event(event)

        assert ledger.add_on(vegan_meal.pk).sold_count == 2
        assert ledger.add_on(vegan_meal.pk).available == 18
        assert ledger.add_on(parking.pk).available is None
        assert ledger.add_on(parking.pk).max_purchasable(3) == 3
        assert not ledger.add_on(parking.pk).is_sold_out

    def test_add_ons_are_not_bounded_by_event(
        self, event: Event, ticket_type: TicketType, vegan_meal: AddOn, make_booking: t.Callable[..., EventBooking]
    ) -> None:
        event.total_capacity = 1
        event.save()
        make_booking(ticket_type, quantity=1)

        ledger = CapacityLedger.for_event(event)

        assert ledger.is_sold_out
        assert ledger.add_on(vegan_meal.pk).available == 20

    def test_sold_count_matches_active_quantity_sum(
        self,
        event: Event,
        ticket_type: TicketType,
        free_ticket_type: TicketType,
        make_booking: t.Callable[..., EventBooking],
    ) -> None:
        for quantity in (1, 2, 3):
            make_booking(ticket_type, quantity=quantity)
        make_booking(free_ticket_type, quantity=4, status=EventBooking.BookingStatus.PENDING)

        ledger = CapacityLedger.for_event(event)

        assert ledger.total_booked == EventBooking.objects.filter(event=event).active().total_quantity() == 10
        assert sum(availability.sold_count for availability in ledger.per_ticket.values()) == ledger.total_booked

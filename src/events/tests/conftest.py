import typing as t

import faker
import pytest

from events.models import AddOn, AddOnGroup, Event, EventBooking, EventFormField, TicketType

fake = faker.Faker()


@pytest.fixture
def event() -> Event:
    return Event.objects.create(
        name="Summer Gala",
        slug="summer-gala",
        status=Event.EventStatus.PUBLISHED,
        total_capacity=100,
        currency="usd",
    )


@pytest.fixture
def ticket_type(event: Event) -> TicketType:
    """A paid ticket type with its own cap."""
    return TicketType.objects.create(
        event=event, name="General Admission", price=2000, capacity=50, max_per_order=10, sort_order=1
    )


@pytest.fixture
def free_ticket_type(event: Event) -> TicketType:
    return TicketType.objects.create(event=event, name="Community", price=0, sort_order=2)


@pytest.fixture
def vip_ticket_type(event: Event) -> TicketType:
    """A hidden ticket type unlocked by an access code."""
    return TicketType.objects.create(
        event=event,
        name="VIP",
        price=5000,
        capacity=10,
        visibility=TicketType.Visibility.HIDDEN,
        access_code="GOLD",
        sort_order=3,
    )


@pytest.fixture
def meal_group(event: Event) -> AddOnGroup:
    return AddOnGroup.objects.create(event=event, name="Meal", selection_type=AddOnGroup.SelectionType.ONE_ONLY)


@pytest.fixture
def vegan_meal(event: Event, meal_group: AddOnGroup) -> AddOn:
    return AddOn.objects.create(event=event, group=meal_group, name="Vegan", price=1500, capacity=20, sort_order=1)


@pytest.fixture
def steak_meal(event: Event, meal_group: AddOnGroup) -> AddOn:
    return AddOn.objects.create(event=event, group=meal_group, name="Steak", price=2000, capacity=20, sort_order=2)


@pytest.fixture
def parking(event: Event) -> AddOn:
    return AddOn.objects.create(event=event, name="Parking", price=500, max_per_order=3, sort_order=3)


@pytest.fixture
def shirt_size_field(event: Event) -> EventFormField:
    return EventFormField.objects.create(
        event=event,
        label="Shirt size",
        field_type=EventFormField.FieldType.SELECT,
        options=["S", "M", "L"],
        required=True,
    )


@pytest.fixture
def identity() -> dict[str, str]:
    return {"first_name": fake.first_name(), "last_name": fake.last_name(), "email": fake.email()}


@pytest.fixture
def make_booking() -> t.Callable[..., EventBooking]:
    """Create a booking row directly, bypassing submission checks."""

    def _make(
        ticket: TicketType,
        quantity: int = 1,
        status: str = EventBooking.BookingStatus.CONFIRMED,
        **kwargs: t.Any,
    ) -> EventBooking:
        return EventBooking.objects.create(
            event=ticket.event,
            ticket_type=ticket,
            first_name=kwargs.pop("first_name", fake.first_name()),
            last_name=kwargs.pop("last_name", fake.last_name()),
            email=kwargs.pop("email", fake.email()),
            status=status,
            quantity=quantity,
            ticket_price_at_purchase=ticket.price,
            total_amount=kwargs.pop("total_amount", ticket.price * quantity),
            currency=ticket.event.currency,
            **kwargs,
        )

    return _make

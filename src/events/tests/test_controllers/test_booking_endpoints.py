"""Tests for the public booking endpoints."""

import typing as t
from unittest.mock import MagicMock, patch

import orjson
import pytest
from django.test.client import Client
from django.urls import reverse

from events.models import Event, EventBooking, EventWaitlistEntry, TicketType

pytestmark = pytest.mark.django_db


def post_json(client: Client, url: str, payload: dict[str, t.Any]) -> t.Any:
    return client.post(url, data=orjson.dumps(payload), content_type="application/json")


class TestEventCatalogEndpoint:
    def test_returns_catalog(self, client: Client, event: Event, ticket_type: TicketType) -> None:
        response = client.get(reverse("api:event_catalog", kwargs={"slug": event.slug}))

        assert response.status_code == 200
        data = response.json()
        assert data["event"]["slug"] == "summer-gala"
        assert data["event"]["spots_remaining"] == 100
        assert data["ticket_types"][0]["id"] == str(ticket_type.pk)

    def test_draft_event_is_not_found(self, client: Client, event: Event) -> None:
        event.status = Event.EventStatus.DRAFT
        event.save()

        response = client.get(reverse("api:event_catalog", kwargs={"slug": event.slug}))

        assert response.status_code == 404

    def test_cancelled_event_is_served_with_flow_state(self, client: Client, event: Event) -> None:
        event.status = Event.EventStatus.CANCELLED
        event.save()

        response = client.get(reverse("api:event_catalog", kwargs={"slug": event.slug}))

        assert response.status_code == 200
        assert response.json()["event"]["flow_state"] == "cancelled"

    def test_access_code_is_not_leaked(self, client: Client, event: Event) -> None:
        TicketType.objects.create(event=event, name="Members", price=1000, access_code="SECRET")

        response = client.get(reverse("api:event_catalog", kwargs={"slug": event.slug}))

        assert response.status_code == 200
        assert b"SECRET" not in response.content
        assert response.json()["ticket_types"][0]["requires_code"] is True

    def test_invitation_code_reveals_hidden_ticket_type(
        self, client: Client, event: Event, ticket_type: TicketType, vip_ticket_type: TicketType
    ) -> None:
        url = reverse("api:event_catalog", kwargs={"slug": event.slug})

        listed = [row["id"] for row in client.get(url).json()["ticket_types"]]
        response = client.get(url, {"code": "GOLD"})

        assert listed == [str(ticket_type.pk)]
        assert response.status_code == 200
        revealed = {row["id"]: row for row in response.json()["ticket_types"]}
        assert revealed[str(vip_ticket_type.pk)]["revealed_by_code"] is True
        assert revealed[str(vip_ticket_type.pk)]["status"] == "selectable"
        assert b"GOLD" not in response.content


class TestCreateBookingEndpoint:
    def url(self, event: Event) -> str:
        return reverse("api:create_booking", kwargs={"event_id": event.pk})

    def test_free_booking_is_confirmed(
        self, client: Client, event: Event, free_ticket_type: TicketType, identity: dict[str, str]
    ) -> None:
        # Act
        with patch("events.tasks.send_booking_confirmation_email.delay"):
            response = post_json(
                client, self.url(event), {"ticket_type_id": str(free_ticket_type.pk), "quantity": 2, **identity}
            )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "confirmed"
        assert data["free"] is True
        assert data["checkout_url"] is None
        assert EventBooking.objects.get(pk=data["booking_id"]).quantity == 2

    def test_paid_booking_returns_checkout_url(
        self, client: Client, event: Event, ticket_type: TicketType, identity: dict[str, str]
    ) -> None:
        checkout_url = "https://checkout.stripe.com/c/pay/cs_test_xyz#fidk=abc"
        session = MagicMock(id="cs_test_xyz", url=checkout_url)

        with patch("events.service.stripe_service.Session.create", return_value=session):
            response = post_json(
                client, self.url(event), {"ticket_type_id": str(ticket_type.pk), "quantity": 1, **identity}
            )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending"
        assert data["checkout_url"] == checkout_url
        assert data["total_amount"] == 2000

    def test_sold_out_is_a_conflict(
        self,
        client: Client,
        event: Event,
        ticket_type: TicketType,
        identity: dict[str, str],
        make_booking: t.Callable[..., EventBooking],
    ) -> None:
        event.total_capacity = 1
        event.save()
        make_booking(ticket_type)

        response = post_json(client, self.url(event), {"ticket_type_id": str(ticket_type.pk), **identity})

        assert response.status_code == 409
        assert response.json() == {"error": "sold_out", "detail": "This event is sold out."}

    def test_wrong_access_code(
        self, client: Client, event: Event, vip_ticket_type: TicketType, identity: dict[str, str]
    ) -> None:
        response = post_json(
            client,
            self.url(event),
            {"ticket_type_id": str(vip_ticket_type.pk), "access_code": "SILVER", **identity},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_access_code"

    def test_invalid_email_is_unprocessable(self, client: Client, event: Event, ticket_type: TicketType) -> None:
        payload = {"ticket_type_id": str(ticket_type.pk), "first_name": "A", "last_name": "B", "email": "nope"}

        response = post_json(client, self.url(event), payload)

        assert response.status_code == 422
        assert not EventBooking.objects.exists()

    def test_unknown_event(self, client: Client, identity: dict[str, str], ticket_type: TicketType) -> None:
        url = reverse("api:create_booking", kwargs={"event_id": "00000000-0000-0000-0000-000000000000"})

        response = post_json(client, url, {"ticket_type_id": str(ticket_type.pk), **identity})

        assert response.status_code == 404


class TestJoinWaitlistEndpoint:
    @pytest.fixture
    def sold_out_event(
        self, event: Event, ticket_type: TicketType, make_booking: t.Callable[..., EventBooking]
    ) -> Event:
        event.total_capacity = 1
        event.waitlist_enabled = True
        event.save()
        make_booking(ticket_type)
        return event

    def test_join(self, client: Client, sold_out_event: Event, identity: dict[str, str]) -> None:
        url = reverse("api:join_waitlist", kwargs={"event_id": sold_out_event.pk})

        response = post_json(client, url, identity)

        assert response.status_code == 201
        data = response.json()
        assert data["position"] == 1
        assert EventWaitlistEntry.objects.filter(pk=data["waitlist_entry_id"]).exists()

    def test_join_twice_is_a_conflict(self, client: Client, sold_out_event: Event, identity: dict[str, str]) -> None:
        url = reverse("api:join_waitlist", kwargs={"event_id": sold_out_event.pk})
        post_json(client, url, identity)

        response = post_json(client, url, identity)

        assert response.status_code == 409
        assert response.json()["detail"] == "You are already on the waitlist for this event."

    def test_booking_a_waitlist_only_event_is_refused(
        self, client: Client, sold_out_event: Event, ticket_type: TicketType, identity: dict[str, str]
    ) -> None:
        url = reverse("api:create_booking", kwargs={"event_id": sold_out_event.pk})

        response = post_json(client, url, {"ticket_type_id": str(ticket_type.pk), **identity})

        assert response.status_code == 409
        assert response.json()["error"] == "sold_out"

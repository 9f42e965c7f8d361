"""Tests for BookingFlow, the network layer around the selection machine."""

import typing as t
from unittest.mock import MagicMock, patch

import httpx
import orjson
import pytest

from events.models import Event, EventBooking, TicketType
from events.selection import BackendResponse, BackendUnavailable, BookingFlow, Step
from events.selection import actions as a
from events.selection.client import HttpBookingBackend
from events.selection.flow import EVENT_NOT_FOUND_MESSAGE
from events.selection.local import LocalBookingBackend
from events.selection.machine import NETWORK_ERROR_MESSAGE, UNEXPECTED_RESPONSE_MESSAGE
from events.tests.test_selection.factories import NOW

EVENT_ID = "3f1b6c1e-8f38-4a47-9c1b-1a2b3c4d5e6f"
PAGE_URL = "https://club.example.com/events/gala?lang=en"


def catalog_payload(price: int = 0, **event: t.Any) -> dict[str, t.Any]:
    return {
        "event": {
            "id": EVENT_ID,
            "slug": "gala",
            "name": "Gala",
            "status": "published",
            "currency": "usd",
            "spots_remaining": 10,
            "waitlist_enabled": False,
            **event,
        },
        "ticket_types": [
            {
                "id": "ticket-1",
                "name": "GA",
                "price": price,
                "min_per_order": 1,
                "max_per_order": 4,
                "available": None,
                "effective_available": 10,
                "requires_code": False,
                "sale_status": "open",
            }
        ],
        "add_on_groups": [],
        "add_ons": [],
        "form_fields": [],
    }


class FakeBackend:
    def __init__(
        self,
        catalog: dict[str, t.Any] | None = None,
        booking: BackendResponse | Exception | None = None,
        waitlist: BackendResponse | None = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else catalog_payload()
        self.booking = booking
        self.waitlist = waitlist
        self.loads: list[str] = []
        self.codes: list[str | None] = []
        self.submissions: list[dict[str, t.Any]] = []
        self.waitlist_joins: list[dict[str, t.Any]] = []

    def load_event(self, slug: str, code: str | None = None) -> BackendResponse:
        self.loads.append(slug)
        self.codes.append(code)
        return BackendResponse(status_code=200, data=self.catalog)

    def submit_booking(self, event_id: str, payload: dict[str, t.Any]) -> BackendResponse:
        self.submissions.append(payload)
        if isinstance(self.booking, Exception):
            raise self.booking
        assert self.booking is not None
        return self.booking

    def join_waitlist(self, event_id: str, payload: dict[str, t.Any]) -> BackendResponse:
        self.waitlist_joins.append(payload)
        assert self.waitlist is not None
        return self.waitlist


def fill_in(flow: BookingFlow) -> None:
    flow.dispatch(a.SelectTicket("ticket-1"))
    flow.dispatch(a.ContinueToDetails())
    flow.dispatch(a.UpdateIdentity("first_name", "Ada"))
    flow.dispatch(a.UpdateIdentity("last_name", "Lovelace"))
    flow.dispatch(a.UpdateIdentity("email", "ada@example.com"))


class TestStart:
    def test_loads_event(self) -> None:
        backend = FakeBackend()
        flow = BookingFlow(backend, "gala", PAGE_URL, clock=lambda: NOW)

        state = flow.start()

        assert backend.loads == ["gala"]
        assert state.step == Step.TICKETS

    def test_success_callback_shows_success_without_submitting(self) -> None:
        backend = FakeBackend()
        flow = BookingFlow(backend, "gala", f"{PAGE_URL}&fegc_booking=success", clock=lambda: NOW)

        state = flow.start()

        assert state.step == Step.SUCCESS
        assert backend.loads == []
        assert backend.submissions == []
        assert flow.page_url == PAGE_URL

    def test_cancelled_callback_reloads_fresh(self) -> None:
        backend = FakeBackend()
        flow = BookingFlow(backend, "gala", f"{PAGE_URL}&fegc_booking=cancelled", clock=lambda: NOW)

        state = flow.start()

        assert state.step == Step.TICKETS
        assert flow.page_url == PAGE_URL

    def test_not_found(self) -> None:
        class MissingBackend(FakeBackend):
            def load_event(self, slug: str, code: str | None = None) -> BackendResponse:
                return BackendResponse(status_code=404, data={"detail": "Not Found"})

        state = BookingFlow(MissingBackend(), "nope", PAGE_URL).start()

        assert state.step == Step.ERROR
        assert state.message == EVENT_NOT_FOUND_MESSAGE

    def test_network_error(self) -> None:
        class DownBackend(FakeBackend):
            def load_event(self, slug: str, code: str | None = None) -> BackendResponse:
                raise BackendUnavailable("connection refused")

        state = BookingFlow(DownBackend(), "gala", PAGE_URL).start()

        assert state.step == Step.ERROR
        assert state.message == NETWORK_ERROR_MESSAGE

    @pytest.mark.parametrize(
        "body",
        [
            {"unexpected": True},
            {"event": {"slug": "gala"}},
            {"event": "gala"},
            {**catalog_payload(), "ticket_types": [{"id": "ticket-1", "price": "free"}]},
        ],
    )
    def test_malformed_catalog(self, body: dict[str, t.Any]) -> None:
        state = BookingFlow(FakeBackend(catalog=body), "gala", PAGE_URL, clock=lambda: NOW).start()

        assert state.step == Step.ERROR
        assert state.message == UNEXPECTED_RESPONSE_MESSAGE

    def test_access_code_unlocks_revealed_tickets(self) -> None:
        payload = catalog_payload(price=5000)
        payload["ticket_types"][0].update(requires_code=True, revealed_by_code=True, status="selectable")
        backend = FakeBackend(catalog=payload)
        flow = BookingFlow(backend, "gala", PAGE_URL, clock=lambda: NOW, access_code=" GOLD ")

        state = flow.start()

        assert backend.codes == ["GOLD"]
        assert state.step == Step.TICKETS
        assert state.unlocked_ticket_ids == {"ticket-1"}
        assert flow.dispatch(a.SelectTicket("ticket-1")).selected_ticket_id == "ticket-1"

    def test_access_code_leaves_listed_gated_tickets_locked(self) -> None:
        payload = catalog_payload()
        payload["ticket_types"][0].update(requires_code=True, status="locked")
        flow = BookingFlow(FakeBackend(catalog=payload), "gala", PAGE_URL, clock=lambda: NOW, access_code="GOLD")

        state = flow.start()

        assert state.unlocked_ticket_ids == frozenset()

    def test_no_listed_tickets_follows_server_state(self) -> None:
        payload = {**catalog_payload(flow_state="open"), "ticket_types": []}

        state = BookingFlow(FakeBackend(catalog=payload), "gala", PAGE_URL, clock=lambda: NOW).start()

        assert state.step == Step.TICKETS

    def test_no_tickets_at_all_is_closed(self) -> None:
        payload = {**catalog_payload(flow_state="closed"), "ticket_types": []}

        state = BookingFlow(FakeBackend(catalog=payload), "gala", PAGE_URL, clock=lambda: NOW).start()

        assert state.step == Step.CLOSED


class TestSubmit:
    def test_free_booking_confirmed(self) -> None:
        backend = FakeBackend(
            booking=BackendResponse(200, {"booking_id": "b-1", "status": "confirmed", "free": True})
        )
        flow = BookingFlow(backend, "gala", PAGE_URL, clock=lambda: NOW, idempotency_key="key-12345")
        flow.start()
        fill_in(flow)

        state = flow.submit()

        assert state.step == Step.SUCCESS
        assert state.booking_id == "b-1"
        assert flow.redirect_url is None
        assert backend.submissions[0]["idempotency_key"] == "key-12345"
        assert backend.submissions[0]["success_url"].endswith("lang=en&fegc_booking=success")

    def test_paid_booking_redirects_verbatim(self) -> None:
        url = "https://checkout.stripe.com/c/pay/cs_test_a1b2#fidkdWxOYHwnPyd1blpxYHZxWjA0"
        backend = FakeBackend(
            catalog=catalog_payload(price=2500),
            booking=BackendResponse(
                200, {"booking_id": "b-2", "status": "pending", "free": False, "checkout_url": url}
            ),
        )
        flow = BookingFlow(backend, "gala", PAGE_URL, clock=lambda: NOW)
        flow.start()
        fill_in(flow)

        flow.submit()

        assert flow.redirect_url == url

    def test_submit_only_once(self) -> None:
        backend = FakeBackend(booking=BackendResponse(200, {"booking_id": "b-1", "status": "confirmed", "free": True}))
        flow = BookingFlow(backend, "gala", PAGE_URL, clock=lambda: NOW)
        flow.start()
        fill_in(flow)

        flow.submit()
        flow.submit()

        assert len(backend.submissions) == 1

    def test_invalid_form_does_not_submit(self) -> None:
        backend = FakeBackend()
        flow = BookingFlow(backend, "gala", PAGE_URL, clock=lambda: NOW)
        flow.start()
        flow.dispatch(a.SelectTicket("ticket-1"))
        flow.dispatch(a.ContinueToDetails())

        state = flow.submit()

        assert state.step == Step.DETAILS
        assert backend.submissions == []

    def test_structured_rejection(self) -> None:
        backend = FakeBackend(booking=BackendResponse(409, {"error": "sold_out", "detail": "Sold out."}))
        flow = BookingFlow(backend, "gala", PAGE_URL, clock=lambda: NOW)
        flow.start()
        fill_in(flow)

        assert flow.submit().step == Step.SOLD_OUT

    def test_unstructured_failure(self) -> None:
        backend = FakeBackend(booking=BackendResponse(500, None))
        flow = BookingFlow(backend, "gala", PAGE_URL, clock=lambda: NOW)
        flow.start()
        fill_in(flow)

        state = flow.submit()

        assert state.step == Step.ERROR
        assert state.message == "Booking failed."

    def test_network_error(self) -> None:
        backend = FakeBackend(booking=BackendUnavailable("timeout"))
        flow = BookingFlow(backend, "gala", PAGE_URL, clock=lambda: NOW)
        flow.start()
        fill_in(flow)

        state = flow.submit()

        assert state.step == Step.ERROR
        assert state.message == NETWORK_ERROR_MESSAGE

    def test_ok_without_outcome_is_unexpected(self) -> None:
        backend = FakeBackend(booking=BackendResponse(200, {"booking_id": "b-1", "status": "pending"}))
        flow = BookingFlow(backend, "gala", PAGE_URL, clock=lambda: NOW)
        flow.start()
        fill_in(flow)

        assert flow.submit().message == UNEXPECTED_RESPONSE_MESSAGE

    def test_waitlist_only_event_joins_waitlist(self) -> None:
        backend = FakeBackend(
            catalog=catalog_payload(spots_remaining=0, waitlist_enabled=True),
            waitlist=BackendResponse(201, {"waitlist_entry_id": "w-1", "position": 3}),
        )
        flow = BookingFlow(backend, "gala", PAGE_URL, clock=lambda: NOW)
        flow.start()
        fill_in(flow)

        state = flow.submit()

        assert state.step == Step.WAITLISTED
        assert backend.submissions == []
        assert backend.waitlist_joins[0]["email"] == "ada@example.com"


class TestHttpBookingBackend:
    def make_backend(self, handler: t.Callable[[httpx.Request], httpx.Response]) -> HttpBookingBackend:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return HttpBookingBackend("https://events.example.com/api/", client=client)

    def test_load_event(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == "/api/events/gala"
            return httpx.Response(200, json=catalog_payload())

        response = self.make_backend(handler).load_event("gala")

        assert response.ok
        assert response.data is not None and response.data["event"]["slug"] == "gala"

    def test_load_event_with_code(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/events/gala"
            assert request.url.params["code"] == "GOLD"
            return httpx.Response(200, json=catalog_payload())

        assert self.make_backend(handler).load_event("gala", code="GOLD").ok

    def test_submit_booking(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == f"/api/events/{EVENT_ID}/bookings"
            assert orjson.loads(request.content)["quantity"] == 2
            return httpx.Response(409, json={"error": "sold_out", "detail": "Sold out."})

        response = self.make_backend(handler).submit_booking(EVENT_ID, {"quantity": 2})

        assert response.status_code == 409
        assert response.data == {"error": "sold_out", "detail": "Sold out."}

    def test_non_json_body(self) -> None:
        response = self.make_backend(lambda request: httpx.Response(502, text="Bad Gateway")).join_waitlist(
            EVENT_ID, {}
        )

        assert response.status_code == 502
        assert response.data is None

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(BackendUnavailable):
            self.make_backend(handler).load_event("gala")


@pytest.mark.django_db
class TestLocalBookingBackend:
    def test_full_free_booking(self, event: Event, free_ticket_type: TicketType) -> None:
        flow = BookingFlow(LocalBookingBackend(), event.slug, "https://club.example.com/book")

        assert flow.start().step == Step.TICKETS
        flow.dispatch(a.SelectTicket(str(free_ticket_type.pk)))
        flow.dispatch(a.ContinueToDetails())
        flow.dispatch(a.UpdateIdentity("first_name", "Ada"))
        flow.dispatch(a.UpdateIdentity("last_name", "Lovelace"))
        flow.dispatch(a.UpdateIdentity("email", "ada@example.com"))
        state = flow.submit()

        assert state.step == Step.SUCCESS
        booking = EventBooking.objects.get(pk=state.booking_id)
        assert booking.status == EventBooking.BookingStatus.CONFIRMED
        assert booking.email == "ada@example.com"

    def test_hidden_ticket_booked_with_invitation_code(
        self, event: Event, ticket_type: TicketType, vip_ticket_type: TicketType
    ) -> None:
        vip_id = str(vip_ticket_type.pk)
        uninvited = BookingFlow(LocalBookingBackend(), event.slug, "https://club.example.com/book")
        uninvited.start()
        assert uninvited.state.catalog is not None and uninvited.state.catalog.ticket(vip_id) is None

        flow = BookingFlow(LocalBookingBackend(), event.slug, "https://club.example.com/book", access_code="GOLD")
        assert flow.start().step == Step.TICKETS
        flow.dispatch(a.SelectTicket(vip_id))
        flow.dispatch(a.ContinueToDetails())
        flow.dispatch(a.UpdateIdentity("first_name", "Ada"))
        flow.dispatch(a.UpdateIdentity("last_name", "Lovelace"))
        flow.dispatch(a.UpdateIdentity("email", "ada@example.com"))
        with patch("events.service.stripe_service.Session.create") as mock_create:
            mock_create.return_value = MagicMock(id="cs_test_vip", url="https://checkout.stripe.com/c/pay/cs_test_vip")
            state = flow.submit()

        assert state.step == Step.SUBMITTING
        assert flow.redirect_url == "https://checkout.stripe.com/c/pay/cs_test_vip"
        booking = EventBooking.objects.get(pk=state.booking_id)
        assert booking.ticket_type_id == vip_ticket_type.pk
        assert booking.status == EventBooking.BookingStatus.PENDING

    def test_event_with_only_unlisted_tickets_is_open(self, event: Event, vip_ticket_type: TicketType) -> None:
        state = BookingFlow(LocalBookingBackend(), event.slug, "https://club.example.com/book").start()

        assert state.step == Step.TICKETS
        assert state.catalog is not None and state.catalog.ticket_types == ()

    def test_draft_event_is_not_found(self, event: Event) -> None:
        event.status = Event.EventStatus.DRAFT
        event.save()

        response = LocalBookingBackend().load_event(event.slug)

        assert response.status_code == 404

    def test_rejection_carries_reason(self, event: Event, ticket_type: TicketType) -> None:
        payload = {
            "ticket_type_id": str(ticket_type.pk),
            "quantity": 51,
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@example.com",
        }

        response = LocalBookingBackend().submit_booking(str(event.pk), payload)

        assert response.status_code == 400
        assert response.data is not None and response.data["error"] == "invalid_quantity"

    def test_invalid_payload(self, event: Event, ticket_type: TicketType) -> None:
        response = LocalBookingBackend().submit_booking(str(event.pk), {"ticket_type_id": str(ticket_type.pk)})

        assert response.status_code == 422

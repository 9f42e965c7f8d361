"""Tests for Stripe webhook event handling."""

import typing as t
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
import stripe
from django.conf import settings
from django.utils import timezone

from events.models import Event, EventBooking, EventWaitlistEntry, TicketType
from events.service.stripe_webhooks import StripeEventHandler

pytestmark = pytest.mark.django_db


class TestStripeEventHandler:
    """Test StripeEventHandler class."""

    @pytest.fixture
    def mock_stripe_event(self) -> MagicMock:
        """A generic mock of a Stripe webhook event."""
        mock_event = MagicMock(spec=stripe.Event)
        mock_event.id = "evt_generic"
        mock_event.type = "test.event"
        mock_event.data = MagicMock()
        mock_event.data.object = {}
        return mock_event

    @pytest.fixture
    def handler(self, mock_stripe_event: MagicMock) -> StripeEventHandler:
        return StripeEventHandler(mock_stripe_event)

    @pytest.fixture
    def pending_booking(self, ticket_type: TicketType, make_booking: t.Callable[..., EventBooking]) -> EventBooking:
        return make_booking(
            ticket_type,
            quantity=2,
            status=EventBooking.BookingStatus.PENDING,
            stripe_checkout_session_id="cs_test123",
            expires_at=timezone.now() + timedelta(minutes=30),
        )

    def session(self, booking: EventBooking, **overrides: t.Any) -> dict[str, t.Any]:
        data = {
            "id": "cs_test123",
            "payment_status": "paid",
            "payment_intent": "pi_test123",
            "client_reference_id": str(booking.id),
            "metadata": {
                "booking_id": str(booking.id),
                "event_id": str(booking.event_id),
                "source": settings.STRIPE_METADATA_SOURCE,
            },
        }
        data.update(overrides)
        return data

    def test_routes_known_event_to_handler(self, handler: StripeEventHandler) -> None:
        # Arrange
        handler.event.type = "checkout.session.completed"
        with patch.object(handler, "handle_checkout_session_completed") as mock_handler:
            # Act
            handler.handle()

            # Assert
            mock_handler.assert_called_once_with(handler.event)

    def test_routes_unknown_event_to_default_handler(self, handler: StripeEventHandler) -> None:
        handler.event.type = "unknown.event.type"

        with patch.object(handler, "handle_unknown_event") as mock_handler:
            handler.handle()

            mock_handler.assert_called_once_with(handler.event)

    def test_checkout_completed_confirms_booking(
        self,
        handler: StripeEventHandler,
        pending_booking: EventBooking,
        django_capture_on_commit_callbacks: t.Any,
    ) -> None:
        # Arrange
        handler.event.data.object = self.session(pending_booking)

        # Act
        with patch("events.tasks.send_booking_confirmation_email.delay") as mock_email:
            with django_capture_on_commit_callbacks(execute=True):
                handler.handle_checkout_session_completed(handler.event)

        # Assert
        pending_booking.refresh_from_db()
        assert pending_booking.status == EventBooking.BookingStatus.CONFIRMED
        assert pending_booking.stripe_payment_intent_id == "pi_test123"
        assert pending_booking.expires_at is None
        mock_email.assert_called_once_with(str(pending_booking.id))

    def test_checkout_completed_finds_booking_by_session_id(
        self, handler: StripeEventHandler, pending_booking: EventBooking
    ) -> None:
        session = self.session(pending_booking, client_reference_id=None)
        session["metadata"].pop("booking_id")
        handler.event.data.object = session

        handler.handle_checkout_session_completed(handler.event)

        pending_booking.refresh_from_db()
        assert pending_booking.status == EventBooking.BookingStatus.CONFIRMED

    def test_checkout_completed_converts_waitlist_entry(
        self, handler: StripeEventHandler, pending_booking: EventBooking
    ) -> None:
        entry = EventWaitlistEntry.objects.create(
            event=pending_booking.event,
            first_name="Ada",
            last_name="Lovelace",
            email=pending_booking.email,
            position=1,
            status=EventWaitlistEntry.WaitlistStatus.NOTIFIED,
        )
        handler.event.data.object = self.session(pending_booking)

        handler.handle_checkout_session_completed(handler.event)

        entry.refresh_from_db()
        assert entry.status == EventWaitlistEntry.WaitlistStatus.CONVERTED
        assert entry.converted_booking_id == pending_booking.id

    def test_unpaid_session_is_noop(self, handler: StripeEventHandler, pending_booking: EventBooking) -> None:
        handler.event.data.object = self.session(pending_booking, payment_status="unpaid")

        handler.handle_checkout_session_completed(handler.event)

        pending_booking.refresh_from_db()
        assert pending_booking.status == EventBooking.BookingStatus.PENDING

    def test_checkout_completed_is_idempotent(
        self, handler: StripeEventHandler, pending_booking: EventBooking, caplog: pytest.LogCaptureFixture
    ) -> None:
        pending_booking.status = EventBooking.BookingStatus.CONFIRMED
        pending_booking.stripe_payment_intent_id = "pi_original"
        pending_booking.save()
        handler.event.data.object = self.session(pending_booking)

        handler.handle_checkout_session_completed(handler.event)

        pending_booking.refresh_from_db()
        assert pending_booking.status == EventBooking.BookingStatus.CONFIRMED
        assert pending_booking.stripe_payment_intent_id == "pi_original"
        assert "stripe_webhook_duplicate_payment_success" in caplog.text

    def test_payment_for_cancelled_booking_is_not_confirmed(
        self, handler: StripeEventHandler, pending_booking: EventBooking, caplog: pytest.LogCaptureFixture
    ) -> None:
        pending_booking.status = EventBooking.BookingStatus.CANCELLED
        pending_booking.save()
        handler.event.data.object = self.session(pending_booking)

        handler.handle_checkout_session_completed(handler.event)

        pending_booking.refresh_from_db()
        assert pending_booking.status == EventBooking.BookingStatus.CANCELLED
        assert "stripe_payment_for_inactive_booking" in caplog.text

    def test_foreign_sessions_are_ignored(self, handler: StripeEventHandler, pending_booking: EventBooking) -> None:
        session = self.session(pending_booking)
        session["metadata"]["source"] = "some_other_product"
        handler.event.data.object = session

        handler.handle_checkout_session_completed(handler.event)

        pending_booking.refresh_from_db()
        assert pending_booking.status == EventBooking.BookingStatus.PENDING

    def test_unknown_booking_is_logged(self, handler: StripeEventHandler, caplog: pytest.LogCaptureFixture) -> None:
        handler.event.data.object = {
            "id": "cs_nonexistent",
            "payment_status": "paid",
            "metadata": {"source": settings.STRIPE_METADATA_SOURCE},
        }

        handler.handle_checkout_session_completed(handler.event)

        assert "stripe_session_unknown_booking" in caplog.text

    def test_expired_session_cancels_and_promotes(
        self, handler: StripeEventHandler, pending_booking: EventBooking, event: Event
    ) -> None:
        event.waitlist_enabled = True
        event.save()
        entry = EventWaitlistEntry.objects.create(
            event=event, first_name="Next", last_name="InLine", email="next@example.com", position=1
        )
        handler.event.data.object = self.session(pending_booking, payment_status="unpaid")

        handler.handle_checkout_session_expired(handler.event)

        pending_booking.refresh_from_db()
        entry.refresh_from_db()
        assert pending_booking.status == EventBooking.BookingStatus.CANCELLED
        assert entry.status == EventWaitlistEntry.WaitlistStatus.NOTIFIED

    def test_expired_session_for_confirmed_booking_is_noop(
        self, handler: StripeEventHandler, pending_booking: EventBooking
    ) -> None:
        pending_booking.status = EventBooking.BookingStatus.CONFIRMED
        pending_booking.save()
        handler.event.data.object = self.session(pending_booking)

        handler.handle_checkout_session_expired(handler.event)

        pending_booking.refresh_from_db()
        assert pending_booking.status == EventBooking.BookingStatus.CONFIRMED

    def test_charge_refunded_marks_booking_refunded(
        self, handler: StripeEventHandler, pending_booking: EventBooking
    ) -> None:
        pending_booking.status = EventBooking.BookingStatus.CONFIRMED
        pending_booking.stripe_payment_intent_id = "pi_test123"
        pending_booking.save()
        handler.event.data.object = {"id": "ch_test123", "payment_intent": "pi_test123"}

        handler.handle_charge_refunded(handler.event)

        pending_booking.refresh_from_db()
        assert pending_booking.status == EventBooking.BookingStatus.REFUNDED

    def test_charge_refunded_is_idempotent(
        self, handler: StripeEventHandler, pending_booking: EventBooking, caplog: pytest.LogCaptureFixture
    ) -> None:
        pending_booking.status = EventBooking.BookingStatus.REFUNDED
        pending_booking.stripe_payment_intent_id = "pi_test123"
        pending_booking.save()
        handler.event.data.object = {"id": "ch_test123", "payment_intent": "pi_test123"}

        handler.handle_charge_refunded(handler.event)

        pending_booking.refresh_from_db()
        assert pending_booking.status == EventBooking.BookingStatus.REFUNDED
        assert "stripe_webhook_duplicate_refund" in caplog.text

"""Stripe webhook event handlers."""

import stripe
import structlog
from django.conf import settings
from django.db import transaction

from events.models import EventBooking
from events.service import waitlist_service

logger = structlog.get_logger(__name__)


class StripeEventHandler:
    """Settles bookings from Stripe webhook events.

    Each handler is idempotent: replaying an event that was already applied is a no-op.
    """

    def __init__(self, event: stripe.Event):
        """Initialize the Stripe event handler."""
        self.event = event

    def handle(self) -> None:
        """Routes the event to the appropriate handler based on its type."""
        event_type = self.event.type
        handler_method = getattr(self, f"handle_{event_type.replace('.', '_')}", self.handle_unknown_event)
        handler_method(self.event)

    def handle_unknown_event(self, event: stripe.Event) -> None:
        """Log unhandled event types for future development."""
        logger.info("stripe_webhook_unhandled_event", event_type=event.type, event_id=event.id)

    @staticmethod
    def _booking_for_session(session: dict) -> EventBooking | None:  # type: ignore[type-arg]
        metadata = session.get("metadata") or {}
        if metadata.get("source") != settings.STRIPE_METADATA_SOURCE:
            logger.debug("stripe_session_foreign_source", session_id=session["id"], source=metadata.get("source"))
            return None
        booking_id = metadata.get("booking_id") or session.get("client_reference_id")
        booking = (
            EventBooking.objects.select_for_update().filter(pk=booking_id).select_related("event").first()
            if booking_id
            else None
        )
        if booking is None:
            booking = (
                EventBooking.objects.select_for_update()
                .filter(stripe_checkout_session_id=session["id"])
                .select_related("event")
                .first()
            )
        if booking is None:
            logger.warning("stripe_session_unknown_booking", session_id=session["id"], booking_id=booking_id)
        return booking

    @transaction.atomic
    def handle_checkout_session_completed(self, event: stripe.Event) -> None:
        """Confirm the booking paid for by a completed checkout session."""
        session = event.data.object

        if session["payment_status"] not in {"paid", "no_payment_required"}:
            logger.warning(
                "stripe_session_unresolved_payment",
                session_id=session["id"],
                payment_status=session["payment_status"],
            )
            return

        booking = self._booking_for_session(session)
        if booking is None:
            return

        if booking.status == EventBooking.BookingStatus.CONFIRMED:
            logger.warning("stripe_webhook_duplicate_payment_success", session_id=session["id"])
            return
        if booking.status != EventBooking.BookingStatus.PENDING:
            # Paid after the reaper cancelled it. Someone has to look at this one.
            logger.error(
                "stripe_payment_for_inactive_booking",
                booking_id=str(booking.id),
                booking_status=booking.status,
                session_id=session["id"],
            )
            return

        booking.status = EventBooking.BookingStatus.CONFIRMED
        booking.stripe_payment_intent_id = session.get("payment_intent")
        booking.stripe_checkout_session_id = session["id"]
        booking.expires_at = None
        booking.save(
            update_fields=[
                "status",
                "stripe_payment_intent_id",
                "stripe_checkout_session_id",
                "expires_at",
                "updated_at",
            ]
        )
        waitlist_service.mark_converted(booking)

        from events.tasks import send_booking_confirmation_email

        transaction.on_commit(lambda: send_booking_confirmation_email.delay(str(booking.id)))
        logger.info(
            "stripe_payment_success",
            session_id=session["id"],
            booking_id=str(booking.id),
            total_amount=booking.total_amount,
            currency=booking.currency,
        )

    @transaction.atomic
    def handle_checkout_session_expired(self, event: stripe.Event) -> None:
        """Release the spots held by an abandoned checkout session."""
        session = event.data.object
        booking = self._booking_for_session(session)
        if booking is None:
            return
        if booking.status != EventBooking.BookingStatus.PENDING:
            logger.info("stripe_session_expired_noop", booking_id=str(booking.id), booking_status=booking.status)
            return

        booking.status = EventBooking.BookingStatus.CANCELLED
        booking.save(update_fields=["status", "updated_at"])
        logger.info("stripe_session_expired", session_id=session["id"], booking_id=str(booking.id))
        waitlist_service.promote_next(booking.event)

    @transaction.atomic
    def handle_charge_refunded(self, event: stripe.Event) -> None:
        """Mark the booking behind a refunded charge as refunded.

        Refunds issued from the Stripe dashboard land here as well as the ones issued through
        the admin API.
        """
        charge_data = event.data.object
        payment_intent_id = charge_data.get("payment_intent")

        if not payment_intent_id:
            logger.warning("stripe_refund_missing_intent", charge_id=charge_data.get("id"))
            return

        booking = (
            EventBooking.objects.select_for_update()
            .filter(stripe_payment_intent_id=payment_intent_id)
            .select_related("event")
            .first()
        )
        if booking is None:
            logger.warning("stripe_refund_unknown_intent", payment_intent_id=payment_intent_id)
            return
        if booking.status == EventBooking.BookingStatus.REFUNDED:
            logger.warning("stripe_webhook_duplicate_refund", payment_intent_id=payment_intent_id)
            return

        was_active = booking.is_active
        booking.status = EventBooking.BookingStatus.REFUNDED
        booking.save(update_fields=["status", "updated_at"])
        logger.info(
            "stripe_refund_processed",
            payment_intent_id=payment_intent_id,
            booking_id=str(booking.id),
            total_amount=booking.total_amount,
            currency=booking.currency,
        )
        if was_active:
            waitlist_service.promote_next(booking.event)

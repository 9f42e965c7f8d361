"""Organizer-facing booking operations: statistics, cancellation and refunds."""

import structlog
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils.translation import gettext as _
from ninja.errors import HttpError

from events import schema
from events.models import Event, EventBooking, EventWaitlistEntry
from events.service import stripe_service, waitlist_service
from events.service.capacity import CapacityLedger

logger = structlog.get_logger(__name__)

Status = EventBooking.BookingStatus


def event_stats(event: Event) -> schema.EventStatsSchema:
    """Aggregate an event's bookings by status.

    ``total_booked`` counts tickets still holding capacity, so it matches the ledger.
    """
    totals = EventBooking.objects.filter(event=event).aggregate(
        confirmed=Sum("quantity", filter=Q(status=Status.CONFIRMED)),
        pending=Sum("quantity", filter=Q(status=Status.PENDING)),
        cancelled=Sum("quantity", filter=Q(status=Status.CANCELLED)),
        refunded=Sum("quantity", filter=Q(status=Status.REFUNDED)),
        revenue=Sum("total_amount", filter=Q(status=Status.CONFIRMED)),
    )
    waitlist = EventWaitlistEntry.objects.filter(event=event).aggregate(
        waiting=Count("id", filter=Q(status=EventWaitlistEntry.WaitlistStatus.WAITING))
    )
    ledger = CapacityLedger.for_event(event)
    return schema.EventStatsSchema(
        total_booked=ledger.total_booked,
        total_confirmed=totals["confirmed"] or 0,
        total_pending=totals["pending"] or 0,
        total_cancelled=totals["cancelled"] or 0,
        total_refunded=totals["refunded"] or 0,
        total_revenue=totals["revenue"] or 0,
        spots_remaining=ledger.display_spots_remaining,
        waitlist_count=waitlist["waiting"],
        currency=event.currency,
    )


@transaction.atomic
def cancel_booking(booking: EventBooking) -> EventBooking:
    """Cancel an active booking and offer the freed spot to the waitlist."""
    booking = EventBooking.objects.select_for_update().select_related("event").get(pk=booking.pk)
    if not booking.is_active:
        raise HttpError(400, str(_("Only pending or confirmed bookings can be cancelled.")))
    booking.status = Status.CANCELLED
    booking.expires_at = None
    booking.save(update_fields=["status", "expires_at", "updated_at"])
    logger.info("booking_cancelled", booking_id=str(booking.id), event_id=str(booking.event_id))
    waitlist_service.promote_next(booking.event)
    return booking


@transaction.atomic
def refund_booking(booking: EventBooking) -> EventBooking:
    """Refund a confirmed booking.

    Paid bookings are refunded through Stripe. Free bookings, and paid ones without a payment
    intent on record, only change status.
    """
    booking = EventBooking.objects.select_for_update().select_related("event").get(pk=booking.pk)
    if booking.status != Status.CONFIRMED:
        raise HttpError(400, str(_("Only confirmed bookings can be refunded.")))
    if booking.stripe_payment_intent_id:
        stripe_service.refund_payment(booking.stripe_payment_intent_id)
    booking.status = Status.REFUNDED
    booking.save(update_fields=["status", "updated_at"])
    logger.info(
        "booking_refunded",
        booking_id=str(booking.id),
        event_id=str(booking.event_id),
        via_stripe=bool(booking.stripe_payment_intent_id),
    )
    waitlist_service.promote_next(booking.event)
    return booking

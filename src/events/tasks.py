"""Celery tasks for bookings and the waitlist.

- Releasing capacity held by pending bookings whose payment window lapsed
- Expiring stale waitlist offers
- Booking confirmation and waitlist offer emails
"""

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.translation import gettext as _

from .models import EventBooking, EventWaitlistEntry
from .service import waitlist_service

logger = structlog.get_logger(__name__)


def _send(to: str, subject: str, body: str) -> None:
    email_msg = EmailMultiAlternatives(subject=subject, body=body, from_email=settings.DEFAULT_FROM_EMAIL, to=[to])
    email_msg.send(fail_silently=False)


@shared_task(name="events.expire_pending_bookings")
def expire_pending_bookings() -> int:
    """Cancel pending bookings whose payment window has lapsed.

    Each cancelled booking frees its spots, which go to the next waitlist entry on events that
    have a waitlist. Stale waitlist offers are expired afterwards.
    This task is idempotent and safe to run periodically.
    """
    now = timezone.now()
    expired_ids = list(EventBooking.objects.expired_pending(now).values_list("id", flat=True))
    cancelled = 0
    for booking_id in expired_ids:
        with transaction.atomic():
            booking = (
                EventBooking.objects.select_for_update().select_related("event").filter(pk=booking_id).first()
            )
            # Settled or cancelled by a webhook since the query above.
            if booking is None or not booking.has_expired():
                continue
            booking.status = EventBooking.BookingStatus.CANCELLED
            booking.save(update_fields=["status", "updated_at"])
            cancelled += 1
            waitlist_service.promote_next(booking.event, now=now)

    if cancelled:
        logger.info("pending_bookings_expired", count=cancelled)
    waitlist_service.expire_offers(now=now)
    return cancelled


@shared_task(name="events.send_booking_confirmation_email")
def send_booking_confirmation_email(booking_id: str) -> None:
    booking = EventBooking.objects.select_related("event", "ticket_type").get(pk=booking_id)
    event = booking.event
    logger.info("booking_confirmation_sending", booking_id=booking_id, event_id=str(event.id))
    subject = _("Your booking for %(event_name)s is confirmed") % {"event_name": event.name}
    body = render_to_string(
        "events/emails/booking_confirmation_body.txt",
        {
            "booking": booking,
            "event": event,
            "add_on_lines": booking.add_on_lines.select_related("add_on"),
            "total": f"{booking.total_amount / 100:.2f}",
            "currency": booking.currency.upper(),
        },
    )
    _send(booking.email, subject, body)
    logger.info("booking_confirmation_sent", booking_id=booking_id)


@shared_task(name="events.send_waitlist_offer_email")
def send_waitlist_offer_email(entry_id: str) -> None:
    """Tell a promoted waitlist entry that a spot is being held for them."""
    entry = EventWaitlistEntry.objects.select_related("event").get(pk=entry_id)
    if entry.status != EventWaitlistEntry.WaitlistStatus.NOTIFIED:
        logger.info("waitlist_offer_skipped", entry_id=entry_id, entry_status=entry.status)
        return
    event = entry.event
    subject = _("A spot opened up for %(event_name)s") % {"event_name": event.name}
    body = render_to_string(
        "events/emails/waitlist_offer_body.txt",
        {"entry": entry, "event": event, "booking_link": f"{settings.FRONTEND_BASE_URL}/embed/{event.slug}"},
    )
    _send(entry.email, subject, body)
    logger.info("waitlist_offer_sent", entry_id=entry_id, event_id=str(event.id))

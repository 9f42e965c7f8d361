"""Event waitlist: joining, FIFO promotion and offer expiry."""

import datetime
from datetime import timedelta

import structlog
from django.conf import settings
from django.db import transaction
from django.db.models import Max
from django.utils import timezone
from django.utils.translation import gettext as _

from events import schema
from events.exceptions import WaitlistError
from events.models import Event, EventBooking, EventWaitlistEntry

logger = structlog.get_logger(__name__)


@transaction.atomic
def join_waitlist(event: Event, payload: schema.WaitlistJoinPayload) -> EventWaitlistEntry:
    """Append a purchaser to the end of the event's waitlist.

    Raises:
        WaitlistError: If the event has no waitlist or the email already holds a place in it.
    """
    event = Event.objects.select_for_update().get(pk=event.pk)
    if not event.waitlist_enabled:
        raise WaitlistError(_(WaitlistError.WAITLIST_DISABLED))

    email = payload.email.lower()
    if EventWaitlistEntry.objects.open().filter(event=event, email__iexact=email).exists():
        raise WaitlistError(_(WaitlistError.ALREADY_ON_WAITLIST), status_code=409)

    last_position = EventWaitlistEntry.objects.filter(event=event).aggregate(last=Max("position"))["last"] or 0
    entry = EventWaitlistEntry.objects.create(
        event=event,
        ticket_type_id=payload.ticket_type_id,
        add_on_id=payload.add_on_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=email,
        phone=payload.phone,
        notes=payload.notes,
        position=last_position + 1,
        desired_add_on_ids=[str(add_on_id) for add_on_id in payload.desired_add_on_ids],
    )
    logger.info("waitlist_joined", event_id=str(event.id), entry_id=str(entry.id), position=entry.position)
    return entry


@transaction.atomic
def promote_next(event: Event, *, now: datetime.datetime | None = None) -> EventWaitlistEntry | None:
    """Offer the freed spot to the oldest waiting entry.

    Returns:
        The notified entry, or None when nobody is waiting or the event has no waitlist.
    """
    if not event.waitlist_enabled:
        return None
    entry = EventWaitlistEntry.objects.select_for_update().waiting().filter(event=event).order_by("position").first()
    if entry is None:
        logger.debug("waitlist_empty", event_id=str(event.id))
        return None

    now = now or timezone.now()
    entry.status = EventWaitlistEntry.WaitlistStatus.NOTIFIED
    entry.notified_at = now
    entry.offer_expires_at = now + timedelta(hours=settings.WAITLIST_OFFER_HOURS)
    entry.save(update_fields=["status", "notified_at", "offer_expires_at", "updated_at"])

    from events.tasks import send_waitlist_offer_email

    transaction.on_commit(lambda: send_waitlist_offer_email.delay(str(entry.id)))
    logger.info("waitlist_promoted", event_id=str(event.id), entry_id=str(entry.id), position=entry.position)
    return entry


def expire_offers(*, now: datetime.datetime | None = None) -> int:
    """Expire notified entries whose offer lapsed and pass each spot on to the next in line."""
    now = now or timezone.now()
    expired = 0
    stale = EventWaitlistEntry.objects.filter(
        status=EventWaitlistEntry.WaitlistStatus.NOTIFIED, offer_expires_at__lt=now
    ).select_related("event")
    for entry in stale:
        with transaction.atomic():
            updated = EventWaitlistEntry.objects.filter(
                pk=entry.pk, status=EventWaitlistEntry.WaitlistStatus.NOTIFIED
            ).update(status=EventWaitlistEntry.WaitlistStatus.EXPIRED, updated_at=now)
            if not updated:
                continue
            expired += 1
            promote_next(entry.event, now=now)
    if expired:
        logger.info("waitlist_offers_expired", count=expired)
    return expired


def mark_converted(booking: EventBooking) -> EventWaitlistEntry | None:
    """Link a confirmed booking to the purchaser's open waitlist entry, if there is one."""
    entry = (
        EventWaitlistEntry.objects.open()
        .filter(event_id=booking.event_id, email__iexact=booking.email)
        .order_by("position")
        .first()
    )
    if entry is None:
        return None
    entry.status = EventWaitlistEntry.WaitlistStatus.CONVERTED
    entry.converted_booking = booking
    entry.save(update_fields=["status", "converted_booking", "updated_at"])
    logger.info("waitlist_converted", entry_id=str(entry.id), booking_id=str(booking.id))
    return entry

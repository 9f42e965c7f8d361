from django.db import models

from common.models import TimeStampedModel

from .booking import EventBooking
from .event import Event
from .ticket import AddOn, TicketType


class EventWaitlistEntryQuerySet(models.QuerySet["EventWaitlistEntry"]):
    def open(self) -> "EventWaitlistEntryQuerySet":
        """Entries still holding a place in the queue."""
        return self.filter(status__in=EventWaitlistEntry.OPEN_STATUSES)

    def waiting(self) -> "EventWaitlistEntryQuerySet":
        return self.filter(status=EventWaitlistEntry.WaitlistStatus.WAITING)


class EventWaitlistEntry(TimeStampedModel):
    class WaitlistStatus(models.TextChoices):
        WAITING = "waiting"
        NOTIFIED = "notified"
        CONVERTED = "converted"
        EXPIRED = "expired"
        CANCELLED = "cancelled"

    OPEN_STATUSES = (WaitlistStatus.WAITING, WaitlistStatus.NOTIFIED)

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="waitlist_entries")
    ticket_type = models.ForeignKey(
        TicketType, on_delete=models.SET_NULL, null=True, blank=True, related_name="waitlist_entries"
    )
    add_on = models.ForeignKey(AddOn, on_delete=models.SET_NULL, null=True, blank=True, related_name="waitlist_entries")

    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    email = models.EmailField(db_index=True)
    phone = models.CharField(max_length=50, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    position = models.PositiveIntegerField()
    status = models.CharField(
        choices=WaitlistStatus.choices, max_length=20, default=WaitlistStatus.WAITING, db_index=True
    )
    notified_at = models.DateTimeField(null=True, blank=True)
    offer_expires_at = models.DateTimeField(null=True, blank=True, db_index=True)
    stripe_setup_intent_id = models.CharField(max_length=255, null=True, blank=True)
    stripe_payment_method_id = models.CharField(max_length=255, null=True, blank=True)
    desired_add_on_ids = models.JSONField(default=list, blank=True)
    converted_booking = models.ForeignKey(
        EventBooking, on_delete=models.SET_NULL, null=True, blank=True, related_name="waitlist_entries"
    )

    objects = EventWaitlistEntryQuerySet.as_manager()

    class Meta:
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(fields=["event", "position"], name="unique_waitlist_position_per_event"),
        ]

    def __str__(self) -> str:
        return f"#{self.position} {self.first_name} {self.last_name} - {self.event}"

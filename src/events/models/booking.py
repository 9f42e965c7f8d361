import typing as t
from datetime import datetime

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Sum
from django.utils import timezone

from common.models import TimeStampedModel

from .event import Event
from .mixins import OrderedMixin
from .ticket import AddOn, TicketType


class EventFormField(OrderedMixin, TimeStampedModel):
    class FieldType(models.TextChoices):
        TEXT = "text"
        TEXTAREA = "textarea"
        SELECT = "select"
        CHECKBOX = "checkbox"
        RADIO = "radio"
        NUMBER = "number"

    CHOICE_TYPES = (FieldType.SELECT, FieldType.RADIO)

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="form_fields")
    label = models.CharField(max_length=255)
    field_type = models.CharField(choices=FieldType.choices, max_length=20, default=FieldType.TEXT)
    options = models.JSONField(default=list, blank=True)
    required = models.BooleanField(default=False)
    placeholder = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["sort_order", "created_at"]

    def __str__(self) -> str:
        return self.label

    def clean(self) -> None:
        """Choice fields need a list of string options."""
        if not isinstance(self.options, list) or not all(isinstance(o, str) for o in self.options):
            raise ValidationError({"options": ["Options must be a list of strings."]})
        if self.field_type in self.CHOICE_TYPES and not self.options:
            raise ValidationError({"options": ["Select and radio fields need at least one option."]})


class EventBookingQuerySet(models.QuerySet["EventBooking"]):
    def active(self) -> t.Self:
        """Bookings that hold capacity."""
        return self.filter(status__in=EventBooking.ACTIVE_STATUSES)

    def expired_pending(self, now: datetime | None = None) -> t.Self:
        """Pending bookings whose payment window has lapsed."""
        return self.filter(
            status=EventBooking.BookingStatus.PENDING,
            expires_at__isnull=False,
            expires_at__lt=now or timezone.now(),
        )

    def total_quantity(self) -> int:
        return self.aggregate(total=Sum("quantity"))["total"] or 0


class EventBooking(TimeStampedModel):
    class BookingStatus(models.TextChoices):
        PENDING = "pending"
        CONFIRMED = "confirmed"
        CANCELLED = "cancelled"
        REFUNDED = "refunded"

    ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="bookings")
    ticket_type = models.ForeignKey(TicketType, on_delete=models.PROTECT, related_name="bookings")

    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    email = models.EmailField(db_index=True)
    phone = models.CharField(max_length=50, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    status = models.CharField(
        choices=BookingStatus.choices, max_length=20, default=BookingStatus.PENDING, db_index=True
    )
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    ticket_price_at_purchase = models.PositiveIntegerField()
    total_amount = models.PositiveIntegerField()
    currency = models.CharField(max_length=3)

    stripe_checkout_session_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    stripe_checkout_url = models.TextField(null=True, blank=True)
    stripe_payment_intent_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    expires_at = models.DateTimeField(null=True, blank=True, db_index=True)
    idempotency_key = models.CharField(max_length=128, unique=True, null=True, blank=True)
    access_code_used = models.CharField(max_length=64, null=True, blank=True)

    objects = EventBookingQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(fields=["event", "status"], name="ix_booking_event_status"),
        ]

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name} - {self.event} ({self.status})"

    @property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATUSES

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def has_expired(self) -> bool:
        return (
            self.status == self.BookingStatus.PENDING
            and self.expires_at is not None
            and self.expires_at < timezone.now()
        )

    def snapshot_total(self) -> int:
        """Recompute the order total from the stored price snapshots."""
        add_ons = sum(line.price_at_purchase * line.quantity for line in self.add_on_lines.all())
        return self.ticket_price_at_purchase * self.quantity + add_ons


class BookingAddOn(TimeStampedModel):
    booking = models.ForeignKey(EventBooking, on_delete=models.CASCADE, related_name="add_on_lines")
    add_on = models.ForeignKey(AddOn, on_delete=models.PROTECT, related_name="booking_lines")
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    price_at_purchase = models.PositiveIntegerField()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["booking", "add_on"], name="unique_booking_add_on"),
        ]

    def __str__(self) -> str:
        return f"{self.add_on} x{self.quantity}"


class FormResponse(TimeStampedModel):
    booking = models.ForeignKey(EventBooking, on_delete=models.CASCADE, related_name="form_responses")
    form_field = models.ForeignKey(EventFormField, on_delete=models.CASCADE, related_name="responses")
    value = models.TextField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["booking", "form_field"], name="unique_booking_form_field"),
        ]

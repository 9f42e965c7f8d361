import typing as t

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from common.models import TimeStampedModel


class EventQuerySet(models.QuerySet["Event"]):
    def bookable(self) -> t.Self:
        """Events that may be shown to the public. Drafts are never bookable."""
        return self.exclude(status=Event.EventStatus.DRAFT)


class Event(TimeStampedModel):
    class EventStatus(models.TextChoices):
        DRAFT = "draft"
        PUBLISHED = "published"
        SOLD_OUT = "sold_out"
        CLOSED = "closed"
        CANCELLED = "cancelled"

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True, default="")
    date = models.DateField(null=True, blank=True)
    time = models.TimeField(null=True, blank=True)
    location = models.CharField(max_length=255, blank=True, default="")
    image_url = models.URLField(max_length=1024, null=True, blank=True)
    policy_url = models.URLField(max_length=1024, null=True, blank=True)
    faq_url = models.URLField(max_length=1024, null=True, blank=True)

    total_capacity = models.PositiveIntegerField(default=0)
    status = models.CharField(choices=EventStatus.choices, max_length=20, default=EventStatus.DRAFT, db_index=True)
    registration_opens_at = models.DateTimeField(null=True, blank=True)
    registration_closes_at = models.DateTimeField(null=True, blank=True)
    waitlist_enabled = models.BooleanField(default=False)
    currency = models.CharField(max_length=3, default=settings.DEFAULT_CURRENCY)

    objects = EventQuerySet.as_manager()

    class Meta:
        ordering = ["date", "name"]

    def __str__(self) -> str:
        return self.name

    def clean(self) -> None:
        """Validate the registration window."""
        if (
            self.registration_opens_at
            and self.registration_closes_at
            and self.registration_closes_at <= self.registration_opens_at
        ):
            raise ValidationError({"registration_closes_at": ["Registration must close after it opens."]})
        if self.currency:
            self.currency = self.currency.lower()

import secrets

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from common.models import TimeStampedModel

from .event import Event
from .mixins import OrderedMixin, PurchasableMixin


class TicketType(PurchasableMixin, TimeStampedModel):
    class Visibility(models.TextChoices):
        PUBLIC = "public"
        HIDDEN = "hidden"
        INVITE_ONLY = "invite_only"

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="ticket_types")
    visibility = models.CharField(choices=Visibility.choices, max_length=20, default=Visibility.PUBLIC, db_index=True)
    min_per_order = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    max_per_order = models.PositiveIntegerField(default=10, validators=[MinValueValidator(1)])
    access_code = models.CharField(max_length=64, null=True, blank=True)
    waitlist_enabled = models.BooleanField(default=False)

    class Meta:
        ordering = ["sort_order", "created_at"]

    def clean(self) -> None:
        """Validate order limits and normalise the access code."""
        super().clean()
        if self.max_per_order is not None and self.min_per_order is not None:
            if self.max_per_order < self.min_per_order:
                raise ValidationError({"max_per_order": ["Must be greater than or equal to min_per_order."]})
        if self.access_code is not None:
            self.access_code = self.access_code.strip() or None

    @property
    def requires_code(self) -> bool:
        return bool(self.access_code)

    def access_code_matches(self, code: str | None) -> bool:
        """Constant-time comparison of a submitted code against the configured one."""
        if not self.access_code:
            return True
        if not code or not code.strip():
            return False
        return secrets.compare_digest(code.strip().encode(), self.access_code.encode())


class AddOnGroup(OrderedMixin, TimeStampedModel):
    class SelectionType(models.TextChoices):
        ANY = "any"
        ONE_ONLY = "one_only"

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="add_on_groups")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    selection_type = models.CharField(choices=SelectionType.choices, max_length=20, default=SelectionType.ANY)
    collapsed_by_default = models.BooleanField(default=False)

    class Meta:
        ordering = ["sort_order", "created_at"]

    def __str__(self) -> str:
        return self.name

    @property
    def is_exclusive(self) -> bool:
        return self.selection_type == self.SelectionType.ONE_ONLY


class AddOn(PurchasableMixin, TimeStampedModel):
    class Visibility(models.TextChoices):
        PUBLIC = "public"
        HIDDEN = "hidden"

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="add_ons")
    group = models.ForeignKey(AddOnGroup, on_delete=models.SET_NULL, null=True, blank=True, related_name="add_ons")
    visibility = models.CharField(choices=Visibility.choices, max_length=20, default=Visibility.PUBLIC, db_index=True)
    max_per_order = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    required = models.BooleanField(default=False)

    class Meta:
        ordering = ["sort_order", "created_at"]

    def clean(self) -> None:
        """Groups never span events."""
        super().clean()
        if self.group_id and self.event_id and self.group.event_id != self.event_id:
            raise ValidationError({"group": ["Add-on group belongs to a different event."]})

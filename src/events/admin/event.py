# src/events/admin/event.py
"""Admin classes for Event and its catalog."""

from django.contrib import admin
from unfold.admin import ModelAdmin

from events import models
from events.admin.base import (
    AddOnGroupInline,
    AddOnInline,
    EventFormFieldInline,
    EventLinkMixin,
    TicketTypeInline,
    format_amount,
)
from events.service.capacity import CapacityLedger


@admin.register(models.Event)
class EventAdmin(ModelAdmin):  # type: ignore[misc]
    """Admin model for Events."""

    list_display = ["name", "date", "status", "total_capacity", "spots_remaining", "waitlist_enabled"]
    list_filter = ["status", "waitlist_enabled", "date"]
    search_fields = ["name", "slug", "location"]
    prepopulated_fields = {"slug": ("name",)}
    date_hierarchy = "date"
    inlines = [TicketTypeInline, AddOnGroupInline, AddOnInline, EventFormFieldInline]

    fieldsets = [
        ("Details", {"fields": (("name", "slug"), "description", ("date", "time"), "location", "image_url")}),
        (
            "Booking",
            {
                "fields": (
                    "status",
                    ("total_capacity", "currency"),
                    ("registration_opens_at", "registration_closes_at"),
                    "waitlist_enabled",
                )
            },
        ),
        ("Links", {"fields": ("policy_url", "faq_url")}),
    ]

    @admin.display(description="Spots left")
    def spots_remaining(self, obj: models.Event) -> int:
        return CapacityLedger.for_event(obj).display_spots_remaining


@admin.register(models.TicketType)
class TicketTypeAdmin(ModelAdmin, EventLinkMixin):  # type: ignore[misc]
    list_display = ["name", "event_link", "price_display", "capacity", "visibility", "sale_starts_at", "sale_ends_at"]
    list_filter = ["visibility", "event"]
    search_fields = ["name", "event__name"]
    autocomplete_fields = ["event"]

    @admin.display(description="Price")
    def price_display(self, obj: models.TicketType) -> str:
        return format_amount(obj.price, obj.event.currency)


@admin.register(models.AddOn)
class AddOnAdmin(ModelAdmin, EventLinkMixin):  # type: ignore[misc]
    list_display = ["name", "event_link", "group", "price_display", "capacity", "required", "visibility"]
    list_filter = ["visibility", "required", "event"]
    search_fields = ["name", "event__name"]
    autocomplete_fields = ["event"]

    @admin.display(description="Price")
    def price_display(self, obj: models.AddOn) -> str:
        return format_amount(obj.price, obj.event.currency)

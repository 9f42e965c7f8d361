# src/events/admin/waitlist.py
from django.contrib import admin
from unfold.admin import ModelAdmin

from events import models
from events.admin.base import EventLinkMixin


@admin.register(models.EventWaitlistEntry)
class EventWaitlistEntryAdmin(ModelAdmin, EventLinkMixin):  # type: ignore[misc]
    list_display = ["position", "first_name", "last_name", "email", "event_link", "status", "offer_expires_at"]
    list_filter = ["status", "event"]
    search_fields = ["first_name", "last_name", "email"]
    readonly_fields = ["position", "notified_at", "converted_booking", "stripe_setup_intent_id"]
    ordering = ["event", "position"]

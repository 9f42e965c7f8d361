# src/events/admin/base.py
"""Base admin components: mixins and inlines."""

import typing as t

from django.urls import reverse
from django.utils.html import format_html
from unfold.admin import TabularInline

from events import models


class EventLinkMixin:
    """Mixin to add a link to an event."""

    def event_link(self, obj: t.Any) -> str | None:
        if not hasattr(obj, "event") or not obj.event:
            return None
        url = reverse("admin:events_event_change", args=[obj.event.id])
        return format_html('<a href="{}">{}</a>', url, obj.event.name)

    event_link.short_description = "Event"  # type: ignore[attr-defined]


def format_amount(amount: int | None, currency: str) -> str:
    if amount is None:
        return "-"
    return f"{amount / 100:.2f} {currency.upper()}"


class TicketTypeInline(TabularInline):  # type: ignore[misc]
    model = models.TicketType
    extra = 0
    fields = ["name", "price", "capacity", "visibility", "min_per_order", "max_per_order", "sort_order"]
    show_change_link = True
    tab = True


class AddOnGroupInline(TabularInline):  # type: ignore[misc]
    model = models.AddOnGroup
    extra = 0
    fields = ["name", "selection_type", "collapsed_by_default", "sort_order"]
    tab = True


class AddOnInline(TabularInline):  # type: ignore[misc]
    model = models.AddOn
    extra = 0
    fields = ["name", "group", "price", "capacity", "max_per_order", "required", "visibility", "sort_order"]
    show_change_link = True
    tab = True


class EventFormFieldInline(TabularInline):  # type: ignore[misc]
    model = models.EventFormField
    extra = 0
    fields = ["label", "field_type", "options", "required", "placeholder", "sort_order"]
    tab = True


class BookingAddOnInline(TabularInline):  # type: ignore[misc]
    model = models.BookingAddOn
    extra = 0
    can_delete = False
    fields = ["add_on", "quantity", "price_at_purchase"]
    readonly_fields = ["add_on", "quantity", "price_at_purchase"]


class FormResponseInline(TabularInline):  # type: ignore[misc]
    model = models.FormResponse
    extra = 0
    can_delete = False
    fields = ["form_field", "value"]
    readonly_fields = ["form_field", "value"]

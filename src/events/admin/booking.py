# src/events/admin/booking.py
"""Admin for bookings, with cancel and refund actions."""

from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest
from ninja.errors import HttpError
from unfold.admin import ModelAdmin

from events import models
from events.admin.base import BookingAddOnInline, EventLinkMixin, FormResponseInline, format_amount
from events.service import stats_service


@admin.register(models.EventBooking)
class EventBookingAdmin(ModelAdmin, EventLinkMixin):  # type: ignore[misc]
    """Bookings are created by the booking flow only; the admin settles them."""

    list_display = ["id_short", "full_name", "email", "event_link", "ticket_type", "quantity", "total", "status"]
    list_filter = ["status", "event"]
    search_fields = ["first_name", "last_name", "email", "stripe_checkout_session_id", "stripe_payment_intent_id"]
    readonly_fields = [
        "event",
        "ticket_type",
        "quantity",
        "ticket_price_at_purchase",
        "total_amount",
        "currency",
        "stripe_checkout_session_id",
        "stripe_checkout_url",
        "stripe_payment_intent_id",
        "expires_at",
        "idempotency_key",
        "access_code_used",
        "created_at",
    ]
    date_hierarchy = "created_at"
    inlines = [BookingAddOnInline, FormResponseInline]
    actions = ["cancel_bookings", "refund_bookings"]

    def has_add_permission(self, request: HttpRequest) -> bool:
        return False

    @admin.display(description="ID")
    def id_short(self, obj: models.EventBooking) -> str:
        return str(obj.id)[:8]

    @admin.display(description="Total")
    def total(self, obj: models.EventBooking) -> str:
        return format_amount(obj.total_amount, obj.currency)

    def _apply(self, request: HttpRequest, queryset: QuerySet[models.EventBooking], operation: str) -> None:
        done = 0
        for booking in queryset:
            try:
                getattr(stats_service, operation)(booking)
            except HttpError as e:
                self.message_user(request, f"{booking}: {e.message}", level=messages.WARNING)
            else:
                done += 1
        self.message_user(request, f"{done} booking(s) updated.", level=messages.SUCCESS)

    @admin.action(description="Cancel selected bookings")
    def cancel_bookings(self, request: HttpRequest, queryset: QuerySet[models.EventBooking]) -> None:
        self._apply(request, queryset, "cancel_booking")

    @admin.action(description="Refund selected bookings")
    def refund_bookings(self, request: HttpRequest, queryset: QuerySet[models.EventBooking]) -> None:
        self._apply(request, queryset, "refund_booking")

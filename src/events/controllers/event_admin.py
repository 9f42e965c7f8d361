from uuid import UUID

from django.db.models import QuerySet
from django.shortcuts import get_object_or_404
from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate
from ninja_extra.permissions import IsAdminUser
from ninja_extra.searching import Searching, searching
from ninja_jwt.authentication import JWTAuth

from common.schema import ResponseMessage
from common.throttling import UserDefaultThrottle, WriteThrottle
from events import models, schema
from events.service import stats_service, waitlist_service

from .base import EventBaseController


@api_controller(
    "/event-admin/{event_id}",
    auth=JWTAuth(),
    permissions=[IsAdminUser],
    tags=["Event Admin"],
    throttle=WriteThrottle(),
)
class EventAdminController(EventBaseController):
    """Staff endpoints for following and settling an event's bookings."""

    def get_queryset(self) -> models.event.EventQuerySet:
        return models.Event.objects.all()

    def get_booking(self, event_id: UUID, booking_id: UUID) -> models.EventBooking:
        event = self.get_one(event_id)
        return get_object_or_404(models.EventBooking, pk=booking_id, event=event)

    @route.get("/stats", url_name="event_stats", response=schema.EventStatsSchema, throttle=UserDefaultThrottle())
    def get_stats(self, event_id: UUID) -> schema.EventStatsSchema:
        """Booking totals by status, confirmed revenue, remaining spots and waitlist size."""
        return stats_service.event_stats(self.get_one(event_id))

    @route.get(
        "/bookings",
        url_name="list_bookings",
        response=PaginatedResponseSchema[schema.BookingSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    @searching(Searching, search_fields=["first_name", "last_name", "email"])
    def list_bookings(
        self,
        event_id: UUID,
        params: schema.BookingListFilter = Query(...),  # type: ignore[type-arg]
    ) -> QuerySet[models.EventBooking]:
        """List the event's bookings, newest first. Filter by `status` or search by name and email."""
        event = self.get_one(event_id)
        qs = models.EventBooking.objects.filter(event=event).prefetch_related("add_on_lines").order_by("-created_at")
        return params.filter(qs)

    @route.post("/bookings/{booking_id}/cancel", url_name="cancel_booking", response=schema.BookingSchema)
    def cancel_booking(self, event_id: UUID, booking_id: UUID) -> models.EventBooking:
        """Cancel a pending or confirmed booking. Its spots go to the next person on the waitlist."""
        return stats_service.cancel_booking(self.get_booking(event_id, booking_id))

    @route.post("/bookings/{booking_id}/refund", url_name="refund_booking", response=schema.BookingSchema)
    def refund_booking(self, event_id: UUID, booking_id: UUID) -> models.EventBooking:
        """Refund a confirmed booking.

        Bookings paid through Stripe are refunded in full through Stripe. Others only change status.
        """
        return stats_service.refund_booking(self.get_booking(event_id, booking_id))

    @route.get(
        "/waitlist",
        url_name="list_waitlist",
        response=PaginatedResponseSchema[schema.WaitlistEntrySchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_waitlist(self, event_id: UUID) -> QuerySet[models.EventWaitlistEntry]:
        """List the waitlist in queue order (FIFO)."""
        event = self.get_one(event_id)
        return models.EventWaitlistEntry.objects.filter(event=event).order_by("position")

    @route.post(
        "/waitlist/promote",
        url_name="promote_waitlist",
        response={200: schema.WaitlistEntrySchema, 404: ResponseMessage},
    )
    def promote_waitlist(self, event_id: UUID) -> tuple[int, models.EventWaitlistEntry | ResponseMessage]:
        """Offer a spot to the oldest waiting entry, by email, for a limited time."""
        entry = waitlist_service.promote_next(self.get_one(event_id))
        if entry is None:
            return 404, ResponseMessage(message="Nobody is waiting.")
        return 200, entry

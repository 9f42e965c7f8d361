from uuid import UUID

from ninja_extra import api_controller, route

from common.throttling import BookingThrottle, WaitlistThrottle
from events import schema
from events.service import waitlist_service
from events.service.booking_service import BookingService
from events.service.catalog_service import get_event_catalog

from .base import EventBaseController


@api_controller("/events", auth=None, tags=["Events"])
class EventBookingController(EventBaseController):
    """Public booking endpoints, used by the embeddable booking page."""

    @route.get("/{slug}", url_name="event_catalog", response=schema.EventCatalogSchema)
    def get_event_catalog(self, slug: str, code: str | None = None) -> schema.EventCatalogSchema:
        """Load everything the booking page needs for one event.

        Ticket types and add-ons come with their remaining capacity, sale status and, for gated
        ticket types, a `requires_code` flag. Access codes are never returned. `flow_state` tells
        the page whether booking is open at all and `waitlist_only` whether it should collect
        waitlist registrations instead of orders.

        Hidden and invite-only ticket types are only listed when `code` matches their access code,
        as in an invitation link.
        """
        return get_event_catalog(self.get_one_by_slug(slug), code=code)

    @route.post(
        "/{uuid:event_id}/bookings",
        url_name="create_booking",
        response={200: schema.BookingResponseSchema, (400, 409, 502): schema.BookingErrorSchema},
        throttle=BookingThrottle(),
    )
    def create_booking(self, event_id: UUID, payload: schema.BookingPayload) -> schema.BookingResponseSchema:
        """Submit an order for one ticket type, with optional add-ons and form answers.

        Free orders are confirmed right away (`status: confirmed`, `free: true`). Paid orders return
        a `checkout_url` to redirect the purchaser to; the booking holds its spots until the checkout
        expires. Rejections come back as `{"error": reason, "detail": message}`, with `sold_out` and
        `invalid_access_code` among the reasons.

        Send the same `idempotency_key` when retrying a submission to get the original outcome back
        instead of a second booking.
        """
        event = self.get_one(event_id)
        return BookingService(event, payload).submit().as_response()

    @route.post(
        "/{uuid:event_id}/waitlist",
        url_name="join_waitlist",
        response={201: schema.WaitlistJoinResponse},
        throttle=WaitlistThrottle(),
    )
    def join_waitlist(
        self, event_id: UUID, payload: schema.WaitlistJoinPayload
    ) -> tuple[int, schema.WaitlistJoinResponse]:
        """Join the waitlist of a sold-out event.

        Returns the position in the queue. An email can only hold one place per event.
        """
        event = self.get_one(event_id)
        entry = waitlist_service.join_waitlist(event, payload)
        return 201, schema.WaitlistJoinResponse(waitlist_entry_id=entry.id, position=entry.position)

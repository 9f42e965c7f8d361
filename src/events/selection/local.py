"""In-process booking backend, calling the booking services directly."""

import typing as t

import pydantic

from events import schema
from events.exceptions import BookingRejectedError, WaitlistError
from events.models import Event
from events.service import waitlist_service
from events.service.booking_service import BookingService
from events.service.catalog_service import get_event_catalog

from .flow import BackendResponse


class LocalBookingBackend:
    """BookingBackend that skips HTTP. Responses carry the same bodies the API would send."""

    def _event(self, event_id: str) -> Event | None:
        return Event.objects.bookable().filter(pk=event_id).first()

    def load_event(self, slug: str, code: str | None = None) -> BackendResponse:
        event = Event.objects.bookable().filter(slug=slug).first()
        if event is None:
            return BackendResponse(status_code=404, data={"detail": "Not Found"})
        return BackendResponse(status_code=200, data=get_event_catalog(event, code=code).model_dump(mode="json"))

    def submit_booking(self, event_id: str, payload: dict[str, t.Any]) -> BackendResponse:
        event = self._event(event_id)
        if event is None:
            return BackendResponse(status_code=404, data={"detail": "Not Found"})
        try:
            booking_payload = schema.BookingPayload.model_validate(payload)
        except pydantic.ValidationError as e:
            return BackendResponse(status_code=422, data={"detail": e.errors(include_url=False)})
        try:
            outcome = BookingService(event, booking_payload).submit()
        except BookingRejectedError as e:
            return BackendResponse(status_code=e.reason.status_code, data=e.as_payload())
        return BackendResponse(status_code=200, data=outcome.as_response().model_dump(mode="json"))

    def join_waitlist(self, event_id: str, payload: dict[str, t.Any]) -> BackendResponse:
        event = self._event(event_id)
        if event is None:
            return BackendResponse(status_code=404, data={"detail": "Not Found"})
        try:
            entry = waitlist_service.join_waitlist(event, schema.WaitlistJoinPayload.model_validate(payload))
        except pydantic.ValidationError as e:
            return BackendResponse(status_code=422, data={"detail": e.errors(include_url=False)})
        except WaitlistError as e:
            return BackendResponse(status_code=e.status_code, data={"detail": str(e)})
        return BackendResponse(
            status_code=201, data={"waitlist_entry_id": str(entry.id), "position": entry.position}
        )

"""The effect layer around the selection machine.

A BookingFlow owns the current SelectionState, feeds actions through ``transition`` and does
the two network round-trips the booking page needs: loading the event and submitting the
order. It never redirects by itself; after a paid submission ``redirect_url`` holds the
checkout URL to navigate to, exactly as the server returned it.
"""

import datetime
import secrets
import typing as t
from dataclasses import dataclass

import structlog
from django.utils import timezone

from . import actions as a
from .callbacks import Callback, parse_callback, strip_callback
from .catalog import Catalog
from .machine import (
    BOOKING_FAILED_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    UNEXPECTED_RESPONSE_MESSAGE,
    submission_payload,
    transition,
    waitlist_payload,
)
from .state import SelectionState, Step

logger = structlog.get_logger(__name__)

EVENT_NOT_FOUND_MESSAGE = "Event not found."


class BackendUnavailable(Exception):
    """The booking backend could not be reached."""


@dataclass(frozen=True)
class BackendResponse:
    status_code: int
    data: dict[str, t.Any] | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class BookingBackend(t.Protocol):
    """Protocol for the server side of the booking page.

    Implementations raise BackendUnavailable on transport failures and otherwise return the
    status code and decoded JSON object of the response.
    """

    def load_event(self, slug: str, code: str | None = None) -> BackendResponse:
        """Fetch the event catalog for a slug, revealing unlisted ticket types whose access code is `code`."""
        ...

    def submit_booking(self, event_id: str, payload: dict[str, t.Any]) -> BackendResponse:
        """Submit an order."""
        ...

    def join_waitlist(self, event_id: str, payload: dict[str, t.Any]) -> BackendResponse:
        """Register for the waitlist of a sold-out event."""
        ...


def _error_message(data: dict[str, t.Any] | None) -> str:
    if not data:
        return BOOKING_FAILED_MESSAGE
    for key in ("detail", "error"):
        if isinstance(data.get(key), str) and data[key]:
            return t.cast(str, data[key])
    return BOOKING_FAILED_MESSAGE


class BookingFlow:
    """Drives one booking page session."""

    def __init__(
        self,
        backend: BookingBackend,
        slug: str,
        page_url: str,
        *,
        clock: t.Callable[[], datetime.datetime] = timezone.now,
        idempotency_key: str | None = None,
        access_code: str | None = None,
    ) -> None:
        """Initialize the flow.

        Args:
            backend: Where the event is loaded from and orders are sent to.
            slug: The event slug.
            page_url: URL of the booking page, possibly carrying a payment callback parameter.
            clock: Source of the current time for eligibility decisions.
            idempotency_key: Key sent with the submission. Reuse it across reloads of the same order.
            access_code: Code from an invitation link. Reveals and unlocks the unlisted ticket types it opens.
        """
        self.backend = backend
        self.slug = slug
        self.page_url = page_url
        self.clock = clock
        self.access_code = access_code.strip() if access_code else None
        self.idempotency_key = idempotency_key or secrets.token_urlsafe(24)
        self.state = SelectionState()

    @property
    def redirect_url(self) -> str | None:
        return self.state.redirect_url

    def dispatch(self, action: a.Action) -> SelectionState:
        self.state = transition(self.state, action)
        return self.state

    def start(self) -> SelectionState:
        """Consume a payment callback parameter, then load the event if still needed."""
        callback = parse_callback(self.page_url)
        if callback is not None:
            self.page_url = strip_callback(self.page_url)
        if callback == Callback.SUCCESS:
            logger.info("booking_flow_payment_returned", slug=self.slug)
            return self.dispatch(a.PaymentReturned())

        try:
            response = self.backend.load_event(self.slug, code=self.access_code)
        except BackendUnavailable:
            return self.dispatch(a.LoadFailed(NETWORK_ERROR_MESSAGE))
        if response.status_code == 404:
            return self.dispatch(a.LoadFailed(EVENT_NOT_FOUND_MESSAGE))
        if not response.ok or response.data is None:
            return self.dispatch(a.LoadFailed(UNEXPECTED_RESPONSE_MESSAGE))
        try:
            catalog = Catalog.from_payload(response.data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("booking_flow_malformed_catalog", slug=self.slug, error=repr(e))
            return self.dispatch(a.LoadFailed(UNEXPECTED_RESPONSE_MESSAGE))

        self.dispatch(a.EventLoaded(catalog=catalog, now=self.clock()))
        if self.access_code and self.state.step == Step.TICKETS:
            for ticket in catalog.ticket_types:
                if ticket.revealed_by_code:
                    self.dispatch(a.EnterAccessCode(ticket.id, self.access_code))
                    self.dispatch(a.UnlockTicket(ticket.id))
        return self.state

    def submit(self) -> SelectionState:
        """Validate the details step and send the order once."""
        if self.state.step != Step.DETAILS:
            return self.state
        if self.dispatch(a.SubmitRequested()).step != Step.SUBMITTING:
            return self.state
        assert self.state.catalog is not None
        event_id = self.state.catalog.event.id

        if self.state.waitlist_only:
            return self._join_waitlist(event_id)

        payload = submission_payload(self.state, page_url=self.page_url, idempotency_key=self.idempotency_key)
        try:
            response = self.backend.submit_booking(event_id, payload)
        except BackendUnavailable:
            return self.dispatch(a.SubmissionFailed(NETWORK_ERROR_MESSAGE))

        data = response.data
        if not response.ok:
            if data and isinstance(data.get("error"), str):
                return self.dispatch(a.SubmissionRejected(error=data["error"], detail=data.get("detail")))
            return self.dispatch(a.SubmissionFailed(_error_message(data)))
        if data is None:
            return self.dispatch(a.SubmissionFailed(UNEXPECTED_RESPONSE_MESSAGE))

        booking_id = str(data["booking_id"]) if data.get("booking_id") else None
        if data.get("free") or data.get("status") == "confirmed":
            return self.dispatch(a.SubmissionConfirmed(booking_id=booking_id))
        if data.get("checkout_url"):
            return self.dispatch(a.SubmissionRedirect(url=data["checkout_url"], booking_id=booking_id))
        return self.dispatch(a.SubmissionFailed(UNEXPECTED_RESPONSE_MESSAGE))

    def _join_waitlist(self, event_id: str) -> SelectionState:
        try:
            response = self.backend.join_waitlist(event_id, waitlist_payload(self.state))
        except BackendUnavailable:
            return self.dispatch(a.SubmissionFailed(NETWORK_ERROR_MESSAGE))
        data = response.data
        if response.ok and data and data.get("waitlist_entry_id"):
            return self.dispatch(
                a.WaitlistJoined(entry_id=str(data["waitlist_entry_id"]), position=int(data.get("position") or 0))
            )
        return self.dispatch(a.SubmissionFailed(_error_message(data)))

from enum import StrEnum

from django.utils.translation import gettext_noop


class BookingRejection(StrEnum):
    """Machine-readable reasons a booking submission is refused."""

    SOLD_OUT = "sold_out"
    INVALID_ACCESS_CODE = "invalid_access_code"
    REGISTRATION_CLOSED = "registration_closed"
    NOT_AVAILABLE = "not_available"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_ADD_ON = "invalid_add_on"
    MISSING_REQUIRED_ADD_ON = "missing_required_add_on"
    INVALID_FORM_RESPONSE = "invalid_form_response"
    PAYMENT_FAILED = "payment_failed"

    @property
    def status_code(self) -> int:
        if self in (self.SOLD_OUT, self.INVALID_ACCESS_CODE, self.REGISTRATION_CLOSED, self.NOT_AVAILABLE):
            return 409
        if self == self.PAYMENT_FAILED:
            return 502
        return 400


class BookingRejectedError(Exception):
    """Raised when a booking submission fails the authoritative server-side checks."""

    def __init__(self, reason: BookingRejection, detail: str | None = None) -> None:
        """Initialize the exception with a rejection reason and optional human-readable detail."""
        super().__init__(detail or reason.value)
        self.reason = reason
        self.detail = detail

    def as_payload(self) -> dict[str, str | None]:
        return {"error": self.reason.value, "detail": self.detail}


class WaitlistError(Exception):
    """Raised when a waitlist operation is not allowed."""

    WAITLIST_DISABLED = gettext_noop("This event does not have a waitlist.")
    ALREADY_ON_WAITLIST = gettext_noop("You are already on the waitlist for this event.")

    def __init__(self, message: str, status_code: int = 400) -> None:
        """Initialize the exception with the message and HTTP status it maps to."""
        super().__init__(message)
        self.status_code = status_code

from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja_extra import NinjaExtraAPI

from common.schema import ResponseOk, VersionResponse
from common.throttling import AnonDefaultThrottle, UserDefaultThrottle
from events.controllers.event_admin import EventAdminController
from events.controllers.events import EventBookingController
from events.controllers.stripe_webhook import StripeWebhookController
from events.exceptions import BookingRejectedError, WaitlistError

from .exception_handlers import (
    handle_booking_rejected_error,
    handle_django_validation_error,
    handle_general_exception,
    handle_waitlist_error,
)

api = NinjaExtraAPI(
    title="Fairway Events API",
    docs_url="/docs",
    version=settings.VERSION,
    description=f"Fairway Events API {settings.VERSION}",
    app_name=f"fairway-api-{settings.VERSION}",
    urls_namespace="api",
    servers=[
        {"url": settings.SERVICE_URL, "description": settings.SERVICE_DESCRIPTION},
    ],
    throttle=[AnonDefaultThrottle(), UserDefaultThrottle()],
)


@api.get("/version", tags=["Version"], response={200: VersionResponse})
def version(request: HttpRequest) -> tuple[int, VersionResponse]:
    """Get the API version.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, VersionResponse(version=settings.VERSION)


@api.get("/healthcheck", tags=["Healthcheck"], response={200: ResponseOk})
def healthcheck(request: HttpRequest) -> tuple[int, ResponseOk]:
    """Check the health of the API.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, ResponseOk()


api.register_controllers(
    EventBookingController,
    EventAdminController,
    StripeWebhookController,
)

EXCEPTION_HANDLERS = {
    Exception: handle_general_exception,
    ValidationError: handle_django_validation_error,
    BookingRejectedError: handle_booking_rejected_error,
    WaitlistError: handle_waitlist_error,
}

for exc, handler in EXCEPTION_HANDLERS.items():
    api.add_exception_handler(exc, handler)

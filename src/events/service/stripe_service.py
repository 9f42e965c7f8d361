import typing as t
from datetime import datetime, timedelta

import stripe
import structlog
from django.conf import settings
from django.utils import timezone
from stripe.checkout import Session

from events.models import EventBooking

logger = structlog.get_logger(__name__)

stripe.api_key = settings.STRIPE_SECRET_KEY

# Stripe rejects sessions expiring less than 30 minutes after creation.
MIN_CHECKOUT_LIFETIME = timedelta(minutes=31)


class StripeCheckoutError(Exception):
    """Raised when Stripe refuses to open a Checkout Session."""


def checkout_expires_at() -> datetime:
    """When a Checkout Session opened now should expire, never sooner than Stripe accepts."""
    lifetime = max(timedelta(minutes=settings.PAYMENT_DEFAULT_EXPIRY_MINUTES), MIN_CHECKOUT_LIFETIME)
    return timezone.now() + lifetime


def _build_line_items(booking: EventBooking) -> list[dict[str, t.Any]]:
    currency = booking.currency.lower()
    line_items: list[dict[str, t.Any]] = [
        {
            "price_data": {
                "currency": currency,
                "product_data": {
                    "name": f"{booking.event.name}: {booking.ticket_type.name}",
                },
                "unit_amount": booking.ticket_price_at_purchase,
            },
            "quantity": booking.quantity,
        }
    ]
    for line in booking.add_on_lines.select_related("add_on").order_by("add_on__sort_order"):
        if line.price_at_purchase <= 0:
            continue
        line_items.append(
            {
                "price_data": {
                    "currency": currency,
                    "product_data": {"name": f"Add-on: {line.add_on.name}"},
                    "unit_amount": line.price_at_purchase,
                },
                "quantity": line.quantity,
            }
        )
    return line_items


def create_booking_checkout_session(
    booking: EventBooking,
    *,
    success_url: str,
    cancel_url: str,
    expires_at: datetime,
) -> Session:
    """Create a Stripe Checkout Session for a pending booking.

    Amounts are already in minor units, so they are passed through untouched.

    Args:
        booking: The pending booking, with its price snapshot already taken.
        success_url: Where Stripe sends the purchaser after paying.
        cancel_url: Where Stripe sends the purchaser after abandoning checkout.
        expires_at: Session expiration timestamp. Stripe requires at least 30 minutes.

    Returns:
        The created Stripe Checkout Session.

    Raises:
        StripeCheckoutError: If the Stripe API call fails.
    """
    metadata = {
        "booking_id": str(booking.id),
        "event_id": str(booking.event_id),
        "source": settings.STRIPE_METADATA_SOURCE,
    }
    try:
        session = Session.create(
            customer_email=booking.email,
            client_reference_id=str(booking.id),
            line_items=_build_line_items(booking),  # type: ignore[arg-type]
            mode="payment",
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            payment_intent_data={"metadata": metadata},
            expires_at=int(expires_at.timestamp()),
        )
    except stripe.error.StripeError as e:
        logger.error("stripe_checkout_session_failed", booking_id=str(booking.id), error=str(e))
        raise StripeCheckoutError(str(e)) from e

    logger.info(
        "stripe_checkout_session_created",
        booking_id=str(booking.id),
        session_id=session.id,
        amount=booking.total_amount,
        currency=booking.currency,
    )
    return session


def refund_payment(payment_intent_id: str) -> stripe.Refund:
    """Issue a full refund of a payment intent."""
    refund = stripe.Refund.create(payment_intent=payment_intent_id)
    logger.info("stripe_refund_created", payment_intent_id=payment_intent_id, refund_id=refund.id)
    return refund

"""Booking submission and settlement.

A submission is accepted or refused in one transaction that locks the event row and
re-derives capacity from the ledger. Whatever the purchaser saw on the booking page is
treated as advisory only. Paid bookings are handed off to Stripe Checkout after the
transaction commits, so a slow payment provider never holds the event lock.
"""

import datetime
import typing as t
from collections import Counter
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.translation import gettext as _

from events import schema
from events.exceptions import BookingRejectedError, BookingRejection
from events.models import (
    AddOn,
    BookingAddOn,
    Event,
    EventBooking,
    EventFormField,
    FormResponse,
    TicketType,
)
from events.selection.callbacks import return_urls
from events.service import stripe_service, waitlist_service
from events.service.capacity import CapacityLedger, LedgerSnapshot
from events.service.eligibility import EligibilityService, FlowState, ItemStatus

logger = structlog.get_logger(__name__)

EVENT_STATE_REJECTIONS = {
    FlowState.CANCELLED: BookingRejection.NOT_AVAILABLE,
    FlowState.CLOSED: BookingRejection.REGISTRATION_CLOSED,
    FlowState.NOT_OPEN: BookingRejection.REGISTRATION_CLOSED,
    FlowState.SOLD_OUT: BookingRejection.SOLD_OUT,
}


@dataclass(frozen=True)
class BookingOutcome:
    """The result of an accepted submission: a confirmed booking or a checkout redirect."""

    booking: EventBooking
    checkout_url: str | None = None
    session_id: str | None = None

    @classmethod
    def confirmed(cls, booking: EventBooking) -> "BookingOutcome":
        return cls(booking=booking)

    @classmethod
    def checkout_redirect(cls, booking: EventBooking, url: str, session_id: str | None) -> "BookingOutcome":
        return cls(booking=booking, checkout_url=url, session_id=session_id)

    @property
    def is_redirect(self) -> bool:
        return self.checkout_url is not None

    def as_response(self) -> schema.BookingResponseSchema:
        return schema.BookingResponseSchema(
            booking_id=self.booking.id,
            status=self.booking.status,
            total_amount=self.booking.total_amount,
            currency=self.booking.currency,
            free=self.booking.total_amount == 0,
            checkout_url=self.checkout_url,
            session_id=self.session_id,
        )


@dataclass(frozen=True)
class _AddOnLine:
    add_on: AddOn
    quantity: int


class BookingService:
    """Validates and records one booking submission for an event."""

    def __init__(
        self, event: Event, payload: schema.BookingPayload, *, now: datetime.datetime | None = None
    ) -> None:
        """Initialize the service for one submission."""
        self.event = event
        self.payload = payload
        self.now = now or timezone.now()

    def submit(self) -> BookingOutcome:
        """Accept or refuse the submission.

        Returns:
            A confirmed outcome for free orders, a checkout redirect for paid ones.

        Raises:
            BookingRejectedError: If any server-side check fails or Stripe refuses the session.
        """
        if replayed := self._replay():
            return replayed
        try:
            booking = self._reserve()
        except (IntegrityError, ValidationError):
            # A concurrent request with the same idempotency key won the insert.
            if replayed := self._replay():
                return replayed
            raise
        if booking.status == EventBooking.BookingStatus.CONFIRMED:
            return BookingOutcome.confirmed(booking)
        return self._start_checkout(booking)

    def _replay(self) -> BookingOutcome | None:
        key = self.payload.idempotency_key
        if not key:
            return None
        booking = EventBooking.objects.filter(idempotency_key=key).first()
        if booking is None:
            return None
        logger.info("booking_idempotent_replay", booking_id=str(booking.id), booking_status=booking.status)
        if booking.event_id == self.event.pk:
            if booking.status == EventBooking.BookingStatus.CONFIRMED:
                return BookingOutcome.confirmed(booking)
            if booking.status == EventBooking.BookingStatus.PENDING and booking.stripe_checkout_url:
                return BookingOutcome.checkout_redirect(
                    booking, booking.stripe_checkout_url, booking.stripe_checkout_session_id
                )
        raise BookingRejectedError(
            BookingRejection.NOT_AVAILABLE, _("This booking request has already been processed.")
        )

    @transaction.atomic
    def _reserve(self) -> EventBooking:
        event = Event.objects.select_for_update().get(pk=self.event.pk)
        ticket_types = list(TicketType.objects.filter(event=event))
        add_ons = list(AddOn.objects.filter(event=event).select_related("group"))
        ledger = CapacityLedger(event).snapshot(ticket_types=ticket_types, add_ons=add_ons)
        eligibility = EligibilityService(
            event, ledger=ledger, now=self.now, ticket_types=ticket_types, add_ons=add_ons
        )

        self._check_event(eligibility)
        ticket = self._check_ticket(eligibility, ledger, {ticket.pk: ticket for ticket in ticket_types})
        lines = self._check_add_ons(eligibility, ledger, add_ons)
        answers = self._check_form_responses(event)

        total = ticket.line_total(self.payload.quantity) + sum(line.add_on.line_total(line.quantity) for line in lines)
        is_free = total == 0
        booking = EventBooking.objects.create(
            event=event,
            ticket_type=ticket,
            first_name=self.payload.first_name,
            last_name=self.payload.last_name,
            email=self.payload.email,
            phone=self.payload.phone,
            notes=self.payload.notes,
            status=EventBooking.BookingStatus.CONFIRMED if is_free else EventBooking.BookingStatus.PENDING,
            quantity=self.payload.quantity,
            ticket_price_at_purchase=ticket.price,
            total_amount=total,
            currency=event.currency,
            expires_at=None if is_free else self.now + timedelta(minutes=settings.PAYMENT_DEFAULT_EXPIRY_MINUTES),
            idempotency_key=self.payload.idempotency_key,
            access_code_used=ticket.access_code if ticket.requires_code else None,
        )
        BookingAddOn.objects.bulk_create(
            BookingAddOn(
                booking=booking, add_on=line.add_on, quantity=line.quantity, price_at_purchase=line.add_on.price
            )
            for line in lines
        )
        FormResponse.objects.bulk_create(
            FormResponse(booking=booking, form_field_id=field_id, value=value) for field_id, value in answers.items()
        )

        logger.info(
            "booking_reserved",
            booking_id=str(booking.id),
            event_id=str(event.id),
            ticket_type_id=str(ticket.id),
            quantity=booking.quantity,
            total_amount=total,
            booking_status=booking.status,
        )
        if is_free:
            waitlist_service.mark_converted(booking)
            self._send_confirmation(booking)
        return booking

    def _reject(self, reason: BookingRejection, detail: str) -> t.NoReturn:
        logger.info(
            "booking_rejected",
            event_id=str(self.event.pk),
            ticket_type_id=str(self.payload.ticket_type_id),
            reason=reason.value,
        )
        raise BookingRejectedError(reason, detail)

    def _check_event(self, eligibility: EligibilityService) -> None:
        result = eligibility.check_event()
        if result.state != FlowState.OPEN:
            self._reject(EVENT_STATE_REJECTIONS[result.state], result.reason or _("This event is not available."))
        if result.waitlist_only:
            self._reject(BookingRejection.SOLD_OUT, _("This event is sold out."))

    def _check_ticket(
        self, eligibility: EligibilityService, ledger: LedgerSnapshot, ticket_types: dict[UUID, TicketType]
    ) -> TicketType:
        ticket = ticket_types.get(self.payload.ticket_type_id)
        if ticket is None:
            self._reject(BookingRejection.NOT_AVAILABLE, _("This ticket type does not exist."))

        if ticket.requires_code:
            if not ticket.access_code_matches(self.payload.access_code):
                self._reject(BookingRejection.INVALID_ACCESS_CODE, _("Invalid access code"))
        elif ticket.visibility != TicketType.Visibility.PUBLIC:
            self._reject(BookingRejection.NOT_AVAILABLE, _("This ticket type is not available."))

        status = eligibility.check_ticket(ticket, unlocked_ticket_ids={ticket.pk}).status
        if status == ItemStatus.NOT_ON_SALE_YET:
            self._reject(BookingRejection.NOT_AVAILABLE, _("This ticket type is not on sale yet."))
        if status == ItemStatus.SALE_ENDED:
            self._reject(BookingRejection.NOT_AVAILABLE, _("Sales for this ticket type have ended."))
        if status == ItemStatus.SOLD_OUT:
            self._reject(BookingRejection.SOLD_OUT, _("This ticket type is sold out."))

        quantity = self.payload.quantity
        if not ticket.min_per_order <= quantity <= ticket.max_per_order:
            self._reject(
                BookingRejection.INVALID_QUANTITY,
                _("Quantity must be between {min} and {max}.").format(
                    min=ticket.min_per_order, max=ticket.max_per_order
                ),
            )
        if quantity > ledger.ticket(ticket.pk).effective_available:
            self._reject(BookingRejection.SOLD_OUT, _("Not enough tickets left for this order."))
        return ticket

    def _check_add_ons(
        self, eligibility: EligibilityService, ledger: LedgerSnapshot, add_ons: list[AddOn]
    ) -> list[_AddOnLine]:
        by_id = {add_on.pk: add_on for add_on in add_ons if add_on.visibility == AddOn.Visibility.PUBLIC}
        requested = Counter(selection.add_on_id for selection in self.payload.add_ons)
        if any(count > 1 for count in requested.values()):
            self._reject(BookingRejection.INVALID_ADD_ON, _("Each add-on can only be selected once."))

        lines: list[_AddOnLine] = []
        for selection in self.payload.add_ons:
            add_on = by_id.get(selection.add_on_id)
            if add_on is None:
                self._reject(BookingRejection.INVALID_ADD_ON, _("This add-on is not available."))
            status = eligibility.check_add_on(add_on).status
            if status == ItemStatus.SOLD_OUT:
                self._reject(BookingRejection.SOLD_OUT, _("{name} is sold out.").format(name=add_on.name))
            if status != ItemStatus.SELECTABLE:
                self._reject(BookingRejection.INVALID_ADD_ON, _("{name} is not on sale.").format(name=add_on.name))
            if selection.quantity > add_on.max_per_order:
                self._reject(
                    BookingRejection.INVALID_ADD_ON,
                    _("At most {max} of {name} per order.").format(max=add_on.max_per_order, name=add_on.name),
                )
            available = ledger.add_on(add_on.pk).available
            if available is not None and selection.quantity > available:
                self._reject(BookingRejection.SOLD_OUT, _("Not enough of {name} left.").format(name=add_on.name))
            lines.append(_AddOnLine(add_on=add_on, quantity=selection.quantity))

        exclusive_groups = Counter(
            line.add_on.group_id for line in lines if line.add_on.group and line.add_on.group.is_exclusive
        )
        if any(count > 1 for count in exclusive_groups.values()):
            self._reject(BookingRejection.INVALID_ADD_ON, _("Only one add-on can be chosen from this group."))

        for add_on in by_id.values():
            if add_on.required and add_on.pk not in requested and eligibility.check_add_on(add_on).is_selectable:
                self._reject(
                    BookingRejection.MISSING_REQUIRED_ADD_ON, _("{name} is required.").format(name=add_on.name)
                )
        return lines

    def _check_form_responses(self, event: Event) -> dict[UUID, str]:
        fields = {form_field.pk: form_field for form_field in EventFormField.objects.filter(event=event)}
        answers: dict[UUID, str] = {}
        for answer in self.payload.form_responses:
            form_field = fields.get(answer.field_id)
            if form_field is None:
                self._reject(BookingRejection.INVALID_FORM_RESPONSE, _("Unknown form field."))
            value = (answer.value or "").strip()
            if not value:
                continue
            if form_field.field_type in EventFormField.CHOICE_TYPES and value not in form_field.options:
                self._reject(
                    BookingRejection.INVALID_FORM_RESPONSE,
                    _("{label}: choose one of the listed options.").format(label=form_field.label),
                )
            if form_field.field_type == EventFormField.FieldType.NUMBER:
                try:
                    float(value)
                except ValueError:
                    self._reject(
                        BookingRejection.INVALID_FORM_RESPONSE,
                        _("{label} must be a number.").format(label=form_field.label),
                    )
            answers[form_field.pk] = value

        for form_field in fields.values():
            if form_field.required and form_field.pk not in answers:
                self._reject(
                    BookingRejection.INVALID_FORM_RESPONSE, _("{label} is required.").format(label=form_field.label)
                )
        return answers

    def _return_urls(self) -> tuple[str, str]:
        success_url, cancel_url = return_urls(f"{settings.FRONTEND_BASE_URL}/embed/{self.event.slug}")
        return self.payload.success_url or success_url, self.payload.cancel_url or cancel_url

    def _start_checkout(self, booking: EventBooking) -> BookingOutcome:
        success_url, cancel_url = self._return_urls()
        # The hold runs from session creation, not from when validation started.
        booking.expires_at = stripe_service.checkout_expires_at()
        try:
            session = stripe_service.create_booking_checkout_session(
                booking, success_url=success_url, cancel_url=cancel_url, expires_at=booking.expires_at
            )
        except stripe_service.StripeCheckoutError as e:
            EventBooking.objects.filter(pk=booking.pk).update(
                status=EventBooking.BookingStatus.CANCELLED, updated_at=timezone.now()
            )
            logger.warning("booking_payment_failed", booking_id=str(booking.id))
            raise BookingRejectedError(BookingRejection.PAYMENT_FAILED, _("Could not start the payment.")) from e

        booking.stripe_checkout_session_id = session.id
        booking.stripe_checkout_url = session.url
        booking.save(update_fields=["stripe_checkout_session_id", "stripe_checkout_url", "expires_at", "updated_at"])
        return BookingOutcome.checkout_redirect(booking, t.cast(str, session.url), session.id)

    @staticmethod
    def _send_confirmation(booking: EventBooking) -> None:
        from events.tasks import send_booking_confirmation_email

        transaction.on_commit(lambda: send_booking_confirmation_email.delay(str(booking.id)))

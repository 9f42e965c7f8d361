"""Booking submission and booking read schemas."""

import typing as t
from uuid import UUID

from ninja import FilterSchema, ModelSchema, Schema
from pydantic import EmailStr, Field, field_validator

from common.schema import OneToOneFiftyString, StrippedString
from events.models import BookingAddOn, EventBooking


class AddOnSelectionSchema(Schema):
    add_on_id: UUID
    quantity: int = Field(1, ge=1)


class FormAnswerSchema(Schema):
    field_id: UUID
    value: str | None = None


class BookingPayload(Schema):
    ticket_type_id: UUID
    quantity: int = Field(1, ge=1)
    access_code: StrippedString | None = None
    first_name: OneToOneFiftyString
    last_name: OneToOneFiftyString
    email: EmailStr
    phone: StrippedString | None = None
    notes: StrippedString | None = None
    add_ons: list[AddOnSelectionSchema] = Field(default_factory=list)
    form_responses: list[FormAnswerSchema] = Field(default_factory=list)
    success_url: str | None = Field(None, max_length=2048)
    cancel_url: str | None = Field(None, max_length=2048)
    idempotency_key: str | None = Field(None, min_length=8, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value: t.Any) -> t.Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("access_code", "phone", "notes")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        return value or None


class BookingResponseSchema(Schema):
    booking_id: UUID
    status: EventBooking.BookingStatus
    total_amount: int
    currency: str
    free: bool = False
    checkout_url: str | None = None
    session_id: str | None = None


class BookingErrorSchema(Schema):
    error: str
    detail: str | None = None


class BookingAddOnLineSchema(ModelSchema):
    add_on_id: UUID

    class Meta:
        model = BookingAddOn
        fields = ["id", "quantity", "price_at_purchase"]


class BookingSchema(ModelSchema):
    ticket_type_id: UUID
    add_on_lines: list[BookingAddOnLineSchema]

    class Meta:
        model = EventBooking
        fields = [
            "id",
            "first_name",
            "last_name",
            "email",
            "phone",
            "notes",
            "status",
            "quantity",
            "ticket_price_at_purchase",
            "total_amount",
            "currency",
            "stripe_payment_intent_id",
            "expires_at",
            "created_at",
        ]


class BookingListFilter(FilterSchema):
    status: EventBooking.BookingStatus | None = None

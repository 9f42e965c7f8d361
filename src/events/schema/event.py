"""Event catalog schemas: what the booking page loads."""

import datetime
from uuid import UUID

from ninja import Schema
from pydantic import Field

from events.models import Event
from events.service.eligibility import FlowState, ItemStatus, SaleStatus


class EventSummarySchema(Schema):
    id: UUID
    name: str
    slug: str
    description: str
    date: datetime.date | None = None
    time: datetime.time | None = None
    location: str
    image_url: str | None = None
    policy_url: str | None = None
    faq_url: str | None = None
    status: Event.EventStatus
    currency: str
    total_capacity: int
    total_booked: int
    spots_remaining: int = Field(..., ge=0)
    registration_opens_at: datetime.datetime | None = None
    registration_closes_at: datetime.datetime | None = None
    waitlist_enabled: bool
    flow_state: FlowState
    flow_reason: str | None = None
    waitlist_only: bool = False


class TicketTypeCatalogSchema(Schema):
    """A ticket type as shown to the public. The access code itself is never serialized."""

    id: UUID
    name: str
    description: str
    price: int
    capacity: int | None = None
    sort_order: int
    min_per_order: int
    max_per_order: int
    sold_count: int
    available: int | None = Field(None, ge=0, description="Own remaining capacity; null when uncapped.")
    effective_available: int = Field(..., ge=0, description="Remaining capacity bounded by the event.")
    sale_starts_at: datetime.datetime | None = None
    sale_ends_at: datetime.datetime | None = None
    sale_status: SaleStatus
    status: ItemStatus
    requires_code: bool
    revealed_by_code: bool = Field(False, description="Unlisted ticket type shown because the supplied code matched.")
    waitlist_enabled: bool


class AddOnGroupSchema(Schema):
    id: UUID
    name: str
    description: str
    sort_order: int
    selection_type: str
    collapsed_by_default: bool


class AddOnCatalogSchema(Schema):
    id: UUID
    group_id: UUID | None = None
    name: str
    description: str
    price: int
    capacity: int | None = None
    sort_order: int
    max_per_order: int
    required: bool
    sold_count: int
    available: int | None = Field(None, ge=0)
    sale_starts_at: datetime.datetime | None = None
    sale_ends_at: datetime.datetime | None = None
    sale_status: SaleStatus
    status: ItemStatus


class FormFieldSchema(Schema):
    id: UUID
    label: str
    field_type: str
    options: list[str] = Field(default_factory=list)
    required: bool
    sort_order: int
    placeholder: str = ""


class EventCatalogSchema(Schema):
    event: EventSummarySchema
    ticket_types: list[TicketTypeCatalogSchema]
    add_on_groups: list[AddOnGroupSchema]
    add_ons: list[AddOnCatalogSchema]
    form_fields: list[FormFieldSchema]


class EventStatsSchema(Schema):
    total_booked: int
    total_confirmed: int
    total_pending: int
    total_cancelled: int
    total_refunded: int
    total_revenue: int
    spots_remaining: int
    waitlist_count: int
    currency: str

"""The booking page's view of an event, parsed from the event catalog payload.

Items are classified again on the client from the raw capacity and sale-window figures, so a
page left open past a sale boundary still shows the right badge. None of this is
authoritative; the submission endpoint re-checks everything.
"""

import datetime
import typing as t
from dataclasses import dataclass

from django.utils.dateparse import parse_datetime

from events.service.eligibility.enums import FlowState, ItemStatus, SaleStatus


def _dt(value: t.Any) -> datetime.datetime | None:
    if value is None or isinstance(value, datetime.datetime):
        return value
    return parse_datetime(value)


def _window_status(
    starts_at: datetime.datetime | None,
    ends_at: datetime.datetime | None,
    fallback: SaleStatus,
    now: datetime.datetime,
) -> ItemStatus | None:
    if starts_at is None and ends_at is None:
        # No window on record: trust the server's classification.
        return {
            SaleStatus.NOT_STARTED: ItemStatus.NOT_ON_SALE_YET,
            SaleStatus.ENDED: ItemStatus.SALE_ENDED,
        }.get(fallback)
    if starts_at and starts_at > now:
        return ItemStatus.NOT_ON_SALE_YET
    if ends_at and ends_at < now:
        return ItemStatus.SALE_ENDED
    return None


@dataclass(frozen=True)
class TicketOption:
    id: str
    name: str
    price: int
    min_per_order: int
    max_per_order: int
    available: int | None
    effective_available: int
    requires_code: bool
    revealed_by_code: bool = False
    sale_status: SaleStatus = SaleStatus.OPEN
    sale_starts_at: datetime.datetime | None = None
    sale_ends_at: datetime.datetime | None = None
    description: str = ""

    @classmethod
    def from_payload(cls, data: dict[str, t.Any]) -> "TicketOption":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description") or "",
            price=int(data["price"]),
            min_per_order=int(data["min_per_order"]),
            max_per_order=int(data["max_per_order"]),
            available=data.get("available"),
            effective_available=max(0, int(data["effective_available"])),
            requires_code=bool(data.get("requires_code")),
            revealed_by_code=bool(data.get("revealed_by_code")),
            sale_status=SaleStatus(data.get("sale_status") or SaleStatus.OPEN),
            sale_starts_at=_dt(data.get("sale_starts_at")),
            sale_ends_at=_dt(data.get("sale_ends_at")),
        )

    @property
    def max_quantity(self) -> int:
        """Upper bound of the quantity stepper."""
        return max(0, min(self.max_per_order, self.effective_available))

    def status(self, now: datetime.datetime, unlocked: bool = False) -> ItemStatus:
        """Sale window, then capacity, then access code."""
        if window := _window_status(self.sale_starts_at, self.sale_ends_at, self.sale_status, now):
            return window
        if self.effective_available <= 0:
            return ItemStatus.SOLD_OUT
        if self.requires_code and not unlocked:
            return ItemStatus.LOCKED
        return ItemStatus.SELECTABLE


@dataclass(frozen=True)
class AddOnOption:
    id: str
    name: str
    price: int
    max_per_order: int
    available: int | None
    group_id: str | None = None
    required: bool = False
    sale_status: SaleStatus = SaleStatus.OPEN
    sale_starts_at: datetime.datetime | None = None
    sale_ends_at: datetime.datetime | None = None
    description: str = ""

    @classmethod
    def from_payload(cls, data: dict[str, t.Any]) -> "AddOnOption":
        available = data.get("available")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            description=data.get("description") or "",
            price=int(data["price"]),
            max_per_order=int(data["max_per_order"]),
            available=None if available is None else max(0, int(available)),
            group_id=str(data["group_id"]) if data.get("group_id") else None,
            required=bool(data.get("required")),
            sale_status=SaleStatus(data.get("sale_status") or SaleStatus.OPEN),
            sale_starts_at=_dt(data.get("sale_starts_at")),
            sale_ends_at=_dt(data.get("sale_ends_at")),
        )

    @property
    def max_quantity(self) -> int:
        if self.available is None:
            return self.max_per_order
        return max(0, min(self.max_per_order, self.available))

    def status(self, now: datetime.datetime) -> ItemStatus:
        if window := _window_status(self.sale_starts_at, self.sale_ends_at, self.sale_status, now):
            return window
        if self.available is not None and self.available <= 0:
            return ItemStatus.SOLD_OUT
        return ItemStatus.SELECTABLE


@dataclass(frozen=True)
class AddOnGroupOption:
    id: str
    name: str
    selection_type: str = "any"
    collapsed_by_default: bool = False

    @property
    def is_exclusive(self) -> bool:
        return self.selection_type == "one_only"


@dataclass(frozen=True)
class FormFieldOption:
    id: str
    label: str
    field_type: str
    required: bool = False
    options: tuple[str, ...] = ()
    placeholder: str = ""


@dataclass(frozen=True)
class EventInfo:
    id: str
    slug: str
    name: str
    status: str
    currency: str
    spots_remaining: int
    waitlist_enabled: bool = False
    registration_opens_at: datetime.datetime | None = None
    registration_closes_at: datetime.datetime | None = None
    flow_state: FlowState | None = None


@dataclass(frozen=True)
class Catalog:
    event: EventInfo
    ticket_types: tuple[TicketOption, ...]
    add_on_groups: tuple[AddOnGroupOption, ...] = ()
    add_ons: tuple[AddOnOption, ...] = ()
    form_fields: tuple[FormFieldOption, ...] = ()

    @classmethod
    def from_payload(cls, data: dict[str, t.Any]) -> "Catalog":
        """Parse the JSON body served by the event catalog endpoint."""
        event = data["event"]
        return cls(
            event=EventInfo(
                id=str(event["id"]),
                slug=event["slug"],
                name=event["name"],
                status=event["status"],
                currency=event["currency"],
                spots_remaining=int(event["spots_remaining"]),
                waitlist_enabled=bool(event.get("waitlist_enabled")),
                registration_opens_at=_dt(event.get("registration_opens_at")),
                registration_closes_at=_dt(event.get("registration_closes_at")),
                flow_state=FlowState(event["flow_state"]) if event.get("flow_state") else None,
            ),
            ticket_types=tuple(TicketOption.from_payload(item) for item in data.get("ticket_types", [])),
            add_on_groups=tuple(
                AddOnGroupOption(
                    id=str(group["id"]),
                    name=group["name"],
                    selection_type=group.get("selection_type", "any"),
                    collapsed_by_default=bool(group.get("collapsed_by_default")),
                )
                for group in data.get("add_on_groups", [])
            ),
            add_ons=tuple(AddOnOption.from_payload(item) for item in data.get("add_ons", [])),
            form_fields=tuple(
                FormFieldOption(
                    id=str(form_field["id"]),
                    label=form_field["label"],
                    field_type=form_field["field_type"],
                    required=bool(form_field.get("required")),
                    options=tuple(form_field.get("options") or ()),
                    placeholder=form_field.get("placeholder") or "",
                )
                for form_field in data.get("form_fields", [])
            ),
        )

    def ticket(self, ticket_id: str) -> TicketOption | None:
        return next((ticket for ticket in self.ticket_types if ticket.id == ticket_id), None)

    def add_on(self, add_on_id: str) -> AddOnOption | None:
        return next((add_on for add_on in self.add_ons if add_on.id == add_on_id), None)

    def group(self, group_id: str | None) -> AddOnGroupOption | None:
        return next((group for group in self.add_on_groups if group.id == group_id), None)

    def is_sold_out(self) -> bool:
        if self.event.spots_remaining <= 0 or self.event.status == "sold_out":
            return True
        return bool(self.ticket_types) and all(ticket.effective_available <= 0 for ticket in self.ticket_types)

    def flow_state(self, now: datetime.datetime) -> tuple[FlowState, bool]:
        """Decide where the flow starts.

        Returns:
            The flow state and whether the event only takes waitlist registrations.
        """
        event = self.event
        if event.status == "cancelled":
            return FlowState.CANCELLED, False
        if event.status == "closed":
            return FlowState.CLOSED, False
        if event.status == "draft":
            return FlowState.NOT_OPEN, False
        sold_out = self.is_sold_out()
        if sold_out and not event.waitlist_enabled:
            return FlowState.SOLD_OUT, False
        if event.registration_opens_at and event.registration_opens_at > now:
            return FlowState.NOT_OPEN, False
        if event.registration_closes_at and event.registration_closes_at < now:
            return FlowState.CLOSED, False
        if not self.ticket_types:
            # Unlisted ticket types may still be on sale; only the server can tell.
            if event.flow_state == FlowState.OPEN:
                return FlowState.OPEN, sold_out
            return FlowState.CLOSED, False
        if all(
            ticket.status(now, unlocked=True) == ItemStatus.SALE_ENDED for ticket in self.ticket_types
        ):
            return FlowState.CLOSED, False
        return FlowState.OPEN, sold_out

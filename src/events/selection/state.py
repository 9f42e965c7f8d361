"""Selection state: one immutable value per step of the booking flow."""

import datetime
import typing as t
from dataclasses import dataclass, field
from enum import StrEnum

from .catalog import AddOnOption, Catalog, TicketOption

IDENTITY_FIELDS = ("first_name", "last_name", "email")


class Step(StrEnum):
    LOADING = "loading"
    TICKETS = "tickets"
    DETAILS = "details"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"
    SOLD_OUT = "sold_out"
    CANCELLED = "cancelled"
    CLOSED = "closed"
    NOT_OPEN = "not_open"
    WAITLISTED = "waitlisted"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STEPS


TERMINAL_STEPS = frozenset(
    {Step.SUCCESS, Step.ERROR, Step.SOLD_OUT, Step.CANCELLED, Step.CLOSED, Step.NOT_OPEN, Step.WAITLISTED}
)


@dataclass(frozen=True)
class Identity:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class SelectionState:
    """Everything the booking page shows, at one point in time.

    Mappings held here are never mutated; transitions build new ones.
    """

    step: Step = Step.LOADING
    catalog: Catalog | None = None
    now: datetime.datetime | None = None
    waitlist_only: bool = False

    selected_ticket_id: str | None = None
    quantity: int = 0
    add_on_quantities: t.Mapping[str, int] = field(default_factory=dict)
    unlocked_codes: t.Mapping[str, str] = field(default_factory=dict)
    access_codes: t.Mapping[str, str] = field(default_factory=dict)
    code_errors: t.Mapping[str, str] = field(default_factory=dict)

    identity: Identity = Identity()
    form_values: t.Mapping[str, str] = field(default_factory=dict)
    notes: str = ""
    field_errors: frozenset[str] = frozenset()

    message: str | None = None
    booking_id: str | None = None
    redirect_url: str | None = None

    @property
    def unlocked_ticket_ids(self) -> frozenset[str]:
        return frozenset(self.unlocked_codes)

    @property
    def selected_ticket(self) -> TicketOption | None:
        if self.catalog is None or self.selected_ticket_id is None:
            return None
        return self.catalog.ticket(self.selected_ticket_id)

    @property
    def selected_add_ons(self) -> list[tuple[AddOnOption, int]]:
        if self.catalog is None:
            return []
        return [
            (add_on, self.add_on_quantities[add_on.id])
            for add_on in self.catalog.add_ons
            if add_on.id in self.add_on_quantities
        ]

    @property
    def total(self) -> int:
        """Order total in minor currency units."""
        ticket = self.selected_ticket
        ticket_total = ticket.price * self.quantity if ticket else 0
        return ticket_total + sum(add_on.price * quantity for add_on, quantity in self.selected_add_ons)

    @property
    def can_continue(self) -> bool:
        return self.step == Step.TICKETS and self.selected_ticket is not None

    @property
    def accepts_input(self) -> bool:
        return self.step in (Step.TICKETS, Step.DETAILS)

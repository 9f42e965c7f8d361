"""Actions the booking page dispatches into the selection machine."""

import datetime
import typing as t
from dataclasses import dataclass

from .catalog import Catalog


@dataclass(frozen=True)
class EventLoaded:
    catalog: Catalog
    now: datetime.datetime


@dataclass(frozen=True)
class LoadFailed:
    message: str


@dataclass(frozen=True)
class PaymentReturned:
    """The purchaser came back from checkout through the success URL."""


@dataclass(frozen=True)
class SelectTicket:
    ticket_id: str


@dataclass(frozen=True)
class IncrementQuantity:
    pass


@dataclass(frozen=True)
class DecrementQuantity:
    pass


@dataclass(frozen=True)
class EnterAccessCode:
    ticket_id: str
    code: str


@dataclass(frozen=True)
class UnlockTicket:
    ticket_id: str


@dataclass(frozen=True)
class ToggleAddOn:
    add_on_id: str


@dataclass(frozen=True)
class IncrementAddOn:
    add_on_id: str


@dataclass(frozen=True)
class DecrementAddOn:
    add_on_id: str


@dataclass(frozen=True)
class ContinueToDetails:
    pass


@dataclass(frozen=True)
class BackToTickets:
    pass


@dataclass(frozen=True)
class UpdateIdentity:
    field: str
    value: str


@dataclass(frozen=True)
class UpdateFormField:
    field_id: str
    value: str


@dataclass(frozen=True)
class UpdateNotes:
    value: str


@dataclass(frozen=True)
class SubmitRequested:
    pass


@dataclass(frozen=True)
class SubmissionConfirmed:
    booking_id: str | None = None


@dataclass(frozen=True)
class SubmissionRedirect:
    url: str
    booking_id: str | None = None


@dataclass(frozen=True)
class SubmissionRejected:
    error: str
    detail: str | None = None


@dataclass(frozen=True)
class SubmissionFailed:
    message: str


@dataclass(frozen=True)
class WaitlistJoined:
    entry_id: str
    position: int


Action = t.Union[
    EventLoaded,
    LoadFailed,
    PaymentReturned,
    SelectTicket,
    IncrementQuantity,
    DecrementQuantity,
    EnterAccessCode,
    UnlockTicket,
    ToggleAddOn,
    IncrementAddOn,
    DecrementAddOn,
    ContinueToDetails,
    BackToTickets,
    UpdateIdentity,
    UpdateFormField,
    UpdateNotes,
    SubmitRequested,
    SubmissionConfirmed,
    SubmissionRedirect,
    SubmissionRejected,
    SubmissionFailed,
    WaitlistJoined,
]

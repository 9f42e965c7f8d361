"""The selection machine: a pure reducer over SelectionState.

``transition`` never performs I/O and never raises for an action that does not apply to the
current step; such actions leave the state unchanged. Network round-trips belong to
``events.selection.flow``.
"""

import typing as t
from dataclasses import replace

from events.service.eligibility.enums import FlowState, ItemStatus

from . import actions as a
from .callbacks import return_urls
from .state import IDENTITY_FIELDS, Identity, SelectionState, Step

INVALID_CODE_MESSAGE = "Invalid access code"
BOOKING_FAILED_MESSAGE = "Booking failed."
NETWORK_ERROR_MESSAGE = "Network error. Please try again."
UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response."

FLOW_STEPS = {
    FlowState.OPEN: Step.TICKETS,
    FlowState.CANCELLED: Step.CANCELLED,
    FlowState.CLOSED: Step.CLOSED,
    FlowState.NOT_OPEN: Step.NOT_OPEN,
    FlowState.SOLD_OUT: Step.SOLD_OUT,
}


def transition(state: SelectionState, action: a.Action) -> SelectionState:
    """Apply one action to the state and return the next state."""
    match action:
        case a.PaymentReturned():
            return replace(state, step=Step.SUCCESS, redirect_url=None)
        case a.EventLoaded() if state.step == Step.LOADING:
            return _loaded(state, action)
        case a.LoadFailed(message=message) if state.step == Step.LOADING:
            return replace(state, step=Step.ERROR, message=message)

        case a.SelectTicket(ticket_id=ticket_id) if state.step == Step.TICKETS:
            return _select_ticket(state, ticket_id)
        case a.IncrementQuantity() if state.step == Step.TICKETS and state.selected_ticket:
            if state.quantity + 1 > state.selected_ticket.max_quantity:
                return state
            return replace(state, quantity=state.quantity + 1)
        case a.DecrementQuantity() if state.step == Step.TICKETS and state.selected_ticket:
            if state.quantity - 1 < state.selected_ticket.min_per_order:
                return state
            return replace(state, quantity=state.quantity - 1)
        case a.EnterAccessCode(ticket_id=ticket_id, code=code) if state.step == Step.TICKETS:
            return replace(state, access_codes={**state.access_codes, ticket_id: code})
        case a.UnlockTicket(ticket_id=ticket_id) if state.step == Step.TICKETS:
            code = state.access_codes.get(ticket_id, "").strip()
            if not code:
                return state
            # The unlocking code is the one submitted, even if the field is edited afterwards.
            return replace(state, unlocked_codes={**state.unlocked_codes, ticket_id: code}, code_errors={})

        case a.ToggleAddOn(add_on_id=add_on_id) if state.step == Step.TICKETS:
            return _toggle_add_on(state, add_on_id)
        case a.IncrementAddOn(add_on_id=add_on_id) if state.step == Step.TICKETS:
            return _step_add_on(state, add_on_id, 1)
        case a.DecrementAddOn(add_on_id=add_on_id) if state.step == Step.TICKETS:
            return _step_add_on(state, add_on_id, -1)

        case a.ContinueToDetails() if state.can_continue:
            return replace(state, step=Step.DETAILS, field_errors=frozenset())
        case a.BackToTickets() if state.step == Step.DETAILS:
            return replace(state, step=Step.TICKETS)
        case a.UpdateIdentity(field=name, value=value) if state.step == Step.DETAILS:
            if name not in Identity.__dataclass_fields__:
                return state
            return replace(
                state, identity=replace(state.identity, **{name: value}), field_errors=state.field_errors - {name}
            )
        case a.UpdateFormField(field_id=field_id, value=value) if state.step == Step.DETAILS:
            return replace(
                state, form_values={**state.form_values, field_id: value}, field_errors=state.field_errors - {field_id}
            )
        case a.UpdateNotes(value=value) if state.step == Step.DETAILS:
            return replace(state, notes=value)
        case a.SubmitRequested() if state.step == Step.DETAILS:
            if errors := validation_errors(state):
                return replace(state, field_errors=errors)
            return replace(state, step=Step.SUBMITTING, field_errors=frozenset(), message=None)

        case a.SubmissionConfirmed(booking_id=booking_id) if state.step == Step.SUBMITTING:
            return replace(state, step=Step.SUCCESS, booking_id=booking_id)
        case a.SubmissionRedirect(url=url, booking_id=booking_id) if state.step == Step.SUBMITTING:
            return replace(state, redirect_url=url, booking_id=booking_id)
        case a.SubmissionRejected() if state.step == Step.SUBMITTING:
            return _rejected(state, action)
        case a.SubmissionFailed(message=message) if state.step == Step.SUBMITTING:
            return replace(state, step=Step.ERROR, message=message)
        case a.WaitlistJoined() if state.step == Step.SUBMITTING and state.waitlist_only:
            return replace(state, step=Step.WAITLISTED)
    return state


def _loaded(state: SelectionState, action: a.EventLoaded) -> SelectionState:
    catalog, now = action.catalog, action.now
    flow_state, waitlist_only = catalog.flow_state(now)
    step = FLOW_STEPS[flow_state]
    add_on_quantities = {}
    if step == Step.TICKETS:
        add_on_quantities = {
            add_on.id: 1
            for add_on in catalog.add_ons
            if add_on.required and add_on.status(now) == ItemStatus.SELECTABLE and add_on.max_quantity >= 1
        }
    return replace(
        state, step=step, catalog=catalog, now=now, waitlist_only=waitlist_only, add_on_quantities=add_on_quantities
    )


def _select_ticket(state: SelectionState, ticket_id: str) -> SelectionState:
    assert state.catalog is not None and state.now is not None
    ticket = state.catalog.ticket(ticket_id)
    if ticket is None:
        return state
    if state.waitlist_only:
        # Capacity is gone; the ticket only records which type the purchaser is waiting for.
        return replace(state, selected_ticket_id=ticket.id, quantity=ticket.min_per_order)
    status = ticket.status(state.now, unlocked=ticket.id in state.unlocked_ticket_ids)
    if status != ItemStatus.SELECTABLE or ticket.max_quantity < ticket.min_per_order:
        return state
    return replace(state, selected_ticket_id=ticket.id, quantity=ticket.min_per_order)


def _toggle_add_on(state: SelectionState, add_on_id: str) -> SelectionState:
    assert state.catalog is not None and state.now is not None
    add_on = state.catalog.add_on(add_on_id)
    if add_on is None:
        return state
    if add_on.id in state.add_on_quantities:
        if add_on.required:
            return state
        return replace(state, add_on_quantities={k: v for k, v in state.add_on_quantities.items() if k != add_on.id})

    if add_on.status(state.now) != ItemStatus.SELECTABLE or add_on.max_quantity < 1:
        return state
    quantities = dict(state.add_on_quantities)
    group = state.catalog.group(add_on.group_id)
    if group is not None and group.is_exclusive:
        siblings = [
            sibling
            for sibling in state.catalog.add_ons
            if sibling.group_id == group.id and sibling.id != add_on.id and sibling.id in quantities
        ]
        if any(sibling.required for sibling in siblings):
            return state
        for sibling in siblings:
            del quantities[sibling.id]
    quantities[add_on.id] = 1
    return replace(state, add_on_quantities=quantities)


def _step_add_on(state: SelectionState, add_on_id: str, delta: int) -> SelectionState:
    assert state.catalog is not None
    add_on = state.catalog.add_on(add_on_id)
    if add_on is None or add_on.id not in state.add_on_quantities:
        return state
    quantity = state.add_on_quantities[add_on.id] + delta
    if not 1 <= quantity <= add_on.max_quantity:
        return state
    return replace(state, add_on_quantities={**state.add_on_quantities, add_on.id: quantity})


def _rejected(state: SelectionState, action: a.SubmissionRejected) -> SelectionState:
    if action.error == "sold_out":
        return replace(state, step=Step.SOLD_OUT, message=action.detail)
    if action.error == "invalid_access_code" and state.selected_ticket_id is not None:
        ticket_id = state.selected_ticket_id
        return replace(
            state,
            step=Step.TICKETS,
            selected_ticket_id=None,
            quantity=0,
            unlocked_codes={k: v for k, v in state.unlocked_codes.items() if k != ticket_id},
            access_codes={k: v for k, v in state.access_codes.items() if k != ticket_id},
            code_errors={**state.code_errors, ticket_id: INVALID_CODE_MESSAGE},
        )
    return replace(state, step=Step.ERROR, message=action.detail or action.error or BOOKING_FAILED_MESSAGE)


def validation_errors(state: SelectionState) -> frozenset[str]:
    """Names of the identity fields and ids of the custom fields that block submission."""
    errors = {name for name in IDENTITY_FIELDS if not getattr(state.identity, name).strip()}
    if state.catalog is not None:
        errors |= {
            form_field.id
            for form_field in state.catalog.form_fields
            if form_field.required and not state.form_values.get(form_field.id, "").strip()
        }
    return frozenset(errors)


def _blank_to_none(value: str) -> str | None:
    return value.strip() or None


def submission_payload(
    state: SelectionState, *, page_url: str | None = None, idempotency_key: str | None = None
) -> dict[str, t.Any]:
    """Build the body of the booking submission request."""
    ticket = state.selected_ticket
    assert ticket is not None
    payload: dict[str, t.Any] = {
        "ticket_type_id": ticket.id,
        "quantity": state.quantity,
        "access_code": state.unlocked_codes.get(ticket.id) if ticket.requires_code else None,
        "first_name": state.identity.first_name.strip(),
        "last_name": state.identity.last_name.strip(),
        "email": state.identity.email.strip(),
        "phone": _blank_to_none(state.identity.phone),
        "notes": _blank_to_none(state.notes),
        "add_ons": [{"add_on_id": add_on.id, "quantity": quantity} for add_on, quantity in state.selected_add_ons],
        "form_responses": [
            {"field_id": field_id, "value": value} for field_id, value in state.form_values.items() if value.strip()
        ],
        "idempotency_key": idempotency_key,
    }
    if page_url:
        payload["success_url"], payload["cancel_url"] = return_urls(page_url)
    return payload


def waitlist_payload(state: SelectionState) -> dict[str, t.Any]:
    """Build the body of a waitlist registration for a waitlist-only event."""
    return {
        "first_name": state.identity.first_name.strip(),
        "last_name": state.identity.last_name.strip(),
        "email": state.identity.email.strip(),
        "phone": _blank_to_none(state.identity.phone),
        "notes": _blank_to_none(state.notes),
        "ticket_type_id": state.selected_ticket_id,
        "desired_add_on_ids": [add_on.id for add_on, _ in state.selected_add_ons],
    }

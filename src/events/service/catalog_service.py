"""Builds the public booking catalog of an event.

Every ticket type and add-on arrives annotated with its remaining capacity, its sale
status and, for ticket types, whether an access code is required. The access code itself
never leaves the server.
"""

import datetime

from django.utils import timezone

from events import schema
from events.models import AddOn, AddOnGroup, Event, EventFormField, TicketType
from events.service.capacity import CapacityLedger
from events.service.eligibility import EligibilityService


def get_event_catalog(
    event: Event, *, now: datetime.datetime | None = None, code: str | None = None
) -> schema.EventCatalogSchema:
    """Return the catalog of an event as the booking page consumes it.

    Hidden and invite-only items take part in capacity and eligibility decisions but are
    not listed, except for gated ticket types whose access code matches `code`. Those are
    listed already unlocked and flagged `revealed_by_code`.
    """
    now = now or timezone.now()
    ticket_types = list(TicketType.objects.filter(event=event).order_by("sort_order", "created_at"))
    add_ons = list(AddOn.objects.filter(event=event).order_by("sort_order", "created_at"))
    ledger = CapacityLedger(event).snapshot(ticket_types=ticket_types, add_ons=add_ons)
    service = EligibilityService(event, ledger=ledger, now=now, ticket_types=ticket_types, add_ons=add_ons)
    eligibility = service.check_event()

    ticket_schemas = []
    for ticket in ticket_types:
        revealed = False
        if ticket.visibility != TicketType.Visibility.PUBLIC:
            revealed = bool(code) and ticket.requires_code and ticket.access_code_matches(code)
            if not revealed:
                continue
        availability = ledger.ticket(ticket.pk)
        item = service.check_ticket(ticket, unlocked_ticket_ids={ticket.pk} if revealed else ())
        ticket_schemas.append(
            schema.TicketTypeCatalogSchema(
                id=ticket.pk,
                name=ticket.name,
                description=ticket.description,
                price=ticket.price,
                capacity=ticket.capacity,
                sort_order=ticket.sort_order,
                min_per_order=ticket.min_per_order,
                max_per_order=ticket.max_per_order,
                sold_count=availability.sold_count,
                available=availability.display_available,
                effective_available=availability.display_effective_available,
                sale_starts_at=ticket.sale_starts_at,
                sale_ends_at=ticket.sale_ends_at,
                sale_status=item.sale_status,
                status=item.status,
                requires_code=item.requires_code,
                revealed_by_code=revealed,
                waitlist_enabled=ticket.waitlist_enabled,
            )
        )

    add_on_schemas = []
    for add_on in add_ons:
        if add_on.visibility != AddOn.Visibility.PUBLIC:
            continue
        add_on_availability = ledger.add_on(add_on.pk)
        item = service.check_add_on(add_on)
        add_on_schemas.append(
            schema.AddOnCatalogSchema(
                id=add_on.pk,
                group_id=add_on.group_id,
                name=add_on.name,
                description=add_on.description,
                price=add_on.price,
                capacity=add_on.capacity,
                sort_order=add_on.sort_order,
                max_per_order=add_on.max_per_order,
                required=add_on.required,
                sold_count=add_on_availability.sold_count,
                available=add_on_availability.display_available,
                sale_starts_at=add_on.sale_starts_at,
                sale_ends_at=add_on.sale_ends_at,
                sale_status=item.sale_status,
                status=item.status,
            )
        )

    groups = AddOnGroup.objects.filter(event=event).order_by("sort_order", "created_at")
    form_fields = EventFormField.objects.filter(event=event).order_by("sort_order", "created_at")

    return schema.EventCatalogSchema(
        event=schema.EventSummarySchema(
            id=event.pk,
            name=event.name,
            slug=event.slug,
            description=event.description,
            date=event.date,
            time=event.time,
            location=event.location,
            image_url=event.image_url,
            policy_url=event.policy_url,
            faq_url=event.faq_url,
            status=event.status,
            currency=event.currency,
            total_capacity=event.total_capacity,
            total_booked=ledger.total_booked,
            spots_remaining=ledger.display_spots_remaining,
            registration_opens_at=event.registration_opens_at,
            registration_closes_at=event.registration_closes_at,
            waitlist_enabled=event.waitlist_enabled,
            flow_state=eligibility.state,
            flow_reason=eligibility.reason,
            waitlist_only=eligibility.waitlist_only,
        ),
        ticket_types=ticket_schemas,
        add_on_groups=[schema.AddOnGroupSchema.from_orm(group) for group in groups],
        add_ons=add_on_schemas,
        form_fields=[schema.FormFieldSchema.from_orm(form_field) for form_field in form_fields],
    )

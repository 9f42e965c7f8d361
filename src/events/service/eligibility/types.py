"""Result types for the booking eligibility system."""

import datetime
import uuid

from pydantic import BaseModel

from .enums import FlowState, ItemStatus, SaleStatus


class EventEligibility(BaseModel):
    """Result of the event-wide check."""

    event_id: uuid.UUID
    state: FlowState
    reason: str | None = None  # we don't use the enum here because we want translation
    waitlist_only: bool = False
    opens_at: datetime.datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.state == FlowState.OPEN


class ItemEligibility(BaseModel):
    """Result of the check for a single ticket type or add-on."""

    item_id: uuid.UUID
    status: ItemStatus
    sale_status: SaleStatus
    requires_code: bool = False

    @property
    def is_selectable(self) -> bool:
        return self.status == ItemStatus.SELECTABLE

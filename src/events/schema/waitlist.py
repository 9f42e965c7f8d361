from uuid import UUID

from ninja import ModelSchema, Schema
from pydantic import EmailStr, Field

from common.schema import OneToOneFiftyString, StrippedString
from events.models import EventWaitlistEntry


class WaitlistJoinPayload(Schema):
    first_name: OneToOneFiftyString
    last_name: OneToOneFiftyString
    email: EmailStr
    phone: StrippedString | None = None
    notes: StrippedString | None = None
    ticket_type_id: UUID | None = None
    add_on_id: UUID | None = None
    desired_add_on_ids: list[UUID] = Field(default_factory=list)


class WaitlistJoinResponse(Schema):
    waitlist_entry_id: UUID
    position: int


class WaitlistEntrySchema(ModelSchema):
    ticket_type_id: UUID | None = None

    class Meta:
        model = EventWaitlistEntry
        fields = [
            "id",
            "first_name",
            "last_name",
            "email",
            "phone",
            "position",
            "status",
            "notified_at",
            "offer_expires_at",
            "created_at",
        ]

import typing as t
from uuid import UUID

from ninja_extra import ControllerBase

from events import models


class EventBaseController(ControllerBase):
    """Base controller for event endpoints.

    Only events past the draft stage are reachable. Subclasses should be decorated with
    @api_controller to register routes.
    """

    def get_queryset(self) -> models.event.EventQuerySet:
        return models.Event.objects.bookable()

    def get_one(self, event_id: UUID) -> models.Event:
        """Wrapper helper."""
        return t.cast(models.Event, self.get_object_or_exception(self.get_queryset(), pk=event_id))

    def get_one_by_slug(self, slug: str) -> models.Event:
        """Wrapper helper."""
        return t.cast(models.Event, self.get_object_or_exception(self.get_queryset(), slug=slug))

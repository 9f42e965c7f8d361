"""Django Unfold admin configuration."""

from django.urls import reverse_lazy
from django.utils.translation import gettext_lazy as _

from .base import SITE_NAME, VERSION

UNFOLD = {
    "SITE_TITLE": f"{SITE_NAME} v{VERSION} Admin",
    "SITE_HEADER": f"{SITE_NAME} Administration",
    "SITE_URL": "/",
    "SIDEBAR": {
        "show_search": True,
        "show_all_applications": False,
        "navigation": [
            {
                "title": _("Events"),
                "separator": True,
                "items": [
                    {
                        "title": _("Events"),
                        "icon": "event",
                        "link": reverse_lazy("admin:events_event_changelist"),
                    },
                    {
                        "title": _("Bookings"),
                        "icon": "confirmation_number",
                        "link": reverse_lazy("admin:events_eventbooking_changelist"),
                    },
                    {
                        "title": _("Waitlist"),
                        "icon": "hourglass_top",
                        "link": reverse_lazy("admin:events_eventwaitlistentry_changelist"),
                    },
                ],
            },
        ],
    },
}

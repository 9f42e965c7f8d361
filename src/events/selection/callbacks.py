"""Return-URL handling around the payment redirect.

The checkout provider sends the purchaser back to the page they booked from with a single
query parameter appended. Every other parameter of that page is preserved.
"""

from enum import StrEnum
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

CALLBACK_PARAM = "fegc_booking"


class Callback(StrEnum):
    SUCCESS = "success"
    CANCELLED = "cancelled"


def strip_callback(url: str) -> str:
    """Remove the callback parameter from a URL, keeping everything else in order."""
    parts = urlsplit(url)
    query = [(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True) if key != CALLBACK_PARAM]
    return urlunsplit(parts._replace(query=urlencode(query)))


def with_callback(url: str, callback: Callback) -> str:
    parts = urlsplit(strip_callback(url))
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.append((CALLBACK_PARAM, callback.value))
    return urlunsplit(parts._replace(query=urlencode(query)))


def return_urls(page_url: str) -> tuple[str, str]:
    """Build the success and cancel URLs for a checkout started on ``page_url``."""
    return with_callback(page_url, Callback.SUCCESS), with_callback(page_url, Callback.CANCELLED)


def parse_callback(url: str) -> Callback | None:
    """Read the callback parameter. Unknown values are treated as absent."""
    for key, value in parse_qsl(urlsplit(url).query, keep_blank_values=True):
        if key == CALLBACK_PARAM:
            try:
                return Callback(value)
            except ValueError:
                return None
    return None

"""HTTP booking backend, talking to the public booking API."""

import typing as t

import httpx
import structlog

from .flow import BackendResponse, BackendUnavailable

logger = structlog.get_logger(__name__)


class HttpBookingBackend:
    """BookingBackend over HTTP.

    Args:
        base_url: Root of the API, e.g. ``https://events.example.com/api``.
        client: A preconfigured client. One with sensible timeouts is created when omitted.
    """

    def __init__(self, base_url: str, *, client: httpx.Client | None = None) -> None:
        """Initialize the backend."""
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=httpx.Timeout(30.0, connect=10.0))

    def close(self) -> None:
        self._client.close()

    def _request(
        self, method: str, path: str, json: dict[str, t.Any] | None = None, params: dict[str, str] | None = None
    ) -> BackendResponse:
        url = f"{self.base_url}{path}"
        try:
            response = self._client.request(method, url, json=json, params=params)
        except httpx.HTTPError as e:
            logger.warning("booking_backend_request_error", method=method, url=url, error=str(e))
            raise BackendUnavailable(str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.warning("booking_backend_unstructured_response", url=url, status=response.status_code)
            data = None
        return BackendResponse(status_code=response.status_code, data=data)

    def load_event(self, slug: str, code: str | None = None) -> BackendResponse:
        return self._request("GET", f"/events/{slug}", params={"code": code} if code else None)

    def submit_booking(self, event_id: str, payload: dict[str, t.Any]) -> BackendResponse:
        return self._request("POST", f"/events/{event_id}/bookings", json=payload)

    def join_waitlist(self, event_id: str, payload: dict[str, t.Any]) -> BackendResponse:
        return self._request("POST", f"/events/{event_id}/waitlist", json=payload)

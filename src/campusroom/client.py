"""Portal API client: the external data service the engine's inputs come from.

DataService is the interface a TimetableSession depends on; HttpDataService
implements it over the portal's REST API with requests. Failures are
classified into the TransientError / PermanentError hierarchy, and transient
ones are retried with tenacity before they reach the caller.
"""

from typing import Any, Protocol

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from campusroom.errors import (
    AuthenticationError,
    PermanentError,
    RateLimitError,
    TransientError,
)
from campusroom.logging import get_logger
from campusroom.models import Role

logger = get_logger(__name__)

RawRecord = dict[str, Any]

ENDPOINTS: dict[Role, dict[str, str]] = {
    Role.PROFESSOR: {
        "bookings": "/professor/reservations",
        "timetable": "/timetable/my-timetable",
        "rooms": "/classrooms",
        "cancel": "/professor/reservations/{id}/cancel",
    },
    Role.STUDENT: {
        "bookings": "/student/my-reservations",
        "timetable": "/timetable/my-timetable",
        "rooms": "/student/study-rooms",
        "cancel": "/student/reservations/{id}/cancel",
    },
}


class DataService(Protocol):
    """Source of raw timetable, room and booking records."""

    def get_timetable_entries(self) -> list[RawRecord]: ...

    def get_rooms(self) -> list[RawRecord]: ...

    def get_bookings(self) -> list[RawRecord]: ...

    def cancel_booking(self, booking_id: str) -> None: ...


def _classify(response: requests.Response) -> None:
    """Raise the matching error for a non-2xx response."""
    status = response.status_code
    if status < 400:
        return
    detail = response.text[:200]
    if status in (401, 403):
        raise AuthenticationError(f"{status} from {response.url}: {detail}")
    if status == 429:
        raise RateLimitError(f"Rate limited by {response.url}")
    if status >= 500:
        raise TransientError(f"{status} from {response.url}: {detail}")
    raise PermanentError(f"{status} from {response.url}: {detail}")


class HttpDataService:
    """DataService backed by the portal REST API."""

    def __init__(
        self,
        base_url: str,
        role: Role,
        *,
        token: str = "",
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.role = role
        self.timeout = timeout
        self.endpoints = ENDPOINTS[role]
        self.http = session or requests.Session()
        if token:
            self.http.headers["Authorization"] = f"Bearer {token}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(2),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    )
    def _request(self, method: str, path: str) -> Any:
        """Send a request and decode its JSON body.

        Raises:
            TransientError: Timeouts, dropped connections, truncated bodies, 5xx, 429
                (after retries).
            AuthenticationError: 401/403.
            PermanentError: Other 4xx, other request failures (redirect loops,
                invalid URLs) or an undecodable body.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, timeout=self.timeout)
        except (
            requests.Timeout,
            requests.ConnectionError,
            requests.exceptions.ChunkedEncodingError,
        ) as e:
            logger.warning("api_request_failed", method=method, url=url, error=str(e))
            raise TransientError(f"{method} {url} failed: {e}") from e
        except requests.RequestException as e:
            # Redirect loops, invalid URLs and the like will not fix themselves
            logger.error("api_request_rejected", method=method, url=url, error=str(e))
            raise PermanentError(f"{method} {url} failed: {e}") from e

        _classify(response)
        logger.debug("api_request_ok", method=method, url=url, status=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PermanentError(f"Invalid JSON from {url}") from e

    def _get_list(self, key: str) -> list[RawRecord]:
        data = self._request("GET", self.endpoints[key])
        if data is None:
            return []
        if not isinstance(data, list):
            raise PermanentError(
                f"Expected a JSON list from {self.endpoints[key]}, got {type(data).__name__}"
            )
        return data

    def get_timetable_entries(self) -> list[RawRecord]:
        return self._get_list("timetable")

    def get_rooms(self) -> list[RawRecord]:
        return self._get_list("rooms")

    def get_bookings(self) -> list[RawRecord]:
        return self._get_list("bookings")

    def cancel_booking(self, booking_id: str) -> None:
        self._request("PUT", self.endpoints["cancel"].format(id=booking_id))
        logger.info("booking_cancel_requested", booking_id=booking_id, role=self.role.value)

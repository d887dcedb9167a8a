"""Base connector module providing shared functionality for service connectors.

Key Components:
- retry_transient: backoff policy applied to every network-facing operation
- RateLimitInfo: parsed X-RateLimit-* response headers
- RestClient: thin async wrapper over a requests session that maps HTTP
  failures onto TransientError / FatalError

Connectors built on pylast or spotipy use retry_transient directly and map
their library's exceptions themselves.
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, ParamSpec, TypeVar

from attrs import define, field
import backoff
import requests

from lovesync.config import get_logger, settings
from lovesync.domain.exceptions import FatalError, TransientError

P = ParamSpec("P")
R = TypeVar("R")

logger = get_logger(__name__).bind(service="connectors")

DEFAULT_RATE_LIMIT_WAIT = 10.0
RATE_LIMIT_PADDING = 5.0


def _on_backoff(details: dict[str, Any]) -> None:
    """Log backoff event."""
    logger.warning(
        f"Backing off {details['target'].__name__} (attempt {details['tries']})",
        retry_delay=f"{details['wait']:.2f}s",
        error=str(details.get("exception", "")),
    )


def _on_giveup(details: dict[str, Any]) -> None:
    """Log when we give up retrying."""
    exception = details.get("exception")
    logger.error(
        f"All {details['tries']} attempts failed for {details['target'].__name__}",
        elapsed_time=f"{details['elapsed']:.2f}s",
        error=str(exception) if exception else "Unknown error",
        error_type=type(exception).__name__ if exception else "Unknown",
    )


def retry_transient(
    func: Callable[P, Awaitable[R]],
) -> Callable[P, Awaitable[R]]:
    """Retry an async operation with exponential backoff on TransientError.

    Limits are read from settings on every call, so tests and the CLI can
    change them at runtime. FatalError is never retried.
    """
    return backoff.on_exception(
        backoff.expo,
        TransientError,
        max_tries=lambda: settings.api.retry_count + 1,  # First attempt counts
        factor=lambda: settings.api.retry_base_delay,
        max_value=lambda: settings.api.retry_max_delay,
        jitter=backoff.full_jitter,
        on_backoff=_on_backoff,
        on_giveup=_on_giveup,
    )(func)


@define(frozen=True, slots=True)
class RateLimitInfo:
    """Rate limit state reported by a service in its response headers."""

    remaining: int | None = None
    reset_in: int | None = None
    limit: int | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitInfo":
        def as_int(name: str) -> int | None:
            try:
                return int(headers.get(name, ""))
            except ValueError:
                return None

        return cls(
            remaining=as_int("X-RateLimit-Remaining"),
            reset_in=as_int("X-RateLimit-Reset-In"),
            limit=as_int("X-RateLimit-Limit"),
        )

    @property
    def wait_seconds(self) -> float:
        """How long to pause before the window resets."""
        if self.reset_in is None:
            return DEFAULT_RATE_LIMIT_WAIT
        return self.reset_in + RATE_LIMIT_PADDING

    @property
    def nearly_exhausted(self) -> bool:
        return self.remaining is not None and self.remaining <= 1


@define(slots=True)
class RestClient:
    """Async facade over a blocking requests session.

    Requests run in a worker thread. Connection problems, timeouts, 429 and
    5xx responses raise TransientError; authentication failures and other
    non-success responses raise FatalError.
    """

    base_url: str
    service: str
    headers: dict[str, str] = field(factory=dict)
    session: requests.Session = field(factory=requests.Session, repr=False)

    def __attrs_post_init__(self) -> None:
        self.session.headers.update(self.headers)

    def _send(
        self,
        method: str,
        path: str,
        params: Any = None,
        json: Any = None,
    ) -> requests.Response:
        url = f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            return self.session.request(
                method,
                url,
                params=params,
                json=json,
                timeout=settings.api.request_timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise TransientError(f"{self.service} request failed: {e}") from e
        except requests.RequestException as e:
            raise FatalError(f"{self.service} request failed: {e}") from e

    async def request(
        self,
        method: str,
        path: str,
        params: Any = None,
        json: Any = None,
    ) -> requests.Response:
        """Send a request and classify the response.

        A 429 pauses for the window the service reports before raising
        TransientError, so the retry that follows starts in a fresh window.
        """
        response = await asyncio.to_thread(self._send, method, path, params, json)
        rate_limit = RateLimitInfo.from_headers(response.headers)

        if response.status_code == 429:
            logger.warning(
                "Rate limited (429), waiting",
                service=self.service,
                sleep_seconds=rate_limit.wait_seconds,
            )
            await asyncio.sleep(rate_limit.wait_seconds)
            raise TransientError(
                f"{self.service} rate limited",
                retry_after=rate_limit.wait_seconds,
            )

        if response.status_code in (401, 403):
            raise FatalError(
                f"{self.service} rejected credentials: HTTP {response.status_code}"
            )

        if response.status_code >= 500:
            raise TransientError(
                f"{self.service} server error: HTTP {response.status_code}"
            )

        if not response.ok:
            raise FatalError(
                f"{self.service} API error: HTTP {response.status_code} - {response.text}"
            )

        return response

    async def get_json(self, path: str, params: Any = None) -> Any:
        """GET a path and decode the JSON body."""
        response = await self.request("GET", path, params=params)
        return decode_json(response, self.service)


def decode_json(response: requests.Response, service: str) -> Any:
    """Decode a JSON body, treating garbage as a fatal protocol error."""
    try:
        return response.json()
    except ValueError as e:
        raise FatalError(f"{service} returned malformed JSON: {e}") from e

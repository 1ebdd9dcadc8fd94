"""
Rate-limited HTTP gateway to the Nominatim API.

All geocoding traffic goes through a ``Gateway``. ``NominatimGateway`` is
single-flight: it holds its lock across the rate limiter delay and the HTTP
round trip, so no two requests through one instance are ever in flight at
the same time. ``get_default_gateway()`` hands out one shared instance per
process.

Reference: https://nominatim.org/release-docs/latest/api/Overview/
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping, Optional
from urllib.parse import quote, urlencode

import requests

from .base import Gateway, RateLimiter
from .throttling import PreCallDelayGate, sleep_unless_cancelled
from ..settings import Settings, settings
from ..utils.errors import GatewayError, SearchCancelledError

logger = logging.getLogger(__name__)

RESPONSE_FORMAT = "jsonv2"
BODY_SNIPPET_CHARS = 200


class NominatimGateway(Gateway):
    """
    Nominatim HTTP client.

    Sends every request with ``format=jsonv2`` after waiting on the rate
    limiter. Transport failures, non-2xx responses and unparseable bodies
    raise GatewayError; nothing is retried here.
    """

    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org/",
        user_agent: str = "nearby-places/0.1",
        email: Optional[str] = None,
        timeout: float = 10.0,
        rate_limiter: Optional[RateLimiter] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the gateway.

        Args:
            base_url: Root URL of the Nominatim instance
            user_agent: User-Agent header required by the usage policy
            email: Optional contact address sent with every request
            timeout: HTTP request timeout in seconds
            rate_limiter: Limiter waited on before every request
                (defaults to a 1.25 s PreCallDelayGate)
            session: Optional requests session (useful for tests)
        """
        self.base_url = base_url
        self.email = email
        self.timeout = timeout
        self.rate_limiter = rate_limiter if rate_limiter is not None else PreCallDelayGate()
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "application/json",
        })
        self._lock = threading.Lock()

        logger.info(
            f"Initialized NominatimGateway: {base_url}, "
            f"limiter={type(self.rate_limiter).__name__}, timeout={timeout}s"
        )

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None, **overrides: Any) -> "NominatimGateway":
        """Build a gateway from application settings, with keyword overrides."""
        config = config or settings
        kwargs: dict[str, Any] = {
            "base_url": config.nominatim_base_url,
            "user_agent": config.nominatim_user_agent,
            "email": config.nominatim_email,
            "timeout": config.nominatim_timeout,
            "rate_limiter": PreCallDelayGate(config.nominatim_min_interval),
        }
        kwargs.update(overrides)
        return cls(**kwargs)

    def build_url(
        self,
        endpoint: str,
        params: Mapping[str, Any],
        raw_params: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Build the full request URL.

        ``params`` are URL-encoded; ``raw_params`` values are appended as
        given so that their comma separators stay unescaped.
        """
        # Avoid urljoin dropping a path prefix on self-hosted instances
        url = f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"

        query = {k: v for k, v in params.items() if v is not None}
        query["format"] = RESPONSE_FORMAT
        if self.email:
            query.setdefault("email", self.email)

        parts = [urlencode(query)]
        for key, value in (raw_params or {}).items():
            parts.append(f"{quote(key, safe='')}={value}")
        return f"{url}?{'&'.join(p for p in parts if p)}"

    def get_json(
        self,
        endpoint: str,
        params: Mapping[str, Any],
        raw_params: Optional[Mapping[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Any:
        """
        Send one GET request and decode its JSON body.

        Raises:
            GatewayError: on network errors, HTTP errors or invalid JSON
            SearchCancelledError: if ``cancel_event`` fires before sending
        """
        url = self.build_url(endpoint, params, raw_params)

        with self._lock:
            self.rate_limiter.wait(cancel_event)
            if cancel_event is not None and cancel_event.is_set():
                raise SearchCancelledError(f"Cancelled before querying {endpoint}")

            logger.debug(f"GET {url}")
            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.RequestException as e:
                raise GatewayError(f"Request to {endpoint} failed: {e}", endpoint=endpoint) from e

        logger.debug(f"{endpoint} status: {response.status_code}")

        if not response.ok:
            raise GatewayError(
                f"{endpoint} returned HTTP {response.status_code}",
                endpoint=endpoint,
                http_status=response.status_code,
                body_snippet=(response.text or "")[:BODY_SNIPPET_CHARS],
            )

        try:
            return response.json()
        except ValueError as e:
            raise GatewayError(
                f"{endpoint} returned a body that is not valid JSON",
                endpoint=endpoint,
                http_status=response.status_code,
                body_snippet=(response.text or "")[:BODY_SNIPPET_CHARS],
            ) from e

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()


@dataclass(frozen=True)
class RetryPolicy:
    """
    Opt-in retry settings for RetryingGateway.

    ``max_attempts=1`` means a single attempt, i.e. no retries. Transport
    failures (no HTTP status) are always retryable; HTTP failures only when
    their status is in ``retry_statuses``.
    """
    max_attempts: int = 1
    backoff_s: float = 1.0
    retry_statuses: FrozenSet[int] = field(default_factory=lambda: frozenset({429, 500, 502, 503, 504}))

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff_s < 0:
            raise ValueError("backoff_s must be >= 0")

    def should_retry(self, error: GatewayError) -> bool:
        return error.http_status is None or error.http_status in self.retry_statuses

    def delay_for(self, attempt: int) -> float:
        """Backoff before the retry that follows 0-based ``attempt``."""
        return self.backoff_s * (2 ** attempt)


class RetryingGateway(Gateway):
    """
    Wraps another gateway and retries GatewayError with exponential backoff.

    Only used when a caller asks for it; the default gateway does not retry.
    The wrapped gateway still applies its own rate limiting to every attempt.
    """

    def __init__(self, gateway: Gateway, policy: Optional[RetryPolicy] = None):
        self.gateway = gateway
        self.policy = policy or RetryPolicy()

    def get_json(
        self,
        endpoint: str,
        params: Mapping[str, Any],
        raw_params: Optional[Mapping[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Any:
        for attempt in range(self.policy.max_attempts):
            try:
                return self.gateway.get_json(endpoint, params, raw_params=raw_params, cancel_event=cancel_event)
            except GatewayError as e:
                last_attempt = attempt == self.policy.max_attempts - 1
                if last_attempt or not self.policy.should_retry(e):
                    raise
                logger.warning(
                    f"Attempt {attempt + 1}/{self.policy.max_attempts} failed for {endpoint}: {e}"
                )
                sleep_unless_cancelled(self.policy.delay_for(attempt), cancel_event)

        raise AssertionError("unreachable: RetryPolicy guarantees at least one attempt")


_default_gateway: Optional[Gateway] = None
_default_gateway_lock = threading.Lock()


def get_default_gateway() -> Gateway:
    """
    Return the process-wide gateway, creating it from settings on first use.

    Every caller that does not inject its own gateway shares this instance
    and therefore queues behind the same delay.
    """
    global _default_gateway
    with _default_gateway_lock:
        if _default_gateway is None:
            if settings.nominatim_user_agent == Settings.model_fields["nominatim_user_agent"].default:
                logger.warning(
                    "NEARBY_PLACES_NOMINATIM_USER_AGENT not set; using the generic default. "
                    "Nominatim's usage policy asks for an identifying User-Agent."
                )
            gateway: Gateway = NominatimGateway.from_settings()
            if settings.nominatim_max_attempts > 1:
                gateway = RetryingGateway(gateway, RetryPolicy(max_attempts=settings.nominatim_max_attempts))
            _default_gateway = gateway
        return _default_gateway


def set_default_gateway(gateway: Optional[Gateway]) -> None:
    """Replace (or with None, reset) the process-wide gateway."""
    global _default_gateway
    with _default_gateway_lock:
        _default_gateway = gateway

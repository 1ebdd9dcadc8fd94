"""
Abstract base classes for the geocoding system.

These define the interfaces that all concrete implementations must follow.
"""

from abc import ABC, abstractmethod
from threading import Event
from typing import Any, Mapping, Optional


class RateLimiter(ABC):
    """
    Abstract base for rate limiters.

    Rate limiters control the rate at which requests are made,
    useful for respecting API rate limits.
    """

    @abstractmethod
    def wait(self, cancel_event: Optional[Event] = None) -> None:
        """
        Block until it's safe to make another request.

        Args:
            cancel_event: Optional event; if it is set while waiting, the
                implementation raises SearchCancelledError
        """
        pass

    @abstractmethod
    def acquire(self, count: int = 1, cancel_event: Optional[Event] = None) -> None:
        """
        Acquire one or more request slots.

        Args:
            count: Number of requests to acquire (for bulk operations)
            cancel_event: Optional cancellation hook
        """
        pass


class Gateway(ABC):
    """
    Abstract base for the HTTP gateway to the geocoding provider.

    A gateway sends one GET request per call and returns the decoded JSON
    body, raising GatewayError on any transport or HTTP failure.
    """

    @abstractmethod
    def get_json(
        self,
        endpoint: str,
        params: Mapping[str, Any],
        raw_params: Optional[Mapping[str, str]] = None,
        cancel_event: Optional[Event] = None,
    ) -> Any:
        """
        Query a provider endpoint.

        Args:
            endpoint: Endpoint path (e.g. "/search")
            params: Query parameters, URL-encoded by the gateway
            raw_params: Pre-encoded query parameters appended verbatim
            cancel_event: Optional cancellation hook

        Returns:
            Decoded JSON response body
        """
        pass

"""Common machinery for the external feed adapters.

Every adapter shares one contract: :meth:`SourceAdapter.fetch` returns a list
of :class:`~geo_alerts.models.RawItem` and never raises. Disabled adapters,
rate-limited calls and transport/decode failures all produce ``[]``.
"""

from __future__ import annotations

import abc
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List

import requests

from ..clients.http_client import get_session
from ..config import ADAPTER_TIMEOUT_SECONDS, STANDARD_FETCH_INTERVAL
from ..exceptions import SourceUnavailable
from ..models import Platform, RawItem

logger = logging.getLogger(__name__)

NEWS_GROUP: str = "news"
SOCIAL_GROUP: str = "social"

Clock = Callable[[], float]


class RateLimiter:
    """Minimum spacing between calls to one external feed.

    The check-and-reserve step is a single locked operation: while one fetch
    is in flight no other caller can pass the limiter, and only a successful
    fetch moves ``last_fetch_time`` forward. Share one instance between
    pipelines that hit the same feed.
    """

    def __init__(self, min_interval: float, clock: Clock = time.monotonic) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._last_fetch_time: float | None = None
        self._in_flight = False

    @property
    def last_fetch_time(self) -> float | None:
        with self._lock:
            return self._last_fetch_time

    def try_acquire(self) -> float | None:
        """Reserve a fetch slot; return the reservation time or ``None``."""
        with self._lock:
            if self._in_flight:
                return None
            now = self._clock()
            if (
                self._last_fetch_time is not None
                and now - self._last_fetch_time < self.min_interval
            ):
                return None
            self._in_flight = True
            return now

    def commit(self, acquired_at: float) -> None:
        """Record a successful fetch started at *acquired_at*."""
        with self._lock:
            self._last_fetch_time = acquired_at
            self._in_flight = False

    def release(self) -> None:
        """Drop a reservation without recording a fetch (the call failed)."""
        with self._lock:
            self._in_flight = False


class CancellationToken:
    """Cooperative cancellation flag shared by every stage of one cycle."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class SourceAdapter(abc.ABC):
    """Base class for one external feed.

    Subclasses provide :meth:`is_enabled` (credentials present) and
    :meth:`_fetch_items` (query construction and response mapping).
    ``_fetch_items`` reports provider failures as :class:`SourceUnavailable`;
    :meth:`fetch` turns those, and any mapping bug, into an empty result.
    """

    name: str = "source"
    group: str = NEWS_GROUP
    platform: Platform = Platform.NEWS
    default_min_interval: float = STANDARD_FETCH_INTERVAL

    def __init__(
        self,
        *,
        rate_limiter: RateLimiter | None = None,
        session: requests.Session | None = None,
        timeout: float = ADAPTER_TIMEOUT_SECONDS,
    ) -> None:
        self.rate_limiter = rate_limiter or RateLimiter(self.default_min_interval)
        self._session = session
        self.timeout = timeout

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = get_session()
        return self._session

    @abc.abstractmethod
    def is_enabled(self) -> bool:
        """Return ``True`` when the adapter's credentials are configured."""

    @abc.abstractmethod
    def _fetch_items(self) -> List[RawItem]:
        """Query the provider once and map the response to raw items."""

    def fetch(self, cancel: CancellationToken | None = None) -> List[RawItem]:
        """Fetch from the provider, honouring credentials and rate limit."""
        if not self.is_enabled():
            logger.debug("%s not configured, skipping fetch", self.name)
            return []
        if cancel is not None and cancel.cancelled:
            logger.info("Cycle cancelled, skipping %s fetch", self.name)
            return []

        acquired_at = self.rate_limiter.try_acquire()
        if acquired_at is None:
            logger.info("%s rate limited, skipping fetch", self.name)
            return []

        try:
            items = self._fetch_items()
        except SourceUnavailable as exc:
            self.rate_limiter.release()
            logger.error("%s", exc)
            return []
        except Exception:
            self.rate_limiter.release()
            logger.exception("Unexpected error mapping %s response", self.name)
            return []

        self.rate_limiter.commit(acquired_at)
        logger.info("Fetched %d items from %s", len(items), self.name)
        return items

    # ------------------------------------------------------------------
    # Helpers for subclasses
    # ------------------------------------------------------------------
    def _get_json(
        self,
        url: str,
        *,
        params: Dict[str, Any] | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Dict[str, Any]:
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.HTTPError as exc:
            raise SourceUnavailable(self._http_error_message(exc)) from exc
        except (requests.RequestException, ValueError) as exc:
            raise SourceUnavailable(f"Error fetching from {self.name}: {exc}") from exc
        if not isinstance(payload, dict):
            raise SourceUnavailable(f"{self.name} returned a non-object payload")
        return payload

    def _http_error_message(self, exc: requests.HTTPError) -> str:
        status = exc.response.status_code if exc.response is not None else None
        if status == 400:
            return f"{self.name} API Error (400): Invalid request parameters"
        if status == 401:
            return f"{self.name} API Error (401): Invalid credentials"
        if status == 429:
            return f"{self.name} API Error (429): Rate limit exceeded"
        return f"Error fetching from {self.name}: {exc}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} group={self.group!r}>"


def or_query(terms: Iterable[str], limit: int) -> str:
    """OR-join the first *limit* terms, keeping provider queries short."""
    return " OR ".join(list(terms)[:limit])


__all__ = [
    "NEWS_GROUP",
    "SOCIAL_GROUP",
    "RateLimiter",
    "CancellationToken",
    "SourceAdapter",
    "or_query",
]

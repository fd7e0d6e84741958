"""Error taxonomy shared by the pipeline stages.

Only :class:`FatalPipelineFailure` is ever surfaced to callers of the
pipeline; every other error is recovered inside the stage that raised it.
"""

from __future__ import annotations


class GeoAlertsError(Exception):
    """Base class for all errors raised by this package."""


class SourceUnavailable(GeoAlertsError):
    """An external feed could not be queried or its response decoded."""


class InvalidCandidate(GeoAlertsError):
    """A candidate event cannot be persisted (missing title or bad date)."""


class PersistenceFailure(GeoAlertsError):
    """A single write to the event store failed."""


class StoreUnavailable(GeoAlertsError):
    """The backing store cannot be reached at all."""


class DuplicateEvent(GeoAlertsError):
    """The store rejected an insert because an equivalent event exists."""


class NotificationFailure(GeoAlertsError):
    """The transport failed to deliver one notification."""


class FatalPipelineFailure(GeoAlertsError):
    """A cycle cannot continue; the caller decides whether to retry later."""


__all__ = [
    "GeoAlertsError",
    "SourceUnavailable",
    "InvalidCandidate",
    "PersistenceFailure",
    "StoreUnavailable",
    "DuplicateEvent",
    "NotificationFailure",
    "FatalPipelineFailure",
]

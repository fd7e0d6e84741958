"""Geopolitical event monitoring and alerting.

The package exposes the :func:`run` helper so callers can do
`python -m geo_alerts cycle` or `from geo_alerts import run; run()`.
"""

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version("geo-alerts")
except _metadata.PackageNotFoundError:  # pragma: no cover – running from source
    __version__ = "0.0.0"

from .workflows.event_pipeline import run  # convenience re-export

__all__ = ["run", "__version__"]

"""Pipeline workflows composed from the service layer."""

from .event_pipeline import (  # noqa: F401
    CycleResult,
    CycleSummary,
    EventPipeline,
    build_default_pipeline,
    run,
)

__all__ = ["CycleResult", "CycleSummary", "EventPipeline", "build_default_pipeline", "run"]

"""Error taxonomy for the rendering engine."""

from __future__ import annotations

from typing import Any

from .logging_config import get_logger

logger = get_logger(__name__)


class VizError(Exception):
    """Base exception for rendering engine errors."""
    pass


class EmptyDomainError(VizError):
    """A scale was asked to cover an empty dataset."""
    pass


class DegenerateDomainError(VizError, ZeroDivisionError):
    """A continuous scale domain collapsed to a single point."""

    def __init__(self, domain: tuple[Any, Any]):
        super().__init__(f"Scale domain has zero span: {domain!r}")
        self.domain = domain


class MalformedTopologyError(VizError):
    """A topology references arcs or points that do not exist."""

    def __init__(
        self,
        message: str,
        *,
        region_id: Any = None,
        arc_index: int | None = None,
    ):
        details = []
        if region_id is not None:
            details.append(f"region={region_id!r}")
        if arc_index is not None:
            details.append(f"arc={arc_index}")
        suffix = f" ({', '.join(details)})" if details else ""
        super().__init__(f"{message}{suffix}")
        self.region_id = region_id
        self.arc_index = arc_index


class UnstableSimulationError(VizError):
    """Every node of a simulation went non-finite and could not be reset."""
    pass


class ConfigError(VizError):
    """Chart configuration violates the engine's contract."""
    pass


class DataSourceError(VizError):
    """A dataset could not be loaded or has an unexpected shape."""
    pass


def describe_error(error: Exception, chart: str | None = None) -> dict[str, Any]:
    """Standardized error description for a failed render.

    Args:
        error: The exception that occurred
        chart: Chart type that failed, if known

    Returns:
        Dict with success flag, error type, user-facing message and chart
    """
    logger.error(f"Render of '{chart}' failed: {error}", exc_info=error)

    if isinstance(error, EmptyDomainError):
        error_type = "empty_domain"
        message = f"Dataset is empty: {error}"
    elif isinstance(error, DegenerateDomainError):
        error_type = "degenerate_domain"
        message = str(error)
    elif isinstance(error, MalformedTopologyError):
        error_type = "malformed_topology"
        message = str(error)
    elif isinstance(error, ConfigError):
        error_type = "config_error"
        message = f"Invalid chart configuration: {error}"
    elif isinstance(error, DataSourceError):
        error_type = "data_source_error"
        message = str(error)
    elif isinstance(error, UnstableSimulationError):
        error_type = "unstable_simulation"
        message = str(error)
    else:
        error_type = "internal_error"
        message = "An unexpected error occurred while rendering."

    return {
        "success": False,
        "error_type": error_type,
        "message": message,
        "chart": chart,
    }

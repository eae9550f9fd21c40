"""Workflow core configuration.

Thresholds for quota, topology and cross-validation checks, statutory
windows, stamp duty and bounded timeouts for external calls. Every value
can be overridden via environment variables for production tuning.

Environment Variables:
- LAND_REGISTRY_QUOTA_PRECISION: Decimal places of quotas (default: 4)
- LAND_REGISTRY_QUOTA_TOLERANCE: Allowed deviation of quota sum from 100 (default: 0.01)
- LAND_REGISTRY_TOPOLOGY_TOLERANCE: Point equality distance in metres (default: 0.01)
- LAND_REGISTRY_MIN_GAP_AREA: Smallest reportable gap in m² (default: 1.0)
- LAND_REGISTRY_ALLOW_TOUCHING: Accept sections touching at a point (default: true)
- LAND_REGISTRY_ALLOW_SHARED_WALLS: Accept sections sharing an edge (default: true)
- LAND_REGISTRY_OBJECTION_WINDOW_DAYS: Objection window length (default: 30)
- LAND_REGISTRY_CLOSING_SOON_DAYS: Warn when fewer days remain (default: 7)
- LAND_REGISTRY_MIN_DESCRIPTION_LENGTH: Shorter descriptions warn (default: 50)
- LAND_REGISTRY_PERSISTENCE_TIMEOUT: Seconds per persistence call (default: 5.0)
- LAND_REGISTRY_NOTIFICATION_TIMEOUT: Seconds per notification (default: 2.0)
- LAND_REGISTRY_STAMP_DUTY_RATE: Fraction of consideration (default: 0.01)
- LAND_REGISTRY_MIN_STAMP_DUTY: Minimum duty on a sale (default: 50.0)
- LAND_REGISTRY_AREA_MATCH_TOLERANCE: Deed vs survey area, m² (default: 0.01)
- LAND_REGISTRY_QUOTA_MATCH_TOLERANCE: Deed vs survey quota (default: 0.0001)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from land_registry.domain.models.geometry import TopologyOptions


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool_env(key: str, default: bool) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class WorkflowConfig:
    """Configuration for the workflow core.

    Attributes:
        quota_precision: Decimal places each participation quota keeps.
        quota_tolerance: Maximum |sum(quotas) - 100| accepted by validation.
        topology_tolerance: Distance (m) under which points are equal.
        min_gap_area: Uncovered parcel area (m²) below which no gap is reported.
        allow_touching: Accept sections that touch at a single point.
        allow_shared_walls: Accept sections that share an edge.
        objection_window_days: Length of the statutory objection window.
        closing_soon_days: Remaining days at which objectors get a warning.
        min_description_length: Descriptions shorter than this produce a warning.
        persistence_timeout_seconds: Bound on every persistence call.
        notification_timeout_seconds: Bound on every notification dispatch.
        stamp_duty_rate: Fraction of consideration charged on a sale.
        minimum_stamp_duty: Floor for stamp duty on a sale.
        area_match_tolerance: Deed vs survey area tolerance (m²).
        quota_match_tolerance: Deed vs survey quota tolerance (percentage points).
    """

    quota_precision: int = 4
    quota_tolerance: float = 0.01
    topology_tolerance: float = 0.01
    min_gap_area: float = 1.0
    allow_touching: bool = True
    allow_shared_walls: bool = True
    objection_window_days: int = 30
    closing_soon_days: int = 7
    min_description_length: int = 50
    persistence_timeout_seconds: float = 5.0
    notification_timeout_seconds: float = 2.0
    stamp_duty_rate: float = 0.01
    minimum_stamp_duty: float = 50.0
    area_match_tolerance: float = 0.01
    quota_match_tolerance: float = 0.0001

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not 0 <= self.quota_precision <= 10:
            raise ValueError(
                f"quota_precision must be between 0 and 10, got {self.quota_precision}"
            )
        for name in (
            "quota_tolerance",
            "topology_tolerance",
            "persistence_timeout_seconds",
            "notification_timeout_seconds",
            "area_match_tolerance",
            "quota_match_tolerance",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.min_gap_area < 0:
            raise ValueError(f"min_gap_area must be non-negative, got {self.min_gap_area}")
        if self.objection_window_days < 1:
            raise ValueError(
                f"objection_window_days must be at least 1, got {self.objection_window_days}"
            )
        if not 0 <= self.closing_soon_days <= self.objection_window_days:
            raise ValueError(
                f"closing_soon_days ({self.closing_soon_days}) must be between 0 and "
                f"objection_window_days ({self.objection_window_days})"
            )
        if self.stamp_duty_rate < 0 or self.minimum_stamp_duty < 0:
            raise ValueError("stamp duty settings must be non-negative")

    @property
    def topology_options(self) -> TopologyOptions:
        return TopologyOptions(
            tolerance=self.topology_tolerance,
            min_gap_area=self.min_gap_area,
            allow_touching=self.allow_touching,
            allow_shared_walls=self.allow_shared_walls,
        )

    @classmethod
    def from_environment(cls) -> WorkflowConfig:
        """Create config from LAND_REGISTRY_* environment variables with defaults."""
        return cls(
            quota_precision=_get_int_env("LAND_REGISTRY_QUOTA_PRECISION", 4),
            quota_tolerance=_get_float_env("LAND_REGISTRY_QUOTA_TOLERANCE", 0.01),
            topology_tolerance=_get_float_env("LAND_REGISTRY_TOPOLOGY_TOLERANCE", 0.01),
            min_gap_area=_get_float_env("LAND_REGISTRY_MIN_GAP_AREA", 1.0),
            allow_touching=_get_bool_env("LAND_REGISTRY_ALLOW_TOUCHING", True),
            allow_shared_walls=_get_bool_env("LAND_REGISTRY_ALLOW_SHARED_WALLS", True),
            objection_window_days=_get_int_env("LAND_REGISTRY_OBJECTION_WINDOW_DAYS", 30),
            closing_soon_days=_get_int_env("LAND_REGISTRY_CLOSING_SOON_DAYS", 7),
            min_description_length=_get_int_env(
                "LAND_REGISTRY_MIN_DESCRIPTION_LENGTH", 50
            ),
            persistence_timeout_seconds=_get_float_env(
                "LAND_REGISTRY_PERSISTENCE_TIMEOUT", 5.0
            ),
            notification_timeout_seconds=_get_float_env(
                "LAND_REGISTRY_NOTIFICATION_TIMEOUT", 2.0
            ),
            stamp_duty_rate=_get_float_env("LAND_REGISTRY_STAMP_DUTY_RATE", 0.01),
            minimum_stamp_duty=_get_float_env("LAND_REGISTRY_MIN_STAMP_DUTY", 50.0),
            area_match_tolerance=_get_float_env(
                "LAND_REGISTRY_AREA_MATCH_TOLERANCE", 0.01
            ),
            quota_match_tolerance=_get_float_env(
                "LAND_REGISTRY_QUOTA_MATCH_TOLERANCE", 0.0001
            ),
        )


# Default production config
DEFAULT_WORKFLOW_CONFIG = WorkflowConfig()

# Testing config with tight timeouts so hung fakes fail fast
TEST_WORKFLOW_CONFIG = WorkflowConfig(
    persistence_timeout_seconds=0.5,
    notification_timeout_seconds=0.2,
)

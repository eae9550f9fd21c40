"""Configuration module for the land registry workflow core.

Available Configurations:
- WorkflowConfig: thresholds, statutory windows, stamp duty, timeouts
"""

from land_registry.config.workflow_config import (
    DEFAULT_WORKFLOW_CONFIG,
    TEST_WORKFLOW_CONFIG,
    WorkflowConfig,
)

__all__ = [
    "DEFAULT_WORKFLOW_CONFIG",
    "TEST_WORKFLOW_CONFIG",
    "WorkflowConfig",
]

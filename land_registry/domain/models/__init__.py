"""Domain models for the land registry workflow core.

Immutable value objects and records with no infrastructure dependencies.
"""

from land_registry.domain.models.actor import Actor
from land_registry.domain.models.state_transition import StateTransition
from land_registry.domain.models.transition_table import (
    TransitionTable,
    WorkflowRegistry,
    build_workflow_registry,
)
from land_registry.domain.models.workflow_record import WorkflowRecord
from land_registry.domain.models.workflow_result import (
    NotificationOutcome,
    WorkflowResult,
)
from land_registry.domain.models.workflow_state import (
    CaseStatus,
    DeedState,
    DisputeStatus,
    ObjectionStatus,
    PlanningState,
    SurveyState,
    TitleState,
    WorkflowDomain,
)

__all__: list[str] = [
    "Actor",
    "CaseStatus",
    "DeedState",
    "DisputeStatus",
    "NotificationOutcome",
    "ObjectionStatus",
    "PlanningState",
    "StateTransition",
    "SurveyState",
    "TitleState",
    "TransitionTable",
    "WorkflowDomain",
    "WorkflowRecord",
    "WorkflowRegistry",
    "WorkflowResult",
    "build_workflow_registry",
]

"""Static transition tables and role permissions for every workflow domain.

Tables are plain mappings from state to the frozenset of legal successor
states. They are built once at process start by
``build_workflow_registry()`` and passed explicitly to the validator and
services; nothing here is looked up through module-level registries at
call time.

Terminal states map to an empty frozenset. A self-transition is only
legal when a table lists it (none currently do).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

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

ADMIN_ROLE = "admin"


PLANNING_TRANSITIONS: dict[PlanningState, frozenset[PlanningState]] = {
    PlanningState.DRAFT: frozenset({PlanningState.SUBMITTED, PlanningState.WITHDRAWN}),
    PlanningState.SUBMITTED: frozenset(
        {PlanningState.UNDER_REVIEW, PlanningState.WITHDRAWN}
    ),
    PlanningState.UNDER_REVIEW: frozenset(
        {
            PlanningState.REVISION_REQUESTED,
            PlanningState.APPROVED,
            PlanningState.REJECTED,
        }
    ),
    PlanningState.REVISION_REQUESTED: frozenset(
        {PlanningState.SUBMITTED, PlanningState.WITHDRAWN}
    ),
    PlanningState.APPROVED: frozenset(),
    PlanningState.REJECTED: frozenset(),
    PlanningState.WITHDRAWN: frozenset(),
}

SURVEY_TRANSITIONS: dict[SurveyState, frozenset[SurveyState]] = {
    SurveyState.DRAFT: frozenset({SurveyState.COMPUTED, SurveyState.WITHDRAWN}),
    SurveyState.COMPUTED: frozenset({SurveyState.UNDER_REVIEW, SurveyState.WITHDRAWN}),
    SurveyState.UNDER_REVIEW: frozenset(
        {SurveyState.REVISION_REQUESTED, SurveyState.SEALED, SurveyState.REJECTED}
    ),
    SurveyState.REVISION_REQUESTED: frozenset(
        {SurveyState.COMPUTED, SurveyState.WITHDRAWN}
    ),
    SurveyState.SEALED: frozenset(),
    SurveyState.REJECTED: frozenset(),
    SurveyState.WITHDRAWN: frozenset(),
}

DEED_TRANSITIONS: dict[DeedState, frozenset[DeedState]] = {
    DeedState.DRAFT: frozenset({DeedState.SUBMITTED, DeedState.WITHDRAWN}),
    DeedState.SUBMITTED: frozenset({DeedState.UNDER_EXAMINATION, DeedState.WITHDRAWN}),
    DeedState.UNDER_EXAMINATION: frozenset(
        {DeedState.REVISION_REQUESTED, DeedState.APPROVED, DeedState.REJECTED}
    ),
    DeedState.REVISION_REQUESTED: frozenset(
        {DeedState.SUBMITTED, DeedState.WITHDRAWN}
    ),
    DeedState.APPROVED: frozenset({DeedState.REGISTERED}),
    DeedState.REJECTED: frozenset(),
    DeedState.REGISTERED: frozenset(),
    DeedState.WITHDRAWN: frozenset(),
}

TITLE_TRANSITIONS: dict[TitleState, frozenset[TitleState]] = {
    TitleState.PENDING: frozenset({TitleState.UNDER_REVIEW, TitleState.CANCELLED}),
    TitleState.UNDER_REVIEW: frozenset({TitleState.APPROVED, TitleState.REJECTED}),
    TitleState.APPROVED: frozenset({TitleState.REGISTERED}),
    TitleState.REGISTERED: frozenset(),
    TitleState.REJECTED: frozenset(),
    TitleState.CANCELLED: frozenset(),
}

CASE_TRANSITIONS: dict[CaseStatus, frozenset[CaseStatus]] = {
    CaseStatus.SUBMITTED: frozenset({CaseStatus.APPROVED, CaseStatus.REJECTED}),
    CaseStatus.APPROVED: frozenset({CaseStatus.PROCESSED}),
    CaseStatus.REJECTED: frozenset(),
    CaseStatus.PROCESSED: frozenset(),
}

DISPUTE_TRANSITIONS: dict[DisputeStatus, frozenset[DisputeStatus]] = {
    DisputeStatus.PENDING: frozenset({DisputeStatus.ASSIGNED}),
    DisputeStatus.ASSIGNED: frozenset(
        {DisputeStatus.HEARING_SCHEDULED, DisputeStatus.RESOLVED}
    ),
    DisputeStatus.HEARING_SCHEDULED: frozenset({DisputeStatus.RESOLVED}),
    DisputeStatus.RESOLVED: frozenset(),
}

OBJECTION_TRANSITIONS: dict[ObjectionStatus, frozenset[ObjectionStatus]] = {
    ObjectionStatus.PENDING: frozenset(
        {ObjectionStatus.HEARING_SCHEDULED, ObjectionStatus.RESOLVED}
    ),
    ObjectionStatus.HEARING_SCHEDULED: frozenset({ObjectionStatus.RESOLVED}),
    ObjectionStatus.RESOLVED: frozenset(),
}


@dataclass(frozen=True, eq=False)
class TransitionTable:
    """Legal moves and role permissions for one workflow domain.

    Attributes:
        domain: Workflow domain the table governs.
        state_type: Enum class whose members are the domain's states.
        transitions: State -> frozenset of legal successor states.
        initial_state: State new records start in.
        role_permissions: Role -> target states that role may move into.
            The admin role may move into any state.
    """

    domain: WorkflowDomain
    state_type: type[Enum]
    transitions: Mapping[Enum, frozenset[Enum]]
    initial_state: Enum
    role_permissions: Mapping[str, frozenset[Enum]]

    def __post_init__(self) -> None:
        """Validate that every state has an entry and successors are members."""
        missing = [s for s in self.state_type if s not in self.transitions]
        if missing:
            raise ValueError(
                f"{self.domain.value} table has no entry for "
                f"{[s.value for s in missing]}"
            )
        for source, targets in self.transitions.items():
            for target in targets:
                if not isinstance(target, self.state_type):
                    raise ValueError(
                        f"{self.domain.value} table lists foreign state {target!r} "
                        f"as successor of {source.value}"
                    )
        object.__setattr__(self, "transitions", MappingProxyType(dict(self.transitions)))
        object.__setattr__(
            self, "role_permissions", MappingProxyType(dict(self.role_permissions))
        )

    @property
    def final_states(self) -> frozenset[Enum]:
        """States with no outgoing edges."""
        return frozenset(s for s, targets in self.transitions.items() if not targets)

    def successors(self, state: Enum) -> frozenset[Enum]:
        """Return the legal successors of a member state."""
        return self.transitions[state]

    def role_allows(self, role: str, to_state: Enum) -> bool:
        """Check whether a role may move records into ``to_state``."""
        if role == ADMIN_ROLE:
            return True
        return to_state in self.role_permissions.get(role, frozenset())


@dataclass(frozen=True, eq=False)
class WorkflowRegistry:
    """All transition tables, constructed once and injected into services."""

    tables: Mapping[WorkflowDomain, TransitionTable]

    def table_for(self, domain: WorkflowDomain) -> TransitionTable:
        """Return the table for a domain.

        Raises:
            KeyError: If no table was registered for the domain.
        """
        return self.tables[domain]


def _table(
    domain: WorkflowDomain,
    state_type: type[Enum],
    transitions: Mapping[Enum, frozenset[Enum]],
    initial_state: Enum,
    role_permissions: Mapping[str, frozenset[Enum]],
) -> TransitionTable:
    return TransitionTable(
        domain=domain,
        state_type=state_type,
        transitions=transitions,
        initial_state=initial_state,
        role_permissions=role_permissions,
    )


def build_workflow_registry() -> WorkflowRegistry:
    """Build the default tables for every workflow domain.

    Returns:
        A WorkflowRegistry holding one TransitionTable per WorkflowDomain.
    """
    tables = {
        WorkflowDomain.PLANNING: _table(
            WorkflowDomain.PLANNING,
            PlanningState,
            PLANNING_TRANSITIONS,
            PlanningState.DRAFT,
            {
                "planner": frozenset({PlanningState.SUBMITTED, PlanningState.WITHDRAWN}),
                "planning_authority": frozenset(
                    {
                        PlanningState.UNDER_REVIEW,
                        PlanningState.REVISION_REQUESTED,
                        PlanningState.APPROVED,
                        PlanningState.REJECTED,
                    }
                ),
            },
        ),
        WorkflowDomain.SURVEY: _table(
            WorkflowDomain.SURVEY,
            SurveyState,
            SURVEY_TRANSITIONS,
            SurveyState.DRAFT,
            {
                "surveyor": frozenset({SurveyState.COMPUTED, SurveyState.WITHDRAWN}),
                "surveyor_general": frozenset(
                    {
                        SurveyState.UNDER_REVIEW,
                        SurveyState.REVISION_REQUESTED,
                        SurveyState.SEALED,
                        SurveyState.REJECTED,
                    }
                ),
            },
        ),
        WorkflowDomain.DEED: _table(
            WorkflowDomain.DEED,
            DeedState,
            DEED_TRANSITIONS,
            DeedState.DRAFT,
            {
                "conveyancer": frozenset({DeedState.SUBMITTED, DeedState.WITHDRAWN}),
                "deeds_examiner": frozenset(
                    {
                        DeedState.UNDER_EXAMINATION,
                        DeedState.REVISION_REQUESTED,
                        DeedState.APPROVED,
                        DeedState.REJECTED,
                    }
                ),
                "registrar": frozenset({DeedState.REGISTERED}),
            },
        ),
        WorkflowDomain.TITLE: _table(
            WorkflowDomain.TITLE,
            TitleState,
            TITLE_TRANSITIONS,
            TitleState.PENDING,
            {
                "registrar": frozenset(TitleState),
                "deeds_examiner": frozenset(
                    {TitleState.UNDER_REVIEW, TitleState.APPROVED, TitleState.REJECTED}
                ),
            },
        ),
        WorkflowDomain.AMENDMENT: _table(
            WorkflowDomain.AMENDMENT,
            CaseStatus,
            CASE_TRANSITIONS,
            CaseStatus.SUBMITTED,
            {"registrar": frozenset(CaseStatus)},
        ),
        WorkflowDomain.TRANSFER: _table(
            WorkflowDomain.TRANSFER,
            CaseStatus,
            CASE_TRANSITIONS,
            CaseStatus.SUBMITTED,
            {"registrar": frozenset(CaseStatus)},
        ),
        WorkflowDomain.DISPUTE: _table(
            WorkflowDomain.DISPUTE,
            DisputeStatus,
            DISPUTE_TRANSITIONS,
            DisputeStatus.PENDING,
            {
                "registrar": frozenset(DisputeStatus),
                "dispute_officer": frozenset(
                    {DisputeStatus.HEARING_SCHEDULED, DisputeStatus.RESOLVED}
                ),
            },
        ),
        WorkflowDomain.OBJECTION: _table(
            WorkflowDomain.OBJECTION,
            ObjectionStatus,
            OBJECTION_TRANSITIONS,
            ObjectionStatus.PENDING,
            {"planning_authority": frozenset(ObjectionStatus)},
        ),
    }
    return WorkflowRegistry(tables=MappingProxyType(tables))

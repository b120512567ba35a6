"""Data models for linctl."""

from dataclasses import dataclass
from typing import Optional, Tuple, Union
from datetime import datetime
from enum import Enum


class ResourceKind(Enum):
    """Filterable entity kinds."""
    ISSUE = "issue"
    PROJECT = "project"


class StateType(Enum):
    """Workflow state categories reported by Linear."""
    TRIAGE = "triage"
    BACKLOG = "backlog"
    UNSTARTED = "unstarted"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELED = "canceled"


class OutputFormat(Enum):
    """Rendering modes for command output."""
    TABLE = "table"
    PLAINTEXT = "plaintext"
    JSON = "json"


PRIORITY_UNSET = -1

PRIORITY_LABELS = {
    0: "None",
    1: "Urgent",
    2: "High",
    3: "Normal",
    4: "Low",
}


@dataclass(frozen=True)
class UseDefault:
    """No time expression was given; the caller supplies its own default."""


@dataclass(frozen=True)
class Unbounded:
    """No lower bound on creation time."""


@dataclass(frozen=True)
class At:
    """An absolute lower bound, always timezone-aware UTC."""
    timestamp: datetime

    def isoformat(self) -> str:
        return self.timestamp.isoformat()


USE_DEFAULT = UseDefault()
UNBOUNDED = Unbounded()

ResolvedBoundary = Union[UseDefault, Unbounded, At]


@dataclass(frozen=True)
class ResourceDefaultPolicy:
    """Static per-resource defaults injected into the filter composer.

    The field names describe where each criterion lives in the resource's
    GraphQL filter type. ``state_name_key``/``state_type_key`` are ``None``
    when the state is compared directly (projects store state as a string).
    """
    kind: ResourceKind
    default_time_expression: str = "6_months_ago"
    excluded_state_types: Tuple[str, ...] = (
        StateType.COMPLETED.value,
        StateType.CANCELED.value,
    )
    assignee_field: str = "assignee"
    state_name_key: Optional[str] = "name"
    state_type_key: Optional[str] = "type"
    team_field: str = "team"
    team_is_collection: bool = False


ISSUE_POLICY = ResourceDefaultPolicy(kind=ResourceKind.ISSUE)

PROJECT_POLICY = ResourceDefaultPolicy(
    kind=ResourceKind.PROJECT,
    assignee_field="lead",
    state_name_key=None,
    state_type_key=None,
    team_field="accessibleTeams",
    team_is_collection=True,
)


@dataclass
class RawFilterInputs:
    """Flag values collected by a listing command, before composition."""
    assignee: Optional[str] = None
    state: Optional[str] = None
    team: Optional[str] = None
    priority: int = PRIORITY_UNSET
    newer_than: str = ""
    include_completed: bool = False


@dataclass
class Config:
    """Configuration loaded from linctl.yaml."""
    default_team: Optional[str] = None
    output: str = OutputFormat.TABLE.value
    page_size: int = 50
    api_url: str = "https://api.linear.app/graphql"

"""Filter composition for listing commands.

This module turns raw flag values into the GraphQL filter document and sort
order expected by Linear's ``issues``/``projects``/``searchIssues`` queries.
Composition is pure: no network or disk access, and the clock is read once
per call.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..exceptions import InvalidSortOptionError
from ..models import (
    PRIORITY_UNSET,
    At,
    RawFilterInputs,
    ResourceDefaultPolicy,
    Unbounded,
    UseDefault,
)
from ..utils.time_expression import resolve_time_expression, utc_now

logger = logging.getLogger(__name__)

ASSIGNEE_ME = "me"
ASSIGNEE_UNASSIGNED = "unassigned"

SORT_OPTIONS = {
    "linear": None,
    "created": "createdAt",
    "createdAt": "createdAt",
    "updated": "updatedAt",
    "updatedAt": "updatedAt",
}
VALID_SORT_OPTIONS = ("linear", "created", "updated")


def normalize_sort_option(option: Optional[str]) -> Optional[str]:
    """Map a --sort token to a PaginationOrderBy value.

    Args:
        option: 'linear', 'created' or 'updated' (field names 'createdAt'
            and 'updatedAt' are accepted as aliases)

    Returns:
        None to keep Linear's default ordering, otherwise the order field

    Raises:
        InvalidSortOptionError: If the token is not recognised
    """
    if option is None or option == "":
        return None
    if option not in SORT_OPTIONS:
        raise InvalidSortOptionError(option, VALID_SORT_OPTIONS)
    return SORT_OPTIONS[option]


class FilterComposer:
    """Builds GraphQL filter documents from independently optional criteria.

    Each resource kind supplies its own ResourceDefaultPolicy, so issue and
    project listings share the same composition rules while differing in
    field layout and default window.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """Initialize the composer.

        Args:
            clock: Callable returning the current aware UTC datetime
        """
        self.clock = clock or utc_now

    def compose(self, inputs: RawFilterInputs, policy: ResourceDefaultPolicy) -> Dict[str, Any]:
        """Compose a filter document for ``policy.kind``.

        Args:
            inputs: Raw flag values from the command line
            policy: Defaults and field layout for the resource kind

        Returns:
            Filter dictionary; dimensions without a predicate are absent

        Raises:
            InvalidTimeExpressionError: If inputs.newer_than is malformed
        """
        now = self.clock()
        filter_doc: Dict[str, Any] = {}

        # Time first so a bad expression fails before anything else is built
        created_at = self._created_at_predicate(inputs.newer_than, policy, now)

        assignee = self._assignee_predicate(inputs.assignee)
        if assignee is not None:
            filter_doc[policy.assignee_field] = assignee

        state = self._state_predicate(inputs.state, inputs.include_completed, policy)
        if state is not None:
            filter_doc["state"] = state

        team = self._team_predicate(inputs.team, policy)
        if team is not None:
            filter_doc[policy.team_field] = team

        if inputs.priority is not None and inputs.priority != PRIORITY_UNSET:
            filter_doc["priority"] = {"eq": inputs.priority}

        if created_at is not None:
            filter_doc["createdAt"] = created_at

        logger.debug("Composed %s filter: %s", policy.kind.value, filter_doc)
        return filter_doc

    def _assignee_predicate(self, assignee: Optional[str]) -> Optional[Dict[str, Any]]:
        if not assignee or not assignee.strip():
            return None
        value = assignee.strip()
        token = value.lower()
        if token == ASSIGNEE_ME:
            return {"isMe": {"eq": True}}
        if token == ASSIGNEE_UNASSIGNED:
            return {"null": True}
        return {"email": {"eq": value}}

    def _state_predicate(
        self,
        state: Optional[str],
        include_completed: bool,
        policy: ResourceDefaultPolicy,
    ) -> Optional[Dict[str, Any]]:
        # An explicit state always wins over the default exclusion
        if state:
            return self._nest(policy.state_name_key, {"eq": state})
        if include_completed:
            return None
        return self._nest(
            policy.state_type_key,
            {"nin": list(policy.excluded_state_types)},
        )

    def _team_predicate(self, team: Optional[str], policy: ResourceDefaultPolicy) -> Optional[Dict[str, Any]]:
        if not team:
            return None
        predicate = {"key": {"eq": team}}
        if policy.team_is_collection:
            return {"some": predicate}
        return predicate

    def _created_at_predicate(
        self,
        newer_than: Optional[str],
        policy: ResourceDefaultPolicy,
        now: datetime,
    ) -> Optional[Dict[str, Any]]:
        clock = lambda: now
        boundary = resolve_time_expression(newer_than, clock=clock)
        if isinstance(boundary, UseDefault):
            boundary = resolve_time_expression(policy.default_time_expression, clock=clock)

        if isinstance(boundary, Unbounded):
            return None
        if isinstance(boundary, At):
            return {"gte": boundary.isoformat()}
        raise TypeError(f"Unexpected boundary for {policy.kind.value}: {boundary!r}")

    @staticmethod
    def _nest(key: Optional[str], predicate: Dict[str, Any]) -> Dict[str, Any]:
        if key is None:
            return predicate
        return {key: predicate}

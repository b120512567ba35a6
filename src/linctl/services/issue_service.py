"""Issue service for Linear issue mutations.

Resolves human-facing values (emails, names, state names, team keys) to the
identifiers Linear's create/update mutations require.
"""

import logging
from typing import Dict, Any, Optional

from ..core import LinearClient
from ..exceptions import StateNotFoundError, UserNotFoundError
from .filter_service import ASSIGNEE_ME, ASSIGNEE_UNASSIGNED

logger = logging.getLogger(__name__)

USER_LOOKUP_PAGE_SIZE = 100
REMOVE_PROJECT_TOKEN = "none"


class IssueService:
    """Service class for building issue create/update inputs."""

    def __init__(self, client: LinearClient):
        """Initialize the service with a Linear client.

        Args:
            client: Authenticated LinearClient instance
        """
        self.client = client

    def resolve_assignee_id(self, assignee: str) -> Optional[str]:
        """Resolve an --assignee value to a user id.

        Args:
            assignee: 'me', 'unassigned', an empty string, an email or a name

        Returns:
            The user id, or None to clear the assignee

        Raises:
            UserNotFoundError: If no user matches the email or name
        """
        token = assignee.strip()
        if token.lower() == ASSIGNEE_ME:
            return self.client.get_viewer()['id']
        if token == "" or token.lower() == ASSIGNEE_UNASSIGNED:
            return None

        users = self.client.get_users(first=USER_LOOKUP_PAGE_SIZE)
        for user in users.get('nodes', []):
            if (user.get('email') or '').lower() == token.lower() or user.get('name') == token:
                logger.debug("Resolved assignee %r to %s", token, user['id'])
                return user['id']
        raise UserNotFoundError(token)

    def resolve_state_id(self, issue_id: str, state_name: str) -> str:
        """Resolve a workflow state name for the team that owns ``issue_id``.

        Names are compared case-insensitively.

        Raises:
            StateNotFoundError: If the team has no state with that name
        """
        issue = self.client.get_issue(issue_id)
        team_key = issue['team']['key']
        states = self.client.get_team_states(team_key)
        for state in states:
            if state['name'].lower() == state_name.strip().lower():
                return state['id']
        raise StateNotFoundError(state_name, [state['name'] for state in states])

    def build_create_input(
        self,
        title: str,
        team_key: str,
        description: Optional[str] = None,
        priority: Optional[int] = None,
        assign_to_me: bool = False,
    ) -> Dict[str, Any]:
        """Build an IssueCreateInput.

        Raises:
            ValueError: If the title is empty
            ResourceNotFoundError: If the team key is unknown
        """
        if not title or not title.strip():
            raise ValueError("Title is required (--title)")

        team = self.client.get_team(team_key)
        issue_input: Dict[str, Any] = {
            'title': title.strip(),
            'teamId': team['id'],
        }
        if description:
            issue_input['description'] = description
        if priority is not None and 0 <= priority <= 4:
            issue_input['priority'] = priority
        if assign_to_me:
            issue_input['assigneeId'] = self.client.get_viewer()['id']
        return issue_input

    def build_update_input(
        self,
        issue_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        assignee: Optional[str] = None,
        state: Optional[str] = None,
        priority: Optional[int] = None,
        due_date: Optional[str] = None,
        project: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Build an IssueUpdateInput from the flags that were given.

        None means "flag not given". An empty --due-date, an empty --project
        or --project none clears the field.

        Raises:
            ValueError: If no update flag was given
        """
        issue_input: Dict[str, Any] = {}

        if title is not None:
            issue_input['title'] = title
        if description is not None:
            issue_input['description'] = description
        if assignee is not None:
            issue_input['assigneeId'] = self.resolve_assignee_id(assignee)
        if state is not None:
            issue_input['stateId'] = self.resolve_state_id(issue_id, state)
        if priority is not None:
            issue_input['priority'] = priority
        if due_date is not None:
            issue_input['dueDate'] = due_date or None
        if project is not None:
            if project == "" or project.lower() == REMOVE_PROJECT_TOKEN:
                issue_input['projectId'] = None
            else:
                issue_input['projectId'] = project

        if not issue_input:
            raise ValueError("No updates specified. Use flags to specify what to update.")
        return issue_input

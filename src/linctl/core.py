"""Core logic for Linear API interaction."""

from typing import Optional, Dict, Any, List
import json
import logging
import os
import re
from pathlib import Path
from time import sleep

import requests
import yaml
from dotenv import dotenv_values

from .exceptions import (
    ConfigNotFoundError,
    InvalidYAMLError,
    InvalidFieldValueError,
    MissingTokenError,
    InvalidTokenError,
    GraphQLError,
    ResourceNotFoundError,
)
from .models import Config, OutputFormat

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.linear.app/graphql"
API_KEY_ENV_VAR = "LINEAR_API_KEY"
CONFIG_FILENAME = "linctl.yaml"

PAGE_INFO_FIELDS = """
    pageInfo {
        hasNextPage
        endCursor
    }
"""

USER_FIELDS = """
    id
    name
    displayName
    email
    avatarUrl
    isMe
    active
    admin
    createdAt
"""

ISSUE_LIST_FIELDS = """
    id
    identifier
    title
    description
    priority
    estimate
    createdAt
    updatedAt
    dueDate
    url
    state { id name type color }
    assignee { id name email }
    team { id key name }
    labels { nodes { id name color } }
"""

ISSUE_DETAIL_FIELDS = """
    id
    identifier
    number
    title
    description
    priority
    priorityLabel
    estimate
    createdAt
    updatedAt
    completedAt
    canceledAt
    archivedAt
    dueDate
    url
    branchName
    state { id name type color description }
    assignee { id name displayName email }
    creator { id name email }
    team { id key name description }
    project { id name state progress }
    cycle { id name number startsAt endsAt progress }
    parent { id identifier title }
    children { nodes { id identifier title state { name type } } }
    labels { nodes { id name color } }
    comments(first: 20) { nodes { id body createdAt user { name } } }
"""

PROJECT_LIST_FIELDS = """
    id
    name
    description
    state
    progress
    startDate
    targetDate
    url
    createdAt
    updatedAt
    lead { id name email }
    teams { nodes { id key name } }
"""

TEAM_FIELDS = """
    id
    key
    name
    description
    private
    issueCount
"""

COMMENT_FIELDS = """
    id
    body
    createdAt
    updatedAt
    user { id name email }
"""


class GraphQLClient:
    """Linear GraphQL API client.

    Handles authentication headers, transport errors and GraphQL error
    payloads. Entity-level queries live on LinearClient.
    """

    def __init__(self, token: str, api_url: str = DEFAULT_API_URL):
        """Initialize GraphQL client with authentication token.

        Args:
            token: Linear personal API key
            api_url: GraphQL endpoint
        """
        self.token = token
        self.api_url = api_url
        self.session = requests.Session()
        # Personal API keys are sent without a Bearer prefix
        self.session.headers.update({
            'Authorization': token,
            'Content-Type': 'application/json',
        })

    def _execute(self, query: str, variables: Optional[Dict[str, Any]] = None, max_retries: int = 3) -> Dict[str, Any]:
        """Execute a GraphQL query or mutation.

        Args:
            query: The GraphQL query or mutation string
            variables: Optional variables for the query
            max_retries: Maximum number of retries for rate limiting and transient failures

        Returns:
            Dictionary containing the response data

        Raises:
            GraphQLError: If the request fails or the response carries errors
        """
        payload = {
            'query': query,
            'variables': variables or {}
        }
        operation = _operation_name(query)
        last_exception = None

        for attempt in range(max_retries + 1):
            logger.debug("GraphQL %s (attempt %d) variables=%s", operation, attempt + 1, payload['variables'])
            try:
                response = self.session.post(self.api_url, json=payload, timeout=30)

                if response.status_code == 429:
                    retry_after = int(response.headers.get('retry-after', 60))
                    if attempt < max_retries:
                        logger.debug("Rate limited on %s, sleeping %ss", operation, retry_after)
                        sleep(retry_after)
                        continue
                    raise GraphQLError(f"Rate limit exceeded. Please wait {retry_after} seconds before retrying.")

                if response.status_code == 401:
                    raise GraphQLError("Authentication failed. Please check your Linear API key.")

                if response.status_code == 403:
                    error_detail = ""
                    try:
                        error_data = response.json()
                    except ValueError:
                        error_data = {}
                    if isinstance(error_data, dict) and 'message' in error_data:
                        error_detail = f": {error_data['message']}"
                    raise GraphQLError(f"Access forbidden{error_detail}. Check your API key permissions.")

                # Linear reports GraphQL validation errors with status 400 and an errors body
                if response.status_code != 400:
                    response.raise_for_status()

                result = response.json()

                if result.get('errors'):
                    parsed_errors = self._parse_graphql_errors(result['errors'])
                    raise GraphQLError(f"GraphQL query failed: {'; '.join(parsed_errors)}")

                response.raise_for_status()

                return result.get('data') or {}

            except requests.exceptions.ConnectionError as e:
                last_exception = GraphQLError(f"Connection error: {str(e)}")
                if attempt < max_retries:
                    sleep(2 ** attempt)
                    continue

            except requests.exceptions.Timeout as e:
                last_exception = GraphQLError(f"Request timeout: {str(e)}")
                if attempt < max_retries:
                    sleep(2 ** attempt)
                    continue

            except json.JSONDecodeError as e:
                raise GraphQLError(f"Invalid JSON response from GraphQL API: {str(e)}")
            except requests.exceptions.RequestException as e:
                raise GraphQLError(f"Network error during GraphQL request: {str(e)}")

        if last_exception:
            raise last_exception

        raise GraphQLError("Request failed after maximum retries")

    def _parse_graphql_errors(self, errors: List[Dict[str, Any]]) -> List[str]:
        """Turn Linear's GraphQL error payloads into actionable messages.

        Args:
            errors: List of GraphQL error dictionaries

        Returns:
            List of parsed error messages
        """
        parsed_errors = []

        for error in errors:
            extensions = error.get('extensions') or {}
            message = extensions.get('userPresentableMessage') or error.get('message', str(error))
            error_type = str(extensions.get('type', '')).lower()
            lowered = message.lower()

            if 'authentication' in error_type or 'authentication' in lowered:
                parsed_errors.append(
                    f"Authentication error: {message}. "
                    "Run 'linctl auth login' to store a valid API key."
                )
            elif 'not found' in lowered or 'entity not found' in error_type:
                parsed_errors.append(f"Resource not found: {message}")
            elif 'forbidden' in error_type or 'permission' in lowered:
                parsed_errors.append(
                    f"Permission denied: {message}. "
                    "Check that your API key has access to this workspace."
                )
            elif 'ratelimited' in error_type or 'rate limit' in lowered:
                parsed_errors.append(
                    f"Rate limit exceeded: {message}. "
                    "Please wait before making more requests."
                )
            else:
                locations = error.get('locations', [])
                location_str = ""
                if locations:
                    location_str = f" (line {locations[0].get('line', '?')}, column {locations[0].get('column', '?')})"
                parsed_errors.append(f"{message}{location_str}")

        return parsed_errors


def _operation_name(query: str) -> str:
    match = re.search(r"\b(query|mutation)\s+(\w+)", query)
    return match.group(2) if match else "anonymous"


def _pagination_variables(first: int, after: Optional[str], order_by: Optional[str]) -> Dict[str, Any]:
    variables: Dict[str, Any] = {'first': first}
    if after:
        variables['after'] = after
    if order_by:
        variables['orderBy'] = order_by
    return variables


class CredentialStore:
    """Stores the Linear API key in a JSON file in the user's home directory."""

    FILENAME = ".linctl-auth.json"

    def __init__(self, path: Optional[Path] = None):
        self.path = path or Path.home() / self.FILENAME

    def load(self) -> Optional[str]:
        """Return the stored API key, or None when nothing is stored."""
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable credentials file %s: %s", self.path, e)
            return None
        if not isinstance(data, dict):
            return None
        return data.get('api_key') or None

    def save(self, api_key: str) -> Path:
        """Write the API key with owner-only permissions."""
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w') as f:
            json.dump({'api_key': api_key}, f, indent=2)
        os.chmod(self.path, 0o600)
        return self.path

    def clear(self) -> bool:
        """Delete stored credentials. Returns True when a file was removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True


class LinearClient:
    """Client for the Linear API.

    Resolves the API key, owns a GraphQLClient and exposes one method per
    query the commands need. Methods return plain dictionaries shaped like
    the GraphQL response; list methods return ``{'nodes': [...], 'pageInfo': {...}}``.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        config: Optional[Config] = None,
        config_dir: Optional[Path] = None,
        credential_store: Optional[CredentialStore] = None,
    ):
        """Initialize Linear client.

        Args:
            token: Linear API key. If not provided, LINEAR_API_KEY is read from
                the environment, then from a .env file in config_dir, then from
                the credentials file.
            config: Loaded configuration (endpoint override)
            config_dir: Directory containing .env file
            credential_store: Where `linctl auth login` saved the key
        """
        self.config = config
        self.credential_store = credential_store or CredentialStore()

        self.token = (
            token
            or os.getenv(API_KEY_ENV_VAR)
            or self._load_token_from_env_file(config_dir)
            or self.credential_store.load()
        )
        if not self.token:
            raise MissingTokenError(self.credential_store.path)

        api_url = config.api_url if config else DEFAULT_API_URL
        self.graphql = GraphQLClient(self.token, api_url=api_url)

    def _load_token_from_env_file(self, config_dir: Optional[Path]) -> Optional[str]:
        """Load the API key from a .env file in the config directory."""
        if not config_dir:
            return None
        env_file = Path(config_dir) / ".env"
        if not env_file.exists():
            return None
        return dotenv_values(env_file).get(API_KEY_ENV_VAR)

    def validate_token(self) -> Dict[str, Any]:
        """Fetch the viewer to prove the key works.

        Raises:
            InvalidTokenError: If Linear rejects the key
        """
        try:
            return self.get_viewer()
        except GraphQLError as e:
            raise InvalidTokenError(str(e))

    # Users

    def get_viewer(self) -> Dict[str, Any]:
        query = f"""
            query Viewer {{
                viewer {{
                    {USER_FIELDS}
                }}
            }}
        """
        data = self.graphql._execute(query)
        return data.get('viewer') or {}

    def get_users(self, first: int = 50, after: Optional[str] = None, order_by: Optional[str] = None) -> Dict[str, Any]:
        query = f"""
            query Users($first: Int, $after: String, $orderBy: PaginationOrderBy) {{
                users(first: $first, after: $after, orderBy: $orderBy) {{
                    nodes {{
                        {USER_FIELDS}
                    }}
                    {PAGE_INFO_FIELDS}
                }}
            }}
        """
        data = self.graphql._execute(query, _pagination_variables(first, after, order_by))
        return data.get('users') or {'nodes': [], 'pageInfo': {}}

    def get_user(self, email: str) -> Dict[str, Any]:
        """Look up a single user by email address.

        Raises:
            ResourceNotFoundError: If no user has that email
        """
        query = f"""
            query UserByEmail($email: String!) {{
                users(filter: {{ email: {{ eq: $email }} }}, first: 1) {{
                    nodes {{
                        {USER_FIELDS}
                    }}
                }}
            }}
        """
        data = self.graphql._execute(query, {'email': email})
        nodes = (data.get('users') or {}).get('nodes') or []
        if not nodes:
            raise ResourceNotFoundError('user', email)
        return nodes[0]

    # Issues

    def get_issues(
        self,
        filter: Optional[Dict[str, Any]] = None,
        first: int = 50,
        after: Optional[str] = None,
        order_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        query = f"""
            query Issues($filter: IssueFilter, $first: Int, $after: String, $orderBy: PaginationOrderBy) {{
                issues(filter: $filter, first: $first, after: $after, orderBy: $orderBy) {{
                    nodes {{
                        {ISSUE_LIST_FIELDS}
                    }}
                    {PAGE_INFO_FIELDS}
                }}
            }}
        """
        variables = _pagination_variables(first, after, order_by)
        if filter:
            variables['filter'] = filter
        data = self.graphql._execute(query, variables)
        return data.get('issues') or {'nodes': [], 'pageInfo': {}}

    def search_issues(
        self,
        term: str,
        filter: Optional[Dict[str, Any]] = None,
        first: int = 50,
        after: Optional[str] = None,
        order_by: Optional[str] = None,
        include_archived: bool = False,
    ) -> Dict[str, Any]:
        query = f"""
            query IssueSearch($term: String!, $filter: IssueFilter, $first: Int, $after: String,
                              $orderBy: PaginationOrderBy, $includeArchived: Boolean) {{
                searchIssues(term: $term, filter: $filter, first: $first, after: $after,
                             orderBy: $orderBy, includeArchived: $includeArchived) {{
                    nodes {{
                        {ISSUE_LIST_FIELDS}
                    }}
                    {PAGE_INFO_FIELDS}
                }}
            }}
        """
        variables = _pagination_variables(first, after, order_by)
        variables['term'] = term
        variables['includeArchived'] = include_archived
        if filter:
            variables['filter'] = filter
        data = self.graphql._execute(query, variables)
        return data.get('searchIssues') or {'nodes': [], 'pageInfo': {}}

    def get_issue(self, issue_id: str) -> Dict[str, Any]:
        """Fetch one issue by UUID or identifier (e.g. 'ENG-123').

        Raises:
            ResourceNotFoundError: If the issue does not exist
        """
        query = f"""
            query Issue($id: String!) {{
                issue(id: $id) {{
                    {ISSUE_DETAIL_FIELDS}
                }}
            }}
        """
        data = self.graphql._execute(query, {'id': issue_id})
        issue = data.get('issue')
        if not issue:
            raise ResourceNotFoundError('issue', issue_id)
        return issue

    def create_issue(self, issue_input: Dict[str, Any]) -> Dict[str, Any]:
        query = f"""
            mutation CreateIssue($input: IssueCreateInput!) {{
                issueCreate(input: $input) {{
                    success
                    issue {{
                        {ISSUE_LIST_FIELDS}
                    }}
                }}
            }}
        """
        data = self.graphql._execute(query, {'input': issue_input})
        result = data.get('issueCreate') or {}
        if not result.get('success') or not result.get('issue'):
            raise GraphQLError("Issue creation was not acknowledged by Linear")
        return result['issue']

    def update_issue(self, issue_id: str, issue_input: Dict[str, Any]) -> Dict[str, Any]:
        query = f"""
            mutation UpdateIssue($id: String!, $input: IssueUpdateInput!) {{
                issueUpdate(id: $id, input: $input) {{
                    success
                    issue {{
                        {ISSUE_LIST_FIELDS}
                    }}
                }}
            }}
        """
        data = self.graphql._execute(query, {'id': issue_id, 'input': issue_input})
        result = data.get('issueUpdate') or {}
        if not result.get('success') or not result.get('issue'):
            raise GraphQLError(f"Update of {issue_id} was not acknowledged by Linear")
        return result['issue']

    # Teams

    def get_teams(self, first: int = 50, after: Optional[str] = None, order_by: Optional[str] = None) -> Dict[str, Any]:
        query = f"""
            query Teams($first: Int, $after: String, $orderBy: PaginationOrderBy) {{
                teams(first: $first, after: $after, orderBy: $orderBy) {{
                    nodes {{
                        {TEAM_FIELDS}
                    }}
                    {PAGE_INFO_FIELDS}
                }}
            }}
        """
        data = self.graphql._execute(query, _pagination_variables(first, after, order_by))
        return data.get('teams') or {'nodes': [], 'pageInfo': {}}

    def get_team(self, key: str) -> Dict[str, Any]:
        """Fetch a team by key (Linear accepts the key in place of the id)."""
        query = f"""
            query Team($key: String!) {{
                team(id: $key) {{
                    {TEAM_FIELDS}
                }}
            }}
        """
        data = self.graphql._execute(query, {'key': key})
        team = data.get('team')
        if not team:
            raise ResourceNotFoundError('team', key)
        return team

    def get_team_states(self, key: str) -> List[Dict[str, Any]]:
        query = """
            query TeamStates($key: String!) {
                team(id: $key) {
                    states {
                        nodes { id name type color description position }
                    }
                }
            }
        """
        data = self.graphql._execute(query, {'key': key})
        team = data.get('team')
        if not team:
            raise ResourceNotFoundError('team', key)
        return (team.get('states') or {}).get('nodes') or []

    def get_team_members(self, key: str) -> Dict[str, Any]:
        query = f"""
            query TeamMembers($key: String!) {{
                team(id: $key) {{
                    members {{
                        nodes {{
                            {USER_FIELDS}
                        }}
                        {PAGE_INFO_FIELDS}
                    }}
                }}
            }}
        """
        data = self.graphql._execute(query, {'key': key})
        team = data.get('team')
        if not team:
            raise ResourceNotFoundError('team', key)
        return team.get('members') or {'nodes': [], 'pageInfo': {}}

    # Projects

    def get_projects(
        self,
        filter: Optional[Dict[str, Any]] = None,
        first: int = 50,
        after: Optional[str] = None,
        order_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        query = f"""
            query Projects($filter: ProjectFilter, $first: Int, $after: String, $orderBy: PaginationOrderBy) {{
                projects(filter: $filter, first: $first, after: $after, orderBy: $orderBy) {{
                    nodes {{
                        {PROJECT_LIST_FIELDS}
                    }}
                    {PAGE_INFO_FIELDS}
                }}
            }}
        """
        variables = _pagination_variables(first, after, order_by)
        if filter:
            variables['filter'] = filter
        data = self.graphql._execute(query, variables)
        return data.get('projects') or {'nodes': [], 'pageInfo': {}}

    def get_project(self, project_id: str) -> Dict[str, Any]:
        query = f"""
            query Project($id: String!) {{
                project(id: $id) {{
                    {PROJECT_LIST_FIELDS}
                    health
                    completedAt
                    canceledAt
                    members {{ nodes {{ id name email }} }}
                    issues(first: 50) {{
                        nodes {{ id identifier title state {{ name type }} assignee {{ name }} }}
                    }}
                }}
            }}
        """
        data = self.graphql._execute(query, {'id': project_id})
        project = data.get('project')
        if not project:
            raise ResourceNotFoundError('project', project_id)
        return project

    # Comments

    def get_issue_comments(
        self,
        issue_id: str,
        first: int = 50,
        after: Optional[str] = None,
        order_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        query = f"""
            query IssueComments($id: String!, $first: Int, $after: String, $orderBy: PaginationOrderBy) {{
                issue(id: $id) {{
                    comments(first: $first, after: $after, orderBy: $orderBy) {{
                        nodes {{
                            {COMMENT_FIELDS}
                        }}
                        {PAGE_INFO_FIELDS}
                    }}
                }}
            }}
        """
        variables = _pagination_variables(first, after, order_by)
        variables['id'] = issue_id
        data = self.graphql._execute(query, variables)
        issue = data.get('issue')
        if not issue:
            raise ResourceNotFoundError('issue', issue_id)
        return issue.get('comments') or {'nodes': [], 'pageInfo': {}}

    def create_comment(self, issue_id: str, body: str) -> Dict[str, Any]:
        query = f"""
            mutation CreateComment($input: CommentCreateInput!) {{
                commentCreate(input: $input) {{
                    success
                    comment {{
                        {COMMENT_FIELDS}
                    }}
                }}
            }}
        """
        data = self.graphql._execute(query, {'input': {'issueId': issue_id, 'body': body}})
        result = data.get('commentCreate') or {}
        if not result.get('comment'):
            raise GraphQLError(f"Comment on {issue_id} was not acknowledged by Linear")
        return result['comment']


class ConfigLoader:
    """Load and validate linctl configuration."""

    VALID_OUTPUTS = [fmt.value for fmt in OutputFormat]

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config loader.

        Args:
            config_path: Path to linctl.yaml. If not provided, searches the
                current directory and up to 3 parent directories.
        """
        self.config_path = Path(config_path) if config_path else self._find_config_file()

    def _find_config_file(self) -> Path:
        """Find linctl.yaml in the current or up to 3 parent directories.

        Returns:
            Path to linctl.yaml, or the current-directory default if not found.
        """
        current_dir = Path.cwd()
        for directory in [current_dir, *list(current_dir.parents)[:3]]:
            config_file = directory / CONFIG_FILENAME
            if config_file.exists():
                return config_file
        return current_dir / CONFIG_FILENAME

    def get_config_dir(self) -> Path:
        """Directory containing (or that would contain) linctl.yaml."""
        return self.config_path.parent

    def load(self) -> Config:
        """Load and validate configuration from linctl.yaml.

        Raises:
            ConfigNotFoundError: If config file doesn't exist
            InvalidYAMLError: If YAML parsing fails
            InvalidFieldValueError: If field values are invalid
        """
        if not self.config_path.exists():
            raise ConfigNotFoundError(self.config_path)

        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidYAMLError(self.config_path, e)

        if not isinstance(data, dict):
            raise InvalidYAMLError(self.config_path, "top level must be a mapping")

        config = Config()

        if data.get('default_team') is not None:
            default_team = data['default_team']
            if not isinstance(default_team, str) or not default_team.strip():
                raise InvalidFieldValueError('default_team', default_team, ['a team key such as ENG'])
            config.default_team = default_team.strip()

        if 'output' in data:
            output = data['output']
            if output not in self.VALID_OUTPUTS:
                raise InvalidFieldValueError('output', output, self.VALID_OUTPUTS)
            config.output = output

        if 'page_size' in data:
            page_size = data['page_size']
            if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
                raise InvalidFieldValueError('page_size', page_size, ['a positive integer'])
            config.page_size = page_size

        if 'api_url' in data:
            api_url = data['api_url']
            if not isinstance(api_url, str) or not api_url.startswith(('https://', 'http://')):
                raise InvalidFieldValueError('api_url', api_url, ['an http(s) URL'])
            config.api_url = api_url

        logger.debug("Loaded configuration from %s: %s", self.config_path, config)
        return config

    def load_or_default(self) -> Config:
        """Load configuration, falling back to defaults when no file exists."""
        try:
            return self.load()
        except ConfigNotFoundError:
            return Config()

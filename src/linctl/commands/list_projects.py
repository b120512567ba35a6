"""Project listing command implementation."""

from typing import Dict, Any, Optional

from ..core import LinearClient
from ..models import PROJECT_POLICY, RawFilterInputs
from ..services import FilterComposer, normalize_sort_option


class ListProjectsCommand:
    """Lists projects using the project default policy.

    Projects share the six-month window and the completed/canceled exclusion
    with issues; their state is a plain string and team membership is
    matched through accessibleTeams.
    """

    def __init__(self, client: LinearClient, composer: Optional[FilterComposer] = None):
        self.client = client
        self.composer = composer or FilterComposer()

    def execute(self, inputs: RawFilterInputs, sort: Optional[str] = None, limit: int = 50) -> Dict[str, Any]:
        order_by = normalize_sort_option(sort)
        project_filter = self.composer.compose(inputs, PROJECT_POLICY)
        return self.client.get_projects(filter=project_filter, first=limit, order_by=order_by)

"""Issue listing and search command implementations."""

import logging
from typing import Dict, Any, Optional

from ..core import LinearClient
from ..models import ISSUE_POLICY, RawFilterInputs
from ..services import FilterComposer, normalize_sort_option

logger = logging.getLogger(__name__)


class ListIssuesCommand:
    """Lists issues with the composed filter and the issue default policy.

    Without --newer-than only issues from the last six months are returned,
    and completed/canceled issues are hidden unless --state or
    --include-completed says otherwise.
    """

    def __init__(self, client: LinearClient, composer: Optional[FilterComposer] = None):
        """Initialize the command.

        Args:
            client: Authenticated LinearClient instance
            composer: Filter composer; a default one reading the system clock
                is created when omitted
        """
        self.client = client
        self.composer = composer or FilterComposer()

    def execute(self, inputs: RawFilterInputs, sort: Optional[str] = None, limit: int = 50) -> Dict[str, Any]:
        """Execute the list command.

        Args:
            inputs: Raw filter flags
            sort: 'linear', 'created' or 'updated'
            limit: Maximum number of issues to fetch

        Returns:
            Dictionary with 'nodes' and 'pageInfo'

        Raises:
            InvalidSortOptionError: If sort is not recognised
            InvalidTimeExpressionError: If --newer-than is malformed
            GraphQLError: If the query fails
        """
        order_by = normalize_sort_option(sort)
        issue_filter = self.composer.compose(inputs, ISSUE_POLICY)
        return self.client.get_issues(filter=issue_filter, first=limit, order_by=order_by)


class SearchIssuesCommand(ListIssuesCommand):
    """Full-text issue search using the same filters as listing."""

    def execute(
        self,
        query: str,
        inputs: RawFilterInputs,
        sort: Optional[str] = None,
        limit: int = 50,
        include_archived: bool = False,
    ) -> Dict[str, Any]:
        """Execute the search command.

        Raises:
            ValueError: If the search query is empty
            InvalidSortOptionError: If sort is not recognised
            InvalidTimeExpressionError: If --newer-than is malformed
            GraphQLError: If the query fails
        """
        term = query.strip()
        if not term:
            raise ValueError("Search query is required")

        order_by = normalize_sort_option(sort)
        issue_filter = self.composer.compose(inputs, ISSUE_POLICY)
        logger.debug("Searching issues for %r", term)
        return self.client.search_issues(
            term,
            filter=issue_filter,
            first=limit,
            order_by=order_by,
            include_archived=include_archived,
        )

"""Services for linctl."""

from .filter_service import FilterComposer, normalize_sort_option
from .issue_service import IssueService

__all__ = ["FilterComposer", "IssueService", "normalize_sort_option"]

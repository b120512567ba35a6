"""Unit tests for filter composition and sort normalization."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from linctl.exceptions import InvalidSortOptionError, InvalidTimeExpressionError
from linctl.models import (
    ISSUE_POLICY,
    PROJECT_POLICY,
    RawFilterInputs,
    ResourceDefaultPolicy,
    ResourceKind,
)
from linctl.services.filter_service import FilterComposer, normalize_sort_option

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
SIX_MONTHS_AGO = datetime(2023, 12, 15, 12, 0, tzinfo=timezone.utc).isoformat()
DEFAULT_STATE_EXCLUSION = {"type": {"nin": ["completed", "canceled"]}}


class TestFilterComposerIssues:
    """Test cases for composing issue filters."""

    def setup_method(self):
        """Set up a composer with a fixed clock."""
        self.clock = Mock(return_value=NOW)
        self.composer = FilterComposer(clock=self.clock)

    def test_no_flags_applies_defaults(self):
        """Test the six-month window and completed/canceled exclusion."""
        result = self.composer.compose(RawFilterInputs(), ISSUE_POLICY)

        assert result == {
            "state": DEFAULT_STATE_EXCLUSION,
            "createdAt": {"gte": SIX_MONTHS_AGO},
        }

    def test_me_with_two_weeks_ago(self):
        inputs = RawFilterInputs(assignee="me", newer_than="2_weeks_ago")

        result = self.composer.compose(inputs, ISSUE_POLICY)

        assert result == {
            "assignee": {"isMe": {"eq": True}},
            "state": DEFAULT_STATE_EXCLUSION,
            "createdAt": {"gte": (NOW - timedelta(days=14)).isoformat()},
        }

    def test_all_time_omits_created_at(self):
        result = self.composer.compose(RawFilterInputs(newer_than="all_time"), ISSUE_POLICY)

        assert "createdAt" not in result
        assert result == {"state": DEFAULT_STATE_EXCLUSION}

    def test_explicit_state_suppresses_default_exclusion(self):
        result = self.composer.compose(RawFilterInputs(state="Done"), ISSUE_POLICY)

        assert result["state"] == {"name": {"eq": "Done"}}

    def test_explicit_state_wins_over_include_completed(self):
        inputs = RawFilterInputs(state="In Progress", include_completed=True)

        result = self.composer.compose(inputs, ISSUE_POLICY)

        assert result["state"] == {"name": {"eq": "In Progress"}}

    def test_include_completed_removes_state_predicate(self):
        result = self.composer.compose(RawFilterInputs(include_completed=True), ISSUE_POLICY)

        assert "state" not in result

    def test_unassigned(self):
        result = self.composer.compose(RawFilterInputs(assignee="unassigned"), ISSUE_POLICY)

        assert result["assignee"] == {"null": True}

    def test_assignee_tokens_are_case_insensitive(self):
        assert self.composer.compose(RawFilterInputs(assignee="ME"), ISSUE_POLICY)["assignee"] == {"isMe": {"eq": True}}
        assert self.composer.compose(RawFilterInputs(assignee="Unassigned"), ISSUE_POLICY)["assignee"] == {"null": True}

    def test_assignee_email(self):
        result = self.composer.compose(RawFilterInputs(assignee="jane@example.com"), ISSUE_POLICY)

        assert result["assignee"] == {"email": {"eq": "jane@example.com"}}

    def test_empty_assignee_is_absent(self):
        result = self.composer.compose(RawFilterInputs(assignee="  "), ISSUE_POLICY)

        assert "assignee" not in result

    def test_team(self):
        result = self.composer.compose(RawFilterInputs(team="ENG"), ISSUE_POLICY)

        assert result["team"] == {"key": {"eq": "ENG"}}

    def test_priority(self):
        result = self.composer.compose(RawFilterInputs(priority=1), ISSUE_POLICY)

        assert result["priority"] == {"eq": 1}

    def test_priority_zero_is_a_real_filter(self):
        result = self.composer.compose(RawFilterInputs(priority=0), ISSUE_POLICY)

        assert result["priority"] == {"eq": 0}

    def test_unset_priority_is_absent(self):
        result = self.composer.compose(RawFilterInputs(priority=-1), ISSUE_POLICY)

        assert "priority" not in result

    def test_all_dimensions_combined(self):
        inputs = RawFilterInputs(
            assignee="jane@example.com",
            state="Todo",
            team="ENG",
            priority=2,
            newer_than="2024-01-01",
        )

        result = self.composer.compose(inputs, ISSUE_POLICY)

        assert result == {
            "assignee": {"email": {"eq": "jane@example.com"}},
            "state": {"name": {"eq": "Todo"}},
            "team": {"key": {"eq": "ENG"}},
            "priority": {"eq": 2},
            "createdAt": {"gte": "2024-01-01T00:00:00+00:00"},
        }

    def test_invalid_time_expression_fails(self):
        inputs = RawFilterInputs(assignee="me", team="ENG", newer_than="not_a_time")

        with pytest.raises(InvalidTimeExpressionError) as exc_info:
            self.composer.compose(inputs, ISSUE_POLICY)

        assert exc_info.value.expression == "not_a_time"

    def test_clock_read_once_per_compose(self):
        self.composer.compose(RawFilterInputs(newer_than="1_day_ago"), ISSUE_POLICY)

        self.clock.assert_called_once_with()

    def test_default_window_uses_same_now(self):
        """Test that the policy default is resolved with the clock value of this call."""
        clock = Mock(side_effect=[NOW, NOW + timedelta(days=365)])
        composer = FilterComposer(clock=clock)

        result = composer.compose(RawFilterInputs(), ISSUE_POLICY)

        assert result["createdAt"] == {"gte": SIX_MONTHS_AGO}
        assert clock.call_count == 1

    def test_repeated_calls_are_deterministic(self):
        inputs = RawFilterInputs(assignee="me", newer_than="3_days_ago")

        assert self.composer.compose(inputs, ISSUE_POLICY) == self.composer.compose(inputs, ISSUE_POLICY)


class TestFilterComposerProjects:
    """Test cases for composing project filters."""

    def setup_method(self):
        """Set up a composer with a fixed clock."""
        self.composer = FilterComposer(clock=lambda: NOW)

    def test_project_defaults(self):
        result = self.composer.compose(RawFilterInputs(), PROJECT_POLICY)

        assert result == {
            "state": {"nin": ["completed", "canceled"]},
            "createdAt": {"gte": SIX_MONTHS_AGO},
        }

    def test_project_explicit_state(self):
        result = self.composer.compose(RawFilterInputs(state="started"), PROJECT_POLICY)

        assert result["state"] == {"eq": "started"}

    def test_project_team_uses_accessible_teams(self):
        result = self.composer.compose(RawFilterInputs(team="ENG"), PROJECT_POLICY)

        assert result["accessibleTeams"] == {"some": {"key": {"eq": "ENG"}}}
        assert "team" not in result

    def test_project_lead(self):
        result = self.composer.compose(RawFilterInputs(assignee="me"), PROJECT_POLICY)

        assert result["lead"] == {"isMe": {"eq": True}}
        assert "assignee" not in result

    def test_project_all_time_and_include_completed(self):
        inputs = RawFilterInputs(newer_than="all_time", include_completed=True)

        assert self.composer.compose(inputs, PROJECT_POLICY) == {}

    def test_custom_policy_default_window(self):
        policy = ResourceDefaultPolicy(kind=ResourceKind.ISSUE, default_time_expression="1_week_ago")

        result = self.composer.compose(RawFilterInputs(include_completed=True), policy)

        assert result == {"createdAt": {"gte": (NOW - timedelta(weeks=1)).isoformat()}}


class TestNormalizeSortOption:
    """Test cases for normalize_sort_option."""

    @pytest.mark.parametrize("option,expected", [
        (None, None),
        ("", None),
        ("linear", None),
        ("created", "createdAt"),
        ("createdAt", "createdAt"),
        ("updated", "updatedAt"),
        ("updatedAt", "updatedAt"),
    ])
    def test_valid_options(self, option, expected):
        assert normalize_sort_option(option) == expected

    def test_invalid_option_raises(self):
        with pytest.raises(InvalidSortOptionError) as exc_info:
            normalize_sort_option("priority")

        assert str(exc_info.value) == (
            "Invalid sort option: priority. Valid options are: linear, created, updated"
        )

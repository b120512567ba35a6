"""Custom exceptions for linctl."""


class LinctlError(Exception):
    """Base exception for all linctl errors."""
    pass


class AuthenticationError(LinctlError):
    """Base exception for authentication-related errors."""
    pass


class MissingTokenError(AuthenticationError):
    """Raised when no Linear API key can be found."""

    def __init__(self, credentials_path=None):
        self.credentials_path = credentials_path
        super().__init__(
            f"Linear API key not found.\n"
            f"Run 'linctl auth login' or set the LINEAR_API_KEY environment variable.\n"
            f"\n"
            f"To create a key:\n"
            f"1. Go to https://linear.app/settings/api\n"
            f"2. Create a new Personal API Key\n"
            f"3. Run 'linctl auth login' and paste it, or:\n"
            f"   export LINEAR_API_KEY='your_key_here'"
        )


class InvalidTokenError(AuthenticationError):
    """Raised when the Linear API key is rejected."""

    def __init__(self, error_message):
        super().__init__(
            f"Linear authentication failed: {error_message}\n"
            f"Please check that your API key is valid and has not been revoked.\n"
            f"You can create a new key at https://linear.app/settings/api"
        )


class ConfigError(LinctlError):
    """Base exception for configuration-related errors."""
    pass


class ConfigNotFoundError(ConfigError):
    """Raised when linctl.yaml is not found."""

    def __init__(self, config_path):
        self.config_path = config_path
        super().__init__(f"Configuration file not found: {config_path}")


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""
    pass


class InvalidYAMLError(ConfigError):
    """Raised when YAML parsing fails."""

    def __init__(self, config_path, original_error):
        self.config_path = config_path
        self.yaml_error = original_error
        super().__init__(
            f"Failed to parse YAML from {config_path}\n"
            f"Error: {original_error}"
        )


class InvalidFieldValueError(ConfigValidationError):
    """Raised when a configuration field has an invalid value."""

    def __init__(self, field_name, value, valid_options=None):
        self.field_name = field_name
        message = f"Invalid value for '{field_name}': {value}"
        if valid_options:
            message += f"\nValid options are: {', '.join(valid_options)}"
        super().__init__(message)


class GraphQLError(LinctlError):
    """Base exception for GraphQL-related errors."""
    pass


class ResourceNotFoundError(GraphQLError):
    """Raised when the API returns no entity for an identifier."""

    def __init__(self, resource, identifier):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource.capitalize()} not found: {identifier}")


class FilterError(LinctlError):
    """Base exception for invalid filter input."""
    pass


class InvalidTimeExpressionError(FilterError):
    """Raised when a time expression matches none of the accepted forms."""

    def __init__(self, expression, accepted_forms):
        self.expression = expression
        self.accepted_forms = list(accepted_forms)
        super().__init__(
            f"Invalid time expression: '{expression}'\n"
            f"Accepted forms: {', '.join(self.accepted_forms)}"
        )


class InvalidSortOptionError(FilterError):
    """Raised when a sort token is not recognised."""

    def __init__(self, option, valid_options):
        self.option = option
        self.valid_options = list(valid_options)
        super().__init__(
            f"Invalid sort option: {option}. "
            f"Valid options are: {', '.join(self.valid_options)}"
        )


class LookupFailedError(LinctlError):
    """Base exception for failed name-to-identity lookups."""
    pass


class UserNotFoundError(LookupFailedError):
    """Raised when no user matches an email or name."""

    def __init__(self, user):
        self.user = user
        super().__init__(f"User not found: {user}")


class StateNotFoundError(LookupFailedError):
    """Raised when a workflow state name does not exist for a team."""

    def __init__(self, state_name, available_states):
        self.state_name = state_name
        self.available_states = list(available_states)
        super().__init__(
            f"State '{state_name}' not found. "
            f"Available states: {', '.join(self.available_states)}"
        )

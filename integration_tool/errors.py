"""Errors raised by the integration tool."""


class IntegrationError(Exception):
    """Base class for every failure the CLI reports to the operator."""


class ConfigError(IntegrationError):
    """Configuration file or template is missing, malformed or incomplete."""


class RepositoryError(IntegrationError):
    """Repository directory does not exist or is not a git checkout."""


class PullRequestFetchError(IntegrationError):
    """A sub-PR could not be fetched from the code host."""

    def __init__(self, pr_number: int, reason: str):
        super().__init__(f"Failed to fetch PR #{pr_number}: {reason}")
        self.pr_number = pr_number


class PullRequestStateError(IntegrationError):
    """A sub-PR is not OPEN."""

    def __init__(self, pr_number: int, state: str):
        super().__init__(f"PR #{pr_number} is not in a valid state: {state}")
        self.pr_number = pr_number
        self.state = state


class BranchOperationError(IntegrationError):
    """A git command other than a content merge failed."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class MergeConflictError(BranchOperationError):
    """A merge stopped on conflicting content."""


class StateFileConflictError(IntegrationError):
    """A new run was requested while another one is still in progress."""


class StateFileError(IntegrationError):
    """Persisted state is missing or cannot be read."""

"""Data models for the integration tool."""

from .pull_request import PRState, PRAuthor, PullRequestRecord
from .orchestrator import (
    ALLOWED_TRANSITIONS,
    IntegrationPhase,
    IntegrationSession,
    PersistedState,
    MergeOutcome,
)

__all__ = [
    "PRState",
    "PRAuthor",
    "PullRequestRecord",
    "ALLOWED_TRANSITIONS",
    "IntegrationPhase",
    "IntegrationSession",
    "PersistedState",
    "MergeOutcome",
]

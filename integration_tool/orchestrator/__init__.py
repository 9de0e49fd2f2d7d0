"""Integration orchestration.

This module provides:
- IntegrationOrchestrator: Resumable state machine for one integration run
- MergeExecutor: Sequential `--no-ff` merges with a persisted resume point
- ensure_integration_branch: Idempotent release branch setup
- publish_integration_pull_request: Create or refresh the integration PR
"""

from .orchestrator import IntegrationOrchestrator, default_git_factory, default_hosting_factory
from .merge import MergeExecutor, RESUME_COMMAND
from .branch import ensure_integration_branch
from .publish import publish_integration_pull_request
from .validation import validate_pull_requests, validate_repository

__all__ = [
    "IntegrationOrchestrator",
    "default_git_factory",
    "default_hosting_factory",
    "MergeExecutor",
    "RESUME_COMMAND",
    "ensure_integration_branch",
    "publish_integration_pull_request",
    "validate_pull_requests",
    "validate_repository",
]

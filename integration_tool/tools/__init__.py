"""Backends and helpers used by the orchestrator."""

from .git_tool import CommandResult, GitBackend, GitTool, is_conflict
from .github_tool import GitHubTool, HostingBackend, parse_repository_slug
from .state_store import StateStore, FileStateStore, InMemoryStateStore
from .description import build_description, extract_tickets, render_description

__all__ = [
    "CommandResult",
    "GitBackend",
    "GitTool",
    "is_conflict",
    "GitHubTool",
    "HostingBackend",
    "parse_repository_slug",
    "StateStore",
    "FileStateStore",
    "InMemoryStateStore",
    "build_description",
    "extract_tickets",
    "render_description",
]

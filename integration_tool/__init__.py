"""GitHub integration tool: one integration PR out of many sub-PRs."""

__version__ = "1.0.0"

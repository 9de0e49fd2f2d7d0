"""Configuration for the integration tool."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .errors import ConfigError


DEFAULT_CONFIG_FILE = "config.json"
DEFAULT_STATE_FILE = ".integration-state.json"
DEFAULT_LOG_DIR = "Logs"

DESCRIPTION_PLACEHOLDER = "{0}"

DEFAULT_PR_TEMPLATE = """
## Summary:

{0}

## I Assert That:
- [x] The code meets the team's published code review policies
"""

# JSON key -> dataclass field
_FIELD_NAMES = {
    "team": "team",
    "repodirectory": "repo_directory",
    "pullrequesttemplate": "pull_request_template",
    "mainbranch": "main_branch",
    "title": "title",
    "releasename": "release_name",
    "pr": "pr",
    "pushtoorigin": "push_to_origin",
    "repository": "repository",
    "remote": "remote",
}


@dataclass
class IntegrationConfig:
    """Configuration of one integration run."""

    team: str = ""
    repo_directory: str = ""
    pull_request_template: str = ""  # Empty: built-in template
    main_branch: str = "main"
    release_name: str = ""
    title: str = ""                  # Empty: release name
    push_to_origin: bool = False
    pr: List[int] = field(default_factory=list)  # Merge order

    # Code host settings
    repository: str = ""             # owner/name, derived from the remote when empty
    remote: str = "origin"
    github_token: Optional[str] = field(default=None, repr=False)

    @property
    def pr_title(self) -> str:
        return self.title or self.release_name

    @classmethod
    def from_dict(cls, data: dict) -> "IntegrationConfig":
        """
        Build a config from a parsed JSON document.

        Keys are camelCase (`repoDirectory`, `releaseName`, ...) and matched
        case-insensitively. Unknown keys are ignored.

        Raises:
            ConfigError: If the document is not an object or a field has the wrong type
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")

        kwargs = {}
        for key, value in data.items():
            name = _FIELD_NAMES.get(str(key).lower())
            if name is None or value is None:
                continue
            kwargs[name] = value

        pr = kwargs.get("pr", [])
        if not isinstance(pr, list) or not all(
            isinstance(n, int) and not isinstance(n, bool) for n in pr
        ):
            raise ConfigError("pr must be a list of pull request numbers")
        if not isinstance(kwargs.get("push_to_origin", False), bool):
            raise ConfigError("pushToOrigin must be true or false")
        for name in ("team", "repo_directory", "pull_request_template", "main_branch",
                     "release_name", "title", "repository", "remote"):
            if name in kwargs and not isinstance(kwargs[name], str):
                raise ConfigError(f"{name} must be a string")

        config = cls(**kwargs)
        config.pr = list(pr)
        config.github_token = os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN")
        return config

    @classmethod
    def load(cls, path: Path) -> "IntegrationConfig":
        """Read and parse a JSON config file."""
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path.resolve()}")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse configuration file {path}: {e}") from e

        return cls.from_dict(data)

    def to_dict(self) -> dict:
        """Serialize in the config file's shape. The token is never written."""
        return {
            "team": self.team,
            "repoDirectory": self.repo_directory,
            "pullRequestTemplate": self.pull_request_template,
            "mainBranch": self.main_branch,
            "title": self.title,
            "releaseName": self.release_name,
            "pr": list(self.pr),
            "pushToOrigin": self.push_to_origin,
            "repository": self.repository,
            "remote": self.remote,
        }


def validate_config(config: IntegrationConfig) -> IntegrationConfig:
    """
    Check the required fields of a config.

    Returns:
        The same config

    Raises:
        ConfigError: Naming the first violated field
    """
    if not config.team.strip():
        raise ConfigError("team is required in configuration")
    if not config.release_name.strip():
        raise ConfigError("releaseName is required in configuration")
    if not config.pr:
        raise ConfigError("At least one PR number is required")
    if not config.repo_directory.strip():
        raise ConfigError("repoDirectory is required in configuration")
    if not config.main_branch.strip():
        raise ConfigError("mainBranch must not be empty")
    return config


def load_template(path: str) -> str:
    """
    Load the PR description template.

    An empty path selects the built-in template. The template must contain
    the `{0}` placeholder.
    """
    if not path:
        return DEFAULT_PR_TEMPLATE

    template_file = Path(path)
    if not template_file.is_file():
        raise ConfigError(f"Template file not found: {path}")

    template = template_file.read_text(encoding="utf-8")
    if DESCRIPTION_PLACEHOLDER not in template and "{}" not in template:
        raise ConfigError(f"Template {path} has no {DESCRIPTION_PLACEHOLDER} placeholder")
    return template

"""GitHub API wrapper for PR operations."""

import re
from typing import List, Optional, Protocol

from github import Auth, Github, GithubException
from github.PullRequest import PullRequest

from ..errors import ConfigError, PullRequestFetchError
from ..models import PRAuthor, PRState, PullRequestRecord
from ..utils import get_logger


_REMOTE_URL_PATTERN = re.compile(
    r"^(?:https?://[^/]+/|ssh://git@[^/]+/|git@[^:]+:)(?P<slug>[^/]+/[^/]+?)(?:\.git)?/?$"
)


class HostingBackend(Protocol):
    """Code-hosting operations the orchestrator needs."""

    def get_pull_request(self, number: int) -> PullRequestRecord: ...

    def list_pull_requests(self, head: str, base: str) -> List[PullRequestRecord]: ...

    def create_pull_request(
        self, title: str, body: str, base: str, head: str, draft: bool = True
    ) -> str: ...

    def edit_pull_request(self, number: int, body: str) -> None: ...


def parse_repository_slug(remote_url: str) -> str:
    """
    Extract `owner/name` from a git remote URL.

    Supports https, `git@host:owner/name.git` and `ssh://git@host/owner/name`.
    """
    match = _REMOTE_URL_PATTERN.match(remote_url.strip())
    if not match:
        raise ConfigError(f"Cannot determine GitHub repository from remote URL: {remote_url}")
    return match.group("slug")


def to_record(pr: PullRequest) -> PullRequestRecord:
    """Convert a PyGithub pull request into a PullRequestRecord."""
    if pr.merged:
        state = PRState.MERGED
    elif pr.state == "open":
        state = PRState.OPEN
    else:
        state = PRState.CLOSED

    user = pr.user
    author = PRAuthor(
        id=str(user.id) if user else "",
        login=user.login if user else "",
        name=(user.name or "") if user else "",
    )

    return PullRequestRecord(
        number=pr.number,
        title=pr.title or "",
        body=pr.body or "",
        state=state,
        head_ref=pr.head.ref,
        author=author,
        url=pr.html_url or "",
    )


class GitHubTool:
    """
    GitHub API wrapper for integration PR operations.

    Handles:
    - Fetching sub-PRs
    - Finding an existing integration PR
    - Creating and editing the integration PR
    """

    def __init__(self, repo: str, token: Optional[str] = None, client: Optional[Github] = None):
        """
        Initialize GitHub tool.

        Args:
            repo: Repository in format "owner/repo"
            token: GitHub token
            client: Preconfigured PyGithub client (token is ignored when given)
        """
        if client is None:
            if not token:
                raise ConfigError("GitHub token required. Set GITHUB_TOKEN env var.")
            client = Github(auth=Auth.Token(token))

        self.gh = client
        self.repo_name = repo
        self.repo = self.gh.get_repo(repo)
        self.logger = get_logger()

    def get_pull_request(self, number: int) -> PullRequestRecord:
        try:
            pr = self.repo.get_pull(number)
            return to_record(pr)
        except GithubException as e:
            raise PullRequestFetchError(number, str(e)) from e

    def list_pull_requests(self, head: str, base: str) -> List[PullRequestRecord]:
        """List open PRs from `head` (a branch of this repo) into `base`."""
        owner = self.repo_name.split("/", 1)[0]
        pulls = self.repo.get_pulls(state="open", head=f"{owner}:{head}", base=base)
        return [to_record(pr) for pr in pulls]

    def create_pull_request(
        self, title: str, body: str, base: str, head: str, draft: bool = True
    ) -> str:
        """Create a PR and return its URL."""
        pr = self.repo.create_pull(title=title, body=body, base=base, head=head, draft=draft)
        self.logger.info("Pull request created", extra={"data": {"number": pr.number, "url": pr.html_url}})
        return pr.html_url

    def edit_pull_request(self, number: int, body: str) -> None:
        self.repo.get_pull(number).edit(body=body)
        self.logger.info("Pull request body updated", extra={"data": {"number": number}})

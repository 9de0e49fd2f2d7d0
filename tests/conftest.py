"""Shared fixtures: fake git and code-hosting backends."""

from dataclasses import replace
from pathlib import Path
from typing import List

import pytest

from integration_tool.config import IntegrationConfig
from integration_tool.errors import BranchOperationError, PullRequestFetchError
from integration_tool.models import PRAuthor, PRState, PullRequestRecord
from integration_tool.orchestrator import IntegrationOrchestrator
from integration_tool.tools import CommandResult, InMemoryStateStore


RELEASE = "release/2024-06"


def make_pr(
    number: int,
    login: str = "amy",
    title: str = "",
    body: str = "",
    state: PRState = PRState.OPEN,
) -> PullRequestRecord:
    return PullRequestRecord(
        number=number,
        title=title or f"Change {number}",
        body=body,
        state=state,
        head_ref=f"feature-{number}",
        author=PRAuthor(id=f"id-{login}", login=login, name=login.title()),
        url=f"https://github.com/acme/payroll/pull/{number}",
    )


class FakeGit:
    """In-memory stand-in for GitTool. Branch heads are lists of commit names."""

    def __init__(self, local_branches=("main",), remote_branches=("main",), current="main"):
        self.heads = {b: ["c0"] for b in local_branches}
        self.remote_heads = {b: ["c0"] for b in remote_branches}
        self.current = current
        self.calls = []
        self.conflicts = set()
        self.merge_errors = {}
        self.fetch_errors = set()
        self.url = "git@github.com:acme/payroll.git"

    def branch_exists(self, name, remote=False):
        self.calls.append(("branch_exists", name, remote))
        return name in (self.remote_heads if remote else self.heads)

    def checkout(self, branch, create=False, start_point=None, track=False):
        self.calls.append(("checkout", branch, create, start_point, track))
        if create:
            if branch in self.heads:
                raise BranchOperationError(f"fatal: a branch named '{branch}' already exists")
            if start_point:
                self.heads[branch] = list(self.remote_heads[start_point.split("/", 1)[1]])
            else:
                self.heads[branch] = list(self.heads[self.current])
        elif branch not in self.heads:
            raise BranchOperationError(f"error: pathspec '{branch}' did not match any file(s)")
        self.current = branch

    def pull(self, remote, branch):
        self.calls.append(("pull", remote, branch))
        for commit in self.remote_heads.get(branch, []):
            if commit not in self.heads[self.current]:
                self.heads[self.current].append(commit)

    def fetch(self, remote, ref):
        self.calls.append(("fetch", remote, ref))
        if ref in self.fetch_errors:
            raise BranchOperationError(f"fatal: couldn't find remote ref {ref}")

    def merge(self, ref, no_ff=True, message=None):
        self.calls.append(("merge", ref, no_ff))
        if ref in self.conflicts:
            return CommandResult(
                args=["merge", ref],
                returncode=1,
                stdout="CONFLICT (content): Merge conflict in app.py\n"
                       "Automatic merge failed; fix conflicts and then commit the result.",
            )
        if ref in self.merge_errors:
            return CommandResult(args=["merge", ref], returncode=128, stderr=self.merge_errors[ref])
        self.heads[self.current].append(f"merge {ref}")
        return CommandResult(args=["merge", ref], returncode=0, stdout="Merge made by the 'ort' strategy.")

    def push(self, remote, ref):
        self.calls.append(("push", remote, ref))
        self.remote_heads[self.current] = list(self.heads[self.current])

    def current_branch(self):
        return self.current

    def remote_url(self, remote):
        return self.url

    @property
    def merge_attempts(self) -> List[str]:
        return [call[1] for call in self.calls if call[0] == "merge"]

    def merge_commits(self, branch: str) -> List[str]:
        return [c for c in self.heads[branch] if c.startswith("merge ")]

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)


class FakeHosting:
    """In-memory stand-in for GitHubTool."""

    def __init__(self, prs=()):
        self.prs = {pr.number: pr for pr in prs}
        self.integration_prs = []  # (record, base)
        self.created = []
        self.edits = []
        self.fetched = []

    def get_pull_request(self, number):
        self.fetched.append(number)
        if number not in self.prs:
            raise PullRequestFetchError(number, "Not Found")
        return self.prs[number]

    def list_pull_requests(self, head, base):
        return [pr for pr, pr_base in self.integration_prs if pr.head_ref == head and pr_base == base]

    def create_pull_request(self, title, body, base, head, draft=True):
        number = 9000 + len(self.integration_prs) + 1
        url = f"https://github.com/acme/payroll/pull/{number}"
        record = PullRequestRecord(
            number=number,
            title=title,
            body=body,
            state=PRState.OPEN,
            head_ref=head,
            author=PRAuthor(id="id-bot", login="integrator"),
            url=url,
        )
        self.integration_prs.append((record, base))
        self.created.append({"title": title, "body": body, "base": base, "head": head, "draft": draft})
        return url

    def edit_pull_request(self, number, body):
        self.edits.append((number, body))
        self.integration_prs = [
            (replace(pr, body=body) if pr.number == number else pr, base)
            for pr, base in self.integration_prs
        ]


@pytest.fixture
def repo_dir(tmp_path) -> Path:
    repo = tmp_path / "payroll"
    (repo / ".git").mkdir(parents=True)
    return repo


@pytest.fixture
def make_config(repo_dir):
    def _make(pr=(1, 2, 3), **overrides) -> IntegrationConfig:
        values = dict(
            team="payroll",
            repo_directory=str(repo_dir),
            release_name=RELEASE,
            pr=list(pr),
        )
        values.update(overrides)
        return IntegrationConfig(**values)
    return _make


@pytest.fixture
def git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def hosting() -> FakeHosting:
    return FakeHosting([make_pr(1, "bob"), make_pr(2, "amy"), make_pr(3, "bob")])


@pytest.fixture
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def orchestrator(store, git, hosting) -> IntegrationOrchestrator:
    return IntegrationOrchestrator(
        store,
        git_factory=lambda repo_dir, config: git,
        hosting_factory=lambda config, backend: hosting,
    )

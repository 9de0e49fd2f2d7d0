"""Sub-PR records fetched from the code host."""

from dataclasses import dataclass
from enum import Enum


class PRState(Enum):
    """Lifecycle state of a pull request."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    MERGED = "MERGED"


@dataclass(frozen=True)
class PRAuthor:
    """Author identity of a pull request."""
    id: str
    login: str
    name: str = ""


@dataclass(frozen=True)
class PullRequestRecord:
    """A pull request as seen when it was fetched. Fetched once per run."""
    number: int
    title: str
    body: str
    state: PRState
    head_ref: str
    author: PRAuthor
    url: str = ""

    @property
    def is_open(self) -> bool:
        return self.state == PRState.OPEN

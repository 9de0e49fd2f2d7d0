"""Data models for the integration state machine."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set

from ..config import IntegrationConfig
from ..errors import BranchOperationError, StateFileError
from .pull_request import PullRequestRecord


class IntegrationPhase(Enum):
    """Phase of an integration run."""
    IDLE = "idle"
    VALIDATING = "validating"
    BRANCH_READY = "branch_ready"
    MERGING = "merging"
    CONFLICT_PAUSED = "conflict_paused"  # Process exits; --continue resumes
    ALL_MERGED = "all_merged"
    PULL_REQUEST_READY = "pull_request_ready"
    DONE = "done"


# Resume enters MERGING straight from VALIDATING, the branch already exists.
ALLOWED_TRANSITIONS: Dict[IntegrationPhase, Set[IntegrationPhase]] = {
    IntegrationPhase.IDLE: {IntegrationPhase.VALIDATING},
    IntegrationPhase.VALIDATING: {IntegrationPhase.BRANCH_READY, IntegrationPhase.MERGING},
    IntegrationPhase.BRANCH_READY: {IntegrationPhase.MERGING},
    IntegrationPhase.MERGING: {IntegrationPhase.CONFLICT_PAUSED, IntegrationPhase.ALL_MERGED},
    IntegrationPhase.CONFLICT_PAUSED: set(),
    IntegrationPhase.ALL_MERGED: {IntegrationPhase.PULL_REQUEST_READY},
    IntegrationPhase.PULL_REQUEST_READY: {IntegrationPhase.DONE},
    IntegrationPhase.DONE: set(),
}


@dataclass
class IntegrationSession:
    """In-process state of one run."""
    config: IntegrationConfig
    prs: List[PullRequestRecord] = field(default_factory=list)
    next_pr_index: int = 0
    phase: IntegrationPhase = IntegrationPhase.IDLE
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    pull_request_url: Optional[str] = None

    def advance(self, phase: IntegrationPhase) -> None:
        """Move to `phase`, refusing transitions the state machine does not allow."""
        if phase not in ALLOWED_TRANSITIONS[self.phase]:
            raise ValueError(f"Illegal transition {self.phase.value} -> {phase.value}")
        self.phase = phase

    @property
    def remaining_prs(self) -> List[PullRequestRecord]:
        return self.prs[self.next_pr_index:]

    @property
    def is_paused(self) -> bool:
        return self.phase == IntegrationPhase.CONFLICT_PAUSED

    @property
    def is_done(self) -> bool:
        return self.phase == IntegrationPhase.DONE


@dataclass
class PersistedState:
    """Durable resume point: the config and the first PR not merged yet."""
    config: IntegrationConfig
    next_pr_index: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "config": self.config.to_dict(),
            "nextPrIndex": self.next_pr_index,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PersistedState":
        """Parse a state document, accepting the older `currentPrIndex` key."""
        if not isinstance(data, dict) or "config" not in data:
            raise StateFileError("Invalid state file: missing config")

        index = data.get("nextPrIndex", data.get("currentPrIndex"))
        if not isinstance(index, int) or isinstance(index, bool) or index < 0:
            raise StateFileError(f"Invalid state file: bad PR index {index!r}")

        timestamp = datetime.now(timezone.utc)
        if data.get("timestamp"):
            try:
                timestamp = datetime.fromisoformat(data["timestamp"])
            except (TypeError, ValueError) as e:
                raise StateFileError(f"Invalid state file: bad timestamp ({e})") from e

        return cls(
            config=IntegrationConfig.from_dict(data["config"]),
            next_pr_index=index,
            timestamp=timestamp,
        )


@dataclass
class MergeOutcome:
    """Result of a sequential merge pass."""
    next_pr_index: int
    merged: List[int] = field(default_factory=list)
    failed_pr: Optional[int] = None
    error: Optional[BranchOperationError] = None

    @property
    def paused(self) -> bool:
        return self.failed_pr is not None

"""Integration orchestrator: the resumable merge state machine."""

from pathlib import Path
from typing import Callable, Optional, Tuple

from ..config import IntegrationConfig, load_template, validate_config
from ..errors import BranchOperationError, StateFileConflictError, StateFileError
from ..models import IntegrationPhase, IntegrationSession
from ..tools import (
    GitBackend,
    GitHubTool,
    GitTool,
    HostingBackend,
    StateStore,
    build_description,
    parse_repository_slug,
    render_description,
)
from ..utils import get_logger
from .branch import ensure_integration_branch
from .merge import MergeExecutor, RESUME_COMMAND
from .publish import publish_integration_pull_request
from .validation import validate_pull_requests, validate_repository


GitFactory = Callable[[Path, IntegrationConfig], GitBackend]
HostingFactory = Callable[[IntegrationConfig, GitBackend], HostingBackend]


def default_git_factory(repo_dir: Path, config: IntegrationConfig) -> GitBackend:
    return GitTool(repo_dir, remote=config.remote)


def default_hosting_factory(config: IntegrationConfig, git: GitBackend) -> HostingBackend:
    """Connect to GitHub, deriving owner/name from the remote when not configured."""
    repository = config.repository or parse_repository_slug(git.remote_url(config.remote))
    return GitHubTool(repository, token=config.github_token)


class IntegrationOrchestrator:
    """
    Builds one integration branch out of several sub-PRs.

    Phases:
        IDLE -> VALIDATING -> BRANCH_READY -> MERGING
             -> CONFLICT_PAUSED (process exits, `--continue` resumes)
             -> ALL_MERGED -> PULL_REQUEST_READY -> DONE

    Only one integration may be in progress per state store: `start`
    refuses while a persisted state exists and the state is deleted only
    once the run reaches DONE.
    """

    def __init__(
        self,
        state_store: StateStore,
        git_factory: Optional[GitFactory] = None,
        hosting_factory: Optional[HostingFactory] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            state_store: Single-slot store for the resume point
            git_factory: Builds the git backend for a validated checkout
            hosting_factory: Builds the code-hosting backend
        """
        self.state_store = state_store
        self.git_factory = git_factory or default_git_factory
        self.hosting_factory = hosting_factory or default_hosting_factory
        self.logger = get_logger()

    def start_from_file(self, config_file: Path) -> IntegrationSession:
        """Start a new integration from a JSON config file."""
        self._ensure_idle()
        return self.start(IntegrationConfig.load(config_file))

    def start(self, config: IntegrationConfig) -> IntegrationSession:
        """
        Start a new integration.

        Returns:
            The session, either DONE or CONFLICT_PAUSED

        Raises:
            StateFileConflictError: If another integration is in progress
            IntegrationError: On any failure before the merge loop; nothing
                is persisted in that case
        """
        self._ensure_idle()

        session = IntegrationSession(config=config)
        self.logger.info(
            "Starting integration session",
            extra={"data": {"session_id": session.session_id, "release": config.release_name}},
        )
        session.advance(IntegrationPhase.VALIDATING)

        validate_config(config)
        print(f"Starting integration for team: {config.team}")
        print(f"Release name: {config.release_name}")
        print(f"PRs to merge: {', '.join(str(n) for n in config.pr)}")

        template = load_template(config.pull_request_template)
        git, hosting = self._connect(config)
        session.prs = validate_pull_requests(hosting, config.pr)

        ensure_integration_branch(git, config.release_name, config.main_branch, config.remote)
        session.advance(IntegrationPhase.BRANCH_READY)

        return self._merge_and_publish(session, git, hosting, template)

    def resume(self) -> IntegrationSession:
        """
        Resume a paused integration at its persisted PR index.

        The operator is expected to have resolved the failure and committed
        on the integration branch.

        Raises:
            StateFileError: If there is no readable persisted state
        """
        state = self.state_store.load()
        if state is None:
            raise StateFileError("No integration state found. Nothing to continue.")

        config = validate_config(state.config)
        if state.next_pr_index > len(config.pr):
            raise StateFileError(
                f"Invalid state file: PR index {state.next_pr_index} exceeds {len(config.pr)} PRs"
            )

        session = IntegrationSession(config=config, next_pr_index=state.next_pr_index)
        self.logger.info(
            "Resuming integration",
            extra={"data": {
                "session_id": session.session_id,
                "next_pr_index": state.next_pr_index,
                "remaining": config.pr[state.next_pr_index:],
            }},
        )
        session.advance(IntegrationPhase.VALIDATING)

        print(f"Continuing integration from PR index: {state.next_pr_index}")
        print(f"Remaining PRs: {', '.join(str(n) for n in config.pr[state.next_pr_index:])}")

        template = load_template(config.pull_request_template)
        git, hosting = self._connect(config)
        session.prs = validate_pull_requests(hosting, config.pr)

        current = git.current_branch()
        if current != config.release_name:
            raise BranchOperationError(
                f"Expected branch '{config.release_name}' to be checked out but found '{current}'. "
                f"Check out '{config.release_name}' and run {RESUME_COMMAND} again."
            )

        return self._merge_and_publish(session, git, hosting, template)

    def _ensure_idle(self) -> None:
        if self.state_store.exists():
            self.logger.warning("Found existing state file")
            raise StateFileConflictError(
                "An integration is already in progress. Resolve it and run "
                f"{RESUME_COMMAND}, or delete the state file to start over."
            )

    def _connect(self, config: IntegrationConfig) -> Tuple[GitBackend, HostingBackend]:
        repo_dir = validate_repository(config.repo_directory)
        git = self.git_factory(repo_dir, config)
        return git, self.hosting_factory(config, git)

    def _merge_and_publish(
        self,
        session: IntegrationSession,
        git: GitBackend,
        hosting: HostingBackend,
        template: str,
    ) -> IntegrationSession:
        executor = MergeExecutor(git, self.state_store, session.config)
        executor.save_state(session.next_pr_index)
        session.advance(IntegrationPhase.MERGING)

        outcome = executor.merge_sequentially(session.prs, session.next_pr_index)
        session.next_pr_index = outcome.next_pr_index
        if outcome.paused:
            session.advance(IntegrationPhase.CONFLICT_PAUSED)
            self.logger.warning(
                "Integration paused",
                extra={"data": {"session_id": session.session_id, "failed_pr": outcome.failed_pr}},
            )
            return session

        session.advance(IntegrationPhase.ALL_MERGED)

        description = render_description(template, build_description(session.prs))
        session.pull_request_url = publish_integration_pull_request(git, hosting, session.config, description)
        session.advance(IntegrationPhase.PULL_REQUEST_READY)

        self.state_store.delete()
        self.logger.info("State file cleaned up")
        session.advance(IntegrationPhase.DONE)
        self.logger.info("Integration completed", extra={"data": {"session_id": session.session_id}})
        return session

"""Merge executor for the integration branch."""

from typing import List

from ..config import IntegrationConfig
from ..errors import BranchOperationError, MergeConflictError
from ..models import MergeOutcome, PersistedState, PullRequestRecord
from ..tools import GitBackend, StateStore, is_conflict
from ..utils import get_logger


RESUME_COMMAND = "gh-integration-tool --continue"


class MergeExecutor:
    """
    Merges sub-PRs into the current branch, one `--no-ff` merge per PR.

    The resume point is saved after every attempt: past the PR on success,
    at the PR on failure so it is retried rather than skipped.
    """

    def __init__(
        self,
        git: GitBackend,
        state_store: StateStore,
        config: IntegrationConfig
    ):
        """
        Initialize merge executor.

        Args:
            git: Backend bound to the repository checkout
            state_store: Where the resume point is saved
            config: Configuration saved along with the resume point
        """
        self.git = git
        self.state_store = state_store
        self.config = config
        self.logger = get_logger()

    def save_state(self, next_pr_index: int) -> None:
        self.state_store.save(PersistedState(config=self.config, next_pr_index=next_pr_index))
        self.logger.debug("Integration state saved", extra={"data": {"next_pr_index": next_pr_index}})

    def merge(self, pr: PullRequestRecord) -> None:
        """
        Fetch and merge a single PR head.

        Raises:
            MergeConflictError: If the merge stopped on conflicting content
            BranchOperationError: If fetching or merging failed otherwise
        """
        remote = self.config.remote
        self.git.fetch(remote, pr.head_ref)

        result = self.git.merge(
            f"{remote}/{pr.head_ref}",
            no_ff=True,
            message=f"Merge pull request #{pr.number} from {pr.head_ref}",
        )
        if result.success:
            return

        if is_conflict(result):
            raise MergeConflictError(f"Merge conflict in PR #{pr.number}", output=result.output)
        raise BranchOperationError(
            f"Merge of PR #{pr.number} failed: {result.output}", output=result.output
        )

    def merge_sequentially(self, prs: List[PullRequestRecord], start_index: int = 0) -> MergeOutcome:
        """
        Merge `prs[start_index:]` in order.

        Args:
            prs: Validated PRs in merge order
            start_index: First PR not merged yet

        Returns:
            MergeOutcome; `paused` is set when a PR failed and the operator
            must resolve it before resuming
        """
        if not 0 <= start_index <= len(prs):
            raise ValueError(f"start_index {start_index} outside 0..{len(prs)}")

        self.logger.info(
            "Starting PR merge process",
            extra={"data": {"start_index": start_index, "total": len(prs)}},
        )
        outcome = MergeOutcome(next_pr_index=start_index)

        for i in range(start_index, len(prs)):
            pr = prs[i]
            self.logger.info(
                "Merging PR",
                extra={"data": {"pr_number": pr.number, "index": i, "head_ref": pr.head_ref}},
            )
            print(f"\nMerging PR #{pr.number} ({i + 1}/{len(prs)})...")

            try:
                self.merge(pr)
            except BranchOperationError as e:
                self.save_state(i)
                outcome.next_pr_index = i
                outcome.failed_pr = pr.number
                outcome.error = e
                self.logger.error(
                    "Failed to merge PR",
                    extra={"data": {"pr_number": pr.number, "index": i, "error": str(e)}},
                )
                self._print_resume_guidance(pr, e)
                return outcome

            self.save_state(i + 1)
            outcome.next_pr_index = i + 1
            outcome.merged.append(pr.number)
            self.logger.info("PR merged", extra={"data": {"pr_number": pr.number}})
            print(f"  Merged PR #{pr.number}")

        self.logger.info("All PRs merged", extra={"data": {"merged": outcome.merged}})
        return outcome

    def _print_resume_guidance(self, pr: PullRequestRecord, error: BranchOperationError) -> None:
        print(f"  Failed to merge PR #{pr.number}: {error}")
        if isinstance(error, MergeConflictError):
            print("\nMerge conflict detected!")
            print("Please resolve the conflicts manually, commit the merge and then run:")
        else:
            print("\nGit reported an error. Fix the repository state manually and then run:")
        print(f"  {RESUME_COMMAND}")
        print(f"PR #{pr.number} will be merged again first.")

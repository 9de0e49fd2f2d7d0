"""Tests for the integration state machine.

Testing approach:
- Client-perspective behavior verification
- Given-When-Then structure
- Minimal mocking (only the git and GitHub backends are faked)
"""

import pytest

from integration_tool.errors import (
    BranchOperationError,
    ConfigError,
    MergeConflictError,
    PullRequestFetchError,
    PullRequestStateError,
    RepositoryError,
    StateFileConflictError,
    StateFileError,
)
from integration_tool.models import IntegrationPhase, PersistedState, PRState
from integration_tool.orchestrator import IntegrationOrchestrator

from conftest import RELEASE, FakeHosting, make_pr


class TestFullRun:
    """A run without conflicts."""

    def test_merges_prs_in_configured_order(self, orchestrator, git, store, make_config):
        """Given PRs listed as 3, 1, 2, should merge them in exactly that order."""
        # Given
        config = make_config(pr=[3, 1, 2])

        # When
        session = orchestrator.start(config)

        # Then
        assert session.phase == IntegrationPhase.DONE
        assert git.merge_attempts == ["origin/feature-3", "origin/feature-1", "origin/feature-2"]

    def test_one_merge_commit_per_pr_and_state_deleted(self, orchestrator, git, store, make_config):
        """Given N PRs without conflicts, should create N merge commits and clear the state."""
        # When
        session = orchestrator.start(make_config(pr=[1, 2, 3]))

        # Then
        assert len(git.merge_commits(RELEASE)) == 3
        assert session.next_pr_index == 3
        assert not store.exists()
        assert store.saves == 4  # Initial cursor plus one per merge

    def test_merges_are_non_fast_forward(self, orchestrator, git, make_config):
        """Every merge should request a merge commit."""
        # When
        orchestrator.start(make_config())

        # Then
        merges = [call for call in git.calls if call[0] == "merge"]
        assert merges and all(no_ff for _, _, no_ff in merges)

    def test_creates_draft_pr_with_grouped_description(self, orchestrator, git, hosting, make_config):
        """Given pushToOrigin, should push and open one draft PR into main."""
        # Given
        config = make_config(push_to_origin=True)

        # When
        session = orchestrator.start(config)

        # Then
        assert ("push", "origin", "HEAD") in git.calls
        assert len(hosting.created) == 1
        created = hosting.created[0]
        assert created["title"] == RELEASE
        assert created["base"] == "main"
        assert created["head"] == RELEASE
        assert created["draft"] is True
        assert "@amy\n- #2: N/A\n@bob\n- #1: N/A\n- #3: N/A" in created["body"]
        assert session.pull_request_url == "https://github.com/acme/payroll/pull/9001"

    def test_without_push_creates_no_pr(self, orchestrator, git, hosting, store, make_config):
        """Given pushToOrigin false, should finish without pushing or creating a PR."""
        # When
        session = orchestrator.start(make_config(push_to_origin=False))

        # Then
        assert session.is_done
        assert not git.called("push")
        assert hosting.created == []
        assert session.pull_request_url is None
        assert not store.exists()


class TestConflictPause:
    """Pausing on a failed merge and resuming."""

    @pytest.mark.parametrize("k", [0, 1, 2])
    def test_conflict_persists_failed_index(self, orchestrator, git, store, make_config, k):
        """Given merge k conflicts, persisted cursor should equal k."""
        # Given
        git.conflicts.add(f"origin/feature-{k + 1}")

        # When
        session = orchestrator.start(make_config(pr=[1, 2, 3]))

        # Then
        assert session.phase == IntegrationPhase.CONFLICT_PAUSED
        assert store.load().next_pr_index == k
        assert len(git.merge_attempts) == k + 1
        assert len(git.merge_commits(RELEASE)) == k

    def test_conflict_prints_resume_guidance(self, orchestrator, git, make_config, capsys):
        """On a conflict, operator should be told to resolve and run --continue."""
        # Given
        git.conflicts.add("origin/feature-2")

        # When
        orchestrator.start(make_config())

        # Then
        out = capsys.readouterr().out
        assert "Merge conflict detected" in out
        assert "gh-integration-tool --continue" in out

    def test_resume_retries_failed_pr_first(self, orchestrator, git, store, make_config):
        """After a conflict on PR index 1, resume should merge that PR again before the next."""
        # Given - paused at index 1
        git.conflicts.add("origin/feature-2")
        orchestrator.start(make_config(pr=[1, 2, 3]))
        attempts_before = len(git.merge_attempts)

        # When - operator resolves and continues
        git.conflicts.clear()
        session = orchestrator.resume()

        # Then
        assert git.merge_attempts[attempts_before:] == ["origin/feature-2", "origin/feature-3"]
        assert session.is_done
        assert not store.exists()

    def test_second_conflict_on_resume_pauses_again(self, orchestrator, git, store, make_config):
        """A PR that still fails on resume should keep the cursor on it."""
        # Given
        git.conflicts.add("origin/feature-2")
        orchestrator.start(make_config())

        # When - operator did not resolve
        session = orchestrator.resume()

        # Then
        assert session.is_paused
        assert store.load().next_pr_index == 1

    def test_fetch_failure_pauses_like_conflict(self, orchestrator, git, store, make_config):
        """A failed fetch inside the loop should pause at that PR, not abort the run."""
        # Given
        git.fetch_errors.add("feature-3")

        # When
        session = orchestrator.start(make_config())

        # Then
        assert session.is_paused
        assert store.load().next_pr_index == 2

    def test_non_conflict_merge_error_pauses(self, orchestrator, git, store, make_config):
        """A merge error without conflict markers should also pause at that PR."""
        # Given
        git.merge_errors["origin/feature-1"] = "fatal: refusing to merge unrelated histories"

        # When
        session = orchestrator.start(make_config())

        # Then
        assert session.is_paused
        assert store.load().next_pr_index == 0


class TestSingleFlight:
    """Only one integration may be in progress."""

    def test_start_refused_while_state_exists(self, orchestrator, git, hosting, store, make_config):
        """Given a persisted state, start should raise and leave the state untouched."""
        # Given
        store.save(PersistedState(config=make_config(pr=[7, 8]), next_pr_index=1))
        before = store.raw

        # When/Then
        with pytest.raises(StateFileConflictError):
            orchestrator.start(make_config())

        assert store.raw == before
        assert git.calls == []
        assert hosting.fetched == []

    def test_start_from_file_refused_before_reading_config(self, orchestrator, store, make_config, tmp_path):
        """Refusal should not depend on the config file being valid."""
        # Given
        store.save(PersistedState(config=make_config(), next_pr_index=0))

        # When/Then
        with pytest.raises(StateFileConflictError):
            orchestrator.start_from_file(tmp_path / "missing.json")


class TestValidationFailures:
    """Failures before any branch work."""

    @pytest.mark.parametrize("position", [0, 1, 2])
    @pytest.mark.parametrize("state", [PRState.CLOSED, PRState.MERGED])
    def test_non_open_pr_aborts_before_branch_work(self, store, git, make_config, position, state):
        """Given a CLOSED or MERGED PR at any position, nothing should be checked out or merged."""
        # Given
        prs = [make_pr(1), make_pr(2), make_pr(3)]
        prs[position] = make_pr(position + 1, state=state)
        hosting = FakeHosting(prs)
        orchestrator = IntegrationOrchestrator(
            store, git_factory=lambda d, c: git, hosting_factory=lambda c, g: hosting
        )

        # When/Then
        with pytest.raises(PullRequestStateError) as exc_info:
            orchestrator.start(make_config(pr=[1, 2, 3]))

        assert exc_info.value.pr_number == position + 1
        assert not git.called("checkout")
        assert not git.called("merge")
        assert not store.exists()

    def test_missing_pr_raises_fetch_error(self, orchestrator, git, store, make_config):
        """Given an unknown PR number, should fail before branch work."""
        # When/Then
        with pytest.raises(PullRequestFetchError):
            orchestrator.start(make_config(pr=[1, 404]))

        assert not git.called("checkout")
        assert not store.exists()

    @pytest.mark.parametrize("field,value", [
        ("team", ""),
        ("release_name", "  "),
        ("repo_directory", ""),
        ("pr", []),
    ])
    def test_incomplete_config_raises_config_error(self, orchestrator, git, store, make_config, field, value):
        """Given a missing required field, should raise ConfigError and touch nothing."""
        # When/Then
        with pytest.raises(ConfigError):
            orchestrator.start(make_config(**{field: value}))

        assert git.calls == []
        assert not store.exists()

    def test_invalid_repository_raises(self, orchestrator, store, make_config, tmp_path):
        """Given a directory without .git, should raise RepositoryError."""
        # Given
        plain = tmp_path / "plain"
        plain.mkdir()

        # When/Then
        with pytest.raises(RepositoryError):
            orchestrator.start(make_config(repo_directory=str(plain)))

        assert not store.exists()

    def test_branch_setup_failure_persists_nothing(self, orchestrator, git, store, make_config):
        """Given the main branch cannot be checked out, no state should be written."""
        # Given
        git.heads.pop("main")

        # When/Then
        with pytest.raises(BranchOperationError):
            orchestrator.start(make_config())

        assert not store.exists()


class TestResume:
    """Resuming from persisted state."""

    def test_resume_without_state_raises(self, orchestrator):
        """Given no persisted state, resume should raise StateFileError."""
        with pytest.raises(StateFileError):
            orchestrator.resume()

    def test_resume_on_wrong_branch_keeps_state(self, orchestrator, git, store, make_config):
        """Given the checkout is not on the release branch, resume should refuse."""
        # Given
        git.conflicts.add("origin/feature-2")
        orchestrator.start(make_config())
        git.current = "main"
        before = store.raw

        # When/Then
        with pytest.raises(BranchOperationError):
            orchestrator.resume()

        assert store.raw == before

    def test_resume_at_end_only_publishes(self, orchestrator, git, hosting, store, make_config):
        """Given every PR merged but publishing failed, resume should only publish."""
        # Given
        config = make_config(push_to_origin=True)
        git.heads[RELEASE] = ["c0"]
        git.current = RELEASE
        store.save(PersistedState(config=config, next_pr_index=3))

        # When
        session = orchestrator.resume()

        # Then
        assert git.merge_attempts == []
        assert len(hosting.created) == 1
        assert session.is_done
        assert not store.exists()

    def test_resume_rejects_out_of_range_index(self, orchestrator, store, make_config):
        """Given a cursor past the PR list, resume should raise StateFileError."""
        # Given
        store.save(PersistedState(config=make_config(pr=[1, 2]), next_pr_index=5))

        # When/Then
        with pytest.raises(StateFileError):
            orchestrator.resume()


class TestMergeConflictClassification:
    """The error carried by a paused outcome."""

    def test_conflict_is_reported_as_merge_conflict(self, git, store, make_config):
        """A merge reporting CONFLICT should yield MergeConflictError."""
        from integration_tool.orchestrator import MergeExecutor

        # Given
        git.conflicts.add("origin/feature-1")
        executor = MergeExecutor(git, store, make_config())

        # When
        outcome = executor.merge_sequentially([make_pr(1), make_pr(2)], 0)

        # Then
        assert outcome.paused
        assert outcome.failed_pr == 1
        assert isinstance(outcome.error, MergeConflictError)

    def test_other_failures_are_branch_operation_errors(self, git, store, make_config):
        """A fetch failure should yield a plain BranchOperationError."""
        from integration_tool.orchestrator import MergeExecutor

        # Given
        git.fetch_errors.add("feature-2")
        executor = MergeExecutor(git, store, make_config())

        # When
        outcome = executor.merge_sequentially([make_pr(1), make_pr(2)], 0)

        # Then
        assert outcome.merged == [1]
        assert outcome.next_pr_index == 1
        assert type(outcome.error) is BranchOperationError

    def test_start_index_out_of_range_raises(self, git, store, make_config):
        """A start index beyond the list violates the cursor invariant."""
        from integration_tool.orchestrator import MergeExecutor

        executor = MergeExecutor(git, store, make_config())
        with pytest.raises(ValueError):
            executor.merge_sequentially([make_pr(1)], 2)

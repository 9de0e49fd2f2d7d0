"""Integration branch setup."""

from ..tools import GitBackend
from ..utils import get_logger


def ensure_integration_branch(
    git: GitBackend,
    release_name: str,
    main_branch: str,
    remote: str = "origin",
) -> None:
    """
    Check out the release branch, creating it only if it exists nowhere.

    1. Local branch: check it out, then pull if the remote has it too.
    2. Remote only: create a local branch tracking the remote one.
    3. Neither: update the main branch and branch off it.

    Re-running never creates a second branch or extra commits.

    Raises:
        BranchOperationError: If any git command fails
    """
    logger = get_logger()

    local_exists = git.branch_exists(release_name, remote=False)
    remote_exists = git.branch_exists(release_name, remote=True)
    logger.info(
        "Branch existence check completed",
        extra={"data": {"branch": release_name, "local": local_exists, "remote": remote_exists}},
    )

    if local_exists:
        print(f"Branch '{release_name}' already exists locally. Checking out to it...")
        git.checkout(release_name)
        if remote_exists:
            print(f"Pulling latest changes from {remote}/{release_name}...")
            git.pull(remote, release_name)
    elif remote_exists:
        print(f"Branch '{release_name}' exists on {remote}. Creating local tracking branch...")
        git.fetch(remote, release_name)
        git.checkout(release_name, create=True, start_point=f"{remote}/{release_name}", track=True)
    else:
        print(f"Creating new branch '{release_name}' from '{main_branch}'...")
        git.checkout(main_branch)
        git.pull(remote, main_branch)
        git.checkout(release_name, create=True)

    logger.info("Integration branch ready", extra={"data": {"branch": release_name}})

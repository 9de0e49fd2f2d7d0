"""Pre-flight checks run before any branch is touched."""

from pathlib import Path
from typing import List

from ..errors import PullRequestStateError, RepositoryError
from ..models import PullRequestRecord
from ..tools import HostingBackend
from ..utils import get_logger


def validate_repository(path: str) -> Path:
    """
    Check that `path` is an existing git checkout.

    Args:
        path: Repository directory from the config

    Returns:
        Absolute path of the checkout

    Raises:
        RepositoryError: If the directory or its `.git` entry is missing
    """
    logger = get_logger()

    if not path or not path.strip():
        raise RepositoryError("repoDirectory is required in configuration")

    directory = Path(path).expanduser()
    if not directory.is_dir():
        logger.error("Repository directory does not exist", extra={"data": {"repo_directory": path}})
        raise RepositoryError(f"Repository directory does not exist: {path}")

    # .git is a file in worktrees and submodules
    if not (directory / ".git").exists():
        logger.error("Directory is not a git repository", extra={"data": {"repo_directory": path}})
        raise RepositoryError(f"Directory is not a git repository: {path}")

    resolved = directory.resolve()
    logger.info("Repository directory validated", extra={"data": {"repo_directory": str(resolved)}})
    return resolved


def validate_pull_requests(hosting: HostingBackend, numbers: List[int]) -> List[PullRequestRecord]:
    """
    Fetch every sub-PR and require it to be OPEN.

    Fails on the first bad PR; nothing is returned for the others.

    Returns:
        Records in input order (this is the merge order)

    Raises:
        PullRequestFetchError: If a PR cannot be fetched
        PullRequestStateError: If a PR is closed or merged
    """
    logger = get_logger()
    logger.info("Validating PR numbers", extra={"data": {"pr_numbers": list(numbers)}})
    print("Validating PR numbers...")

    records = []
    for number in numbers:
        record = hosting.get_pull_request(number)

        if not record.is_open:
            logger.error(
                "PR is not in valid state",
                extra={"data": {"pr_number": number, "state": record.state.value}},
            )
            raise PullRequestStateError(number, record.state.value)

        records.append(record)
        logger.info("PR validated", extra={"data": {"pr_number": number, "title": record.title}})
        print(f"  PR #{number} is valid ({record.title})")

    return records

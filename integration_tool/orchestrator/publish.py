"""Publishing the integration pull request."""

from typing import Optional

from ..config import IntegrationConfig
from ..tools import GitBackend, HostingBackend
from ..utils import get_logger


def publish_integration_pull_request(
    git: GitBackend,
    hosting: HostingBackend,
    config: IntegrationConfig,
    description: str,
) -> Optional[str]:
    """
    Push the integration branch and create or refresh its PR.

    Does nothing unless `push_to_origin` is set. An open PR from the current
    branch into the main branch is reused; its body is edited only when it
    differs from `description`. Otherwise a draft PR is created.

    Returns:
        URL of the integration PR, or None when pushing is disabled
    """
    logger = get_logger()

    if not config.push_to_origin:
        logger.info("Skipping push to origin as configured")
        print("Skipping push to origin. No pull request will be created.")
        return None

    print("\nCreating integration pull request...")
    git.push(config.remote, "HEAD")
    branch = git.current_branch()

    existing = [pr for pr in hosting.list_pull_requests(head=branch, base=config.main_branch) if pr.is_open]
    if existing:
        pr = existing[0]
        logger.info("Pull request already exists", extra={"data": {"number": pr.number, "url": pr.url}})
        print(f"Pull request already exists: #{pr.number}")

        if pr.body != description:
            print("Updating existing pull request description...")
            hosting.edit_pull_request(pr.number, description)

        print(f"PR URL: {pr.url}")
        return pr.url

    url = hosting.create_pull_request(
        title=config.pr_title,
        body=description,
        base=config.main_branch,
        head=branch,
        draft=True,
    )
    logger.info("Pull request created", extra={"data": {"url": url}})
    print("Pull request created successfully!")
    print(f"PR URL: {url}")
    return url

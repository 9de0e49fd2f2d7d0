"""Aggregated description of the sub-PRs in an integration PR."""

import re
from collections import defaultdict
from typing import Dict, List

from ..config import DESCRIPTION_PLACEHOLDER
from ..errors import ConfigError
from ..models import PullRequestRecord


TICKET_PATTERN = re.compile(r"[A-Z]+-\d+")
NO_TICKETS = "N/A"


def extract_tickets(title: str, body: str) -> List[str]:
    """
    Find ticket identifiers such as ENI-1542.

    The title is scanned before the body; duplicates keep their first position.
    """
    found = TICKET_PATTERN.findall(title or "") + TICKET_PATTERN.findall(body or "")
    return list(dict.fromkeys(found))


def build_description(prs: List[PullRequestRecord]) -> str:
    """
    Group PRs by author login and list the tickets of each PR.

    Authors are sorted by login; PRs keep their input (merge) order within
    an author. Example:

        @amy
        - #20153: N/A
        @bob
        - #20362: ENI-1542
    """
    by_author: Dict[str, List[PullRequestRecord]] = defaultdict(list)
    for pr in prs:
        by_author[pr.author.login].append(pr)

    lines = []
    for login in sorted(by_author):
        lines.append(f"@{login}")
        for pr in by_author[login]:
            tickets = extract_tickets(pr.title, pr.body)
            lines.append(f"- #{pr.number}: {', '.join(tickets) or NO_TICKETS}")

    return "\n".join(lines) + "\n" if lines else ""


def render_description(template: str, description: str) -> str:
    """Substitute `description` at the template's placeholder."""
    for placeholder in (DESCRIPTION_PLACEHOLDER, "{}"):
        if placeholder in template:
            return template.replace(placeholder, description, 1)
    raise ConfigError(f"Template has no {DESCRIPTION_PLACEHOLDER} placeholder")

"""Git wrapper for the local checkout."""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol

from ..errors import BranchOperationError
from ..utils import get_logger


@dataclass
class CommandResult:
    """Captured result of one git invocation."""
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout and stderr together, for diagnostics."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


class GitBackend(Protocol):
    """Version-control operations the orchestrator needs."""

    def branch_exists(self, name: str, remote: bool = False) -> bool: ...

    def checkout(
        self,
        branch: str,
        create: bool = False,
        start_point: Optional[str] = None,
        track: bool = False,
    ) -> None: ...

    def pull(self, remote: str, branch: str) -> None: ...

    def fetch(self, remote: str, ref: str) -> None: ...

    def merge(self, ref: str, no_ff: bool = True, message: Optional[str] = None) -> CommandResult: ...

    def push(self, remote: str, ref: str) -> None: ...

    def current_branch(self) -> str: ...

    def remote_url(self, remote: str) -> str: ...


class GitTool:
    """
    Runs git as a subprocess inside a repository checkout.

    Every call blocks until git exits; output is captured, not streamed.
    Failures of commands other than `merge` raise BranchOperationError
    carrying git's diagnostic text.
    """

    def __init__(self, repo_dir: Path, remote: str = "origin", git: str = "git"):
        """
        Initialize git tool.

        Args:
            repo_dir: Working directory for every git command
            remote: Remote used for existence checks
            git: Git executable
        """
        self.repo_dir = Path(repo_dir)
        self.remote = remote
        self.git = git
        self.logger = get_logger()

    def run(self, *args: str, check: bool = True) -> CommandResult:
        """
        Run a git command.

        Args:
            *args: Arguments after `git`
            check: Raise BranchOperationError on a non-zero exit

        Returns:
            CommandResult with trimmed output
        """
        cmd = [self.git, *args]
        self.logger.debug("Executing git command", extra={"data": {"args": list(args)}})

        try:
            proc = subprocess.run(
                cmd,
                cwd=str(self.repo_dir),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise BranchOperationError(f"Could not run {' '.join(cmd)}: {e}") from e

        result = CommandResult(
            args=list(args),
            returncode=proc.returncode,
            stdout=proc.stdout.strip(),
            stderr=proc.stderr.strip(),
        )

        if not result.success:
            self.logger.debug(
                "Git command failed",
                extra={"data": {"args": list(args), "exit_code": result.returncode, "error": result.stderr}},
            )
            if check:
                raise BranchOperationError(
                    f"Command failed: git {' '.join(args)}\n{result.output}",
                    output=result.output,
                )

        return result

    def branch_exists(self, name: str, remote: bool = False) -> bool:
        """Check whether `name` exists locally or on the remote."""
        if remote:
            result = self.run("ls-remote", "--exit-code", "--heads", self.remote,
                              f"refs/heads/{name}", check=False)
            exists = result.success and bool(result.stdout)
        else:
            result = self.run("show-ref", "--verify", "--quiet", f"refs/heads/{name}", check=False)
            exists = result.success

        self.logger.debug(
            "Branch existence check",
            extra={"data": {"branch": name, "remote": remote, "exists": exists}},
        )
        return exists

    def checkout(
        self,
        branch: str,
        create: bool = False,
        start_point: Optional[str] = None,
        track: bool = False,
    ) -> None:
        args = ["checkout"]
        if create:
            args += ["-b", branch]
            if track:
                args.append("--track")
            if start_point:
                args.append(start_point)
        else:
            args.append(branch)
        self.run(*args)

    def pull(self, remote: str, branch: str) -> None:
        self.run("pull", "--no-edit", remote, branch)

    def fetch(self, remote: str, ref: str) -> None:
        # Explicit refspec so remote-tracking refs exist even in single-branch clones
        self.run("fetch", remote, f"+refs/heads/{ref}:refs/remotes/{remote}/{ref}")

    def merge(self, ref: str, no_ff: bool = True, message: Optional[str] = None) -> CommandResult:
        """
        Merge `ref` into the current branch.

        Does not raise on failure: a conflict leaves the working tree
        mid-merge and the caller decides what to do.
        """
        args = ["merge", "--no-edit"]
        if no_ff:
            args.append("--no-ff")
        if message:
            args += ["-m", message]
        args.append(ref)
        return self.run(*args, check=False)

    def push(self, remote: str, ref: str) -> None:
        self.run("push", remote, ref)

    def current_branch(self) -> str:
        return self.run("rev-parse", "--abbrev-ref", "HEAD").stdout

    def head_commit(self) -> str:
        return self.run("rev-parse", "HEAD").stdout

    def remote_url(self, remote: str) -> str:
        return self.run("remote", "get-url", remote).stdout


def is_conflict(result: CommandResult) -> bool:
    """True if a failed merge stopped on conflicting content."""
    return "CONFLICT" in result.output or "Automatic merge failed" in result.output

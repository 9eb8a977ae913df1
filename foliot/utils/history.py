"""
Git history for the Foliot data directory.

Snapshots are optional: the data directory works the same whether or not it
is a git repository, and whether or not git is installed.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from ..core.exceptions import HistoryError

logger = logging.getLogger(__name__)


class GitHistory:
    """Runs git commands inside the data directory."""

    def __init__(self, repo_dir: Path, binary: str = "git"):
        """
        Initialize the history collaborator.

        Args:
            repo_dir: Directory git runs in (the data directory)
            binary: Name or path of the git executable
        """
        self.repo_dir = Path(repo_dir)
        self.binary = binary

    def is_available(self) -> bool:
        """Check if the git binary can be found."""
        return shutil.which(self.binary) is not None

    def run(self, args: List[str]) -> int:
        """
        Run git with the given arguments, attached to the terminal.

        Returns:
            The exit code of git

        Raises:
            HistoryError: If the git binary cannot be started
        """
        command = [self.binary, "-C", str(self.repo_dir), *args]
        logger.debug("Running %s", command)
        try:
            completed = subprocess.run(command, check=False)
        except OSError as e:
            raise HistoryError(f"Unable to run {self.binary}: {e}") from e
        return completed.returncode

    def commit(self, namespace: str, action: str) -> None:
        """Commit all tracked changes with a "[namespace] action" message."""
        self._run_checked(["commit", "-am", commit_message(namespace, action)])

    def pull(self) -> None:
        """Pull and rebase onto the upstream branch."""
        self._run_checked(["pull", "--rebase"])

    def push(self) -> None:
        """Push to the upstream branch."""
        self._run_checked(["push"])

    def snapshot(self, namespace: str, action: str, push: bool = False) -> None:
        """
        Commit the data directory, optionally syncing with the remote.

        Raises:
            HistoryError: If git is missing or any step fails
        """
        if not self.is_available():
            raise HistoryError(f"git binary '{self.binary}' not found")

        self.commit(namespace, action)
        if push:
            self.pull()
            self.push()

    def _run_checked(self, args: List[str]) -> None:
        returncode = self.run(args)
        if returncode != 0:
            raise HistoryError(f"git {' '.join(args)} exited with code {returncode}")


def commit_message(namespace: str, action: str) -> str:
    """Build the commit message for a snapshot."""
    return f"[{namespace}] {action}"


def describe_command(name: str, *parts: Optional[str]) -> str:
    """Render a command and its non-empty arguments for a commit message."""
    return " ".join([name, *(part for part in parts if part)])

"""
Tests for git history snapshots (foliot.utils.history).
"""

from pathlib import Path
from typing import List
from unittest.mock import Mock, call, patch

import pytest

from foliot.core.exceptions import HistoryError
from foliot.utils.history import GitHistory, commit_message, describe_command


def _completed(returncode: int = 0) -> Mock:
    """Build a stand-in for subprocess.CompletedProcess."""
    completed = Mock()
    completed.returncode = returncode
    return completed


@pytest.fixture
def history(temp_dir: Path) -> GitHistory:
    """Provide a history collaborator on the temporary directory."""
    return GitHistory(temp_dir)


class TestGitHistory:
    """Test cases for GitHistory class."""

    @patch("foliot.utils.history.subprocess.run")
    def test_run_in_data_directory(self, mock_run: Mock, history: GitHistory, temp_dir: Path) -> None:
        """Test that git runs with -C pointing at the data directory."""
        # Arrange
        mock_run.return_value = _completed(0)

        # Act
        returncode = history.run(["status", "--short"])

        # Assert
        assert returncode == 0
        mock_run.assert_called_once_with(
            ["git", "-C", str(temp_dir), "status", "--short"], check=False
        )

    @patch("foliot.utils.history.subprocess.run")
    def test_run_missing_binary(self, mock_run: Mock, history: GitHistory) -> None:
        """Test that a binary that cannot start raises HistoryError."""
        mock_run.side_effect = FileNotFoundError("git")

        with pytest.raises(HistoryError):
            history.run(["status"])

    @patch("foliot.utils.history.shutil.which", return_value="/usr/bin/git")
    @patch("foliot.utils.history.subprocess.run")
    def test_snapshot_commit_only(self, mock_run: Mock, mock_which: Mock, history: GitHistory) -> None:
        """Test a snapshot without push commits once."""
        mock_run.return_value = _completed(0)

        history.snapshot("work", "clockin")

        (args,), _ = mock_run.call_args
        assert args[3:] == ["commit", "-am", "[work] clockin"]
        assert mock_run.call_count == 1

    @patch("foliot.utils.history.shutil.which", return_value="/usr/bin/git")
    @patch("foliot.utils.history.subprocess.run")
    def test_snapshot_with_push(self, mock_run: Mock, mock_which: Mock, history: GitHistory, temp_dir: Path) -> None:
        """Test that push pulls with rebase before pushing."""
        mock_run.return_value = _completed(0)

        history.snapshot("work", "clockout", push=True)

        base: List[str] = ["git", "-C", str(temp_dir)]
        assert mock_run.call_args_list == [
            call([*base, "commit", "-am", "[work] clockout"], check=False),
            call([*base, "pull", "--rebase"], check=False),
            call([*base, "push"], check=False),
        ]

    @patch("foliot.utils.history.shutil.which", return_value="/usr/bin/git")
    @patch("foliot.utils.history.subprocess.run")
    def test_snapshot_stops_on_failure(self, mock_run: Mock, mock_which: Mock, history: GitHistory) -> None:
        """Test that a failing commit skips pull and push."""
        mock_run.return_value = _completed(1)

        with pytest.raises(HistoryError) as exc_info:
            history.snapshot("work", "abort", push=True)

        assert "exited with code 1" in str(exc_info.value)
        assert mock_run.call_count == 1

    @patch("foliot.utils.history.shutil.which", return_value=None)
    @patch("foliot.utils.history.subprocess.run")
    def test_snapshot_without_git(self, mock_run: Mock, mock_which: Mock, history: GitHistory) -> None:
        """Test that a missing git binary is reported without running anything."""
        with pytest.raises(HistoryError) as exc_info:
            history.snapshot("work", "clockin")

        assert "not found" in str(exc_info.value)
        mock_run.assert_not_called()

    def test_custom_binary(self, temp_dir: Path) -> None:
        """Test that the configured binary is used."""
        history = GitHistory(temp_dir, binary="/opt/git/bin/git")

        with patch("foliot.utils.history.shutil.which", return_value=None) as mock_which:
            assert history.is_available() is False

        mock_which.assert_called_once_with("/opt/git/bin/git")


class TestMessages:
    """Test cases for commit message helpers."""

    def test_commit_message(self) -> None:
        """Test the namespace prefix."""
        assert commit_message("work", "clockout") == "[work] clockout"

    def test_describe_command_skips_empty_parts(self) -> None:
        """Test that missing arguments are left out."""
        assert describe_command("clock", None, "2.5", '"review"') == 'clock 2.5 "review"'
        assert describe_command("clockin", None) == "clockin"

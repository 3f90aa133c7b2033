"""Test main CLI functionality."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

from typer.testing import CliRunner

from gh_triage.ai.llm import LlmResult
from gh_triage.cli.main import app
from gh_triage.github_client.models import IssueSnapshot

runner = CliRunner()


def test_version_command() -> None:
    """Test version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "gh-triage v" in result.stdout


class TestNormalizeCommand:
    """Test the normalize command."""

    def test_prints_canonical_analysis(self, tmp_path: Path) -> None:
        """Test a legacy payload is printed in canonical form."""
        raw = tmp_path / "response.json"
        raw.write_text(json.dumps({"classification": "enhancement", "tone": "aggressive"}))

        result = runner.invoke(app, ["normalize", str(raw), "--issue-number", "3"])

        assert result.exit_code == 0
        assert '"feature"' in result.stdout
        assert '"hostile"' in result.stdout

    def test_rejects_unusable_payload(self, tmp_path: Path) -> None:
        """Test a payload without classification or sentiment fails."""
        raw = tmp_path / "response.json"
        raw.write_text('{"duplicate": true}')

        result = runner.invoke(app, ["normalize", str(raw)])

        assert result.exit_code == 1
        assert "Normalization failed" in result.stdout


class TestTriageCommand:
    """Test the triage command."""

    def _mock_client(self) -> Mock:
        client = Mock()
        client.get_issue.return_value = IssueSnapshot(
            number=7,
            title="Crash when saving settings",
            body="The app crashes with a stack trace every time I press save.",
            author="octocat",
        )
        client.get_recent_issues.return_value = []
        client.has_comment_with_prefix.return_value = False
        client.get_readme.return_value = None
        return client

    def test_dry_run_prints_planned_writes(self) -> None:
        """Test dry run records writes instead of applying them."""
        client = self._mock_client()
        llm = AsyncMock()
        llm.generate_json.return_value = LlmResult(
            raw_text=json.dumps(
                {
                    "classification": {"type": "bug", "confidence": 0.95},
                    "sentiment": {"tone": "neutral", "confidence": 0.9},
                }
            )
        )

        with (
            patch("gh_triage.github_client.GitHubClient", return_value=client),
            patch("gh_triage.ai.llm.create_llm_gateway", return_value=llm),
        ):
            result = runner.invoke(
                app, ["triage", "-r", "octo/widgets", "-i", "7", "--dry-run"]
            )

        assert result.exit_code == 0
        assert "add_labels" in result.stdout
        assert "kind/bug" in result.stdout
        client.add_labels.assert_not_called()

    def test_reports_applied_and_skipped_counts(self) -> None:
        """Test a comment skipped by the history check is not counted as applied."""
        client = self._mock_client()
        client.get_issue.return_value = IssueSnapshot(
            number=12,
            title="How do I configure the database?",
            body="I need a clear setup checklist to run this project locally.",
            author="octocat",
        )
        client.has_comment_with_prefix.return_value = True
        llm = AsyncMock()
        llm.generate_json.return_value = LlmResult(
            raw_text=json.dumps(
                {
                    "classification": {"type": "question", "confidence": 0.95},
                    "sentiment": {"tone": "neutral", "confidence": 0.9},
                    "suggestedResponse": "- Check the README setup section",
                }
            )
        )

        with (
            patch("gh_triage.github_client.GitHubClient", return_value=client),
            patch("gh_triage.ai.llm.create_llm_gateway", return_value=llm),
        ):
            result = runner.invoke(app, ["triage", "-r", "octo/widgets", "-i", "12"])

        assert result.exit_code == 0
        assert "Applied actions: 1" in result.stdout
        assert "Skipped actions: 1" in result.stdout
        client.add_labels.assert_called_once_with("octo/widgets", 12, ["kind/question"])
        client.create_comment.assert_not_called()

    def test_skipped_triage_exits_nonzero(self) -> None:
        """Test an unavailable model is reported as a failure."""
        client = self._mock_client()
        llm = AsyncMock()
        llm.generate_json.return_value = LlmResult(raw_text="oops")

        with (
            patch("gh_triage.github_client.GitHubClient", return_value=client),
            patch("gh_triage.ai.llm.create_llm_gateway", return_value=llm),
        ):
            result = runner.invoke(app, ["triage", "-r", "octo/widgets", "-i", "7"])

        assert result.exit_code == 1
        assert "ai_unavailable" in result.stdout

    def test_missing_token(self) -> None:
        """Test configuration errors are printed, not raised."""
        with patch(
            "gh_triage.github_client.GitHubClient",
            side_effect=ValueError("GitHub token is required"),
        ):
            result = runner.invoke(app, ["triage", "-r", "octo/widgets", "-i", "7"])

        assert result.exit_code == 1
        assert "GitHub token is required" in result.stdout

"""GitHub API client using PyGitHub."""

import logging
import os

from github import Github
from github.GithubException import GithubException, UnknownObjectException
from github.Repository import Repository

from .models import IssueSnapshot, RecentIssueSummary

logger = logging.getLogger(__name__)


class GitHubClient:
    """Synchronous GitHub client covering the reads and writes triage needs."""

    def __init__(self, token: str | None = None):
        """Initialize GitHub client with authentication.

        Args:
            token: GitHub personal access token. If None, reads from
                GITHUB_TOKEN env var.
        """
        self.token = token or os.getenv("GITHUB_TOKEN")
        if not self.token:
            raise ValueError(
                "GitHub token is required. Set GITHUB_TOKEN environment variable."
            )

        self.github = Github(self.token)
        self._check_rate_limit()

    def _check_rate_limit(self) -> None:
        """Log a warning when the core rate limit is nearly exhausted."""
        try:
            remaining = self.github.get_rate_limit().core.remaining
        except GithubException as e:
            logger.warning("Could not check rate limit: %s", e)
            return

        logger.debug("GitHub API rate limit: %s requests remaining", remaining)
        if remaining < 10:
            logger.warning("GitHub API rate limit low: %s requests remaining", remaining)

    def get_repository(self, repository_full_name: str) -> Repository:
        """Get repository object."""
        try:
            return self.github.get_repo(repository_full_name)
        except UnknownObjectException:
            raise ValueError(f"Repository {repository_full_name} not found")

    def get_issue(self, repository_full_name: str, issue_number: int) -> IssueSnapshot:
        """Fetch the current state of an issue."""
        repository = self.get_repository(repository_full_name)
        try:
            issue = repository.get_issue(issue_number)
        except UnknownObjectException:
            raise ValueError(
                f"Issue #{issue_number} not found in {repository_full_name}"
            )
        return IssueSnapshot(
            number=issue.number,
            title=issue.title,
            body=issue.body or "",
            labels=tuple(label.name for label in issue.labels),
            author=issue.user.login if issue.user else None,
        )

    def add_labels(
        self, repository_full_name: str, issue_number: int, labels: list[str]
    ) -> None:
        """Add labels to an issue, keeping the ones already present.

        Raises:
            ValueError: If repository or issue not found
            GithubException: For other API errors
        """
        try:
            issue = self.get_repository(repository_full_name).get_issue(issue_number)
            issue.add_to_labels(*labels)
        except UnknownObjectException:
            raise ValueError(
                f"Issue #{issue_number} not found in {repository_full_name}"
            )
        logger.info("Added labels %s to issue #%s", labels, issue_number)

    def remove_label(
        self, repository_full_name: str, issue_number: int, label: str
    ) -> None:
        """Remove one label. A label that is already gone is not an error."""
        issue = self.get_repository(repository_full_name).get_issue(issue_number)
        try:
            issue.remove_from_labels(label)
        except UnknownObjectException:
            logger.debug("Label %s not present on issue #%s", label, issue_number)
            return
        logger.info("Removed label %s from issue #%s", label, issue_number)

    def create_comment(
        self, repository_full_name: str, issue_number: int, body: str
    ) -> None:
        """Add a comment to an issue.

        Raises:
            ValueError: If repository or issue not found
            GithubException: For other API errors
        """
        try:
            issue = self.get_repository(repository_full_name).get_issue(issue_number)
            issue.create_comment(body)
        except UnknownObjectException:
            raise ValueError(
                f"Issue #{issue_number} not found in {repository_full_name}"
            )
        logger.info("Added comment to issue #%s", issue_number)

    def get_recent_issues(
        self, repository_full_name: str, limit: int
    ) -> list[RecentIssueSummary]:
        """List the newest open issues, skipping pull requests."""
        repository = self.get_repository(repository_full_name)
        results: list[RecentIssueSummary] = []
        for issue in repository.get_issues(
            state="open", sort="created", direction="desc"
        ):
            if len(results) >= limit:
                break
            if issue.pull_request is not None:
                continue
            results.append(
                RecentIssueSummary(
                    number=issue.number,
                    title=issue.title,
                    labels=[label.name for label in issue.labels],
                    state=issue.state,
                )
            )
        return results

    def has_comment_with_prefix(
        self,
        repository_full_name: str,
        issue_number: int,
        body_prefix: str,
        author_login: str | None = None,
    ) -> bool:
        """Check whether a comment starting with body_prefix already exists."""
        issue = self.get_repository(repository_full_name).get_issue(issue_number)
        for comment in issue.get_comments():
            if author_login and (
                comment.user is None or comment.user.login != author_login
            ):
                continue
            if (comment.body or "").startswith(body_prefix):
                return True
        return False

    def get_readme(self, repository_full_name: str) -> str | None:
        """Return the decoded README, or None when the repository has none."""
        repository = self.get_repository(repository_full_name)
        try:
            readme = repository.get_readme()
        except UnknownObjectException:
            return None
        return readme.decoded_content.decode("utf-8", errors="replace")

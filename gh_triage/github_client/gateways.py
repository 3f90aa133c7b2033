"""Async gateways the triage pipeline talks to, and their GitHub implementations.

The blocking PyGithub client runs in a worker thread for every call.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from github.GithubException import GithubException

from ..errors import GovernanceWriteError
from .client import GitHubClient
from .models import RecentIssueSummary, RepositoryContext

logger = logging.getLogger(__name__)


class GovernanceGateway(Protocol):
    """Label and comment mutations on an issue."""

    async def add_labels(
        self, repository_full_name: str, issue_number: int, labels: list[str]
    ) -> None: ...

    async def remove_label(
        self, repository_full_name: str, issue_number: int, label: str
    ) -> None: ...

    async def create_comment(
        self, repository_full_name: str, issue_number: int, body: str
    ) -> None: ...

    async def log_validated_issue(
        self, repository_full_name: str, issue_number: int
    ) -> None: ...


class IssueHistoryGateway(Protocol):
    """Read access to prior issues and comments."""

    async def find_recent_issues(
        self, repository_full_name: str, limit: int
    ) -> list[RecentIssueSummary]: ...

    async def has_issue_comment_with_prefix(
        self,
        repository_full_name: str,
        issue_number: int,
        body_prefix: str,
        author_login: str | None = None,
    ) -> bool: ...


class RepositoryContextGateway(Protocol):
    async def find_repository_context(
        self, repository_full_name: str
    ) -> RepositoryContext: ...


class GitHubGovernanceGateway:
    """Writes through the GitHub API; any rejection becomes GovernanceWriteError."""

    def __init__(self, client: GitHubClient):
        self.client = client

    async def _write(self, description: str, func, *args) -> None:
        try:
            await asyncio.to_thread(func, *args)
        except (GithubException, ValueError) as e:
            raise GovernanceWriteError(f"GitHub rejected {description}: {e}") from e

    async def add_labels(
        self, repository_full_name: str, issue_number: int, labels: list[str]
    ) -> None:
        await self._write(
            f"adding labels {labels} to #{issue_number}",
            self.client.add_labels,
            repository_full_name,
            issue_number,
            labels,
        )

    async def remove_label(
        self, repository_full_name: str, issue_number: int, label: str
    ) -> None:
        await self._write(
            f"removing label {label} from #{issue_number}",
            self.client.remove_label,
            repository_full_name,
            issue_number,
            label,
        )

    async def create_comment(
        self, repository_full_name: str, issue_number: int, body: str
    ) -> None:
        await self._write(
            f"comment on #{issue_number}",
            self.client.create_comment,
            repository_full_name,
            issue_number,
            body,
        )

    async def log_validated_issue(
        self, repository_full_name: str, issue_number: int
    ) -> None:
        logger.info("Issue %s#%s passed validation", repository_full_name, issue_number)


class GitHubIssueHistoryGateway:
    def __init__(self, client: GitHubClient):
        self.client = client

    async def find_recent_issues(
        self, repository_full_name: str, limit: int
    ) -> list[RecentIssueSummary]:
        return await asyncio.to_thread(
            self.client.get_recent_issues, repository_full_name, limit
        )

    async def has_issue_comment_with_prefix(
        self,
        repository_full_name: str,
        issue_number: int,
        body_prefix: str,
        author_login: str | None = None,
    ) -> bool:
        return await asyncio.to_thread(
            self.client.has_comment_with_prefix,
            repository_full_name,
            issue_number,
            body_prefix,
            author_login,
        )


class GitHubRepositoryContextGateway:
    def __init__(self, client: GitHubClient):
        self.client = client

    async def find_repository_context(
        self, repository_full_name: str
    ) -> RepositoryContext:
        readme = await asyncio.to_thread(self.client.get_readme, repository_full_name)
        return RepositoryContext(readme=readme)


@dataclass
class RecordedWrite:
    operation: str
    repository_full_name: str
    issue_number: int
    detail: str


@dataclass
class RecordingGovernanceGateway:
    """Collects writes instead of performing them, for dry runs."""

    writes: list[RecordedWrite] = field(default_factory=list)

    async def add_labels(
        self, repository_full_name: str, issue_number: int, labels: list[str]
    ) -> None:
        self.writes.append(
            RecordedWrite("add_labels", repository_full_name, issue_number, ", ".join(labels))
        )

    async def remove_label(
        self, repository_full_name: str, issue_number: int, label: str
    ) -> None:
        self.writes.append(
            RecordedWrite("remove_label", repository_full_name, issue_number, label)
        )

    async def create_comment(
        self, repository_full_name: str, issue_number: int, body: str
    ) -> None:
        self.writes.append(
            RecordedWrite("create_comment", repository_full_name, issue_number, body)
        )

    async def log_validated_issue(
        self, repository_full_name: str, issue_number: int
    ) -> None:
        self.writes.append(
            RecordedWrite("log_validated_issue", repository_full_name, issue_number, "")
        )

"""GitHub API client and triage gateways."""

from .client import GitHubClient
from .gateways import (
    GitHubGovernanceGateway,
    GitHubIssueHistoryGateway,
    GitHubRepositoryContextGateway,
    GovernanceGateway,
    IssueHistoryGateway,
    RecordingGovernanceGateway,
    RepositoryContextGateway,
)
from .models import (
    IssueSnapshot,
    IssueWebhookPayload,
    RecentIssueSummary,
    RepositoryContext,
)

__all__ = [
    "GitHubClient",
    "GitHubGovernanceGateway",
    "GitHubIssueHistoryGateway",
    "GitHubRepositoryContextGateway",
    "GovernanceGateway",
    "IssueHistoryGateway",
    "RecordingGovernanceGateway",
    "RepositoryContextGateway",
    "IssueSnapshot",
    "IssueWebhookPayload",
    "RecentIssueSummary",
    "RepositoryContext",
]

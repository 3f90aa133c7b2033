"""Pydantic models for GitHub data used during triage.

Webhook models map to the `issues` event payload.
API Reference: https://docs.github.com/en/webhooks/webhook-events-and-payloads#issues
"""

from pydantic import BaseModel, ConfigDict, Field


class RecentIssueSummary(BaseModel):
    """Compact view of a recent issue, offered to the model as duplicate context."""

    number: int = Field(..., description="Issue number within the repository")
    title: str = Field(..., description="Issue title")
    labels: list[str] = Field(default_factory=list, description="Label names")
    state: str = Field("open", description="Current state: 'open' or 'closed'")


class RepositoryContext(BaseModel):
    """Repository documentation used to ground question replies."""

    readme: str | None = Field(None, description="Decoded README content")


class IssueSnapshot(BaseModel):
    """Issue state at the time a webhook was received."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(..., gt=0, description="Issue number")
    title: str = Field(..., description="Issue title")
    body: str = Field("", description="Issue body in markdown")
    labels: tuple[str, ...] = Field(default=(), description="Current label names")
    author: str | None = Field(None, description="Login of the issue author")


class WebhookUser(BaseModel):
    login: str


class WebhookLabel(BaseModel):
    name: str


class WebhookIssue(BaseModel):
    """Issue object embedded in an `issues` webhook payload."""

    number: int = Field(..., gt=0)
    title: str | None = None
    body: str | None = None
    labels: list[WebhookLabel] = Field(default_factory=list)
    user: WebhookUser | None = None
    pull_request: dict | None = Field(
        None, description="Present when the issue is actually a pull request"
    )


class WebhookRepository(BaseModel):
    full_name: str = Field(..., min_length=3, pattern=r"^[^/\s]+/[^/\s]+$")


class IssueWebhookPayload(BaseModel):
    """Subset of the `issues` event the processor relies on."""

    action: str
    issue: WebhookIssue
    repository: WebhookRepository

    def to_snapshot(self) -> IssueSnapshot:
        return IssueSnapshot(
            number=self.issue.number,
            title=self.issue.title or "",
            body=self.issue.body or "",
            labels=tuple(label.name for label in self.issue.labels),
            author=self.issue.user.login if self.issue.user else None,
        )

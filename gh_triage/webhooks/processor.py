"""Handling of a verified, deduplicated `issues` webhook."""

import logging

from ..config import SUPPORTED_ACTIONS
from ..github_client.gateways import GovernanceGateway
from ..github_client.models import IssueWebhookPayload
from ..governance.comments import CommentGenerator
from ..triage.orchestrator import AnalyzeIssueInput, AnalyzeIssueWithAi
from .validation import validate_issue_integrity

logger = logging.getLogger(__name__)

NEEDS_INFO_LABEL = "triage/needs-info"


class IssueWebhookProcessor:
    """Validates the issue, applies needs-info governance, then runs AI triage.

    Returns the HTTP status the webhook endpoint should answer with.
    Governance write failures propagate so the delivery can be retried.
    """

    def __init__(
        self,
        governance: GovernanceGateway,
        triage: AnalyzeIssueWithAi | None = None,
        needs_info_label: str = NEEDS_INFO_LABEL,
    ):
        self.governance = governance
        self.triage = triage
        self.needs_info_label = needs_info_label
        self.comments = CommentGenerator()

    async def process(self, payload: IssueWebhookPayload) -> int:
        if payload.action not in SUPPORTED_ACTIONS:
            logger.debug("Ignoring issues.%s event", payload.action)
            return 204

        repo = payload.repository.full_name
        issue = payload.to_snapshot()
        validation = validate_issue_integrity(issue)

        if not validation.is_valid:
            logger.info(
                "Issue %s#%s failed validation: %s", repo, issue.number, validation.errors
            )
            if self.needs_info_label not in issue.labels:
                await self.governance.add_labels(
                    repo, issue.number, [self.needs_info_label]
                )
                await self.governance.create_comment(
                    repo, issue.number, self.comments.validation_failure(validation.errors)
                )
            return 200

        if self.needs_info_label in issue.labels:
            await self.governance.remove_label(repo, issue.number, self.needs_info_label)
        await self.governance.log_validated_issue(repo, issue.number)

        if self.triage is None:
            return 200

        try:
            result = await self.triage.execute(
                AnalyzeIssueInput(
                    action=payload.action, repository_full_name=repo, issue=issue
                )
            )
        except Exception:
            logger.exception(
                "AI triage raised for %s#%s, continuing without it", repo, issue.number
            )
            return 200

        logger.info("AI triage for %s#%s: %s", repo, issue.number, result.as_dict())
        return 200

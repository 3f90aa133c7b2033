"""Applies a GovernancePlan through the gateways."""

import logging
from dataclasses import dataclass, field

from ..github_client.gateways import GovernanceGateway, IssueHistoryGateway
from .actions import AddLabels, CreateComment, GovernanceAction, GovernancePlan, RemoveLabel
from .metrics import QuestionResponseMetrics

logger = logging.getLogger(__name__)


@dataclass
class ExecutionReport:
    applied: list[GovernanceAction] = field(default_factory=list)
    skipped: list[GovernanceAction] = field(default_factory=list)


class GovernanceExecutor:
    """Runs planned actions in order. Gateway errors propagate to the caller."""

    def __init__(
        self,
        governance: GovernanceGateway,
        history: IssueHistoryGateway,
        bot_login: str | None = None,
        metrics: QuestionResponseMetrics | None = None,
    ):
        self.governance = governance
        self.history = history
        self.bot_login = bot_login
        self.metrics = metrics

    async def execute(self, plan: GovernancePlan) -> ExecutionReport:
        report = ExecutionReport()
        for action in plan.actions:
            if isinstance(action, AddLabels):
                await self.governance.add_labels(
                    action.repository_full_name, action.issue_number, list(action.labels)
                )
            elif isinstance(action, RemoveLabel):
                await self.governance.remove_label(
                    action.repository_full_name, action.issue_number, action.label
                )
            elif isinstance(action, CreateComment):
                if action.history_prefix and await self.history.has_issue_comment_with_prefix(
                    action.repository_full_name,
                    action.issue_number,
                    action.history_prefix,
                    self.bot_login,
                ):
                    logger.info(
                        "Skipping %s comment on issue #%s, a previous reply exists",
                        action.source,
                        action.issue_number,
                    )
                    report.skipped.append(action)
                    continue
                await self.governance.create_comment(
                    action.repository_full_name, action.issue_number, action.body
                )
                if self.metrics is not None and action.source != "duplicate":
                    self.metrics.increment(action.source)
            report.applied.append(action)
        return report

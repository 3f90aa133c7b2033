"""AI triage use case wrapped in a fail-open envelope."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict

from ..ai.llm import LlmGateway, LlmRequest
from ..ai.normalizer import ResponseNormalizer
from ..ai.prompts import TRIAGE_SYSTEM_PROMPT, build_triage_user_prompt
from ..config import SUPPORTED_ACTIONS, TriagePolicy, TriageSettings
from ..errors import UpstreamError
from ..github_client.gateways import (
    GovernanceGateway,
    IssueHistoryGateway,
    RepositoryContextGateway,
)
from ..github_client.models import IssueSnapshot
from ..governance.actions import CreateComment, GovernancePlan
from ..governance.executor import ExecutionReport, GovernanceExecutor
from ..governance.metrics import QuestionResponseMetrics
from ..governance.planner import GovernanceActionPlanner
from .repository_context import detect_repository_context_usage

logger = logging.getLogger(__name__)


class AnalyzeIssueInput(BaseModel):
    """One triage request, immutable for the whole invocation."""

    model_config = ConfigDict(frozen=True)

    action: str
    repository_full_name: str
    issue: IssueSnapshot


@dataclass(frozen=True)
class TriageResult:
    status: Literal["completed", "skipped"]
    reason: Literal["unsupported_action", "ai_unavailable"] | None = None
    plan: GovernancePlan | None = None
    report: ExecutionReport | None = None

    def as_dict(self) -> dict[str, str]:
        result = {"status": self.status}
        if self.reason:
            result["reason"] = self.reason
        return result


class AnalyzeIssueWithAi:
    """Fetch context, ask the LLM, normalize, plan and apply governance actions.

    Anything that goes wrong after the action check is logged once and
    reported as skipped/ai_unavailable. Nothing is retried here.
    """

    def __init__(
        self,
        llm: LlmGateway,
        history: IssueHistoryGateway,
        governance: GovernanceGateway,
        repository_context: RepositoryContextGateway | None = None,
        policy: TriagePolicy | None = None,
        settings: TriageSettings | None = None,
        normalizer: ResponseNormalizer | None = None,
        metrics: QuestionResponseMetrics | None = None,
    ):
        self.llm = llm
        self.history = history
        self.repository_context = repository_context
        self.policy = policy or TriagePolicy()
        self.settings = settings or TriageSettings()
        self.normalizer = normalizer or ResponseNormalizer()
        self.planner = GovernanceActionPlanner(self.policy)
        self.metrics = metrics or QuestionResponseMetrics()
        self.executor = GovernanceExecutor(
            governance, history, bot_login=self.settings.bot_login, metrics=self.metrics
        )

    async def execute(self, request: AnalyzeIssueInput) -> TriageResult:
        if request.action not in SUPPORTED_ACTIONS:
            logger.debug("Skipping AI triage for unsupported action %s", request.action)
            return TriageResult(status="skipped", reason="unsupported_action")

        repo = request.repository_full_name
        issue = request.issue
        stage = "fetching_context"
        raw_text: str | None = None
        try:
            recent_issues = await self.history.find_recent_issues(
                repo, self.settings.recent_issues_limit
            )
            readme = await self._find_readme(repo)

            stage = "calling_llm"
            raw_text = await self._call_llm(
                build_triage_user_prompt(issue.title, issue.body, recent_issues, readme)
            )

            stage = "normalizing"
            analysis = self.normalizer.normalize(raw_text, issue.number)

            stage = "planning"
            plan = self.planner.plan(
                request.action, repo, issue, analysis, recent_issues
            )

            stage = "executing"
            report = await self.executor.execute(plan)
        except Exception as e:
            self._log_failure(request, stage, e, raw_text)
            return TriageResult(status="skipped", reason="ai_unavailable")

        for action in report.applied:
            if isinstance(action, CreateComment) and action.source != "duplicate":
                logger.info(
                    "Question reply posted on %s#%s (source=%s, uses_repository_context=%s)",
                    repo,
                    issue.number,
                    action.source,
                    detect_repository_context_usage(action.body, readme),
                )
        logger.info(
            "AI triage completed for %s#%s: %d action(s) applied, %d skipped",
            repo,
            issue.number,
            len(report.applied),
            len(report.skipped),
        )
        return TriageResult(status="completed", plan=plan, report=report)

    async def _find_readme(self, repository_full_name: str) -> str | None:
        """README lookup is best effort; failure only loses grounding context."""
        if self.repository_context is None:
            return None
        try:
            context = await self.repository_context.find_repository_context(
                repository_full_name
            )
        except Exception as e:
            logger.info(
                "Repository context unavailable for %s, continuing without it: %s",
                repository_full_name,
                e,
            )
            return None
        return context.readme

    async def _call_llm(self, user_prompt: str) -> str:
        timeout_ms = self.settings.timeout_ms
        request = LlmRequest(
            system_prompt=TRIAGE_SYSTEM_PROMPT,
            user_prompt=user_prompt,
            max_tokens=self.settings.max_tokens,
            timeout_ms=timeout_ms,
            temperature=self.settings.temperature,
        )
        try:
            result = await asyncio.wait_for(
                self.llm.generate_json(request), timeout=timeout_ms / 1000
            )
        except asyncio.TimeoutError as e:
            raise UpstreamError(f"LLM call timed out after {timeout_ms}ms") from e
        if not result.raw_text or not result.raw_text.strip():
            raise UpstreamError("LLM returned empty output")
        return result.raw_text

    def _log_failure(
        self,
        request: AnalyzeIssueInput,
        stage: str,
        error: Exception,
        raw_text: str | None,
    ) -> None:
        context = {
            "repository": request.repository_full_name,
            "issue_number": request.issue.number,
            "stage": stage,
            "error_type": type(error).__name__,
            "raw_text_length": len(raw_text) if raw_text is not None else 0,
        }
        if (
            raw_text is not None
            and self.settings.log_raw_response
            and not self.settings.is_production
        ):
            context["raw_text_preview"] = raw_text[: self.settings.raw_preview_chars]
        message = "AI triage unavailable for %s#%s at stage %s: %s: %s (raw_text_length=%d)"
        args: list[object] = [
            request.repository_full_name,
            request.issue.number,
            stage,
            context["error_type"],
            error,
            context["raw_text_length"],
        ]
        if "raw_text_preview" in context:
            message += " raw_text_preview=%r"
            args.append(context["raw_text_preview"])
        logger.error(message, *args, extra={"triage": context})

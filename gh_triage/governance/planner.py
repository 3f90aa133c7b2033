"""Decision logic turning a canonical analysis into governance actions."""

import logging
from collections.abc import Sequence

from ..ai.hostile_content import HostileContentHeuristic
from ..ai.models import AiIssueAnalysis, IssueKind, Tone
from ..config import TriagePolicy
from ..github_client.models import IssueSnapshot, RecentIssueSummary
from .actions import AddLabels, CreateComment, GovernancePlan, RemoveLabel
from .comments import QUESTION_REPLY_HISTORY_PREFIX, CommentGenerator

logger = logging.getLogger(__name__)


class GovernanceActionPlanner:
    """Maps an analysis and the current issue state to ordered label/comment actions.

    The planner never calls GitHub. Rules are applied in order:

    1. Hostile tone suppresses kind labels and adds the monitor label.
    2. Otherwise a confident classification replaces any stale kind label.
    3. A confident duplicate verdict adds the duplicate label and a comment.
    4. Confident curation recommendations add documentation, help wanted or
       good first issue labels, unless the issue is hostile or a likely
       duplicate.
    5. Newly opened questions get one reply comment.
    """

    def __init__(
        self,
        policy: TriagePolicy | None = None,
        hostile_heuristic: HostileContentHeuristic | None = None,
        comment_generator: CommentGenerator | None = None,
    ):
        self.policy = policy or TriagePolicy()
        self.hostile_heuristic = hostile_heuristic or HostileContentHeuristic(
            self.policy.hostile_keywords
        )
        self.comments = comment_generator or CommentGenerator()

    def effective_tone(self, analysis: AiIssueAnalysis, issue: IssueSnapshot) -> str:
        """Arbitrate between the model's tone and the keyword heuristic.

        A confident model verdict wins in both directions. Below the threshold
        the keyword list decides whether the issue is hostile.
        """
        sentiment = analysis.sentiment
        if sentiment.confidence >= self.policy.sentiment_confidence_threshold:
            return sentiment.tone
        if self.hostile_heuristic.is_hostile(issue.title, issue.body):
            return Tone.HOSTILE.value
        if sentiment.tone == Tone.HOSTILE.value:
            return Tone.NEUTRAL.value
        return sentiment.tone

    def looks_like_question(self, issue: IssueSnapshot) -> bool:
        text = f"{issue.title}\n{issue.body}".lower()
        if "?" in text or "¿" in text:
            return True
        return any(keyword in text for keyword in self.policy.question_keywords)

    def plan(
        self,
        action: str,
        repository_full_name: str,
        issue: IssueSnapshot,
        analysis: AiIssueAnalysis,
        recent_issues: Sequence[RecentIssueSummary] = (),
    ) -> GovernancePlan:
        """Build the ordered action list for one issue.

        Args:
            action: Webhook action, e.g. 'opened' or 'edited'
            repository_full_name: owner/name of the repository
            issue: Issue state including its current labels
            analysis: Normalized model output
            recent_issues: Newest issues first, used as duplicate fallback

        Returns:
            GovernancePlan with actions in execution order
        """
        plan = GovernancePlan(
            repository_full_name=repository_full_name, issue_number=issue.number
        )
        labels = set(issue.labels)
        plan.effective_tone = self.effective_tone(analysis, issue)

        if plan.effective_tone == Tone.HOSTILE.value:
            plan.kind_suppressed_by_hostile_tone = True
            logger.info(
                "Kind labels suppressed for issue #%s due to hostile tone", issue.number
            )
            if self.policy.monitor_label not in labels:
                plan.actions.append(
                    AddLabels(
                        repository_full_name,
                        issue.number,
                        (self.policy.monitor_label,),
                        reason="hostile tone",
                    )
                )
        else:
            self._plan_kind_labels(plan, analysis, labels)

        self._plan_duplicate(plan, issue, analysis, labels, recent_issues)
        self._plan_curation_labels(plan, analysis, labels)

        if action == "opened":
            self._plan_question_reply(plan, issue, analysis)

        return plan

    def _plan_kind_labels(
        self, plan: GovernancePlan, analysis: AiIssueAnalysis, labels: set[str]
    ) -> None:
        classification = analysis.classification
        target = self.policy.kind_label_for(classification.type)
        if target is None:
            return
        if classification.confidence < self.policy.classification_confidence_threshold:
            logger.debug(
                "Classification %s below threshold (%.2f)",
                classification.type,
                classification.confidence,
            )
            return

        for stale in self.policy.kind_labels:
            if stale != target and stale in labels:
                plan.actions.append(
                    RemoveLabel(
                        plan.repository_full_name,
                        plan.issue_number,
                        stale,
                        reason=f"reclassified as {classification.type}",
                    )
                )
        if target not in labels:
            plan.actions.append(
                AddLabels(
                    plan.repository_full_name,
                    plan.issue_number,
                    (target,),
                    reason=f"classified as {classification.type}",
                )
            )

    def _plan_duplicate(
        self,
        plan: GovernancePlan,
        issue: IssueSnapshot,
        analysis: AiIssueAnalysis,
        labels: set[str],
        recent_issues: Sequence[RecentIssueSummary],
    ) -> None:
        detection = analysis.duplicate_detection
        if not detection.is_duplicate:
            return

        similar_enough = (
            detection.similarity_score >= self.policy.duplicate_similarity_threshold
        )
        target = detection.original_issue_number
        if target is None and similar_enough and not detection.has_explicit_reference:
            target = next(
                (r.number for r in recent_issues if r.number != issue.number), None
            )
            plan.used_recent_issue_fallback = target is not None

        if not similar_enough or target is None or target == issue.number:
            # unresolvable references were already reported by the normalizer
            logger.debug(
                "No duplicate action for issue #%s (similarity=%.2f, target=%s)",
                issue.number,
                detection.similarity_score,
                target,
            )
            return

        plan.duplicate_target = target
        if self.policy.duplicate_label in labels:
            logger.debug("Issue #%s already labelled duplicate", issue.number)
            return

        plan.actions.append(
            AddLabels(
                plan.repository_full_name,
                plan.issue_number,
                (self.policy.duplicate_label,),
                reason=f"duplicate of #{target}",
            )
        )
        plan.actions.append(
            CreateComment(
                plan.repository_full_name,
                plan.issue_number,
                self.comments.duplicate_comment(target, detection.similarity_score),
                source="duplicate",
            )
        )

    def _plan_curation_labels(
        self, plan: GovernancePlan, analysis: AiIssueAnalysis, labels: set[str]
    ) -> None:
        detection = analysis.duplicate_detection
        likely_duplicate = (
            plan.duplicate_target is not None
            or self.policy.duplicate_label in labels
            or (
                detection.is_duplicate
                and detection.similarity_score
                >= self.policy.duplicate_similarity_threshold
            )
        )
        if plan.effective_tone == Tone.HOSTILE.value or likely_duplicate:
            return

        classification = analysis.classification
        question_or_feature = classification.type in (
            IssueKind.QUESTION.value,
            IssueKind.FEATURE.value,
        )
        confident = (
            classification.confidence >= self.policy.classification_confidence_threshold
        )
        recommendations = analysis.label_recommendations
        candidates = (
            (
                recommendations.documentation,
                self.policy.documentation_label,
                self.policy.documentation_confidence_threshold,
                question_or_feature,
            ),
            (
                recommendations.help_wanted,
                self.policy.help_wanted_label,
                self.policy.help_wanted_confidence_threshold,
                True,
            ),
            (
                recommendations.good_first_issue,
                self.policy.good_first_issue_label,
                self.policy.good_first_issue_confidence_threshold,
                question_or_feature and confident,
            ),
        )

        to_add = tuple(
            label
            for recommendation, label, threshold, eligible in candidates
            if eligible
            and recommendation is not None
            and recommendation.should_apply
            and recommendation.confidence >= threshold
            and label not in labels
        )
        if to_add:
            plan.actions.append(
                AddLabels(
                    plan.repository_full_name,
                    plan.issue_number,
                    to_add,
                    reason="curation recommendation",
                )
            )

    def _plan_question_reply(
        self, plan: GovernancePlan, issue: IssueSnapshot, analysis: AiIssueAnalysis
    ) -> None:
        if plan.effective_tone == Tone.HOSTILE.value:
            return

        classification = analysis.classification
        confident_question = (
            classification.type == IssueKind.QUESTION.value
            and classification.confidence
            >= self.policy.classification_confidence_threshold
        )
        shaped_like_question = classification.type in (
            IssueKind.QUESTION.value,
            IssueKind.UNKNOWN.value,
        ) and self.looks_like_question(issue)
        if not (confident_question or shaped_like_question):
            return

        if analysis.suggested_response:
            body = self.comments.question_reply(analysis.suggested_response, from_ai=True)
            source = "ai_suggested_response"
        else:
            checklist = "\n".join(self.policy.fallback_checklist)
            if not checklist:
                return
            body = self.comments.question_reply(checklist, from_ai=False)
            source = "fallback_checklist"

        plan.actions.append(
            CreateComment(
                plan.repository_full_name,
                plan.issue_number,
                body,
                history_prefix=QUESTION_REPLY_HISTORY_PREFIX,
                source=source,
            )
        )

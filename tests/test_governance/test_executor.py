"""Tests for governance plan execution."""

from unittest.mock import AsyncMock

import pytest

from gh_triage.errors import GovernanceWriteError
from gh_triage.governance.actions import (
    AddLabels,
    CreateComment,
    GovernancePlan,
    RemoveLabel,
)
from gh_triage.governance.comments import QUESTION_REPLY_HISTORY_PREFIX
from gh_triage.governance.executor import GovernanceExecutor
from gh_triage.governance.metrics import QuestionResponseMetrics

REPO = "octo/widgets"


def make_plan(*actions) -> GovernancePlan:
    return GovernancePlan(repository_full_name=REPO, issue_number=12, actions=list(actions))


def question_reply(source: str = "ai_suggested_response") -> CreateComment:
    return CreateComment(
        REPO,
        12,
        "AI Triage: Suggested guidance\n\nCheck README",
        history_prefix=QUESTION_REPLY_HISTORY_PREFIX,
        source=source,
    )


class TestGovernanceExecutor:
    """Test GovernanceExecutor."""

    @pytest.mark.asyncio
    async def test_applies_actions_in_order(
        self, governance: AsyncMock, history: AsyncMock
    ) -> None:
        """Test each action maps to one gateway call."""
        executor = GovernanceExecutor(governance, history)
        plan = make_plan(
            RemoveLabel(REPO, 12, "kind/bug"),
            AddLabels(REPO, 12, ("kind/question",)),
            CreateComment(REPO, 12, "AI Triage: Possible duplicate of #9 (Similarity: 90%)."),
        )

        report = await executor.execute(plan)

        assert report.applied == plan.actions
        assert report.skipped == []
        governance.remove_label.assert_awaited_once_with(REPO, 12, "kind/bug")
        governance.add_labels.assert_awaited_once_with(REPO, 12, ["kind/question"])
        governance.create_comment.assert_awaited_once()
        history.has_issue_comment_with_prefix.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_skips_reply_when_history_has_one(
        self, governance: AsyncMock, history: AsyncMock
    ) -> None:
        """Test a previous bot reply prevents a second one."""
        history.has_issue_comment_with_prefix.return_value = True
        metrics = QuestionResponseMetrics()
        executor = GovernanceExecutor(
            governance, history, bot_login="triage-bot", metrics=metrics
        )
        reply = question_reply()

        report = await executor.execute(make_plan(reply))

        assert report.skipped == [reply]
        governance.create_comment.assert_not_awaited()
        history.has_issue_comment_with_prefix.assert_awaited_once_with(
            REPO, 12, QUESTION_REPLY_HISTORY_PREFIX, "triage-bot"
        )
        assert metrics.snapshot()["total"] == 0

    @pytest.mark.asyncio
    async def test_counts_posted_replies(
        self, governance: AsyncMock, history: AsyncMock
    ) -> None:
        """Test metrics count replies by source but ignore duplicate comments."""
        metrics = QuestionResponseMetrics()
        executor = GovernanceExecutor(governance, history, metrics=metrics)

        await executor.execute(
            make_plan(
                CreateComment(REPO, 12, "dup"),
                question_reply("fallback_checklist"),
            )
        )

        assert metrics.snapshot() == {
            "ai_suggested_response": 0,
            "fallback_checklist": 1,
            "total": 1,
        }

    @pytest.mark.asyncio
    async def test_gateway_error_propagates(
        self, governance: AsyncMock, history: AsyncMock
    ) -> None:
        """Test write failures stop execution and reach the caller."""
        governance.add_labels.side_effect = GovernanceWriteError("boom")
        executor = GovernanceExecutor(governance, history)

        with pytest.raises(GovernanceWriteError):
            await executor.execute(
                make_plan(AddLabels(REPO, 12, ("kind/bug",)), question_reply())
            )

        governance.create_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_plan(self, governance: AsyncMock, history: AsyncMock) -> None:
        """Test an empty plan makes no calls."""
        plan = make_plan()
        report = await GovernanceExecutor(governance, history).execute(plan)

        assert not plan.needs_update
        assert report.applied == []
        assert governance.method_calls == []


class TestQuestionResponseMetrics:
    """Test reply counters."""

    def test_snapshot_starts_at_zero(self) -> None:
        """Test a fresh counter."""
        assert QuestionResponseMetrics().snapshot() == {
            "ai_suggested_response": 0,
            "fallback_checklist": 0,
            "total": 0,
        }

    def test_increment(self) -> None:
        """Test increments per source."""
        metrics = QuestionResponseMetrics()
        metrics.increment("ai_suggested_response")
        metrics.increment("ai_suggested_response")
        metrics.increment("fallback_checklist")

        snapshot = metrics.snapshot()
        assert snapshot["ai_suggested_response"] == 2
        assert snapshot["total"] == 3

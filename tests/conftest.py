"""Test configuration and fixtures."""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from gh_triage.ai.llm import LlmResult
from gh_triage.config import TriagePolicy, TriageSettings
from gh_triage.github_client.models import IssueSnapshot, RecentIssueSummary


@pytest.fixture
def policy() -> TriagePolicy:
    """Default triage policy."""
    return TriagePolicy()


@pytest.fixture
def settings() -> TriageSettings:
    """Triage settings with a short timeout for tests."""
    return TriageSettings(timeout_ms=1000, bot_login="triage-bot")


@pytest.fixture
def bug_issue() -> IssueSnapshot:
    """A plain bug report."""
    return IssueSnapshot(
        number=7,
        title="Crash when saving settings",
        body="The app crashes with a stack trace every time I press save.",
        labels=(),
        author="octocat",
    )


@pytest.fixture
def question_issue() -> IssueSnapshot:
    """An issue asking for setup help."""
    return IssueSnapshot(
        number=12,
        title="How do I configure the database?",
        body="I need a clear setup checklist to run this project locally.",
        labels=(),
        author="octocat",
    )


@pytest.fixture
def recent_issues() -> list[RecentIssueSummary]:
    return [
        RecentIssueSummary(number=12, title="How do I configure the database?"),
        RecentIssueSummary(number=9, title="Saving settings crashes", labels=["kind/bug"]),
        RecentIssueSummary(number=3, title="Add dark mode"),
    ]


@pytest.fixture
def make_llm() -> Callable[[dict[str, Any] | str], AsyncMock]:
    """Factory for LLM gateway mocks returning the given payload as raw text."""

    def _make(payload: dict[str, Any] | str) -> AsyncMock:
        raw = payload if isinstance(payload, str) else json.dumps(payload)
        llm = AsyncMock()
        llm.generate_json.return_value = LlmResult(raw_text=raw)
        return llm

    return _make


@pytest.fixture
def history(recent_issues: list[RecentIssueSummary]) -> AsyncMock:
    """Issue history gateway with recent issues and no prior bot comments."""
    gateway = AsyncMock()
    gateway.find_recent_issues.return_value = recent_issues
    gateway.has_issue_comment_with_prefix.return_value = False
    return gateway


@pytest.fixture
def governance() -> AsyncMock:
    """Governance gateway recording calls."""
    return AsyncMock()

"""AI triage orchestration."""

from .orchestrator import AnalyzeIssueInput, AnalyzeIssueWithAi, TriageResult
from .repository_context import detect_repository_context_usage

__all__ = [
    "AnalyzeIssueInput",
    "AnalyzeIssueWithAi",
    "TriageResult",
    "detect_repository_context_usage",
]

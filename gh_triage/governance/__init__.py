"""Governance planning and execution for triaged issues."""

from .actions import AddLabels, CreateComment, GovernanceAction, GovernancePlan, RemoveLabel
from .comments import CommentGenerator
from .executor import ExecutionReport, GovernanceExecutor
from .metrics import QuestionResponseMetrics
from .planner import GovernanceActionPlanner

__all__ = [
    "AddLabels",
    "CreateComment",
    "GovernanceAction",
    "GovernancePlan",
    "RemoveLabel",
    "CommentGenerator",
    "ExecutionReport",
    "GovernanceExecutor",
    "GovernanceActionPlanner",
    "QuestionResponseMetrics",
]

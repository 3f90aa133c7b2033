"""Label and comment operations proposed by the planner."""

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class AddLabels:
    """Add one or more labels to an issue."""

    repository_full_name: str
    issue_number: int
    labels: tuple[str, ...]
    reason: str = ""


@dataclass(frozen=True)
class RemoveLabel:
    """Remove a single label from an issue."""

    repository_full_name: str
    issue_number: int
    label: str
    reason: str = ""


@dataclass(frozen=True)
class CreateComment:
    """Post a comment.

    When history_prefix is set the executor first checks the issue history and
    skips the comment if a matching bot comment already exists.
    """

    repository_full_name: str
    issue_number: int
    body: str
    history_prefix: str | None = None
    source: Literal["duplicate", "ai_suggested_response", "fallback_checklist"] = (
        "duplicate"
    )


GovernanceAction = AddLabels | RemoveLabel | CreateComment


@dataclass
class GovernancePlan:
    """Ordered actions for one issue plus the decisions that produced them."""

    repository_full_name: str
    issue_number: int
    actions: list[GovernanceAction] = field(default_factory=list)
    effective_tone: str = "neutral"
    kind_suppressed_by_hostile_tone: bool = False
    duplicate_target: int | None = None
    used_recent_issue_fallback: bool = False

    @property
    def needs_update(self) -> bool:
        return bool(self.actions)

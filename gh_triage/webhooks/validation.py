"""Issue integrity rules applied before any AI triage."""

import re
from dataclasses import dataclass, field

from ..github_client.models import IssueSnapshot

MIN_TITLE_LENGTH = 10
MIN_DESCRIPTION_LENGTH = 30

TITLE_REQUIRED_ERROR = "Title is required"
TITLE_TOO_SHORT_ERROR = f"Title is too short (min {MIN_TITLE_LENGTH} chars)"
DESCRIPTION_REQUIRED_ERROR = "Description is required"
DESCRIPTION_TOO_SHORT_ERROR = (
    f"Description is too short (min {MIN_DESCRIPTION_LENGTH} chars) to be useful"
)
AUTHOR_REQUIRED_ERROR = "Author is required"
SPAM_ERROR = "Content contains spam keywords"

SPAM_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\bcasino\b",
        r"\bfree\s+money\b",
        r"\bcheap\s+rolex\b",
        r"\bcrypto\s+giveaway\b",
        r"\bviagra\b",
        r"\bgana\s+dinero\b",
        r"\btrabaja(?:r)?\s+desde\s+casa\b",
        r"\bwork(?:ing)?\s+from\s+home\b",
    )
)


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_issue_integrity(issue: IssueSnapshot) -> ValidationResult:
    """Check title, body and author completeness and reject obvious spam."""
    result = ValidationResult()
    title = issue.title.strip()
    body = issue.body.strip()

    if not title:
        result.errors.append(TITLE_REQUIRED_ERROR)
    elif len(title) < MIN_TITLE_LENGTH:
        result.errors.append(TITLE_TOO_SHORT_ERROR)

    if not body:
        result.errors.append(DESCRIPTION_REQUIRED_ERROR)
    elif len(body) < MIN_DESCRIPTION_LENGTH:
        result.errors.append(DESCRIPTION_TOO_SHORT_ERROR)

    if not (issue.author or "").strip():
        result.errors.append(AUTHOR_REQUIRED_ERROR)

    content = f"{title}\n{body}"
    if any(pattern.search(content) for pattern in SPAM_PATTERNS):
        result.errors.append(SPAM_ERROR)

    return result

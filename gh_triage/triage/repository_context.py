"""Heuristic check that a reply actually draws on the repository README."""

import re

_STOP_WORDS = frozenset(
    {
        "about",
        "there",
        "which",
        "where",
        "readme",
        "issue",
        "setup",
        "checklist",
    }
)
_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
MIN_TOKEN_LENGTH = 5
MIN_OVERLAP = 2


def _meaningful_tokens(text: str) -> list[str]:
    return [
        token
        for token in _TOKEN_SPLIT.split(text.lower())
        if len(token) >= MIN_TOKEN_LENGTH and token not in _STOP_WORDS
    ]


def detect_repository_context_usage(response: str, readme: str | None) -> bool:
    """True when the reply shares at least two meaningful words with the README."""
    if not readme or not readme.strip():
        return False
    context_tokens = set(_meaningful_tokens(readme))
    if not context_tokens:
        return False

    overlap = 0
    for token in _meaningful_tokens(response):
        if token in context_tokens:
            overlap += 1
            if overlap >= MIN_OVERLAP:
                return True
    return False

"""Keyword based hostile content signal."""

import re
from collections.abc import Iterable


class HostileContentHeuristic:
    """Flags issue text containing any configured hostile phrase.

    Phrases match case-insensitively on word boundaries, so "trash" does not
    fire on "trashcan" and "idiot" does not fire on "idiotproof".
    """

    def __init__(self, phrases: Iterable[str]):
        self.phrases = tuple(p.strip().lower() for p in phrases if p.strip())
        self._patterns = [
            re.compile(rf"(?<!\w){re.escape(phrase)}(?!\w)", re.IGNORECASE)
            for phrase in self.phrases
        ]

    def find_matches(self, title: str, body: str | None) -> list[str]:
        text = f"{title}\n{body or ''}"
        return [
            phrase
            for phrase, pattern in zip(self.phrases, self._patterns, strict=True)
            if pattern.search(text)
        ]

    def is_hostile(self, title: str, body: str | None) -> bool:
        return bool(self.find_matches(title, body))

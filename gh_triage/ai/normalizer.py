"""Normalization of raw LLM output into the canonical issue analysis.

Providers and prompt revisions have produced several JSON layouts over time.
Each layout is recognised by a shape matcher that extracts whatever canonical
fields it understands into a partial result. Matchers run in a fixed order
(modern, alias, legacy) and partials are merged so the first matcher to supply
a field wins.
"""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..errors import NormalizationError
from .models import (
    AiIssueAnalysis,
    Classification,
    DuplicateDetection,
    IssueKind,
    LabelRecommendation,
    LabelRecommendations,
    Sentiment,
    Tone,
)
from .reference_parser import (
    first_valid_duplicate,
    iter_reference_candidates,
    parse_issue_reference,
)

logger = logging.getLogger(__name__)

_KIND_SYNONYMS: dict[str, IssueKind] = {
    "bug": IssueKind.BUG,
    "feature": IssueKind.FEATURE,
    "enhancement": IssueKind.FEATURE,
    "feature request": IssueKind.FEATURE,
    "feature_request": IssueKind.FEATURE,
    "feature-request": IssueKind.FEATURE,
    "question": IssueKind.QUESTION,
}

_TONE_SYNONYMS: dict[str, Tone] = {
    "neutral": Tone.NEUTRAL,
    "positive": Tone.POSITIVE,
    "hostile": Tone.HOSTILE,
    "aggressive": Tone.HOSTILE,
}

_REFERENCE_KEYS = (
    "originalIssueNumber",
    "duplicateIssueId",
    "similarIssueId",
    "original_issue_number",
    "duplicate_of",
)

# canonical field -> accepted keys, in lookup order
_LABEL_RECOMMENDATION_KEYS: dict[str, tuple[str, ...]] = {
    "documentation": ("documentation", "docs"),
    "help_wanted": ("helpWanted", "help_wanted"),
    "good_first_issue": ("goodFirstIssue", "good_first_issue"),
}


@dataclass
class PartialAnalysis:
    """Canonical fields one shape matcher could extract. None means unknown."""

    has_classification: bool = False
    has_sentiment: bool = False
    issue_type: Any = None
    classification_confidence: float | None = None
    classification_reasoning: str | None = None
    tone: Any = None
    sentiment_confidence: float | None = None
    sentiment_reasoning: str | None = None
    is_duplicate: bool | None = None
    similarity_score: float | None = None
    references: list[Any] = field(default_factory=list)
    has_reference: bool = False
    suggested_response: str | None = None
    label_recommendations: LabelRecommendations | None = None
    consumed_top_level_confidence: bool = False


ShapeMatcher = Callable[[dict[str, Any]], PartialAnalysis | None]


def normalize_kind(value: Any) -> IssueKind | None:
    """Match a classification tag case-insensitively, or None."""
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    if key.startswith("kind/"):
        key = key[len("kind/") :]
    return _KIND_SYNONYMS.get(key)


def normalize_tone(value: Any) -> Tone | None:
    if not isinstance(value, str):
        return None
    return _TONE_SYNONYMS.get(value.strip().lower())


def normalize_suggested_response(value: Any) -> str | None:
    """Trim a reply; join string arrays line by line; blank means absent."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        lines = [item.strip() for item in value if isinstance(item, str)]
        lines = [line for line in lines if line]
        return "\n".join(lines) if lines else None
    return None


def _confidence(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if 0.0 <= value <= 1.0:
        return float(value)
    return None


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


def _label_recommendation(value: Any) -> LabelRecommendation | None:
    if not isinstance(value, dict):
        return None
    should_apply = value.get("shouldApply", value.get("should_apply"))
    confidence = _confidence(value.get("confidence"))
    if not isinstance(should_apply, bool) or confidence is None:
        return None
    return LabelRecommendation(
        should_apply=should_apply,
        confidence=confidence,
        reasoning=_text(value.get("reasoning")),
    )


def parse_label_recommendations(value: Any) -> LabelRecommendations | None:
    """Read curation label suggestions from an object or a positional array.

    Arrays are read in documentation, help wanted, good first issue order.
    Malformed entries are dropped; None when nothing usable remains.
    """
    if isinstance(value, list):
        value = dict(zip(_LABEL_RECOMMENDATION_KEYS, value, strict=False))
    if not isinstance(value, dict):
        return None

    entries: dict[str, LabelRecommendation] = {}
    for name, keys in _LABEL_RECOMMENDATION_KEYS.items():
        raw = _first([value.get(key) for key in keys])
        recommendation = _label_recommendation(raw)
        if recommendation is not None:
            entries[name] = recommendation
    return LabelRecommendations(**entries) if entries else None


def _collect_references(source: dict[str, Any], partial: PartialAnalysis) -> None:
    for key in _REFERENCE_KEYS:
        if key in source and source[key] is not None:
            partial.has_reference = True
            partial.references.extend(iter_reference_candidates(source[key]))


def match_modern_shape(data: dict[str, Any]) -> PartialAnalysis | None:
    """classification / duplicateDetection / sentiment objects."""
    classification = data.get("classification")
    duplicate = data.get("duplicateDetection")
    sentiment = data.get("sentiment")
    if not any(isinstance(v, dict) for v in (classification, duplicate, sentiment)):
        if "suggestedResponse" not in data:
            return None

    partial = PartialAnalysis()
    if isinstance(classification, dict):
        partial.has_classification = True
        partial.issue_type = classification.get("type")
        partial.classification_confidence = _confidence(classification.get("confidence"))
        partial.classification_reasoning = _text(classification.get("reasoning"))
    if isinstance(duplicate, dict):
        if isinstance(duplicate.get("isDuplicate"), bool):
            partial.is_duplicate = duplicate["isDuplicate"]
        partial.similarity_score = _confidence(duplicate.get("similarityScore"))
        _collect_references(duplicate, partial)
    if isinstance(sentiment, dict):
        partial.has_sentiment = True
        partial.tone = sentiment.get("tone")
        partial.sentiment_confidence = _confidence(sentiment.get("confidence"))
        partial.sentiment_reasoning = _text(sentiment.get("reasoning"))
    partial.suggested_response = normalize_suggested_response(
        data.get("suggestedResponse")
    )
    partial.label_recommendations = parse_label_recommendations(
        data.get("labelRecommendations", data.get("label_recommendations"))
    )
    return partial


def match_alias_shape(data: dict[str, Any]) -> PartialAnalysis | None:
    """`duplicate` alias, `tone` object and top-level duplicate scalars."""
    partial = PartialAnalysis()
    matched = False

    duplicate = data.get("duplicate")
    if isinstance(duplicate, bool):
        partial.is_duplicate = duplicate
        matched = True
    elif isinstance(duplicate, dict):
        matched = True
        flag = duplicate.get("isDuplicate", duplicate.get("is_duplicate"))
        if isinstance(flag, bool):
            partial.is_duplicate = flag
        partial.similarity_score = _confidence(
            duplicate.get("similarityScore", duplicate.get("similarity_score"))
        )
        _collect_references(duplicate, partial)

    top_level_flag = data.get("isDuplicate")
    if partial.is_duplicate is None and isinstance(top_level_flag, bool):
        partial.is_duplicate = top_level_flag
        matched = True

    if partial.similarity_score is None:
        partial.similarity_score = _confidence(data.get("similarityScore"))
    classification = data.get("classification")
    if partial.similarity_score is None and isinstance(classification, dict):
        partial.similarity_score = _confidence(classification.get("similarityScore"))
    if partial.similarity_score is None and (
        isinstance(duplicate, bool) or isinstance(top_level_flag, bool)
    ):
        # a bare duplicate flag may carry its score in the shared confidence field
        partial.similarity_score = _confidence(data.get("confidence"))
    if partial.similarity_score is not None:
        matched = True

    before = len(partial.references)
    _collect_references(
        {k: v for k, v in data.items() if k != "duplicate_of"}, partial
    )
    matched = matched or len(partial.references) > before

    tone = data.get("tone")
    if isinstance(tone, dict):
        matched = True
        partial.has_sentiment = True
        partial.tone = tone.get("tone", tone.get("sentiment"))
        partial.sentiment_confidence = _confidence(tone.get("confidence"))
        partial.sentiment_reasoning = _text(tone.get("reasoning"))

    return partial if matched else None


def match_legacy_shape(data: dict[str, Any]) -> PartialAnalysis | None:
    """Bare classification/tone strings and snake_case sections."""
    partial = PartialAnalysis()
    matched = False

    classification = data.get("classification")
    if isinstance(classification, str):
        matched = True
        partial.has_classification = True
        partial.issue_type = classification
        partial.classification_reasoning = _text(data.get("reasoning"))

    tone = data.get("tone")
    if isinstance(tone, str):
        matched = True
        partial.has_sentiment = True
        partial.tone = tone
        partial.sentiment_confidence = _confidence(data.get("confidence"))
        partial.consumed_top_level_confidence = True

    legacy = data.get("duplicate_detection")
    if isinstance(legacy, dict):
        matched = True
        if isinstance(legacy.get("is_duplicate"), bool):
            partial.is_duplicate = legacy["is_duplicate"]
        partial.similarity_score = _confidence(legacy.get("similarity_score"))
        _collect_references(legacy, partial)

    if data.get("duplicate_of") is not None:
        matched = True
        partial.has_reference = True
        partial.references.extend(iter_reference_candidates(data["duplicate_of"]))

    suggested = normalize_suggested_response(data.get("suggested_response"))
    if suggested is not None:
        matched = True
        partial.suggested_response = suggested

    recommendations = parse_label_recommendations(data.get("label_recommendations"))
    if recommendations is not None:
        matched = True
        partial.label_recommendations = recommendations

    return partial if matched else None


DEFAULT_MATCHERS: tuple[ShapeMatcher, ...] = (
    match_modern_shape,
    match_alias_shape,
    match_legacy_shape,
)


def _first(values: list[Any]) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


class ResponseNormalizer:
    """Turns raw LLM text into an AiIssueAnalysis or raises NormalizationError."""

    def __init__(self, matchers: tuple[ShapeMatcher, ...] = DEFAULT_MATCHERS):
        self.matchers = matchers

    def normalize(self, raw_text: str, current_issue_number: int) -> AiIssueAnalysis:
        """Normalize one LLM response.

        Args:
            raw_text: Text returned by the LLM, expected to be a JSON object
            current_issue_number: Issue being triaged, never a duplicate target

        Returns:
            Canonical analysis with every field populated

        Raises:
            NormalizationError: If the text is not a JSON object or carries
                neither classification nor sentiment information
        """
        try:
            data = json.loads(raw_text)
        except (json.JSONDecodeError, TypeError) as e:
            raise NormalizationError(f"AI response is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise NormalizationError(
                f"AI response must be a JSON object, got {type(data).__name__}"
            )

        partials = [p for p in (m(data) for m in self.matchers) if p is not None]
        if not any(p.has_classification or p.has_sentiment for p in partials):
            raise NormalizationError(
                "AI response has no classification or sentiment information"
            )

        recommendations = _first([p.label_recommendations for p in partials])
        return AiIssueAnalysis(
            classification=self._classification(data, partials),
            duplicate_detection=self._duplicate(partials, current_issue_number),
            sentiment=self._sentiment(partials),
            label_recommendations=recommendations or LabelRecommendations(),
            suggested_response=_first([p.suggested_response for p in partials]),
        )

    def _classification(
        self, data: dict[str, Any], partials: list[PartialAnalysis]
    ) -> Classification:
        kind = _first([normalize_kind(p.issue_type) for p in partials])
        reasoning = _first([p.classification_reasoning for p in partials])
        if kind is None:
            return Classification(
                type=IssueKind.UNKNOWN, confidence=0.0, reasoning=reasoning
            )

        confidence = _first([p.classification_confidence for p in partials])
        if confidence is None and not any(
            p.consumed_top_level_confidence for p in partials
        ):
            confidence = _confidence(data.get("confidence"))
        return Classification(
            type=kind,
            confidence=1.0 if confidence is None else confidence,
            reasoning=reasoning,
        )

    def _sentiment(self, partials: list[PartialAnalysis]) -> Sentiment:
        tone = _first([normalize_tone(p.tone) for p in partials])
        confidence = _first([p.sentiment_confidence for p in partials])
        return Sentiment(
            tone=tone or Tone.NEUTRAL,
            confidence=0.5 if confidence is None else confidence,
            reasoning=_first([p.sentiment_reasoning for p in partials]),
        )

    def _duplicate(
        self, partials: list[PartialAnalysis], current_issue_number: int
    ) -> DuplicateDetection:
        is_duplicate = bool(_first([p.is_duplicate for p in partials]))
        similarity = _first([p.similarity_score for p in partials])
        if similarity is None:
            similarity = 1.0 if is_duplicate else 0.0

        references = [ref for p in partials for ref in p.references]
        has_reference = any(p.has_reference for p in partials)
        target = first_valid_duplicate(references, current_issue_number)

        if has_reference and target is None:
            parsed = [parse_issue_reference(ref) for ref in references]
            if parsed and all(n == current_issue_number for n in parsed):
                reason = "reference points at the current issue"
            else:
                reason = "reference is not a positive issue number"
            logger.info(
                "Duplicate reference not actionable for issue #%s: %s (%r)",
                current_issue_number,
                reason,
                references,
            )

        return DuplicateDetection(
            is_duplicate=is_duplicate,
            original_issue_number=target,
            similarity_score=similarity,
            has_explicit_reference=has_reference,
        )


_default_normalizer = ResponseNormalizer()


def normalize_ai_response(raw_text: str, current_issue_number: int) -> AiIssueAnalysis:
    """Normalize with the default shape matchers."""
    return _default_normalizer.normalize(raw_text, current_issue_number)

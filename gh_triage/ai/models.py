"""Pydantic models for the canonical AI issue analysis."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IssueKind(str, Enum):
    """Issue classification types."""

    BUG = "bug"
    FEATURE = "feature"
    QUESTION = "question"
    UNKNOWN = "unknown"


class Tone(str, Enum):
    """Sentiment tones the planner reacts to."""

    NEUTRAL = "neutral"
    HOSTILE = "hostile"
    POSITIVE = "positive"


class _CanonicalModel(BaseModel):
    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        use_enum_values=True,
        validate_default=True,
    )


class Classification(_CanonicalModel):
    """What kind of issue the model thinks this is."""

    type: IssueKind = Field(IssueKind.UNKNOWN, description="Issue kind")
    confidence: float = Field(
        0.0, ge=0.0, le=1.0, description="Confidence in the classification"
    )
    reasoning: str | None = Field(None, description="Model explanation")


class DuplicateDetection(_CanonicalModel):
    """Duplicate verdict and the issue it points at, if any."""

    is_duplicate: bool = Field(False, description="Whether the issue is a duplicate")
    original_issue_number: int | None = Field(
        None, gt=0, description="Resolved target issue number"
    )
    similarity_score: float = Field(
        0.0, ge=0.0, le=1.0, description="Similarity with the target issue"
    )
    has_explicit_reference: bool = Field(
        False,
        description="Whether the response named any issue reference at all",
    )


class Sentiment(_CanonicalModel):
    """Tone of the issue text as judged by the model."""

    tone: Tone = Field(Tone.NEUTRAL, description="Detected tone")
    confidence: float = Field(0.5, ge=0.0, le=1.0, description="Tone confidence")
    reasoning: str | None = Field(None, description="Model explanation")


class LabelRecommendation(_CanonicalModel):
    """Whether the model suggests one curation label, and how sure it is."""

    should_apply: bool = Field(False, description="Model suggests the label")
    confidence: float = Field(
        0.0, ge=0.0, le=1.0, description="Recommendation confidence"
    )
    reasoning: str | None = Field(None, description="Model explanation")


class LabelRecommendations(_CanonicalModel):
    """Curation label suggestions. A missing entry means no recommendation."""

    documentation: LabelRecommendation | None = None
    help_wanted: LabelRecommendation | None = None
    good_first_issue: LabelRecommendation | None = None


class AiIssueAnalysis(_CanonicalModel):
    """Canonical analysis every provider response is normalized into."""

    classification: Classification = Field(default_factory=Classification)
    duplicate_detection: DuplicateDetection = Field(
        default_factory=DuplicateDetection
    )
    sentiment: Sentiment = Field(default_factory=Sentiment)
    label_recommendations: LabelRecommendations = Field(
        default_factory=LabelRecommendations
    )
    suggested_response: str | None = Field(
        None, description="Non-blank reply text drafted by the model"
    )

    @field_validator("suggested_response")
    @classmethod
    def blank_is_absent(cls, v: str | None) -> str | None:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

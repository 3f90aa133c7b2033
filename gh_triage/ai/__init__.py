"""AI response handling for issue triage."""

from .hostile_content import HostileContentHeuristic
from .llm import (
    LlmGateway,
    LlmRequest,
    LlmResult,
    OpenAICompatibleLlmGateway,
    PydanticAILlmGateway,
    create_llm_gateway,
)
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
from .normalizer import ResponseNormalizer, normalize_ai_response
from .prompts import TRIAGE_SYSTEM_PROMPT, build_triage_user_prompt

__all__ = [
    "HostileContentHeuristic",
    "LlmGateway",
    "LlmRequest",
    "LlmResult",
    "OpenAICompatibleLlmGateway",
    "PydanticAILlmGateway",
    "create_llm_gateway",
    "AiIssueAnalysis",
    "Classification",
    "DuplicateDetection",
    "IssueKind",
    "LabelRecommendation",
    "LabelRecommendations",
    "Sentiment",
    "Tone",
    "ResponseNormalizer",
    "normalize_ai_response",
    "TRIAGE_SYSTEM_PROMPT",
    "build_triage_user_prompt",
]

"""Environment driven configuration for triage policy, LLM and webhooks."""

import logging
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_HOSTILE_KEYWORDS: tuple[str, ...] = (
    "idiot",
    "stupid",
    "pathetic",
    "incompetent",
    "shut up",
    "wtf",
    "you have no idea",
    "hecho con el culo",
    "como el culo",
    "no tienes ni idea",
    "espabila",
)

DEFAULT_QUESTION_KEYWORDS: tuple[str, ...] = (
    "how do i",
    "how can i",
    "how to",
    "is it possible",
    "can i",
    "what is",
    "why does",
    "help with",
    "i need",
    "como ",
    "cómo",
    "necesito",
    "ayuda",
)

DEFAULT_FALLBACK_CHECKLIST: tuple[str, ...] = (
    "- Share the exact command you ran and the full output",
    "- Share your current .env values (without secrets)",
    "- Confirm the runtime and dependency versions you are using",
    "- Check the README setup section and tell us which step fails",
)

SUPPORTED_ACTIONS: tuple[str, ...] = ("opened", "edited")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_confidence(name: str, default: float) -> float:
    value = _env_float(name, default)
    if not 0.0 <= value <= 1.0:
        logger.warning("Ignoring out of range %s=%s, using %s", name, value, default)
        return default
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    return default


def _env_list(
    name: str, default: tuple[str, ...], separator: str = ","
) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [item.strip() for item in raw.split(separator) if item.strip()]


class TriagePolicy(BaseModel):
    """Thresholds, label names and phrase lists used by the action planner."""

    model_config = ConfigDict(frozen=True)

    classification_confidence_threshold: float = Field(
        0.8, ge=0.0, le=1.0, description="Minimum confidence to apply a kind label"
    )
    sentiment_confidence_threshold: float = Field(
        0.8,
        ge=0.0,
        le=1.0,
        description="Model sentiment at or above this overrides the keyword heuristic",
    )
    duplicate_similarity_threshold: float = Field(
        0.85, ge=0.0, le=1.0, description="Minimum similarity to act on a duplicate"
    )
    documentation_confidence_threshold: float = Field(0.9, ge=0.0, le=1.0)
    help_wanted_confidence_threshold: float = Field(0.9, ge=0.0, le=1.0)
    good_first_issue_confidence_threshold: float = Field(0.95, ge=0.0, le=1.0)
    kind_bug_label: str = "kind/bug"
    kind_feature_label: str = "kind/feature"
    kind_question_label: str = "kind/question"
    duplicate_label: str = "triage/duplicate"
    monitor_label: str = "triage/monitor"
    documentation_label: str = "documentation"
    help_wanted_label: str = "help wanted"
    good_first_issue_label: str = "good first issue"
    hostile_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_HOSTILE_KEYWORDS)
    )
    question_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_QUESTION_KEYWORDS)
    )
    fallback_checklist: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FALLBACK_CHECKLIST)
    )

    @field_validator("hostile_keywords", "question_keywords")
    @classmethod
    def lowercase_phrases(cls, v: list[str]) -> list[str]:
        """Phrases are matched against lowercased issue text."""
        return [phrase.strip().lower() for phrase in v if phrase.strip()]

    @field_validator("fallback_checklist")
    @classmethod
    def checklist_bullets(cls, v: list[str]) -> list[str]:
        """Every checklist item is rendered as a markdown bullet."""
        items = [item.strip() for item in v if item.strip()]
        return [item if item.startswith("- ") else f"- {item}" for item in items]

    @property
    def kind_labels(self) -> tuple[str, str, str]:
        return (self.kind_bug_label, self.kind_feature_label, self.kind_question_label)

    def kind_label_for(self, issue_type: str) -> str | None:
        """Map a classification type to its configured label."""
        return {
            "bug": self.kind_bug_label,
            "feature": self.kind_feature_label,
            "question": self.kind_question_label,
        }.get(issue_type)

    @classmethod
    def from_env(cls) -> "TriagePolicy":
        """Load the policy from AI_* environment variables.

        Thresholds outside 0..1 fall back to their defaults. The fallback
        checklist (AI_FALLBACK_CHECKLIST) is split on "|" because items
        routinely contain commas.
        """
        return cls(
            classification_confidence_threshold=_env_confidence(
                "AI_CLASSIFICATION_CONFIDENCE_THRESHOLD", 0.8
            ),
            sentiment_confidence_threshold=_env_confidence(
                "AI_SENTIMENT_CONFIDENCE_THRESHOLD", 0.8
            ),
            duplicate_similarity_threshold=_env_confidence(
                "AI_DUPLICATE_SIMILARITY_THRESHOLD", 0.85
            ),
            documentation_confidence_threshold=_env_confidence(
                "AI_LABEL_DOCUMENTATION_CONFIDENCE_THRESHOLD", 0.9
            ),
            help_wanted_confidence_threshold=_env_confidence(
                "AI_LABEL_HELP_WANTED_CONFIDENCE_THRESHOLD", 0.9
            ),
            good_first_issue_confidence_threshold=_env_confidence(
                "AI_LABEL_GOOD_FIRST_ISSUE_CONFIDENCE_THRESHOLD", 0.95
            ),
            kind_bug_label=os.getenv("AI_KIND_BUG_LABEL", "kind/bug"),
            kind_feature_label=os.getenv("AI_KIND_FEATURE_LABEL", "kind/feature"),
            kind_question_label=os.getenv("AI_KIND_QUESTION_LABEL", "kind/question"),
            duplicate_label=os.getenv("AI_TRIAGE_DUPLICATE_LABEL", "triage/duplicate"),
            monitor_label=os.getenv("AI_TRIAGE_MONITOR_LABEL", "triage/monitor"),
            documentation_label=os.getenv("AI_LABEL_DOCUMENTATION", "documentation"),
            help_wanted_label=os.getenv("AI_LABEL_HELP_WANTED", "help wanted"),
            good_first_issue_label=os.getenv(
                "AI_LABEL_GOOD_FIRST_ISSUE", "good first issue"
            ),
            hostile_keywords=_env_list("AI_HOSTILE_KEYWORDS", DEFAULT_HOSTILE_KEYWORDS),
            question_keywords=_env_list(
                "AI_QUESTION_KEYWORDS", DEFAULT_QUESTION_KEYWORDS
            ),
            fallback_checklist=_env_list(
                "AI_FALLBACK_CHECKLIST", DEFAULT_FALLBACK_CHECKLIST, separator="|"
            ),
        )


class TriageSettings(BaseModel):
    """Runtime knobs for one AI triage invocation."""

    recent_issues_limit: int = Field(15, ge=1)
    timeout_ms: int = Field(7000, ge=1)
    max_tokens: int = Field(700, ge=1)
    temperature: float = Field(0.1, ge=0.0, le=2.0)
    bot_login: str | None = None
    environment: str = "development"
    log_raw_response: bool = False
    raw_preview_chars: int = 500

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_env(cls) -> "TriageSettings":
        return cls(
            recent_issues_limit=_env_int("AI_RECENT_ISSUES_LIMIT", 15),
            timeout_ms=_env_int("LLM_TIMEOUT", 7000),
            max_tokens=_env_int("AI_MAX_TOKENS", 700),
            temperature=_env_float("AI_TEMPERATURE", 0.1),
            bot_login=os.getenv("GITHUB_BOT_LOGIN") or None,
            environment=os.getenv("APP_ENV", "development"),
            log_raw_response=_env_bool("AI_LOG_RAW_RESPONSE", False),
        )


class LlmSettings(BaseModel):
    """Which single LLM adapter this process uses."""

    provider: str = "pydantic-ai"
    model: str = "openai:gpt-4o-mini"
    base_url: str | None = None
    api_key: str | None = None
    tracing_enabled: bool = False

    @classmethod
    def from_env(cls) -> "LlmSettings":
        return cls(
            provider=os.getenv("LLM_PROVIDER", "pydantic-ai").strip().lower(),
            model=os.getenv("LLM_MODEL", "openai:gpt-4o-mini"),
            base_url=os.getenv("LLM_BASE_URL") or None,
            api_key=os.getenv("LLM_API_KEY") or None,
            tracing_enabled=_env_bool("LLM_TRACING_ENABLED", False),
        )


class WebhookSettings(BaseModel):
    """Ingress settings for the GitHub webhook endpoint."""

    secret: str | None = None
    verify_signature: bool = False
    require_delivery_id: bool = True
    delivery_ttl_seconds: int = 86400
    allowed_repositories: list[str] = Field(default_factory=list)

    @field_validator("delivery_ttl_seconds")
    @classmethod
    def ttl_floor(cls, v: int) -> int:
        return max(v, 1)

    @field_validator("allowed_repositories")
    @classmethod
    def lowercase_repositories(cls, v: list[str]) -> list[str]:
        return [repo.strip().lower() for repo in v if repo.strip()]

    def is_repository_allowed(self, full_name: str) -> bool:
        """An empty allowlist admits every repository."""
        if not self.allowed_repositories:
            return True
        return full_name.lower() in self.allowed_repositories

    @classmethod
    def from_env(cls) -> "WebhookSettings":
        """Load settings, failing fast when verification lacks a secret.

        A configured secret is always enforced. Without one, verification is
        only requested explicitly or by running in production, and that
        combination is rejected.

        Raises:
            ConfigurationError: If verification is enabled without a secret
        """
        secret = (os.getenv("GITHUB_WEBHOOK_SECRET") or "").strip() or None
        is_production = os.getenv("APP_ENV", "development").lower() == "production"
        verify = secret is not None or _env_bool(
            "GITHUB_WEBHOOK_VERIFY_SIGNATURE", is_production
        )
        if verify and secret is None:
            raise ConfigurationError(
                "GITHUB_WEBHOOK_SECRET is required when webhook signature "
                "verification is enabled"
            )
        return cls(
            secret=secret,
            verify_signature=verify,
            require_delivery_id=_env_bool("GITHUB_WEBHOOK_REQUIRE_DELIVERY_ID", True),
            delivery_ttl_seconds=_env_int("GITHUB_WEBHOOK_DELIVERY_TTL_SECONDS", 86400),
            allowed_repositories=_env_list("GITHUB_WEBHOOK_ALLOWED_REPOSITORIES", ()),
        )

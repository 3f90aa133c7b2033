"""Exception hierarchy for the triage pipeline."""


class TriageError(Exception):
    """Base class for triage pipeline failures."""


class NormalizationError(TriageError):
    """Raised when raw LLM output cannot be turned into a canonical analysis."""


class UpstreamError(TriageError):
    """Raised when the LLM provider fails, times out or returns nothing."""


class GovernanceWriteError(TriageError):
    """Raised when GitHub rejects a label or comment mutation."""


class ConfigurationError(TriageError, ValueError):
    """Raised when required settings are missing or inconsistent."""

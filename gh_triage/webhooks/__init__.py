"""GitHub webhook ingress: signature check, delivery dedup and processing."""

from .app import create_app, create_app_from_env
from .deduplicator import DeliveryDeduplicator, RegistrationResult
from .processor import IssueWebhookProcessor
from .signature import SignatureVerifier
from .validation import ValidationResult, validate_issue_integrity

__all__ = [
    "create_app",
    "create_app_from_env",
    "DeliveryDeduplicator",
    "RegistrationResult",
    "IssueWebhookProcessor",
    "SignatureVerifier",
    "ValidationResult",
    "validate_issue_integrity",
]

"""AI-assisted triage of GitHub issue webhooks."""

__version__ = "0.1.0"

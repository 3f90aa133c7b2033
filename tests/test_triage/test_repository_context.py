"""Tests for README usage detection."""

from gh_triage.triage.repository_context import detect_repository_context_usage

README = """# Widgets

Install dependencies with poetry install, then copy .env.example to .env
and set DATABASE_URL before running migrations.
"""


def test_reply_grounded_in_readme() -> None:
    """Test two shared meaningful words count as usage."""
    reply = "Copy .env.example first, then run the migrations with DATABASE_URL set."
    assert detect_repository_context_usage(reply, README)


def test_generic_reply_not_grounded() -> None:
    """Test a generic checklist does not count as usage."""
    reply = "- Share the exact command you ran and the full output"
    assert not detect_repository_context_usage(reply, README)


def test_missing_readme() -> None:
    """Test no README means no usage."""
    assert not detect_repository_context_usage("migrations database_url", None)
    assert not detect_repository_context_usage("migrations database_url", "   ")


def test_stop_words_ignored() -> None:
    """Test shared filler words alone are not enough."""
    assert not detect_repository_context_usage(
        "About the README setup checklist", "README setup checklist about"
    )

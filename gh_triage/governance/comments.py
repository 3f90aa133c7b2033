"""Comment bodies posted by the triage bot."""

DUPLICATE_COMMENT_PREFIX = "AI Triage: Possible duplicate of #"
QUESTION_REPLY_HISTORY_PREFIX = "AI Triage: Suggested"
AI_REPLY_COMMENT_PREFIX = "AI Triage: Suggested guidance"
FALLBACK_REPLY_COMMENT_PREFIX = "AI Triage: Suggested setup checklist"
VALIDATION_COMMENT_HEADER = "Issue validation failed. Please fix the following items:"


class CommentGenerator:
    """Builds the markdown posted on issues."""

    def duplicate_comment(self, original_issue_number: int, similarity_score: float) -> str:
        percent = round(similarity_score * 100)
        return (
            f"{DUPLICATE_COMMENT_PREFIX}{original_issue_number} "
            f"(Similarity: {percent}%)."
        )

    def question_reply(self, response: str, from_ai: bool) -> str:
        """Reply to a question with the model's answer or the fallback checklist.

        Both variants start with QUESTION_REPLY_HISTORY_PREFIX so a single
        history lookup finds either of them.
        """
        prefix = AI_REPLY_COMMENT_PREFIX if from_ai else FALLBACK_REPLY_COMMENT_PREFIX
        return f"{prefix}\n\n{response}"

    def validation_failure(self, errors: list[str]) -> str:
        lines = [VALIDATION_COMMENT_HEADER]
        for error in errors:
            lines.append(f"- {error}")
        return "\n".join(lines)

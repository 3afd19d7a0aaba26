"""
Prompt template for conventional commit message generation.
"""

from typing import Optional


COMMIT_TYPES = [
    "feat", "fix", "docs", "style", "refactor",
    "test", "chore", "perf", "ci", "build"
]


class PromptBuilder:
    """Build the commit message prompt from a staged diff."""

    def __init__(self, subject_limit: int = 50, body_line_limit: int = 120):
        """Initialize prompt builder with conventional commit limits."""
        self.subject_limit = subject_limit
        self.body_line_limit = body_line_limit

    def build_commit_prompt(self, diff: str, truncated_from: Optional[int] = None) -> str:
        """Build the commit message generation prompt."""
        note = ""
        if truncated_from:
            note = f"\nNote: the diff was truncated from {truncated_from} lines; focus on the most significant changes.\n"

        return f"""Analyze the following git diff and create a conventional commit message.

Instructions:
1. Determine the commit type: {", ".join(COMMIT_TYPES[:-1])}, or {COMMIT_TYPES[-1]}
2. If possible, detect a relevant scope (e.g., filename, component, or module name)
3. Write a concise subject (under {self.subject_limit} characters)
4. Add a body with bullet points (each line max {self.body_line_limit} characters)
5. Add a footer for issue references (e.g., "Closes #123", "Refs #456")

Format:
type(scope): subject

- Bullet point 1 (max {self.body_line_limit} chars per line)
- Bullet point 2 (max {self.body_line_limit} chars per line)

Footer: Closes #123

Examples:
- feat(auth): add OAuth login

- Added Google OAuth 2.0 support with PKCE flow
- Token refresh handled automatically with secure storage

Closes #45

- fix(api): handle null response

- Added null check for API response data
- Returns empty array when no results found

Refs #78

Respond with the commit message only.
{note}
Diff:
{diff}"""

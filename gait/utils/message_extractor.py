"""
Commit message extraction and cleaning utilities.
"""

import re
from typing import Optional
from loguru import logger


class MessageExtractor:
    """Normalize raw model output into a commit message."""

    def __init__(self):
        """Initialize message extractor."""
        self._compile_patterns()

    def _compile_patterns(self) -> None:
        """Compile regex patterns for efficient matching."""
        # Reasoning models wrap their chain of thought in tags
        self.think_tags = re.compile(r'<(think|thinking|reasoning)>.*?</\1>', re.DOTALL | re.IGNORECASE)
        self.unclosed_think = re.compile(r'^.*?</(think|thinking|reasoning)>', re.DOTALL | re.IGNORECASE)

        # `ollama run` prints its own markers around the thinking section
        self.cli_thinking = re.compile(r'Thinking\.\.\..*?\.\.\.done thinking\.', re.DOTALL)

        # Terminal control sequences emitted by the CLI spinner
        self.ansi = re.compile(r'\x1b\[[0-9;?]*[A-Za-z]|\x1b\][^\x07]*\x07|[⠀-⣿]')

        self.code_fence = re.compile(r'```[\w-]*')
        self.label = re.compile(r'^(commit message|message|subject)\s*:\s*', re.IGNORECASE)
        self.wrapping_quotes = re.compile(r'^(["\'`])(.+)\1$')

    def extract_commit_message(self, raw_response: str) -> Optional[str]:
        """Return "subject" or "subject\\n\\nbody", or None if nothing usable remains."""
        logger.debug(f"Extracting commit message from {len(raw_response)} char response")

        cleaned = self._clean_response(raw_response)
        lines = [line.rstrip() for line in cleaned.split('\n') if line.strip()]

        if not lines:
            logger.warning("Empty response after cleaning")
            return None

        subject = self._clean_subject(lines[0])
        if not subject:
            logger.warning("Could not extract a subject line from the response")
            return None

        body = '\n'.join(line.strip() for line in lines[1:])
        message = f"{subject}\n\n{body}" if body else subject

        logger.debug(f"Extracted commit message: {message!r}")
        return message

    def _clean_response(self, response: str) -> str:
        """Strip thinking artefacts, control codes and markdown fences."""
        cleaned = self.ansi.sub('', response)
        cleaned = self.think_tags.sub('', cleaned)
        cleaned = self.unclosed_think.sub('', cleaned)
        cleaned = self.cli_thinking.sub('', cleaned)
        cleaned = self.code_fence.sub('', cleaned)
        cleaned = cleaned.replace('\r', '')
        return cleaned.strip()

    def _clean_subject(self, line: str) -> str:
        """Tidy the subject line."""
        line = line.strip()
        line = re.sub(r'^[-*]\s+', '', line)
        line = self.label.sub('', line)
        line = line.replace('**', '')
        wrapped = self.wrapping_quotes.match(line)
        if wrapped:
            line = wrapped.group(2)
        return line.strip()


# Create global instance
message_extractor = MessageExtractor()

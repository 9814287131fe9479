"""Heuristic safety checks for user-submitted text.

This is a defense-in-depth filter that keeps obvious markup injection, spam
and contact details away from the paid upstream call. It is not a security
boundary: a determined user can bypass pattern matching.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

EMPTY_TEXT_MESSAGE = "Please enter some text."
MALICIOUS_CONTENT_MESSAGE = "Potentially malicious content detected"
PROHIBITED_PATTERN_MESSAGE = "Content contains prohibited patterns"

# Checked in order; the first match wins.
MALICIOUS_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("script_tag", re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)),
    ("javascript_protocol", re.compile(r"javascript:", re.IGNORECASE)),
    ("event_handler", re.compile(r"on\w+\s*=", re.IGNORECASE)),
    ("data_html_url", re.compile(r"data:text/html", re.IGNORECASE)),
    ("vbscript_protocol", re.compile(r"vbscript:", re.IGNORECASE)),
)

PROHIBITED_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("denylist_keyword", re.compile(r"\b(spam|viagra|casino|poker|bet)\b", re.IGNORECASE)),
    ("url", re.compile(r"(http|https)://[^\s]+", re.IGNORECASE)),
    ("email", re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")),
)


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None


class InputValidator:
    """Stateless text validator."""

    @staticmethod
    def validate_text(text: str | None, max_length: int) -> ValidationResult:
        """Validate text against length and content rules.

        Rules are applied in order and the first failure is reported:
        emptiness, length, malicious markup/protocols, prohibited patterns.

        Args:
            text: User-provided text (None is treated as empty).
            max_length: Maximum allowed number of characters.

        Returns:
            ValidationResult with ``error`` set when invalid.
        """
        if not text or not text.strip():
            return ValidationResult(False, EMPTY_TEXT_MESSAGE)

        if len(text) > max_length:
            logger.info(
                "input_validation.rejected",
                extra={"rule": "max_length", "length": len(text), "max_length": max_length},
            )
            return ValidationResult(
                False, f"Text too long. Maximum {max_length} characters allowed."
            )

        for rule, pattern in MALICIOUS_PATTERNS:
            if pattern.search(text):
                logger.warning("input_validation.rejected", extra={"rule": rule})
                return ValidationResult(False, MALICIOUS_CONTENT_MESSAGE)

        for rule, pattern in PROHIBITED_PATTERNS:
            if pattern.search(text):
                logger.info("input_validation.rejected", extra={"rule": rule})
                return ValidationResult(False, PROHIBITED_PATTERN_MESSAGE)

        return ValidationResult(True)

"""Redaction of personal data and credentials in log output.

Form answers routinely contain e-mail addresses, phone numbers or bank
details, and transport errors can echo request headers.
"""

import re
from typing import Any, Mapping, Optional


class PIIRedactor:
    """Redact PII and secrets from text before logging."""

    PATTERNS = {
        'bearer_token': r'\b[Bb]earer\s+[A-Za-z0-9\-._~+/]+=*',
        'email': r'\b[\w.+-]+@[\w.-]+\.\w{2,}\b',
        'iban': r'\b[A-Z]{2}\d{2}\s?(?:[\dA-Z]{4}\s?){3,5}[\dA-Z]{0,4}\b',
        'credit_card': r'\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b',
        'phone': r'(?<![\w-])(?:\+|00|0)\d[\d\s/()-]{6,}\d\b',
    }

    _COMPILED = {name: re.compile(pattern) for name, pattern in PATTERNS.items()}

    @classmethod
    def redact(cls, text: Optional[str]) -> str:
        """
        Redact PII from text.

        Returns:
            Text with every match replaced by [TYPE_REDACTED]
        """
        if not text:
            return ""

        result = text
        for name, pattern in cls._COMPILED.items():
            result = pattern.sub(f'[{name.upper()}_REDACTED]', result)
        return result

    @classmethod
    def redact_for_logging(cls, text: Optional[str]) -> str:
        return cls.redact(text)

    @classmethod
    def redact_answers(cls, answers: Mapping[str, Any]) -> dict[str, Any]:
        """Redact string answer values, keeping the question keys readable."""
        return {
            key: cls.redact(value) if isinstance(value, str) else value
            for key, value in answers.items()
        }

"""Log formatters for the patient records client."""

import logging
import re

# (pattern, replacement) pairs applied in order
PII_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"[\w.%+-]+@[\w-]+(?:\.[\w-]+)+"), "[EMAIL-REDACTED]"),
    # Birth dates, but not the asctime prefix (which has a time part)
    (re.compile(r"\b\d{4}-\d{2}-\d{2}\b(?![ T]\d{2}:)"), "[DATE-REDACTED]"),
    (re.compile(r"\+?\(?\d{3}\)?[\s.-]\d{3}[\s.-]\d{4}\b"), "[PHONE-REDACTED]"),
    (re.compile(r"\+\d[\d\s-]{6,}\d"), "[PHONE-REDACTED]"),
    (re.compile(r'name=["\']?([^"\',|]+)["\']?'), "name=[NAME-REDACTED]"),
]


class PIIRedactingFormatter(logging.Formatter):
    """Formatter that masks patient details in the final log line.

    Emails, phone numbers, ISO birth dates and ``name=`` pairs are replaced
    with ``[...-REDACTED]`` markers when ``redact_pii`` is set.

    Example:
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(PIIRedactingFormatter(redact_pii=True))
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii
        self.patterns = list(PII_PATTERNS)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.redact_pii:
            return text
        for pattern, replacement in self.patterns:
            text = pattern.sub(replacement, text)
        return text

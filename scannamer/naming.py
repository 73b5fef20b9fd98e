"""
Naming rule engine.

Derives a filename stem from OCR text according to a renaming rule.
Never logs the text it works on.
"""

import logging
import re
from datetime import datetime
from typing import Callable

from . import fields
from .fields import DocumentClass
from .models import RenamingRule, RuleKind
from .renamer import sanitize_filename

logger = logging.getLogger(__name__)


MAX_LINE_LENGTH = 50
FALLBACK_STEM = "Document"

# OCR artifacts: anything outside word chars, whitespace and -.,;:()$%@#
ARTIFACT_PATTERN = re.compile(r'[^\w\s\-.,;:()$%@#]')

# .NET-style substitutions: $1, ${name}, $0 and the $$ escape
REPLACEMENT_TOKEN_PATTERN = re.compile(r'\$(?:(\d+)|\{(\w+)\}|(\$))')

# (?<name>...) is written (?P<name>...) in Python; leave lookbehinds alone
NAMED_GROUP_PATTERN = re.compile(r'\(\?<(?![=!])')


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs inside each line and drop empty lines."""
    lines = (' '.join(line.split()) for line in text.splitlines())
    return '\n'.join(line for line in lines if line)


def clean_text(text: str) -> str:
    """
    Normalize OCR text before naming.

    - Collapses whitespace runs inside each line to a single space
    - Drops empty lines, keeps line breaks between the rest
    - Strips OCR artifacts
    """
    return normalize_whitespace(ARTIFACT_PATTERN.sub('', text))


def truncate(text: str, max_length: int = MAX_LINE_LENGTH) -> str:
    """Cut text to max_length, at the last space when it is past the midpoint."""
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(' ')
    if last_space > max_length // 2:
        return truncated[:last_space]
    return truncated


def expand_replacement(match: re.Match, replacement: str) -> str:
    """Expand $1 / ${name} / $$ in replacement; other text is literal."""

    def substitute(token: re.Match) -> str:
        number, name, dollar = token.groups()
        if dollar:
            return '$'
        try:
            value = match.group(int(number) if number is not None else name)
        except IndexError:
            # Unknown group: keep the token as written
            return token.group(0)
        return value or ''

    return REPLACEMENT_TOKEN_PATTERN.sub(substitute, replacement)


class NameGenerator:
    """
    Generates candidate filenames from extracted text.

    One method per rule kind, dispatched on ``rule.kind``. Every strategy
    falls back rather than raising, so ``generate`` always returns a
    non-empty, sanitized stem.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        """
        Args:
            clock: Source of "now" for dates, times and fallback names.
        """
        self.clock = clock
        self._strategies = {
            RuleKind.FIRST_LINE: self._first_line,
            RuleKind.REGEX: self._regex,
            RuleKind.TEMPLATE: self._template,
            RuleKind.DATE_BASED: self._date_based,
            RuleKind.SMART: self._smart,
        }

    def generate(self, text: str, rule: RenamingRule) -> str:
        """
        Generate a filename stem.

        Args:
            text: Raw OCR text.
            rule: Rule selecting the strategy and its parameters.

        Returns:
            Sanitized stem, never empty.
        """
        if not text or not text.strip():
            return self.fallback_name()

        cleaned = clean_text(text)
        if not cleaned:
            return self.fallback_name()

        if rule.kind is RuleKind.SMART:
            # Field lookups need the raw punctuation, e.g. 15/01/2024
            name = self._smart(normalize_whitespace(text), rule)
        else:
            strategy = self._strategies.get(rule.kind, self._first_line)
            name = strategy(cleaned, rule)
        logger.debug(f"Generated name with {rule.kind.value} rule '{rule.name}'")
        return sanitize_filename(name)

    def fallback_name(self) -> str:
        return f"{FALLBACK_STEM}_{self.clock():%Y%m%d_%H%M%S}"

    # --- strategies ---

    def _first_line(self, text: str, rule: RenamingRule = None) -> str:
        for line in text.split('\n'):
            line = line.strip()
            if len(line) > 3 and not fields.is_header_line(line):
                return truncate(line)
        return FALLBACK_STEM

    def _regex(self, text: str, rule: RenamingRule) -> str:
        if not rule.pattern or not rule.replacement:
            return self._first_line(text)

        try:
            pattern = re.compile(NAMED_GROUP_PATTERN.sub('(?P<', rule.pattern))
        except re.error as e:
            logger.warning(f"Invalid pattern in rule '{rule.name}': {e}")
            return self._first_line(text)

        result = pattern.sub(lambda m: expand_replacement(m, rule.replacement), text)
        if not result.strip():
            return self._first_line(text)
        return result

    def _template(self, text: str, rule: RenamingRule) -> str:
        if not rule.template:
            return self._first_line(text)

        now = self.clock()
        first_line = text.split('\n', 1)[0].strip()
        return (
            rule.template
            .replace('{date}', now.strftime('%Y-%m-%d'))
            .replace('{time}', now.strftime('%H-%M-%S'))
            .replace('{text}', first_line)
        )

    def _date_based(self, text: str, rule: RenamingRule = None) -> str:
        first_words = '_'.join(text.split()[:3])
        return f"{self.clock():%Y-%m-%d}_{first_words}"

    def _smart(self, text: str, rule: RenamingRule = None) -> str:
        document_class = fields.classify(text)

        if document_class is DocumentClass.INVOICE:
            number = fields.extract_invoice_number(text) or "INV"
            vendor = fields.extract_vendor(text) or "Company"
            return f"Invoice_{number}_{vendor}_{self._document_date(text)}"

        if document_class is DocumentClass.RECEIPT:
            vendor = fields.extract_vendor(text) or "Vendor"
            amount = fields.extract_amount(text) or ""
            return f"Receipt_{vendor}_{self._document_date(text)}_{amount}"

        if document_class is DocumentClass.LETTER:
            recipient = fields.extract_recipient(text) or "Recipient"
            return f"Letter_{recipient}_{self._document_date(text)}"

        return self._meaningful_line(text)

    def _meaningful_line(self, text: str) -> str:
        for line in clean_text(text).split('\n'):
            line = line.strip()
            if (5 <= len(line) <= 80
                    and not fields.is_header_line(line)
                    and fields.has_meaningful_content(line)):
                return line[:MAX_LINE_LENGTH]
        return self.fallback_name()

    def _document_date(self, text: str) -> str:
        found = fields.extract_date(text)
        return (found or self.clock().date()).strftime('%Y-%m-%d')

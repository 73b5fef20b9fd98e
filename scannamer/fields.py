"""
Structured field extraction from OCR text.

Document classification plus vendor, date, amount, number and recipient
lookups used by the smart naming strategy. Each lookup walks an ordered
list of candidate patterns; the first successful match wins.
"""

import re
from datetime import date
from enum import Enum
from typing import Iterable, Optional


class DocumentClass(str, Enum):
    INVOICE = "invoice"
    RECEIPT = "receipt"
    LETTER = "letter"


# Checked in this order; the first class with any keyword present wins
CLASS_KEYWORDS = (
    (DocumentClass.INVOICE, ("invoice", "bill", "amount due", "total", "payment", "due date")),
    (DocumentClass.RECEIPT, ("receipt", "thank you", "purchase", "transaction")),
    (DocumentClass.LETTER, ("dear", "sincerely", "regards", "yours truly")),
)

# Month prefix to number mapping
MONTH_MAP = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4,
    'may': 5, 'jun': 6, 'jul': 7, 'aug': 8,
    'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12
}

_MONTH_NAMES = r'(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?'

# Lines that look like page furniture rather than content
HEADER_PATTERNS = (
    re.compile(r'^\d+$'),
    re.compile(r'^Page\s+\d+', re.IGNORECASE),
    re.compile(r'^\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}$'),
)

INVOICE_NUMBER_PATTERNS = (
    re.compile(r'Invoice\s+(?:Number|No\.?)\s*[:#]?\s*([A-Za-z0-9\-]*\d[A-Za-z0-9\-]*)', re.IGNORECASE),
    re.compile(r'Invoice\s*#?\s*(\d+)', re.IGNORECASE),
    re.compile(r'INV\s*-?\s*(\d+)', re.IGNORECASE),
    re.compile(r'Bill\s*#?\s*(\d+)', re.IGNORECASE),
)

VENDOR_LABEL_PATTERN = re.compile(
    r'(?:From|Bill To|Vendor)\s*:\s*([A-Z][A-Za-z&.,\']*(?:[ \t]+[A-Z][A-Za-z&.,\']*){0,3})'
)
VENDOR_SUFFIX_PATTERN = re.compile(
    r'\b([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)[ \t]+(?:Inc|LLC|Corp|Ltd|Company)\b'
)
VENDOR_LINE_PATTERN = re.compile(r"^[A-Z][a-zA-Z\s&.,'-]+$")
CORPORATE_SUFFIX_PATTERN = re.compile(r'\b(?:Inc|LLC|Corp|Ltd|Company|Co)\b\.?', re.IGNORECASE)

# (pattern, group order) where order names which groups are day/month/year
NUMERIC_DATE_PATTERNS = (
    re.compile(r'(?<!\d)(\d{1,2})[/\-](\d{1,2})[/\-](\d{4}|\d{2})(?!\d)'),
    re.compile(r'(?<!\d)(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})(?!\d)'),
)
MONTH_FIRST_PATTERN = re.compile(_MONTH_NAMES + r'\s+(\d{1,2}),?\s+(\d{4})\b', re.IGNORECASE)
DAY_FIRST_PATTERN = re.compile(r'\b(\d{1,2})\s+' + _MONTH_NAMES + r',?\s+(\d{4})\b', re.IGNORECASE)

AMOUNT_PATTERNS = (
    re.compile(r'\$\s*(\d+(?:,\d{3})*(?:\.\d{2})?)'),
    re.compile(r'Total[:\s]+\$?\s*(\d+(?:,\d{3})*(?:\.\d{2})?)', re.IGNORECASE),
    re.compile(r'Amount[:\s]+\$?\s*(\d+(?:,\d{3})*(?:\.\d{2})?)', re.IGNORECASE),
)

RECIPIENT_PATTERN = re.compile(
    r'\b[Dd]ear\s+(?:(?:Mr|Mrs|Ms|Dr)\.?\s+)?([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)?)'
)

LETTER_PATTERN = re.compile(r'[A-Za-z]')
NUMERIC_ONLY_PATTERN = re.compile(r'^[\d\s\-/.]+$')


def classify(text: str) -> Optional[DocumentClass]:
    """Return the first document class whose keywords appear in text."""
    lowered = text.lower()
    for document_class, keywords in CLASS_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return document_class
    return None


def is_header_line(line: str) -> bool:
    """True for page numbers, bare dates and lone numbers."""
    return any(pattern.search(line) for pattern in HEADER_PATTERNS)


def has_meaningful_content(line: str) -> bool:
    return bool(LETTER_PATTERN.search(line)) and not NUMERIC_ONLY_PATTERN.match(line)


def _first_group(patterns: Iterable[re.Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def extract_invoice_number(text: str) -> Optional[str]:
    return _first_group(INVOICE_NUMBER_PATTERNS, text)


def extract_vendor(text: str) -> Optional[str]:
    """
    Find the issuing company.

    Order:
    1. "From:", "Bill To:" or "Vendor:" label
    2. Capitalized words followed by Inc/LLC/Corp/Ltd/Company
    3. First short capitalized line among the first five lines
    """
    for pattern in (VENDOR_LABEL_PATTERN, VENDOR_SUFFIX_PATTERN):
        match = pattern.search(text)
        if match:
            name = clean_company_name(match.group(1))
            if name:
                return name

    lines = [line.strip() for line in text.split('\n') if line.strip()]
    for line in lines[:5]:
        if is_header_line(line):
            continue
        if 3 < len(line) < 50 and VENDOR_LINE_PATTERN.match(line):
            name = clean_company_name(line)
            if name:
                return name

    return None


def clean_company_name(name: str) -> str:
    """Drop corporate suffixes and punctuation, join words with "_"."""
    name = CORPORATE_SUFFIX_PATTERN.sub('', name)
    name = re.sub(r'[^\w\s]', '', name)
    name = re.sub(r'\s+', '_', name.strip())
    return name.strip('_')


def extract_date(text: str) -> Optional[date]:
    """
    Find the first date in text that is a real calendar date.

    Numeric dates are read day-first (D/M/Y); when that is not a valid date
    the month-first reading (M/D/Y) is tried. Two-digit years below 69 map
    to 20xx, the rest to 19xx.
    """
    day_first, year_first = NUMERIC_DATE_PATTERNS

    for match in day_first.finditer(text):
        first, second, year = (int(g) for g in match.groups())
        year = _expand_year(year)
        parsed = _make_date(year, second, first) or _make_date(year, first, second)
        if parsed:
            return parsed

    for match in year_first.finditer(text):
        year, month, day = (int(g) for g in match.groups())
        parsed = _make_date(year, month, day)
        if parsed:
            return parsed

    for match in MONTH_FIRST_PATTERN.finditer(text):
        month = MONTH_MAP[match.group(1).lower()[:3]]
        parsed = _make_date(int(match.group(3)), month, int(match.group(2)))
        if parsed:
            return parsed

    for match in DAY_FIRST_PATTERN.finditer(text):
        month = MONTH_MAP[match.group(2).lower()[:3]]
        parsed = _make_date(int(match.group(3)), month, int(match.group(1)))
        if parsed:
            return parsed

    return None


def extract_amount(text: str) -> Optional[str]:
    """Dollar amount or Total/Amount figure, commas removed."""
    amount = _first_group(AMOUNT_PATTERNS, text)
    if amount is None:
        return None
    return amount.replace(',', '')


def extract_recipient(text: str) -> Optional[str]:
    match = RECIPIENT_PATTERN.search(text)
    if match:
        return match.group(1)
    return None


def _expand_year(year: int) -> int:
    if year >= 100:
        return year
    return 2000 + year if year < 69 else 1900 + year


def _make_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        # Invalid date
        return None

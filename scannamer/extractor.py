"""
Text extraction module.

Images are read with Tesseract (via pytesseract). PDFs are read from their
embedded text layer with pdfplumber; scanned PDFs without a text layer
would need rasterization, which is not done here, so they fail like any
other unreadable input.
"""

import logging
from pathlib import Path
from typing import Optional, Protocol, Union

import pdfplumber
import pytesseract
from PIL import Image, ImageSequence

from .errors import OcrEngineError

logger = logging.getLogger(__name__)


IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".tiff", ".bmp"})
PDF_EXTENSIONS = frozenset({".pdf"})


class TextExtractor(Protocol):
    """OCR collaborator used by the pipeline."""

    def supports(self, path: Union[str, Path]) -> bool:
        """True when the file type can be handed to ``extract``."""
        ...

    def extract(self, path: Union[str, Path]) -> str:
        """
        Return the text of the document.

        Raises:
            OcrEngineError: Unsupported, corrupt or unreadable input.
        """
        ...


class TesseractExtractor:
    """
    Extracts text from scanned images and text-layer PDFs.

    Text is returned in memory only; nothing is cached or written to disk.
    """

    def __init__(self, language: str = "eng", tesseract_cmd: Optional[str] = None):
        """
        Initialize extractor.

        Args:
            language: Tesseract language code(s), e.g. "eng" or "eng+deu".
            tesseract_cmd: Path to the tesseract binary if not on PATH.
        """
        self.language = language
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def verify(self) -> str:
        """
        Check that the Tesseract binary can be run.

        Returns:
            The Tesseract version string.

        Raises:
            OcrEngineError: If Tesseract is missing.
        """
        try:
            return str(pytesseract.get_tesseract_version())
        except pytesseract.TesseractNotFoundError as e:
            raise OcrEngineError(f"Tesseract is not installed or not on PATH: {e}") from e

    def supports(self, path: Union[str, Path]) -> bool:
        suffix = Path(path).suffix.lower()
        return suffix in IMAGE_EXTENSIONS or suffix in PDF_EXTENSIONS

    def extract(self, path: Union[str, Path]) -> str:
        """
        Extract all text from a document.

        Args:
            path: Image or PDF file.

        Returns:
            Extracted text with normalized whitespace.

        Raises:
            OcrEngineError: If the file is unsupported or cannot be read.
        """
        path = Path(path)

        if not path.exists():
            raise OcrEngineError(f"File not found: {path}")

        suffix = path.suffix.lower()
        logger.debug(f"Extracting text from: {path}")

        try:
            if suffix in PDF_EXTENSIONS:
                text = self._extract_pdf(path)
            elif suffix in IMAGE_EXTENSIONS:
                text = self._extract_image(path)
            else:
                raise OcrEngineError(f"Unsupported file type: {suffix or '(none)'}")
        except OcrEngineError:
            raise
        except Exception as e:
            logger.error(f"Failed to extract text from {path}: {type(e).__name__}")
            raise OcrEngineError(f"OCR failed for {path.name}: {e}") from e

        normalized_text = self._normalize_whitespace(text)
        logger.debug(f"Extraction complete: {len(normalized_text)} characters")
        return normalized_text

    def _extract_image(self, path: Path) -> str:
        text_parts = []
        with Image.open(path) as image:
            # Multi-page TIFFs carry one frame per page
            for frame in ImageSequence.Iterator(image):
                page = frame.convert("RGB")
                page_text = pytesseract.image_to_string(page, lang=self.language)
                if page_text:
                    text_parts.append(page_text)
        return "\n".join(text_parts)

    def _extract_pdf(self, path: Path) -> str:
        text_parts = []
        with pdfplumber.open(path) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)

        if not any(part.strip() for part in text_parts):
            raise OcrEngineError(
                f"PDF has no text layer; scanned PDFs need rasterization first: {path.name}"
            )
        return "\n".join(text_parts)

    def _normalize_whitespace(self, text: str) -> str:
        """
        Normalize whitespace in extracted text.

        - Preserves line breaks
        - Collapses multiple spaces to single space
        - Strips leading/trailing whitespace from lines
        """
        lines = text.split('\n')
        normalized_lines = []

        for line in lines:
            # Collapse multiple spaces and strip
            normalized = ' '.join(line.split())
            normalized_lines.append(normalized)

        return '\n'.join(normalized_lines).strip()

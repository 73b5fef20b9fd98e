"""
Tests for the Tesseract/pdfplumber text extractor.

Tesseract itself is never run: ``pytesseract.image_to_string`` is replaced
with a fake so the image path can be tested without the binary.
"""

import pytest
import pytesseract
from PIL import Image

from helpers import make_pdf
from scannamer.errors import OcrEngineError
from scannamer.extractor import TesseractExtractor


@pytest.fixture
def fake_tesseract(monkeypatch):
    """Record calls and answer with one canned line per page."""
    calls = []

    def image_to_string(image, lang=None, **kwargs):
        calls.append((image.mode, lang))
        return f"  Page   {len(calls)}  text \n"

    monkeypatch.setattr(pytesseract, "image_to_string", image_to_string)
    return calls


class TestImages:
    """Tests for image extraction."""

    def test_png(self, tmp_path, fake_tesseract):
        path = tmp_path / "scan.png"
        Image.new("L", (20, 20), color=255).save(path)

        text = TesseractExtractor(language="deu").extract(path)

        assert text == "Page 1 text"
        assert fake_tesseract == [("RGB", "deu")]

    def test_multi_page_tiff(self, tmp_path, fake_tesseract):
        """Every TIFF frame is recognized, pages joined by newlines."""
        path = tmp_path / "scan.tiff"
        first = Image.new("L", (20, 20), color=255)
        second = Image.new("L", (20, 20), color=0)
        first.save(path, save_all=True, append_images=[second])

        text = TesseractExtractor().extract(path)

        assert text == "Page 1 text\n\nPage 2 text"
        assert len(fake_tesseract) == 2

    def test_corrupt_image(self, tmp_path, fake_tesseract):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"not really a jpeg")
        with pytest.raises(OcrEngineError):
            TesseractExtractor().extract(path)


class TestPdf:
    """Tests for PDF text-layer extraction."""

    def test_text_layer(self, tmp_path):
        path = make_pdf(tmp_path / "invoice.pdf", ["Invoice 4521", "Acme Supplies LLC"])
        text = TesseractExtractor().extract(path)
        assert "Invoice 4521" in text
        assert "Acme Supplies LLC" in text

    def test_pdf_without_text_layer(self, tmp_path):
        """Image-only PDFs are not rasterized and fail extraction."""
        path = make_pdf(tmp_path / "scanned.pdf")
        with pytest.raises(OcrEngineError, match="no text layer"):
            TesseractExtractor().extract(path)

    def test_corrupt_pdf(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf")
        with pytest.raises(OcrEngineError):
            TesseractExtractor().extract(path)


class TestExtractor:
    """Tests for checks shared by all file types."""

    def test_supports(self):
        extractor = TesseractExtractor()
        assert extractor.supports("a.PDF")
        assert extractor.supports("a.jpeg")
        assert not extractor.supports("a.docx")

    def test_missing_file(self, tmp_path):
        with pytest.raises(OcrEngineError, match="not found"):
            TesseractExtractor().extract(tmp_path / "missing.png")

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "notes.docx"
        path.write_bytes(b"docx")
        with pytest.raises(OcrEngineError, match="Unsupported"):
            TesseractExtractor().extract(path)

    def test_verify_reports_missing_binary(self, monkeypatch):
        def missing():
            raise pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(pytesseract, "get_tesseract_version", missing)
        with pytest.raises(OcrEngineError, match="not installed"):
            TesseractExtractor().verify()

    def test_verify_returns_version(self, monkeypatch):
        monkeypatch.setattr(pytesseract, "get_tesseract_version", lambda: "5.3.0")
        assert TesseractExtractor().verify() == "5.3.0"

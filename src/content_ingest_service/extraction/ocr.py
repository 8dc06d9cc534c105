"""Optical character recognition over rendered PDF pages.

OCR runs through PyMuPDF's Tesseract bridge: a rendered page pixmap is
turned into a one-page PDF with a recognized text layer, which is then
read back like any other page. Tesseract must be installed on the host.

Usage:
    engine = TesseractOcrEngine(language="eng")
    with closing(engine.open()) as session:
        text = session.recognize(pixmap)
"""

from typing import Protocol

import fitz  # PyMuPDF


class OcrSession(Protocol):
    """One live OCR session; must be closed by its owner."""

    def recognize(self, pixmap: fitz.Pixmap) -> str:
        ...

    def close(self) -> None:
        ...


class OcrEngine(Protocol):
    """Factory for OCR sessions."""

    def open(self) -> OcrSession:
        ...


class TesseractOcrSession:
    """OCR session backed by Tesseract via PyMuPDF.

    Holds the intermediate OCR documents it opened until ``close()``.
    """

    def __init__(self, language: str = "eng", tessdata: str | None = None) -> None:
        self.language = language
        self.tessdata = tessdata
        self._documents: list[fitz.Document] = []

    def recognize(self, pixmap: fitz.Pixmap) -> str:
        """Run OCR over a raster and return the recognized text."""
        ocr_pdf = pixmap.pdfocr_tobytes(language=self.language, tessdata=self.tessdata)
        document = fitz.open("pdf", ocr_pdf)
        self._documents.append(document)
        return " ".join(page.get_text() for page in document)

    def close(self) -> None:
        """Release every document opened by this session."""
        while self._documents:
            self._documents.pop().close()


class TesseractOcrEngine:
    """Creates Tesseract OCR sessions."""

    def __init__(self, language: str = "eng", tessdata: str | None = None) -> None:
        self.language = language
        self.tessdata = tessdata

    def open(self) -> TesseractOcrSession:
        return TesseractOcrSession(language=self.language, tessdata=self.tessdata)

    def is_available(self) -> bool:
        """Check whether Tesseract language data can be located."""
        try:
            return bool(fitz.get_tessdata(self.tessdata))
        except (RuntimeError, OSError):
            return False

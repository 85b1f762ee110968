"""PDF text extraction using PyMuPDF (fitz).

Each page's words are joined with single spaces (layout and line breaks
are not preserved; the analysis model does not need them), and pages are
joined with a blank line.  Scanned PDFs without a text layer produce empty
pages; the caller's minimum-length check turns that into an
``EmptyExtractionError``.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from grantdesk.interfaces.document_extractor import IDocumentExtractor
from grantdesk.models.document import DocumentFormat, ExtractedText
from grantdesk.utils.errors import DocumentParseError

logger = structlog.get_logger(logger_name=__name__)

# Index of the word string in the tuples returned by page.get_text("words").
_WORD_TEXT = 4


class PDFExtractor(IDocumentExtractor):
    """Extracts text from PDF bytes page by page."""

    @property
    def document_format(self) -> DocumentFormat:
        return DocumentFormat.PDF

    def extract(self, data: bytes) -> ExtractedText:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except (RuntimeError, ValueError) as exc:
            # fitz.FileDataError / EmptyFileError both derive from RuntimeError.
            raise DocumentParseError(
                message=f"Could not open PDF: {exc}",
                provider_name="pymupdf",
            ) from exc

        try:
            pages = [self._page_text(page) for page in doc]
            page_count = doc.page_count
        finally:
            doc.close()

        text = "\n\n".join(pages).strip()
        logger.debug("pdf_extracted", pages=page_count, chars=len(text))
        return ExtractedText(text=text, unit_count=page_count)

    @staticmethod
    def _page_text(page: fitz.Page) -> str:
        words = page.get_text("words")
        return " ".join(word[_WORD_TEXT] for word in words)

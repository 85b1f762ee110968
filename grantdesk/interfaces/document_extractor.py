"""Abstract base class for format-specific text extractors."""

from __future__ import annotations

from abc import ABC, abstractmethod

from grantdesk.models.document import DocumentFormat, ExtractedText


# Concrete implementations:
#   PDFExtractor   - PyMuPDF (fitz)
#   HWPXExtractor  - zip container + OWPML section XML
# Located in: grantdesk/providers/extraction/
class IDocumentExtractor(ABC):
    """Contract for turning document bytes into plain text.

    Implementations are synchronous and CPU-bound; the
    :class:`~grantdesk.services.ingestion.text_extractor.TextExtractor` runs them in a
    worker thread.
    """

    @property
    @abstractmethod
    def document_format(self) -> DocumentFormat:
        """The format this extractor handles."""

    @abstractmethod
    def extract(self, data: bytes) -> ExtractedText:
        """Extract the document's text.

        Parameters
        ----------
        data:
            Raw file bytes.

        Returns
        -------
        ExtractedText
            Text plus the unit count (pages or sections).

        Raises
        ------
        grantdesk.utils.errors.DocumentParseError
            The container is corrupt or not of the expected format.
        """

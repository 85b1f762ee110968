"""Format dispatch for document text extraction.

The format is resolved once (:meth:`DocumentFormat.resolve`) and mapped to
the extractor registered for it.  Extraction is blocking, CPU-bound work
(PDF layout analysis, XML parsing) so it runs in a worker thread, keeping
the event loop free for progress pushes and other requests.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

import structlog

from grantdesk.interfaces.document_extractor import IDocumentExtractor
from grantdesk.models.document import DocumentFormat, ExtractedText
from grantdesk.providers.extraction import HWPXExtractor, PDFExtractor
from grantdesk.utils.cancellation import CancellationToken, check
from grantdesk.utils.errors import EmptyExtractionError, UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)

# Below this many characters the document is treated as image-only or
# corrupt.  Deliberately low: this is not a content-quality check.
MIN_TEXT_LENGTH = 10


class TextExtractor:
    """Extracts text from an uploaded document of a resolved format.

    Parameters
    ----------
    extractors:
        One extractor per supported format.  Defaults to PDF + HWPX.
    min_text_length:
        Minimum number of characters for a successful extraction.
    """

    def __init__(
        self,
        extractors: Iterable[IDocumentExtractor] | None = None,
        min_text_length: int = MIN_TEXT_LENGTH,
    ) -> None:
        registered = list(extractors) if extractors is not None else [PDFExtractor(), HWPXExtractor()]
        self._extractors: dict[DocumentFormat, IDocumentExtractor] = {
            extractor.document_format: extractor for extractor in registered
        }
        self._min_text_length = min_text_length

    @property
    def supported_formats(self) -> list[DocumentFormat]:
        return list(self._extractors)

    async def extract(
        self,
        data: bytes,
        document_format: DocumentFormat,
        token: CancellationToken | None = None,
    ) -> ExtractedText:
        """Extract text from *data*.

        Raises
        ------
        UnsupportedFormatError
            No extractor is registered for *document_format*.
        DocumentParseError
            The container could not be read.
        EmptyExtractionError
            Fewer than ``min_text_length`` characters were extracted.
        """
        extractor = self._extractors.get(document_format)
        if extractor is None:
            raise UnsupportedFormatError(
                message=f"No extractor registered for {document_format.value}"
            )

        check(token)
        result = await asyncio.to_thread(extractor.extract, data)
        check(token)

        logger.info(
            "document_extracted",
            format=document_format.value,
            units=result.unit_count,
            chars=len(result.text),
            preview=result.text[:80],
        )

        if len(result.text) < self._min_text_length:
            raise EmptyExtractionError(
                message=(
                    "문서에서 텍스트를 추출할 수 없습니다. "
                    f"(추출된 글자 수: {len(result.text)}) "
                    "텍스트가 없는 이미지 문서일 수 있습니다."
                )
            )
        return result

"""Format-specific document text extractors."""

from grantdesk.providers.extraction.hwpx_extractor import HWPXExtractor
from grantdesk.providers.extraction.pdf_extractor import PDFExtractor

__all__ = ["HWPXExtractor", "PDFExtractor"]

"""Document preparation for the ingestion pipeline.

1. **Extract** (text_extractor.py / TextExtractor) -- resolve the format
   once and pull plain text out of PDF or HWPX bytes.
2. **Chunk** (chunker.py / TextChunker) -- split the text into 1000-char
   windows overlapping by 200 chars.

Embedding and persistence are separate services; the
:class:`~grantdesk.pipeline.ingestion_pipeline.IngestionPipeline` wires
all of them together.
"""

from grantdesk.services.ingestion.chunker import TextChunker, chunk_text
from grantdesk.services.ingestion.text_extractor import MIN_TEXT_LENGTH, TextExtractor

__all__ = [
    "MIN_TEXT_LENGTH",
    "TextChunker",
    "TextExtractor",
    "chunk_text",
]

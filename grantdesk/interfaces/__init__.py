"""Public interface definitions for every external service.

Business logic talks to external APIs and stores only through the abstract
base classes in this package; concrete adapters live in
``grantdesk/providers/`` and are chosen once, at construction time, in
``grantdesk/main.py`` (HTTP app) or ``grantdesk/cli`` (one-shot commands).
Tests inject fakes through the same seams.

CONCRETE PROVIDER MAP:
    Interface             →  Concrete implementations
    ─────────────────────────────────────────────────────────────────
    IDocumentExtractor    →  PDFExtractor, HWPXExtractor
    IEmbeddingProvider    →  OpenAIEmbeddingProvider
    ITextAnalysisModel    →  OpenAITextModel
    IGrantRepository      →  SupabaseRepository, InMemoryRepository
    ICacheProvider        →  MemoryCacheProvider
"""

from grantdesk.interfaces.cache_provider import ICacheProvider
from grantdesk.interfaces.document_extractor import IDocumentExtractor
from grantdesk.interfaces.embedding_provider import IEmbeddingProvider
from grantdesk.interfaces.grant_repository import IGrantRepository
from grantdesk.interfaces.text_model import ITextAnalysisModel

__all__ = [
    "ICacheProvider",
    "IDocumentExtractor",
    "IEmbeddingProvider",
    "IGrantRepository",
    "ITextAnalysisModel",
]

"""Application services: analysis, embedding, persistence, retrieval and chat."""

from grantdesk.services.analysis_client import AnalysisClient
from grantdesk.services.chat_orchestrator import ChatOrchestrator
from grantdesk.services.embedding_client import EmbeddingClient
from grantdesk.services.ingestion import TextChunker, TextExtractor
from grantdesk.services.persistence_gateway import PersistenceGateway
from grantdesk.services.retrieval_engine import RetrievalEngine

__all__ = [
    "AnalysisClient",
    "ChatOrchestrator",
    "EmbeddingClient",
    "PersistenceGateway",
    "RetrievalEngine",
    "TextChunker",
    "TextExtractor",
]

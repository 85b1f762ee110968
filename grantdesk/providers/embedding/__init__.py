"""Embedding provider implementations.

Embeddings turn a chunk of announcement text (or a user question) into a
vector; retrieval ranks chunks by cosine similarity between the two.
"""

from grantdesk.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]

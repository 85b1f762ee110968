"""Concrete adapters for the interfaces in :mod:`grantdesk.interfaces`.

Sub-packages:
    cache/       - cachetools TTL cache
    embedding/   - OpenAI-compatible embeddings (Gemini by default)
    extraction/  - PDF (PyMuPDF) and HWPX (zip + XML) text extraction
    llm/         - OpenAI-compatible chat models (Gemini by default)
    repository/  - Supabase REST store and the in-memory store
"""

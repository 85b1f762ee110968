"""Shared pytest fixtures for the GrantDesk test suite."""

from __future__ import annotations

import hashlib
import io
import zipfile
from collections.abc import Sequence
from datetime import date
from typing import Any
from unittest.mock import AsyncMock

import pytest

from grantdesk.interfaces.embedding_provider import IEmbeddingProvider
from grantdesk.interfaces.text_model import ITextAnalysisModel
from grantdesk.models.grant import GrantRecord, StoredChunk
from grantdesk.providers.repository.memory_repository import InMemoryRepository
from grantdesk.services.persistence_gateway import PersistenceGateway
from grantdesk.utils.errors import PersistenceReadError, PersistenceWriteError

FAKE_DIMENSION = 8

# Reference day for every status-dependent assertion.
TODAY = date(2025, 6, 15)


# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic hash-based embeddings; records every call in order.

    ``failures`` is consumed front to back: each entry is raised by one call
    before the provider starts answering normally.
    """

    def __init__(self, dimension: int = FAKE_DIMENSION, failures: Sequence[Exception] = ()) -> None:
        self.dimension = dimension
        self.calls: list[str] = []
        self._failures = list(failures)

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        if self._failures:
            raise self._failures.pop(0)
        return hash_vector(text, self.dimension)

    def get_dimension(self) -> int:
        return self.dimension

    def get_provider_name(self) -> str:
        return "fake-embedding"

    def is_available(self) -> bool:
        return True


class ScriptedTextModel(ITextAnalysisModel):
    """Text model that replays a script of replies or exceptions."""

    def __init__(self, name: str, script: Sequence[str | Exception] = (), available: bool = True) -> None:
        self._name = name
        self._script = list(script)
        self._available = available
        self.prompts: list[str] = []

    async def invoke(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._script:
            raise AssertionError(f"{self._name} called more often than scripted")
        step = self._script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    @property
    def model_name(self) -> str:
        return self._name

    def get_provider_name(self) -> str:
        return "scripted"

    def is_available(self) -> bool:
        return self._available


class FlakyRemoteRepository(InMemoryRepository):
    """In-memory stand-in for the remote store that can be told to fail."""

    def __init__(self, fail_writes: bool = False, fail_reads: bool = False) -> None:
        super().__init__()
        self.fail_writes = fail_writes
        self.fail_reads = fail_reads

    async def save_grant(self, record: GrantRecord) -> None:
        if self.fail_writes:
            raise PersistenceWriteError("remote unavailable", provider_name="remote")
        await super().save_grant(record)

    async def save_embeddings(self, grant_id, chunks, vectors) -> None:
        if self.fail_writes:
            raise PersistenceWriteError("remote unavailable", provider_name="remote")
        await super().save_embeddings(grant_id, chunks, vectors)

    async def list_grants(self) -> list[GrantRecord]:
        if self.fail_reads:
            raise PersistenceReadError("remote unavailable", provider_name="remote")
        return await super().list_grants()

    async def get_grant(self, grant_id: str) -> GrantRecord | None:
        if self.fail_reads:
            raise PersistenceReadError("remote unavailable", provider_name="remote")
        return await super().get_grant(grant_id)

    async def get_embeddings(self, grant_id: str) -> list[StoredChunk]:
        if self.fail_reads:
            raise PersistenceReadError("remote unavailable", provider_name="remote")
        return await super().get_embeddings(grant_id)

    def get_repository_name(self) -> str:
        return "remote"


def hash_vector(text: str, dimension: int = FAKE_DIMENSION) -> list[float]:
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return [(digest[i] - 127.5) / 127.5 for i in range(dimension)]


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


ANALYSIS_JSON = """{
  "title": "2025 청년 창업 지원사업",
  "grantType": "창업지원",
  "supportAmount": "최대 5,000만원",
  "period": "2025-05-01 ~ 2025-07-31",
  "deadline": "2025-12-31",
  "description": "청년 창업가의 초기 사업화를 지원합니다.",
  "region": "전국",
  "industry": "IT, 바이오",
  "eligibility": "만 39세 이하 예비창업자",
  "requiredDocuments": ["사업계획서", "신분증 사본"]
}"""


def make_hwpx(sections: dict[int, list[str]]) -> bytes:
    """Build an in-memory HWPX archive; each section holds ``hp:t`` runs."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("mimetype", "application/hwp+zip")
        for index, runs in sections.items():
            paragraphs = "".join(
                f"<hp:p><hp:run><hp:t>{run}</hp:t></hp:run></hp:p>" for run in runs
            )
            archive.writestr(
                f"Contents/section{index}.xml",
                '<?xml version="1.0" encoding="UTF-8"?>'
                '<hs:sec xmlns:hs="http://www.hancom.co.kr/hwpml/2011/section" '
                'xmlns:hp="http://www.hancom.co.kr/hwpml/2011/paragraph">'
                f"{paragraphs}</hs:sec>",
            )
    return buffer.getvalue()


def make_pdf(pages: list[str]) -> bytes:
    """Build a small PDF with one line of ASCII text per page."""
    import fitz

    document = fitz.open()
    for text in pages:
        page = document.new_page()
        page.insert_text((72, 72), text)
    data = document.tobytes()
    document.close()
    return data


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def memory_repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def gateway(memory_repository: InMemoryRepository) -> PersistenceGateway:
    """Memory-only gateway with status derived against :data:`TODAY`."""
    return PersistenceGateway(
        fallback=memory_repository,
        remote=None,
        expected_dimension=FAKE_DIMENSION,
        today_provider=lambda: TODAY,
    )


@pytest.fixture
def sample_text() -> str:
    """1500 characters of announcement-like text."""
    sentence = "본 사업은 청년 창업가의 초기 사업화를 지원합니다. "
    text = (sentence * 100)[:1500]
    assert len(text) == 1500
    return text


@pytest.fixture
def grant_fields() -> dict[str, Any]:
    return {
        "title": "테스트 지원사업",
        "support_amount": "최대 1억원",
        "period": "2025-01-01 ~ 2025-12-31",
        "deadline": "",
        "description": "테스트용 공고입니다.",
    }


# ---------------------------------------------------------------------------
# Component assembly
# ---------------------------------------------------------------------------


def make_components(
    gateway: PersistenceGateway,
    models: Sequence[ITextAnalysisModel],
    embedding_provider: IEmbeddingProvider | None = None,
    **settings_overrides: Any,
) -> dict[str, Any]:
    """Same component dict as ``grantdesk.main.build_services``, built on fakes."""
    from cachetools import TTLCache

    from grantdesk.config.settings import Settings
    from grantdesk.pipeline.ingestion_pipeline import GrantIdGenerator, IngestionPipeline
    from grantdesk.pipeline.progress_tracker import ProgressTracker
    from grantdesk.providers.cache.memory_cache import MemoryCacheProvider
    from grantdesk.services.analysis_client import AnalysisClient
    from grantdesk.services.chat_orchestrator import ChatOrchestrator
    from grantdesk.services.embedding_client import EmbeddingClient
    from grantdesk.services.ingestion.chunker import TextChunker
    from grantdesk.services.ingestion.text_extractor import TextExtractor
    from grantdesk.services.retrieval_engine import RetrievalEngine

    settings = Settings(_env_file=None, gemini_api_key="test-key", **settings_overrides)
    sleep = RecordingSleep()
    embedding_client = EmbeddingClient(embedding_provider or FakeEmbeddingProvider(), sleep=sleep)
    analysis_client = AnalysisClient(models, sleep=sleep)
    retrieval = RetrievalEngine(gateway, embedding_client, cache=MemoryCacheProvider())

    def chat_factory() -> ChatOrchestrator:
        return ChatOrchestrator(gateway, retrieval, analysis_client)

    pipeline = IngestionPipeline(
        extractor=TextExtractor(),
        analysis_client=analysis_client,
        chunker=TextChunker(settings.chunk_size, settings.chunk_overlap),
        embedding_client=embedding_client,
        gateway=gateway,
        timeout_s=settings.ingestion_timeout_s,
        id_generator=GrantIdGenerator(clock_ms=lambda: 1718000000000),
    )

    return {
        "settings": settings,
        "http_client": AsyncMock(),
        "llm_client": AsyncMock(),
        "gateway": gateway,
        "embedding_client": embedding_client,
        "analysis_client": analysis_client,
        "retrieval": retrieval,
        "pipeline": pipeline,
        "progress_tracker": ProgressTracker(
            max_tracked=settings.max_tracked_uploads,
            retention_s=settings.upload_retention_s,
        ),
        "chat_factory": chat_factory,
        "chat_sessions": TTLCache(maxsize=100, ttl=3600),
        "uploads": TTLCache(maxsize=settings.max_tracked_uploads, ttl=settings.upload_retention_s),
    }

"""Unit tests for the pydantic domain models."""

from __future__ import annotations

import re

import pytest
from pydantic import ValidationError

from conftest import ANALYSIS_JSON
from grantdesk.models.chat import ChatMessage, ChatRole, new_message_id
from grantdesk.models.document import DocumentFormat
from grantdesk.models.grant import GrantRecord, GrantStatus, StoredChunk, StructuredGrant
from grantdesk.models.persistence import WriteOutcome, WriteResult
from grantdesk.models.pipeline import (
    STEP_PROGRESS,
    IngestionOutcome,
    PipelineStep,
    ProcessingStatus,
)
from grantdesk.pipeline.ingestion_pipeline import GrantIdGenerator


class TestDocumentFormat:
    @pytest.mark.parametrize(
        ("filename", "declared", "expected"),
        [
            ("공고문.pdf", None, DocumentFormat.PDF),
            ("공고문.PDF", None, DocumentFormat.PDF),
            ("공고문.hwpx", None, DocumentFormat.HWPX),
            ("upload.bin", "application/pdf", DocumentFormat.PDF),
            ("upload", "application/vnd.hancom.hwpx", DocumentFormat.HWPX),
            ("upload", ".hwpx", DocumentFormat.HWPX),
            ("notice.pdf", "application/octet-stream", DocumentFormat.PDF),
        ],
    )
    def test_resolve(self, filename: str, declared: str | None, expected: DocumentFormat) -> None:
        assert DocumentFormat.resolve(filename, declared) is expected

    @pytest.mark.parametrize(("filename", "declared"), [("공고문.hwp", None), ("notes.docx", None), (None, None)])
    def test_unsupported(self, filename: str | None, declared: str | None) -> None:
        from grantdesk.utils.errors import UnsupportedFormatError

        with pytest.raises(UnsupportedFormatError):
            DocumentFormat.resolve(filename, declared)


class TestStructuredGrant:
    def test_parses_camel_case_reply(self) -> None:
        grant = StructuredGrant.model_validate_json(ANALYSIS_JSON)

        assert grant.title == "2025 청년 창업 지원사업"
        assert grant.support_amount == "최대 5,000만원"
        assert grant.required_documents == ["사업계획서", "신분증 사본"]

    def test_missing_and_null_fields_become_empty(self) -> None:
        grant = StructuredGrant.model_validate({"title": "제목", "region": None})
        assert grant.region == ""
        assert grant.period == ""
        assert grant.required_documents == []

    def test_list_values_are_joined(self) -> None:
        grant = StructuredGrant.model_validate({"industry": ["IT", "바이오", None]})
        assert grant.industry == "IT, 바이오"

    def test_single_required_document_string(self) -> None:
        grant = StructuredGrant.model_validate({"requiredDocuments": " 사업계획서 "})
        assert grant.required_documents == ["사업계획서"]

    @pytest.mark.parametrize("value", [3, True, 1.5, {"nested": True}])
    def test_scalar_or_mapping_documents_rejected(self, value: object) -> None:
        with pytest.raises(ValidationError):
            StructuredGrant.model_validate({"title": "x", "requiredDocuments": value})

    def test_document_tuple_accepted(self) -> None:
        grant = StructuredGrant.model_validate({"requiredDocuments": ("사업계획서", None, " ")})
        assert grant.required_documents == ["사업계획서"]

    def test_non_string_values_are_coerced(self) -> None:
        grant = StructuredGrant.model_validate({"supportAmount": 50000000})
        assert grant.support_amount == "50000000"

    def test_frozen(self) -> None:
        grant = StructuredGrant(title="제목")
        with pytest.raises(ValidationError):
            grant.title = "변경"  # type: ignore[misc]


class TestGrantRecord:
    def test_from_analysis_copies_fields(self) -> None:
        analysis = StructuredGrant.model_validate_json(ANALYSIS_JSON)
        record = GrantRecord.from_analysis("GRANT-1", analysis, raw_content="원문")

        assert record.id == "GRANT-1"
        assert record.raw_content == "원문"
        assert record.eligibility == "만 39세 이하 예비창업자"
        assert record.status is GrantStatus.OPEN

    def test_summary_line(self) -> None:
        record = GrantRecord(id="G", title="사업", support_amount="1억", period="2025-01-01 ~ 2025-02-01")
        assert record.summary_line() == "사업명: 사업\n지원 규모: 1억\n접수 기간: 2025-01-01 ~ 2025-02-01"

    def test_serializes_with_camel_case_aliases(self) -> None:
        dumped = GrantRecord(id="G", support_amount="1억").model_dump(by_alias=True)
        assert dumped["supportAmount"] == "1억"
        assert "rawContent" in dumped

    def test_stored_chunk_rejects_negative_index(self) -> None:
        with pytest.raises(ValidationError):
            StoredChunk(grant_id="G", chunk_index=-1, content="x", embedding=[0.1])


class TestChatMessage:
    def test_message_id_format(self) -> None:
        assert re.fullmatch(r"msg-\d+-[0-9a-z]{9}", new_message_id())

    def test_ids_are_unique(self) -> None:
        ids = {ChatMessage(role=ChatRole.USER, content="hi").id for _ in range(50)}
        assert len(ids) == 50


class TestWriteResult:
    def test_success(self) -> None:
        result = WriteResult.success("remote")
        assert result.ok
        assert result.outcome is WriteOutcome.SUCCESS
        assert result.error is None

    def test_degraded_is_ok(self) -> None:
        result = WriteResult.degraded("memory", "timeout")
        assert result.ok
        assert result.store == "memory"

    def test_failed_is_not_ok(self) -> None:
        result = WriteResult.failed("both stores down")
        assert not result.ok
        assert result.store is None


class TestProcessingStatus:
    @pytest.mark.parametrize(
        ("step", "progress"),
        [
            (PipelineStep.PARSING, 10),
            (PipelineStep.ANALYZING, 30),
            (PipelineStep.EMBEDDING, 50),
            (PipelineStep.SAVING, 80),
            (PipelineStep.COMPLETE, 100),
            (PipelineStep.ERROR, 0),
        ],
    )
    def test_progress_checkpoints(self, step: PipelineStep, progress: int) -> None:
        assert ProcessingStatus.for_step(step).progress == progress
        assert STEP_PROGRESS[step] == progress

    def test_error_message_override(self) -> None:
        status = ProcessingStatus.for_step(PipelineStep.ERROR, "분석 실패")
        assert status.message == "분석 실패"

    def test_terminal_steps(self) -> None:
        assert PipelineStep.COMPLETE.is_terminal
        assert PipelineStep.ERROR.is_terminal
        assert not PipelineStep.SAVING.is_terminal

    def test_outcome_degraded_flag(self) -> None:
        outcome = IngestionOutcome(
            grant=GrantRecord(id="G"),
            chunk_count=1,
            unit_count=1,
            grant_write=WriteResult.success("remote"),
            embeddings_write=WriteResult.degraded("memory", "down"),
            elapsed_s=0.1,
        )
        assert outcome.is_degraded


class TestGrantIdGenerator:
    def test_prefix_and_clock(self) -> None:
        generator = GrantIdGenerator(clock_ms=lambda: 1718000000000)
        assert generator() == "GRANT-1718000000000"

    def test_same_millisecond_stays_unique(self) -> None:
        generator = GrantIdGenerator(clock_ms=lambda: 5)
        assert [generator(), generator(), generator()] == ["GRANT-5", "GRANT-6", "GRANT-7"]

    def test_clock_going_backwards(self) -> None:
        ticks = iter([100, 50, 200])
        generator = GrantIdGenerator(clock_ms=lambda: next(ticks))
        assert [generator(), generator(), generator()] == ["GRANT-100", "GRANT-101", "GRANT-200"]

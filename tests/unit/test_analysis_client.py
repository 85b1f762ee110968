"""Unit tests for AnalysisClient model fallback and parsing."""

from __future__ import annotations

import pytest

from conftest import ANALYSIS_JSON, RecordingSleep, ScriptedTextModel
from grantdesk.services.analysis_client import AnalysisClient, build_answer_prompt
from grantdesk.utils.cancellation import CancellationToken
from grantdesk.utils.errors import (
    AnalysisError,
    AnalysisParseError,
    ModelInvocationError,
    OperationCancelledError,
    RateLimitError,
)


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_first_model_success(self, recording_sleep: RecordingSleep) -> None:
        primary = ScriptedTextModel("gemini-2.5-flash", [f"```json\n{ANALYSIS_JSON}\n```"])
        secondary = ScriptedTextModel("gemini-1.5-flash")
        client = AnalysisClient([primary, secondary], sleep=recording_sleep)

        grant = await client.analyze("공고문 본문")

        assert grant.title == "2025 청년 창업 지원사업"
        assert grant.period == "2025-05-01 ~ 2025-07-31"
        assert "공고문 본문" in primary.prompts[0]
        assert secondary.prompts == []

    @pytest.mark.asyncio
    async def test_malformed_json_is_parse_error(self, recording_sleep: RecordingSleep) -> None:
        primary = ScriptedTextModel("gemini-2.5-flash", ["죄송합니다, 분석할 수 없습니다."])
        secondary = ScriptedTextModel("gemini-1.5-flash", [ANALYSIS_JSON])
        client = AnalysisClient([primary, secondary], sleep=recording_sleep)

        with pytest.raises(AnalysisParseError):
            await client.analyze("본문")

        assert len(primary.prompts) == 1
        assert secondary.prompts == []

    @pytest.mark.asyncio
    async def test_failed_call_falls_back(self, recording_sleep: RecordingSleep) -> None:
        primary = ScriptedTextModel("gemini-2.5-flash", [ModelInvocationError("server error")])
        secondary = ScriptedTextModel("gemini-1.5-flash", [ANALYSIS_JSON])
        client = AnalysisClient([primary, secondary], sleep=recording_sleep)

        grant = await client.analyze("본문")

        assert grant.required_documents == ["사업계획서", "신분증 사본"]
        assert len(secondary.prompts) == 1

    @pytest.mark.asyncio
    async def test_exhausted_rate_limit_falls_back(self, recording_sleep: RecordingSleep) -> None:
        primary = ScriptedTextModel("gemini-2.5-flash", [RateLimitError()] * 3)
        secondary = ScriptedTextModel("gemini-1.5-flash", [ANALYSIS_JSON])
        client = AnalysisClient([primary, secondary], sleep=recording_sleep)

        await client.analyze("본문")

        assert len(primary.prompts) == 3
        assert recording_sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_schema_mismatch_is_parse_error(self, recording_sleep: RecordingSleep) -> None:
        primary = ScriptedTextModel("only", ['{"requiredDocuments": {"nested": true}}'])
        client = AnalysisClient([primary], sleep=recording_sleep)

        with pytest.raises(AnalysisParseError):
            await client.analyze("본문")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("documents", ["3", "true", "1.5"])
    async def test_scalar_documents_are_parse_errors(
        self, recording_sleep: RecordingSleep, documents: str
    ) -> None:
        primary = ScriptedTextModel("only", [f'{{"title": "x", "requiredDocuments": {documents}}}'])
        client = AnalysisClient([primary], sleep=recording_sleep)

        with pytest.raises(AnalysisParseError):
            await client.analyze("본문")

    @pytest.mark.asyncio
    async def test_all_models_fail(self, recording_sleep: RecordingSleep) -> None:
        primary = ScriptedTextModel("gemini-2.5-flash", [ModelInvocationError("server error")])
        secondary = ScriptedTextModel("gemini-1.5-flash", [ModelInvocationError("bad gateway")])
        client = AnalysisClient([primary, secondary], sleep=recording_sleep)

        with pytest.raises(AnalysisError) as exc_info:
            await client.analyze("본문")

        assert isinstance(exc_info.value.last_error, ModelInvocationError)
        assert exc_info.value.__cause__ is exc_info.value.last_error

    @pytest.mark.asyncio
    async def test_cancellation_is_not_a_model_failure(self) -> None:
        token = CancellationToken()
        token.cancel("shutdown")
        primary = ScriptedTextModel("gemini-2.5-flash")
        client = AnalysisClient([primary])

        with pytest.raises(OperationCancelledError):
            await client.analyze("본문", token=token)
        assert primary.prompts == []


class TestGenerateAnswer:
    @pytest.mark.asyncio
    async def test_answer_is_stripped(self) -> None:
        model = ScriptedTextModel("gemini-2.5-flash", ["  지원 규모는 최대 5,000만원입니다.  \n"])
        client = AnalysisClient([model])

        answer = await client.generate_answer("지원 규모는?", "지원 규모: 최대 5,000만원", "청년 창업")

        assert answer == "지원 규모는 최대 5,000만원입니다."
        assert '"청년 창업"' in model.prompts[0]
        assert "지원 규모는?" in model.prompts[0]

    @pytest.mark.asyncio
    async def test_answer_falls_back(self) -> None:
        primary = ScriptedTextModel("a", [ModelInvocationError("down")])
        secondary = ScriptedTextModel("b", ["답변"])
        client = AnalysisClient([primary, secondary])

        assert await client.generate_answer("q", "ctx", "title") == "답변"

    def test_prompt_contains_all_parts(self) -> None:
        prompt = build_answer_prompt("자격은?", "만 39세 이하", "창업 지원")
        assert "창업 지원" in prompt
        assert "만 39세 이하" in prompt
        assert "자격은?" in prompt


class TestConstruction:
    def test_requires_a_model(self) -> None:
        with pytest.raises(ValueError):
            AnalysisClient([])

    def test_model_names_in_priority_order(self) -> None:
        client = AnalysisClient([ScriptedTextModel("first"), ScriptedTextModel("second")])
        assert client.model_names == ["first", "second"]

    @pytest.mark.asyncio
    async def test_probe_is_a_single_call(self) -> None:
        model = ScriptedTextModel("first", [RateLimitError()])
        client = AnalysisClient([model])

        with pytest.raises(RateLimitError):
            await client.probe(model)
        assert len(model.prompts) == 1

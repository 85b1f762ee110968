"""Structured analysis and answer generation over an ordered model list.

The client holds a priority-ordered list of :class:`ITextAnalysisModel`
instances (by default ``gemini-2.5-flash`` then ``gemini-1.5-flash``) and
walks it until one model answers.

Architecture overview
---------------------
  1. INVOKE    -- call each model in order under the shared rate-limit
                  retry policy (3 attempts, ``attempt * 2 s`` backoff).
                  A failed call (exhausted rate limits, API error) is
                  logged and the next model is tried; when the list is
                  exhausted an :class:`AnalysisError` carrying the last
                  underlying error is raised.
  2. PARSE     -- for ``analyze`` only, once, on the first reply obtained:
                  pull the first balanced ``{...}`` object out of the
                  free-text reply and validate it into a
                  :class:`StructuredGrant`.  Failure raises
                  :class:`AnalysisParseError`; no other model is asked.

Cancellation is never treated as a model failure and propagates
immediately.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence

import structlog
from pydantic import ValidationError

from grantdesk.interfaces.text_model import ITextAnalysisModel
from grantdesk.models.grant import StructuredGrant
from grantdesk.utils.cancellation import CancellationToken, check
from grantdesk.utils.errors import (
    AnalysisError,
    AnalysisParseError,
    GrantDeskError,
    ModelInvocationError,
    OperationCancelledError,
    RateLimitError,
)
from grantdesk.utils.json_object import extract_json_object
from grantdesk.utils.logging import get_logger
from grantdesk.utils.retry import DEFAULT_BACKOFF_S, DEFAULT_MAX_ATTEMPTS, retry_on_rate_limit

logger: structlog.BoundLogger = get_logger(__name__)


_ANALYSIS_PROMPT = """다음은 정부지원사업 공고문입니다. 아래 내용을 분석하여 JSON 형식으로 정보를 추출해주세요.

공고문 내용:
{content}

다음 형식으로 응답해주세요 (JSON만 응답, 다른 텍스트 없이):
{{
  "title": "사업명",
  "grantType": "공고 유형 (창업지원, R&D, 수출지원, 인력양성, 시설투자 등)",
  "supportAmount": "지원 규모 (예: 최대 5,000만원)",
  "period": "접수 기간 (예: 2024-01-01 ~ 2024-06-30)",
  "deadline": "결과보고 마감일 또는 사업종료일",
  "description": "사업 개요 요약 (2-3문장)",
  "region": "지원 지역 (서울, 경기, 전국 등)",
  "industry": "대상 분야 (핵심 키워드 1-3개, 쉼표로 구분. 예: IT, 바이오, 제조)",
  "eligibility": "신청 자격 요약",
  "requiredDocuments": ["필요 서류1", "필요 서류2"]
}}"""

_ANSWER_PROMPT = """당신은 정부지원사업 공고 전문 상담 AI입니다.
사용자가 "{title}" 공고에 대해 질문하고 있습니다.

관련 공고 내용:
{context}

사용자 질문: {question}

위 공고 내용을 바탕으로 친절하고 정확하게 답변해주세요.
공고 내용에 없는 정보는 추측하지 말고, 해당 정보가 공고에 명시되어 있지 않다고 안내해주세요.
답변은 한국어로 작성해주세요."""


def build_analysis_prompt(document_text: str) -> str:
    return _ANALYSIS_PROMPT.format(content=document_text)


def build_answer_prompt(question: str, context: str, document_title: str) -> str:
    return _ANSWER_PROMPT.format(title=document_title, context=context, question=question)


class AnalysisClient:
    """Runs prompts against an ordered list of text models.

    Parameters
    ----------
    models:
        Models in priority order.  Must not be empty.
    max_attempts:
        Rate-limited attempts per model before moving on.
    backoff_s:
        Base backoff between rate-limited attempts.
    sleep:
        Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        models: Sequence[ITextAnalysisModel],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_s: float = DEFAULT_BACKOFF_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not models:
            raise ValueError("AnalysisClient requires at least one text model")
        self._models = list(models)
        self._max_attempts = max_attempts
        self._backoff_s = backoff_s
        self._sleep = sleep

    @property
    def model_names(self) -> list[str]:
        return [model.model_name for model in self._models]

    @property
    def models(self) -> list[ITextAnalysisModel]:
        return list(self._models)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def analyze(
        self,
        document_text: str,
        token: CancellationToken | None = None,
    ) -> StructuredGrant:
        """Extract :class:`StructuredGrant` metadata from *document_text*.

        Raises
        ------
        AnalysisError
            Every model call failed; ``last_error`` holds the final cause.
        AnalysisParseError
            The reply held no JSON object or did not fit the grant schema.
        OperationCancelledError
            *token* tripped.
        """
        prompt = build_analysis_prompt(document_text)
        reply, model = await self._run(prompt, "analysis", token)

        provider_name = model.get_provider_name()
        payload = extract_json_object(reply, provider_name=provider_name)
        try:
            result = StructuredGrant.model_validate(payload)
        except ValidationError as exc:
            raise AnalysisParseError(
                message=f"Model response did not match the grant schema: {exc.error_count()} errors",
                provider_name=provider_name,
            ) from exc

        logger.info(
            "analysis_complete",
            model=model.model_name,
            title=result.title,
            documents=len(result.required_documents),
        )
        return result

    async def generate_answer(
        self,
        question: str,
        context: str,
        document_title: str,
        token: CancellationToken | None = None,
    ) -> str:
        """Answer *question* about the announcement from *context* only."""
        prompt = build_answer_prompt(question, context, document_title)
        reply, _ = await self._run(prompt, "answer", token)
        return reply.strip()

    async def probe(self, model: ITextAnalysisModel) -> str:
        """Single un-retried call used by the API-key diagnostic."""
        return await model.invoke("Hello! 한 단어로 인사해 주세요.")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(
        self,
        prompt: str,
        operation: str,
        token: CancellationToken | None,
    ) -> tuple[str, ITextAnalysisModel]:
        """Return the first model reply together with the model that gave it."""
        last_error: GrantDeskError | None = None

        for model in self._models:
            check(token)

            def _exhausted(exc: RateLimitError, _model=model) -> ModelInvocationError:
                return ModelInvocationError(
                    message=f"{_model.model_name}: exhausted retries after rate limiting",
                    provider_name=_model.get_provider_name(),
                )

            try:
                reply = await retry_on_rate_limit(
                    lambda _model=model: _model.invoke(prompt),
                    operation=f"{operation}:{model.model_name}",
                    on_exhausted=_exhausted,
                    max_attempts=self._max_attempts,
                    backoff_s=self._backoff_s,
                    sleep=self._sleep,
                    token=token,
                )
            except OperationCancelledError:
                raise
            except GrantDeskError as exc:
                last_error = exc
                logger.warning(
                    "analysis_model_failed",
                    operation=operation,
                    model=model.model_name,
                    error=str(exc),
                )
                continue

            logger.debug("analysis_model_succeeded", operation=operation, model=model.model_name)
            return reply, model

        raise AnalysisError(
            message=f"All {len(self._models)} models failed for {operation}: {last_error}",
            last_error=last_error,
        ) from last_error

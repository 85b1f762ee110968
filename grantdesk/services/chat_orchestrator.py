"""Per-document chat sessions.

One :class:`ChatOrchestrator` is one viewing session: it keeps the ordered
message history for the grant currently being discussed and starts a fresh
history whenever a different grant becomes active.

:meth:`ChatOrchestrator.ask` is the raw RAG call and raises.
:meth:`ChatOrchestrator.send` is what a UI calls: failures become an
apology message in the conversation instead of an exception.
"""

from __future__ import annotations

import structlog

from grantdesk.models.chat import ChatMessage, ChatRole
from grantdesk.services.analysis_client import AnalysisClient
from grantdesk.services.persistence_gateway import PersistenceGateway
from grantdesk.services.retrieval_engine import RetrievalEngine
from grantdesk.utils.cancellation import CancellationToken, check
from grantdesk.utils.errors import GrantDeskError, GrantNotFoundError
from grantdesk.utils.logging import get_logger

logger: structlog.BoundLogger = get_logger(__name__)

APOLOGY_MESSAGE = "죄송합니다. 답변을 생성하는 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."
NOT_FOUND_MESSAGE = "공고를 찾을 수 없습니다."


class ChatOrchestrator:
    """Answers questions about one grant at a time and records the conversation.

    Parameters
    ----------
    gateway:
        Looks up the grant being discussed.
    retrieval:
        Builds the answer context.
    analysis_client:
        Generates the answer text.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        retrieval: RetrievalEngine,
        analysis_client: AnalysisClient,
    ) -> None:
        self._gateway = gateway
        self._retrieval = retrieval
        self._analysis_client = analysis_client
        self._history: list[ChatMessage] = []
        self._active_grant_id: str | None = None

    @property
    def history(self) -> tuple[ChatMessage, ...]:
        return tuple(self._history)

    @property
    def active_grant_id(self) -> str | None:
        return self._active_grant_id

    def reset(self, grant_id: str | None = None) -> None:
        """Discard the history and make *grant_id* the active grant."""
        self._history.clear()
        self._active_grant_id = grant_id

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ask(
        self,
        grant_id: str,
        question: str,
        token: CancellationToken | None = None,
    ) -> str:
        """Answer *question* about *grant_id* from retrieved context.

        Raises
        ------
        GrantNotFoundError
            No store holds *grant_id*.
        AnalysisError / EmbeddingError
            Answer generation or question embedding failed.
        """
        grant = await self._gateway.get_grant(grant_id, token=token)
        if grant is None:
            raise GrantNotFoundError(message=NOT_FOUND_MESSAGE)

        context = await self._retrieval.retrieve_context(grant_id, question, grant=grant, token=token)
        check(token)
        return await self._analysis_client.generate_answer(
            question, context, grant.title, token=token
        )

    async def send(
        self,
        grant_id: str,
        question: str,
        token: CancellationToken | None = None,
    ) -> ChatMessage:
        """Record a user turn and the assistant's reply; return the reply."""
        if grant_id != self._active_grant_id:
            self.reset(grant_id)

        self._history.append(ChatMessage(role=ChatRole.USER, content=question))

        try:
            answer = await self.ask(grant_id, question, token=token)
        except GrantNotFoundError:
            logger.warning("chat_grant_not_found", grant_id=grant_id)
            answer = NOT_FOUND_MESSAGE
        except GrantDeskError as exc:
            logger.error("chat_answer_failed", grant_id=grant_id, error=str(exc))
            answer = APOLOGY_MESSAGE

        reply = ChatMessage(role=ChatRole.ASSISTANT, content=answer)
        self._history.append(reply)
        return reply

"""
Flow Dispatcher.

Runs one Langflow call per accepted query, gated so that each conversation
has at most one call in flight. Every outcome is returned as a value:
nothing raised by the flow client escapes submit().
"""

from dataclasses import dataclass
from enum import Enum

from modules.backend.core.concurrency import ConversationGate, get_conversation_gate
from modules.backend.core.exceptions import ConversationBusyError
from modules.backend.core.logging import get_logger, log_with_source
from modules.backend.services.answer import extract_answer
from modules.backend.services.langflow import FlowErrorKind, FlowRequestError, LangflowClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class DispatchRequest:
    conversation_id: str
    query: str
    sender_name: str | None = None
    sender_handle: str | None = None


class DispatchStatus(str, Enum):
    ANSWERED = "answered"
    EMPTY = "empty"
    BUSY = "busy"
    FAILED = "failed"


@dataclass(frozen=True)
class DispatchOutcome:
    status: DispatchStatus
    answer: str | None = None
    error: FlowErrorKind | None = None

    @classmethod
    def answered(cls, answer: str) -> "DispatchOutcome":
        return cls(DispatchStatus.ANSWERED, answer=answer)

    @classmethod
    def empty(cls) -> "DispatchOutcome":
        return cls(DispatchStatus.EMPTY)

    @classmethod
    def busy(cls) -> "DispatchOutcome":
        return cls(DispatchStatus.BUSY)

    @classmethod
    def failed(cls, error: FlowErrorKind) -> "DispatchOutcome":
        return cls(DispatchStatus.FAILED, error=error)


class FlowDispatcher:
    """
    Submits queries to Langflow through the conversation gate.

    Usage:
        dispatcher = FlowDispatcher(LangflowClient.from_config())
        outcome = await dispatcher.submit(DispatchRequest("42", "hello"))
    """

    def __init__(self, client: LangflowClient, gate: ConversationGate | None = None) -> None:
        self.client = client
        self.gate = gate if gate is not None else get_conversation_gate()

    async def submit(self, request: DispatchRequest) -> DispatchOutcome:
        """Run the flow for ``request`` unless its conversation is busy."""
        try:
            with self.gate.hold(request.conversation_id):
                data = await self.client.run(
                    request.query,
                    session_id=request.conversation_id,
                    sender_name=request.sender_name,
                    sender_handle=request.sender_handle,
                )
        except ConversationBusyError:
            log_with_source(
                logger,
                "langflow",
                "info",
                "Conversation busy, request rejected",
                conversation_id=request.conversation_id,
            )
            return DispatchOutcome.busy()
        except FlowRequestError as e:
            log_with_source(
                logger,
                "langflow",
                "error",
                "Langflow call failed",
                conversation_id=request.conversation_id,
                error=e.message,
                error_kind=e.kind.value,
                status_code=e.status_code,
                body=e.body,
            )
            return DispatchOutcome.failed(e.kind)

        answer = extract_answer(data, self.client.output_component)
        if answer is None:
            logger.warning(
                "Langflow returned no answer text",
                extra={"conversation_id": request.conversation_id},
            )
            return DispatchOutcome.empty()

        return DispatchOutcome.answered(answer)

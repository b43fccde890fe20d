"""
Relay Handler.

Every text message goes through intake classification. Messages addressed
to the bot are dispatched to Langflow and answered with exactly one reply;
everything else is left alone.
"""

from aiogram import F, Router
from aiogram.types import Message

from modules.backend.core.logging import get_logger, log_with_source
from modules.backend.gateway.adapters import ChannelAdapter, OutboundReply
from modules.backend.services.dispatcher import (
    DispatchOutcome,
    DispatchRequest,
    DispatchStatus,
    FlowDispatcher,
)
from modules.backend.services.langflow import FlowErrorKind
from modules.telegram import replies
from modules.telegram.intake import Deny, Forward, Identify, IncomingMessage, IntakePolicy

logger = get_logger(__name__)


async def handle_text(
    message: Message,
    intake_policy: IntakePolicy,
    flow_dispatcher: FlowDispatcher,
    channel_adapter: ChannelAdapter,
    answer_parse_mode: str | None = None,
) -> None:
    """Classify a text message and act on the result."""
    incoming = IncomingMessage.from_telegram(message)
    decision = intake_policy.classify(incoming)

    def reply(text: str, parse_mode: str | None = None) -> OutboundReply:
        return OutboundReply(
            chat_id=incoming.conversation_id,
            text=text,
            reply_to_message_id=incoming.message_id,
            thread_id=incoming.thread_id,
            parse_mode=parse_mode,
        )

    if isinstance(decision, Identify):
        await channel_adapter.deliver(
            reply(replies.identifiers_text(decision.conversation_id, decision.sender_id))
        )
        return

    if isinstance(decision, Deny):
        log_with_source(
            logger,
            "telegram",
            "warning",
            "Message from chat outside allow-list",
            chat_id=decision.conversation_id,
            user_id=decision.sender_id,
        )
        await channel_adapter.deliver(reply(replies.NOT_PERMITTED))
        return

    if not isinstance(decision, Forward):
        return

    request = DispatchRequest(
        conversation_id=decision.conversation_id,
        query=decision.query,
        sender_name=decision.sender.name,
        sender_handle=decision.sender.handle,
    )

    try:
        outcome = await flow_dispatcher.submit(request)
    except Exception as e:
        logger.error(
            "Unexpected dispatch failure",
            extra={"chat_id": request.conversation_id, "error": str(e)},
            exc_info=True,
        )
        outcome = DispatchOutcome.failed(FlowErrorKind.GENERIC)

    parse_mode = answer_parse_mode if outcome.status is DispatchStatus.ANSWERED else None
    await channel_adapter.deliver(reply(replies.text_for_outcome(outcome), parse_mode))


def create_router() -> Router:
    """Router for text messages. A new instance per dispatcher."""
    router = Router(name="relay")
    router.message.register(handle_text, F.text)
    return router

"""
Reply Texts.

Fixed texts the bot sends back, plus the mapping from dispatch outcomes
to the text delivered in the chat.
"""

from collections.abc import Sequence

from modules.backend.services.dispatcher import DispatchOutcome, DispatchStatus
from modules.backend.services.langflow import FlowErrorKind

EMPTY_ANSWER = "🤖 (порожня відповідь)"

BUSY = "⏳ Зачекайте, я ще відповідаю на попереднє повідомлення."

NOT_PERMITTED = "⛔ У цьому чаті бот недоступний."

ERRORS: dict[FlowErrorKind, str] = {
    FlowErrorKind.UNAUTHORIZED: (
        "Ой, Langflow відхилив запит 🔒 Перевірте LANGFLOW_API_KEY."
    ),
    FlowErrorKind.NOT_FOUND: (
        "Ой, Langflow не знайшов флоу 🔍 Перевірте LANGFLOW_FLOW_ID та LANGFLOW_BASE_URL."
    ),
    FlowErrorKind.PAYLOAD_TOO_LARGE: (
        "Ой, повідомлення завелике для Langflow 📦 Спробуйте коротше."
    ),
    FlowErrorKind.GENERIC: "Ой, сталася помилка під час звернення до Langflow 🙈",
}


def welcome_text(trigger_words: Sequence[str]) -> str:
    """Usage hint naming the trigger words."""
    words = " або ".join(f'"{word.capitalize()}"' for word in trigger_words)
    example = trigger_words[0].capitalize() if trigger_words else ""
    return (
        f"Привіт! Щоб я відповів, почніть повідомлення зі слова {words}.\n"
        f'Напр.: "{example}, як твій настрій?"\n'
        'Надішліть "id", щоб дізнатися ідентифікатори чату та користувача.'
    )


def identifiers_text(conversation_id: str, sender_id: str) -> str:
    return f"chat_id: {conversation_id}\nuser_id: {sender_id}"


def error_text(kind: FlowErrorKind | None) -> str:
    return ERRORS.get(kind or FlowErrorKind.GENERIC, ERRORS[FlowErrorKind.GENERIC])


def text_for_outcome(outcome: DispatchOutcome) -> str:
    """Text to send for a dispatch outcome."""
    if outcome.status is DispatchStatus.ANSWERED and outcome.answer:
        return outcome.answer
    if outcome.status is DispatchStatus.BUSY:
        return BUSY
    if outcome.status is DispatchStatus.FAILED:
        return error_text(outcome.error)
    return EMPTY_ANSWER

"""
Message Intake.

Decides what to do with an inbound text message before anything touches
the network:

- Ignore    - not addressed to the bot (no trigger word, or nothing after it)
- Identify  - the literal "id" diagnostic; replies with chat and user ids
- Deny      - addressed to the bot from a chat/user outside the allow-list
- Forward   - addressed to the bot; carries the query with the trigger stripped

A message is addressed to the bot when, after leading whitespace, it starts
with a trigger word followed by end of text or a separator:

    "Кріш як твій настрій"  -> Forward("як твій настрій")
    "чат, привіт"           -> Forward("привіт")
    "чатик"                 -> Ignore

The trigger check runs before the access check, so text that is not
addressed to the bot never produces a denial.

Pure logic: no I/O, no logging. Handlers act on the result.
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Union

if TYPE_CHECKING:
    from aiogram.types import Message

SEPARATORS = r"\s,.:;!?\-"

IDENTIFY_COMMAND = "id"


@dataclass(frozen=True)
class IncomingMessage:
    conversation_id: str
    sender_id: str
    text: str
    thread_id: int | None = None
    message_id: int | None = None
    sender_name: str | None = None
    sender_handle: str | None = None

    @classmethod
    def from_telegram(cls, message: "Message") -> "IncomingMessage":
        user = message.from_user
        sender_name = None
        if user is not None:
            sender_name = " ".join(
                part for part in (user.first_name, user.last_name) if part
            ) or None

        return cls(
            conversation_id=str(message.chat.id),
            sender_id=str(user.id) if user is not None else "",
            text=message.text or "",
            thread_id=message.message_thread_id,
            message_id=message.message_id,
            sender_name=sender_name,
            sender_handle=user.username if user is not None else None,
        )


@dataclass(frozen=True)
class SenderInfo:
    sender_id: str
    name: str | None = None
    handle: str | None = None


@dataclass(frozen=True)
class TriggerMatch:
    matched: bool
    query: str = ""


@dataclass(frozen=True)
class Ignore:
    pass


@dataclass(frozen=True)
class Identify:
    conversation_id: str
    sender_id: str


@dataclass(frozen=True)
class Deny:
    conversation_id: str
    sender_id: str


@dataclass(frozen=True)
class Forward:
    query: str
    conversation_id: str
    sender: SenderInfo


Classification = Union[Ignore, Identify, Deny, Forward]


class TriggerMatcher:
    """Case-insensitive prefix matcher for a set of trigger words."""

    def __init__(self, trigger_words: Iterable[str]) -> None:
        words = [word.strip() for word in trigger_words if word and word.strip()]
        if not words:
            raise ValueError("At least one trigger word is required")
        self.trigger_words = tuple(words)
        # Longest first so a word that prefixes another does not shadow it
        alternatives = "|".join(
            re.escape(word) for word in sorted(words, key=len, reverse=True)
        )
        self._pattern = re.compile(
            rf"^\s*(?:{alternatives})(?=$|[{SEPARATORS}])[{SEPARATORS}]*",
            re.IGNORECASE,
        )

    def match(self, text: str) -> TriggerMatch:
        found = self._pattern.match(text or "")
        if found is None:
            return TriggerMatch(matched=False)
        return TriggerMatch(matched=True, query=text[found.end():].strip())


@dataclass(frozen=True)
class AccessPolicy:
    """Allow-list of chats and users. Empty lists mean everyone is allowed."""

    allowed_chats: frozenset[str] = frozenset()
    allowed_users: frozenset[str] = frozenset()

    @classmethod
    def from_lists(cls, chats: Iterable[str] = (), users: Iterable[str] = ()) -> "AccessPolicy":
        return cls(
            allowed_chats=frozenset(str(chat) for chat in chats),
            allowed_users=frozenset(str(user) for user in users),
        )

    @property
    def is_open(self) -> bool:
        return not self.allowed_chats and not self.allowed_users

    def permits(self, conversation_id: str, sender_id: str) -> bool:
        if self.is_open:
            return True
        return conversation_id in self.allowed_chats or sender_id in self.allowed_users


class IntakePolicy:
    """Trigger matching plus access control."""

    def __init__(self, matcher: TriggerMatcher, access: AccessPolicy | None = None) -> None:
        self.matcher = matcher
        self.access = access or AccessPolicy()

    @classmethod
    def from_config(cls) -> "IntakePolicy":
        from modules.backend.core.config import get_app_config

        telegram = get_app_config().application.telegram
        return cls(
            TriggerMatcher(telegram.trigger_words),
            AccessPolicy.from_lists(telegram.allowed_chats, telegram.allowed_users),
        )

    def classify(self, message: IncomingMessage) -> Classification:
        text = message.text or ""
        if not text.strip():
            return Ignore()

        if text.strip().lower() == IDENTIFY_COMMAND:
            return Identify(message.conversation_id, message.sender_id)

        trigger = self.matcher.match(text)
        if not trigger.matched or not trigger.query:
            return Ignore()

        if not self.access.permits(message.conversation_id, message.sender_id):
            return Deny(message.conversation_id, message.sender_id)

        return Forward(
            query=trigger.query,
            conversation_id=message.conversation_id,
            sender=SenderInfo(
                sender_id=message.sender_id,
                name=message.sender_name,
                handle=message.sender_handle,
            ),
        )

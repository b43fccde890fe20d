"""
Channel Adapter Interface.

Outbound reply format and the contract a delivery channel implements.
The bot hands every reply to an adapter; the adapter owns chunking and
channel-specific send semantics.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class OutboundReply:
    """A reply addressed to the message that triggered it."""

    chat_id: str
    text: str
    reply_to_message_id: int | None = None
    thread_id: int | None = None
    parse_mode: str | None = None


class ChannelAdapter(ABC):
    """Base class for delivery channels."""

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Unique channel identifier (e.g., 'telegram')."""
        ...

    @property
    @abstractmethod
    def max_message_length(self) -> int:
        """Maximum message length for this channel."""
        ...

    @abstractmethod
    async def deliver(self, reply: OutboundReply) -> bool:
        """Deliver a reply. Returns True if every chunk was sent."""
        ...

    def chunk_message(self, text: str) -> list[str]:
        """
        Split a long message into channel-appropriate chunks.

        Splits on paragraph boundaries, then line boundaries, then hard
        at max_message_length.
        """
        if len(text) <= self.max_message_length:
            return [text]

        chunks: list[str] = []
        remaining = text
        while remaining:
            if len(remaining) <= self.max_message_length:
                chunks.append(remaining)
                break

            window = remaining[:self.max_message_length]
            split_at = window.rfind("\n\n")
            if split_at <= 0:
                split_at = window.rfind("\n")
            if split_at <= 0:
                split_at = self.max_message_length

            chunks.append(remaining[:split_at])
            remaining = remaining[split_at:].lstrip()

        return chunks

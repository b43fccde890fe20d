"""Channel adapter interface, re-exported from base."""

from modules.backend.gateway.adapters.base import ChannelAdapter, OutboundReply

__all__ = [
    "ChannelAdapter",
    "OutboundReply",
]

"""
Concurrency Infrastructure.

Per-conversation gate limiting outbound flow calls to one in flight per chat.

The gate is a lease table keyed by conversation id. A lease is taken before
the outbound call and released when it finishes, whatever the outcome.
Absence from the table means the conversation is idle.

Leases may carry an expiry (concurrency.yaml, conversation_gate.lease_seconds).
An expired lease no longer blocks its conversation, so a request that never
returns cannot wedge a chat forever. The expired holder may still complete
afterwards; its release is ignored because the table entry no longer belongs
to it. Past the expiry, mutual exclusion is advisory only.

All access happens on the event loop thread and acquisition never awaits,
so no lock is required.

Usage:
    from modules.backend.core.concurrency import get_conversation_gate

    gate = get_conversation_gate()
    with gate.hold(chat_id):
        answer = await client.run(request)
"""

import itertools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from modules.backend.core.exceptions import ConversationBusyError
from modules.backend.core.logging import get_logger

logger = get_logger(__name__)

_lease_ids = itertools.count(1)

_gate: "ConversationGate | None" = None


@dataclass(frozen=True)
class Lease:
    """Token proving ownership of a conversation slot."""

    key: str
    lease_id: int
    acquired_at: float
    expires_at: float | None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class ConversationGate:
    """At most one active lease per conversation key."""

    def __init__(
        self,
        lease_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if lease_seconds is not None and lease_seconds <= 0:
            raise ValueError("lease_seconds must be positive or None")
        self.lease_seconds = lease_seconds
        self._clock = clock
        self._leases: dict[str, Lease] = {}

    def __len__(self) -> int:
        return len(self._leases)

    def _active(self, key: str) -> Lease | None:
        lease = self._leases.get(key)
        if lease is None:
            return None
        if lease.expired(self._clock()):
            logger.warning(
                "Conversation lease expired while request still in flight",
                extra={"conversation_id": key, "lease_id": lease.lease_id},
            )
            del self._leases[key]
            return None
        return lease

    def active_count(self) -> int:
        """Number of conversations holding an unexpired lease. Drops expired ones."""
        return sum(1 for key in list(self._leases) if self._active(key) is not None)

    def is_busy(self, key: str) -> bool:
        return self._active(key) is not None

    def try_acquire(self, key: str) -> Lease | None:
        """Take the slot for ``key``, or return None if it is held."""
        if self._active(key) is not None:
            return None

        now = self._clock()
        expires_at = now + self.lease_seconds if self.lease_seconds is not None else None
        lease = Lease(key=key, lease_id=next(_lease_ids), acquired_at=now, expires_at=expires_at)
        self._leases[key] = lease
        return lease

    def release(self, lease: Lease) -> bool:
        """
        Release a lease.

        Returns False when the lease is no longer the current holder
        (it expired and the slot was taken over, or it was already released).
        """
        current = self._leases.get(lease.key)
        if current is None or current.lease_id != lease.lease_id:
            logger.debug(
                "Stale lease release ignored",
                extra={"conversation_id": lease.key, "lease_id": lease.lease_id},
            )
            return False
        del self._leases[lease.key]
        return True

    @contextmanager
    def hold(self, key: str) -> Iterator[Lease]:
        """
        Hold the conversation slot for the duration of the block.

        Raises:
            ConversationBusyError: If the conversation already holds a lease
        """
        lease = self.try_acquire(key)
        if lease is None:
            raise ConversationBusyError(key)
        try:
            yield lease
        finally:
            self.release(lease)


def get_conversation_gate() -> ConversationGate:
    """Get the process-wide conversation gate, created from concurrency.yaml."""
    global _gate
    if _gate is None:
        from modules.backend.core.config import get_app_config

        lease_seconds = get_app_config().concurrency.conversation_gate.lease_seconds
        _gate = ConversationGate(lease_seconds=lease_seconds)
        logger.debug("Conversation gate created", extra={"lease_seconds": lease_seconds})
    return _gate


def reset_conversation_gate() -> None:
    """Drop the process-wide gate (used on shutdown and in tests)."""
    global _gate
    _gate = None

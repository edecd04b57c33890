"""Consumer-side reassembly of chunked log-line messages.

Chunks are grouped by ``"<sequence>-<total>"``. Entries that stay incomplete
longer than the staleness window are evicted and lost; there is no
redelivery.
"""

import logging

from debugbridge.core.clock import Clock, now_ms
from debugbridge.core.config import ReassemblyConfig
from debugbridge.core.models import PendingMessage

logger = logging.getLogger(__name__)


class ReassemblyBuffer:
    """Accumulates chunks until every index of a message has arrived.

    Not safe for concurrent use: one buffer belongs to one ordered stream
    of lines.

    Args:
        config: Staleness window (default 30 000 ms).
        clock: Callable returning epoch milliseconds. Tests inject a fake.
    """

    def __init__(
        self,
        config: ReassemblyConfig | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self._timeout_ms = (config or ReassemblyConfig()).timeout_ms
        self._clock = clock
        self._pending: dict[str, PendingMessage] = {}

    @property
    def pending_count(self) -> int:
        """Number of incomplete messages currently held."""
        return len(self._pending)

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def add_chunk(
        self,
        key: str,
        kind: str,
        compressed: bool,
        chunk_total: int,
        chunk_index: int,
        segment: str,
    ) -> PendingMessage | None:
        """Store one chunk and return the entry once it is complete.

        A repeated ``chunk_index`` overwrites the earlier segment and does
        not count twice toward completion.

        The entry keeps the ``kind`` and ``compressed`` flag of the chunk
        that created it.

        Returns:
            The completed entry, removed from the buffer, when this chunk
            completes the message, otherwise None.
        """
        pending = self._pending.get(key)
        if pending is None:
            pending = PendingMessage(
                kind=kind,
                compressed=compressed,
                chunk_total=chunk_total,
                created_at=self._clock(),
            )
            self._pending[key] = pending

        pending.chunks[chunk_index] = segment

        if pending.is_complete:
            del self._pending[key]
            return pending

        self.sweep()
        return None

    def sweep(self, now: int | None = None) -> int:
        """Evict every entry older than the staleness window.

        Args:
            now: Epoch milliseconds to compare against; defaults to the clock.

        Returns:
            Number of evicted entries.
        """
        if now is None:
            now = self._clock()
        stale = [
            key
            for key, pending in self._pending.items()
            if now - pending.created_at > self._timeout_ms
        ]
        for key in stale:
            pending = self._pending.pop(key)
            logger.warning(
                "Discarding incomplete %s message %s (%d/%d chunks, timeout)",
                pending.kind,
                key,
                len(pending.chunks),
                pending.chunk_total,
            )
        return len(stale)

    def reset(self) -> None:
        """Drop every pending entry."""
        self._pending.clear()

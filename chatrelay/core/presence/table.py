"""
Presence table: who is online now, when they were last seen and which channel they own.

Every read-modify-write runs under one asyncio.Lock. Mutators return the snapshot taken
inside their own critical section so the caller can broadcast exactly the state it produced.
"""
import asyncio
import logging
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from chatrelay.core.errors import DuplicateNameError, UnknownIdentityError
from chatrelay.core.presence.models import Participant

logger = logging.getLogger(__name__)

Snapshot = List[Dict[str, str]]


class PresenceTable:
    """Insertion-ordered map of name -> Participant."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._participants: Dict[str, Participant] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def _snapshot(self) -> Snapshot:
        return [p.to_public() for p in self._participants.values()]

    def _require(self, name: str) -> Participant:
        participant = self._participants.get(name)
        if participant is None:
            raise UnknownIdentityError(name)
        return participant

    async def insert(self, participant: Participant) -> None:
        """Create-if-absent. Raises DuplicateNameError when the name is held."""
        async with self._lock:
            if participant.name in self._participants:
                raise DuplicateNameError(participant.name)
            self._participants[participant.name] = participant

    async def upsert_on_join(
        self,
        name: str,
        channel: Any,
        user_id: Optional[str] = None,
    ) -> Snapshot:
        """
        Insert the participant if absent, otherwise refresh it.

        An existing participant keeps its id; its channel is bound only if none was bound
        yet (registered over HTTP but not joined). Returns the post-join snapshot.
        """
        async with self._lock:
            now = self._clock()
            participant = self._participants.get(name)
            if participant is None:
                self._participants[name] = Participant(
                    id=user_id or str(uuid.uuid4()),
                    name=name,
                    last_seen_at=now,
                    channel=channel,
                )
            else:
                participant.last_seen_at = now
                if participant.channel is None:
                    participant.channel = channel
            return self._snapshot()

    async def touch(self, name: str) -> bool:
        """Refresh last_seen_at. Unknown names are ignored and never re-created."""
        async with self._lock:
            try:
                participant = self._require(name)
            except UnknownIdentityError:
                logger.debug("Ignoring ping for unknown participant %r", name)
                return False
            participant.last_seen_at = self._clock()
            return True

    async def remove(self, name: str) -> Optional[Snapshot]:
        """Delete a participant. Returns the new snapshot, or None if nothing changed."""
        async with self._lock:
            if self._participants.pop(name, None) is None:
                return None
            return self._snapshot()

    async def remove_channel(self, channel: Any) -> Tuple[List[str], Snapshot]:
        """Delete every participant bound to channel. Returns the removed names and the new snapshot."""
        async with self._lock:
            names = [name for name, p in self._participants.items() if p.channel is channel]
            for name in names:
                del self._participants[name]
            return names, self._snapshot()

    async def evict_stale(self, threshold: float) -> Tuple[List[str], Snapshot]:
        """Remove everyone silent for more than threshold seconds, in one critical section."""
        async with self._lock:
            now = self._clock()
            stale = [
                name
                for name, p in self._participants.items()
                if now - p.last_seen_at > threshold
            ]
            for name in stale:
                del self._participants[name]
            return stale, self._snapshot()

    async def snapshot(self) -> Snapshot:
        async with self._lock:
            return self._snapshot()

    def get(self, name: str) -> Optional[Participant]:
        return self._participants.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._participants

    def __len__(self) -> int:
        return len(self._participants)

"""
Presence models: a participant and the channel it is bound to.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Participant:
    """A present chat identity. name is unique; channel is bound once, at join."""
    id: str
    name: str
    last_seen_at: float
    channel: Optional[Any] = None

    def to_public(self) -> Dict[str, str]:
        """Shape sent to clients in presence snapshots."""
        return {"id": self.id, "name": self.name}

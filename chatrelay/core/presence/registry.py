"""
Name registration: create-if-absent over the presence table.
"""
import logging
import uuid
from typing import Any

from chatrelay.core.errors import InvalidNameError
from chatrelay.core.presence.models import Participant
from chatrelay.core.presence.table import PresenceTable

logger = logging.getLogger(__name__)


class Registry:
    """Allocates identities for new display names and rejects names already present."""

    def __init__(self, presence: PresenceTable) -> None:
        self._presence = presence

    async def register(self, name: Any) -> Participant:
        """
        Register a display name.

        Args:
            name: Requested display name (case-sensitive, must be a non-blank string)

        Returns:
            The new participant, present but not yet bound to a channel

        Raises:
            InvalidNameError: name is missing or blank
            DuplicateNameError: a present participant already holds the name
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidNameError("Name is required")
        participant = Participant(
            id=str(uuid.uuid4()),
            name=name,
            last_seen_at=self._presence.now(),
        )
        await self._presence.insert(participant)
        logger.info("New user created: %s", participant.to_public())
        return participant

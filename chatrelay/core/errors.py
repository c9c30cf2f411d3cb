"""
Error types shared by the registry, presence table and WebSocket layer.

None of these are fatal to the server: registration errors map to HTTP statuses,
the rest are contained to a single frame or a single channel.
"""


class ChatRelayError(Exception):
    """Base class for chat relay errors."""
    pass


class InvalidNameError(ChatRelayError, ValueError):
    """Raised when a registration carries no usable name."""
    pass


class DuplicateNameError(ChatRelayError):
    """Raised when a name is already held by a present participant."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Name {name!r} is already taken")
        self.name = name


class MalformedEventError(ChatRelayError, ValueError):
    """Raised when an inbound frame cannot be decoded into an event."""
    pass


class UnknownIdentityError(ChatRelayError):
    """Raised when an operation names a participant that is not present."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown participant {name!r}")
        self.name = name


class ChannelDeliveryError(ChatRelayError):
    """Raised inside a channel writer when a frame could not be sent."""

    def __init__(self, channel_id: str, reason: str) -> None:
        super().__init__(f"Delivery to channel {channel_id} failed: {reason}")
        self.channel_id = channel_id
        self.reason = reason

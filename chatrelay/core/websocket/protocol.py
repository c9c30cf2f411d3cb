"""
WebSocket wire format.

Inbound frames are JSON objects with a "type" discriminator. Outbound frames are JSON text:
history ({"type": "history", "data": [...]}) and presence (a bare list of {id, name}).
Relayed "send" frames are not re-encoded here; they go out exactly as they came in.
"""
import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chatrelay.core.errors import MalformedEventError


class EventType:
    # Client to server
    PING = "ping"
    JOIN = "join"
    EXIT = "exit"
    SEND = "send"
    CLEAR = "clear"

    # Server to client
    HISTORY = "history"


# Events that must name a participant in user.name
USER_EVENTS = (EventType.PING, EventType.JOIN, EventType.EXIT)


class UserRef(BaseModel):
    """The user block carried by ping/join/exit. Extra client fields are kept."""
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    id: Optional[Union[str, int]] = None


class InboundEvent(BaseModel):
    """Any inbound event. Only the discriminator is validated for every kind."""
    model_config = ConfigDict(extra="allow")

    type: str = Field(..., min_length=1)


def decode_event(frame: Union[str, bytes], max_frame_size: Optional[int] = None) -> Dict[str, Any]:
    """
    Decode one inbound frame (text or binary) into an event dict.

    Raises MalformedEventError for oversized frames, invalid JSON, non-object payloads,
    a missing type, or a ping/join/exit without user.name.
    """
    if max_frame_size is not None:
        size = len(frame.encode("utf-8")) if isinstance(frame, str) else len(frame)
        if size > max_frame_size:
            raise MalformedEventError(f"Frame too large ({size} > {max_frame_size} bytes)")
    try:
        data = json.loads(frame)
    except RecursionError as e:
        raise MalformedEventError("Invalid JSON: nested too deeply") from e
    except ValueError as e:
        raise MalformedEventError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedEventError(f"Expected a JSON object, got {type(data).__name__}")
    try:
        event = InboundEvent.model_validate(data)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid event: {e.errors()[0].get('msg')}") from e
    if event.type in USER_EVENTS:
        try:
            UserRef.model_validate(data.get("user"))
        except ValidationError as e:
            raise MalformedEventError(f"'{event.type}' event requires user.name") from e
    return data


def user_of(event: Dict[str, Any]) -> UserRef:
    """The validated user block of a ping/join/exit event decoded by decode_event."""
    return UserRef.model_validate(event["user"])


def encode_history(events: List[Dict[str, Any]]) -> str:
    return json.dumps({"type": EventType.HISTORY, "data": events})


def encode_presence(snapshot: List[Dict[str, str]]) -> str:
    return json.dumps(snapshot)

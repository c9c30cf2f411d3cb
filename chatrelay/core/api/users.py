"""
User registration endpoints.
"""
import json
import logging
from typing import List

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from chatrelay.core.errors import DuplicateNameError, InvalidNameError
from chatrelay.core.hub import get_hub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])

NAME_REQUIRED = "Name is required"
NAME_TAKEN = "This name is already taken!"


# Request/Response Models

class NewUserRequest(BaseModel):
    """Request to register a display name."""
    name: str


class UserResponse(BaseModel):
    """Public participant information."""
    id: str
    name: str


class NewUserResponse(BaseModel):
    """Response after registering a name."""
    status: str = "ok"
    user: UserResponse


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


# Endpoints

@router.post("/new-user", response_model=NewUserResponse)
async def new_user(request: Request):
    """
    Register a display name.

    The body is read as JSON whatever the Content-Type. Returns 400 when no name is
    given and 409 when the name is held by a present participant.
    """
    raw = await request.body()
    try:
        body = NewUserRequest.model_validate(json.loads(raw or b"{}"))
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError):
        logger.error("Registration rejected: no name in request body")
        return _error(status.HTTP_400_BAD_REQUEST, NAME_REQUIRED)

    try:
        participant = await get_hub().registry.register(body.name)
    except InvalidNameError:
        logger.error("Registration rejected: empty name")
        return _error(status.HTTP_400_BAD_REQUEST, NAME_REQUIRED)
    except DuplicateNameError as e:
        logger.error('User with name "%s" already exists', e.name)
        return _error(status.HTTP_409_CONFLICT, NAME_TAKEN)

    return NewUserResponse(user=UserResponse(**participant.to_public()))


@router.get("/api/users", response_model=List[UserResponse])
async def list_users() -> List[UserResponse]:
    """Current presence snapshot, in join order."""
    snapshot = await get_hub().presence.snapshot()
    return [UserResponse(**user) for user in snapshot]

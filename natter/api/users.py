"""FastAPI user endpoints.

POST /users                        — register a user
PUT  /users/{user_id}/password     — rotate the caller's own password
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from natter.api.dependencies import get_current_user, get_user_service
from natter.errors import PermissionDeniedError
from natter.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class RegisterUserRequest(BaseModel):
    username: str
    password: str


class RegisterUserResponse(BaseModel):
    username: str


class RotatePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class RotatePasswordResponse(BaseModel):
    username: str
    rotated: bool = True


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", status_code=201, response_model=RegisterUserResponse)
async def register_user(
    body: RegisterUserRequest,
    users: UserService = Depends(get_user_service),
) -> RegisterUserResponse:
    username = await users.register(body.username, body.password)
    return RegisterUserResponse(username=username)


@router.put("/{user_id}/password", response_model=RotatePasswordResponse)
async def rotate_password(
    user_id: str,
    body: RotatePasswordRequest,
    caller: str = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> RotatePasswordResponse:
    """Only the user themselves may rotate their credentials."""
    if caller != user_id:
        raise PermissionDeniedError()
    await users.rotate_password(user_id, body.current_password, body.new_password)
    return RotatePasswordResponse(username=user_id)

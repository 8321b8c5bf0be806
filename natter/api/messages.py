"""FastAPI message endpoints, all scoped to one space.

POST   /spaces/{space_id}/messages            — post (WRITE)
GET    /spaces/{space_id}/messages            — list by time range (READ)
GET    /spaces/{space_id}/messages/{msg_id}   — read one (READ)
DELETE /spaces/{space_id}/messages/{msg_id}   — moderate (DELETE)
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from natter.api.dependencies import get_current_user, get_message_service
from natter.api.spaces import space_uri
from natter.db.tables import MessageRow
from natter.errors import ValidationError
from natter.services.messages import MessageService

router = APIRouter(prefix="/spaces/{space_id}/messages", tags=["messages"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class PostMessageRequest(BaseModel):
    author: str
    message: str


class PostMessageResponse(BaseModel):
    msg_id: int
    uri: str


class MessageResponse(BaseModel):
    msg_id: int
    space_id: int
    author: str
    message: str
    time: datetime
    uri: str


class DeleteMessageResponse(BaseModel):
    msg_id: int
    deleted: bool = True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def message_uri(space_id: int, msg_id: int) -> str:
    return f"{space_uri(space_id)}/messages/{msg_id}"


def _as_utc(value: datetime | None) -> datetime | None:
    """Normalise to UTC; timestamps without an offset are taken as UTC.

    SQLite stores DateTime without its offset, so every comparison value
    must already be in UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_response(row: MessageRow) -> MessageResponse:
    return MessageResponse(
        msg_id=row.msg_id,
        space_id=row.space_id,
        author=row.author,
        message=row.msg_text,
        time=_as_utc(row.msg_time),
        uri=message_uri(row.space_id, row.msg_id),
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", status_code=201, response_model=PostMessageResponse)
async def post_message(
    space_id: int,
    body: PostMessageRequest,
    caller: str = Depends(get_current_user),
    messages: MessageService = Depends(get_message_service),
) -> PostMessageResponse:
    if body.author != caller:
        raise ValidationError("author must match the authenticated user")
    row = await messages.post_message(space_id, body.author, body.message)
    return PostMessageResponse(msg_id=row.msg_id, uri=message_uri(space_id, row.msg_id))


@router.get("", response_model=list[MessageResponse])
async def list_messages(
    space_id: int,
    since: datetime | None = None,
    until: datetime | None = None,
    caller: str = Depends(get_current_user),
    messages: MessageService = Depends(get_message_service),
) -> list[MessageResponse]:
    """Messages in ascending time order; ``since`` defaults to one day ago."""
    rows = await messages.list_messages(
        space_id, caller, since=_as_utc(since), until=_as_utc(until),
    )
    return [_to_response(r) for r in rows]


@router.get("/{msg_id}", response_model=MessageResponse)
async def read_message(
    space_id: int,
    msg_id: int,
    caller: str = Depends(get_current_user),
    messages: MessageService = Depends(get_message_service),
) -> MessageResponse:
    row = await messages.read_message(space_id, msg_id, caller)
    return _to_response(row)


@router.delete("/{msg_id}", response_model=DeleteMessageResponse)
async def delete_message(
    space_id: int,
    msg_id: int,
    caller: str = Depends(get_current_user),
    messages: MessageService = Depends(get_message_service),
) -> DeleteMessageResponse:
    await messages.delete_message(space_id, msg_id, caller)
    return DeleteMessageResponse(msg_id=msg_id)

"""FastAPI space and membership endpoints.

POST   /spaces                               — create a space (caller owns it)
GET    /spaces/{space_id}                    — space details (READ)
GET    /spaces/{space_id}/members            — list grants (owner)
POST   /spaces/{space_id}/members            — grant capabilities
DELETE /spaces/{space_id}/members/{user_id}  — revoke a grant (owner)
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from natter.api.dependencies import (
    get_current_user,
    get_permission_service,
    get_space_service,
)
from natter.errors import ValidationError
from natter.models.common import parse_capabilities
from natter.services.permissions import Grant, PermissionService
from natter.services.spaces import SpaceService

router = APIRouter(prefix="/spaces", tags=["spaces"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class CreateSpaceRequest(BaseModel):
    name: str
    owner: str


class CreateSpaceResponse(BaseModel):
    space_id: int
    name: str
    uri: str


class SpaceResponse(BaseModel):
    space_id: int
    name: str
    owner: str
    uri: str


class GrantRequest(BaseModel):
    username: str
    permissions: str


class MemberResponse(BaseModel):
    username: str
    permissions: str


class RevokeResponse(BaseModel):
    username: str
    revoked: bool = True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def space_uri(space_id: int) -> str:
    return f"/spaces/{space_id}"


def _member(grant: Grant) -> MemberResponse:
    return MemberResponse(username=grant.user_id, permissions=grant.code)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("", status_code=201, response_model=CreateSpaceResponse)
async def create_space(
    body: CreateSpaceRequest,
    caller: str = Depends(get_current_user),
    spaces: SpaceService = Depends(get_space_service),
) -> CreateSpaceResponse:
    if body.owner != caller:
        raise ValidationError("owner must match the authenticated user")
    space_id = await spaces.create_space(body.name, body.owner)
    return CreateSpaceResponse(space_id=space_id, name=body.name, uri=space_uri(space_id))


@router.get("/{space_id}", response_model=SpaceResponse)
async def get_space(
    space_id: int,
    caller: str = Depends(get_current_user),
    spaces: SpaceService = Depends(get_space_service),
) -> SpaceResponse:
    row = await spaces.get_space(space_id, caller)
    return SpaceResponse(
        space_id=row.space_id, name=row.name, owner=row.owner, uri=space_uri(row.space_id),
    )


@router.get("/{space_id}/members", response_model=list[MemberResponse])
async def list_members(
    space_id: int,
    caller: str = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
) -> list[MemberResponse]:
    grants = await permissions.list_grants(space_id, caller)
    return [_member(g) for g in grants]


@router.post("/{space_id}/members", response_model=MemberResponse)
async def grant_member(
    space_id: int,
    body: GrantRequest,
    caller: str = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
) -> MemberResponse:
    """Replace the member's capability set with ``permissions`` (e.g. "rw")."""
    capabilities = parse_capabilities(body.permissions)
    grant = await permissions.grant(space_id, caller, body.username, capabilities)
    return _member(grant)


@router.delete("/{space_id}/members/{user_id}", response_model=RevokeResponse)
async def revoke_member(
    space_id: int,
    user_id: str,
    caller: str = Depends(get_current_user),
    permissions: PermissionService = Depends(get_permission_service),
) -> RevokeResponse:
    await permissions.revoke(space_id, caller, user_id)
    return RevokeResponse(username=user_id)

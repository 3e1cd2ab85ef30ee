"""Chat API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...application.chat.dtos import ChatTokenResponseDTO
from ...application.chat.use_cases.identity import IdentityResolver
from ...domain.chat.entities import AuthenticatedUser, GroupRecord
from ...domain.chat.repositories import GroupRepository
from ...domain.errors import Unauthenticated
from ..auth import get_current_user
from ..dependencies import get_group_repository, get_identity_resolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/token", response_model=ChatTokenResponseDTO)
async def get_chat_token(
    user: AuthenticatedUser = Depends(get_current_user),
    identity_resolver: IdentityResolver = Depends(get_identity_resolver),
) -> ChatTokenResponseDTO:
    """Issue a transport access token for the authenticated caller."""
    try:
        identity = identity_resolver.resolve(user)
        access_token = identity_resolver.issue_access_token(identity)
    except Unauthenticated as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except Exception as e:
        logger.exception("Internal server error while issuing chat token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate token",
        )
    await identity_resolver.publish_identity(identity)
    return ChatTokenResponseDTO.from_access_token(access_token, identity)


@router.get("/groups/{group_id}", response_model=GroupRecord)
async def get_group(
    group_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    group_repository: GroupRepository = Depends(get_group_repository),
) -> GroupRecord:
    """Group details for one of its members."""
    group = await group_repository.get_by_id(group_id)
    if group is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Group not found"
        )
    if user.id not in group.member_ids:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a member of this group",
        )
    return group

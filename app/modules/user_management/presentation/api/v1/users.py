# 📄 File: app/modules/user_management/presentation/api/v1/users.py
# 🧭 Purpose (Layman Explanation):
# The web addresses for looking at and managing user accounts: viewing, editing, deleting,
# restoring and switching accounts on or off.
#
# 🧪 Purpose (Technical Summary):
# FastAPI user management endpoints delegating to UserService. The product service calls
# GET /{user_id} with the end user's forwarded bearer token to check account status.
#
# 🔗 Dependencies:
# - FastAPI router, status codes
# - app.shared.core.dependencies (caller authentication)
# - app.modules.user_management.presentation.api.schemas.user_schemas
#
# 🔄 Connected Modules / Calls From:
# - app.main (user service includes this router under /api/users)
# - Product service HttpUserStatusOracle (GET /{user_id})

"""
Users API Endpoints

Endpoints:
- GET /: List users (admin only)
- GET /{user_id}: Get a user (self or admin)
- PUT /{user_id}: Update a user (self or admin, confirmed email)
- DELETE /{user_id}: Soft delete a user (self or admin)
- POST /{user_id}/restore: Restore a deleted user (admin only)
- PUT /{user_id}/status: Activate or deactivate a user (admin only)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from app.modules.user_management.domain.services.user_service import UserService
from app.modules.user_management.presentation.api.schemas import (
    UserListResponse,
    UserResponse,
    UserStatusUpdateRequest,
    UserUpdateRequest,
)
from app.modules.user_management.presentation.dependencies import get_user_service
from app.shared.core.dependencies import CurrentUser, get_current_user, require_admin

logger = logging.getLogger(__name__)

users_router = APIRouter()


@users_router.get(
    "",
    response_model=UserListResponse,
    summary="List users",
    responses={403: {"description": "Admin role required"}},
)
async def list_users(
    current_user: CurrentUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> UserListResponse:
    users = await user_service.list_users(current_user)
    return UserListResponse(users=[UserResponse.from_domain(u) for u in users], total=len(users))


@users_router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get user information",
    responses={
        403: {"description": "Access denied"},
        404: {"description": "User not found"},
    },
)
async def get_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await user_service.get_user(user_id, current_user)
    return UserResponse.from_domain(user)


@users_router.put(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Update user account",
    responses={
        403: {"description": "Access denied or email not confirmed"},
        404: {"description": "User not found"},
        409: {"description": "Email already exists"},
    },
)
async def update_user(
    user_id: UUID,
    update_data: UserUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Response:
    await user_service.update_user(user_id, update_data.model_dump(exclude_unset=True), current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@users_router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete user account",
    responses={
        403: {"description": "Access denied"},
        404: {"description": "User not found"},
    },
)
async def delete_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Response:
    await user_service.delete_user(user_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@users_router.post(
    "/{user_id}/restore",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Restore a deleted user",
    responses={
        403: {"description": "Admin role required"},
        404: {"description": "User not found"},
    },
)
async def restore_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> Response:
    await user_service.restore_user(user_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@users_router.put(
    "/{user_id}/status",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Activate or deactivate a user",
    responses={
        403: {"description": "Admin role required"},
        404: {"description": "User not found"},
    },
)
async def set_user_status(
    user_id: UUID,
    status_data: UserStatusUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> Response:
    await user_service.set_user_status(user_id, status_data.is_active, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

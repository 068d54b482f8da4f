"""
User management routers.

Managing other users is restricted to administrators; every signed-in user
can read and edit their own profile under /users/me.
"""

from fastapi import APIRouter, HTTPException, status, Depends, Path, Query

from pos_api.auth.dependencies import get_current_user_id, require_admin
from pos_api.common.schemas import DeleteResult
from .schemas import (
    UserCreate, UserUpdate, ProfileUpdate, UserListResponse, UserResponse,
    UserDeleteResponse, ProfileResponse
)
from .services import (
    list_users_service,
    create_user_service,
    update_user_service,
    delete_user_service,
    get_profile_service,
    update_profile_service
)

router = APIRouter()


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(user_id: str = Depends(get_current_user_id)):
    """
    Get the signed-in user's profile.
    """
    try:
        result = await get_profile_service(user_id)
        return ProfileResponse.success(result)
    except HTTPException as e:
        return ProfileResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return ProfileResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    update_data: ProfileUpdate,
    user_id: str = Depends(get_current_user_id)
):
    """
    Update the signed-in user's name or avatar URL. The role cannot be changed here.
    """
    try:
        result = await update_profile_service(user_id, update_data)
        return ProfileResponse.success(result)
    except HTTPException as e:
        return ProfileResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return ProfileResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    size: int = Query(10, ge=1, le=100, description="Number of items per page (1-100)"),
    user_id: str = Depends(require_admin)
):
    """
    Get all users with pagination, newest first.
    """
    try:
        result = await list_users_service(page, size)
        return UserListResponse.success(result)
    except HTTPException as e:
        return UserListResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return UserListResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("", response_model=UserResponse)
async def create_user(
    user_data: UserCreate,
    user_id: str = Depends(require_admin)
):
    """
    Create a login with a name and role.
    """
    try:
        result = await create_user_service(user_data)
        return UserResponse.success(result)
    except HTTPException as e:
        return UserResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return UserResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.put("/{target_user_id}", response_model=UserResponse)
async def update_user(
    update_data: UserUpdate,
    target_user_id: str = Path(..., description="User ID"),
    user_id: str = Depends(require_admin)
):
    """
    Update a user's name and role.
    """
    try:
        result = await update_user_service(target_user_id, update_data)
        return UserResponse.success(result)
    except HTTPException as e:
        return UserResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return UserResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.delete("/{target_user_id}", response_model=UserDeleteResponse)
async def delete_user(
    target_user_id: str = Path(..., description="User ID"),
    user_id: str = Depends(require_admin)
):
    """
    Delete a user's login and profile.
    """
    try:
        message = await delete_user_service(target_user_id, user_id)
        return UserDeleteResponse.success(DeleteResult(message=message))
    except HTTPException as e:
        return UserDeleteResponse.error(str(e.detail), code=e.status_code)
    except Exception as e:
        return UserDeleteResponse.error(str(e), code=status.HTTP_500_INTERNAL_SERVER_ERROR)

"""
User management schemas.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from pos_api.common.schemas import JSendResponse, PaginationResponse, DeleteResult, UserRole


class UserCreate(BaseModel):
    """
    Schema for creating a new login. The account is created with its e-mail already verified.
    """
    email: EmailStr
    password: str = Field(..., min_length=6)
    fullName: str = Field(..., min_length=1)
    role: UserRole = UserRole.USER


class UserUpdate(BaseModel):
    """
    Schema for updating another user's profile.
    """
    fullName: Optional[str] = Field(None, min_length=1)
    role: Optional[UserRole] = None


class UserInfo(BaseModel):
    """
    User information returned in the admin user list.
    """
    id: str
    email: str
    fullName: str
    role: UserRole = UserRole.USER
    createdAt: Optional[str] = None


class UserListData(PaginationResponse[UserInfo]):
    pass


class UserItemResponse(BaseModel):
    """
    Wrapper for single user item response.
    """
    item: UserInfo


class ProfileInfo(BaseModel):
    """The signed-in user's own profile."""
    id: str
    email: Optional[str] = None
    fullName: Optional[str] = None
    role: UserRole = UserRole.USER
    avatarUrl: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""
    fullName: Optional[str] = Field(None, min_length=1)
    avatarUrl: Optional[str] = None


class UserListResponse(JSendResponse[UserListData]):
    """Response model for user list operations."""
    pass


class UserResponse(JSendResponse[UserItemResponse]):
    """Response model for single user operations."""
    pass


class UserDeleteResponse(JSendResponse[DeleteResult]):
    """Response model for user deletion."""
    pass


class ProfileResponse(JSendResponse[ProfileInfo]):
    """Response model for the signed-in user's profile."""
    pass

"""
Authentication and authorization dependencies for FastAPI endpoints.
"""
import os
from typing import Optional

from fastapi import HTTPException, Header, Depends
from firebase_admin import auth, firestore

from pos_api.common.logging import get_logger
from pos_api.common.schemas import UserRole

logger = get_logger(__name__)

PROFILES_COLLECTION = "profiles"
LOCAL_USER_ID = "local-admin-user-id"


def get_firestore_client():
    return firestore.client()


async def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """
    Extract and verify user ID from Firebase ID token.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        str: User ID from verified token

    Raises:
        HTTPException: If token is invalid or missing
    """
    # Only bypass authentication for local development if no authorization header is provided
    if os.getenv("ENV") == "local" and not authorization:
        logger.debug("auth_bypassed_local")
        return LOCAL_USER_ID

    if not authorization:
        raise HTTPException(
            status_code=401,
            detail="Authorization header is required"
        )

    try:
        # Extract token from "Bearer <token>" format
        token = authorization.replace("Bearer ", "")
        decoded_token = auth.verify_id_token(token)
        return decoded_token["uid"]
    except Exception as e:
        logger.info("token_verification_failed", error=str(e))
        raise HTTPException(
            status_code=401,
            detail=f"Invalid authentication token: {str(e)}"
        )


async def get_user_role(user_id: str) -> UserRole:
    """
    Look up the role stored on the user's profile.

    Args:
        user_id: The ID of the user

    Returns:
        UserRole: ADMIN only when the profile says so, USER otherwise

    Raises:
        HTTPException: If the profile cannot be read
    """
    if os.getenv("ENV") == "local" and user_id == LOCAL_USER_ID:
        return UserRole.ADMIN

    try:
        db = get_firestore_client()
        profile_doc = db.collection(PROFILES_COLLECTION).document(user_id).get()

        if not profile_doc.exists:
            return UserRole.USER

        profile_data = profile_doc.to_dict() or {}
        if profile_data.get('role') == UserRole.ADMIN.value:
            return UserRole.ADMIN
        return UserRole.USER

    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Internal server error: {str(e)}"
        )


async def require_admin(user_id: str = Depends(get_current_user_id)) -> str:
    """
    Dependency that verifies the authenticated user is an administrator.

    Args:
        user_id: The authenticated user ID (injected by dependency)

    Returns:
        str: The admin's user ID

    Raises:
        HTTPException: If authentication fails or user is not an admin
    """
    role = await get_user_role(user_id)

    if role != UserRole.ADMIN:
        raise HTTPException(
            status_code=403,
            detail="Access denied: administrator privileges are required"
        )

    return user_id

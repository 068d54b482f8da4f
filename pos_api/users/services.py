"""
User management services.

Logins live in Firebase Auth; the `profiles` collection, keyed by the auth
UID, holds the display name and role.
"""

from typing import Optional

from fastapi import HTTPException, status
from firebase_admin import auth, exceptions, firestore

from pos_api.auth.dependencies import PROFILES_COLLECTION
from pos_api.common.dates import now_local
from pos_api.common.logging import get_logger
from pos_api.common.schemas import UserRole
from pos_api.common.utils import convert_timestamp, generate_default_avatar, paginate, timestamp_sort_key
from .schemas import (
    UserCreate, UserUpdate, UserInfo, UserListData, UserItemResponse, ProfileInfo, ProfileUpdate
)

logger = get_logger(__name__)

NO_EMAIL = "No email"
NO_NAME = "No name"


def get_firestore_client():
    """Get Firestore client instance."""
    return firestore.client()


def _role_of(profile_data: dict) -> UserRole:
    if profile_data.get('role') == UserRole.ADMIN.value:
        return UserRole.ADMIN
    return UserRole.USER


def _auth_email(user_id: str) -> Optional[str]:
    """E-mail of the auth account, or None when it cannot be looked up."""
    try:
        return auth.get_user(user_id).email
    except (exceptions.FirebaseError, ValueError) as e:
        logger.info("auth_user_lookup_failed", user_id=user_id, error=str(e))
        return None


def _to_user_info(user_id: str, profile_data: dict) -> UserInfo:
    return UserInfo(
        id=user_id,
        email=_auth_email(user_id) or NO_EMAIL,
        fullName=profile_data.get('fullName') or NO_NAME,
        role=_role_of(profile_data),
        createdAt=convert_timestamp(profile_data.get('createdAt'))
    )


async def list_users_service(page: int = 1, size: int = 10) -> UserListData:
    """All profiles, newest first, each with the e-mail of its auth account."""
    db = get_firestore_client()

    try:
        docs = list(db.collection(PROFILES_COLLECTION).stream())
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve users: {str(e)}"
        )

    profiles = [(doc.id, doc.to_dict() or {}) for doc in docs]
    profiles.sort(key=lambda pair: timestamp_sort_key(pair[1].get('createdAt')), reverse=True)

    page_profiles, total, pages = paginate(profiles, page, size)
    users = [_to_user_info(user_id, profile_data) for user_id, profile_data in page_profiles]
    return UserListData(items=users, total=total, page=page, size=size, pages=pages)


async def create_user_service(user_data: UserCreate) -> UserItemResponse:
    """
    Create an auth account and its profile.

    The auth account is removed again if the profile cannot be written.

    Raises:
        HTTPException: 409 if the e-mail is taken, 500 on other failures
    """
    try:
        user_record = auth.create_user(
            email=user_data.email,
            password=user_data.password,
            display_name=user_data.fullName,
            email_verified=True
        )
    except auth.EmailAlreadyExistsError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email is already in use.")
    except (exceptions.FirebaseError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create user: {str(e)}"
        )

    now = now_local()
    profile_data = {
        "fullName": user_data.fullName,
        "role": user_data.role.value,
        "createdAt": now,
        "updatedAt": now
    }

    try:
        db = get_firestore_client()
        db.collection(PROFILES_COLLECTION).document(user_record.uid).set(profile_data)
    except Exception as e:
        try:
            auth.delete_user(user_record.uid)
            logger.info("auth_user_rolled_back", user_id=user_record.uid)
        except exceptions.FirebaseError as rollback_error:
            logger.error("auth_user_rollback_failed", user_id=user_record.uid, error=str(rollback_error))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create user profile: {str(e)}"
        )

    logger.info("user_created", user_id=user_record.uid, role=user_data.role.value)
    return UserItemResponse(item=UserInfo(
        id=user_record.uid,
        email=str(user_data.email),
        fullName=user_data.fullName,
        role=user_data.role,
        createdAt=convert_timestamp(now)
    ))


async def update_user_service(user_id: str, update_data: UserUpdate) -> UserItemResponse:
    """Update another user's name and/or role."""
    db = get_firestore_client()
    profile_ref = db.collection(PROFILES_COLLECTION).document(user_id)
    profile_doc = profile_ref.get()

    if not profile_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    profile_data = profile_doc.to_dict() or {}
    update_dict = {"updatedAt": now_local()}

    if update_data.fullName is not None:
        update_dict["fullName"] = update_data.fullName

    if update_data.role is not None:
        update_dict["role"] = update_data.role.value

    try:
        profile_ref.update(update_dict)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update user: {str(e)}"
        )

    profile_data.update(update_dict)
    return UserItemResponse(item=_to_user_info(user_id, profile_data))


async def delete_user_service(user_id: str, current_user_id: str) -> str:
    """
    Delete a user's auth account and profile.

    Raises:
        HTTPException: 400 when deleting yourself, 404 if the profile does not exist
    """
    if user_id == current_user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    db = get_firestore_client()
    profile_ref = db.collection(PROFILES_COLLECTION).document(user_id)
    profile_doc = profile_ref.get()

    if not profile_doc.exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    try:
        auth.delete_user(user_id)
    except auth.UserNotFoundError:
        logger.info("auth_user_already_missing", user_id=user_id)
    except exceptions.FirebaseError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete user: {str(e)}"
        )

    try:
        profile_ref.delete()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete user profile: {str(e)}"
        )

    logger.info("user_deleted", user_id=user_id)
    return "User deleted successfully"


def _to_profile_info(user_id: str, profile_data: dict) -> ProfileInfo:
    full_name = profile_data.get('fullName')
    avatar_url = profile_data.get('avatarUrl') or generate_default_avatar(full_name or user_id)
    return ProfileInfo(
        id=user_id,
        email=_auth_email(user_id),
        fullName=full_name,
        role=_role_of(profile_data),
        avatarUrl=avatar_url,
        createdAt=convert_timestamp(profile_data.get('createdAt')),
        updatedAt=convert_timestamp(profile_data.get('updatedAt'))
    )


async def get_profile_service(user_id: str) -> ProfileInfo:
    """The signed-in user's profile; an empty profile if none was stored yet."""
    db = get_firestore_client()
    profile_doc = db.collection(PROFILES_COLLECTION).document(user_id).get()
    profile_data = (profile_doc.to_dict() or {}) if profile_doc.exists else {}
    return _to_profile_info(user_id, profile_data)


async def update_profile_service(user_id: str, update_data: ProfileUpdate) -> ProfileInfo:
    """Update the signed-in user's name or avatar; creates the profile if missing."""
    db = get_firestore_client()
    profile_ref = db.collection(PROFILES_COLLECTION).document(user_id)
    profile_doc = profile_ref.get()
    profile_data = (profile_doc.to_dict() or {}) if profile_doc.exists else {}

    update_dict = {"updatedAt": now_local()}

    if update_data.fullName is not None:
        update_dict["fullName"] = update_data.fullName

    if update_data.avatarUrl is not None:
        update_dict["avatarUrl"] = update_data.avatarUrl

    try:
        # merge keeps role and createdAt; a new profile starts as a regular user
        if not profile_doc.exists:
            update_dict["createdAt"] = update_dict["updatedAt"]
            update_dict["role"] = UserRole.USER.value
        profile_ref.set(update_dict, merge=True)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update profile: {str(e)}"
        )

    profile_data.update(update_dict)
    return _to_profile_info(user_id, profile_data)

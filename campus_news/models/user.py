"""
User Models for the Campus News backend

User records live in the Firestore ``users`` collection and are managed by the
account service; this backend only reads them to authenticate requests and to
resolve author display names.
"""

from datetime import datetime, timezone
from typing import Optional
from enum import Enum
from pydantic import BaseModel, EmailStr, Field, ConfigDict


# Helper function for timezone-aware UTC datetime
def utc_now():
    """Get current UTC datetime (timezone-aware)"""
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    """User role enumeration"""

    READER = "reader"
    EDITOR = "editor"
    ADMIN = "admin"


class User(BaseModel):
    """
    User document as stored in Firestore

    Collection: users/
    Document ID: uid (Firebase Auth UID)
    """

    uid: str = Field(..., description="Firebase Authentication UID")
    email: EmailStr
    display_name: str = Field(
        ..., min_length=1, max_length=100, description="User's display name", alias="displayName"
    )
    role: UserRole = Field(
        default=UserRole.READER, description="User role in the system")
    email_verified: bool = Field(
        default=False, description="Whether email is verified", alias="emailVerified")
    is_active: bool = Field(
        default=True, description="Whether account is active", alias="isActive")
    created_at: Optional[datetime] = Field(
        default_factory=utc_now, description="Account creation timestamp", alias="createdAt"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=utc_now, description="Last update timestamp", alias="updatedAt"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "uid": "firebase_user_uid_123",
                "email": "jane.doe@university.edu",
                "display_name": "Jane Doe",
                "role": "editor",
                "email_verified": True,
                "is_active": True,
            }
        }
    )


class Principal(BaseModel):
    """
    The caller of a workflow operation.

    Anonymous callers have no uid. Authorization decisions are pure functions
    of a Principal and an Article (see ``services.access_policy``).
    """

    uid: Optional[str] = None
    role: Optional[UserRole] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls()

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(uid=user.uid, role=user.role, display_name=user.display_name)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.uid)

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == UserRole.ADMIN

    @property
    def label(self) -> str:
        """Name used in audit notes"""
        return self.display_name or self.uid or "anonymous"


# Helper function to convert Firestore document to User model
def firestore_user_to_model(doc_data: dict, uid: str) -> User:
    return User.model_validate({**doc_data, "uid": uid})

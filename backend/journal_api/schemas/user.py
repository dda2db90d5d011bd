"""
Journal API — User, Auth and Admin Schemas
===========================================

Three audiences share the `users` table and each sees a different shape:
    - UserProfile:   the signed-in user looking at themselves
    - AdminUser:     an admin looking at the user list
    - AdminIdentity: the payload behind the admin_session cookie
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from journal_api.schemas.common import APIModel


# ── Profile ───────────────────────────────────────────────────────────────


class UserProfile(APIModel):
    id: str
    email: str
    name: str
    email_verified: bool
    image: Optional[str] = None
    created_at: datetime


class ProfileUpdate(APIModel):
    """
    Body of PUT /user/profile. Both fields are optional; an email change
    resets email verification.
    """
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None


class ChangePasswordRequest(APIModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8)


class PasswordResetRequest(APIModel):
    email: EmailStr


class VerificationResponse(APIModel):
    message: str
    email: str


# ── Auth provider ─────────────────────────────────────────────────────────


class SignUpRequest(APIModel):
    email: EmailStr
    name: str = Field(min_length=1)
    password: str = Field(min_length=8)


class SignInRequest(APIModel):
    email: EmailStr
    password: str = Field(min_length=1)


class SessionInfo(APIModel):
    id: str
    user_id: str
    expires_at: datetime


class AuthResponse(APIModel):
    """Returned by sign-up and sign-in. `token` is the bearer credential."""
    token: str
    user: UserProfile


class SessionResponse(APIModel):
    session: SessionInfo
    user: UserProfile


# ── Admin panel ───────────────────────────────────────────────────────────


class AdminUser(APIModel):
    id: str
    email: str
    name: str
    email_verified: bool
    is_admin: bool
    image: Optional[str] = None
    created_at: datetime


class AdminUserCreate(APIModel):
    """Body of POST /admin/users."""
    email: EmailStr
    name: str = Field(min_length=1)
    is_admin: bool = False


class BootstrapAdminRequest(APIModel):
    """
    Body of POST /bootstrap-admin.

    `password` is optional: without one the admin can only sign in to the
    panel through the unsigned cookie flow until a password is set.
    """
    email: EmailStr
    name: str = Field(min_length=1)
    password: Optional[str] = Field(default=None, min_length=8)


class AdminLoginRequest(APIModel):
    """Body of POST /admin/auth. A missing password is rejected by the service."""
    email: str
    password: Optional[str] = None


class AdminIdentity(APIModel):
    id: str
    email: str
    name: str
    is_admin: bool


class AdminLoginResponse(APIModel):
    user: AdminIdentity

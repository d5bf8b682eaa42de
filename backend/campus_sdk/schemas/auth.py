# campus_sdk/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
Defines request models for login, registration and password recovery.
"""
from typing import Any, Dict

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """
    Request model for user login endpoint.
    Contains credentials for authentication.
    """
    email: str  # Account email (case-insensitive)
    password: str  # User password (plain text, will be verified server-side)


class RegisterIn(BaseModel):
    """
    Request model for registration.
    `profile` carries the users-collection fields (firstName, lastName, bio, ...);
    role, verified and twoFactorEnabled are ignored.
    """
    email: str
    password: str
    profile: Dict[str, Any] = Field(default_factory=dict)


class VerifyOtpIn(BaseModel):
    """Second-factor login completion."""
    email: str
    otp: str


class RequestResetIn(BaseModel):
    email: str


class ResetPasswordIn(BaseModel):
    """Password reset with the passcode delivered by /auth/request-reset."""
    email: str
    otp: str
    newPassword: str = Field(min_length=6)  # New password (minimum 6 characters)


class ChangePasswordIn(BaseModel):
    currentPassword: str
    newPassword: str = Field(min_length=6)

# campus_sdk/api/v1/routers/auth.py
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response

from campus_sdk.api.v1.deps import get_current_user, get_sdk, get_token
from campus_sdk.core.sdk import SDK
from campus_sdk.schemas.auth import (
    ChangePasswordIn,
    LoginRequest,
    RegisterIn,
    RequestResetIn,
    ResetPasswordIn,
    VerifyOtpIn,
)
from campus_sdk.services.auth import LoginResult

router = APIRouter(prefix="/auth", tags=["auth"])


def _login_response(result: LoginResult, response: Response) -> dict:
    if result.verification_required:
        return {"success": True, "data": {"verificationRequired": True}}
    response.set_cookie("accessToken", result.token, httponly=True, secure=False, samesite="lax")
    return {"success": True, "data": {"user": result.user, "accessToken": result.token}}


@router.post("/register")
async def register(body: RegisterIn, sdk: SDK = Depends(get_sdk)):
    """
    Register a new user account.

    The password is hashed before storage; the profile is validated against
    the users collection schema (firstName and lastName are required, role
    defaults to "student").

    Returns:
        dict: {"success": True, "data": user} without credentials

    Errors (via the SDK error handler):
        - 409 ALREADY_EXISTS: Email already registered
        - 422 VALIDATION_ERROR: Missing required profile fields
    """
    user = await sdk.auth.register(body.email, body.password, body.profile)
    return {"success": True, "data": user}


@router.post("/login")
async def login(payload: LoginRequest, response: Response, sdk: SDK = Depends(get_sdk)):
    """
    Authenticate user and create a session.

    On success the token is returned in the body and also set as an HttpOnly
    cookie named "accessToken". Accounts with a second factor get
    `verificationRequired: true` and no token; finish with /auth/verify-otp.

    Errors:
        - 401 AUTH_INVALID_CREDENTIALS: Unknown email or wrong password
    """
    result = await sdk.auth.login(payload.email, payload.password)
    return _login_response(result, response)


@router.post("/verify-otp")
async def verify_otp(body: VerifyOtpIn, response: Response, sdk: SDK = Depends(get_sdk)):
    """Complete a second-factor login with the emailed passcode."""
    result = await sdk.auth.verify_login(body.email, body.otp)
    return _login_response(result, response)


@router.get("/me")
async def me(user: dict = Depends(get_current_user)):
    """Current authenticated user, resolved from the session cache."""
    return {"success": True, "data": user}


@router.patch("/me")
async def update_me(
    updates: Dict[str, Any] = Body(...),
    token: str | None = Depends(get_token),
    user: dict = Depends(get_current_user),
    sdk: SDK = Depends(get_sdk),
):
    """
    Update the current user's profile.
    Email, role and credentials cannot be changed here.
    """
    updated = await sdk.auth.update_profile(token, updates)
    return {"success": True, "data": updated}


@router.post("/logout")
async def logout(response: Response, token: str | None = Depends(get_token), sdk: SDK = Depends(get_sdk)):
    """
    Log out: destroy the session and clear the cookie.
    Always succeeds, even if the session was already gone.
    """
    sdk.auth.destroy_session(token)
    response.delete_cookie("accessToken")
    return {"success": True}


@router.post("/change-password")
async def change_password(
    body: ChangePasswordIn,
    token: str | None = Depends(get_token),
    user: dict = Depends(get_current_user),
    sdk: SDK = Depends(get_sdk),
):
    """
    Change password for the currently authenticated user.
    Requires the current password; other sessions of the user are logged out.
    """
    await sdk.auth.change_password(token, body.currentPassword, body.newPassword)
    return {"success": True, "data": {"ok": True}}


@router.post("/request-reset")
async def request_reset(body: RequestResetIn, sdk: SDK = Depends(get_sdk)):
    """
    Start password recovery: a one-time passcode is sent to the account email.
    Always answers success so the endpoint cannot be used to discover which accounts exist.
    """
    await sdk.auth.request_password_reset(body.email)
    return {"success": True, "data": {"ok": True}}


@router.post("/reset-password")
async def reset_password(body: ResetPasswordIn, sdk: SDK = Depends(get_sdk)):
    """
    Reset a password with the passcode from /auth/request-reset.
    Every existing session of the account is invalidated.

    Errors:
        - 400 OTP_INVALID: No pending request or wrong passcode
        - 400 OTP_EXPIRED: The passcode has expired
    """
    await sdk.auth.reset_password(body.email, body.otp, body.newPassword)
    return {"success": True, "data": {"ok": True}}

from fastapi import Depends, Header, HTTPException, Request, status

from campus_sdk.core.errors import SessionInvalid
from campus_sdk.core.sdk import SDK


def get_sdk(request: Request) -> SDK:
    """The SDK instance built at startup (see main.on_startup)."""
    return request.app.state.sdk


def get_token(
    request: Request,
    authorization: str | None = Header(default=None),
) -> str | None:
    """
    Extract the session token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (accessToken) - fallback method
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie: accessToken
    if not token:
        token = request.cookies.get("accessToken")
    return token


async def get_current_user(
    token: str | None = Depends(get_token),
    sdk: SDK = Depends(get_sdk),
) -> dict:
    """
    FastAPI dependency to get the current authenticated user.

    Resolves the token through the process-local SessionCache, so no remote
    call is made.

    Returns:
        dict: The authenticated user (credentials stripped)

    Raises:
        HTTPException (401): If no token is provided (AUTH_REQUIRED)
        HTTPException (401): If the session is unknown, expired or ended (AUTH_INVALID_TOKEN)

    Usage:
        @router.get("/protected")
        async def protected_route(user: dict = Depends(get_current_user)):
            return {"user_id": user["id"]}
    """
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")
    try:
        return sdk.auth.get_current_user(token)
    except SessionInvalid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")


async def require_admin(current: dict = Depends(get_current_user)) -> dict:
    """
    FastAPI dependency to ensure the current user is an administrator.

    Raises:
        HTTPException (403): If user is not an admin (FORBIDDEN_ADMIN_ONLY)
        HTTPException (401): If user is not authenticated (from get_current_user)
    """
    if current.get("role") != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="FORBIDDEN_ADMIN_ONLY")
    return current

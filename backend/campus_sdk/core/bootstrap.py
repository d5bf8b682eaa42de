# campus_sdk/core/bootstrap.py
"""
Bootstrap module for application initialization.
Handles initial setup tasks such as creating the default admin and the
demo accounts on first startup.
"""
import os
import logging

from campus_sdk.core.errors import AlreadyExists
from campus_sdk.services.auth import AuthManager

logger = logging.getLogger("uvicorn.error")

# Demo accounts, one per role
DEMO_USERS = [
    {
        "email": "student@demo.com",
        "firstName": "John",
        "lastName": "Doe",
        "role": "student",
        "verified": True,
        "academicInfo": {
            "studentId": "STU001",
            "program": "Computer Science",
            "year": 3,
            "gpa": 3.8,
            "credits": 90,
            "department": "Engineering",
        },
    },
    {"email": "instructor@demo.com", "firstName": "Jane", "lastName": "Smith", "role": "instructor", "verified": True},
    {"email": "admin@demo.com", "firstName": "Admin", "lastName": "User", "role": "admin", "verified": True},
]


async def _register_if_missing(auth: AuthManager, password: str, profile: dict) -> bool:
    if await auth.find_user(profile["email"]):
        return False
    try:
        await auth.register(profile["email"], password, profile,
                            role=profile.get("role"), verified=bool(profile.get("verified")))
    except AlreadyExists:
        return False  # another process registered it first
    return True


async def ensure_demo_users(auth: AuthManager, password: str = "password123") -> int:
    """
    Register the demo accounts that do not exist yet.

    Returns:
        int: Number of accounts created
    """
    created = 0
    for profile in DEMO_USERS:
        if await _register_if_missing(auth, password, dict(profile)):
            created += 1
            logger.warning("[bootstrap] Created demo account -> %s (%s)", profile["email"], profile["role"])
    return created


async def ensure_default_admin(auth: AuthManager) -> None:
    """
    If no admin exists, create a default admin based on environment variables.
    Only takes effect under the following conditions:
      - Currently no user with role="admin"
      - And ADMIN_PASSWORD is set (to avoid using default weak password)
    Environment variables:
      ADMIN_EMAIL    (default: "admin@example.com")
      ADMIN_PASSWORD (required, otherwise won't create)
    """
    # Check if any admin user already exists
    if await auth.store.find_one("users", {"role": "admin"}):
        return

    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.warning("[bootstrap] No admin present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return

    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    profile = {"email": admin_email, "firstName": "Admin", "lastName": "User", "role": "admin", "verified": True}
    if await _register_if_missing(auth, admin_password, profile):
        logger.warning("[bootstrap] Created default admin -> email=%s", admin_email)
    else:
        logger.warning("[bootstrap] %s already registered with another role; default admin not created", admin_email)

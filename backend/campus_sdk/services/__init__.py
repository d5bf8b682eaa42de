"""
Services Module

- Auth: login/registration, sessions, password recovery (AuthManager)
- Notifier: OTP delivery collaborator interface
"""

from .auth import (
    AuthManager,
    LoginResult,
    public_user,
)
from .notifier import (
    LoggingNotifier,
    ResetNotifier,
    get_notifier,
)

__all__ = [
    # Auth
    "AuthManager",
    "LoginResult",
    "public_user",
    # Notifier
    "ResetNotifier",
    "LoggingNotifier",
    "get_notifier",
]

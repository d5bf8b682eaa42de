# campus_sdk/services/auth.py
"""
Authentication service.
Login/registration against the `users` collection, session issuance via the
SessionCache, and OTP-based password recovery and second-factor login.

Pending passcodes live in process memory, keyed by lower-cased email, the
same way sessions do: a passcode issued by one process is not known to another.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from campus_sdk.core import security
from campus_sdk.core.errors import (
    AlreadyExists,
    ExpiredOTP,
    InvalidCredentials,
    InvalidOTP,
    SDKError,
    ValidationError,
)
from campus_sdk.core.sessions import SessionCache
from campus_sdk.core.store import RecordStore
from campus_sdk.core.timeutil import utc_now, utc_now_iso
from .notifier import ResetNotifier, get_notifier

logger = logging.getLogger(__name__)

USERS = "users"

# Never changed through update_profile
PROTECTED_PROFILE_FIELDS = {"id", "uid", "email", "password", "passwordHash", "role", "verified",
                            "createdAt", "updatedAt"}
# Never taken from a self-registration profile; trusted callers pass them as keywords
PRIVILEGED_FIELDS = {"role", "verified", "twoFactorEnabled"}


@dataclass
class LoginResult:
    """
    Outcome of a login attempt.
    Either a session (`token` + `user`) or, for accounts with a second
    factor, `verification_required=True` and no token.
    """
    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    verification_required: bool = False


@dataclass
class PendingOTP:
    email: str
    otp: str
    expires_at: dt.datetime
    purpose: str
    failures: int = 0


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def public_user(user: Mapping[str, Any]) -> Dict[str, Any]:
    """User record without credentials, safe to hand to callers."""
    return {k: v for k, v in user.items() if k not in ("passwordHash", "password")}


class AuthManager:
    """
    Identity operations on top of the RecordStore and SessionCache.

    Args:
        store: Record store holding the `users` collection
        sessions: Process-local session cache
        notifier: Receives passcodes for delivery (defaults to the log)
        session_ttl: Session lifetime; None means sessions never expire
        otp_ttl: Passcode lifetime
        otp_length: Digits per passcode
        otp_max_attempts: Wrong guesses after which a passcode is discarded
        clock: Returns the current aware UTC datetime (injectable for tests)
    """

    def __init__(
        self,
        store: RecordStore,
        sessions: SessionCache,
        notifier: Optional[ResetNotifier] = None,
        *,
        session_ttl: Optional[dt.timedelta] = dt.timedelta(days=1),
        otp_ttl: dt.timedelta = dt.timedelta(minutes=10),
        otp_length: int = 6,
        otp_max_attempts: int = 5,
        clock: Callable[[], dt.datetime] = utc_now,
    ):
        self.store = store
        self.sessions = sessions
        self.notifier = notifier or get_notifier()
        self.session_ttl = session_ttl
        self.otp_ttl = otp_ttl
        self.otp_length = otp_length
        self.otp_max_attempts = otp_max_attempts
        self._clock = clock
        self._resets: Dict[str, PendingOTP] = {}
        self._challenges: Dict[str, PendingOTP] = {}

    @staticmethod
    def hash_password(plain: str) -> str:
        return security.hash_password(plain)

    async def find_user(self, email: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive lookup by email (full record, credentials included)."""
        wanted = normalize_email(email)
        if not wanted:
            return None
        return await self.store.find_one(USERS, lambda u: normalize_email(u.get("email")) == wanted)

    # -------- passcodes --------
    async def _issue_otp(self, pending: Dict[str, PendingOTP], email: str, purpose: str) -> None:
        request = PendingOTP(
            email=email,
            otp=security.new_otp(self.otp_length),
            expires_at=self._clock() + self.otp_ttl,
            purpose=purpose,
        )
        pending[email] = request  # replaces any earlier request
        try:
            await self.notifier.send_otp(email, request.otp, purpose, request.expires_at)
        except Exception:
            if pending.get(email) is request:
                del pending[email]
            raise

    def _consume_otp(self, pending: Dict[str, PendingOTP], email: str, otp: str) -> PendingOTP:
        """
        Check and remove a pending passcode. Runs without suspending, so two
        concurrent callers can never both consume the same request.

        Raises:
            ExpiredOTP: The request exists but has expired (it is discarded)
            InvalidOTP: No request, or the passcode does not match; the request
                is discarded once `otp_max_attempts` wrong passcodes were tried
        """
        request = pending.get(email)
        if request is None:
            raise InvalidOTP()
        if self._clock() >= request.expires_at:
            del pending[email]
            raise ExpiredOTP()
        if not security.otp_matches(request.otp, otp):
            request.failures += 1
            if request.failures >= self.otp_max_attempts:
                del pending[email]
                logger.warning("[auth] %s passcode for %s discarded after %d wrong attempts",
                               request.purpose, email, request.failures)
            raise InvalidOTP()
        return pending.pop(email)

    # -------- login / registration --------
    async def _start_session(self, user: Dict[str, Any]) -> LoginResult:
        checked_hash = user.get("passwordHash")
        user = await self.store.update(USERS, user["id"], {"lastLogin": utc_now_iso()})
        if user.get("passwordHash") != checked_hash:
            # the password was reset while this login was in flight
            logger.info("[auth] password of %s changed during login; no session issued", user.get("email"))
            raise InvalidCredentials()
        session = self.sessions.issue(public_user(user), self.session_ttl)
        return LoginResult(token=session.token, user=dict(session.user))

    async def login(self, email: str, password: str) -> LoginResult:
        """
        Authenticate with email and password.

        Returns:
            LoginResult with a fresh token, or `verification_required=True`
            (and no token) when the account has a second factor enabled

        Raises:
            InvalidCredentials: Unknown email or wrong password
        """
        email = normalize_email(email)
        user = await self.find_user(email)
        if user is None or not security.verify_password(password, user.get("passwordHash")):
            logger.info("[auth] failed login for %s", email)
            raise InvalidCredentials()
        if user.get("twoFactorEnabled"):
            await self._issue_otp(self._challenges, email, "login")
            return LoginResult(verification_required=True)
        return await self._start_session(user)

    async def verify_login(self, email: str, otp: str) -> LoginResult:
        """Complete a second-factor login with the passcode sent by `login`."""
        email = normalize_email(email)
        self._consume_otp(self._challenges, email, otp)
        user = await self.find_user(email)
        if user is None:
            raise InvalidCredentials()
        return await self._start_session(user)

    async def register(
        self,
        email: str,
        password: str,
        profile: Optional[Mapping[str, Any]] = None,
        *,
        role: Optional[str] = None,
        verified: bool = False,
    ) -> Dict[str, Any]:
        """
        Create a user account.

        `role`, `verified` and `twoFactorEnabled` in `profile` are ignored,
        so a self-registered account always gets the default role. Only
        trusted callers such as the bootstrap pass `role` and `verified`.

        Raises:
            ValidationError: Missing email/password or required profile fields
            AlreadyExists: The email is already registered
        """
        email = normalize_email(email)
        missing = [f for f, v in (("email", email), ("password", password)) if not v]
        if missing:
            raise ValidationError(USERS, missing=missing)
        if await self.find_user(email):
            raise AlreadyExists("Email already registered")

        excluded = PRIVILEGED_FIELDS | {"password", "passwordHash"}
        record = {k: v for k, v in (profile or {}).items() if k not in excluded}
        record["email"] = email
        if role is not None:
            record["role"] = role
        if verified:
            record["verified"] = True
        record["passwordHash"] = self.hash_password(password)
        # email uniqueness is re-checked inside the commit
        user = await self.store.create(USERS, record)
        logger.info("[auth] registered user %s (%s)", user["id"], email)
        return public_user(user)

    # -------- sessions --------
    def get_current_user(self, token: Optional[str]) -> Dict[str, Any]:
        """
        Resolve a token to its user without a remote round trip.

        Raises:
            SessionInvalid: Unknown, expired, destroyed or invalidated token
        """
        return dict(self.sessions.resolve(token).user)

    def destroy_session(self, token: Optional[str]) -> None:
        """Log out. Destroying an already-ended session is not an error."""
        self.sessions.destroy(token)

    # -------- password recovery --------
    async def request_password_reset(self, email: str) -> None:
        """
        Issue a password-reset passcode and hand it to the notifier.
        Unknown emails are ignored so the call does not reveal which accounts exist.
        """
        email = normalize_email(email)
        if await self.find_user(email) is None:
            logger.info("[auth] password reset requested for unknown email %s", email)
            return
        await self._issue_otp(self._resets, email, "password_reset")

    async def reset_password(self, email: str, otp: str, new_password: str) -> None:
        """
        Set a new password using a reset passcode, then invalidate every
        session of the account.

        Raises:
            InvalidOTP / ExpiredOTP: Passcode missing, mismatched or expired;
                the stored password is left untouched
        """
        email = normalize_email(email)
        if not new_password:
            raise ValidationError(USERS, missing=["newPassword"])
        request = self._consume_otp(self._resets, email, otp)
        try:
            user = await self.find_user(email)
            if user is None:
                raise InvalidOTP()
            await self.store.update(USERS, user["id"], {"passwordHash": self.hash_password(new_password)})
        except SDKError:
            # the write never happened; give the passcode back unless a newer one replaced it
            self._resets.setdefault(email, request)
            raise
        count = self.sessions.invalidate_user(user["id"])
        logger.info("[auth] password reset for %s, %d session(s) invalidated", email, count)

    async def change_password(self, token: str, current_password: str, new_password: str) -> None:
        """
        Change the password of the session's user. Every other session of
        that user is invalidated; the calling session stays valid.
        """
        session = self.sessions.resolve(token)
        if not new_password:
            raise ValidationError(USERS, missing=["newPassword"])
        user = await self.store.read(USERS, session.user_id)
        if not security.verify_password(current_password, user.get("passwordHash")):
            raise InvalidCredentials("Current password is incorrect")
        await self.store.update(USERS, user["id"], {"passwordHash": self.hash_password(new_password)})
        self.sessions.invalidate_user(user["id"], keep=token)

    async def update_profile(self, token: str, updates: Mapping[str, Any]) -> Dict[str, Any]:
        """Update the session user's own profile; credentials, email, role and verification are ignored."""
        session = self.sessions.resolve(token)
        changes = {k: v for k, v in updates.items() if k not in PROTECTED_PROFILE_FIELDS}
        user = public_user(await self.store.update(USERS, session.user_id, changes))
        self.sessions.refresh_user(user)
        return user

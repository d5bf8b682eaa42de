# campus_sdk/core/sessions.py
"""
Process-local session cache.
Maps issued tokens to the authenticated user so that resolving a request's
identity never needs a remote round trip.

There is no cross-process invalidation: a logout or password reset handled
by one process does not revoke tokens held by another process's cache.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .errors import SessionInvalid
from .security import new_session_token
from .timeutil import utc_now

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    CREATED = "created"
    ACTIVE = "active"
    EXPIRED = "expired"
    DESTROYED = "destroyed"
    INVALIDATED = "invalidated"

    @property
    def terminal(self) -> bool:
        return self in (SessionState.EXPIRED, SessionState.DESTROYED, SessionState.INVALIDATED)


@dataclass
class Session:
    token: str
    user_id: str
    user: Dict[str, Any]
    issued_at: dt.datetime
    expires_at: Optional[dt.datetime] = None
    state: SessionState = field(default=SessionState.CREATED)

    def is_expired(self, now: dt.datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def end(self, state: SessionState) -> None:
        """Move into a terminal state. A session that already ended stays as it was."""
        if not self.state.terminal:
            self.state = state


class SessionCache:
    """
    Token -> Session mapping shared by every caller in this process.

    Args:
        clock: Returns the current aware UTC datetime (injectable for tests)
    """

    def __init__(self, clock: Callable[[], dt.datetime] = utc_now):
        self._clock = clock
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, token: object) -> bool:
        return token in self._sessions

    def issue(self, user: Dict[str, Any], ttl: Optional[dt.timedelta] = None) -> Session:
        """Create and activate a session for `user`. `ttl=None` never expires."""
        now = self._clock()
        session = Session(
            token=new_session_token(),
            user_id=user["id"],
            user=dict(user),
            issued_at=now,
            expires_at=(now + ttl) if ttl else None,
        )
        self._sessions[session.token] = session
        session.state = SessionState.ACTIVE
        logger.info("[sessions] issued session for user %s (expires %s)",
                    session.user_id, session.expires_at.isoformat() if session.expires_at else "never")
        return session

    def resolve(self, token: Optional[str]) -> Session:
        """
        Look up an active session.

        Raises:
            SessionInvalid: Unknown token, or the session has expired
                (it is evicted and marked Expired)
        """
        session = self._sessions.get(token) if token else None
        if session is None:
            raise SessionInvalid("Session is invalid or has ended")
        if session.is_expired(self._clock()):
            session.end(SessionState.EXPIRED)
            self._sessions.pop(token, None)
            logger.info("[sessions] session for user %s expired", session.user_id)
            raise SessionInvalid("Session has expired")
        return session

    def destroy(self, token: Optional[str]) -> None:
        """End a session (logout). Destroying an unknown token is a no-op."""
        session = self._sessions.pop(token, None) if token else None
        if session is not None:
            session.end(SessionState.DESTROYED)
            logger.info("[sessions] destroyed session for user %s", session.user_id)

    def invalidate_user(self, user_id: str, keep: Optional[str] = None) -> int:
        """
        Invalidate every session of `user_id` except the token `keep`.

        Returns:
            int: Number of sessions invalidated
        """
        doomed = [t for t, s in self._sessions.items() if s.user_id == user_id and t != keep]
        for token in doomed:
            self._sessions.pop(token).end(SessionState.INVALIDATED)
        if doomed:
            logger.info("[sessions] invalidated %d session(s) for user %s", len(doomed), user_id)
        return len(doomed)

    def refresh_user(self, user: Dict[str, Any]) -> None:
        """Replace the cached user snapshot in every session of that user."""
        for session in self._sessions.values():
            if session.user_id == user["id"]:
                session.user = dict(user)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [t for t, s in self._sessions.items() if s.is_expired(now)]
        for token in expired:
            self._sessions.pop(token).end(SessionState.EXPIRED)
        return len(expired)

"""Server-side sessions and per-request identity.

The client only ever holds an opaque token; the table below maps it to the
user it was issued for. Every read and write of the table happens under one
lock, so a ``terminate`` that has returned is never followed by a ``resolve``
of the same token yielding the old identity.
"""
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional

import credentials
from errors import InvalidCredentials
from logging_setup import get_logger

LOG = get_logger("sessions")


@dataclass(frozen=True)
class Identity:
    user_id: Optional[int] = None
    username: str = ""

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    @property
    def is_authenticated(self) -> bool:
        return not self.is_anonymous


ANONYMOUS = Identity()


@dataclass(frozen=True)
class _Entry:
    identity: Identity
    expires_at: float


class SessionManager:
    def __init__(self, lifetime: int = 86400, clock=time.monotonic):
        self.lifetime = lifetime
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, _Entry] = {}

    def authenticate(self, identifier: str, password: str) -> Identity:
        """Check credentials; raises InvalidCredentials without saying which part was wrong."""
        user = credentials.find_by_identifier(identifier)
        if not credentials.verify_password(user, password):
            LOG.info("login failed for identifier=%s", identifier)
            raise InvalidCredentials()
        return Identity(user_id=user.id, username=user.username)

    def establish(self, identity: Identity) -> str:
        if identity.is_anonymous:
            raise ValueError("cannot open a session for an anonymous identity")
        token = secrets.token_urlsafe(32)
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._sessions[token] = _Entry(identity, now + self.lifetime)
        LOG.info("session opened for user id=%s", identity.user_id)
        return token

    def _purge_expired(self, now: float) -> None:
        # Caller holds the lock
        expired = [t for t, e in self._sessions.items() if e.expires_at <= now]
        for token in expired:
            del self._sessions[token]
        if expired:
            LOG.debug("purged %d expired sessions", len(expired))

    def resolve(self, token: Optional[str]) -> Identity:
        if not token:
            return ANONYMOUS
        with self._lock:
            entry = self._sessions.get(token)
            if entry is None:
                return ANONYMOUS
            if entry.expires_at <= self._clock():
                del self._sessions[token]
                return ANONYMOUS
            return entry.identity

    def terminate(self, token: Optional[str]) -> None:
        if not token:
            return
        with self._lock:
            entry = self._sessions.pop(token, None)
        if entry is not None:
            LOG.info("session closed for user id=%s", entry.identity.user_id)

    def terminate_user(self, user_id: int) -> int:
        with self._lock:
            tokens = [t for t, e in self._sessions.items() if e.identity.user_id == user_id]
            for token in tokens:
                del self._sessions[token]
        return len(tokens)

    def active_count(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for e in self._sessions.values() if e.expires_at > now)

    def __len__(self) -> int:
        # Raw table size, expired entries included
        with self._lock:
            return len(self._sessions)

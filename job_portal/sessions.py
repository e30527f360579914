"""
Login sessions and request principals.

The client cookie (Flask's signed session) carries only an opaque session
id. The session record itself lives in the session store, so logging out
or expiry invalidates it server-side. Every request re-reads the user
from the user store rather than trusting anything cached in the cookie.

Route handlers receive the principal explicitly through the
``with_principal`` and ``login_required`` decorators.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Callable, Optional, Union

from flask import current_app, flash, g, redirect, session, url_for

from .models import User
from .repositories import SessionRecord, SessionRepositoryInterface, UserRepositoryInterface

logger = logging.getLogger(__name__)

SESSION_LIFETIME = timedelta(hours=24)
SESSION_KEY = "sid"


@dataclass(frozen=True)
class Anonymous:
    """No authenticated user."""
    is_authenticated = False
    user = None


@dataclass(frozen=True)
class Authenticated:
    user: User
    is_authenticated = True


Principal = Union[Anonymous, Authenticated]

ANONYMOUS = Anonymous()


class SessionManager:
    """
    Issues, resolves and destroys login sessions.

    Sessions use a fixed validity window starting at login.
    """

    def __init__(
        self,
        sessions: SessionRepositoryInterface,
        users: UserRepositoryInterface,
        lifetime: timedelta = SESSION_LIFETIME,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._sessions = sessions
        self._users = users
        self._lifetime = lifetime
        self._clock = clock

    def issue(self, user: User) -> str:
        """Create a session for a user and return its id."""
        now = self._clock()
        record = SessionRecord(
            id=secrets.token_urlsafe(32),
            user_id=user.id,
            created_at=now,
            expires_at=now + self._lifetime,
        )
        self._sessions.create(record)
        logger.info(f"Issued session for user {user.id}")
        return record.id

    def resolve_session(self, session_id: Optional[str]) -> Principal:
        """
        Resolve a session id to a principal.

        Unknown, expired or dangling sessions (user deleted after login)
        resolve to ANONYMOUS rather than raising.
        """
        if not session_id:
            return ANONYMOUS

        record = self._sessions.get(session_id)
        if record is None:
            return ANONYMOUS

        if record.is_expired(self._clock()):
            self._sessions.delete(session_id)
            return ANONYMOUS

        user = self._users.find_by_id(record.user_id)
        if user is None:
            logger.warning(f"Session references missing user {record.user_id}")
            return ANONYMOUS

        return Authenticated(user=user)

    def destroy(self, session_id: Optional[str]) -> bool:
        """Invalidate a session. Returns False if it did not exist."""
        if not session_id:
            return False
        return self._sessions.delete(session_id)


# ============================================================================
# Flask integration
# ============================================================================

def _manager() -> SessionManager:
    return current_app.extensions["job_portal"].sessions


def login_user(user: User) -> None:
    """Start a session for ``user`` on the current response, replacing any previous one."""
    manager = _manager()
    manager.destroy(session.pop(SESSION_KEY, None))
    session[SESSION_KEY] = manager.issue(user)
    session.permanent = True
    g.pop("principal", None)


def logout_user() -> None:
    """Destroy the current session, if any."""
    _manager().destroy(session.pop(SESSION_KEY, None))
    g.pop("principal", None)


def current_principal() -> Principal:
    """
    Resolve the principal for the current request from its session cookie.

    Resolved once per request; the user record is re-read from the store
    on every new request.
    """
    if "principal" not in g:
        g.principal = _manager().resolve_session(session.get(SESSION_KEY))
    return g.principal


def with_principal(f):
    """Decorator: call the view with the resolved ``principal`` keyword argument."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        return f(*args, principal=current_principal(), **kwargs)
    return decorated_function


def login_required(f):
    """
    Decorator to require authentication for routes.

    Anonymous requests are redirected to the login page with a flash
    message. Authenticated requests get the ``principal`` keyword argument.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        principal = current_principal()
        if not principal.is_authenticated:
            flash("Please sign in to continue", "error")
            return redirect(url_for("auth.login"))
        return f(*args, principal=principal, **kwargs)
    return decorated_function

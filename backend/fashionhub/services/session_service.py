# Overview: Opaque bearer-token sessions for staff logins; issue, validate and revoke.

"""
Staff sessions.

The client holds a random 256-bit token; only its SHA-256 digest is stored.
A session dies when it passes SESSION_ABSOLUTE_TIMEOUT_HOURS since login,
sits unused longer than SESSION_IDLE_TIMEOUT_HOURS, is logged out, or its
user is deactivated.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import SessionToken, User
from fashionhub.time_utils import utcnow

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


@dataclass
class SessionContext:
    user: User
    session: SessionToken


def _hours(key: str, default: int) -> timedelta:
    return timedelta(hours=current_app.config.get(key, default))


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    # Tokens are high-entropy, so a fast digest is enough
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _find_live(token: str) -> SessionToken | None:
    return (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token), SessionToken.is_revoked.is_(False))
        .first()
    )


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """Open a session for user_id. Returns (row, plaintext token)."""
    if db.session.get(User, user_id) is None:
        raise ValueError("User not found")

    token = generate_token()
    issued = utcnow()
    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(token),
        created_at=issued,
        last_used_at=issued,
        expires_at=issued + _hours("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24),
        user_agent=user_agent[:512] if user_agent else None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its user, or None.

    Idle sessions and sessions of inactive users are revoked on the way out;
    a successful check refreshes last_used_at.
    """
    session = _find_live(token)
    if session is None:
        return None

    now = utcnow()
    if now > session.expires_at:
        return None
    if now - session.last_used_at > _hours("SESSION_IDLE_TIMEOUT_HOURS", 8):
        _revoke(session, "Idle timeout")
        return None

    user = session.user
    if user is None or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=user, session=session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    session = _find_live(token)
    if session is None:
        return False
    _revoke(session, reason)
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    """Revoke every live session of a user; returns how many were revoked."""
    result = db.session.execute(
        update(SessionToken)
        .where(SessionToken.user_id == user_id, SessionToken.is_revoked.is_(False))
        .values(is_revoked=True, revoked_at=utcnow(), revoked_reason=reason)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    if result.rowcount:
        logger.info("Revoked %d session(s) for user_id=%s: %s", result.rowcount, user_id, reason)
    return result.rowcount

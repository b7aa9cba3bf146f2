"""Admin logins and the sessions they open.

Passwords are stored as scrypt hashes derived with the cryptography package.
A session is identified by a random URL-safe token; the database keeps its
SHA-256 digest only, see hash_token().
"""

from __future__ import annotations

import base64
import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from sqlalchemy import delete, select, update

from spaceplus.db.models import AdminUser, Session

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

DEFAULT_SESSION_DURATION_HOURS = 24
SESSION_TOKEN_BYTES = 32  # 256 bits of entropy

# scrypt cost parameters (RFC 7914 interactive login recommendation)
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_DKLEN = 64
SCRYPT_SALT_BYTES = 16


@dataclass(frozen=True, slots=True)
class SessionToken:
    """A freshly created session.

    Attributes:
        session_id: UUID of the session record
        access_token: Raw token, handed to the client once
        expires_at: When the session expires
    """

    session_id: UUID
    access_token: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class DeviceInfo:
    """Client details recorded with a session."""

    ip_address: str | None = None
    user_agent: str | None = None


class SessionError(Exception):
    """Raised by SessionService."""


class InvalidCredentialsError(SessionError):
    """Raised when an email/password pair does not match an active admin."""


def _scrypt(salt: bytes, *, n: int, r: int, p: int, length: int) -> Scrypt:
    return Scrypt(salt=salt, length=length, n=n, r=r, p=p)


def hash_password(password: str) -> str:
    """Hash a password for storage.

    Returns:
        ``scrypt$n$r$p$salt$hash`` with base64 salt and hash.
    """
    salt = secrets.token_bytes(SCRYPT_SALT_BYTES)
    kdf = _scrypt(salt, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P, length=SCRYPT_DKLEN)
    digest = kdf.derive(password.encode("utf-8"))
    encoded = (base64.b64encode(part).decode("ascii") for part in (salt, digest))
    return "$".join(["scrypt", str(SCRYPT_N), str(SCRYPT_R), str(SCRYPT_P), *encoded])


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash; Scrypt.verify compares in constant time.

    Hashes keep their own cost parameters, so raising SCRYPT_N later does not
    lock out existing accounts. Malformed hashes never verify.
    """
    try:
        scheme, n, r, p, salt_b64, hash_b64 = password_hash.split("$")
        if scheme != "scrypt":
            return False
        salt = base64.b64decode(salt_b64, validate=True)
        expected = base64.b64decode(hash_b64, validate=True)
        if not expected:
            return False
        kdf = _scrypt(salt, n=int(n), r=int(r), p=int(p), length=len(expected))
        kdf.verify(password.encode("utf-8"), expected)
    except (ValueError, InvalidKey):
        return False
    return True


def hash_token(token: str) -> str:
    """Only this SHA-256 digest of a session token is stored."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionService:
    """Service for admin sessions.

    Example:
        service = SessionService(db)
        admin = await service.authenticate_admin(email, password)
        token = await service.create_session(admin.admin_user_id)
        ...
        session = await service.validate_session(token.access_token)
    """

    def __init__(
        self,
        db_session: AsyncSession,
        *,
        session_duration_hours: int = DEFAULT_SESSION_DURATION_HOURS,
    ) -> None:
        self._db = db_session
        self._session_duration = timedelta(hours=session_duration_hours)

    async def authenticate_admin(self, email: str, password: str) -> AdminUser:
        """Verify admin credentials and record the login.

        Raises:
            InvalidCredentialsError: Unknown email, wrong password or
                deactivated account. The caller cannot tell which.
        """
        result = await self._db.execute(
            select(AdminUser).where(AdminUser.email == email.strip().lower())
        )
        admin = result.scalar_one_or_none()

        if admin is None or not verify_password(password, admin.password_hash):
            logger.info("Admin login failed for email=%s", email)
            raise InvalidCredentialsError("Invalid email or password")

        if not admin.is_active:
            logger.info("Admin login refused for inactive account %s", admin.admin_user_id)
            raise InvalidCredentialsError("Invalid email or password")

        admin.last_login_at = datetime.now(UTC)
        return admin

    async def create_session(
        self,
        admin_user_id: UUID,
        *,
        device_info: DeviceInfo | None = None,
    ) -> SessionToken:
        """Create a new session for an admin user."""
        access_token = secrets.token_urlsafe(SESSION_TOKEN_BYTES)
        now = datetime.now(UTC)
        expires_at = now + self._session_duration
        device = device_info or DeviceInfo()

        session = Session(
            token_hash=hash_token(access_token),
            admin_user_id=admin_user_id,
            is_active=True,
            expires_at=expires_at,
            last_activity_at=now,
            ip_address=device.ip_address,
            user_agent=device.user_agent,
        )
        self._db.add(session)
        await self._db.flush()

        logger.info("Admin %s signed in, session %s", admin_user_id, session.session_id)

        return SessionToken(
            session_id=session.session_id,
            access_token=access_token,
            expires_at=expires_at,
        )

    async def validate_session(self, token: str) -> Session | None:
        """Return the session for a token if it is active, unexpired and unrevoked."""
        result = await self._db.execute(
            select(Session).where(Session.token_hash == hash_token(token))
        )
        session = result.scalar_one_or_none()

        if session is None:
            logger.debug("Unknown session token")
            return None

        if not session.is_valid:
            logger.debug("Session %s is expired or revoked", session.session_id)
            return None

        now = datetime.now(UTC)
        await self._db.execute(
            update(Session)
            .where(Session.session_id == session.session_id)
            .values(last_activity_at=now, updated_at=now)
        )
        return session

    async def revoke_session(self, session_id: UUID, *, reason: str | None = None) -> bool:
        """Revoke a session.

        Returns:
            True if the session was revoked, False if it was unknown or
            already revoked.
        """
        now = datetime.now(UTC)
        result = await self._db.execute(
            update(Session)
            .where(Session.session_id == session_id)
            .where(Session.revoked_at.is_(None))
            .values(
                is_active=False,
                revoked_at=now,
                revocation_reason=reason,
                updated_at=now,
            )
        )

        if result.rowcount > 0:
            logger.info("Session revoked: session_id=%s, reason=%s", session_id, reason)
            return True
        return False

    async def revoke_token(self, token: str, *, reason: str | None = None) -> bool:
        """Revoke the session a raw token belongs to."""
        result = await self._db.execute(
            select(Session.session_id).where(Session.token_hash == hash_token(token))
        )
        session_id = result.scalar_one_or_none()
        if session_id is None:
            return False
        return await self.revoke_session(session_id, reason=reason)

    async def cleanup_expired_sessions(self) -> int:
        """Delete expired sessions. Returns the number removed."""
        result = await self._db.execute(
            delete(Session).where(Session.expires_at < datetime.now(UTC))
        )
        if result.rowcount:
            logger.info("Removed %d expired sessions", result.rowcount)
        return result.rowcount

"""
Email / OTP login.

Step 1 (request_login): the user is found or created, a 6-digit code is
mailed, and a short-lived verify token is returned. The token carries a keyed
hash of the code, not the code itself.

Step 2 (verify_login): the verify token and the code are exchanged for a
long-lived session token. authenticate() resolves a session token to a User.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from assistify.config import Settings
from assistify.errors import InvalidInput, Unauthenticated
from assistify.models import User
from assistify.services.mailer import Mailer
from assistify.services.storage import Storage

logger = logging.getLogger(__name__)

_ALGORITHM = "HS256"
_PURPOSE_LOGIN = "login"
_PURPOSE_SESSION = "session"

OTP_MAIL_SUBJECT = "OTP Req"


def generate_otp() -> str:
    """Return a random 6-digit code."""
    return str(100000 + secrets.randbelow(900000))


class AuthService:
    def __init__(self, settings: Settings, storage: Storage, mailer: Mailer) -> None:
        self._settings = settings
        self._storage = storage
        self._mailer = mailer

    @property
    def _secret(self) -> str:
        return self._settings.jwt_secret.get_secret_value()

    def _otp_digest(self, user_id: str, otp: str) -> str:
        return hmac.new(
            self._secret.encode(), f"{user_id}:{otp}".encode(), hashlib.sha256
        ).hexdigest()

    def _encode(self, claims: dict[str, Any], ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        return jwt.encode(
            {**claims, "iat": now, "exp": now + ttl}, self._secret, algorithm=_ALGORITHM
        )

    def _decode(self, token: str) -> dict[str, Any]:
        return jwt.decode(token, self._secret, algorithms=[_ALGORITHM])

    def issue_session_token(self, user: User) -> str:
        return self._encode(
            {"sub": str(user.id), "purpose": _PURPOSE_SESSION},
            timedelta(days=self._settings.session_ttl_days),
        )

    async def request_login(self, email: str) -> str:
        """Mail a login code to email and return the matching verify token."""
        email = email.strip().lower()
        user = await self._storage.find_or_create_user(email)

        otp = generate_otp()
        verify_token = self._encode(
            {
                "sub": str(user.id),
                "email": user.email,
                "otp": self._otp_digest(str(user.id), otp),
                "purpose": _PURPOSE_LOGIN,
            },
            timedelta(minutes=self._settings.otp_ttl_minutes),
        )

        await self._mailer.send(email, OTP_MAIL_SUBJECT, otp)
        logger.info("Login code issued for user %s", user.id)
        return verify_token

    async def verify_login(self, verify_token: str, otp: Any) -> tuple[str, User]:
        """Exchange a verify token and its code for (session token, user)."""
        if not verify_token or otp is None or str(otp) == "":
            raise InvalidInput("verifyToken and otp are required")

        try:
            claims = self._decode(verify_token)
        except jwt.PyJWTError:
            raise InvalidInput("OTP EXPIRED or INVALID")
        if claims.get("purpose") != _PURPOSE_LOGIN:
            raise InvalidInput("OTP EXPIRED or INVALID")

        expected = self._otp_digest(claims["sub"], str(otp).strip())
        if not hmac.compare_digest(expected, str(claims.get("otp", ""))):
            raise InvalidInput("Invalid OTP")

        user = await self._storage.get_user(uuid.UUID(claims["sub"]))
        if user is None:
            raise InvalidInput("OTP EXPIRED or INVALID")

        logger.info("User %s logged in", user.id)
        return self.issue_session_token(user), user

    async def authenticate(self, token: str) -> User:
        """Resolve a session token to its user, or raise Unauthenticated."""
        if not token:
            raise Unauthenticated("You are not authorized to access this resource.")
        try:
            claims = self._decode(token)
            if claims.get("purpose") != _PURPOSE_SESSION:
                raise Unauthenticated("Invalid or expired token")
            user_id = uuid.UUID(str(claims.get("sub")))
        except (jwt.PyJWTError, ValueError):
            raise Unauthenticated("Invalid or expired token")

        user = await self._storage.get_user(user_id)
        if user is None:
            raise Unauthenticated("User not found")
        return user

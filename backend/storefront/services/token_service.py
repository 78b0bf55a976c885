# Overview: Issues and validates signed bearer tokens (JWT, HS256).

"""
Token claims:
    sub   user id (string, per RFC 7519)
    name  username
    role  role name, omitted for users without a role
    jti   random id, unique per token
    iat   issued-at (epoch seconds)
    exp   iat + 3 hours
    iss / aud  fixed per deployment (JWT_ISSUER / JWT_AUDIENCE)

Tokens are stateless. There is no server-side revocation; logout means the
client discards the token, and a token stays valid until exp even if the
user is deactivated in the meantime.

SECURITY: every decode failure surfaces as the same Unauthenticated error.
The precise PyJWT reason is logged at INFO, never returned.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt
from flask import current_app

from ..errors import Unauthenticated
from ..time_utils import as_aware_utc, from_epoch, utcnow

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(hours=3)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    role: str | None
    jti: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    def __init__(self, signing_key: str, issuer: str, audience: str, lifetime: timedelta = TOKEN_LIFETIME):
        if not signing_key:
            raise RuntimeError("JWT signing key is required")
        self._signing_key = signing_key
        self.issuer = issuer
        self.audience = audience
        self.lifetime = lifetime

    def issue(self, user, role_name: str | None, issued_at: datetime | None = None) -> str:
        """Sign a token for user (anything with .id and .username)."""
        issued = as_aware_utc(issued_at or utcnow()).replace(microsecond=0)
        payload = {
            "sub": str(user.id),
            "name": user.username,
            "jti": uuid.uuid4().hex,
            "iat": int(issued.timestamp()),
            "exp": int((issued + self.lifetime).timestamp()),
            "iss": self.issuer,
            "aud": self.audience,
        }
        if role_name:
            payload["role"] = role_name
        return jwt.encode(payload, self._signing_key, algorithm=ALGORITHM)

    def decode(self, token: str, now: datetime | None = None) -> TokenClaims:
        """
        Validate signature, expiry, issuer and audience.

        now overrides the clock for the expiry check only (used to verify
        the validity window without sleeping).
        """
        options = {"require": ["exp", "iat", "sub", "jti"]}
        if now is not None:
            options["verify_exp"] = False

        try:
            payload = jwt.decode(
                token,
                self._signing_key,
                algorithms=[ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                options=options,
            )
        except jwt.PyJWTError as exc:
            logger.info("Rejected bearer token: %s", exc.__class__.__name__)
            raise Unauthenticated()

        if now is not None and payload["exp"] <= int(as_aware_utc(now).timestamp()):
            logger.info("Rejected bearer token: ExpiredSignatureError")
            raise Unauthenticated()

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            logger.info("Rejected bearer token: non-numeric subject")
            raise Unauthenticated()

        return TokenClaims(
            user_id=user_id,
            username=payload.get("name") or "",
            role=payload.get("role"),
            jti=payload["jti"],
            issued_at=from_epoch(payload["iat"]),
            expires_at=from_epoch(payload["exp"]),
        )


def get_token_service() -> TokenService:
    return current_app.extensions["token_service"]

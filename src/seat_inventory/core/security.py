"""
Identity provider: verifies bearer tokens and yields the caller's user id.

Token issuance belongs to the external auth service; `issue_token` exists for
tests and local tooling.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Header, Request

from seat_inventory.core.config import settings
from seat_inventory.services.errors import AuthError


class JWTIdentityProvider:
    """Verifies HS256 tokens signed with the shared secret"""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: Optional[str] = None,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience

    def verify(self, token: str) -> str:
        if not token:
            raise AuthError("Access token required")

        options = {"require": ["exp"], "verify_aud": self.audience is not None}
        try:
            data = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options=options,
            )
        except jwt.ExpiredSignatureError:
            raise AuthError("Token has expired")
        except jwt.InvalidTokenError:
            raise AuthError("Invalid token")

        user_id = data.get("sub") or data.get("user_id")
        if not user_id:
            raise AuthError("Token carries no subject")
        return str(user_id)

    def issue_token(self, user_id: str, expires_in: Optional[timedelta] = None) -> str:
        expires_in = expires_in or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        # exp is checked by PyJWT against wall-clock time
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + expires_in,
        }
        if self.audience:
            payload["aud"] = self.audience
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)


def identity_from_settings() -> JWTIdentityProvider:
    return JWTIdentityProvider(
        secret=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        audience=settings.TOKEN_AUDIENCE,
    )


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user_id(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> str:
    """Dependency: the authenticated caller, or AuthError"""
    token = _bearer_token(authorization)
    if token is None:
        raise AuthError("Access token required")
    identity: JWTIdentityProvider = request.app.state.identity
    return identity.verify(token)


async def get_optional_user_id(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """Dependency: the caller when a valid token is sent, otherwise None"""
    token = _bearer_token(authorization)
    if token is None:
        return None
    identity: JWTIdentityProvider = request.app.state.identity
    try:
        return identity.verify(token)
    except AuthError:
        return None

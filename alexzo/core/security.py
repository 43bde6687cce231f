"""
Identity token verification

Signed-in site users authenticate key management calls with a Firebase ID
token. Tokens are RS256 JWTs signed by Google; the signing keys are fetched
from the published JWKS and cached by PyJWKClient.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import jwt
from starlette.concurrency import run_in_threadpool

from alexzo.core.errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated site user"""
    uid: str
    name: str
    email: Optional[str] = None


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> Identity:
        ...


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens against Google's JWKS"""

    ISSUER_PREFIX = "https://securetoken.google.com/"

    def __init__(self, project_id: str, jwks_url: str):
        self.project_id = project_id
        self.issuer = f"{self.ISSUER_PREFIX}{project_id}"
        self._jwk_client = jwt.PyJWKClient(jwks_url, cache_keys=True)

    async def verify(self, token: str) -> Identity:
        """
        Verify an ID token and return the identity it carries

        Raises:
            AuthenticationError: token malformed, expired, or not issued
                for this project
        """
        # Key fetch is blocking I/O on cache miss
        claims = await run_in_threadpool(self._decode, token)

        uid = claims.get("sub")
        if not uid:
            raise AuthenticationError("Unauthorized")

        name = claims.get("name") or claims.get("email") or "User"
        return Identity(uid=uid, name=name, email=claims.get("email"))

    def _decode(self, token: str) -> dict:
        try:
            signing_key = self._jwk_client.get_signing_key_from_jwt(token)
            return jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=self.issuer,
            )
        except jwt.PyJWTError as e:
            logger.info("Identity token rejected: %s", e)
            raise AuthenticationError("Unauthorized") from e


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the credential from an ``Authorization: Bearer`` header."""
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1].strip():
        return None
    return parts[1].strip()

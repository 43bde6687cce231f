"""
Test suite for identity token verification
Signs tokens with a throwaway RSA key in place of Google's JWKS
"""

import time
from types import SimpleNamespace

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from alexzo.core.errors import AuthenticationError
from alexzo.core.security import FirebaseTokenVerifier, bearer_token

PROJECT_ID = "alexzo-test"
ISSUER = f"https://securetoken.google.com/{PROJECT_ID}"


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def verifier(signing_key):
    verifier = FirebaseTokenVerifier(PROJECT_ID, "https://jwks.example.test/keys")
    public = SimpleNamespace(key=signing_key.public_key())
    verifier._jwk_client.get_signing_key_from_jwt = lambda token: public
    return verifier


def make_token(signing_key, **overrides):
    now = int(time.time())
    claims = {
        "iss": ISSUER,
        "aud": PROJECT_ID,
        "sub": "user-123",
        "iat": now,
        "exp": now + 3600,
        "name": "Ada",
        "email": "ada@example.com",
    }
    claims.update(overrides)
    claims = {k: v for k, v in claims.items() if v is not None}
    return jwt.encode(claims, signing_key, algorithm="RS256", headers={"kid": "test"})


@pytest.mark.security
class TestFirebaseTokenVerifier:
    """Test ID token signature and claim checks"""

    async def test_valid_token(self, verifier, signing_key):
        identity = await verifier.verify(make_token(signing_key))

        assert identity.uid == "user-123"
        assert identity.name == "Ada"
        assert identity.email == "ada@example.com"

    async def test_name_falls_back_to_email(self, verifier, signing_key):
        identity = await verifier.verify(make_token(signing_key, name=None))
        assert identity.name == "ada@example.com"

    async def test_name_defaults(self, verifier, signing_key):
        identity = await verifier.verify(make_token(signing_key, name=None, email=None))
        assert identity.name == "User"

    async def test_expired_token(self, verifier, signing_key):
        token = make_token(signing_key, exp=int(time.time()) - 60)

        with pytest.raises(AuthenticationError):
            await verifier.verify(token)

    async def test_wrong_audience(self, verifier, signing_key):
        with pytest.raises(AuthenticationError):
            await verifier.verify(make_token(signing_key, aud="another-project"))

    async def test_wrong_issuer(self, verifier, signing_key):
        with pytest.raises(AuthenticationError):
            await verifier.verify(make_token(signing_key, iss="https://evil.example"))

    async def test_foreign_signature(self, verifier):
        other = rsa.generate_private_key(public_exponent=65537, key_size=2048)

        with pytest.raises(AuthenticationError):
            await verifier.verify(make_token(other))

    async def test_missing_subject(self, verifier, signing_key):
        with pytest.raises(AuthenticationError):
            await verifier.verify(make_token(signing_key, sub=None))


class TestBearerToken:
    """Test Authorization header parsing"""

    @pytest.mark.parametrize("header,expected", [
        ("Bearer abc", "abc"),
        ("Bearer   abc  ", "abc"),
        ("Bearer ", None),
        ("Basic abc", None),
        ("abc", None),
        ("", None),
        (None, None),
    ])
    def test_parse(self, header, expected):
        assert bearer_token(header) == expected

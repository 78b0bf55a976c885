"""
Token issuance and validation tests.

Verifies:
- claims (sub, name, role, jti, iss, aud, exp = iat + 3h)
- the validity window boundary
- tampered, foreign-key, wrong-audience and wrong-issuer tokens are rejected
- the app refuses to start without a signing key
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt
import pytest

from storefront import create_app
from storefront.errors import Unauthenticated
from storefront.services.token_service import ALGORITHM, TOKEN_LIFETIME, TokenService

from .helpers import TEST_SIGNING_KEY


@dataclass
class FakeUser:
    id: int
    username: str


@pytest.fixture
def service():
    return TokenService(TEST_SIGNING_KEY, issuer="storefront-api", audience="storefront-clients")


ISSUED_AT = datetime(2026, 1, 1, 12, 0, 0)


class TestClaims:

    def test_round_trip(self, service):
        token = service.issue(FakeUser(7, "bob"), "Customer")
        claims = service.decode(token)
        assert claims.user_id == 7
        assert claims.username == "bob"
        assert claims.role == "Customer"
        assert claims.expires_at - claims.issued_at == TOKEN_LIFETIME

    def test_raw_payload(self, service):
        token = service.issue(FakeUser(7, "bob"), "Customer", issued_at=ISSUED_AT)
        payload = jwt.decode(token, options={"verify_signature": False})
        assert payload["sub"] == "7"
        assert payload["iss"] == "storefront-api"
        assert payload["aud"] == "storefront-clients"
        assert payload["exp"] - payload["iat"] == 3 * 60 * 60
        assert payload["jti"]

    def test_role_omitted_when_missing(self, service):
        token = service.issue(FakeUser(3, "norole"), None)
        payload = jwt.decode(token, options={"verify_signature": False})
        assert "role" not in payload
        assert service.decode(token).role is None

    def test_jti_unique(self, service):
        user = FakeUser(1, "a")
        first = service.decode(service.issue(user, "Admin"))
        second = service.decode(service.issue(user, "Admin"))
        assert first.jti != second.jti


class TestExpiry:

    def test_accepted_just_before_expiry(self, service):
        token = service.issue(FakeUser(1, "a"), "Admin", issued_at=ISSUED_AT)
        claims = service.decode(token, now=ISSUED_AT + TOKEN_LIFETIME - timedelta(seconds=1))
        assert claims.user_id == 1

    def test_rejected_just_after_expiry(self, service):
        token = service.issue(FakeUser(1, "a"), "Admin", issued_at=ISSUED_AT)
        with pytest.raises(Unauthenticated):
            service.decode(token, now=ISSUED_AT + TOKEN_LIFETIME + timedelta(seconds=1))

    def test_expired_by_real_clock(self, service):
        token = service.issue(FakeUser(1, "a"), "Admin", issued_at=ISSUED_AT)
        with pytest.raises(Unauthenticated):
            service.decode(token)


class TestRejection:

    def test_tampered_signature(self, service):
        token = service.issue(FakeUser(1, "a"), "Customer")
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])
        with pytest.raises(Unauthenticated):
            service.decode(tampered)

    def test_elevated_role_with_foreign_key(self, service):
        now = int(datetime.now().timestamp())
        forged = jwt.encode(
            {"sub": "1", "name": "a", "role": "Admin", "jti": "x", "iat": now, "exp": now + 60,
             "iss": service.issuer, "aud": service.audience},
            "another-key-that-is-long-enough-for-hs256-signing",
            algorithm=ALGORITHM,
        )
        with pytest.raises(Unauthenticated):
            service.decode(forged)

    def test_wrong_audience(self, service):
        other = TokenService(TEST_SIGNING_KEY, issuer=service.issuer, audience="someone-else")
        with pytest.raises(Unauthenticated):
            service.decode(other.issue(FakeUser(1, "a"), "Admin"))

    def test_wrong_issuer(self, service):
        other = TokenService(TEST_SIGNING_KEY, issuer="evil", audience=service.audience)
        with pytest.raises(Unauthenticated):
            service.decode(other.issue(FakeUser(1, "a"), "Admin"))

    @pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "Bearer x"])
    def test_garbage(self, service, garbage):
        with pytest.raises(Unauthenticated):
            service.decode(garbage)

    def test_generic_message(self, service):
        with pytest.raises(Unauthenticated) as exc_info:
            service.decode("a.b.c")
        assert exc_info.value.message == Unauthenticated.default_message


class TestStartup:

    def test_missing_signing_key_is_fatal(self):
        with pytest.raises(RuntimeError):
            create_app({
                'TESTING': True,
                'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
                'JWT_SIGNING_KEY': None,
            })

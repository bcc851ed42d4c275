"""Unit tests for JWTAuthProvider claim handling and the JWKS path.

Covers:
- validate_token for Firebase-style payloads (string uid, optional email)
- _get_jwks_keys() fetching, caching, and error handling
- _validate_asymmetric() with a mocked JWKS endpoint
- audience and issuer binding of signed RS256 tokens
"""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk
from jose import jwt as jose_jwt

from infrastructure.auth import jwt_provider as jwt_provider_module
from infrastructure.auth.jwt_provider import JWTAuthProvider, _get_jwks_keys
from infrastructure.auth.provider import TokenUser

JWKS_URL = "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_hs256_token(payload: dict, secret: str = "test-secret") -> str:
    """Create an HS256-signed JWT with a given payload."""
    return jose_jwt.encode(payload, secret, algorithm="HS256")


def _mock_http_client(response: MagicMock | None = None, error: Exception | None = None) -> AsyncMock:
    client = AsyncMock()
    if error is not None:
        client.get.side_effect = error
    else:
        client.get.return_value = response
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


def _jwks_response(keys: list[dict]) -> MagicMock:
    response = MagicMock()
    response.json.return_value = {"keys": keys}
    response.raise_for_status = MagicMock()
    return response


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clear_jwks_cache():
    """Reset the module-level JWKS cache before and after every test."""
    jwt_provider_module._jwks_cache = None
    yield
    jwt_provider_module._jwks_cache = None


@pytest.fixture
def hs256_provider() -> JWTAuthProvider:
    """JWTAuthProvider configured for HS256 (local/test tokens)."""
    return JWTAuthProvider(secret_key="test-secret", algorithm="HS256", expire_minutes=30)


# ---------------------------------------------------------------------------
# Tests: validate_token claims
# ---------------------------------------------------------------------------


class TestValidateTokenClaims:
    async def test_reads_firebase_uid_and_email(self, hs256_provider: JWTAuthProvider):
        token = _make_hs256_token(
            {
                "sub": "Xy7pQ2",
                "user_id": "Xy7pQ2",
                "email": "user@example.com",
                "name": "Ada",
                "exp": 9999999999,
            }
        )

        result = await hs256_provider.validate_token(token)

        # The display name claim is not part of the session
        assert result == TokenUser(id="Xy7pQ2", email="user@example.com")

    async def test_should_return_none_when_token_has_no_sub_claim(
        self, hs256_provider: JWTAuthProvider
    ):
        token = _make_hs256_token({"email": "user@example.com", "exp": 9999999999})

        assert await hs256_provider.validate_token(token) is None

    async def test_should_return_none_when_token_has_empty_sub(
        self, hs256_provider: JWTAuthProvider
    ):
        token = _make_hs256_token({"sub": "", "email": "user@example.com", "exp": 9999999999})

        assert await hs256_provider.validate_token(token) is None

    async def test_missing_email_is_allowed(self, hs256_provider: JWTAuthProvider):
        """Phone-number sign-ins have no email claim."""
        token = _make_hs256_token({"sub": "phone-user", "exp": 9999999999})

        result = await hs256_provider.validate_token(token)

        assert result is not None
        assert result.email == ""

    def test_created_token_round_trips(self, hs256_provider: JWTAuthProvider):
        token = hs256_provider.create_token(TokenUser(id="abc", email="a@example.com"))
        claims = jose_jwt.get_unverified_claims(token)

        assert claims["sub"] == "abc"
        assert claims["email"] == "a@example.com"


# ---------------------------------------------------------------------------
# Tests: _get_jwks_keys
# ---------------------------------------------------------------------------


class TestGetJwksKeys:
    async def test_should_return_empty_dict_when_no_jwks_url(self):
        with patch.object(jwt_provider_module, "settings") as mock_settings:
            mock_settings.auth_jwks_url = ""

            assert await _get_jwks_keys() == {}

    async def test_should_fetch_and_cache_jwks_keys(self):
        mock_client = _mock_http_client(
            _jwks_response(
                [
                    {"kid": "key-1", "kty": "RSA", "n": "aa", "e": "AQAB"},
                    {"kid": "key-2", "kty": "RSA", "n": "bb", "e": "AQAB"},
                ]
            )
        )

        with (
            patch.object(jwt_provider_module, "settings") as mock_settings,
            patch.object(httpx, "AsyncClient", return_value=mock_client),
        ):
            mock_settings.auth_jwks_url = JWKS_URL

            result = await _get_jwks_keys()

            assert set(result) == {"key-1", "key-2"}
            assert result["key-1"]["kty"] == "RSA"
            mock_client.get.assert_called_once_with(JWKS_URL, timeout=10.0)

            # Second call is served from the cache
            mock_client.get.reset_mock()
            assert await _get_jwks_keys() == result
            mock_client.get.assert_not_called()

    async def test_should_return_empty_dict_on_http_error(self):
        mock_client = _mock_http_client(error=httpx.ConnectError("Connection refused"))

        with (
            patch.object(jwt_provider_module, "settings") as mock_settings,
            patch.object(httpx, "AsyncClient", return_value=mock_client),
        ):
            mock_settings.auth_jwks_url = JWKS_URL

            assert await _get_jwks_keys() == {}

    async def test_should_skip_keys_without_kid(self):
        mock_client = _mock_http_client(
            _jwks_response(
                [
                    {"kty": "RSA", "n": "aa", "e": "AQAB"},
                    {"kid": "good-key", "kty": "RSA", "n": "bb", "e": "AQAB"},
                ]
            )
        )

        with (
            patch.object(jwt_provider_module, "settings") as mock_settings,
            patch.object(httpx, "AsyncClient", return_value=mock_client),
        ):
            mock_settings.auth_jwks_url = JWKS_URL

            result = await _get_jwks_keys()

            assert list(result) == ["good-key"]


# ---------------------------------------------------------------------------
# Tests: _validate_asymmetric
# ---------------------------------------------------------------------------

PROJECT_ID = "demo-project"
PROJECT_ISSUER = f"https://securetoken.google.com/{PROJECT_ID}"
SIGNING_KID = "firebase-kid"


@pytest.fixture(scope="module")
def rsa_keys() -> tuple[str, dict]:
    """A throwaway RSA key: private PEM for signing, public JWK for the JWKS."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )
    public_jwk = jwk.construct(public_pem, algorithm="RS256").to_dict()
    public_jwk["kid"] = SIGNING_KID
    return private_pem, public_jwk


@pytest.fixture
def firebase_provider() -> JWTAuthProvider:
    """JWTAuthProvider configured for one Firebase project."""
    return JWTAuthProvider(
        secret_key="test-secret",
        algorithm="HS256",
        expire_minutes=30,
        issuer=PROJECT_ISSUER,
        audience=PROJECT_ID,
    )


def _make_rs256_token(private_pem: str, **claims) -> str:
    now = int(time.time())
    payload = {
        "sub": "victim-uid",
        "aud": PROJECT_ID,
        "iss": PROJECT_ISSUER,
        "iat": now,
        "exp": now + 3600,
        **claims,
    }
    return jose_jwt.encode(payload, private_pem, algorithm="RS256", headers={"kid": SIGNING_KID})


class TestValidateAsymmetric:
    async def test_should_return_none_when_header_has_no_kid(
        self, firebase_provider: JWTAuthProvider
    ):
        result = await firebase_provider._validate_asymmetric(
            "dummy.token.value", {"alg": "RS256"}, "RS256"
        )

        assert result is None

    async def test_should_return_none_when_kid_not_found_in_jwks(
        self, firebase_provider: JWTAuthProvider
    ):
        with patch.object(
            jwt_provider_module, "_get_jwks_keys", new_callable=AsyncMock
        ) as mock_get_jwks:
            mock_get_jwks.return_value = {"other-kid": {"kty": "RSA"}}

            result = await firebase_provider._validate_asymmetric(
                "dummy.token.value", {"alg": "RS256", "kid": "missing-kid"}, "RS256"
            )

            assert result is None
            # initial lookup + refetch after clearing the cache
            assert mock_get_jwks.call_count == 2

    async def test_should_decode_with_audience_and_issuer(
        self, firebase_provider: JWTAuthProvider
    ):
        key_data = {"kid": "test-kid", "kty": "RSA", "n": "aa", "e": "AQAB"}
        payload = {"sub": "uid-1", "email": "test@example.com"}

        with (
            patch.object(
                jwt_provider_module, "_get_jwks_keys", new_callable=AsyncMock
            ) as mock_get_jwks,
            patch.object(jwt_provider_module, "jwk") as mock_jwk,
            patch.object(jwt_provider_module, "jwt") as mock_jwt,
        ):
            mock_get_jwks.return_value = {"test-kid": key_data}
            public_key = MagicMock()
            mock_jwk.construct.return_value = public_key
            mock_jwt.decode.return_value = payload

            result = await firebase_provider._validate_asymmetric(
                "rs256.token.value", {"alg": "RS256", "kid": "test-kid"}, "RS256"
            )

            assert result == payload
            mock_jwk.construct.assert_called_once_with(key_data, algorithm="RS256")
            mock_jwt.decode.assert_called_once_with(
                "rs256.token.value",
                public_key,
                algorithms=["RS256"],
                audience=PROJECT_ID,
                issuer=PROJECT_ISSUER,
                options=jwt_provider_module.REQUIRED_CLAIMS,
            )


class TestValidateTokenAsymmetricPath:
    async def test_delegates_rs256_tokens(self, hs256_provider: JWTAuthProvider):
        with patch.object(jwt_provider_module, "jwt") as mock_jwt:
            mock_jwt.get_unverified_header.return_value = {"alg": "RS256", "kid": "k1"}

            with patch.object(
                hs256_provider, "_validate_asymmetric", new_callable=AsyncMock
            ) as mock_validate:
                mock_validate.return_value = {"sub": "uid-9", "email": "rs@example.com"}

                result = await hs256_provider.validate_token("rs256.token.here")

                mock_validate.assert_called_once_with(
                    "rs256.token.here", {"alg": "RS256", "kid": "k1"}, "RS256"
                )
                assert result is not None
                assert result.id == "uid-9"

    async def test_returns_none_when_key_lookup_fails(self, hs256_provider: JWTAuthProvider):
        with patch.object(jwt_provider_module, "jwt") as mock_jwt:
            mock_jwt.get_unverified_header.return_value = {"alg": "RS256", "kid": "k1"}

            with patch.object(
                hs256_provider, "_validate_asymmetric", new_callable=AsyncMock
            ) as mock_validate:
                mock_validate.return_value = None

                assert await hs256_provider.validate_token("rs256.token.here") is None


class TestFirebaseTokenProjectBinding:
    """Signed RS256 tokens are only trusted for the configured project."""

    async def test_accepts_token_for_this_project(
        self, firebase_provider: JWTAuthProvider, rsa_keys: tuple[str, dict]
    ):
        private_pem, public_jwk = rsa_keys
        token = _make_rs256_token(private_pem, email="me@example.com")

        with patch.object(
            jwt_provider_module, "_get_jwks_keys", new_callable=AsyncMock
        ) as mock_get_jwks:
            mock_get_jwks.return_value = {SIGNING_KID: public_jwk}

            result = await firebase_provider.validate_token(token)

        assert result is not None
        assert result.id == "victim-uid"
        assert result.email == "me@example.com"

    async def test_rejects_token_for_another_project(
        self, firebase_provider: JWTAuthProvider, rsa_keys: tuple[str, dict]
    ):
        private_pem, public_jwk = rsa_keys
        token = _make_rs256_token(
            private_pem,
            aud="some-other-project",
            iss="https://securetoken.google.com/some-other-project",
        )

        with patch.object(
            jwt_provider_module, "_get_jwks_keys", new_callable=AsyncMock
        ) as mock_get_jwks:
            mock_get_jwks.return_value = {SIGNING_KID: public_jwk}

            assert await firebase_provider.validate_token(token) is None

    async def test_rejects_wrong_audience(
        self, firebase_provider: JWTAuthProvider, rsa_keys: tuple[str, dict]
    ):
        private_pem, public_jwk = rsa_keys
        token = _make_rs256_token(private_pem, aud="some-other-project")

        with patch.object(
            jwt_provider_module, "_get_jwks_keys", new_callable=AsyncMock
        ) as mock_get_jwks:
            mock_get_jwks.return_value = {SIGNING_KID: public_jwk}

            assert await firebase_provider.validate_token(token) is None

    async def test_rejects_wrong_issuer(
        self, firebase_provider: JWTAuthProvider, rsa_keys: tuple[str, dict]
    ):
        private_pem, public_jwk = rsa_keys
        token = _make_rs256_token(
            private_pem, iss="https://securetoken.google.com/some-other-project"
        )

        with patch.object(
            jwt_provider_module, "_get_jwks_keys", new_callable=AsyncMock
        ) as mock_get_jwks:
            mock_get_jwks.return_value = {SIGNING_KID: public_jwk}

            assert await firebase_provider.validate_token(token) is None

    async def test_rejects_missing_audience(
        self, firebase_provider: JWTAuthProvider, rsa_keys: tuple[str, dict]
    ):
        private_pem, public_jwk = rsa_keys
        now = int(time.time())
        token = jose_jwt.encode(
            {"sub": "victim-uid", "iss": PROJECT_ISSUER, "exp": now + 3600},
            private_pem,
            algorithm="RS256",
            headers={"kid": SIGNING_KID},
        )

        with patch.object(
            jwt_provider_module, "_get_jwks_keys", new_callable=AsyncMock
        ) as mock_get_jwks:
            mock_get_jwks.return_value = {SIGNING_KID: public_jwk}

            assert await firebase_provider.validate_token(token) is None

    async def test_rejects_provider_tokens_without_configured_project(
        self, rsa_keys: tuple[str, dict]
    ):
        private_pem, public_jwk = rsa_keys
        unconfigured = JWTAuthProvider(
            secret_key="test-secret",
            algorithm="HS256",
            expire_minutes=30,
            issuer="",
            audience="",
        )
        token = _make_rs256_token(private_pem)

        with patch.object(
            jwt_provider_module, "_get_jwks_keys", new_callable=AsyncMock
        ) as mock_get_jwks:
            mock_get_jwks.return_value = {SIGNING_KID: public_jwk}

            assert await unconfigured.validate_token(token) is None
            mock_get_jwks.assert_not_called()

"""JWT authentication provider implementation.

Supports Firebase Authentication ID tokens (RS256, verified via JWKS) and
locally-created tokens (HS256 for development and tests).

Firebase ID token payload structure:
    {
        "iss": "https://securetoken.google.com/<project-id>",
        "aud": "<project-id>",
        "sub": "firebase-uid",
        "user_id": "firebase-uid",
        "email": "user@example.com",
        "name": "John",
        "exp": 1234567890
    }
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
from jose import JWTError, jwk, jwt

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = logging.getLogger(__name__)

ASYMMETRIC_ALGORITHMS = ("RS256", "ES256")

# Provider tokens missing any of these claims are rejected, not left unchecked
REQUIRED_CLAIMS = {"require_aud": True, "require_iss": True, "require_exp": True}

# Module-level JWKS cache (fetched once, reused across requests)
_jwks_cache: dict[str, Any] | None = None


async def _get_jwks_keys() -> dict[str, Any]:
    """Fetch and cache the identity provider's signing keys, keyed by kid."""
    global _jwks_cache
    if _jwks_cache is not None:
        return _jwks_cache

    jwks_url = settings.auth_jwks_url
    if not jwks_url:
        return {}

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(jwks_url, timeout=10.0)
            response.raise_for_status()
            jwks_data = response.json()
            _jwks_cache = {}
            for key_data in jwks_data.get("keys", []):
                kid = key_data.get("kid")
                if kid:
                    _jwks_cache[kid] = key_data
            logger.info("Fetched %d JWKS keys from %s", len(_jwks_cache), jwks_url)
            return _jwks_cache
    except (httpx.HTTPError, ValueError):
        logger.exception("Failed to fetch JWKS from %s", jwks_url)
        return {}


class JWTAuthProvider:
    """JWT-based authentication provider.

    The token's ``sub`` is the profile id; ``email`` is optional because
    phone-number sign-ins carry none. Provider-signed tokens are only
    accepted when ``aud`` is this project and ``iss`` its secure-token
    issuer, so without a configured project they are always rejected.
    """

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
        issuer: str = settings.token_issuer,
        audience: str = settings.firestore_project_id,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes
        self._issuer = issuer
        self._audience = audience

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """
        Validate an ID token and extract the session.

        Detects the signing algorithm from the token header:
        - RS256/ES256 (identity provider): validates via JWKS public key
        - anything else: validates via the shared secret

        Args:
            token: The JWT to validate

        Returns:
            TokenUser if valid, None if invalid or expired
        """
        try:
            header = jwt.get_unverified_header(token)
            alg = header.get("alg", self._algorithm)

            if alg in ASYMMETRIC_ALGORITHMS:
                payload = await self._validate_asymmetric(token, header, alg)
            else:
                payload = jwt.decode(
                    token,
                    self._secret_key,
                    algorithms=[self._algorithm],
                    options={"verify_aud": False},
                )

            if payload is None:
                return None

            user_id = payload.get("sub")
            if not user_id or not isinstance(user_id, str):
                return None

            return TokenUser(
                id=user_id,
                email=payload.get("email") or "",
            )

        except JWTError:
            return None

    async def _validate_asymmetric(
        self, token: str, header: dict, alg: str
    ) -> Optional[dict]:
        """Validate a provider-signed JWT using its JWKS public key."""
        if not self._audience or not self._issuer:
            logger.warning("Rejecting %s token: no project audience/issuer configured", alg)
            return None

        kid = header.get("kid")
        if not kid:
            return None

        jwks_keys = await _get_jwks_keys()
        key_data = jwks_keys.get(kid)
        if not key_data:
            # Key not found, try refetching JWKS (key rotation)
            global _jwks_cache
            _jwks_cache = None
            jwks_keys = await _get_jwks_keys()
            key_data = jwks_keys.get(kid)
            if not key_data:
                logger.warning("JWKS key not found for kid=%s", kid)
                return None

        public_key = jwk.construct(key_data, algorithm=alg)
        return jwt.decode(
            token,
            public_key,
            algorithms=[alg],
            audience=self._audience,
            issuer=self._issuer,
            options=REQUIRED_CLAIMS,
        )

    def create_token(self, user: TokenUser) -> str:
        """
        Create a JWT token for a user (HS256, used for tests).

        Args:
            user: The user to create a token for

        Returns:
            The generated JWT string
        """
        expire = datetime.now(timezone.utc) + timedelta(minutes=self._expire_minutes)

        payload: dict = {
            "sub": user.id,
            "user_id": user.id,
            "email": user.email,
            "exp": expire,
        }

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

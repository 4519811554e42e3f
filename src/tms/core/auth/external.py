"""External identity provider token validation.

Validates bearer tokens issued by the identity provider against its
published JWKS and normalizes the claims into an ``ExternalAssertion``.

Every failure (malformed token, disallowed algorithm, unknown key id,
bad signature, wrong audience or issuer, expiry, unreachable key set)
surfaces as ``UnauthenticatedError``. The reason is logged, never returned.
"""

import asyncio
import time
from collections import deque
from collections.abc import Callable, Iterable
from functools import lru_cache
from typing import Any

import httpx
import structlog
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError

from tms.config import settings
from tms.core.auth.schemas import ExternalAssertion
from tms.core.constants import ALLOWED_EXTERNAL_ALGORITHMS, JWKS_RATE_WINDOW_SECONDS
from tms.core.errors import NotFoundError, UnauthenticatedError


logger = structlog.get_logger()


class KeyFetchRateLimiter:
    """Sliding window budget for key set fetches.

    Not thread-safe; meant to be shared by tasks of one event loop.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float = JWKS_RATE_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: deque[float] = deque()

    def try_acquire(self) -> bool:
        """Consume one fetch from the budget if any is left."""
        now = self._clock()
        while self._events and now - self._events[0] >= self.window_seconds:
            self._events.popleft()

        if len(self._events) >= self.limit:
            return False

        self._events.append(now)
        return True

    @property
    def remaining(self) -> int:
        now = self._clock()
        used = sum(1 for t in self._events if now - t < self.window_seconds)
        return max(self.limit - used, 0)


class JWKSCache:
    """Signing keys of the identity provider, cached per key id.

    Misses wait on a single fetch lock, so concurrent misses trigger at
    most one fetch and unknown key ids leave no state behind. Fetches
    draw from a shared rate limiter.
    """

    def __init__(
        self,
        jwks_uri: str,
        rate_limiter: KeyFetchRateLimiter,
        ttl_seconds: float = 600,
        timeout_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.jwks_uri = jwks_uri
        self._rate_limiter = rate_limiter
        self._ttl_seconds = ttl_seconds
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._keys: dict[str, tuple[dict[str, Any], float]] = {}
        self._fetch_lock = asyncio.Lock()

    def _cached(self, kid: str) -> dict[str, Any] | None:
        entry = self._keys.get(kid)
        if entry is None:
            return None
        key, fetched_at = entry
        if self._clock() - fetched_at >= self._ttl_seconds:
            return None
        return key

    async def get_key(self, kid: str) -> dict[str, Any]:
        """Return the JWK for ``kid``, fetching the key set on a miss.

        Raises:
            UnauthenticatedError: If the key is unknown or cannot be fetched
        """
        key = self._cached(kid)
        if key is not None:
            return key

        async with self._fetch_lock:
            # Another task may have fetched while we waited
            key = self._cached(kid)
            if key is not None:
                return key

            await self._refresh()

            key = self._cached(kid)
            if key is None:
                logger.info("external_token_rejected", reason="unknown_kid")
                raise UnauthenticatedError()
            return key

    async def _refresh(self) -> None:
        if not self._rate_limiter.try_acquire():
            logger.warning("jwks_fetch_throttled", limit=self._rate_limiter.limit)
            raise UnauthenticatedError()

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                response = await client.get(self.jwks_uri)
                response.raise_for_status()
                jwks = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("jwks_fetch_failed", error_type=type(e).__name__)
            raise UnauthenticatedError() from e

        entries = jwks.get("keys") if isinstance(jwks, dict) else None
        if not isinstance(entries, list):
            logger.warning("jwks_fetch_failed", error_type="malformed_key_set")
            raise UnauthenticatedError()

        fetched_at = self._clock()
        count = 0
        for jwk_data in entries:
            if not isinstance(jwk_data, dict):
                continue
            kid = jwk_data.get("kid")
            if kid and isinstance(kid, str):
                self._keys[kid] = (jwk_data, fetched_at)
                count += 1

        logger.info("jwks_fetched", key_count=count)


class ExternalIdentityValidator:
    """Validates identity provider tokens and extracts an assertion.

    Only asymmetric algorithms from the configured allow-list are accepted;
    the header's ``alg`` is checked before any key is looked up.
    """

    def __init__(
        self,
        issuer: str,
        audience: str,
        key_cache: JWKSCache,
        algorithms: Iterable[str] = ("RS256",),
        tenant_claim: str = "https://tms.com/tenant_id",
    ) -> None:
        self.issuer = issuer
        self.audience = audience
        self.key_cache = key_cache
        self.algorithms = [a for a in algorithms if a in ALLOWED_EXTERNAL_ALGORITHMS]
        self.tenant_claim = tenant_claim

    @staticmethod
    def _reject(reason: str) -> UnauthenticatedError:
        logger.info("external_token_rejected", reason=reason)
        return UnauthenticatedError()

    async def validate(self, token: str) -> ExternalAssertion:
        """Verify a provider token.

        Args:
            token: The raw bearer token

        Returns:
            The normalized assertion

        Raises:
            UnauthenticatedError: On any verification failure
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise self._reject("malformed") from e

        if header.get("alg") not in self.algorithms:
            raise self._reject("algorithm_not_allowed")

        kid = header.get("kid")
        if not kid:
            raise self._reject("missing_kid")

        key = await self.key_cache.get_key(kid)

        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_at_hash": False},
            )
        except ExpiredSignatureError as e:
            raise self._reject("expired") from e
        except JWTClaimsError as e:
            raise self._reject("claims") from e
        except JWTError as e:
            raise self._reject("signature") from e

        return self._to_assertion(claims)

    def _to_assertion(self, claims: dict[str, Any]) -> ExternalAssertion:
        subject = claims.get("sub")
        email = claims.get("email")
        if not subject or not email:
            raise self._reject("missing_identity_claims")

        app_metadata = claims.get("app_metadata")
        tenant_hint = (
            claims.get(self.tenant_claim)
            or (app_metadata.get("tenant_id") if isinstance(app_metadata, dict) else None)
            or claims.get("tenant_id")
        )

        assertion = ExternalAssertion(
            subject=str(subject),
            email=str(email).strip().lower(),
            email_verified=claims.get("email_verified") is True,
            name=str(claims.get("name") or email),
            tenant_hint=str(tenant_hint) if tenant_hint else None,
        )
        logger.info("external_token_validated", subject=assertion.subject)
        return assertion


@lru_cache(maxsize=1)
def _build_validator() -> ExternalIdentityValidator:
    cache = JWKSCache(
        jwks_uri=settings.external_auth_jwks_uri,
        rate_limiter=KeyFetchRateLimiter(limit=settings.jwks_requests_per_minute),
        ttl_seconds=settings.jwks_cache_ttl_seconds,
        timeout_seconds=settings.external_auth_timeout_seconds,
    )
    return ExternalIdentityValidator(
        issuer=settings.external_auth_issuer,
        audience=settings.external_auth_audience or "",
        key_cache=cache,
        algorithms=settings.external_auth_algorithms,
        tenant_claim=settings.external_auth_tenant_claim,
    )


def get_external_identity_validator() -> ExternalIdentityValidator:
    """FastAPI dependency returning the process-wide validator.

    Raises:
        NotFoundError: If external login is not enabled
    """
    if not settings.external_auth_enabled:
        raise NotFoundError("External login is disabled", error_code="external_login_disabled")
    return _build_validator()

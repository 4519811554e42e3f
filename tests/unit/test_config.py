"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from tms.config import Settings


pytestmark = pytest.mark.unit

SECRET = "a-perfectly-fine-signing-key-of-40-chars!"


def make_settings(**overrides) -> Settings:
    values = {"jwt_secret_key": SECRET}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:
    def test_defaults(self):
        settings = make_settings()

        assert settings.jwt_algorithm == "HS256"
        assert settings.access_token_expire_minutes == 24 * 60
        assert settings.external_auth_enabled is False
        assert settings.jit_provisioning_enabled is False

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError, match="JWT_SECRET_KEY"):
            make_settings(jwt_secret_key="too-short")

    def test_secret_is_not_printed(self):
        assert SECRET not in repr(make_settings())

    @pytest.mark.parametrize("algorithm", ["none", "RS256", "hs256"])
    def test_session_algorithm_must_be_hmac(self, algorithm):
        with pytest.raises(ValidationError):
            make_settings(jwt_algorithm=algorithm)

    def test_external_algorithms_must_be_asymmetric(self):
        with pytest.raises(ValidationError):
            make_settings(external_auth_algorithms=["RS256", "HS256"])

    def test_external_login_needs_domain_and_audience(self):
        with pytest.raises(ValidationError):
            make_settings(external_auth_enabled=True, external_auth_domain="tms.auth0.com")

    def test_external_endpoints(self):
        settings = make_settings(
            external_auth_enabled=True,
            external_auth_domain="tms.auth0.com",
            external_auth_audience="https://api.tms.example.com",
        )

        assert settings.external_auth_issuer == "https://tms.auth0.com/"
        assert settings.external_auth_jwks_uri == "https://tms.auth0.com/.well-known/jwks.json"

    def test_lifetimes_must_be_positive(self):
        with pytest.raises(ValidationError):
            make_settings(access_token_expire_minutes=0)

    def test_password_floor(self):
        with pytest.raises(ValidationError):
            make_settings(password_min_length=4)

    def test_bcrypt_floor(self):
        with pytest.raises(ValidationError):
            make_settings(bcrypt_rounds=4)

    def test_async_database_url(self):
        settings = make_settings(database_url="postgresql://u:p@db:5432/tms")

        assert settings.async_database_url.startswith("postgresql+asyncpg://")

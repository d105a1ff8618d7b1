"""Service-account access tokens for the Document AI vendor.

Builds an RS256-signed JWT assertion from a Google service-account key
and exchanges it at the OAuth2 token endpoint using the JWT-bearer grant.
Tokens are not cached: one is minted per processed document.
"""

import base64
import binascii
import json
import time

import requests
from jose import jwt

from docverify.utils.config import AuthConfig
from docverify.utils.exceptions import AuthError, ConfigurationError
from docverify.utils.http import post_with_retry
from docverify.utils.logger import get_logger

logger = get_logger(__name__)

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"


def load_service_account(raw: str) -> dict:
    """Decode a service-account credential.

    The credential is expected as Base64-encoded JSON; line breaks and
    other whitespace in the encoding are ignored. Raw JSON is accepted
    as a fallback.

    Args:
        raw: Credential string from the environment.

    Returns:
        Parsed service-account key.

    Raises:
        ConfigurationError: If the value is neither form of JSON object.
    """
    try:
        compact = "".join(raw.split())
        decoded = base64.b64decode(compact, validate=True).decode("utf-8")
        key = json.loads(decoded)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        try:
            key = json.loads(raw)
        except ValueError as exc:
            raise ConfigurationError(
                "Service account key is neither Base64 JSON nor JSON"
            ) from exc

    if not isinstance(key, dict):
        raise ConfigurationError("Service account key must be a JSON object")
    return key


class AccessTokenProvider:
    """Mints bearer tokens for the cloud-platform scope.

    Args:
        credential: Base64 (or raw) service-account JSON. ``None`` is
            accepted here and reported when a token is requested.
        config: Token exchange settings.
        session: HTTP session; a new one is created if omitted.
    """

    def __init__(
        self,
        credential: str | None,
        config: AuthConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.credential = credential
        self.config = config or AuthConfig()
        self.session = session or requests.Session()

    def build_assertion(self, key: dict, now: int | None = None) -> str:
        """Create the signed JWT assertion for the token exchange.

        Args:
            key: Parsed service-account key with ``client_email`` and
                ``private_key``.
            now: Issue time as a Unix timestamp. Defaults to the current time.

        Returns:
            Compact serialized JWT.
        """
        if not key.get("client_email") or not key.get("private_key"):
            raise ConfigurationError(
                "Service account key lacks client_email or private_key"
            )

        issued_at = int(time.time()) if now is None else now
        claims = {
            "iss": key["client_email"],
            "scope": self.config.scope,
            "aud": self.config.token_uri,
            "iat": issued_at,
            "exp": issued_at + self.config.token_lifetime_s,
        }
        return jwt.encode(claims, key["private_key"], algorithm="RS256")

    def get_token(self) -> str:
        """Exchange a fresh assertion for an access token.

        Returns:
            Bearer token string.

        Raises:
            ConfigurationError: If no credential is configured.
            AuthError: If the endpoint does not return ``access_token``.
        """
        if not self.credential:
            raise ConfigurationError(
                f"{self.config.credential_env} environment variable not set"
            )

        key = load_service_account(self.credential)
        assertion = self.build_assertion(key)

        response = post_with_retry(
            self.session,
            self.config.token_uri,
            vendor="OAuth2",
            timeout=self.config.timeout_s,
            attempts=self.config.retry_attempts,
            data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
        )

        try:
            token_data = response.json()
        except ValueError:
            token_data = {}

        token = token_data.get("access_token") if isinstance(token_data, dict) else None
        if not token:
            logger.error("Token exchange failed with status %s", response.status_code)
            raise AuthError(
                f"Failed to get access token: {json.dumps(token_data)}",
                {"status_code": response.status_code},
            )

        logger.debug("Obtained access token for %s", key.get("client_email"))
        return token

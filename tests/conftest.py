"""Shared test fixtures for the document verification test suite."""

import base64
import json
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


def _make_response(
    status_code: int = 200, payload: object = None, reason: str | None = None
) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason or ("OK" if status_code < 400 else "Error")
    response._content = b"" if payload is None else json.dumps(payload).encode()
    return response


@pytest.fixture
def make_response() -> Callable[..., requests.Response]:
    """Factory for real ``requests.Response`` objects with a JSON body."""
    return _make_response


@pytest.fixture
def gemini_payload() -> Callable[[str], dict]:
    """Wrap reply text the way generateContent returns it."""

    def _payload(text: str) -> dict:
        return {"candidates": [{"content": {"parts": [{"text": text}]}}]}

    return _payload


@pytest.fixture
def session() -> MagicMock:
    """A stand-in HTTP session whose ``post`` is configured per test."""
    return MagicMock(spec=requests.Session)


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def service_account(rsa_key: rsa.RSAPrivateKey) -> dict:
    """A service-account key with a freshly generated RSA key."""
    pem = rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    return {
        "type": "service_account",
        "client_email": "verifier@example-project.iam.gserviceaccount.com",
        "private_key": pem,
    }


@pytest.fixture(scope="session")
def public_pem(rsa_key: rsa.RSAPrivateKey) -> str:
    return (
        rsa_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )


@pytest.fixture
def encoded_credential(service_account: dict) -> str:
    """The service account as the Base64 string stored in the environment."""
    return base64.b64encode(json.dumps(service_account).encode()).decode()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent

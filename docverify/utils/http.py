"""Shared HTTP helpers for vendor calls.

Every vendor request goes through :func:`post_with_retry`, which applies
an explicit timeout and retries only transport failures (connection
errors and timeouts). HTTP error statuses are returned to the caller
untouched.
"""

from typing import Any

import requests
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from docverify.utils.exceptions import VendorError
from docverify.utils.logger import get_logger

logger = get_logger(__name__)

_TRANSIENT_ERRORS = (requests.ConnectionError, requests.Timeout)


def post_with_retry(
    session: requests.Session,
    url: str,
    *,
    vendor: str,
    timeout: float,
    attempts: int = 3,
    wait_multiplier: float = 0.5,
    **kwargs: Any,
) -> requests.Response:
    """POST to a vendor endpoint with bounded retry on transport errors.

    Args:
        session: HTTP session used for the request.
        url: Target URL.
        vendor: Vendor name for logs and error messages.
        timeout: Per-attempt timeout in seconds.
        attempts: Maximum number of attempts.
        wait_multiplier: Base of the exponential backoff in seconds.
        **kwargs: Passed through to ``session.post``.

    Returns:
        The vendor response, whatever its status code.

    Raises:
        VendorError: If every attempt failed at the transport level.
    """
    retrying = Retrying(
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_exponential(multiplier=wait_multiplier, max=8),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        reraise=True,
    )
    try:
        for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "Retrying %s request (attempt %d)",
                        vendor,
                        attempt.retry_state.attempt_number,
                    )
                return session.post(url, timeout=timeout, **kwargs)
    except _TRANSIENT_ERRORS as exc:
        logger.error("%s request failed after %d attempts: %s", vendor, attempts, exc)
        raise VendorError(f"{vendor} request failed: {exc}", vendor=vendor) from exc
    raise VendorError(f"{vendor} request was not attempted", vendor=vendor)


def error_message(response: requests.Response) -> str:
    """Pull the vendor's error message out of a failed response.

    Falls back to the HTTP reason phrase, then to the status code.
    """
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.reason or f"HTTP {response.status_code}"

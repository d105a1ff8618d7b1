"""Exception hierarchy for the document verification pipeline.

    DocverifyError (base)
    ├── ConfigurationError   missing or malformed credentials
    ├── AuthError            token exchange returned no access token
    ├── VendorError          failed or non-JSON reply from Document AI or Gemini
    └── ParseError           vendor reply was not the expected JSON
"""


class DocverifyError(Exception):
    """Base exception for all verification pipeline errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(DocverifyError):
    """Raised when a required credential or setting is absent."""


class AuthError(DocverifyError):
    """Raised when the OAuth2 token exchange does not yield a token."""


class VendorError(DocverifyError):
    """Raised when a vendor endpoint fails or answers with an unusable body.

    Args:
        message: Vendor message or HTTP reason phrase.
        status_code: HTTP status code of the failed response.
        vendor: Short vendor name used in logs.
    """

    def __init__(
        self, message: str, status_code: int | None = None, vendor: str = ""
    ) -> None:
        self.status_code = status_code
        self.vendor = vendor
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)

    def __str__(self) -> str:
        return self.message


class ParseError(DocverifyError):
    """Raised when a model reply cannot be parsed into a JSON object."""

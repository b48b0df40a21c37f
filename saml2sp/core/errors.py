"""SAML 2.0 error codes and the authentication failure raised to callers."""

from __future__ import annotations

from dataclasses import dataclass


class Saml2ErrorCodes:
    """Machine-readable SAML 2.0 authentication error codes."""

    UNSUPPORTED_BINDING = "unsupported_binding"
    MALFORMED_RESPONSE_DATA = "malformed_response_data"
    INVALID_RESPONSE = "invalid_response"
    INVALID_ISSUER = "invalid_issuer"
    INVALID_SIGNATURE = "invalid_signature"
    INVALID_ASSERTION = "invalid_assertion"
    INVALID_DESTINATION = "invalid_destination"
    INVALID_IN_RESPONSE_TO = "invalid_in_response_to"
    SUBJECT_NOT_FOUND = "subject_not_found"
    USERNAME_NOT_FOUND = "username_not_found"
    DECRYPTION_ERROR = "decryption_error"
    INTERNAL_VALIDATION_ERROR = "internal_validation_error"
    RELYING_PARTY_REGISTRATION_NOT_FOUND = "relying_party_registration_not_found"

    @classmethod
    def all(cls) -> frozenset[str]:
        """Return every known error code."""
        return frozenset(
            value
            for name, value in vars(cls).items()
            if name.isupper() and isinstance(value, str)
        )


@dataclass(frozen=True)
class Saml2Error:
    """Error code plus a caller-safe description."""

    code: str
    description: str


class Saml2AuthenticationError(Exception):
    """Raised when a SAML 2.0 authentication attempt fails."""

    def __init__(self, error: Saml2Error, status_code: int = 401) -> None:
        super().__init__(error.description)
        self.error = error
        self.detail = error.description
        self.code = error.code
        self.status_code = status_code

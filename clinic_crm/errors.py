"""
Error taxonomy for the consultation core.

Credential errors are fatal to the session (the user must log in again).
Everything else is recoverable and carries a message that can be shown as is.
"""


class CRMError(Exception):
    """Base class for every error raised by the core."""

    default_message = "Request could not be completed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class CredentialError(CRMError):
    default_message = "Session is invalid, please log in again"


class MalformedCredential(CredentialError):
    default_message = "Malformed credential, please log in again"


class UnknownRole(CredentialError):
    default_message = "Unknown role in credential, please log in again"


class PreconditionFailed(CRMError):
    default_message = "Consultation update is not allowed"


class ActionNotEligible(CRMError):
    default_message = "Action is not available for this consultation"


class NoContact(CRMError):
    default_message = "No phone number on file"


class InvalidRecord(CRMError):
    default_message = "Record rejected at the boundary"


class ServiceError(CRMError):
    """The record service answered with an error status."""

    default_message = "Record service request failed"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)

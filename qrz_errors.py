"""
Error types for the QRZ XML client.

Every failure surfaces as a subclass of QRZXMLError. Classification helpers
(should_reauthenticate, is_retryable, is_permission_error) only look at the
error class, so callers can decide whether to retry without inspecting messages.
"""

from typing import Optional


class QRZXMLError(Exception):
    """Base exception for all QRZ XML API errors."""

    def should_reauthenticate(self) -> bool:
        """Check if this error means a fresh login may fix the request."""
        return should_reauthenticate(self)

    def is_retryable(self) -> bool:
        """Check if this error is temporary and the operation may be retried."""
        return is_retryable(self)

    def is_permission_error(self) -> bool:
        """Check if this error is due to insufficient permissions/subscription."""
        return is_permission_error(self)


class NetworkError(QRZXMLError):
    """Network or HTTP-related errors (including timeouts)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Network error: {message}")


class XmlParsingError(QRZXMLError):
    """The response body could not be decoded as a QRZ XML document."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"XML parsing error: {message}")


class UrlParsingError(QRZXMLError):
    """The configured base URL is not usable."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"URL parsing error: {message}")


class ApiError(QRZXMLError):
    """QRZ returned an error message that matched no more specific kind."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"QRZ API error: {message}")


class AuthenticationFailedError(QRZXMLError):
    """Login was rejected because of the username or password."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Authentication failed: {reason}")


class SessionExpiredError(QRZXMLError):
    """Session expired or invalid."""

    def __init__(self):
        super().__init__("Session expired or invalid - re-authentication required")


class NoSessionKeyError(QRZXMLError):
    """Login appeared to succeed but no session key was returned."""

    def __init__(self):
        super().__init__("No session key received - authentication may have failed")


class CallsignNotFoundError(QRZXMLError):
    """The requested callsign does not exist in the QRZ database."""

    def __init__(self, callsign: str):
        self.callsign = callsign
        super().__init__(f"Callsign not found: {callsign}")


class DxccNotFoundError(QRZXMLError):
    """The requested DXCC entity (number or callsign) could not be resolved."""

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"DXCC entity not found: {entity}")


class InvalidInputError(QRZXMLError):
    """Caller supplied input that cannot be sent to QRZ."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Invalid input: {message}")


class ConnectionRefusedError(QRZXMLError):  # noqa: A001
    """QRZ is refusing connections for this account."""

    def __init__(self):
        super().__init__("QRZ service is refusing connections - try again in 24 hours")


class SubscriptionRequiredError(QRZXMLError):
    """A subscription is required to access this data."""

    def __init__(self):
        super().__init__("A subscription is required to access this data")


class RateLimitExceededError(QRZXMLError):
    """Too many requests."""

    def __init__(self):
        super().__init__("Rate limit exceeded - too many requests")


class InvalidApiVersionError(QRZXMLError):
    """The API version selector is not usable in a URL."""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Invalid API version: {version}")


class UnexpectedResponseError(QRZXMLError):
    """The response was well-formed but did not contain what was asked for."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Unexpected API response: {message}")


_REAUTHENTICATE = (SessionExpiredError, NoSessionKeyError)
_RETRYABLE = (NetworkError, SessionExpiredError, RateLimitExceededError)
_PERMISSION = (SubscriptionRequiredError, ConnectionRefusedError)


def should_reauthenticate(error: BaseException) -> bool:
    """Return True for errors that a forced re-login can recover from."""
    return isinstance(error, _REAUTHENTICATE)


def is_retryable(error: BaseException) -> bool:
    """Return True for errors worth retrying later (advisory only)."""
    return isinstance(error, _RETRYABLE)


def is_permission_error(error: BaseException) -> bool:
    """Return True for errors that blind retries will not fix."""
    return isinstance(error, _PERMISSION)


def classify_login_error(message: str) -> QRZXMLError:
    """
    Map the embedded <Error> text of a login response to an exception.

    QRZ answers HTTP 200 for failed logins, so the message text is the only
    signal. The substrings are QRZ's wording, not a documented protocol.
    """
    lowered = message.lower()
    if "connection refused" in lowered:
        return ConnectionRefusedError()
    if "password" in lowered or "username" in lowered:
        return AuthenticationFailedError(message)
    return ApiError(message)


def classify_request_error(message: Optional[str]) -> Optional[QRZXMLError]:
    """
    Map the embedded <Error> text of an authenticated response to an exception.

    Returns None when there is no error, or when the error is a "not found"
    message; the calling lookup turns that into a not-found error carrying the
    identifier it asked for.
    """
    if message is None:
        return None
    lowered = message.lower()
    if "session" in lowered or "timeout" in lowered:
        return SessionExpiredError()
    if "not found" in lowered:
        return None
    return ApiError(message)

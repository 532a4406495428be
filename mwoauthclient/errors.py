"""
Errors raised while signing requests, talking to the OAuth server or
checking the identity it returns.  Every error is an `OAuthException` and
carries an `ErrorKind` so callers can branch on ``e.kind`` without
inspecting messages.
"""
from enum import Enum


class ErrorKind(Enum):
    FORMAT = "format"
    PROTOCOL = "protocol"
    SERVER = "server"
    SIGNATURE = "signature"
    VERIFICATION = "verification"
    TRANSPORT = "transport"
    CONFIGURATION = "configuration"


class OAuthException(Exception):
    kind = None


class FormatError(OAuthException):
    """Malformed JSON, base64 or token structure."""
    kind = ErrorKind.FORMAT


class ProtocolError(OAuthException):
    """A required field is missing or the callback was not confirmed."""
    kind = ErrorKind.PROTOCOL


class ServerError(OAuthException):
    """The server answered with an application-level error."""
    kind = ErrorKind.SERVER

    def __init__(self, message, error=None):
        if error is None:
            super().__init__(message)
        else:
            super().__init__("{0} ({1})".format(message, error))
        self.message = message
        self.error = error


class SignatureError(OAuthException):
    """The identity token's signature or algorithm was not acceptable."""
    kind = ErrorKind.SIGNATURE


class VerificationError(OAuthException):
    """The identity token's claims did not validate."""
    kind = ErrorKind.VERIFICATION


class TransportError(OAuthException):
    kind = ErrorKind.TRANSPORT

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(OAuthException):
    kind = ErrorKind.CONFIGURATION

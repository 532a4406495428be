"""Provides a collection of utilities for easily working with MediaWiki's
OAuth1.0a implementation."""
from .version import __version__
from .client import Client
from .config import ClientConfig
from .errors import (ConfigurationError, ErrorKind, FormatError,
                     OAuthException, ProtocolError, ServerError,
                     SignatureError, TransportError, VerificationError)
from .functions import complete, identify, initiate, make_oauth_call
from .request import Request
from .signature import HMAC_SHA1, SignatureMethod
from .state import HandshakeState
from .tokens import AccessToken, Consumer, RequestToken, Token
from .transport import RequestsTransport

__all__ = [
    "__version__",
    "AccessToken",
    "Client",
    "ClientConfig",
    "complete",
    "ConfigurationError",
    "Consumer",
    "ErrorKind",
    "FormatError",
    "HandshakeState",
    "HMAC_SHA1",
    "identify",
    "initiate",
    "make_oauth_call",
    "OAuthException",
    "ProtocolError",
    "Request",
    "RequestsTransport",
    "RequestToken",
    "ServerError",
    "SignatureError",
    "SignatureMethod",
    "Token",
    "TransportError",
    "VerificationError",
]

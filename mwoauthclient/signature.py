"""
Signature methods usable for the ``oauth_signature`` of a request.

A signature method is a name (the ``oauth_signature_method`` value sent to
the server) paired with a pure ``sign(base_string, signing_key)`` function.
Only HMAC-SHA1 is registered; another algorithm is added by defining a new
`SignatureMethod` and listing it in `SIGNATURE_METHODS`.
"""
import base64
import hashlib
import hmac
from collections import namedtuple

from oauthlib.oauth1.rfc5849.utils import escape

from .errors import ConfigurationError

SignatureMethod = namedtuple("SignatureMethod", ['name', 'sign'])
"""
:Parameters:
    name : `str`
        The ``oauth_signature_method`` value, e.g. ``"HMAC-SHA1"``
    sign : `callable`
        ``sign(base_string, signing_key) -> str`` returning the
        base64-encoded signature
"""


def _hmac_signer(digestmod):
    def sign(base_string, signing_key):
        digest = hmac.new(signing_key.encode('utf-8'),
                          base_string.encode('utf-8'),
                          digestmod).digest()
        return base64.b64encode(digest).decode('ascii')
    return sign


HMAC_SHA1 = SignatureMethod("HMAC-SHA1", _hmac_signer(hashlib.sha1))

SIGNATURE_METHODS = {method.name: method for method in (HMAC_SHA1,)}


def get_signature_method(name):
    try:
        return SIGNATURE_METHODS[name]
    except KeyError:
        raise ConfigurationError(
            "Unsupported signature method {0!r}".format(name))


def signing_key(consumer, token=None):
    """
    Builds the key used to sign a request: the percent-encoded consumer
    secret and token secret joined by ``&``.  The token part is empty when
    no token takes part in the call.
    """
    token_secret = token.secret if token is not None else ""
    return escape(consumer.secret) + "&" + escape(token_secret or "")

"""
The signing engine: collects the OAuth parameters of a single HTTP call,
serializes them into the signature base string, signs it and renders the
``Authorization`` header.

:Example:
    .. code-block:: python

        from mwoauthclient import Consumer, Request
        from mwoauthclient.signature import HMAC_SHA1

        consumer = Consumer(config.consumer_key, config.consumer_secret)
        request = Request.from_consumer_and_token(
            consumer, None, "GET",
            "https://meta.wikimedia.org/w/index.php?title=Special:OAuth/identify")
        request.sign_request(HMAC_SHA1, consumer, None)
        headers = {'Authorization': request.to_header()}
"""
import logging
import time
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from oauthlib.common import generate_token
from oauthlib.oauth1.rfc5849.utils import escape

from .errors import ConfigurationError, FormatError
from .identity import compare_hash
from .signature import HMAC_SHA1, signing_key

logger = logging.getLogger(__name__)

OAUTH_VERSION = "1.0"
NONCE_LENGTH = 32
DEFAULT_PORTS = {("http", 80), ("https", 443)}


def percent_encode(value):
    """
    Percent-encodes a value leaving only unreserved characters
    (``A-Z a-z 0-9 - _ . ~``) as they are.  Spaces become ``%20``.
    """
    if isinstance(value, bytes):
        value = value.decode('utf-8')
    return escape(str(value))


def generate_nonce():
    return generate_token(NONCE_LENGTH)


def generate_timestamp():
    return str(int(time.time()))


def normalize_url(url):
    """
    Strips the query string, fragment and default port from `url` and
    lower-cases its scheme and host.
    """
    if not isinstance(url, str):
        raise FormatError("Expected a URL string, got {0!r}".format(url))
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise FormatError("Unable to parse URL {0!r}: {1}".format(url, e)) from e
    if not parts.scheme or not parts.hostname:
        raise FormatError("URL {0!r} lacks a scheme or host".format(url))

    scheme = parts.scheme.lower()
    host = parts.hostname.lower()
    if ":" in host:
        host = "[" + host + "]"
    if port is not None and (scheme, port) not in DEFAULT_PORTS:
        host = "{0}:{1}".format(host, port)
    return urlunsplit((scheme, host, parts.path or "/", "", ""))


def query_parameters(url):
    return parse_qsl(urlsplit(url).query, keep_blank_values=True)


def normalize_parameters(parameters):
    """
    Serializes a name -> values mapping: every name and value is
    percent-encoded, the pairs are sorted by encoded name then encoded value
    and joined as ``name=value`` with ``&``.
    """
    pairs = sorted(
        (percent_encode(name), percent_encode(value))
        for name, values in parameters.items()
        for value in values
    )
    return "&".join("{0}={1}".format(name, value) for name, value in pairs)


def _iter_parameters(parameters):
    if parameters is None:
        return
    items = parameters.items() if hasattr(parameters, 'items') else parameters
    for name, value in items:
        if isinstance(value, (list, tuple)):
            for item in value:
                yield name, item
        else:
            yield name, value


def _stringify(value):
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return str(value)


class Request(object):
    """
    An OAuth-signed HTTP call.

    :Parameters:
        http_method : `str`
            ``"GET"``, ``"POST"``, ...
        http_url : `str`
            The full URL of the call, query string included
        parameters : `dict` | `list` of pairs
            Parameters to sign.  A `list` or `tuple` value contributes one
            parameter per item.
    """

    def __init__(self, http_method, http_url, parameters=None):
        self.http_method = http_method
        self.http_url = http_url
        self.normalized_url = normalize_url(http_url)
        self.parameters = {}
        self.base_string = None
        self.signature = None
        for name, value in _iter_parameters(parameters):
            self.set_parameter(name, value)

    @classmethod
    def from_consumer_and_token(cls, consumer, token=None, http_method="GET",
                                http_url=None, parameters=None,
                                signature_method=HMAC_SHA1):
        """
        Builds a request carrying a fresh nonce and timestamp.  Query
        parameters of `http_url` are included; a name given in `parameters`
        replaces both the query parameter and the OAuth default of that name.
        """
        if consumer is None:
            raise ConfigurationError("No consumer configured for signing")

        request = cls(http_method, http_url)
        for name, value in query_parameters(http_url):
            request.set_parameter(name, value)

        defaults = {
            'oauth_version': OAUTH_VERSION,
            'oauth_nonce': generate_nonce(),
            'oauth_timestamp': generate_timestamp(),
            'oauth_consumer_key': consumer.key,
            'oauth_signature_method': signature_method.name,
        }
        if token is not None:
            defaults['oauth_token'] = token.key
        for name, value in defaults.items():
            request.set_parameter(name, value, allow_duplicates=False)

        overrides = {}
        for name, value in _iter_parameters(parameters):
            overrides.setdefault(name, []).append(_stringify(value))
        request.parameters.update(overrides)

        return request

    def set_parameter(self, name, value, allow_duplicates=True):
        if allow_duplicates and name in self.parameters:
            self.parameters[name].append(_stringify(value))
        else:
            self.parameters[name] = [_stringify(value)]

    def unset_parameter(self, name):
        self.parameters.pop(name, None)

    def get_parameter(self, name):
        values = self.parameters.get(name)
        if not values:
            return None
        elif len(values) == 1:
            return values[0]
        else:
            return list(values)

    def get_signable_parameters(self):
        return {name: values for name, values in self.parameters.items()
                if name != 'oauth_signature'}

    def get_normalized_http_method(self):
        return self.http_method.upper()

    def get_normalized_http_url(self):
        return self.normalized_url

    def get_signature_base_string(self):
        return "&".join([
            self.get_normalized_http_method(),
            percent_encode(self.get_normalized_http_url()),
            percent_encode(normalize_parameters(self.get_signable_parameters())),
        ])

    def sign_request(self, signature_method, consumer, token=None):
        """
        Computes ``oauth_signature`` with `signature_method` and stores it in
        the parameters.

        :Returns:
            The signature
        """
        if consumer is None or not isinstance(consumer.secret, str):
            raise ConfigurationError("No consumer secret configured for signing")
        if token is not None and token.secret is not None and \
                not isinstance(token.secret, str):
            raise ConfigurationError("Token secret must be a string")
        self.set_parameter('oauth_signature_method', signature_method.name,
                           allow_duplicates=False)
        self.base_string = self.get_signature_base_string()
        logger.debug("Signature base string: %s", self.base_string)
        self.signature = signature_method.sign(
            self.base_string, signing_key(consumer, token))
        self.set_parameter('oauth_signature', self.signature,
                           allow_duplicates=False)
        return self.signature

    def check_signature(self, signature_method, consumer, token, signature):
        expected = signature_method.sign(self.get_signature_base_string(),
                                         signing_key(consumer, token))
        return compare_hash(expected.encode('utf-8'),
                            _stringify(signature).encode('utf-8'))

    def to_postdata(self):
        return normalize_parameters(self.parameters)

    def to_url(self):
        postdata = self.to_postdata()
        if postdata:
            return self.normalized_url + "?" + postdata
        return self.normalized_url

    def to_header(self, realm=None):
        """
        Renders the ``Authorization`` header value.  Only ``oauth_*``
        parameters are included; the others travel in the URL or body.
        """
        parts = []
        if realm:
            parts.append('realm="{0}"'.format(percent_encode(realm)))
        for name in sorted(self.parameters):
            if not name.startswith("oauth_"):
                continue
            values = self.parameters[name]
            if len(values) > 1:
                raise FormatError(
                    "Multiple values for {0} cannot be sent in the "
                    "Authorization header".format(name))
            parts.append('{0}="{1}"'.format(percent_encode(name),
                                            percent_encode(values[0])))
        return "OAuth " + ", ".join(parts)

    def __str__(self):
        return self.to_url()

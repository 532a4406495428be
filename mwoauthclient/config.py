import os
from urllib.parse import urlsplit

from .errors import ConfigurationError
from .tokens import Consumer


def _env_flag(environ, name, default):
    value = environ.get(name)
    if value is None:
        return default
    return value.strip().lower() == "true"


class ClientConfig(object):
    """
    Settings for talking to one OAuth server.

    :Parameters:
        endpoint_url : `str`
            URL of the OAuth special page, e.g.
            ``"https://meta.wikimedia.org/w/index.php?title=Special:OAuth"``.
            Step names (``/initiate``, ``/token``, ``/identify``) are
            appended to it.
        consumer : :class:`~mwoauthclient.Consumer`
            A key/secret pair representing you, the consumer
        canonical_server_url : `str`
            Expected ``iss`` of identity statements.  Defaults to the
            scheme, host and port of `endpoint_url`.
        redir_url : `str`
            Where to send the user to authorize, instead of the
            ``/authorize`` (or ``/authenticate``) step of `endpoint_url`
        use_ssl : `bool`
            Require an ``https`` endpoint
        verify_ssl : `bool`
            Verify the server's certificate
        user_agent : `str`
            ``User-Agent`` sent with every call
        authenticate_only : `bool`
            Send users to ``/authenticate`` (sign-in only) rather than
            ``/authorize``
        callback : `str`
            Callback URL.  Defaults to ``'oob'`` (out of band).
    """

    def __init__(self, endpoint_url, consumer=None, canonical_server_url=None,
                 redir_url=None, use_ssl=True, verify_ssl=True,
                 user_agent=None, authenticate_only=False, callback='oob'):
        if not endpoint_url:
            raise ConfigurationError("An endpoint URL is required")
        try:
            parts = urlsplit(endpoint_url)
            port = parts.port
        except ValueError as e:
            raise ConfigurationError(
                "Invalid endpoint URL {0!r}: {1}".format(endpoint_url, e)) from e
        if not parts.scheme or not parts.hostname:
            raise ConfigurationError(
                "Endpoint URL {0!r} lacks a scheme or host".format(endpoint_url))
        if use_ssl and parts.scheme.lower() != "https":
            raise ConfigurationError(
                "SSL is required but the endpoint URL {0!r} is not "
                "https".format(endpoint_url))

        if canonical_server_url is None:
            canonical_server_url = "{0}://{1}".format(parts.scheme,
                                                      parts.hostname)
            if port is not None:
                canonical_server_url += ":{0}".format(port)

        self.endpoint_url = endpoint_url
        self.consumer = consumer
        self.canonical_server_url = canonical_server_url
        self.redir_url = redir_url
        self.use_ssl = use_ssl
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent
        self.authenticate_only = authenticate_only
        self.callback = callback

    def with_consumer(self, consumer):
        """Returns a copy of this configuration using `consumer`."""
        return self.__class__(
            self.endpoint_url, consumer=consumer,
            canonical_server_url=self.canonical_server_url,
            redir_url=self.redir_url, use_ssl=self.use_ssl,
            verify_ssl=self.verify_ssl, user_agent=self.user_agent,
            authenticate_only=self.authenticate_only, callback=self.callback)

    def require_consumer(self):
        if self.consumer is None or not self.consumer.key or \
                not isinstance(self.consumer.secret, str):
            raise ConfigurationError("No consumer key/secret configured")
        return self.consumer

    @classmethod
    def from_env(cls, environ=None):
        """
        Reads the configuration from ``MWOAUTH_*`` environment variables.
        """
        environ = os.environ if environ is None else environ

        consumer = None
        consumer_key = environ.get("MWOAUTH_CONSUMER_KEY", None)
        consumer_secret = environ.get("MWOAUTH_CONSUMER_SECRET", None)
        if consumer_key and consumer_secret:
            consumer = Consumer(consumer_key, consumer_secret)

        return cls(
            environ.get("MWOAUTH_ENDPOINT_URL", None),
            consumer=consumer,
            canonical_server_url=environ.get("MWOAUTH_CANONICAL_SERVER_URL", None),
            redir_url=environ.get("MWOAUTH_REDIRECT_URL", None),
            use_ssl=_env_flag(environ, "MWOAUTH_USE_SSL", True),
            verify_ssl=_env_flag(environ, "MWOAUTH_VERIFY_SSL", True),
            user_agent=environ.get("MWOAUTH_USER_AGENT", None),
            authenticate_only=_env_flag(environ, "MWOAUTH_AUTHENTICATE_ONLY", False),
            callback=environ.get("MWOAUTH_CALLBACK", "oob"),
        )

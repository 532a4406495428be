"""
A set of stateless functions that can be used to complete various steps of an
OAuth handshake or to identify a user.  Everything a step needs is passed in:
the configuration, the transport and, optionally, the
:class:`~mwoauthclient.HandshakeState` shared by the steps of one handshake.

:Example:
    .. code-block:: python

        from mwoauthclient import (ClientConfig, Consumer, RequestsTransport,
                                   initiate, complete, identify)

        # Construct a "consumer" from the key/secret provided by MediaWiki
        import config
        consumer = Consumer(config.consumer_key, config.consumer_secret)
        client_config = ClientConfig(
            "https://meta.wikimedia.org/w/index.php?title=Special:OAuth",
            consumer=consumer,
            canonical_server_url="https://meta.wikimedia.org")
        transport = RequestsTransport(client_config)

        # Step 1: Initialize -- ask the server for a temporary key/secret for
        # the user
        redirect, request_token = initiate(client_config, transport)

        # Step 2: Authorize -- send user to the server to confirm
        # authorization
        print("Point your browser to: %s" % redirect)
        verifier = input("Verification code: ")

        # Step 3: Complete -- obtain authorized key/secret for "resource owner"
        access_token = complete(client_config, transport, request_token,
                                verifier)

        # Step 4: Identify -- (optional) get identifying information about the
        # user
        identity = identify(client_config, transport, access_token)
        print("Identified as {username}.".format(**identity))
"""
import logging
from urllib.parse import parse_qs, quote, urlencode

import requests

from .errors import FormatError, ProtocolError, ServerError, TransportError, \
    VerificationError
from .helpers import decode_json, is_file, to_text
from .identity import IAT_TOLERANCE, decode_jwt, validate_jwt
from .request import Request
from .signature import HMAC_SHA1
from .state import HandshakeState
from .tokens import AccessToken, RequestToken

logger = logging.getLogger(__name__)


def append_query(url, params):
    query = urlencode(params, quote_via=quote)
    if not query:
        return url
    elif url.endswith(("?", "&")):
        return url + query
    elif "?" in url:
        return url + "&" + query
    else:
        return url + "?" + query


def build_url(endpoint_url, subpage, params=()):
    """
    Appends ``/subpage`` and `params` to the endpoint URL.  Works both for
    ``index.php?title=Special:OAuth`` style endpoints and plain paths.
    """
    return append_query(endpoint_url.rstrip("/") + "/" + subpage, params)


def authorization_url(config, request_token):
    """
    Builds the URL to send the user to so that they can authorize the
    consumer.
    """
    if config.redir_url:
        url = config.redir_url
    else:
        subpage = 'authenticate' if config.authenticate_only else 'authorize'
        url = build_url(config.endpoint_url, subpage)
    return append_query(url, [('oauth_token', request_token.key),
                              ('oauth_consumer_key', config.consumer.key)])


def _raise_for_server_error(response, prefix):
    if 'error' in response:
        message = response.get('message', response['error'])
        logger.error("%s %s: %s", prefix, response['error'], message)
        raise ServerError(message, error=response['error'])


def initiate(config, transport, state=None, callback=None):
    """
    Initiates an OAuth handshake with the server.

    :Parameters:
        config : :class:`~mwoauthclient.ClientConfig`
            Server URLs and the consumer
        transport : :class:`~mwoauthclient.RequestsTransport`
            Sends the signed call
        state : :class:`~mwoauthclient.HandshakeState`
            State of the handshake in progress
        callback : `str`
            Callback URL.  Defaults to the configured callback.

    :Returns:
        A `tuple` of two values:

        * a URL to direct the user to
        * a :class:`~mwoauthclient.RequestToken` representing a request for
          access
    """
    config.require_consumer()
    state = state if state is not None else HandshakeState()
    callback = config.callback if callback is None else callback

    init_url = build_url(config.endpoint_url, "initiate",
                         [('format', "json"), ('oauth_callback', callback)])
    data = make_oauth_call(config, transport, None, init_url, state=state)
    response = decode_json(data)

    _raise_for_server_error(response, "Server returned error")
    if response.get('oauth_callback_confirmed') != 'true':
        raise ProtocolError("Callback wasn't confirmed")
    if 'key' not in response or 'secret' not in response:
        logger.error("OAuth server response lacks token information: %s", data)
        raise ProtocolError("Server response lacks token information "
                            "(Raw response: {0})".format(data))

    request_token = RequestToken(response['key'], response['secret'])
    logger.info("Request token obtained.")
    return authorization_url(config, request_token), request_token


def verifier_from_query_string(request_token, response_qs):
    """
    Extracts the verification code from the query string the server
    forwards the user back with, checking that it refers to `request_token`.

    :Parameters:
        request_token : :class:`~mwoauthclient.RequestToken`
            Returned by `initiate()`
        response_qs : `str` | `bytes`
            Query string of the callback URL

    :Returns:
        The ``oauth_verifier`` value
    """
    if isinstance(response_qs, bytes):
        response_qs = response_qs.decode('utf-8')
    callback_data = parse_qs((response_qs or "").lstrip("?"))

    if not callback_data:
        raise ProtocolError("Expected URL query string, but got something "
                            "else instead: {0!r}".format(response_qs))
    elif 'oauth_token' not in callback_data or \
            'oauth_verifier' not in callback_data:
        raise ProtocolError("Query string lacks token information: "
                            "{0!r}".format(callback_data))

    request_token_key = callback_data['oauth_token'][0]
    if request_token.key != request_token_key:
        raise ProtocolError("Unexpected request token key {0}, expected "
                            "{1}.".format(request_token_key, request_token.key))
    return callback_data['oauth_verifier'][0]


def complete(config, transport, request_token, verify_code, state=None):
    """
    Completes an OAuth handshake by exchanging the request token and the
    verification code the user brought back for an access token.

    :Parameters:
        request_token : :class:`~mwoauthclient.RequestToken`
            A temporary token representing the user.  Returned by
            `initiate()`.
        verify_code : `str`
            The ``oauth_verifier`` sent to the callback URL (see
            `verifier_from_query_string()`)

    :Returns:
        An :class:`~mwoauthclient.AccessToken` containing an authorized
        key/secret pair that can be stored and used by you.
    """
    state = state if state is not None else HandshakeState()
    token_url = build_url(config.endpoint_url, "token", [('format', "json")])

    state.set_extra_param('oauth_verifier', verify_code)
    try:
        data = make_oauth_call(config, transport, request_token, token_url,
                               state=state)
    finally:
        # The verifier must not be signed into any later call.
        state.clear_extra_params()
    response = decode_json(data)

    _raise_for_server_error(response, "Handshake error")
    if 'key' not in response or 'secret' not in response:
        logger.error("Could not parse OAuth server response: %s", data)
        raise ProtocolError("Server response missing expected values "
                            "(Raw response: {0})".format(data))

    logger.info("Access token obtained.")
    return AccessToken(response['key'], response['secret'])


def identify(config, transport, access_token, state=None,
             leeway=IAT_TOLERANCE):
    """
    Gathers identifying information about a user via an authorized token.
    The signed statement returned by the server must be addressed to our
    consumer, come from the canonical server, be current and carry the
    nonce of the call that requested it.

    :Parameters:
        access_token : :class:`~mwoauthclient.AccessToken`
            A token representing an authorized user.  Obtained from
            `complete()`
        leeway : `int` | `float`
            The number of seconds of leeway to account for when examining a
            token's "issued at" timestamp.

    :Returns:
        A `dict` containing identity information.
    """
    consumer = config.require_consumer()
    state = state if state is not None else HandshakeState()
    identify_url = build_url(config.endpoint_url, "identify")

    data = to_text(make_oauth_call(config, transport, access_token,
                                   identify_url, state=state))
    if data.lstrip().startswith("{"):
        # Errors come back as JSON rather than as a JWT.
        _raise_for_server_error(decode_json(data), "Server returned error")
        raise FormatError("Expected a JWT from /identify, got: {0}".format(data))

    identity = decode_jwt(data, consumer.secret)
    if not validate_jwt(identity, consumer.key, config.canonical_server_url,
                        state.last_nonce, leeway=leeway):
        raise VerificationError("JWT didn't validate")

    logger.info("User identified.")
    return identity


def make_oauth_call(config, transport, token, url, is_post=False,
                    post_fields=None, state=None):
    """
    Makes a signed call to the server.

    :Parameters:
        token : :class:`~mwoauthclient.Token`
            Token to sign with besides the consumer.  Usually the access
            token from `complete()`; the request token while finishing the
            handshake; `None` while initiating.
        url : `str`
            URL to call
        is_post : `bool`
            Send a POST rather than a GET
        post_fields : `dict`
            POST parameters.  They are signed unless one of them is a file
            (a file-like object, `bytes` or a requests-style
            ``(filename, fileobj)`` tuple).
        state : :class:`~mwoauthclient.HandshakeState`
            Supplies extra parameters to sign and records the nonce used

    :Returns:
        The response body
    """
    consumer = config.require_consumer()
    state = state if state is not None else HandshakeState()

    has_file = any(is_file(value) for value in (post_fields or {}).values())

    params = {}
    if is_post and post_fields and not has_file:
        params.update(post_fields)
    params.update(state.extra_params)

    method = "POST" if is_post else "GET"
    request = Request.from_consumer_and_token(consumer, token, method, url,
                                              params)
    request.sign_request(HMAC_SHA1, consumer, token)
    state.last_nonce = request.get_parameter('oauth_nonce')
    logger.debug("Sending signed %s to %s", method, url)

    try:
        return transport.send(url, request.to_header(), method=method,
                              body=post_fields if is_post else None,
                              has_file=has_file)
    except (requests.RequestException, OSError) as e:
        logger.warning("%s %s failed: %s", method, url, e)
        raise TransportError("HTTP error: {0}".format(e)) from e

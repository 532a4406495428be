"""
A client for managing an OAuth handshake with a MediaWiki-style OAuth server.

:Example:
    .. code-block:: python

        from mwoauthclient import Client, HandshakeState

        # Construct a client from the key/secret provided by MediaWiki
        import config
        client = Client.new_from_key_and_secret(
            "https://meta.wikimedia.org/w/index.php?title=Special:OAuth",
            config.consumer_key, config.consumer_secret)

        # One state per handshake; the client itself can be shared.
        state = HandshakeState()

        # Step 1: Initialize -- ask the server for a temporary key/secret for
        # the user
        redirect, request_token = client.initiate(state)

        # Step 2: Authorize -- send user to the server to confirm
        # authorization
        print("Point your browser to: %s" % redirect)
        verifier = input("Verification code: ")

        # Step 3: Complete -- obtain authorized key/secret for "resource owner"
        access_token = client.complete(request_token, verifier, state)

        # Step 4: Identify -- (optional) get identifying information about the
        # user
        identity = client.identify(access_token, state)
        print("Identified as {username}.".format(**identity))
"""
from . import functions
from .config import ClientConfig
from .identity import IAT_TOLERANCE
from .tokens import Consumer
from .transport import RequestsTransport


class Client(object):
    """

    :Parameters:
        config : :class:`~mwoauthclient.ClientConfig`
            Server URLs, flags and the consumer
        transport : :class:`~mwoauthclient.RequestsTransport`
            Sends signed calls.  Defaults to a `RequestsTransport` built from
            `config`.
    """

    def __init__(self, config, transport=None):
        self.config = config
        self.transport = transport or RequestsTransport(config)

    @classmethod
    def new_from_key_and_secret(cls, url, key, secret, transport=None):
        config = ClientConfig(url, consumer=Consumer(key, secret))
        return cls(config, transport=transport)

    def initiate(self, state=None, callback=None):
        """
        Initiates an OAuth handshake with the server.

        :Parameters:
            state : :class:`~mwoauthclient.HandshakeState`
                State of the handshake in progress
            callback : `str`
                Callback URL.  Defaults to the configured one (``'oob'``).

        :Returns:
            A `tuple` of two values:

            * a URL to direct the user to
            * a :class:`~mwoauthclient.RequestToken` representing an access
              request
        """
        return functions.initiate(self.config, self.transport, state=state,
                                  callback=callback)

    def complete(self, request_token, verify_code, state=None):
        """
        Completes an OAuth handshake by exchanging the request token for an
        access token.

        :Parameters:
            request_token : `RequestToken`
                A temporary token representing the user.  Returned by
                `initiate()`.
            verify_code : `str`
                The verification code the server sent to the callback.

        :Returns:
            An :class:`~mwoauthclient.AccessToken` containing an authorized
            key/secret pair that can be stored and used by you.
        """
        return functions.complete(self.config, self.transport, request_token,
                                  verify_code, state=state)

    def complete_from_query_string(self, request_token, response_qs,
                                   state=None):
        """
        Like `complete()`, but takes the query string of the URL the server
        forwarded the user back to.
        """
        verifier = functions.verifier_from_query_string(request_token,
                                                        response_qs)
        return self.complete(request_token, verifier, state=state)

    def identify(self, access_token, state=None, leeway=IAT_TOLERANCE):
        """
        Gathers identifying information about a user via an authorized token.

        :Parameters:
            access_token : `AccessToken`
                A token representing an authorized user.  Obtained from
                `complete()`.
            leeway : `int` | `float`
                The number of seconds of leeway to account for when examining
                a token's "issued at" timestamp.

        :Returns:
            A dictionary containing identity information.
        """
        return functions.identify(self.config, self.transport, access_token,
                                  state=state, leeway=leeway)

    def make_oauth_call(self, token, url, is_post=False, post_fields=None,
                        state=None):
        return functions.make_oauth_call(self.config, self.transport, token,
                                         url, is_post=is_post,
                                         post_fields=post_fields, state=state)

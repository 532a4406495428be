"""
A set of tokens (key/secret pairs) used to identify actors during and after
an OAuth handshake.
"""
from collections import namedtuple

Consumer = namedtuple("Consumer", ['key', 'secret'])
"""
Represents a consumer (you).  This key/secret pair is provided by the server
when you register an OAuth consumer (on MediaWiki, see
``Special:OAuthConsumerRegistration``).

:Parameters:
    key : `str`
        A hex string identifying the consumer
    secret : `str`
        A hex string used to sign communications
"""

Token = namedtuple("Token", ['key', 'secret'])
"""
Represents a key/secret pair issued by the server for a user, either while
the handshake is in progress or once it has completed.

:Parameters:
    key : `str`
        A hex string identifying the user
    secret : `str`
        A hex string used to sign communications
"""


class RequestToken(Token):
    """
    Represents a request for access during authorization.  This key/secret
    pair is provided by the server's ``/initiate`` endpoint.
    Once the user authorizes you, this token can be traded for an
    `AccessToken` via `complete()`.
    """
    __slots__ = ()


class AccessToken(Token):
    """
    Represents an authorized user.  This key and secret is provided by the
    server's ``/token`` endpoint and later used to show the server evidence
    of authorization.
    """
    __slots__ = ()

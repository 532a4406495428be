class HandshakeState(object):
    """
    The mutable part of one handshake, passed explicitly to every step so
    that a single `~mwoauthclient.Client` can serve several handshakes at
    once.  Don't share one state between concurrent handshakes.

    :Attributes:
        extra_params : `dict`
            Extra parameters to sign on the next call (e.g.
            ``oauth_verifier``)
        last_nonce : `str`
            The ``oauth_nonce`` of the most recent signed call
    """

    def __init__(self, extra_params=None):
        self.extra_params = dict(extra_params or {})
        self.last_nonce = None

    def set_extra_param(self, key, value):
        self.extra_params[key] = value

    def clear_extra_params(self):
        self.extra_params = {}

    def __repr__(self):
        return "{0}(extra_params={1!r}, last_nonce={2!r})".format(
            self.__class__.__name__, sorted(self.extra_params),
            self.last_nonce)

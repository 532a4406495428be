"""
The default transport: sends a signed call with `requests` and returns the
response body.

Any object with a compatible ``send()`` method can be handed to
:class:`~mwoauthclient.Client` instead, e.g. to reuse an application's own
HTTP stack or a `Mock` in tests.
"""
import logging

import requests

from .errors import TransportError
from .helpers import is_file

logger = logging.getLogger(__name__)


class RequestsTransport(object):
    """
    :Parameters:
        config : :class:`~mwoauthclient.ClientConfig`
            Supplies ``verify_ssl`` and ``user_agent``
        session : :class:`requests.Session`
            Session to send with.  A new one is created if not provided.
    """

    def __init__(self, config, session=None):
        self.verify_ssl = config.verify_ssl
        self.user_agent = config.user_agent
        self.session = session or requests.Session()

    def send(self, url, authorization_header, method="GET", body=None,
             has_file=False):
        """
        Sends one call.

        :Parameters:
            url : `str`
                Target URL, query string included
            authorization_header : `str`
                Value of the ``Authorization`` header
            method : `str`
                HTTP method
            body : `dict`
                POST fields, form-encoded.  With `has_file`, uploads go
                as multipart file parts and the other fields as form fields.
            has_file : `bool`
                Send `body` as multipart/form-data

        :Returns:
            The response body as `str`
        """
        headers = {'Authorization': authorization_header}
        if self.user_agent is not None:
            headers['User-Agent'] = self.user_agent

        kwargs = {}
        if body and has_file:
            # Plain fields stay ordinary form fields next to the uploads.
            files = {name: value for name, value in body.items()
                     if is_file(value)}
            data = {name: value for name, value in body.items()
                    if name not in files}
            kwargs['files'] = files
            if data:
                kwargs['data'] = data
        elif body:
            kwargs['data'] = body

        try:
            response = self.session.request(method, url, headers=headers,
                                            verify=self.verify_ssl, **kwargs)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise TransportError("HTTP error: {0}".format(e)) from e

        if not response.content:
            raise TransportError(
                "Empty HTTP response! Status: {0}".format(response.status_code),
                status_code=response.status_code)
        return response.text

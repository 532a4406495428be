import io
import json
import re
import time
from unittest import TestCase
from unittest.mock import Mock, patch

import jwt
import requests

from ..client import Client
from ..config import ClientConfig
from ..errors import ConfigurationError, ErrorKind, FormatError, \
    ProtocolError, ServerError, SignatureError, TransportError, \
    VerificationError
from ..request import Request
from ..state import HandshakeState
from ..tokens import AccessToken, Consumer, RequestToken

ENDPOINT = "https://meta.wikimedia.org/w/index.php?title=Special:OAuth"
SECRET = "0123456789abcdef0123456789abcdef"
CONSUMER = Consumer("consumerkey", SECRET)


def nonce_of(authorization_header):
    return re.search(r'oauth_nonce="(.*?)"', authorization_header).group(1)


def identity_claims(nonce, **overrides):
    now = int(time.time())
    identity = {
        'iss': "https://meta.wikimedia.org",
        'aud': "consumerkey",
        'iat': now,
        'exp': now + 100,
        'nonce': nonce,
        'sub': "567823",
        'username': "alice",
        'groups': ["*", "user"],
    }
    identity.update(overrides)
    return identity


class ClientTestCase(TestCase):
    def setUp(self):
        self.transport = Mock()
        self.config = ClientConfig(ENDPOINT, consumer=CONSUMER)
        self.client = Client(self.config, transport=self.transport)

    def respond(self, response):
        self.transport.send.return_value = json.dumps(response)

    def sent(self, call_index=-1):
        args, kwargs = self.transport.send.call_args_list[call_index]
        return args[0], args[1], kwargs


class InitiateTestCase(ClientTestCase):
    def test_initiate(self):
        self.respond({'key': "rt", 'secret': "rts",
                      'oauth_callback_confirmed': "true"})

        redirect, request_token = self.client.initiate()

        self.assertEqual(request_token, RequestToken("rt", "rts"))
        self.assertEqual(
            redirect,
            ENDPOINT + "/authorize&oauth_token=rt&oauth_consumer_key=consumerkey")

        url, header, kwargs = self.sent()
        self.assertEqual(url, ENDPOINT + "/initiate&format=json&oauth_callback=oob")
        self.assertTrue(header.startswith("OAuth "))
        self.assertIn('oauth_callback="oob"', header)
        self.assertIn('oauth_consumer_key="consumerkey"', header)
        self.assertNotIn("oauth_token=", header)
        self.assertEqual(kwargs, {'method': "GET", 'body': None,
                                  'has_file': False})

    def test_initiate_with_callback(self):
        self.respond({'key': "rt", 'secret': "rts",
                      'oauth_callback_confirmed': "true"})
        self.client.initiate(callback="https://app.example.org/cb")
        url, header, _ = self.sent()
        self.assertTrue(url.endswith(
            "oauth_callback=https%3A%2F%2Fapp.example.org%2Fcb"))
        self.assertIn(
            'oauth_callback="https%3A%2F%2Fapp.example.org%2Fcb"', header)

    def test_authenticate_only(self):
        self.respond({'key': "rt", 'secret': "rts",
                      'oauth_callback_confirmed': "true"})
        client = Client(ClientConfig(ENDPOINT, consumer=CONSUMER,
                                     authenticate_only=True),
                        transport=self.transport)
        redirect, _ = client.initiate()
        self.assertIn("Special:OAuth/authenticate&oauth_token=rt", redirect)

    def test_redirect_override(self):
        self.respond({'key': "rt", 'secret': "rts",
                      'oauth_callback_confirmed': "true"})
        client = Client(
            ClientConfig(ENDPOINT, consumer=CONSUMER,
                         redir_url="https://meta.wikimedia.org/wiki/Special:OAuth/authorize"),
            transport=self.transport)
        redirect, _ = client.initiate()
        self.assertEqual(
            redirect,
            "https://meta.wikimedia.org/wiki/Special:OAuth/authorize"
            "?oauth_token=rt&oauth_consumer_key=consumerkey")

    def test_plain_endpoint(self):
        self.respond({'key': "rt", 'secret': "rts",
                      'oauth_callback_confirmed': "true"})
        client = Client.new_from_key_and_secret(
            "https://oauth.example.org/oauth/", "consumerkey", SECRET,
            transport=self.transport)
        redirect, _ = client.initiate()
        self.assertEqual(self.sent()[0],
                         "https://oauth.example.org/oauth/initiate"
                         "?format=json&oauth_callback=oob")
        self.assertEqual(redirect,
                         "https://oauth.example.org/oauth/authorize"
                         "?oauth_token=rt&oauth_consumer_key=consumerkey")

    def test_server_error(self):
        self.respond({'error': "mwoauth-invalid-authorization",
                      'message': "Invalid consumer"})
        with self.assertLogs("mwoauthclient.functions", level="ERROR"):
            with self.assertRaises(ServerError) as context:
                self.client.initiate()
        self.assertEqual(context.exception.message, "Invalid consumer")
        self.assertEqual(context.exception.error,
                         "mwoauth-invalid-authorization")
        self.assertIs(context.exception.kind, ErrorKind.SERVER)

    def test_callback_not_confirmed(self):
        for response in [{'key': "rt", 'secret': "rts"},
                         {'key': "rt", 'secret': "rts",
                          'oauth_callback_confirmed': "false"},
                         {'key': "rt", 'secret': "rts",
                          'oauth_callback_confirmed': True}]:
            self.respond(response)
            with self.assertRaises(ProtocolError):
                self.client.initiate()

    def test_missing_token(self):
        self.respond({'oauth_callback_confirmed': "true"})
        with self.assertRaises(ProtocolError):
            self.client.initiate()

    def test_malformed_response(self):
        for body in ["<html>Oops</html>", "[1, 2]", "null"]:
            self.transport.send.return_value = body
            with self.assertRaises(FormatError):
                self.client.initiate()

    def test_missing_consumer(self):
        client = Client(ClientConfig(ENDPOINT), transport=self.transport)
        with self.assertRaises(ConfigurationError):
            client.initiate()
        self.transport.send.assert_not_called()

    def test_consumer_without_secret(self):
        for consumer in [Consumer("ck", None), Consumer("ck", b"secret")]:
            client = Client(ClientConfig(ENDPOINT, consumer=consumer),
                            transport=self.transport)
            with self.assertRaises(ConfigurationError):
                client.initiate()
        self.transport.send.assert_not_called()


class CompleteTestCase(ClientTestCase):
    request_token = RequestToken("rt", "rts")

    def test_complete(self):
        self.respond({'key': "at", 'secret': "ats"})
        state = HandshakeState()

        access_token = self.client.complete(self.request_token, "vc", state)

        self.assertEqual(access_token, AccessToken("at", "ats"))
        url, header, _ = self.sent()
        self.assertEqual(url, ENDPOINT + "/token&format=json")
        self.assertIn('oauth_verifier="vc"', header)
        self.assertIn('oauth_token="rt"', header)
        self.assertEqual(state.extra_params, {})

    def test_verifier_is_not_signed_into_later_calls(self):
        self.respond({'key': "at", 'secret': "ats"})
        state = HandshakeState()
        access_token = self.client.complete(self.request_token, "vc", state)

        self.client.make_oauth_call(access_token,
                                    "https://meta.wikimedia.org/w/api.php",
                                    state=state)
        self.assertNotIn("oauth_verifier", self.sent()[1])

    def test_server_error(self):
        self.respond({'error': "invalid_verifier", 'message': "bad code"})
        state = HandshakeState()
        with self.assertRaises(ServerError) as context:
            self.client.complete(self.request_token, "vc", state)
        self.assertIn("bad code", str(context.exception))
        self.assertEqual(context.exception.message, "bad code")
        self.assertEqual(state.extra_params, {})

    def test_missing_values(self):
        self.respond({'key': "at"})
        with self.assertRaises(ProtocolError):
            self.client.complete(self.request_token, "vc")

    def test_complete_from_query_string(self):
        self.respond({'key': "at", 'secret': "ats"})
        access_token = self.client.complete_from_query_string(
            self.request_token, "oauth_verifier=vc&oauth_token=rt")
        self.assertEqual(access_token, AccessToken("at", "ats"))
        self.assertIn('oauth_verifier="vc"', self.sent()[1])

    def test_query_string_for_other_token(self):
        with self.assertRaises(ProtocolError):
            self.client.complete_from_query_string(
                self.request_token, "oauth_verifier=vc&oauth_token=other")
        for response_qs in ["", "oauth_token=rt", None]:
            with self.assertRaises(ProtocolError):
                self.client.complete_from_query_string(self.request_token,
                                                       response_qs)
        self.transport.send.assert_not_called()


class IdentifyTestCase(ClientTestCase):
    access_token = AccessToken("at", "ats")

    def sign_identity(self, **overrides):
        def send(url, authorization_header, **kwargs):
            identity = identity_claims(nonce_of(authorization_header),
                                       **overrides)
            self.issued.append(identity)
            return jwt.encode(identity, SECRET, algorithm="HS256")
        self.issued = []
        self.transport.send.side_effect = send

    def test_identify(self):
        self.sign_identity()
        state = HandshakeState()

        identity = self.client.identify(self.access_token, state)

        self.assertEqual(identity, self.issued[0])
        url, header, _ = self.sent()
        self.assertEqual(url, ENDPOINT + "/identify")
        self.assertIn('oauth_token="at"', header)
        self.assertEqual(state.last_nonce, identity['nonce'])

    def test_invalid_claims(self):
        now = int(time.time())
        for overrides in [{'iss': "https://evil.example.org"},
                          {'aud': "otherconsumer"},
                          {'iat': now + 60},
                          {'exp': now - 60}]:
            self.sign_identity(**overrides)
            with self.assertRaises(VerificationError):
                self.client.identify(self.access_token)

    def test_replayed_identity(self):
        state = HandshakeState()
        self.respond({'batchcomplete': ""})
        self.client.make_oauth_call(self.access_token,
                                    "https://meta.wikimedia.org/w/api.php",
                                    state=state)
        earlier_nonce = state.last_nonce

        self.transport.send.return_value = jwt.encode(
            identity_claims(earlier_nonce), SECRET, algorithm="HS256")
        with self.assertRaises(VerificationError):
            self.client.identify(self.access_token, state)
        self.assertNotEqual(state.last_nonce, earlier_nonce)

    def test_bad_signature(self):
        self.transport.send.return_value = jwt.encode(
            identity_claims("whatever"), "fedcba9876543210fedcba9876543210",
            algorithm="HS256")
        with self.assertRaises(SignatureError):
            self.client.identify(self.access_token)

    def test_server_error(self):
        self.respond({'error': "mwoauth-invalid-authorization",
                      'message': "The authorization headers are invalid"})
        with self.assertRaises(ServerError):
            self.client.identify(self.access_token)

    def test_not_a_jwt(self):
        self.transport.send.return_value = "Something went wrong"
        with self.assertRaises(FormatError):
            self.client.identify(self.access_token)

    def test_bytes_response(self):
        send = Mock(side_effect=lambda url, authorization_header, **kwargs:
                    jwt.encode(identity_claims(nonce_of(authorization_header)),
                               SECRET, algorithm="HS256").encode('utf-8'))
        self.transport.send = send
        identity = self.client.identify(self.access_token)
        self.assertEqual(identity['username'], "alice")

        send.side_effect = None
        send.return_value = b'{"error": "mwoauth-invalid-authorization", ' \
                            b'"message": "The authorization headers are invalid"}'
        with self.assertRaises(ServerError) as context:
            self.client.identify(self.access_token)
        self.assertEqual(context.exception.error,
                         "mwoauth-invalid-authorization")

        send.return_value = b"\xff\xfe"
        with self.assertRaises(FormatError):
            self.client.identify(self.access_token)


class MakeOAuthCallTestCase(ClientTestCase):
    url = "https://meta.wikimedia.org/w/api.php?action=query&meta=userinfo"
    token = AccessToken("at", "ats")

    def setUp(self):
        super().setUp()
        self.respond({'batchcomplete': ""})

    def test_get(self):
        state = HandshakeState()
        body = self.client.make_oauth_call(self.token, self.url, state=state)

        self.assertEqual(json.loads(body), {'batchcomplete': ""})
        url, header, kwargs = self.sent()
        self.assertEqual(url, self.url)
        self.assertEqual(nonce_of(header), state.last_nonce)
        self.assertNotIn("action", header)
        self.assertEqual(kwargs['method'], "GET")

    def test_post_fields_are_signed(self):
        with patch.object(Request, "from_consumer_and_token",
                          wraps=Request.from_consumer_and_token) as factory:
            self.client.make_oauth_call(self.token, self.url, is_post=True,
                                        post_fields={'text': "hello world"})

        self.assertEqual(factory.call_args[0][4], {'text': "hello world"})
        _, _, kwargs = self.sent()
        self.assertEqual(kwargs, {'method': "POST",
                                  'body': {'text': "hello world"},
                                  'has_file': False})

    def test_files_are_not_signed(self):
        upload = {'file': io.BytesIO(b"GIF89a"), 'comment': "upload"}
        with patch.object(Request, "from_consumer_and_token",
                          wraps=Request.from_consumer_and_token) as factory:
            self.client.make_oauth_call(self.token, self.url, is_post=True,
                                        post_fields=upload)

        self.assertEqual(factory.call_args[0][4], {})
        _, _, kwargs = self.sent()
        self.assertTrue(kwargs['has_file'])
        self.assertIs(kwargs['body'], upload)

    def test_tuple_values_are_signed_fields(self):
        fields = {'tags': ("a", "b")}
        with patch.object(Request, "from_consumer_and_token",
                          wraps=Request.from_consumer_and_token) as factory:
            self.client.make_oauth_call(self.token, self.url, is_post=True,
                                        post_fields=fields)

        self.assertEqual(factory.call_args[0][4], fields)
        _, _, kwargs = self.sent()
        self.assertFalse(kwargs['has_file'])

    def test_upload_tuples_are_not_signed(self):
        for upload in [("a.gif", io.BytesIO(b"GIF89a")), ("a.gif", b"GIF89a"),
                       ("a.gif", b"GIF89a", "image/gif")]:
            with patch.object(Request, "from_consumer_and_token",
                              wraps=Request.from_consumer_and_token) as factory:
                self.client.make_oauth_call(
                    self.token, self.url, is_post=True,
                    post_fields={'file': upload, 'comment': "upload"})
            self.assertEqual(factory.call_args[0][4], {})
            self.assertTrue(self.sent()[2]['has_file'])

    def test_extra_params_are_signed(self):
        state = HandshakeState({'oauth_verifier': "vc"})
        self.client.make_oauth_call(self.token, self.url, state=state)
        self.assertIn('oauth_verifier="vc"', self.sent()[1])

    def test_states_are_independent(self):
        first, second = HandshakeState(), HandshakeState()
        self.client.make_oauth_call(self.token, self.url, state=first)
        self.client.make_oauth_call(self.token, self.url, state=second)
        self.assertIsNotNone(first.last_nonce)
        self.assertNotEqual(first.last_nonce, second.last_nonce)
        self.assertEqual(nonce_of(self.sent(0)[1]), first.last_nonce)

    def test_transport_failure(self):
        self.transport.send.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(TransportError) as context:
            self.client.make_oauth_call(self.token, self.url)
        self.assertIsInstance(context.exception.__cause__,
                              requests.ConnectionError)

    def test_transport_error_passes_through(self):
        error = TransportError("Empty HTTP response! Status: 502",
                               status_code=502)
        self.transport.send.side_effect = error
        with self.assertRaises(TransportError) as context:
            self.client.make_oauth_call(self.token, self.url)
        self.assertIs(context.exception, error)

    def test_bad_url(self):
        with self.assertRaises(FormatError):
            self.client.make_oauth_call(self.token, "not a url")
        self.transport.send.assert_not_called()

"""
Decoding and validation of the signed identity statement (a JWT) returned
by the server's ``/identify`` endpoint.

The server signs the token with the consumer secret using HS256.  Any other
declared algorithm, including ``none``, is refused so that an attacker can't
hand us an unsigned or differently signed statement.
"""
import binascii
import logging
import re
import time

from jwt.algorithms import get_default_algorithms
from jwt.utils import base64url_decode

from .errors import FormatError, SignatureError
from .helpers import decode_json

logger = logging.getLogger(__name__)

IAT_TOLERANCE = 2
"""
Number of seconds by which ``iat`` (token issue time) can be ahead of the
current time, to account for clock drift.
"""

ALLOWED_ALGORITHMS = ("HS256",)

BASE64URL_PATTERN = re.compile(r"^[A-Za-z0-9_-]*={0,2}\Z")


def urlsafe_b64decode(value):
    """
    Decodes a base64url value, padding it with ``=`` to a multiple of four
    characters first.  Characters outside the base64url alphabet are refused.
    """
    if not isinstance(value, str) or not BASE64URL_PATTERN.match(value):
        raise FormatError("Unable to decode base64 value: {0!r}".format(value))
    try:
        return base64url_decode(value)
    except (binascii.Error, TypeError, ValueError) as e:
        raise FormatError(
            "Unable to decode base64 value: {0!r}".format(value)) from e


def compare_hash(hash1, hash2):
    """
    Constant time comparison of two byte strings.  Every byte position of
    the shorter input is examined whatever the outcome, and inputs of
    different lengths never match.
    """
    if isinstance(hash1, str):
        hash1 = hash1.encode('utf-8')
    if isinstance(hash2, str):
        hash2 = hash2.encode('utf-8')
    result = len(hash1) ^ len(hash2)
    for byte1, byte2 in zip(hash1, hash2):
        result |= byte1 ^ byte2
    return result == 0


def decode_jwt(token, secret):
    """
    Decodes a compact JWT and checks its signature.

    :Parameters:
        token : `str` | `bytes`
            ``header.payload.signature``, each part base64url encoded
        secret : `str`
            The shared secret (the consumer secret)

    :Returns:
        The payload as a `dict`
    """
    if isinstance(token, bytes):
        try:
            token = token.decode('utf-8')
        except UnicodeDecodeError as e:
            raise FormatError("JWT is not valid UTF-8") from e
    segments = token.strip().split(".")
    if len(segments) != 3:
        raise FormatError(
            "JWT has incorrect format. Received: {0}".format(token))
    header_segment, payload_segment, signature_segment = segments

    header = decode_json(urlsafe_b64decode(header_segment))
    payload = decode_json(urlsafe_b64decode(payload_segment))
    signature = urlsafe_b64decode(signature_segment)

    algorithm_name = header.get('alg')
    if algorithm_name not in ALLOWED_ALGORITHMS:
        logger.warning("Refusing identity token declaring alg=%r",
                       algorithm_name)
        raise SignatureError("Invalid JWT signature from /identify.")

    algorithm = get_default_algorithms()[algorithm_name]
    signing_input = "{0}.{1}".format(header_segment, payload_segment)
    expected = algorithm.sign(signing_input.encode('utf-8'),
                              algorithm.prepare_key(secret))
    if not compare_hash(signature, expected):
        logger.warning("Identity token signature mismatch")
        raise SignatureError("Invalid JWT signature from /identify.")

    return payload


def _timestamp(value):
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def validate_jwt(identity, consumer_key, canonical_server, nonce,
                 leeway=IAT_TOLERANCE, now=None):
    """
    Checks the claims of a decoded identity statement.  Each failing check
    is logged; the caller only learns whether all of them passed.

    :Parameters:
        identity : `dict`
            The decoded payload
        consumer_key : `str`
            Expected audience (``aud``)
        canonical_server : `str`
            Expected issuer (``iss``)
        nonce : `str`
            The ``oauth_nonce`` of the call that fetched the statement
        leeway : `int` | `float`
            Seconds ``iat`` may lie in the future
        now : `int`
            Current Unix time, defaults to the system clock

    :Returns:
        `True` if every claim is valid
    """
    if now is None:
        now = int(time.time())
    valid = True

    # The server sends its canonical URL as the issuer.
    if identity.get('iss') != canonical_server:
        logger.info("Invalid issuer %r: expected %r",
                    identity.get('iss'), canonical_server)
        valid = False

    if identity.get('aud') != consumer_key:
        logger.info("Invalid audience %r: expected %r",
                    identity.get('aud'), consumer_key)
        valid = False

    issued_at = _timestamp(identity.get('iat'))
    expires = _timestamp(identity.get('exp'))
    if issued_at is None or expires is None or \
            issued_at > now + leeway or expires < now:
        logger.info("Invalid times issued=%r, expires=%r, now=%r",
                    identity.get('iat'), identity.get('exp'), now)
        valid = False

    # A nonce other than the one we just sent means a replayed response.
    if nonce is None or identity.get('nonce') != nonce:
        logger.info("Invalid nonce %r: expected %r",
                    identity.get('nonce'), nonce)
        valid = False

    return valid

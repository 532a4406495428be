import json
import logging

from .errors import FormatError

logger = logging.getLogger(__name__)


def to_text(data):
    """Decodes a `bytes` response body as UTF-8, raising `FormatError`."""
    if isinstance(data, (bytes, bytearray)):
        try:
            return bytes(data).decode('utf-8')
        except UnicodeDecodeError as e:
            logger.error("Server response is not valid UTF-8: %r", data)
            raise FormatError(
                "Decoding server response failed: {0}".format(e)) from e
    return data


def is_file(value):
    """
    Whether a POST field is an upload: a file-like object, `bytes`, or a
    requests-style ``(filename, fileobj, ...)`` tuple.
    """
    if hasattr(value, 'read') or isinstance(value, (bytes, bytearray)):
        return True
    return isinstance(value, tuple) and len(value) >= 2 and \
        (hasattr(value[1], 'read') or isinstance(value[1], (bytes, bytearray)))


def decode_json(data):
    """
    Like `json.loads`, but requires the document to be a JSON object and
    reports every failure as a `FormatError`.
    """
    data = to_text(data)
    try:
        decoded = json.loads(data)
    except (TypeError, ValueError) as e:
        logger.error("Failed to decode server response as JSON: %s "
                     "(raw response: %r)", e, data)
        raise FormatError("Decoding server response failed: {0} "
                          "(Raw response: {1})".format(e, data)) from e

    if not isinstance(decoded, dict):
        logger.error("Server response is not a JSON object: %r", data)
        raise FormatError("Decoding server response failed: Response must "
                          "be an object (Raw response: {0})".format(data))
    return decoded

"""
Runs an OAuth handshake from the command line, reading the server and
consumer settings from ``MWOAUTH_*`` environment variables.

    python -m mwoauthclient [--identify] [--log-level LEVEL]
"""
import argparse
import json
import logging
import sys

from .client import Client
from .config import ClientConfig
from .errors import OAuthException
from .functions import verifier_from_query_string
from .log import configure_logging
from .state import HandshakeState

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="mwoauthclient",
        description="Obtain an OAuth access token for a MediaWiki user.")
    parser.add_argument(
        "--identify", action="store_true",
        help="Also fetch and verify the user's identity.")
    parser.add_argument(
        "--log-level", default=None,
        help="Logging level (defaults to $MWOAUTH_LOG_LEVEL or INFO).")
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        client = Client(ClientConfig.from_env())
        state = HandshakeState()

        redirect, request_token = client.initiate(state)
        print("Point your browser to: {0}".format(redirect))
        response = input("Verification code or callback URL: ").strip()
        if "oauth_verifier=" in response:
            verifier = verifier_from_query_string(
                request_token, response.split("?", 1)[-1])
        else:
            verifier = response

        access_token = client.complete(request_token, verifier, state)
        print("Access token: {0}".format(access_token.key))

        if args.identify:
            identity = client.identify(access_token, state)
            print(json.dumps(identity, indent=2, sort_keys=True))
    except OAuthException as e:
        logger.debug("Handshake failed", exc_info=True)
        print("Error ({0}): {1}".format(e.kind.value, e), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

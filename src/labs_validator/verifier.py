import logging

import jwt

from .errors import (
    ExpiredTokenError,
    InvalidSignatureError,
    MalformedTokenError,
)
from .keys import EmbeddedKeyProvider
from .model import InboundClaims, OutboundClaims


logger = logging.getLogger(__name__)

DEFAULT_ALGORITHMS = ["RS256", "RS384", "RS512"]


class TokenVerifier:
    """
    Checks signed tokens against the trusted RSA key.

    A token only produces claims if its signature, algorithm and
    exp/nbf claims all check out; otherwise a CryptoError subclass is
    raised and nothing from the payload is returned.
    """

    def __init__(self, key, algorithms=None, leeway=0):
        self.key = key
        if algorithms is None:
            algorithms = DEFAULT_ALGORITHMS
        self.algorithms = list(algorithms)
        self.leeway = leeway

    @classmethod
    def from_provider(cls, provider=None, algorithms=None, leeway=0):
        if provider is None:
            provider = EmbeddedKeyProvider()
        return cls(provider.signing_key(), algorithms=algorithms, leeway=leeway)

    def verify(self, token):
        if not isinstance(token, str) or not token.strip():
            raise MalformedTokenError("Parsing claims from jwt - 'token is empty'")

        try:
            payload = jwt.decode(
                token.strip(),
                key=self.key,
                algorithms=self.algorithms,
                leeway=self.leeway,
                options={"verify_aud": False},
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError(_describe(exc)) from exc
        except jwt.ImmatureSignatureError as exc:
            raise ExpiredTokenError(_describe(exc)) from exc
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as exc:
            raise InvalidSignatureError(_describe(exc)) from exc
        except jwt.InvalidTokenError as exc:
            raise MalformedTokenError(_describe(exc)) from exc

        if not isinstance(payload, dict):
            raise MalformedTokenError("invalid jwt")

        logger.debug("verified token claims: %r", payload)

        return payload

    def verify_inbound(self, token):
        return InboundClaims.from_payload(self.verify(token))

    def verify_outbound(self, token):
        return OutboundClaims.from_payload(self.verify(token))


def _describe(exc):
    return "Parsing claims from jwt - '{}'".format(exc)

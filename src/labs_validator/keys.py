import logging
from functools import lru_cache

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .errors import MalformedKeyError


logger = logging.getLogger(__name__)


# Public half of the key the labs service signs its tokens with.
EMBEDDED_PUBLIC_KEY_PEM = """
-----BEGIN PUBLIC KEY-----
MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8AMIIBCgKCAQEA0cjxlhAMct2J6OJfTf6s
cPZGf7wmeJ+LvNsj3G1irZpKFPBn0C3GF74VOADYN2oipQWJo2i0hdyc6rRjMXUV
bUGDOwQKEsr+rLx7WC2L/Jea7s7POgiDLmI0jod47c1C3Ph2GGdQ+n7D2d2n2j9T
ENOMYdVFh3GzqqYXKmSb9C5R5hTjKT50WZGgHKJ8d0egBMveqGt8gVxMHEW48SWC
5CtHl6an7FayzIL96/YEbHRLoWHOlpxJOnHw+fZ17ONa7LpF/KmgM2Wpc4qG6PUV
ezweTW/yLdaLrKxZOj1SUJuQ3oM3FJLc48eQ8lSUy9nsDCdfM/ZDtk9eecX0G+SI
KQIDAQAB
-----END PUBLIC KEY-----
"""


class TrustedKeyProvider:
    """
    Source of the PEM block that tokens are verified against.
    Subclasses decide where the PEM comes from; the parsed key is cached.
    """

    def pem(self):
        raise NotImplementedError

    def signing_key(self):
        return load_signing_key(self.pem())


class EmbeddedKeyProvider(TrustedKeyProvider):
    def pem(self):
        return EMBEDDED_PUBLIC_KEY_PEM


class StaticKeyProvider(TrustedKeyProvider):
    def __init__(self, pem):
        if isinstance(pem, bytes):
            pem = pem.decode("ascii")
        self._pem = pem

    def pem(self):
        return self._pem


@lru_cache(maxsize=None)
def load_signing_key(pem):
    """
    Parse a PEM encoded SubjectPublicKeyInfo block into an RSA public key.
    Parsed once per distinct PEM for the life of the process.
    """
    text = pem.strip()
    if "-----BEGIN" not in text:
        raise MalformedKeyError("no PEM block found in trusted key material")

    try:
        key = serialization.load_pem_public_key(text.encode("ascii"))
    except (ValueError, TypeError, UnicodeEncodeError) as exc:
        raise MalformedKeyError("error parsing PEM block: {}".format(exc)) from exc

    if not isinstance(key, rsa.RSAPublicKey):
        raise MalformedKeyError(
            "trusted key must be an RSA public key, got {}".format(type(key).__name__)
        )

    logger.debug("loaded RSA public key (%d bits)", key.key_size)

    return key

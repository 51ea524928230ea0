import time

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from labs_validator.exchange import ResultExchanger
from labs_validator.keys import StaticKeyProvider
from labs_validator.verifier import TokenVerifier


CALLBACK_URL = "https://labs.example.test/exercise/squirrel/scm_api_callback"
VALIDATION_URL = "https://labs.example.test/validate"


def _generate_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _public_pem(private_key):
    pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return pem.decode("ascii")


@pytest.fixture(scope="session")
def signing_key():
    return _generate_key()


@pytest.fixture(scope="session")
def rogue_key():
    return _generate_key()


@pytest.fixture(scope="session")
def public_pem(signing_key):
    return _public_pem(signing_key)


@pytest.fixture
def verifier(public_pem):
    return TokenVerifier.from_provider(StaticKeyProvider(public_pem))


@pytest.fixture
def make_token(signing_key):
    def _make(claims, key=None, algorithm="RS256", lifetime=300):
        now = int(time.time())
        payload = {
            "sub": "student",
            "iss": "labs",
            "iat": now,
            "exp": now + lifetime,
        }
        payload.update(claims)
        if key is None:
            key = signing_key
        return jwt.encode(payload, key, algorithm=algorithm)

    return _make


@pytest.fixture
def scm_token(make_token):
    return make_token({"Lstate": "scm_token", "Lcb": CALLBACK_URL, "Lname": "squirrel"})


@pytest.fixture
def validation_token(make_token):
    return make_token({"Lstate": "validation_token", "Lvurl": VALIDATION_URL, "Lname": "squirrel"})


class RecordingHandler:
    """MockTransport handler that replays one canned reply and keeps the requests."""

    def __init__(self, json_body=None, status_code=200, content=None, error=None):
        self.json_body = json_body
        self.status_code = status_code
        self.content = content
        self.error = error
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error(request)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.json_body)


@pytest.fixture
def make_exchanger():
    def _make(handler, timeout=30.0):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return ResultExchanger(timeout=timeout, client=client)

    return _make

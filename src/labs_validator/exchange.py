"""httpx-backed exchange with the labs verification service."""

import json
import logging
import time

import httpx

from . import __version__
from .errors import ExchangeTimeout, NetworkError, ProtocolError
from .model import ExchangeEnvelope, ExchangeResponse
from .utils import b64encode_payload

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
MAX_REDIRECTS = 10
USER_AGENT = "labs-validator/{}".format(__version__)


class ResultExchanger:
    """
    Posts one envelope per call and parses the reply.

    `timeout` is a single deadline for the whole call, from connecting to
    reading the last byte of the body. There are no retries: a timeout or
    connection problem is raised straight away. The HTTP status is not
    inspected, only the body decides the outcome.
    """

    def __init__(self, timeout=DEFAULT_TIMEOUT, client=None):
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        if self._owns_client:
            self._client.close()

    def build_body(self, auth_token, payload):
        envelope = ExchangeEnvelope(auth=auth_token, data=b64encode_payload(payload))
        logger.debug("envelope to be sent to labs validator: %r", envelope)
        return json.dumps(envelope.to_dict()).encode("utf-8")

    def send(self, endpoint, auth_token, payload):
        if not endpoint:
            raise NetworkError("Sending HTTP request - 'no exchange endpoint'")

        body = self.build_body(auth_token, payload)
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

        deadline = time.monotonic() + self.timeout

        try:
            with self._client.stream(
                "POST",
                endpoint,
                content=body,
                headers=headers,
                timeout=self.timeout,
                follow_redirects=True,
            ) as resp:
                status_code = resp.status_code
                raw = self._read_body(resp, deadline)
        except httpx.TimeoutException as exc:
            raise ExchangeTimeout("Sending HTTP request - '{}'".format(exc)) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError("Sending HTTP request - '{}'".format(exc)) from exc

        logger.debug("result body (HTTP %s): %r", status_code, raw)

        return parse_response(raw)

    def _read_body(self, resp, deadline):
        content = bytearray()
        try:
            _check_deadline(deadline, self.timeout)
            for chunk in resp.iter_bytes():
                content.extend(chunk)
                _check_deadline(deadline, self.timeout)
        except httpx.TimeoutException as exc:
            raise ExchangeTimeout("Reading HTTP response - '{}'".format(exc)) from exc
        except httpx.HTTPError as exc:
            raise NetworkError("Reading HTTP response - '{}'".format(exc)) from exc
        return bytes(content)


def _check_deadline(deadline, timeout):
    if time.monotonic() > deadline:
        raise ExchangeTimeout(
            "Reading HTTP response - 'exceeded the {:g}s deadline'".format(timeout)
        )


def parse_response(raw):
    """Decode a response body. Same bytes always give the same result."""
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise ProtocolError("parsing response json - '{}'".format(exc)) from exc

    try:
        parsed = ExchangeResponse.from_dict(data)
    except ProtocolError as exc:
        raise ProtocolError("parsing response json - '{}'".format(exc)) from exc

    logger.debug("parsed results: %r", parsed)
    return parsed

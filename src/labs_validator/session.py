import logging
from enum import Enum

from .claims import resolve_callback, resolve_follow_up
from .errors import RemoteRejection
from .exchange import ResultExchanger
from .utils import b64url_token
from .verifier import TokenVerifier


logger = logging.getLogger(__name__)

SUCCESS_TEMPLATE = (
    "labs validation success!\n"
    "Visit {url}?{token} or visit {url} and enter this token to continue:\n"
    "\n"
    "{token}\n"
    "\n"
)


class SessionState(Enum):
    INIT = "init"
    CALLBACK_RESOLVED = "callback_resolved"
    EXCHANGED = "exchanged"
    FAILED = "failed"
    FOLLOW_UP_RESOLVED = "follow_up_resolved"


class Session:
    """
    One validation run: verify the auth token, send the payload to the
    callback it names, then verify the token that comes back.

    Any exception leaves the session in FAILED; nothing is retried.
    """

    def __init__(self, auth_token, verifier=None, exchanger=None, endpoint_override=None):
        self.auth_token = auth_token
        if verifier is None:
            verifier = TokenVerifier.from_provider()
        self.verifier = verifier
        if exchanger is None:
            exchanger = ResultExchanger()
        self.exchanger = exchanger
        self.endpoint_override = endpoint_override

        self.state = SessionState.INIT
        self.exchange_url = ""
        self.validation_url = ""
        self.name = ""
        self.response = None

    def resolve_callback(self):
        self._expect(SessionState.INIT)

        claims = self._guard(self.verifier.verify_inbound, self.auth_token)
        self.name = claims.name
        url = resolve_callback(claims)
        if url == "":
            logger.debug("token state %r carries no usable callback", claims.state)

        if self.endpoint_override is not None:
            logger.debug("using exchange endpoint override %s", self.endpoint_override)
            url = self.endpoint_override

        self.exchange_url = url
        self.state = SessionState.CALLBACK_RESOLVED
        return url

    def exchange(self, payload):
        self._expect(SessionState.CALLBACK_RESOLVED)

        response = self._guard(self.exchanger.send, self.exchange_url, self.auth_token, payload)
        self.response = response
        self.state = SessionState.EXCHANGED
        return response

    def complete(self, response=None):
        """
        Turn the exchange response into the message for the user.

        Raises RemoteRejection when the service reported an error. Returns
        None when the response carried neither an error nor a result.
        """
        self._expect(SessionState.EXCHANGED)
        if response is None:
            response = self.response

        if response.error != "":
            self.state = SessionState.FAILED
            raise RemoteRejection(response.error, response.findings)

        if response.result == "":
            logger.warning("labs validator returned neither a result nor an error")
            return None

        claims = self._guard(self.verifier.verify_outbound, response.result)
        self.validation_url = resolve_follow_up(claims)
        self.state = SessionState.FOLLOW_UP_RESOLVED

        return success_message(self.validation_url, response.result)

    def run(self, payload):
        if self.state is SessionState.INIT:
            self.resolve_callback()
        self.exchange(payload)
        return self.complete()

    def _expect(self, state):
        if self.state is not state:
            raise RuntimeError(
                "session is in state {}, expected {}".format(self.state.value, state.value)
            )

    def _guard(self, func, *args):
        try:
            return func(*args)
        except Exception:
            self.state = SessionState.FAILED
            raise


def success_message(validation_url, result_token):
    encoded = b64url_token(result_token)
    return SUCCESS_TEMPLATE.format(url=validation_url, token=encoded)

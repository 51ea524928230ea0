"""
labs-validator: submit scanner and config results to the labs validation
service and turn its signed verdict into a follow-up link.
"""

__version__ = "0.3.0"

from .errors import (  # noqa: E402
    ConfigError,
    CryptoError,
    LabsIOError,
    LabsValidatorError,
    NetworkError,
    ProtocolError,
    RemoteRejection,
)
from .exchange import ResultExchanger  # noqa: E402
from .keys import EmbeddedKeyProvider, StaticKeyProvider, TrustedKeyProvider  # noqa: E402
from .session import Session, SessionState  # noqa: E402
from .verifier import TokenVerifier  # noqa: E402

__all__ = [
    "ConfigError",
    "CryptoError",
    "EmbeddedKeyProvider",
    "LabsIOError",
    "LabsValidatorError",
    "NetworkError",
    "ProtocolError",
    "RemoteRejection",
    "ResultExchanger",
    "Session",
    "SessionState",
    "StaticKeyProvider",
    "TokenVerifier",
    "TrustedKeyProvider",
    "__version__",
]

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from .errors import MalformedTokenError, ProtocolError


FINDING_FIELDS = ("type", "id", "title", "message", "description", "severity")


@dataclass
class Finding:
    type: str = ""
    id: str = ""
    title: str = ""
    message: str = ""
    description: str = ""
    severity: str = ""

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ProtocolError("finding must be a JSON object, got {}".format(type(data).__name__))

        values = {}
        for name in FINDING_FIELDS:
            values[name] = _optional_str(data, name)
        return cls(**values)


@dataclass
class ExchangeEnvelope:
    auth: str
    data: str  # base64 of the payload

    def to_dict(self):
        return asdict(self)


@dataclass
class ExchangeResponse:
    """
    Parsed reply of the verification service.

    `error` and `result` are independent: either, both or neither may be
    set, so callers have to look at each of them. `findings` is None when
    the reply had no findings list at all.
    """

    result: str = ""
    error: str = ""
    findings: Optional[List[Finding]] = None

    @classmethod
    def from_dict(cls, data):
        if data is None:
            return cls()

        if not isinstance(data, dict):
            raise ProtocolError("response must be a JSON object, got {}".format(type(data).__name__))

        raw_findings = data.get("findings")
        if raw_findings is None:
            return cls(
                result=_optional_str(data, "result"),
                error=_optional_str(data, "error"),
            )
        if not isinstance(raw_findings, list):
            raise ProtocolError("'findings' must be a list")

        findings = []
        for item in raw_findings:
            findings.append(Finding.from_dict(item))

        return cls(
            result=_optional_str(data, "result"),
            error=_optional_str(data, "error"),
            findings=findings,
        )


# Custom claim names as issued by the labs service.
CLAIM_STATE = "Lstate"
CLAIM_CALLBACK = "Lcb"
CLAIM_VALIDATION_URL = "Lvurl"
CLAIM_NAME = "Lname"

STANDARD_CLAIMS = ("sub", "exp", "nbf", "iat", "iss", "aud", "jti")


@dataclass
class InboundClaims:
    state: str = ""
    callback: str = ""
    name: str = ""
    standard: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload):
        return cls(
            state=_claim_str(payload, CLAIM_STATE),
            callback=_claim_str(payload, CLAIM_CALLBACK),
            name=_claim_str(payload, CLAIM_NAME),
            standard=_standard_claims(payload),
        )


@dataclass
class OutboundClaims:
    state: str = ""
    validation_url: str = ""
    name: str = ""
    standard: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload):
        return cls(
            state=_claim_str(payload, CLAIM_STATE),
            validation_url=_claim_str(payload, CLAIM_VALIDATION_URL),
            name=_claim_str(payload, CLAIM_NAME),
            standard=_standard_claims(payload),
        )


def _claim_str(payload, key):
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedTokenError(
            "Parsing claims from jwt - 'claim {} must be a string'".format(key)
        )
    return value


def _standard_claims(payload):
    standard = {}
    for key in STANDARD_CLAIMS:
        if key in payload:
            standard[key] = payload[key]
    return standard


def _optional_str(data, key):
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ProtocolError("'{}' must be a string, got {}".format(key, type(value).__name__))
    return value

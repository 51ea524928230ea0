class LabsValidatorError(Exception):
    """
    Base class for every failure the validator reports to the user.
    All of them end the invocation with exit code 1.
    """


class ConfigError(LabsValidatorError):
    pass


class LabsIOError(LabsValidatorError):
    pass


class FileReadError(LabsIOError):
    pass


class NetworkError(LabsIOError):
    pass


class ExchangeTimeout(NetworkError):
    pass


class CryptoError(LabsValidatorError):
    pass


class MalformedKeyError(CryptoError):
    pass


class InvalidSignatureError(CryptoError):
    pass


class ExpiredTokenError(CryptoError):
    pass


class MalformedTokenError(CryptoError):
    pass


class ProtocolError(LabsValidatorError):
    pass


class RemoteRejection(LabsValidatorError):
    """
    The service answered properly but refused the submitted results.
    Carries the findings it sent back so they can be shown to the user.
    """

    def __init__(self, message, findings=None):
        super().__init__(message)
        self.message = message
        self.findings = findings

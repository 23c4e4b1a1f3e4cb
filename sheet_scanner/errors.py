"""Error taxonomy shared by the HTTP adapter and the analysis client.

Two families exist:
    - `InputRejected`: caller mistakes (method, missing file, type, size).
      Mapped to 4xx envelopes and never logged as analysis failures.
    - `AnalysisError`: anything that goes wrong once a valid upload is handed
      to the model. Mapped to a generic 500 envelope; the cause is kept for
      server-side logs and the development-mode `error` field.
"""


class InputRejected(Exception):
    """Upload rejected before any model call."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AnalysisError(Exception):
    """Analysis of a staged image failed."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class ConfigurationError(AnalysisError):
    """Credential or model configuration is missing."""


class UpstreamRequestError(AnalysisError):
    """The model call itself failed (network, HTTP status, quota, credential)."""


class UpstreamParseError(AnalysisError):
    """The model answered with text that is not JSON."""


class MalformedAnswerMapError(AnalysisError):
    """The model answered with JSON that is not a valid Answer Map."""

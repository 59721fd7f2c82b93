"""Error taxonomy shared by the adapter, the phase runner and the HTTP layer."""

from __future__ import annotations


class ResumeAnalyzerError(Exception):
    """Base class for every failure raised by resume_analyzer."""


class InputValidationError(ResumeAnalyzerError):
    """Request rejected before any model call (length bounds, missing fields)."""


class ConfigurationError(ResumeAnalyzerError):
    """No credential could be resolved for the selected provider."""


class VendorError(ResumeAnalyzerError):
    """The provider SDK or the network failed."""

    def __init__(self, provider: str, message: str, *, retryable: bool = False):
        super().__init__(f"{provider} request failed: {message}")
        self.provider = provider
        self.message = message
        self.retryable = retryable


class StreamInterruptedError(VendorError):
    """A streaming response failed after it had started."""


class DeadlineExceededError(ResumeAnalyzerError):
    """The provider did not answer within the configured timeout."""

    def __init__(self, provider: str, timeout: float | None):
        super().__init__(f"{provider} request exceeded {timeout}s deadline")
        self.provider = provider
        self.timeout = timeout


class EmptyResponseError(ResumeAnalyzerError):
    def __init__(self, phase: str, provider: str):
        super().__init__(f"Empty {phase} phase response from {provider}")
        self.phase = phase
        self.provider = provider


class PhaseParseError(ResumeAnalyzerError):
    """The model answered, but the text is not a valid result for the phase.

    Keeps the raw and cleaned text so callers can diagnose without
    re-running the model.
    """

    def __init__(
        self,
        *,
        phase: str,
        provider: str,
        raw: str,
        cleaned: str,
        original_error: Exception,
    ):
        super().__init__(f"Failed to parse {phase} phase response: {original_error}")
        self.phase = phase
        self.provider = provider
        self.raw = raw
        self.cleaned = cleaned
        self.original_error = original_error

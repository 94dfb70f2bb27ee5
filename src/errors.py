"""Error taxonomy for the voice pipeline.

Every failure the pipeline can surface inherits from VoiceError, so the
orchestrator catches one type and the Telegram layer reports one outcome.
"No speech detected" is not an error: it is an empty transcript.
"""
from typing import Optional


class VoiceError(Exception):
    """Base error carrying a human-readable prefix and the underlying cause."""

    prefix = "Voice pipeline failed"

    def __init__(self, detail: str, cause: Optional[BaseException] = None) -> None:
        self.detail = detail
        self.cause = cause
        super().__init__(f"{self.prefix}: {detail}")


class AuthError(VoiceError):
    """OAuth token issuance failed (network, timeout, bad response, no token)."""

    prefix = "Sber authentication failed"


class TranscriptionError(VoiceError):
    """Recognition call failed, either for a non-401 reason or after the one retry."""

    prefix = "Sber transcription failed"

    def __init__(
        self,
        detail: str,
        cause: Optional[BaseException] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(detail, cause)


class ConversionError(VoiceError):
    """The transcoder exited with an error or its streams broke."""

    prefix = "Audio conversion failed"


class StreamError(ConversionError):
    """A pipe to or from the transcoder failed mid-stream."""

    prefix = "Stream error"

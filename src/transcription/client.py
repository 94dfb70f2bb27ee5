"""TranscriptionClient — abstract base for speech-to-text backends."""
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    confidence: float = 0.0


class TranscriptionClient(ABC):
    @abstractmethod
    async def transcribe(self, audio: bytes) -> str:
        """Convert encoded audio bytes to text.

        Returns "" when no speech is detected. Raises VoiceError on failure.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources held by the backend."""
        return None

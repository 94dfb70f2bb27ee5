"""SberTranscriptionClient — Sber SmartSpeech speech-to-text backend.

Every recognition call is authenticated with a bearer token from TokenCache.
A 401 on the first attempt means the server dropped the token early: the
cache is invalidated and the request is repeated exactly once.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from src.constants import (
    MSG_TRANSCRIBE_DONE,
    MSG_TRANSCRIBE_NO_SPEECH,
    MSG_TRANSCRIBE_RETRY,
    MSG_TRANSCRIBE_RETRY_FAILED,
    MSG_TRANSCRIBE_SENDING,
    SBER_AUDIO_CONTENT_TYPE,
    SBER_RECOGNIZE_URL,
    SBER_SPEECH_TIMEOUT,
)
from src.errors import TranscriptionError
from src.transcription.client import RecognitionResult, TranscriptionClient
from src.transcription.token_cache import TokenCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecognitionRequest:
    audio: bytes
    content_type: str = SBER_AUDIO_CONTENT_TYPE


def parse_recognition(payload: Any) -> RecognitionResult:
    """Normalize a recognize response: `result` may be a string or a list of segments."""
    match payload:
        case {"result": str() as text}:
            pass
        case {"result": [*segments]} if segments:
            text = " ".join("" if s is None else str(s) for s in segments)
        case _:
            text = ""

    match payload:
        case {"confidence": int() | float() as c} if not isinstance(c, bool):
            confidence = float(c)
        case _:
            confidence = 0.0

    return RecognitionResult(text=text, confidence=confidence)


class SberTranscriptionClient(TranscriptionClient):

    def __init__(
        self,
        client_secret: str,
        *,
        verify_ssl: bool = True,
        http_client: Optional[httpx.AsyncClient] = None,
        url: str = SBER_RECOGNIZE_URL,
        timeout: float = SBER_SPEECH_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(verify=verify_ssl)
        self._url = url
        self._timeout = timeout
        self._tokens = TokenCache(client_secret, self._http, clock=clock)

    @property
    def tokens(self) -> TokenCache:
        return self._tokens

    async def transcribe(self, audio: bytes) -> str:
        result = await self.recognize(audio)
        match result.text.strip():
            case "":
                logger.info(MSG_TRANSCRIBE_NO_SPEECH)
                return ""
            case text:
                return text

    async def recognize(self, audio: bytes) -> RecognitionResult:
        return await self._recognize(RecognitionRequest(audio=audio), retry=False)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _recognize(self, request: RecognitionRequest, retry: bool) -> RecognitionResult:
        token = await self._tokens.get_token()
        logger.info(MSG_TRANSCRIBE_SENDING, len(request.audio))
        try:
            response = await self._http.post(
                self._url,
                content=request.audio,
                headers={
                    "Authorization": f"Bearer {token.value}",
                    "Content-Type": request.content_type,
                },
                timeout=self._timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            match (status, retry):
                case (401, False):
                    logger.warning(MSG_TRANSCRIBE_RETRY)
                    self._tokens.invalidate()
                    return await self._recognize(request, retry=True)
                case (401, True):
                    logger.error(MSG_TRANSCRIBE_RETRY_FAILED)
                case _:
                    pass
            raise TranscriptionError(
                f"recognition endpoint returned {status}", cause=exc, status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            raise TranscriptionError(str(exc) or type(exc).__name__, cause=exc) from exc
        except ValueError as exc:
            raise TranscriptionError("recognition response is not valid JSON", cause=exc) from exc

        result = parse_recognition(payload)
        logger.info(MSG_TRANSCRIBE_DONE, result.confidence)
        return result

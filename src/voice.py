"""VoicePipeline — OGG voice note → MP3 → Sber transcript."""
import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional

from src.audio.converter import AudioConverter
from src.config import Config
from src.errors import VoiceError
from src.transcription.client import TranscriptionClient
from src.transcription.sber import SberTranscriptionClient

logger = logging.getLogger(__name__)


class VoicePipeline:
    """Runs conversion then transcription; failures become None, never raise."""

    def __init__(self, converter: AudioConverter, transcriber: TranscriptionClient) -> None:
        self._converter = converter
        self._transcriber = transcriber

    @property
    def transcriber(self) -> TranscriptionClient:
        return self._transcriber

    async def transcribe_voice(self, ogg: bytes) -> Optional[str]:
        logger.info("[Voice] Received OGG voice note: %d bytes", len(ogg))
        try:
            mp3 = await self._converter.convert_ogg_to_mp3(ogg)
            logger.info("[Voice] Converted to MP3: %d bytes", len(mp3))
            return await self._transcriber.transcribe(mp3)
        except VoiceError:
            logger.exception("Voice transcription failed")
            return None

    async def transcribe_file(self, path: Path) -> Optional[str]:
        try:
            ogg = await asyncio.to_thread(Path(path).read_bytes)
        except OSError as exc:
            logger.error("Cannot read voice file %s: %s", path, exc)
            return None
        return await self.transcribe_voice(ogg)

    async def aclose(self) -> None:
        await self._transcriber.aclose()


def build_voice_pipeline(config: Config) -> Optional[VoicePipeline]:
    """Return a pipeline, or None when voice transcription is not configured."""
    match (config.transcription_configured, shutil.which(config.ffmpeg_path)):
        case (False, _):
            logger.warning("Sber transcription not configured — voice disabled")
            return None
        case (True, None):
            logger.warning("%s not found on PATH — voice disabled", config.ffmpeg_path)
            return None
        case (True, ffmpeg):
            return VoicePipeline(
                AudioConverter(ffmpeg, timeout=config.conversion_timeout),
                SberTranscriptionClient(
                    config.sber_client_secret, verify_ssl=config.sber_verify_ssl
                ),
            )

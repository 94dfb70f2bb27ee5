"""AudioConverter — streams audio through an ffmpeg subprocess."""
import asyncio
import logging
from typing import Optional

from src.constants import (
    CONVERSION_DEFAULT_TIMEOUT,
    FFMPEG_CHUNK_SIZE,
    FFMPEG_DEFAULT_PATH,
    VOICE_SOURCE_FORMAT,
    VOICE_TARGET_BITRATE,
    VOICE_TARGET_FORMAT,
)
from src.errors import ConversionError, StreamError

logger = logging.getLogger(__name__)


def build_ffmpeg_args(
    ffmpeg: str, source_format: str, target_format: str, bitrate: str
) -> list[str]:
    return [
        ffmpeg,
        "-hide_banner",
        "-loglevel", "error",
        "-f", source_format,
        "-i", "pipe:0",
        "-vn",
        "-f", target_format,
        "-b:a", bitrate,
        "pipe:1",
    ]


async def _feed(stdin: asyncio.StreamWriter, data: bytes) -> Optional[OSError]:
    """Write the source; a broken pipe is returned so stderr can still be read."""
    try:
        stdin.write(data)
        await stdin.drain()
    except (BrokenPipeError, ConnectionResetError) as exc:
        return exc
    finally:
        stdin.close()
    return None


async def _drain(stdout: asyncio.StreamReader) -> list[bytes]:
    chunks: list[bytes] = []
    while chunk := await stdout.read(FFMPEG_CHUNK_SIZE):
        chunks.append(chunk)
    return chunks


class AudioConverter:
    """Stateless transcoder front-end; output is returned only on clean exit."""

    def __init__(
        self,
        ffmpeg_path: str = FFMPEG_DEFAULT_PATH,
        timeout: float = CONVERSION_DEFAULT_TIMEOUT,
    ) -> None:
        self._ffmpeg = ffmpeg_path
        self._timeout = timeout

    async def convert_ogg_to_mp3(self, source: bytes) -> bytes:
        return await self.convert(
            source, VOICE_SOURCE_FORMAT, VOICE_TARGET_FORMAT, VOICE_TARGET_BITRATE
        )

    async def convert(
        self, source: bytes, source_format: str, target_format: str, bitrate: str
    ) -> bytes:
        args = build_ffmpeg_args(self._ffmpeg, source_format, target_format, bitrate)
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ConversionError(f"cannot start {self._ffmpeg}: {exc}", cause=exc) from exc

        try:
            broken, chunks, stderr = await asyncio.wait_for(
                self._pump(process, source), timeout=self._timeout
            )
        except asyncio.TimeoutError as exc:
            _kill(process)
            raise ConversionError(f"timed out after {self._timeout}s", cause=exc) from exc
        except asyncio.CancelledError:
            _kill(process)
            raise

        err = stderr.decode(errors="replace").strip()[:200]
        if broken is not None:
            _kill(process)
            detail = f"transcoder closed its input: {broken}"
            logger.error("ffmpeg stream error: %s (%s)", broken, err)
            raise StreamError(f"{detail}: {err}" if err else detail, cause=broken) from broken

        match process.returncode:
            case 0:
                output = b"".join(chunks)
                logger.debug(
                    "Converted %d bytes %s → %d bytes %s",
                    len(source), source_format, len(output), target_format,
                )
                return output
            case code:
                err = err or f"exit status {code}"
                logger.error("ffmpeg failed: %s", err)
                raise ConversionError(err)

    @staticmethod
    async def _pump(
        process: asyncio.subprocess.Process, source: bytes
    ) -> tuple[Optional[OSError], list[bytes], bytes]:
        broken, chunks, stderr = await asyncio.gather(
            _feed(process.stdin, source),
            _drain(process.stdout),
            process.stderr.read(),
        )
        await process.wait()
        return broken, chunks, stderr


def _kill(process: asyncio.subprocess.Process) -> None:
    match process.returncode:
        case None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        case _:
            pass

"""Session control — lets a "!" message interrupt the transcription in flight."""
import asyncio
import logging
from typing import Literal, Optional, Protocol

from src.constants import INTERRUPT_PREFIX, INTERRUPT_SETTLE_SECONDS

logger = logging.getLogger(__name__)

StopResult = Literal["stopped", "pending", False]


class SessionControl(Protocol):
    @property
    def is_running(self) -> bool: ...

    async def stop(self) -> StopResult: ...

    def mark_interrupt(self) -> None: ...

    def clear_stop_requested(self) -> None: ...


class VoiceSession:
    """Tracks the single in-flight transcription task for a chat."""

    def __init__(self) -> None:
        self._task: Optional[asyncio.Task] = None
        self._stop_requested = False
        self._interrupted = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach(self, task: asyncio.Task) -> None:
        if self.is_running:
            raise RuntimeError("a transcription is already in flight")
        self._task = task
        self._interrupted = False

    def detach(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._task = None

    def consume_interrupt(self) -> bool:
        """Return True once if the last cancellation was user-requested."""
        interrupted, self._interrupted = self._interrupted, False
        return interrupted

    def mark_interrupt(self) -> None:
        self._interrupted = True

    def clear_stop_requested(self) -> None:
        self._stop_requested = False

    async def stop(self) -> StopResult:
        match self._task:
            case None:
                return False
            case task if task.done():
                return False
            case task:
                self._stop_requested = True
                task.cancel()
                await asyncio.wait({task})
                return "stopped" if task.cancelled() else "pending"


async def check_interrupt(text: str, session: SessionControl) -> str:
    """Strip a leading "!" and, if something is running, interrupt it first."""
    if not text or not text.startswith(INTERRUPT_PREFIX):
        return text

    stripped = text[len(INTERRUPT_PREFIX):].lstrip()

    if session.is_running:
        logger.info("! prefix — interrupting current transcription")
        session.mark_interrupt()
        await session.stop()
        await asyncio.sleep(INTERRUPT_SETTLE_SECONDS)
        session.clear_stop_requested()

    return stripped

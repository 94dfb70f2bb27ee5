"""Telegram typing indicator — sends chat action every N seconds until stopped."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from telegram import Bot
from telegram.constants import ChatAction

from src.constants import TELEGRAM_TYPING_INTERVAL

logger = logging.getLogger(__name__)


async def _keep_typing(bot: Bot, chat_id: int, stop: asyncio.Event, interval: float) -> None:
    while not stop.is_set():
        try:
            await bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
        except Exception as exc:
            logger.debug("Typing action failed: %s", exc)
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass


class TypingIndicator:

    def __init__(self, bot: Bot, chat_id: int, interval: float = TELEGRAM_TYPING_INTERVAL) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._interval = interval
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(
            _keep_typing(self._bot, self._chat_id, self._stop_event, self._interval)
        )

    async def stop(self) -> None:
        self._stop_event.set()
        match self._task:
            case None:
                pass
            case task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                self._task = None


@asynccontextmanager
async def typing_action(bot: Bot, chat_id: int) -> AsyncIterator[TypingIndicator]:
    indicator = TypingIndicator(bot, chat_id)
    indicator.start()
    try:
        yield indicator
    finally:
        await indicator.stop()

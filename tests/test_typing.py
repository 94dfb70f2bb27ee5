"""TDD: TypingIndicator tests written FIRST"""
import asyncio
import time
from unittest.mock import AsyncMock, MagicMock

from src.telegram.typing import TypingIndicator, typing_action


def make_bot(delay: float = 0.0) -> MagicMock:
    async def send_chat_action(**_) -> None:
        await asyncio.sleep(delay)

    bot = MagicMock()
    bot.send_chat_action = AsyncMock(side_effect=send_chat_action)
    return bot


async def test_typing_action_sends_chat_action_while_open():
    bot = make_bot()

    async with typing_action(bot, 123):
        await asyncio.sleep(0.01)

    bot.send_chat_action.assert_awaited()
    assert bot.send_chat_action.call_args.kwargs["chat_id"] == 123


async def test_stop_does_not_wait_for_slow_chat_action():
    bot = make_bot(delay=2.0)

    start = time.monotonic()
    async with typing_action(bot, 1):
        await asyncio.sleep(0.01)
    elapsed = time.monotonic() - start

    assert elapsed < 0.5


async def test_stop_is_idempotent_and_clears_task():
    indicator = TypingIndicator(make_bot(), 1)
    indicator.start()
    await asyncio.sleep(0)

    await indicator.stop()
    await indicator.stop()

    assert not indicator.running


async def test_chat_action_failure_does_not_stop_indicator():
    bot = MagicMock()
    bot.send_chat_action = AsyncMock(side_effect=RuntimeError("flood"))
    indicator = TypingIndicator(bot, 1, interval=0.01)

    indicator.start()
    await asyncio.sleep(0.05)

    assert indicator.running
    await indicator.stop()
    assert bot.send_chat_action.await_count >= 2

"""TelegramClient — event-driven transport via python-telegram-bot."""
import asyncio
import logging
import math
import time
from typing import Callable, Optional

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import Application, CommandHandler, ContextTypes
from telegram.ext import MessageHandler as TGMessageHandler
from telegram.ext import filters

from src.audit import AuditLogger
from src.config import Config
from src.constants import (
    CMD_STATUS,
    INTERRUPT_PREFIX,
    MSG_BLOCKED_CHAT,
    MSG_HELP,
    MSG_NOTHING_TO_INTERRUPT,
    MSG_SEND_FAIL,
    MSG_SEND_OK,
    MSG_STATUS,
    MSG_TEXT_HINT,
    MSG_VOICE_BUSY,
    MSG_VOICE_INTERRUPTED,
    MSG_VOICE_NO_SPEECH,
    MSG_VOICE_NOT_CONFIGURED,
    MSG_VOICE_RATE_LIMITED,
    MSG_VOICE_TRANSCRIPTION_FAILED,
)
from src.rate_limit import RateLimiter
from src.session import VoiceSession, check_interrupt
from src.telegram.typing import typing_action
from src.transcription.sber import SberTranscriptionClient
from src.voice import VoicePipeline

logger = logging.getLogger(__name__)

# Returned by _run_interruptible when the user cancelled with "!".
INTERRUPTED = object()
# Returned by _run_interruptible when another voice note holds the session.
BUSY = object()


def normalize_chat_id(s: str) -> str:
    return "".join(c for c in s if c.isdigit() or c == "-")


class TelegramClient:

    def __init__(
        self,
        config: Config,
        pipeline: Optional[VoicePipeline] = None,
        audit: Optional[AuditLogger] = None,
        session: Optional[VoiceSession] = None,
        rate_limiter: Optional[RateLimiter] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._token = config.telegram_bot_token
        self._allowed_chat_id = config.allowed_chat_id
        self._app: Optional[Application] = None
        self._pipeline = pipeline
        self._audit = audit or AuditLogger(config.audit_log_path, config.audit_log_json)
        self._session = session or VoiceSession()
        self._rate_limiter = rate_limiter or RateLimiter(config.rate_limit_per_minute)
        self._clock = clock

    def run(self) -> None:
        self._app = (
            Application.builder()
            .token(self._token)
            .concurrent_updates(True)
            .post_shutdown(self._shutdown)
            .build()
        )
        self._app.add_handler(TGMessageHandler(filters.VOICE, self._make_voice_handler()))
        self._app.add_handler(
            TGMessageHandler(filters.TEXT & ~filters.COMMAND, self._make_text_handler())
        )
        self._app.add_handler(CommandHandler("help", self._make_reply_handler(lambda: MSG_HELP)))
        self._app.add_handler(CommandHandler("start", self._make_reply_handler(lambda: MSG_HELP)))
        self._app.add_handler(CommandHandler(CMD_STATUS, self._make_reply_handler(self.status_text)))
        self._app.run_polling()

    async def send_message(self, to: str, text: str) -> bool:
        match self._app:
            case None:
                logger.error("send_message called before run()")
                return False
            case app:
                try:
                    await app.bot.send_message(chat_id=int(to), text=text)
                    return True
                except Exception as exc:
                    logger.error("Telegram send_message failed: %s", exc)
                    return False

    def status_text(self) -> str:
        match self._pipeline:
            case None:
                return MSG_STATUS % ("disabled", "n/a")
            case pipeline:
                return MSG_STATUS % ("enabled", self._token_state(pipeline))

    # ── helpers (also used in tests) ─────────────────────────────────────────

    def _token_state(self, pipeline: VoicePipeline) -> str:
        match pipeline.transcriber:
            case SberTranscriptionClient() as sber if sber.tokens.current is not None:
                remaining = int(sber.tokens.current.expires_at - self._clock())
                return f"cached (expires in {remaining}s)"
            case SberTranscriptionClient():
                return "none cached"
            case _:
                return "n/a"

    def _is_allowed(self, update: Update) -> bool:
        if update.effective_chat is None:
            return False
        incoming = normalize_chat_id(str(update.effective_chat.id))
        allowed = normalize_chat_id(self._allowed_chat_id)
        return incoming == allowed

    @staticmethod
    def _identity(update: Update) -> tuple[int, str]:
        user = update.effective_user
        match user:
            case None:
                return (0, "unknown")
            case u:
                return (u.id, u.username or u.first_name or "unknown")

    def _reject(self, update: Update) -> None:
        chat_id = update.effective_chat.id if update.effective_chat else "?"
        logger.warning(MSG_BLOCKED_CHAT, chat_id)
        self._audit.log_auth(*self._identity(update), authorized=False)

    async def _run_interruptible(self, audio: bytes) -> object:
        if self._session.is_running:
            return BUSY
        task = asyncio.create_task(self._pipeline.transcribe_voice(audio))
        self._session.attach(task)
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and self._session.consume_interrupt():
                return INTERRUPTED
            raise
        finally:
            self._session.detach(task)

    # ── internal handler factory ──────────────────────────────────────────────

    def _make_reply_handler(self, callback: Callable[[], str]) -> Callable:
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            match self._is_allowed(update):
                case False:
                    self._reject(update)
                    return
                case True:
                    pass
            await self.send_message(str(update.effective_chat.id), callback())

        return _handler

    def _make_text_handler(self) -> Callable:
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            match self._is_allowed(update):
                case False:
                    self._reject(update)
                    return
                case True:
                    pass

            sender = str(update.effective_chat.id)
            text = (update.message.text or "").strip() if update.message else ""
            was_running = self._session.is_running
            await check_interrupt(text, self._session)
            self._audit.log_message(*self._identity(update), "text", text)

            match (text.startswith(INTERRUPT_PREFIX), was_running):
                case (True, True):
                    pass
                case (True, False):
                    await self.send_message(sender, MSG_NOTHING_TO_INTERRUPT)
                case _:
                    await self.send_message(sender, MSG_TEXT_HINT)

        return _handler

    def _make_voice_handler(self) -> Callable:
        async def _handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
            match self._is_allowed(update):
                case False:
                    self._reject(update)
                    return
                case True:
                    pass

            sender = str(update.effective_chat.id)
            user_id, username = self._identity(update)
            match self._pipeline:
                case None:
                    await self.send_message(sender, MSG_VOICE_NOT_CONFIGURED)
                    return
                case _:
                    pass

            voice = update.message.voice if update.message else None
            if voice is None:
                return

            if self._session.is_running:
                await self.send_message(sender, MSG_VOICE_BUSY)
                return

            wait = self._rate_limiter.check(sender)
            if wait > 0:
                retry_after = math.ceil(wait)
                self._audit.log_rate_limit(user_id, username, retry_after)
                await self.send_message(sender, MSG_VOICE_RATE_LIMITED % retry_after)
                return

            start = self._clock()
            try:
                tg_file = await voice.get_file()
                audio = bytes(await tg_file.download_as_bytearray())
            except TelegramError as exc:
                logger.exception("Voice download failed")
                self._audit.log_error(user_id, username, str(exc), context="voice download")
                await self.send_message(sender, MSG_VOICE_TRANSCRIPTION_FAILED)
                return

            async with typing_action(context.bot, update.effective_chat.id):
                result = await self._run_interruptible(audio)

            if result is INTERRUPTED:
                await self.send_message(sender, MSG_VOICE_INTERRUPTED)
                return
            if result is BUSY:
                await self.send_message(sender, MSG_VOICE_BUSY)
                return

            match result:
                case None:
                    self._audit.log_error(
                        user_id, username, "transcription unavailable", context="voice"
                    )
                    await self.send_message(sender, MSG_VOICE_TRANSCRIPTION_FAILED)
                    return
                case "":
                    reply = MSG_VOICE_NO_SPEECH
                case text:
                    reply = text

            self._audit.log_message(user_id, username, "voice", f"[voice {voice.duration}s]", result)
            elapsed = self._clock() - start
            match await self.send_message(sender, reply):
                case True:
                    logger.info(MSG_SEND_OK, elapsed)
                case False:
                    logger.error(MSG_SEND_FAIL, elapsed)

        return _handler

    async def _shutdown(self, app: Application) -> None:
        match self._pipeline:
            case None:
                pass
            case pipeline:
                await pipeline.aclose()

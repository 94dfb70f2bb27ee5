from dataclasses import dataclass
from typing import Optional
import os
from dotenv import load_dotenv

from src.constants import (
    AUDIT_DEFAULT_PATH,
    CONVERSION_DEFAULT_TIMEOUT,
    FFMPEG_DEFAULT_PATH,
    RATE_LIMIT_DEFAULT_PER_MINUTE,
)


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    telegram_bot_token: str
    allowed_chat_id: str
    log_level: str
    sber_client_secret: Optional[str]
    transcription_enabled: bool
    sber_verify_ssl: bool
    ffmpeg_path: str
    conversion_timeout: int
    audit_log_path: str
    audit_log_json: bool
    rate_limit_per_minute: int

    @property
    def transcription_configured(self) -> bool:
        return bool(self.sber_client_secret) and self.transcription_enabled

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        token = os.getenv("TELEGRAM_BOT_TOKEN")
        chat_id = os.getenv("ALLOWED_CHAT_ID")
        log_level = os.getenv("LOG_LEVEL", "INFO")
        sber_secret = os.getenv("SBER_CLIENT_SECRET") or None
        enabled = os.getenv("TRANSCRIPTION_ENABLED", "true")
        verify_ssl = os.getenv("SBER_VERIFY_SSL", "true")
        ffmpeg_path = os.getenv("FFMPEG_PATH", FFMPEG_DEFAULT_PATH) or FFMPEG_DEFAULT_PATH
        conversion_timeout = os.getenv("CONVERSION_TIMEOUT", str(CONVERSION_DEFAULT_TIMEOUT))
        audit_path = os.getenv("AUDIT_LOG_PATH", AUDIT_DEFAULT_PATH) or AUDIT_DEFAULT_PATH
        audit_json = os.getenv("AUDIT_LOG_JSON", "false")
        rate_limit = os.getenv("RATE_LIMIT_PER_MINUTE", str(RATE_LIMIT_DEFAULT_PER_MINUTE))

        return cls._validate(
            telegram_bot_token=token,
            allowed_chat_id=chat_id,
            log_level=log_level,
            sber_client_secret=sber_secret,
            transcription_enabled=_as_bool(enabled),
            sber_verify_ssl=_as_bool(verify_ssl),
            ffmpeg_path=ffmpeg_path,
            conversion_timeout=int(conversion_timeout),
            audit_log_path=audit_path,
            audit_log_json=_as_bool(audit_json),
            rate_limit_per_minute=int(rate_limit),
        )

    @staticmethod
    def _validate(
        telegram_bot_token: Optional[str],
        allowed_chat_id: Optional[str],
        log_level: str,
        sber_client_secret: Optional[str],
        transcription_enabled: bool,
        sber_verify_ssl: bool,
        ffmpeg_path: str,
        conversion_timeout: int,
        audit_log_path: str,
        audit_log_json: bool,
        rate_limit_per_minute: int,
    ) -> "Config":
        match telegram_bot_token:
            case None | "":
                raise ValueError("TELEGRAM_BOT_TOKEN must be set in .env")
            case _:
                pass

        match allowed_chat_id:
            case None | "":
                raise ValueError("ALLOWED_CHAT_ID must be set in .env")
            case _:
                pass

        match conversion_timeout:
            case n if n <= 0:
                raise ValueError("CONVERSION_TIMEOUT must be a positive number of seconds")
            case _:
                pass

        match rate_limit_per_minute:
            case n if n <= 0:
                raise ValueError("RATE_LIMIT_PER_MINUTE must be positive")
            case _:
                pass

        return Config(
            telegram_bot_token=telegram_bot_token,
            allowed_chat_id=allowed_chat_id,
            log_level=log_level,
            sber_client_secret=sber_client_secret,
            transcription_enabled=transcription_enabled,
            sber_verify_ssl=sber_verify_ssl,
            ffmpeg_path=ffmpeg_path,
            conversion_timeout=conversion_timeout,
            audit_log_path=audit_log_path,
            audit_log_json=audit_log_json,
            rate_limit_per_minute=rate_limit_per_minute,
        )

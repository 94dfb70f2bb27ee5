"""Entry point — wires Config → VoicePipeline → TelegramClient."""
import logging

from rich.logging import RichHandler

from src.audit import AuditLogger
from src.config import Config
from src.constants import MSG_BOT_STARTING
from src.rate_limit import RateLimiter
from src.session import VoiceSession
from src.telegram.client import TelegramClient
from src.voice import build_voice_pipeline


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))
    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main() -> None:
    config = Config.from_env()
    _setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.info(MSG_BOT_STARTING)

    client = TelegramClient(
        config,
        pipeline=build_voice_pipeline(config),
        audit=AuditLogger(config.audit_log_path, config.audit_log_json),
        session=VoiceSession(),
        rate_limiter=RateLimiter(config.rate_limit_per_minute),
    )
    client.run()


if __name__ == "__main__":
    main()

"""All magic values live here — no inline literals anywhere else."""

# Telegram typing indicator re-send interval (seconds).
# The TYPING action expires after ~5 s, so we refresh every 4 s.
TELEGRAM_TYPING_INTERVAL: float = 4.0

# Sber SmartSpeech endpoints
SBER_OAUTH_URL = "https://ngw.devices.sberbank.ru:9443/api/v2/oauth"
SBER_RECOGNIZE_URL = "https://smartspeech.sber.ru/rest/v1/speech:recognize"
SBER_SCOPE = "SALUTE_SPEECH_PERS"
SBER_AUDIO_CONTENT_TYPE = "audio/mpeg"
SBER_AUTH_TIMEOUT: float = 30.0
SBER_SPEECH_TIMEOUT: float = 30.0

# Token lifetime handling (seconds)
TOKEN_SAFETY_MARGIN: float = 300.0
TOKEN_DEFAULT_LIFETIME: float = 1800.0

# ffmpeg
FFMPEG_DEFAULT_PATH = "ffmpeg"
FFMPEG_CHUNK_SIZE = 64 * 1024
VOICE_SOURCE_FORMAT = "ogg"
VOICE_TARGET_FORMAT = "mp3"
VOICE_TARGET_BITRATE = "128k"
CONVERSION_DEFAULT_TIMEOUT = 60

# Interrupt
INTERRUPT_PREFIX = "!"
INTERRUPT_SETTLE_SECONDS: float = 0.1

# Audit log
AUDIT_DEFAULT_PATH = "audit.log"
AUDIT_SEPARATOR = "=" * 60
AUDIT_TRUNCATE_AT = 500
AUDIT_TRUNCATED_FIELDS = ("content", "response")

# Rate limiting
RATE_LIMIT_DEFAULT_PER_MINUTE = 10
RATE_LIMIT_WINDOW_SECONDS: float = 60.0

# Log / user-facing messages
MSG_BOT_STARTING = "Starting Telegram bot…"
MSG_BLOCKED_CHAT = "Blocked update from chat_id: %s"
MSG_SEND_OK = "✓ Sent (%.1fs)"
MSG_SEND_FAIL = "✗ Send failed (%.1fs)"
MSG_AUTH_CACHED = "[Sber Auth] Using cached token (expires in %ds)"
MSG_AUTH_REQUESTING = "[Sber Auth] Requesting new OAuth token…"
MSG_AUTH_OK = "[Sber Auth] Token obtained (expires in %ds)"
MSG_TRANSCRIBE_SENDING = "[Sber Transcribe] Sending %d bytes for recognition…"
MSG_TRANSCRIBE_DONE = "[Sber Transcribe] Recognition complete (confidence: %s)"
MSG_TRANSCRIBE_NO_SPEECH = "[Sber Transcribe] No speech detected in audio"
MSG_TRANSCRIBE_RETRY = "[Sber Transcribe] Got 401, invalidating cached token and retrying…"
MSG_TRANSCRIBE_RETRY_FAILED = "[Sber Transcribe] Got 401 even after token refresh"

# Voice replies
MSG_VOICE_TRANSCRIPTION_FAILED = "Could not transcribe voice message — please try again"
MSG_VOICE_NOT_CONFIGURED = "Voice messages are not supported in this setup."
MSG_VOICE_NO_SPEECH = "No speech detected in that voice message."
MSG_VOICE_INTERRUPTED = "Transcription cancelled."
MSG_VOICE_BUSY = "Still transcribing your previous voice note — send ! to cancel it first."
MSG_VOICE_RATE_LIMITED = "Too many voice messages — try again in %ds."
MSG_TEXT_HINT = "Send me a voice note and I'll reply with the transcript. Prefix a message with ! to cancel."
MSG_NOTHING_TO_INTERRUPT = "Nothing is being transcribed right now."

CMD_STATUS = "status"
MSG_STATUS = (
    "Status\n"
    "  Voice        : %s\n"
    "  Sber token   : %s\n"
)

MSG_HELP = (
    "voice-scribe — voice notes to text on Telegram\n"
    "\n"
    "Commands:\n"
    "  /help                    — show this message\n"
    "  /status                  — current config at a glance\n"
    "\n"
    "Media:\n"
    "  Voice note               — transcribed with Sber SmartSpeech\n"
    "\n"
    "Interrupt:\n"
    "  !<anything>              — cancel the transcription in progress\n"
)

"""Settings — centralized configuration for the steward service.

All settings are loaded from environment variables with the STEWARD_ prefix.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Steward configuration.

    All fields can be overridden by environment variables prefixed with
    ``STEWARD_``.  For example, ``STEWARD_QUIET_HOURS_START=22`` starts
    quiet hours an hour earlier.
    """

    # ── Service identity ────────────────────────────────────────────
    SERVICE_NAME: str = "steward"
    SERVICE_VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 8090
    TIMEZONE: str = ""  # IANA name, e.g. "America/Los_Angeles"; empty = server local

    # ── Resilient executor defaults ─────────────────────────────────
    EXECUTOR_MAX_RETRIES: int = 3  # Attempts per call, including the first
    EXECUTOR_BACKOFF_BASE_SECONDS: float = 1.0  # First backoff; doubles per attempt
    EXECUTOR_TIMEOUT_SECONDS: float = 30.0  # Per-attempt timeout
    CIRCUIT_BREAKER_THRESHOLD: int = 5  # Consecutive failures before OPEN
    CIRCUIT_BREAKER_COOLDOWN_SECONDS: float = 300.0  # Seconds before a probe is admitted

    # ── Notification gate ───────────────────────────────────────────
    QUIET_HOURS_START: int = 23  # Local hour quiet hours begin
    QUIET_HOURS_END: int = 7  # Local hour quiet hours end (exclusive)
    RATE_CAPS_PATH: str = "config/rate_caps.yaml"  # Optional YAML cap table
    DEFAULT_RATE_CAP: int = 5  # Daily cap for types not in the table
    NOTIFY_STRICT_TYPES: bool = False  # Reject notification types with no cap entry

    # ── Telegram delivery ───────────────────────────────────────────
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: str = ""
    TELEGRAM_API_URL: str = "https://api.telegram.org"
    TELEGRAM_TIMEOUT_SECONDS: float = 10.0

    # ── Deferred notification storage ───────────────────────────────
    MORNING_QUEUE_PATH: str = "logs/morning_queue.jsonl"
    DIGEST_PATH: str = "logs/digest.jsonl"

    # ── Observability ───────────────────────────────────────────────
    EVENT_LOG_PATH: str = "logs/events.jsonl"
    EVENT_FORWARD_URL: str = ""  # POST events here; JSONL fallback on failure
    EVENT_DRAIN_TIMEOUT_SECONDS: float = 5.0  # Wait for pending event emits at shutdown
    DAILY_RESET_ENABLED: bool = True

    model_config = {
        "env_prefix": "STEWARD_",
    }

    @property
    def telegram_configured(self) -> bool:
        return bool(self.TELEGRAM_BOT_TOKEN and self.TELEGRAM_CHAT_ID)

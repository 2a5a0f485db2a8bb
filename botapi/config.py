"""Bot credentials, endpoint templates and stream settings.

:class:`BotConfig` is created once at startup and is read-only afterwards.
:meth:`BotConfig.from_env` loads it from the environment via
``python-dotenv``.  :class:`HandlerConfig` carries the per-stream settings
that every update handler receives explicitly.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import os
from dataclasses import dataclass

# ── third-party ──────────────────────────────────────────────────────────────
from dotenv import load_dotenv

# ── local ────────────────────────────────────────────────────────────────────
from botapi.exceptions import ConfigurationError
from core.logger import BotLogger

API_ENDPOINT: str = "https://api.telegram.org/bot{token}/{method}"
FILE_ENDPOINT: str = "https://api.telegram.org/file/bot{token}/{path}"

DEFAULT_BUFFER_SIZE: int = 100
DEFAULT_RETRY_DELAY: float = 3.0

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _parse_bool(raw: str | None, default: bool) -> bool:
    """Interpret an environment flag such as ``"1"`` or ``"false"``."""
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class BotConfig:
    """Access token, endpoint templates and the debug switch.

    ``api_endpoint`` is a :meth:`str.format` template with ``{token}`` and
    ``{method}`` fields; ``file_endpoint`` uses ``{token}`` and ``{path}``.
    With ``debug`` on, every call logs its endpoint and params, and when
    ``capture_response_body`` is also on the full response body is buffered
    and logged before decoding.
    """

    token: str
    api_endpoint: str = API_ENDPOINT
    file_endpoint: str = FILE_ENDPOINT
    debug: bool = False
    capture_response_body: bool = True

    def endpoint(self, method: str) -> str:
        """Render the URL for the API operation *method*."""
        return self.api_endpoint.format(token=self.token, method=method)

    def file_link(self, path: str) -> str:
        """Render the direct download URL for a server-side file path."""
        return self.file_endpoint.format(token=self.token, path=path)

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Build a config from ``BOT_*`` environment variables (``.env`` aware).

        Raises:
            ConfigurationError: If ``BOT_TOKEN`` is missing or empty.
        """
        load_dotenv()
        logger = BotLogger.get_logger()

        token = (os.environ.get("BOT_TOKEN") or "").strip()
        if not token:
            logger.error("Config load failed: BOT_TOKEN is NOT set")
            raise ConfigurationError("BOT_TOKEN environment variable is not set or is empty.")

        config = cls(
            token=token,
            api_endpoint=os.environ.get("BOT_API_ENDPOINT") or API_ENDPOINT,
            file_endpoint=os.environ.get("BOT_FILE_ENDPOINT") or FILE_ENDPOINT,
            debug=_parse_bool(os.environ.get("BOT_DEBUG"), False),
            capture_response_body=_parse_bool(os.environ.get("BOT_CAPTURE_BODY"), True),
        )
        logger.info(
            "Config loaded: BOT_TOKEN is set",
            extra={"debug": config.debug, "capture_response_body": config.capture_response_body},
        )
        return config


@dataclass(frozen=True)
class HandlerConfig:
    """Settings for one update stream.

    Attributes:
        buffer_size: Capacity of the stream's :class:`~botapi.updates.UpdatesChannel`.
        retry_delay: Seconds the polling loop waits after a failed fetch.
    """

    buffer_size: int = DEFAULT_BUFFER_SIZE
    retry_delay: float = DEFAULT_RETRY_DELAY

    def __post_init__(self) -> None:
        if self.buffer_size < 1:
            raise ConfigurationError("buffer_size must be at least 1")
        if self.retry_delay < 0:
            raise ConfigurationError("retry_delay must not be negative")

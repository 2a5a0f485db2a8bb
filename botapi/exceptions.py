"""Exception hierarchy for the botapi SDK."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from botapi.models import APIResponse, ResponseParameters


class BotAPIError(Exception):
    """Base class for every error raised by this package."""


class TransportError(BotAPIError):
    """The request could not be built or delivered.

    Covers DNS, connection and timeout failures as well as errors raised
    while streaming a multipart body.  The original exception is chained as
    ``__cause__``.
    """


class DecodeError(BotAPIError):
    """The response envelope or its ``result`` payload could not be decoded.

    Attributes:
        response: The partially decoded envelope, when decoding got that far.
    """

    def __init__(self, message: str, response: Optional["APIResponse"] = None) -> None:
        super().__init__(message)
        self.response = response


class WebhookError(DecodeError):
    """An inbound webhook request was not a POST carrying a JSON update."""


class APIException(BotAPIError):
    """The API answered with ``ok=false``.

    Attributes:
        error_code: Numeric error code from the envelope.
        description: Human-readable description from the envelope.
        parameters: Optional retry / migration hints.
    """

    def __init__(
        self,
        error_code: int,
        description: str = "",
        parameters: Optional["ResponseParameters"] = None,
    ) -> None:
        self.error_code = error_code
        self.description = description or "Unknown error"
        self.parameters = parameters
        super().__init__(f"API error {error_code}: {self.description}")

    @property
    def retry_after(self) -> Optional[int]:
        """Seconds to wait before repeating the request, if the API said so."""
        return self.parameters.retry_after if self.parameters else None

    @property
    def migrate_to_chat_id(self) -> Optional[int]:
        """New chat id when a group was migrated to a supergroup."""
        return self.parameters.migrate_to_chat_id if self.parameters else None


class ConfigurationError(BotAPIError):
    """The bot is configured in a way that prevents the requested operation."""


class EncodingError(BotAPIError):
    """A request field could not be serialised for sending."""


class ChannelClosedError(BotAPIError):
    """An update was pushed onto a channel that has already been closed."""

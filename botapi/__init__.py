"""Bot HTTP API client: transport, request types, models and update streams.

:class:`BotAPI` sends any request value that implements the ``Chattable``
contract (see :mod:`botapi.configs`), choosing a form-encoded or streamed
multipart body from the request's attachments.  Updates arrive through an
:class:`UpdatesChannel`, fed either by a :class:`PollingHandler` or by a
:class:`WebhookHandler` route.

Usage::

    from botapi import BotAPI, BotConfig
    from botapi.configs import MessageConfig, UpdateConfig

    bot = BotAPI(BotConfig.from_env())
    handler = bot.polling(UpdateConfig(timeout=30))
    for update in handler.init_updates_channel():
        if update.message:
            bot.send(MessageConfig(chat_id=update.message.chat.id, text=update.message.text or ""))
"""

from botapi.client import BotAPI
from botapi.config import BotConfig, HandlerConfig
from botapi.exceptions import (
    APIException,
    BotAPIError,
    ChannelClosedError,
    ConfigurationError,
    DecodeError,
    EncodingError,
    TransportError,
    WebhookError,
)
from botapi.helpers import escape_text
from botapi.updates import PollingHandler, UpdatesChannel
from botapi.webhook import WebhookHandler, unmarshal_update, write_to_http_response

__all__ = [
    "BotAPI",
    "BotConfig",
    "HandlerConfig",
    "PollingHandler",
    "UpdatesChannel",
    "WebhookHandler",
    "unmarshal_update",
    "write_to_http_response",
    "escape_text",
    "BotAPIError",
    "APIException",
    "TransportError",
    "DecodeError",
    "WebhookError",
    "ConfigurationError",
    "EncodingError",
    "ChannelClosedError",
]

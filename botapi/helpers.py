"""Shorthand constructors for common requests, and text escaping."""

from __future__ import annotations

from botapi.configs import (
    MODE_HTML,
    MODE_MARKDOWN,
    MODE_MARKDOWN_V2,
    DocumentConfig,
    InputMedia,
    MediaGroupConfig,
    MessageConfig,
    PhotoConfig,
    UpdateConfig,
    WebhookConfig,
)
from botapi.files import RequestFileData

_ESCAPES: dict[str, dict[int, str]] = {
    MODE_HTML: str.maketrans({"<": "&lt;", ">": "&gt;", "&": "&amp;"}),
    MODE_MARKDOWN: str.maketrans({c: "\\" + c for c in "_*`["}),
    MODE_MARKDOWN_V2: str.maketrans({c: "\\" + c for c in "_*[]()~`>#+-=|{}.!"}),
}


def escape_text(parse_mode: str, text: str) -> str:
    """Escape *text* so it renders literally under *parse_mode*.

    Each character is replaced at most once, so ``&`` produced by HTML
    escaping is never escaped again.  Returns ``""`` for an unknown mode.
    """
    table = _ESCAPES.get(parse_mode)
    if table is None:
        return ""
    return text.translate(table)


def new_message(chat_id: int, text: str) -> MessageConfig:
    return MessageConfig(chat_id=chat_id, text=text)


def new_message_to_channel(username: str, text: str) -> MessageConfig:
    """A message addressed to a public channel by its ``@username``."""
    return MessageConfig(channel_username=username, text=text)


def new_photo(chat_id: int, file: RequestFileData) -> PhotoConfig:
    return PhotoConfig(chat_id=chat_id, photo=file)


def new_document(chat_id: int, file: RequestFileData) -> DocumentConfig:
    return DocumentConfig(chat_id=chat_id, document=file)


def new_media_group(chat_id: int, media: list[InputMedia]) -> MediaGroupConfig:
    return MediaGroupConfig(chat_id=chat_id, media=list(media))


def new_update(offset: int) -> UpdateConfig:
    """A ``getUpdates`` request starting at *offset* with server defaults."""
    return UpdateConfig(offset=offset, limit=0, timeout=0)


def new_webhook(url: str) -> WebhookConfig:
    return WebhookConfig(url=url)


def new_webhook_with_cert(url: str, certificate: RequestFileData) -> WebhookConfig:
    """A ``setWebhook`` request that also uploads a self-signed certificate."""
    return WebhookConfig(url=url, certificate=certificate)

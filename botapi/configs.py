"""Request types and the two capability contracts they implement.

Every request value is *Chattable*: it names its API operation and renders
its non-file fields as :class:`~botapi.params.Params`.  Requests that carry
attachments are also *Fileable* and list them as
:class:`~botapi.files.RequestFile` values; :meth:`botapi.client.BotAPI.request`
decides from those whether the call goes out form-encoded or multipart.

Request types are keyword-only dataclasses::

    config = PhotoConfig(chat_id=42, photo=FilePath("chart.png"), caption="Loss")
    bot.send(config)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Protocol, runtime_checkable

from botapi.files import RequestFile, RequestFileData
from botapi.params import Params

# ── Constants ────────────────────────────────────────────────────────────────

MODE_MARKDOWN = "Markdown"
MODE_MARKDOWN_V2 = "MarkdownV2"
MODE_HTML = "HTML"

CHAT_TYPING = "typing"
CHAT_UPLOAD_PHOTO = "upload_photo"
CHAT_RECORD_VIDEO = "record_video"
CHAT_UPLOAD_VIDEO = "upload_video"
CHAT_UPLOAD_DOCUMENT = "upload_document"
CHAT_FIND_LOCATION = "find_location"

UPDATE_TYPE_MESSAGE = "message"
UPDATE_TYPE_EDITED_MESSAGE = "edited_message"
UPDATE_TYPE_CHANNEL_POST = "channel_post"
UPDATE_TYPE_CALLBACK_QUERY = "callback_query"
UPDATE_TYPE_INLINE_QUERY = "inline_query"
UPDATE_TYPE_POLL = "poll"
UPDATE_TYPE_MY_CHAT_MEMBER = "my_chat_member"
UPDATE_TYPE_CHAT_MEMBER = "chat_member"


# ── Capability contracts ─────────────────────────────────────────────────────


@runtime_checkable
class Chattable(Protocol):
    """Anything that can be sent as one API call."""

    def method(self) -> str: ...  # noqa: E704

    def params(self) -> Params: ...  # noqa: E704


@runtime_checkable
class Fileable(Chattable, Protocol):
    """A request that also carries file attachments."""

    def files(self) -> list[RequestFile]: ...  # noqa: E704


# ── Shared field groups ──────────────────────────────────────────────────────


def _add_caption(params: Params, caption: str, parse_mode: str, caption_entities: Optional[list]) -> None:
    params.add_non_empty("caption", caption)
    params.add_non_empty("parse_mode", parse_mode)
    params.add_interface("caption_entities", caption_entities)


def _file_list(*pairs: tuple[str, Optional[RequestFileData]]) -> list[RequestFile]:
    return [RequestFile(name, data) for name, data in pairs if data is not None]


@dataclass(kw_only=True)
class BaseChat:
    """Addressing and delivery options shared by every ``send*`` request."""

    chat_id: int = 0
    channel_username: str = ""
    message_thread_id: int = 0
    reply_to_message_id: int = 0
    reply_markup: Any = None
    disable_notification: bool = False
    protect_content: bool = False

    def _chat_params(self) -> Params:
        params = Params()
        params.add_first_valid("chat_id", self.chat_id, self.channel_username)
        params.add_non_zero("message_thread_id", self.message_thread_id)
        params.add_bool("disable_notification", self.disable_notification)
        params.add_bool("protect_content", self.protect_content)
        if self.reply_to_message_id:
            params.add_interface("reply_parameters", {"message_id": self.reply_to_message_id})
        params.add_interface("reply_markup", self.reply_markup)
        return params


@dataclass(kw_only=True)
class ChatConfig:
    """Identifies a chat by numeric id or public ``@username``."""

    chat_id: int = 0
    channel_username: str = ""

    def _chat_params(self) -> Params:
        params = Params()
        params.add_first_valid("chat_id", self.chat_id, self.channel_username)
        return params

    def params(self) -> Params:
        return self._chat_params()


# ── Messages ─────────────────────────────────────────────────────────────────


@dataclass(kw_only=True)
class MessageConfig(BaseChat):
    text: str
    parse_mode: str = ""
    entities: Optional[list] = None
    link_preview_options: Any = None

    def method(self) -> str:
        return "sendMessage"

    def params(self) -> Params:
        params = self._chat_params()
        params.add_non_empty("text", self.text)
        params.add_non_empty("parse_mode", self.parse_mode)
        params.add_interface("entities", self.entities)
        params.add_interface("link_preview_options", self.link_preview_options)
        return params


@dataclass(kw_only=True)
class ForwardConfig(BaseChat):
    from_chat_id: int = 0
    from_channel_username: str = ""
    message_id: int

    def method(self) -> str:
        return "forwardMessage"

    def params(self) -> Params:
        params = self._chat_params()
        params.add_first_valid("from_chat_id", self.from_chat_id, self.from_channel_username)
        params.add_non_zero("message_id", self.message_id)
        return params


@dataclass(kw_only=True)
class CopyMessageConfig(BaseChat):
    from_chat_id: int = 0
    from_channel_username: str = ""
    message_id: int
    caption: str = ""
    parse_mode: str = ""
    caption_entities: Optional[list] = None

    def method(self) -> str:
        return "copyMessage"

    def params(self) -> Params:
        params = self._chat_params()
        params.add_first_valid("from_chat_id", self.from_chat_id, self.from_channel_username)
        params.add_non_zero("message_id", self.message_id)
        _add_caption(params, self.caption, self.parse_mode, self.caption_entities)
        return params


@dataclass(kw_only=True)
class EditMessageTextConfig:
    text: str
    chat_id: int = 0
    channel_username: str = ""
    message_id: int = 0
    inline_message_id: str = ""
    parse_mode: str = ""
    entities: Optional[list] = None
    reply_markup: Any = None

    def method(self) -> str:
        return "editMessageText"

    def params(self) -> Params:
        params = Params()
        if self.inline_message_id:
            params["inline_message_id"] = self.inline_message_id
        else:
            params.add_first_valid("chat_id", self.chat_id, self.channel_username)
            params.add_non_zero("message_id", self.message_id)
        params["text"] = self.text
        params.add_non_empty("parse_mode", self.parse_mode)
        params.add_interface("entities", self.entities)
        params.add_interface("reply_markup", self.reply_markup)
        return params


@dataclass(kw_only=True)
class DeleteMessageConfig(ChatConfig):
    message_id: int

    def method(self) -> str:
        return "deleteMessage"

    def params(self) -> Params:
        params = self._chat_params()
        params.add_non_zero("message_id", self.message_id)
        return params


@dataclass(kw_only=True)
class ChatActionConfig(BaseChat):
    action: str

    def method(self) -> str:
        return "sendChatAction"

    def params(self) -> Params:
        params = self._chat_params()
        params["action"] = self.action
        return params


@dataclass(kw_only=True)
class StopPollConfig(ChatConfig):
    message_id: int
    reply_markup: Any = None

    def method(self) -> str:
        return "stopPoll"

    def params(self) -> Params:
        params = self._chat_params()
        params.add_non_zero("message_id", self.message_id)
        params.add_interface("reply_markup", self.reply_markup)
        return params


@dataclass(kw_only=True)
class CallbackConfig:
    callback_query_id: str
    text: str = ""
    show_alert: bool = False
    url: str = ""
    cache_time: int = 0

    def method(self) -> str:
        return "answerCallbackQuery"

    def params(self) -> Params:
        params = Params()
        params["callback_query_id"] = self.callback_query_id
        params.add_non_empty("text", self.text)
        params.add_bool("show_alert", self.show_alert)
        params.add_non_empty("url", self.url)
        params.add_non_zero("cache_time", self.cache_time)
        return params


# ── File uploads ─────────────────────────────────────────────────────────────


@dataclass(kw_only=True)
class PhotoConfig(BaseChat):
    photo: RequestFileData
    caption: str = ""
    parse_mode: str = ""
    caption_entities: Optional[list] = None
    has_spoiler: bool = False

    def method(self) -> str:
        return "sendPhoto"

    def params(self) -> Params:
        params = self._chat_params()
        _add_caption(params, self.caption, self.parse_mode, self.caption_entities)
        params.add_bool("has_spoiler", self.has_spoiler)
        return params

    def files(self) -> list[RequestFile]:
        return _file_list(("photo", self.photo))


@dataclass(kw_only=True)
class DocumentConfig(BaseChat):
    document: RequestFileData
    thumb: Optional[RequestFileData] = None
    caption: str = ""
    parse_mode: str = ""
    caption_entities: Optional[list] = None
    disable_content_type_detection: bool = False

    def method(self) -> str:
        return "sendDocument"

    def params(self) -> Params:
        params = self._chat_params()
        _add_caption(params, self.caption, self.parse_mode, self.caption_entities)
        params.add_bool("disable_content_type_detection", self.disable_content_type_detection)
        return params

    def files(self) -> list[RequestFile]:
        return _file_list(("document", self.document), ("thumbnail", self.thumb))


@dataclass(kw_only=True)
class AudioConfig(BaseChat):
    audio: RequestFileData
    thumb: Optional[RequestFileData] = None
    caption: str = ""
    parse_mode: str = ""
    caption_entities: Optional[list] = None
    duration: int = 0
    performer: str = ""
    title: str = ""

    def method(self) -> str:
        return "sendAudio"

    def params(self) -> Params:
        params = self._chat_params()
        _add_caption(params, self.caption, self.parse_mode, self.caption_entities)
        params.add_non_zero("duration", self.duration)
        params.add_non_empty("performer", self.performer)
        params.add_non_empty("title", self.title)
        return params

    def files(self) -> list[RequestFile]:
        return _file_list(("audio", self.audio), ("thumbnail", self.thumb))


@dataclass(kw_only=True)
class VideoConfig(BaseChat):
    video: RequestFileData
    thumb: Optional[RequestFileData] = None
    caption: str = ""
    parse_mode: str = ""
    caption_entities: Optional[list] = None
    duration: int = 0
    supports_streaming: bool = False
    has_spoiler: bool = False

    def method(self) -> str:
        return "sendVideo"

    def params(self) -> Params:
        params = self._chat_params()
        _add_caption(params, self.caption, self.parse_mode, self.caption_entities)
        params.add_non_zero("duration", self.duration)
        params.add_bool("supports_streaming", self.supports_streaming)
        params.add_bool("has_spoiler", self.has_spoiler)
        return params

    def files(self) -> list[RequestFile]:
        return _file_list(("video", self.video), ("thumbnail", self.thumb))


@dataclass(kw_only=True)
class StickerConfig(BaseChat):
    sticker: RequestFileData
    emoji: str = ""

    def method(self) -> str:
        return "sendSticker"

    def params(self) -> Params:
        params = self._chat_params()
        params.add_non_empty("emoji", self.emoji)
        return params

    def files(self) -> list[RequestFile]:
        return _file_list(("sticker", self.sticker))


# ── Media groups ─────────────────────────────────────────────────────────────


def _media_reference(data: RequestFileData, key: str) -> str:
    """``attach://<key>`` for uploads, the plain reference otherwise."""
    if data.needs_upload():
        return f"attach://{key}"
    return data.send_data()


@dataclass(kw_only=True)
class InputMedia:
    """Fields common to every media group item."""

    media_type: ClassVar[str] = ""

    media: RequestFileData
    caption: str = ""
    parse_mode: str = ""
    caption_entities: Optional[list] = None

    def thumbnail(self) -> Optional[RequestFileData]:
        return None

    def _extra(self) -> dict:
        return {}


@dataclass(kw_only=True)
class InputMediaPhoto(InputMedia):
    media_type: ClassVar[str] = "photo"

    has_spoiler: bool = False

    def _extra(self) -> dict:
        return {"has_spoiler": self.has_spoiler or None}


@dataclass(kw_only=True)
class InputMediaVideo(InputMedia):
    media_type: ClassVar[str] = "video"

    thumb: Optional[RequestFileData] = None
    has_spoiler: bool = False
    width: int = 0
    height: int = 0
    duration: int = 0
    supports_streaming: bool = False

    def thumbnail(self) -> Optional[RequestFileData]:
        return self.thumb

    def _extra(self) -> dict:
        return {
            "has_spoiler": self.has_spoiler or None,
            "width": self.width or None,
            "height": self.height or None,
            "duration": self.duration or None,
            "supports_streaming": self.supports_streaming or None,
        }


@dataclass(kw_only=True)
class InputMediaAudio(InputMedia):
    media_type: ClassVar[str] = "audio"

    thumb: Optional[RequestFileData] = None
    duration: int = 0
    performer: str = ""
    title: str = ""

    def thumbnail(self) -> Optional[RequestFileData]:
        return self.thumb

    def _extra(self) -> dict:
        return {
            "duration": self.duration or None,
            "performer": self.performer or None,
            "title": self.title or None,
        }


@dataclass(kw_only=True)
class InputMediaDocument(InputMedia):
    media_type: ClassVar[str] = "document"

    thumb: Optional[RequestFileData] = None
    disable_content_type_detection: bool = False

    def thumbnail(self) -> Optional[RequestFileData]:
        return self.thumb

    def _extra(self) -> dict:
        return {"disable_content_type_detection": self.disable_content_type_detection or None}


def _media_payload(item: InputMedia, index: int) -> dict:
    payload: dict = {
        "type": item.media_type,
        "media": _media_reference(item.media, f"file-{index}"),
        "caption": item.caption or None,
        "parse_mode": item.parse_mode or None,
        "caption_entities": item.caption_entities,
    }
    thumb = item.thumbnail()
    if thumb is not None:
        payload["thumbnail"] = _media_reference(thumb, f"file-{index}-thumb")
    payload.update(item._extra())
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(kw_only=True)
class MediaGroupConfig(BaseChat):
    """An album of 2 to 10 photos, videos, documents or audio files.

    Items that need uploading are referenced from the ``media`` JSON as
    ``attach://file-<n>`` and sent as multipart parts under that key.
    """

    media: list[InputMedia] = field(default_factory=list)

    def method(self) -> str:
        return "sendMediaGroup"

    def params(self) -> Params:
        params = self._chat_params()
        params.add_interface("media", [_media_payload(item, i) for i, item in enumerate(self.media)])
        return params

    def files(self) -> list[RequestFile]:
        files: list[RequestFile] = []
        for i, item in enumerate(self.media):
            if item.media.needs_upload():
                files.append(RequestFile(f"file-{i}", item.media))
            thumb = item.thumbnail()
            if thumb is not None and thumb.needs_upload():
                files.append(RequestFile(f"file-{i}-thumb", thumb))
        return files


# ── Updates and webhooks ─────────────────────────────────────────────────────


@dataclass(kw_only=True)
class UpdateConfig:
    """Arguments of ``getUpdates``.

    ``offset`` is the first update id to return; ``timeout`` is the
    server-side long-poll duration in seconds.
    """

    offset: int = 0
    limit: int = 0
    timeout: int = 0
    allowed_updates: Optional[list[str]] = None

    def method(self) -> str:
        return "getUpdates"

    def params(self) -> Params:
        params = Params()
        params.add_non_zero("offset", self.offset)
        params.add_non_zero("limit", self.limit)
        params.add_non_zero("timeout", self.timeout)
        params.add_interface("allowed_updates", self.allowed_updates)
        return params


@dataclass(kw_only=True)
class WebhookConfig:
    url: str
    certificate: Optional[RequestFileData] = None
    ip_address: str = ""
    max_connections: int = 0
    allowed_updates: Optional[list[str]] = None
    drop_pending_updates: bool = False
    secret_token: str = ""

    def method(self) -> str:
        return "setWebhook"

    def params(self) -> Params:
        params = Params()
        params["url"] = self.url
        params.add_non_empty("ip_address", self.ip_address)
        params.add_non_zero("max_connections", self.max_connections)
        params.add_interface("allowed_updates", self.allowed_updates)
        params.add_bool("drop_pending_updates", self.drop_pending_updates)
        params.add_non_empty("secret_token", self.secret_token)
        return params

    def files(self) -> list[RequestFile]:
        return _file_list(("certificate", self.certificate))


@dataclass(kw_only=True)
class DeleteWebhookConfig:
    drop_pending_updates: bool = False

    def method(self) -> str:
        return "deleteWebhook"

    def params(self) -> Params:
        params = Params()
        params.add_bool("drop_pending_updates", self.drop_pending_updates)
        return params


# ── Lookups ──────────────────────────────────────────────────────────────────


@dataclass(kw_only=True)
class FileConfig:
    file_id: str

    def method(self) -> str:
        return "getFile"

    def params(self) -> Params:
        return Params(file_id=self.file_id)


@dataclass(kw_only=True)
class UserProfilePhotosConfig:
    user_id: int
    offset: int = 0
    limit: int = 0

    def method(self) -> str:
        return "getUserProfilePhotos"

    def params(self) -> Params:
        params = Params()
        params.add_non_zero("user_id", self.user_id)
        params.add_non_zero("offset", self.offset)
        params.add_non_zero("limit", self.limit)
        return params


@dataclass(kw_only=True)
class ChatInfoConfig(ChatConfig):
    def method(self) -> str:
        return "getChat"


@dataclass(kw_only=True)
class ChatAdministratorsConfig(ChatConfig):
    def method(self) -> str:
        return "getChatAdministrators"


@dataclass(kw_only=True)
class ChatMemberCountConfig(ChatConfig):
    def method(self) -> str:
        return "getChatMemberCount"


@dataclass(kw_only=True)
class GetChatMemberConfig(ChatConfig):
    user_id: int

    def method(self) -> str:
        return "getChatMember"

    def params(self) -> Params:
        params = self._chat_params()
        params.add_non_zero("user_id", self.user_id)
        return params


@dataclass(kw_only=True)
class GetStickerSetConfig:
    name: str

    def method(self) -> str:
        return "getStickerSet"

    def params(self) -> Params:
        return Params(name=self.name)


# ── Bot settings ─────────────────────────────────────────────────────────────


@dataclass(kw_only=True)
class SetMyCommandsConfig:
    commands: list = field(default_factory=list)
    scope: Any = None
    language_code: str = ""

    def method(self) -> str:
        return "setMyCommands"

    def params(self) -> Params:
        params = Params()
        params.add_interface("commands", self.commands)
        params.add_interface("scope", self.scope)
        params.add_non_empty("language_code", self.language_code)
        return params


@dataclass(kw_only=True)
class GetMyCommandsConfig:
    scope: Any = None
    language_code: str = ""

    def method(self) -> str:
        return "getMyCommands"

    def params(self) -> Params:
        params = Params()
        params.add_interface("scope", self.scope)
        params.add_non_empty("language_code", self.language_code)
        return params


@dataclass(kw_only=True)
class LogOutConfig:
    def method(self) -> str:
        return "logOut"

    def params(self) -> Params:
        return Params()


@dataclass(kw_only=True)
class CloseConfig:
    def method(self) -> str:
        return "close"

    def params(self) -> Params:
        return Params()

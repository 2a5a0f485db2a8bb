"""Pydantic models for API responses and inbound updates.

Only the fields this SDK reads or that callers commonly need are declared;
unknown fields in server payloads are ignored by pydantic's default
``extra="ignore"`` behaviour, so newer server versions decode cleanly.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field

from botapi.config import FILE_ENDPOINT


# ── Envelope ─────────────────────────────────────────────────────────────────


class ResponseParameters(BaseModel):
    """Contains information about why a request was unsuccessful."""

    migrate_to_chat_id: Optional[int] = None
    retry_after: Optional[int] = None

    model_config = {"populate_by_name": True}


class APIResponse(BaseModel):
    """Top-level wrapper of every API reply.

    ``result`` is left undecoded; typed wrappers validate it into the model
    they expect.  When ``ok`` is false the error fields are populated and
    ``result`` is absent.
    """

    ok: bool
    result: Any = None
    error_code: Optional[int] = None
    description: Optional[str] = None
    parameters: Optional["ResponseParameters"] = None

    model_config = {"populate_by_name": True}


# ── Users and chats ──────────────────────────────────────────────────────────


class User(BaseModel):
    """A user or bot account."""

    id: int
    is_bot: bool
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None
    can_join_groups: Optional[bool] = None
    can_read_all_group_messages: Optional[bool] = None
    supports_inline_queries: Optional[bool] = None

    model_config = {"populate_by_name": True}

    def display_name(self) -> str:
        """``@username`` when set, otherwise the full name."""
        if self.username:
            return f"@{self.username}"
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class Chat(BaseModel):
    """A private chat, group, supergroup or channel."""

    id: int
    type: str
    title: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    description: Optional[str] = None
    invite_link: Optional[str] = None

    model_config = {"populate_by_name": True}

    def is_private(self) -> bool:
        return self.type == "private"

    def is_group(self) -> bool:
        return self.type == "group"

    def is_supergroup(self) -> bool:
        return self.type == "supergroup"

    def is_channel(self) -> bool:
        return self.type == "channel"


class ChatMember(BaseModel):
    """A member of a chat and their status."""

    status: str
    user: "User"
    custom_title: Optional[str] = None
    is_anonymous: Optional[bool] = None
    until_date: Optional[int] = None

    model_config = {"populate_by_name": True}


class ChatMemberUpdated(BaseModel):
    """A change in the status of a chat member."""

    chat: "Chat"
    from_field: "User" = Field(alias="from")
    date: int
    old_chat_member: "ChatMember"
    new_chat_member: "ChatMember"

    model_config = {"populate_by_name": True}


# ── Media ────────────────────────────────────────────────────────────────────


class PhotoSize(BaseModel):
    """One size of a photo or a file / sticker thumbnail."""

    file_id: str
    file_unique_id: str
    width: int
    height: int
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Audio(BaseModel):
    file_id: str
    file_unique_id: str
    duration: int
    performer: Optional[str] = None
    title: Optional[str] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Document(BaseModel):
    """A general file, as opposed to photos, voice messages and audio files."""

    file_id: str
    file_unique_id: str
    thumbnail: Optional["PhotoSize"] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Video(BaseModel):
    file_id: str
    file_unique_id: str
    width: int
    height: int
    duration: int
    thumbnail: Optional["PhotoSize"] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Voice(BaseModel):
    file_id: str
    file_unique_id: str
    duration: int
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Sticker(BaseModel):
    file_id: str
    file_unique_id: str
    type: Optional[str] = None
    width: int
    height: int
    is_animated: bool = False
    is_video: bool = False
    emoji: Optional[str] = None
    set_name: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class StickerSet(BaseModel):
    """A named sticker set."""

    name: str
    title: str
    sticker_type: Optional[str] = None
    stickers: List["Sticker"]

    model_config = {"populate_by_name": True}


class File(BaseModel):
    """A file ready to be downloaded.

    The download URL is built from ``file_path`` and the bot token, see
    :meth:`link`.
    """

    file_id: str
    file_unique_id: str
    file_size: Optional[int] = None
    file_path: Optional[str] = None

    model_config = {"populate_by_name": True}

    def link(self, token: str, file_endpoint: str = FILE_ENDPOINT) -> str:
        """Return the direct download URL for this file."""
        return file_endpoint.format(token=token, path=self.file_path or "")


class UserProfilePhotos(BaseModel):
    total_count: int
    photos: List[List["PhotoSize"]]

    model_config = {"populate_by_name": True}


# ── Messages ─────────────────────────────────────────────────────────────────


class MessageEntity(BaseModel):
    """One special entity in a text message: hashtag, username, URL, …"""

    type: str
    offset: int
    length: int
    url: Optional[str] = None
    user: Optional["User"] = None
    language: Optional[str] = None

    model_config = {"populate_by_name": True}


class Contact(BaseModel):
    phone_number: str
    first_name: str
    last_name: Optional[str] = None
    user_id: Optional[int] = None

    model_config = {"populate_by_name": True}


class Location(BaseModel):
    longitude: float
    latitude: float
    horizontal_accuracy: Optional[float] = None

    model_config = {"populate_by_name": True}


class PollOption(BaseModel):
    text: str
    voter_count: int

    model_config = {"populate_by_name": True}


class Poll(BaseModel):
    """A native poll."""

    id: str
    question: str
    options: List["PollOption"]
    total_voter_count: int
    is_closed: bool
    is_anonymous: bool
    type: str
    allows_multiple_answers: bool
    correct_option_id: Optional[int] = None

    model_config = {"populate_by_name": True}


class PollAnswer(BaseModel):
    poll_id: str
    user: Optional["User"] = None
    option_ids: List[int]

    model_config = {"populate_by_name": True}


class InlineKeyboardButton(BaseModel):
    text: str
    url: Optional[str] = None
    callback_data: Optional[str] = None
    switch_inline_query: Optional[str] = None

    model_config = {"populate_by_name": True}


class InlineKeyboardMarkup(BaseModel):
    """An inline keyboard that appears right next to the message it belongs to."""

    inline_keyboard: List[List["InlineKeyboardButton"]]

    model_config = {"populate_by_name": True}


class Message(BaseModel):
    """A message."""

    message_id: int
    date: int
    chat: "Chat"
    from_field: Optional["User"] = Field(None, alias="from")
    sender_chat: Optional["Chat"] = None
    reply_to_message: Optional["Message"] = None
    via_bot: Optional["User"] = None
    edit_date: Optional[int] = None
    media_group_id: Optional[str] = None
    text: Optional[str] = None
    entities: Optional[List["MessageEntity"]] = None
    caption: Optional[str] = None
    caption_entities: Optional[List["MessageEntity"]] = None
    audio: Optional["Audio"] = None
    document: Optional["Document"] = None
    photo: Optional[List["PhotoSize"]] = None
    sticker: Optional["Sticker"] = None
    video: Optional["Video"] = None
    voice: Optional["Voice"] = None
    contact: Optional["Contact"] = None
    location: Optional["Location"] = None
    poll: Optional["Poll"] = None
    new_chat_members: Optional[List["User"]] = None
    left_chat_member: Optional["User"] = None
    migrate_to_chat_id: Optional[int] = None
    migrate_from_chat_id: Optional[int] = None
    reply_markup: Optional["InlineKeyboardMarkup"] = None

    model_config = {"populate_by_name": True}

    def is_command(self) -> bool:
        """True if the message starts with a ``bot_command`` entity."""
        if not self.entities:
            return False
        first = self.entities[0]
        return first.offset == 0 and first.type == "bot_command"

    def command(self) -> str:
        """The command name without the leading ``/`` and any ``@botname``."""
        if not self.is_command() or self.text is None:
            return ""
        length = self.entities[0].length
        return self.text[1:length].split("@", 1)[0]

    def command_arguments(self) -> str:
        """Everything after the command and its separating space."""
        if not self.is_command() or self.text is None:
            return ""
        length = self.entities[0].length
        return self.text[length + 1:] if len(self.text) > length else ""


class MessageId(BaseModel):
    """A unique message identifier."""

    message_id: int

    model_config = {"populate_by_name": True}


# ── Queries ──────────────────────────────────────────────────────────────────


class CallbackQuery(BaseModel):
    """An incoming callback query from an inline keyboard button."""

    id: str
    from_field: "User" = Field(alias="from")
    message: Optional["Message"] = None
    inline_message_id: Optional[str] = None
    chat_instance: str
    data: Optional[str] = None
    game_short_name: Optional[str] = None

    model_config = {"populate_by_name": True}


class InlineQuery(BaseModel):
    id: str
    from_field: "User" = Field(alias="from")
    query: str
    offset: str
    chat_type: Optional[str] = None
    location: Optional["Location"] = None

    model_config = {"populate_by_name": True}


class ChosenInlineResult(BaseModel):
    result_id: str
    from_field: "User" = Field(alias="from")
    inline_message_id: Optional[str] = None
    query: str

    model_config = {"populate_by_name": True}


class ShippingQuery(BaseModel):
    id: str
    from_field: "User" = Field(alias="from")
    invoice_payload: str

    model_config = {"populate_by_name": True}


class PreCheckoutQuery(BaseModel):
    id: str
    from_field: "User" = Field(alias="from")
    currency: str
    total_amount: int
    invoice_payload: str

    model_config = {"populate_by_name": True}


# ── Bot settings ─────────────────────────────────────────────────────────────


class BotCommand(BaseModel):
    command: str
    description: str

    model_config = {"populate_by_name": True}


class WebhookInfo(BaseModel):
    """Current status of the bot's webhook."""

    url: str
    has_custom_certificate: bool
    pending_update_count: int
    ip_address: Optional[str] = None
    last_error_date: Optional[int] = None
    last_error_message: Optional[str] = None
    max_connections: Optional[int] = None
    allowed_updates: Optional[List[str]] = None

    model_config = {"populate_by_name": True}

    def is_set(self) -> bool:
        """True when a webhook URL is registered."""
        return self.url != ""


# ── Updates ──────────────────────────────────────────────────────────────────


class Update(BaseModel):
    """An incoming update.

    ``update_id`` increases monotonically; at most one of the optional
    payload fields is present in any given update.
    """

    update_id: int
    message: Optional["Message"] = None
    edited_message: Optional["Message"] = None
    channel_post: Optional["Message"] = None
    edited_channel_post: Optional["Message"] = None
    inline_query: Optional["InlineQuery"] = None
    chosen_inline_result: Optional["ChosenInlineResult"] = None
    callback_query: Optional["CallbackQuery"] = None
    shipping_query: Optional["ShippingQuery"] = None
    pre_checkout_query: Optional["PreCheckoutQuery"] = None
    poll: Optional["Poll"] = None
    poll_answer: Optional["PollAnswer"] = None
    my_chat_member: Optional["ChatMemberUpdated"] = None
    chat_member: Optional["ChatMemberUpdated"] = None

    model_config = {"populate_by_name": True}

    def sent_from(self) -> Optional["User"]:
        """The user that caused this update, if there is one."""
        for message in (self.message, self.edited_message):
            if message is not None:
                return message.from_field
        for query in (
            self.callback_query,
            self.inline_query,
            self.chosen_inline_result,
            self.shipping_query,
            self.pre_checkout_query,
            self.my_chat_member,
            self.chat_member,
        ):
            if query is not None:
                return query.from_field
        if self.poll_answer is not None:
            return self.poll_answer.user
        return None

    def from_chat(self) -> Optional["Chat"]:
        """The chat this update belongs to, if there is one."""
        for message in (self.message, self.edited_message, self.channel_post, self.edited_channel_post):
            if message is not None:
                return message.chat
        if self.callback_query is not None and self.callback_query.message is not None:
            return self.callback_query.message.chat
        for member_update in (self.my_chat_member, self.chat_member):
            if member_update is not None:
                return member_update.chat
        return None

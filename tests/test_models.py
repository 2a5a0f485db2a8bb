"""Tests for the Pydantic data models."""

import sys
import os
import pytest

# Ensure the project root is importable.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from botapi.models import (
    APIResponse,
    CallbackQuery,
    Chat,
    File,
    Message,
    ResponseParameters,
    Update,
    User,
    WebhookInfo,
)
from botapi.config import BotConfig
from pydantic import ValidationError


# ── APIResponse ──────────────────────────────────────────────────────────────


class TestAPIResponse:
    """Validate the response envelope."""

    def test_success_envelope(self) -> None:
        resp = APIResponse.model_validate({"ok": True, "result": {"id": 1}})
        assert resp.ok is True
        assert resp.result == {"id": 1}
        assert resp.error_code is None

    def test_error_envelope(self) -> None:
        resp = APIResponse.model_validate({
            "ok": False,
            "error_code": 400,
            "description": "Bad Request: chat not found",
            "parameters": {"migrate_to_chat_id": -100123},
        })
        assert resp.ok is False
        assert resp.error_code == 400
        assert isinstance(resp.parameters, ResponseParameters)
        assert resp.parameters.migrate_to_chat_id == -100123

    def test_missing_ok_raises(self) -> None:
        with pytest.raises(ValidationError):
            APIResponse.model_validate({"result": True})


# ── User / Chat ──────────────────────────────────────────────────────────────


class TestUserModel:
    """Validate the User schema."""

    def test_minimal_user(self) -> None:
        u = User(id=42, is_bot=False, first_name="Ada")
        assert u.id == 42
        assert u.last_name is None
        assert u.username is None

    def test_64_bit_id(self) -> None:
        """User IDs can be 64-bit integers."""
        big_id = 5_000_000_000
        u = User(id=big_id, is_bot=False, first_name="Big")
        assert u.id == big_id

    def test_display_name_prefers_username(self) -> None:
        assert User(id=1, is_bot=False, first_name="Ada", username="ada").display_name() == "@ada"
        assert User(id=1, is_bot=False, first_name="Ada", last_name="L").display_name() == "Ada L"


class TestChatModel:

    @pytest.mark.parametrize("chat_type", ["private", "group", "supergroup", "channel"])
    def test_type_predicates(self, chat_type: str) -> None:
        chat = Chat(id=1, type=chat_type)
        flags = {
            "private": chat.is_private(),
            "group": chat.is_group(),
            "supergroup": chat.is_supergroup(),
            "channel": chat.is_channel(),
        }
        assert [name for name, flag in flags.items() if flag] == [chat_type]


# ── Message ──────────────────────────────────────────────────────────────────


class TestMessageModel:
    """Validate the Message schema and command helpers."""

    def _command_message(self, text: str, length: int) -> Message:
        return Message.model_validate({
            "message_id": 1,
            "date": 1609459200,
            "chat": {"id": 42, "type": "private"},
            "text": text,
            "entities": [{"type": "bot_command", "offset": 0, "length": length}],
        })

    def test_from_alias(self) -> None:
        msg = Message.model_validate({
            "message_id": 1,
            "date": 1609459200,
            "chat": {"id": 42, "type": "private"},
            "from": {"id": 7, "is_bot": False, "first_name": "Ada"},
        })
        assert msg.from_field is not None
        assert msg.from_field.id == 7
        assert msg.model_dump(by_alias=True, exclude_none=True)["from"]["id"] == 7

    def test_command_parsing(self) -> None:
        msg = self._command_message("/start@test_bot deep-link", 15)
        assert msg.is_command() is True
        assert msg.command() == "start"
        assert msg.command_arguments() == "deep-link"

    def test_plain_text_is_not_command(self) -> None:
        msg = Message.model_validate({
            "message_id": 1,
            "date": 1609459200,
            "chat": {"id": 42, "type": "private"},
            "text": "hello /start",
        })
        assert msg.is_command() is False
        assert msg.command() == ""


# ── Update ───────────────────────────────────────────────────────────────────


class TestUpdateModel:
    """Validate the Update schema."""

    def test_minimal_update(self) -> None:
        up = Update(update_id=1)
        assert up.update_id == 1
        assert up.message is None
        assert up.sent_from() is None
        assert up.from_chat() is None

    def test_update_with_nested_message(self) -> None:
        data = {
            "update_id": 10,
            "message": {
                "message_id": 100,
                "date": 1609459200,
                "chat": {"id": -1001234, "type": "supergroup"},
                "from": {"id": 42, "is_bot": False, "first_name": "Ada"},
                "text": "hello",
            },
        }
        up = Update.model_validate(data)
        assert up.message is not None
        assert up.sent_from().id == 42
        assert up.from_chat().id == -1001234

    def test_callback_query_sender_and_chat(self) -> None:
        up = Update.model_validate({
            "update_id": 11,
            "callback_query": {
                "id": "cb1",
                "from": {"id": 9, "is_bot": False, "first_name": "Bob"},
                "chat_instance": "ci",
                "data": "yes",
                "message": {"message_id": 5, "date": 1, "chat": {"id": 3, "type": "group"}},
            },
        })
        assert isinstance(up.callback_query, CallbackQuery)
        assert up.sent_from().first_name == "Bob"
        assert up.from_chat().id == 3

    def test_unknown_fields_ignored(self) -> None:
        up = Update.model_validate({"update_id": 12, "message_reaction": {"chat": {}}})
        assert up.update_id == 12


# ── WebhookInfo / File ───────────────────────────────────────────────────────


class TestWebhookInfo:

    def test_is_set(self) -> None:
        info = WebhookInfo(url="https://example.com/bot", has_custom_certificate=False, pending_update_count=0)
        assert info.is_set() is True

    def test_not_set(self) -> None:
        info = WebhookInfo(url="", has_custom_certificate=False, pending_update_count=3)
        assert info.is_set() is False


class TestFileModel:

    def test_link(self) -> None:
        f = File(file_id="F", file_unique_id="U", file_path="docs/a.pdf")
        assert f.link("123:abc") == "https://api.telegram.org/file/bot123:abc/docs/a.pdf"

    def test_link_default_matches_bot_config(self) -> None:
        f = File(file_id="F", file_unique_id="U", file_path="docs/a.pdf")
        assert f.link("123:abc") == BotConfig(token="123:abc").file_link("docs/a.pdf")

    def test_link_custom_endpoint(self) -> None:
        f = File(file_id="F", file_unique_id="U", file_path="a.pdf")
        assert f.link("t", "http://local/{token}/{path}") == "http://local/t/a.pdf"

"""Transport core, request dispatch and typed call wrappers for :class:`BotAPI`.

Every API call is a POST to ``config.endpoint(<method>)``.  Plain requests
go out ``application/x-www-form-urlencoded``; requests with attachments that
need uploading are streamed as ``multipart/form-data`` (see
:mod:`botapi.multipart`).  Both paths decode the same JSON envelope and
raise :class:`~botapi.exceptions.APIException` when it says ``ok=false``.

HTTP calls use the ``requests`` library.  A :class:`requests.Session` can
be injected, which is also how tests substitute the network.
"""

from __future__ import annotations

import asyncio
import json
import logging
from functools import lru_cache
from typing import Any, Mapping, Optional, Sequence

import requests
from pydantic import TypeAdapter, ValidationError
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from botapi.config import BotConfig, HandlerConfig
from botapi.configs import (
    ChatAdministratorsConfig,
    ChatInfoConfig,
    ChatMemberCountConfig,
    Chattable,
    CopyMessageConfig,
    Fileable,
    FileConfig,
    GetChatMemberConfig,
    GetMyCommandsConfig,
    GetStickerSetConfig,
    MediaGroupConfig,
    StopPollConfig,
    UpdateConfig,
    UserProfilePhotosConfig,
)
from botapi.exceptions import APIException, DecodeError, TransportError
from botapi.files import RequestFile, fold_into_params, has_files_needing_upload
from botapi.models import (
    APIResponse,
    BotCommand,
    Chat,
    ChatMember,
    File,
    Message,
    MessageId,
    Poll,
    StickerSet,
    Update,
    User,
    UserProfilePhotos,
    WebhookInfo,
)
from botapi.multipart import start_multipart_body
from botapi.updates import PollingHandler

logger = logging.getLogger("botapi.client")

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@lru_cache(maxsize=None)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


class BotAPI:
    """Client for the bot HTTP API.

    Args:
        config: Token, endpoint template and debug settings.
        session: HTTP transport; a fresh :class:`requests.Session` by default.
    """

    def __init__(self, config: BotConfig, session: Optional[requests.Session] = None) -> None:
        self._config = config
        self._session = session or requests.Session()

    @property
    def config(self) -> BotConfig:
        return self._config

    @property
    def _captures_body(self) -> bool:
        return self._config.debug and self._config.capture_response_body

    # ------------------------------------------------------------------
    #  Transport
    # ------------------------------------------------------------------

    def make_request(self, endpoint: str, params: Optional[Mapping[str, str]] = None) -> APIResponse:
        """POST *params* form-encoded to *endpoint* and decode the envelope.

        Raises:
            TransportError: On network failures.
            DecodeError: If the body is not a valid envelope.
            APIException: If the envelope says ``ok=false``.
        """
        values = dict(params or {})
        if self._config.debug:
            logger.info("API request", extra={"api_endpoint": endpoint, "params": values})

        try:
            response = self._session.post(
                self._config.endpoint(endpoint),
                data=values,
                headers={"Content-Type": _FORM_CONTENT_TYPE},
                stream=not self._captures_body,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{endpoint} request failed: {exc}") from exc

        return self._handle_response(endpoint, response)

    def upload_files(self, endpoint: str, params: Mapping[str, str], files: Sequence[RequestFile]) -> APIResponse:
        """POST *params* and *files* to *endpoint* as a streamed multipart body.

        Files that need uploading become file parts; the rest are written as
        plain fields.  A failure while writing the body (unreadable file,
        broken stream) aborts the request with :class:`TransportError`.
        """
        if self._config.debug:
            logger.info(
                "API upload",
                extra={"api_endpoint": endpoint, "params": dict(params), "file_count": len(files)},
            )

        pipe, content_type = start_multipart_body(params, files)
        try:
            response = self._session.post(
                self._config.endpoint(endpoint),
                data=pipe,
                headers={"Content-Type": content_type},
                stream=not self._captures_body,
            )
        except requests.RequestException as exc:
            cause = pipe.error or exc
            raise TransportError(f"{endpoint} upload failed: {cause}") from cause
        finally:
            pipe.close_reader()

        return self._handle_response(endpoint, response)

    def _handle_response(self, endpoint: str, response: requests.Response) -> APIResponse:
        try:
            api_resp, raw = self._decode_api_response(response)
        finally:
            response.close()

        if raw is not None:
            logger.info(
                "API response",
                extra={"api_endpoint": endpoint, "response": raw.decode("utf-8", errors="replace")},
            )

        if not api_resp.ok:
            logger.debug(
                "API returned ok=false",
                extra={"api_endpoint": endpoint, "error_code": api_resp.error_code, "description": api_resp.description},
            )
            raise APIException(api_resp.error_code or 0, api_resp.description or "", api_resp.parameters)

        return api_resp

    def _decode_api_response(self, response: requests.Response) -> tuple[APIResponse, Optional[bytes]]:
        """Decode the envelope, returning the raw body only when it was captured.

        With body capture on, the whole body is read first so it can be
        logged; otherwise the JSON is decoded straight from the raw stream.
        """
        raw: Optional[bytes] = None
        try:
            if self._captures_body:
                raw = response.content
                payload = json.loads(raw)
            else:
                stream = response.raw
                if hasattr(stream, "decode_content"):
                    stream.decode_content = True
                payload = json.load(stream)
        except ValueError as exc:
            raise DecodeError(f"invalid JSON in response (HTTP {response.status_code}): {exc}") from exc
        except (requests.RequestException, Urllib3HTTPError, OSError) as exc:
            raise TransportError(f"failed to read response: {exc}") from exc

        try:
            return APIResponse.model_validate(payload), raw
        except ValidationError as exc:
            raise DecodeError(f"invalid response envelope: {exc}") from exc

    # ------------------------------------------------------------------
    #  Dispatch
    # ------------------------------------------------------------------

    def request(self, c: Chattable) -> APIResponse:
        """Send *c* and return the raw envelope.

        Requests carrying files go out multipart only when at least one file
        needs uploading; otherwise every file reference is folded into the
        form params.
        """
        params = c.params()

        if isinstance(c, Fileable):
            files = c.files()
            if has_files_needing_upload(files):
                return self.upload_files(c.method(), params, files)
            fold_into_params(params, files)

        return self.make_request(c.method(), params)

    async def arequest(self, c: Chattable) -> APIResponse:
        """:meth:`request` offloaded to a worker thread."""
        return await asyncio.to_thread(self.request, c)

    @staticmethod
    def _result_as(resp: APIResponse, target: Any) -> Any:
        try:
            return _adapter(target).validate_python(resp.result)
        except ValidationError as exc:
            raise DecodeError(f"cannot decode result: {exc}", resp) from exc

    def _call(self, c: Chattable, target: Any) -> Any:
        return self._result_as(self.request(c), target)

    # ------------------------------------------------------------------
    #  Typed wrappers
    # ------------------------------------------------------------------

    def get_me(self) -> User:
        """Fetch the bot's own account; also a cheap token check."""
        return self._result_as(self.make_request("getMe"), User)

    def validate(self) -> None:
        """Raise if the token is not accepted by the server."""
        self.get_me()

    def send(self, c: Chattable) -> Message:
        """Send *c* and return the resulting message."""
        return self._call(c, Message)

    async def asend(self, c: Chattable) -> Message:
        return await asyncio.to_thread(self.send, c)

    def send_media_group(self, config: MediaGroupConfig) -> list[Message]:
        return self._call(config, list[Message])

    def get_updates(self, config: UpdateConfig) -> list[Update]:
        """Fetch pending updates.  Returns nothing while a webhook is set."""
        return self._call(config, list[Update])

    def get_webhook_info(self) -> WebhookInfo:
        return self._result_as(self.make_request("getWebhookInfo"), WebhookInfo)

    def get_file(self, config: FileConfig) -> File:
        return self._call(config, File)

    def get_file_direct_url(self, file_id: str) -> str:
        """Resolve *file_id* and return its direct download URL."""
        file = self.get_file(FileConfig(file_id=file_id))
        return self._config.file_link(file.file_path or "")

    def get_user_profile_photos(self, config: UserProfilePhotosConfig) -> UserProfilePhotos:
        return self._call(config, UserProfilePhotos)

    def get_chat(self, config: ChatInfoConfig) -> Chat:
        return self._call(config, Chat)

    def get_chat_administrators(self, config: ChatAdministratorsConfig) -> list[ChatMember]:
        """Administrators of a chat; bots are not listed."""
        return self._call(config, list[ChatMember])

    def get_chat_members_count(self, config: ChatMemberCountConfig) -> int:
        return self._call(config, int)

    def get_chat_member(self, config: GetChatMemberConfig) -> ChatMember:
        return self._call(config, ChatMember)

    def get_sticker_set(self, config: GetStickerSetConfig) -> StickerSet:
        return self._call(config, StickerSet)

    def get_my_commands(self, config: Optional[GetMyCommandsConfig] = None) -> list[BotCommand]:
        return self._call(config or GetMyCommandsConfig(), list[BotCommand])

    def copy_message(self, config: CopyMessageConfig) -> MessageId:
        return self._call(config, MessageId)

    def stop_poll(self, config: StopPollConfig) -> Poll:
        return self._call(config, Poll)

    # ------------------------------------------------------------------
    #  Update streams
    # ------------------------------------------------------------------

    def polling(self, config: UpdateConfig, handler_config: Optional[HandlerConfig] = None) -> PollingHandler:
        """Create a (not yet started) polling stream bound to this client."""
        return PollingHandler(self, config, handler_config)

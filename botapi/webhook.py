"""Inbound webhook delivery on a FastAPI app.

The API server POSTs each update as a JSON body to a URL registered with
``setWebhook``.  :class:`WebhookHandler` mounts a receiving route on a
FastAPI application and pushes every decoded update onto an
:class:`~botapi.updates.UpdatesChannel`.  Anything that is not a POST with a
decodable update gets HTTP 400 and ``{"error": "<message>"}``.

Usage::

    handler = WebhookHandler()
    updates = handler.listen_for_webhook("/bot")
    threading.Thread(target=handler.serve, kwargs={"port": 8443}, daemon=True).start()
    for update in updates:
        ...
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional
from urllib.parse import urlencode

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from botapi.config import HandlerConfig
from botapi.configs import Chattable, Fileable
from botapi.exceptions import EncodingError, WebhookError
from botapi.files import fold_into_params, has_files_needing_upload
from botapi.models import Update
from botapi.updates import UpdatesChannel

logger = logging.getLogger("botapi.webhook")

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def unmarshal_update(method: str, body: bytes) -> Update:
    """Decode one inbound webhook request.

    Raises:
        WebhookError: If *method* is not POST or *body* is not an update.
    """
    if method.upper() != "POST":
        raise WebhookError("wrong HTTP method required POST")
    try:
        return Update.model_validate_json(body)
    except ValidationError as exc:
        raise WebhookError(f"invalid update: {exc.errors(include_url=False)[0]['msg']}") from exc


def _error_response(exc: WebhookError) -> JSONResponse:
    logger.warning("Rejected webhook request", extra={"error": str(exc)})
    return JSONResponse({"error": str(exc)}, status_code=400)


def write_to_http_response(c: Chattable) -> Response:
    """Render *c* as a form-encoded webhook reply.

    The API server executes a request returned in the body of the webhook
    response, which saves a round trip.  Uploads cannot travel this way.

    Raises:
        EncodingError: If any attachment needs uploading.
    """
    params = c.params()

    if isinstance(c, Fileable):
        files = c.files()
        if has_files_needing_upload(files):
            raise EncodingError("can't use HTTP response to upload files")
        fold_into_params(params, files)

    params["method"] = c.method()
    return Response(content=urlencode(params), media_type="application/x-www-form-urlencoded")


class WebhookHandler:
    """Receives updates pushed by the API server.

    Args:
        handler_config: Channel capacity for every stream this handler opens.
        app: Existing FastAPI application to mount routes on; a new one by
            default.
    """

    def __init__(self, handler_config: Optional[HandlerConfig] = None, app: Optional[FastAPI] = None) -> None:
        self._handler_config = handler_config or HandlerConfig()
        self._app = app or FastAPI()

    @property
    def app(self) -> FastAPI:
        return self._app

    def listen_for_webhook(self, pattern: str) -> UpdatesChannel:
        """Register a receiving route at *pattern* and return its channel.

        The channel stays open for the life of the application.  When it is
        full, the HTTP response is delayed until a consumer makes room.
        """
        channel = UpdatesChannel(self._handler_config.buffer_size)

        async def receive_update(request: Request) -> Response:
            try:
                update = unmarshal_update(request.method, await request.body())
            except WebhookError as exc:
                return _error_response(exc)

            await asyncio.to_thread(channel.put, update)
            logger.debug("Webhook update received", extra={"update_id": update.update_id, "path": pattern})
            return Response(status_code=200)

        self._app.add_api_route(pattern, receive_update, methods=_ALL_METHODS, include_in_schema=False)
        logger.info("Webhook route registered", extra={"path": pattern})
        return channel

    async def listen_for_webhook_once(self, request: Request) -> tuple[Response, UpdatesChannel]:
        """Handle a single webhook request.

        Returns the response to send back and a channel holding at most the
        one decoded update.  The channel is already closed.
        """
        channel = UpdatesChannel(self._handler_config.buffer_size)
        try:
            update = unmarshal_update(request.method, await request.body())
        except WebhookError as exc:
            channel.close()
            return _error_response(exc), channel

        channel.put(update)
        channel.close()
        return Response(status_code=200), channel

    def serve(self, host: str = "0.0.0.0", port: int = 8443, **uvicorn_options: Any) -> None:
        """Run the application with uvicorn; blocks until the server exits."""
        logger.info("Webhook server starting", extra={"host": host, "port": port})
        uvicorn.run(self._app, host=host, port=port, access_log=False, **uvicorn_options)

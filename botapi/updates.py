"""Update channels and the long-polling producer.

An :class:`UpdatesChannel` is a bounded FIFO shared between one producer
(the polling thread or the webhook endpoint) and any number of consumers.
:class:`PollingHandler` owns a background thread that repeatedly calls
``getUpdates``, tracks the offset and pushes every new update onto the
channel until :meth:`PollingHandler.stop` is called.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import threading
import time
from collections import deque
from typing import TYPE_CHECKING, AsyncIterator, Iterator, Optional

from botapi.config import DEFAULT_BUFFER_SIZE, HandlerConfig
from botapi.configs import UpdateConfig
from botapi.exceptions import BotAPIError, ChannelClosedError, ConfigurationError
from botapi.models import Update

if TYPE_CHECKING:
    from botapi.client import BotAPI

logger = logging.getLogger("botapi.updates")

# Upper bound on how long a blocked producer or async consumer goes without
# re-checking for shutdown.
_WAIT_SLICE_SECONDS = 0.1


class UpdatesChannel:
    """Bounded, closeable FIFO of :class:`~botapi.models.Update` values.

    ``put`` blocks while the channel is full.  Once closed, consumers drain
    what is left and then see the end of the stream.
    """

    def __init__(self, maxsize: int = DEFAULT_BUFFER_SIZE) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self._maxsize = maxsize
        self._items: deque[Update] = deque()
        self._cond = threading.Condition()
        self._closed = False

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def put(self, update: Update, timeout: Optional[float] = None) -> bool:
        """Append *update*, waiting for room.

        Returns False if *timeout* elapsed first.

        Raises:
            ChannelClosedError: If the channel is (or becomes) closed.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._closed and len(self._items) >= self._maxsize:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._cond.wait(remaining)
            if self._closed:
                raise ChannelClosedError("updates channel is closed")
            self._items.append(update)
            self._cond.notify_all()
            return True

    def get(self, timeout: Optional[float] = None) -> Optional[Update]:
        """Pop the oldest update.

        Returns None when the channel is closed and empty, or when *timeout*
        elapses with nothing to return.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._items:
                if self._closed:
                    return None
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return None
                self._cond.wait(remaining)
            update = self._items.popleft()
            self._cond.notify_all()
            return update

    def clear(self) -> int:
        """Discard everything buffered without blocking; returns how many."""
        with self._cond:
            dropped = len(self._items)
            self._items.clear()
            self._cond.notify_all()
        if dropped:
            logger.debug("Discarded buffered updates", extra={"count": dropped})
        return dropped

    def close(self) -> None:
        """Mark the end of the stream.  Safe to call more than once."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[Update]:
        while True:
            update = self.get()
            if update is None:
                return
            yield update

    async def __aiter__(self) -> AsyncIterator[Update]:
        while True:
            update = await asyncio.to_thread(self.get, _WAIT_SLICE_SECONDS)
            if update is not None:
                yield update
            elif self.closed and not len(self):
                return


class PollingHandler:
    """Delivers updates fetched with repeated ``getUpdates`` calls.

    The handler works on its own copy of *update_config* and advances its
    ``offset`` past every update it delivers, so nothing is delivered twice.
    Fetch failures are logged and retried after ``handler_config.retry_delay``
    seconds; they never end the stream.  Only :meth:`stop` does.

    Usage::

        handler = bot.polling(UpdateConfig(timeout=30))
        for update in handler.init_updates_channel():
            ...
    """

    def __init__(
        self,
        bot: "BotAPI",
        update_config: UpdateConfig,
        handler_config: Optional[HandlerConfig] = None,
    ) -> None:
        self._bot = bot
        self._config = dataclasses.replace(update_config)
        self._handler_config = handler_config or HandlerConfig()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._channel: Optional[UpdatesChannel] = None

    @property
    def offset(self) -> int:
        """Id of the next update the stream will accept."""
        return self._config.offset

    @property
    def channel(self) -> Optional[UpdatesChannel]:
        return self._channel

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    # ------------------------------------------------------------------
    #  Lifecycle
    # ------------------------------------------------------------------

    def init_updates_channel(self) -> UpdatesChannel:
        """Start polling and return the channel updates are pushed to.

        Raises:
            ConfigurationError: If a webhook is currently set for the bot,
                or the stream was already started.
        """
        if self._channel is not None:
            raise ConfigurationError("polling stream already started")

        try:
            info = self._bot.get_webhook_info()
        except BotAPIError as exc:
            logger.warning("Could not check webhook status; polling anyway", extra={"error": str(exc)})
        else:
            if info.is_set():
                raise ConfigurationError(
                    f"a webhook is set ({info.url}); delete it before polling for updates"
                )

        self._channel = UpdatesChannel(self._handler_config.buffer_size)
        self._thread = threading.Thread(
            target=self._run,
            args=(self._channel,),
            name="botapi-polling",
            daemon=True,
        )
        self._thread.start()
        logger.info("Polling started", extra={"offset": self.offset, "buffer_size": self._handler_config.buffer_size})
        return self._channel

    def stop(self) -> None:
        """Ask the polling thread to finish; returns without waiting.

        A request already in flight is not interrupted.  The channel is
        closed by the polling thread once it notices.
        """
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        logger.info("Polling stop requested", extra={"offset": self.offset})

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the polling thread to exit; True if it has."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    # ------------------------------------------------------------------
    #  Polling thread
    # ------------------------------------------------------------------

    def _run(self, channel: UpdatesChannel) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    updates = self._bot.get_updates(self._config)
                except BotAPIError as exc:
                    logger.warning(
                        "Failed to get updates, retrying",
                        extra={"error": str(exc), "retry_delay": self._handler_config.retry_delay},
                    )
                    self._stop_event.wait(self._handler_config.retry_delay)
                    continue

                for update in updates:
                    if update.update_id < self._config.offset:
                        logger.debug(
                            "Dropping already delivered update",
                            extra={"update_id": update.update_id, "offset": self._config.offset},
                        )
                        continue
                    if not self._push(channel, update):
                        return
                    self._config.offset = update.update_id + 1
        finally:
            channel.close()
            logger.info("Polling stopped", extra={"offset": self._config.offset})

    def _push(self, channel: UpdatesChannel, update: Update) -> bool:
        """Block until *update* is queued; False if a stop came first."""
        while not channel.put(update, timeout=_WAIT_SLICE_SECONDS):
            if self._stop_event.is_set():
                return False
        return True

"""Tests for UpdatesChannel and PollingHandler."""

import asyncio
import sys
import os
import threading
import time
from unittest.mock import MagicMock, patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from botapi.config import HandlerConfig
from botapi.configs import UpdateConfig
from botapi.exceptions import ChannelClosedError, ConfigurationError, TransportError
from botapi.models import Update, WebhookInfo
from botapi.updates import PollingHandler, UpdatesChannel


def _updates(*ids: int) -> list:
    return [Update(update_id=i) for i in ids]


def _webhook_info(url: str = "") -> WebhookInfo:
    return WebhookInfo(url=url, has_custom_certificate=False, pending_update_count=0)


def _make_bot(*batches) -> MagicMock:
    """A bot that serves *batches* in order and then blocks briefly on each call."""
    bot = MagicMock()
    bot.get_webhook_info.return_value = _webhook_info()
    remaining = list(batches)
    idle = threading.Event()

    def get_updates(config):
        if remaining:
            batch = remaining.pop(0)
            if isinstance(batch, Exception):
                raise batch
            return batch
        idle.wait(0.01)
        return []

    bot.get_updates.side_effect = get_updates
    return bot


def _drain(channel: UpdatesChannel, count: int) -> list:
    got = []
    for _ in range(count):
        update = channel.get(timeout=5)
        assert update is not None
        got.append(update.update_id)
    return got


# ── UpdatesChannel ───────────────────────────────────────────────────────────


class TestUpdatesChannel:
    """Validate the bounded closeable queue."""

    def test_fifo_and_len(self) -> None:
        ch = UpdatesChannel(maxsize=3)
        for update in _updates(1, 2):
            ch.put(update)
        assert len(ch) == 2
        assert ch.get().update_id == 1
        assert ch.get().update_id == 2

    def test_put_times_out_when_full(self) -> None:
        ch = UpdatesChannel(maxsize=1)
        assert ch.put(Update(update_id=1)) is True
        assert ch.put(Update(update_id=2), timeout=0.05) is False
        assert len(ch) == 1

    def test_get_times_out_when_empty(self) -> None:
        assert UpdatesChannel().get(timeout=0.01) is None

    def test_iteration_ends_after_close_and_drain(self) -> None:
        ch = UpdatesChannel()
        for update in _updates(1, 2, 3):
            ch.put(update)
        ch.close()
        assert [u.update_id for u in ch] == [1, 2, 3]
        assert ch.closed

    def test_put_after_close_raises(self) -> None:
        ch = UpdatesChannel()
        ch.close()
        ch.close()
        with pytest.raises(ChannelClosedError):
            ch.put(Update(update_id=1))

    def test_close_wakes_blocked_producer(self) -> None:
        ch = UpdatesChannel(maxsize=1)
        ch.put(Update(update_id=1))
        errors: list = []

        def produce() -> None:
            try:
                ch.put(Update(update_id=2))
            except ChannelClosedError as exc:
                errors.append(exc)

        t = threading.Thread(target=produce)
        t.start()
        ch.close()
        t.join(timeout=5)
        assert len(errors) == 1

    def test_clear_returns_discarded_count(self) -> None:
        ch = UpdatesChannel()
        for update in _updates(1, 2, 3):
            ch.put(update)
        assert ch.clear() == 3
        assert len(ch) == 0
        assert ch.clear() == 0

    def test_async_iteration(self) -> None:
        ch = UpdatesChannel()
        for update in _updates(4, 5):
            ch.put(update)
        ch.close()

        async def collect() -> list:
            return [u.update_id async for u in ch]

        assert asyncio.run(collect()) == [4, 5]

    def test_invalid_size(self) -> None:
        with pytest.raises(ValueError):
            UpdatesChannel(maxsize=0)


# ── PollingHandler ───────────────────────────────────────────────────────────


class TestPollingHandler:
    """Validate offset tracking, retries and shutdown."""

    def test_offset_advances_and_duplicates_dropped(self) -> None:
        bot = _make_bot(_updates(5, 6, 7), _updates(6, 7, 8, 9))
        handler = PollingHandler(bot, UpdateConfig(timeout=30))
        channel = handler.init_updates_channel()

        assert _drain(channel, 5) == [5, 6, 7, 8, 9]
        handler.stop()
        assert handler.join(timeout=5)
        assert handler.offset == 10
        assert channel.get(timeout=0.01) is None

    def test_caller_config_is_not_mutated(self) -> None:
        config = UpdateConfig(offset=0, timeout=30)
        bot = _make_bot(_updates(1))
        handler = PollingHandler(bot, config)
        channel = handler.init_updates_channel()

        _drain(channel, 1)
        handler.stop()
        handler.join(timeout=5)
        assert config.offset == 0
        assert handler.offset == 2

    def test_requests_carry_current_offset(self) -> None:
        bot = _make_bot(_updates(3), _updates(4))
        offsets: list = []
        serve = bot.get_updates.side_effect

        def recording(config):
            offsets.append(config.offset)
            return serve(config)

        bot.get_updates.side_effect = recording
        handler = PollingHandler(bot, UpdateConfig())
        channel = handler.init_updates_channel()
        _drain(channel, 2)
        handler.stop()
        handler.join(timeout=5)

        assert offsets[:2] == [0, 4]
        assert handler.offset == 5

    def test_failures_are_retried(self) -> None:
        bot = _make_bot(TransportError("offline"), _updates(1))
        handler = PollingHandler(bot, UpdateConfig(), HandlerConfig(retry_delay=0.01))
        channel = handler.init_updates_channel()

        assert _drain(channel, 1) == [1]
        handler.stop()
        handler.join(timeout=5)

    def test_webhook_set_blocks_polling(self) -> None:
        bot = _make_bot()
        bot.get_webhook_info.return_value = _webhook_info("https://example.com/hook")
        handler = PollingHandler(bot, UpdateConfig())

        with pytest.raises(ConfigurationError):
            handler.init_updates_channel()
        bot.get_updates.assert_not_called()

    def test_webhook_lookup_failure_does_not_block(self) -> None:
        bot = _make_bot(_updates(1))
        bot.get_webhook_info.side_effect = TransportError("offline")
        handler = PollingHandler(bot, UpdateConfig())
        channel = handler.init_updates_channel()

        assert _drain(channel, 1) == [1]
        handler.stop()
        handler.join(timeout=5)

    def test_double_stop_closes_once(self) -> None:
        bot = _make_bot()
        handler = PollingHandler(bot, UpdateConfig())
        original_close = UpdatesChannel.close

        with patch.object(UpdatesChannel, "close", autospec=True, side_effect=original_close) as close_spy:
            channel = handler.init_updates_channel()
            handler.stop()
            handler.stop()
            assert handler.join(timeout=5)

        assert close_spy.call_count == 1
        assert channel.closed
        assert handler.stopped

    def test_stop_releases_blocked_producer(self) -> None:
        bot = _make_bot(_updates(1, 2, 3))
        handler = PollingHandler(bot, UpdateConfig(), HandlerConfig(buffer_size=1))
        channel = handler.init_updates_channel()

        assert _drain(channel, 1) == [1]
        handler.stop()
        assert handler.join(timeout=5)
        assert channel.closed

    def test_stop_keeps_offset_at_last_delivered(self) -> None:
        bot = _make_bot(_updates(1, 2, 3))
        handler = PollingHandler(bot, UpdateConfig(), HandlerConfig(buffer_size=1))
        channel = handler.init_updates_channel()

        assert _drain(channel, 1) == [1]
        # 2 is buffered and the producer is now blocked pushing 3
        deadline = time.monotonic() + 5
        while handler.offset != 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert handler.offset == 3

        handler.stop()
        assert handler.join(timeout=5)
        delivered = [u.update_id for u in channel]
        assert delivered == [2]
        assert handler.offset == delivered[-1] + 1

    def test_start_twice_rejected(self) -> None:
        handler = PollingHandler(_make_bot(), UpdateConfig())
        handler.init_updates_channel()
        try:
            with pytest.raises(ConfigurationError):
                handler.init_updates_channel()
        finally:
            handler.stop()
            handler.join(timeout=5)

    def test_join_before_start(self) -> None:
        assert PollingHandler(_make_bot(), UpdateConfig()).join(timeout=0) is True

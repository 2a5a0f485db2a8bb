"""Tests for the streaming multipart pipe and writer."""

import io
import sys
import os
import threading

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from botapi.exceptions import EncodingError, TransportError
from botapi.files import FileBytes, FileID, FilePath, FileReader, RequestFile
from botapi.multipart import MultipartWriter, Pipe, start_multipart_body


# ── Pipe ─────────────────────────────────────────────────────────────────────


class TestPipe:
    """Validate ordering, completion and error propagation."""

    def test_chunks_arrive_in_order(self) -> None:
        pipe = Pipe()
        pipe.write(b"one")
        pipe.write(b"")
        pipe.write(b"two")
        pipe.close()
        assert list(pipe) == [b"one", b"two"]

    def test_writer_error_surfaces_on_reader(self) -> None:
        pipe = Pipe()
        pipe.write(b"partial")
        cause = OSError("disk gone")
        pipe.close_with_error(cause)

        chunks = iter(pipe)
        assert next(chunks) == b"partial"
        with pytest.raises(TransportError) as exc_info:
            next(chunks)
        assert exc_info.value.__cause__ is cause
        assert pipe.error is cause

    def test_write_after_close_rejected(self) -> None:
        pipe = Pipe()
        pipe.close()
        with pytest.raises(ValueError):
            pipe.write(b"late")

    def test_close_reader_unblocks_writer(self) -> None:
        pipe = Pipe(max_chunks=1)
        pipe.write(b"fills the buffer")
        outcome: list = []

        def blocked_write() -> None:
            try:
                pipe.write(b"waits for room")
            except BrokenPipeError as exc:
                outcome.append(exc)

        writer = threading.Thread(target=blocked_write)
        writer.start()
        pipe.close_reader()
        writer.join(timeout=5)

        assert not writer.is_alive()
        assert len(outcome) == 1


# ── MultipartWriter ──────────────────────────────────────────────────────────


class TestMultipartWriter:
    """Validate the wire layout of parts."""

    def test_layout(self) -> None:
        pipe = Pipe()
        writer = MultipartWriter(pipe, boundary="XYZ")
        writer.write_field("chat_id", "42")
        copied = writer.write_file("photo", 'my "cat".png', io.BytesIO(b"IMG"), chunk_size=2)
        writer.close()
        pipe.close()

        assert copied == 3
        assert writer.content_type == "multipart/form-data; boundary=XYZ"
        assert b"".join(pipe) == (
            b"--XYZ\r\n"
            b'Content-Disposition: form-data; name="chat_id"\r\n'
            b"\r\n"
            b"42"
            b"\r\n--XYZ\r\n"
            b'Content-Disposition: form-data; name="photo"; filename="my \\"cat\\".png"\r\n'
            b"Content-Type: application/octet-stream\r\n"
            b"\r\n"
            b"IMG"
            b"\r\n--XYZ--\r\n"
        )


# ── start_multipart_body ─────────────────────────────────────────────────────


class TestStartMultipartBody:
    """Validate the background body writer."""

    def test_writes_fields_then_files(self) -> None:
        pipe, content_type = start_multipart_body(
            {"chat_id": "42"},
            [RequestFile("document", FileBytes("a.txt", b"hello")), RequestFile("thumbnail", FileID("T"))],
        )
        body = b"".join(pipe)

        assert content_type.startswith("multipart/form-data; boundary=")
        assert body.index(b'name="chat_id"') < body.index(b'name="document"')
        assert b"hello" in body
        assert b'name="thumbnail"\r\n\r\nT' in body

    def test_reader_sources_are_closed(self) -> None:
        source = io.BytesIO(b"stream data")
        pipe, _ = start_multipart_body({}, [RequestFile("audio", FileReader("a.mp3", source))])
        b"".join(pipe)
        assert source.closed

    def test_failure_aborts_body(self, tmp_path) -> None:
        pipe, _ = start_multipart_body({}, [RequestFile("photo", FilePath(str(tmp_path / "none.png")))])
        with pytest.raises(TransportError) as exc_info:
            b"".join(pipe)
        assert isinstance(exc_info.value.__cause__, EncodingError)

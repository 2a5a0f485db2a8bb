"""Streaming ``multipart/form-data`` bodies.

The body is produced by a background thread into a :class:`Pipe` while the
HTTP request consumes the pipe as a chunked body, so uploaded files are
copied through in fixed-size chunks instead of being held in memory.  A
failure on the writing side is re-raised on the reading side as a
:class:`~botapi.exceptions.TransportError`, which aborts the request rather
than sending a truncated body.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import BinaryIO, Iterator, Mapping, Sequence
from uuid import uuid4

from botapi.exceptions import TransportError
from botapi.files import RequestFile

logger = logging.getLogger("botapi.multipart")

COPY_CHUNK_SIZE: int = 64 * 1024

_EOF = object()
_PUT_POLL_SECONDS = 0.1


class Pipe:
    """In-order byte stream between one writer thread and one reader.

    At most ``max_chunks`` written chunks are buffered; the writer blocks
    beyond that until the reader catches up.  If the reader gives up
    (:meth:`close_reader`), a blocked or later write raises
    :class:`BrokenPipeError` so the writer thread can exit.
    """

    def __init__(self, max_chunks: int = 16) -> None:
        self._queue: queue.Queue = queue.Queue(maxsize=max_chunks)
        self._reader_closed = threading.Event()
        self._writer_closed = False
        self._error: BaseException | None = None

    @property
    def error(self) -> BaseException | None:
        """The exception the writer aborted with, if any."""
        return self._error

    def write(self, data: bytes) -> int:
        if self._writer_closed:
            raise ValueError("write to closed pipe")
        if not data:
            return 0
        self._put(bytes(data))
        return len(data)

    def close(self) -> None:
        """Signal a clean end of the body."""
        if self._writer_closed:
            return
        self._writer_closed = True
        self._put_eof()

    def close_with_error(self, exc: BaseException) -> None:
        """End the body with *exc*; the reader raises it instead of finishing."""
        if self._writer_closed:
            return
        self._error = exc
        self._writer_closed = True
        self._put_eof()

    def close_reader(self) -> None:
        """Tell the writer nobody will read any further."""
        self._reader_closed.set()

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self._queue.get()
            if chunk is _EOF:
                if self._error is not None:
                    raise TransportError(f"multipart body write failed: {self._error}") from self._error
                return
            yield chunk

    def _put(self, item: object) -> None:
        while True:
            if self._reader_closed.is_set():
                raise BrokenPipeError("pipe reader closed")
            try:
                self._queue.put(item, timeout=_PUT_POLL_SECONDS)
                return
            except queue.Full:
                continue

    def _put_eof(self) -> None:
        try:
            self._put(_EOF)
        except BrokenPipeError:
            pass  # nobody is left to see the end marker


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


class MultipartWriter:
    """Writes ``multipart/form-data`` parts to a binary sink."""

    def __init__(self, sink: Pipe, boundary: str | None = None) -> None:
        self._sink = sink
        self.boundary = boundary or uuid4().hex
        self._parts = 0

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def _begin_part(self, *headers: str) -> None:
        prefix = "\r\n" if self._parts else ""
        head = f"{prefix}--{self.boundary}\r\n" + "".join(f"{h}\r\n" for h in headers) + "\r\n"
        self._sink.write(head.encode("utf-8"))
        self._parts += 1

    def write_field(self, name: str, value: str) -> None:
        self._begin_part(f'Content-Disposition: form-data; name="{_quote(name)}"')
        self._sink.write(value.encode("utf-8"))

    def write_file(self, name: str, filename: str, source: BinaryIO, chunk_size: int = COPY_CHUNK_SIZE) -> int:
        """Copy *source* into a new file part; returns the number of bytes copied."""
        self._begin_part(
            f'Content-Disposition: form-data; name="{_quote(name)}"; filename="{_quote(filename)}"',
            "Content-Type: application/octet-stream",
        )
        copied = 0
        while True:
            chunk = source.read(chunk_size)
            if not chunk:
                return copied
            copied += self._sink.write(chunk)

    def close(self) -> None:
        prefix = "\r\n" if self._parts else ""
        self._sink.write(f"{prefix}--{self.boundary}--\r\n".encode("utf-8"))


def _write_body(pipe: Pipe, writer: MultipartWriter, params: Mapping[str, str], files: Sequence[RequestFile]) -> None:
    try:
        for field, value in params.items():
            writer.write_field(field, value)

        for file in files:
            if file.data.needs_upload():
                filename, reader = file.data.upload_data()
                try:
                    copied = writer.write_file(file.name, filename, reader)
                finally:
                    reader.close()
                logger.debug("Multipart file part written", extra={"field": file.name, "file_name": filename, "bytes": copied})
            else:
                writer.write_field(file.name, file.data.send_data())

        writer.close()
    except Exception as exc:  # every failure is handed to the reading side
        pipe.close_with_error(exc)
        return
    pipe.close()


def start_multipart_body(params: Mapping[str, str], files: Sequence[RequestFile]) -> tuple[Pipe, str]:
    """Start writing a multipart body in a background thread.

    Returns the pipe to use as the request body and its ``Content-Type``.
    Call :meth:`Pipe.close_reader` once the request is done so an
    abandoned writer can exit.
    """
    pipe = Pipe()
    writer = MultipartWriter(pipe)
    thread = threading.Thread(
        target=_write_body,
        args=(pipe, writer, dict(params), list(files)),
        name="botapi-multipart",
        daemon=True,
    )
    thread.start()
    return pipe, writer.content_type

"""File attachments carried by requests.

An attachment is either uploaded as bytes (:class:`FileBytes`,
:class:`FileReader`, :class:`FilePath`) or referenced by a string the API
already understands (:class:`FileURL`, :class:`FileID`, and the internal
:class:`FileAttach` used for ``attach://`` references).
"""

from __future__ import annotations

import io
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Iterable, MutableMapping

from botapi.exceptions import EncodingError


class RequestFileData(ABC):
    """One side of the upload decision: bytes to send, or a string to pass."""

    @abstractmethod
    def needs_upload(self) -> bool:
        """True if the data must be sent as a multipart file part."""

    def upload_data(self) -> tuple[str, BinaryIO]:
        """Return ``(filename, stream)`` for an upload.

        The caller owns the returned stream and must close it.
        """
        raise EncodingError(f"{type(self).__name__} is not uploadable")

    def send_data(self) -> str:
        """Return the string that references this file without uploading it."""
        raise EncodingError(f"{type(self).__name__} must be uploaded")


@dataclass(frozen=True)
class FileBytes(RequestFileData):
    """In-memory file contents."""

    name: str
    data: bytes

    def needs_upload(self) -> bool:
        return True

    def upload_data(self) -> tuple[str, BinaryIO]:
        return self.name, io.BytesIO(self.data)


@dataclass(frozen=True)
class FileReader(RequestFileData):
    """An open binary stream; it is closed once its contents are sent."""

    name: str
    reader: BinaryIO

    def needs_upload(self) -> bool:
        return True

    def upload_data(self) -> tuple[str, BinaryIO]:
        return self.name, self.reader


@dataclass(frozen=True)
class FilePath(RequestFileData):
    """A path on the local filesystem, opened only when the body is written."""

    path: str | os.PathLike

    def needs_upload(self) -> bool:
        return True

    def upload_data(self) -> tuple[str, BinaryIO]:
        try:
            handle = open(self.path, "rb")
        except OSError as exc:
            raise EncodingError(f"cannot open {os.fspath(self.path)!r}: {exc}") from exc
        return os.path.basename(os.fspath(self.path)), handle


@dataclass(frozen=True)
class FileURL(RequestFileData):
    """A URL the API server downloads itself."""

    url: str

    def needs_upload(self) -> bool:
        return False

    def send_data(self) -> str:
        return self.url


@dataclass(frozen=True)
class FileID(RequestFileData):
    """The identifier of a file already stored on the API server."""

    file_id: str

    def needs_upload(self) -> bool:
        return False

    def send_data(self) -> str:
        return self.file_id


@dataclass(frozen=True)
class FileAttach(RequestFileData):
    """An ``attach://<key>`` reference to a multipart part of the same request."""

    reference: str

    @classmethod
    def for_key(cls, key: str) -> "FileAttach":
        return cls(f"attach://{key}")

    def needs_upload(self) -> bool:
        return False

    def send_data(self) -> str:
        return self.reference


@dataclass(frozen=True)
class RequestFile:
    """An attachment bound to the form field it is sent under."""

    name: str
    data: RequestFileData


def has_files_needing_upload(files: Iterable[RequestFile]) -> bool:
    return any(file.data.needs_upload() for file in files)


def fold_into_params(params: MutableMapping[str, str], files: Iterable[RequestFile]) -> None:
    """Write every file's reference string into *params* under its field name."""
    for file in files:
        params[file.name] = file.data.send_data()

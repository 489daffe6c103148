"""Outgoing HTTP requests and the client interface that sends them."""

import dataclasses
import io
import secrets
from abc import ABC, abstractmethod
from typing import Any, BinaryIO, NoReturn, Protocol

from airkit.codec import Codec

HEADER_CONTENT_TYPE = "Content-Type"
HEADER_CONTENT_TYPE_JSON = "application/json"
HEADER_CONTENT_TYPE_FORM_URLENCODED = "application/x-www-form-urlencoded"


class Request(Protocol):
    """What a client needs to build and send a request."""

    service_name: str
    path: str
    method: str
    header: dict[str, str]
    query: dict[str, list[str]]

    @property
    def body(self) -> Any: ...

    @property
    def codec(self) -> Codec | None: ...


@dataclasses.dataclass
class DefaultRequest:
    """A request whose body is serialised by ``codec``."""

    service_name: str = ""
    path: str = ""
    query: dict[str, list[str]] = dataclasses.field(default_factory=dict)
    method: str = ""
    header: dict[str, str] = dataclasses.field(default_factory=dict)
    body: Any = None
    codec: Codec | None = None


@dataclasses.dataclass
class MultiFormFile:
    """A file part of a multipart form."""

    content: bytes | BinaryIO
    name: str

    def read(self) -> bytes:
        if isinstance(self.content, (bytes, bytearray)):
            return bytes(self.content)
        return self.content.read()


def _escape_quotes(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


class _MultipartWriter:
    def __init__(self) -> None:
        self.boundary = secrets.token_hex(30)
        self._buffer = bytearray()

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def _open_part(self, headers: dict[str, str]) -> None:
        prefix = "\r\n--" if self._buffer else "--"
        lines = "".join(f"{key}: {value}\r\n" for key, value in sorted(headers.items()))
        self._buffer += f"{prefix}{self.boundary}\r\n{lines}\r\n".encode("utf-8")

    def write_field(self, name: str, value: str) -> None:
        self._open_part({"Content-Disposition": f'form-data; name="{_escape_quotes(name)}"'})
        self._buffer += value.encode("utf-8")

    def write_file(self, name: str, filename: str, content: bytes) -> None:
        self._open_part(
            {
                "Content-Disposition": (
                    f'form-data; name="{_escape_quotes(name)}"; '
                    f'filename="{_escape_quotes(filename)}"'
                ),
                "Content-Type": "application/octet-stream",
            }
        )
        self._buffer += content

    def close(self) -> None:
        self._buffer += f"\r\n--{self.boundary}--\r\n".encode("utf-8")

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


def _first(values: list[str] | str) -> str:
    if isinstance(values, str):
        return values
    return values[0] if values else ""


@dataclasses.dataclass
class MultiRequest(Codec):
    """A multipart/form-data request; it serves as its own codec.

    The body is built from ``values`` and ``files``, so ``body`` is always
    None. The closing boundary is written only when ``files`` is given.
    """

    service_name: str = ""
    path: str = ""
    query: dict[str, list[str]] = dataclasses.field(default_factory=dict)
    method: str = ""
    header: dict[str, str] = dataclasses.field(default_factory=dict)
    values: dict[str, list[str]] | None = None
    files: dict[str, MultiFormFile] | None = None

    body = None

    @property
    def codec(self) -> Codec:
        return self

    def encode(self, data: Any = None) -> bytes:
        """Build the multipart body and set the Content-Type header."""
        writer = _MultipartWriter()
        for key, values in (self.values or {}).items():
            writer.write_field(key, _first(values))
        if self.files is not None:
            for key, form_file in self.files.items():
                writer.write_file(key, form_file.name, form_file.read())
            writer.close()
        if self.header is None:
            self.header = {}
        self.header[HEADER_CONTENT_TYPE] = writer.content_type
        return writer.getvalue()

    def decode(self, raw: bytes | str) -> NoReturn:
        raise io.UnsupportedOperation("a multipart request body cannot be decoded")


class Client(ABC):
    """Sends requests to named services."""

    @abstractmethod
    def send(self, request: Request, response: Any) -> None:
        """Send ``request`` and let ``response`` handle the reply."""
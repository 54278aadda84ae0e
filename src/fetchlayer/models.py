"""Request, response and body types shared across the pipeline."""

from __future__ import annotations

import json as jsonlib
from dataclasses import dataclass, field
from email import policy
from email.parser import BytesParser
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator
from urllib.parse import parse_qsl

import httpx

from .exceptions import BodyConsumedError, FetchLayerValidationError

if TYPE_CHECKING:
    from .cancellation import CancelToken
    from .request_options import Options


class BodyKind(str, Enum):
    JSON = "json"
    TEXT = "text"
    BLOB = "blob"
    BYTES = "bytes"
    FORM_DATA = "form_data"
    VOID = "void"


def accept_type(kind: BodyKind) -> str:
    """Return the ``accept`` header value requested by a decode kind."""
    if kind is BodyKind.JSON:
        return "application/json"
    if kind is BodyKind.TEXT:
        return "text/*"
    if kind is BodyKind.FORM_DATA:
        return "multipart/form-data"
    if kind in (BodyKind.BLOB, BodyKind.BYTES, BodyKind.VOID):
        return "*/*"
    raise FetchLayerValidationError(f"Unknown body kind: {kind!r}")


@dataclass(frozen=True)
class UploadFile:
    filename: str
    content: bytes
    content_type: str | None = None


class FormData:
    """Ordered multipart form payload; values are strings or :class:`UploadFile`."""

    def __init__(self, fields: list[tuple[str, str | UploadFile]] | None = None) -> None:
        self._fields: list[tuple[str, str | UploadFile]] = list(fields or [])

    def append(self, name: str, value: str | UploadFile) -> None:
        self._fields.append((name, value))

    def append_file(self, name: str, filename: str, content: bytes, content_type: str | None = None) -> None:
        self._fields.append((name, UploadFile(filename, content, content_type)))

    def get(self, name: str, default: str | UploadFile | None = None) -> str | UploadFile | None:
        for key, value in self._fields:
            if key == name:
                return value
        return default

    def get_all(self, name: str) -> list[str | UploadFile]:
        return [value for key, value in self._fields if key == name]

    def items(self) -> list[tuple[str, str | UploadFile]]:
        return list(self._fields)

    def to_httpx_files(self) -> list[tuple[str, tuple[Any, ...]]]:
        """Encode as httpx ``files=`` entries so the payload is always multipart."""
        files: list[tuple[str, tuple[Any, ...]]] = []
        for name, value in self._fields:
            if isinstance(value, UploadFile):
                files.append((name, (value.filename, value.content, value.content_type)))
            else:
                files.append((name, (None, str(value).encode("utf-8"))))
        return files

    def __iter__(self) -> Iterator[tuple[str, str | UploadFile]]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FormData):
            return NotImplemented
        return self._fields == other._fields

    def __repr__(self) -> str:
        return f"FormData({self._fields!r})"


@dataclass(frozen=True)
class Blob:
    content: bytes
    type: str = ""

    @property
    def size(self) -> int:
        return len(self.content)

    def text(self, encoding: str = "utf-8") -> str:
        return self.content.decode(encoding, errors="replace")


@dataclass
class ResolvedRequest:
    """Dispatch-ready form of the options for a single attempt."""

    method: str
    url: httpx.URL
    headers: httpx.Headers
    params: httpx.QueryParams = field(default_factory=httpx.QueryParams)
    body: str | bytes | FormData | None = None
    attempt: int = 0
    cancel_token: CancelToken | None = None


def _parse_form_data(content: bytes, content_type: str) -> FormData:
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type == "application/x-www-form-urlencoded":
        pairs = parse_qsl(content.decode("utf-8", errors="replace"), keep_blank_values=True)
        return FormData([(key, value) for key, value in pairs])
    if media_type != "multipart/form-data":
        raise FetchLayerValidationError(f"Could not parse content as FormData: {content_type or 'no content-type'}")

    head = f"Content-Type: {content_type}\r\nMIME-Version: 1.0\r\n\r\n".encode("latin-1")
    message = BytesParser(policy=policy.HTTP).parsebytes(head + content)
    if not message.is_multipart():
        raise FetchLayerValidationError("Could not parse content as FormData: missing boundary")

    form = FormData()
    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if name is None:
            continue
        payload = part.get_payload(decode=True) or b""
        filename = part.get_filename()
        if filename is not None:
            form.append_file(str(name), filename, payload, part.get_content_type())
        else:
            charset = part.get_content_charset() or "utf-8"
            form.append(str(name), payload.decode(charset, errors="replace"))
    return form


class Response:
    """Transport response decorated with the options and attempt that produced it.

    Body readers consume the body once, like a stream; use :meth:`clone` to read
    it again.
    """

    def __init__(
        self,
        raw: httpx.Response,
        *,
        request: ResolvedRequest,
        options: Options,
        attempt: int = 0,
    ) -> None:
        self.raw = raw
        self.request = request
        self.options = options
        self.attempt = attempt
        self._content = raw.content
        self._body_used = False

    @property
    def status_code(self) -> int:
        return self.raw.status_code

    @property
    def reason_phrase(self) -> str:
        return self.raw.reason_phrase

    @property
    def headers(self) -> httpx.Headers:
        return self.raw.headers

    @property
    def url(self) -> httpx.URL:
        try:
            return self.raw.url
        except RuntimeError:
            return self.request.url

    @property
    def ok(self) -> bool:
        return self.raw.is_success

    @property
    def body_used(self) -> bool:
        return self._body_used

    def clone(self) -> Response:
        if self._body_used:
            raise BodyConsumedError("Response body has already been consumed and cannot be cloned")
        return Response(self.raw, request=self.request, options=self.options, attempt=self.attempt)

    def _consume(self) -> bytes:
        if self._body_used:
            raise BodyConsumedError("Response body has already been consumed")
        self._body_used = True
        return self._content

    async def content(self) -> bytes:
        return self._consume()

    async def text(self) -> str:
        content = self._consume()
        encoding = self.raw.encoding or "utf-8"
        try:
            return content.decode(encoding, errors="replace")
        except LookupError:
            return content.decode("utf-8", errors="replace")

    async def json(self) -> Any:
        return jsonlib.loads(self._consume())

    async def blob(self) -> Blob:
        return Blob(self._consume(), self.headers.get("content-type", ""))

    async def form_data(self) -> FormData:
        return _parse_form_data(self._consume(), self.headers.get("content-type", ""))

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] attempt={self.attempt}>"

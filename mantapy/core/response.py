"""
Response views.

Each view keeps the response headers (a read-only case-insensitive
multimap) next to one interpretation of the payload. The calling
operation chooses the view; nothing is inferred from Content-Type.
"""
import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from multidict import CIMultiDictProxy

from .exceptions import MantaException
from .request.transport import TransportResponse


def parse_json_list(data: str) -> List[Dict[str, Any]]:
    """Parse newline-delimited JSON objects, skipping blank or bad lines."""
    items = []
    for line in data.split('\n'):
        line = line.strip()
        if not line:
            continue
        try:
            decoded = json.loads(line)
        except ValueError:
            continue
        if isinstance(decoded, dict) and decoded:
            items.append(decoded)
    return items


def parse_text_list(data: str) -> List[str]:
    """Parse newline-delimited text, trimming lines and skipping blanks."""
    return [line.strip() for line in data.split('\n') if line.strip()]


class MantaResponse:
    """Base view: response headers only."""

    def __init__(self, headers: CIMultiDictProxy):
        self._headers = headers

    @property
    def headers(self) -> CIMultiDictProxy:
        return self._headers

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a header (case-insensitive)."""
        return self._headers.get(name, default)

    def header_values(self, name: str) -> List[str]:
        """Every value of a repeated header."""
        return self._headers.getall(name, [])


class HeaderResponse(MantaResponse):
    """Response whose payload is ignored."""

    def __repr__(self) -> str:
        return f"<HeaderResponse {len(self._headers)} headers>"


class ArrayResponse(MantaResponse):
    """Response whose payload is a list of records or lines."""

    def __init__(self, headers: CIMultiDictProxy, items: List[Any]):
        super().__init__(headers)
        self._items = tuple(items)

    @property
    def data(self) -> Tuple[Any, ...]:
        return self._items

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def __repr__(self) -> str:
        return f"<ArrayResponse {len(self._items)} items>"


class ObjectResponse(MantaResponse):
    """Response whose payload is a single JSON object."""

    def __init__(self, headers: CIMultiDictProxy, data: Mapping[str, Any]):
        super().__init__(headers)
        self._data = MappingProxyType(dict(data))

    @property
    def data(self) -> Mapping[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def keys(self):
        return self._data.keys()

    def __repr__(self) -> str:
        return f"<ObjectResponse {dict(self._data)!r}>"


class BytesResponse(MantaResponse):
    """Response whose payload is buffered raw bytes."""

    def __init__(self, headers: CIMultiDictProxy, data: bytes):
        super().__init__(headers)
        self._data = data

    @property
    def data(self) -> bytes:
        return self._data

    def text(self, encoding: str = 'utf-8') -> str:
        return self._data.decode(encoding)

    def __len__(self) -> int:
        return len(self._data)

    def __str__(self) -> str:
        return self._data.decode('utf-8', errors='replace')


class StreamResponse(MantaResponse):
    """Response whose payload is read lazily in chunks."""

    def __init__(self, response: TransportResponse):
        super().__init__(response.headers)
        self._response = response

    def iter_chunks(self) -> Iterator[bytes]:
        return self._response.iter_chunks()

    def read(self) -> bytes:
        return self._response.read()

    def close(self):
        self._response.close()

    def __enter__(self) -> 'StreamResponse':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


@dataclass(frozen=True)
class TreeOperationResult:
    """
    Aggregate result of a directory tree operation.

    ``headers`` belong to the targeted path; ``all_headers`` holds one
    header set per request performed, in execution order.
    """
    headers: Optional[CIMultiDictProxy]
    all_headers: Tuple[CIMultiDictProxy, ...] = ()

    def __len__(self) -> int:
        return len(self.all_headers)


def header_response(response: TransportResponse) -> HeaderResponse:
    response.close()
    return HeaderResponse(response.headers)


def json_list_response(response: TransportResponse) -> ArrayResponse:
    try:
        return ArrayResponse(response.headers, parse_json_list(response.text()))
    finally:
        response.close()


def text_list_response(response: TransportResponse) -> ArrayResponse:
    try:
        return ArrayResponse(response.headers, parse_text_list(response.text()))
    finally:
        response.close()


def object_response(response: TransportResponse) -> ObjectResponse:
    """
    Parse a single JSON object payload.

    Raises:
        MantaException: If the payload is not a JSON object
    """
    try:
        text = response.text()
    finally:
        response.close()

    try:
        data = json.loads(text) if text.strip() else {}
    except ValueError as e:
        raise MantaException(f"Invalid JSON object in response: {e}") from e

    if not isinstance(data, dict):
        raise MantaException(f"Expected a JSON object, got {type(data).__name__}")

    return ObjectResponse(response.headers, data)


def bytes_response(response: TransportResponse) -> BytesResponse:
    try:
        return BytesResponse(response.headers, response.read())
    finally:
        response.close()


def stream_response(response: TransportResponse) -> StreamResponse:
    return StreamResponse(response)

"""
HTTP transports.

Thin adapters over requests (sync) and aiohttp (async). They do no
signing and no retrying: connection-level failures become TransportError
and every HTTP response, whatever its status, is returned.
"""
import asyncio
from typing import Any, Callable, Dict, Iterator, Optional

import aiohttp
import requests
from multidict import CIMultiDict, CIMultiDictProxy
from requests.adapters import HTTPAdapter

from ..config import MantaConfig
from ..exceptions import TransportError
from ..logging import get_logger

STREAM_CHUNK_SIZE = 64 * 1024

logger = get_logger('mantapy.transport')


def freeze_headers(items) -> CIMultiDictProxy:
    """Build a read-only case-insensitive header multimap."""
    return CIMultiDictProxy(CIMultiDict(items))


class TransportResponse:
    """
    Status, headers and payload of one HTTP response.

    The payload is either fully buffered in ``content`` or left as a chunk
    iterator in ``stream`` until ``read()`` drains it.
    """

    def __init__(
        self,
        status: int,
        reason: str,
        headers: CIMultiDictProxy,
        content: Optional[bytes] = None,
        stream: Optional[Iterator[bytes]] = None,
        closer: Optional[Callable[[], None]] = None
    ):
        self.status = status
        self.reason = reason or ''
        self.headers = headers
        self._content = content
        self._stream = stream
        self._closer = closer

    @property
    def is_streaming(self) -> bool:
        return self._content is None and self._stream is not None

    def iter_chunks(self) -> Iterator[bytes]:
        """Yield the payload in chunks."""
        if self._content is not None:
            if self._content:
                yield self._content
            return
        if self._stream is not None:
            stream, self._stream = self._stream, None
            for chunk in stream:
                if chunk:
                    yield chunk

    def read(self) -> bytes:
        """Return the whole payload, draining the stream if needed."""
        if self._content is None:
            self._content = b''.join(self.iter_chunks())
        return self._content

    def text(self, encoding: str = 'utf-8') -> str:
        return self.read().decode(encoding, errors='replace')

    def close(self):
        if self._closer is not None:
            closer, self._closer = self._closer, None
            closer()

    def __repr__(self) -> str:
        return f"<TransportResponse [{self.status} {self.reason}]>"


class RequestsTransport:
    """
    Synchronous transport backed by a requests.Session.

    Adapter-level retries are disabled; the executor owns retrying.
    """

    def __init__(self, config: MantaConfig, session: Optional[requests.Session] = None):
        self._config = config
        self._session = session or self._create_session(config)

    @staticmethod
    def _create_session(config: MantaConfig) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=0)
        session.mount('http://', adapter)
        session.mount('https://', adapter)
        session.headers.update(config.get_default_headers())
        return session

    @property
    def session(self) -> requests.Session:
        return self._session

    def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Any = None,
        params: Optional[Dict[str, str]] = None,
        stream: bool = False
    ) -> TransportResponse:
        """
        Perform one HTTP request.

        Raises:
            TransportError: On DNS, connect, TLS, timeout or broken-stream failures
        """
        try:
            response = self._session.request(
                method,
                url,
                headers=headers,
                data=body,
                params=params,
                stream=stream,
                timeout=self._config.timeout.to_requests_timeout(),
                verify=self._config.ssl.to_requests_verify(),
                cert=self._config.ssl.to_requests_cert(),
                proxies=self._config.proxy.to_requests_proxies() if self._config.proxy else None,
            )
        except (
            requests.exceptions.ConnectionError,
            requests.exceptions.Timeout,
            requests.exceptions.ChunkedEncodingError,
        ) as e:
            raise TransportError(f"{method} {url} failed: {e}", method, url) from e

        headers_view = freeze_headers(response.headers.items())

        if stream:
            return TransportResponse(
                response.status_code,
                response.reason,
                headers_view,
                stream=response.iter_content(chunk_size=STREAM_CHUNK_SIZE),
                closer=response.close,
            )

        return TransportResponse(
            response.status_code,
            response.reason,
            headers_view,
            content=response.content,
        )

    def close(self):
        self._session.close()


class AiohttpTransport:
    """Asynchronous transport backed by an aiohttp.ClientSession."""

    def __init__(self, config: MantaConfig, session: Optional[aiohttp.ClientSession] = None):
        self._config = config
        self._session = session
        self._owns_session = session is None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self._config.ssl.create_ssl_context())
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers=self._config.get_default_headers(),
                timeout=self._config.timeout.to_aiohttp_timeout(),
            )
            self._owns_session = True
        return self._session

    async def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Any = None,
        params: Optional[Dict[str, str]] = None,
        stream: bool = False
    ) -> TransportResponse:
        """
        Perform one HTTP request, buffering the payload.

        Raises:
            TransportError: On DNS, connect, TLS, timeout or payload failures
        """
        session = await self._ensure_session()
        try:
            async with session.request(
                method,
                url,
                headers=headers,
                data=body,
                params=params,
                proxy=self._config.proxy.to_aiohttp_proxy() if self._config.proxy else None,
            ) as response:
                content = await response.read()
                return TransportResponse(
                    response.status,
                    response.reason,
                    freeze_headers(response.headers.items()),
                    content=content,
                )
        except (
            aiohttp.ClientConnectionError,
            aiohttp.ClientPayloadError,
            asyncio.TimeoutError,
        ) as e:
            raise TransportError(f"{method} {url} failed: {e!r}", method, url) from e

    async def close(self):
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

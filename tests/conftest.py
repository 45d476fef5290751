"""Pytest fixtures for mantapy tests."""
import json
from typing import Dict, List, Optional
from urllib.parse import unquote, urlsplit

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from mantapy.core.config import MantaConfig, RetryConfig
from mantapy.core.exceptions import TransportError
from mantapy.core.request import TransportResponse, freeze_headers

ENDPOINT = 'https://manta.test'
FIXED_DATE = 'Thu, 01 Oct 2026 12:00:00 GMT'


@pytest.fixture(scope='session')
def rsa_private_key():
    """A 2048-bit RSA key shared by the whole session."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope='session')
def rsa_pem(rsa_private_key):
    """PEM (PKCS#8) encoding of the session RSA key."""
    return rsa_private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption()
    )


@pytest.fixture
def config(rsa_pem):
    """Client configuration pointing at the fake endpoint."""
    return MantaConfig(
        endpoint=ENDPOINT,
        account='acct',
        key_id='aa:bb:cc:dd',
        private_key=rsa_pem,
        retry=RetryConfig(max_retries=3),
    )


class FakeNamespace:
    """
    In-memory stand-in for the remote hierarchical namespace.

    Speaks the transport interface: ``send()`` returns a TransportResponse
    for every request it understands. ``/`` , ``/acct`` and ``/acct/stor``
    exist from the start. ``failures`` queues outcomes (an int status or an
    exception) returned before the namespace handles a request. Listings are
    sorted by name, start at ``marker`` and hold at most ``limit`` entries,
    further capped by ``page_size`` when set.
    """

    def __init__(self):
        self.entries: Dict[str, str] = {
            '/': 'directory',
            '/acct': 'directory',
            '/acct/stor': 'directory',
        }
        self.data: Dict[str, bytes] = {}
        self.calls: List[dict] = []
        self.failures: List[object] = []
        self.error_bodies: Dict[str, tuple] = {}
        self.page_size: Optional[int] = None

    # namespace helpers

    def mkdir(self, path: str):
        self.entries[path] = 'directory'

    def put(self, path: str, data: bytes = b''):
        self.entries[path] = 'object'
        self.data[path] = data

    def exists(self, path: str) -> bool:
        return path in self.entries

    def children(self, path: str) -> List[str]:
        prefix = path.rstrip('/') + '/'
        return [
            p for p in self.entries
            if p.startswith(prefix) and '/' not in p[len(prefix):] and p != prefix
        ]

    def calls_for(self, method: str) -> List[str]:
        return [c['path'] for c in self.calls if c['method'] == method]

    # transport interface

    def send(self, method, url, headers, body=None, params=None, stream=False):
        path = unquote(urlsplit(url).path) or '/'
        if len(path) > 1:
            path = path.rstrip('/')
        self.calls.append({
            'method': method,
            'path': path,
            'url': url,
            'headers': dict(headers),
            'body': body,
            'params': params,
        })

        if self.failures:
            failure = self.failures.pop(0)
            if isinstance(failure, Exception):
                raise failure
            return self._response(int(failure), headers, body=b'')

        if path in self.error_bodies:
            status, payload = self.error_bodies.pop(path)
            return self._response(status, headers, body=payload)

        handler = getattr(self, f"_handle_{method.lower()}")
        return handler(path, headers, body, params or {})

    def close(self):
        pass

    def _response(self, status, request_headers, body=b'', extra=None, reason=None):
        items = [
            ('x-request-id', request_headers.get('x-request-id', '')),
            ('x-step', f"{self.calls[-1]['method']} {self.calls[-1]['path']}"),
        ]
        items.extend(extra or [])
        reasons = {200: 'OK', 204: 'No Content', 400: 'Bad Request',
                   403: 'Forbidden', 404: 'Not Found', 500: 'Internal Server Error',
                   503: 'Service Unavailable'}
        return TransportResponse(status, reason or reasons.get(status, ''), freeze_headers(items), content=body)

    def _error(self, status, code, message, request_headers):
        payload = json.dumps({'code': code, 'message': message}).encode()
        return self._response(status, request_headers, body=payload)

    def _parent(self, path):
        return path.rsplit('/', 1)[0] or '/'

    def _handle_put(self, path, headers, body, params):
        if self._parent(path) not in self.entries:
            return self._error(404, 'DirectoryDoesNotExist', f"{self._parent(path)} was not found", headers)
        if 'type=directory' in headers.get('Content-Type', ''):
            if self.entries.get(path) == 'object':
                return self._error(400, 'ParentNotDirectory', path, headers)
            self.mkdir(path)
        else:
            if hasattr(body, 'read'):
                body = body.read()
            if isinstance(body, str):
                body = body.encode()
            self.put(path, body or b'')
        return self._response(204, headers)

    def _handle_get(self, path, headers, body, params):
        kind = self.entries.get(path)
        if kind is None:
            return self._error(404, 'ResourceNotFound', f"{path} was not found", headers)
        if kind == 'object':
            return self._response(200, headers, body=self.data.get(path, b''))
        lines = []
        for child in self._page(path, params):
            lines.append(json.dumps({
                'name': child.rsplit('/', 1)[1],
                'type': self.entries[child],
                'mtime': '2026-10-01T12:00:00.000Z',
            }))
        payload = ('\n'.join(lines) + '\n').encode() if lines else b''
        return self._response(200, headers, body=payload,
                              extra=[('Content-Type', 'application/x-json-stream; type=directory')])

    def _page(self, path, params):
        children = sorted(self.children(path), key=lambda p: p.rsplit('/', 1)[1])
        marker = params.get('marker')
        if marker:
            children = [c for c in children if c.rsplit('/', 1)[1] >= marker]
        limit = int(params['limit']) if 'limit' in params else None
        if self.page_size is not None:
            limit = min(limit or self.page_size, self.page_size)
        return children[:limit] if limit is not None else children

    def _handle_head(self, path, headers, body, params):
        if path not in self.entries:
            return self._response(404, headers)
        return self._response(200, headers)

    def _handle_delete(self, path, headers, body, params):
        kind = self.entries.get(path)
        if kind is None:
            return self._error(404, 'ResourceNotFound', f"{path} was not found", headers)
        if kind == 'directory' and self.children(path):
            return self._error(400, 'DirectoryNotEmpty', f"{path} is not empty", headers)
        del self.entries[path]
        self.data.pop(path, None)
        return self._response(204, headers)

    def _handle_post(self, path, headers, body, params):
        return self._response(201, headers, extra=[('Location', f"{path}/job-123")])


class AsyncFakeNamespace:
    """Async transport facade over a FakeNamespace."""

    def __init__(self, namespace: Optional[FakeNamespace] = None):
        self.namespace = namespace or FakeNamespace()

    async def send(self, *args, **kwargs):
        return self.namespace.send(*args, **kwargs)

    async def close(self):
        pass


@pytest.fixture
def namespace():
    return FakeNamespace()


@pytest.fixture
def async_namespace(namespace):
    return AsyncFakeNamespace(namespace)


@pytest.fixture
def connection_error():
    return TransportError('GET https://manta.test failed: connection refused', 'GET', ENDPOINT)

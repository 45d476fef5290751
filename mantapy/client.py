"""
MantaClient - synchronous client for the Manta object store.

Example:
    >>> with MantaClient() as manta:
    ...     manta.put_directory('/acct/stor/photos/2024', make_parents=True)
    ...     manta.put_object(b'hello', '/acct/stor/photos/2024/hello.txt')
    ...     for entry in manta.list_directory('/acct/stor/photos/2024'):
    ...         print(entry['name'], entry['type'])
"""
import base64
import hashlib
import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from .core.config import MantaConfig, resolve_config
from .core.jobs import JobPhase, job_id_from_location
from .core.logging import get_logger
from .core.request import RequestDescriptor, RequestExecutor
from .core.response import (
    ArrayResponse,
    BytesResponse,
    HeaderResponse,
    ObjectResponse,
    StreamResponse,
    TreeOperationResult,
    bytes_response,
    header_response,
    json_list_response,
    object_response,
    stream_response,
    text_list_response,
)
from .core.tree import PathTreeOps, child_path

PathLike = Union[str, bytes]

SNAPLINK_CONTENT_TYPE = 'application/json; type=link'

logger = get_logger('mantapy.client')


def content_md5(data: Union[str, bytes]) -> str:
    """Base64 MD5 digest for the Content-MD5 header."""
    if isinstance(data, str):
        data = data.encode('utf-8')
    return base64.b64encode(hashlib.md5(data).digest()).decode('ascii')


def job_create_body(name: Optional[str], phases: Iterable[Union[JobPhase, Dict[str, Any]]]) -> str:
    serialized = [p.to_dict() if isinstance(p, JobPhase) else dict(p) for p in phases]
    body: Dict[str, Any] = {'phases': serialized}
    if name:
        body['name'] = name
    return json.dumps(body)


class MantaClient:
    """
    Synchronous Manta client.

    Configuration comes from explicit keyword arguments, then ``MANTA_*``
    environment variables, then defaults (see ``resolve_config``).

    Args:
        config: Pre-built configuration; keyword options are ignored if given
        executor: Custom request executor (mainly for tests)
        **options: Arguments for ``resolve_config``
    """

    def __init__(
        self,
        config: Optional[MantaConfig] = None,
        executor: Optional[RequestExecutor] = None,
        **options
    ):
        self._config = config or resolve_config(**options)
        self._executor = executor or RequestExecutor(self._config)
        self._tree = PathTreeOps(self._executor)

    @property
    def config(self) -> MantaConfig:
        return self._config

    @property
    def account(self) -> str:
        return self._config.account

    @property
    def subuser(self) -> Optional[str]:
        return self._config.subuser

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    def __enter__(self) -> 'MantaClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Release the HTTP session and worker threads."""
        self._executor.close()

    # Primitives

    def execute(
        self,
        method: str,
        path: PathLike,
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
        throw_on_error: bool = True,
        asynchronous: bool = False,
        stream: bool = False,
        params: Optional[Dict[str, str]] = None
    ):
        """
        Execute a signed request with retries.

        Returns:
            TransportResponse, or a Future of it when ``asynchronous``
        """
        return self._executor.execute(RequestDescriptor(
            method=method,
            path=path,
            headers=dict(headers or {}),
            body=body,
            throw_on_error=throw_on_error,
            asynchronous=asynchronous,
            stream=stream,
            params=params,
        ))

    def put(self, path: PathLike, body: Any = None, headers: Optional[Dict[str, str]] = None) -> HeaderResponse:
        return header_response(self.execute('PUT', path, headers, body))

    def get(self, path: PathLike, headers: Optional[Dict[str, str]] = None) -> BytesResponse:
        return bytes_response(self.execute('GET', path, headers))

    def delete(self, path: PathLike) -> HeaderResponse:
        return header_response(self.execute('DELETE', path))

    def head(self, path: PathLike, throw_on_error: bool = True) -> HeaderResponse:
        return header_response(self.execute('HEAD', path, throw_on_error=throw_on_error))

    def exists(self, path: PathLike) -> bool:
        """True if HEAD on the path returns 200."""
        response = self.execute('HEAD', path, throw_on_error=False)
        response.close()
        return response.status == 200

    # Directories

    def put_directory(self, directory: PathLike, make_parents: bool = False) -> TreeOperationResult:
        """
        Create a directory.

        Args:
            directory: Remote directory path
            make_parents: Also create missing ancestors

        Returns:
            TreeOperationResult of the create calls made
        """
        if make_parents:
            return self._tree.create_with_ancestors(directory)

        headers = self._tree.create_directory(directory)
        return TreeOperationResult(headers, (headers,))

    def list_directory(
        self,
        directory: PathLike,
        limit: Optional[int] = None,
        marker: Optional[str] = None
    ) -> ArrayResponse:
        """List a directory as records with ``name``, ``type`` and ``mtime``."""
        return self._tree.list_directory(directory, limit=limit, marker=marker)

    def delete_directory(self, directory: PathLike, recursive: bool = False) -> TreeOperationResult:
        """Delete a directory, and everything below it when ``recursive``."""
        return self._tree.delete_recursive(directory, recursive=recursive)

    # Objects

    def put_object(
        self,
        data: Any,
        path: PathLike,
        headers: Optional[Dict[str, str]] = None
    ) -> HeaderResponse:
        """
        Store an object.

        ``str`` and ``bytes`` payloads get a Content-MD5 header; streams are
        sent as-is.
        """
        headers = dict(headers or {})
        if isinstance(data, (str, bytes)):
            headers.setdefault('Content-MD5', content_md5(data))
        return self.put(path, data, headers)

    def put_file(
        self,
        local_path: Union[str, Path],
        path: PathLike,
        headers: Optional[Dict[str, str]] = None
    ) -> HeaderResponse:
        """Upload a local file, streaming it from disk."""
        with open(Path(local_path), 'rb') as f:
            return self.put(path, f, headers)

    def get_object(self, path: PathLike) -> BytesResponse:
        return self.get(path)

    def get_object_as_stream(self, path: PathLike) -> StreamResponse:
        """Open an object for chunked reading; close it when done."""
        return stream_response(self.execute('GET', path, stream=True))

    def delete_object(self, name: str, directory: Optional[str] = None) -> HeaderResponse:
        target = child_path(directory, name) if directory else name
        return self.delete(target)

    def put_snaplink(self, link: PathLike, source: str) -> HeaderResponse:
        """Create a snaplink at ``link`` pointing at ``source``."""
        return self.put(link, headers={
            'Content-Type': SNAPLINK_CONTENT_TYPE,
            'Location': source,
        })

    # Jobs

    def _jobs_path(self, *parts: str) -> str:
        return '/'.join([f"/{self.account}/jobs", *parts])

    def create_job(
        self,
        name: Optional[str],
        phases: Iterable[Union[JobPhase, Dict[str, Any]]]
    ) -> ObjectResponse:
        """Create a compute job; the result holds ``job_id`` and ``location``."""
        response = self.execute(
            'POST',
            self._jobs_path(),
            {'Content-Type': 'application/json'},
            job_create_body(name, phases),
        )
        response.close()
        location = response.headers.get('Location')
        job_id = job_id_from_location(location)
        logger.info(f"Created job {job_id}")
        return ObjectResponse(response.headers, {'job_id': job_id, 'location': location})

    def add_job_inputs(self, job_id: str, inputs: Iterable[str]) -> HeaderResponse:
        response = self.execute(
            'POST',
            self._jobs_path(job_id, 'live', 'in'),
            {'Content-Type': 'text/plain'},
            '\n'.join(inputs),
        )
        return header_response(response)

    def end_job_input(self, job_id: str) -> HeaderResponse:
        return header_response(self.execute('POST', self._jobs_path(job_id, 'live', 'in', 'end')))

    def cancel_job(self, job_id: str) -> HeaderResponse:
        return header_response(self.execute('POST', self._jobs_path(job_id, 'live', 'cancel')))

    def list_jobs(self) -> ArrayResponse:
        return json_list_response(self.execute('GET', self._jobs_path()))

    def get_job(self, job_id: str) -> ObjectResponse:
        return object_response(self.execute('GET', self._jobs_path(job_id, 'live', 'status')))

    def get_job_output(self, job_id: str) -> ArrayResponse:
        return text_list_response(self.execute('GET', self._jobs_path(job_id, 'live', 'out')))

    def get_job_input(self, job_id: str) -> ArrayResponse:
        return text_list_response(self.execute('GET', self._jobs_path(job_id, 'live', 'in')))

    def get_job_failures(self, job_id: str) -> ArrayResponse:
        return text_list_response(self.execute('GET', self._jobs_path(job_id, 'live', 'fail')))

    def get_job_errors(self, job_id: str) -> ArrayResponse:
        return json_list_response(self.execute('GET', self._jobs_path(job_id, 'live', 'err')))

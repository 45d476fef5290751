"""
AsyncMantaClient - asyncio client for the Manta object store.

Example:
    >>> async with AsyncMantaClient() as manta:
    ...     await manta.put_directory('/acct/stor/a/b', make_parents=True)
    ...     result = await manta.delete_directory('/acct/stor/a', recursive=True)
    ...     print(len(result.all_headers))
"""
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import aiofiles

from .client import SNAPLINK_CONTENT_TYPE, PathLike, content_md5, job_create_body
from .core.config import MantaConfig, resolve_config
from .core.jobs import JobPhase, job_id_from_location
from .core.logging import get_logger
from .core.request import AsyncRequestExecutor, RequestDescriptor
from .core.response import (
    ArrayResponse,
    BytesResponse,
    HeaderResponse,
    ObjectResponse,
    TreeOperationResult,
    bytes_response,
    header_response,
    json_list_response,
    object_response,
    text_list_response,
)
from .core.tree import AsyncPathTreeOps, child_path

logger = get_logger('mantapy.async_client')


class AsyncMantaClient:
    """
    Asynchronous Manta client.

    Shares signing, retry and tree logic with MantaClient; requests go
    through aiohttp and payloads are buffered.
    """

    def __init__(
        self,
        config: Optional[MantaConfig] = None,
        executor: Optional[AsyncRequestExecutor] = None,
        **options
    ):
        """
        Initialize the client.

        Args:
            config: Pre-built configuration; keyword options are ignored if given
            executor: Custom request executor (mainly for tests)
            **options: Arguments for ``resolve_config``
        """
        self._config = config or resolve_config(**options)
        self._executor = executor or AsyncRequestExecutor(self._config)
        self._tree = AsyncPathTreeOps(self._executor)

    @property
    def config(self) -> MantaConfig:
        return self._config

    @property
    def account(self) -> str:
        return self._config.account

    async def __aenter__(self) -> 'AsyncMantaClient':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the aiohttp session."""
        await self._executor.close()

    async def execute(
        self,
        method: str,
        path: PathLike,
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
        throw_on_error: bool = True,
        params: Optional[Dict[str, str]] = None
    ):
        """Execute a signed request with retries."""
        return await self._executor.execute(RequestDescriptor(
            method=method,
            path=path,
            headers=dict(headers or {}),
            body=body,
            throw_on_error=throw_on_error,
            params=params,
        ))

    async def put(self, path: PathLike, body: Any = None, headers: Optional[Dict[str, str]] = None) -> HeaderResponse:
        return header_response(await self.execute('PUT', path, headers, body))

    async def get(self, path: PathLike, headers: Optional[Dict[str, str]] = None) -> BytesResponse:
        return bytes_response(await self.execute('GET', path, headers))

    async def delete(self, path: PathLike) -> HeaderResponse:
        return header_response(await self.execute('DELETE', path))

    async def head(self, path: PathLike, throw_on_error: bool = True) -> HeaderResponse:
        return header_response(await self.execute('HEAD', path, throw_on_error=throw_on_error))

    async def exists(self, path: PathLike) -> bool:
        response = await self.execute('HEAD', path, throw_on_error=False)
        return response.status == 200

    async def put_directory(self, directory: PathLike, make_parents: bool = False) -> TreeOperationResult:
        if make_parents:
            return await self._tree.create_with_ancestors(directory)

        headers = await self._tree.create_directory(directory)
        return TreeOperationResult(headers, (headers,))

    async def list_directory(
        self,
        directory: PathLike,
        limit: Optional[int] = None,
        marker: Optional[str] = None
    ) -> ArrayResponse:
        return await self._tree.list_directory(directory, limit=limit, marker=marker)

    async def delete_directory(self, directory: PathLike, recursive: bool = False) -> TreeOperationResult:
        return await self._tree.delete_recursive(directory, recursive=recursive)

    async def put_object(
        self,
        data: Any,
        path: PathLike,
        headers: Optional[Dict[str, str]] = None
    ) -> HeaderResponse:
        headers = dict(headers or {})
        if isinstance(data, (str, bytes)):
            headers.setdefault('Content-MD5', content_md5(data))
        return await self.put(path, data, headers)

    async def put_file(
        self,
        local_path: Union[str, Path],
        path: PathLike,
        headers: Optional[Dict[str, str]] = None
    ) -> HeaderResponse:
        """Upload a local file read without blocking the event loop."""
        async with aiofiles.open(Path(local_path), 'rb') as f:
            data = await f.read()
        return await self.put_object(data, path, headers)

    async def get_object(self, path: PathLike) -> BytesResponse:
        return await self.get(path)

    async def delete_object(self, name: str, directory: Optional[str] = None) -> HeaderResponse:
        target = child_path(directory, name) if directory else name
        return await self.delete(target)

    async def put_snaplink(self, link: PathLike, source: str) -> HeaderResponse:
        return await self.put(link, headers={
            'Content-Type': SNAPLINK_CONTENT_TYPE,
            'Location': source,
        })

    def _jobs_path(self, *parts: str) -> str:
        return '/'.join([f"/{self.account}/jobs", *parts])

    async def create_job(
        self,
        name: Optional[str],
        phases: Iterable[Union[JobPhase, Dict[str, Any]]]
    ) -> ObjectResponse:
        response = await self.execute(
            'POST',
            self._jobs_path(),
            {'Content-Type': 'application/json'},
            job_create_body(name, phases),
        )
        location = response.headers.get('Location')
        job_id = job_id_from_location(location)
        logger.info(f"Created job {job_id}")
        return ObjectResponse(response.headers, {'job_id': job_id, 'location': location})

    async def add_job_inputs(self, job_id: str, inputs: Iterable[str]) -> HeaderResponse:
        response = await self.execute(
            'POST',
            self._jobs_path(job_id, 'live', 'in'),
            {'Content-Type': 'text/plain'},
            '\n'.join(inputs),
        )
        return header_response(response)

    async def end_job_input(self, job_id: str) -> HeaderResponse:
        return header_response(await self.execute('POST', self._jobs_path(job_id, 'live', 'in', 'end')))

    async def cancel_job(self, job_id: str) -> HeaderResponse:
        return header_response(await self.execute('POST', self._jobs_path(job_id, 'live', 'cancel')))

    async def list_jobs(self) -> ArrayResponse:
        return json_list_response(await self.execute('GET', self._jobs_path()))

    async def get_job(self, job_id: str) -> ObjectResponse:
        return object_response(await self.execute('GET', self._jobs_path(job_id, 'live', 'status')))

    async def get_job_output(self, job_id: str) -> ArrayResponse:
        return text_list_response(await self.execute('GET', self._jobs_path(job_id, 'live', 'out')))

    async def get_job_input(self, job_id: str) -> ArrayResponse:
        return text_list_response(await self.execute('GET', self._jobs_path(job_id, 'live', 'in')))

    async def get_job_failures(self, job_id: str) -> ArrayResponse:
        return text_list_response(await self.execute('GET', self._jobs_path(job_id, 'live', 'fail')))

    async def get_job_errors(self, job_id: str) -> ArrayResponse:
        return json_list_response(await self.execute('GET', self._jobs_path(job_id, 'live', 'err')))

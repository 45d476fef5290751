"""
Recursive directory operations.

The namespace has no multi-object transactions, so both operations are a
sequence of single calls. A failure at any step aborts the walk and
propagates; callers get either the full aggregate or one error.
"""
from typing import Any, Dict, Iterable, List, Optional, Union

from multidict import CIMultiDictProxy

from ..exceptions import RemoteError
from ..logging import get_logger
from ..request import AsyncRequestExecutor, RequestDescriptor, RequestExecutor, normalize_path
from ..response import ArrayResponse, TreeOperationResult, json_list_response
from .paths import can_create_directory_at_path, child_path, directory_prefixes

DIRECTORY_CONTENT_TYPE = 'application/json; type=directory'
LISTING_CONTENT_TYPE = 'application/x-json-stream; type=directory'

# Server codes for a caller without a role grant on the path.
NO_MATCHING_ROLE_TAG_CODES = ('NoMatchingRoleTag', 'NoMatchingRoleTagError')

TYPE_DIRECTORY = 'directory'
TYPE_OBJECT = 'object'

# Largest page the service returns for one directory listing.
LISTING_PAGE_SIZE = 1024

logger = get_logger('mantapy.tree')


def is_role_tag_denial(error: RemoteError) -> bool:
    return error.server_code in NO_MATCHING_ROLE_TAG_CODES


def child_kind(item: Dict[str, Any]) -> Optional[str]:
    """``'directory'``, ``'object'`` or None for entries to skip."""
    if not item.get('name'):
        return None
    kind = item.get('type')
    if kind in (TYPE_DIRECTORY, TYPE_OBJECT):
        return kind
    return None


def listing_params(limit: Optional[int], marker: Optional[str]) -> Optional[Dict[str, str]]:
    params = {}
    if limit is not None:
        params['limit'] = str(limit)
    if marker:
        params['marker'] = marker
    return params or None


def entries_after(page: Iterable[Dict[str, Any]], marker: Optional[str]) -> List[Dict[str, Any]]:
    """
    Entries of a listing page that sort after ``marker``.

    Listings are ordered by name and a page starts at the marker itself,
    so anything at or before it was already seen.
    """
    if marker is None:
        return list(page)
    return [item for item in page if str(item.get('name') or '') > marker]


def last_name(entries: List[Dict[str, Any]]) -> Optional[str]:
    for item in reversed(entries):
        if item.get('name'):
            return str(item['name'])
    return None


class PathTreeOps:
    """
    Directory operations on top of a synchronous executor.

    Example:
        >>> tree = PathTreeOps(executor)
        >>> result = tree.create_with_ancestors('/acct/stor/a/b/c')
        >>> len(result.all_headers)
        3
    """

    def __init__(self, executor: RequestExecutor):
        self._executor = executor

    def create_directory(self, path: Union[str, bytes]) -> CIMultiDictProxy:
        """PUT a single directory and return the response headers."""
        response = self._executor.execute(RequestDescriptor(
            'PUT', path, headers={'Content-Type': DIRECTORY_CONTENT_TYPE}
        ))
        response.close()
        return response.headers

    def list_directory(
        self,
        path: Union[str, bytes],
        limit: Optional[int] = None,
        marker: Optional[str] = None
    ) -> ArrayResponse:
        """List the immediate children of a directory in service order."""
        response = self._executor.execute(RequestDescriptor(
            'GET',
            path,
            headers={'Content-Type': LISTING_CONTENT_TYPE},
            params=listing_params(limit, marker),
        ))
        return json_list_response(response)

    def list_all(self, path: Union[str, bytes]) -> List[Dict[str, Any]]:
        """
        Every child of a directory, following listing pages until one
        brings nothing new.
        """
        children: List[Dict[str, Any]] = []
        marker = None
        while True:
            page = self.list_directory(path, limit=LISTING_PAGE_SIZE, marker=marker)
            entries = entries_after(page, marker)
            children.extend(entries)
            marker = last_name(entries)
            if marker is None:
                return children

    def delete_path(self, path: Union[str, bytes]) -> CIMultiDictProxy:
        """DELETE a single object or empty directory."""
        response = self._executor.execute(RequestDescriptor('DELETE', path))
        response.close()
        return response.headers

    def create_with_ancestors(self, path: Union[str, bytes]) -> TreeOperationResult:
        """
        Create a directory and every missing ancestor.

        The root, accounts and account top-level directories are never
        created. An ancestor refused with a role-tag denial is treated as
        usable and recorded nothing; any other error aborts.

        Returns:
            TreeOperationResult with one header set per directory created

        Raises:
            InvalidPathError: If the path is not valid UTF-8
            RemoteError: If any create call fails
            TransportError: If the service cannot be reached
        """
        prefixes = [p for p in directory_prefixes(path) if can_create_directory_at_path(p)]
        all_headers: List[CIMultiDictProxy] = []
        headers = None

        for index, prefix in enumerate(prefixes):
            is_target = index == len(prefixes) - 1
            try:
                headers = self.create_directory(prefix)
            except RemoteError as e:
                if is_target or not is_role_tag_denial(e):
                    raise
                logger.info(f"No role grant on {prefix}; assuming it exists")
                continue
            all_headers.append(headers)

        return TreeOperationResult(headers, tuple(all_headers))

    def delete_recursive(
        self,
        path: Union[str, bytes],
        recursive: bool = True
    ) -> TreeOperationResult:
        """
        Delete a directory, first removing its descendants when recursive.

        Every listing page is read before the walk starts. Children are
        handled depth first in listing order; the directory's own delete
        comes last in ``all_headers``.

        Raises:
            RemoteError: If a listing or delete fails (the walk stops)
            TransportError: If the service cannot be reached
        """
        path = '/' + normalize_path(path)
        all_headers: List[CIMultiDictProxy] = []

        if recursive:
            for item in self.list_all(path):
                kind = child_kind(item)
                target = child_path(path, item.get('name', ''))
                if kind == TYPE_DIRECTORY:
                    nested = self.delete_recursive(target, recursive=True)
                    all_headers.extend(nested.all_headers)
                elif kind == TYPE_OBJECT:
                    all_headers.append(self.delete_path(target))

        headers = self.delete_path(path)
        all_headers.append(headers)
        logger.debug(f"Deleted {path} ({len(all_headers)} request(s))")

        return TreeOperationResult(headers, tuple(all_headers))


class AsyncPathTreeOps:
    """Directory operations on top of an asynchronous executor."""

    def __init__(self, executor: AsyncRequestExecutor):
        self._executor = executor

    async def create_directory(self, path: Union[str, bytes]) -> CIMultiDictProxy:
        response = await self._executor.execute(RequestDescriptor(
            'PUT', path, headers={'Content-Type': DIRECTORY_CONTENT_TYPE}
        ))
        return response.headers

    async def list_directory(
        self,
        path: Union[str, bytes],
        limit: Optional[int] = None,
        marker: Optional[str] = None
    ) -> ArrayResponse:
        response = await self._executor.execute(RequestDescriptor(
            'GET',
            path,
            headers={'Content-Type': LISTING_CONTENT_TYPE},
            params=listing_params(limit, marker),
        ))
        return json_list_response(response)

    async def list_all(self, path: Union[str, bytes]) -> List[Dict[str, Any]]:
        children: List[Dict[str, Any]] = []
        marker = None
        while True:
            page = await self.list_directory(path, limit=LISTING_PAGE_SIZE, marker=marker)
            entries = entries_after(page, marker)
            children.extend(entries)
            marker = last_name(entries)
            if marker is None:
                return children

    async def delete_path(self, path: Union[str, bytes]) -> CIMultiDictProxy:
        response = await self._executor.execute(RequestDescriptor('DELETE', path))
        return response.headers

    async def create_with_ancestors(self, path: Union[str, bytes]) -> TreeOperationResult:
        """Async counterpart of PathTreeOps.create_with_ancestors."""
        prefixes = [p for p in directory_prefixes(path) if can_create_directory_at_path(p)]
        all_headers: List[CIMultiDictProxy] = []
        headers = None

        for index, prefix in enumerate(prefixes):
            is_target = index == len(prefixes) - 1
            try:
                headers = await self.create_directory(prefix)
            except RemoteError as e:
                if is_target or not is_role_tag_denial(e):
                    raise
                logger.info(f"No role grant on {prefix}; assuming it exists")
                continue
            all_headers.append(headers)

        return TreeOperationResult(headers, tuple(all_headers))

    async def delete_recursive(
        self,
        path: Union[str, bytes],
        recursive: bool = True
    ) -> TreeOperationResult:
        """Async counterpart of PathTreeOps.delete_recursive."""
        path = '/' + normalize_path(path)
        all_headers: List[CIMultiDictProxy] = []

        if recursive:
            for item in await self.list_all(path):
                kind = child_kind(item)
                target = child_path(path, item.get('name', ''))
                if kind == TYPE_DIRECTORY:
                    nested = await self.delete_recursive(target, recursive=True)
                    all_headers.extend(nested.all_headers)
                elif kind == TYPE_OBJECT:
                    all_headers.append(await self.delete_path(target))

        headers = await self.delete_path(path)
        all_headers.append(headers)
        logger.debug(f"Deleted {path} ({len(all_headers)} request(s))")

        return TreeOperationResult(headers, tuple(all_headers))

"""Per-call request description and path normalization."""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

from ..exceptions import InvalidPathError

_REPEATED_SLASHES = re.compile(r'/{2,}')


@dataclass
class RequestDescriptor:
    """
    One logical call to the service.

    Created per call and consumed immediately by an executor.
    """
    method: str
    path: Union[str, bytes]
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Any] = None
    throw_on_error: bool = True
    asynchronous: bool = False
    stream: bool = False
    params: Optional[Dict[str, str]] = None


def normalize_path(path: Union[str, bytes]) -> str:
    """
    Normalize a remote path for the wire.

    Runs of ``/`` collapse into one and the leading ``/`` is stripped so the
    path can be appended to the endpoint.

    Args:
        path: Remote path as text or UTF-8 bytes

    Returns:
        Path without a leading slash

    Raises:
        InvalidPathError: If the path is not well-formed UTF-8
    """
    if isinstance(path, (bytes, bytearray)):
        try:
            text = bytes(path).decode('utf-8')
        except UnicodeDecodeError as e:
            raise InvalidPathError(f"Path is not valid UTF-8: {path!r}", path) from e
    elif isinstance(path, str):
        try:
            path.encode('utf-8')
        except UnicodeEncodeError as e:
            raise InvalidPathError(f"Path is not valid UTF-8: {path!r}", path) from e
        text = path
    else:
        raise InvalidPathError(f"Path must be str or bytes, got {type(path).__name__}", path)

    return _REPEATED_SLASHES.sub('/', text).lstrip('/')


def build_url(base_url: str, normalized_path: str) -> str:
    """Join the endpoint and a normalized path with exactly one slash."""
    return f"{base_url.rstrip('/')}/{quote(normalized_path, safe='/')}"

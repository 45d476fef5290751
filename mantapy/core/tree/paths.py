"""Path classification helpers for the remote namespace."""
from typing import List, Union

from ..request.descriptor import normalize_path


def is_root_or_first_level(directory: str) -> bool:
    """
    Check whether a directory is pre-provisioned by the service.

    That is ``/``, an account (``/acct``) or an account's top-level
    directory (``/acct/stor``): after dropping trailing slashes, at most one
    more ``/`` follows the leading one.
    """
    trimmed = directory.rstrip('/')
    if not trimmed:
        return True

    count = 0
    for char in trimmed[1:]:
        if char == '/':
            count += 1
            if count > 1:
                return False

    return True


def can_create_directory_at_path(directory: str) -> bool:
    """True if the client may issue a create call for the directory."""
    return bool(directory) and not is_root_or_first_level(directory)


def directory_prefixes(path: Union[str, bytes]) -> List[str]:
    """
    Every directory on the way to ``path``, shortest first.

    Empty segments (repeated or trailing slashes) contribute nothing, so
    ``/a//b/`` yields ``['/a', '/a/b']``.

    Raises:
        InvalidPathError: If the path is not valid UTF-8
    """
    prefixes = []
    current = ''
    for segment in normalize_path(path).split('/'):
        if not segment:
            continue
        current = f"{current}/{segment}"
        prefixes.append(current)
    return prefixes


def child_path(directory: str, name: str) -> str:
    return f"{directory.rstrip('/')}/{name}"

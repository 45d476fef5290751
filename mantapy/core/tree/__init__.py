"""Directory tree operations."""
from .paths import (
    is_root_or_first_level,
    can_create_directory_at_path,
    directory_prefixes,
    child_path,
)
from .tree_ops import PathTreeOps, AsyncPathTreeOps

__all__ = [
    'is_root_or_first_level',
    'can_create_directory_at_path',
    'directory_prefixes',
    'child_path',
    'PathTreeOps',
    'AsyncPathTreeOps',
]

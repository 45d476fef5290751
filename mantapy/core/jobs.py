"""Compute job payload models."""
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


@dataclass
class JobPhase:
    """
    One phase of a compute job.

    Attributes:
        type: ``'map'`` or ``'reduce'``
        exec: Command line executed for each input
        assets: Object paths made available to the phase
        init: Command run once before ``exec``
        count: Number of reducers
        memory: Memory limit in MB
        disk: Disk limit in GB
    """
    type: str = 'map'
    exec: Optional[str] = None
    assets: List[str] = field(default_factory=list)
    init: Optional[str] = None
    count: Optional[int] = None
    memory: Optional[int] = None
    disk: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting unset fields."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value == []:
                continue
            result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'JobPhase':
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def job_id_from_location(location: Optional[str]) -> Optional[str]:
    """Last path segment of a job ``Location`` header."""
    if not location:
        return None
    return location.rstrip('/').rsplit('/', 1)[-1] or None

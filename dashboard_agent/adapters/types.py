"""Data models exchanged between adapters, the registry and the API."""

from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Dict, List


@dataclass
class Snapshot:
    """An adapter's current summarized state. ``data`` is never None."""
    app_name: str
    display_name: str
    icon: str
    is_active: bool
    last_used: int
    data: Any
    summary: str
    capabilities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_name": self.app_name,
            "display_name": self.display_name,
            "icon": self.icon,
            "is_active": self.is_active,
            "last_used": self.last_used,
            "data": asdict(self.data) if is_dataclass(self.data) else self.data,
            "summary": self.summary,
            "capabilities": list(self.capabilities),
        }


@dataclass
class AggregateContribution:
    """A typed count an adapter exposes for cross-app rollups."""
    type: str
    count: int
    label: str
    app_name: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchMatch:
    type: str
    label: str
    value: str
    field: str

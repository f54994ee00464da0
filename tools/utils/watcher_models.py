"""
Load Watcher Data Models
Window, Metric and resource type definitions shared by the fetcher, the
normalizer and the MCP tools
"""

from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict


class ResourceType(str, Enum):
    """Resource kind a metric describes"""
    CPU = "CPU"
    MEMORY = "Memory"


class Window(BaseModel):
    """Rollup window requested by the watcher"""
    duration: str = Field(description="Rollup period, e.g. '5m', '1h'")
    start: Optional[int] = Field(default=None, description="Window start, epoch seconds")
    end: Optional[int] = Field(default=None, description="Window end, epoch seconds")

    model_config = ConfigDict(frozen=True)


class Metric(BaseModel):
    """One aggregated value for one host"""
    name: str
    type: ResourceType
    rollup: str
    value: float = 0.0

    model_config = ConfigDict(frozen=True)


# host name -> metrics in query order
HostMetrics = Dict[str, List[Metric]]


def host_metrics_to_dict(host_metrics: HostMetrics) -> Dict[str, List[Dict[str, object]]]:
    """Serialize HostMetrics into plain JSON-friendly dictionaries"""
    return {
        host: [metric.model_dump(mode='json') for metric in metrics]
        for host, metrics in host_metrics.items()
    }

"""
MCP Tools Package
Tool implementations for the Prometheus load watcher server
"""

from .models import (
    MCPBaseModel,
    WindowInput,
    HealthCheckRequest,
    HostMetricsResponse,
    ServerHealthResponse,
)
from .health_check import register_health_check_tool
from .host_metrics import register_host_metrics_tool

__all__ = [
    'MCPBaseModel',
    'WindowInput',
    'HealthCheckRequest',
    'HostMetricsResponse',
    'ServerHealthResponse',
    'register_health_check_tool',
    'register_host_metrics_tool',
]

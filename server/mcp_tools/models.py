"""
Pydantic models for the load watcher MCP tools
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict


# ============================================================================
# BASE MODELS
# ============================================================================

class MCPBaseModel(BaseModel):
    """Base model with common configuration"""
    model_config = ConfigDict(arbitrary_types_allowed=True, extra="allow")


# ============================================================================
# REQUEST MODELS
# ============================================================================

class WindowInput(MCPBaseModel):
    """Rollup window for host metrics"""
    duration: str = Field(
        default="5m",
        description="Rollup window Prometheus aggregates over (e.g., '5m', '15m', '1h')"
    )
    start: Optional[int] = Field(default=None, description="Window start, epoch seconds")
    end: Optional[int] = Field(default=None, description="Window end, epoch seconds")


class HealthCheckRequest(MCPBaseModel):
    """Health check request (no parameters needed)"""
    pass


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class ServerHealthResponse(MCPBaseModel):
    """Server health response with component status"""
    status: str
    timestamp: str
    collectors_initialized: bool
    prometheus_reachable: Optional[bool] = None
    details: Dict[str, bool]


class HostMetricsResponse(MCPBaseModel):
    """Host metrics keyed by instance name"""
    status: str
    data: Optional[Dict[str, List[Dict[str, Any]]]] = None
    error: Optional[str] = None
    timestamp: str
    category: str = Field(default="host_metrics")
    duration: str

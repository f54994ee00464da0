"""
Health Check MCP Tool
Verifies server component initialization and Prometheus reachability
"""

import logging
from datetime import datetime
from typing import Optional
import pytz

from tools.utils.promql_basequery import PrometheusBaseQuery
from .models import HealthCheckRequest, ServerHealthResponse

logger = logging.getLogger(__name__)


def register_health_check_tool(mcp, get_components_func):
    """Register the health check tool with the MCP server"""

    @mcp.tool()
    async def get_server_health(request: Optional[HealthCheckRequest] = None) -> ServerHealthResponse:
        """
        Get server health status, component initialization and Prometheus reachability.

        Reports whether the configuration and the host metrics fetcher are
        initialized, and whether Prometheus answers an 'up' query with the
        configured host and token.

        Returns:
            ServerHealthResponse: Health status with component availability
        """
        components = get_components_func()
        config = components.get('config')

        details = {
            name: components.get(name) is not None
            for name in ('config', 'host_metrics_fetcher')
        }
        collectors_initialized = all(details.values())

        prometheus_reachable = None
        if config is not None:
            async with PrometheusBaseQuery(config.prometheus) as prom:
                prometheus_reachable = await prom.test_connection()
            if not prometheus_reachable:
                logger.warning(f"Prometheus at {config.prometheus.host} is not reachable")

        healthy = collectors_initialized and bool(prometheus_reachable)
        return ServerHealthResponse(
            status="healthy" if healthy else "unhealthy",
            timestamp=datetime.now(pytz.UTC).isoformat(),
            collectors_initialized=collectors_initialized,
            prometheus_reachable=prometheus_reachable,
            details=details
        )

    return get_server_health

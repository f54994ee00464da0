"""
Host Metrics MCP Tool
Per-host CPU and memory aggregates for the load watcher
"""

import logging
from datetime import datetime
from typing import Optional
import pytz

from tools.utils.watcher_models import Window, host_metrics_to_dict
from .models import HostMetricsResponse, WindowInput

logger = logging.getLogger(__name__)


def register_host_metrics_tool(mcp, get_components_func):
    """Register the host metrics tool with the MCP server"""

    @mcp.tool()
    async def get_host_metrics(request: Optional[WindowInput] = None) -> HostMetricsResponse:
        """
        Get per-host CPU and memory utilization aggregated over a rollup window.

        For every configured aggregation method (avg_over_time, stddev_over_time
        by default) and resource metric (node CPU ratio, node memory utilisation
        ratio), one Prometheus instant query '<method>(<metric>[<duration>])' is
        issued. Results are grouped by the 'instance' label of each series.

        Each host maps to a list of metrics with:
        - name: aggregation method
        - type: CPU or Memory
        - rollup: the requested duration
        - value: aggregated ratio

        A query that fails does not prevent the others from contributing. If
        some queries fail at the transport level the status is
        'partial_success'; if nothing could be collected it is 'error'.

        Args:
            request: Optional request with duration field. Default duration is '5m'.

        Returns:
            HostMetricsResponse: metrics keyed by host name in 'data'
        """
        request = request or WindowInput()
        duration = request.duration or "5m"

        components = get_components_func()
        fetcher = components.get('host_metrics_fetcher')

        if fetcher is None:
            return HostMetricsResponse(
                status="error",
                error="Host metrics fetcher is not initialized",
                timestamp=datetime.now(pytz.UTC).isoformat(),
                duration=duration
            )

        try:
            window = Window(duration=duration, start=request.start, end=request.end)
            host_metrics, fetch_error = await fetcher.fetch_all_hosts_metrics(window)
        except Exception as e:
            logger.error(f"Error fetching host metrics: {e}", exc_info=True)
            return HostMetricsResponse(
                status="error",
                error=str(e),
                timestamp=datetime.now(pytz.UTC).isoformat(),
                duration=duration
            )

        status = "success"
        if fetch_error is not None:
            status = "partial_success" if host_metrics else "error"
            logger.warning(f"Host metrics fetch finished with errors: {fetch_error}")

        return HostMetricsResponse(
            status=status,
            data=host_metrics_to_dict(host_metrics),
            error=str(fetch_error) if fetch_error is not None else None,
            timestamp=datetime.now(pytz.UTC).isoformat(),
            duration=duration
        )

    return get_host_metrics

"""
Host Metrics Fetcher Module
Fetches per-host CPU and memory utilization from Prometheus for the load watcher
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from config.watcher_config_reader import Config, MetricQuerySpec, PrometheusConfig
from elt.node.analyzer_elt_node_host_metrics import hostMetricsELT
from tools.utils.promql_basequery import PrometheusBaseQuery, PrometheusQueryError
from tools.utils.promql_utility import promqlUtility
from tools.utils.watcher_models import HostMetrics, Window


class hostMetricsFetcher:
    """Fetcher for host metrics across all configured method/metric combinations"""

    def __init__(self, prometheus_config: PrometheusConfig,
                 metric_queries: Sequence[MetricQuerySpec]):
        self.prometheus_config = prometheus_config
        self.metric_queries = tuple(metric_queries)
        self.elt = hostMetricsELT()
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: Config) -> "hostMetricsFetcher":
        return cls(config.prometheus, config.metric_queries)

    async def fetch_all_hosts_metrics(self, window: Window) -> Tuple[HostMetrics, Optional[PrometheusQueryError]]:
        """Fetch all host metrics for all configured methods and resource types

        Queries run one after another. Failed combinations are logged and
        skipped; transport failures are also summarised in the returned
        error, which never discards the metrics that were collected.

        Args:
            window: Rollup window; only window.duration is used

        Returns:
            Tuple of (host metrics, transport error or None)
        """
        host_metrics: HostMetrics = {}
        failures: List[str] = []

        self.logger.info(f"Fetching host metrics for window {window.duration} "
                         f"({len(self.metric_queries)} queries)")

        async with PrometheusBaseQuery(self.prometheus_config) as prom:
            for query_spec in self.metric_queries:
                try:
                    await self._update_all_host_metrics(prom, host_metrics, query_spec, window.duration)
                except PrometheusQueryError as e:
                    self.logger.error(f"Query {query_spec.method}({query_spec.metric}) failed: {e}")
                    failures.append(f"{query_spec.method}({query_spec.metric}): {e}")

        self.logger.info(f"Collected metrics for {len(host_metrics)} hosts")

        error = None
        if failures:
            error = PrometheusQueryError(
                f"{len(failures)} of {len(self.metric_queries)} queries failed: " + "; ".join(failures)
            )
        return host_metrics, error

    async def _update_all_host_metrics(self, prom: PrometheusBaseQuery, host_metrics: HostMetrics,
                                       query_spec: MetricQuerySpec, rollup: str) -> HostMetrics:
        """Fetch host metrics for one method and resource type"""
        query = promqlUtility.build_query(query_spec.method, query_spec.metric, rollup)
        url = promqlUtility.build_query_url(self.prometheus_config.host, query,
                                            self.prometheus_config.query_path)
        self.logger.debug(f"Querying {query}")

        status, body = await prom.get_raw(url)
        return self.elt.update_host_metrics(host_metrics, status, body, query_spec, rollup)


async def main():
    """Fetch once with settings from the environment and print the result"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = Config.from_env()
    fetcher = hostMetricsFetcher.from_config(config)
    host_metrics, error = await fetcher.fetch_all_hosts_metrics(Window(duration='5m'))

    for host, metrics in host_metrics.items():
        print(f"{host or '<unknown>'}:")
        for metric in metrics:
            print(f"  {metric.name:<18} {metric.type.value:<7} {metric.rollup:<5} {metric.value:.4f}")
    if error:
        print(f"\nErrors: {error}")


if __name__ == "__main__":
    asyncio.run(main())

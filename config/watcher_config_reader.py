"""
Configuration module for the Prometheus Load Watcher fetcher
Settings are resolved once at startup and stay immutable afterwards
"""

import logging
import os
import yaml
from typing import Any, Dict, List, Mapping, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict, ValidationError
from pathlib import Path

from tools.utils.watcher_models import ResourceType

logger = logging.getLogger(__name__)

DEFAULT_PROM_HOST = "prometheus-k8s:9090"
DEFAULT_PROM_TIMEOUT = 55
PROM_QUERY_PATH = "/api/v1/query"
BUNDLED_METRICS_FILE = Path(__file__).parent / "metrics-watcher.yml"

PROM_AVG_METHOD = "avg_over_time"
PROM_STD_METHOD = "stddev_over_time"
PROM_CPU_METRIC = "instance:node_cpu:ratio"
PROM_MEM_METRIC = "instance:node_memory_utilisation:ratio"


def resource_type_for_metric(metric: str) -> ResourceType:
    """CPU when the metric is the node CPU ratio, Memory for everything else"""
    if metric == PROM_CPU_METRIC:
        return ResourceType.CPU
    return ResourceType.MEMORY


class PrometheusConfig(BaseModel):
    """Prometheus connection settings"""
    host: str = DEFAULT_PROM_HOST
    token: Optional[str] = None
    timeout: int = DEFAULT_PROM_TIMEOUT
    verify_ssl: bool = False
    query_path: str = PROM_QUERY_PATH

    model_config = ConfigDict(frozen=True)


class MetricQuerySpec(BaseModel):
    """One (aggregation method, metric, resource type) combination to query"""
    method: str
    metric: str
    type: ResourceType

    model_config = ConfigDict(frozen=True)

    @classmethod
    def for_metric(cls, method: str, metric: str) -> "MetricQuerySpec":
        return cls(method=method, metric=metric, type=resource_type_for_metric(metric))


def default_metric_queries() -> Tuple[MetricQuerySpec, ...]:
    """avg x cpu, avg x mem, stddev x cpu, stddev x mem"""
    return tuple(
        MetricQuerySpec.for_metric(method, metric)
        for method in (PROM_AVG_METHOD, PROM_STD_METHOD)
        for metric in (PROM_CPU_METRIC, PROM_MEM_METRIC)
    )


def load_metrics_file(file_path: str) -> Dict[str, Any]:
    """Load metric query combinations from a YAML file

    Accepts either {'metrics': [...]} or a bare list. Each entry needs
    'method' and 'metric'; 'type' is optional and derived from the metric
    name when omitted.

    Returns:
        Dictionary with loading status and the parsed query specs
    """
    metrics_path = Path(file_path)
    if not metrics_path.is_absolute():
        metrics_path = Path.cwd() / metrics_path

    if not metrics_path.exists():
        return {
            'success': False,
            'error': f'File not found: {metrics_path}',
            'metrics_loaded': 0
        }

    try:
        with open(metrics_path, 'r') as f:
            metrics_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        return {
            'success': False,
            'error': f'Failed to read {metrics_path}: {e}',
            'metrics_loaded': 0
        }

    if isinstance(metrics_data, dict) and 'metrics' in metrics_data:
        metrics_list = metrics_data['metrics']
    elif isinstance(metrics_data, list):
        metrics_list = metrics_data
    else:
        return {
            'success': False,
            'error': f'Invalid metrics file format in {metrics_path}',
            'metrics_loaded': 0
        }

    queries: List[MetricQuerySpec] = []
    skipped = 0
    for metric_data in metrics_list or []:
        if not isinstance(metric_data, dict):
            skipped += 1
            continue

        method = metric_data.get('method')
        metric = metric_data.get('metric')
        if not method or not metric:
            skipped += 1
            continue

        try:
            if metric_data.get('type'):
                spec = MetricQuerySpec(method=method, metric=metric, type=metric_data['type'])
            else:
                spec = MetricQuerySpec.for_metric(method, metric)
        except ValidationError as e:
            logger.warning(f"Skipping invalid metric entry {metric_data}: {e}")
            skipped += 1
            continue

        if spec not in queries:
            queries.append(spec)

    if not queries:
        return {
            'success': False,
            'error': f'No usable metric entries in {metrics_path}',
            'metrics_loaded': 0
        }

    return {
        'success': True,
        'file_path': str(metrics_path),
        'file_name': metrics_path.name,
        'metrics_loaded': len(queries),
        'skipped': skipped,
        'queries': queries
    }


class Config(BaseModel):
    """Main configuration, built once via Config.from_env()"""
    prometheus: PrometheusConfig = Field(default_factory=PrometheusConfig)
    metric_queries: Tuple[MetricQuerySpec, ...] = Field(default_factory=default_metric_queries)
    metrics_file: Optional[str] = None
    log_level: str = "INFO"
    mcp_host: str = "0.0.0.0"
    mcp_port: int = 8004

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Resolve configuration from environment variables

        PROM_HOST, PROM_TOKEN, PROM_TIMEOUT, WATCHER_METRICS_FILE, LOG_LEVEL,
        MCP_HOST and MCP_PORT are honoured. Metric queries come from
        WATCHER_METRICS_FILE, else from the bundled metrics-watcher.yml; a
        file that fails to load is logged and the built-in combinations
        are used.
        """
        env = os.environ if environ is None else environ

        prometheus_kwargs: Dict[str, Any] = {}
        if prom_host := env.get('PROM_HOST'):
            prometheus_kwargs['host'] = prom_host
        # an empty token still counts as present
        if 'PROM_TOKEN' in env:
            prometheus_kwargs['token'] = env['PROM_TOKEN']
        if prom_timeout := env.get('PROM_TIMEOUT'):
            try:
                prometheus_kwargs['timeout'] = int(prom_timeout)
            except ValueError:
                logger.warning(f"Ignoring non-integer PROM_TIMEOUT={prom_timeout!r}")

        kwargs: Dict[str, Any] = {'prometheus': PrometheusConfig(**prometheus_kwargs)}

        metrics_file = env.get('WATCHER_METRICS_FILE') or str(BUNDLED_METRICS_FILE)
        result = load_metrics_file(metrics_file)
        if result.get('success'):
            logger.info(f"Loaded {result['metrics_loaded']} metric queries from {result['file_name']}")
            kwargs['metric_queries'] = tuple(result['queries'])
            kwargs['metrics_file'] = result['file_path']
        else:
            logger.warning(f"Failed to load metric queries, using defaults: {result.get('error')}")

        if log_level := env.get('LOG_LEVEL'):
            kwargs['log_level'] = log_level.upper()
        if mcp_host := env.get('MCP_HOST'):
            kwargs['mcp_host'] = mcp_host
        if mcp_port := env.get('MCP_PORT'):
            try:
                kwargs['mcp_port'] = int(mcp_port)
            except ValueError:
                logger.warning(f"Ignoring non-integer MCP_PORT={mcp_port!r}")

        return cls(**kwargs)

    def validate_config(self) -> Dict[str, Any]:
        """Validate configuration and return status"""
        status = {
            'valid': True,
            'errors': [],
            'warnings': []
        }

        if not self.prometheus.host:
            status['valid'] = False
            status['errors'].append("Prometheus host is empty")

        if not self.metric_queries:
            status['valid'] = False
            status['errors'].append("No metric queries configured")

        if self.prometheus.token is None:
            status['warnings'].append("PROM_TOKEN not set, requests are sent without Authorization header")

        return status

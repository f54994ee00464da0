#!/usr/bin/env python3
"""
Prometheus Query Utilities (PromQL)
Builds the range-aggregation queries and query URLs issued by the watcher fetcher
"""

from typing import Dict, Optional
from urllib.parse import urlencode

from config.watcher_config_reader import PROM_QUERY_PATH


class promqlUtility:
    """Static helpers for building Prometheus queries"""

    @staticmethod
    def build_query(method: str, metric: str, rollup: str) -> str:
        """Build a range aggregation expression

        Args:
            method: Aggregation function, e.g. 'avg_over_time'
            metric: Metric or recording rule name
            rollup: Range duration, passed through as-is (e.g. '5m')

        Returns:
            PromQL expression '<method>(<metric>[<rollup>])'
        """
        return f"{method}({metric}[{rollup}])"

    @staticmethod
    def build_query_url(host: str, query: str, query_path: str = PROM_QUERY_PATH) -> str:
        """Embed a PromQL expression in the instant query endpoint URL"""
        return f"http://{host}{query_path}?{urlencode({'query': query})}"

    @staticmethod
    def build_headers(token: Optional[str] = None) -> Dict[str, str]:
        """Request headers; Authorization only when a token is configured"""
        headers = {'Content-Type': 'application/json'}
        if token is not None:
            headers['Authorization'] = f'Bearer {token}'
        return headers

    @staticmethod
    def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
        """Shorten Authorization values for logging"""
        return {
            k: (v[:10] + '...' if k.lower() == 'authorization' and isinstance(v, str) else v)
            for k, v in headers.items()
        }

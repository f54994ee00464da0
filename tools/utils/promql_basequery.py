"""
Prometheus Base Query Module
HTTP access to the Prometheus instant query API for the watcher fetcher
"""

import aiohttp
import asyncio
import json
from typing import Dict, Any, Optional, Tuple
import logging
import os

from config.watcher_config_reader import PrometheusConfig
from tools.utils.promql_utility import promqlUtility

# Configure logging
logger = logging.getLogger(__name__)

_env_level = os.environ.get("WATCHER_PROM_LOG_LEVEL", "INFO").upper()
try:
    logger.setLevel(getattr(logging, _env_level, logging.INFO))
except (TypeError, ValueError):
    logger.setLevel(logging.INFO)


class PrometheusQueryError(Exception):
    """Custom exception for Prometheus query errors"""
    pass


class PrometheusBaseQuery:
    """Base class for Prometheus queries"""

    def __init__(self, prometheus_config: PrometheusConfig):
        self.config = prometheus_config
        self.session: Optional[aiohttp.ClientSession] = None
        self.timeout = aiohttp.ClientTimeout(total=prometheus_config.timeout)
        logger.debug(f"Initialized PrometheusBaseQuery with host={self.config.host}")

    async def __aenter__(self):
        """Async context manager entry"""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session is available"""
        if not self.session or self.session.closed:
            headers = promqlUtility.build_headers(self.config.token)

            # Prometheus sits on the internal network with self-signed certs
            connector = None if self.config.verify_ssl else aiohttp.TCPConnector(ssl=False)
            self.session = aiohttp.ClientSession(
                headers=headers,
                timeout=self.timeout,
                connector=connector
            )
            logger.debug(f"Created aiohttp session for Prometheus with verify_ssl={self.config.verify_ssl}, "
                         f"headers_masked={promqlUtility.mask_headers(headers)}")

    async def close(self) -> None:
        """Close the aiohttp session"""
        if self.session and not self.session.closed:
            await self.session.close()

    async def get_raw(self, url: str) -> Tuple[int, str]:
        """
        GET a fully built query URL

        Args:
            url: Query URL from promqlUtility.build_query_url

        Returns:
            Tuple of (HTTP status, response body text). Non-200 statuses are
            returned, not raised.

        Raises:
            PrometheusQueryError: the request could not be completed
        """
        await self._ensure_session()

        try:
            logger.debug(f"get_raw GET {url}")
            async with self.session.get(url) as response:
                raw = await response.read()
                text = raw.decode("utf-8", errors="replace")
                logger.debug(f"get_raw response status={response.status} body_snippet={text[:500]}")
                return response.status, text

        except aiohttp.ClientError as e:
            raise PrometheusQueryError(f"HTTP client error: {str(e)}") from e
        except asyncio.TimeoutError as e:
            raise PrometheusQueryError(f"Request timed out after {self.config.timeout}s: {url}") from e

    async def query_instant(self, query: str) -> Dict[str, Any]:
        """
        Execute an instant query against Prometheus

        Args:
            query: PromQL query string

        Returns:
            The 'data' section of a successful response
        """
        url = promqlUtility.build_query_url(self.config.host, query, self.config.query_path)
        status, text = await self.get_raw(url)

        if status == 403:
            logger.warning(f"query_instant 403 Forbidden. Body_snippet={text[:500]}")
            raise PrometheusQueryError(f"Forbidden (403) from Prometheus. Ensure proper token/rolebinding. Body: {text}")
        if status != 200:
            raise PrometheusQueryError(f"Query failed with status {status}: {text}")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug(f"query_instant JSON decode failed: {repr(e)}")
            raise PrometheusQueryError(f"Failed to decode JSON response: {str(e)}") from e

        if not isinstance(data, dict) or data.get('status') != 'success':
            error_msg = data.get('error', 'Unknown error') if isinstance(data, dict) else 'Unknown error'
            raise PrometheusQueryError(f"Prometheus query error: {error_msg}")

        return data.get('data', {})

    async def test_connection(self) -> bool:
        """
        Test connection to Prometheus

        Returns:
            True if connection successful, False otherwise
        """
        try:
            result = await self.query_instant('up')
            return isinstance(result, dict) and 'result' in result
        except PrometheusQueryError as e:
            logger.error(f"Prometheus test_connection error: {e}")
            return False

#!/usr/bin/env python3
"""
Prometheus Load Watcher MCP Server
Main server implementation using FastMCP

- watcher_mcp_server.py (this file) - Server setup and initialization
- mcp_tools/ - Tool implementations
  ├── models.py - Pydantic models
  ├── health_check.py - Health status
  └── host_metrics.py - Per-host CPU/memory aggregates
"""

import asyncio
import logging
import sys
from typing import Any, Dict

from fastmcp import FastMCP

from config.watcher_config_reader import Config
from tools.node.node_host_metrics import hostMetricsFetcher
from server.mcp_tools import register_health_check_tool, register_host_metrics_tool

logger = logging.getLogger(__name__)


def initialize_components(config: Config) -> Dict[str, Any]:
    """Build the fetcher from resolved configuration"""
    logger.info("=" * 70)
    logger.info("Initializing Prometheus Load Watcher components...")
    logger.info("=" * 70)

    status = config.validate_config()
    for warning in status['warnings']:
        logger.warning(warning)
    for error in status['errors']:
        logger.error(error)

    logger.info(f"Prometheus host: {config.prometheus.host} (timeout {config.prometheus.timeout}s, "
                f"verify_ssl={config.prometheus.verify_ssl})")
    for query_spec in config.metric_queries:
        logger.info(f"  {query_spec.method}({query_spec.metric}) -> {query_spec.type.value}")

    fetcher = hostMetricsFetcher.from_config(config)
    logger.info("✅ hostMetricsFetcher initialized")

    return {
        'config': config,
        'host_metrics_fetcher': fetcher,
    }


def create_server(config: Config) -> FastMCP:
    """Create the MCP server with all tools registered"""
    components = initialize_components(config)

    mcp = FastMCP("Prometheus Load Watcher")
    register_health_check_tool(mcp, lambda: components)
    register_host_metrics_tool(mcp, lambda: components)
    logger.info("✅ All MCP tools registered")
    return mcp


def main():
    """Main function to run the MCP server"""
    config = Config.from_env()

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    mcp = create_server(config)

    logger.info("🚀 Starting Prometheus Load Watcher MCP Server...")
    logger.info("📋 Available Tools:")
    logger.info("  1. get_server_health - Health checks and status")
    logger.info("  2. get_host_metrics - Per-host CPU/memory aggregates")

    try:
        asyncio.run(mcp.run_async(
            transport="streamable-http",
            host=config.mcp_host,
            port=config.mcp_port,
            uvicorn_config={"ws": "none"}
        ))
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

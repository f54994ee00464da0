"""Pytest configuration and shared fixtures"""
import json
from urllib.parse import parse_qs, urlparse

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from config.watcher_config_reader import (
    PROM_AVG_METHOD,
    PROM_CPU_METRIC,
    PROM_MEM_METRIC,
    PROM_STD_METHOD,
    MetricQuerySpec,
    PrometheusConfig,
)
from tools.utils.promql_basequery import PrometheusQueryError

AVG_CPU = f"{PROM_AVG_METHOD}({PROM_CPU_METRIC}[5m])"
AVG_MEM = f"{PROM_AVG_METHOD}({PROM_MEM_METRIC}[5m])"
STD_CPU = f"{PROM_STD_METHOD}({PROM_CPU_METRIC}[5m])"
STD_MEM = f"{PROM_STD_METHOD}({PROM_MEM_METRIC}[5m])"


def series(instance, value, **labels):
    """One instant-vector result object"""
    metric = dict(labels)
    if instance is not None:
        metric["instance"] = instance
    return {"metric": metric, "value": [1700000000.123, value]}


def envelope(result):
    return json.dumps({"status": "success", "data": {"resultType": "vector", "result": result}})


@pytest.fixture
def avg_cpu_spec():
    return MetricQuerySpec.for_metric(PROM_AVG_METHOD, PROM_CPU_METRIC)


@pytest.fixture
def std_mem_spec():
    return MetricQuerySpec.for_metric(PROM_STD_METHOD, PROM_MEM_METRIC)


class FakePrometheus:
    """Stands in for PrometheusBaseQuery; answers get_raw from a query -> response table"""

    instances = []

    def __init__(self, prometheus_config, responses):
        self.config = prometheus_config
        self.responses = responses
        self.queries = []
        self.closed = False
        FakePrometheus.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    async def get_raw(self, url):
        query = parse_qs(urlparse(url).query)["query"][0]
        self.queries.append(query)
        response = self.responses.get(query, (200, envelope([])))
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_prometheus(monkeypatch):
    """Patch the fetcher's Prometheus client; returns a setter for the response table"""
    import tools.node.node_host_metrics as node_host_metrics

    FakePrometheus.instances = []
    table = {}

    def factory(prometheus_config):
        return FakePrometheus(prometheus_config, table)

    monkeypatch.setattr(node_host_metrics, "PrometheusBaseQuery", factory)
    return table


@pytest_asyncio.fixture
async def prometheus_server():
    """In-process Prometheus stub serving /api/v1/query from a query -> (status, body) table"""
    table = {}
    received = []

    async def handle_query(request):
        query = request.query.get("query", "")
        received.append({"query": query, "headers": request.headers.copy()})
        status, body = table.get(query, (200, envelope([])))
        if isinstance(body, bytes):
            return web.Response(status=status, body=body, content_type="application/json")
        return web.Response(status=status, text=body, content_type="application/json")

    app = web.Application()
    app.router.add_get("/api/v1/query", handle_query)

    server = TestServer(app)
    await server.start_server()
    try:
        yield {
            "config": PrometheusConfig(host=f"{server.host}:{server.port}", timeout=5),
            "responses": table,
            "received": received,
        }
    finally:
        await server.close()


@pytest.fixture
def transport_error():
    return PrometheusQueryError("HTTP client error: connection refused")

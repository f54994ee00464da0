import pytest

import server.mcp_tools.health_check as health_check
from config.watcher_config_reader import Config
from server.mcp_tools import WindowInput, register_health_check_tool, register_host_metrics_tool
from tools.utils.promql_basequery import PrometheusQueryError
from tools.utils.watcher_models import Metric, ResourceType


class FakeMCP:
    def __init__(self):
        self.tools = {}

    def tool(self):
        def decorator(fn):
            self.tools[fn.__name__] = fn
            return fn
        return decorator


class DummyFetcher:
    def __init__(self, host_metrics=None, error=None, raises=None):
        self.host_metrics = host_metrics or {}
        self.error = error
        self.raises = raises
        self.windows = []

    async def fetch_all_hosts_metrics(self, window):
        self.windows.append(window)
        if self.raises:
            raise self.raises
        return self.host_metrics, self.error


def _register(components):
    mcp = FakeMCP()
    register_host_metrics_tool(mcp, lambda: components)
    register_health_check_tool(mcp, lambda: components)
    return mcp


CPU_METRIC = Metric(name="avg_over_time", type=ResourceType.CPU, rollup="5m", value=0.73)


@pytest.mark.asyncio
async def test_host_metrics_success():
    fetcher = DummyFetcher({"node-1": [CPU_METRIC]})
    mcp = _register({"host_metrics_fetcher": fetcher})

    response = await mcp.tools["get_host_metrics"](WindowInput(duration="15m"))

    assert response.status == "success"
    assert response.duration == "15m"
    assert response.error is None
    assert response.data == {
        "node-1": [{"name": "avg_over_time", "type": "CPU", "rollup": "5m", "value": 0.73}]
    }
    assert fetcher.windows[0].duration == "15m"


@pytest.mark.asyncio
async def test_host_metrics_defaults_to_five_minutes():
    fetcher = DummyFetcher()
    mcp = _register({"host_metrics_fetcher": fetcher})

    response = await mcp.tools["get_host_metrics"]()

    assert response.status == "success"
    assert response.data == {}
    assert fetcher.windows[0].duration == "5m"


@pytest.mark.asyncio
async def test_host_metrics_partial_success_on_transport_error():
    fetcher = DummyFetcher({"node-1": [CPU_METRIC]}, error=PrometheusQueryError("1 of 4 queries failed"))
    mcp = _register({"host_metrics_fetcher": fetcher})

    response = await mcp.tools["get_host_metrics"](WindowInput())

    assert response.status == "partial_success"
    assert response.error == "1 of 4 queries failed"
    assert "node-1" in response.data


@pytest.mark.asyncio
async def test_host_metrics_error_when_nothing_collected():
    fetcher = DummyFetcher({}, error=PrometheusQueryError("4 of 4 queries failed"))
    mcp = _register({"host_metrics_fetcher": fetcher})

    response = await mcp.tools["get_host_metrics"](WindowInput())

    assert response.status == "error"
    assert response.data == {}


@pytest.mark.asyncio
async def test_host_metrics_unexpected_exception_becomes_error_response():
    mcp = _register({"host_metrics_fetcher": DummyFetcher(raises=RuntimeError("boom"))})

    response = await mcp.tools["get_host_metrics"](WindowInput())

    assert response.status == "error"
    assert response.error == "boom"


@pytest.mark.asyncio
async def test_host_metrics_without_fetcher():
    mcp = _register({})

    response = await mcp.tools["get_host_metrics"](WindowInput())

    assert response.status == "error"
    assert "not initialized" in response.error


class ReachablePrometheus:
    reachable = True

    def __init__(self, prometheus_config):
        self.config = prometheus_config

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def test_connection(self):
        return self.reachable


@pytest.mark.asyncio
async def test_health_check_healthy(monkeypatch):
    monkeypatch.setattr(health_check, "PrometheusBaseQuery", ReachablePrometheus)
    mcp = _register({"config": Config.from_env({}), "host_metrics_fetcher": DummyFetcher()})

    response = await mcp.tools["get_server_health"]()

    assert response.status == "healthy"
    assert response.collectors_initialized is True
    assert response.prometheus_reachable is True
    assert response.details == {"config": True, "host_metrics_fetcher": True}


@pytest.mark.asyncio
async def test_health_check_unhealthy_when_prometheus_unreachable(monkeypatch):
    monkeypatch.setattr(ReachablePrometheus, "reachable", False)
    monkeypatch.setattr(health_check, "PrometheusBaseQuery", ReachablePrometheus)
    mcp = _register({"config": Config.from_env({}), "host_metrics_fetcher": DummyFetcher()})

    response = await mcp.tools["get_server_health"]()

    assert response.status == "unhealthy"
    assert response.prometheus_reachable is False


@pytest.mark.asyncio
async def test_health_check_without_components():
    mcp = _register({})

    response = await mcp.tools["get_server_health"]()

    assert response.status == "unhealthy"
    assert response.collectors_initialized is False
    assert response.prometheus_reachable is None

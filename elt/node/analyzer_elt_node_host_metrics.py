"""
Extract, Load, Transform module for watcher host metrics
Turns Prometheus instant query responses into host-keyed Metric records
"""

import json
import logging
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Tuple, Union

from config.watcher_config_reader import MetricQuerySpec
from tools.utils.watcher_models import HostMetrics, Metric

logger = logging.getLogger(__name__)


class ResultShape(str, Enum):
    """Shape of data.result in a Prometheus response"""
    ARRAY = "array"
    SINGLE = "single"
    UNRECOGNIZED = "unrecognized"
    MISSING = "missing"


class DecodedResult(NamedTuple):
    shape: ResultShape
    entries: List[Any]
    raw: Any = None


class hostMetricsELT:
    """Extract, Load, Transform class for watcher host metrics"""

    def decode_envelope(self, body: Union[str, bytes, Dict[str, Any]]) -> DecodedResult:
        """Classify the data.result section of a response envelope

        A single matching series may come back as one object rather than a
        list, so both are accepted. Anything else is reported as
        UNRECOGNIZED, and a missing data.result as MISSING.
        """
        envelope: Any = body
        if isinstance(body, (str, bytes)):
            try:
                envelope = json.loads(body)
            except (ValueError, RecursionError) as e:
                logger.error(f"error parsing the response: {e}")
                envelope = {}

        data = envelope.get('data') if isinstance(envelope, dict) else None
        if not isinstance(data, dict) or 'result' not in data:
            return DecodedResult(ResultShape.MISSING, [], envelope)

        result = data['result']
        if isinstance(result, list):
            return DecodedResult(ResultShape.ARRAY, result, result)
        if isinstance(result, dict):
            return DecodedResult(ResultShape.SINGLE, [result], result)
        return DecodedResult(ResultShape.UNRECOGNIZED, [], result)

    def promdata_to_metric(self, promdata: Dict[str, Any], query_spec: MetricQuerySpec,
                           rollup: str) -> Tuple[Metric, str]:
        """Convert one result object into a Metric and the host it belongs to

        Host falls back to '' when metric.instance is missing or not a string;
        value falls back to 0.0 when value[1] cannot be parsed.
        """
        host = ''
        labels = promdata.get('metric')
        if isinstance(labels, dict) and isinstance(labels.get('instance'), str):
            host = labels['instance']

        value = 0.0
        try:
            value = float(promdata['value'][1])
        except (KeyError, IndexError, TypeError, ValueError, OverflowError) as e:
            logger.debug(f"Unparseable value in {promdata}: {e!r}")

        metric = Metric(
            name=query_spec.method,
            type=query_spec.type,
            rollup=rollup,
            value=value
        )
        return metric, host

    def update_host_metrics(self, host_metrics: HostMetrics, status: int,
                            body: Union[str, bytes, Dict[str, Any]],
                            query_spec: MetricQuerySpec, rollup: str) -> HostMetrics:
        """Fold one query response into host_metrics (extended in place and returned)"""
        if status != 200:
            logger.warning(f"received status code: {status} for {query_spec.method}({query_spec.metric})")
            return host_metrics

        decoded = self.decode_envelope(body)
        logger.debug(f"receive response shape: {decoded.shape.value}")

        if decoded.shape == ResultShape.MISSING:
            logger.warning(f"not able to parse prometheus query response: {decoded.raw}")
            return host_metrics

        if decoded.shape == ResultShape.UNRECOGNIZED:
            logger.warning(f"{decoded.raw} is not recognized prometheus data format")
            return host_metrics

        for promdata in decoded.entries:
            if not isinstance(promdata, dict):
                logger.debug(f"Skipping non-object result entry: {promdata}")
                continue
            metric, host = self.promdata_to_metric(promdata, query_spec, rollup)
            host_metrics.setdefault(host, []).append(metric)

        return host_metrics

"""
Monitoring and metrics collection for index builds, crawls and queries.
"""

import logging
from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server


class MetricsCollector:
    """Owns the Prometheus metrics of one process or test."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.logger = logging.getLogger(__name__)
        self.registry = registry or CollectorRegistry()

        self.prometheus_metrics = {
            'tasks_completed_total': Counter(
                'webindex_tasks_completed_total',
                'Total number of work queue tasks that finished normally',
                registry=self.registry
            ),
            'tasks_failed_total': Counter(
                'webindex_tasks_failed_total',
                'Total number of work queue tasks that raised',
                registry=self.registry
            ),
            'pending_tasks': Gauge(
                'webindex_pending_tasks',
                'Number of submitted tasks that have not finished',
                registry=self.registry
            ),
            'documents_indexed_total': Counter(
                'webindex_documents_indexed_total',
                'Total number of documents added to an index',
                ['source'],
                registry=self.registry
            ),
            'fetch_failures_total': Counter(
                'webindex_fetch_failures_total',
                'Total number of pages that could not be fetched',
                registry=self.registry
            ),
            'queries_total': Counter(
                'webindex_queries_total',
                'Total number of queries executed',
                ['mode'],
                registry=self.registry
            )
        }

    def start_server(self, port: int):
        """Expose the registry over HTTP."""
        try:
            start_http_server(port, registry=self.registry)
            self.logger.info(f"Prometheus metrics server started on port {port}")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")

    def inc(self, name: str, labels: Optional[Dict[str, str]] = None, amount: float = 1):
        metric = self.prometheus_metrics[name]
        if labels:
            metric.labels(**labels).inc(amount)
        else:
            metric.inc(amount)

    def set(self, name: str, value: float):
        self.prometheus_metrics[name].set(value)

    def get_value(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Read the current value of a metric, 0.0 if it has no samples yet."""
        if name not in self.prometheus_metrics:
            raise KeyError(f"Unknown metric: {name}")
        # Sample names carry the same prefix as the metric definitions above
        value = self.registry.get_sample_value(f'webindex_{name}', labels or {})
        return value if value is not None else 0.0


class IndexMonitor:
    """High-level monitoring interface used by the queue, crawler and query engine."""

    def __init__(self, metrics_collector: Optional[MetricsCollector] = None):
        self.metrics = metrics_collector or MetricsCollector()

    def record_task_finished(self, failed: bool):
        if failed:
            self.metrics.inc('tasks_failed_total')
        else:
            self.metrics.inc('tasks_completed_total')

    def update_pending_tasks(self, count: int):
        self.metrics.set('pending_tasks', count)

    def record_document_indexed(self, source: str):
        """Record a document added to an index ('file' or 'web')."""
        self.metrics.inc('documents_indexed_total', {'source': source})

    def record_fetch_failure(self):
        self.metrics.inc('fetch_failures_total')

    def record_query(self, exact: bool):
        self.metrics.inc('queries_total', {'mode': 'exact' if exact else 'partial'})

    def get_summary(self) -> Dict[str, float]:
        """Get a summary of the current metric values."""
        return {
            'tasks_completed': self.metrics.get_value('tasks_completed_total'),
            'tasks_failed': self.metrics.get_value('tasks_failed_total'),
            'pending_tasks': self.metrics.get_value('pending_tasks'),
            'documents_indexed_file': self.metrics.get_value('documents_indexed_total', {'source': 'file'}),
            'documents_indexed_web': self.metrics.get_value('documents_indexed_total', {'source': 'web'}),
            'fetch_failures': self.metrics.get_value('fetch_failures_total'),
            'queries_exact': self.metrics.get_value('queries_total', {'mode': 'exact'}),
            'queries_partial': self.metrics.get_value('queries_total', {'mode': 'partial'})
        }

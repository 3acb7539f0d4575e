"""
Prometheus Metrics for the Triangular Arbitrage Manager

Exposes scan and sizing metrics for monitoring and alerting, with an optional
aiohttp endpoint serving them.
"""

import logging
import time
from typing import Any, Dict, Optional

from aiohttp import web
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from triangular_manager.constants import ScanFailureReason, SizingOutcome

logger = logging.getLogger(__name__)


class ScanMetrics:
    """
    Scan and sizing metrics collection and exposure

    Provides Prometheus-compatible metrics for:
    - Unified scans (count, duration, profitable opportunities)
    - Per-exchange results and failures
    - Position sizing decisions
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics with custom registry or default"""
        self.registry = registry or REGISTRY
        self._initialize_metrics()

        # Server components
        self._app = None
        self._runner = None
        self._site = None

    def _initialize_metrics(self):
        """Initialize all Prometheus metrics"""

        # === SCAN METRICS ===
        self.scans_started_total = Counter(
            "triangular_manager_scans_started_total",
            "Total number of unified scans started",
            registry=self.registry,
        )

        self.scan_duration_seconds = Histogram(
            "triangular_manager_scan_duration_seconds",
            "Wall-clock duration of unified scans",
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
            registry=self.registry,
        )

        self.profitable_opportunities = Gauge(
            "triangular_manager_profitable_opportunities",
            "Profitable opportunities found by the last unified scan",
            registry=self.registry,
        )

        # === EXCHANGE METRICS ===
        self.exchange_opportunities_total = Counter(
            "triangular_manager_exchange_opportunities_total",
            "Opportunities returned per exchange",
            ["exchange"],
            registry=self.registry,
        )

        self.exchange_scan_failures_total = Counter(
            "triangular_manager_exchange_scan_failures_total",
            "Exchange scans that failed or timed out during unified scans",
            ["exchange", "reason"],
            registry=self.registry,
        )

        # === SIZING METRICS ===
        self.sizing_decisions_total = Counter(
            "triangular_manager_sizing_decisions_total",
            "Position sizing decisions by outcome",
            ["currency", "outcome"],
            registry=self.registry,
        )

    def record_scan_started(self):
        """Record the start of a unified scan"""
        self.scans_started_total.inc()

    def record_scan_completed(self, duration_seconds: float, profitable_count: int):
        """Record the end of a unified scan"""
        self.scan_duration_seconds.observe(duration_seconds)
        self.profitable_opportunities.set(profitable_count)

    def record_exchange_result(self, exchange: str, opportunity_count: int):
        """Record how many opportunities one exchange returned"""
        self.exchange_opportunities_total.labels(exchange=exchange).inc(
            opportunity_count
        )

    def record_exchange_failure(self, exchange: str, reason: ScanFailureReason):
        """Record an isolated exchange failure"""
        self.exchange_scan_failures_total.labels(
            exchange=exchange, reason=reason.value
        ).inc()

    def record_sizing_decision(self, currency: str, outcome: SizingOutcome):
        """Record a sizing decision"""
        self.sizing_decisions_total.labels(
            currency=currency, outcome=outcome.value
        ).inc()

    async def start_server(
        self, port: int = 8000, host: str = "0.0.0.0", path: str = "/metrics"
    ):
        """Start Prometheus metrics HTTP server"""
        if self._site is not None:
            logger.warning("Metrics server already running")
            return False

        try:
            self._app = web.Application()
            self._app.router.add_get(path, self._metrics_handler)
            self._app.router.add_get("/health", self._health_handler)

            self._runner = web.AppRunner(self._app)
            await self._runner.setup()

            self._site = web.TCPSite(self._runner, host, port)
            await self._site.start()

            logger.info(
                f"📊 Prometheus metrics server started on http://{host}:{port}{path}"
            )
            return True

        except Exception as e:
            logger.error(f"Failed to start metrics server: {e}")
            return False

    async def stop_server(self):
        """Stop the metrics server"""
        try:
            if self._site:
                await self._site.stop()
            if self._runner:
                await self._runner.cleanup()
            logger.info("📊 Metrics server stopped")
        except Exception as e:
            logger.error(f"Error stopping metrics server: {e}")
        finally:
            self._site = None
            self._runner = None
            self._app = None

    async def _metrics_handler(self, request):
        """Handle metrics endpoint requests"""
        try:
            metrics_output = generate_latest(self.registry)
            # Strip charset from content type to avoid conflicts with aiohttp
            content_type = CONTENT_TYPE_LATEST.split(";")[0]
            return web.Response(
                text=metrics_output.decode("utf-8"), content_type=content_type
            )
        except Exception as e:
            logger.error(f"Error generating metrics: {e}")
            return web.Response(text="Error generating metrics", status=500)

    async def _health_handler(self, request):
        """Handle health check endpoint"""
        return web.Response(
            text='{"status": "healthy", "service": "triangular_manager_metrics"}',
            content_type="application/json",
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get current metrics summary"""
        return {
            "metrics_available": True,
            "scans_started": self.scans_started_total._value.get(),
            "profitable_opportunities": self.profitable_opportunities._value.get(),
            "timestamp": time.time(),
        }


# Global metrics instance (singleton pattern)
_global_metrics: Optional[ScanMetrics] = None


def get_metrics() -> ScanMetrics:
    """Get or create global metrics instance"""
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = ScanMetrics()
    return _global_metrics


def initialize_metrics(registry: Optional[CollectorRegistry] = None) -> ScanMetrics:
    """Initialize global metrics with custom registry"""
    global _global_metrics
    _global_metrics = ScanMetrics(registry)
    return _global_metrics

"""
Prometheus metrics for backrun execution and revenue distribution.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

OUTCOMES = ("settled", "skipped", "rejected", "failed")


class RouterMetrics:
    """
    Prometheus-compatible metrics for one router instance

    A fresh CollectorRegistry is used unless one is passed in, so several routers
    (or tests) can coexist in one process.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()

        self.backruns_total = Counter(
            "backrun_router_backruns_total",
            "Backrun attempts by terminal outcome",
            ["outcome"],
            registry=self.registry,
        )

        self.realized_profit_total = Counter(
            "backrun_router_realized_profit_total",
            "Realized profit in asset base units",
            ["asset"],
            registry=self.registry,
        )

        self.splits_total = Counter(
            "backrun_router_splits_total",
            "Revenue splits performed",
            registry=self.registry,
        )

        self.stranded_dust_total = Counter(
            "backrun_router_stranded_dust_total",
            "Dust left with the router because no dust recipient was given",
            ["asset"],
            registry=self.registry,
        )

        self.route_hops = Histogram(
            "backrun_router_route_hops",
            "Hops per executed route",
            buckets=[1, 2, 3, 4, 6, 8, 16],
            registry=self.registry,
        )

    def record_outcome(self, outcome: str) -> None:
        if outcome not in OUTCOMES:
            raise ValueError(f"Unknown outcome: {outcome}")
        self.backruns_total.labels(outcome=outcome).inc()

    def record_profit(self, asset: str, amount: int) -> None:
        if amount > 0:
            self.realized_profit_total.labels(asset=asset).inc(amount)

    def record_split(self, asset: str, stranded: int) -> None:
        self.splits_total.inc()
        if stranded > 0:
            self.stranded_dust_total.labels(asset=asset).inc(stranded)

    def record_route(self, hop_count: int) -> None:
        self.route_hops.observe(hop_count)

    def sample(self, name: str, **labels) -> float:
        """Current value of a sample, 0.0 if never recorded."""
        value = self.registry.get_sample_value(name, labels or None)
        return value or 0.0

    def export(self) -> bytes:
        """Render metrics in Prometheus exposition format."""
        return generate_latest(self.registry)

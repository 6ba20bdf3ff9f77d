"""
Backrun Router.

Captures the price discrepancy left by a trade with a corrective multi-hop swap
executed in the same unit of work, and splits the realized profit among
configured beneficiaries with exact-accounting dust handling.
"""

PROJECT_NAME = "backrun-router"
VERSION = "0.3.0"

# Export main components for easier imports
from backrun_router.config_loader import load_router_settings
from backrun_router.config_schema import RevenueConfig, RouterSettings
from backrun_router.executor import RouteExecutor
from backrun_router.guard import GracefulGuard, graceful_nonreentrant
from backrun_router.ledger import Ledger
from backrun_router.metrics import RouterMetrics
from backrun_router.oracle import CandidateRouteOracle, RouteOracle
from backrun_router.revenue import RevenueDistributor
from backrun_router.router import BackrunRouter
from backrun_router.types import (
    BackrunTrigger,
    BatchOutcome,
    ExecutionOutcome,
    PassThroughCall,
    RouteQuote,
    VenueFlags,
    VenueKind,
)

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "BackrunRouter",
    "BackrunTrigger",
    "BatchOutcome",
    "CandidateRouteOracle",
    "ExecutionOutcome",
    "GracefulGuard",
    "Ledger",
    "PassThroughCall",
    "RevenueConfig",
    "RevenueDistributor",
    "RouteExecutor",
    "RouteOracle",
    "RouteQuote",
    "RouterMetrics",
    "RouterSettings",
    "VenueFlags",
    "VenueKind",
    "graceful_nonreentrant",
    "load_router_settings",
]

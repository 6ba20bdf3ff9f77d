"""
Shared fixtures: a three-venue market with a cyclic A -> B -> C -> A opportunity.

Venue AB and CA are direct-quote pools, BC is callback-settled. CA prices A
20% above the other two pools, so routing A around the cycle is profitable.
"""

from types import SimpleNamespace

import pytest
from prometheus_client import CollectorRegistry
from web3 import Web3

from backrun_router.ledger import Ledger
from backrun_router.metrics import RouterMetrics
from backrun_router.oracle import CandidateRouteOracle
from backrun_router.router import BackrunRouter
from backrun_router.types import BackrunTrigger, VenueFlags, VenueKind
from backrun_router.venues import CallbackSettledVenue, DirectQuoteVenue, VenueRegistry

E = 10**18


def addr(n: int) -> str:
    """Checksum address with ``n`` as its integer value."""
    return Web3.to_checksum_address("0x" + f"{n:040x}")


ADMIN = addr(0xAD)
ROUTER = addr(0x80)
BENEFICIARY = addr(0xBE)
TRADER = addr(0x7A)
OUTSIDER = addr(0x0E)
LP = addr(0x1F)

TOKEN_A = addr(0xA000)
TOKEN_B = addr(0xB000)
TOKEN_C = addr(0xC000)

VENUE_AB = addr(0xAB00)
VENUE_BC = addr(0xBC00)
VENUE_CA = addr(0xCA00)

ZFO = int(VenueFlags.ZERO_FOR_ONE)
CYCLE_HOPS = [
    (VENUE_AB, VenueKind.DIRECT_QUOTE, ZFO),
    (VENUE_BC, VenueKind.CALLBACK_SETTLED, ZFO),
    (VENUE_CA, VenueKind.DIRECT_QUOTE, ZFO),
]
CYCLE_ASSETS = [TOKEN_A, TOKEN_B, TOKEN_C, TOKEN_A]


def build_market(ledger: Ledger) -> SimpleNamespace:
    for token in (TOKEN_A, TOKEN_B, TOKEN_C):
        ledger.credit(token, LP, 10_000 * E)
        ledger.credit(token, TRADER, 1_000 * E)

    registry = VenueRegistry()
    ab = registry.register(DirectQuoteVenue(ledger, VENUE_AB, TOKEN_A, TOKEN_B))
    bc = registry.register(CallbackSettledVenue(ledger, VENUE_BC, TOKEN_B, TOKEN_C))
    ca = registry.register(DirectQuoteVenue(ledger, VENUE_CA, TOKEN_C, TOKEN_A))
    ab.add_liquidity(LP, 1_000 * E, 1_000 * E)
    bc.add_liquidity(LP, 1_000 * E, 1_000 * E)
    ca.add_liquidity(LP, 1_000 * E, 1_200 * E)

    return SimpleNamespace(registry=registry, ab=ab, bc=bc, ca=ca)


def build_world(**router_kwargs) -> SimpleNamespace:
    """Fresh ledger, market, oracle and router; identical every time it is called."""
    ledger = Ledger()
    market = build_market(ledger)
    oracle = CandidateRouteOracle(market.registry, address=addr(0x0AC1E))
    oracle.register_route(market.ab.pool_id, CYCLE_HOPS, CYCLE_ASSETS)
    metrics = RouterMetrics(CollectorRegistry())
    router = BackrunRouter(
        ROUTER, ledger, market.registry, admin=ADMIN, oracle=oracle, metrics=metrics, **router_kwargs
    )
    return SimpleNamespace(
        ledger=ledger,
        market=market,
        registry=market.registry,
        oracle=oracle,
        metrics=metrics,
        router=router,
        ab=market.ab,
        bc=market.bc,
        ca=market.ca,
    )


def make_trigger(venue, amount=5 * E, primary=True, beneficiary=BENEFICIARY, **kwargs):
    return BackrunTrigger(
        source_venue_id=venue.pool_id,
        input_amount=amount,
        input_is_primary=primary,
        beneficiary=beneficiary,
        **kwargs,
    )


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def market(ledger):
    return build_market(ledger)


@pytest.fixture
def world():
    return build_world()

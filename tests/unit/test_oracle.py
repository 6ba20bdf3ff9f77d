"""
Unit tests for the candidate-route oracle
"""

import pytest

from backrun_router.exceptions import ValidationError
from backrun_router.oracle import CandidateRouteOracle, RouteOracle
from backrun_router.types import VenueKind

from conftest import (
    CYCLE_ASSETS,
    CYCLE_HOPS,
    E,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    VENUE_AB,
    VENUE_BC,
    VENUE_CA,
    ZFO,
)

REVERSE_HOPS = [
    (VENUE_CA, VenueKind.DIRECT_QUOTE, 0),
    (VENUE_BC, VenueKind.CALLBACK_SETTLED, 0),
    (VENUE_AB, VenueKind.DIRECT_QUOTE, 0),
]
REVERSE_ASSETS = [TOKEN_A, TOKEN_C, TOKEN_B, TOKEN_A]


@pytest.fixture
def oracle(market):
    return CandidateRouteOracle(market.registry)


def test_implements_protocol(oracle):
    assert isinstance(oracle, RouteOracle)


def test_register_route_checks_lengths(oracle, market):
    with pytest.raises(ValidationError):
        oracle.register_route(market.ab.pool_id, CYCLE_HOPS, CYCLE_ASSETS[:-1])


def test_candidates_are_per_venue(oracle, market):
    oracle.register_route(market.ab.pool_id, CYCLE_HOPS, CYCLE_ASSETS)
    assert len(oracle.candidates_for(market.ab.pool_id)) == 1
    assert oracle.candidates_for(market.bc.pool_id) == []


def test_no_quote_for_unknown_venue_or_zero_amount(oracle, market):
    oracle.register_route(market.ab.pool_id, CYCLE_HOPS, CYCLE_ASSETS)
    assert oracle.get_quote("0x" + "ee" * 32, True, 5 * E) == (0, None)
    assert oracle.get_quote(market.ab.pool_id, True, 0) == (0, None)


def test_picks_the_profitable_direction(oracle, market):
    oracle.register_route(market.ab.pool_id, REVERSE_HOPS, REVERSE_ASSETS)
    assert oracle.get_quote(market.ab.pool_id, True, 5 * E) == (0, None)

    oracle.register_route(market.ab.pool_id, CYCLE_HOPS, CYCLE_ASSETS)
    profit, route = oracle.get_quote(market.ab.pool_id, True, 5 * E)

    assert profit > 0
    assert route.estimated_profit == profit
    assert route.venues == (VENUE_AB, VENUE_BC, VENUE_CA)
    assert route.start_hop_index == 0


def test_start_position_follows_input_asset(oracle, market):
    oracle.register_route(market.ab.pool_id, CYCLE_HOPS, CYCLE_ASSETS)

    # token1 of AB is B, which enters the cycle at hop 1
    profit, route = oracle.get_quote(market.ab.pool_id, False, 5 * E)

    assert profit > 0
    assert route.start_hop_index == 1
    assert route.asset_sequence[route.start_hop_index] == TOKEN_B


def test_quote_does_not_change_state(oracle, market, ledger):
    oracle.register_route(market.ab.pool_id, CYCLE_HOPS, CYCLE_ASSETS)
    before = [(v.reserve0, v.reserve1) for v in market.registry]

    oracle.get_quote(market.ab.pool_id, True, 5 * E)

    assert [(v.reserve0, v.reserve1) for v in market.registry] == before
    assert ledger.events == []


def test_mismatched_kind_is_not_quoted(oracle, market):
    oracle.register_route(
        market.ab.pool_id,
        [(VENUE_AB, VenueKind.CALLBACK_SETTLED, ZFO)] + CYCLE_HOPS[1:],
        CYCLE_ASSETS,
    )
    assert oracle.get_quote(market.ab.pool_id, True, 5 * E) == (0, None)

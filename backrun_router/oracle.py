"""
Route oracle interface and a candidate-route reference oracle.

The router treats every oracle as untrusted: whatever route it returns is
validated by the executor before anything is moved.
"""

from typing import Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from .constants import ZERO_ADDRESS
from .exceptions import ValidationError
from .types import RouteQuote, VenueFlags
from .utils import get_logger, normalize_address, normalize_bytes32
from .venues import VenueRegistry, swap_out

logger = get_logger(__name__)


@runtime_checkable
class RouteOracle(Protocol):
    """Protocol for the pricing collaborator consulted on every trigger."""

    def get_quote(
        self, source_venue_id: str, input_is_primary: bool, input_amount: int
    ) -> Tuple[int, Optional[RouteQuote]]:
        """Return ``(estimated_profit, route)``; a non-positive profit means no opportunity."""
        ...


class CandidateRouteOracle:
    """
    Oracle that picks among registered cyclic routes.

    Candidates are registered per source venue id. A quote dry-runs every candidate
    from every position holding the requested starting asset against current
    reserves and returns the most profitable one. No state is changed.
    """

    def __init__(self, venues: VenueRegistry, address: str = ZERO_ADDRESS):
        self.venues = venues
        self.address = normalize_address(address, "oracle")
        self._candidates: Dict[str, List[RouteQuote]] = {}

    def register_route(
        self,
        source_venue_id: str,
        hops: Sequence[Tuple[str, int, int]],
        asset_sequence: Sequence[str],
    ) -> RouteQuote:
        """Register a cyclic route of ``(venue, kind, flags)`` hops for a source venue."""
        source_venue_id = normalize_bytes32(source_venue_id, "source_venue_id")
        if len(asset_sequence) != len(hops) + 1:
            raise ValidationError("asset_sequence must have one more entry than hops")
        candidate = RouteQuote.from_hops(
            0, hops, [normalize_address(a, "asset") for a in asset_sequence]
        )
        self._candidates.setdefault(source_venue_id, []).append(candidate)
        logger.debug(f"Registered {len(hops)}-hop candidate for {source_venue_id}")
        return candidate

    def candidates_for(self, source_venue_id: str) -> List[RouteQuote]:
        return list(self._candidates.get(normalize_bytes32(source_venue_id, "source_venue_id"), []))

    def get_quote(
        self, source_venue_id: str, input_is_primary: bool, input_amount: int
    ) -> Tuple[int, Optional[RouteQuote]]:
        source = self.venues.find_by_id(source_venue_id)
        if source is None or input_amount <= 0:
            return 0, None
        input_asset = source.token0 if input_is_primary else source.token1

        best_profit, best_route = 0, None
        for candidate in self.candidates_for(source_venue_id):
            # The last entry repeats the first, so it is never a distinct start
            for start, asset in enumerate(candidate.asset_sequence[:-1]):
                if asset != input_asset:
                    continue
                final_amount = self._dry_run(candidate, start, input_amount)
                if final_amount is None:
                    continue
                profit = final_amount - input_amount
                if profit > best_profit:
                    best_profit = profit
                    best_route = RouteQuote(
                        estimated_profit=profit,
                        venues=candidate.venues,
                        venue_kinds=candidate.venue_kinds,
                        venue_flags=candidate.venue_flags,
                        asset_sequence=candidate.asset_sequence,
                        start_hop_index=start,
                    )

        return best_profit, best_route

    def _dry_run(self, route: RouteQuote, start: int, amount: int) -> Optional[int]:
        """Simulate the route in rotation from ``start``; None if any hop cannot be quoted."""
        n = route.hop_count
        reserves: Dict[str, Tuple[int, int]] = {}
        for i in list(range(start, n)) + list(range(start)):
            if route.venues[i] not in self.venues:
                return None
            venue = self.venues.get(route.venues[i])
            if int(venue.kind) != route.venue_kinds[i]:
                return None
            zero_for_one = bool(route.venue_flags[i] & VenueFlags.ZERO_FOR_ONE)

            reserve0, reserve1 = reserves.get(venue.address, (venue.reserve0, venue.reserve1))
            if zero_for_one:
                reserve_in, reserve_out = reserve0, reserve1
            else:
                reserve_in, reserve_out = reserve1, reserve0
            try:
                out = swap_out(amount, reserve_in, reserve_out, venue.fee_bps)
            except ValueError:
                return None
            if out <= 0:
                return None

            if zero_for_one:
                reserves[venue.address] = (reserve0 + amount, reserve1 - out)
            else:
                reserves[venue.address] = (reserve0 - out, reserve1 + amount)
            amount = out
        return amount

"""
Route execution across heterogeneous venue calling conventions.

Handles:
- Validation of untrusted oracle routes before any effect
- Tagged dispatch of each hop to its venue-kind handler
- The settlement callback contract of callback-settled venues
- All-or-nothing execution with a strictly positive result
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .exceptions import (
    CallbackSourceError,
    RouteValidationError,
    UnprofitableRouteError,
    UnsupportedVenueError,
    ValidationError,
)
from .ledger import Ledger
from .metrics import RouterMetrics
from .types import RouteHop, RouteQuote, VenueFlags, VenueKind
from .utils import get_logger, normalize_address
from .venues import CallbackSettledVenue, DirectQuoteVenue, VenueRegistry

logger = get_logger(__name__)


@dataclass
class _ActiveHop:
    """Marker for the callback-settled hop currently in flight."""

    index: int
    venue: str
    asset_in: str
    amount_in: int
    zero_for_one: bool
    settled: bool = False
    violation: Optional[Exception] = None


class RouteExecutor:
    """
    Executes oracle routes on behalf of the account at ``address``.

    The input amount is taken as a flash advance at the start of the route and
    repaid at the end, so the executing account needs no inventory.
    """

    def __init__(
        self,
        ledger: Ledger,
        venues: VenueRegistry,
        address: str,
        max_hops: int = 8,
        metrics: Optional[RouterMetrics] = None,
    ):
        self.ledger = ledger
        self.venues = venues
        self.address = normalize_address(address, "executor")
        self.max_hops = max_hops
        self.metrics = metrics
        self._active_hop: Optional[_ActiveHop] = None
        self._handlers: Dict[VenueKind, Callable[[RouteHop, int], int]] = {
            VenueKind.DIRECT_QUOTE: self._swap_direct_quote,
            VenueKind.CALLBACK_SETTLED: self._swap_callback_settled,
        }

    # ----- validation -----
    def validate_route(self, route: RouteQuote, input_asset: str) -> List[RouteHop]:
        """
        Check an untrusted route and turn it into hops.

        Raises:
            RouteValidationError: Misaligned arrays, bad indices or inconsistent assets
            UnsupportedVenueError: Unknown venue kind or unregistered venue
        """
        n = len(route.venues)
        if n == 0:
            raise RouteValidationError("Route has no hops")
        if n > self.max_hops:
            raise RouteValidationError(f"Route has {n} hops, limit is {self.max_hops}")
        if len(route.venue_kinds) != n or len(route.venue_flags) != n:
            raise RouteValidationError(
                "Venue, kind and flag arrays differ in length",
                details={
                    "venues": n,
                    "kinds": len(route.venue_kinds),
                    "flags": len(route.venue_flags),
                },
            )
        if len(route.asset_sequence) != n + 1:
            raise RouteValidationError(
                f"Expected {n + 1} assets for {n} hops, got {len(route.asset_sequence)}"
            )
        if not 0 <= route.start_hop_index < n:
            raise RouteValidationError(f"Start hop {route.start_hop_index} out of range")

        try:
            assets = [normalize_address(a, "asset") for a in route.asset_sequence]
        except ValidationError as e:
            raise RouteValidationError(str(e)) from e
        if assets[0] != assets[-1]:
            raise RouteValidationError("Route does not return to its starting asset")
        if assets[route.start_hop_index] != normalize_address(input_asset, "input_asset"):
            raise RouteValidationError(
                f"Route starts from {assets[route.start_hop_index]}, expected {input_asset}"
            )

        hops = []
        for i in range(n):
            try:
                kind = VenueKind(route.venue_kinds[i])
            except ValueError:
                raise UnsupportedVenueError(
                    f"Unsupported venue kind {route.venue_kinds[i]}",
                    hop_index=i,
                    venue=route.venues[i],
                ) from None
            raw_flags = route.venue_flags[i]
            if raw_flags < 0 or raw_flags & ~int(VenueFlags.ZERO_FOR_ONE):
                raise RouteValidationError(
                    f"Unknown venue flags {raw_flags}", hop_index=i, venue=route.venues[i]
                )
            flags = VenueFlags(raw_flags)

            venue = self.venues.get(route.venues[i])
            if venue.kind != kind:
                raise UnsupportedVenueError(
                    f"Venue is {venue.kind.name}, route says {kind.name}",
                    hop_index=i,
                    venue=venue.address,
                )
            if venue.tokens_for(bool(flags & VenueFlags.ZERO_FOR_ONE)) != (assets[i], assets[i + 1]):
                raise RouteValidationError(
                    "Hop assets do not match venue direction", hop_index=i, venue=venue.address
                )

            hops.append(
                RouteHop(
                    index=i,
                    venue=venue.address,
                    kind=kind,
                    flags=flags,
                    asset_in=assets[i],
                    asset_out=assets[i + 1],
                )
            )
        return hops

    # ----- execution -----
    def execute(self, route: RouteQuote, input_amount: int, input_asset: str) -> int:
        """
        Run every hop of ``route`` starting at its start hop.

        Returns:
            Final amount of ``input_asset`` held at the end of the route

        Raises:
            ExecutionError: On any failure; all effects are rolled back
        """
        hops = self.validate_route(route, input_asset)
        input_asset = normalize_address(input_asset, "input_asset")
        start = route.start_hop_index
        order = hops[start:] + hops[:start]

        with self.ledger.atomic():
            self.ledger.advance(input_asset, self.address, input_amount)
            amount = input_amount
            for hop in order:
                amount = self._dispatch(hop, amount)

            if amount - input_amount <= 0:
                raise UnprofitableRouteError(
                    f"Route returned {amount} for {input_amount}",
                    input_amount=input_amount,
                    final_amount=amount,
                )
            self.ledger.repay(input_asset, self.address, input_amount)

        if self.metrics is not None:
            self.metrics.record_route(len(hops))
        logger.debug(f"Route of {len(hops)} hops turned {input_amount} into {amount}")
        return amount

    def _dispatch(self, hop: RouteHop, amount_in: int) -> int:
        handler = self._handlers.get(hop.kind)
        if handler is None:
            raise UnsupportedVenueError(
                f"No handler for venue kind {hop.kind}", hop_index=hop.index, venue=hop.venue
            )
        amount_out = handler(hop, amount_in)
        logger.debug(
            f"Hop {hop.index} via {hop.venue} ({hop.kind.name}): "
            f"{amount_in} {hop.asset_in} -> {amount_out} {hop.asset_out}"
        )
        return amount_out

    def _venue_for(self, hop: RouteHop, venue_type: type) -> Any:
        venue = self.venues.get(hop.venue)
        if not isinstance(venue, venue_type):
            raise UnsupportedVenueError(
                f"{type(venue).__name__} cannot serve a {hop.kind.name} hop",
                hop_index=hop.index,
                venue=hop.venue,
            )
        return venue

    def _swap_direct_quote(self, hop: RouteHop, amount_in: int) -> int:
        venue = self._venue_for(hop, DirectQuoteVenue)
        amount_out = venue.get_amount_out(amount_in, hop.zero_for_one)
        before = self.ledger.balance_of(hop.asset_out, self.address)

        self.ledger.transfer(hop.asset_in, self.address, venue.address, amount_in)
        if hop.zero_for_one:
            venue.swap(self.address, 0, amount_out, self.address)
        else:
            venue.swap(self.address, amount_out, 0, self.address)

        return self.ledger.balance_of(hop.asset_out, self.address) - before

    def _swap_callback_settled(self, hop: RouteHop, amount_in: int) -> int:
        venue = self._venue_for(hop, CallbackSettledVenue)
        before = self.ledger.balance_of(hop.asset_out, self.address)

        active = _ActiveHop(
            index=hop.index,
            venue=venue.address,
            asset_in=hop.asset_in,
            amount_in=amount_in,
            zero_for_one=hop.zero_for_one,
        )
        self._active_hop = active
        try:
            venue.swap(self, self.address, hop.zero_for_one, amount_in, data=hop.index)
        finally:
            self._active_hop = None

        if active.violation is not None:
            raise active.violation
        if not active.settled:
            raise CallbackSourceError(
                "Venue returned without a settlement callback",
                hop_index=hop.index,
                venue=venue.address,
            )
        return self.ledger.balance_of(hop.asset_out, self.address) - before

    # ----- settlement callback -----
    def settlement_callback(
        self, source: str, amount0_delta: int, amount1_delta: int, data: Any = None
    ) -> None:
        """
        Pay a callback-settled venue mid-hop.

        Only the venue of the hop in flight may call, and only once per hop. A
        rejected call also poisons the hop in flight, so the whole route fails
        even if the caller swallows the error.
        """
        active = self._active_hop
        if active is None:
            raise CallbackSourceError("Settlement callback outside of a hop", venue=source)

        error: Optional[Exception] = None
        if not isinstance(source, str) or source.lower() != active.venue.lower():
            error = CallbackSourceError(
                f"Settlement callback from {source}, expected {active.venue}",
                hop_index=active.index,
                venue=source,
            )
        elif active.settled:
            error = CallbackSourceError(
                "Duplicate settlement callback", hop_index=active.index, venue=source
            )
        else:
            owed = amount0_delta if active.zero_for_one else amount1_delta
            if owed <= 0 or owed > active.amount_in:
                error = CallbackSourceError(
                    f"Venue claims {owed}, hop input is {active.amount_in}",
                    hop_index=active.index,
                    venue=source,
                )

        if error is not None:
            if active.violation is None:
                active.violation = error
            logger.warning(f"Rejected settlement callback: {error}")
            raise error

        active.settled = True
        self.ledger.transfer(active.asset_in, self.address, active.venue, owed)

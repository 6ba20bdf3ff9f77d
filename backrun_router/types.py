"""
Core data types for backrun execution and profit distribution.
"""

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

from .constants import DEFAULT_CONFIG_ID, ZERO_ADDRESS

T = TypeVar("T")


class VenueKind(IntEnum):
    """
    Calling convention of a liquidity venue.

    Values:
        DIRECT_QUOTE: Input is transferred in first, output is requested explicitly
        CALLBACK_SETTLED: Output is pushed first, input is pulled via a settlement callback
    """

    DIRECT_QUOTE = 1
    CALLBACK_SETTLED = 2


class VenueFlags(IntFlag):
    """Per-hop flags carried alongside the venue kind."""

    NONE = 0
    ZERO_FOR_ONE = 1


@dataclass(frozen=True)
class BackrunTrigger:
    """
    Description of a trade that just happened and may leave a backrun opportunity.

    Attributes:
        source_venue_id: bytes32 id of the venue whose trade created the opportunity
        input_amount: Amount to route through the backrun (uint112 range)
        input_is_primary: True to start from the venue's token0, False for token1
        beneficiary: Account receiving the dust / primary profit share
        config_id: Revenue config id; the zero id selects the default config
    """

    source_venue_id: str
    input_amount: int
    input_is_primary: bool
    beneficiary: str
    config_id: str = DEFAULT_CONFIG_ID


@dataclass(frozen=True)
class RouteHop:
    """One validated leg of a route."""

    index: int
    venue: str
    kind: VenueKind
    flags: VenueFlags
    asset_in: str
    asset_out: str

    @property
    def zero_for_one(self) -> bool:
        return bool(self.flags & VenueFlags.ZERO_FOR_ONE)


@dataclass(frozen=True)
class RouteQuote:
    """
    Route proposed by the oracle, as parallel arrays.

    ``asset_sequence`` holds the asset before and after each hop, so it must have
    exactly one more entry than there are hops. The quote is untrusted input and is
    validated by the executor before any effect.
    """

    estimated_profit: int
    venues: Tuple[str, ...]
    venue_kinds: Tuple[int, ...]
    venue_flags: Tuple[int, ...]
    asset_sequence: Tuple[str, ...]
    start_hop_index: int = 0

    @classmethod
    def from_hops(
        cls,
        estimated_profit: int,
        hops: Sequence[Tuple[str, int, int]],
        asset_sequence: Sequence[str],
        start_hop_index: int = 0,
    ) -> "RouteQuote":
        """Build a quote from ``(venue, kind, flags)`` triples."""
        return cls(
            estimated_profit=estimated_profit,
            venues=tuple(h[0] for h in hops),
            venue_kinds=tuple(int(h[1]) for h in hops),
            venue_flags=tuple(int(h[2]) for h in hops),
            asset_sequence=tuple(asset_sequence),
            start_hop_index=start_hop_index,
        )

    @property
    def hop_count(self) -> int:
        return len(self.venues)


@dataclass(frozen=True)
class ExecutionOutcome:
    """
    Result of one backrun.

    The zero outcome ``(0, ZERO_ADDRESS)`` covers "no opportunity", guard rejection
    and isolated failure alike.
    """

    realized_profit: int = 0
    profit_asset: str = ZERO_ADDRESS

    @classmethod
    def none(cls) -> "ExecutionOutcome":
        return cls()

    @property
    def is_zero(self) -> bool:
        return self.realized_profit == 0 and self.profit_asset == ZERO_ADDRESS

    def as_tuple(self) -> Tuple[int, str]:
        return self.realized_profit, self.profit_asset


@dataclass(frozen=True)
class PassThroughCall:
    """Arbitrary invocation executed before the triggers of a batch."""

    target: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    label: str = ""


@dataclass(frozen=True)
class BatchOutcome:
    """Result of a batch entry: the pass-through result plus one outcome per trigger."""

    success: bool
    return_data: Any
    outcomes: List[ExecutionOutcome]

    @property
    def profits(self) -> List[int]:
        return [o.realized_profit for o in self.outcomes]

    @property
    def profit_assets(self) -> List[str]:
        return [o.profit_asset for o in self.outcomes]


@dataclass(frozen=True)
class CallResult(Generic[T]):
    """Explicit success/failure result of an internal call."""

    success: bool
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls, value: T) -> "CallResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def failed(cls, error: BaseException) -> "CallResult[T]":
        return cls(success=False, error=error)


# Emitted records


@dataclass(frozen=True)
class BackrunExecuted:
    trigger_venue_id: str
    input_amount: int
    input_is_primary: bool
    profit: int
    profit_asset: str
    beneficiary: str


@dataclass(frozen=True)
class BackrunSkipped:
    trigger_venue_id: str
    input_amount: int
    input_is_primary: bool
    beneficiary: str


@dataclass(frozen=True)
class SplitExecuted:
    """Record of one revenue split, in transfer order."""

    config_id: str
    asset: str
    total_amount: int
    recipients: Tuple[str, ...]
    amounts: Tuple[int, ...]
    dust_recipient: str
    dust_amount: int

    @property
    def distributed(self) -> int:
        """Amount actually transferred out."""
        paid = sum(self.amounts)
        if self.dust_recipient != ZERO_ADDRESS:
            paid += self.dust_amount
        return paid


@dataclass(frozen=True)
class RevenueConfigUpdated:
    config_id: str
    recipients: Tuple[str, ...]
    shares_bps: Tuple[int, ...]
    dust_share_bps: int


@dataclass(frozen=True)
class OracleUpdated:
    previous: Optional[str]
    current: str


@dataclass(frozen=True)
class Withdrawal:
    asset: str
    amount: int
    recipient: str

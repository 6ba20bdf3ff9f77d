"""
Shared state and math for two-asset constant-product venues.

Swap math follows the Uniswap V2 x*y=k formula with the fee taken on the
input, in integer arithmetic so results match on-chain rounding.
"""

from typing import Tuple

from ..constants import BPS_DENOMINATOR, DEFAULT_VENUE_FEE_BPS
from ..exceptions import VenueError
from ..ledger import Ledger
from ..types import VenueKind
from ..utils import normalize_address, pool_id_for


def swap_out(amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """
    Calculate output amount for a constant-product swap.

    Formula (with fee embedded):
        amountInWithFee = amountIn * (10000 - fee_bps)
        amountOut = amountInWithFee * reserveOut / (reserveIn * 10000 + amountInWithFee)

    Raises:
        ValueError: If inputs are invalid (negative amount, empty reserves, bad fee)
    """
    if amount_in < 0:
        raise ValueError(f"amount_in must be non-negative: {amount_in}")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError(f"Reserves must be positive: in={reserve_in}, out={reserve_out}")
    if fee_bps < 0 or fee_bps >= BPS_DENOMINATOR:
        raise ValueError(f"Fee must be in [0, {BPS_DENOMINATOR}) bps: {fee_bps}")

    amount_in_with_fee = amount_in * (BPS_DENOMINATOR - fee_bps)
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * BPS_DENOMINATOR + amount_in_with_fee
    return numerator // denominator


class PairVenue:
    """
    Two-asset pool holding its assets in the ledger under its own address.

    Reserves are kept in ledger storage so a rolled-back unit of work restores
    them together with the balances.

    Attributes:
        address: Venue account
        token0: Primary asset
        token1: Secondary asset
        fee_bps: Fee charged on input
    """

    kind: VenueKind

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        token0: str,
        token1: str,
        fee_bps: int = DEFAULT_VENUE_FEE_BPS,
    ):
        self.ledger = ledger
        self.address = normalize_address(address, "venue")
        self.token0 = normalize_address(token0, "token0")
        self.token1 = normalize_address(token1, "token1")
        if self.token0 == self.token1:
            raise ValueError("Venue assets must differ")
        self.fee_bps = fee_bps

    @property
    def reserve0(self) -> int:
        return self.ledger.load(self.address, "reserve0", 0)

    @property
    def reserve1(self) -> int:
        return self.ledger.load(self.address, "reserve1", 0)

    @property
    def pool_id(self) -> str:
        return pool_id_for(self.address)

    def sync(self) -> None:
        """Set reserves to the venue's current ledger balances."""
        self.ledger.store(self.address, "reserve0", self.ledger.balance_of(self.token0, self.address))
        self.ledger.store(self.address, "reserve1", self.ledger.balance_of(self.token1, self.address))

    def add_liquidity(self, provider: str, amount0: int, amount1: int) -> None:
        self.ledger.transfer(self.token0, provider, self.address, amount0)
        self.ledger.transfer(self.token1, provider, self.address, amount1)
        self.sync()

    def tokens_for(self, zero_for_one: bool) -> Tuple[str, str]:
        """(asset_in, asset_out) for a swap direction."""
        return (self.token0, self.token1) if zero_for_one else (self.token1, self.token0)

    def reserves_for(self, zero_for_one: bool) -> Tuple[int, int]:
        return (self.reserve0, self.reserve1) if zero_for_one else (self.reserve1, self.reserve0)

    def get_amount_out(self, amount_in: int, zero_for_one: bool) -> int:
        """Quote a swap against current reserves without changing state."""
        reserve_in, reserve_out = self.reserves_for(zero_for_one)
        try:
            return swap_out(amount_in, reserve_in, reserve_out, self.fee_bps)
        except ValueError as e:
            raise VenueError(str(e), venue=self.address) from e

    def trade(self, trader: str, amount_in: int, zero_for_one: bool) -> int:
        """Plain user swap (the kind of trade that creates a backrun opportunity)."""
        amount_out = self.get_amount_out(amount_in, zero_for_one)
        asset_in, asset_out = self.tokens_for(zero_for_one)
        self.ledger.transfer(asset_in, trader, self.address, amount_in)
        self.ledger.transfer(asset_out, self.address, trader, amount_out)
        self.sync()
        return amount_out

    def spot_price(self) -> float:
        """token1 per token0, for logging only."""
        if self.reserve0 == 0:
            return 0.0
        return self.reserve1 / self.reserve0

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(address={self.address}, "
            f"reserves=({self.reserve0}, {self.reserve1}), fee_bps={self.fee_bps})"
        )

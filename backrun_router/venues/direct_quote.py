"""
Direct-quote venue: the caller quotes the output, transfers the input in,
then asks the venue to push the quoted output.
"""

from ..constants import BPS_DENOMINATOR
from ..exceptions import VenueError
from ..types import VenueKind
from ..utils import get_logger
from .base import PairVenue

logger = get_logger(__name__)


class DirectQuoteVenue(PairVenue):
    """Uniswap V2 style pair."""

    kind = VenueKind.DIRECT_QUOTE

    def swap(self, caller: str, amount0_out: int, amount1_out: int, recipient: str) -> None:
        """
        Push the requested outputs, then check the fee-adjusted invariant.

        Input must already have been transferred to the venue.

        Raises:
            VenueError: If no output is requested, liquidity is short or K decreases
        """
        if amount0_out <= 0 and amount1_out <= 0:
            raise VenueError("Insufficient output amount", venue=self.address)
        if amount0_out >= self.reserve0 or amount1_out >= self.reserve1:
            raise VenueError("Insufficient liquidity", venue=self.address)

        if amount0_out > 0:
            self.ledger.transfer(self.token0, self.address, recipient, amount0_out)
        if amount1_out > 0:
            self.ledger.transfer(self.token1, self.address, recipient, amount1_out)

        balance0 = self.ledger.balance_of(self.token0, self.address)
        balance1 = self.ledger.balance_of(self.token1, self.address)
        amount0_in = max(balance0 - (self.reserve0 - amount0_out), 0)
        amount1_in = max(balance1 - (self.reserve1 - amount1_out), 0)
        if amount0_in == 0 and amount1_in == 0:
            raise VenueError("Insufficient input amount", venue=self.address)

        adjusted0 = balance0 * BPS_DENOMINATOR - amount0_in * self.fee_bps
        adjusted1 = balance1 * BPS_DENOMINATOR - amount1_in * self.fee_bps
        if adjusted0 * adjusted1 < self.reserve0 * self.reserve1 * BPS_DENOMINATOR**2:
            raise VenueError("Constant-product invariant violated", venue=self.address)

        self.sync()
        logger.debug(
            f"{self.address} swap by {caller}: in=({amount0_in}, {amount1_in}) "
            f"out=({amount0_out}, {amount1_out})"
        )

"""
Callback-settled venue: output is pushed first, and the venue then calls
back into the swapper to collect the input it is owed before the swap
returns (Uniswap V3 style settlement).
"""

from typing import Any, Optional, Protocol, Tuple, runtime_checkable

from ..exceptions import VenueError
from ..types import VenueKind
from ..utils import get_logger
from .base import PairVenue

logger = get_logger(__name__)


@runtime_checkable
class SettlementCallback(Protocol):
    """Implemented by anything that swaps against a callback-settled venue."""

    address: str

    def settlement_callback(
        self, source: str, amount0_delta: int, amount1_delta: int, data: Any = None
    ) -> None:
        """
        Pay the venue what it is owed.

        Positive deltas are owed to the venue, negative deltas were paid out by it.
        """
        ...


class CallbackSettledVenue(PairVenue):
    """Pool that settles input through a callback on the swapper."""

    kind = VenueKind.CALLBACK_SETTLED

    def swap(
        self,
        callback: SettlementCallback,
        recipient: str,
        zero_for_one: bool,
        amount_in: int,
        data: Optional[Any] = None,
    ) -> Tuple[int, int]:
        """
        Swap an exact input amount.

        Returns:
            (amount0_delta, amount1_delta) from the venue's point of view

        Raises:
            VenueError: If the callback does not pay the owed input
        """
        if amount_in <= 0:
            raise VenueError("amount_in must be positive", venue=self.address)

        amount_out = self.get_amount_out(amount_in, zero_for_one)
        if amount_out <= 0:
            raise VenueError("Swap produces no output", venue=self.address)
        asset_in, asset_out = self.tokens_for(zero_for_one)

        self.ledger.transfer(asset_out, self.address, recipient, amount_out)

        if zero_for_one:
            deltas = (amount_in, -amount_out)
        else:
            deltas = (-amount_out, amount_in)

        balance_before = self.ledger.balance_of(asset_in, self.address)
        callback.settlement_callback(self.address, deltas[0], deltas[1], data)
        if self.ledger.balance_of(asset_in, self.address) < balance_before + amount_in:
            raise VenueError(
                "Settlement callback did not pay the owed input",
                venue=self.address,
                details={"owed": amount_in, "asset": asset_in},
            )

        self.sync()
        logger.debug(f"{self.address} settled swap: deltas={deltas}")
        return deltas

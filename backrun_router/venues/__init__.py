"""
Reference venue implementations for the two supported calling conventions.
"""

from .base import PairVenue, swap_out
from .callback_settled import CallbackSettledVenue, SettlementCallback
from .direct_quote import DirectQuoteVenue
from .registry import VenueRegistry

__all__ = [
    "CallbackSettledVenue",
    "DirectQuoteVenue",
    "PairVenue",
    "SettlementCallback",
    "VenueRegistry",
    "swap_out",
]

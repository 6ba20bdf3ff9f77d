"""
Lookup of venue objects by address and by bytes32 venue id.
"""

from typing import Dict, Iterator, Optional

from ..exceptions import UnsupportedVenueError
from ..utils import is_valid_address, normalize_address, normalize_bytes32
from .base import PairVenue


class VenueRegistry:
    """Known venues of one simulated chain."""

    def __init__(self):
        self._by_address: Dict[str, PairVenue] = {}
        self._by_id: Dict[str, PairVenue] = {}

    def register(self, venue: PairVenue) -> PairVenue:
        self._by_address[venue.address] = venue
        self._by_id[venue.pool_id] = venue
        return venue

    def get(self, address: str) -> PairVenue:
        """
        Resolve a venue address.

        Raises:
            UnsupportedVenueError: If nothing is registered at the address
        """
        venue = self._by_address.get(normalize_address(address, "venue"))
        if venue is None:
            raise UnsupportedVenueError(f"Unknown venue {address}", venue=address)
        return venue

    def find_by_id(self, venue_id: str) -> Optional[PairVenue]:
        return self._by_id.get(normalize_bytes32(venue_id, "venue_id"))

    def __contains__(self, address: object) -> bool:
        if not is_valid_address(address):
            return False
        return normalize_address(address) in self._by_address

    def __iter__(self) -> Iterator[PairVenue]:
        return iter(self._by_address.values())

    def __len__(self) -> int:
        return len(self._by_address)

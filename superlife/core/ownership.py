"""Ownership resolution for newly born cells."""

from collections import Counter
from typing import Dict, Optional, Sequence


def tally_owners(neighbor_owners: Sequence[int]) -> Dict[int, int]:
    """Count how many living neighbors each player owns."""
    return dict(Counter(neighbor_owners))


def resolve_owner(neighbor_owners: Sequence[int]) -> Optional[int]:
    """Pick the owner of a newborn cell by neighbor majority.

    Args:
        neighbor_owners: Owner of each living, owned neighbor (duplicates allowed)

    Returns:
        Player with the most neighbors, None if there are no owned neighbors.
        Ties go to the lower player id.
    """
    if not neighbor_owners:
        return None

    tally = tally_owners(neighbor_owners)
    return min(tally, key=lambda player: (-tally[player], player))

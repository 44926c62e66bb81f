"""Cell state, superpower kinds and memory flags.

A cell is the atomic unit of the SuperLife board. Besides the classic
alive/dead state it carries an owning player, an optional superpower that
overrides the standard rule evaluation, and a small bitset of memory flags
recording notable events in the cell's life.
"""

from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import Optional, Tuple


PLAYERS: Tuple[int, int] = (0, 1)


class SuperpowerKind(IntEnum):
    """The seven fixed superpower variants (0 means a normal cell)."""
    NONE = 0
    TANK = 1        # Extra durability, harder to kill
    SPREADER = 2    # Enhanced reproduction
    SURVIVOR = 3    # Survives isolation and overcrowding
    GHOST = 4       # Randomly phases in and out
    REPLICATOR = 5  # Fast multiplication
    DESTROYER = 6   # Very robust, marks itself battle scarred
    HYBRID = 7      # Tank + Survivor survival, Spreader birth


SUPERPOWER_KINDS: Tuple[int, ...] = tuple(int(kind) for kind in SuperpowerKind if kind)


class MemoryFlag(IntFlag):
    """Persistent historical flags attached to a living cell."""
    NONE = 0
    HAS_SURVIVED_DEATH = 1 << 0
    HAS_CAUSED_BIRTH = 1 << 1
    IS_VETERAN = 1 << 2
    HAS_SPREAD = 1 << 3
    BATTLE_SCARRED = 1 << 4


MEMORY_MASK = 0b11111


def set_memory_flag(memory: int, flag: int) -> int:
    """Return ``memory`` with ``flag`` bits set."""
    return int(memory) | int(flag)


def has_memory_flag(memory: int, flag: int) -> bool:
    """Check whether any bit of ``flag`` is set in ``memory``."""
    return (int(memory) & int(flag)) != 0


@dataclass(frozen=True)
class Cell:
    """Immutable view of a single board position.

    Attributes:
        owner: Owning player (0 or 1), None when unclaimed
        alive: Whether the cell currently holds a living token
        superpower: SuperpowerKind value, 0 for a normal cell
        memory: MemoryFlag bitset, always 0 for dead cells after a step
    """
    owner: Optional[int] = None
    alive: bool = False
    superpower: int = 0
    memory: int = 0

    def __post_init__(self):
        if self.owner is not None and self.owner not in PLAYERS:
            raise ValueError(f"owner must be None or one of {PLAYERS}, got {self.owner}")
        if not 0 <= self.superpower <= max(SUPERPOWER_KINDS):
            raise ValueError(f"superpower must be between 0 and {max(SUPERPOWER_KINDS)}")
        if self.memory & ~MEMORY_MASK:
            raise ValueError(f"memory has undefined bits set: {self.memory:#b}")

    @classmethod
    def token(cls, player: int, superpower: int = 0) -> 'Cell':
        """Freshly placed living token for ``player``."""
        return cls(owner=player, alive=True, superpower=superpower, memory=0)

    @property
    def kind(self) -> SuperpowerKind:
        return SuperpowerKind(self.superpower)

    @property
    def is_clean(self) -> bool:
        """True when the cell carries no owner, superpower or memory."""
        return self.owner is None and self.superpower == 0 and self.memory == 0

    def has_memory(self, flag: int) -> bool:
        return has_memory_flag(self.memory, flag)


EMPTY_CELL = Cell()

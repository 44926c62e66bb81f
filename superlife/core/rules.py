"""
Birth/Survival Rules and Superpower Overrides

Baseline Life-like rules (configurable birth and survival sets) plus the
seven superpower variants that replace the baseline evaluation for the
cell that carries them. Random branches draw from an injected source so
that matches can be replayed from a seed.
"""

from typing import Callable, Dict, FrozenSet, Iterable, NamedTuple, Optional, Protocol, Tuple
import re

from .cell import Cell, MemoryFlag, SuperpowerKind, set_memory_flag
from ..errors import ConfigurationError


# Standard Conway rules
SURVIVAL_SET: FrozenSet[int] = frozenset({2, 3})  # Live cells survive with 2-3 neighbors
BIRTH_SET: FrozenSet[int] = frozenset({3})        # Dead cells born with exactly 3 neighbors

NEIGHBOR_COUNTS: FrozenSet[int] = frozenset(range(9))

GHOST_FADE_CHANCE = 0.05
GHOST_PHASE_IN_CHANCE = 0.10
REPLICATOR_BIRTH_CHANCE = 0.30

_NOTATION = re.compile(r'^\s*B([0-8]*)\s*/\s*S([0-8]*)\s*$', re.IGNORECASE)
_NOTATION_SB = re.compile(r'^\s*S([0-8]*)\s*/\s*B([0-8]*)\s*$', re.IGNORECASE)


class RandomSource(Protocol):
    """Anything with a ``random()`` returning a float in [0, 1)."""

    def random(self) -> float:
        ...


class RuleOutcome(NamedTuple):
    should_live: bool
    new_memory: int


class RuleParams:
    """Birth and survival neighbor-count sets.

    Defaults to standard Conway rules (B3/S23).
    """

    def __init__(self,
                 survival_set: Optional[Iterable[int]] = None,
                 birth_set: Optional[Iterable[int]] = None):
        """Initialize rule parameters.

        Args:
            survival_set: Neighbor counts for live cell survival (default {2,3})
            birth_set: Neighbor counts for dead cell birth (default {3})

        Raises:
            ConfigurationError: If a count lies outside 0-8
        """
        self.survival_set: FrozenSet[int] = frozenset(survival_set) if survival_set is not None else SURVIVAL_SET
        self.birth_set: FrozenSet[int] = frozenset(birth_set) if birth_set is not None else BIRTH_SET

        for name, rules in (("survival", self.survival_set), ("birth", self.birth_set)):
            invalid = sorted(n for n in rules if n not in NEIGHBOR_COUNTS)
            if invalid:
                raise ConfigurationError(f"{name} rules contain counts outside 0-8: {invalid}")

    @classmethod
    def standard(cls) -> 'RuleParams':
        """Create standard Conway rules."""
        return cls(SURVIVAL_SET, BIRTH_SET)

    @classmethod
    def from_notation(cls, notation: str) -> 'RuleParams':
        """Parse Life rule notation such as ``B3/S23`` or ``S23/B3``.

        Raises:
            ConfigurationError: If the notation can't be parsed
        """
        match = _NOTATION.match(notation)
        if match:
            birth, survival = match.groups()
        else:
            match = _NOTATION_SB.match(notation)
            if not match:
                raise ConfigurationError(f"Unrecognised rule notation: {notation!r}")
            survival, birth = match.groups()
        return cls({int(n) for n in survival}, {int(n) for n in birth})

    @property
    def notation(self) -> str:
        birth = ''.join(str(n) for n in sorted(self.birth_set))
        survival = ''.join(str(n) for n in sorted(self.survival_set))
        return f"B{birth}/S{survival}"

    def update_cell(self, alive: bool, live_neighbors: int) -> bool:
        """Apply baseline rules to a cell with no superpower."""
        if alive:
            return live_neighbors in self.survival_set
        return live_neighbors in self.birth_set

    def rule_table(self) -> Dict[Tuple[bool, int], bool]:
        """Baseline outcome for every (alive, neighbor_count) pair (18 entries)."""
        return {(alive, n): self.update_cell(alive, n)
                for alive in (False, True) for n in range(9)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RuleParams):
            return NotImplemented
        return self.survival_set == other.survival_set and self.birth_set == other.birth_set

    def __hash__(self) -> int:
        return hash((self.survival_set, self.birth_set))

    def __repr__(self) -> str:
        return f"RuleParams({self.notation})"


def _standard(alive: bool, n: int, birth: FrozenSet[int], survival: FrozenSet[int]) -> bool:
    return n in survival if alive else n in birth


def _tank(cell: Cell, n: int, birth, survival, rng: RandomSource) -> RuleOutcome:
    memory = cell.memory
    if not cell.alive:
        return RuleOutcome(n in birth, memory)
    should_live = n in survival or n >= 1
    if should_live and n not in survival:
        memory = set_memory_flag(memory, MemoryFlag.HAS_SURVIVED_DEATH)
    return RuleOutcome(should_live, memory)


def _spreader(cell: Cell, n: int, birth, survival, rng: RandomSource) -> RuleOutcome:
    memory = cell.memory
    if cell.alive:
        return RuleOutcome(n in survival, memory)
    should_live = n in birth or n >= 2
    if should_live and n not in birth:
        memory = set_memory_flag(memory, MemoryFlag.HAS_SPREAD)
    return RuleOutcome(should_live, memory)


def _survivor(cell: Cell, n: int, birth, survival, rng: RandomSource) -> RuleOutcome:
    memory = cell.memory
    if not cell.alive:
        return RuleOutcome(n in birth, memory)
    should_live = n in survival or n <= 1 or n >= 6
    if should_live and n not in survival:
        memory = set_memory_flag(memory, MemoryFlag.IS_VETERAN)
    return RuleOutcome(should_live, memory)


def _ghost(cell: Cell, n: int, birth, survival, rng: RandomSource) -> RuleOutcome:
    if cell.alive:
        should_live = n in survival
        # Phases out
        if should_live and rng.random() < GHOST_FADE_CHANCE:
            should_live = False
    else:
        should_live = n in birth
        # Phases in
        if not should_live and n > 0 and rng.random() < GHOST_PHASE_IN_CHANCE:
            should_live = True
    return RuleOutcome(should_live, cell.memory)


def _replicator(cell: Cell, n: int, birth, survival, rng: RandomSource) -> RuleOutcome:
    if cell.alive:
        return RuleOutcome(n in survival, cell.memory)
    should_live = n in birth or (n >= 2 and rng.random() < REPLICATOR_BIRTH_CHANCE)
    return RuleOutcome(should_live, cell.memory)


def _destroyer(cell: Cell, n: int, birth, survival, rng: RandomSource) -> RuleOutcome:
    if not cell.alive:
        return RuleOutcome(n in birth, cell.memory)
    should_live = n in survival or n >= 1
    return RuleOutcome(should_live, set_memory_flag(cell.memory, MemoryFlag.BATTLE_SCARRED))


def _hybrid(cell: Cell, n: int, birth, survival, rng: RandomSource) -> RuleOutcome:
    memory = cell.memory
    if cell.alive:
        # Tank + Survivor: any neighbor count survives
        should_live = n in survival or n >= 1 or n <= 1
        if should_live and n not in survival:
            memory = set_memory_flag(memory, MemoryFlag.IS_VETERAN | MemoryFlag.HAS_SURVIVED_DEATH)
    else:
        should_live = n in birth or n >= 2
        if should_live and n not in birth:
            memory = set_memory_flag(memory, MemoryFlag.HAS_SPREAD)
    return RuleOutcome(should_live, memory)


SuperpowerRule = Callable[[Cell, int, FrozenSet[int], FrozenSet[int], RandomSource], RuleOutcome]

SUPERPOWER_RULES: Dict[SuperpowerKind, SuperpowerRule] = {
    SuperpowerKind.TANK: _tank,
    SuperpowerKind.SPREADER: _spreader,
    SuperpowerKind.SURVIVOR: _survivor,
    SuperpowerKind.GHOST: _ghost,
    SuperpowerKind.REPLICATOR: _replicator,
    SuperpowerKind.DESTROYER: _destroyer,
    SuperpowerKind.HYBRID: _hybrid,
}


def evaluate(cell: Cell, live_neighbors: int,
             birth_rules: Iterable[int], survival_rules: Iterable[int],
             rng: RandomSource) -> RuleOutcome:
    """Decide whether a cell lives next generation.

    Cells without a superpower follow the baseline birth/survival sets;
    cells with one use the matching override from SUPERPOWER_RULES.

    Args:
        cell: Current cell state
        live_neighbors: Number of live neighbors (0-8)
        birth_rules: Neighbor counts that birth a dead cell
        survival_rules: Neighbor counts that keep a live cell alive
        rng: Random source for Ghost/Replicator draws

    Returns:
        RuleOutcome with the next alive state and updated memory bits
    """
    birth = birth_rules if isinstance(birth_rules, frozenset) else frozenset(birth_rules)
    survival = survival_rules if isinstance(survival_rules, frozenset) else frozenset(survival_rules)

    if cell.superpower == SuperpowerKind.NONE:
        return RuleOutcome(_standard(cell.alive, live_neighbors, birth, survival), cell.memory)

    override = SUPERPOWER_RULES[SuperpowerKind(cell.superpower)]
    return override(cell, live_neighbors, birth, survival, rng)


def assign_superpower(enabled_superpowers: Iterable[int], superpower_percentage: float,
                      rng: RandomSource) -> int:
    """Roll an optional superpower for a new token or newborn cell.

    Args:
        enabled_superpowers: Kinds allowed in this session
        superpower_percentage: Chance (0-100) that any superpower is granted
        rng: Random source

    Returns:
        A kind picked uniformly among the enabled ones, or 0 for a normal cell
    """
    kinds = sorted(enabled_superpowers)
    if not kinds:
        return 0
    if rng.random() >= superpower_percentage / 100:
        return 0
    index = min(int(rng.random() * len(kinds)), len(kinds) - 1)
    return int(kinds[index])

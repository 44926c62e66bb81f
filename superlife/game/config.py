"""Per-session game configuration.

GameConfig is created once when a session starts and never mutated;
"play again with different settings" builds a new one via ``replace``.
All validation happens here, before any token can be placed.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from ..core.cell import SUPERPOWER_KINDS
from ..core.engine import DEFAULT_MAX_GENERATIONS
from ..core.rules import BIRTH_SET, NEIGHBOR_COUNTS, SURVIVAL_SET, RuleParams
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

MIN_BOARD_SIZE = 10
MAX_BOARD_SIZE = 64
MIN_TOKENS = 1


class GameMode(Enum):
    """Two-player match or single-player training."""
    TWO_PLAYER = "2player"
    TRAINING = "training"


ALL_SUPERPOWERS: FrozenSet[int] = frozenset(SUPERPOWER_KINDS)

SUPERPOWER_PRESETS: Dict[str, FrozenSet[int]] = {
    "standard": ALL_SUPERPOWERS,
    "classic": frozenset(),
    "defensive": frozenset({1, 3}),
    "aggressive": frozenset({2, 5, 6}),
    "none": frozenset(),
    "all": ALL_SUPERPOWERS,
}


@dataclass(frozen=True)
class GameConfig:
    """Immutable settings for one game session.

    Defaults match the standard preset: 20x20 board, 20 tokens each,
    B3/S23, all seven superpowers at 20%.
    """
    board_size: int = 20
    tokens_per_player: int = 20
    birth_rules: FrozenSet[int] = BIRTH_SET
    survival_rules: FrozenSet[int] = SURVIVAL_SET
    enabled_superpowers: FrozenSet[int] = ALL_SUPERPOWERS
    superpower_percentage: float = 20
    max_generations: int = DEFAULT_MAX_GENERATIONS
    mode: GameMode = GameMode.TWO_PLAYER
    seed: Optional[int] = None

    def __post_init__(self):
        # Normalise collections so configs compare and hash by value
        object.__setattr__(self, 'birth_rules', frozenset(self.birth_rules))
        object.__setattr__(self, 'survival_rules', frozenset(self.survival_rules))
        object.__setattr__(self, 'enabled_superpowers', frozenset(self.enabled_superpowers))
        if not isinstance(self.mode, GameMode):
            try:
                object.__setattr__(self, 'mode', GameMode(self.mode))
            except ValueError:
                raise ConfigurationError(f"Unknown game mode: {self.mode!r}")
        self._validate()

    def _validate(self) -> None:
        if not MIN_BOARD_SIZE <= self.board_size <= MAX_BOARD_SIZE:
            raise ConfigurationError(
                f"board_size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}, got {self.board_size}")

        if self.tokens_per_player < MIN_TOKENS:
            raise ConfigurationError(f"tokens_per_player must be at least {MIN_TOKENS}")

        if self.tokens_per_player * self.player_count > self.board_size ** 2:
            raise ConfigurationError(
                f"{self.player_count} x {self.tokens_per_player} tokens don't fit a "
                f"{self.board_size}x{self.board_size} board")

        if not self.birth_rules:
            raise ConfigurationError("birth_rules must not be empty")
        if not self.survival_rules:
            raise ConfigurationError("survival_rules must not be empty")

        for name, rules in (("birth_rules", self.birth_rules), ("survival_rules", self.survival_rules)):
            invalid = sorted(n for n in rules if n not in NEIGHBOR_COUNTS)
            if invalid:
                raise ConfigurationError(f"{name} contain counts outside 0-8: {invalid}")

        unknown = sorted(k for k in self.enabled_superpowers if k not in ALL_SUPERPOWERS)
        if unknown:
            raise ConfigurationError(f"Unknown superpower kinds: {unknown}")

        if not 0 <= self.superpower_percentage <= 100:
            raise ConfigurationError("superpower_percentage must be between 0 and 100")

        if self.max_generations < 1:
            raise ConfigurationError("max_generations must be at least 1")

    @property
    def player_count(self) -> int:
        return 1 if self.mode is GameMode.TRAINING else 2

    @property
    def rule_params(self) -> RuleParams:
        return RuleParams(self.survival_rules, self.birth_rules)

    @property
    def rule_notation(self) -> str:
        return self.rule_params.notation

    def starting_tokens(self) -> Tuple[int, int]:
        """Token quota per player; player 1 gets none in training mode."""
        if self.mode is GameMode.TRAINING:
            return (self.tokens_per_player, 0)
        return (self.tokens_per_player, self.tokens_per_player)

    def replace(self, **changes: Any) -> 'GameConfig':
        """Copy of this config with ``changes`` applied (validated again)."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def preset(cls, name: str, **overrides: Any) -> 'GameConfig':
        """Config using one of the named superpower presets.

        Raises:
            ConfigurationError: If the preset name is unknown
        """
        if name not in SUPERPOWER_PRESETS:
            raise ConfigurationError(f"Unknown preset {name!r}; choose from {sorted(SUPERPOWER_PRESETS)}")
        return cls(enabled_superpowers=SUPERPOWER_PRESETS[name], **overrides)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'GameConfig':
        """Create config from SUPERLIFE_* environment variables.

        Unset variables keep their defaults. SUPERLIFE_RULES takes Life
        notation (e.g. ``B36/S23``); SUPERLIFE_SUPERPOWERS is a comma list
        of kinds or a preset name.
        """
        env = os.environ if environ is None else environ
        kwargs: Dict[str, Any] = {}

        def _int(name: str) -> Optional[int]:
            raw = env.get(name)
            if raw is None or raw.strip() == '':
                return None
            try:
                return int(raw)
            except ValueError:
                raise ConfigurationError(f"{name} must be an integer, got {raw!r}")

        for var, field_name in (("SUPERLIFE_BOARD_SIZE", "board_size"),
                                ("SUPERLIFE_TOKENS", "tokens_per_player"),
                                ("SUPERLIFE_MAX_GENERATIONS", "max_generations"),
                                ("SUPERLIFE_SEED", "seed")):
            value = _int(var)
            if value is not None:
                kwargs[field_name] = value

        rules = env.get("SUPERLIFE_RULES")
        if rules:
            params = RuleParams.from_notation(rules)
            kwargs["birth_rules"] = params.birth_set
            kwargs["survival_rules"] = params.survival_set

        powers = env.get("SUPERLIFE_SUPERPOWERS")
        if powers is not None:
            kwargs["enabled_superpowers"] = _parse_superpowers(powers)

        percentage = env.get("SUPERLIFE_SUPERPOWER_PCT")
        if percentage:
            try:
                kwargs["superpower_percentage"] = float(percentage)
            except ValueError:
                raise ConfigurationError(f"SUPERLIFE_SUPERPOWER_PCT must be a number, got {percentage!r}")

        mode = env.get("SUPERLIFE_MODE")
        if mode:
            kwargs["mode"] = mode

        config = cls(**kwargs)
        logger.debug(f"Loaded config from environment: {config}")
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Settings in the persisted record layout."""
        return {
            'boardSize': self.board_size,
            'tokensPerPlayer': self.tokens_per_player,
            'birthRules': sorted(self.birth_rules),
            'survivalRules': sorted(self.survival_rules),
            'enabledSuperpowers': sorted(self.enabled_superpowers),
            'superpowerPercentage': self.superpower_percentage,
            'maxGenerations': self.max_generations,
            'mode': self.mode.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], seed: Optional[int] = None) -> 'GameConfig':
        return cls(board_size=data['boardSize'],
                   tokens_per_player=data['tokensPerPlayer'],
                   birth_rules=data['birthRules'],
                   survival_rules=data['survivalRules'],
                   enabled_superpowers=data['enabledSuperpowers'],
                   superpower_percentage=data['superpowerPercentage'],
                   max_generations=data.get('maxGenerations', DEFAULT_MAX_GENERATIONS),
                   mode=data.get('mode', GameMode.TWO_PLAYER.value),
                   seed=seed)


def _parse_superpowers(value: str) -> FrozenSet[int]:
    value = value.strip()
    if value.lower() in SUPERPOWER_PRESETS:
        return SUPERPOWER_PRESETS[value.lower()]
    if not value:
        return frozenset()
    try:
        return frozenset(int(part) for part in value.split(',') if part.strip())
    except ValueError:
        raise ConfigurationError(f"SUPERLIFE_SUPERPOWERS must be a preset or comma list, got {value!r}")

"""Tests for game configuration validation and loading."""

import pytest

from superlife.errors import ConfigurationError
from superlife.game.config import (
    ALL_SUPERPOWERS, SUPERPOWER_PRESETS, GameConfig, GameMode
)


class TestDefaults:
    """Default configuration matches the standard preset."""

    def test_defaults(self):
        config = GameConfig()
        assert config.board_size == 20
        assert config.tokens_per_player == 20
        assert config.rule_notation == "B3/S23"
        assert config.enabled_superpowers == ALL_SUPERPOWERS == frozenset(range(1, 8))
        assert config.superpower_percentage == 20
        assert config.max_generations == 100
        assert config.mode is GameMode.TWO_PLAYER
        assert config.seed is None

    def test_collections_normalised(self):
        config = GameConfig(birth_rules=[3, 6], enabled_superpowers=(1, 2))
        assert config.birth_rules == frozenset({3, 6})
        assert isinstance(config.enabled_superpowers, frozenset)
        assert hash(config) == hash(GameConfig(birth_rules={6, 3}, enabled_superpowers=[2, 1]))

    def test_mode_string_coerced(self):
        assert GameConfig(mode="training").mode is GameMode.TRAINING

    def test_starting_tokens(self):
        assert GameConfig(tokens_per_player=5).starting_tokens() == (5, 5)
        assert GameConfig(tokens_per_player=5, mode=GameMode.TRAINING).starting_tokens() == (5, 0)


class TestValidation:
    """Invalid settings are rejected before the game starts."""

    @pytest.mark.parametrize("kwargs,message", [
        ({'board_size': 9}, "board_size"),
        ({'board_size': 65}, "board_size"),
        ({'tokens_per_player': 0}, "tokens_per_player"),
        ({'board_size': 10, 'tokens_per_player': 51}, "don't fit"),
        ({'birth_rules': []}, "birth_rules must not be empty"),
        ({'survival_rules': set()}, "survival_rules must not be empty"),
        ({'birth_rules': {3, 9}}, "outside 0-8"),
        ({'survival_rules': {-1}}, "outside 0-8"),
        ({'enabled_superpowers': {0}}, "Unknown superpower"),
        ({'enabled_superpowers': {8}}, "Unknown superpower"),
        ({'superpower_percentage': 101}, "between 0 and 100"),
        ({'superpower_percentage': -5}, "between 0 and 100"),
        ({'max_generations': 0}, "max_generations"),
        ({'mode': "solo"}, "Unknown game mode"),
    ])
    def test_invalid_settings(self, kwargs, message):
        with pytest.raises(ConfigurationError, match=message):
            GameConfig(**kwargs)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            GameConfig(board_size=1)

    def test_training_quota_uses_one_player(self):
        GameConfig(board_size=10, tokens_per_player=100, mode=GameMode.TRAINING)
        with pytest.raises(ConfigurationError):
            GameConfig(board_size=10, tokens_per_player=100)

    def test_replace_revalidates(self):
        config = GameConfig()
        assert config.replace(board_size=30).board_size == 30
        assert config.board_size == 20
        with pytest.raises(ConfigurationError):
            config.replace(board_size=5)


class TestPresets:
    """Named superpower presets."""

    @pytest.mark.parametrize("name,expected", [
        ("standard", set(range(1, 8))),
        ("classic", set()),
        ("none", set()),
        ("all", set(range(1, 8))),
        ("defensive", {1, 3}),
        ("aggressive", {2, 5, 6}),
    ])
    def test_preset(self, name, expected):
        assert GameConfig.preset(name).enabled_superpowers == expected
        assert name in SUPERPOWER_PRESETS

    def test_preset_overrides(self):
        config = GameConfig.preset("defensive", board_size=12, seed=3)
        assert config.board_size == 12
        assert config.seed == 3

    def test_unknown_preset(self):
        with pytest.raises(ConfigurationError, match="Unknown preset"):
            GameConfig.preset("chaos")


class TestEnvironmentLoading:
    """GameConfig.from_env reads SUPERLIFE_* variables."""

    def test_empty_environment_gives_defaults(self):
        assert GameConfig.from_env({}) == GameConfig()

    def test_all_variables(self):
        config = GameConfig.from_env({
            'SUPERLIFE_BOARD_SIZE': '30',
            'SUPERLIFE_TOKENS': '12',
            'SUPERLIFE_RULES': 'B36/S23',
            'SUPERLIFE_SUPERPOWERS': 'defensive',
            'SUPERLIFE_SUPERPOWER_PCT': '50',
            'SUPERLIFE_MAX_GENERATIONS': '200',
            'SUPERLIFE_SEED': '1234',
            'SUPERLIFE_MODE': 'training',
        })

        assert config.board_size == 30
        assert config.tokens_per_player == 12
        assert config.birth_rules == {3, 6}
        assert config.survival_rules == {2, 3}
        assert config.enabled_superpowers == {1, 3}
        assert config.superpower_percentage == 50.0
        assert config.max_generations == 200
        assert config.seed == 1234
        assert config.mode is GameMode.TRAINING

    @pytest.mark.parametrize("value,expected", [
        ("1,2", {1, 2}),
        (" 4, 7 ", {4, 7}),
        ("", set()),
        ("AGGRESSIVE", {2, 5, 6}),
    ])
    def test_superpower_list(self, value, expected):
        config = GameConfig.from_env({'SUPERLIFE_SUPERPOWERS': value})
        assert config.enabled_superpowers == expected

    @pytest.mark.parametrize("env,message", [
        ({'SUPERLIFE_BOARD_SIZE': 'big'}, "must be an integer"),
        ({'SUPERLIFE_SUPERPOWER_PCT': 'lots'}, "must be a number"),
        ({'SUPERLIFE_SUPERPOWERS': 'tank'}, "preset or comma list"),
        ({'SUPERLIFE_RULES': 'conway'}, "notation"),
        ({'SUPERLIFE_BOARD_SIZE': '8'}, "board_size"),
    ])
    def test_invalid_environment(self, env, message):
        with pytest.raises(ConfigurationError, match=message):
            GameConfig.from_env(env)


class TestSerialization:
    """Settings layout stored in game records."""

    def test_to_dict_layout(self):
        data = GameConfig(enabled_superpowers={3, 1}).to_dict()
        assert data == {
            'boardSize': 20,
            'tokensPerPlayer': 20,
            'birthRules': [3],
            'survivalRules': [2, 3],
            'enabledSuperpowers': [1, 3],
            'superpowerPercentage': 20,
            'maxGenerations': 100,
            'mode': '2player',
        }

    def test_dict_round_trip(self):
        config = GameConfig(board_size=16, tokens_per_player=8, birth_rules={3, 6},
                            mode=GameMode.TRAINING, seed=77)
        assert GameConfig.from_dict(config.to_dict(), seed=77) == config

"""
Smoke tests to verify basic infrastructure setup.
Run these after fresh environment setup to confirm everything works.
"""

import importlib
import logging

import pytest

from superlife.logging_setup import configure_logging


def test_package_imports():
    """Test that required third-party packages can be imported."""
    packages = [
        "numpy",
        "requests",
        "psutil",
        "pytest",
    ]

    failed_imports = []
    for package in packages:
        try:
            importlib.import_module(package)
        except ImportError as e:
            failed_imports.append(f"{package}: {e}")

    if failed_imports:
        pytest.fail(f"Failed to import packages: {failed_imports}")


def test_public_api():
    """Top-level package exposes the game entry points."""
    import superlife

    for name in superlife.__all__:
        assert hasattr(superlife, name), f"superlife.{name} missing"
    assert superlife.__version__


def test_headless_game():
    """A whole game runs end to end through the public API."""
    from superlife import GameConfig, GameStateMachine, Stage

    machine = GameStateMachine(GameConfig(board_size=10, tokens_per_player=3, seed=0))
    for col in range(3):
        machine.place_token(4, col)
    for col in range(3):
        machine.place_token(8, col + 5)
    machine.run_to_end()

    assert machine.get_stage() is Stage.FINISHED
    assert machine.record is not None


def test_configure_logging_levels(monkeypatch):
    configure_logging(logging.WARNING)
    configure_logging("debug")
    monkeypatch.setenv("SUPERLIFE_LOG_LEVEL", "info")
    configure_logging()

    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("loud")

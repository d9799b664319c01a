# tests/conftest.py
"""
Common test fixtures for CommandGPT.
"""
import pytest

from commandgpt.config import ConfigManager
from commandgpt.history import HistoryManager
from commandgpt.safety.validator import SafetyEngine


@pytest.fixture
def permissive_engine():
    """Safety engine whose existence check accepts every command name."""
    return SafetyEngine(command_exists=lambda name: True)


@pytest.fixture
def engine():
    """Safety engine using the real executable lookup."""
    return SafetyEngine()


@pytest.fixture
def history_manager(tmp_path):
    """History manager backed by a temporary file."""
    return HistoryManager(path=tmp_path / "history.json")


@pytest.fixture
def temp_config_manager(tmp_path, monkeypatch):
    """Config manager rooted in a temporary directory, with no API key in the environment."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("COMMANDGPT_MODEL", raising=False)
    return ConfigManager(config_dir=tmp_path / "config")

# commandgpt/config.py
"""
Configuration management for CommandGPT.
Uses TOML format for configuration files.
"""
import os
import sys
from pathlib import Path
from typing import List, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from commandgpt.constants import (
    CONFIG_DIR, CONTEXT_DIR, CONTEXT_MAX_FILE_CHARS, DEFAULT_TIMEOUT,
    GEMINI_MAX_TOKENS, GEMINI_MODEL, GEMINI_TEMPERATURE, HISTORY_MAX_ENTRIES,
    HISTORY_MAX_OUTPUT_CHARS, HOOK_API_TIMEOUT, HOOK_EXCLUDED_PATTERNS,
    HOOK_MAX_LENGTH, HOOK_MIN_LENGTH, MAX_RETRIES, REQUEST_TIMEOUT,
    SYSTEM_PROMPT_FILE,
)
from commandgpt.errors import ConfigError
from commandgpt.utils.logging import get_logger

logger = get_logger(__name__)


# --- Configuration Models ---

class ApiConfig(BaseModel):
    """API configuration settings."""
    gemini_api_key: Optional[str] = Field(None, description="Google Gemini API Key")
    model: str = Field(GEMINI_MODEL, description="Gemini model name")
    max_tokens: int = Field(GEMINI_MAX_TOKENS, gt=0)
    temperature: float = Field(GEMINI_TEMPERATURE, ge=0.0, le=2.0)
    timeout_seconds: int = Field(REQUEST_TIMEOUT, gt=0)
    max_retries: int = Field(MAX_RETRIES, ge=1)


class SafetyConfig(BaseModel):
    """Safety gate settings."""
    always_confirm: bool = Field(False, description="Confirm even commands the LLM marks auto_execute")
    include_context: bool = Field(True, description="Send the previous command to the LLM as context")


class ExecutionConfig(BaseModel):
    """Command execution settings."""
    timeout_seconds: float = Field(DEFAULT_TIMEOUT, gt=0)
    shell: Optional[str] = Field(None, description="Shell used to run commands; autodetected when unset")


class HistoryConfig(BaseModel):
    """Command history settings."""
    max_entries: int = Field(HISTORY_MAX_ENTRIES, gt=0)
    max_output_chars: int = Field(HISTORY_MAX_OUTPUT_CHARS, gt=0)


class ContextConfig(BaseModel):
    """User context file settings."""
    enabled: bool = Field(True, description="Send system.md and the context directory to the LLM")
    max_file_chars: int = Field(CONTEXT_MAX_FILE_CHARS, gt=0)


class HookConfig(BaseModel):
    """Shell command-not-found hook settings."""
    enabled: bool = False
    min_length: int = Field(HOOK_MIN_LENGTH, ge=0)
    max_length: int = Field(HOOK_MAX_LENGTH, gt=0)
    always_confirm: bool = True
    api_timeout: int = Field(HOOK_API_TIMEOUT, gt=0)
    excluded_patterns: List[str] = Field(default_factory=lambda: list(HOOK_EXCLUDED_PATTERNS))


class AppConfig(BaseModel):
    """Application configuration settings."""
    api: ApiConfig = Field(default_factory=ApiConfig)
    safety: SafetyConfig = Field(default_factory=SafetyConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    hook: HookConfig = Field(default_factory=HookConfig)
    debug: bool = Field(False, description="Enable debug mode")


# --- Configuration Manager ---

class ConfigManager:
    """Manages the configuration for CommandGPT using TOML."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.CONFIG_DIR = Path(config_dir) if config_dir else CONFIG_DIR
        self.CONFIG_FILE = self.CONFIG_DIR / "config.toml"
        self.CONTEXT_DIR = self.CONFIG_DIR / CONTEXT_DIR.name
        self.SYSTEM_PROMPT_FILE = self.CONFIG_DIR / SYSTEM_PROMPT_FILE.name
        self._config: AppConfig = AppConfig()

    def _load_environment(self) -> None:
        """Apply overrides from environment variables and a .env file."""
        load_dotenv()
        gemini_api_key = os.getenv("GEMINI_API_KEY")
        if gemini_api_key:
            self._config.api.gemini_api_key = gemini_api_key
        model = os.getenv("COMMANDGPT_MODEL")
        if model:
            self._config.api.model = model

    def _ensure_config_dir(self) -> None:
        try:
            self.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Could not create configuration directory {self.CONFIG_DIR}: {e}") from e

    def load_config(self) -> AppConfig:
        """Loads configuration from the TOML file, then applies environment overrides."""
        self._ensure_config_dir()

        if not self.CONFIG_FILE.exists():
            logger.debug(f"Configuration file not found at '{self.CONFIG_FILE}'. Saving default configuration.")
            self._config = AppConfig()
            self.save_config()
            self._load_environment()
            return self._config

        try:
            logger.debug(f"Loading configuration from: {self.CONFIG_FILE}")
            with open(self.CONFIG_FILE, "rb") as f:
                config_data = tomllib.load(f)
            self._config = AppConfig.model_validate(config_data)
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Error decoding TOML configuration file ({self.CONFIG_FILE}): {e}")
            logger.error("Using default configuration and environment variables.")
            self._config = AppConfig()
        except ValidationError as e:
            logger.error(f"Invalid values in configuration file ({self.CONFIG_FILE}): {e}")
            logger.error("Using default configuration and environment variables.")
            self._config = AppConfig()
        except OSError as e:
            logger.error(f"I/O error accessing configuration file: {e}")
            self._config = AppConfig()

        self._load_environment()
        return self._config

    def save_config(self) -> None:
        """Saves the current configuration to the config file (as TOML)."""
        # The API key is never written to disk; it comes from the environment
        config_dict = self._config.model_dump(exclude_none=True, exclude={"api": {"gemini_api_key"}})
        try:
            self.CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
            with open(self.CONFIG_FILE, "wb") as f:
                tomli_w.dump(config_dict, f)
            logger.debug(f"Configuration saved to {self.CONFIG_FILE}")
        except OSError as e:
            raise ConfigError(f"Could not save configuration to {self.CONFIG_FILE}: {e}") from e

    @property
    def config(self) -> AppConfig:
        """Provides access to the current application configuration."""
        return self._config


# Loaded explicitly by the CLI entry point
config_manager = ConfigManager()

# commandgpt/constants.py
"""
Constants for the CommandGPT application.
"""
from pathlib import Path
import os

# Application information
APP_NAME = "commandgpt"
APP_DESCRIPTION = "LLM-powered shell command generator with a safety gate"

# Paths
CONFIG_DIR = Path(os.path.expanduser("~/.commandgpt"))
CONFIG_FILE = CONFIG_DIR / "config.toml"
LOG_DIR = CONFIG_DIR / "logs"
HISTORY_FILE = CONFIG_DIR / "history.json"
SHELL_HISTORY_FILE = CONFIG_DIR / "shell_history.txt"
CONTEXT_DIR = CONFIG_DIR / "context"
SYSTEM_PROMPT_FILE = CONFIG_DIR / "system.md"

# Logging
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[name]} | {message}"
LOG_ROTATION = "10 MB"
LOG_RETENTION = "10 days"

# API
GEMINI_MODEL = "gemini-1.5-flash"
GEMINI_MAX_TOKENS = 500
GEMINI_TEMPERATURE = 0.1
REQUEST_TIMEOUT = 30  # seconds
MAX_RETRIES = 3

# Execution
DEFAULT_TIMEOUT = 300  # seconds
PREFERRED_SHELLS = ["zsh", "bash"]
FALLBACK_SHELL = "/bin/sh"

# Directories checked before falling back to a PATH search
EXECUTABLE_SEARCH_PATHS = [
    "/bin",
    "/usr/bin",
    "/usr/local/bin",
    "/opt/homebrew/bin",
    "/sbin",
    "/usr/sbin",
]

# History
HISTORY_MAX_ENTRIES = 1000
HISTORY_MAX_OUTPUT_CHARS = 1024

# User context files
CONTEXT_FILE_EXTENSIONS = (".md", ".markdown")
CONTEXT_MAX_FILE_CHARS = 2048

# Shell hook
HOOK_MIN_LENGTH = 3
HOOK_MAX_LENGTH = 200
HOOK_API_TIMEOUT = 30  # seconds
HOOK_EXCLUDED_PATTERNS = ["sudo", "su", "rm", "chmod", "chown"]

# commandgpt/errors.py
"""
Error hierarchy for CommandGPT.

Every error raised across a component boundary derives from CommandGPTError,
which carries a process exit code and a message suitable for end users.
"""
from typing import Optional


class CommandGPTError(Exception):
    """Base class for all CommandGPT errors."""

    exit_code = 99
    recoverable = False
    label = "Unknown error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"

    def user_message(self) -> str:
        """Get a user-friendly error message."""
        return f"{self.label}: {self.message}"

    def is_recoverable(self) -> bool:
        """Whether retrying or re-prompting the user may succeed."""
        return self.recoverable


class ConfigError(CommandGPTError):
    """Raised when configuration is missing or invalid."""
    exit_code = 1
    label = "Configuration error"


class ApiError(CommandGPTError):
    """Raised when the LLM API returns an error."""
    exit_code = 2
    recoverable = True
    label = "API error"

    def user_message(self) -> str:
        return f"Gemini API error: {self.message}"


class NetworkError(CommandGPTError):
    """Raised when the LLM API cannot be reached."""
    exit_code = 3
    recoverable = True
    label = "Network error"


class HistoryError(CommandGPTError):
    """Raised when the history store cannot be read or written."""
    exit_code = 4
    label = "History error"

    def user_message(self) -> str:
        return f"History database error: {self.message}"


class SafetyError(CommandGPTError):
    """Raised when a command is refused by the safety engine."""
    exit_code = 5
    label = "Safety error"

    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason

    def user_message(self) -> str:
        return f"Command blocked for safety: {self.message} ({self.reason})"


class ExecutionError(CommandGPTError):
    """Raised when a command could not be executed to completion."""
    exit_code = 6
    label = "Execution error"

    def user_message(self) -> str:
        return f"Command execution failed: {self.message}"


class CommandSpawnError(ExecutionError):
    """The shell or script could not be started."""
    label = "Spawn error"


class CommandTimeoutError(ExecutionError):
    """The command exceeded the executor's wall-clock timeout."""
    label = "Timeout"

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.timeout = timeout


class CommandIOError(ExecutionError):
    """Reading the command's output streams failed."""
    label = "I/O error"


class ParseError(CommandGPTError):
    """Raised when an LLM response cannot be parsed."""
    exit_code = 11
    recoverable = True
    label = "Parse error"

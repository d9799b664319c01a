# commandgpt/safety/validator.py
"""
Safety validation for generated shell commands.

The SafetyEngine classifies a command string into one of three verdicts
before any execution is permitted. Rules are applied in a fixed order and
the first decisive rule wins:

    1. empty command                      -> Safe
    2. dangerous pattern                  -> Blocked (NeedsConfirmation with force)
    3. unparseable syntax                 -> NeedsConfirmation
    4. unknown program                    -> NeedsConfirmation
    5. destructive program                -> NeedsConfirmation
    6. system program                     -> NeedsConfirmation
    7. package removal                    -> NeedsConfirmation
    8. sudo anywhere in a chain           -> NeedsConfirmation
    9. pipe into a shell                  -> NeedsConfirmation
    10. mutation of a protected directory -> NeedsConfirmation
    11. anything else                     -> Safe
"""
import shlex
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict

from commandgpt.safety import classifier
from commandgpt.safety.lookup import command_exists as default_command_exists
from commandgpt.safety.patterns import PatternLibrary, pattern_library
from commandgpt.utils.logging import get_logger

logger = get_logger(__name__)

FORCED_PATTERN_REASON = "Potentially destructive command detected"
BLOCKED_PATTERN_REASON = "Dangerous command blocked. Use --force to override"
UNPARSEABLE_REASON = "Unable to parse command syntax"


class VerdictKind(str, Enum):
    SAFE = "safe"
    NEEDS_CONFIRMATION = "needs_confirmation"
    BLOCKED = "blocked"


class SafetyVerdict(BaseModel):
    """Outcome of validating a command. Immutable once produced."""
    model_config = ConfigDict(frozen=True)

    kind: VerdictKind
    reason: Optional[str] = None

    @classmethod
    def safe(cls) -> "SafetyVerdict":
        return cls(kind=VerdictKind.SAFE)

    @classmethod
    def needs_confirmation(cls, reason: str) -> "SafetyVerdict":
        return cls(kind=VerdictKind.NEEDS_CONFIRMATION, reason=reason)

    @classmethod
    def blocked(cls, reason: str) -> "SafetyVerdict":
        return cls(kind=VerdictKind.BLOCKED, reason=reason)

    @property
    def is_safe(self) -> bool:
        return self.kind is VerdictKind.SAFE

    @property
    def requires_confirmation(self) -> bool:
        return self.kind is VerdictKind.NEEDS_CONFIRMATION

    @property
    def is_blocked(self) -> bool:
        return self.kind is VerdictKind.BLOCKED

    def __str__(self) -> str:
        if self.reason:
            return f"{self.kind.value}: {self.reason}"
        return self.kind.value


class SafetyEngine:
    """Classifies shell commands as safe, needing confirmation, or blocked."""

    def __init__(
        self,
        patterns: Optional[PatternLibrary] = None,
        command_exists: Optional[Callable[[str], bool]] = None,
    ):
        """
        Initialize the safety engine.

        Args:
            patterns: Dangerous pattern library. Defaults to the shared library.
            command_exists: PATH lookup used for the existence check.
        """
        self._patterns = patterns or pattern_library
        self._command_exists = command_exists or default_command_exists

    def validate(self, command: str, force: bool = False) -> SafetyVerdict:
        """
        Validate a command against the safety rules.

        Args:
            command: The shell command to validate. May span multiple lines.
            force: Downgrade a dangerous-pattern block to a confirmation.

        Returns:
            The verdict for the command.
        """
        command = command.strip()

        if not command:
            return SafetyVerdict.safe()

        pattern = self._patterns.match(command)
        if pattern is not None:
            logger.warning(f"Command '{command}' matched dangerous pattern {pattern.pattern!r}")
            if force:
                return SafetyVerdict.needs_confirmation(FORCED_PATTERN_REASON)
            return SafetyVerdict.blocked(BLOCKED_PATTERN_REASON)

        try:
            tokens = shlex.split(command, comments=True)
        except ValueError as e:
            logger.debug(f"Could not tokenize '{command}': {e}")
            return SafetyVerdict.needs_confirmation(UNPARSEABLE_REASON)

        if not tokens:
            return SafetyVerdict.safe()

        return self._classify(command, tokens)

    def _classify(self, command: str, tokens: List[str]) -> SafetyVerdict:
        main_command = tokens[0]

        if not self._command_exists(main_command):
            return SafetyVerdict.needs_confirmation(
                f"Command '{main_command}' not found in PATH"
            )

        if classifier.is_destructive(main_command):
            flag = classifier.find_dangerous_flag(tokens)
            if flag:
                return SafetyVerdict.needs_confirmation(
                    f"Command with '{flag}' flag requires confirmation"
                )
            return SafetyVerdict.needs_confirmation(
                f"Destructive command '{main_command}' requires confirmation"
            )

        if classifier.is_system_command(main_command):
            return SafetyVerdict.needs_confirmation(
                f"System command '{main_command}' requires confirmation"
            )

        removal = classifier.find_package_removal(tokens)
        if removal:
            manager, verb = removal
            return SafetyVerdict.needs_confirmation(
                f"Package removal '{manager} {verb}' requires confirmation"
            )

        if classifier.uses_sudo(command):
            return SafetyVerdict.needs_confirmation("Sudo command requires confirmation")

        if classifier.pipes_to_shell(command):
            return SafetyVerdict.needs_confirmation("Piping to shell requires confirmation")

        directory = classifier.find_protected_directory(command)
        if directory:
            return SafetyVerdict.needs_confirmation(
                f"Operation on system directory '{directory}' requires confirmation"
            )

        return SafetyVerdict.safe()

    def is_safe_for_auto_execute(self, command: str) -> bool:
        """Whether a command may run without asking the user."""
        return self.validate(command, force=False).is_safe


# Shared engine; holds only read-only rule tables
safety_engine = SafetyEngine()


def validate_command(command: str, force: bool = False) -> SafetyVerdict:
    """Validate a command with the shared safety engine."""
    return safety_engine.validate(command, force)


def is_dangerous(command: str) -> bool:
    """True unless the command is Safe."""
    return not safety_engine.validate(command).is_safe


def needs_confirmation(command: str) -> bool:
    return safety_engine.validate(command).requires_confirmation

# commandgpt/safety/patterns.py
"""
Dangerous command patterns.

Each pattern is tested against the whole, untokenized command string and is
independently sufficient to block the command. The list is compiled once at
import time and exposed only as an immutable tuple.
"""
import re
from re import Pattern
from typing import Optional, Tuple

from commandgpt.utils.logging import get_logger

logger = get_logger(__name__)

DANGEROUS_PATTERNS = [
    # Recursive or forced deletion of root-like targets, any flag order
    r"\brm\s+(-\S+\s+)*(-[A-Za-z]*[rRf][A-Za-z]*|--recursive|--force)\s+(-\S+\s+)*"
    r"(/\*?|~/?\*?|\"?\$\{?HOME\}?\"?/?\*?|\*)(?=[\s;&|]|$)",
    # Fork bomb
    r":\(\)\s*\{\s*:\s*\|\s*:\s*&\s*\}\s*;\s*:",
    # dd writing to an output target
    r"(sudo\s+)?\bdd\s+.*\bof=",
    # Disk formatting and partitioning
    r"\bmkfs(\.[A-Za-z0-9]+)?\s+",
    r"\bfdisk\s+",
    r"\bparted\s+",
    r"\bdiskutil\s+(erase\w*|partition\w*)",
    r"\bformat\s+[A-Z]:",
    r"\bdel\s+/[qfrs]",
    r"\brd\s+/s",

    # Remote scripts piped into a shell
    r"\|\s*sh\s*$",
    r"\|\s*bash\s*$",
    r"\bcurl\s+.*\|\s*(sudo\s+)?(sh|bash)\b",
    r"\bwget\s+.*\|\s*(sudo\s+)?(sh|bash)\b",

    # eval/exec of substituted output
    r"\beval\s+.*\$\(",
    r"\bexec\s+.*\$\(",
    r"\$\{.*:-.*\}",

    # Command substitution can smuggle anything past first-token checks
    r"\$\(",
    r"`[^`]*`",
    # Chaining into a destructive command
    r";\s*(rm|dd|mkfs|format)\b",
    r"\|\s*(sh|bash|zsh)\s*$",
]


class PatternLibrary:
    """Ordered, immutable set of compiled dangerous-command patterns."""

    def __init__(self, patterns=DANGEROUS_PATTERNS):
        compiled = []
        for pattern in patterns:
            try:
                compiled.append(re.compile(pattern))
            except re.error as e:
                logger.error(f"Skipping invalid danger pattern {pattern!r}: {e}")
        self._patterns: Tuple[Pattern, ...] = tuple(compiled)

    @property
    def patterns(self) -> Tuple[Pattern, ...]:
        return self._patterns

    def __len__(self) -> int:
        return len(self._patterns)

    def match(self, command: str) -> Optional[Pattern]:
        """Return the first pattern matching the command, or None."""
        for pattern in self._patterns:
            if pattern.search(command):
                return pattern
        return None

    def is_dangerous(self, command: str) -> bool:
        return self.match(command) is not None


# Shared, read-only instance
pattern_library = PatternLibrary()

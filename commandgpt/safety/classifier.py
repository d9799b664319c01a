# commandgpt/safety/classifier.py
"""
Command classification tables for CommandGPT.

This module holds the static membership tables used to decide whether a
command needs confirmation: destructive programs, system-altering programs,
dangerous flags, package-manager removal verbs and protected directories.
"""
import re
from typing import Dict, FrozenSet, List, Optional, Tuple

# Programs whose normal use can irreversibly alter or delete data
DESTRUCTIVE_COMMANDS: FrozenSet[str] = frozenset({
    "rm", "rmdir", "unlink", "shred", "dd", "mkfs", "fdisk", "parted",
    "diskutil", "format", "del", "rd", "sudo", "doas", "su",
})

# Programs that alter OS-level configuration or service state
SYSTEM_COMMANDS: FrozenSet[str] = frozenset({
    "shutdown", "reboot", "halt", "poweroff", "systemctl", "service",
    "launchctl", "scutil", "networksetup", "pfctl", "iptables",
    "ufw", "firewall-cmd", "chown", "chmod", "chgrp",
})

# Checked in order; the first one present names the confirmation message
DANGEROUS_FLAGS: Tuple[str, ...] = (
    "-rf", "-fr", "-Rf", "-fR", "--recursive", "-f", "--force",
    "--delete", "--remove", "--purge",
)

PACKAGE_REMOVAL_VERBS: Dict[str, FrozenSet[str]] = {
    "brew": frozenset({"uninstall", "remove", "rm"}),
    "npm": frozenset({"uninstall", "remove", "rm", "un", "r"}),
    "yarn": frozenset({"remove"}),
    "pnpm": frozenset({"remove", "rm", "uninstall", "un"}),
    "pip": frozenset({"uninstall"}),
    "pip3": frozenset({"uninstall"}),
    "pipx": frozenset({"uninstall", "uninstall-all"}),
    "gem": frozenset({"uninstall"}),
    "cargo": frozenset({"uninstall"}),
    "apt": frozenset({"remove", "purge", "autoremove"}),
    "apt-get": frozenset({"remove", "purge", "autoremove"}),
    "dnf": frozenset({"remove", "erase", "autoremove"}),
    "yum": frozenset({"remove", "erase", "autoremove"}),
    "snap": frozenset({"remove"}),
    "docker": frozenset({"rm", "rmi"}),
    "podman": frozenset({"rm", "rmi"}),
}

# Specific directories come before "/" so the message names the narrowest match
PROTECTED_DIRECTORIES: Tuple[str, ...] = (
    "/bin", "/usr", "/etc", "/var", "/sys", "/proc", "/",
)

MUTATING_VERB_PATTERN = re.compile(r"\b(rm|rmdir|chmod|chown)\s")

SUDO_PATTERN = re.compile(r"(^|[;&|]\s*)sudo\b")

PIPE_TO_SHELL_PATTERN = re.compile(r"\|\s*(sh|bash|zsh)\b")

_SHORT_FLAG_CLUSTER = re.compile(r"^-[A-Za-z]+$")


def is_destructive(command_name: str) -> bool:
    return command_name in DESTRUCTIVE_COMMANDS


def is_system_command(command_name: str) -> bool:
    return command_name in SYSTEM_COMMANDS


def find_dangerous_flag(tokens: List[str]) -> Optional[str]:
    """
    Find the first dangerous flag among a command's arguments.

    Known flags are matched exactly; a short-flag cluster such as ``-vrf``
    that combines recursion with force also counts.

    Args:
        tokens: The command tokens, including the program name.

    Returns:
        The flag as written, or None.
    """
    args = tokens[1:]
    for flag in DANGEROUS_FLAGS:
        if flag in args:
            return flag

    for arg in args:
        if _SHORT_FLAG_CLUSTER.match(arg):
            letters = arg[1:]
            if "f" in letters and ("r" in letters or "R" in letters):
                return arg
    return None


def find_package_removal(tokens: List[str]) -> Optional[Tuple[str, str]]:
    """
    Detect a package-manager uninstall/remove invocation.

    Returns:
        (manager, verb) when the second token is a removal verb for a known
        package manager, otherwise None.
    """
    if len(tokens) < 2:
        return None
    verbs = PACKAGE_REMOVAL_VERBS.get(tokens[0])
    if verbs and tokens[1] in verbs:
        return tokens[0], tokens[1]
    return None


def uses_sudo(command: str) -> bool:
    """True if sudo starts the command or any chained segment of it."""
    return SUDO_PATTERN.search(command) is not None


def pipes_to_shell(command: str) -> bool:
    return PIPE_TO_SHELL_PATTERN.search(command) is not None


def find_protected_directory(command: str) -> Optional[str]:
    """
    Find a protected system directory that a mutating command operates on.

    Returns:
        The directory name when the command both references a protected
        directory and contains a mutating verb, otherwise None.
    """
    if not MUTATING_VERB_PATTERN.search(command):
        return None
    for directory in PROTECTED_DIRECTORIES:
        if directory in command:
            return directory
    return None

# commandgpt/safety/lookup.py
"""
Executable lookup used by the safety engine's existence check.
"""
import os
import shutil
from pathlib import Path
from typing import Iterable, Optional

from commandgpt.constants import EXECUTABLE_SEARCH_PATHS

# Shell keywords and builtins have no executable on disk
SHELL_BUILTINS = frozenset({
    "alias", "bg", "break", "builtin", "case", "cd", "command", "continue",
    "declare", "echo", "eval", "exec", "exit", "export", "false", "fg", "for",
    "function", "getopts", "hash", "history", "if", "jobs", "let", "local",
    "popd", "printf", "pushd", "pwd", "read", "readonly", "return", "set",
    "shift", "source", "test", "time", "trap", "true", "type", "typeset",
    "ulimit", "umask", "unalias", "unset", "until", "wait", "while", ".",
    "[", "[[", "{", "(",
})


def command_exists(
    name: str,
    search_paths: Iterable[str] = EXECUTABLE_SEARCH_PATHS,
    path_env: Optional[str] = None,
) -> bool:
    """
    Check whether a command can be resolved.

    The canonical executable directories are checked first, then the PATH.
    Shell builtins always resolve. Names containing a slash are checked as
    paths directly.

    Args:
        name: The command name (first token of a command line).
        search_paths: Directories checked before the PATH search.
        path_env: PATH value to search instead of the process environment.

    Returns:
        True if the command resolves to a builtin or an executable file.
    """
    if not name:
        return False

    if name in SHELL_BUILTINS:
        return True

    if "/" in name:
        candidate = Path(os.path.expanduser(name))
        return candidate.is_file() and os.access(candidate, os.X_OK)

    for directory in search_paths:
        if (Path(directory) / name).exists():
            return True

    return shutil.which(name, path=path_env) is not None

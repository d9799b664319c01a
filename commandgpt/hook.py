# commandgpt/hook.py
"""
Command-not-found hook for zsh.

When zsh cannot find a command it calls ``command_not_found_handler``. The
generated hook script routes that call to ``commandgpt hook handle`` along
with whatever context the shell can gather (working directory, previous
command, a similar recent command). The hook filters out commands it should
not touch, classifies the error, and asks the LLM for the command the user
most likely meant. The suggestion then goes through the normal safety gate.
"""
import asyncio
from enum import Enum
from typing import Optional, Protocol, Sequence

from pydantic import BaseModel

from commandgpt.ai.parser import CommandResponse, parse_command_response
from commandgpt.config import HookConfig
from commandgpt.errors import CommandGPTError
from commandgpt.utils.logging import get_logger

logger = get_logger(__name__)

COMMON_COMMANDS = [
    "ls", "cd", "pwd", "cat", "echo", "grep", "find", "git", "vim", "nano",
    "cp", "mv", "mkdir", "rmdir", "touch", "head", "tail", "sort", "uniq",
]

# Words that suggest the user meant a tool which is simply not installed
KNOWN_PATTERNS = [
    "install", "update", "upgrade", "remove", "search", "find", "list", "show",
    "get", "set", "start", "stop", "restart", "status", "check", "test",
    "create", "delete", "copy", "move", "rename", "chmod", "chown", "mount",
    "compress", "extract", "backup", "restore", "sync", "download", "upload",
]

SIMILARITY_THRESHOLD = 0.7

HOOK_SYSTEM_PROMPT = (
    "You are CommandGPT, an assistant that helps users with shell commands. "
    "Analyze the provided context and suggest the most appropriate command."
)

HOOK_INSTRUCTIONS = """Based on this context, suggest the command the user most likely intended to run. Consider:
1. Possible typos or misspellings
2. Missing package installations
3. Alternative commands that accomplish the same goal
4. Context from previous commands
5. Current directory relevance

Reply with ONLY a JSON object of this form:
{
  "command": "<the suggested command>",
  "explanation": "<why this command is suggested>",
  "auto_execute": false
}"""


class ErrorType(str, Enum):
    UNKNOWN_COMMAND = "UnknownCommand"
    LIKELY_TYPO = "LikelyTypo"
    MISSING_PACKAGE = "MissingPackage"
    PERMISSION = "Permission"
    FILE_NOT_FOUND = "FileNotFound"
    OTHER = "Other"


class ErrorContext(BaseModel):
    """What the shell knew when the command failed."""
    error_message: Optional[str] = None
    current_directory: Optional[str] = None
    user_context: Optional[str] = None  # user@host
    last_command: Optional[str] = None
    recent_similar: Optional[str] = None
    preexec_mode: bool = False


class ErrorAnalysis(BaseModel):
    error_type: ErrorType = ErrorType.UNKNOWN_COMMAND
    similarity_score: float = 0.0
    context_relevance: float = 0.0
    likely_intended_command: Optional[str] = None


class TextGenerator(Protocol):
    async def generate_text(self, prompt: str) -> str:
        ...


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance between two strings."""
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def is_likely_typo(command: str) -> bool:
    """True if the command is one edit away from a common command."""
    if len(command) <= 2:
        return False
    return any(edit_distance(command, common) == 1 for common in COMMON_COMMANDS)


def is_known_pattern(command: str) -> bool:
    return any(pattern in command for pattern in KNOWN_PATTERNS)


def calculate_similarity(a: str, b: str) -> float:
    """Similarity in [0, 1] derived from the edit distance."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - edit_distance(a, b) / max_len


def calculate_context_relevance(current_cmd: str, last_cmd: str) -> float:
    """Score how related a command is to the previous one by their base names."""
    current_parts = current_cmd.split()
    last_parts = last_cmd.split()
    if not current_parts or not last_parts:
        return 0.0

    current_base, last_base = current_parts[0], last_parts[0]
    if current_base.startswith(last_base[:3]):
        return 0.8
    if len(current_base) >= 3 and len(last_base) >= 3 and current_base[:3] == last_base[:3]:
        return 0.6
    return 0.2


class ShellHook:
    """Turns unknown shell commands into command suggestions."""

    def __init__(self, config: HookConfig, generator: Optional[TextGenerator] = None):
        self.config = config
        self._generator = generator

    def should_process_command(self, command: str) -> bool:
        """
        Apply the basic filters to a command name.

        Commands that are too short or too long, start with an excluded
        pattern (privilege and permission tools, ``rm``), or look like URLs
        are left alone.
        """
        command = command.strip()
        if not self.config.min_length <= len(command) <= self.config.max_length:
            return False
        if any(command.startswith(pattern) for pattern in self.config.excluded_patterns):
            return False
        if "http://" in command or "https://" in command:
            return False
        return True

    def should_process_with_context(self, command: str, context: ErrorContext) -> bool:
        if not self.should_process_command(command):
            return False

        if context.error_message:
            message = context.error_message.lower()
            if "permission denied" in message or "access denied" in message:
                return False

        if context.recent_similar:
            return True

        # Before execution only intervene when there is a clear signal
        if context.preexec_mode:
            return is_likely_typo(command) or is_known_pattern(command)

        return True

    def analyze_error_context(self, command: str, context: ErrorContext) -> ErrorAnalysis:
        """Classify the failure and relate the command to recent history."""
        analysis = ErrorAnalysis()

        if context.error_message:
            message = context.error_message.lower()
            if "command not found" in message:
                if is_likely_typo(command):
                    analysis.error_type = ErrorType.LIKELY_TYPO
                elif is_known_pattern(command):
                    analysis.error_type = ErrorType.MISSING_PACKAGE
                else:
                    analysis.error_type = ErrorType.UNKNOWN_COMMAND
            elif "permission denied" in message:
                analysis.error_type = ErrorType.PERMISSION
            elif "no such file" in message:
                analysis.error_type = ErrorType.FILE_NOT_FOUND
            else:
                analysis.error_type = ErrorType.OTHER

        if context.recent_similar:
            analysis.similarity_score = calculate_similarity(command, context.recent_similar)
            if analysis.similarity_score > SIMILARITY_THRESHOLD:
                analysis.likely_intended_command = context.recent_similar

        if context.last_command:
            analysis.context_relevance = calculate_context_relevance(command, context.last_command)

        return analysis

    def build_hook_prompt(
        self,
        command: str,
        args: Sequence[str],
        context: ErrorContext,
        analysis: ErrorAnalysis,
    ) -> str:
        lines = [f"User attempted to run command: {command}"]
        if args:
            lines.append(f"With arguments: {' '.join(args)}")
        if context.error_message:
            lines.append(f"Shell error: {context.error_message}")
        if context.current_directory:
            lines.append(f"Current directory: {context.current_directory}")
        if context.user_context:
            lines.append(f"User context: {context.user_context}")
        if context.last_command:
            lines.append(f"Previous command: {context.last_command}")
        if context.recent_similar:
            lines.append(f"Recent similar command: {context.recent_similar}")
        lines.append(f"Error analysis: {analysis.error_type.value}")
        if analysis.likely_intended_command:
            lines.append(f"Likely intended: {analysis.likely_intended_command}")
        if context.preexec_mode:
            lines.append("Mode: Proactive suggestion (before execution)")
        else:
            lines.append("Mode: Reactive suggestion (after command not found)")

        return "\n\n".join([HOOK_SYSTEM_PROMPT, "\n".join(lines), HOOK_INSTRUCTIONS])

    async def suggest(
        self,
        command: str,
        args: Sequence[str],
        context: ErrorContext,
    ) -> Optional[CommandResponse]:
        """
        Ask the LLM what the user meant.

        Returns:
            The suggestion, or None if the command is filtered out, the LLM
            fails or the request runs past ``api_timeout``.
        """
        if self._generator is None or not self.should_process_with_context(command, context):
            return None

        analysis = self.analyze_error_context(command, context)
        logger.debug(f"Hook analysis for '{command}': {analysis.error_type.value}")
        prompt = self.build_hook_prompt(command, args, context, analysis)

        try:
            text = await asyncio.wait_for(
                self._generator.generate_text(prompt), timeout=self.config.api_timeout
            )
            response = parse_command_response(text)
        except asyncio.TimeoutError:
            logger.debug(f"Hook request timed out for command: {command}")
            return None
        except CommandGPTError as e:
            logger.debug(f"Hook request failed for command '{command}': {e}")
            return None

        # Hook suggestions always go through confirmation
        return response.model_copy(update={"auto_execute": False})


HOOK_SCRIPT = r"""# CommandGPT shell hook for zsh
# Add this to your ~/.zshrc:  eval "$(commandgpt hook script)"

export COMMANDGPT_HOOK_ENABLED=__ENABLED__

command_not_found_handler() {
    local cmd="$1"
    shift || true
    local error_msg="zsh: command not found: $cmd"

    # Never recurse into the hook
    if [[ "$COMMANDGPT_HOOK_ACTIVE" == "true" || "$COMMANDGPT_HOOK_ENABLED" != "true" ]]; then
        echo "$error_msg" >&2
        return 127
    fi
    if ! command -v commandgpt >/dev/null 2>&1; then
        echo "$error_msg" >&2
        return 127
    fi

    local last_command=""
    if [[ "$HISTCMD" -gt 1 ]]; then
        last_command="$(fc -ln -1 2>/dev/null | sed 's/^[[:space:]]*//' | head -1)"
    fi
    local recent_similar=""
    recent_similar="$(fc -ln -10 2>/dev/null | sed 's/^[[:space:]]*//' \
        | awk -v p="${cmd:0:3}" -v c="$cmd" 'index($0, p) == 1 && index($0, c) != 1' | tail -1)"

    local context_args=(
        --error-context "$error_msg"
        --pwd "$(pwd)"
        --user "$(whoami)@$(hostname)"
    )
    if [[ -n "$last_command" && "$last_command" != "$cmd"* ]]; then
        context_args+=(--last-command "$last_command")
    fi
    if [[ -n "$recent_similar" ]]; then
        context_args+=(--recent-similar "$recent_similar")
    fi

    export COMMANDGPT_HOOK_ACTIVE=true
    commandgpt hook handle "${context_args[@]}" -- "$cmd" "$@"
    local exit_code=$?
    unset COMMANDGPT_HOOK_ACTIVE
    return $exit_code
}

# Optional: offer suggestions before zsh even tries an unknown command
preexec_commandgpt_hook() {
    local base_cmd="${1%% *}"
    if [[ "$COMMANDGPT_HOOK_ENABLED" != "true" || "$COMMANDGPT_HOOK_ACTIVE" == "true" ]]; then
        return
    fi
    if [[ -n "$base_cmd" && "$COMMANDGPT_HOOK_PREEXEC" == "true" ]] && ! command -v "$base_cmd" >/dev/null 2>&1; then
        export COMMANDGPT_HOOK_ACTIVE=true
        commandgpt hook handle --preexec-mode --pwd "$(pwd)" --user "$(whoami)@$(hostname)" -- ${(z)1}
        unset COMMANDGPT_HOOK_ACTIVE
    fi
}

autoload -U add-zsh-hook 2>/dev/null && add-zsh-hook preexec preexec_commandgpt_hook

alias commandgpt-hook-on='export COMMANDGPT_HOOK_ENABLED=true && echo "CommandGPT hook enabled"'
alias commandgpt-hook-off='export COMMANDGPT_HOOK_ENABLED=false && echo "CommandGPT hook disabled"'
alias commandgpt-hook-status='echo "CommandGPT hook: $([[ "$COMMANDGPT_HOOK_ENABLED" == "true" ]] && echo enabled || echo disabled)"'
"""


def generate_hook_script(enabled: bool) -> str:
    """Render the zsh hook script with the given initial state."""
    return HOOK_SCRIPT.replace("__ENABLED__", "true" if enabled else "false")

# commandgpt/ai/prompts.py
"""
Prompt construction for command generation.
"""
import os
import platform
from typing import Optional

from commandgpt.ai.context import UserContext
from commandgpt.history import HistoryEntry

SYSTEM_PROMPT = """You are CommandGPT, an assistant that turns natural-language requests into a single shell command.

Reply with ONLY a JSON object of this form:
{
  "command": "<the shell command>",
  "explanation": "<one or two sentences describing what it does>",
  "auto_execute": <true if the command only reads state and is harmless, otherwise false>
}

Rules:
- Produce a command for the user's operating system and shell.
- Prefer simple, widely available tools.
- Never produce commands that delete data, change system configuration or
  escalate privileges unless the user explicitly asks for it, and then set
  "auto_execute" to false.
- Use a multi-line script only when a single command cannot do the job.
"""


def build_context(shell: Optional[str] = None) -> str:
    """Describe the environment the command will run in."""
    lines = [
        f"Operating system: {platform.system()} {platform.release()}",
        f"Shell: {shell or os.environ.get('SHELL', 'unknown')}",
        f"Working directory: {os.getcwd()}",
    ]
    return "\n".join(lines)


def build_prompt(
    request: str,
    last_entry: Optional[HistoryEntry] = None,
    shell: Optional[str] = None,
    user_context: Optional[UserContext] = None,
) -> str:
    """
    Build the full prompt for a request.

    Args:
        request: The user's natural-language request.
        last_entry: The previous command, included so follow-up requests work.
        shell: The shell commands will run under.
        user_context: Custom instructions and context files from the user.

    Returns:
        The prompt text.
    """
    parts = [SYSTEM_PROMPT]

    # Custom instructions extend the built-in ones; the JSON reply format still applies
    if user_context is not None and user_context.system_prompt:
        parts.append("## Custom instructions")
        parts.append(user_context.system_prompt)
    if user_context is not None and user_context.additional_context:
        parts.append("## Additional Context")
        parts.append(user_context.additional_context)

    parts.append("## Environment")
    parts.append(build_context(shell))

    if last_entry is not None:
        parts.append("## Previous command")
        parts.append(f"Command: {last_entry.command}")
        parts.append(f"Exit code: {last_entry.exit_code}")
        if last_entry.stdout:
            parts.append(f"Output:\n{last_entry.stdout}")
        if last_entry.stderr:
            parts.append(f"Errors:\n{last_entry.stderr}")

    parts.append("## Request")
    parts.append(request)
    return "\n\n".join(parts)

# commandgpt/ai/context.py
"""
User-supplied context for command generation.

Two optional sources live under the configuration directory: ``system.md``,
extra instructions appended to the built-in system prompt, and the
``context/`` directory, whose Markdown files are sent as additional
context with every request.
"""
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from commandgpt.constants import CONTEXT_FILE_EXTENSIONS, CONTEXT_MAX_FILE_CHARS
from commandgpt.errors import ConfigError
from commandgpt.history import truncate_output
from commandgpt.utils.logging import get_logger

logger = get_logger(__name__)

SAMPLE_CONTEXT_FILE = "sample.md"

SAMPLE_CONTEXT = """# CommandGPT Context

This is a sample context file. You can add information about:

- Current project details
- Preferred tools and workflows
- Custom aliases or functions
- Environment-specific configurations
- Common tasks and procedures

Every .md or .markdown file in this directory is included when generating
commands.

## System Information
- Shell: zsh
- Package Manager: Homebrew

## Common Tools
- Git for version control
- Docker for containerization

## Preferences
- Prefer single-line commands when possible
- Use long-form flags for clarity
- Include safety checks for destructive operations
"""


class UserContext(BaseModel):
    """Context loaded from the user's files."""
    system_prompt: Optional[str] = None
    additional_context: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.system_prompt and not self.additional_context


def collect_context_files(context_dir: Path) -> List[Path]:
    """Return the Markdown files under a directory, recursively and sorted."""
    if not context_dir.is_dir():
        return []
    return sorted(
        path for path in context_dir.rglob("*")
        if path.is_file() and path.suffix in CONTEXT_FILE_EXTENSIONS
    )


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Skipping unreadable context file {path}: {e}")
        return None


def load_context_files(context_dir: Path, max_chars: int = CONTEXT_MAX_FILE_CHARS) -> str:
    """
    Concatenate the context files under a directory.

    Each file becomes a ``### <name> content:`` section truncated to
    ``max_chars`` characters. Unreadable files are skipped.
    """
    sections = []
    for path in collect_context_files(context_dir):
        content = _read_text(path)
        if content is None:
            continue
        sections.append(f"### {path.name} content:\n{truncate_output(content, max_chars)}")
    return "\n\n".join(sections)


def load_user_context(
    context_dir: Path,
    system_prompt_path: Path,
    max_chars: int = CONTEXT_MAX_FILE_CHARS,
) -> UserContext:
    """Load the custom system prompt and the context directory."""
    system_prompt = None
    if system_prompt_path.is_file():
        text = _read_text(system_prompt_path)
        if text and text.strip():
            system_prompt = text.strip()

    additional = load_context_files(context_dir, max_chars)
    logger.debug(
        f"Loaded user context: system prompt {'set' if system_prompt else 'unset'}, "
        f"{len(additional)} chars of additional context"
    )
    return UserContext(system_prompt=system_prompt, additional_context=additional)


def create_default_context_files(context_dir: Path) -> Path:
    """
    Create the context directory with a sample file.

    An existing sample file is left untouched.

    Returns:
        Path of the sample file.

    Raises:
        ConfigError: The directory or file could not be written.
    """
    sample_path = context_dir / SAMPLE_CONTEXT_FILE
    try:
        context_dir.mkdir(parents=True, exist_ok=True)
        if not sample_path.exists():
            sample_path.write_text(SAMPLE_CONTEXT, encoding="utf-8")
            logger.debug(f"Created sample context file at {sample_path}")
    except OSError as e:
        raise ConfigError(f"Could not create context files in {context_dir}: {e}") from e
    return sample_path

# commandgpt/safety/confirmation.py
"""
User confirmation interface for generated commands.

This module presents a command, its explanation and its safety verdict, and
obtains the user's decision according to the verdict.
"""
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.syntax import Syntax

from commandgpt.safety.validator import SafetyVerdict, VerdictKind
from commandgpt.utils.logging import get_logger

logger = get_logger(__name__)
console = Console()

VERDICT_COLORS = {
    VerdictKind.SAFE: "green",
    VerdictKind.NEEDS_CONFIRMATION: "yellow",
    VerdictKind.BLOCKED: "red",
}


def display_suggestion(command: str, explanation: str = "", out: Optional[Console] = None) -> None:
    """Show a suggested command with syntax highlighting and its explanation."""
    out = out or console
    out.print(Panel(
        Syntax(command, "bash", theme="monokai", word_wrap=True),
        title="Suggested command",
        border_style="cyan",
        expand=False,
    ))
    if explanation:
        out.print(f"[yellow]Explanation:[/yellow] {explanation}")


def display_verdict(verdict: SafetyVerdict, out: Optional[Console] = None) -> None:
    """Show the verdict's reason. Safe verdicts print nothing."""
    out = out or console
    color = VERDICT_COLORS[verdict.kind]
    if verdict.is_blocked:
        out.print(f"[bold {color}]Command blocked:[/bold {color}] {verdict.reason}")
    elif verdict.requires_confirmation:
        out.print(f"[{color}]Warning:[/{color}] {verdict.reason}")


def get_confirmation(
    command: str,
    verdict: SafetyVerdict,
    auto_execute: bool = False,
    always_confirm: bool = False,
) -> bool:
    """
    Decide whether a command should run, asking the user when required.
    
    Args:
        command: The command to be executed.
        verdict: The safety verdict for the command.
        auto_execute: The LLM's hint that the command is harmless.
        always_confirm: Ask even when the command could auto-execute.
        
    Returns:
        True if the command should be executed.
    """
    display_verdict(verdict)

    if verdict.is_blocked:
        logger.info(f"Refusing blocked command: {command}")
        return False

    if verdict.is_safe:
        if auto_execute and not always_confirm:
            console.print("[blue]Auto-executing safe command...[/blue]")
            return True
        return Confirm.ask("Execute this command?", default=False)

    return Confirm.ask("[bold yellow]Are you sure you want to execute this?[/bold yellow]", default=False)

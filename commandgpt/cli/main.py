# commandgpt/cli/main.py
"""
Main command-line interface for CommandGPT.
"""
import asyncio
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from commandgpt import __version__
from commandgpt.ai.client import GeminiClient
from commandgpt.ai.context import UserContext, create_default_context_files, load_user_context
from commandgpt.ai.parser import CommandResponse
from commandgpt.config import AppConfig, config_manager
from commandgpt.constants import APP_DESCRIPTION, APP_NAME, HISTORY_FILE, LOG_DIR, SHELL_HISTORY_FILE
from commandgpt.errors import CommandGPTError, SafetyError
from commandgpt.execution.engine import CommandExecutor, ExecutionResult
from commandgpt.history import HistoryManager
from commandgpt.hook import ErrorContext, ShellHook, generate_hook_script
from commandgpt.orchestrator import Orchestrator, OrchestrationResult
from commandgpt.safety.confirmation import display_suggestion, display_verdict, get_confirmation
from commandgpt.safety.validator import VerdictKind, safety_engine
from commandgpt.utils.logging import setup_logging, get_logger

app = typer.Typer(name=APP_NAME, help=APP_DESCRIPTION)
config_app = typer.Typer(help="Configuration management")
app.add_typer(config_app, name="config")
hook_app = typer.Typer(help="zsh command-not-found hook")
app.add_typer(hook_app, name="hook")

logger = get_logger(__name__)
console = Console()

CHECK_EXIT_CODES = {
    VerdictKind.SAFE: 0,
    VerdictKind.NEEDS_CONFIRMATION: 1,
    VerdictKind.BLOCKED: 2,
}


def version_callback(value: bool):
    """Display version information and exit."""
    if value:
        console.print(f"CommandGPT version: {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    debug: bool = typer.Option(
        False, "--debug", "-d", help="Enable debug logging"
    ),
    version: bool = typer.Option(
        False, "--version", "-v", callback=version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """CommandGPT: turn natural language into shell commands, safely"""
    setup_logging(debug=debug, log_dir=config_manager.CONFIG_DIR / LOG_DIR.name)
    try:
        config_manager.load_config()
    except CommandGPTError as e:
        console.print(f"[bold red]Error:[/bold red] {e.user_message()}")
        raise typer.Exit(e.exit_code)
    config_manager.config.debug = debug


def _history(config: AppConfig) -> HistoryManager:
    return HistoryManager(
        path=config_manager.CONFIG_DIR / HISTORY_FILE.name,
        max_entries=config.history.max_entries,
        max_output_chars=config.history.max_output_chars,
    )


def _executor(config: AppConfig, timeout: Optional[float] = None) -> CommandExecutor:
    return CommandExecutor(
        timeout=timeout or config.execution.timeout_seconds,
        shell=config.execution.shell,
    )


def _show_suggestion(response: CommandResponse) -> None:
    display_suggestion(response.command, response.explanation)


def _user_context(config: AppConfig) -> Optional[UserContext]:
    if not config.context.enabled:
        return None
    return load_user_context(
        config_manager.CONTEXT_DIR,
        config_manager.SYSTEM_PROMPT_FILE,
        max_chars=config.context.max_file_chars,
    )


def build_orchestrator(
    config: AppConfig,
    with_generator: bool = True,
    include_context: bool = True,
    timeout: Optional[float] = None,
) -> Orchestrator:
    """Assemble an orchestrator from the loaded configuration."""
    executor = _executor(config, timeout)
    generator = None
    if with_generator:
        user_context = _user_context(config) if include_context else None
        generator = GeminiClient(config.api, shell=executor.shell, user_context=user_context)
    return Orchestrator(
        generator=generator,
        safety_engine=safety_engine,
        executor=executor,
        confirm=get_confirmation,
        history=_history(config),
        include_context=include_context and config.safety.include_context,
        on_suggestion=_show_suggestion,
    )


def display_execution(execution: ExecutionResult) -> None:
    """Print captured output and the exit status of an execution."""
    if execution.stdout.strip():
        console.print(execution.stdout.rstrip("\n"), markup=False, highlight=False)
    if execution.stderr.strip():
        console.print(Panel(execution.stderr.rstrip("\n"), title="stderr", border_style="red", expand=False))

    if execution.success:
        console.print(f"[green]Completed in {execution.duration:.2f}s[/green]")
    else:
        exit_code = execution.exit_code if execution.exit_code is not None else -1
        console.print(f"[red]Failed with exit code {exit_code} in {execution.duration:.2f}s[/red]")


async def _process(orchestrator: Orchestrator, request: str, force: bool, always_confirm: bool) -> OrchestrationResult:
    with console.status("[yellow]Thinking...[/yellow]"):
        response = await orchestrator.generate(request)
    return await orchestrator.handle_response(response, force=force, always_confirm=always_confirm, request=request)


def _report(result: OrchestrationResult) -> int:
    if result.verdict.is_blocked:
        error = SafetyError(result.response.command, result.verdict.reason)
        logger.warning(str(error))
        return error.exit_code
    if result.execution is not None:
        display_execution(result.execution)
        if not result.execution.success:
            return result.execution.exit_code or 1
    return 0


@app.command()
def ask(
    request_text: List[str] = typer.Argument(
        ..., help="The natural language request."
    ),
    force: bool = typer.Option(
        False, "--force", help="Downgrade dangerous-command blocks to confirmations"
    ),
    always_confirm: bool = typer.Option(
        False, "--always-confirm", help="Confirm commands even if the model marks them auto-executable"
    ),
    no_context: bool = typer.Option(
        False, "--no-context", help="Do not send the previous command or context files"
    ),
):
    """Generate a command for a request and run it after the safety gate."""
    full_request = " ".join(request_text)
    config = config_manager.config

    try:
        orchestrator = build_orchestrator(config, include_context=not no_context)
        result = asyncio.run(_process(
            orchestrator,
            full_request,
            force=force,
            always_confirm=always_confirm or config.safety.always_confirm,
        ))
    except CommandGPTError as e:
        logger.error(f"Error processing request: {e}")
        console.print(f"[bold red]Error:[/bold red] {e.user_message()}")
        raise typer.Exit(e.exit_code)

    code = _report(result)
    if code:
        raise typer.Exit(code)


@app.command()
def check(
    command: str = typer.Argument(..., help="The shell command to validate."),
    force: bool = typer.Option(False, "--force", help="Apply the force override"),
):
    """Show the safety verdict for a command without running it.

    Exit status: 0 safe, 1 needs confirmation, 2 blocked.
    """
    verdict = safety_engine.validate(command, force=force)
    if verdict.is_safe:
        console.print("[green]Safe[/green]")
    else:
        display_verdict(verdict, out=console)
    raise typer.Exit(CHECK_EXIT_CODES[verdict.kind])


@app.command()
def run(
    command: str = typer.Argument(..., help="The shell command to run."),
    force: bool = typer.Option(False, "--force", help="Downgrade dangerous-command blocks to confirmations"),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Timeout in seconds"),
):
    """Validate a command yourself and run it through the executor."""
    config = config_manager.config
    response = CommandResponse(command=command, explanation="", auto_execute=False)

    try:
        orchestrator = build_orchestrator(config, with_generator=False, timeout=timeout)
        result = asyncio.run(orchestrator.handle_response(
            response, force=force, always_confirm=config.safety.always_confirm,
        ))
    except CommandGPTError as e:
        console.print(f"[bold red]Error:[/bold red] {e.user_message()}")
        raise typer.Exit(e.exit_code)

    code = _report(result)
    if code:
        raise typer.Exit(code)


SHELL_HELP = """[bold cyan]Available Commands:[/bold cyan]
  help, h         - Show this help message
  exit, quit, q   - Exit the program
  clear           - Clear the screen
  history [N]     - Show last N commands (default: 20)
  search <query>  - Search command history
  stats           - Show usage statistics

[yellow]Examples:[/yellow]
  > find all PDF files in my Downloads folder
  > compress this directory into a tar.gz file
  > show me disk usage for each directory"""


def _handle_special_command(text: str, history: HistoryManager) -> Optional[bool]:
    """
    Handle a REPL built-in.

    Returns:
        True to exit, False if the input was handled, None if it is a request.
    """
    if text in ("exit", "quit", "q"):
        return True
    if text in ("help", "h"):
        console.print(SHELL_HELP)
        return False
    if text == "clear":
        console.clear()
        return False
    if text == "stats":
        _print_stats(history)
        return False

    parts = text.split(maxsplit=1)
    if parts[0] == "history" and (len(parts) == 1 or parts[1].isdigit()):
        _print_history(history, int(parts[1]) if len(parts) == 2 else 20)
        return False
    if parts[0] == "search" and len(parts) == 2:
        _print_entries(history.search(parts[1])[:10], title=f"Search results for '{parts[1]}'")
        return False
    return None


@app.command()
def shell(
    force: bool = typer.Option(False, "--force", help="Downgrade dangerous-command blocks to confirmations"),
    always_confirm: bool = typer.Option(False, "--always-confirm", help="Always ask before executing"),
    no_context: bool = typer.Option(False, "--no-context", help="Do not send the previous command or context files"),
):
    """Launch an interactive session."""
    from prompt_toolkit import PromptSession
    from prompt_toolkit.history import FileHistory
    from prompt_toolkit.auto_suggest import AutoSuggestFromHistory

    config = config_manager.config
    try:
        orchestrator = build_orchestrator(config, include_context=not no_context)
    except CommandGPTError as e:
        console.print(f"[bold red]Error:[/bold red] {e.user_message()}")
        raise typer.Exit(e.exit_code)
    history = orchestrator.history

    history_file = config_manager.CONFIG_DIR / SHELL_HISTORY_FILE.name
    history_file.parent.mkdir(parents=True, exist_ok=True)
    session = PromptSession(
        history=FileHistory(str(history_file)),
        auto_suggest=AutoSuggestFromHistory(),
    )

    console.print(Panel(
        f"CommandGPT v{__version__}\n"
        "Ask me to generate shell commands in natural language!\n"
        "Type 'help' for available commands, 'exit' to quit.",
        title="CommandGPT Interactive Shell",
        expand=False,
    ))

    while True:
        try:
            text = session.prompt("commandgpt> ").strip()
        except KeyboardInterrupt:
            console.print("[blue]Use 'exit' or Ctrl+D to quit[/blue]")
            continue
        except EOFError:
            break

        if not text:
            continue

        special = _handle_special_command(text, history)
        if special is True:
            break
        if special is False:
            continue

        try:
            result = asyncio.run(_process(
                orchestrator, text, force=force,
                always_confirm=always_confirm or config.safety.always_confirm,
            ))
            _report(result)
        except CommandGPTError as e:
            logger.error(f"Request failed: {e}")
            console.print(f"[bold red]Error:[/bold red] {e.user_message()}")

    console.print("Goodbye!")


def _print_entries(entries, title: str) -> None:
    if not entries:
        console.print("[blue]No commands found.[/blue]")
        return
    table = Table(title=title)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("When", style="yellow")
    table.add_column("Exit", justify="right")
    table.add_column("Command", style="green")
    for entry in entries:
        table.add_row(
            str(entry.id),
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            str(entry.exit_code),
            entry.command,
        )
    console.print(table)


def _print_history(history: HistoryManager, count: int) -> None:
    _print_entries(history.get_recent_entries(count), title="Command history")


def _print_stats(history: HistoryManager) -> None:
    stats = history.get_stats()
    console.print(f"Total commands: {stats.total_commands}")
    console.print(f"Successful: {stats.successful_commands} ({stats.success_rate:.0%})")
    console.print(f"Average duration: {stats.average_duration_ms} ms")


@app.command("history")
def show_history(
    count: int = typer.Option(10, "--count", "-n", help="Number of entries to show"),
):
    """Show command history."""
    try:
        _print_history(_history(config_manager.config), count)
    except CommandGPTError as e:
        console.print(f"[bold red]Error:[/bold red] {e.user_message()}")
        raise typer.Exit(e.exit_code)


@app.command()
def clear():
    """Clear command history."""
    try:
        _history(config_manager.config).clear()
    except CommandGPTError as e:
        console.print(f"[bold red]Error:[/bold red] {e.user_message()}")
        raise typer.Exit(e.exit_code)
    console.print("Command history cleared.")


@config_app.command("show")
def config_show():
    """Show the current configuration."""
    config = config_manager.config
    table = Table(title="Configuration")
    table.add_column("Setting", style="bold cyan")
    table.add_column("Value")
    table.add_row("Config file", str(config_manager.CONFIG_FILE))
    table.add_row("API key", "configured" if config.api.gemini_api_key else "[red]not set[/red]")
    table.add_row("Model", config.api.model)
    table.add_row("Max tokens", str(config.api.max_tokens))
    table.add_row("Temperature", str(config.api.temperature))
    table.add_row("Execution timeout", f"{config.execution.timeout_seconds:g}s")
    table.add_row("Shell", config.execution.shell or "auto")
    table.add_row("Always confirm", str(config.safety.always_confirm))
    table.add_row("Include context", str(config.safety.include_context))
    table.add_row("Context files", str(config_manager.CONTEXT_DIR) if config.context.enabled else "disabled")
    table.add_row("System prompt", str(config_manager.SYSTEM_PROMPT_FILE))
    table.add_row("Shell hook", "enabled" if config.hook.enabled else "disabled")
    console.print(table)


@app.command()
def init():
    """Write a configuration file interactively."""
    config = config_manager.config
    config.safety.always_confirm = typer.confirm(
        "Always confirm commands before running them?", default=config.safety.always_confirm
    )
    config.execution.timeout_seconds = typer.prompt(
        "Command timeout in seconds", default=config.execution.timeout_seconds, type=float
    )
    try:
        sample = create_default_context_files(config_manager.CONTEXT_DIR)
        config_manager.save_config()
    except CommandGPTError as e:
        console.print(f"[bold red]Error:[/bold red] {e.user_message()}")
        raise typer.Exit(e.exit_code)

    console.print(f"[green]Configuration saved to {config_manager.CONFIG_FILE}[/green]")
    console.print(f"Add Markdown context files next to the sample at {sample}")
    if not config.api.gemini_api_key:
        console.print("Set the [bold]GEMINI_API_KEY[/bold] environment variable (or put it in a .env file).")


@hook_app.command("script")
def hook_script(
    enable: Optional[bool] = typer.Option(
        None, "--enable/--disable", help="Initial hook state (defaults to the hook.enabled setting)"
    ),
):
    """Print the zsh hook. Add `eval "$(commandgpt hook script)"` to ~/.zshrc."""
    enabled = config_manager.config.hook.enabled if enable is None else enable
    typer.echo(generate_hook_script(enabled))


@hook_app.command("handle")
def hook_handle(
    command: List[str] = typer.Argument(..., help="The unknown command and its arguments."),
    error_context: Optional[str] = typer.Option(None, "--error-context", help="Error message from the shell"),
    pwd: Optional[str] = typer.Option(None, "--pwd", help="Working directory of the shell"),
    user: Optional[str] = typer.Option(None, "--user", help="user@host of the shell"),
    last_command: Optional[str] = typer.Option(None, "--last-command", help="Previous command line"),
    recent_similar: Optional[str] = typer.Option(None, "--recent-similar", help="Similar recent command line"),
    preexec_mode: bool = typer.Option(False, "--preexec-mode", help="Called before execution, not after a failure"),
):
    """Suggest a replacement for a command the shell could not find."""
    config = config_manager.config
    name, args = command[0], command[1:]
    context = ErrorContext(
        error_message=error_context,
        current_directory=pwd,
        user_context=user,
        last_command=last_command,
        recent_similar=recent_similar,
        preexec_mode=preexec_mode,
    )

    try:
        hook = ShellHook(config.hook, GeminiClient(config.api, user_context=_user_context(config)))
        with console.status(f"[yellow]Command '{name}' not found. Getting suggestions...[/yellow]"):
            suggestion = asyncio.run(hook.suggest(name, args, context))
    except CommandGPTError as e:
        logger.debug(f"Hook unavailable: {e}")
        suggestion = None

    if suggestion is None:
        if not preexec_mode:
            typer.echo(f"zsh: command not found: {name}", err=True)
            raise typer.Exit(127)
        return

    try:
        orchestrator = build_orchestrator(config, with_generator=False)
        result = asyncio.run(orchestrator.handle_response(
            suggestion, force=False, always_confirm=config.hook.always_confirm,
            request=" ".join(command),
        ))
    except CommandGPTError as e:
        console.print(f"[bold red]Error:[/bold red] {e.user_message()}")
        raise typer.Exit(e.exit_code)

    code = _report(result)
    # A declined suggestion leaves the original failure in place
    if not code and not result.executed and not preexec_mode:
        code = 127
    if code:
        raise typer.Exit(code)

# commandgpt/orchestrator.py
"""
Main orchestration service for CommandGPT.

This module wires an LLM response through the safety gate, the user's
decision, the executor and the history store. Every collaborator is passed in
by the caller; the orchestrator holds no global state.
"""
from typing import Callable, Optional, Protocol

from pydantic import BaseModel

from commandgpt.ai.parser import CommandResponse
from commandgpt.execution.engine import CommandExecutor, ExecutionResult
from commandgpt.history import HistoryEntry
from commandgpt.safety.validator import SafetyEngine, SafetyVerdict
from commandgpt.utils.logging import get_logger

logger = get_logger(__name__)

# (command, verdict, auto_execute, always_confirm) -> run it?
ConfirmCallback = Callable[[str, SafetyVerdict, bool, bool], bool]
SuggestionCallback = Callable[[CommandResponse], None]


class CommandGenerator(Protocol):
    async def generate_command(
        self, request: str, last_entry: Optional[HistoryEntry] = None
    ) -> CommandResponse:
        ...


class HistoryRecorder(Protocol):
    def record_command(
        self, command: str, stdout: str, stderr: str, exit_code: int, duration_ms: int
    ) -> int:
        ...

    def get_last_entry(self) -> Optional[HistoryEntry]:
        ...


class OrchestrationResult(BaseModel):
    """What happened to one request."""
    request: Optional[str] = None
    response: CommandResponse
    verdict: SafetyVerdict
    executed: bool = False
    execution: Optional[ExecutionResult] = None


class Orchestrator:
    """Coordinates generation, validation, confirmation, execution and history."""

    def __init__(
        self,
        generator: Optional[CommandGenerator],
        safety_engine: SafetyEngine,
        executor: CommandExecutor,
        confirm: ConfirmCallback,
        history: Optional[HistoryRecorder] = None,
        include_context: bool = True,
        on_suggestion: Optional[SuggestionCallback] = None,
    ):
        self._generator = generator
        self._safety_engine = safety_engine
        self._executor = executor
        self._confirm = confirm
        self._history = history
        self._include_context = include_context
        self._on_suggestion = on_suggestion

    @property
    def history(self) -> Optional[HistoryRecorder]:
        return self._history

    async def process_request(
        self,
        request: str,
        force: bool = False,
        always_confirm: bool = False,
    ) -> OrchestrationResult:
        """
        Generate a command for a natural-language request and run it if allowed.

        Args:
            request: The user's request.
            force: Soften a dangerous-pattern block to a confirmation.
            always_confirm: Ask even when the command could auto-execute.

        Returns:
            The orchestration result.
        """
        response = await self.generate(request)
        return await self.handle_response(
            response, force=force, always_confirm=always_confirm, request=request
        )

    async def generate(self, request: str) -> CommandResponse:
        """Ask the generator for a command, with the last execution as context."""
        if self._generator is None:
            raise ValueError("No command generator configured")

        last_entry = None
        if self._include_context and self._history is not None:
            last_entry = self._history.get_last_entry()

        logger.info(f"Processing request: {request}")
        response = await self._generator.generate_command(request, last_entry)
        logger.info(f"Received suggestion: {response.command}")
        return response

    async def handle_response(
        self,
        response: CommandResponse,
        force: bool = False,
        always_confirm: bool = False,
        request: Optional[str] = None,
    ) -> OrchestrationResult:
        """Validate, confirm, execute and record an already generated command."""
        command = response.command
        if self._on_suggestion is not None:
            self._on_suggestion(response)

        # Validation always completes before anything runs
        verdict = self._safety_engine.validate(command, force)
        logger.debug(f"Verdict for '{command}': {verdict}")

        approved = self._confirm(command, verdict, response.auto_execute, always_confirm)
        if verdict.is_blocked or not approved:
            logger.info(f"Command not executed: {command}")
            return OrchestrationResult(request=request, response=response, verdict=verdict)

        execution = await self._executor.execute(command)

        if self._history is not None:
            self._history.record_command(
                command,
                execution.stdout,
                execution.stderr,
                execution.exit_code if execution.exit_code is not None else -1,
                int(execution.duration * 1000),
            )

        return OrchestrationResult(
            request=request,
            response=response,
            verdict=verdict,
            executed=True,
            execution=execution,
        )

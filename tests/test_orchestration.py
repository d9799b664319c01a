# tests/test_orchestration.py
"""Tests for request orchestration."""
import pytest

from commandgpt.ai.parser import CommandResponse
from commandgpt.execution.engine import CommandExecutor, ExecutionResult
from commandgpt.orchestrator import Orchestrator


class FakeGenerator:
    """Returns a fixed response and remembers what it was asked."""

    def __init__(self, response):
        self.response = response
        self.calls = []

    async def generate_command(self, request, last_entry=None):
        self.calls.append((request, last_entry))
        return self.response


class FakeExecutor:
    def __init__(self, result=None):
        self.result = result or ExecutionResult(success=True, exit_code=0, stdout="ok\n", duration=0.25)
        self.executed = []

    async def execute(self, command):
        self.executed.append(command)
        return self.result


class RecordingConfirm:
    def __init__(self, answer):
        self.answer = answer
        self.calls = []

    def __call__(self, command, verdict, auto_execute, always_confirm):
        self.calls.append((command, verdict, auto_execute, always_confirm))
        return self.answer


def make_orchestrator(permissive_engine, history_manager, response, answer=True, executor=None, **kwargs):
    generator = FakeGenerator(response)
    confirm = RecordingConfirm(answer)
    executor = executor or FakeExecutor()
    orchestrator = Orchestrator(
        generator=generator,
        safety_engine=permissive_engine,
        executor=executor,
        confirm=confirm,
        history=history_manager,
        **kwargs,
    )
    return orchestrator, generator, confirm, executor


@pytest.mark.asyncio
async def test_approved_command_is_executed_and_recorded(permissive_engine, history_manager):
    response = CommandResponse(command="ls -la", explanation="List", auto_execute=True)
    orchestrator, _, confirm, executor = make_orchestrator(permissive_engine, history_manager, response)

    result = await orchestrator.process_request("list files")

    assert result.request == "list files"
    assert result.verdict.is_safe
    assert result.executed is True
    assert executor.executed == ["ls -la"]
    assert confirm.calls[0][2] is True

    entry = history_manager.get_last_entry()
    assert entry.command == "ls -la"
    assert entry.stdout == "ok\n"
    assert entry.duration_ms == 250


@pytest.mark.asyncio
async def test_blocked_command_never_executes(permissive_engine, history_manager):
    response = CommandResponse(command="rm -rf /")
    orchestrator, _, confirm, executor = make_orchestrator(permissive_engine, history_manager, response)

    result = await orchestrator.process_request("wipe everything")

    assert result.verdict.is_blocked
    assert result.executed is False
    assert executor.executed == []
    assert len(history_manager) == 0
    # The verdict is still handed over so it can be shown
    assert confirm.calls[0][1].is_blocked


@pytest.mark.asyncio
async def test_declined_command_not_executed(permissive_engine, history_manager):
    response = CommandResponse(command="rm notes.txt")
    orchestrator, _, _, executor = make_orchestrator(
        permissive_engine, history_manager, response, answer=False
    )

    result = await orchestrator.process_request("delete notes", force=True, always_confirm=True)

    assert result.verdict.requires_confirmation
    assert result.executed is False
    assert executor.executed == []


@pytest.mark.asyncio
async def test_previous_command_passed_as_context(permissive_engine, history_manager):
    history_manager.record_command("ls *.log", "a.log\n", "", 0, 3)
    response = CommandResponse(command="echo hi")
    orchestrator, generator, _, _ = make_orchestrator(permissive_engine, history_manager, response)

    await orchestrator.process_request("again")

    assert generator.calls[0][1].command == "ls *.log"


@pytest.mark.asyncio
async def test_context_can_be_disabled(permissive_engine, history_manager):
    history_manager.record_command("ls", "", "", 0, 3)
    response = CommandResponse(command="echo hi")
    orchestrator, generator, _, _ = make_orchestrator(
        permissive_engine, history_manager, response, include_context=False
    )

    await orchestrator.process_request("again")

    assert generator.calls[0][1] is None


@pytest.mark.asyncio
async def test_killed_process_recorded_with_negative_exit_code(permissive_engine, history_manager):
    executor = FakeExecutor(ExecutionResult(success=False, exit_code=None))
    response = CommandResponse(command="echo hi")
    orchestrator, _, _, _ = make_orchestrator(
        permissive_engine, history_manager, response, executor=executor
    )

    await orchestrator.process_request("say hi")

    assert history_manager.get_last_entry().exit_code == -1


@pytest.mark.asyncio
async def test_suggestion_callback(permissive_engine, history_manager):
    seen = []
    response = CommandResponse(command="echo hi", explanation="Greets")
    orchestrator, _, _, _ = make_orchestrator(
        permissive_engine, history_manager, response, on_suggestion=seen.append
    )

    await orchestrator.process_request("say hi")

    assert seen == [response]


@pytest.mark.asyncio
async def test_missing_generator(permissive_engine, history_manager):
    orchestrator = Orchestrator(
        generator=None,
        safety_engine=permissive_engine,
        executor=FakeExecutor(),
        confirm=RecordingConfirm(True),
        history=history_manager,
    )

    with pytest.raises(ValueError):
        await orchestrator.process_request("anything")


@pytest.mark.asyncio
async def test_handle_response_with_real_executor(engine, history_manager):
    orchestrator = Orchestrator(
        generator=None,
        safety_engine=engine,
        executor=CommandExecutor(timeout=10),
        confirm=RecordingConfirm(True),
        history=history_manager,
    )

    result = await orchestrator.handle_response(CommandResponse(command="echo hello"))

    assert result.execution.stdout.strip() == "hello"
    assert history_manager.get_last_entry().exit_code == 0

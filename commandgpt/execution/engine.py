# commandgpt/execution/engine.py
"""
Engine for executing validated commands.

Commands run under a real shell with stdin closed. stdout and stderr are
drained concurrently with the wait for exit, and the whole wait is raced
against a wall-clock timeout.
"""
import asyncio
import os
import shlex
import shutil
import signal
import tempfile
import time
from typing import List, Optional

import psutil
from pydantic import BaseModel, ConfigDict

from commandgpt.constants import DEFAULT_TIMEOUT, FALLBACK_SHELL, PREFERRED_SHELLS
from commandgpt.errors import (
    CommandIOError, CommandSpawnError, CommandTimeoutError, ExecutionError,
)
from commandgpt.utils.logging import get_logger

logger = get_logger(__name__)

SCRIPT_HEADER = "#!{shell}\nset -e\n\n"
KILL_GRACE_SECONDS = 5.0


class ExecutionResult(BaseModel):
    """Outcome of one execute() call."""
    model_config = ConfigDict(frozen=True)

    success: bool
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    duration: float = 0.0  # seconds


def resolve_shell(configured: Optional[str] = None) -> str:
    """Pick the shell used to run commands."""
    if configured:
        # Scripts need an absolute interpreter path for their shebang
        return shutil.which(configured) or configured
    for name in PREFERRED_SHELLS:
        path = shutil.which(name)
        if path:
            return path
    return FALLBACK_SHELL


class CommandExecutor:
    """Runs shell commands with captured output and a timeout."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, shell: Optional[str] = None):
        """
        Initialize the executor.

        Args:
            timeout: Wall-clock limit in seconds for a single command.
            shell: Shell binary to use. Autodetected when omitted.
        """
        self.timeout = timeout
        self.shell = resolve_shell(shell)

    @classmethod
    def with_timeout(cls, timeout_secs: float) -> "CommandExecutor":
        return cls(timeout=timeout_secs)

    async def execute(self, command: str) -> ExecutionResult:
        """
        Execute a command and capture its output.

        Multi-line text runs as a temporary script with ``set -e``; a single
        line is passed to the shell with ``-c``.

        Args:
            command: The (already validated) command text.

        Returns:
            The execution result, with duration measured around the whole call.

        Raises:
            CommandSpawnError: The shell or script could not be started.
            CommandTimeoutError: The command ran past the timeout and was killed.
            CommandIOError: Any other I/O failure.
        """
        start_time = time.monotonic()
        logger.debug(f"Executing command: {command}")

        if len(command.splitlines()) > 1:
            result = await self._execute_script(command)
        else:
            result = await self._execute_single_command(command)

        return result.model_copy(update={"duration": time.monotonic() - start_time})

    async def _execute_single_command(self, command: str) -> ExecutionResult:
        logger.debug(f"Spawning command: {self.shell} -c '{command}'")
        process = await self._spawn([self.shell, "-c", command])
        return await self._wait_for_completion(process)

    async def _execute_script(self, script: str) -> ExecutionResult:
        try:
            fd, path = tempfile.mkstemp(prefix="commandgpt-", suffix=".sh")
        except OSError as e:
            raise CommandIOError(f"Failed to create temporary script file: {e}") from e

        try:
            # Closed before exec; Linux refuses to run a file open for writing
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(SCRIPT_HEADER.format(shell=self.shell))
                f.write(script)
            os.chmod(path, 0o755)

            logger.debug(f"Executing script: {path}")
            process = await self._spawn([path])
            return await self._wait_for_completion(process)
        except OSError as e:
            raise CommandIOError(f"Failed to prepare script file: {e}") from e
        finally:
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove temporary script {path}: {e}")

    async def _spawn(self, argv: List[str]) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                # Own process group, so a timeout can kill the whole tree
                start_new_session=True,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise CommandSpawnError(f"Failed to spawn command: {e}") from e
        except OSError as e:
            raise CommandIOError(f"Failed to spawn command: {e}") from e

    async def _wait_for_completion(self, process: asyncio.subprocess.Process) -> ExecutionResult:
        try:
            stdout, stderr, returncode = await asyncio.wait_for(
                asyncio.gather(
                    self._read_stream(process.stdout),
                    self._read_stream(process.stderr),
                    process.wait(),
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            raise CommandTimeoutError(
                f"Command timed out after {self.timeout:g} seconds", timeout=self.timeout
            )
        except OSError as e:
            await self._kill(process)
            raise CommandIOError(f"Failed to read from stream: {e}") from e

        logger.debug(f"Command completed with return code: {returncode}")
        if stderr:
            logger.debug(f"stderr: {stderr[:200]}")

        return ExecutionResult(
            success=returncode == 0,
            # Negative return codes mean the process died from a signal
            exit_code=returncode if returncode >= 0 else None,
            stdout=stdout,
            stderr=stderr,
        )

    @staticmethod
    async def _read_stream(stream: asyncio.StreamReader) -> str:
        data = await stream.read()
        return data.decode("utf-8", errors="replace")

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        """
        Kill a process, its process group and its descendants.

        The group is killed even when the shell itself has already exited,
        since backgrounded children may still hold the output pipes.
        Failures are logged, not raised.
        """
        try:
            descendants = psutil.Process(process.pid).children(recursive=True)
        except psutil.Error:
            descendants = []

        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except OSError as e:
            logger.warning(f"Failed to kill process group {process.pid}: {e}")
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                except OSError as kill_err:
                    logger.warning(f"Failed to kill timed-out process: {kill_err}")

        # Descendants that left the group
        for child in descendants:
            try:
                child.kill()
            except psutil.NoSuchProcess:
                pass
            except psutil.Error as e:
                logger.warning(f"Failed to kill child process {child.pid}: {e}")

        if process.returncode is not None:
            return
        try:
            await asyncio.wait_for(process.wait(), timeout=KILL_GRACE_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(f"Process {process.pid} did not exit after kill")

    async def test_command_exists(self, command: str) -> bool:
        """Check whether the shell can resolve a command name."""
        try:
            result = await self.execute(f"command -v {shlex.quote(command)}")
        except ExecutionError as e:
            logger.debug(f"Existence check for '{command}' failed: {e}")
            return False
        return result.success

    async def validate_syntax(self, command: str) -> bool:
        """Check a command with the shell's no-op syntax mode (``-n``)."""
        try:
            process = await self._spawn([self.shell, "-n", "-c", command])
            result = await self._wait_for_completion(process)
        except ExecutionError as e:
            logger.debug(f"Syntax check for '{command}' failed: {e}")
            return False
        return result.success

    async def get_command_help(self, command: str) -> str:
        """
        Get help text for a command.

        Tries ``--help``, ``-h`` and ``man`` in turn.

        Raises:
            ExecutionError: None of the help sources produced output.
        """
        name = shlex.quote(command)
        for help_cmd in (f"{name} --help", f"{name} -h", f"man {name}"):
            try:
                result = await self.execute(help_cmd)
            except ExecutionError:
                continue
            if result.success and result.stdout.strip():
                return result.stdout

        raise ExecutionError(f"No help available for command: {command}")

# commandgpt/execution/__init__.py
"""
Execution components for CommandGPT.

This package runs validated commands under a real shell with captured output,
a wall-clock timeout and cleanup of temporary scripts.
"""
from .engine import CommandExecutor, ExecutionResult, resolve_shell

__all__ = [
    'CommandExecutor',
    'ExecutionResult',
    'resolve_shell',
]

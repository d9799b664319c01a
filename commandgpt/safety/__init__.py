# commandgpt/safety/__init__.py
"""
Safety validation for CommandGPT.

This package classifies generated commands as safe, needing confirmation, or
blocked, and handles the user confirmation that follows.
"""
from .patterns import PatternLibrary, pattern_library, DANGEROUS_PATTERNS
from .validator import (
    SafetyEngine,
    SafetyVerdict,
    VerdictKind,
    safety_engine,
    validate_command,
    is_dangerous,
    needs_confirmation,
)

__all__ = [
    'PatternLibrary',
    'pattern_library',
    'DANGEROUS_PATTERNS',
    'SafetyEngine',
    'SafetyVerdict',
    'VerdictKind',
    'safety_engine',
    'validate_command',
    'is_dangerous',
    'needs_confirmation',
]
